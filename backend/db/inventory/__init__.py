"""
Inventory (section-scoped stock).

Models:
- Item (theoretical stock of one product in one section)
- StocktakeSession (a counting event for one section)
- StocktakeRecord (counted vs. expected quantity per item per session)
"""
