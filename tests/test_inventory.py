"""
Inventory items: creation, listing by section, and the tenancy checks on
every by-id operation.
"""


async def test_margaux_scenario(client, owner, outsider, margaux):
    assert margaux["id"]
    assert margaux["name"] == "Margaux"
    assert margaux["vintage"] == 2015
    assert margaux["quantity"] == 3
    assert margaux["unit"] == "btl"
    assert margaux["organizationId"] == owner.org_id
    assert margaux["sectionId"] == owner.section_id
    assert margaux["updatedAt"]

    res = await client.get(f"/api/inventory/{margaux['id']}", headers=owner.headers)
    assert res.status_code == 200
    assert res.json()["name"] == "Margaux"

    res = await client.get(f"/api/inventory/{margaux['id']}", headers=outsider.headers)
    assert res.status_code == 403

    res = await client.get("/api/inventory/no-such-item", headers=outsider.headers)
    assert res.status_code == 404


async def test_create_defaults(client, owner):
    res = await client.post(
        "/api/inventory",
        json={"name": "Lemons", "organizationId": owner.org_id, "sectionId": owner.section_id},
        headers=owner.headers,
    )
    assert res.status_code == 200
    item = res.json()
    assert item["vintage"] is None
    assert item["quantity"] == 0
    assert item["unit"] == "pc"


async def test_create_missing_fields(client, owner):
    for body in (
        {"organizationId": owner.org_id, "sectionId": owner.section_id},
        {"name": "Lemons", "sectionId": owner.section_id},
        {"name": "Lemons", "organizationId": owner.org_id},
    ):
        res = await client.post("/api/inventory", json=body, headers=owner.headers)
        assert res.status_code == 400
        assert res.json()["detail"] == "Missing required fields"


async def test_create_rejects_negative_quantity(client, owner):
    res = await client.post(
        "/api/inventory",
        json={"name": "Lemons", "organizationId": owner.org_id, "sectionId": owner.section_id, "quantity": -1},
        headers=owner.headers,
    )
    assert res.status_code == 400


async def test_create_with_mismatched_section_is_bad_request(client, owner, outsider):
    """Section of O with organization O2 (where the caller is a member): 400, not 403."""
    res = await client.post(
        "/api/inventory",
        json={"name": "Smuggled", "organizationId": outsider.org_id, "sectionId": owner.section_id},
        headers=outsider.headers,
    )
    assert res.status_code == 400
    assert res.json()["detail"] == "Invalid section for organization"


async def test_create_in_other_tenant_is_forbidden(client, owner, outsider):
    res = await client.post(
        "/api/inventory",
        json={"name": "Smuggled", "organizationId": owner.org_id, "sectionId": owner.section_id},
        headers=outsider.headers,
    )
    assert res.status_code == 403


async def test_list_by_section(client, owner, margaux):
    res = await client.get("/api/inventory", params={"sectionId": owner.section_id}, headers=owner.headers)
    assert res.status_code == 200
    items = res.json()["items"]
    assert [i["id"] for i in items] == [margaux["id"]]


async def test_list_requires_section_id(client, owner):
    res = await client.get("/api/inventory", headers=owner.headers)
    assert res.status_code == 400
    assert res.json()["detail"] == "sectionId is required"


async def test_list_unknown_section(client, owner):
    res = await client.get("/api/inventory", params={"sectionId": "nope"}, headers=owner.headers)
    assert res.status_code == 404
    assert res.json()["detail"] == "Section not found"


async def test_list_other_tenant_section_forbidden(client, owner, outsider, margaux):
    res = await client.get("/api/inventory", params={"sectionId": owner.section_id}, headers=outsider.headers)
    assert res.status_code == 403


async def test_partial_update(client, owner, margaux):
    res = await client.put(f"/api/inventory/{margaux['id']}", json={"quantity": 5}, headers=owner.headers)
    assert res.status_code == 200
    assert res.json() == {"success": True, "id": margaux["id"]}

    item = (await client.get(f"/api/inventory/{margaux['id']}", headers=owner.headers)).json()
    assert item["quantity"] == 5
    assert item["name"] == "Margaux"
    assert item["vintage"] == 2015
    assert item["unit"] == "btl"


async def test_update_can_clear_vintage(client, owner, margaux):
    res = await client.put(f"/api/inventory/{margaux['id']}", json={"vintage": None}, headers=owner.headers)
    assert res.status_code == 200
    item = (await client.get(f"/api/inventory/{margaux['id']}", headers=owner.headers)).json()
    assert item["vintage"] is None


async def test_update_with_forged_organization_is_ignored(client, owner, outsider, margaux):
    """Authorization uses the stored item's organization, never one from the body."""
    res = await client.put(
        f"/api/inventory/{margaux['id']}",
        json={"quantity": 99, "organizationId": outsider.org_id},
        headers=outsider.headers,
    )
    assert res.status_code == 403

    # and the owner supplying a foreign organization id cannot move the item
    res = await client.put(
        f"/api/inventory/{margaux['id']}",
        json={"quantity": 4, "organizationId": outsider.org_id},
        headers=owner.headers,
    )
    assert res.status_code == 200

    item = (await client.get(f"/api/inventory/{margaux['id']}", headers=owner.headers)).json()
    assert item["quantity"] == 4
    assert item["organizationId"] == owner.org_id


async def test_update_unknown_item(client, owner):
    res = await client.put("/api/inventory/missing", json={"quantity": 1}, headers=owner.headers)
    assert res.status_code == 404


async def test_delete(client, owner, outsider, margaux):
    res = await client.delete(f"/api/inventory/{margaux['id']}", headers=outsider.headers)
    assert res.status_code == 403

    res = await client.delete(f"/api/inventory/{margaux['id']}", headers=owner.headers)
    assert res.status_code == 200
    assert res.json() == {"success": True, "id": margaux["id"]}

    res = await client.delete(f"/api/inventory/{margaux['id']}", headers=owner.headers)
    assert res.status_code == 404


async def test_update_rejects_null_for_required_fields(client, owner, margaux):
    url = f"/api/inventory/{margaux['id']}"
    for body in ({"name": None}, {"quantity": None}, {"unit": None}, {"minStockLevel": None}, {"name": "  "}):
        res = await client.put(url, json=body, headers=owner.headers)
        assert res.status_code == 400, body

    item = (await client.get(url, headers=owner.headers)).json()
    assert (item["name"], item["quantity"], item["unit"]) == ("Margaux", 3, "btl")


async def test_stock_and_cost_fields(client, owner, margaux):
    url = f"/api/inventory/{margaux['id']}"
    assert margaux["subName"] is None
    assert margaux["lastCostPrice"] == 0
    assert margaux["minStockLevel"] == 0

    res = await client.put(url, json={"subName": "Ch. Margaux", "minStockLevel": 6, "lastCostPrice": 42000}, headers=owner.headers)
    assert res.status_code == 200
    item = (await client.get(url, headers=owner.headers)).json()
    assert item["subName"] == "Ch. Margaux"
    assert item["minStockLevel"] == 6
    assert item["lastCostPrice"] == 42000

    res = await client.get("/api/inventory", params={"sectionId": owner.section_id, "lowStock": "true"}, headers=owner.headers)
    assert [i["id"] for i in res.json()["items"]] == [margaux["id"]]

    await client.put(url, json={"quantity": 6}, headers=owner.headers)
    res = await client.get("/api/inventory", params={"sectionId": owner.section_id, "lowStock": "true"}, headers=owner.headers)
    assert res.json()["items"] == []


async def test_category_and_supplier_must_share_the_item_section(client, owner, outsider, margaux):
    res = await client.post(
        "/api/categories",
        json={"name": "Bordeaux", "organizationId": owner.org_id, "sectionId": owner.section_id},
        headers=owner.headers,
    )
    category_id = res.json()["id"]
    res = await client.post(
        "/api/suppliers",
        json={"name": "Back Bar Wines", "organizationId": outsider.org_id, "sectionId": outsider.section_id},
        headers=outsider.headers,
    )
    foreign_supplier_id = res.json()["id"]

    url = f"/api/inventory/{margaux['id']}"
    assert (await client.put(url, json={"categoryId": category_id}, headers=owner.headers)).status_code == 200
    res = await client.put(url, json={"supplierId": foreign_supplier_id}, headers=owner.headers)
    assert res.status_code == 400
    assert res.json()["detail"] == "Invalid supplier for section"

    res = await client.post(
        "/api/inventory",
        json={
            "name": "Pauillac",
            "organizationId": owner.org_id,
            "sectionId": owner.section_id,
            "supplierId": foreign_supplier_id,
        },
        headers=owner.headers,
    )
    assert res.status_code == 400

    item = (await client.get(url, headers=owner.headers)).json()
    assert item["categoryId"] == category_id
    assert item["supplierId"] is None

    # deleting the category keeps the item
    assert (await client.delete(f"/api/categories/{category_id}", headers=owner.headers)).status_code == 200
    item = (await client.get(url, headers=owner.headers)).json()
    assert item["categoryId"] is None
