from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from core.config import settings
from core.logging import configure_logging, get_logger
from db.database import create_db_and_tables
from routers.categories import router as categories_router
from routers.inventory import router as inventory_router
from routers.organizations import router as organizations_router
from routers.purchase_orders import router as purchase_orders_router
from routers.sections import router as sections_router
from routers.stocktakes import router as stocktakes_router
from routers.suppliers import router as suppliers_router
from routers.user_state import router as user_state_router
from routers.users import router as users_router

configure_logging(settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_db_and_tables()
    yield


app = FastAPI(
    title="Tanavent Inventory API",
    description="Multi-tenant inventory, purchasing and stocktaking API for bars and restaurants",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are plain bad requests for clients of this API
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": message})


@app.exception_handler(SQLAlchemyError)
async def store_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error"},
    )


# Organizations and their sections share the /api/organizations prefix
app.include_router(organizations_router, prefix="/api/organizations", tags=["organizations"])
app.include_router(sections_router, prefix="/api/organizations", tags=["sections"])

app.include_router(inventory_router, prefix="/api/inventory", tags=["inventory"])
app.include_router(categories_router, prefix="/api/categories", tags=["inventory"])
app.include_router(suppliers_router, prefix="/api/suppliers", tags=["purchasing"])
app.include_router(purchase_orders_router, prefix="/api/purchase-orders", tags=["purchasing"])
app.include_router(stocktakes_router, prefix="/api/stocktakes", tags=["stocktakes"])
app.include_router(users_router, prefix="/api/users", tags=["users"])
app.include_router(user_state_router, prefix="/api/me/state", tags=["users"])


@app.get("/")
def root():
    return {"status": "ok", "message": "Tanavent API is running"}


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
