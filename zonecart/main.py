# zonecart/main.py
from fastapi import FastAPI
import uvicorn

from zonecart.data.database import Base, engine
from zonecart.api.routers import (
    health,
    users,
    carts,
    location,
    checkout,
    orders,
    products,
    admin_zones,
    admin_stores,
)
from zonecart.utils.logging import get_logger

# IMPORT WSZYSTKICH MODELI PRZED CREATE_ALL
import zonecart.data.models  # noqa: F401

logger = get_logger(__name__)


def init_db() -> None:
    logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created")
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise


def create_app() -> FastAPI:
    init_db()

    app = FastAPI(
        title="Zone Cart Service",
        version="1.0.0",
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(location.router)
    app.include_router(carts.router)
    app.include_router(checkout.router)
    app.include_router(orders.router)
    app.include_router(products.router)
    app.include_router(admin_zones.router)
    app.include_router(admin_stores.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
