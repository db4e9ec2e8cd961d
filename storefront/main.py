# storefront/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from sqlalchemy.engine import Engine

import storefront.data.models  # noqa: F401  registers every table on Base.metadata
from storefront.api import register_routes
from storefront.data.database import Base, SessionLocal, engine
from storefront.data.seed import seed
from storefront.utils.logging import get_logger
from storefront.utils.settings import SEED_DATA

logger = get_logger(__name__)


def init_db(bind: Engine = engine, with_seed: bool = SEED_DATA) -> None:
    logger.info(f"Creating tables: {sorted(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=bind)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise

    if with_seed:
        db = SessionLocal(bind=bind)
        try:
            seed(db)
        finally:
            db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Storefront starting up")
    yield
    logger.info("Storefront shutting down")


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Storefront",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else None,
    )
    return register_routes(app)


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
