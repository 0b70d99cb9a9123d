"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

import app.models  # noqa: F401
from app.config import get_settings
from app.database import Base, engine
from app.routers.bootstrap import router as bootstrap_router
from app.routers.organizations import router as organizations_router
from app.routers.public import router as public_router
from app.routers.secrets import router as secrets_router
from app.routers.tokens import router as tokens_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Configure logging and initialize database schema on startup.

    Yields
    ------
    None
        Runs the application lifespan.
    """
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    logger.info("%s started", settings.app_name)
    yield
    await engine.dispose()


app = FastAPI(title=get_settings().app_name, lifespan=lifespan)
app.include_router(bootstrap_router)
app.include_router(organizations_router)
app.include_router(secrets_router)
app.include_router(tokens_router)
app.include_router(public_router)
