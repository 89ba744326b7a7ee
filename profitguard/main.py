"""ProfitGuard FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from profitguard import __version__
from profitguard.config import get_settings
from profitguard.database import engine, Base
from profitguard.api import auth_routes, dashboard, returns

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables on startup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"{settings.app_name} {__version__} started")
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="Estimate the profit or loss of accepting a Shopify return, "
                "with saved history, archive and at-a-glance analytics",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(returns.router, prefix="/api/v1")
app.include_router(dashboard.router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok", "service": settings.app_name, "version": __version__}
