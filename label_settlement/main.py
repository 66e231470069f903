"""
Label Settlement - FastAPI Application

Settles music earnings into recoupment and artist royalties, and reports
who is due a payout.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from label_settlement.core.config import settings
from label_settlement.core.database import engine, Base
from label_settlement.core.errors import SettlementError
from label_settlement.routers.earnings import router as earnings_router
from label_settlement.routers.releases import router as releases_router
from label_settlement.routers.balances import artists_router, labels_router
from label_settlement.routers.system import router as system_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    # Create tables on startup (for development); migrations own production schema
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield
    # Cleanup on shutdown
    await engine.dispose()


app = FastAPI(
    title="Label Settlement",
    description="Earnings settlement and payout readiness for independent labels",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SettlementError)
async def settlement_error_handler(request: Request, exc: SettlementError) -> JSONResponse:
    """Map domain errors no router translated to their HTTP status."""
    logger.warning(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Include routers
app.include_router(earnings_router)
app.include_router(releases_router)
app.include_router(artists_router)
app.include_router(labels_router)
app.include_router(system_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
