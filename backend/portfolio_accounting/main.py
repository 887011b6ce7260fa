"""Portfolio Accounting FastAPI Application.

Stateless HTTP surface over the accounting engine: every request carries
the event history it is computed from.
"""

import logging
import sys
from contextlib import asynccontextmanager
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .routers import health, portfolio, reports
from .services.config import config_service, ConfigValidationException

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(config: dict) -> None:
    """Apply the ``logging`` config section to the root logger."""
    section = config.get("logging") or {}
    logging.basicConfig(
        level=getattr(logging, section.get("level", "INFO")),
        format=section.get("format", DEFAULT_LOG_FORMAT),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: Validate configuration
    try:
        config = config_service.load_and_validate()
    except ConfigValidationException as e:
        print(f"FATAL: {e}")
        print("Server cannot start with invalid configuration.")
        sys.exit(1)

    configure_logging(config)
    settings = config_service.get_accounting_settings()
    logger.info(
        f"Accounting settings: long-term after {settings.long_term_days} days, "
        f"rates ST={settings.short_term_rate:.2f} LT={settings.long_term_rate:.2f}"
    )

    yield

    logger.info("Shutdown complete")


app = FastAPI(
    title="Portfolio Accounting API",
    description="FIFO PnL and capital-gains classification for crypto portfolios",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(portfolio.router, prefix="/api", tags=["Portfolio"])
app.include_router(reports.router, prefix="/api/reports", tags=["Reports"])


@app.get("/")
async def root():
    """Root endpoint redirect to docs."""
    return {"message": "Portfolio Accounting API", "docs": "/docs"}


def run() -> None:
    """Serve the API with the ``server`` config section."""
    config_service.load_and_validate()
    uvicorn.run(
        "portfolio_accounting.main:app",
        host=config_service.get("server.host", "127.0.0.1"),
        port=config_service.get("server.port", 8000),
        reload=config_service.get("server.debug", False),
    )


if __name__ == "__main__":
    run()
