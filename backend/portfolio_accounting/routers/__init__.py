# API Routers

from . import health, portfolio, reports

__all__ = ["health", "portfolio", "reports"]
