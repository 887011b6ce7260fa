# Accounting Models

from .event import Direction, Event, TokenKey
from .tax_lot import Lot, RealizedGain
from .pnl import TokenPnL, TaxLotResult, TaxSummary, PortfolioSummary

__all__ = [
    "Direction",
    "Event",
    "TokenKey",
    "Lot",
    "RealizedGain",
    "TokenPnL",
    "TaxLotResult",
    "TaxSummary",
    "PortfolioSummary",
]
