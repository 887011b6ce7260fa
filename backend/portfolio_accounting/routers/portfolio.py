"""Portfolio PnL API endpoints.

Stateless: the caller posts the full event history with current prices and
balances, the engine replays it and returns the results.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..models import Direction, Event, TokenKey
from ..services.config import config_service
from ..services.reporting_service import ReportingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portfolio")


# ============================================================================
# Request Models (Pydantic)
# ============================================================================

class EventIn(BaseModel):
    """Acquisition or disposal event."""
    timestamp: datetime
    chain: str = Field(min_length=1)
    address: str = Field(min_length=1)
    amount: float = Field(ge=0, allow_inf_nan=False)
    direction: Direction
    unit_price_usd: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    symbol: Optional[str] = None
    tx_hash: Optional[str] = None

    def to_event(self) -> Event:
        timestamp = self.timestamp
        # Naive timestamps are UTC, so they compare with aware ones
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)

        return Event(
            timestamp=timestamp,
            token_key=TokenKey(self.chain, self.address),
            amount=self.amount,
            direction=self.direction,
            unit_price_usd=self.unit_price_usd or 0.0,
            symbol=self.symbol,
            tx_hash=self.tx_hash,
        )


class TokenValueIn(BaseModel):
    """A per-token value: current price or current balance."""
    chain: str = Field(min_length=1)
    address: str = Field(min_length=1)
    value: float = Field(ge=0, allow_inf_nan=False)


class EventsRequest(BaseModel):
    """Event history request."""
    events: List[EventIn] = Field(default_factory=list)

    def to_events(self) -> List[Event]:
        return [event.to_event() for event in self.events]


class PortfolioRequest(EventsRequest):
    """Event history plus current prices and balances."""
    current_prices: List[TokenValueIn] = Field(default_factory=list)
    balances: List[TokenValueIn] = Field(default_factory=list)

    def price_map(self) -> Dict[TokenKey, float]:
        return _token_values(self.current_prices)

    def balance_map(self) -> Dict[TokenKey, float]:
        return _token_values(self.balances)


def _token_values(values: List[TokenValueIn]) -> Dict[TokenKey, float]:
    return {TokenKey(v.chain, v.address): v.value for v in values}


def get_reporting_service() -> ReportingService:
    """Reporting service configured from the loaded config."""
    return ReportingService(config_service.get_accounting_settings())


# ============================================================================
# Endpoints
# ============================================================================

@router.post("/pnl")
async def calculate_portfolio_pnl(
    request: PortfolioRequest,
    service: ReportingService = Depends(get_reporting_service),
):
    """Calculate token PnL, portfolio totals and tax classification.

    Args:
        request: Events, current prices and balances

    Returns:
        Token PnL list, portfolio summary and tax summary
    """
    report = service.build_report(
        request.to_events(),
        current_prices=request.price_map(),
        balances=request.balance_map(),
    )
    return report.to_dict()


@router.post("/summary")
async def get_portfolio_summary(
    request: PortfolioRequest,
    service: ReportingService = Depends(get_reporting_service),
):
    """Get portfolio totals only.

    Args:
        request: Events, current prices and balances

    Returns:
        Portfolio summary
    """
    report = service.build_report(
        request.to_events(),
        current_prices=request.price_map(),
        balances=request.balance_map(),
    )
    return report.portfolio.to_dict()
