"""Reports Router

API endpoints for tax and cost basis reports derived from a posted event
history. Every report replays the full history it is given.
"""

import logging
from fastapi import APIRouter, Depends, Path

from ..services.reporting_service import ReportingService
from .portfolio import EventsRequest, PortfolioRequest, get_reporting_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/tax-summary")
async def get_tax_summary(
    request: EventsRequest,
    service: ReportingService = Depends(get_reporting_service),
):
    """Get short-/long-term capital gains, globally and per chain.

    Args:
        request: Event history

    Returns:
        Tax summary with an estimate at the configured rates
    """
    summary = service.get_tax_summary(request.to_events())
    return {
        **summary.to_dict(),
        "estimate": service.estimate_tax(summary.total).to_dict(),
    }


@router.post("/tax/{year}")
async def get_tax_report(
    request: EventsRequest,
    year: int = Path(ge=1970, le=9999),
    service: ReportingService = Depends(get_reporting_service),
):
    """Get the tax report of a fiscal year.

    Args:
        request: Full event history (earlier years included)
        year: Fiscal year

    Returns:
        Realized gains and totals of that year
    """
    report = service.get_tax_report(request.to_events(), year)
    return report.to_dict()


@router.post("/cost-basis")
async def get_cost_basis(
    request: PortfolioRequest,
    service: ReportingService = Depends(get_reporting_service),
):
    """Get open lots with their unrealized gain.

    Args:
        request: Event history and current prices

    Returns:
        One record per open lot
    """
    records = service.get_cost_basis(request.to_events(), request.price_map())
    return [record.to_dict() for record in records]
