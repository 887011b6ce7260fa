"""Portfolio aggregation of per-token PnL results."""

import logging
from collections import OrderedDict
from typing import Dict, Iterable

from ..models import PortfolioSummary, TokenPnL
from .accounting import percentage_change

logger = logging.getLogger(__name__)


def pnl_by_chain(token_pnls: Iterable[TokenPnL]) -> Dict[str, float]:
    """Sum total PnL per chain."""
    totals: Dict[str, float] = OrderedDict()
    for pnl in token_pnls:
        totals[pnl.chain] = totals.get(pnl.chain, 0.0) + pnl.total_pnl_usd
    return totals


class PortfolioAggregator:
    """Reduces TokenPnL results into portfolio totals."""

    def summarize(self, token_pnls: Iterable[TokenPnL]) -> PortfolioSummary:
        """Sum token results into a portfolio summary.

        Args:
            token_pnls: One result per token-key held or previously held

        Returns:
            Portfolio summary with a per-chain breakdown
        """
        token_pnls = list(token_pnls)

        realized = sum(p.realized_pnl_usd for p in token_pnls)
        unrealized = sum(p.unrealized_pnl_usd for p in token_pnls)
        total = realized + unrealized
        invested = sum(p.total_invested_usd for p in token_pnls)

        summary = PortfolioSummary(
            total_realized_pnl_usd=realized,
            total_unrealized_pnl_usd=unrealized,
            total_pnl_usd=total,
            total_value_usd=sum(p.current_value_usd for p in token_pnls),
            total_invested_usd=invested,
            percentage_change=percentage_change(total, invested),
            pnl_by_chain=pnl_by_chain(token_pnls),
            token_count=len(token_pnls),
        )

        logger.info(
            f"Portfolio: {summary.token_count} token(s), "
            f"total PnL=${summary.total_pnl_usd:+.2f} ({summary.percentage_change:+.2f}%)"
        )
        return summary
