"""Token PnL accounting: realized, unrealized and cost basis per token-key.

CRITICAL: This module turns one token-key's event history into a TokenPnL:
- Events are normalized (zero amounts dropped, stable chronological sort)
- A fresh FIFO lot ledger replays them
- Realized PnL comes from lot matches, unrealized PnL from the open lots

Design constraints:
- Pure and deterministic, no I/O
- Data-quality problems degrade the numbers, never raise
- Each calculation owns its ledger exclusively
"""

import logging
from datetime import timedelta
from typing import Iterable, Optional

from ..models import Event, TokenKey, TokenPnL
from .config import AccountingSettings
from .lot_ledger import LotLedger
from .normalizer import normalize_events

logger = logging.getLogger(__name__)


def percentage_change(total_pnl_usd: float, total_invested_usd: float) -> float:
    """Return on invested capital in percent (0 when nothing was invested)."""
    if total_invested_usd > 0:
        return total_pnl_usd / total_invested_usd * 100
    return 0.0


class TokenPnLCalculator:
    """Calculator for the PnL of a single token-key.

    Example:
        calculator = TokenPnLCalculator()
        pnl = calculator.calculate(events, current_price_usd=3.0)
        pnl.total_pnl_usd == pnl.realized_pnl_usd + pnl.unrealized_pnl_usd
    """

    def __init__(self, settings: Optional[AccountingSettings] = None):
        """Initialize the calculator.

        Args:
            settings: Accounting settings (defaults when None)
        """
        self.settings = settings or AccountingSettings()

    def new_ledger(self, token_key: Optional[TokenKey] = None) -> LotLedger:
        """Create an empty ledger configured from the settings."""
        return LotLedger(
            token_key=token_key,
            long_term_threshold=timedelta(days=self.settings.long_term_days),
            tolerance=self.settings.dust_tolerance,
        )

    def calculate(
        self,
        events: Iterable[Event],
        current_price_usd: float = 0.0,
        current_balance: Optional[float] = None,
        token_key: Optional[TokenKey] = None,
    ) -> TokenPnL:
        """Calculate PnL for one token-key.

        Args:
            events: Events of a single token-key (any order, zero amounts allowed)
            current_price_usd: Current USD unit price (0 if unknown)
            current_balance: On-chain balance, used as a floor for holdings
            token_key: Token-key when ``events`` may be empty

        Returns:
            Token PnL
        """
        events = list(events)
        if token_key is None:
            if not events:
                raise ValueError("token_key is required when there are no events")
            token_key = events[0].token_key

        normalized = normalize_events(events)

        ledger = self.new_ledger(token_key)
        ledger.replay(normalized)

        price = current_price_usd or 0.0
        remaining = ledger.remaining_amount
        cost_basis = ledger.cost_basis_usd

        # Balance data can lag the ledger, never let it zero out holdings
        effective_holdings = max(current_balance or 0.0, remaining)

        current_value = effective_holdings * price
        unrealized = current_value - cost_basis * effective_holdings
        realized = ledger.realized_pnl_usd
        total = realized + unrealized
        invested = ledger.total_invested_usd

        symbol = next((e.symbol for e in normalized if e.symbol), None)

        logger.info(
            f"PnL for {token_key}: {len(normalized)} events, "
            f"realized=${realized:+.2f}, unrealized=${unrealized:+.2f}, "
            f"{len(ledger)} open lot(s)"
        )

        return TokenPnL(
            token_key=token_key,
            realized_pnl_usd=realized,
            unrealized_pnl_usd=unrealized,
            total_pnl_usd=total,
            cost_basis_usd=cost_basis,
            current_value_usd=current_value,
            total_invested_usd=invested,
            percentage_change=percentage_change(total, invested),
            remaining_amount=remaining,
            effective_holdings=effective_holdings,
            current_price_usd=price,
            unmatched_disposal_amount=ledger.unmatched_amount,
            symbol=symbol,
        )
