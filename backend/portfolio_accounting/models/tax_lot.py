"""Tax lot model - FIFO cost basis tracking for PnL and tax reporting.

CRITICAL: Tax lots track the cost basis of acquired tokens using FIFO (First-In-First-Out).
- ACQUIRE events create tax lots
- DISPOSE events consume lots in FIFO order
- Every lot match produces one RealizedGain record
- Lots live for a single computation run only

Design constraints:
- FIFO matching is deterministic
- Partial lot consumption is tracked
- A lot never holds a negative amount
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from .event import TokenKey


@dataclass
class Lot:
    """Open acquisition lot for one token-key.

    Example workflow:
        ACQUIRE 1: 0.5 ETH @ $2,000 → Lot A (0.5 ETH remaining)
        ACQUIRE 2: 0.3 ETH @ $2,100 → Lot B (0.3 ETH remaining)
        DISPOSE 1: 0.6 ETH @ $2,200 →
            Lot A: 0.5 ETH consumed (evicted)
            Lot B: 0.1 ETH consumed (0.2 remaining)
    """
    amount: float
    unit_cost_usd: float
    acquired_at: datetime
    original_amount: float = 0.0
    tx_hash: Optional[str] = None

    def __post_init__(self):
        if not self.original_amount:
            self.original_amount = self.amount

    def __repr__(self):
        return (
            f"<Lot(remaining={self.amount:.8f}, "
            f"cost=${self.unit_cost_usd:.2f}, "
            f"acquired={self.acquired_at.isoformat()})>"
        )

    @property
    def is_exhausted(self) -> bool:
        return self.amount <= 0.0

    @property
    def cost_usd(self) -> float:
        """Cost of the remaining units."""
        return self.amount * self.unit_cost_usd

    def consume(self, quantity: float, tolerance: float = 0.0) -> float:
        """Consume quantity from this lot (FIFO).

        Args:
            quantity: Amount to consume
            tolerance: Residue at or below this snaps to exactly zero

        Returns:
            Amount actually consumed (may be less if lot doesn't have enough)
        """
        consumed = min(quantity, self.amount)
        self.amount -= consumed

        if self.amount <= tolerance:
            self.amount = 0.0

        return consumed

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "amount": self.amount,
            "original_amount": self.original_amount,
            "unit_cost_usd": self.unit_cost_usd,
            "acquired_at": self.acquired_at.isoformat(),
            "tx_hash": self.tx_hash,
        }


@dataclass(frozen=True)
class RealizedGain:
    """Realized gain/loss of one lot match.

    Each record pairs a slice of a disposal with the lot it consumed, tagged
    with the holding period so both the realized PnL and the short/long
    split derive from the same records.
    """
    token_key: TokenKey
    quantity: float
    unit_cost_usd: float
    unit_price_usd: float
    acquired_at: datetime
    disposed_at: datetime
    is_long_term: bool
    tx_hash: Optional[str] = None

    def __repr__(self):
        return (
            f"<RealizedGain(token={self.token_key}, "
            f"quantity={self.quantity:.8f}, "
            f"gain_loss=${self.gain_loss_usd:+.2f}, "
            f"{'LT' if self.is_long_term else 'ST'})>"
        )

    @property
    def proceeds_usd(self) -> float:
        return self.quantity * self.unit_price_usd

    @property
    def cost_basis_usd(self) -> float:
        return self.quantity * self.unit_cost_usd

    @property
    def gain_loss_usd(self) -> float:
        return self.quantity * (self.unit_price_usd - self.unit_cost_usd)

    @property
    def holding_period(self) -> timedelta:
        return self.disposed_at - self.acquired_at

    @property
    def holding_period_days(self) -> int:
        return self.holding_period.days

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "chain": self.token_key.chain,
            "address": self.token_key.address,
            "quantity": self.quantity,
            "proceeds_usd": self.proceeds_usd,
            "cost_basis_usd": self.cost_basis_usd,
            "gain_loss_usd": self.gain_loss_usd,
            "acquired_at": self.acquired_at.isoformat(),
            "disposed_at": self.disposed_at.isoformat(),
            "holding_period_days": self.holding_period_days,
            "is_long_term": self.is_long_term,
            "term": "Long-term" if self.is_long_term else "Short-term",
            "tx_hash": self.tx_hash,
        }
