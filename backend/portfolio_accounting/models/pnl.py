"""PnL and tax output records.

Plain, serializable results of one computation run. They carry no behavior
beyond derived totals and dictionary conversion for API responses.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .event import TokenKey


@dataclass
class TokenPnL:
    """Profit and loss for one token-key."""
    token_key: TokenKey
    realized_pnl_usd: float
    unrealized_pnl_usd: float
    total_pnl_usd: float
    cost_basis_usd: float            # Weighted-average unit cost of remaining lots
    current_value_usd: float
    total_invested_usd: float        # Sum of acquisition notional, never decremented
    percentage_change: float

    remaining_amount: float = 0.0
    effective_holdings: float = 0.0
    current_price_usd: float = 0.0
    unmatched_disposal_amount: float = 0.0
    symbol: Optional[str] = None

    def __repr__(self):
        return (
            f"<TokenPnL(token={self.token_key}, "
            f"realized=${self.realized_pnl_usd:+.2f}, "
            f"unrealized=${self.unrealized_pnl_usd:+.2f})>"
        )

    @property
    def chain(self) -> str:
        return self.token_key.chain

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "chain": self.token_key.chain,
            "address": self.token_key.address,
            "symbol": self.symbol,
            "realized_pnl_usd": self.realized_pnl_usd,
            "unrealized_pnl_usd": self.unrealized_pnl_usd,
            "total_pnl_usd": self.total_pnl_usd,
            "cost_basis_usd": self.cost_basis_usd,
            "current_value_usd": self.current_value_usd,
            "total_invested_usd": self.total_invested_usd,
            "percentage_change": self.percentage_change,
            "remaining_amount": self.remaining_amount,
            "effective_holdings": self.effective_holdings,
            "current_price_usd": self.current_price_usd,
            "unmatched_disposal_amount": self.unmatched_disposal_amount,
        }


@dataclass
class TaxLotResult:
    """Short-/long-term capital gains for a token-key, a chain, or everything."""
    short_term_gains_usd: float = 0.0
    long_term_gains_usd: float = 0.0
    realized_event_count: int = 0

    @property
    def total_capital_gains_usd(self) -> float:
        return self.short_term_gains_usd + self.long_term_gains_usd

    def add(self, other: "TaxLotResult") -> None:
        """Accumulate another result into this one."""
        self.short_term_gains_usd += other.short_term_gains_usd
        self.long_term_gains_usd += other.long_term_gains_usd
        self.realized_event_count += other.realized_event_count

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "short_term_gains_usd": self.short_term_gains_usd,
            "long_term_gains_usd": self.long_term_gains_usd,
            "total_capital_gains_usd": self.total_capital_gains_usd,
            "realized_event_count": self.realized_event_count,
        }


@dataclass
class TaxSummary:
    """Global tax result plus one result per chain."""
    total: TaxLotResult = field(default_factory=TaxLotResult)
    by_chain: Dict[str, TaxLotResult] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            **self.total.to_dict(),
            "by_chain": {
                chain: result.to_dict() for chain, result in self.by_chain.items()
            },
        }


@dataclass
class PortfolioSummary:
    """Portfolio totals across all token-keys."""
    total_realized_pnl_usd: float = 0.0
    total_unrealized_pnl_usd: float = 0.0
    total_pnl_usd: float = 0.0
    total_value_usd: float = 0.0
    total_invested_usd: float = 0.0
    percentage_change: float = 0.0
    pnl_by_chain: Dict[str, float] = field(default_factory=dict)
    token_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "total_realized_pnl_usd": self.total_realized_pnl_usd,
            "total_unrealized_pnl_usd": self.total_unrealized_pnl_usd,
            "total_pnl_usd": self.total_pnl_usd,
            "total_value_usd": self.total_value_usd,
            "total_invested_usd": self.total_invested_usd,
            "percentage_change": self.percentage_change,
            "pnl_by_chain": dict(self.pnl_by_chain),
            "token_count": self.token_count,
        }
