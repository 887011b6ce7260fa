"""Event model - acquisition and disposal events for lot accounting.

CRITICAL: Events are the only input of the accounting engine.
- One event per transfer, one direction per event
- ACQUIRE events open lots, DISPOSE events consume them (FIFO)
- A swap is two events (incoming leg ACQUIRE, outgoing leg DISPOSE)

Design constraints:
- Immutable once built
- Token identity is (chain, address) with case-insensitive addresses
- Missing prices are 0, never None
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class Direction(str, Enum):
    """Event direction enumeration."""
    ACQUIRE = "acquire"
    DISPOSE = "dispose"

    @classmethod
    def from_transfer_type(cls, kind: str) -> "Direction":
        """Map a transfer type from a history provider to a direction.

        Args:
            kind: Provider transfer type (receive, send, swap, buy, sell)

        Returns:
            Matching direction

        Raises:
            ValueError: If the transfer type carries no direction
        """
        normalized = (kind or "").strip().lower()
        if normalized in _ACQUIRE_KINDS:
            return cls.ACQUIRE
        if normalized in _DISPOSE_KINDS:
            return cls.DISPOSE
        raise ValueError(f"Unknown transfer type '{kind}'")


# A lone "swap" leg handed to the engine is the incoming one
_ACQUIRE_KINDS = frozenset({"receive", "buy", "swap", "acquire"})
_DISPOSE_KINDS = frozenset({"send", "sell", "dispose"})


@dataclass(frozen=True)
class TokenKey:
    """Composite identity scoping one independent lot ledger.

    Example:
        TokenKey("ethereum", "0xA0b8...eB48") == TokenKey("ethereum", "0xa0b8...eb48")
    """
    chain: str
    address: str

    def __post_init__(self):
        object.__setattr__(self, "address", self.address.lower())

    def __str__(self) -> str:
        return f"{self.chain}-{self.address}"

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for API responses."""
        return {"chain": self.chain, "address": self.address}


@dataclass(frozen=True)
class Event:
    """A single acquisition or disposal of a token.

    Example workflow:
        ACQUIRE 10 USDC @ $1.00 → opens a lot
        DISPOSE  4 USDC @ $1.01 → consumes 4 units of the oldest lot
    """
    timestamp: datetime
    token_key: TokenKey
    amount: float
    direction: Direction
    unit_price_usd: float = 0.0

    # Metadata carried through to reports
    symbol: Optional[str] = None
    tx_hash: Optional[str] = None

    def __post_init__(self):
        if self.unit_price_usd is None:
            object.__setattr__(self, "unit_price_usd", 0.0)

    @property
    def chain(self) -> str:
        return self.token_key.chain

    @property
    def notional_usd(self) -> float:
        """USD value of the event at its own price."""
        return self.amount * self.unit_price_usd

    @classmethod
    def from_transfer(
        cls,
        kind: str,
        timestamp: datetime,
        chain: str,
        address: str,
        amount: float,
        unit_price_usd: Optional[float] = None,
        symbol: Optional[str] = None,
        tx_hash: Optional[str] = None,
    ) -> "Event":
        """Build an event from a provider transfer record.

        Args:
            kind: Provider transfer type (receive, send, swap, buy, sell)
            timestamp: Transfer time
            chain: Chain identifier
            address: Token contract or native-asset address
            amount: Human-readable amount (sign is ignored)
            unit_price_usd: USD unit price at transfer time, None if unknown
            symbol: Token symbol
            tx_hash: Transaction hash

        Returns:
            Event with an explicit direction

        Raises:
            ValueError: If the transfer type carries no direction
        """
        return cls(
            timestamp=timestamp,
            token_key=TokenKey(chain, address),
            amount=abs(amount),
            direction=Direction.from_transfer_type(kind),
            unit_price_usd=unit_price_usd or 0.0,
            symbol=symbol,
            tx_hash=tx_hash,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "chain": self.token_key.chain,
            "address": self.token_key.address,
            "amount": self.amount,
            "unit_price_usd": self.unit_price_usd,
            "direction": self.direction.value,
            "symbol": self.symbol,
            "tx_hash": self.tx_hash,
        }
