"""FIFO lot ledger for a single token-key.

CRITICAL: The ledger is the only place lots are created and consumed.
- ACQUIRE appends a lot at the back
- DISPOSE consumes lots from the front (oldest first)
- Every lot match is returned as a holding-period-tagged RealizedGain

Design constraints:
- Lots stay in acquisition order, consumption never reorders
- A lot is evicted as soon as its amount reaches zero
- Over-selling never raises: the excess is ignored numerically,
  counted in ``unmatched_amount`` and logged
- One ledger instance per token-key per run, never shared
"""

import logging
from collections import deque
from datetime import timedelta
from typing import Deque, Iterable, List, Optional, Tuple

from ..models import Direction, Event, Lot, RealizedGain, TokenKey

logger = logging.getLogger(__name__)

LONG_TERM_HOLDING_PERIOD = timedelta(days=365)


class LotLedger:
    """Ordered queue of open acquisition lots for one token-key.

    Example:
        ACQUIRE 10 @ $1 (t=0), ACQUIRE 10 @ $2 (t=1), DISPOSE 15 @ $3 (t=2)
            → realized 10 * (3 - 1) + 5 * (3 - 2) = 25
            → one lot left: 5 @ $2
    """

    # Floating point tolerance for lot residue and unmatched disposals
    TOLERANCE = 1e-12

    def __init__(
        self,
        token_key: Optional[TokenKey] = None,
        long_term_threshold: timedelta = LONG_TERM_HOLDING_PERIOD,
        tolerance: Optional[float] = None,
    ):
        """Initialize an empty ledger.

        Args:
            token_key: Token-key this ledger tracks (used in logs and records)
            long_term_threshold: Minimum holding period of a long-term match
            tolerance: Residue tolerance, defaults to TOLERANCE
        """
        self.token_key = token_key
        self.long_term_threshold = long_term_threshold
        self.tolerance = self.TOLERANCE if tolerance is None else tolerance

        self._lots: Deque[Lot] = deque()
        self._realized_gains: List[RealizedGain] = []
        self._realized_pnl_usd = 0.0
        self._total_invested_usd = 0.0
        self._unmatched_amount = 0.0
        self._disposal_count = 0

    # ========================================================================
    # Mutations
    # ========================================================================

    def acquire(self, event: Event) -> Lot:
        """Open a new lot at the back of the queue.

        Args:
            event: ACQUIRE event

        Returns:
            Created lot
        """
        lot = Lot(
            amount=event.amount,
            unit_cost_usd=event.unit_price_usd,
            acquired_at=event.timestamp,
            tx_hash=event.tx_hash,
        )
        self._lots.append(lot)
        self._total_invested_usd += event.amount * event.unit_price_usd

        logger.debug(
            f"{self._label}: opened lot {event.amount:.8f} "
            f"@ ${event.unit_price_usd:.6f}/unit"
        )
        return lot

    def dispose(self, event: Event) -> List[RealizedGain]:
        """Consume lots in FIFO order for a disposal.

        Args:
            event: DISPOSE event

        Returns:
            One realized gain record per lot touched
        """
        self._disposal_count += 1
        remaining = event.amount
        gains: List[RealizedGain] = []

        while remaining > 0 and self._lots:
            lot = self._lots[0]
            unit_cost = lot.unit_cost_usd

            consumed = lot.consume(remaining, self.tolerance)
            remaining -= consumed

            gain = RealizedGain(
                token_key=event.token_key,
                quantity=consumed,
                unit_cost_usd=unit_cost,
                unit_price_usd=event.unit_price_usd,
                acquired_at=lot.acquired_at,
                disposed_at=event.timestamp,
                is_long_term=(event.timestamp - lot.acquired_at) >= self.long_term_threshold,
                tx_hash=event.tx_hash,
            )
            gains.append(gain)
            self._realized_pnl_usd += gain.gain_loss_usd

            logger.debug(
                f"{self._label}: matched {consumed:.8f} "
                f"gain/loss=${gain.gain_loss_usd:+.2f} "
                f"({gain.holding_period_days} days, {'LT' if gain.is_long_term else 'ST'})"
            )

            if lot.is_exhausted:
                self._lots.popleft()

        if remaining > self.tolerance:
            self._unmatched_amount += remaining
            logger.warning(
                f"{self._label}: disposal at {event.timestamp.isoformat()} exceeds "
                f"tracked lots by {remaining:.8f} units; excess ignored"
            )

        self._realized_gains.extend(gains)
        return gains

    def apply(self, event: Event) -> List[RealizedGain]:
        """Apply one event, returning the realized gains it produced."""
        if event.direction == Direction.ACQUIRE:
            self.acquire(event)
            return []
        return self.dispose(event)

    def replay(self, events: Iterable[Event]) -> List[RealizedGain]:
        """Apply normalized, chronologically sorted events in order.

        Args:
            events: Events for this ledger's token-key

        Returns:
            Realized gains produced by the replay
        """
        gains: List[RealizedGain] = []
        for event in events:
            gains.extend(self.apply(event))
        return gains

    # ========================================================================
    # State
    # ========================================================================

    @property
    def lots(self) -> Tuple[Lot, ...]:
        """Open lots, oldest first."""
        return tuple(self._lots)

    @property
    def realized_gains(self) -> List[RealizedGain]:
        return list(self._realized_gains)

    @property
    def realized_pnl_usd(self) -> float:
        return self._realized_pnl_usd

    @property
    def total_invested_usd(self) -> float:
        return self._total_invested_usd

    @property
    def unmatched_amount(self) -> float:
        """Disposed units that found no open lot."""
        return self._unmatched_amount

    @property
    def disposal_count(self) -> int:
        return self._disposal_count

    @property
    def remaining_amount(self) -> float:
        return sum(lot.amount for lot in self._lots)

    @property
    def cost_basis_usd(self) -> float:
        """Weighted-average unit cost of the open lots (0 when empty)."""
        remaining = self.remaining_amount
        if remaining <= 0:
            return 0.0
        return sum(lot.amount * lot.unit_cost_usd for lot in self._lots) / remaining

    def __len__(self) -> int:
        return len(self._lots)

    @property
    def _label(self) -> str:
        return str(self.token_key) if self.token_key else "ledger"
