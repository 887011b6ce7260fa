"""Event normalization.

Turns a raw event stream into the ordered input the lot ledger expects:
- zero-amount transfers are dropped (they would open empty lots or
  spurious disposals)
- events are sorted by timestamp with a stable sort, so events sharing a
  timestamp keep their input order
"""

import logging
from collections import OrderedDict
from typing import Dict, Iterable, List

from ..models import Event, TokenKey

logger = logging.getLogger(__name__)


def normalize_events(events: Iterable[Event]) -> List[Event]:
    """Drop zero-amount events and sort the rest chronologically.

    Args:
        events: Raw events for one token-key (any order)

    Returns:
        Non-zero events, ascending by timestamp
    """
    events = list(events)
    kept = [event for event in events if event.amount != 0]

    dropped = len(events) - len(kept)
    if dropped:
        logger.debug(f"Dropped {dropped} zero-amount event(s)")

    # list.sort is stable: ties keep input order
    kept.sort(key=lambda event: event.timestamp)
    return kept


def group_by_token_key(events: Iterable[Event]) -> Dict[TokenKey, List[Event]]:
    """Partition a mixed stream by token-key, keeping input order per group."""
    groups: Dict[TokenKey, List[Event]] = OrderedDict()
    for event in events:
        groups.setdefault(event.token_key, []).append(event)
    return groups


def group_by_chain(events: Iterable[Event]) -> Dict[str, List[Event]]:
    """Partition a mixed stream by chain, keeping input order per group."""
    groups: Dict[str, List[Event]] = OrderedDict()
    for event in events:
        groups.setdefault(event.token_key.chain, []).append(event)
    return groups
