"""Tests for event normalization and grouping."""

from portfolio_accounting.services.normalizer import (
    group_by_chain,
    group_by_token_key,
    normalize_events,
)
from tests.factories import ARB_ETH, ETH, USDC, acquire, dispose, hours


class TestNormalizeEvents:
    """Zero-amount filtering and stable chronological ordering."""

    def test_zero_amount_events_are_dropped(self):
        events = [
            acquire(1, 100, hours(0)),
            acquire(0, 100, hours(1)),
            dispose(0, 120, hours(2)),
            dispose(1, 120, hours(3)),
        ]

        normalized = normalize_events(events)

        assert len(normalized) == 2
        assert all(e.amount > 0 for e in normalized)

    def test_sorted_by_timestamp(self):
        late = dispose(1, 120, hours(5))
        early = acquire(1, 100, hours(1))
        middle = acquire(2, 110, hours(3))

        assert normalize_events([late, early, middle]) == [early, middle, late]

    def test_ties_keep_input_order(self):
        first = dispose(1, 120, hours(1), tx_hash="0x1")
        second = acquire(1, 100, hours(1), tx_hash="0x2")
        third = acquire(5, 90, hours(1), tx_hash="0x3")

        normalized = normalize_events([first, second, third])
        assert [e.tx_hash for e in normalized] == ["0x1", "0x2", "0x3"]

        normalized = normalize_events([third, first, second])
        assert [e.tx_hash for e in normalized] == ["0x3", "0x1", "0x2"]

    def test_accepts_generators_and_empty_input(self):
        assert normalize_events(iter([])) == []
        assert len(normalize_events(acquire(1, 1, hours(i)) for i in range(3))) == 3

    def test_input_is_not_mutated(self):
        events = [dispose(1, 2, hours(2)), acquire(1, 1, hours(1))]
        snapshot = list(events)

        normalize_events(events)

        assert events == snapshot


class TestGrouping:
    """Partitioning a mixed stream."""

    def test_group_by_token_key(self):
        events = [
            acquire(1, 1, hours(0), token_key=ETH),
            acquire(5, 1, hours(1), token_key=USDC),
            dispose(1, 2, hours(2), token_key=ETH),
            acquire(2, 1, hours(3), token_key=ARB_ETH),
        ]

        groups = group_by_token_key(events)

        assert list(groups) == [ETH, USDC, ARB_ETH]
        assert len(groups[ETH]) == 2
        assert groups[ETH][0].direction.value == "acquire"

    def test_group_by_chain(self):
        events = [
            acquire(1, 1, hours(0), token_key=ETH),
            acquire(2, 1, hours(1), token_key=ARB_ETH),
            acquire(5, 1, hours(2), token_key=USDC),
        ]

        groups = group_by_chain(events)

        assert set(groups) == {"ethereum", "arbitrum"}
        assert len(groups["ethereum"]) == 2
        assert len(groups["arbitrum"]) == 1
