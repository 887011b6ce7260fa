"""Tax lot classification: short-term vs long-term capital gains.

Replays each token-key's events on its own FIFO ledger and buckets every
lot match by holding period (disposal time minus lot acquisition time):
- long-term:  holding period >= 365 days (365 * 24h, not calendar years)
- short-term: anything shorter

Results are produced per token-key, per chain and globally.
``realized_event_count`` counts disposal events, not lot matches.
"""

import logging
from datetime import timedelta
from typing import Iterable, Optional

from ..models import Event, TaxLotResult, TaxSummary, TokenKey
from .config import AccountingSettings
from .lot_ledger import LotLedger
from .normalizer import group_by_chain, group_by_token_key, normalize_events

logger = logging.getLogger(__name__)


class TaxLotClassifier:
    """Classifier bucketing realized gains by holding period."""

    def __init__(self, settings: Optional[AccountingSettings] = None):
        """Initialize the classifier.

        Args:
            settings: Accounting settings (defaults when None)
        """
        self.settings = settings or AccountingSettings()
        self.long_term_threshold = timedelta(days=self.settings.long_term_days)

    def classify_token(
        self,
        events: Iterable[Event],
        token_key: Optional[TokenKey] = None,
    ) -> TaxLotResult:
        """Classify the realized gains of one token-key.

        Args:
            events: Events of a single token-key (any order)
            token_key: Token-key for logging

        Returns:
            Short-/long-term result for the token-key
        """
        normalized = normalize_events(events)
        if token_key is None and normalized:
            token_key = normalized[0].token_key

        ledger = LotLedger(
            token_key=token_key,
            long_term_threshold=self.long_term_threshold,
            tolerance=self.settings.dust_tolerance,
        )

        result = TaxLotResult()
        for gain in ledger.replay(normalized):
            if gain.is_long_term:
                result.long_term_gains_usd += gain.gain_loss_usd
            else:
                result.short_term_gains_usd += gain.gain_loss_usd
        result.realized_event_count = ledger.disposal_count

        return result

    def classify_chain(self, events: Iterable[Event]) -> TaxLotResult:
        """Classify a chain's events, one independent ledger per token-key."""
        result = TaxLotResult()
        for token_key, token_events in group_by_token_key(events).items():
            result.add(self.classify_token(token_events, token_key))
        return result

    def classify(self, events: Iterable[Event]) -> TaxSummary:
        """Classify a mixed event stream.

        Args:
            events: Events across any number of chains and tokens

        Returns:
            Global result plus one result per chain
        """
        summary = TaxSummary()
        for chain, chain_events in group_by_chain(events).items():
            chain_result = self.classify_chain(chain_events)
            summary.by_chain[chain] = chain_result
            summary.total.add(chain_result)

        logger.info(
            f"Tax classification: {summary.total.realized_event_count} disposal(s) "
            f"across {len(summary.by_chain)} chain(s), "
            f"short-term=${summary.total.short_term_gains_usd:+.2f}, "
            f"long-term=${summary.total.long_term_gains_usd:+.2f}"
        )
        return summary
