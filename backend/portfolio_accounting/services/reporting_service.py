"""Reporting Service

This service provides read-only reports derived from a caller-supplied
event history:
- token PnL + portfolio summary + tax summary (full run)
- realized gains of a fiscal year (tax report)
- cost basis of the open lots
- estimated tax on classified gains

Design principles:
- Read-only (no mutations of the input)
- Every report replays the full history on fresh ledgers
- Fiscal-year filtering happens after the replay, so lots acquired in
  earlier years keep their cost basis
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ..models import (
    Event,
    PortfolioSummary,
    RealizedGain,
    TaxLotResult,
    TaxSummary,
    TokenKey,
    TokenPnL,
)
from .accounting import TokenPnLCalculator
from .config import AccountingSettings
from .normalizer import group_by_token_key, normalize_events
from .portfolio import PortfolioAggregator
from .tax_lots import TaxLotClassifier

logger = logging.getLogger(__name__)


# ============================================================================
# Data Models
# ============================================================================

@dataclass
class CostBasisRecord:
    """Cost basis (open lots) report record."""
    token_key: TokenKey
    acquisition_date: datetime
    quantity_remaining: float
    unit_cost: float
    current_price: float
    unrealized_gain: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chain": self.token_key.chain,
            "address": self.token_key.address,
            "acquisition_date": self.acquisition_date.isoformat(),
            "quantity_remaining": self.quantity_remaining,
            "unit_cost": self.unit_cost,
            "current_price": self.current_price,
            "unrealized_gain": self.unrealized_gain,
        }


@dataclass
class TaxEstimate:
    """Estimated tax on short-/long-term gains."""
    short_term_tax_usd: float
    long_term_tax_usd: float
    short_term_rate: float
    long_term_rate: float

    @property
    def total_tax_usd(self) -> float:
        return self.short_term_tax_usd + self.long_term_tax_usd

    def to_dict(self) -> Dict[str, Any]:
        return {
            "short_term_tax_usd": self.short_term_tax_usd,
            "long_term_tax_usd": self.long_term_tax_usd,
            "total_tax_usd": self.total_tax_usd,
            "short_term_rate": self.short_term_rate,
            "long_term_rate": self.long_term_rate,
        }


@dataclass
class TaxReport:
    """Realized gains of one fiscal year."""
    year: int
    total_realized_gains: float
    total_realized_losses: float     # Sum of losing matches, zero or negative
    short_term_gains_usd: float
    long_term_gains_usd: float
    gains: List[RealizedGain] = field(default_factory=list)

    @property
    def net_capital_gains(self) -> float:
        return self.total_realized_gains + self.total_realized_losses

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "total_realized_gains": self.total_realized_gains,
            "total_realized_losses": self.total_realized_losses,
            "net_capital_gains": self.net_capital_gains,
            "short_term_gains_usd": self.short_term_gains_usd,
            "long_term_gains_usd": self.long_term_gains_usd,
            "gains": [gain.to_dict() for gain in self.gains],
        }


@dataclass
class PortfolioReport:
    """Everything one computation run produces."""
    token_pnls: List[TokenPnL]
    portfolio: PortfolioSummary
    tax: TaxSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token_pnls": [pnl.to_dict() for pnl in self.token_pnls],
            "portfolio": self.portfolio.to_dict(),
            "tax": self.tax.to_dict(),
        }


# ============================================================================
# Reporting Service
# ============================================================================

class ReportingService:
    """Service for generating reports from an event history.

    All reports:
    - Are pure functions of their inputs
    - Run one independent lot ledger per token-key
    - Treat missing prices and balances as 0
    """

    def __init__(self, settings: Optional[AccountingSettings] = None):
        """Initialize the reporting service.

        Args:
            settings: Accounting settings (defaults when None)
        """
        self.settings = settings or AccountingSettings()
        self.calculator = TokenPnLCalculator(self.settings)
        self.classifier = TaxLotClassifier(self.settings)
        self.aggregator = PortfolioAggregator()

    # ========================================================================
    # PORTFOLIO REPORT
    # ========================================================================

    def build_report(
        self,
        events: Iterable[Event],
        current_prices: Optional[Dict[TokenKey, float]] = None,
        balances: Optional[Dict[TokenKey, float]] = None,
    ) -> PortfolioReport:
        """Compute token PnL, portfolio totals and tax classification.

        Args:
            events: Events across any number of chains and tokens
            current_prices: Current USD unit price per token-key
            balances: Current on-chain balance per token-key

        Returns:
            Portfolio report
        """
        events = list(events)
        current_prices = current_prices or {}
        balances = balances or {}

        groups = group_by_token_key(events)
        token_keys = list(groups)
        token_keys.extend(key for key in balances if key not in groups)

        token_pnls = []
        for token_key in token_keys:
            price = current_prices.get(token_key, 0.0)
            pnl = self.calculator.calculate(
                groups.get(token_key, []),
                current_price_usd=price,
                current_balance=balances.get(token_key),
                token_key=token_key,
            )
            if token_key not in current_prices and pnl.effective_holdings > 0:
                logger.warning(f"No current price for {token_key}; holdings valued at $0")
            token_pnls.append(pnl)

        portfolio = self.aggregator.summarize(token_pnls)
        tax = self.classifier.classify(events)

        logger.info(
            f"Built portfolio report: {len(events)} events, "
            f"{len(token_pnls)} token(s), {len(tax.by_chain)} chain(s)"
        )

        return PortfolioReport(token_pnls=token_pnls, portfolio=portfolio, tax=tax)

    # ========================================================================
    # TAX REPORTS
    # ========================================================================

    def get_realized_gains(self, events: Iterable[Event]) -> List[RealizedGain]:
        """Get every lot match of the full history, ordered by disposal time."""
        gains: List[RealizedGain] = []
        for token_key, token_events in group_by_token_key(events).items():
            ledger = self.calculator.new_ledger(token_key)
            gains.extend(ledger.replay(normalize_events(token_events)))

        gains.sort(key=lambda gain: gain.disposed_at)
        return gains

    def get_fiscal_year_gains(self, events: Iterable[Event], year: int) -> List[RealizedGain]:
        """Get realized gains whose disposal falls in a calendar year.

        Args:
            events: Full event history (earlier years included)
            year: Fiscal year

        Returns:
            Realized gains of that year
        """
        return [
            gain for gain in self.get_realized_gains(events)
            if gain.disposed_at.year == year
        ]

    def get_tax_report(self, events: Iterable[Event], year: int) -> TaxReport:
        """Get the tax report of a fiscal year.

        Args:
            events: Full event history (earlier years included)
            year: Fiscal year

        Returns:
            Tax report
        """
        gains = self.get_fiscal_year_gains(events, year)

        total_gains = 0.0
        total_losses = 0.0
        short_term = 0.0
        long_term = 0.0

        for gain in gains:
            amount = gain.gain_loss_usd
            if amount >= 0:
                total_gains += amount
            else:
                total_losses += amount

            if gain.is_long_term:
                long_term += amount
            else:
                short_term += amount

        logger.info(f"Tax report {year}: {len(gains)} realized lot match(es)")

        return TaxReport(
            year=year,
            total_realized_gains=total_gains,
            total_realized_losses=total_losses,
            short_term_gains_usd=short_term,
            long_term_gains_usd=long_term,
            gains=gains,
        )

    def get_tax_summary(self, events: Iterable[Event]) -> TaxSummary:
        """Get the short-/long-term classification, globally and per chain."""
        return self.classifier.classify(events)

    def estimate_tax(self, result: TaxLotResult) -> TaxEstimate:
        """Estimate tax owed on a classification result.

        Net losses in a bucket owe nothing; they are not carried across buckets.

        Args:
            result: Short-/long-term result

        Returns:
            Tax estimate at the configured rates
        """
        short_rate = self.settings.short_term_rate
        long_rate = self.settings.long_term_rate

        return TaxEstimate(
            short_term_tax_usd=max(result.short_term_gains_usd, 0.0) * short_rate,
            long_term_tax_usd=max(result.long_term_gains_usd, 0.0) * long_rate,
            short_term_rate=short_rate,
            long_term_rate=long_rate,
        )

    # ========================================================================
    # COST BASIS REPORT
    # ========================================================================

    def get_cost_basis(
        self,
        events: Iterable[Event],
        current_prices: Optional[Dict[TokenKey, float]] = None,
    ) -> List[CostBasisRecord]:
        """Get cost basis (open lots) report.

        Args:
            events: Full event history
            current_prices: Current USD unit price per token-key

        Returns:
            One record per open lot, oldest first within a token-key
        """
        current_prices = current_prices or {}
        records = []

        for token_key, token_events in group_by_token_key(events).items():
            ledger = self.calculator.new_ledger(token_key)
            ledger.replay(normalize_events(token_events))
            price = current_prices.get(token_key, 0.0)

            for lot in ledger.lots:
                records.append(CostBasisRecord(
                    token_key=token_key,
                    acquisition_date=lot.acquired_at,
                    quantity_remaining=lot.amount,
                    unit_cost=lot.unit_cost_usd,
                    current_price=price,
                    unrealized_gain=(price - lot.unit_cost_usd) * lot.amount,
                ))

        return records
