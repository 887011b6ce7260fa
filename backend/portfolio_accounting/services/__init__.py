# Business Logic Services

from .config import (
    AccountingSettings,
    ConfigService,
    config_service,
    ConfigValidationException,
    ConfigValidationError,
)
from .normalizer import (
    normalize_events,
    group_by_token_key,
    group_by_chain,
)
from .lot_ledger import (
    LotLedger,
    LONG_TERM_HOLDING_PERIOD,
)
from .accounting import (
    TokenPnLCalculator,
    percentage_change,
)
from .tax_lots import TaxLotClassifier
from .portfolio import (
    PortfolioAggregator,
    pnl_by_chain,
)
from .reporting_service import (
    ReportingService,
    PortfolioReport,
    TaxReport,
    TaxEstimate,
    CostBasisRecord,
)

__all__ = [
    # Config
    "AccountingSettings",
    "ConfigService",
    "config_service",
    "ConfigValidationException",
    "ConfigValidationError",
    # Normalizer
    "normalize_events",
    "group_by_token_key",
    "group_by_chain",
    # Lot Ledger
    "LotLedger",
    "LONG_TERM_HOLDING_PERIOD",
    # Token PnL
    "TokenPnLCalculator",
    "percentage_change",
    # Tax Lots
    "TaxLotClassifier",
    # Portfolio
    "PortfolioAggregator",
    "pnl_by_chain",
    # Reporting
    "ReportingService",
    "PortfolioReport",
    "TaxReport",
    "TaxEstimate",
    "CostBasisRecord",
]
