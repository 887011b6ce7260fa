"""Portfolio accounting engine: FIFO lot matching, PnL and capital-gains classification."""

__version__ = "1.0.0"
