"""MarketDesk - cached currency, commodity and news market data."""

__version__ = "0.1.0"
