"""Storage of cached market data."""
