"""HTTP clients for the upstream market data providers."""
