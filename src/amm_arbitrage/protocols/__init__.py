"""AMM protocol implementations."""
