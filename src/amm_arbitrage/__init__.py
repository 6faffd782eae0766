"""Cross-venue arbitrage detection and sizing for constant product AMMs."""

__version__ = "0.1.0"
