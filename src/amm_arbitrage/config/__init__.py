"""Configuration for the arbitrage scanner."""
from .settings import Settings, default_venues, get_settings

__all__ = [
    "Settings",
    "default_venues",
    "get_settings",
]
