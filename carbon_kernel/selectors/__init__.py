"""Selectors for the carbon kernel (read side)."""

from carbon_kernel.selectors.market_selector import MarketSelector

__all__ = [
    "MarketSelector",
]
