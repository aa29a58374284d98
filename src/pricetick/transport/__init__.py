"""
Transport layer for pricetick.

Provides:
- Channel: newline-framed message channel over an asyncio stream pair
"""

from .channel import Channel

__all__ = ["Channel"]
