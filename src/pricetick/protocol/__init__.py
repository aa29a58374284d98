"""
Wire protocol for pricetick.

Handles conversion between pricetick types and newline-framed text messages.
"""

from .messages import (
    create_price_message,
    create_purchase_message,
    create_decision_message,
    create_finished_message,
    parse_message,
    MessageType,
    ParsedMessage,
)

__all__ = [
    "create_price_message",
    "create_purchase_message",
    "create_decision_message",
    "create_finished_message",
    "parse_message",
    "MessageType",
    "ParsedMessage",
]
