"""
Wire message builders and parsers.

Every message is a single line of text. Messages that carry a value use
``<TYPE>:<integer>``; the others are a bare keyword.

Message Types:
- PRICE: new active price (server -> client)
- PURCHASE: bid with the maximum acceptable price (client -> server)
- APPROVED / DENIED: arbitration result (server -> client)
- FINISHED: completion signal (client -> server)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.errors import MalformedMessage
from ..core.types import Decision

SEPARATOR = ":"


class MessageType(Enum):
    """Types of messages in the purchase protocol."""

    PRICE = "PRICE"
    PURCHASE = "PURCHASE"
    APPROVED = "APPROVED"
    DENIED = "DENIED"
    FINISHED = "FINISHED"


VALUE_TYPES = frozenset({MessageType.PRICE, MessageType.PURCHASE})


@dataclass(frozen=True)
class ParsedMessage:
    """A decoded wire message."""

    message_type: MessageType
    value: Optional[int] = None
    raw: str = ""

    @property
    def decision(self) -> Optional[Decision]:
        """The arbitration decision carried by APPROVED/DENIED, else None."""
        if self.message_type is MessageType.APPROVED:
            return Decision.APPROVED
        if self.message_type is MessageType.DENIED:
            return Decision.DENIED
        return None


def create_price_message(price: int) -> str:
    """Build ``PRICE:<price>``."""
    return f"{MessageType.PRICE.value}{SEPARATOR}{int(price)}"


def create_purchase_message(max_price: int) -> str:
    """Build ``PURCHASE:<max_price>``."""
    return f"{MessageType.PURCHASE.value}{SEPARATOR}{int(max_price)}"


def create_decision_message(decision: Decision) -> str:
    """Build ``APPROVED`` or ``DENIED``."""
    return decision.value


def create_finished_message() -> str:
    return MessageType.FINISHED.value


def parse_message(line: str) -> ParsedMessage:
    """
    Parse one wire message.

    Args:
        line: Message text without the trailing newline. Surrounding
            whitespace is ignored.

    Returns:
        ParsedMessage

    Raises:
        MalformedMessage: unknown keyword, missing or non-integer value,
            or a value attached to a keyword that takes none.
    """
    text = line.strip()
    keyword, sep, payload = text.partition(SEPARATOR)

    try:
        message_type = MessageType(keyword)
    except ValueError:
        raise MalformedMessage(line, "unknown message type") from None

    if message_type not in VALUE_TYPES:
        if sep:
            raise MalformedMessage(line, f"{keyword} takes no value")
        return ParsedMessage(message_type=message_type, raw=line)

    if not sep or not payload:
        raise MalformedMessage(line, f"{keyword} requires a value")

    try:
        value = int(payload)
    except ValueError:
        raise MalformedMessage(line, "value is not an integer") from None

    return ParsedMessage(message_type=message_type, value=value, raw=line)
