"""Exception hierarchy for pricetick."""


class PricetickError(Exception):
    """Base class for all pricetick errors."""


class TransportError(PricetickError):
    """The connection was refused, reset or closed underneath us."""


class MalformedMessage(PricetickError, ValueError):
    """A wire message could not be parsed."""

    def __init__(self, raw: str, reason: str):
        self.raw = raw
        self.reason = reason
        super().__init__(f"{reason}: {raw!r}")


class ConfigurationError(PricetickError, ValueError):
    """Settings failed validation."""
