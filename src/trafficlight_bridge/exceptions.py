"""
Exception hierarchy for the traffic-light serial bridge.

All exceptions inherit from :class:`BridgeError` so callers can catch
broadly (``except BridgeError``) or narrowly (``except TransportError``).
"""


class BridgeError(Exception):
    """Base exception for all bridge errors."""


class ConnectionError(BridgeError):  # noqa: A001 – intentional shadow of builtin
    """Raised when the serial connection cannot be selected or opened."""


class TransportError(BridgeError):
    """Raised when a read or write fails on an open connection."""


class FrameOverflowError(BridgeError):
    """Raised when the line buffer exceeds its cap without a delimiter."""


class ValidationError(BridgeError):
    """Raised when a value violates the wire-format or config contract."""
