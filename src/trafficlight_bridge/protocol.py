"""
Traffic-light serial protocol: status-record parsing and control encoding.

This module sits between the framer (raw lines) and the session
(state and scheduling).  It knows how to:

* parse an inbound ``B: <n> M: <mode> O: <r>,<y>,<g>`` status line,
* apply the per-field partial-update policy against the previous record,
* validate outbound control values,
* encode (and, symmetrically, decode) the outbound ``r,y,g`` line.

It does **not** own the serial port — that belongs to
:class:`~trafficlight_bridge.transport.SerialTransport`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from .constants import CONTROL_MAX, CONTROL_MIN, LED_COUNT, LINE_DELIMITER
from .exceptions import ValidationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Enums & Data
# ---------------------------------------------------------------------------


class Mode(Enum):
    """Controller operating modes, keyed by their wire token."""

    MODE1 = "PCINT1"
    MODE2 = "PCINT2"
    MODE3 = "PCINT3"
    DEFAULT = "Default"

    @property
    def label(self) -> str:
        """Human-readable name, e.g. ``Mode 2``."""
        return _MODE_LABELS[self]

    @classmethod
    def from_token(cls, token: str) -> Mode | None:
        """Return the mode for a wire *token* (case-insensitive), else ``None``."""
        return _MODES_BY_TOKEN.get(token.upper())


_MODE_LABELS = {
    Mode.MODE1: "Mode 1",
    Mode.MODE2: "Mode 2",
    Mode.MODE3: "Mode 3",
    Mode.DEFAULT: "Default Mode",
}
_MODES_BY_TOKEN = {mode.value.upper(): mode for mode in Mode}


@dataclass(frozen=True)
class StatusRecord:
    """One decoded status line: brightness, mode, and ``(red, yellow, green)`` LED bits."""

    brightness: int
    mode: Mode
    led_states: tuple[int, int, int]

    def __post_init__(self) -> None:
        _validate_brightness(self.brightness)
        if not isinstance(self.mode, Mode):
            raise ValidationError(f"mode must be a Mode, got {self.mode!r}")
        _validate_led_states(self.led_states)

    @classmethod
    def from_line(cls, line: str, previous: StatusRecord | None = None) -> StatusRecord | None:
        """Parse a status line, keeping *previous* values for invalid fields.

        Expected format::

            B: <brightness> M: <PCINT1|PCINT2|PCINT3|Default> O: <r>,<y>,<g>

        Returns ``None`` if the line does not match at all.  Otherwise each
        field is taken from the line only if it is individually valid; an
        invalid brightness, an unknown mode token, or an LED field that is
        not exactly three 0/1 values leaves that field as it was in
        *previous* (or :data:`BASELINE_STATUS` when there is none).
        """
        match = _STATUS_PATTERN.match(line.strip())
        if match is None:
            logger.debug("Rejected status line: %r", line)
            return None

        base = previous if previous is not None else BASELINE_STATUS
        brightness = _parse_brightness(match.group("brightness"))
        mode = Mode.from_token(match.group("mode"))
        led_states = _parse_led_states(match.group("leds"))

        if brightness is None:
            logger.debug("Keeping brightness %d; invalid token in %r", base.brightness, line)
            brightness = base.brightness
        if mode is None:
            logger.debug("Keeping mode %s; unknown token in %r", base.mode.name, line)
            mode = base.mode
        if led_states is None:
            logger.debug("Keeping LED states %s; invalid field in %r", base.led_states, line)
            led_states = base.led_states

        return cls(brightness, mode, led_states)

    def describe(self) -> str:
        """Status text for display, e.g. ``Brightness: 160 / Mode: Mode 2``."""
        return f"Brightness: {self.brightness} / Mode: {self.mode.label}"


@dataclass(frozen=True)
class ControlValues:
    """Snapshot of the three outbound LED intensities (0-255 each)."""

    red: int
    yellow: int
    green: int

    def __post_init__(self) -> None:
        _validate_control(self.red, "red")
        _validate_control(self.yellow, "yellow")
        _validate_control(self.green, "green")

    def as_tuple(self) -> tuple[int, int, int]:
        """Return the values as ``(red, yellow, green)``."""
        return (self.red, self.yellow, self.green)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _validate_brightness(brightness: int) -> None:
    if isinstance(brightness, bool) or not isinstance(brightness, int) or brightness < 0:
        raise ValidationError(f"brightness must be a non-negative integer, got {brightness!r}")


def _validate_led_states(led_states: tuple[int, ...]) -> None:
    if not isinstance(led_states, tuple) or len(led_states) != LED_COUNT:
        raise ValidationError(f"led_states must be a {LED_COUNT}-tuple, got {led_states!r}")
    if any(bit not in (0, 1) for bit in led_states):
        raise ValidationError(f"led_states entries must be 0 or 1, got {led_states!r}")


def _validate_control(value: int, label: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{label} must be an integer, got {value!r}")
    if not (CONTROL_MIN <= value <= CONTROL_MAX):
        raise ValidationError(f"{label} must be {CONTROL_MIN}-{CONTROL_MAX}, got {value}")


# ---------------------------------------------------------------------------
# Parse helpers
# ---------------------------------------------------------------------------

_STATUS_PATTERN = re.compile(
    r"^B:\s*(?P<brightness>\S+)\s*M:\s*(?P<mode>\S+)\s*O:\s*(?P<leds>\S+)",
    re.IGNORECASE,
)


def _parse_brightness(token: str) -> int | None:
    """Return *token* as a non-negative int, or ``None``."""
    if not token.isdigit() or not token.isascii():
        return None
    return int(token)


def _parse_led_states(token: str) -> tuple[int, int, int] | None:
    """Return the ``(red, yellow, green)`` bits in *token*, or ``None``."""
    parts = token.split(",")
    if len(parts) != LED_COUNT:
        return None
    try:
        bits = tuple(int(part) for part in parts)
    except ValueError:
        return None
    if any(bit not in (0, 1) for bit in bits):
        return None
    return bits  # type: ignore[return-value]


#: Values a field falls back to when no record has been parsed yet.
BASELINE_STATUS = StatusRecord(brightness=0, mode=Mode.DEFAULT, led_states=(0, 0, 0))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_status(line: str, previous: StatusRecord | None = None) -> StatusRecord | None:
    """Parse one inbound line; see :meth:`StatusRecord.from_line`."""
    return StatusRecord.from_line(line, previous)


def encode_controls(values: ControlValues) -> bytes:
    """Encode *values* as the outbound ``red,yellow,green\\n`` line."""
    return f"{values.red},{values.yellow},{values.green}{LINE_DELIMITER}".encode("ascii")


def decode_controls(line: str | bytes) -> ControlValues:
    """Parse an outbound control line back into :class:`ControlValues`.

    Raises:
        ValidationError: If the line is not three comma-separated integers
            in range.
    """
    if isinstance(line, bytes):
        line = line.decode("ascii", errors="replace")
    parts = line.strip().split(",")
    if len(parts) != 3:
        raise ValidationError(f"Expected 3 comma-separated values, got {line!r}")
    try:
        red, yellow, green = (int(part) for part in parts)
    except ValueError as exc:
        raise ValidationError(f"Cannot parse control values from {line!r}") from exc
    return ControlValues(red, yellow, green)
