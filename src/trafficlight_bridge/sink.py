"""
Edge adapters: what the bridge reports to a UI and where it samples
control values from.

A *sink* is any callable taking a :class:`SinkUpdate`; a *control
source* is any zero-argument callable returning
:class:`~trafficlight_bridge.protocol.ControlValues`.  The helpers here
cover the common cases (logging, a thread-safe control holder, and the
indicator colors a display should paint).
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .constants import CONTROL_MAX, DEFAULT_IDLE_LED, IDLE_LED_STYLES
from .exceptions import ValidationError
from .protocol import ControlValues, StatusRecord

if TYPE_CHECKING:
    from .session import ConnectionState

logger = logging.getLogger(__name__)

RGB = tuple[int, int, int]

# ---------------------------------------------------------------------------
# Sink
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SinkUpdate:
    """What a UI sink receives: latest record, connection state, and advisory text."""

    record: StatusRecord | None
    state: ConnectionState
    advisory: str | None = None


StatusSink = Callable[[SinkUpdate], None]


class LoggingSink:
    """Sink that writes every update to a logger."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def __call__(self, update: SinkUpdate) -> None:
        status = update.record.describe() if update.record else "no status yet"
        if update.advisory:
            self._log.warning("[%s] %s (%s)", update.state.name, status, update.advisory)
        else:
            self._log.info("[%s] %s", update.state.name, status)


# ---------------------------------------------------------------------------
# Control source
# ---------------------------------------------------------------------------


class ControlPanel:
    """Thread-safe holder for the three outbound intensities.

    A UI (slider callbacks, a CLI, a test) calls :meth:`set`; the transmit
    scheduler calls the panel itself to take a snapshot.
    """

    def __init__(self, red: int = 0, yellow: int = 0, green: int = 0) -> None:
        self._lock = threading.Lock()
        self._values = ControlValues(red, yellow, green)

    def set(self, red: int | None = None, yellow: int | None = None, green: int | None = None) -> None:
        """Update any subset of the intensities.

        Raises:
            ValidationError: If a value is outside 0-255; nothing changes.
        """
        with self._lock:
            current = self._values
            self._values = ControlValues(
                current.red if red is None else red,
                current.yellow if yellow is None else yellow,
                current.green if green is None else green,
            )

    def __call__(self) -> ControlValues:
        with self._lock:
            return self._values


# ---------------------------------------------------------------------------
# Indicator rendering
# ---------------------------------------------------------------------------

_IDLE_GRAY: RGB = (128, 128, 128)
_DIM_FACTOR = 0.2


def indicator_colors(
    record: StatusRecord | None, idle: str = DEFAULT_IDLE_LED
) -> tuple[RGB, RGB, RGB]:
    """Return the ``(red, yellow, green)`` indicator colors for *record*.

    A lit LED shows its hue at the reported brightness (capped at 255).
    An unlit LED is painted according to *idle*: ``"gray"`` for a flat
    gray, ``"dim"`` for its lit color at 20 %.  Before any record has
    arrived all three indicators are idle at zero brightness.
    """
    if idle not in IDLE_LED_STYLES:
        raise ValidationError(f"idle must be one of {list(IDLE_LED_STYLES)}, got {idle!r}")

    level = min(record.brightness, CONTROL_MAX) if record else 0
    leds = record.led_states if record else (0, 0, 0)
    lit: tuple[RGB, RGB, RGB] = ((level, 0, 0), (level, level, 0), (0, level, 0))

    def paint(color: RGB, on: int) -> RGB:
        if on:
            return color
        if idle == "gray":
            return _IDLE_GRAY
        return tuple(int(c * _DIM_FACTOR) for c in color)  # type: ignore[return-value]

    return (paint(lit[0], leds[0]), paint(lit[1], leds[1]), paint(lit[2], leds[2]))
