"""
Fixed-cadence transmitter for the outbound control line.

Every ``interval`` seconds the scheduler samples the control source,
encodes the three intensities, and writes them to the transport.  It
runs on its own thread, independent of inbound traffic, and never queues
or retries: a tick that cannot be delivered is simply skipped and the
next tick sends fresh values.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from .constants import DEFAULT_TX_INTERVAL
from .exceptions import ConnectionError, TransportError, ValidationError
from .protocol import ControlValues, encode_controls
from .transport import SerialTransport

logger = logging.getLogger(__name__)

ControlSource = Callable[[], ControlValues]


class TransmitScheduler:
    """Writes one encoded :class:`ControlValues` line per tick.

    Args:
        transport: The session's open transport.
        source: Zero-argument callable returning the current values.
        interval: Seconds between ticks.
        is_active: Optional predicate checked before each write; the tick
            is skipped while it returns ``False``.
        on_error: Optional callback receiving a message when a tick is
            skipped because of an error.
    """

    def __init__(
        self,
        transport: SerialTransport,
        source: ControlSource,
        interval: float = DEFAULT_TX_INTERVAL,
        is_active: Callable[[], bool] | None = None,
        on_error: Callable[[str], None] | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._transport = transport
        self._source = source
        self.interval = interval
        self._is_active = is_active
        self._on_error = on_error
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.ticks_sent = 0
        self.ticks_skipped = 0

    # -- Lifecycle ----------------------------------------------------------

    def start(self) -> None:
        """Start ticking on a background thread (no-op if already running)."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="bridge-tx", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop scheduling further ticks.  A tick in progress completes."""
        self._stop.set()

    def join(self, timeout: float | None = None) -> None:
        """Wait for the tick thread to exit."""
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        """``True`` while the tick thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    # -- Ticking ------------------------------------------------------------

    def tick(self) -> bool:
        """Sample, encode and write once.  Returns ``True`` if bytes were sent."""
        if self._is_active is not None and not self._is_active():
            return self._skip(None)
        if not self._transport.writable:
            return self._skip(None)
        try:
            payload = encode_controls(self._source())
        except ValidationError as exc:
            return self._skip(f"Control source gave invalid values: {exc}")
        except Exception as exc:
            logger.exception("Control source raised")
            return self._skip(f"Control source failed: {exc}")
        try:
            self._transport.write(payload)
        except (TransportError, ConnectionError) as exc:
            return self._skip(str(exc))
        self.ticks_sent += 1
        return True

    def _run(self) -> None:
        deadline = time.monotonic()
        while not self._stop.is_set():
            if not self._transport.writable:
                logger.debug("Transport no longer writable; transmitter exiting")
                break
            self.tick()
            deadline += self.interval
            now = time.monotonic()
            if deadline < now:
                # Overran one or more periods; resume on the next boundary.
                deadline = now + self.interval - (now - deadline) % self.interval
            if self._stop.wait(deadline - now):
                break

    def _skip(self, reason: str | None) -> bool:
        self.ticks_skipped += 1
        if reason is not None:
            logger.warning("Skipped transmit tick: %s", reason)
            if self._on_error is not None:
                self._on_error(reason)
        return False
