"""
Connection session: the lifetime of one serial connection.

A session opens its transport, then runs two independent activities
until the transport goes away:

* a **reader** thread that frames inbound bytes into lines, parses them
  into :class:`~trafficlight_bridge.protocol.StatusRecord` values and
  updates the :class:`~trafficlight_bridge.store.StatusStore`;
* a **transmitter** (:class:`~trafficlight_bridge.scheduler.TransmitScheduler`)
  that writes the current control values on a fixed cadence.

State machine::

    DISCONNECTED -> CONNECTING -> CONNECTED -> CLOSED
                               \\-> FAILED

``CLOSED`` and ``FAILED`` are terminal.  There is no stop method: closing
the transport (or losing the device) is what ends a session.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum

from .constants import DEFAULT_TX_INTERVAL
from .exceptions import ConnectionError, FrameOverflowError, TransportError
from .framer import LineFramer
from .protocol import parse_status
from .scheduler import ControlSource, TransmitScheduler
from .sink import SinkUpdate, StatusSink
from .store import StatusStore
from .transport import SerialTransport

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Lifecycle states of a :class:`BridgeSession`."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """``True`` for states a session never leaves."""
        return self in (ConnectionState.CLOSED, ConnectionState.FAILED)


class BridgeSession:
    """Drives one transport connection from open to close.

    Args:
        transport: An unopened :class:`~trafficlight_bridge.transport.SerialTransport`.
        controls: Control source sampled on every transmit tick.
        sink: Optional callable receiving a :class:`~trafficlight_bridge.sink.SinkUpdate`
            on every state change, accepted record, and advisory.
        tx_interval: Seconds between outbound control lines.
        max_buffer: Optional cap on the framer's unterminated buffer.
    """

    def __init__(
        self,
        transport: SerialTransport,
        controls: ControlSource,
        sink: StatusSink | None = None,
        tx_interval: float = DEFAULT_TX_INTERVAL,
        max_buffer: int | None = None,
    ) -> None:
        self.transport = transport
        self.store = StatusStore()
        self._sink = sink
        self._framer = LineFramer(max_buffer=max_buffer)
        self._lock = threading.Lock()
        self._state = ConnectionState.DISCONNECTED
        self._reader: threading.Thread | None = None
        self._scheduler = TransmitScheduler(
            transport,
            controls,
            interval=tx_interval,
            is_active=lambda: self.state is ConnectionState.CONNECTED,
            on_error=self._advise,
        )
        self.read_errors = 0

    # -- State --------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    @property
    def scheduler(self) -> TransmitScheduler:
        return self._scheduler

    # -- Lifecycle ----------------------------------------------------------

    def connect(self) -> bool:
        """Open the transport and start both activities.

        Only a ``DISCONNECTED`` session acts on the request; in any other
        state it is ignored.

        Returns:
            ``True`` if the session reached ``CONNECTED``.
        """
        with self._lock:
            if self._state is not ConnectionState.DISCONNECTED:
                logger.debug("Ignoring connect request in state %s", self._state.name)
                return False
            self._state = ConnectionState.CONNECTING
        self._notify()

        try:
            self.transport.open()
        except ConnectionError as exc:
            logger.error("Connection failed: %s", exc)
            self._finish(ConnectionState.FAILED, str(exc))
            return False
        except Exception as exc:
            logger.exception("Unexpected error opening %s", self.transport.port)
            self._finish(ConnectionState.FAILED, f"Connection failed: {exc}")
            return False

        with self._lock:
            self._state = ConnectionState.CONNECTED
        logger.info("Connected to %s", self.transport.port)
        self._notify()

        self._reader = threading.Thread(target=self._read_loop, name="bridge-rx", daemon=True)
        self._reader.start()
        self._scheduler.start()
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Block until both activities have exited.

        Returns:
            ``True`` if the session reached a terminal state.
        """
        if self._reader is not None and self._reader is not threading.current_thread():
            self._reader.join(timeout)
        self._scheduler.join(timeout)
        return self.state.is_terminal

    # -- Read activity ------------------------------------------------------

    def _read_loop(self) -> None:
        advisory = "Connection closed"
        try:
            while self.transport.readable and self.state is ConnectionState.CONNECTED:
                try:
                    chunk = self.transport.read_chunk()
                    if chunk:
                        self._consume(chunk)
                except (TransportError, FrameOverflowError) as exc:
                    # Only this read is lost; the loop goes on while the port is readable.
                    self.read_errors += 1
                    logger.warning("Read error: %s", exc)
                    self._advise(f"Read error: {exc}")
                except ConnectionError:
                    break
        except Exception as exc:
            logger.exception("Reader stopped on unexpected error")
            advisory = f"Connection closed: {exc}"
        finally:
            self._finish(ConnectionState.CLOSED, advisory)

    def _consume(self, chunk: bytes) -> None:
        for line in self._framer.feed(chunk):
            if not line:
                continue
            record = parse_status(line, self.store.get())
            if record is None:
                continue
            with self._lock:
                if self._state is not ConnectionState.CONNECTED:
                    return
                self.store.update(record)
            logger.debug("Status: %s LEDs=%s", record.describe(), record.led_states)
            self._notify()

    # -- Internal -----------------------------------------------------------

    def _finish(self, state: ConnectionState, advisory: str) -> None:
        with self._lock:
            if self._state.is_terminal:
                return
            self._state = state
        self._scheduler.stop()
        self.transport.close()
        logger.info("Session %s: %s", state.name, advisory)
        self._notify(advisory)

    def _advise(self, message: str) -> None:
        self._notify(message)

    def _notify(self, advisory: str | None = None) -> None:
        if self._sink is None:
            return
        try:
            self._sink(SinkUpdate(self.store.get(), self.state, advisory))
        except Exception:
            # A failing sink loses this update only.
            logger.exception("Status sink raised; update dropped")
