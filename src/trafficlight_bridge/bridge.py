"""
Traffic-light bridge: the user-facing entry point.

Wraps one :class:`~trafficlight_bridge.session.BridgeSession` at a time
and starts a fresh one for every connect request made after the previous
session ended.

Protocol details:
    - Baud: 9600, 8N1
    - Inbound:  ``B: <brightness> M: <PCINT1|PCINT2|PCINT3|Default> O: <r>,<y>,<g>\\n``
    - Outbound: ``<red>,<yellow>,<green>\\n`` every 500 ms
"""

from __future__ import annotations

import logging

from .config import BridgeConfig
from .constants import DEFAULT_BAUD, DEFAULT_READ_TIMEOUT, DEFAULT_TX_INTERVAL, DEFAULT_WRITE_TIMEOUT
from .protocol import StatusRecord
from .scheduler import ControlSource
from .session import BridgeSession, ConnectionState
from .sink import ControlPanel, StatusSink
from .transport import SerialTransport

logger = logging.getLogger(__name__)


class TrafficLightBridge:
    """Connects a traffic-light controller to a UI.

    Use as a context manager for automatic connection handling::

        with TrafficLightBridge('/dev/ttyACM0') as bridge:
            bridge.controls.set(red=128, yellow=64, green=0)
            print(bridge.status)

    Args:
        port: Serial port path; ``None`` picks the first detected port.
        baud: Baud rate.
        tx_interval: Seconds between outbound control lines.
        read_timeout: Upper bound on one blocking read.
        write_timeout: Upper bound on one write.
        max_buffer: Optional cap on the unterminated inbound buffer.
        controls: Control source; defaults to a new :class:`ControlPanel`.
        sink: Optional UI sink receiving every session update.
    """

    def __init__(
        self,
        port: str | None = None,
        baud: int = DEFAULT_BAUD,
        tx_interval: float = DEFAULT_TX_INTERVAL,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        write_timeout: float = DEFAULT_WRITE_TIMEOUT,
        max_buffer: int | None = None,
        controls: ControlSource | None = None,
        sink: StatusSink | None = None,
    ) -> None:
        self.port = port
        self.baud = baud
        self.tx_interval = tx_interval
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self.max_buffer = max_buffer
        self.controls = controls if controls is not None else ControlPanel()
        self.sink = sink
        self._session: BridgeSession | None = None

    @classmethod
    def from_config(
        cls,
        config: BridgeConfig,
        controls: ControlSource | None = None,
        sink: StatusSink | None = None,
    ) -> TrafficLightBridge:
        """Build a bridge from a loaded :class:`~trafficlight_bridge.config.BridgeConfig`."""
        return cls(
            port=config.port,
            baud=config.baudrate,
            tx_interval=config.tx_interval,
            read_timeout=config.read_timeout,
            write_timeout=config.write_timeout,
            max_buffer=config.max_buffer,
            controls=controls,
            sink=sink,
        )

    # -- Context manager ----------------------------------------------------

    def __enter__(self) -> TrafficLightBridge:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    # -- Connection ---------------------------------------------------------

    def connect(self) -> BridgeSession:
        """Start a session, or return the live one.

        A request made while a session is connecting or connected is
        ignored.  After a session has closed or failed, a new session is
        created from scratch.
        """
        if self._session is not None and not self._session.state.is_terminal:
            logger.debug("Session already %s; connect request ignored", self._session.state.name)
            return self._session

        transport = SerialTransport(
            self.port,
            baudrate=self.baud,
            read_timeout=self.read_timeout,
            write_timeout=self.write_timeout,
        )
        self._session = BridgeSession(
            transport,
            self.controls,
            sink=self.sink,
            tx_interval=self.tx_interval,
            max_buffer=self.max_buffer,
        )
        self._session.connect()
        return self._session

    def disconnect(self, timeout: float | None = 2.0) -> None:
        """Close the transport and wait for the session to wind down."""
        if self._session is None:
            return
        self._session.transport.close()
        self._session.wait(timeout)

    # -- Status -------------------------------------------------------------

    @property
    def session(self) -> BridgeSession | None:
        return self._session

    @property
    def state(self) -> ConnectionState:
        if self._session is None:
            return ConnectionState.DISCONNECTED
        return self._session.state

    @property
    def is_connected(self) -> bool:
        """Return True while the current session is connected."""
        return self.state is ConnectionState.CONNECTED

    @property
    def status(self) -> StatusRecord | None:
        """Last status record of the current session, if any."""
        if self._session is None:
            return None
        return self._session.store.get()


# ---------------------------------------------------------------------------
# Convenience factory
# ---------------------------------------------------------------------------


def get_bridge(port: str | None = None, **kwargs) -> TrafficLightBridge:
    """Return a bridge instance (use as a context manager).

    Example::

        with get_bridge('/dev/ttyACM0') as bridge:
            bridge.controls.set(red=255)
    """
    return TrafficLightBridge(port, **kwargs)
