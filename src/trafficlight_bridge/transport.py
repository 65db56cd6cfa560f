"""
Serial transport layer for the traffic-light bridge.

Handles device selection, the physical serial connection, chunked reads
with a bounded timeout, and writes.  Knows nothing about what the bytes
mean — that's :mod:`framer` and :mod:`protocol`'s job.

Typical usage (via :class:`~trafficlight_bridge.session.BridgeSession`)::

    transport = SerialTransport("/dev/ttyACM0")
    transport.open()
    chunk = transport.read_chunk()
    transport.write(b"128,64,0\\n")
    transport.close()
"""

from __future__ import annotations

import logging

import serial
from serial.tools import list_ports as _list_ports

from .constants import DEFAULT_BAUD, DEFAULT_READ_SIZE, DEFAULT_READ_TIMEOUT, DEFAULT_WRITE_TIMEOUT
from .exceptions import ConnectionError, TransportError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Device selection
# ---------------------------------------------------------------------------


def list_ports() -> list[str]:
    """Return the device paths of all serial ports currently present."""
    return sorted(info.device for info in _list_ports.comports())


def select_port(port: str | None = None) -> str:
    """Return *port*, or the first detected serial port if none is given.

    Raises:
        ConnectionError: If no port was given and none is detected.
    """
    if port:
        return port
    available = list_ports()
    if not available:
        raise ConnectionError("No serial device selected and none detected")
    logger.info("Auto-selected serial port %s (of %d)", available[0], len(available))
    return available[0]


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class SerialTransport:
    """Manages a duplex serial connection to the traffic-light controller.

    Reads and writes may run concurrently from two threads; pyserial keeps
    the two directions independent.

    Args:
        port: Serial port path (e.g. ``/dev/ttyACM0``).  ``None`` selects
            the first detected port when :meth:`open` is called.
        baudrate: Baud rate (default 9600).
        read_timeout: Upper bound in seconds on one blocking read, so a
            reader always gets a chance to notice the port has closed.
        write_timeout: Upper bound in seconds on one write.
        read_size: Largest chunk returned by a single read.
    """

    def __init__(
        self,
        port: str | None = None,
        baudrate: int = DEFAULT_BAUD,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        write_timeout: float = DEFAULT_WRITE_TIMEOUT,
        read_size: int = DEFAULT_READ_SIZE,
    ) -> None:
        self.port = port
        self.baudrate = baudrate
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self.read_size = read_size
        self._ser: serial.Serial | None = None

    # -- Lifecycle ----------------------------------------------------------

    def open(self) -> None:
        """Select (if needed) and open the serial port.

        Raises:
            ConnectionError: If no port is available or it cannot be opened
                (busy, permission denied, missing).
        """
        self.port = select_port(self.port)
        logger.info("Opening serial port %s at %d baud", self.port, self.baudrate)
        try:
            self._ser = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.read_timeout,
                write_timeout=self.write_timeout,
            )
        except (serial.SerialException, ValueError) as exc:
            raise ConnectionError(f"Cannot open {self.port}: {exc}") from exc

    def close(self) -> None:
        """Close the serial port (safe to call multiple times).

        A read blocked in another thread is cancelled first so it returns
        promptly instead of racing the close.
        """
        if self._ser and self._ser.is_open:
            cancel_read = getattr(self._ser, "cancel_read", None)
            if cancel_read is not None:
                cancel_read()
            self._ser.close()
            logger.info("Serial port %s closed", self.port)

    @property
    def is_open(self) -> bool:
        """Return ``True`` if the serial port is currently open."""
        return self._ser is not None and self._ser.is_open

    @property
    def readable(self) -> bool:
        """``True`` while reads can still produce data."""
        return self.is_open

    @property
    def writable(self) -> bool:
        """``True`` while writes can still reach the device."""
        return self.is_open

    # -- I/O ----------------------------------------------------------------

    def read_chunk(self) -> bytes:
        """Return the bytes available now, waiting at most ``read_timeout``.

        An empty result only means nothing arrived within the timeout.

        Raises:
            ConnectionError: If the port is not open, or was closed while
                the read was in progress.
            TransportError: If the read fails.  A device that has gone
                away closes the transport first, so :attr:`readable` is
                ``False`` afterwards.
        """
        ser = self._require_open()
        try:
            data = ser.read(min(ser.in_waiting, self.read_size) or 1)
            extra = min(ser.in_waiting, self.read_size - len(data))
            if extra > 0:
                data += ser.read(extra)
        except (serial.SerialException, OSError) as exc:
            if not self.is_open:
                raise ConnectionError(f"Serial port {self.port} closed during read") from exc
            self._abort(exc)
            raise TransportError(f"Read from {self.port} failed: {exc}") from exc
        if data:
            logger.debug("RX: %r", data)
        return data

    def write(self, data: bytes) -> None:
        """Write *data* and flush it to the device.

        Raises:
            ConnectionError: If the port is not open.
            TransportError: If the write times out (the port stays open) or
                fails (the port is closed).
        """
        ser = self._require_open()
        logger.debug("TX: %r", data)
        try:
            ser.write(data)
            ser.flush()
        except serial.SerialTimeoutException as exc:
            raise TransportError(f"Write to {self.port} timed out") from exc
        except (serial.SerialException, OSError) as exc:
            self._abort(exc)
            raise TransportError(f"Write to {self.port} failed: {exc}") from exc

    # -- Internal -----------------------------------------------------------

    def _require_open(self) -> serial.Serial:
        """Return the open serial port or raise."""
        if not self.is_open:
            raise ConnectionError("Serial port not open — call open() first.")
        assert self._ser is not None  # for type-checker
        return self._ser

    def _abort(self, exc: Exception) -> None:
        """Close the port after an I/O failure that leaves it unusable."""
        logger.warning("Serial port %s failed: %s", self.port, exc)
        try:
            self.close()
        except (serial.SerialException, OSError):
            logger.debug("Ignoring error while closing failed port %s", self.port, exc_info=True)
        # A port that refuses to close still counts as gone.
        self._ser = None
