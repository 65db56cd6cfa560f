"""Shared pytest fixtures for traffic-light bridge tests."""

from __future__ import annotations

import threading
import time
from unittest.mock import patch

import pytest
import serial

from trafficlight_bridge import BridgeSession, ControlPanel
from trafficlight_bridge.transport import SerialTransport


class FakeSerial:
    """Lightweight stand-in for ``serial.Serial``.

    Implements the subset of the pyserial API used by
    :class:`~trafficlight_bridge.transport.SerialTransport`:
    ``read``, ``in_waiting``, ``write``, ``flush``, ``cancel_read``,
    ``close``, and ``is_open``.

    Inbound bytes are staged with :meth:`feed`.  A ``read`` with nothing
    staged blocks for up to ``timeout`` seconds (like a real port) and
    then returns ``b""``.  :meth:`unplug` makes the next read raise the
    ``SerialException`` pyserial raises when a USB device disappears.
    """

    def __init__(self, timeout: float = 0.01) -> None:
        self.timeout = timeout
        self.is_open: bool = True
        self.written: list[bytes] = []
        self._inbound = bytearray()
        self._cond = threading.Condition()
        self._read_error: Exception | None = None
        self._write_error: Exception | None = None

    # -- Helpers for tests --------------------------------------------------

    def feed(self, data: bytes) -> None:
        """Stage *data* to be returned by subsequent reads."""
        with self._cond:
            self._inbound += data
            self._cond.notify_all()

    def fail_next_read(self, exc: Exception) -> None:
        with self._cond:
            self._read_error = exc
            self._cond.notify_all()

    def fail_next_write(self, exc: Exception) -> None:
        self._write_error = exc

    def unplug(self) -> None:
        self.fail_next_read(
            serial.SerialException("device reports readiness to read but returned no data")
        )

    # -- pyserial interface -------------------------------------------------

    @property
    def in_waiting(self) -> int:
        with self._cond:
            return len(self._inbound)

    def read(self, size: int = 1) -> bytes:
        with self._cond:
            if not self._inbound and self._read_error is None and self.is_open:
                self._cond.wait(self.timeout)
            if self._read_error is not None:
                exc, self._read_error = self._read_error, None
                raise exc
            if not self.is_open:
                raise serial.PortNotOpenError()
            data = bytes(self._inbound[:size])
            del self._inbound[:size]
            return data

    def write(self, data: bytes) -> int:
        if self._write_error is not None:
            exc, self._write_error = self._write_error, None
            raise exc
        self.written.append(data)
        return len(data)

    def flush(self) -> None:
        pass

    def cancel_read(self) -> None:
        with self._cond:
            self._cond.notify_all()

    def close(self) -> None:
        with self._cond:
            self.is_open = False
            self._cond.notify_all()


def wait_for(predicate, timeout: float = 2.0, interval: float = 0.005) -> bool:
    """Poll *predicate* until it is truthy or *timeout* expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return bool(predicate())


class RecordingSink:
    """Sink that keeps every :class:`~trafficlight_bridge.sink.SinkUpdate`."""

    def __init__(self) -> None:
        self.updates = []
        self._lock = threading.Lock()

    def __call__(self, update) -> None:
        with self._lock:
            self.updates.append(update)

    @property
    def states(self) -> list:
        with self._lock:
            return [u.state for u in self.updates]

    @property
    def advisories(self) -> list[str]:
        with self._lock:
            return [u.advisory for u in self.updates if u.advisory]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_serial() -> FakeSerial:
    """Return a fresh ``FakeSerial`` instance."""
    return FakeSerial()


@pytest.fixture()
def patched_serial(fake_serial: FakeSerial):
    """Make every ``serial.Serial(...)`` in the transport return *fake_serial*."""
    with patch("trafficlight_bridge.transport.serial.Serial", return_value=fake_serial) as mock:
        yield mock


@pytest.fixture()
def transport(patched_serial, fake_serial: FakeSerial) -> SerialTransport:
    """Return an open ``SerialTransport`` wired to a fake serial port."""
    tx = SerialTransport("/dev/fake", read_timeout=0.01)
    tx.open()
    return tx


@pytest.fixture()
def controls() -> ControlPanel:
    return ControlPanel(128, 64, 0)


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def session(patched_serial, controls: ControlPanel, sink: RecordingSink):
    """Return an unconnected ``BridgeSession`` over a fake port; closed on teardown."""
    sess = BridgeSession(
        SerialTransport("/dev/fake", read_timeout=0.01),
        controls,
        sink=sink,
        tx_interval=0.02,
    )
    yield sess
    sess.transport.close()
    sess.wait(2.0)
