"""Traffic-light controller serial bridge"""

from .bridge import TrafficLightBridge, get_bridge
from .config import BridgeConfig, load_config
from .constants import CONTROL_MAX, CONTROL_MIN, DEFAULT_BAUD, DEFAULT_TX_INTERVAL
from .exceptions import (
    BridgeError,
    ConnectionError,
    FrameOverflowError,
    TransportError,
    ValidationError,
)
from .framer import LineFramer
from .protocol import (
    ControlValues,
    Mode,
    StatusRecord,
    decode_controls,
    encode_controls,
    parse_status,
)
from .scheduler import TransmitScheduler
from .session import BridgeSession, ConnectionState
from .sink import ControlPanel, LoggingSink, SinkUpdate, indicator_colors
from .store import StatusStore
from .transport import SerialTransport, list_ports

__all__ = [
    "BridgeConfig",
    "BridgeError",
    "BridgeSession",
    "CONTROL_MAX",
    "CONTROL_MIN",
    "ConnectionError",
    "ConnectionState",
    "ControlPanel",
    "ControlValues",
    "DEFAULT_BAUD",
    "DEFAULT_TX_INTERVAL",
    "FrameOverflowError",
    "LineFramer",
    "LoggingSink",
    "Mode",
    "SerialTransport",
    "SinkUpdate",
    "StatusRecord",
    "StatusStore",
    "TrafficLightBridge",
    "TransmitScheduler",
    "TransportError",
    "ValidationError",
    "decode_controls",
    "encode_controls",
    "get_bridge",
    "indicator_colors",
    "list_ports",
    "load_config",
    "parse_status",
]
__version__ = "0.1.0"
