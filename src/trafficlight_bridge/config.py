"""
Bridge configuration loaded from a YAML file.

Example file::

    port: /dev/ttyACM0
    baudrate: 9600
    tx_interval: 0.5
    read_timeout: 0.1
    write_timeout: 0.5
    max_buffer: 4096
    idle_led: dim

Every key is optional; missing keys take the defaults from
:mod:`~trafficlight_bridge.constants`::

    from trafficlight_bridge.config import load_config

    config = load_config("config/bridge.yaml")
    with TrafficLightBridge.from_config(config) as bridge:
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .constants import (
    DEFAULT_BAUD,
    DEFAULT_IDLE_LED,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_TX_INTERVAL,
    DEFAULT_WRITE_TIMEOUT,
    IDLE_LED_STYLES,
)
from .exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BridgeConfig:
    """Validated bridge settings."""

    port: str | None = None
    baudrate: int = DEFAULT_BAUD
    tx_interval: float = DEFAULT_TX_INTERVAL
    read_timeout: float = DEFAULT_READ_TIMEOUT
    write_timeout: float = DEFAULT_WRITE_TIMEOUT
    max_buffer: int | None = None
    idle_led: str = DEFAULT_IDLE_LED


_KNOWN_KEYS = frozenset(BridgeConfig.__dataclass_fields__)


def load_config(path: str | Path) -> BridgeConfig:
    """Load and validate a bridge configuration from a YAML file.

    Args:
        path: Path to the YAML config file.

    Returns:
        A validated :class:`BridgeConfig`.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValidationError: If the config is malformed or contains invalid values.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValidationError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    unknown = set(raw) - _KNOWN_KEYS
    if unknown:
        logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(map(str, unknown))))

    return parse_config(raw)


def parse_config(raw: dict[str, Any]) -> BridgeConfig:
    """Validate an already-loaded mapping into a :class:`BridgeConfig`."""
    port = raw.get("port")
    if port is not None and (not isinstance(port, str) or not port):
        raise ValidationError("'port' must be a non-empty string when given")

    baudrate = raw.get("baudrate", DEFAULT_BAUD)
    if isinstance(baudrate, bool) or not isinstance(baudrate, int) or baudrate <= 0:
        raise ValidationError(f"'baudrate' must be a positive integer, got {baudrate!r}")

    tx_interval = _require_positive_number(raw, "tx_interval", DEFAULT_TX_INTERVAL)
    read_timeout = _require_positive_number(raw, "read_timeout", DEFAULT_READ_TIMEOUT)
    write_timeout = _require_positive_number(raw, "write_timeout", DEFAULT_WRITE_TIMEOUT)

    max_buffer = raw.get("max_buffer")
    if max_buffer is not None and (
        isinstance(max_buffer, bool) or not isinstance(max_buffer, int) or max_buffer <= 0
    ):
        raise ValidationError(f"'max_buffer' must be a positive integer or null, got {max_buffer!r}")

    idle_led = raw.get("idle_led", DEFAULT_IDLE_LED)
    if idle_led not in IDLE_LED_STYLES:
        raise ValidationError(
            f"'idle_led' must be one of {list(IDLE_LED_STYLES)}, got {idle_led!r}"
        )

    return BridgeConfig(
        port=port,
        baudrate=baudrate,
        tx_interval=tx_interval,
        read_timeout=read_timeout,
        write_timeout=write_timeout,
        max_buffer=max_buffer,
        idle_led=idle_led,
    )


def _require_positive_number(data: dict, key: str, default: float) -> float:
    val = data.get(key, default)
    if isinstance(val, bool) or not isinstance(val, (int, float)) or val <= 0:
        raise ValidationError(f"'{key}' must be a positive number, got {val!r}")
    return float(val)
