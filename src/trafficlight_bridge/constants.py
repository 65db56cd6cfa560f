"""Shared runtime constants for the traffic-light serial bridge.

This is the canonical source of truth for wire-format limits and bridge
defaults.  Other modules should import from here rather than defining
their own copies.
"""

# ---------------------------------------------------------------------------
# Wire format
# ---------------------------------------------------------------------------

LINE_DELIMITER = "\n"
CONTROL_MIN = 0
CONTROL_MAX = 255
LED_COUNT = 3  # red, yellow, green

# ---------------------------------------------------------------------------
# Bridge / runtime defaults
# ---------------------------------------------------------------------------

DEFAULT_BAUD = 9600
DEFAULT_TX_INTERVAL = 0.5  # seconds between outbound control lines
DEFAULT_READ_TIMEOUT = 0.1  # upper bound on a single blocking read
DEFAULT_WRITE_TIMEOUT = 0.5
DEFAULT_READ_SIZE = 256
IDLE_LED_STYLES = ("gray", "dim")
DEFAULT_IDLE_LED = "gray"
