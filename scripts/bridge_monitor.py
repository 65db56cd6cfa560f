#!/usr/bin/env python3
"""
Bridge Monitor — terminal front end for the traffic-light serial bridge.

Shows the board's brightness, mode and LED indicators as they arrive and
streams the red/yellow/green intensities back every tick.

Usage:
    python scripts/bridge_monitor.py                          # first detected port
    python scripts/bridge_monitor.py --port /dev/ttyACM0
    python scripts/bridge_monitor.py --config config/bridge.yaml
    python scripts/bridge_monitor.py --red 255 --yellow 0 --green 40
    python scripts/bridge_monitor.py --list-ports
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import asdict
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from trafficlight_bridge import (
    BridgeError,
    ConnectionState,
    ControlPanel,
    SinkUpdate,
    TrafficLightBridge,
    indicator_colors,
    list_ports,
    load_config,
)
from trafficlight_bridge.config import BridgeConfig, parse_config

# ---------------------------------------------------------------------------
# Terminal helpers
# ---------------------------------------------------------------------------


class C:
    """ANSI color codes (no-op on non-TTY)."""

    if sys.stdout.isatty():
        BOLD = "\033[1m"
        DIM = "\033[2m"
        GREEN = "\033[32m"
        YELLOW = "\033[33m"
        RED = "\033[31m"
        RESET = "\033[0m"
    else:
        BOLD = DIM = GREEN = YELLOW = RED = RESET = ""


def ok(text: str) -> None:
    print(f"  {C.GREEN}✓{C.RESET} {text}")


def fail(text: str) -> None:
    print(f"  {C.RED}✗{C.RESET} {text}")


def warn(text: str) -> None:
    print(f"  {C.YELLOW}⚠{C.RESET} {text}")


def banner(text: str) -> None:
    print(f"\n{C.BOLD}{'═' * 60}")
    print(f"  {text}")
    print(f"{'═' * 60}{C.RESET}")


def swatch(rgb: tuple[int, int, int]) -> str:
    """Return a two-cell block painted *rgb* (plain brackets on non-TTY)."""
    if not sys.stdout.isatty():
        return f"[{rgb[0]:3d},{rgb[1]:3d},{rgb[2]:3d}]"
    r, g, b = rgb
    return f"\033[48;2;{r};{g};{b}m  {C.RESET}"


# ---------------------------------------------------------------------------
# Sink
# ---------------------------------------------------------------------------


class TerminalSink:
    """Prints each bridge update as one status line."""

    def __init__(self, idle_led: str) -> None:
        self.idle_led = idle_led

    def __call__(self, update: SinkUpdate) -> None:
        if update.advisory:
            if update.state is ConnectionState.FAILED:
                fail(update.advisory)
            else:
                warn(update.advisory)
            return
        if update.record is None:
            print(f"  {C.DIM}[{update.state.name}]{C.RESET}")
            return
        red, yellow, green = indicator_colors(update.record, idle=self.idle_led)
        print(
            f"  {swatch(red)} {swatch(yellow)} {swatch(green)}  "
            f"{update.record.describe()}  {C.DIM}[{update.state.name}]{C.RESET}"
        )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def build_config(args: argparse.Namespace) -> BridgeConfig:
    config = load_config(args.config) if args.config else BridgeConfig()
    overrides = {}
    if args.port:
        overrides["port"] = args.port
    if args.baud:
        overrides["baudrate"] = args.baud
    if args.interval:
        overrides["tx_interval"] = args.interval
    if args.idle_led:
        overrides["idle_led"] = args.idle_led
    return parse_config({**asdict(config), **overrides})


def main() -> int:
    parser = argparse.ArgumentParser(description="Traffic-light serial bridge monitor")
    parser.add_argument("--config", type=Path, help="YAML config file")
    parser.add_argument("--port", help="Serial port (default: first detected)")
    parser.add_argument("--baud", type=int, help="Baud rate (default: 9600)")
    parser.add_argument("--interval", type=float, help="Seconds between control lines")
    parser.add_argument("--idle-led", choices=["gray", "dim"], help="How unlit LEDs are drawn")
    parser.add_argument("--red", type=int, default=0)
    parser.add_argument("--yellow", type=int, default=0)
    parser.add_argument("--green", type=int, default=0)
    parser.add_argument("--list-ports", action="store_true", help="List serial ports and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log serial traffic")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_ports:
        ports = list_ports()
        if not ports:
            warn("No serial ports detected")
        for port in ports:
            print(f"  {port}")
        return 0

    try:
        config = build_config(args)
        controls = ControlPanel(args.red, args.yellow, args.green)
    except (BridgeError, FileNotFoundError) as exc:
        fail(str(exc))
        return 2

    banner(f"Traffic-light bridge — {config.port or 'auto-detect'} @ {config.baudrate} baud")
    print(f"  Sending {args.red},{args.yellow},{args.green} every {config.tx_interval:g} s")
    print(f"  {C.DIM}Ctrl-C to quit{C.RESET}\n")

    bridge = TrafficLightBridge.from_config(
        config, controls=controls, sink=TerminalSink(config.idle_led)
    )
    session = bridge.connect()
    if session.state is ConnectionState.FAILED:
        return 1

    try:
        while not session.state.is_terminal:
            time.sleep(0.2)
    except KeyboardInterrupt:
        print()
    finally:
        bridge.disconnect()

    ok(f"Session {session.state.name.lower()}; {session.scheduler.ticks_sent} control lines sent")
    return 0


if __name__ == "__main__":
    sys.exit(main())
