#!/usr/bin/env python3
"""
linearlight CLI — calibrate and drive a 4-channel LED fixture.

Usage:
    python scripts/linearlight_cli.py calib               # 5 runs, store limits
    python scripts/linearlight_cli.py long                # 100 runs, print each
    python scripts/linearlight_cli.py colour 0.5          # half of every limit
    python scripts/linearlight_cli.py colour 1 0 0 0.2    # per-channel fractions
    python scripts/linearlight_cli.py white
    python scripts/linearlight_cli.py off
    python scripts/linearlight_cli.py --config config/fixture.yaml --verbose calib
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from linearlight import (
    DeviceClient,
    FixtureConfig,
    LinearLightError,
    Session,
    SettingsStore,
    dispatch,
    load_config,
)

# ---------------------------------------------------------------------------
# Default config location (relative to this script)
# ---------------------------------------------------------------------------

DEFAULT_CONFIG = Path(__file__).resolve().parent.parent / "config" / "fixture.yaml"

# ---------------------------------------------------------------------------
# Terminal helpers
# ---------------------------------------------------------------------------


class C:
    """ANSI color codes (no-op on non-TTY)."""

    if sys.stdout.isatty():
        BOLD = "\033[1m"
        GREEN = "\033[32m"
        RED = "\033[31m"
        RESET = "\033[0m"
    else:
        BOLD = GREEN = RED = RESET = ""


def ok(text: str) -> None:
    print(f"  {C.GREEN}✓{C.RESET} {text}")


def fail(text: str) -> None:
    print(f"{C.RED}✗{C.RESET} {text}", file=sys.stderr)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Calibrate channel current limits and set colours on a linearlight fixture.",
    )
    parser.add_argument("command", nargs="?", help="long, calib, colour, white or off")
    parser.add_argument("args", nargs="*", help="fractions for colour")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Path to YAML config file (default: {DEFAULT_CONFIG.name} if present)",
    )
    parser.add_argument("--url", help="Override the fixture base URL")
    parser.add_argument("--settings-dir", type=Path, help="Override the settings directory")
    parser.add_argument("--verbose", action="store_true", help="Log requests and progress")
    return parser


def resolve_config(args: argparse.Namespace) -> FixtureConfig:
    if args.config is not None:
        config = load_config(args.config)
    elif DEFAULT_CONFIG.exists():
        config = load_config(DEFAULT_CONFIG)
    else:
        config = FixtureConfig()

    if args.url:
        config = replace(config, url=args.url)
    if args.settings_dir:
        config = replace(config, settings_dir=args.settings_dir)
    return config


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    try:
        config = resolve_config(args)
    except (FileNotFoundError, LinearLightError) as exc:
        fail(f"Config error: {exc}")
        return 1

    store = SettingsStore(config.settings_dir)
    store.init()

    try:
        with DeviceClient(
            config.url,
            limit_pins=config.limit_pins,
            settle_ms=config.settle_ms,
            timeout=config.timeout_s,
        ) as fixture:
            result = dispatch(Session(fixture, store), args.command, args.args)
    except LinearLightError as exc:
        fail(str(exc))
        return 1
    except KeyboardInterrupt:
        fail("Interrupted")
        return 130

    if result.usage:
        print(result.message)
    elif result.message:
        ok(f"{C.BOLD}{result.command}{C.RESET}: {result.message}")
    else:
        ok(f"{C.BOLD}{result.command}{C.RESET}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
