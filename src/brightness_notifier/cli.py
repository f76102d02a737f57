from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any

from brightness_notifier import __version__
from brightness_notifier.config import ConfigError, load
from brightness_notifier.controller import Controller
from brightness_notifier.fade import FadeSpec
from brightness_notifier.operation import (
    Decrease,
    Get,
    Increase,
    InvalidValue,
    Operation,
    SetTo,
    validate,
)
from brightness_notifier.system.backlight import BacklightError

log = logging.getLogger("brightness_notifier")

# Marker for a bare -i/-d; replaced by the configured step_percent.
_STEP = object()


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="brightness-notifier",
        description=(
            "Change the display brightness with a short fade and show the result "
            "as a desktop notification."
        ),
    )
    ap.add_argument("-V", "--version", action="version", version=__version__)
    ap.add_argument(
        "-i",
        "--increase",
        type=int,
        nargs="?",
        const=_STEP,
        metavar="N",
        help="Increase brightness by N%% (default: 5)",
    )
    ap.add_argument(
        "-d",
        "--decrease",
        type=int,
        nargs="?",
        const=_STEP,
        metavar="N",
        help="Decrease brightness by N%% (default: 5)",
    )
    ap.add_argument("-s", "--set", type=int, metavar="N", help="Set brightness to N%% (1-100)")
    ap.add_argument("-g", "--get", action="store_true", help="Show the current brightness")
    ap.add_argument("-t", "--timeout", type=int, metavar="MS", help="Notification timeout (ms)")
    ap.add_argument("-f", "--fade", type=int, metavar="MS", help="Total fade duration (ms)")
    ap.add_argument("-p", "--step", type=int, metavar="N", help="Number of fade steps")
    ap.add_argument("-c", "--config", help="YAML config file")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return ap


def _setup_logging(verbose: bool) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    log.handlers = [handler]
    log.setLevel(logging.DEBUG if verbose else logging.INFO)
    log.propagate = False


def operation_from_args(args: argparse.Namespace, step_percent: int = 5) -> Operation:
    requested = [
        name for name in ("increase", "decrease", "set") if getattr(args, name) is not None
    ]
    if args.get:
        requested.append("get")
    if len(requested) > 1:
        flags = ", ".join(f"--{name}" for name in requested)
        raise InvalidValue(f"Only one operation may be given, got {flags}")

    def delta(value: Any) -> int:
        return step_percent if value is _STEP else int(value)

    if args.increase is not None:
        op: Operation = Increase(delta(args.increase))
    elif args.decrease is not None:
        op = Decrease(delta(args.decrease))
    elif args.set is not None:
        op = SetTo(args.set)
    else:
        op = Get()
    return validate(op)


def build_controller(args: argparse.Namespace, cfg: dict[str, Any]) -> Controller:
    fade = FadeSpec(
        duration_ms=args.fade if args.fade is not None else int(cfg["fade"]["duration_ms"]),
        steps=args.step if args.step is not None else int(cfg["fade"]["steps"]),
    )
    timeout_ms = args.timeout if args.timeout is not None else cfg["notification"]["timeout_ms"]
    return Controller.from_config(cfg, fade=fade, timeout_ms=int(timeout_ms))


def run(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    try:
        cfg = load(args.config)
        op = operation_from_args(args, step_percent=int(cfg["step_percent"]))
        ctl = build_controller(args, cfg)
        asyncio.run(ctl.run(op))
    except (ConfigError, InvalidValue, BacklightError) as e:
        log.error("%s", e)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


def main() -> None:
    raise SystemExit(run())
