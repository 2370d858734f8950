#!/usr/bin/env python3
"""Command-line front end for the CHIP-8 emulator."""

from __future__ import annotations

import argparse
import logging
import string
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .config import MachineConfig
from .disasm import disassemble_program
from .errors import Chip8Error
from .run_chip8 import run_emulator


def _parse_key_script(entries: Sequence[str]) -> Dict[int, List[int | str]]:
    """Parse ``FRAME:KEYS`` entries, e.g. ``30:5`` or ``90:`` (release all)."""

    script: Dict[int, List[int | str]] = {}
    for entry in entries:
        frame, sep, keys = entry.partition(":")
        if not sep:
            raise argparse.ArgumentTypeError(f"Invalid key script entry: {entry!r}")
        parsed: List[int | str] = []
        for key in keys.split(","):
            key = key.strip()
            if not key:
                continue
            # Single hex digits name keypad nibbles, anything else is a host key.
            if len(key) == 1 and key in string.hexdigits:
                parsed.append(int(key, 16))
            else:
                parsed.append(key)
        script[int(frame)] = parsed
    return script


def build_config(args: argparse.Namespace) -> MachineConfig:
    config = MachineConfig.load(args.config) if args.config else MachineConfig()
    overrides: Dict[str, Any] = {}
    if args.ips is not None:
        overrides["instructions_per_second"] = args.ips
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.scale is not None:
        overrides["scale"] = args.scale
    if args.legacy_shift_flag:
        overrides["quirks"] = replace(config.quirks, legacy_shift_flag_mask=True)
    # replace() re-runs __post_init__ validation on the overridden values.
    return replace(config, **overrides)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CHIP-8 emulator (headless)")
    parser.add_argument("rom", type=str, help="ROM image to run")
    parser.add_argument(
        "--ticks", type=int, default=600, help="Number of 60 Hz frames to run"
    )
    parser.add_argument(
        "--ips", type=int, default=None, help="Instructions per second"
    )
    parser.add_argument(
        "--realtime",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Pace frames to wall-clock time",
    )
    parser.add_argument(
        "--timeout", type=float, default=None, help="Wall clock timeout in seconds"
    )
    parser.add_argument("--config", type=str, help="Machine configuration JSON")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed for CXNN")
    parser.add_argument(
        "--legacy-shift-flag",
        action="store_true",
        help="8XY6 takes VF from VX & 0xF instead of the low bit",
    )
    parser.add_argument("--scale", type=int, default=None, help="PNG pixel scale")
    parser.add_argument("--save-png", type=str, help="Save the final display PNG")
    parser.add_argument(
        "--trace-file", type=str, help="Write instruction trace as JSON lines"
    )
    parser.add_argument(
        "--key",
        action="append",
        default=[],
        metavar="FRAME:KEYS",
        help="Hold KEYS (comma separated) from FRAME on; repeatable",
    )
    parser.add_argument(
        "--print-display", action="store_true", help="Print the final display"
    )
    parser.add_argument(
        "--disassemble",
        action="store_true",
        help="Print a disassembly listing instead of running",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    if args.disassemble:
        try:
            data = Path(args.rom).read_bytes()
        except OSError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        for address, opcode, text in disassemble_program(data):
            print(f"{address:03X}: {opcode:04X}  {text}")
        return 0

    try:
        key_script = _parse_key_script(args.key)
    except (argparse.ArgumentTypeError, ValueError) as exc:
        parser.error(str(exc))

    try:
        run_emulator(
            args.rom,
            ticks=args.ticks,
            config=build_config(args),
            realtime=args.realtime,
            timeout_secs=args.timeout,
            save_png=args.save_png,
            trace_file=args.trace_file,
            key_script=key_script,
            print_stats=True,
            print_display=args.print_display,
        )
    except (Chip8Error, OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
