from __future__ import annotations

import argparse
import datetime as dt
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from services.blueprint_services import process_birth_data, calculate_transits
from services.document_parser import parse_document_text
from services.synastry_services import calculate_synastry


def _add_birth_args(p: argparse.ArgumentParser, prefix: str = "") -> None:
    p.add_argument(f"--{prefix}date", required=True, help="Birth date YYYY-MM-DD")
    p.add_argument(f"--{prefix}time", default="", help="Birth time HH:MM (blank = default birth time)")
    p.add_argument(f"--{prefix}tz", default=None, help="IANA timezone, e.g. America/New_York")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Blueprint, transit and synastry calculations printed as JSON.")
    parser.add_argument("--indent", type=int, default=2, help="JSON indent (0 for compact)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    bp = sub.add_parser("blueprint", help="Derive a blueprint from birth data")
    _add_birth_args(bp)

    tr = sub.add_parser("transits", help="Transits against a natal blueprint")
    _add_birth_args(tr)
    tr.add_argument("--at", default=None, help="ISO datetime of the transit moment (default: now, UTC)")

    sy = sub.add_parser("synastry", help="Compatibility of two people")
    _add_birth_args(sy, "a-")
    _add_birth_args(sy, "b-")
    sy.add_argument("--a-name", default="Person A")
    sy.add_argument("--b-name", default="Person B")

    pa = sub.add_parser("parse", help="Extract people and birth data from a text file ('-' for stdin)")
    pa.add_argument("input", help="Path to a text file, or '-'")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="[%(levelname)s] %(name)s: %(message)s")

    try:
        if args.command == "blueprint":
            result = process_birth_data(args.date, args.time, args.tz)
        elif args.command == "transits":
            at = dt.datetime.fromisoformat(args.at.replace("Z", "+00:00")) if args.at else None
            result = calculate_transits(process_birth_data(args.date, args.time, args.tz), at)
        elif args.command == "synastry":
            a = process_birth_data(args.a_date, args.a_time, args.a_tz)
            b = process_birth_data(args.b_date, args.b_time, args.b_tz)
            result = calculate_synastry(a, b, args.a_name, args.b_name)
        else:
            text = sys.stdin.read() if args.input == "-" else Path(args.input).read_text(encoding="utf-8")
            result = parse_document_text(text)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    print(json.dumps(result, indent=args.indent or None, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
