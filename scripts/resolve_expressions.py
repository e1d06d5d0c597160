#!/usr/bin/env python3
"""
Expand SSIS variable expressions in a text file.

Usage:
  python3 scripts/resolve_expressions.py --in <file> --out <output> NAME=VALUE [NAME=VALUE ...]

Replaces @[User::Name], @[Name] and @[System::Name] tokens with the provided
values using ssisflow.variables.ExpressionResolver. Tokens without a value are
left unchanged; values that contain further tokens are expanded up to
--max-depth levels.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from ssisflow.variables import ExpressionResolver
from ssisflow.variables.expressions import DEFAULT_MAX_DEPTH


def parse_kv(pairs: list[str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            print(f"Invalid pair (expected NAME=VALUE): {pair}", file=sys.stderr)
            sys.exit(2)
        k, v = pair.split("=", 1)
        if not k:
            print(f"Invalid NAME in pair: {pair}", file=sys.stderr)
            sys.exit(2)
        values[k] = v
    return values


def main(argv: list[str]) -> int:
    ap = argparse.ArgumentParser(description="Expand @[...] variable expressions in a file")
    ap.add_argument("--in", dest="src", required=True, help="Path to input file")
    ap.add_argument("--out", dest="dst", required=True, help="Path to output file")
    ap.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH, help="Nested expansion limit")
    ap.add_argument("kv", nargs="*", help="NAME=VALUE variable definitions")
    args = ap.parse_args(argv)

    src_path = Path(args.src)
    dst_path = Path(args.dst)

    if not src_path.exists():
        print(f"Input not found: {src_path}", file=sys.stderr)
        return 2

    try:
        text = src_path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Failed to read input: {e}", file=sys.stderr)
        return 1

    variables = parse_kv(args.kv)
    rendered = ExpressionResolver(args.max_depth).resolve(text, variables)

    try:
        dst_path.parent.mkdir(parents=True, exist_ok=True)
        dst_path.write_text(rendered, encoding="utf-8")
    except OSError as e:
        print(f"Failed to write output: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
