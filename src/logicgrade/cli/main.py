"""CLI entry point for logicgrade.

Usage::

    logicgrade parse "P ∨ (Q ∧ R)"
    logicgrade equiv "¬(P ∧ Q)" "¬P ∨ ¬Q"
    logicgrade check -p problem.json [--thorough]
    logicgrade rules cambridge
"""

from __future__ import annotations

import argparse
import logging
import sys

from logicgrade._version import __version__
from logicgrade.config import GradingSettings


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("-q", "--quiet", action="store_true", help="Print nothing; use the exit code")
    parser.add_argument("--notation", default=None, help="Formula notation (default from settings)")
    parser.add_argument("--config", default=None, help="Path to a JSON settings file")


def load_settings(args: argparse.Namespace) -> GradingSettings:
    """Settings from ``--config``, with ``--notation``/``--system`` applied."""
    settings = GradingSettings.from_file(args.config) if args.config else GradingSettings()
    overrides = {}
    if getattr(args, "system", None):
        overrides["system"] = args.system
        overrides["notation"] = args.system
    if args.notation:
        overrides["notation"] = args.notation
    if not overrides:
        return settings
    return GradingSettings.from_dict({**settings.to_dict(), **overrides})


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the ``logicgrade`` CLI."""
    parser = argparse.ArgumentParser(
        prog="logicgrade",
        description="logicgrade — formula parsing, proof checking and equivalence testing",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- parse ---
    parse_parser = subparsers.add_parser("parse", help="Parse a formula and show its normal form")
    parse_parser.add_argument("formula", help='Formula, e.g. "P ∨ (Q ∧ R)"')
    _add_common(parse_parser)

    # --- equiv ---
    equiv_parser = subparsers.add_parser("equiv", help="Test two formulas for equivalence")
    equiv_parser.add_argument("first", help="First formula")
    equiv_parser.add_argument("second", help="Second formula")
    equiv_parser.add_argument("--time-budget", type=float, default=None, help="Seconds per tableau")
    _add_common(equiv_parser)

    # --- check ---
    check_parser = subparsers.add_parser("check", help="Check a derivation")
    check_parser.add_argument("-p", "--problem", required=True, help="Path to JSON problem file")
    check_parser.add_argument("--system", default=None, help="Deduction system (default from settings)")
    check_parser.add_argument("--thorough", action="store_true", help="Check every line and weigh errors")
    _add_common(check_parser)

    # --- rules ---
    rules_parser = subparsers.add_parser("rules", help="List the rules of a deduction system")
    rules_parser.add_argument("system", help="Deduction system, e.g. cambridge or hardegree")
    _add_common(rules_parser)

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s")

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "parse":
        from logicgrade.cli.parse import run_parse
        return run_parse(args)
    elif args.command == "equiv":
        from logicgrade.cli.equiv import run_equiv
        return run_equiv(args)
    elif args.command == "check":
        from logicgrade.cli.check import run_check
        return run_check(args)
    elif args.command == "rules":
        from logicgrade.cli.rules import run_rules
        return run_rules(args)

    return 0


if __name__ == "__main__":
    sys.exit(main())
