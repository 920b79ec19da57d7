"""``logicgrade rules`` subcommand — list a deduction system's rules."""

from __future__ import annotations

import argparse
import logging

from logicgrade.cli.exitcodes import EXIT_ERROR, EXIT_SUCCESS
from logicgrade.cli.output import emit_error, emit_json
from logicgrade.rules import get_rules

logger = logging.getLogger(__name__)


def _flags(rule) -> str:
    flags = [
        label
        for label, on in (
            ("premise", rule.premise_rule),
            ("assumption", rule.assumption_rule),
            ("show", rule.show_rule),
            ("replacement", rule.replacement_rule),
            ("predicate", rule.predicate_only),
            ("derived", rule.derived),
        )
        if on
    ]
    return f" ({', '.join(flags)})" if flags else ""


def run_rules(args: argparse.Namespace) -> int:
    """Execute the ``rules`` subcommand."""
    from logicgrade.cli.main import load_settings

    try:
        settings = load_settings(args)
        rules = get_rules(settings.system, settings.notation)
    except (ValueError, OSError) as e:
        emit_error(str(e), json_mode=args.json, quiet=args.quiet)
        return EXIT_ERROR

    visible = {name: rule for name, rule in rules.items() if not rule.hidden and not rule.unavailable}
    logger.info("Listing %d rules of %s", len(visible), rules.name)

    if args.json:
        if not args.quiet:
            data = rules.to_dict()
            data["rules"] = {name: rule.to_dict() for name, rule in visible.items()}
            emit_json(data)
    elif not args.quiet:
        print(f"{rules.name} ({rules.notation.name} notation), {len(visible)} rules:")
        for name, rule in visible.items():
            print(f"  {name}{_flags(rule)}")

    return EXIT_SUCCESS
