"""``logicgrade parse`` subcommand — parse one formula."""

from __future__ import annotations

import argparse
import logging

from logicgrade.cli.exitcodes import EXIT_ERROR, EXIT_NEGATIVE, EXIT_SUCCESS
from logicgrade.cli.output import emit_error, emit_json, parse_response

logger = logging.getLogger(__name__)


def run_parse(args: argparse.Namespace) -> int:
    """Execute the ``parse`` subcommand."""
    from logicgrade.cli.main import load_settings

    try:
        context = load_settings(args).context()
    except (ValueError, OSError) as e:
        emit_error(str(e), json_mode=args.json, quiet=args.quiet)
        return EXIT_ERROR

    formula = context.parse(args.formula)
    logger.info("Parsed %r: %s (wellformed=%s)", args.formula, formula.normal, formula.wellformed)

    if args.json:
        if not args.quiet:
            emit_json(parse_response(args.formula, formula))
    elif not args.quiet:
        if formula.wellformed:
            print(formula.normal)
            if formula.free_variables:
                print(f"Free variables: {', '.join(formula.free_variables)}")
        else:
            print("NOT WELL FORMED")
            for error in formula.syntax_errors:
                print(f"  {error}")

    return EXIT_SUCCESS if formula.wellformed else EXIT_NEGATIVE
