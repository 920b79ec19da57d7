"""``logicgrade equiv`` subcommand — test two formulas for equivalence."""

from __future__ import annotations

import argparse
import logging

from logicgrade.cli.exitcodes import EXIT_ERROR, EXIT_INDETERMINATE, EXIT_NEGATIVE, EXIT_SUCCESS
from logicgrade.cli.output import emit_error, emit_json, equiv_response, equivalence_status
from logicgrade.config import GradingSettings

logger = logging.getLogger(__name__)


def run_equiv(args: argparse.Namespace) -> int:
    """Execute the ``equiv`` subcommand."""
    from logicgrade.cli.main import load_settings

    try:
        settings = load_settings(args)
        if args.time_budget is not None:
            settings = GradingSettings.from_dict({**settings.to_dict(), "time_budget": args.time_budget})
        context = settings.context()
        prover = settings.prover(context)
    except (ValueError, OSError) as e:
        emit_error(str(e), json_mode=args.json, quiet=args.quiet)
        return EXIT_ERROR

    p, q = context.parse(args.first), context.parse(args.second)
    for f, text in ((p, args.first), (q, args.second)):
        if not f.wellformed:
            emit_error(f"{text!r} is not well formed ({f.syntax_error_text})", json_mode=args.json, quiet=args.quiet)
            return EXIT_ERROR

    try:
        result = prover.equivalent(p, q)
    except (ValueError, OSError) as e:
        emit_error(str(e), json_mode=args.json, quiet=args.quiet)
        return EXIT_ERROR
    status = equivalence_status(result)
    logger.info("Equivalence %s / %s: %s by %s", p.normal, q.normal, status, result.method)

    if args.json:
        if not args.quiet:
            emit_json(equiv_response(p, q, result))
    elif not args.quiet:
        print(status.replace("_", " "))
        print(f"Method: {result.method}")

    if not result.determinate:
        return EXIT_INDETERMINATE
    return EXIT_SUCCESS if result.equiv else EXIT_NEGATIVE
