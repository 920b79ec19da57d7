"""``logicgrade check`` subcommand — check a derivation from a problem file.

The problem file is JSON::

    {
      "prems": ["P → Q", "P"],
      "conc": "Q",
      "system": "cambridge",                 # optional
      "derivation": {"parts": [...]}
    }
"""

from __future__ import annotations

import argparse
import json
import logging

from logicgrade.checker import check_derivation_structure
from logicgrade.cli.exitcodes import EXIT_ERROR, EXIT_NEGATIVE, EXIT_SUCCESS
from logicgrade.cli.output import check_response, emit_error, emit_json
from logicgrade.rules import get_rules
from logicgrade.syntax import ParseContext

logger = logging.getLogger(__name__)


def load_problem(path: str) -> dict:
    """Read and validate a problem file."""
    with open(path, encoding="utf-8") as f:
        problem = json.load(f)
    if not isinstance(problem, dict):
        raise ValueError(f"Problem file {path} must hold a JSON object")
    if "derivation" not in problem:
        raise ValueError(f"Problem file {path} has no derivation")
    if not isinstance(problem.get("prems", []), list):
        raise ValueError(f"Problem file {path}: prems must be a list")
    return problem


def run_check(args: argparse.Namespace) -> int:
    """Execute the ``check`` subcommand."""
    from logicgrade.cli.main import load_settings

    try:
        problem = load_problem(args.problem)
        if not args.system and problem.get("system"):
            args.system = problem["system"]
        settings = load_settings(args)
        rules = get_rules(settings.system, settings.notation)
        report = check_derivation_structure(
            rules,
            problem["derivation"],
            problem.get("prems", []),
            problem.get("conc", ""),
            thorough=args.thorough,
            context=ParseContext(rules.notation),
            penalties=settings.penalties,
        )
    except (ValueError, OSError) as e:
        emit_error(str(e), json_mode=args.json, quiet=args.quiet)
        return EXIT_ERROR

    logger.info(
        "Checked %s with %s: %d error(s)", args.problem, rules.name, len(report.errors)
    )

    if args.json:
        if not args.quiet:
            emit_json(check_response(report, args.problem))
    elif not args.quiet:
        if report.correct:
            print("CORRECT")
        else:
            print("HAS ERRORS")
            for record in report.errors:
                print(f"  line {record.line} [{record.category}, {record.severity}]: {record.description}")
            if args.thorough:
                print(f"Points portion: {report.points_portion:.2f}")

    return EXIT_SUCCESS if report.correct else EXIT_NEGATIVE
