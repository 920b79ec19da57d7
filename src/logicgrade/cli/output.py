"""Structured JSON output for the logicgrade CLI."""

from __future__ import annotations

import json
import logging
import sys

from logicgrade.checker import CheckReport
from logicgrade.equivalence import EquivalenceResult
from logicgrade.syntax import Formula

logger = logging.getLogger(__name__)


def emit_json(data: dict) -> None:
    """Print compact single-line JSON to stdout."""
    print(json.dumps(data, separators=(",", ":"), ensure_ascii=False))


def equivalence_status(result: EquivalenceResult) -> str:
    if not result.determinate:
        return "INDETERMINATE"
    return "EQUIVALENT" if result.equiv else "NOT_EQUIVALENT"


def parse_response(text: str, formula: Formula) -> dict:
    """Build a parse response dict."""
    return {
        "formula": text,
        "normal": formula.normal,
        "wellformed": formula.wellformed,
        "type": formula.type,
        "free_variables": list(formula.free_variables),
        "errors": list(formula.syntax_errors),
    }


def equiv_response(p: Formula, q: Formula, result: EquivalenceResult) -> dict:
    """Build an equiv response dict."""
    return {
        "status": equivalence_status(result),
        "formulas": [p.normal, q.normal],
        **result.to_dict(),
    }


def check_response(report: CheckReport, problem_file: str) -> dict:
    """Build a check response dict."""
    return {
        "status": "CORRECT" if report.correct else "HAS_ERRORS",
        "problem_file": problem_file,
        "points_portion": report.points_portion,
        "errors": report.errors.to_list(),
    }


def error_response(message: str) -> dict:
    """Build an error response dict."""
    return {"error": message}


def emit_error(message: str, *, json_mode: bool = False, quiet: bool = False) -> None:
    """Print an error message to stderr, or as JSON to stdout."""
    if quiet:
        return
    if json_mode:
        emit_json(error_response(message))
    else:
        print(f"Error: {message}", file=sys.stderr)
