"""Grading entry points.

Every checker has the signature::

    check(question, answer, given, partial_credit, points,
          allow_detail_disclosure=True, options=None, *, settings=None)

and returns a :class:`GradeResult`.  ``question`` carries the problem
(``{"prems": [...], "conc": "..."}`` for derivations), ``answer`` is the
reference answer and ``given`` the learner's submission.  ``options`` may
override ``notation`` and ``system`` and, for translations, ``pred``
(predicate logic, default True).

With ``allow_detail_disclosure`` False the result keeps only the status and
points: error details and messages could reveal the shape of the answer.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass

from logicgrade.checker import DEPENDENCY, DerivationChecker, ErrorReport
from logicgrade.config import GradingSettings, PartialCreditPolicy
from logicgrade.derivation import Derivation
from logicgrade.justification import parse_justification
from logicgrade.rules import RuleSet, available_systems, get_rules
from logicgrade.syntax import ParseContext

logger = logging.getLogger(__name__)

CORRECT = "correct"
INCORRECT = "incorrect"
INDETERMINATE = "indeterminate"
# Reserved for stores that keep ungraded, edited submissions
EDITED = "edited"
STATUSES = (CORRECT, INCORRECT, INDETERMINATE, EDITED)

__all__ = [
    "CORRECT",
    "INCORRECT",
    "INDETERMINATE",
    "EDITED",
    "GradeResult",
    "PartialCreditPolicy",
    "check_answer",
    "check_derivation",
    "check_translation",
    "progress_lines",
]


@dataclass
class GradeResult:
    """Outcome of grading one answer.

    Attributes:
        successstatus: One of CORRECT, INCORRECT, INDETERMINATE, EDITED.
        points: Points awarded.
        errors: Derivation errors grouped by line, category, severity
            and description (derivations only).
        message: Explanation for the learner, if any.
    """

    successstatus: str
    points: int
    errors: dict | None = None
    message: str = ""

    def __post_init__(self) -> None:
        if self.successstatus not in STATUSES:
            raise ValueError(f"Unknown status {self.successstatus!r}")

    @property
    def correct(self) -> bool:
        return self.successstatus == CORRECT

    def redacted(self) -> GradeResult:
        """Copy without details about the answer."""
        return GradeResult(self.successstatus, self.points)

    def to_dict(self) -> dict:
        d: dict = {"successstatus": self.successstatus, "points": self.points}
        if self.errors is not None:
            d["errors"] = self.errors
        if self.message:
            d["message"] = self.message
        return d


def _settings_for(settings: GradingSettings | None, options: dict | None) -> GradingSettings:
    settings = settings if settings is not None else GradingSettings()
    options = options or {}
    overrides = {k: options[k] for k in ("notation", "system") if k in options}
    if not overrides:
        return settings
    data = settings.to_dict()
    data.update(overrides)
    if "notation" not in overrides and "system" in overrides:
        # a system brings its own notation unless one is given
        data["notation"] = overrides["system"]
    return GradingSettings.from_dict(data)


# ----------------------------------------------------------------------
# derivations


def progress_lines(derivation: Derivation, errors: ErrorReport, rules: RuleSet) -> int:
    """Count lines that make real progress.

    A line counts if it is numbered and justified, has no errors other
    than dependency errors, and its first cited rule counts as progress in
    *rules* (so premises, assumptions and, in most systems, introduction
    rules do not).
    """
    total = 0
    for line in derivation.lines:
        if line.number is None or not line.justification_text:
            continue
        if any(c != DEPENDENCY for c in errors.categories(line.number)):
            continue
        rule = parse_justification(line.justification_text).rule
        if rule is not None and rules.counts_as_progress(rule):
            total += 1
    return total


def derivation_portion(
    portion: float,
    actual: int,
    goal: int,
    policy: PartialCreditPolicy,
) -> float:
    """Share of credit for an imperfect proof.

    *portion* is what is left after per-line penalties; *actual* and
    *goal* count progress lines in the submission and the reference
    answer.
    """
    if portion < policy.buildup_threshold:
        portion = max(portion, min(policy.buildup_cap, policy.per_step * actual))
    ratio = actual / goal if goal > 0 else 1.0
    if ratio < policy.incomplete_ratio:
        portion *= ratio
    return portion


def check_derivation(
    question: dict,
    answer: dict | None,
    given: dict,
    partial_credit: bool,
    points: int,
    allow_detail_disclosure: bool = True,
    options: dict | None = None,
    *,
    settings: GradingSettings | None = None,
) -> GradeResult:
    """Grade a natural-deduction derivation."""
    settings = _settings_for(settings, options)
    rules = get_rules(settings.system, settings.notation)
    try:
        derivation = Derivation.from_dict(given)
    except ValueError as e:
        logger.info("Rejected malformed derivation: %s", e)
        result = GradeResult(INCORRECT, 0, message=f"the derivation could not be read: {e}")
        return result if allow_detail_disclosure else result.redacted()

    report = DerivationChecker(
        rules,
        derivation,
        question.get("prems", []),
        question.get("conc", ""),
        thorough=partial_credit,
        context=ParseContext(rules.notation),
        penalties=settings.penalties,
    ).check()
    correct = report.correct

    if partial_credit and not correct:
        goal = 0
        if answer:
            goal = progress_lines(Derivation.from_dict(answer), ErrorReport(), rules)
        actual = progress_lines(derivation, report.errors, rules)
        portion = derivation_portion(report.points_portion, actual, goal, settings.partial_credit)
        awarded = math.floor(portion * points)
        logger.debug("Derivation progress %d of %d, portion %.3f", actual, goal, portion)
    else:
        awarded = points if correct else 0

    result = GradeResult(CORRECT if correct else INCORRECT, awarded, errors=report.errors.grouped())
    logger.info("Derivation graded %s, %d of %d points", result.successstatus, awarded, points)
    return result if allow_detail_disclosure else result.redacted()


# ----------------------------------------------------------------------
# translations


def check_translation(
    question: dict | None,
    answer: str,
    given: str,
    partial_credit: bool,
    points: int,
    allow_detail_disclosure: bool = True,
    options: dict | None = None,
    *,
    settings: GradingSettings | None = None,
) -> GradeResult:
    """Grade a symbolic translation by equivalence with the reference answer.

    An undecidable equivalence makes the result INDETERMINATE, never
    INCORRECT, unless something else is already wrong with the answer.
    """
    settings = _settings_for(settings, options)
    policy = settings.partial_credit
    predicate_logic = (options or {}).get("pred", True)
    if answer == given:
        return GradeResult(CORRECT, points)

    context = settings.context()
    reference = context.parse(answer)
    submitted = context.parse(given)
    max_fraction = 1.0
    correct = True
    determinate = True
    messages: list[str] = []

    if not submitted.wellformed:
        max_fraction = policy.ill_formed_cap
        messages.append(f"the formula given is not syntactically well formed ({submitted.syntax_error_text})")
        correct = False
    if predicate_logic:
        if submitted.free_variables:
            max_fraction -= policy.free_variable_penalty
            messages.append(
                f"translation uses a variable ({', '.join(submitted.free_variables)}) "
                "not bound by a quantifier"
            )
            correct = False
    elif submitted.names:
        max_fraction -= policy.free_variable_penalty
        messages.append(
            f"Sentential Logic translation incorrectly uses terms ({', '.join(sorted(submitted.names))}) "
            "or quantifiers"
        )
        correct = False

    if reference.normal != submitted.normal:
        result = settings.prover(context).equivalent(reference, submitted)
        if result.determinate:
            if not result.equiv:
                correct = False
                messages.append("formula provided is not equivalent to the correct translation")
                max_fraction = max(0.0, max_fraction - policy.inequivalence_penalty)
        else:
            max_fraction = max(0.0, max_fraction - policy.inequivalence_penalty)
            messages.append(
                "equivalence checker could not determine whether or not the formula "
                "provided is equivalent to the intended one"
            )
            if correct:
                determinate = False
                correct = False

    awarded = points if correct else 0
    if partial_credit:
        awarded = math.floor(points * round(max_fraction, 5))
    if not determinate:
        status = INDETERMINATE
    else:
        status = CORRECT if correct else INCORRECT
    result = GradeResult(status, awarded, message="; ".join(messages))
    logger.info("Translation graded %s, %d of %d points", status, awarded, points)
    return result if allow_detail_disclosure else result.redacted()


# ----------------------------------------------------------------------
# dispatch

Checker = Callable[..., GradeResult]

CHECKERS: dict[str, Checker] = {
    "derivation": check_derivation,
    "symbolic-translation": check_translation,
}


def check_answer(
    problem_type: str,
    question: dict | None,
    answer,
    given,
    partial_credit: bool,
    points: int,
    allow_detail_disclosure: bool = True,
    options: dict | None = None,
    **kwargs,
) -> GradeResult:
    """Grade *given* with the checker for *problem_type*.

    ``derivation-<system>`` selects the derivation checker with that
    deduction system, e.g. ``derivation-hardegree``.
    """
    checker = CHECKERS.get(problem_type)
    if checker is None and problem_type.startswith("derivation-"):
        system = problem_type.removeprefix("derivation-")
        if system in available_systems():
            checker = check_derivation
            options = {"system": system, **(options or {})}
    if checker is None:
        raise ValueError(
            f"No checker for problem type {problem_type!r}. Available: {', '.join(sorted(CHECKERS))}"
        )
    return checker(question, answer, given, partial_credit, points, allow_detail_disclosure, options, **kwargs)
