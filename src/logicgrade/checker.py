"""Structural checking of submitted derivations.

:class:`DerivationChecker` runs a fixed pipeline over a
:class:`~logicgrade.derivation.Derivation` and records every problem it
finds as an :class:`ErrorRecord`:

1. *analyze*: flatten the derivation into reading order, skipping blank
   lines, and map line numbers to lines (missing and duplicate numbers);
2. *numbering*: each line's number must match its position;
3. *lines*: formula syntax, justification shape, citation availability,
   then the cited rule itself (via :mod:`logicgrade.matcher`);
4. *dependencies*: lines citing erroneous lines, and show lines whose
   subderivations are wrong or incomplete;
5. *conclusion*: the problem's conclusion must appear at top level;
6. *weighing* (thorough mode): each line with errors costs the penalty of
   its worst non-dependency error.

Error categories are ``syntax``, ``justification``, ``rule``,
``completion`` and ``dependency``; severities are ``high``, ``medium`` and
``low``.  The checker is pure: the input derivation is never modified and
all derived state lives on the checker.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field

from logicgrade.derivation import ROOT, Derivation, PartRef
from logicgrade.justification import parse_justification
from logicgrade.matcher import MatchResult, check_replacement, try_match
from logicgrade.rules import Form, RuleSchema, RuleSet
from logicgrade.syntax import ParseContext

logger = logging.getLogger(__name__)

SYNTAX = "syntax"
JUSTIFICATION = "justification"
RULE = "rule"
COMPLETION = "completion"
DEPENDENCY = "dependency"
CATEGORIES = (SYNTAX, JUSTIFICATION, RULE, COMPLETION, DEPENDENCY)

HIGH = "high"
MEDIUM = "medium"
LOW = "low"
SEVERITIES = (HIGH, MEDIUM, LOW)

# Fraction of credit lost per line, by the line's worst severity
SEVERITY_PENALTIES: Mapping[str, float] = {HIGH: 0.2, MEDIUM: 0.15, LOW: 0.1}

# Error target for lines that have no number
UNNUMBERED = "??"

_LEADING_INT = re.compile(r"^\s*([0-9]+)")


def _as_int(number: str | None) -> int | None:
    """Leading integer of a line number as written, or None."""
    if number is None:
        return None
    m = _LEADING_INT.match(number)
    return int(m.group(1)) if m else None


@dataclass(frozen=True)
class ErrorRecord:
    """One problem found at one line."""

    line: str
    category: str
    severity: str
    description: str

    def to_dict(self) -> dict:
        return {
            "line": self.line,
            "category": self.category,
            "severity": self.severity,
            "description": self.description,
        }


class ErrorReport:
    """Ordered list of :class:`ErrorRecord` with grouping helpers."""

    def __init__(self, records: Sequence[ErrorRecord] = ()) -> None:
        self._records: list[ErrorRecord] = list(records)

    def __iter__(self) -> Iterator[ErrorRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"ErrorReport({len(self._records)} errors)"

    def add(self, line: str | None, category: str, severity: str, description: str) -> ErrorRecord:
        if category not in CATEGORIES:
            raise ValueError(f"Unknown error category {category!r}")
        if severity not in SEVERITIES:
            raise ValueError(f"Unknown error severity {severity!r}")
        record = ErrorRecord(UNNUMBERED if line is None else line, category, severity, description)
        self._records.append(record)
        logger.debug("Error at line %s: %s/%s %s", record.line, category, severity, description)
        return record

    def extend(self, records: Iterable[ErrorRecord]) -> None:
        self._records.extend(records)

    def for_line(self, line: str | None) -> list[ErrorRecord]:
        return [r for r in self._records if r.line == line]

    def has_errors(self, line: str | None) -> bool:
        return any(r.line == line for r in self._records)

    def categories(self, line: str | None) -> list[str]:
        return list(dict.fromkeys(r.category for r in self._records if r.line == line))

    def lines_with_errors(self) -> list[str]:
        """Lines with at least one error, in the order first reported."""
        return list(dict.fromkeys(r.line for r in self._records))

    def descriptions(self) -> list[str]:
        return [f"line {r.line} {r.description}" for r in self._records]

    def grouped(self) -> dict[str, dict[str, dict[str, dict[str, int]]]]:
        """Nested counts: line -> category -> severity -> description -> count."""
        out: dict[str, dict[str, dict[str, dict[str, int]]]] = {}
        for r in self._records:
            counts = out.setdefault(r.line, {}).setdefault(r.category, {}).setdefault(r.severity, {})
            counts[r.description] = counts.get(r.description, 0) + 1
        return out

    def to_list(self) -> list[dict]:
        return [r.to_dict() for r in self._records]


@dataclass
class CheckReport:
    """Result of :meth:`DerivationChecker.check`.

    Attributes:
        errors: Every problem found.
        points_portion: Fraction of credit left after penalties (thorough
            mode only; 1.0 otherwise).
        lines: Line indices in reading order, blank lines excluded.
        line_map: Line number as written to line index.
    """

    errors: ErrorReport
    points_portion: float = 1.0
    lines: tuple[int, ...] = ()
    line_map: dict[str, int] = field(default_factory=dict)

    @property
    def correct(self) -> bool:
        return len(self.errors) == 0

    def to_dict(self) -> dict:
        return {
            "correct": self.correct,
            "points_portion": self.points_portion,
            "errors": self.errors.grouped(),
        }


@dataclass
class _LineState:
    """What the checker learns about one line while checking it."""

    numbers: list[int | None] = field(default_factory=list)
    ranges: list[tuple[int | None, int | None]] = field(default_factory=list)
    rule: RuleSchema | None = None
    alternatives: list[RuleSchema] = field(default_factory=list)
    cited_subderivations: list[int] = field(default_factory=list)


class DerivationChecker:
    """Checks one derivation against the rules of a system.

    Args:
        rules: The deduction system.
        derivation: The submitted derivation.
        premises: Premises of the problem, as text.
        conclusion: Conclusion of the problem, as text.
        thorough: Keep checking after a line's first justification error
            and compute ``points_portion``.
        numbered_show_lines: Override the rule set's own setting.
        context: Parse context to share; one is made for the rule set's
            notation if not given.
        penalties: Severity to penalty; defaults to SEVERITY_PENALTIES.
    """

    def __init__(
        self,
        rules: RuleSet,
        derivation: Derivation,
        premises: Sequence[str] = (),
        conclusion: str = "",
        *,
        thorough: bool = False,
        numbered_show_lines: bool | None = None,
        context: ParseContext | None = None,
        penalties: Mapping[str, float] | None = None,
    ) -> None:
        self.rules = rules
        self.derivation = derivation
        self.thorough = thorough
        self.numbered_show_lines = (
            rules.numbered_show_lines if numbered_show_lines is None else numbered_show_lines
        )
        self.context = context if context is not None else ParseContext(rules.notation)
        self.penalties = dict(SEVERITY_PENALTIES if penalties is None else penalties)
        missing = set(SEVERITIES) - set(self.penalties)
        if missing:
            raise ValueError(f"Penalties missing for severities: {', '.join(sorted(missing))}")
        self.premises = [self.context.parse(p).normal for p in premises]
        self.conclusion = self.context.parse(conclusion).normal

        self.errors = ErrorReport()
        self.lines: list[int] = []
        self.line_map: dict[str, int] = {}
        self.sub_lines: dict[int, list[int]] = {}
        self.sub_line_maps: dict[int, dict[str, int]] = {}
        self.state: dict[int, _LineState] = {}
        self.assumptions: dict[int, list[str]] = {}
        self.points_portion = 1.0

    def error(self, line: int | None, category: str, severity: str, description: str) -> None:
        target = None if line is None else self.derivation.line(line).number
        self.errors.add(target, category, severity, description)

    def check(self) -> CheckReport:
        """Run the full pipeline and return the report."""
        self.lines, self.line_map = self.analyze(ROOT)
        self.check_numbering()
        self.check_lines()
        self.trace_dependencies()
        self.check_conclusion()
        if self.thorough:
            self.weigh_errors()
        logger.debug(
            "Checked derivation: %d lines, %d errors, portion %.2f",
            len(self.lines), len(self.errors), self.points_portion,
        )
        return CheckReport(self.errors, self.points_portion, tuple(self.lines), dict(self.line_map))

    # ------------------------------------------------------------------
    # analysis

    def analyze(self, index: int) -> tuple[list[int], dict[str, int]]:
        """Reading order and number map of one subderivation, recursively."""
        d = self.derivation
        sub = d.sub(index)
        lines: list[int] = []
        line_map: dict[str, int] = {}
        if sub.show_line is not None:
            show = d.line(sub.show_line)
            if show.formula_text or show.justification_text:
                if self.numbered_show_lines:
                    lines.append(show.index)
                if show.number is not None:
                    line_map[show.number] = show.index
        for part in sub.parts:
            if part.is_subderivation:
                inner_lines, inner_map = self.analyze(part.index)
                lines.extend(inner_lines)
                for number, i in inner_map.items():
                    if number in line_map:
                        self.errors.add(
                            number, JUSTIFICATION, LOW,
                            "has the same line number as a line in another subderivation",
                        )
                        continue
                    line_map[number] = i
                continue
            line = d.line(part.index)
            if not line.formula_text and not line.justification_text:
                continue
            lines.append(line.index)
            if line.number is None:
                self.errors.add(UNNUMBERED, JUSTIFICATION, LOW, "not all lines have line numbers")
            elif line.number in line_map:
                self.errors.add(line.number, JUSTIFICATION, LOW, "has a duplicate line number")
            else:
                line_map[line.number] = line.index
        self.sub_lines[index] = lines
        self.sub_line_maps[index] = line_map
        return lines, line_map

    def check_numbering(self) -> None:
        for position, i in enumerate(self.lines, start=1):
            line = self.derivation.line(i)
            if line.number is None:
                continue
            if _as_int(line.number) != position:
                self.error(i, JUSTIFICATION, LOW, "does not have the right line number for its position")

    # ------------------------------------------------------------------
    # per-line checks

    def check_lines(self) -> None:
        for i in self.lines:
            self.state[i] = _LineState()
            line = self.derivation.line(i)
            f = self.context.parse(line.formula_text)
            if f.wellformed:
                if f.free_variables:
                    self.error(
                        i, SYNTAX, LOW,
                        f"formula uses a variable ({', '.join(f.free_variables)}) "
                        "without a quantifier binding it",
                    )
            elif not line.formula_text.strip():
                self.error(i, COMPLETION, MEDIUM, "formula field left blank")
                continue
            else:
                self.error(i, SYNTAX, LOW, f.syntax_error_text)
            self.check_justification(i)
        for i in self.lines:
            if self.state[i].rule is not None:
                self.check_rule(i)

    def check_justification(self, i: int) -> None:
        line = self.derivation.line(i)
        state = self.state[i]
        if not line.justification_text.strip():
            self.error(i, JUSTIFICATION, HIGH, "has no justification given")
            return
        j = parse_justification(line.justification_text)

        for n in j.numbers:
            if n is None:
                self.error(i, JUSTIFICATION, LOW, "cites an unknown line number (?)")
                continue
            self.line_available(n, i)
        for start, end in j.ranges:
            if start is None or end is None:
                self.error(i, JUSTIFICATION, LOW, "cites a line number range with an unknown line number (?)")
                continue
            self.range_available(start, end, i)

        if not j.rules:
            self.error(i, JUSTIFICATION, MEDIUM, "does not cite a rule")
            return
        cited = [r for r in (self.rules.resolve(name) for name in j.rules) if r is not None]
        if not cited:
            self.error(i, RULE, HIGH, f"cites a rule ({j.rule}) that does not exist")
            return
        rules = [r for r in cited if r.show_rule == line.is_show_line]
        if not rules and line.is_show_line:
            self.error(i, JUSTIFICATION, HIGH, "cites a non-show-rule for a show line")
            return
        if not rules:
            self.error(i, JUSTIFICATION, HIGH, "cites a show-rule for a non-show-line")
            return

        if not line.is_show_line:
            needed = [1 if r.replacement_rule else len(f.premises) for r in rules for f in r.forms] or [0]
            if len(j.numbers) not in needed:
                self.error(i, JUSTIFICATION, LOW, "cites the wrong number of lines for the rule specified")
                if len(j.numbers) < needed[0] and not self.thorough:
                    return
            needed = [len(f.subderivations) for r in rules for f in r.forms] or [0]
            if len(j.ranges) not in needed:
                self.error(
                    i, JUSTIFICATION, LOW,
                    "cites the wrong number of subderivation line ranges for the rule specified",
                )
                if len(j.ranges) < needed[0] and not self.thorough:
                    return
        elif j.numbers or j.ranges:
            self.error(i, JUSTIFICATION, LOW, "cites line numbers but show lines should not")

        state.numbers = list(j.numbers)
        state.ranges = list(j.ranges)
        state.rule = rules[0]
        state.alternatives = rules[1:]

    # ------------------------------------------------------------------
    # availability

    def line_available(self, n: int, i: int, *, silent: bool = False) -> bool:
        """Whether line number *n* may be cited at line *i*."""

        def fail(severity: str, message: str) -> bool:
            if not silent:
                self.error(i, JUSTIFICATION, severity, message)
            return False

        if n < 1 or n > len(self.lines):
            return fail(LOW, "cites a line that does not exist")
        own = _as_int(self.derivation.line(i).number)
        if own is not None and own == n:
            return fail(HIGH, "cites its own line number")
        if own is not None and own < n:
            return fail(HIGH, "cites a line later in the derivation")
        cited = self.lines[n - 1]

        d = self.derivation
        current = d.line(i).ref
        while True:
            owner = d.owner(current)
            if owner is None:
                break
            previous = d.previous_part(current)
            if previous is None:
                if d.sub(owner).show_line == cited:
                    return fail(HIGH, "cites a show line it is itself being used to demonstrate")
                current = d.sub(owner).ref
                continue
            current = previous
            if current.is_subderivation:
                if d.sub(current.index).show_line == cited:
                    return True
                continue
            number = _as_int(d.line(current.index).number)
            if number is not None and number < n:
                break
            if current.index == cited:
                return True
        return fail(HIGH, "cites a line within a subderivation that is no longer available")

    def range_available(self, start: int, end: int, i: int) -> bool:
        """Whether the range *start*–*end* may be cited at line *i*."""
        if start < 1 or end < 1 or start > len(self.lines) or end > len(self.lines):
            self.error(i, JUSTIFICATION, LOW, "cites a non-existent range of lines")
            return False
        own = _as_int(self.derivation.line(i).number)
        if own is not None and start <= own <= end:
            self.error(i, JUSTIFICATION, HIGH, "cites a range of lines in which it is included")
            return False
        if own is not None and own <= end:
            self.error(i, JUSTIFICATION, HIGH, "cites a range of lines later in the derivation")
            return False

        d = self.derivation
        start_line, end_line = self.lines[start - 1], self.lines[end - 1]
        cited_sub = d.line(start_line).scope
        members = self.sub_lines.get(cited_sub, [])
        if end_line not in members:
            self.error(i, JUSTIFICATION, HIGH, "cites a range of lines that spans multiple subderivations")
            return False
        aligned = True
        if members[0] != start_line:
            self.error(
                i, JUSTIFICATION, MEDIUM,
                "line number given for start of range not at the start of a subderivation",
            )
            aligned = False
        if members[-1] != end_line:
            self.error(
                i, JUSTIFICATION, MEDIUM,
                "line number given for end of range not at the end of a subderivation",
            )
            aligned = False
        if not aligned:
            return False

        target = PartRef(True, cited_sub)
        current = d.line(i).ref
        while True:
            owner = d.owner(current)
            if owner is None:
                break
            previous = d.previous_part(current)
            if previous is None:
                current = d.sub(owner).ref
                continue
            current = previous
            if current == target:
                return True
            if current.is_subderivation:
                continue
            number = _as_int(d.line(current.index).number)
            if number is not None and number < start:
                self.error(
                    i, JUSTIFICATION, HIGH,
                    "cites a line range within a subderivation that is no longer available",
                )
                return False
        self.error(i, JUSTIFICATION, HIGH, "cites the main derivation as if it were a subderivation")
        return False

    # ------------------------------------------------------------------
    # rule application

    def check_rule(self, i: int) -> None:
        state = self.state[i]
        assert state.rule is not None
        if not state.alternatives:
            self._check_rule_as(i, state.rule)
            return
        # the line stands if any one of its cited rules fits
        outer = self.errors
        failures: list[ErrorReport] = []
        try:
            for rule in [state.rule, *state.alternatives]:
                self.errors = ErrorReport()
                self._check_rule_as(i, rule)
                if not len(self.errors):
                    logger.debug("Line %d fits %s", i, rule.name)
                    state.rule = rule
                    return
                failures.append(self.errors)
        finally:
            self.errors = outer
        outer.extend(failures[0])

    def _check_rule_as(self, i: int, rule: RuleSchema) -> None:
        d = self.derivation
        line = d.line(i)
        state = self.state[i]
        f = self.context.parse(line.formula_text)

        cited_lines = [self.lines[n - 1] for n in state.numbers if n is not None and 1 <= n <= len(self.lines)]
        cited_subs = [
            d.line(self.lines[start - 1]).scope
            for start, _ in state.ranges
            if start is not None and 1 <= start <= len(self.lines)
        ]
        if line.is_show_line:
            cited_subs.append(line.scope)
        state.cited_subderivations = cited_subs

        if rule.premise_rule:
            if f.normal not in self.premises:
                self.error(i, RULE, HIGH, "cited premise not among premises given for problem")
            return

        if rule.assumption_rule and not self.numbered_show_lines:
            self.assumptions.setdefault(line.scope, []).append(f.normal)
            return

        if rule.replacement_rule:
            cited = [self.context.parse(d.line(c).formula_text) for c in cited_lines]
            result = check_replacement(rule, self.context, f, cited)
            if not result.success:
                self.error(i, RULE, HIGH, result.message)
            return

        attempts: list[tuple[Form, list[int]]]
        if rule.assumption_rule:
            attempts = self._assumption_forms(i)
            if not attempts:
                self.error(i, RULE, HIGH, "Assumption used outside a type of derivation that allows assumptions.")
                return
        else:
            attempts = [(form, cited_lines) for form in rule.forms]

        message = ""
        for form, lines in attempts:
            result = try_match(
                rule, form, d, i,
                context=self.context,
                cited_lines=lines,
                cited_subderivations=cited_subs,
                assumptions=self.assumptions,
                numbered_show_lines=self.numbered_show_lines,
            )
            if result.success:
                self._check_hypothesis_names(i, rule, form, result)
                return
            message = message or result.message

        if not message:
            message = self._wrong_form_message(rule, cited_lines, cited_subs)
        category = COMPLETION if line.is_show_line and "what is needed" in message else RULE
        self.error(i, category, HIGH, message)

    def _assumption_forms(self, i: int) -> list[tuple[Form, list[int]]]:
        """Forms licensing an assumption at line *i*, each with the show line it serves."""
        d = self.derivation
        out: list[tuple[Form, list[int]]] = []
        scope = d.line(i).scope
        for sub_index in [scope, *d.ancestors(scope)]:
            show = d.sub(sub_index).show_line
            if show is None:
                continue
            # only the innermost show line can license an assumption
            rule = self.state.get(show, _LineState()).rule
            if rule is None or not rule.show_rule:
                break
            for form in rule.forms:
                premises = (form.conclusion,) if form.conclusion is not None else ()
                for obligation in form.subderivations:
                    if obligation.allows is not None:
                        out.append((Form(premises=premises, conclusion=obligation.allows), [show]))
            break
        return out

    def _wrong_form_message(self, rule: RuleSchema, cited_lines: list[int], cited_subs: list[int]) -> str:
        message = "the line"
        verb = "is"
        if cited_lines:
            verb = "are"
            message += ", the lines it cites," if cited_subs else " and those it cites"
        if cited_subs:
            verb = "are"
            message += " and the subderivations it cites"
        return f"{message} {verb} not of the right form for {rule.name} to apply"

    def _check_hypothesis_names(self, i: int, rule: RuleSchema, form: Form, result: MatchResult) -> None:
        if not form.not_in_hypotheses:
            return
        own = _as_int(self.derivation.line(i).number)
        if own is None:
            return
        for key in form.not_in_hypotheses:
            candidates = result.assignment.get(key)
            if not candidates or key in result.vacuous_names:
                continue
            name = candidates[0]
            for n in range(1, own):
                j = self.line_map.get(str(n))
                if j is None or not self.line_available(n, i, silent=True):
                    continue
                hypothesis = self.derivation.line(j)
                h_rule = self.state.get(j, _LineState()).rule
                if not hypothesis.formula_text or not hypothesis.justification_text or h_rule is None:
                    continue
                if not (h_rule.premise_rule or h_rule.assumption_rule):
                    continue
                if name in self.context.parse(hypothesis.formula_text).names:
                    self.error(
                        i, RULE, HIGH,
                        f"the line applies the rule {rule.name} using the name “{name}”, which "
                        "occurs in an undischarged premise or assumption, and this is not allowed",
                    )
                    return

    # ------------------------------------------------------------------
    # dependencies and conclusion

    def _dependency_order(self, index: int = ROOT) -> list[str]:
        """Line numbers with every subderivation's lines before its show line."""
        d = self.derivation
        sub = d.sub(index)
        out: list[str] = []
        for part in sub.parts:
            if part.is_subderivation:
                out.extend(self._dependency_order(part.index))
                continue
            number = d.line(part.index).number
            if number is not None and self.line_map.get(number) == part.index:
                out.append(number)
        if sub.show_line is not None:
            number = d.line(sub.show_line).number
            if number is not None and self.line_map.get(number) == sub.show_line:
                out.append(number)
        return out

    def trace_dependencies(self) -> None:
        d = self.derivation
        for number in self._dependency_order():
            if self.errors.has_errors(number):
                continue
            i = self.line_map[number]
            line = d.line(i)
            state = self.state.get(i, _LineState())
            if line.is_show_line:
                incomplete = False
                has_error = False
                for j in self.sub_lines.get(line.scope, []):
                    if j == i:
                        continue
                    categories = self.errors.categories(d.line(j).number)
                    if not categories:
                        continue
                    if all(c == COMPLETION for c in categories):
                        incomplete = True
                        continue
                    self.errors.add(
                        number, DEPENDENCY, LOW,
                        "contains errors in its subderivation, so may not be correct",
                    )
                    has_error = True
                    break
                if incomplete and not has_error:
                    self.errors.add(number, COMPLETION, LOW, "depends on one or more incomplete subderivations")
                continue
            if any(n is not None and self.errors.has_errors(str(n)) for n in state.numbers):
                self.errors.add(number, DEPENDENCY, LOW, "depends on a line that contains errors, so may not be correct")
                continue
            for sub in state.cited_subderivations:
                if any(self.errors.has_errors(k) for k in self.sub_line_maps.get(sub, {})):
                    self.errors.add(
                        number, DEPENDENCY, LOW,
                        "depends on a subderivation that contains errors, so may not be correct",
                    )
                    break

    def check_conclusion(self) -> None:
        d = self.derivation
        for part in d.root.parts:
            if part.is_subderivation:
                show = d.sub(part.index).show_line
                if show is None:
                    continue
                candidate = d.line(show)
            else:
                candidate = d.line(part.index)
            if candidate.formula_text and self.context.parse(candidate.formula_text).normal == self.conclusion:
                return
        self.errors.add("1", COMPLETION, HIGH, "final conclusion of argument not shown")

    def weigh_errors(self) -> None:
        portion = 1.0
        for line in self.errors.lines_with_errors():
            worst = None
            for severity in SEVERITIES:
                if any(
                    r.severity == severity and r.category != DEPENDENCY
                    for r in self.errors.for_line(line)
                ):
                    worst = severity
                    break
            if worst is None:
                continue
            portion -= self.penalties[worst]
            if portion < 0:
                portion = 0.0
                break
        self.points_portion = portion


def check_derivation_structure(
    rules: RuleSet,
    derivation: Derivation | dict,
    premises: Sequence[str] = (),
    conclusion: str = "",
    **kwargs,
) -> CheckReport:
    """Check *derivation* (an arena or its wire dict); see :class:`DerivationChecker`."""
    if isinstance(derivation, dict):
        derivation = Derivation.from_dict(derivation)
    return DerivationChecker(rules, derivation, premises, conclusion, **kwargs).check()
