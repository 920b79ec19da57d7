"""Unification of rule schemas against proof lines.

A :class:`FormMatcher` decides whether one line of a derivation follows by
one :class:`~logicgrade.rules.Form` of a rule.  Matching runs in stages,
stopping at the first that fails:

1. the line's formula against the schematic conclusion;
2. the cited lines against the schematic premises, in every order;
3. the cited subderivations against the subderivation obligations, in
   every order, searching each subderivation's top-level lines;
4. identity-elimination term differences;
5. names barred from particular formulas;
6. names that must be new at the line.

The running *assignment* maps schema keys to what they matched: atomic
schemas (by normal form) and bound-variable letters map to strings, name
letters map to a tuple of candidate names.  Every attempt works on a copy
so a failed permutation never leaks bindings into the next one.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from itertools import permutations, product

from logicgrade.derivation import Derivation
from logicgrade.rules import Form, RuleSchema
from logicgrade.syntax import Formula, ParseContext

logger = logging.getLogger(__name__)

# stands for "some name not occurring in the formula" when a name
# metavariable is matched against a formula without names
DUMMY_NAME = "✪"

Assignment = dict[str, "str | tuple[str, ...]"]


@dataclass
class MatchResult:
    """Outcome of matching one form.

    Attributes:
        success: Whether the line fits the form.
        assignment: The confirmed assignment (empty on failure).
        message: Why the match failed, for hints.
        vacuous_names: Names standing in for vacuously substituted variables.
    """

    success: bool
    assignment: Assignment = field(default_factory=dict)
    message: str = ""
    vacuous_names: tuple[str, ...] = ()


class SchemaUnifier:
    """Extends assignments by unifying schemas with concrete formulas."""

    def __init__(self, context: ParseContext, form: Form | None = None) -> None:
        self.context = context
        self.form = form if form is not None else Form()
        self.vacuous: list[str] = []

    def parse(self, text: str) -> Formula:
        return self.context.parse(text)

    def extend(self, schema: Formula, f: Formula, assigns: Assignment) -> bool:
        """Try to extend *assigns* so that *schema* matches *f*.

        Mutates *assigns*; callers pass a copy when the attempt may fail.
        """
        notation = self.context.notation
        if schema.op is not None:
            if schema.op != f.op:
                return False
            if schema.bound_variable:
                if not f.bound_variable:
                    return False
                bound = assigns.get(schema.bound_variable)
                if bound is None:
                    assigns[schema.bound_variable] = f.bound_variable
                elif bound != f.bound_variable:
                    return False
            if schema.left is not None:
                if f.left is None or not self.extend(schema.left, f.left, assigns):
                    return False
            if schema.right is not None:
                if f.right is None or not self.extend(schema.right, f.right, assigns):
                    return False
            return True

        # atomic schema: the whole schema stands for the whole formula
        key = schema.normal
        if key in assigns:
            if assigns[key] != f.normal:
                return False
        else:
            assigns[key] = f.normal

        if schema.pletter == "=":
            if f.pletter != "=" or len(schema.terms) != len(f.terms):
                return False
            for schematic, actual in zip(schema.terms, f.terms):
                if notation.is_variable(schematic):
                    if schematic in assigns and assigns[schematic] != actual:
                        return False
                    assigns[schematic] = actual
                else:
                    if schematic in assigns and actual not in assigns[schematic]:
                        return False
                    assigns[schematic] = (actual,)

        substitutions = self.form.substitutions
        for t in schema.terms:
            if notation.is_variable(t):
                if t not in substitutions or t not in assigns:
                    continue
                name = substitutions[t]
                instance_key = schema.instantiate(t, name).normal
                if instance_key not in assigns or name not in assigns:
                    continue
                variable = assigns[t]
                if variable not in f.free_variables:
                    if f.normal == assigns[instance_key]:
                        self.vacuous.append(t)
                        continue
                    return False
                could_be = tuple(
                    c for c in assigns[name]
                    if f.instantiate(variable, c).normal == assigns[instance_key]  # type: ignore[arg-type]
                )
                if not could_be:
                    return False
                assigns[name] = could_be
                continue

            # every name in f, not just an atomic formula's own terms
            names = (DUMMY_NAME,) + tuple(dict.fromkeys(c for c in f.text if notation.is_constant(c)))
            if t in assigns:
                assigns[t] = tuple(c for c in assigns[t] if c in names)
            else:
                assigns[t] = names
            if not assigns[t]:
                return False
            for variable_key, target in substitutions.items():
                if target != t or variable_key not in assigns:
                    continue
                for key in list(assigns):
                    if key[0] != schema.pletter:
                        continue
                    general = self.parse(key)
                    if variable_key not in general.free_variables:
                        continue
                    if general.instantiate(variable_key, t).normal != schema.normal:
                        continue
                    general_instance = self.parse(assigns[key])  # type: ignore[arg-type]
                    variable = assigns[variable_key]
                    if variable not in general_instance.free_variables:
                        if general_instance.normal == f.normal:
                            self.vacuous.append(variable_key)
                            continue
                        return False
                    assigns[t] = tuple(
                        c for c in assigns[t]
                        if general_instance.instantiate(variable, c).normal == f.normal  # type: ignore[arg-type]
                    )
                    if not assigns[t]:
                        return False
        return True

    def is_vacuous_name(self, name: str) -> bool:
        """True if *name* only replaces a variable that was substituted vacuously."""
        return any(
            target == name and variable in self.vacuous
            for variable, target in self.form.substitutions.items()
        )


class FormMatcher(SchemaUnifier):
    """Matches one form of a rule against one line of a derivation.

    Args:
        rule: The rule cited.
        form: The form tried.
        derivation: The derivation the line belongs to.
        line: Index of the line in ``derivation.lines``.
        context: Parse context for the derivation's notation.
        cited_lines: Line indices cited, in citation order.
        cited_subderivations: Subderivation indices cited, in citation order.
        assumptions: Subderivation index to the normal forms of its hypotheses.
        numbered_show_lines: Whether show lines are numbered lines.
    """

    def __init__(
        self,
        rule: RuleSchema,
        form: Form,
        derivation: Derivation,
        line: int,
        *,
        context: ParseContext,
        cited_lines: Sequence[int] = (),
        cited_subderivations: Sequence[int] = (),
        assumptions: Mapping[int, Sequence[str]] | None = None,
        numbered_show_lines: bool = False,
    ) -> None:
        super().__init__(context, form)
        self.rule = rule
        self.derivation = derivation
        self.line = line
        self.cited_lines = list(cited_lines)
        self.cited_subderivations = list(cited_subderivations)
        self.assumptions = assumptions or {}
        self.numbered_show_lines = numbered_show_lines
        self.formula = self.formula_at(line)
        self.assigns: Assignment = {}
        self.message = ""

    def formula_at(self, index: int) -> Formula:
        return self.parse(self.derivation.line(index).formula_text)

    def result(self) -> MatchResult:
        ok = (
            self.check_conclusion()
            and self.check_premises()
            and self.check_subderivations()
            and self.check_differs_by()
            and self.check_restrictions()
        )
        if ok and not self.check_newness():
            self._note(f"does not use a new name as is required by {self.rule.name}")
            ok = False
        logger.debug("Match %s at line %d: %s", self.rule.name, self.line, ok)
        if not ok:
            return MatchResult(False, {}, self.message)
        vacuous = tuple(n for n in dict.fromkeys(self.form.substitutions.values()) if self.is_vacuous_name(n))
        return MatchResult(True, self.assigns, self.message, vacuous)

    def _note(self, message: str) -> None:
        self.message = f"{self.message}; {message}" if self.message else message

    def check_conclusion(self) -> bool:
        if self.form.conclusion is None:
            return True
        if not self.extend(self.parse(self.form.conclusion), self.formula, self.assigns):
            self.message = f"formula at this line not of the right form to result from {self.rule.name}"
            return False
        return True

    def check_premises(self) -> bool:
        schemas = [self.parse(p) for p in self.form.premises]
        if not schemas:
            return True
        cited = [self.formula_at(i) for i in self.cited_lines[: len(schemas)]]
        if cited:
            cited += [cited[0]] * (len(schemas) - len(cited))
            vacuous = list(self.vacuous)
            for order in permutations(range(len(cited))):
                attempt = dict(self.assigns)
                self.vacuous = list(vacuous)
                if all(self.extend(schema, cited[i], attempt) for schema, i in zip(schemas, order)):
                    self.assigns = attempt
                    return True
            self.vacuous = vacuous
        if self.rule.assumption_rule:
            self.message = "makes an assumption that is not allowed by the type of derivation"
        else:
            self.message = f"cited lines are not of the right form to support this line by {self.rule.name}"
        return False

    def _top_layer(self, sub: int, obligation) -> list[int]:
        d = self.derivation
        out = []
        for i in d.flattened(sub, numbered_show_lines=self.numbered_show_lines):
            if i == self.line:
                continue
            candidate = d.line(i)
            if candidate.is_show_line:
                if d.sub(candidate.scope).parent != sub:
                    continue
            elif candidate.scope != sub:
                continue
            elif obligation.show_required:
                continue
            out.append(i)
        return out

    def check_subderivations(self) -> bool:
        obligations = self.form.subderivations
        if not obligations:
            return True
        subs = self.cited_subderivations[: len(obligations)]
        found = False
        newness_failed = False
        if subs:
            subs += [subs[0]] * (len(obligations) - len(subs))
            vacuous = list(self.vacuous)
            for order in permutations(range(len(obligations))):
                attempt = dict(self.assigns)
                self.vacuous = list(vacuous)
                for obligation, position in zip(obligations, order):
                    sub = subs[position]
                    extended, stale_name = self._meet_obligation(obligation, sub, attempt)
                    newness_failed = newness_failed or stale_name
                    if extended is None:
                        break
                    attempt = extended
                else:
                    found = True
                    self.assigns = attempt
                    break
        if found:
            return True
        if self.derivation.line(self.line).is_show_line:
            message = (
                f"what is needed to complete a derivation by {self.rule.name} "
                "for this line not found in the subderivation"
            )
            if newness_failed:
                message += " — did you remember to use a new name?"
            if not self.message:
                self.message = message
        elif len(self.cited_subderivations) > 1:
            self.message = (
                "the cited subderivations do not contain what is necessary "
                f"to show this line by {self.rule.name}"
            )
        else:
            self.message = (
                "the cited subderivation does not contain what is necessary "
                f"to show this line by {self.rule.name}"
            )
        return False

    def _meet_obligation(self, obligation, sub: int, assigns: Assignment) -> tuple[Assignment | None, bool]:
        """Return the extended assignment (or None) and whether a newness check failed."""
        attempt = dict(assigns)
        for hypothesis in self.assumptions.get(sub, ()):
            if obligation.allows is None:
                return None, False
            if not self.extend(self.parse(obligation.allows), self.parse(hypothesis), attempt):
                return None, False
        schemas = [self.parse(n) for n in obligation.needs]
        candidates = self._top_layer(sub, obligation)
        vacuous = list(self.vacuous)
        stale_name = False
        for combo in product(candidates, repeat=len(schemas)):
            trial = dict(attempt)
            self.vacuous = list(vacuous)
            for schema, i in zip(schemas, combo):
                if not self.extend(schema, self.formula_at(i), trial):
                    break
                if not self._names_new(obligation.wants_as_new, trial, i):
                    stale_name = True
                    break
            else:
                return trial, stale_name
        self.vacuous = vacuous
        return None, stale_name

    def _names_new(self, names: Sequence[str], assigns: Assignment, line: int) -> bool:
        for n in names:
            candidates = assigns.get(n)
            if not candidates:
                continue
            if not self.is_new_at(candidates[0], line):
                return False
        return True

    def check_differs_by(self) -> bool:
        if self.form.differs_at_most_by is None:
            return True
        to_key, from_key, new_key, old_key = self.form.differs_at_most_by
        if any(k not in self.assigns for k in (to_key, from_key, new_key, old_key)):
            return True
        changed = self.parse(self.assigns[to_key])  # type: ignore[arg-type]
        original = self.parse(self.assigns[from_key])  # type: ignore[arg-type]
        new_names: list[str] = []
        old_names: list[str] = []
        for new in self.assigns[new_key]:
            fitting = [old for old in self.assigns[old_key] if changed.differs_at_most_by(original, new, old)]
            if fitting:
                new_names.append(new)
                old_names.extend(o for o in fitting if o not in old_names)
        self.assigns[new_key] = tuple(new_names)
        self.assigns[old_key] = tuple(old_names)
        if not new_names:
            self._note(
                f"the formula {self.assigns[to_key]} does not differ from {self.assigns[from_key]} "
                "only by the substitution of the one term for the other"
            )
            return False
        return True

    def check_restrictions(self) -> bool:
        for name, barred_schemas in self.form.cannot_be_in.items():
            if name not in self.assigns or self.is_vacuous_name(name):
                continue
            for candidate in self.assigns[name]:
                for barred in barred_schemas:
                    if barred not in self.assigns:
                        continue
                    if candidate in self.parse(self.assigns[barred]).names:  # type: ignore[arg-type]
                        self._note(
                            f"applies the rule {self.rule.name} using the term “{candidate}” "
                            "in a line it is not allowed to occur in for that rule to apply."
                        )
                        return False
        return True

    def check_newness(self) -> bool:
        for n in self.form.must_be_new:
            candidates = self.assigns.get(n)
            if not candidates:
                continue
            if not self.is_new_at(candidates[0], self.line):
                return False
        return True

    def is_new_at(self, name: str, line: int) -> bool:
        """True if *name* occurs in no line available before *line*.

        Walks back through preceding parts of each scope, then up into the
        parent scope; show lines of passed subderivations and of enclosing
        scopes are checked too.
        """
        d = self.derivation
        current = d.line(line).ref
        while True:
            owner = d.owner(current)
            if owner is None:
                return True
            previous = d.previous_part(current)
            if previous is None:
                show = d.sub(owner).show_line
                if show is not None and show != line and name in self.formula_at(show).names:
                    return False
                current = d.sub(owner).ref
                continue
            current = previous
            if current.is_subderivation:
                show = d.sub(current.index).show_line
                if show is not None and name in self.formula_at(show).names:
                    return False
                continue
            if name in self.formula_at(current.index).names:
                return False


def try_match(
    rule: RuleSchema,
    form: Form,
    derivation: Derivation,
    line: int,
    **kwargs,
) -> MatchResult:
    """Match *form* of *rule* against *line*; see :class:`FormMatcher`."""
    return FormMatcher(rule, form, derivation, line, **kwargs).result()


def replacement_distance(context: ParseContext, target: Formula, source: Formula, form: Form) -> int:
    """Number of positions at which *target* results from *source* by *form*, or -1.

    Only the count matters for callers: a replacement rule applies when it
    is exactly one.
    """
    if target.normal == source.normal:
        return 0
    assert form.replaces is not None
    a, b = (context.parse(s) for s in form.replaces)
    for conclusion, premise in ((b, a), (a, b)):
        unifier = SchemaUnifier(context, form)
        assigns: Assignment = {}
        if unifier.extend(conclusion, target, assigns) and unifier.extend(premise, source, assigns):
            return 1
    if target.type != source.type or target.op is None:
        return -1
    if target.bound_variable and target.bound_variable != source.bound_variable:
        return -1
    if target.right is None or source.right is None:
        return -1
    right = replacement_distance(context, target.right, source.right, form)
    if right == -1 or target.is_monadic:
        return right
    if target.left is None or source.left is None:
        return -1
    left = replacement_distance(context, target.left, source.left, form)
    if left == -1:
        return -1
    return left + right


def check_replacement(
    rule: RuleSchema,
    context: ParseContext,
    formula: Formula,
    cited: Sequence[Formula],
) -> MatchResult:
    """Whether *formula* follows from the first cited formula by one replacement."""
    if not cited:
        return MatchResult(False, message="does not cite a line to be equivalent with")
    for form in rule.forms:
        if form.replaces is None:
            continue
        if replacement_distance(context, formula, cited[0], form) == 1:
            return MatchResult(True)
    return MatchResult(
        False,
        message=f"line is not of the right form to result from the cited line by {rule.name}",
    )
