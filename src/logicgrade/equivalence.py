"""Formula equivalence by semantic tableaux.

To test P against Q, two trunks are grown: one from ``P, ¬Q`` and one
from ``Q, ¬P``.  The formulas are equivalent iff every branch of both
trunks closes.

A branch keeps three work queues, tried in order:

    high      non-branching rules (∧, ¬∨, ¬→, ¬¬, literals)
    medium    rules introducing a new name (∃, ¬∀)
    low       branching rules (∨, →, ↔, ¬∧, ¬↔)

plus a pool of universals (∀, ¬∃) instantiated only when the queues are
empty, cycling so that the least-used universal gets the next term.
A branch closes when it holds a formula and its negation, ``⊥`` or
``¬(t = t)``.  Identity has no other rules, so a branch left open with an
identity on it gives UNDECIDED rather than OPEN.

Three modes are available:

* FULL: the real first-order tableau, with a small reserve of fresh
  names; running out of names gives UNDECIDED.
* ABBREVIATED: quantifiers are ignored and atoms compared by letter, an
  abbreviated truth table.  An open result proves non-equivalence.
* SMALL: a domain of a few individuals, so ∀ is a conjunction and ∃ a
  disjunction of instances.  An open result proves non-equivalence.

Every growth step checks a wall-clock deadline and gives up with UNDECIDED
once it has passed.  The tree is explored with an explicit stack, so deep
branches do not recurse.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from logicgrade.equivdb import EquivalenceDatabase, add_equivalent, known_equivalents
from logicgrade.notation import NOT
from logicgrade.syntax import (
    ATOM,
    BICOND,
    BOT,
    CONJ,
    DISJ,
    EXIST,
    IMPL,
    NEG,
    UNIV,
    Formula,
    ParseContext,
)

logger = logging.getLogger(__name__)

FULL = "full"
ABBREVIATED = "abbreviated"
SMALL = "small"
MODES = (FULL, ABBREVIATED, SMALL)

GROWING = "growing"
CLOSED = "closed"
OPEN = "open"
UNDECIDED = "undecided"
_SPLIT = "split"

HIGH = "high"
MEDIUM = "medium"
LOW = "low"
UNIVERSAL = "universal"
PRIORITIES = (HIGH, MEDIUM, LOW)

# Result methods
EXACT = "exact"
DATABASE = "database"
TABLEAU = "tableau"
TRUTH_TABLE = "truth-table"
SMALL_DOMAIN = "small-domain"
INDETERMINATE = "indeterminate"

DEFAULT_TIME_BUDGET = 5.0
DEFAULT_TERM_LIMIT = 2
DEFAULT_DOMAIN_SIZE = 3

Groups = list[list[str]]


@dataclass
class TableauBranch:
    """State of one branch.

    Attributes:
        terms: Names in use on the branch.
        reserve: Fresh names still available (FULL mode).
        queues: Pending formulas by priority.
        processed: Formulas already decomposed.
        universals: Universal formula to the terms it has been applied to.
        status: GROWING, CLOSED, OPEN or UNDECIDED.
    """

    terms: list[str]
    reserve: list[str]
    queues: dict[str, list[str]] = field(default_factory=lambda: {p: [] for p in PRIORITIES})
    processed: list[str] = field(default_factory=list)
    universals: dict[str, list[str]] = field(default_factory=dict)
    status: str = GROWING

    def copy(self) -> TableauBranch:
        return TableauBranch(
            terms=list(self.terms),
            reserve=list(self.reserve),
            queues={p: list(q) for p, q in self.queues.items()},
            processed=list(self.processed),
            universals={u: list(used) for u, used in self.universals.items()},
            status=self.status,
        )


class Tableau:
    """One tableau run in a given mode.

    Args:
        context: Parse context of the formulas.
        mode: FULL, ABBREVIATED or SMALL.
        deadline: Clock reading after which the run gives up.
        clock: Time source, ``time.monotonic`` by default.
        term_limit: Fresh names available in FULL mode.
        domain_size: Minimum domain size in SMALL mode.
    """

    def __init__(
        self,
        context: ParseContext,
        mode: str = FULL,
        *,
        deadline: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        term_limit: int = DEFAULT_TERM_LIMIT,
        domain_size: int = DEFAULT_DOMAIN_SIZE,
    ) -> None:
        if mode not in MODES:
            raise ValueError(f"Unknown tableau mode {mode!r}")
        self.context = context
        self.mode = mode
        self.clock = clock
        self.deadline = deadline if deadline is not None else clock() + DEFAULT_TIME_BUDGET
        self.term_limit = term_limit
        self.domain_size = domain_size
        self.symbols = context.notation.symbols

    def parse(self, text: str) -> Formula:
        return self.context.parse(text)

    def negation(self, f: Formula) -> str:
        return self.symbols[NOT] + f.wrap_if_needed()

    def run(self, sprouts: Sequence[Sequence[str]]) -> str:
        """Grow the tree from the trunks in *sprouts*; CLOSED, OPEN or UNDECIDED."""
        start = TableauBranch(*self._initial_terms(sprouts))
        jobs = [(start if i == 0 else start.copy(), list(group)) for i, group in enumerate(sprouts)]
        stack = list(reversed(jobs))
        while stack:
            branch, group = stack.pop()
            outcome = self._explore(branch, group, stack)
            if outcome in (OPEN, UNDECIDED):
                logger.debug("Tableau %s: %s", self.mode, outcome)
                return outcome
        logger.debug("Tableau %s: %s", self.mode, CLOSED)
        return CLOSED

    def _initial_terms(self, sprouts: Sequence[Sequence[str]]) -> tuple[list[str], list[str]]:
        if self.mode == ABBREVIATED:
            return [], []
        n = self.context.notation
        terms: list[str] = []
        for group in sprouts:
            for text in group:
                for c in text:
                    if n.is_constant(c) and c not in terms:
                        terms.append(c)
        reserve: list[str] = []
        if self.mode == SMALL:
            for c in n.fresh_constants(set(terms)):
                if len(terms) >= self.domain_size:
                    break
                terms.append(c)
        else:
            reserve = n.fresh_constants(set(terms))[: self.term_limit]
        return terms, reserve

    def _explore(self, branch: TableauBranch, group: Sequence[str], stack: list) -> str:
        """Grow *branch* until it closes, stays open, gives up or splits."""
        if self._add(branch, group):
            return CLOSED
        while True:
            if self.clock() > self.deadline:
                branch.status = UNDECIDED
                return UNDECIDED
            s = self._next(branch)
            if branch.status != GROWING:
                return branch.status
            if s is None:
                # identity has no rules here, so such a branch may still be unsatisfiable
                outcome = UNDECIDED if self._uses_identity(branch) else OPEN
                branch.status = outcome
                return outcome
            result = self._apply(branch, s)
            if result in (CLOSED, UNDECIDED):
                branch.status = result  # type: ignore[assignment]
                return result  # type: ignore[return-value]
            if not result:
                continue
            if len(result) == 1:
                if self._add(branch, result[0]):
                    return CLOSED
                continue
            children = [(branch if i == 0 else branch.copy(), g) for i, g in enumerate(result)]
            stack.extend(reversed(children))
            return _SPLIT

    def _add(self, branch: TableauBranch, group: Sequence[str]) -> bool:
        """Queue each formula of *group*; True if the branch closed."""
        for text in group:
            priority = self.priority(text)
            if priority == UNIVERSAL:
                branch.universals.setdefault(text, [])
            else:
                branch.queues[priority].append(text)
            if self.contradicts(branch, text):
                branch.processed.append(text)
                branch.status = CLOSED
                return True
        return False

    def _next(self, branch: TableauBranch) -> str | None:
        for priority in PRIORITIES:
            queue = branch.queues[priority]
            while queue:
                text = queue.pop(0)
                if text in branch.processed:
                    continue
                branch.processed.append(text)
                return text
        if self.mode != FULL:
            return None
        if not branch.terms:
            if not branch.reserve:
                branch.status = UNDECIDED
                return None
            branch.terms.append(branch.reserve.pop(0))
        for n in range(1, len(branch.terms) + 1):
            for universal, used in branch.universals.items():
                if len(used) < n:
                    return universal
        return None

    def _incomplete(self, f: Formula) -> bool:
        if f.op is None or f.type == BOT:
            return False
        return f.right is None or (f.is_binary and f.left is None)

    def _apply(self, branch: TableauBranch, text: str) -> Groups | str | None:
        f = self.parse(text)
        if self._incomplete(f):
            return UNDECIDED
        if f.type == CONJ:
            return [[f.left.normal, f.right.normal]]  # type: ignore[union-attr]
        if f.type == DISJ:
            return [[f.left.normal], [f.right.normal]]  # type: ignore[union-attr]
        if f.type == IMPL:
            return [[self.negation(f.left)], [f.right.normal]]  # type: ignore[arg-type, union-attr]
        if f.type == BICOND:
            return [
                [f.left.normal, f.right.normal],  # type: ignore[union-attr]
                [self.negation(f.left), self.negation(f.right)],  # type: ignore[arg-type]
            ]
        if f.type == BOT:
            return CLOSED
        if f.type == UNIV:
            return self._every(branch, text, f, negated=False)
        if f.type == EXIST:
            return self._some(branch, f, negated=False)
        if f.type == NEG:
            r = f.right
            assert r is not None
            if self._incomplete(r):
                return UNDECIDED
            if r.type == CONJ:
                return [[self.negation(r.left)], [self.negation(r.right)]]  # type: ignore[arg-type]
            if r.type == DISJ:
                return [[self.negation(r.left), self.negation(r.right)]]  # type: ignore[arg-type]
            if r.type == IMPL:
                return [[r.left.normal, self.negation(r.right)]]  # type: ignore[union-attr, arg-type]
            if r.type == BICOND:
                return [
                    [r.left.normal, self.negation(r.right)],  # type: ignore[union-attr, arg-type]
                    [self.negation(r.left), r.right.normal],  # type: ignore[union-attr, arg-type]
                ]
            if r.type == NEG:
                return [[r.right.normal]]  # type: ignore[union-attr]
            if r.type == BOT:
                return None
            if r.type == UNIV:
                return self._some(branch, r, negated=True)
            if r.type == EXIST:
                return self._every(branch, text, r, negated=True)
        # a literal
        if f.type == NEG and _self_identity(f.right):
            return CLOSED
        if self.contradicts(branch, text):
            return CLOSED
        return None

    def _uses_identity(self, branch: TableauBranch) -> bool:
        for text in branch.processed:
            f = self.parse(text)
            atom = f.right if f.type == NEG else f
            if atom is not None and atom.is_atomic and atom.pletter == "=":
                return True
        return False

    def _instance(self, q: Formula, term: str, negated: bool) -> str:
        assert q.right is not None and q.bound_variable is not None
        instance = q.right.instantiate(q.bound_variable, term)
        return self.negation(instance) if negated else instance.normal

    def _every(self, branch: TableauBranch, key: str, q: Formula, negated: bool) -> Groups | str | None:
        """Universal, or negated existential, *q*."""
        assert q.right is not None
        if self.mode == ABBREVIATED:
            return [[self.negation(q.right) if negated else q.right.normal]]
        if not q.bound_variable:
            return UNDECIDED
        if self.mode == SMALL:
            return [[self._instance(q, t, negated) for t in branch.terms]]
        used = branch.universals.setdefault(key, [])
        for t in branch.terms:
            if t not in used:
                used.append(t)
                return [[self._instance(q, t, negated)]]
        return None

    def _some(self, branch: TableauBranch, q: Formula, negated: bool) -> Groups | str | None:
        """Existential, or negated universal, *q*."""
        assert q.right is not None
        if self.mode == ABBREVIATED:
            return [[self.negation(q.right) if negated else q.right.normal]]
        if not q.bound_variable:
            return UNDECIDED
        if self.mode == SMALL:
            return [[self._instance(q, t, negated)] for t in branch.terms]
        if not branch.reserve:
            return UNDECIDED
        t = branch.reserve.pop(0)
        branch.terms.append(t)
        return [[self._instance(q, t, negated)]]

    def priority(self, text: str) -> str:
        f = self.parse(text)
        t = f.type
        if t in (ATOM, CONJ, BOT):
            return HIGH
        if t in (DISJ, IMPL, BICOND):
            return LOW
        if t == EXIST:
            return {FULL: MEDIUM, ABBREVIATED: HIGH}.get(self.mode, LOW)
        if t == UNIV:
            return UNIVERSAL if self.mode == FULL else HIGH
        if t == NEG and f.right is not None:
            r = f.right.type
            if r in (ATOM, IMPL, DISJ, BOT, NEG):
                return HIGH
            if r in (CONJ, BICOND):
                return LOW
            if r == EXIST:
                return UNIVERSAL if self.mode == FULL else HIGH
            if r == UNIV:
                return {FULL: MEDIUM, ABBREVIATED: HIGH}.get(self.mode, LOW)
        return LOW

    def contradicts(self, branch: TableauBranch, text: str) -> bool:
        """Whether *text* contradicts a processed formula or a pooled universal."""
        f = self.parse(text)
        negated = self.negation(f)
        for other_text in [*branch.processed, *branch.universals]:
            other = self.parse(other_text)
            if other.normal == negated or f.normal == self.negation(other):
                return True
            if self.mode == ABBREVIATED and other_text in branch.processed:
                # atoms with the same letter count as the same sentence
                if _negates_letter(f, other) or _negates_letter(other, f):
                    return True
        return False


def _self_identity(f: Formula | None) -> bool:
    """True for t = t."""
    return f is not None and f.is_atomic and f.pletter == "=" and len(f.terms) == 2 and f.terms[0] == f.terms[1]


def _negates_letter(f: Formula, atom: Formula) -> bool:
    return (
        atom.is_atomic
        and atom.pletter is not None
        and f.type == NEG
        and f.right is not None
        and f.right.pletter == atom.pletter
    )


@dataclass(frozen=True)
class EquivalenceResult:
    """Outcome of an equivalence test.

    ``determinate`` False means no method could decide; ``equiv`` is then
    False and carries no information.
    """

    equiv: bool
    determinate: bool
    method: str

    def to_dict(self) -> dict:
        return {"equiv": self.equiv, "determinate": self.determinate, "method": self.method}


class EquivalenceProver:
    """Decides equivalence by exact match, known equivalents, then tableaux.

    Strategies, first determinate answer wins:

    1. equal normal forms;
    2. the equivalence database, in either direction;
    3. the FULL tableau;
    4. the ABBREVIATED tableau (non-equivalence only);
    5. the SMALL tableau (non-equivalence only).

    Equivalences proved by the tableau are recorded in the database.

    Args:
        context: Parse context for the notation in use.
        database: Known-equivalents store, or None to skip it.
        time_budget: Seconds each tableau may run.
        term_limit: Fresh names for the FULL tableau.
        domain_size: Domain size for the SMALL tableau.
        clock: Time source.
    """

    def __init__(
        self,
        context: ParseContext | None = None,
        *,
        database: EquivalenceDatabase | None = None,
        time_budget: float = DEFAULT_TIME_BUDGET,
        term_limit: int = DEFAULT_TERM_LIMIT,
        domain_size: int = DEFAULT_DOMAIN_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if time_budget < 0:
            raise ValueError("time_budget must be non-negative")
        if term_limit < 1 or domain_size < 1:
            raise ValueError("term_limit and domain_size must be at least 1")
        self.context = context if context is not None else ParseContext()
        self.database = database
        self.time_budget = time_budget
        self.term_limit = term_limit
        self.domain_size = domain_size
        self.clock = clock

    def _formula(self, f: Formula | str) -> Formula:
        return self.context.parse(f) if isinstance(f, str) else f

    def sprouts(self, p: Formula, q: Formula) -> list[list[str]]:
        not_ = self.context.notation.symbols[NOT]
        return [
            [p.normal, not_ + q.wrap_if_needed()],
            [q.normal, not_ + p.wrap_if_needed()],
        ]

    def tableau(self, mode: str, deadline: float | None = None) -> Tableau:
        return Tableau(
            self.context,
            mode,
            deadline=deadline if deadline is not None else self.clock() + self.time_budget,
            clock=self.clock,
            term_limit=self.term_limit,
            domain_size=self.domain_size,
        )

    def equivalent(
        self,
        p: Formula | str,
        q: Formula | str,
        *,
        deadline: float | None = None,
    ) -> EquivalenceResult:
        """Test *p* and *q* for equivalence.

        A *deadline* (a reading of the prover's clock) bounds every tableau;
        without one each tableau gets its own ``time_budget``.
        """
        p, q = self._formula(p), self._formula(q)
        if p.normal == q.normal:
            return self._result(p, q, EquivalenceResult(True, True, EXACT))
        if self.database is not None and self._known(p, q):
            return self._result(p, q, EquivalenceResult(True, True, DATABASE))

        sprouts = self.sprouts(p, q)
        outcome = self.tableau(FULL, deadline).run(sprouts)
        if outcome != UNDECIDED:
            equiv = outcome == CLOSED
            if equiv:
                self._record(p, q)
            return self._result(p, q, EquivalenceResult(equiv, True, TABLEAU))

        for mode, method in ((ABBREVIATED, TRUTH_TABLE), (SMALL, SMALL_DOMAIN)):
            if self.tableau(mode, deadline).run(sprouts) == OPEN:
                return self._result(p, q, EquivalenceResult(False, True, method))
        return self._result(p, q, EquivalenceResult(False, False, INDETERMINATE))

    def _result(self, p: Formula, q: Formula, result: EquivalenceResult) -> EquivalenceResult:
        logger.debug(
            "Equivalence %s / %s: equiv=%s determinate=%s method=%s",
            p.normal, q.normal, result.equiv, result.determinate, result.method,
        )
        return result

    def _known(self, p: Formula, q: Formula) -> bool:
        assert self.database is not None
        if q.normal in known_equivalents(self.database, p):
            return True
        return p.normal in self.database.load(q.normal)

    def _record(self, p: Formula, q: Formula) -> None:
        if self.database is None:
            return
        for a, b in ((p, q), (q, p)):
            known_equivalents(self.database, a)
            add_equivalent(self.database, a.normal, b.normal)


def equivalent(p: str, q: str, notation: str = "cambridge", **kwargs) -> EquivalenceResult:
    """Test two formula strings for equivalence with a throwaway prover."""
    return EquivalenceProver(ParseContext(notation), **kwargs).equivalent(p, q)
