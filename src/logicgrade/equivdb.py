"""Store of known equivalents, keyed by canonical formula text.

A database maps a formula's normal form to a list of normal forms known to
be equivalent to it.  Two implementations are provided:

* :class:`MemoryEquivalenceDatabase`, a dict for a single process;
* :class:`JSONEquivalenceDatabase`, one JSON file per key under a
  directory, shared between processes.

Writes are set additions: saving a list that already holds an entry
changes nothing, so two graders racing to record the same equivalence end
in the same state.  Writes are not locked; a concurrent read-modify-write
may drop the other writer's addition, which only costs a later tableau run.
Each file is replaced whole, and a file that cannot be read back is
treated as empty.

:func:`known_equivalents` seeds an absent key with the equivalents found by
:func:`proliferate_equivalents`: De Morgan's laws, double negation,
quantifier negation and distribution, conditional exchange and
contraposition, biconditional expansions, idempotence, commutation of
∧/∨/↔ and renaming of bound variables, applied recursively.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Protocol

from logicgrade.notation import AND, EXISTS, FALSUM, FORALL, IFF, IFTHEN, NOT, OR
from logicgrade.syntax import Formula, ParseContext

logger = logging.getLogger(__name__)

# Upper bound on equivalents generated for one formula
MAX_EQUIVALENTS = 200


class EquivalenceDatabase(Protocol):
    """Key-value collaborator for known equivalents."""

    def load(self, key: str) -> list[str]: ...

    def save(self, key: str, equivalents: Sequence[str]) -> None: ...


class MemoryEquivalenceDatabase:
    """In-process equivalence store."""

    def __init__(self) -> None:
        self._store: dict[str, list[str]] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)

    def load(self, key: str) -> list[str]:
        return list(self._store.get(key, ()))

    def save(self, key: str, equivalents: Sequence[str]) -> None:
        self._store[key] = list(equivalents)


class JSONEquivalenceDatabase:
    """Equivalence store with one JSON file per formula.

    File names are the SHA-1 of the key, since formulas contain characters
    that are awkward in paths.  Each file holds
    ``{"formula": key, "equivalents": [...]}``.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def __repr__(self) -> str:
        return f"JSONEquivalenceDatabase({str(self.directory)!r})"

    def __contains__(self, key: str) -> bool:
        return self.path_for(key).exists()

    def path_for(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def load(self, key: str) -> list[str]:
        """Equivalents on file for *key*; an unreadable file counts as empty."""
        path = self.path_for(key)
        if not path.exists():
            return []
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable equivalence file %s: %s", path, e)
            return []
        if not isinstance(data, dict) or data.get("formula") != key:
            raise ValueError(f"Equivalence file {path} does not belong to {key!r}")
        logger.debug("Loaded %d equivalents of %s from %s", len(data.get("equivalents", [])), key, path)
        return list(data.get("equivalents", []))

    def save(self, key: str, equivalents: Sequence[str]) -> None:
        """Write the file for *key* whole, so readers never see a partial one."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=self.directory, suffix=".tmp", delete=False
        ) as f:
            json.dump({"formula": key, "equivalents": list(equivalents)}, f, indent=2, ensure_ascii=False)
        os.replace(f.name, path)
        logger.debug("Saved %d equivalents of %s to %s", len(equivalents), key, path)


def add_equivalent(db: EquivalenceDatabase, key: str, other: str) -> bool:
    """Record *other* as equivalent to *key*; returns False if already known."""
    known = db.load(key)
    if other in known:
        return False
    db.save(key, [*known, other])
    return True


def known_equivalents(
    db: EquivalenceDatabase,
    formula: Formula,
    *,
    limit: int = MAX_EQUIVALENTS,
) -> list[str]:
    """Equivalents of *formula* on record, generating and saving them if absent."""
    known = db.load(formula.normal)
    if known:
        return known
    generated = [f.normal for f in proliferate_equivalents(formula, limit=limit)]
    if generated:
        db.save(formula.normal, generated)
    return generated


def proliferate_equivalents(formula: Formula, *, limit: int = MAX_EQUIVALENTS) -> list[Formula]:
    """Formulas provably equivalent to *formula* by common transformations.

    The result includes *formula* itself (as the trivial rewrite) and is
    cut off at *limit* entries.
    """
    if formula.context is None:
        raise ValueError("Formula was not created by a ParseContext")
    if not formula.wellformed:
        return []
    found = _Proliferator(formula.context, limit).run(formula, {})
    logger.debug("Proliferated %d equivalents of %s", len(found), formula.normal)
    return found


class _Proliferator:
    def __init__(self, context: ParseContext, limit: int) -> None:
        self.context = context
        self.limit = limit
        self.sym = context.notation.symbols
        self.swappable = context.notation.variable_chars[:3]

    def parse(self, text: str) -> Formula:
        return self.context.parse(text)

    def neg(self, f: Formula) -> Formula:
        return self.parse(self.sym[NOT] + f.wrap_if_needed())

    def binary(self, left: Formula, op: str, right: Formula) -> Formula:
        return self.parse(f"{left.wrap_if_needed()} {op} {right.wrap_if_needed()}")

    def quantified(self, op: str, variable: str, body: Formula) -> Formula:
        return self.parse(f"{op}{variable}{body.wrap_if_needed()}")

    def union(self, into: list[Formula], items: Iterable[Formula]) -> list[Formula]:
        seen = {f.normal for f in into}
        for f in items:
            if len(into) >= self.limit:
                break
            if f.wellformed and f.normal not in seen:
                seen.add(f.normal)
                into.append(f)
        return into

    def combine(self, f: Formula, g: Formula, op: str, switches: dict[str, str]) -> list[Formula]:
        results: list[Formula] = []
        left_equivalents = self.run(f, switches)
        right_equivalents = self.run(g, switches)
        symmetric = op in (self.sym[AND], self.sym[OR], self.sym[IFF])
        for fe in left_equivalents:
            for ge in right_equivalents:
                if len(results) >= self.limit:
                    return results
                self.union(results, [self.binary(fe, op, ge)])
                if symmetric:
                    self.union(results, [self.binary(ge, op, fe)])
        return results

    def run(self, f: Formula, switches: dict[str, str]) -> list[Formula]:
        s = self.sym
        if f.is_atomic:
            return [self.parse(f.normal.translate(str.maketrans(switches)))]
        if f.op == s[FALSUM]:
            return [f]
        if f.op == s[NOT]:
            return self._negation(f, switches)
        if f.is_quantified:
            return self._quantified(f, switches)
        if f.is_binary:
            return self._binary(f, switches)
        return []

    def _negation(self, f: Formula, switches: dict[str, str]) -> list[Formula]:
        s = self.sym
        r = f.right
        if r is None:
            return []
        if r.is_atomic:
            return [self.parse(f.normal.translate(str.maketrans(switches)))]
        if r.op == s[FALSUM]:
            return [f]
        if r.right is None:
            return []
        equivs = [self.neg(w) for w in self.run(r, switches)]

        if r.op == s[NOT]:
            # ¬¬p :: p
            return self.union(equivs, self.run(r.right, switches))
        if r.op == s[FORALL] and r.bound_variable:
            # ¬∀x :: ∃x¬
            return self.union(
                equivs, self.run(self.quantified(s[EXISTS], r.bound_variable, self.neg(r.right)), switches)
            )
        if r.op == s[EXISTS] and r.bound_variable:
            # ¬∃x :: ∀x¬
            return self.union(
                equivs, self.run(self.quantified(s[FORALL], r.bound_variable, self.neg(r.right)), switches)
            )
        if r.left is None:
            return equivs
        if r.op == s[AND]:
            # ¬(p ∧ q) :: ¬p ∨ ¬q and p → ¬q
            self.union(equivs, self.run(self.binary(self.neg(r.left), s[OR], self.neg(r.right)), switches))
            return self.union(equivs, self.run(self.binary(r.left, s[IFTHEN], self.neg(r.right)), switches))
        if r.op == s[OR]:
            # ¬(p ∨ q) :: ¬p ∧ ¬q
            return self.union(equivs, self.run(self.binary(self.neg(r.left), s[AND], self.neg(r.right)), switches))
        if r.op == s[IFTHEN]:
            # ¬(p → q) :: p ∧ ¬q
            return self.union(equivs, self.run(self.binary(r.left, s[AND], self.neg(r.right)), switches))
        if r.op == s[IFF]:
            # ¬(p ↔ q) :: ¬p ↔ q and (p ∨ q) ∧ ¬(p ∧ q)
            self.union(equivs, self.run(self.binary(self.neg(r.left), s[IFF], r.right), switches))
            either = self.binary(r.left, s[OR], r.right)
            not_both = self.neg(self.binary(r.left, s[AND], r.right))
            return self.union(equivs, self.combine(either, not_both, s[AND], switches))
        return equivs

    def _quantified(self, f: Formula, switches: dict[str, str]) -> list[Formula]:
        s = self.sym
        r = f.right
        v = f.bound_variable
        if r is None or v is None:
            return []
        op = f.op or ""
        equivs = [self.quantified(op, switches.get(v, v), w) for w in self.run(r, switches)]

        if r.is_binary and r.left is not None and r.right is not None:
            if r.op in (s[AND], s[OR], s[IFTHEN]) and v not in r.left.free_variables:
                # ∀x(P ∘ Fx) :: P ∘ ∀xFx, never over ↔
                moved = self.binary(r.left, r.op or "", self.quantified(op, v, r.right))
                self.union(equivs, self.run(moved, switches))
            if v not in r.right.free_variables:
                if r.op in (s[AND], s[OR]):
                    # ∀x(Fx ∘ P) :: ∀xFx ∘ P
                    moved = self.binary(self.quantified(op, v, r.left), r.op or "", r.right)
                    self.union(equivs, self.run(moved, switches))
                elif r.op == s[IFTHEN]:
                    # ∀x(Fx → P) :: ∃xFx → P and dually
                    dual = s[EXISTS] if op == s[FORALL] else s[FORALL]
                    moved = self.binary(self.quantified(dual, v, r.left), r.op, r.right)
                    self.union(equivs, self.run(moved, switches))
            if (op == s[FORALL] and r.op == s[AND]) or (op == s[EXISTS] and r.op == s[OR]):
                # ∀x(Fx ∧ Gx) :: ∀xFx ∧ ∀xGx; ∃x(Fx ∨ Gx) :: ∃xFx ∨ ∃xGx
                split = self.binary(self.quantified(op, v, r.left), r.op, self.quantified(op, v, r.right))
                self.union(equivs, self.run(split, switches))

        if v not in r.free_variables:
            # vacuous quantifier
            self.union(equivs, self.run(r, switches))

        if v not in switches:
            for other in self.swappable:
                if other in switches or other == v or other in f.free_variables:
                    continue
                self.union(equivs, self.run(f, {**switches, v: other, other: v}))
        return equivs

    def _binary(self, f: Formula, switches: dict[str, str]) -> list[Formula]:
        s = self.sym
        left, right, op = f.left, f.right, f.op or ""
        if left is None or right is None:
            return []
        equivs = self.combine(left, right, op, switches)

        if op == s[OR] and left.op == s[NOT] and left.right is not None:
            # ¬p ∨ q :: p → q
            self.union(equivs, self.combine(left.right, right, s[IFTHEN], switches))
        if op == s[IFTHEN] and left.op == s[NOT] and left.right is not None:
            # ¬p → q :: p ∨ q
            self.union(equivs, self.combine(left.right, right, s[OR], switches))
        if op == s[IFTHEN]:
            # p → q :: ¬q → ¬p
            self.union(equivs, self.combine(self.neg(right), self.neg(left), s[IFTHEN], switches))
        if op == s[IFF] and left.op == s[NOT] and left.right is not None:
            # ¬p ↔ q :: p ↔ ¬q
            self.union(equivs, self.combine(left.right, self.neg(right), s[IFF], switches))
        if op == s[IFF]:
            # p ↔ q :: (p → q) ∧ (q → p) and (p ∧ q) ∨ ¬(p ∨ q)
            there = self.binary(left, s[IFTHEN], right)
            back = self.binary(right, s[IFTHEN], left)
            self.union(equivs, self.combine(there, back, s[AND], switches))
            both = self.binary(left, s[AND], right)
            neither = self.neg(self.binary(left, s[OR], right))
            self.union(equivs, self.combine(both, neither, s[OR], switches))
        if op in (s[AND], s[OR]) and left.normal == right.normal:
            # p ∧ p :: p
            self.union(equivs, self.run(left, switches))
        if op == s[IFTHEN] and left.op == s[NOT] and left.right is not None and left.right.normal == right.normal:
            # ¬p → p :: p
            self.union(equivs, self.run(right, switches))
        if op == s[IFTHEN] and right.op == s[NOT] and right.right is not None and left.normal == right.right.normal:
            # p → ¬p :: ¬p
            self.union(equivs, self.run(right, switches))
        if op == s[AND] and right.op == s[NOT] and right.right is not None and left.normal == right.right.normal:
            # p ∧ ¬p :: ⊥
            self.union(equivs, [self.parse(s[FALSUM])])
        return equivs
