"""Tests for logicgrade.equivalence — tableaux and the equivalence prover."""

import itertools

import pytest

from logicgrade.equivalence import (
    ABBREVIATED,
    CLOSED,
    DATABASE,
    EXACT,
    FULL,
    INDETERMINATE,
    OPEN,
    SMALL,
    TABLEAU,
    UNDECIDED,
    EquivalenceProver,
    EquivalenceResult,
    Tableau,
    equivalent,
)
from logicgrade.equivdb import MemoryEquivalenceDatabase


@pytest.fixture
def prover(ctx):
    """A prover with no database."""
    return EquivalenceProver(ctx)


# -------------------------------------------------------------------
# Tableau
# -------------------------------------------------------------------


class TestTableau:
    def test_unknown_mode(self, ctx):
        with pytest.raises(ValueError, match="Unknown tableau mode"):
            Tableau(ctx, "sideways")

    def test_contradictory_trunk_closes(self, ctx):
        assert Tableau(ctx, FULL).run([["P", "¬P"]]) == CLOSED

    def test_satisfiable_trunk_stays_open(self, ctx):
        assert Tableau(ctx, FULL).run([["P ∨ Q", "¬P"]]) == OPEN

    def test_branching_closes_every_branch(self, ctx):
        assert Tableau(ctx, FULL).run([["P ∨ Q", "¬P", "¬Q"]]) == CLOSED

    def test_past_deadline_gives_up(self, ctx):
        clock = itertools.count(start=100.0)
        tableau = Tableau(ctx, FULL, deadline=0.0, clock=lambda: next(clock))
        assert tableau.run([["P ∨ Q", "¬P"]]) == UNDECIDED

    @pytest.mark.parametrize("mode", [FULL, ABBREVIATED, SMALL])
    def test_every_mode_finds_open_branch(self, ctx, mode):
        assert Tableau(ctx, mode).run([["P ∧ Q", "¬R"]]) == OPEN


# -------------------------------------------------------------------
# EquivalenceProver
# -------------------------------------------------------------------


class TestEquivalenceProver:
    def test_identical_formulas(self, prover):
        result = prover.equivalent("P ∧ Q", "(P ∧ Q)")
        assert result == EquivalenceResult(True, True, EXACT)

    def test_de_morgan_by_tableau(self, prover):
        result = prover.equivalent("¬(P ∧ Q)", "¬P ∨ ¬Q")
        assert result.equiv
        assert result.determinate
        assert result.method == TABLEAU

    def test_not_equivalent(self, prover):
        result = prover.equivalent("P ∨ Q", "P ∧ Q")
        assert not result.equiv
        assert result.determinate
        assert result.method == TABLEAU

    def test_de_morgan_from_database(self, ctx):
        prover = EquivalenceProver(ctx, database=MemoryEquivalenceDatabase())
        result = prover.equivalent("¬(P ∧ Q)", "¬P ∨ ¬Q")
        assert result.equiv
        assert result.method == DATABASE

    def test_tableau_proof_recorded(self, ctx):
        db = MemoryEquivalenceDatabase()
        prover = EquivalenceProver(ctx, database=db)
        first = prover.equivalent("P ∧ (Q ∨ R)", "(P ∧ Q) ∨ (P ∧ R)")
        assert first.method == TABLEAU
        assert "(P ∧ Q) ∨ (P ∧ R)" in db.load("P ∧ (Q ∨ R)")
        assert "P ∧ (Q ∨ R)" in db.load("(P ∧ Q) ∨ (P ∧ R)")
        second = prover.equivalent("(P ∧ Q) ∨ (P ∧ R)", "P ∧ (Q ∨ R)")
        assert second.method == DATABASE

    def test_past_deadline_is_indeterminate(self, prover):
        result = prover.equivalent("∀x∃yLxy", "∃y∀xLxy", deadline=prover.clock() - 1)
        assert not result.determinate
        assert not result.equiv
        assert result.method == INDETERMINATE

    def test_quantifier_duality(self, prover):
        result = prover.equivalent("¬∀xFx", "∃x¬Fx")
        assert result.equiv
        assert result.determinate

    def test_negative_time_budget(self, ctx):
        with pytest.raises(ValueError, match="time_budget"):
            EquivalenceProver(ctx, time_budget=-1)

    def test_zero_term_limit(self, ctx):
        with pytest.raises(ValueError):
            EquivalenceProver(ctx, term_limit=0)

    def test_result_to_dict(self):
        result = EquivalenceResult(False, False, INDETERMINATE)
        assert result.to_dict() == {"equiv": False, "determinate": False, "method": "indeterminate"}


class TestTableauAgreement:
    @pytest.mark.parametrize(
        "p, q",
        [
            ("P ∨ Q", "P ∧ Q"),
            ("P → Q", "Q → P"),
            ("¬(P ∧ Q)", "¬P ∨ ¬Q"),
            ("∀xFx", "∃xFx"),
            ("∀x(Fx → Gx)", "∀xFx → ∀xGx"),
        ],
    )
    def test_abbreviated_open_never_full_closed(self, prover, p, q):
        sprouts = prover.sprouts(prover.context.parse(p), prover.context.parse(q))
        if prover.tableau(ABBREVIATED).run(sprouts) == OPEN:
            assert prover.tableau(FULL).run(sprouts) != CLOSED


class TestModuleFunction:
    def test_equivalent_strings(self):
        assert equivalent("P → Q", "¬P ∨ Q").equiv

    def test_other_notation(self):
        assert equivalent("~(P & Q)", "~P ∨ ~Q", notation="hardegree").equiv


class TestIdentity:
    def test_self_identity_denial_closes(self, ctx):
        assert Tableau(ctx, FULL).run([["¬(a = a)"]]) == CLOSED

    def test_open_branch_with_identity_is_undecided(self, ctx):
        assert Tableau(ctx, FULL).run([["a = b", "Fa", "¬Fb"]]) == UNDECIDED

    def test_trivial_identity_conjunct(self):
        result = equivalent("Fa", "Fa ∧ a = a")
        assert result.equiv
        assert result.determinate

    def test_substitution_not_judged_inequivalent(self):
        result = equivalent("a = b ∧ Fa", "a = b ∧ Fb")
        assert result.equiv or not result.determinate
