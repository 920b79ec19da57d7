"""Tests for logicgrade.grading — derivation and translation grading."""

import copy
import itertools

import pytest

from logicgrade.config import GradingSettings, PartialCreditPolicy
from logicgrade.equivalence import EquivalenceProver
from logicgrade.grading import (
    CORRECT,
    INCORRECT,
    INDETERMINATE,
    GradeResult,
    check_answer,
    check_derivation,
    check_translation,
    derivation_portion,
)


def _question(problem):
    return {"prems": problem["prems"], "conc": problem["conc"]}


@pytest.fixture
def hardegree_problem():
    """Modus ponens with a show line, hardegree style."""
    return {
        "prems": ["P → Q", "P"],
        "conc": "Q",
        "derivation": {
            "parts": [
                {"n": "1", "s": "P → Q", "j": "Pr"},
                {"n": "2", "s": "P", "j": "Pr"},
                {
                    "showline": {"n": "3", "s": "Q", "j": "DD"},
                    "parts": [{"n": "4", "s": "Q", "j": "1,2 →O"}],
                },
            ]
        },
    }


# -------------------------------------------------------------------
# GradeResult
# -------------------------------------------------------------------


class TestGradeResult:
    def test_unknown_status(self):
        with pytest.raises(ValueError, match="Unknown status"):
            GradeResult("great", 10)

    def test_redacted_drops_details(self):
        result = GradeResult(INCORRECT, 3, errors={"2": {}}, message="nope")
        assert result.redacted().to_dict() == {"successstatus": "incorrect", "points": 3}

    def test_correct_property(self):
        assert GradeResult(CORRECT, 1).correct
        assert not GradeResult(INDETERMINATE, 0).correct


# -------------------------------------------------------------------
# Derivations
# -------------------------------------------------------------------


class TestCheckDerivation:
    def test_correct(self, modus_ponens):
        result = check_derivation(_question(modus_ponens), None, modus_ponens["derivation"], False, 10)
        assert result.successstatus == CORRECT
        assert result.points == 10
        assert result.errors == {}

    def test_incorrect_without_partial_credit(self, modus_ponens):
        modus_ponens["derivation"]["parts"][2]["j"] = "1,2 ∧I"
        result = check_derivation(_question(modus_ponens), None, modus_ponens["derivation"], False, 10)
        assert result.successstatus == INCORRECT
        assert result.points == 0
        assert "3" in result.errors

    def test_malformed_derivation(self, modus_ponens):
        result = check_derivation(_question(modus_ponens), None, {"parts": ["P"]}, True, 10)
        assert result.successstatus == INCORRECT
        assert result.points == 0
        assert result.message.startswith("the derivation could not be read")

    def test_details_withheld(self, modus_ponens):
        modus_ponens["derivation"]["parts"][2]["j"] = "1,2 ∧I"
        result = check_derivation(
            _question(modus_ponens), None, modus_ponens["derivation"], False, 10, allow_detail_disclosure=False
        )
        assert result.errors is None
        assert result.message == ""

    def test_system_option(self, hardegree_problem):
        result = check_derivation(
            _question(hardegree_problem), None, hardegree_problem["derivation"], False, 5,
            options={"system": "hardegree"},
        )
        assert result.correct
        assert result.points == 5


class TestPartialCredit:
    def test_more_progress_never_earns_less(self, chain):
        answer = chain["derivation"]
        four_lines = copy.deepcopy(answer)
        del four_lines["parts"][4:]
        premises_only = copy.deepcopy(answer)
        del premises_only["parts"][3:]

        full = check_derivation(_question(chain), answer, answer, True, 10)
        partial = check_derivation(_question(chain), answer, four_lines, True, 10)
        nothing = check_derivation(_question(chain), answer, premises_only, True, 10)

        assert full.points == 10
        assert partial.successstatus == INCORRECT
        assert partial.points == 4
        assert nothing.points == 0

    def test_without_reference_answer(self, chain):
        del chain["derivation"]["parts"][4:]
        result = check_derivation(_question(chain), None, chain["derivation"], True, 10)
        # no goal to measure against, so only penalties count
        assert result.points == 8

    def test_buildup_for_heavily_penalised_proofs(self):
        policy = PartialCreditPolicy()
        assert derivation_portion(0.1, 3, 3, policy) == pytest.approx(0.3)
        assert derivation_portion(0.1, 9, 9, policy) == pytest.approx(0.5)

    def test_incomplete_proof_scaled(self):
        policy = PartialCreditPolicy()
        assert derivation_portion(1.0, 1, 4, policy) == pytest.approx(0.25)
        assert derivation_portion(1.0, 4, 4, policy) == pytest.approx(1.0)


# -------------------------------------------------------------------
# Translations
# -------------------------------------------------------------------


class TestCheckTranslation:
    def test_identical(self):
        result = check_translation(None, "P ∧ Q", "P ∧ Q", False, 4)
        assert result.successstatus == CORRECT
        assert result.points == 4

    def test_equivalent(self):
        result = check_translation(None, "¬(P ∧ Q)", "¬P ∨ ¬Q", False, 4)
        assert result.successstatus == CORRECT
        assert result.points == 4

    def test_not_equivalent(self):
        result = check_translation(None, "P ∨ Q", "P ∧ Q", False, 10)
        assert result.successstatus == INCORRECT
        assert result.points == 0
        assert "not equivalent to the correct translation" in result.message

    def test_not_equivalent_partial_credit(self):
        result = check_translation(None, "P ∨ Q", "P ∧ Q", True, 10)
        assert result.points == 2

    def test_ill_formed(self):
        result = check_translation(None, "P ∧ Q", "P ∧", False, 10)
        assert result.successstatus == INCORRECT
        assert "not syntactically well formed" in result.message

    def test_free_variable(self):
        result = check_translation(None, "∀xFx", "Fx", False, 10)
        assert result.successstatus == INCORRECT
        assert "not bound by a quantifier" in result.message

    def test_terms_in_sentential_translation(self):
        result = check_translation(None, "P", "Fa", False, 10, options={"pred": False})
        assert result.successstatus == INCORRECT
        assert "incorrectly uses terms (a)" in result.message

    def test_undecided_is_indeterminate(self, monkeypatch):
        ticks = itertools.count(step=100.0)

        def slow_prover(self, context=None):
            return EquivalenceProver(context, clock=lambda: next(ticks))

        monkeypatch.setattr(GradingSettings, "prover", slow_prover)
        result = check_translation(None, "∀x∃yLxy", "∃y∀xLxy", False, 10)
        assert result.successstatus == INDETERMINATE
        assert result.points == 0
        assert "could not determine" in result.message

    def test_details_withheld(self):
        result = check_translation(None, "P ∨ Q", "P ∧ Q", False, 10, allow_detail_disclosure=False)
        assert result.message == ""

    def test_other_notation(self):
        result = check_translation(None, "~(P & Q)", "~P ∨ ~Q", False, 4, options={"notation": "hardegree"})
        assert result.correct

    def test_corrupt_database_file(self, tmp_path):
        settings = GradingSettings(database_dir=str(tmp_path))
        settings.database().path_for("P ∧ Q").write_text('{"formula": "', encoding="utf-8")
        result = check_translation(None, "P ∧ Q", "Q ∧ P", False, 4, settings=settings)
        assert result.successstatus == CORRECT
        assert "Q ∧ P" in settings.database().load("P ∧ Q")


# -------------------------------------------------------------------
# Dispatch
# -------------------------------------------------------------------


class TestCheckAnswer:
    def test_translation(self):
        assert check_answer("symbolic-translation", None, "P", "¬¬P", False, 2).correct

    def test_derivation(self, modus_ponens):
        result = check_answer("derivation", _question(modus_ponens), None, modus_ponens["derivation"], False, 3)
        assert result.points == 3

    def test_derivation_in_named_system(self, hardegree_problem):
        result = check_answer(
            "derivation-hardegree", _question(hardegree_problem), None, hardegree_problem["derivation"], False, 3
        )
        assert result.correct

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="No checker for problem type"):
            check_answer("essay", None, "", "", False, 1)

    def test_unknown_system(self):
        with pytest.raises(ValueError):
            check_answer("derivation-nonesuch", None, None, {"parts": []}, False, 1)

    def test_settings_passed_through(self, modus_ponens):
        settings = GradingSettings(system="hardegree", notation="hardegree")
        result = check_answer(
            "derivation", _question(modus_ponens), None, modus_ponens["derivation"], False, 3, settings=settings
        )
        # →E does not exist in that system
        assert not result.correct
