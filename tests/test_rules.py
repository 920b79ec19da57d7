"""Tests for logicgrade.rules — rule schemas and built-in systems."""

import pytest

from logicgrade.rules import (
    PROGRESS_SHOW_LINES,
    Form,
    RuleSchema,
    RuleSet,
    available_systems,
    get_rules,
    substitute_symbols,
)
from logicgrade.notation import get_notation


class TestGetRules:
    def test_available_systems(self):
        systems = available_systems()
        assert "cambridge" in systems
        assert "hardegree" in systems
        assert systems == sorted(systems)

    def test_cambridge_rules(self, cambridge):
        assert "→E" in cambridge
        assert cambridge["Pr"].premise_rule
        assert cambridge["Hyp"].assumption_rule
        assert not cambridge.numbered_show_lines

    def test_hardegree_uses_show_lines(self):
        rules = get_rules("hardegree")
        assert rules.numbered_show_lines
        assert rules.progress_style == PROGRESS_SHOW_LINES
        assert rules["CD"].show_rule

    def test_unknown_system(self):
        with pytest.raises(ValueError, match="Unknown deduction system"):
            get_rules("nonesuch")

    def test_unknown_system_reported_before_notation(self):
        with pytest.raises(ValueError, match="Unknown deduction system 'nonesuch'"):
            get_rules("nonesuch", "cambridge")

    def test_loraincounty_rules(self):
        rules = get_rules("loraincounty")
        assert rules.notation.name == "cambridge"
        assert rules["Comm∧"].replacement_rule
        assert rules["Assoc∨"].replacement_rule
        assert rules["Trans"].forms[0].replaces == ("A → B", "¬B → ¬A")
        assert not rules["WK"].replacement_rule
        assert "Comm" not in rules

    def test_memoised(self):
        assert get_rules("cambridge") is get_rules("cambridge")

    def test_rewritten_into_other_notation(self):
        rules = get_rules("cambridge", "hardegree")
        assert "&I" in rules
        assert "∧I" not in rules
        assert rules["&I"].forms[0].conclusion == "A & B"

    def test_derived_system_shares_common_rules(self):
        calgary = get_rules("calgary")
        assert "IP" in calgary
        assert "∧I" in calgary


class TestRuleSet:
    def test_resolve_unavailable(self):
        rules = get_rules("hardegree")
        assert "→I" in rules
        assert rules.resolve("→I") is None
        assert rules.resolve("CD") is rules["CD"]

    def test_resolve_missing(self, cambridge):
        assert cambridge.resolve(None) is None
        assert cambridge.resolve("Magic") is None

    def test_progress_elimination_style(self, cambridge):
        assert cambridge.counts_as_progress("→E")
        assert not cambridge.counts_as_progress("∧I")
        assert not cambridge.counts_as_progress("Pr")
        assert not cambridge.counts_as_progress("Hyp")

    def test_progress_show_line_style(self):
        rules = get_rules("hardegree")
        assert rules.counts_as_progress("→O")
        assert rules.counts_as_progress("CD")
        assert not rules.counts_as_progress("&I")

    def test_file_round_trip(self, cambridge, tmp_path):
        path = tmp_path / "rules.json"
        cambridge.to_file(path)
        loaded = RuleSet.from_file(path)
        assert set(loaded) == set(cambridge)
        assert loaded["→I"] == cambridge["→I"]
        assert loaded.notation.name == "cambridge"

    def test_bad_progress_style(self):
        with pytest.raises(ValueError):
            RuleSet("x", get_notation("cambridge"), {}, progress_style="vibes")


class TestSchemas:
    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="unknown keys"):
            RuleSchema.from_dict("Bad", {"premise": True})

    def test_form_round_trip(self):
        data = {
            "premises": ["∃xAx"],
            "conclusion": "B",
            "not_in_hypotheses": ["n"],
            "cannot_be_in": {"n": ["Ax", "B"]},
            "substitutions": {"x": "n"},
            "subderivations": [{"needs": ["B"], "allows": "An"}],
        }
        assert Form.from_dict(data).to_dict() == data

    def test_replaces_needs_two(self):
        with pytest.raises(ValueError):
            Form.from_dict({"replaces": ["A"]})

    def test_substitute_symbols(self):
        out = substitute_symbols("¬(A ∧ B)", get_notation("cambridge"), get_notation("hardegree"))
        assert out == "~(A & B)"
