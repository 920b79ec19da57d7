"""Tests for logicgrade.matcher — schema unification and rule matching."""

import pytest

from logicgrade.derivation import Derivation
from logicgrade.matcher import FormMatcher, SchemaUnifier, check_replacement, replacement_distance, try_match
from logicgrade.rules import Form, get_rules
from logicgrade.syntax import ParseContext


def _lines(*rows):
    return Derivation.from_dict({"parts": [{"n": str(i), "s": s, "j": j} for i, (s, j) in enumerate(rows, 1)]})


class TestSchemaUnifier:
    def test_binds_atomic_schemas(self, ctx):
        assigns = {}
        assert SchemaUnifier(ctx).extend(ctx.parse("A ∧ B"), ctx.parse("P ∧ (Q ∨ R)"), assigns)
        assert assigns == {"A": "P", "B": "Q ∨ R"}

    def test_repeated_schema_must_agree(self, ctx):
        assert not SchemaUnifier(ctx).extend(ctx.parse("A ∧ A"), ctx.parse("P ∧ Q"), {})
        assert SchemaUnifier(ctx).extend(ctx.parse("A ∧ A"), ctx.parse("P ∧ P"), {})

    def test_operator_mismatch(self, ctx):
        assert not SchemaUnifier(ctx).extend(ctx.parse("A → B"), ctx.parse("P ∧ Q"), {})

    def test_bound_variables(self, ctx):
        assigns = {}
        assert SchemaUnifier(ctx).extend(ctx.parse("∀xAx"), ctx.parse("∀y(Fy → Gy)"), assigns)
        assert assigns["x"] == "y"
        assert assigns["Ax"] == "Fy → Gy"

    def test_identity_terms(self, ctx):
        assigns = {}
        assert SchemaUnifier(ctx).extend(ctx.parse("a = b"), ctx.parse("c = d"), assigns)
        assert assigns["a"] == ("c",)
        assert assigns["b"] == ("d",)


class TestTryMatch:
    def test_modus_ponens_any_citation_order(self, ctx, cambridge):
        d = _lines(("P → Q", "Pr"), ("P", "Pr"), ("Q", "2,1 →E"))
        rule = cambridge["→E"]
        result = try_match(rule, rule.forms[0], d, 2, context=ctx, cited_lines=[1, 0])
        assert result.success
        assert result.assignment["A"] == "P"
        assert result.assignment["C"] == "Q"

    def test_wrong_conclusion(self, ctx, cambridge):
        d = _lines(("P", "Pr"), ("Q", "Pr"), ("P ∨ Q", "1,2 ∧I"))
        rule = cambridge["∧I"]
        result = try_match(rule, rule.forms[0], d, 2, context=ctx, cited_lines=[0, 1])
        assert not result.success
        assert result.message == "formula at this line not of the right form to result from ∧I"

    def test_wrong_premises(self, ctx, cambridge):
        d = _lines(("P → Q", "Pr"), ("R", "Pr"), ("Q", "1,2 →E"))
        rule = cambridge["→E"]
        result = try_match(rule, rule.forms[0], d, 2, context=ctx, cited_lines=[0, 1])
        assert not result.success
        assert "cited lines are not of the right form" in result.message

    def test_conjunction_either_citation_order(self, ctx, cambridge):
        d = _lines(("P", "Pr"), ("Q", "Pr"), ("P ∧ Q", "2,1 ∧I"))
        rule = cambridge["∧I"]
        assert try_match(rule, rule.forms[0], d, 2, context=ctx, cited_lines=[1, 0]).success
        assert try_match(rule, rule.forms[0], d, 2, context=ctx, cited_lines=[0, 1]).success

    def test_conjunction_with_unbound_conjunct(self, ctx, cambridge):
        d = _lines(("P", "Pr"), ("Q", "Pr"), ("P ∧ R", "1,2 ∧I"))
        rule = cambridge["∧I"]
        assert not try_match(rule, rule.forms[0], d, 2, context=ctx, cited_lines=[0, 1]).success

    def test_failed_citation_order_leaves_no_vacuous_record(self, ctx, cambridge):
        d = _lines(("P", "Pr"), ("Q", "Pr"), ("P ∧ Q", "2,1 ∧I"))
        rule = cambridge["∧I"]
        matcher = FormMatcher(rule, rule.forms[0], d, 2, context=ctx, cited_lines=[1, 0])
        assert matcher.check_conclusion()
        extend = matcher.extend

        def noting_extend(schema, f, assigns):
            ok = extend(schema, f, assigns)
            if not ok:
                matcher.vacuous.append("x")
            return ok

        # the first order tried pairs A with Q and fails
        matcher.extend = noting_extend
        assert matcher.check_premises()
        assert matcher.vacuous == []

    def test_universal_instance(self, ctx, cambridge):
        d = _lines(("∀x(Fx ∧ Gx)", "Pr"), ("Fa ∧ Ga", "1 ∀E"))
        rule = cambridge["∀E"]
        result = try_match(rule, rule.forms[0], d, 1, context=ctx, cited_lines=[0])
        assert result.success
        assert result.assignment["a"] == ("a",)
        assert result.vacuous_names == ()

    def test_universal_instance_must_be_uniform(self, ctx, cambridge):
        d = _lines(("∀x(Fx ∧ Gx)", "Pr"), ("Fa ∧ Gb", "1 ∀E"))
        rule = cambridge["∀E"]
        result = try_match(rule, rule.forms[0], d, 1, context=ctx, cited_lines=[0])
        assert not result.success

    def test_vacuous_quantifier(self, ctx, cambridge):
        d = _lines(("∀xP", "Pr"), ("P", "1 ∀E"))
        rule = cambridge["∀E"]
        result = try_match(rule, rule.forms[0], d, 1, context=ctx, cited_lines=[0])
        assert result.success
        assert result.vacuous_names == ("a",)

    def test_identity_elimination(self, ctx, cambridge):
        d = _lines(("a = b", "Pr"), ("Fa", "Pr"), ("Fb", "1,2 =E"))
        rule = cambridge["=E"]
        assert any(
            try_match(rule, form, d, 2, context=ctx, cited_lines=[0, 1]).success
            for form in rule.forms
        )

    def test_identity_elimination_wrong_term(self, ctx, cambridge):
        d = _lines(("a = b", "Pr"), ("Fa", "Pr"), ("Fc", "1,2 =E"))
        rule = cambridge["=E"]
        assert not any(
            try_match(rule, form, d, 2, context=ctx, cited_lines=[0, 1]).success
            for form in rule.forms
        )


class TestReplacement:
    @pytest.fixture
    def magnus(self):
        return ParseContext("magnus"), get_rules("magnus")

    def test_de_morgan_whole_formula(self, magnus):
        ctx, rules = magnus
        result = check_replacement(rules["DeM"], ctx, ctx.parse("¬P ∨ ¬Q"), [ctx.parse("¬(P & Q)")])
        assert result.success

    def test_de_morgan_in_a_subformula(self, magnus):
        ctx, rules = magnus
        result = check_replacement(rules["DeM"], ctx, ctx.parse("R & (¬P ∨ ¬Q)"), [ctx.parse("R & ¬(P & Q)")])
        assert result.success

    def test_two_replacements_rejected(self, magnus):
        ctx, rules = magnus
        result = check_replacement(
            rules["DeM"], ctx, ctx.parse("(¬P ∨ ¬Q) & (¬P ∨ ¬Q)"), [ctx.parse("¬(P & Q) & ¬(P & Q)")]
        )
        assert not result.success
        assert result.message == "line is not of the right form to result from the cited line by DeM"

    def test_nothing_cited(self, magnus):
        ctx, rules = magnus
        result = check_replacement(rules["DeM"], ctx, ctx.parse("P"), [])
        assert not result.success
        assert "does not cite a line" in result.message

    def test_distance_counts_positions(self, magnus):
        ctx, _ = magnus
        form = Form(replaces=("A", "¬¬A"))
        assert replacement_distance(ctx, ctx.parse("P & Q"), ctx.parse("P & Q"), form) == 0
        assert replacement_distance(ctx, ctx.parse("¬¬P & ¬¬Q"), ctx.parse("P & Q"), form) == 2
