"""Tests for logicgrade.justification — justification text parsing."""

from logicgrade.justification import parse_justification


class TestNumbers:
    def test_numbers_and_rule(self):
        j = parse_justification("2,1 →E")
        assert j.numbers == (2, 1)
        assert j.rules == ("→E",)
        assert j.rule == "→E"

    def test_rule_first_no_spaces(self):
        j = parse_justification("→E1,3")
        assert j.numbers == (1, 3)
        assert j.rule == "→E"

    def test_placeholder(self):
        j = parse_justification("? ∧I")
        assert j.numbers == (None,)
        assert j.has_placeholder

    def test_no_rule(self):
        j = parse_justification("1, 2")
        assert j.rule is None


class TestRanges:
    def test_en_dash_range(self):
        j = parse_justification("2–4 →I")
        assert j.ranges == ((2, 4),)
        assert j.numbers == ()

    def test_spaced_hyphen_range(self):
        j = parse_justification("2 - 4 →I")
        assert j.ranges == ((2, 4),)

    def test_reversed_range_is_ordered(self):
        j = parse_justification("4-2 →I")
        assert j.ranges == ((2, 4),)

    def test_number_and_two_ranges(self):
        j = parse_justification("1, 2-3, 4-5 ∨E")
        assert j.numbers == (1,)
        assert j.ranges == ((2, 3), (4, 5))
        assert j.rule == "∨E"

    def test_placeholder_endpoint(self):
        j = parse_justification("?-4 →I")
        assert j.ranges == ((None, 4),)
        assert j.has_placeholder


class TestRules:
    def test_several_rules(self):
        j = parse_justification("1 R DN")
        assert j.rules == ("R", "DN")
        assert j.rule == "R"

    def test_empty(self):
        j = parse_justification("")
        assert j.numbers == ()
        assert j.ranges == ()
        assert j.rule is None
