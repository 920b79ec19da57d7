"""Tests for the logicgrade CLI — parse, equiv, check and rules subcommands."""

import json

import pytest

from logicgrade.cli.exitcodes import EXIT_ERROR, EXIT_INDETERMINATE, EXIT_NEGATIVE, EXIT_SUCCESS
from logicgrade.cli.main import main
from logicgrade.config import GradingSettings


def _json(capsys):
    return json.loads(capsys.readouterr().out)


@pytest.fixture
def problem_file(tmp_path, modus_ponens):
    """A correct modus ponens problem on disk."""
    path = tmp_path / "problem.json"
    path.write_text(json.dumps(modus_ponens, ensure_ascii=False), encoding="utf-8")
    return str(path)


@pytest.fixture
def broken_problem_file(tmp_path, modus_ponens):
    """Modus ponens with a wrongly justified last line."""
    modus_ponens["derivation"]["parts"][2]["j"] = "1,2 ∧I"
    path = tmp_path / "broken.json"
    path.write_text(json.dumps(modus_ponens, ensure_ascii=False), encoding="utf-8")
    return str(path)


# -------------------------------------------------------------------
# General
# -------------------------------------------------------------------


class TestMain:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == EXIT_SUCCESS
        assert "usage" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "logicgrade" in capsys.readouterr().out


# -------------------------------------------------------------------
# parse
# -------------------------------------------------------------------


class TestParseCommand:
    def test_wellformed(self, capsys):
        assert main(["parse", "P ∨ (Q ∧ R)"]) == EXIT_SUCCESS
        assert capsys.readouterr().out.strip() == "P ∨ (Q ∧ R)"

    def test_malformed(self, capsys):
        assert main(["parse", "P ∧"]) == EXIT_NEGATIVE
        assert capsys.readouterr().out.startswith("NOT WELL FORMED")

    def test_free_variables(self, capsys):
        assert main(["parse", "Fx"]) == EXIT_SUCCESS
        assert "Free variables: x" in capsys.readouterr().out

    def test_json(self, capsys):
        assert main(["parse", "--json", "∀xFx"]) == EXIT_SUCCESS
        data = _json(capsys)
        assert data["normal"] == "∀xFx"
        assert data["wellformed"] is True
        assert data["type"] == "univ"
        assert data["free_variables"] == []
        assert data["errors"] == []

    def test_quiet(self, capsys):
        assert main(["parse", "-q", "P ∧"]) == EXIT_NEGATIVE
        assert capsys.readouterr().out == ""

    def test_notation(self, capsys):
        assert main(["parse", "--notation", "hardegree", "P & Q"]) == EXIT_SUCCESS
        assert capsys.readouterr().out.strip() == "P & Q"

    def test_unknown_notation(self, capsys):
        assert main(["parse", "--notation", "nonesuch", "P"]) == EXIT_ERROR
        assert capsys.readouterr().err.startswith("Error:")


# -------------------------------------------------------------------
# equiv
# -------------------------------------------------------------------


class TestEquivCommand:
    def test_equivalent(self, capsys):
        assert main(["equiv", "¬(P ∧ Q)", "¬P ∨ ¬Q"]) == EXIT_SUCCESS
        out = capsys.readouterr().out.splitlines()
        assert out[0] == "EQUIVALENT"
        assert out[1].startswith("Method:")

    def test_not_equivalent(self, capsys):
        assert main(["equiv", "P", "Q"]) == EXIT_NEGATIVE
        assert capsys.readouterr().out.startswith("NOT EQUIVALENT")

    def test_json(self, capsys):
        assert main(["equiv", "--json", "P → Q", "¬Q → ¬P"]) == EXIT_SUCCESS
        data = _json(capsys)
        assert data["status"] == "EQUIVALENT"
        assert data["formulas"] == ["P → Q", "¬Q → ¬P"]
        assert data["determinate"] is True

    def test_malformed_input(self, capsys):
        assert main(["equiv", "--json", "P ∧", "P"]) == EXIT_ERROR
        assert "not well formed" in _json(capsys)["error"]

    def test_bad_time_budget(self, capsys):
        assert main(["equiv", "--time-budget", "-1", "P", "Q"]) == EXIT_ERROR
        assert "time_budget" in capsys.readouterr().err

    def test_indeterminate_exit_code(self, monkeypatch, capsys):
        from logicgrade.equivalence import EquivalenceProver, EquivalenceResult

        def undecided(self, p, q, deadline=None):
            return EquivalenceResult(False, False, "indeterminate")

        monkeypatch.setattr(EquivalenceProver, "equivalent", undecided)
        assert main(["equiv", "∀x∃yLxy", "∃y∀xLxy"]) == EXIT_INDETERMINATE
        assert capsys.readouterr().out.startswith("INDETERMINATE")

    def test_config_database(self, tmp_path, capsys):
        config = tmp_path / "settings.json"
        GradingSettings(database_dir=str(tmp_path / "equivs")).to_file(config)
        assert main(["equiv", "--json", "--config", str(config), "¬(P ∧ Q)", "¬P ∨ ¬Q"]) == EXIT_SUCCESS
        assert _json(capsys)["method"] == "database"
        assert any((tmp_path / "equivs").iterdir())


# -------------------------------------------------------------------
# check
# -------------------------------------------------------------------


class TestCheckCommand:
    def test_correct(self, problem_file, capsys):
        assert main(["check", "-p", problem_file]) == EXIT_SUCCESS
        assert capsys.readouterr().out.strip() == "CORRECT"

    def test_errors(self, broken_problem_file, capsys):
        assert main(["check", "-p", broken_problem_file]) == EXIT_NEGATIVE
        out = capsys.readouterr().out
        assert out.startswith("HAS ERRORS")
        assert "line 3 [rule, high]" in out

    def test_thorough(self, broken_problem_file, capsys):
        assert main(["check", "-p", broken_problem_file, "--thorough"]) == EXIT_NEGATIVE
        assert "Points portion: 0.80" in capsys.readouterr().out

    def test_json(self, broken_problem_file, capsys):
        assert main(["check", "--json", "-p", broken_problem_file]) == EXIT_NEGATIVE
        data = _json(capsys)
        assert data["status"] == "HAS_ERRORS"
        assert data["problem_file"] == broken_problem_file
        assert any(e["line"] == "3" and e["category"] == "rule" for e in data["errors"])

    def test_missing_file(self, tmp_path, capsys):
        assert main(["check", "-p", str(tmp_path / "nope.json")]) == EXIT_ERROR
        assert capsys.readouterr().err.startswith("Error:")

    def test_problem_without_derivation(self, tmp_path, capsys):
        path = tmp_path / "problem.json"
        path.write_text(json.dumps({"prems": [], "conc": "P"}), encoding="utf-8")
        assert main(["check", "--json", "-p", str(path)]) == EXIT_ERROR
        assert "has no derivation" in _json(capsys)["error"]

    def test_system_from_problem(self, tmp_path, capsys):
        problem = {
            "system": "hardegree",
            "prems": ["P → Q", "P"],
            "conc": "Q",
            "derivation": {
                "parts": [
                    {"n": "1", "s": "P → Q", "j": "Pr"},
                    {"n": "2", "s": "P", "j": "Pr"},
                    {"showline": {"n": "3", "s": "Q", "j": "DD"}, "parts": [{"n": "4", "s": "Q", "j": "1,2 →O"}]},
                ]
            },
        }
        path = tmp_path / "problem.json"
        path.write_text(json.dumps(problem, ensure_ascii=False), encoding="utf-8")
        assert main(["check", "-p", str(path)]) == EXIT_SUCCESS

    def test_system_option_overrides(self, problem_file):
        # →E is not a hardegree rule
        assert main(["check", "-q", "-p", problem_file, "--system", "hardegree"]) == EXIT_NEGATIVE

    def test_config_file(self, tmp_path, problem_file):
        config = tmp_path / "settings.json"
        GradingSettings(system="hardegree", notation="hardegree").to_file(config)
        assert main(["check", "-q", "-p", problem_file, "--config", str(config)]) == EXIT_NEGATIVE


# -------------------------------------------------------------------
# rules
# -------------------------------------------------------------------


class TestRulesCommand:
    def test_lists_visible_rules(self, capsys):
        assert main(["rules", "cambridge"]) == EXIT_SUCCESS
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("cambridge (cambridge notation)")
        names = [line.split()[0] for line in lines[1:]]
        assert "→E" in names
        assert "Pr" not in names

    def test_json(self, capsys):
        assert main(["rules", "--json", "hardegree"]) == EXIT_SUCCESS
        data = _json(capsys)
        assert data["name"] == "hardegree"
        assert data["numbered_show_lines"] is True
        assert "CD" in data["rules"]
        assert "→I" not in data["rules"]

    def test_unknown_system(self, capsys):
        assert main(["rules", "nonesuch"]) == EXIT_ERROR
        assert "Unknown deduction system 'nonesuch'" in capsys.readouterr().err
