"""Tests for logicgrade.config — grading settings."""

import json

import pytest

from logicgrade.config import GradingSettings, PartialCreditPolicy
from logicgrade.equivdb import JSONEquivalenceDatabase


class TestDefaults:
    def test_defaults(self):
        settings = GradingSettings()
        assert settings.notation == "cambridge"
        assert settings.system == "cambridge"
        assert settings.time_budget == 5.0
        assert settings.penalties == {"high": 0.2, "medium": 0.15, "low": 0.1}
        assert settings.partial_credit == PartialCreditPolicy()

    def test_no_database_by_default(self):
        assert GradingSettings().database() is None

    def test_database_dir(self, tmp_path):
        db = GradingSettings(database_dir=str(tmp_path)).database()
        assert isinstance(db, JSONEquivalenceDatabase)
        assert db.directory == tmp_path

    def test_prover_uses_settings(self):
        prover = GradingSettings(time_budget=1.5, term_limit=3).prover()
        assert prover.time_budget == 1.5
        assert prover.term_limit == 3
        assert prover.context.notation.name == "cambridge"


class TestValidation:
    def test_unknown_system(self):
        with pytest.raises(ValueError, match="Unknown deduction system"):
            GradingSettings(system="nonesuch")

    def test_unknown_notation(self):
        with pytest.raises(ValueError):
            GradingSettings(notation="nonesuch")

    def test_missing_penalties(self):
        with pytest.raises(ValueError, match="Penalties missing"):
            GradingSettings(penalties={"high": 0.2})

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown settings: colour"):
            GradingSettings.from_dict({"colour": "blue"})

    def test_unknown_partial_credit_key(self):
        with pytest.raises(ValueError, match="Unknown partial credit settings"):
            GradingSettings.from_dict({"partial_credit": {"generosity": 1}})


class TestSerialization:
    def test_dict_round_trip(self):
        settings = GradingSettings(
            notation="hardegree",
            system="hardegree",
            partial_credit=PartialCreditPolicy(per_step=0.2),
        )
        assert GradingSettings.from_dict(settings.to_dict()) == settings

    def test_partial_dict(self):
        settings = GradingSettings.from_dict({"time_budget": 2, "partial_credit": {"per_step": "0.05"}})
        assert settings.time_budget == 2
        assert settings.partial_credit.per_step == 0.05
        assert settings.partial_credit.buildup_cap == 0.5

    def test_file_round_trip(self, tmp_path):
        path = tmp_path / "settings.json"
        settings = GradingSettings(system="magnus", notation="magnus", database_dir="equivs")
        settings.to_file(path)
        assert GradingSettings.from_file(path) == settings

    def test_file_must_hold_object(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps(["cambridge"]), encoding="utf-8")
        with pytest.raises(ValueError, match="must hold a JSON object"):
            GradingSettings.from_file(path)
