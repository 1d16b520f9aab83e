"""Unit tests for planner configuration loading."""

from pathlib import Path

import pytest

from kursplan.config import (
    CONFIG_ENV,
    DB_PATH_ENV,
    ConfigError,
    PlannerConfig,
    config_from_env,
    load_config,
)


@pytest.mark.unit
class TestPlannerConfig:
    """Tests for PlannerConfig defaults and from_dict."""

    def test_defaults(self) -> None:
        config = PlannerConfig()

        assert config.database.path == "kursplan.db"
        assert config.logging.level == "INFO"
        assert config.scheduling.max_students_hard == 130
        assert config.scheduling.max_students_preferred == 100
        assert config.scheduling.default_cohort_size == 30
        assert config.seed is True

    def test_business_logic_uses_caps(self) -> None:
        config = PlannerConfig.from_dict(
            {"scheduling": {"max_students_hard": 120, "max_students_preferred": 90}}
        )

        params = config.scheduling.business_logic()["scheduling"]["params"]
        assert params["maxStudentsHard"] == 120
        assert params["maxStudentsPreferred"] == 90
        assert params["futureOnlyReplan"] is True

    def test_preferred_above_hard_rejected(self) -> None:
        with pytest.raises(ConfigError, match="cannot exceed"):
            PlannerConfig.from_dict(
                {"scheduling": {"max_students_hard": 80, "max_students_preferred": 90}}
            )

    def test_non_numeric_cap_rejected(self) -> None:
        with pytest.raises(ConfigError, match="Invalid scheduling value"):
            PlannerConfig.from_dict({"scheduling": {"max_students_hard": "many"}})

    def test_section_must_be_mapping(self) -> None:
        with pytest.raises(ConfigError, match="'database' must be a mapping"):
            PlannerConfig.from_dict({"database": "kursplan.db"})

    def test_relative_db_path_resolved_against_root(self, tmp_path: Path) -> None:
        config = PlannerConfig.from_dict({"database": {"path": "data/plan.db"}}, tmp_path)
        assert config.database.path == str(tmp_path / "data/plan.db")

    def test_memory_db_path_kept(self, tmp_path: Path) -> None:
        config = PlannerConfig.from_dict({"database": {"path": ":memory:"}}, tmp_path)
        assert config.database.path == ":memory:"


@pytest.mark.unit
class TestLoadConfig:
    """Tests for load_config."""

    def test_load_full_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "kursplan.yaml"
        config_file.write_text(
            "database:\n"
            "  path: plan.db\n"
            "logging:\n"
            "  dir: logs\n"
            "  level: debug\n"
            "scheduling:\n"
            "  default_cohort_size: 25\n"
            "seed: false\n",
            encoding="utf-8",
        )

        config = load_config(config_file)

        assert config.database.path == str(tmp_path / "plan.db")
        assert config.logging.dir == "logs"
        assert config.logging.level == "DEBUG"
        assert config.scheduling.default_cohort_size == 25
        assert config.seed is False
        assert config.root_path == tmp_path

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "kursplan.yaml"
        config_file.write_text("", encoding="utf-8")

        config = load_config(config_file)

        assert config.seed is True
        assert config.scheduling.max_students_hard == 130

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "kursplan.yaml"
        config_file.write_text("database: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(config_file)

    def test_non_mapping_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "kursplan.yaml"
        config_file.write_text("- one\n- two\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="must be a YAML mapping"):
            load_config(config_file)


@pytest.mark.unit
class TestConfigFromEnv:
    """Tests for config_from_env."""

    def test_defaults_without_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(CONFIG_ENV, raising=False)
        monkeypatch.delenv(DB_PATH_ENV, raising=False)

        assert config_from_env().database.path == "kursplan.db"

    def test_db_path_override(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        config_file = tmp_path / "kursplan.yaml"
        config_file.write_text("database:\n  path: plan.db\nseed: false\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV, str(config_file))
        monkeypatch.setenv(DB_PATH_ENV, "/tmp/override.db")

        config = config_from_env()

        assert config.database.path == "/tmp/override.db"
        assert config.seed is False
