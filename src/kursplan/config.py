"""Configuration loading for the planner."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from kursplan.entities.managers.business_logic import (
    MAX_STUDENTS_HARD,
    MAX_STUDENTS_PREFERRED,
    normalize_business_logic,
)

CONFIG_ENV = "KURSPLAN_CONFIG"
DB_PATH_ENV = "KURSPLAN_DB_PATH"


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


@dataclass
class DatabaseConfig:
    """Where the snapshot repository keeps its SQLite file."""

    path: str = "kursplan.db"


@dataclass
class LoggingConfig:
    """Rotating log file settings used by setup_logging."""

    dir: str | None = None
    level: str = "INFO"
    file: str = "kursplan.log"
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5


@dataclass
class SchedulingConfig:
    """Scheduling parameters.

    The capacity caps seed the business logic document when the stored
    state has none.
    """

    max_students_hard: int = MAX_STUDENTS_HARD
    max_students_preferred: int = MAX_STUDENTS_PREFERRED
    future_only_replan: bool = True
    default_cohort_size: int = 30

    def business_logic(self) -> dict[str, Any]:
        """Business logic document with these parameters and default rules."""
        return normalize_business_logic(
            {
                "scheduling": {
                    "params": {
                        "maxStudentsHard": self.max_students_hard,
                        "maxStudentsPreferred": self.max_students_preferred,
                        "futureOnlyReplan": self.future_only_replan,
                    }
                }
            }
        )


@dataclass
class PlannerConfig:
    """Planner configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    seed: bool = True
    root_path: Path = field(default_factory=Path)

    @classmethod
    def from_dict(cls, data: dict[str, Any], root_path: Path | None = None) -> PlannerConfig:
        """Create config from dictionary.

        Args:
            data: Configuration dictionary from YAML.
            root_path: Directory containing the config file; relative database
                paths are resolved against it.

        Returns:
            Parsed configuration object.

        Raises:
            ConfigError: If a section is not a mapping or a value has the wrong type.
        """
        for section in ("database", "logging", "scheduling"):
            if not isinstance(data.get(section) or {}, dict):
                raise ConfigError(f"Section '{section}' must be a mapping")

        database_data = data.get("database") or {}
        logging_data = data.get("logging") or {}
        scheduling_data = data.get("scheduling") or {}

        try:
            scheduling = SchedulingConfig(
                max_students_hard=int(scheduling_data.get("max_students_hard", MAX_STUDENTS_HARD)),
                max_students_preferred=int(
                    scheduling_data.get("max_students_preferred", MAX_STUDENTS_PREFERRED)
                ),
                future_only_replan=bool(scheduling_data.get("future_only_replan", True)),
                default_cohort_size=int(scheduling_data.get("default_cohort_size", 30)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid scheduling value: {e}") from e

        if scheduling.max_students_preferred > scheduling.max_students_hard:
            raise ConfigError("max_students_preferred cannot exceed max_students_hard")

        try:
            log_config = LoggingConfig(
                dir=logging_data.get("dir"),
                level=str(logging_data.get("level", "INFO")).upper(),
                file=str(logging_data.get("file", "kursplan.log")),
                max_bytes=int(logging_data.get("max_bytes", 10 * 1024 * 1024)),
                backup_count=int(logging_data.get("backup_count", 5)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid logging value: {e}") from e

        root = root_path or Path()
        db_path = str(database_data.get("path", DatabaseConfig.path))
        if db_path != ":memory:" and not Path(db_path).is_absolute():
            db_path = str(root / db_path)

        return cls(
            database=DatabaseConfig(path=db_path),
            logging=log_config,
            scheduling=scheduling,
            seed=bool(data.get("seed", True)),
            root_path=root,
        )


def load_config(config_path: Path | str) -> PlannerConfig:
    """Load planner configuration from a YAML file.

    Args:
        config_path: Path to kursplan.yaml file.

    Returns:
        Parsed configuration object.

    Raises:
        ConfigError: If file doesn't exist or is invalid.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a YAML mapping, got {type(data).__name__}")

    return PlannerConfig.from_dict(data, config_path.parent)


def config_from_env() -> PlannerConfig:
    """Build configuration from the environment.

    ``KURSPLAN_CONFIG`` names a YAML file to load; ``KURSPLAN_DB_PATH``
    overrides the database path either way.
    """
    config_path = os.environ.get(CONFIG_ENV)
    config = load_config(config_path) if config_path else PlannerConfig()
    db_path = os.environ.get(DB_PATH_ENV)
    if db_path:
        config.database.path = db_path
    return config
