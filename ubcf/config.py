"""YAML-backed runtime configuration (`config.yaml`)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .paths import get_repo_root


ON_BAD_LINES_CHOICES = ("error", "skip")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DatasetConfig:
    raw_dir: str = "data/raw"
    ratings_file: str = "training_data.csv"
    on_bad_lines: str = "error"


@dataclass(frozen=True)
class UserCFConfig:
    k: int = 5


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    dataset: DatasetConfig = field(default_factory=DatasetConfig)
    user_cf: UserCFConfig = field(default_factory=UserCFConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _section(cfg_yaml: dict[str, Any], name: str) -> dict[str, Any]:
    raw = cfg_yaml.get(name)
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"config section {name!r} must be a mapping, got {type(raw).__name__}")
    return raw


def parse_config(cfg_yaml: dict[str, Any]) -> AppConfig:
    """Build an `AppConfig` from an already-parsed YAML mapping.

    Missing sections and keys fall back to the dataclass defaults.
    """
    if not isinstance(cfg_yaml, dict):
        raise ValueError("config.yaml must be a mapping")

    dataset_raw = _section(cfg_yaml, "dataset")
    user_cf_raw = _section(cfg_yaml, "user_cf")
    logging_raw = _section(cfg_yaml, "logging")

    defaults = DatasetConfig()
    dataset = DatasetConfig(
        raw_dir=str(dataset_raw.get("raw_dir", defaults.raw_dir)),
        ratings_file=str(dataset_raw.get("ratings_file", defaults.ratings_file)),
        on_bad_lines=str(dataset_raw.get("on_bad_lines", defaults.on_bad_lines)),
    )
    if dataset.on_bad_lines not in ON_BAD_LINES_CHOICES:
        raise ValueError(
            f"dataset.on_bad_lines must be one of {list(ON_BAD_LINES_CHOICES)}, got {dataset.on_bad_lines!r}"
        )

    user_cf = UserCFConfig(k=int(user_cf_raw.get("k", UserCFConfig.k)))
    if user_cf.k < 1:
        raise ValueError(f"user_cf.k must be >= 1, got {user_cf.k}")

    log_cfg = LoggingConfig(level=str(logging_raw.get("level", LoggingConfig.level)).upper())
    if log_cfg.level not in LOG_LEVELS:
        raise ValueError(f"logging.level must be one of {list(LOG_LEVELS)}, got {log_cfg.level!r}")
    return AppConfig(dataset=dataset, user_cf=user_cf, logging=log_cfg)


def load_config(path: Path) -> AppConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    obj = yaml.safe_load(path.read_text())
    if obj is None:
        # An empty file means "all defaults".
        obj = {}
    if not isinstance(obj, dict):
        raise ValueError(f"Expected YAML mapping at {path}, got {type(obj)}")
    return parse_config(obj)


def load_app_config(config_path: Path | None = None) -> tuple[AppConfig, Path]:
    """Return (config, base dir for relative paths).

    An explicit `config_path` resolves relative paths against its own
    directory. Without one, `<repo>/config.yaml` is used when present;
    otherwise defaults apply relative to the repo root (or the working
    directory when no repo root can be found).
    """
    if config_path is not None:
        config_path = Path(config_path).resolve()
        return load_config(config_path), config_path.parent
    try:
        repo_root = get_repo_root()
    except FileNotFoundError:
        return AppConfig(), Path.cwd().resolve()
    default_path = repo_root / "config.yaml"
    if default_path.is_file():
        return load_config(default_path), repo_root
    return AppConfig(), repo_root
