"""Load tracker configuration from TOML files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any
import tomllib

DEFAULT_DB_URL = "sqlite:///match_ledger.db"


@dataclass(frozen=True)
class TrackerConfig:
    """Storage and ledger settings for one tracker profile."""

    name: str
    description: str | None
    file_path: Path
    db_url: str
    lookback_days: int
    default_tags: frozenset[str]

    def as_config_json(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "db_url": self.db_url,
            "lookback_days": self.lookback_days,
            "default_tags": sorted(self.default_tags),
        }


def load_tracker_config(file_path: Path) -> TrackerConfig:
    """Load and validate a single tracker TOML file."""
    if not file_path.is_file():
        raise FileNotFoundError(f"Config file not found: {file_path}")
    with file_path.open("rb") as file:
        raw = tomllib.load(file)
    return _parse_tracker_config(raw, file_path)


def load_tracker_configs(config_dir: Path) -> list[TrackerConfig]:
    """Load all TOML files in a directory with duplicate-name validation."""
    if not config_dir.exists():
        raise FileNotFoundError(f"Config directory not found: {config_dir}")
    if not config_dir.is_dir():
        raise NotADirectoryError(f"Config path is not a directory: {config_dir}")

    config_files = sorted(config_dir.glob("*.toml"))
    if not config_files:
        raise ValueError(f"No .toml config files found in: {config_dir}")

    configs = [load_tracker_config(file_path) for file_path in config_files]

    names = [config.name for config in configs]
    if len(names) != len(set(names)):
        raise ValueError(f"Duplicate tracker names found in {config_dir}: {names}")

    return configs


def _parse_tracker_config(raw: dict[str, Any], file_path: Path) -> TrackerConfig:
    tracker_raw = raw.get("tracker", {})
    ledger_raw = raw.get("ledger", {})

    name = str(tracker_raw.get("name", "")).strip()
    if not name:
        raise ValueError(f"{file_path}: [tracker].name is required")

    description_value = tracker_raw.get("description")
    description = None if description_value is None else str(description_value)

    db_url = str(tracker_raw.get("db_url", DEFAULT_DB_URL)).strip()
    if not db_url:
        raise ValueError(f"{file_path}: [tracker].db_url must not be empty")

    lookback_days = int(tracker_raw.get("lookback_days", 0))
    if lookback_days < 0:
        raise ValueError(f"{file_path}: [tracker].lookback_days must be >= 0")

    tags_raw = ledger_raw.get("default_tags", [])
    if isinstance(tags_raw, str) or not isinstance(tags_raw, list):
        raise ValueError(f"{file_path}: [ledger].default_tags must be a list of strings")
    default_tags = frozenset(str(tag).strip() for tag in tags_raw if str(tag).strip())

    return TrackerConfig(
        name=name,
        description=description,
        file_path=file_path,
        db_url=db_url,
        lookback_days=lookback_days,
        default_tags=default_tags,
    )


__all__ = ["DEFAULT_DB_URL", "TrackerConfig", "load_tracker_config", "load_tracker_configs"]
