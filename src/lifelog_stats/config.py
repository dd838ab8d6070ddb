"""Configuration file management for lifelog-stats.

Reads and writes ~/.lifelog-stats/config.json for settings that don't belong in
the event store (database location, default owner, display defaults).
"""
from __future__ import annotations

import json
from pathlib import Path

DEFAULT_CONFIG_PATH: Path = Path.home() / ".lifelog-stats" / "config.json"

DEFAULTS: dict[str, int] = {
    "top_n": 5,
    "trend_days": 30,
}


def load_config(config_path: Path | None = None) -> dict:
    """Load config from JSON file. Returns {} if file missing or invalid."""
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict, config_path: Path | None = None) -> None:
    """Write config dict to JSON file. Creates parent dirs if needed."""
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def get_db_path(config_path: Path | None = None) -> Path | None:
    """Return the configured event database path, or None if not set."""
    raw = load_config(config_path).get("db_path")
    if raw:
        return Path(raw).expanduser()
    return None


def set_db_path(db_path: Path, config_path: Path | None = None) -> None:
    config = load_config(config_path)
    config["db_path"] = str(db_path)
    save_config(config, config_path)


def get_owner_id(config_path: Path | None = None) -> str | None:
    """Return the default owner for personal views, or None if not set."""
    raw = load_config(config_path).get("owner_id")
    return str(raw) if raw else None


def set_owner_id(owner_id: str, config_path: Path | None = None) -> None:
    """Persist the default owner to config."""
    config = load_config(config_path)
    config["owner_id"] = owner_id
    save_config(config, config_path)


def get_int_setting(key: str, config_path: Path | None = None) -> int:
    """Read a positive integer setting, falling back to DEFAULTS."""
    raw = load_config(config_path).get(key)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return DEFAULTS[key]
    return value if value > 0 else DEFAULTS[key]
