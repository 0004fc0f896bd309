"""Load configuration from ~/.eqmind/config.json."""

import json
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from eqmind.config.schema import Config


def get_config_path() -> Path:
    """Default config file location."""
    return Path.home() / ".eqmind" / "config.json"


def load_config(path: Path | None = None) -> Config:
    """
    Load config from a JSON file, falling back to defaults.

    Environment variables (EQMIND_*) still apply on top of defaults when
    no file exists.
    """
    path = path or get_config_path()
    if not path.exists():
        return Config()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse {path}: {e}. Using default config.")
        return Config()

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Invalid config in {path}: {e}. Using default config.")
        return Config()


def save_config(config: Config, path: Path | None = None) -> Path:
    """Write config to disk and return the path written."""
    path = path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.model_dump(), indent=2), encoding="utf-8")
    return path
