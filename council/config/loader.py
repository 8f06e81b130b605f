"""Load and save the JSON config file."""

import json
from pathlib import Path

from loguru import logger

from council.config.schema import Config
from council.utils.helpers import get_data_dir


def get_config_path() -> Path:
    return get_data_dir() / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load config from *config_path* (default ~/.council/config.json).

    Values from the file take precedence over COUNCIL_* environment
    variables. A missing or unreadable file yields the defaults.
    """
    path = config_path or get_config_path()
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return Config(**data)
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning("Failed to load config from {}: {}", path, e)
            logger.warning("Using default configuration")
    return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
