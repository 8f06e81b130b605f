"""Configuration schema and loading."""

from council.config.loader import get_config_path, load_config, save_config
from council.config.schema import Config

__all__ = ["Config", "get_config_path", "load_config", "save_config"]
