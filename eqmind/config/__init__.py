"""Configuration module for eqmind."""

from eqmind.config.loader import get_config_path, load_config, save_config
from eqmind.config.schema import Config

__all__ = ["Config", "get_config_path", "load_config", "save_config"]
