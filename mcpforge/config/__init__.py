"""Configuration module for mcpforge."""

from mcpforge.config.loader import load_config, get_config_path
from mcpforge.config.schema import Config
from mcpforge.config.access import get_config, clear_config_cache

__all__ = ["Config", "load_config", "get_config_path", "get_config", "clear_config_cache"]
