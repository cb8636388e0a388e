"""Configuration for testament."""

from testament.config.config_loader import ConfigError, ConfigLoader, ConfigParsingError
from testament.config.config_schema import AppConfigSchema

__all__ = ["ConfigError", "ConfigLoader", "ConfigParsingError", "AppConfigSchema"]
