"""
Configuration loader for testament.

This module provides functionality for loading and managing
configuration settings.

"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from xdg.BaseDirectory import xdg_config_home

from testament.config.config_schema import AppConfigSchema

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".testament.yml"


class ConfigError(Exception):
	"""Exception raised for configuration errors."""


class ConfigParsingError(ConfigError):
	"""Exception raised when configuration file cannot be parsed."""


class ConfigLoader:
	"""
	Loads configuration for testament into a Pydantic schema.

	This class handles locating the configuration file, parsing it and
	applying defaults from `AppConfigSchema`.

	"""

	def __init__(self, config_file: Path | None = None, repo_root: Path | None = None) -> None:
		"""
		Initialize the configuration loader.

		Args:
			config_file: Path to configuration file (optional)
			repo_root: Repository root path (optional)

		"""
		self.repo_root = repo_root
		self._resolved_config_file = self._resolve_config_file(config_file)
		self._config = self._load_config()

	def _resolve_config_file(self, config_file: Path | None = None) -> Path | None:
		"""
		Resolve the configuration file path.

		If a config file is specified, use that. Otherwise, look in standard locations:
		1. <repo_root>/.testament.yml
		2. ./.testament.yml in the current directory
		3. $XDG_CONFIG_HOME/testament/config.yml

		Args:
			config_file: Explicitly provided config file path (optional)

		Returns:
			Optional[Path]: Resolved config file path or None if no suitable file found

		"""
		if config_file:
			path = config_file.expanduser().resolve()
			if not path.exists():
				logger.warning("Specified config file not found: %s", path)
			return path

		candidates = []
		if self.repo_root is not None:
			candidates.append(self.repo_root / CONFIG_FILE_NAME)
		candidates.append(Path(CONFIG_FILE_NAME))
		candidates.append(Path(xdg_config_home) / "testament" / "config.yml")

		for candidate in candidates:
			if candidate.exists():
				return candidate
		return None

	@staticmethod
	def _parse_yaml_file(file_path: Path) -> dict[str, Any]:
		"""
		Parse a YAML file into a dictionary.

		Raises:
			yaml.YAMLError: If the file is not valid YAML or not a mapping

		"""
		with file_path.open(encoding="utf-8") as f:
			content = yaml.safe_load(f)
			if content is None:  # Empty file
				return {}
			if not isinstance(content, dict):
				msg = f"File {file_path} does not contain a valid YAML dictionary"
				raise yaml.YAMLError(msg)
			return content

	def _load_config(self) -> AppConfigSchema:
		"""
		Load configuration from file and parse it into AppConfigSchema.

		Raises:
			ConfigParsingError: If configuration file exists but cannot be loaded or parsed.

		"""
		file_config: dict[str, Any] = {}
		if self._resolved_config_file is None:
			logger.debug("No configuration file found. Using default configuration.")
		elif not self._resolved_config_file.exists():
			logger.info("Configuration file not found: %s. Using default configuration.", self._resolved_config_file)
		else:
			try:
				file_config = self._parse_yaml_file(self._resolved_config_file)
				logger.debug("Loaded configuration from %s", self._resolved_config_file)
			except yaml.YAMLError as e:
				msg = f"Configuration file {self._resolved_config_file} does not contain a valid YAML dictionary."
				logger.exception(msg)
				raise ConfigParsingError(msg) from e
			except OSError as e:
				msg = f"Error accessing configuration file {self._resolved_config_file}: {e}"
				logger.exception(msg)
				raise ConfigParsingError(msg) from e

		try:
			return AppConfigSchema(**file_config)
		except ValidationError as e:
			msg = f"Error parsing configuration into schema: {e}"
			logger.exception(msg)
			raise ConfigParsingError(msg) from e

	@property
	def config_file(self) -> Path | None:
		"""The configuration file in use, if any."""
		return self._resolved_config_file

	@property
	def get(self) -> AppConfigSchema:
		"""
		Get the current configuration.

		Returns:
			AppConfigSchema: The current configuration

		"""
		return self._config
