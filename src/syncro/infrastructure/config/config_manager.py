"""Configuration manager for loading and validating .syncro.yml"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import ValidationError

from syncro.domain.config import ApiConfig, AppConfig, RetryConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".syncro.yml"

# env var -> (section, key); values are strings, pydantic coerces them
ENV_OVERRIDES: Dict[str, Tuple[str, str]] = {
    "SYNCRO_API_KEY": ("api", "api_key"),
    "SYNCRO_BASE_URL": ("api", "base_url"),
    "SYNCRO_MAX_RETRIES": ("retry", "max_retries"),
}


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .syncro.yml and environment variables

    Configuration priority:
    1. Model defaults (AppConfig)
    2. .syncro.yml file (searched upwards from current directory)
    3. Environment variables (SYNCRO_*)
    4. CLI arguments (handled by CLI layer)
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .syncro.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                errors.append(f"  - {field}: {error['msg']}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILENAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILENAME} found, using defaults")
        return None

    def _read_file(self) -> Dict[str, Any]:
        """Sections from the YAML file; empty when missing or unreadable"""
        if not self.config_path or not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {self.config_path}: {e}")
            logger.info("Using default configuration")
            return {}

        if not isinstance(file_config, dict):
            logger.warning(f"Ignoring {self.config_path}: top level is not a mapping")
            return {}

        logger.info(f"Loaded configuration from {self.config_path}")
        return file_config

    def _load_config(self) -> AppConfig:
        """Layer env overrides over the file and validate with Pydantic

        Missing sections and keys take the model defaults.

        Raises:
            ValidationError: If configuration is invalid
        """
        # An empty section in YAML (`api:`) means "all defaults"
        sections = {k: v for k, v in self._read_file().items() if v is not None}

        for env_name, (section, key) in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if not value:
                continue
            values = sections.setdefault(section, {})
            # A non-mapping section is left for pydantic to reject
            if isinstance(values, dict):
                values[key] = value
                logger.debug(f"{section}.{key} set from {env_name}")

        return AppConfig(**sections)

    def get_api_config(self) -> ApiConfig:
        return self.config.api

    def get_retry_config(self) -> RetryConfig:
        return self.config.retry
