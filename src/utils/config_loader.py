"""Configuration loader for the offline-first sync service."""

import os
import re
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import ValidationError

from src.models.collections import COLLECTIONS
from src.models.config import AppConfig

log = structlog.stdlib.get_logger()

CONFIG_DIR = Path(__file__).parent.parent.parent / "config"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


class ConfigLoader:
    """Loads and validates application configuration from YAML files and environment variables.

    Strings in the YAML file may reference environment variables as
    ``${VAR_NAME}`` or, with a fallback, ``${VAR_NAME:-default}``.
    """

    def __init__(self, config_dir: Path | None = None) -> None:
        self.env_var_pattern = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")
        self.config_dir = config_dir or CONFIG_DIR

    def load_config(self, config_path: Optional[str] = None) -> AppConfig:
        """Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to the configuration YAML file. If None, uses
                config/{APP_ENV}.yaml falling back to config/default.yaml

        Returns:
            AppConfig: Validated application configuration

        Raises:
            ConfigurationError: If configuration file is missing or invalid
        """
        if config_path is None:
            config_path = self._get_default_config_path()

        log.info("loading_configuration", config_path=config_path)

        config_dict = self._load_yaml_file(config_path)
        config_dict = self._substitute_env_vars(config_dict)

        try:
            app_config = AppConfig(**config_dict)
        except ValidationError as e:
            log.error("configuration_validation_failed", error=str(e))
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        log.info(
            "configuration_loaded_successfully",
            collections=app_config.sync.collections,
            page_size=app_config.sync.page_size,
        )
        return app_config

    def _get_default_config_path(self) -> str:
        env = os.getenv("APP_ENV", "default")
        config_file = self.config_dir / f"{env}.yaml"

        if not config_file.exists():
            config_file = self.config_dir / "default.yaml"

        if not config_file.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_file}. "
                f"Please create config/default.yaml or set APP_ENV to a valid environment."
            )

        return str(config_file)

    def _load_yaml_file(self, config_path: str) -> Dict[str, Any]:
        """Load YAML configuration file.

        Raises:
            ConfigurationError: If file cannot be read or parsed
        """
        try:
            with open(config_path, "r") as f:
                config_dict = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML file {config_path}: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration file {config_path}: {e}")

        if config_dict is None:
            raise ConfigurationError(f"Configuration file is empty: {config_path}")
        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping at top level: {config_path}"
            )

        log.debug("yaml_file_loaded", config_path=config_path)
        return config_dict

    def _substitute_env_vars(self, config: Any) -> Any:
        """Recursively substitute environment variables in configuration."""
        if isinstance(config, dict):
            return {key: self._substitute_env_vars(value) for key, value in config.items()}
        elif isinstance(config, list):
            return [self._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            return self._substitute_env_var_in_string(config)
        else:
            return config

    def _substitute_env_var_in_string(self, value: str) -> str:
        """Substitute environment variables in a string.

        Raises:
            ConfigurationError: If a referenced variable is unset and has no default
        """

        def replace(match: re.Match) -> str:
            var_name, default = match.group(1), match.group(2)
            env_value = os.getenv(var_name)
            if env_value is not None:
                return env_value
            if default is not None:
                return default
            raise ConfigurationError(
                f"Required environment variable not set: {var_name}. "
                f"Please set {var_name} in your environment or .env file."
            )

        return self.env_var_pattern.sub(replace, value)

    def validate_config(self, config: AppConfig) -> list[str]:
        """Return non-fatal warnings about a configuration.

        Pydantic already rejects invalid values; this only flags settings that
        are legal but probably not what the operator meant.
        """
        warnings = []

        unknown = [name for name in config.sync.collections if name not in COLLECTIONS]
        if unknown:
            warnings.append(
                f"sync.collections contains unknown collections {unknown}. "
                f"Known collections: {sorted(COLLECTIONS)}"
            )

        duplicates = [name for name, count in Counter(config.sync.collections).items() if count > 1]
        if duplicates:
            warnings.append(f"sync.collections lists {duplicates} more than once")

        if config.sync.page_size is not None and config.sync.page_size < 10:
            warnings.append(
                f"sync.page_size ({config.sync.page_size}) is very small; "
                f"large backlogs will need many follow-up passes"
            )

        if config.feed.request_timeout_seconds >= config.sync.feed_timeout_seconds:
            warnings.append(
                f"feed.request_timeout_seconds ({config.feed.request_timeout_seconds}) should be "
                f"less than sync.feed_timeout_seconds ({config.sync.feed_timeout_seconds}) "
                f"or retries will never run"
            )
        elif config.feed.retry_budget_seconds() > config.sync.feed_timeout_seconds:
            warnings.append(
                f"sync.feed_timeout_seconds ({config.sync.feed_timeout_seconds}) is below the "
                f"feed retry budget ({config.feed.retry_budget_seconds():.1f}s); "
                f"later retries will be cut short"
            )

        if warnings:
            log.warning("configuration_validation_warnings", warnings=warnings)

        return warnings
