import json
import os
import re
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FilterSettings(BaseSettings):
    """Request filter settings."""

    model_config = SettingsConfigDict(env_prefix="RULEGATE_")

    environment: str = Field(
        default="development",
        description="Environment name selecting the configuration override file"
    )

    config_dir: Optional[str] = Field(
        default=None,
        description="Directory containing config.yaml and environment overrides"
    )

    rules_source: Optional[str] = Field(
        default=None,
        description="Path of the JSON or YAML file holding the filter rules"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_format: str = Field(
        default="text",
        description="Log format ('json' or 'text')"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Optional log file path"
    )


class ConfigLoader:
    """Loads the flat configuration mapping used to interpolate filter rules."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize the configuration loader.

        Args:
            config_dir: Directory containing configuration files.
                       Defaults to the config directory relative to the project root.
        """
        if config_dir is None:
            current_dir = Path(__file__).parent.parent.parent
            self.config_dir = current_dir / "config"
        else:
            self.config_dir = Path(config_dir)

    def load_config_map(self, environment: Optional[str] = None) -> Mapping[str, str]:
        """Load the configuration mapping for the specified environment.

        Args:
            environment: Environment name (development, production, etc.).
                        If None, will try to detect from the ENVIRONMENT variable.

        Returns:
            Read-only mapping from variable name to string value.
        """
        if environment is None:
            environment = os.getenv("ENVIRONMENT", "development")

        config_data = self._load_base_config()

        env_config = self._load_environment_config(environment)
        if env_config:
            config_data = self._merge_configs(config_data, env_config)

        config_data = self._substitute_env_vars(config_data)

        return MappingProxyType(self._flatten(config_data))

    def _load_base_config(self) -> Dict[str, Any]:
        """Load the base configuration."""
        base_config_path = self.config_dir / "config.yaml"
        if base_config_path.exists():
            return self._load_yaml_file(base_config_path)
        return {}

    def _load_environment_config(self, environment: str) -> Optional[Dict[str, Any]]:
        """Load environment-specific configuration."""
        env_config_path = self.config_dir / f"{environment}.yaml"
        if env_config_path.exists():
            return self._load_yaml_file(env_config_path)
        return None

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load and parse a YAML mapping."""
        with open(file_path, 'r') as file:
            data = yaml.safe_load(file) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {file_path} must contain a mapping")

        return data

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _substitute_env_vars(self, config: Any) -> Any:
        """Substitute environment variables in configuration values."""
        if isinstance(config, dict):
            return {key: self._substitute_env_vars(value) for key, value in config.items()}
        elif isinstance(config, list):
            return [self._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            return self._substitute_string_env_vars(config)
        else:
            return config

    def _substitute_string_env_vars(self, value: str) -> str:
        """Substitute ${VAR_NAME} and ${VAR_NAME:default} in a string value."""
        def replace_env_var(match):
            var_spec = match.group(1)
            if ':' in var_spec:
                var_name, default_value = var_spec.split(':', 1)
                return os.getenv(var_name, default_value)
            else:
                return os.getenv(var_spec, match.group(0))

        return re.sub(r'\$\{([^}]+)\}', replace_env_var, value)

    def _flatten(self, config: Dict[str, Any], prefix: str = "") -> Dict[str, str]:
        """Flatten nested mappings into "_"-joined keys with string values."""
        result = {}

        for key, value in config.items():
            name = f"{prefix}_{key}" if prefix else str(key)
            if isinstance(value, dict):
                result.update(self._flatten(value, name))
            else:
                result[name] = _stringify(value)

        return result


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(_stringify(item) for item in value)
    return str(value)


def load_rule_file(reference: Union[str, "os.PathLike[str]"]) -> Any:
    """Load filter rules from a JSON or YAML file.

    Args:
        reference: Path of the rule file; ".json" files are parsed as JSON, anything else as YAML.

    Returns:
        The parsed document.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON.
        yaml.YAMLError: If the file is not valid YAML.
    """
    path = Path(reference)
    with open(path, 'r') as file:
        if path.suffix.lower() == ".json":
            return json.load(file)
        return yaml.safe_load(file)


# Global settings instance
_filter_settings: Optional[FilterSettings] = None


def get_settings() -> FilterSettings:
    """Get the current filter settings."""
    global _filter_settings
    if _filter_settings is None:
        _filter_settings = FilterSettings()
    return _filter_settings


def reload_settings() -> FilterSettings:
    """Reload the filter settings from the environment."""
    global _filter_settings
    _filter_settings = FilterSettings()
    return _filter_settings


def get_config_map(settings: Optional[FilterSettings] = None) -> Mapping[str, str]:
    """Load the configuration mapping described by the settings."""
    settings = settings or get_settings()
    config_dir = Path(settings.config_dir) if settings.config_dir else None
    return ConfigLoader(config_dir).load_config_map(settings.environment)
