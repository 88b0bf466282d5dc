"""Configuration template substitution utilities."""

import os
import re
from pathlib import Path

import yaml
from loguru import logger
from pydantic_core import ValidationError

from src.portal.runtime.config.config_data import ConfigData


def substitute_env_vars(text: str) -> str:
    """
    Substitute environment variable placeholders in text.

    Supports formats:
    - ${VAR_NAME} - required variable (raises error if missing)
    - ${VAR_NAME:-default} - optional with default value
    - ${VAR_NAME:?error_message} - required with custom error message
    """
    def replacer(match):
        var_expr = match.group(1)

        if ":-" in var_expr:
            var_name, default = var_expr.split(":-", 1)
            return os.getenv(var_name, default)

        elif ":?" in var_expr:
            var_name, error_msg = var_expr.split(":?", 1)
            value = os.getenv(var_name)
            if value is None:
                raise ValueError(f"Required environment variable {var_name}: {error_msg}")
            return value

        else:
            value = os.getenv(var_expr)
            if value is None:
                raise ValueError(f"Required environment variable {var_expr} not set")
            return value

    pattern = r'\$\{([^}]+)\}'
    return re.sub(pattern, replacer, text)


def _strip_empty(value):
    """Drop blank values so pydantic defaults apply to unset placeholders."""
    if isinstance(value, dict):
        return {k: _strip_empty(v) for k, v in value.items() if v not in ("", None)}
    if isinstance(value, list):
        return [_strip_empty(v) for v in value]
    return value


def load_templated_yaml(file_path: Path, env_mode: str = "development") -> ConfigData:
    """
    Load a YAML file with environment variable substitution.

    Variables prefixed with the upper-cased environment name (for example
    ``PRODUCTION_DATABASE_URL``) override their unprefixed counterpart.

    Args:
        file_path: Path to the YAML file
        env_mode: Environment name selecting the prefixed overrides

    Returns:
        Validated configuration; defaults only when the file does not exist

    Raises:
        ValueError: If required environment variables are missing or the YAML is invalid
    """
    if not file_path.exists():
        logger.warning("Configuration file {} not found; using defaults", file_path)
        return ConfigData()

    content = file_path.read_text()

    logger.info("Loading configuration for environment: {}", env_mode)

    prefix = f"{env_mode.upper()}_"
    env_variables = [(var, value) for var, value in os.environ.items() if var.startswith(prefix)]
    logger.info(
        "Applying environment-specific overrides: {}",
        [var_name for var_name, _ in env_variables],
    )

    for var_name, var_value in env_variables:
        os.environ[var_name[len(prefix):]] = var_value

    substituted_content = substitute_env_vars(content)

    try:
        loaded = yaml.safe_load(substituted_content)
        if not loaded:
            raise ValueError("Failed to parse YAML")
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e

    try:
        config = ConfigData(**_strip_empty(loaded.get("config", {})))
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e

    return config
