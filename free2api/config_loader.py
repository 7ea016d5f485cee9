"""Configuration loading from YAML files with environment variable support."""

import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import dotenv_values

from .config import GatewayConfig, build_gateway_config
from .core.exceptions import ConfigurationError

logger = logging.getLogger("free2api")

# Relative paths are resolved against the project root
DEFAULT_CONFIG_PATH = "configs/config_default.yaml"
CONFIG_PATH_ENV = "FREE2API_CONFIG"

# ${VAR_NAME} or $VAR_NAME
_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def resolve_config_path(path: str) -> Path:
    candidate = Path(path)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_env_path(config_path: Path, env_path: str | None = None) -> Path:
    """Pick the .env file that belongs to a config file.

    configs/config_default.yaml pairs with configs/.env_default; any other
    file name pairs with a plain .env next to it.
    """
    if env_path:
        return resolve_config_path(env_path)
    prefix = "config_"
    if config_path.stem.startswith(prefix):
        return config_path.with_name(".env_" + config_path.stem[len(prefix):])
    return config_path.with_name(".env")


def load_env_values(env_path: Path) -> dict[str, str]:
    """Read a .env file without touching os.environ."""
    if not env_path.exists():
        return {}
    return {
        key: value
        for key, value in dotenv_values(env_path).items()
        if value is not None
    }


def _read_yaml(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        logger.error("Config file not found: %s", config_path)
        raise ConfigurationError(f"Config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")
    return data


def load_config(
    path: str | None = None,
    env_path: str | None = None,
    substitute_env: bool = True,
) -> dict:
    """Load the raw configuration mapping from a YAML file.

    Args:
        path: Path to the config file. Defaults to FREE2API_CONFIG,
              or configs/config_default.yaml in the project root.
        env_path: Optional .env path override for env substitution.
        substitute_env: Whether to expand ${VAR} placeholders.

    Raises:
        ConfigurationError: If the file is missing, unparsable or not a mapping.
    """
    config_path = resolve_config_path(
        path or os.getenv(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH
    )
    logger.info("Loading configuration from %s", config_path)
    data = _read_yaml(config_path)

    if substitute_env:
        env_file = resolve_env_path(config_path, env_path)
        env_values = load_env_values(env_file)
        if env_values:
            logger.info("Loaded %d values from %s", len(env_values), env_file)
        data = _substitute_env_vars(data, env_values)

    return data


def load_gateway_config(
    path: str | None = None,
    env_path: str | None = None,
) -> GatewayConfig:
    """Load, substitute and freeze the configuration in one step."""
    return build_gateway_config(load_config(path, env_path))


def _lookup_env(name: str, env_values: Mapping[str, str]) -> str:
    # .env file values win over the process environment
    value = env_values.get(name)
    if value is None:
        value = os.getenv(name)
    if value is None:
        logger.warning(
            "Environment variable '%s' is not set; substituting an empty value", name
        )
        return ""
    return value


def _substitute_env_vars(
    obj: Any, env_values: Mapping[str, str] | None = None
) -> Any:
    """Recursively expand ${VAR} and $VAR placeholders in string values.

    Unset variables expand to an empty string so optional settings such as
    auth.api_master_key stay disabled.
    """
    env_values = env_values or {}
    if isinstance(obj, dict):
        return {key: _substitute_env_vars(value, env_values) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_substitute_env_vars(item, env_values) for item in obj]
    if isinstance(obj, str):
        return _ENV_PATTERN.sub(
            lambda match: _lookup_env(match.group(1) or match.group(2), env_values),
            obj,
        )
    return obj
