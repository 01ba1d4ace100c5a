"""Configuration loading for the offline engine.

This module handles loading engine configuration from YAML files
and environment variables.

Contract:
- Inputs: Config file paths, environment variables
- Outputs: EngineSettings objects
- Side Effects: Creates default config file if missing
"""

import logging
import os
from pathlib import Path

import yaml

from ..storage.paths import get_config_dir
from .settings import EngineSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = """# offlined configuration
#
# Precedence (highest to lowest):
# 1. Environment variables (OFFLINED_<KEY>, e.g. OFFLINED_VERSION=v2)
# 2. This configuration file
# 3. Built-in defaults

# Daemon settings
host: "127.0.0.1"
port: 8430
log_level: "info"

# Release version tag. Changing it triggers cleanup of every cache
# partition tagged with another version once the new release activates.
version: "v1"

# Origin of the host application every intercepted request targets
app_origin: "http://localhost:3000"

# Routes and static assets fetched and cached at install time
precache_manifest:
  - "/"
  - "/dashboard"
  - "/accounts"
  - "/transactions"
  - "/insights"
  - "/reports"
  - "/settings"
  - "/auth/login"
  - "/auth/signup"
  - "/offline"
  - "/manifest.json"

# Data endpoints (network-first)
api_prefixes:
  - "/api/"
graphql_path: "/graphql"

# Writes under these prefixes are queued for replay when the network is down
queue_prefixes:
  - "/api/"

# Page served for failed navigations
offline_route: "/offline"

# Periodic sync trigger in seconds (null disables it)
sync_interval_seconds: 300
"""


def get_config_path() -> Path:
    """Get path to config file.

    Returns:
        Path to offlined.yaml in config directory

    Example:
        >>> config_path = get_config_path()
        >>> assert config_path.name == "offlined.yaml"
    """
    return get_config_dir() / "offlined.yaml"


def create_default_config(config_path: Path | None = None) -> Path:
    """Create default config file if it doesn't exist.

    Args:
        config_path: Optional target path (default: offlined.yaml in config dir)

    Returns:
        Path of the config file
    """
    if config_path is None:
        config_path = get_config_path()

    if config_path.exists():
        logger.debug(f"Config file already exists: {config_path}")
        return config_path

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(DEFAULT_CONFIG, encoding="utf-8")
    logger.info(f"Created default config: {config_path}")
    return config_path


def load_config(config_path: Path | None = None) -> EngineSettings:
    """Load engine configuration from YAML and environment.

    Environment variables take precedence over YAML settings.
    Variables should be prefixed with OFFLINED_ (e.g., OFFLINED_PORT).

    Args:
        config_path: Optional config file path (default: offlined.yaml in config dir)

    Returns:
        Validated engine settings

    Raises:
        ValueError: If the YAML file is not a mapping

    Example:
        >>> settings = load_config()
        >>> assert isinstance(settings, EngineSettings)
    """
    if config_path is None:
        config_path = get_config_path()
        create_default_config(config_path)

    yaml_settings: dict = {}
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                yaml_settings = yaml.safe_load(f) or {}
            logger.debug(f"Loaded config from {config_path}")
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")
            logger.info("Using default settings and environment variables")

    if not isinstance(yaml_settings, dict):
        raise ValueError(f"Configuration file must contain a mapping: {config_path}")

    # Only pass YAML values that don't have corresponding env vars so that
    # the precedence is defaults < YAML < env vars
    filtered_yaml = {}
    for key, value in yaml_settings.items():
        env_key = f"OFFLINED_{key.upper()}"
        if env_key not in os.environ:
            filtered_yaml[key] = value

    settings = EngineSettings(**filtered_yaml)

    logger.info(
        f"Engine configuration loaded: version={settings.version}, app_origin={settings.app_origin}, "
        f"manifest={len(settings.precache_manifest)} entries"
    )

    return settings
