# codeweaver/config/loader.py
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError
from loguru import logger

from .schema import AppConfig
from .paths import get_user_config_file

_cached_config: Optional[AppConfig] = None

# Environment variable -> top-level config field
_ENV_OVERRIDES = {
    "CODEWEAVER_MODEL": "model",
    "CODEWEAVER_LOG_LEVEL": "log_level",
}


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    for env_name, field_name in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            logger.debug(f"Config override from {env_name}: {field_name}={value}")
            data[field_name] = value
    return data


def _backup_corrupted(config_path: Path) -> None:
    try:
        backup_path = config_path.with_suffix(".json.corrupted")
        backup_path.unlink(missing_ok=True)
        config_path.rename(backup_path)
        logger.info(f"Backed up corrupted config to: {backup_path}")
    except OSError as backup_err:
        logger.error(f"Failed to backup corrupted config: {backup_err}")


def load_config() -> AppConfig:
    """Loads the application configuration."""
    global _cached_config
    if _cached_config:
        return _cached_config

    config_path = get_user_config_file()
    loaded_data: Dict[str, Any] = {}

    if config_path.exists():
        logger.info(f"Loading user configuration from: {config_path}")
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                loaded_data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Failed to load user config file {config_path}: {e}")
            _backup_corrupted(config_path)
            loaded_data = {} # Fallback to defaults
    else:
        logger.info("No user config found. Using default settings.")

    if not isinstance(loaded_data, dict):
        logger.error(f"Config file {config_path} does not contain an object, ignoring it.")
        loaded_data = {}

    try:
        config = AppConfig(**_apply_env_overrides(loaded_data))
        logger.info("Configuration loaded successfully.")
    except ValidationError as e:
        logger.error(f"Configuration validation failed: {e}")
        logger.warning("Falling back to default configuration.")
        config = AppConfig()
    _cached_config = config
    return config


def save_config(config: AppConfig) -> None:
    """Saves the configuration with an atomic replace of config.json."""
    config_path = get_user_config_file()
    logger.info(f"Saving configuration to: {config_path}")
    temp_file_path: Optional[Path] = None
    try:
        # Temp file in the target's directory so os.replace stays atomic
        with tempfile.NamedTemporaryFile(
            mode='w',
            encoding='utf-8',
            dir=config_path.parent,
            prefix=f".{config_path.name}_tmp",
            suffix=".json",
            delete=False
        ) as temp_f:
            temp_file_path = Path(temp_f.name)
            temp_f.write(config.model_dump_json(indent=4))
            temp_f.flush()
            os.fsync(temp_f.fileno())

        os.replace(temp_file_path, config_path)
        temp_file_path = None
        logger.info("Configuration saved successfully.")
    except (OSError, TypeError) as e:
        logger.error(f"Failed to save configuration to {config_path}: {e}")
    finally:
        if temp_file_path and temp_file_path.exists():
            logger.warning(f"Cleaning up leftover temporary config file: {temp_file_path}")
            try:
                temp_file_path.unlink()
            except OSError as unlink_err:
                logger.error(f"Failed to remove temporary config file {temp_file_path}: {unlink_err}")


def get_config() -> AppConfig:
    """Returns the cached configuration object, loading if necessary."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config_cache() -> None:
    """Forgets the cached config so the next get_config() reloads from disk."""
    global _cached_config
    _cached_config = None
