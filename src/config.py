# Copyright (c) 2025 Stephen Clau
#
# This file is part of Sequence Guard.
#
# Sequence Guard is dual-licensed:
#
# 1. GNU Affero General Public License v3.0 (AGPL-3.0)
#    See LICENSE file for full terms
#
# 2. Commercial License
#    For proprietary use without AGPL requirements
#    Contact: licensing@laudiversified.com
#
# SPDX-License-Identifier: AGPL-3.0-only OR Commercial

"""
Configuration module for Sequence Guard.

- Discord bot token is REQUIRED (Docker secret, DISCORD_BOT_TOKEN or BOT_TOKEN)
- Optional bot.yml for game tuning (max warnings, feedback lifetime)
- Environment variables override bot.yml
- A .env file in the working directory is loaded first
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Dict, Any
import os
import yaml
import structlog
from dotenv import find_dotenv, load_dotenv

logger = structlog.get_logger()


def _read_docker_secret(secret_name: str) -> Optional[str]:
    """
    Read a secret from Docker secrets location.

    Docker Swarm/Kubernetes mounts secrets at /run/secrets/{secret_name}.

    Args:
        secret_name: Name of the secret (e.g., 'discord_bot_token')

    Returns:
        Secret value or None if not found
    """
    secret_path = Path(f"/run/secrets/{secret_name}")

    if secret_path.exists():
        try:
            return secret_path.read_text().strip()
        except (IOError, OSError) as e:
            logger.warning("docker_secret_read_error", secret=secret_name, error=str(e))
            return None

    return None


def get_config_value(
    env_var: str,
    secret_name: Optional[str] = None,
    required: bool = False,
    default: Optional[str] = None,
) -> Optional[str]:
    """
    Get configuration value from Docker secrets or environment variables.

    Tries in order:
    1. Docker secret file at /run/secrets/{secret_name}
    2. Environment variable {env_var}
    3. Default value if provided
    4. Raise error if required and not found

    Args:
        env_var: Environment variable name (e.g., 'DISCORD_BOT_TOKEN')
        secret_name: Docker secret name. If not provided, uses env_var lowercased
        required: If True, raises ValueError when value not found
        default: Default value if not found in env or secrets

    Returns:
        Configuration value from secret, env var, or default

    Raises:
        ValueError: If required=True and value not found
    """
    if secret_name is None:
        secret_name = env_var.lower()

    secret_value = _read_docker_secret(secret_name)
    if secret_value is not None:
        logger.debug("config_value_loaded_from_secret", source="docker_secret", var=env_var)
        return secret_value

    env_value = os.getenv(env_var)
    if env_value is not None:
        logger.debug("config_value_loaded_from_env", source="environment", var=env_var)
        return env_value

    if default is not None:
        logger.debug("config_value_loaded_from_default", source="default", var=env_var)
        return default

    if required:
        raise ValueError(
            f"Required configuration value not found for '{env_var}'. "
            f"Checked: Docker secret '{secret_name}', environment variable '{env_var}'"
        )

    return None


def _safe_int(value: Any, field_name: str, default: int) -> int:
    """
    Safely convert value to int with proper type checking.

    Raises:
        ValueError: If conversion fails
    """
    if value is None:
        return default

    if isinstance(value, bool):
        raise ValueError(f"Cannot convert {field_name} to int: bool")

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"Invalid integer for {field_name}: {value}")

    raise ValueError(f"Cannot convert {field_name} to int: {type(value).__name__}")


def _safe_float(value: Any, field_name: str, default: float) -> float:
    """
    Safely convert value to float with proper type checking.

    Raises:
        ValueError: If conversion fails
    """
    if value is None:
        return default

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)

    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            raise ValueError(f"Invalid float for {field_name}: {value}")

    raise ValueError(f"Cannot convert {field_name} to float: {type(value).__name__}")


def _first_set(*values: Any) -> Any:
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def _safe_bool(value: Any, field_name: str, default: bool) -> bool:
    """Convert 'true'/'false' style values to bool."""
    if value is None:
        return default

    if isinstance(value, bool):
        return value

    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False

    raise ValueError(f"Invalid boolean for {field_name}: {value}")


@dataclass
class Config:
    """Main application configuration."""

    discord_bot_token: str
    """Discord bot token (never logged)."""

    bot_name: str = "Sequence Guard"
    """Discord bot display name."""

    # Game configuration
    max_warnings: int = 3
    """Wrong guesses per user before the maximum-warnings message. Default: 3"""

    feedback_delete_after: float = 5.0
    """Seconds before game feedback messages are deleted. Default: 5.0"""

    sync_commands: bool = True
    """Overwrite the global slash commands when the bot becomes ready."""

    # Health check configuration
    health_check_enabled: bool = True
    """Run the HTTP health endpoint. Default: True"""

    health_check_host: str = "0.0.0.0"
    """Host to bind health check server to. Default: 0.0.0.0"""

    health_check_port: int = 8080
    """Port to bind health check server to. Default: 8080"""

    # Logging configuration
    log_level: str = "info"
    """Logging level: debug, info, warning, error. Default: info"""

    log_format: str = "console"
    """Logging format: console or json. Default: console"""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.discord_bot_token:
            raise ValueError("discord_bot_token is REQUIRED")

        if self.max_warnings < 1:
            raise ValueError(f"Invalid max_warnings: {self.max_warnings}. Must be >= 1")

        if self.feedback_delete_after <= 0:
            raise ValueError(
                f"Invalid feedback_delete_after: {self.feedback_delete_after}. Must be > 0"
            )

        valid_levels = {"debug", "info", "warning", "error"}
        if self.log_level.lower() not in valid_levels:
            raise ValueError(
                f"Invalid log_level '{self.log_level}'. Must be one of: {', '.join(sorted(valid_levels))}"
            )

        if not 1 <= self.health_check_port <= 65535:
            raise ValueError(
                f"Invalid health_check_port: {self.health_check_port}. Must be 1-65535"
            )

        valid_formats = {"console", "json"}
        if self.log_format.lower() not in valid_formats:
            raise ValueError(
                f"Invalid log_format '{self.log_format}'. Must be one of: {', '.join(sorted(valid_formats))}"
            )

    def __repr__(self) -> str:
        return (
            f"Config(bot_name={self.bot_name!r}, max_warnings={self.max_warnings}, "
            f"feedback_delete_after={self.feedback_delete_after}, "
            f"sync_commands={self.sync_commands}, log_level={self.log_level!r}, "
            f"discord_bot_token='***')"
        )


def _load_bot_yml(path: Path) -> Dict[str, Any]:
    """
    Read the optional game section of bot.yml.

    Expected format:

    game:
      max_warnings: 3
      feedback_delete_after: 5
    """
    if not path.exists():
        logger.debug("bot_yml_not_found", path=str(path))
        return {}

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping, got {type(data).__name__}")

    game = data.get("game") or {}
    if not isinstance(game, dict):
        raise ValueError(f"{path}: 'game' must be a mapping")

    logger.info("bot_yml_loaded", path=str(path), keys=sorted(game.keys()))
    return game


def load_config() -> Config:
    """
    Load configuration from .env, environment variables and bot.yml.

    Priority order for each config value:
    1. Docker secret (token only) or environment variable
    2. bot.yml YAML file (game settings)
    3. Hardcoded defaults

    Returns:
        Fully populated Config object with validation

    Raises:
        ValueError: If the token is missing or a value is invalid
        yaml.YAMLError: If bot.yml is invalid YAML
    """
    load_dotenv(find_dotenv(usecwd=True))

    config_dir = os.getenv("CONFIG_DIR", ".")
    game = _load_bot_yml(Path(config_dir) / "bot.yml")

    discord_bot_token = get_config_value(
        env_var="DISCORD_BOT_TOKEN",
        secret_name="discord_bot_token",
    ) or get_config_value(env_var="BOT_TOKEN")

    if not discord_bot_token:
        raise ValueError(
            "Required configuration value not found for 'DISCORD_BOT_TOKEN'. "
            "Checked: Docker secret 'discord_bot_token', environment variables "
            "'DISCORD_BOT_TOKEN' and 'BOT_TOKEN'"
        )

    max_warnings = _safe_int(
        _first_set(get_config_value(env_var="MAX_WARNINGS"), game.get("max_warnings")),
        "max_warnings",
        3,
    )

    feedback_delete_after = _safe_float(
        _first_set(
            get_config_value(env_var="FEEDBACK_DELETE_AFTER"),
            game.get("feedback_delete_after"),
        ),
        "feedback_delete_after",
        5.0,
    )

    config = Config(
        discord_bot_token=discord_bot_token,
        bot_name=get_config_value(env_var="BOT_NAME", default="Sequence Guard") or "Sequence Guard",
        max_warnings=max_warnings,
        feedback_delete_after=feedback_delete_after,
        sync_commands=_safe_bool(
            get_config_value(env_var="SYNC_COMMANDS"), "sync_commands", True
        ),
        health_check_enabled=_safe_bool(
            get_config_value(env_var="HEALTH_CHECK_ENABLED"), "health_check_enabled", True
        ),
        health_check_host=get_config_value(env_var="HEALTH_CHECK_HOST", default="0.0.0.0") or "0.0.0.0",
        health_check_port=_safe_int(
            get_config_value(env_var="HEALTH_CHECK_PORT", default="8080"),
            "health_check_port",
            8080,
        ),
        log_level=get_config_value(env_var="LOG_LEVEL", default="info") or "info",
        log_format=get_config_value(env_var="LOG_FORMAT", default="console") or "console",
    )

    return config


def validate_config(config: Config) -> bool:
    """
    Validate a Config object for completeness.

    Returns:
        True if config is valid, False otherwise
    """
    if not config.discord_bot_token:
        logger.error("config_validation_failed_no_token")
        return False

    if config.discord_bot_token.strip() != config.discord_bot_token:
        logger.error("config_validation_failed_token_whitespace")
        return False

    return True
