"""
Parallax Discord Bot - Configuration Module
===========================================

Environment-driven configuration with validation.

DESIGN:
    Configuration is loaded once from environment variables in main.py
    and carried on the BotContext. Validation happens at load time, so
    a missing token fails fast instead of surfacing mid-startup.

    Settings that change while the bot runs (owner, control server,
    webhook, role limits) live in the database bot_config table; the
    values here are start-up defaults for those.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


# =============================================================================
# Configuration Dataclass
# =============================================================================

@dataclass
class Config:
    """
    Bot configuration loaded from environment variables.

    Attributes:
        discord_token: Discord bot authentication token.
        owner_id: Default bot owner user ID.
        database_path: sqlite database file.
        telemetry_webhook_url: Webhook that receives error reports.
        health_enabled: Whether the HTTP health server starts.
        health_host: Bind address for the health server.
        health_port: Port for the health server.
        queue_delay: Seconds to wait between tasks on per-guild queues.
        command_gc: Whether stale remote commands are garbage collected.
    """

    # -------------------------------------------------------------------------
    # Required: Discord
    # -------------------------------------------------------------------------

    discord_token: str

    # -------------------------------------------------------------------------
    # Optional: Ownership
    # -------------------------------------------------------------------------

    owner_id: Optional[int] = None

    # -------------------------------------------------------------------------
    # Optional: Storage
    # -------------------------------------------------------------------------

    database_path: Path = Path("data") / "parallax.db"

    # -------------------------------------------------------------------------
    # Optional: Telemetry
    # -------------------------------------------------------------------------

    telemetry_webhook_url: Optional[str] = None

    # -------------------------------------------------------------------------
    # Optional: Health Server
    # -------------------------------------------------------------------------

    health_enabled: bool = True
    health_host: str = "0.0.0.0"
    health_port: int = 8080

    # -------------------------------------------------------------------------
    # Optional: Interaction Core
    # -------------------------------------------------------------------------

    queue_delay: float = 0.0
    command_gc: bool = True


# =============================================================================
# Validation
# =============================================================================

class ConfigValidationError(Exception):
    """Raised when required configuration is missing or invalid."""


def _parse_int_optional(value: Optional[str]) -> Optional[int]:
    """Parse optional string to integer, returning None on failure."""
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_int_with_default(
    value: Optional[str],
    default: int,
    name: str,
    min_val: Optional[int] = None,
    max_val: Optional[int] = None,
) -> int:
    """
    Parse optional integer with default and range clamping.

    Args:
        value: String value from environment variable.
        default: Default value if not set or invalid.
        name: Variable name for warning messages.
        min_val: Minimum allowed value (inclusive).
        max_val: Maximum allowed value (inclusive).

    Returns:
        Parsed integer within valid range, or default.
    """
    from parallax.core.logger import logger

    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        logger.warning(f"Config {name}='{value}' invalid, using default {default}")
        return default
    if min_val is not None and parsed < min_val:
        logger.warning(f"Config {name}={parsed} below min {min_val}, using {min_val}")
        return min_val
    if max_val is not None and parsed > max_val:
        logger.warning(f"Config {name}={parsed} above max {max_val}, using {max_val}")
        return max_val
    return parsed


def _parse_bool(value: Optional[str], default: bool) -> bool:
    """Parse a boolean flag such as "true", "0" or "no"."""
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _validate_url(value: Optional[str], name: str) -> Optional[str]:
    """
    Validate URL format for webhooks.

    Returns:
        URL if valid, None if invalid or empty.
    """
    if not value:
        return None
    if not value.startswith(("https://", "http://")):
        from parallax.core.logger import logger
        logger.warning(f"Config {name} invalid URL format, ignoring")
        return None
    return value


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config() -> Config:
    """
    Load and validate configuration from environment variables.

    Returns:
        Validated Config object.

    Raises:
        ConfigValidationError: If a required variable is missing.
    """
    discord_token = os.getenv("DISCORD_TOKEN")
    if not discord_token:
        raise ConfigValidationError("Missing required environment variables: DISCORD_TOKEN")

    return Config(
        discord_token=discord_token,
        owner_id=_parse_int_optional(os.getenv("OWNER_ID")),
        database_path=Path(os.getenv("DATABASE_PATH") or Path("data") / "parallax.db"),
        telemetry_webhook_url=_validate_url(os.getenv("TELEMETRY_WEBHOOK_URL"), "TELEMETRY_WEBHOOK_URL"),
        health_enabled=_parse_bool(os.getenv("HEALTH_ENABLED"), True),
        health_host=os.getenv("HEALTH_HOST", "0.0.0.0"),
        health_port=_parse_int_with_default(
            os.getenv("HEALTH_PORT"), 8080, "HEALTH_PORT", min_val=1, max_val=65535
        ),
        queue_delay=_parse_int_with_default(
            os.getenv("QUEUE_DELAY_MS"), 0, "QUEUE_DELAY_MS", min_val=0, max_val=60000
        ) / 1000,
        command_gc=_parse_bool(os.getenv("COMMAND_GC"), True),
    )


def log_config(config: Config) -> None:
    """Log a start-up summary of the configuration without secrets."""
    from parallax.core.logger import logger

    logger.tree("Configuration Loaded", [
        ("Owner", str(config.owner_id) if config.owner_id else "From database"),
        ("Database", str(config.database_path)),
        ("Telemetry Webhook", "Set" if config.telemetry_webhook_url else "Not set"),
        ("Health Server", f"{config.health_host}:{config.health_port}" if config.health_enabled else "Disabled"),
        ("Queue Delay", f"{config.queue_delay:.3f}s"),
        ("Command GC", "Enabled" if config.command_gc else "Disabled"),
    ], emoji="⚙️")


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "Config",
    "ConfigValidationError",
    "load_config",
    "log_config",
]
