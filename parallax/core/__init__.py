"""
Parallax Discord Bot - Core Package
===================================

Configuration, storage, logging and telemetry.

DESIGN:
    The tree logger is the only process-wide instance. Configuration,
    database and queues are created once in main.py and carried on the
    BotContext (parallax.core.context), which is imported directly.
"""

# =============================================================================
# Core Imports
# =============================================================================

from .config import Config, ConfigValidationError, load_config
from .database import BOT_CONFIG_KEYS, Database, GatewayConfig
from .logger import logger, TreeLogger
from .telemetry import Telemetry


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "BOT_CONFIG_KEYS",
    "Config",
    "ConfigValidationError",
    "Database",
    "GatewayConfig",
    "Telemetry",
    "TreeLogger",
    "load_config",
    "logger",
]
