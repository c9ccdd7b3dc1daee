"""
Parallax Discord Bot - Error Handler
====================================

Error categorization, recovery hints and critical error capture.

Features:
- Error categorization (Discord, network, database, interaction)
- Recovery suggestions per category
- Critical error context persisted as JSON for later analysis
"""

import json
import sqlite3
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Tuple, Type

import discord

from parallax.core.logger import logger, LOGS_DIR


class ErrorHandler:
    """Categorizes errors and logs them with context."""

    ERROR_CATEGORIES: Dict[str, Tuple[Type[BaseException], ...]] = {
        "discord": (discord.DiscordException,),
        "network": (ConnectionError, TimeoutError, OSError),
        "database": (sqlite3.Error,),
        "interaction": (LookupError, ValueError),
    }

    RECOVERY_SUGGESTIONS: Dict[str, str] = {
        "discord": "Check bot permissions and IDs; the next reconciliation or click retries",
        "network": "Network issue - check connectivity to Discord",
        "database": "Database error - check the database file and disk space",
        "interaction": "Handler rejected its input - check the interaction payload",
        "general": "Unexpected error - check logs for details",
    }

    @classmethod
    def categorize_error(cls, e: BaseException) -> str:
        """
        Categorize the error type.

        Args:
            e: The exception.

        Returns:
            Category name, "general" when nothing matches.
        """
        for category, error_types in cls.ERROR_CATEGORIES.items():
            if isinstance(e, error_types):
                return category
        return "general"

    @classmethod
    def get_recovery_suggestion(cls, category: str) -> str:
        """Get the recovery suggestion for a category."""
        return cls.RECOVERY_SUGGESTIONS.get(category, cls.RECOVERY_SUGGESTIONS["general"])

    @classmethod
    def handle(cls, e: BaseException, location: str, critical: bool = False, **context: Any) -> None:
        """
        Handle an error with full context.

        Args:
            e: The exception.
            location: Where the error occurred.
            critical: Whether this error stops execution.
            **context: Additional context stored with critical errors.
        """
        category = cls.categorize_error(e)
        suggestion = cls.get_recovery_suggestion(category)
        error_msg = f"[{category.upper()}] in {location}"

        if critical:
            logger.error(f"CRITICAL ERROR {error_msg}", [
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:200]),
                ("Recovery", suggestion),
            ])
            cls._store_critical_error({
                "timestamp": datetime.now().isoformat(),
                "location": location,
                "category": category,
                "error_type": type(e).__name__,
                "error_message": str(e),
                "traceback": "".join(traceback.format_exception(type(e), e, e.__traceback__)),
                "python_version": sys.version,
                "additional_context": context,
            })
        else:
            logger.warning(f"ERROR {error_msg}: {type(e).__name__} - {str(e)[:100]} | Recovery: {suggestion}")

    @staticmethod
    def _store_critical_error(context: Dict[str, Any]) -> None:
        """Store critical error context as JSON under logs/errors."""
        try:
            error_dir = LOGS_DIR / "errors"
            error_dir.mkdir(exist_ok=True, parents=True)

            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            error_file: Path = error_dir / f"error_{timestamp}.json"

            with open(error_file, "w", encoding="utf-8") as f:
                json.dump(context, f, indent=2, default=str)

            logger.info(f"Critical error saved to {error_file}")
        except OSError as save_error:
            logger.warning(f"Failed to save error details: {save_error}")


__all__ = ["ErrorHandler"]
