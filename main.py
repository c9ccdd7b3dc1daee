#!/usr/bin/env python3
"""
Parallax - Discord Bot Entry Point
==================================

Community management bot with a membership gateway, runtime bot
configuration and self-syncing application commands.

Features:
- Application commands reconciled against Discord on every start
- Interaction routing for commands, buttons and modals
- Per-guild serialized role and screening work
- Health check HTTP endpoint
- Graceful error handling
"""

import asyncio
import sys

import discord
from dotenv import load_dotenv

from parallax.bot import ParallaxBot
from parallax.core.config import ConfigValidationError, load_config, log_config
from parallax.core.context import BotContext
from parallax.core.logger import logger
from parallax.utils.error_handler import ErrorHandler


async def main() -> None:
    """
    Main entry point for the Parallax bot.

    Handles the complete bot lifecycle:
    1. Loads environment configuration
    2. Builds the bot context (database, queues, telemetry)
    3. Connects to Discord
    4. Shuts down gracefully on exit
    """
    load_dotenv()

    try:
        config = load_config()
    except ConfigValidationError as e:
        logger.error("Configuration Invalid", [("Error", str(e))])
        sys.exit(1)

    log_config(config)

    context = BotContext.from_config(config)
    bot = ParallaxBot(context)

    logger.tree("PARALLAX STARTING", [
        ("Database", str(config.database_path)),
        ("Queue Delay", f"{config.queue_delay:.3f}s"),
    ], emoji="🔥")

    try:
        async with bot:
            await bot.start(config.discord_token)
    except (discord.LoginFailure, discord.PrivilegedIntentsRequired) as e:
        ErrorHandler.handle(e, location="main.main", critical=True, token_present=True)
        sys.exit(1)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("🛑 Bot stopped by user (Ctrl+C)")
    except Exception as e:
        ErrorHandler.handle(
            e,
            location="main.__main__",
            critical=True,
        )
        sys.exit(1)
