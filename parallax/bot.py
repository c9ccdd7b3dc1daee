"""
Parallax Discord Bot - Main Bot Class
=====================================

Discord client wiring the interaction core to gateway events.

DESIGN:
    ParallaxBot is a plain discord.Client rather than commands.Bot: the
    InteractionDispatcher handles every interaction itself and the
    reconciler owns command registration, so discord.py's CommandTree
    would only compete with them.

    STARTUP ORDER:
    1. setup_hook (before on_ready):
       - Handler classes instantiated from the static lists
       - Telemetry webhook configured
    2. on_ready (first time only):
       - Health Check Server
       - Command reconciliation (background, queued)
"""

from collections import Counter
from datetime import datetime
from typing import Optional

import discord

from parallax.commands import COMMANDS
from parallax.components import COMPONENTS
from parallax.core.context import BotContext
from parallax.core.health import HealthCheckServer
from parallax.core.logger import logger
from parallax.interaction.dispatcher import InteractionDispatcher
from parallax.interaction.reconciler import CommandLifecycleReconciler
from parallax.interaction.remote import DiscordCommandAPI
from parallax.modals import MODALS
from parallax.services.gateway import GatewayService
from parallax.utils.async_utils import create_safe_task


# =============================================================================
# ParallaxBot Class
# =============================================================================

class ParallaxBot(discord.Client):
    """
    Parallax Discord client.

    Attributes:
        context: Shared bot context.
        dispatcher: Routes interactions and drives command sync.
        gateway: Membership screening service.
        health_server: HTTP health endpoint, once started.
    """

    def __init__(self, context: BotContext) -> None:
        intents = discord.Intents.default()
        intents.members = True

        super().__init__(intents=intents)

        self.context = context
        context.client = self

        reconciler = CommandLifecycleReconciler(
            DiscordCommandAPI(self),
            context.telemetry,
            guilds=lambda: self.guilds,
        )
        self.dispatcher = InteractionDispatcher(context, reconciler)
        self.gateway = GatewayService(context)
        self.health_server: Optional[HealthCheckServer] = None

        self._ready_initialized = False
        self._closing = False

        logger.info("Bot Instance Created")

    # =========================================================================
    # Setup Hook
    # =========================================================================

    async def setup_hook(self) -> None:
        """Register handlers before the gateway connects."""
        self.dispatcher.load(COMMANDS, COMPONENTS, MODALS)
        logger.set_webhook(self.context.telemetry_webhook_url())

    # =========================================================================
    # On Ready
    # =========================================================================

    async def on_ready(self) -> None:
        """Start services and sync commands on the first ready."""
        if self._ready_initialized:
            logger.info("Bot Reconnected (skipping re-initialization)")
            return

        self._ready_initialized = True

        if not self.user:
            return

        logger.tree("BOT ONLINE", [
            ("Name", self.user.name),
            ("ID", str(self.user.id)),
            ("Guilds", str(len(self.guilds))),
            ("Commands", str(len(self.context.commands))),
        ], emoji="🚀")

        config = self.context.config
        if config.health_enabled:
            self.health_server = HealthCheckServer(self.context, config.health_host, config.health_port)
            await self.health_server.start()

        create_safe_task(self._sync_commands(), "Command Reconciliation")

    async def _sync_commands(self) -> None:
        results = await self.dispatcher.start()
        counts = Counter(result.status.value for result in results)
        logger.tree("Commands Reconciled", [
            (status.title(), str(count)) for status, count in sorted(counts.items())
        ] or [("Results", "None")], emoji="✅")

    # =========================================================================
    # Event Handlers
    # =========================================================================

    async def on_interaction(self, interaction: discord.Interaction) -> None:
        await self.dispatcher.dispatch(interaction)

    async def on_guild_join(self, guild: discord.Guild) -> None:
        logger.tree("Guild Joined", [
            ("Guild", guild.name),
            ("ID", str(guild.id)),
        ], emoji="🏠")
        create_safe_task(self.dispatcher.on_guild_join(guild), "Guild Command Reconciliation")

    async def on_guild_remove(self, guild: discord.Guild) -> None:
        logger.tree("Guild Left", [
            ("Guild", guild.name),
            ("ID", str(guild.id)),
        ], emoji="🚪")
        self.dispatcher.on_guild_remove(guild)

    async def on_member_join(self, member: discord.Member) -> None:
        create_safe_task(self.gateway.on_member_join(member), "Gateway Member Join")

    async def on_member_update(self, before: discord.Member, after: discord.Member) -> None:
        create_safe_task(self.gateway.on_member_update(before, after), "Gateway Member Update")

    # =========================================================================
    # Shutdown
    # =========================================================================

    async def shutdown(self) -> None:
        """Graceful shutdown with proper cleanup."""
        if self._closing:
            return
        self._closing = True

        logger.info("Initiating Graceful Shutdown")

        if self.health_server:
            await self.health_server.stop()

        await super().close()
        self.context.db.close()

        logger.tree("SHUTDOWN COMPLETE", [
            ("Uptime", str(datetime.now() - self.context.start_time)),
        ], emoji="🛑")

    async def close(self) -> None:
        """Override close to ensure proper shutdown."""
        await self.shutdown()


__all__ = ["ParallaxBot"]
