"""
Parallax Discord Bot - Ping Command
===================================

/ping: gateway latency of the bot.
"""

import math

import discord

from parallax.interaction.command import Command, CommandData, CommandScope

GUILD_INSTALL = 0
USER_INSTALL = 1


class PingCommand(Command):
    """Replies with the current gateway latency."""

    def __init__(self, context) -> None:
        super().__init__(
            context,
            CommandData(
                name="ping",
                description="Checks the ping of this bot.",
                integration_types=(GUILD_INSTALL, USER_INSTALL),
            ),
            scope=CommandScope.GLOBAL,
        )

    async def exec(self, interaction: discord.Interaction) -> None:
        latency = interaction.client.latency
        ping = 999 if latency is None or math.isinf(latency) or math.isnan(latency) else round(latency * 1000)

        await interaction.response.send_message(
            f"My current ping to the discord server is {ping} ms.",
            ephemeral=True,
        )


__all__ = ["PingCommand"]
