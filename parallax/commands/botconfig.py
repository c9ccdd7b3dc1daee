"""
Parallax Discord Bot - Bot Config Command
=========================================

/botconfig get|set: runtime bot settings, owner only.

DESIGN:
    Registered only on the control server named by the ControlServerId
    setting. `set` opens the bot-config modal prefilled with the current
    value instead of taking the value as an option.
"""

from typing import List

import discord
from discord import app_commands

from parallax.core.database import BOT_CONFIG_KEYS
from parallax.interaction.command import (
    Command,
    CommandData,
    CommandScope,
    OptionType,
    command_path_and_options,
    focused_option,
    option,
)

KEY_OPTION = option(
    OptionType.STRING, "key", "The key of the bot configuration.", required=True, autocomplete=True,
)


class BotConfigCommand(Command):
    """Gets or sets the bot configuration."""

    def __init__(self, context) -> None:
        super().__init__(
            context,
            CommandData(
                name="botconfig",
                description="Gets or sets the bot configuration.",
                options=(
                    option(OptionType.SUB_COMMAND, "get", "Gets the value of a bot configuration.",
                           options=[KEY_OPTION]),
                    option(OptionType.SUB_COMMAND, "set", "Sets the value of a bot configuration.",
                           options=[KEY_OPTION]),
                ),
                default_member_permissions=0,
            ),
            scope=CommandScope.GUILD,
            guilds=self.is_control_server,
        )

    def is_control_server(self, guild: discord.Guild) -> bool:
        control_server = self.context.control_server_id()
        return control_server is not None and control_server == guild.id

    async def exec(self, interaction: discord.Interaction) -> None:
        if await self.not_owner(interaction):
            return

        path, values = command_path_and_options(interaction.data)
        key = values.get("key")
        if key not in BOT_CONFIG_KEYS:
            await interaction.response.send_message(
                f"`{key}` is not a bot configuration key. Known keys: {', '.join(BOT_CONFIG_KEYS)}.",
                ephemeral=True,
            )
            return

        current = self.context.db.bot_config(key)

        if path[-1] == "get":
            await interaction.response.send_message(f"The value of `{key}` is `{current}`.", ephemeral=True)
            return

        modal = self.context.modals.lookup("botconfig")
        if modal is None:
            raise LookupError("botconfig modal is not registered")
        await interaction.response.send_modal(modal.build({"key": key, "value": current or ""}))

    async def autocomplete(self, interaction: discord.Interaction) -> None:
        focused = focused_option(interaction.data)
        typed = str(focused.get("value") or "").lower() if focused else ""

        choices: List[app_commands.Choice[str]] = [
            app_commands.Choice(name=key, value=key)
            for key in BOT_CONFIG_KEYS
            if typed in key.lower()
        ]
        await interaction.response.autocomplete(choices[:25])


__all__ = ["BotConfigCommand"]
