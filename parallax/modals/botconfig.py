"""
Parallax Discord Bot - Bot Config Modal
=======================================

Form behind /botconfig set.
"""

from typing import Dict

import discord

from parallax.core.database import BOT_CONFIG_KEYS
from parallax.core.logger import logger
from parallax.interaction.modal import Modal, ModalField


class BotConfigModal(Modal):
    """Stores one bot_config value."""

    custom_id = "botconfig"
    title = "Bot Configuration"
    fields = (
        ModalField("key", "Key", max_length=64),
        ModalField("value", "Value", style=discord.TextStyle.paragraph, max_length=1000),
    )

    async def exec(self, interaction: discord.Interaction, values: Dict[str, str]) -> None:
        if interaction.user.id != self.context.owner_id():
            await interaction.response.send_message(
                "Sorry! You dont have the necessary permission to execute this command.",
                ephemeral=True,
            )
            return

        key = values.get("key", "").strip()
        value = values.get("value", "").strip()
        if key not in BOT_CONFIG_KEYS or not value:
            await interaction.response.send_message(
                f"Invalid configuration. Known keys: {', '.join(BOT_CONFIG_KEYS)}.",
                ephemeral=True,
            )
            return

        self.context.db.bot_config(key, value)
        if key == "TelemetryWebhookURL":
            logger.set_webhook(value)

        self.telemetry.log(f"Bot configuration {key} updated by {interaction.user.id}.")
        await interaction.response.send_message(
            f"Bot configuration `{key}` is now set to `{value}`.",
            ephemeral=True,
        )


__all__ = ["BotConfigModal"]
