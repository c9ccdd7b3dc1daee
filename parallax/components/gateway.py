"""
Parallax Discord Bot - Gateway Component
========================================

Approve / kick / ban buttons of a membership screening.
"""

from datetime import datetime
from typing import Optional

import discord

from parallax.core.logger import LOG_TZ
from parallax.interaction.component import ButtonTemplate, Component
from parallax.services.gateway import (
    OPEN_STATUSES,
    STATUS_FIELD,
    clear_pings,
    gateway_queue_key,
    screened_member_id,
    screening_status,
    status_index,
)
from parallax.utils.roles import add_role


FEEDBACK = {
    "approve": (
        "Hooraaay! 🥳 Your membership request has been approved! Welcome to **{guild}**!\n\n"
        "You can view the commands supported by this server by typing `/` "
        "in any of the server's text channels."
    ),
    "kick": "Sorry, it seems like your request to join the {guild} server has been denied.",
    "ban": "Sorry, it seems like your request to join the {guild} server has been denied indefinitely.",
}


class GatewayComponent(Component):
    """Resolves a screening request with the clicked action."""

    name = "gateway"
    template = (
        (
            ButtonTemplate("approve", "Approve", discord.ButtonStyle.success),
            ButtonTemplate("kick", "Deny (Kick)", discord.ButtonStyle.primary),
            ButtonTemplate("ban", "Ignore requests from this user (Ban)", discord.ButtonStyle.danger),
        ),
    )

    async def exec(self, interaction: discord.Interaction, action: str) -> None:
        if action not in FEEDBACK:
            raise ValueError(f"Unknown gateway action: {action}")

        guild = interaction.guild
        if guild is None:
            return

        # Two moderators clicking the same request resolve it one after the other
        await self.context.queues.enqueue(
            gateway_queue_key(guild.id),
            lambda: self._resolve(interaction, guild, action),
        )

    async def _resolve(self, interaction: discord.Interaction, guild: discord.Guild, action: str) -> None:
        config = self.context.db.gateway_config(guild.id)
        role = guild.get_role(config.role) if config.enabled and config.role else None
        if role is None:
            await interaction.response.send_message("The gateway is not configured on this server.", ephemeral=True)
            return

        message = interaction.message
        embed = message.embeds[0].copy() if message is not None and message.embeds else None
        if embed is None or screening_status(embed) not in OPEN_STATUSES:
            await interaction.response.send_message("This request has already been handled.", ephemeral=True)
            return

        member_id = screened_member_id(embed)
        member: Optional[discord.Member] = guild.get_member(member_id) if member_id else None
        moderator = interaction.user

        if member is None:
            status, color = "User not found ⚠", discord.Color.magenta()
        elif action == "approve":
            self.context.db.member_data(guild.id, member.id, {
                "id": member.id,
                "moderator": moderator.id,
                "moderator_tag": str(moderator),
            })
            await add_role(self.context, member, role, reason=f"Gateway approval by {moderator}")
            status, color = f"Approved by {moderator.mention}", discord.Color.green()
        elif action == "kick":
            await member.kick(reason=f"Gateway denial by {moderator}")
            status, color = f"Kicked by {moderator.mention}", discord.Color.fuchsia()
        else:
            await member.ban(reason=f"Gateway Ban by {moderator}.")
            status, color = f"Banned by {moderator.mention}", discord.Color.red()

        embed.set_field_at(status_index(embed), name=STATUS_FIELD, value=status, inline=False)
        embed.color = color
        embed.set_footer(text=datetime.now(LOG_TZ).strftime("%Y-%m-%d %H:%M:%S %Z"))
        await interaction.response.edit_message(content=None, embed=embed, view=None)

        self.telemetry.child("resolve", id=guild.id).log(f"{action} on {member_id} by {moderator.id}: {status}")

        if member is None:
            return

        await clear_pings(message.channel, member.mention)

        try:
            await member.send(FEEDBACK[action].format(guild=guild.name))
        except discord.HTTPException:
            self.telemetry.child("feedback", id=member.id).log("Feedback DM not delivered.")


__all__ = ["GatewayComponent"]
