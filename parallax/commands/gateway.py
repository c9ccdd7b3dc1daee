"""
Parallax Discord Bot - Gateway Command
======================================

/gateway: configure membership screening of a guild.
"""

from typing import Any, Dict

import discord

from parallax.interaction.command import (
    Command,
    CommandData,
    CommandScope,
    OptionType,
    command_path_and_options,
    option,
)
from parallax.utils.roles import create_role

MANAGE_GUILD = discord.Permissions(manage_guild=True).value
GUILD_CONTEXT = 0
TEXT_CHANNEL = discord.ChannelType.text.value


class GatewayCommand(Command):
    """Enables or disables the membership gateway."""

    def __init__(self, context) -> None:
        super().__init__(
            context,
            CommandData(
                name="gateway",
                description="Configures the membership gateway of this server.",
                options=(
                    option(OptionType.BOOLEAN, "enabled", "Whether new members are screened.", required=True),
                    option(OptionType.CHANNEL, "channel", "Channel that receives screening requests.",
                           channel_types=[TEXT_CHANNEL]),
                    option(OptionType.ROLE, "role", "Role granted to approved members."),
                ),
                default_member_permissions=MANAGE_GUILD,
                contexts=(GUILD_CONTEXT,),
            ),
            scope=CommandScope.GUILD,
        )

    async def exec(self, interaction: discord.Interaction) -> None:
        guild = interaction.guild
        if guild is None:
            await interaction.response.send_message("This command only works in a server.", ephemeral=True)
            return

        _, values = command_path_and_options(interaction.data)
        changes: Dict[str, Any] = {"enabled": bool(values.get("enabled"))}
        if values.get("channel"):
            changes["channel"] = int(values["channel"])
        if values.get("role"):
            changes["role"] = int(values["role"])

        await interaction.response.defer(ephemeral=True, thinking=True)

        current = self.context.db.gateway_config(guild.id)
        if changes["enabled"] and "role" not in changes and current.role is None:
            role = await create_role(
                self.context, guild, name="Member", reason="Gateway approval role",
            )
            if role is None:
                await interaction.followup.send(
                    "No approval role given and the server is at its role limit. "
                    "Pick an existing role with the `role` option.",
                    ephemeral=True,
                )
                return
            changes["role"] = role.id

        config = self.context.db.gateway_config(guild.id, **changes)
        self.telemetry.child("exec", id=guild.id).log(
            f"Gateway {'enabled' if config.enabled else 'disabled'} by {interaction.user.id}."
        )

        embed = discord.Embed(title="Gateway Configuration", color=discord.Color.blurple())
        embed.add_field(name="Enabled", value="Yes" if config.enabled else "No", inline=True)
        embed.add_field(name="Channel", value=f"<#{config.channel}>" if config.channel else "Not set", inline=True)
        embed.add_field(name="Role", value=f"<@&{config.role}>" if config.role else "Not set", inline=True)
        await interaction.followup.send(embed=embed, ephemeral=True)


__all__ = ["GatewayCommand"]
