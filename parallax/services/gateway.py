"""
Parallax Discord Bot - Gateway Service
======================================

Membership screening: every joining member waits for a moderator.

DESIGN:
    On join, a screening embed is posted in the guild's gateway channel.
    While the member still has to pass Discord's membership screen the
    embed is "Pending" and carries no buttons; once they pass (or if the
    guild has no screen) it becomes "Action Required" and gets the
    approve / kick / ban buttons of the gateway component.

    Screening work of one guild runs on the ("gateway", guild_id) queue,
    the same queue the gateway component resolves clicks on, so a join
    and a click on the same request never interleave.
"""

import re
from typing import TYPE_CHECKING, Hashable, Optional

import discord

from parallax.core.logger import logger

if TYPE_CHECKING:
    from parallax.core.context import BotContext


# =============================================================================
# Constants
# =============================================================================

STATUS_FIELD = "Status:"
STATUS_PENDING = "Pending"
STATUS_ACTION_REQUIRED = "Action Required"
OPEN_STATUSES = (STATUS_PENDING, STATUS_ACTION_REQUIRED)

HISTORY_LIMIT = 100
MENTION_PATTERN = re.compile(r"<@!?(\d+)>")


def gateway_queue_key(guild_id: int) -> Hashable:
    """Queue that serializes screening work of one guild."""
    return ("gateway", guild_id)


# =============================================================================
# Embed Helpers
# =============================================================================

def parse_mention(value: Optional[str]) -> Optional[int]:
    """Extract the user ID from a "<@123>" mention."""
    match = MENTION_PATTERN.search(value or "")
    return int(match.group(1)) if match else None


def status_index(embed: discord.Embed) -> Optional[int]:
    """Index of the status field of a screening embed."""
    for index, field in enumerate(embed.fields):
        if field.name == STATUS_FIELD:
            return index
    return None


def screening_status(embed: discord.Embed) -> Optional[str]:
    index = status_index(embed)
    return embed.fields[index].value if index is not None else None


def screened_member_id(embed: discord.Embed) -> Optional[int]:
    """Member a screening embed is about."""
    return parse_mention(embed.fields[0].value) if embed.fields else None


def is_open_screening(message: discord.Message, member_id: int) -> bool:
    """Whether a message is an unresolved screening of the given member."""
    if not message.embeds:
        return False
    embed = message.embeds[0]
    return screened_member_id(embed) == member_id and screening_status(embed) in OPEN_STATUSES


def mark_action_required(embed: discord.Embed) -> discord.Embed:
    index = status_index(embed)
    if index is not None:
        embed.set_field_at(index, name=STATUS_FIELD, value=STATUS_ACTION_REQUIRED, inline=False)
    embed.set_footer(text="Apply actions by clicking one of the buttons below.")
    embed.color = discord.Color.yellow()
    return embed


async def clear_pings(channel: discord.abc.Messageable, mention: str) -> int:
    """
    Delete the "@here" ping replies of a resolved screening.

    Returns:
        Number of messages deleted.
    """
    pings = [
        message async for message in channel.history(limit=HISTORY_LIMIT)
        if message.content.startswith(mention) and not message.embeds
    ]
    if not pings:
        return 0
    try:
        await channel.delete_messages(pings)
    except discord.HTTPException as e:
        logger.warning(f"Gateway ping cleanup failed: {e}")
        return 0
    return len(pings)


# =============================================================================
# Gateway Service
# =============================================================================

class GatewayService:
    """
    Posts and re-arms screening embeds for joining members.

    Attributes:
        context: Shared bot context.
    """

    def __init__(self, context: "BotContext") -> None:
        self.context = context
        self.telemetry = context.telemetry.child("GatewayService")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _screening_channel(self, guild: discord.Guild) -> Optional[discord.TextChannel]:
        config = self.context.db.gateway_config(guild.id)
        if not config.enabled or not config.channel:
            return None
        channel = guild.get_channel(config.channel)
        if not isinstance(channel, discord.TextChannel):
            return None
        return channel

    def _buttons(self) -> Optional[discord.ui.View]:
        component = self.context.components.lookup("gateway")
        return component.render() if component is not None else None

    async def find_screening(self, channel: discord.TextChannel, member_id: int) -> Optional[discord.Message]:
        """Latest unresolved screening message of a member."""
        async for message in channel.history(limit=HISTORY_LIMIT):
            if is_open_screening(message, member_id):
                return message
        return None

    def screening_embed(self, member: discord.Member) -> discord.Embed:
        """Build the screening embed of a member."""
        pending = bool(member.pending)
        embed = discord.Embed(
            title="Gateway Screening",
            color=discord.Color.blurple() if pending else discord.Color.yellow(),
        )
        embed.set_author(name=f"Parallax Gatekeeper: {member.guild.name}")
        embed.set_thumbnail(url=member.display_avatar.url)
        embed.add_field(name=f"Profile: ({member})", value=member.mention, inline=False)
        embed.add_field(
            name="Account Created:",
            value=discord.utils.format_dt(member.created_at, "R"),
            inline=False,
        )
        embed.add_field(
            name=STATUS_FIELD,
            value=STATUS_PENDING if pending else STATUS_ACTION_REQUIRED,
            inline=False,
        )
        embed.set_footer(
            text="Member must complete the membership verification gate."
            if pending else "Apply actions by clicking one of the buttons below."
        )
        return embed

    # =========================================================================
    # Event Handlers
    # =========================================================================

    async def on_member_join(self, member: discord.Member) -> None:
        """Queue the screening of a joining member."""
        if member.bot:
            return
        await self.context.queues.enqueue(gateway_queue_key(member.guild.id), lambda: self._screen(member))

    async def on_member_update(self, before: discord.Member, after: discord.Member) -> None:
        """Queue re-arming the screening of a member who passed the membership screen."""
        if after.bot or after.pending or before.pending == after.pending:
            return
        await self.context.queues.enqueue(gateway_queue_key(after.guild.id), lambda: self._rearm(after))

    async def _screen(self, member: discord.Member) -> None:
        guild = member.guild
        channel = self._screening_channel(guild)
        if channel is None:
            return

        self.context.db.member_data(guild.id, member.id, {"id": member.id, "tag": str(member)})

        embed = self.screening_embed(member)
        view = None if member.pending else self._buttons()
        message = await self.find_screening(channel, member.id)
        if message is not None:
            await message.edit(embed=embed, view=view)
        else:
            message = await channel.send(embed=embed, view=view)

        if not member.pending:
            await message.reply(f"{member.mention} wants to join the server @here.")

        self.telemetry.child("screen", id=guild.id).log(f"Screening posted for {member} ({member.id}).")

        try:
            await member.send(
                f"Hey there, {member.mention}! **{guild.name}** uses a membership verification system. "
                "Please hang tight while the admins of this server review your membership application."
            )
        except discord.HTTPException:
            logger.debug(f"Gateway DM to {member.id} not delivered")

    async def _rearm(self, member: discord.Member) -> None:
        channel = self._screening_channel(member.guild)
        if channel is None:
            return

        message = await self.find_screening(channel, member.id)
        if message is None:
            return

        embed = mark_action_required(message.embeds[0].copy())
        await message.edit(embed=embed, view=self._buttons())
        await message.reply(f"{member.mention} wants to join the server @here.")


__all__ = [
    "GatewayService",
    "OPEN_STATUSES",
    "STATUS_ACTION_REQUIRED",
    "STATUS_FIELD",
    "STATUS_PENDING",
    "clear_pings",
    "gateway_queue_key",
    "parse_mention",
    "screened_member_id",
    "screening_status",
    "status_index",
]
