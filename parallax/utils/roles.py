"""
Parallax Discord Bot - Role Helpers
===================================

Role mutations serialized per guild.

DESIGN:
    Every helper runs its Discord call on the guild's TaskQueue, so
    concurrent approvals, commands and events never interleave role
    edits within one guild. Callers already running on the guild queue
    must call Discord directly instead of these helpers.
"""

from typing import TYPE_CHECKING, Any, Optional

import discord

from parallax.core.logger import logger

if TYPE_CHECKING:
    from parallax.core.context import BotContext


async def add_role(
    context: "BotContext",
    member: discord.Member,
    role: discord.Role,
    reason: Optional[str] = None,
) -> None:
    """Grant a role to a member on the guild queue."""
    await context.queues.enqueue(member.guild.id, lambda: member.add_roles(role, reason=reason))


async def create_role(context: "BotContext", guild: discord.Guild, **options: Any) -> Optional[discord.Role]:
    """
    Create a role unless the guild is at the configured role limit.

    The limit comes from the GuildMaxRoles bot setting; without it no
    roles are created at all.

    Returns:
        The new role, or None when the limit forbids it.
    """
    async def create() -> Optional[discord.Role]:
        max_roles = context.setting_int("GuildMaxRoles")
        if not max_roles or len(guild.roles) >= max_roles:
            logger.warning(f"Role creation skipped on {guild.name} (limit {max_roles})")
            return None
        return await guild.create_role(**options)

    return await context.queues.enqueue(guild.id, create)


__all__ = ["add_role", "create_role"]
