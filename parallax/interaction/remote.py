"""
Parallax Discord Bot - Remote Command API
=========================================

The registered-command state on Discord's side, behind a small protocol.

DESIGN:
    The reconciler only ever talks to CommandAPI. DiscordCommandAPI
    implements it with the raw routes of discord.py's HTTP client
    rather than app_commands.CommandTree, because the tree owns its own
    sync model and would overwrite per-command decisions with a bulk
    upsert. Tests substitute an in-memory implementation.

    guild_id=None always means the global scope.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence

import discord

from parallax.interaction.command import CommandPermission

CommandRecord = Dict[str, Any]


# =============================================================================
# Protocol
# =============================================================================

class CommandAPI(Protocol):
    """Remote registry of application commands."""

    async def list(self, guild_id: Optional[int] = None) -> List[CommandRecord]:
        ...

    async def create(self, guild_id: Optional[int], payload: Dict[str, Any]) -> CommandRecord:
        ...

    async def update(self, guild_id: Optional[int], command_id: int, payload: Dict[str, Any]) -> CommandRecord:
        ...

    async def delete(self, guild_id: Optional[int], command_id: int) -> None:
        ...

    async def fetch_permissions(self, guild_id: int) -> Dict[int, List[CommandPermission]]:
        ...

    async def set_permissions(
        self,
        guild_id: int,
        command_id: int,
        permissions: Sequence[CommandPermission],
    ) -> None:
        ...


# =============================================================================
# discord.py Implementation
# =============================================================================

class DiscordCommandAPI:
    """
    CommandAPI over discord.py's HTTPClient.

    Must be used after login, once the client knows its application id.
    """

    def __init__(self, client: discord.Client) -> None:
        self.client = client

    @property
    def application_id(self) -> int:
        application_id = self.client.application_id
        if application_id is None:
            raise RuntimeError("Application ID unknown, client has not logged in")
        return application_id

    async def list(self, guild_id: Optional[int] = None) -> List[CommandRecord]:
        http = self.client.http
        if guild_id is None:
            return list(await http.get_global_commands(self.application_id))
        return list(await http.get_guild_commands(self.application_id, guild_id))

    async def create(self, guild_id: Optional[int], payload: Dict[str, Any]) -> CommandRecord:
        http = self.client.http
        if guild_id is None:
            return await http.upsert_global_command(self.application_id, payload)
        return await http.upsert_guild_command(self.application_id, guild_id, payload)

    async def update(self, guild_id: Optional[int], command_id: int, payload: Dict[str, Any]) -> CommandRecord:
        http = self.client.http
        if guild_id is None:
            return await http.edit_global_command(self.application_id, command_id, payload)
        return await http.edit_guild_command(self.application_id, guild_id, command_id, payload)

    async def delete(self, guild_id: Optional[int], command_id: int) -> None:
        http = self.client.http
        if guild_id is None:
            await http.delete_global_command(self.application_id, command_id)
        else:
            await http.delete_guild_command(self.application_id, guild_id, command_id)

    async def fetch_permissions(self, guild_id: int) -> Dict[int, List[CommandPermission]]:
        records = await self.client.http.get_guild_application_command_permissions(
            self.application_id, guild_id
        )
        return {
            int(record["id"]): [CommandPermission.from_payload(p) for p in record.get("permissions", [])]
            for record in records
        }

    async def set_permissions(
        self,
        guild_id: int,
        command_id: int,
        permissions: Sequence[CommandPermission],
    ) -> None:
        await self.client.http.edit_application_command_permissions(
            self.application_id,
            guild_id,
            command_id,
            {"permissions": [p.to_payload() for p in permissions]},
        )


__all__ = ["CommandAPI", "CommandRecord", "DiscordCommandAPI"]
