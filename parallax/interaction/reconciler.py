"""
Parallax Discord Bot - Command Lifecycle Reconciler
===================================================

Brings Discord's registered commands in line with the declared ones.

DESIGN:
    Per command and target scope (global, or each guild for guild-scoped
    commands) the reconciler:
    1. Evaluates the guild predicate; ineligible guilds lose the command.
    2. Looks the command up by (name, kind) in the scope's remote list.
    3. Creates it when absent, updates it when the shape differs, and
       makes no call at all when it already matches.

    Remote lists are fetched once per scope and then kept current by
    every create/update/delete, so a steady-state restart issues one
    list call per scope and nothing else.

    A garbage-collection pass afterwards deletes remote commands nobody
    declares anymore, which per-command passes cannot see.

    Every failure is reported and recorded as a FAILED result; the pass
    continues with the next command or guild.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import discord

from parallax.core.telemetry import Telemetry
from parallax.interaction.command import Command, CommandKind, CommandPermission, CommandScope
from parallax.interaction.remote import CommandAPI, CommandRecord


# =============================================================================
# Results
# =============================================================================

class ReconcileStatus(str, Enum):
    """Outcome of reconciling one command in one scope."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ReconcileResult:
    """One reconciliation decision."""

    command: str
    kind: CommandKind
    scope: CommandScope
    status: ReconcileStatus
    guild_id: Optional[int] = None
    error: Optional[BaseException] = field(default=None, compare=False)


GuildsProvider = Callable[[], Iterable[discord.Guild]]


def _record_key(record: CommandRecord) -> Tuple[str, int]:
    return (record.get("name", ""), int(record.get("type", CommandKind.CHAT_INPUT)))


def _command_key(command: Command) -> Tuple[str, int]:
    return (command.name, int(command.kind))


# =============================================================================
# Reconciler
# =============================================================================

class CommandLifecycleReconciler:
    """
    Diff-and-apply of declared commands against the remote registry.

    Attributes:
        api: Remote command registry.
        telemetry: Reporting handle.
    """

    def __init__(
        self,
        api: CommandAPI,
        telemetry: Telemetry,
        guilds: Optional[GuildsProvider] = None,
    ) -> None:
        self.api = api
        self.telemetry = telemetry.child("CommandLifecycleReconciler")
        self._guilds: GuildsProvider = guilds or (lambda: ())
        self._remote: Dict[Optional[int], List[CommandRecord]] = {}
        self._guild_names: Dict[int, str] = {}

    # =========================================================================
    # Remote State
    # =========================================================================

    async def fetch_remote(self, guild_id: Optional[int] = None, refresh: bool = False) -> List[CommandRecord]:
        """
        Remote commands of a scope, from cache unless refresh is set.

        Args:
            guild_id: Guild to list, None for the global scope.
            refresh: Discard the cached list and fetch again.
        """
        if refresh or guild_id not in self._remote:
            self._remote[guild_id] = list(await self.api.list(guild_id))
        return self._remote[guild_id]

    def invalidate(self, guild_id: Optional[int] = None) -> None:
        """Forget the cached remote list of a scope."""
        self._remote.pop(guild_id, None)

    def _find(self, records: List[CommandRecord], command: Command) -> Optional[CommandRecord]:
        key = _command_key(command)
        for record in records:
            if _record_key(record) == key:
                return record
        return None

    def _replace(self, guild_id: Optional[int], record: CommandRecord) -> None:
        records = self._remote.setdefault(guild_id, [])
        for index, existing in enumerate(records):
            if existing.get("id") == record.get("id"):
                records[index] = record
                return
        records.append(record)

    def _discard(self, guild_id: Optional[int], record_id: object) -> None:
        records = self._remote.get(guild_id)
        if records is not None:
            self._remote[guild_id] = [r for r in records if r.get("id") != record_id]

    # =========================================================================
    # Reporting
    # =========================================================================

    def _result(
        self,
        command: Command,
        status: ReconcileStatus,
        guild: Optional[discord.Guild] = None,
        error: Optional[BaseException] = None,
    ) -> ReconcileResult:
        if status not in (ReconcileStatus.UNCHANGED, ReconcileStatus.SKIPPED, ReconcileStatus.FAILED):
            if guild is None:
                self.telemetry.log(f"Global {command.kind.label} command {command.name} {status.value}.")
            else:
                self.telemetry.log(
                    f"Guild {command.kind.label} command {command.name} {status.value} on {guild.name}."
                )
        return ReconcileResult(
            command=command.name,
            kind=command.kind,
            scope=command.scope,
            status=status,
            guild_id=guild.id if guild is not None else None,
            error=error,
        )

    def _report(self, error: BaseException, command: Command, guild: Optional[discord.Guild] = None) -> None:
        handle = self.telemetry.child("reconcile", id=command.name)
        if guild is not None:
            handle = handle.child("guild", id=guild.id)
        handle.error(error)

    # =========================================================================
    # Per-Command Reconciliation
    # =========================================================================

    async def reconcile(self, command: Command, guild: Optional[discord.Guild] = None) -> List[ReconcileResult]:
        """
        Reconcile one command.

        Args:
            command: Declared command.
            guild: For guild-scoped commands, restrict the pass to this
                guild; otherwise every known guild is visited.

        Returns:
            One result per target scope.
        """
        if command.scope is CommandScope.GLOBAL:
            return [await self._apply(command, None)]

        targets = [guild] if guild is not None else list(self._guilds())
        results = []
        for target in targets:
            results.append(await self._reconcile_guild(command, target))
        return results

    async def _reconcile_guild(self, command: Command, guild: discord.Guild) -> ReconcileResult:
        if not await command.is_eligible(guild):
            return await self._remove(command, guild)

        result = await self._apply(command, guild)
        if result.status is not ReconcileStatus.FAILED and command.permissions:
            await self._sync_permissions(command, guild)
        return result

    async def _apply(self, command: Command, guild: Optional[discord.Guild]) -> ReconcileResult:
        guild_id = guild.id if guild is not None else None
        try:
            record = self._find(await self.fetch_remote(guild_id), command)

            if record is None:
                created = await self.api.create(guild_id, command.data.to_payload())
                self._replace(guild_id, created)
                return self._result(command, ReconcileStatus.CREATED, guild)

            if not command.data.matches(record):
                updated = await self.api.update(guild_id, int(record["id"]), command.data.to_payload())
                self._replace(guild_id, updated)
                return self._result(command, ReconcileStatus.UPDATED, guild)

            return self._result(command, ReconcileStatus.UNCHANGED, guild)
        except Exception as e:
            self._report(e, command, guild)
            return self._result(command, ReconcileStatus.FAILED, guild, error=e)

    async def _remove(self, command: Command, guild: discord.Guild) -> ReconcileResult:
        try:
            record = self._find(await self.fetch_remote(guild.id), command)
            if record is None:
                return self._result(command, ReconcileStatus.SKIPPED, guild)

            await self.api.delete(guild.id, int(record["id"]))
            self._discard(guild.id, record["id"])
            return self._result(command, ReconcileStatus.DELETED, guild)
        except Exception as e:
            self._report(e, command, guild)
            return self._result(command, ReconcileStatus.FAILED, guild, error=e)

    # =========================================================================
    # Permission Overwrites
    # =========================================================================

    async def _sync_permissions(self, command: Command, guild: discord.Guild) -> bool:
        """
        Push the command's permission overwrites to a guild if they differ.

        Returns:
            True when overwrites were written.
        """
        try:
            record = self._find(await self.fetch_remote(guild.id), command)
            if record is None:
                return False
            command_id = int(record["id"])

            current = (await self.api.fetch_permissions(guild.id)).get(command_id, [])
            declared: Set[CommandPermission] = set(command.permissions)
            if set(current) == declared:
                return False

            await self.api.set_permissions(guild.id, command_id, command.permissions)
            self.telemetry.log(
                f"Guild {command.kind.label} command {command.name} permissions synced on {guild.name}."
            )
            return True
        except Exception as e:
            self._report(e, command, guild)
            return False

    # =========================================================================
    # Garbage Collection
    # =========================================================================

    async def collect_garbage(self, commands: Sequence[Command]) -> List[ReconcileResult]:
        """
        Delete remote commands that have no local declaration.

        Visits the global scope and every known guild. Guild-scoped
        declarations protect their name in every guild; whether a guild
        should carry them is the per-command pass's decision.
        """
        declared_global = {_command_key(c) for c in commands if c.scope is CommandScope.GLOBAL}
        declared_guild = {_command_key(c) for c in commands if c.scope is CommandScope.GUILD}

        targets: List[Optional[discord.Guild]] = [None, *self._guilds()]
        results: List[ReconcileResult] = []
        for guild in targets:
            guild_id = guild.id if guild is not None else None
            declared = declared_global if guild is None else declared_guild
            try:
                records = list(await self.fetch_remote(guild_id))
            except Exception as e:
                self._gc_handle(guild).error(e)
                continue

            for record in records:
                if _record_key(record) in declared:
                    continue
                results.append(await self._delete_stray(record, guild))
        return results

    def _gc_handle(self, guild: Optional[discord.Guild]) -> Telemetry:
        handle = self.telemetry.child("collect_garbage")
        return handle.child("guild", id=guild.id) if guild is not None else handle

    async def _delete_stray(self, record: CommandRecord, guild: Optional[discord.Guild]) -> ReconcileResult:
        name, kind_value = _record_key(record)
        try:
            kind = CommandKind(kind_value)
        except ValueError:
            kind = CommandKind.CHAT_INPUT
        scope = CommandScope.GLOBAL if guild is None else CommandScope.GUILD
        guild_id = guild.id if guild is not None else None

        try:
            await self.api.delete(guild_id, int(record["id"]))
        except Exception as e:
            self._gc_handle(guild).error(e)
            return ReconcileResult(name, kind, scope, ReconcileStatus.FAILED, guild_id, error=e)

        self._discard(guild_id, record["id"])
        if guild is None:
            self.telemetry.log(f"Global {kind.label} command {name} deleted.")
        else:
            self.telemetry.log(f"Guild {kind.label} command {name} deleted on {guild.name}.")
        return ReconcileResult(name, kind, scope, ReconcileStatus.DELETED, guild_id)

    # =========================================================================
    # Full Pass
    # =========================================================================

    async def refresh(self) -> None:
        """Refetch the remote lists of the global scope and every known guild."""
        scopes: List[Optional[int]] = [None, *(g.id for g in self._guilds())]
        outcomes = await asyncio.gather(
            *(self.fetch_remote(scope, refresh=True) for scope in scopes),
            return_exceptions=True,
        )
        for scope, outcome in zip(scopes, outcomes):
            if isinstance(outcome, Exception):
                self.invalidate(scope)
                self.telemetry.child("refresh", id=scope or "global").error(outcome)

    async def reconcile_all(self, commands: Sequence[Command], gc: bool = True) -> List[ReconcileResult]:
        """
        Reconcile every declared command, then garbage collect.

        The remote lists are always refetched first, so an immediate re-run
        still makes one list call per scope. It makes no create, update or
        delete calls, and a per-command reconcile() re-run makes no calls
        at all.

        Args:
            commands: Every declared command.
            gc: Run the garbage-collection pass afterwards.

        Returns:
            All results, per-command ones first.
        """
        await self.refresh()

        results: List[ReconcileResult] = []
        for command in commands:
            results.extend(await self.reconcile(command))

        if gc:
            results.extend(await self.collect_garbage(commands))
        return results

    async def reconcile_guild(self, commands: Sequence[Command], guild: discord.Guild) -> List[ReconcileResult]:
        """Reconcile every guild-scoped command for one newly available guild."""
        self.invalidate(guild.id)
        results: List[ReconcileResult] = []
        for command in commands:
            if command.scope is CommandScope.GUILD:
                results.extend(await self.reconcile(command, guild))
        return results


__all__ = [
    "CommandLifecycleReconciler",
    "GuildsProvider",
    "ReconcileResult",
    "ReconcileStatus",
]
