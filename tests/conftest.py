"""
Parallax Discord Bot - Test Fixtures
====================================

Shared fixtures for all tests.
"""

import os
import tempfile
from itertools import count
from typing import Any, Dict, List, Optional, Sequence
from unittest.mock import AsyncMock, MagicMock

import pytest

# Keep log files out of the working tree; must happen before parallax imports
os.environ.setdefault("PARALLAX_LOGS_DIR", tempfile.mkdtemp(prefix="parallax-logs-"))

import discord

from parallax.core.config import Config
from parallax.core.context import BotContext
from parallax.core.database import Database
from parallax.core.telemetry import Telemetry
from parallax.interaction.command import CommandPermission


# =============================================================================
# Telemetry Sink
# =============================================================================

class RecordingSink:
    """Telemetry sink that keeps every message instead of printing it."""

    def __init__(self) -> None:
        self.infos: List[str] = []
        self.errors: List[tuple] = []
        self.debugs: List[str] = []
        self.notifications: List[tuple] = []
        self.warnings: List[str] = []

    def info(self, msg: str) -> None:
        self.infos.append(msg)

    def error(self, msg: str, details=None) -> None:
        self.errors.append((msg, details))

    def debug(self, msg: str) -> None:
        self.debugs.append(msg)

    def warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def notify(self, title: str, details) -> None:
        self.notifications.append((title, details))

    def infos_containing(self, text: str) -> List[str]:
        return [line for line in self.infos if text in line]


# =============================================================================
# Remote Command API Fake
# =============================================================================

class FakeCommandAPI:
    """
    In-memory CommandAPI that records every call.

    Attributes:
        records: Remote commands per scope (None is global).
        permissions: Permission overwrites per (guild_id, command_id).
        calls: (operation, guild_id, ...) tuples in call order.
        failures: Operations that raise, as (operation, guild_id) pairs.
    """

    def __init__(self) -> None:
        self.records: Dict[Optional[int], List[Dict[str, Any]]] = {}
        self.permissions: Dict[tuple, List[CommandPermission]] = {}
        self.calls: List[tuple] = []
        self.failures: set = set()
        self._ids = count(1000)

    def _check(self, operation: str, guild_id: Optional[int]) -> None:
        if (operation, guild_id) in self.failures:
            raise ConnectionError(f"{operation} failed for {guild_id}")

    def seed(self, guild_id: Optional[int], **record: Any) -> Dict[str, Any]:
        """Put a record into the remote state without recording a call."""
        record.setdefault("type", 1)
        record.setdefault("description", "")
        record["id"] = str(next(self._ids))
        self.records.setdefault(guild_id, []).append(record)
        return record

    def writes(self) -> List[tuple]:
        """Recorded create/update/delete/set_permissions calls."""
        return [call for call in self.calls if call[0] in ("create", "update", "delete", "set_permissions")]

    def names(self, guild_id: Optional[int] = None) -> List[str]:
        return sorted(record["name"] for record in self.records.get(guild_id, []))

    async def list(self, guild_id: Optional[int] = None) -> List[Dict[str, Any]]:
        self.calls.append(("list", guild_id))
        self._check("list", guild_id)
        return [dict(record) for record in self.records.get(guild_id, [])]

    async def create(self, guild_id: Optional[int], payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("create", guild_id, payload["name"]))
        self._check("create", guild_id)
        record = {**payload, "id": str(next(self._ids))}
        self.records.setdefault(guild_id, []).append(record)
        return dict(record)

    async def update(self, guild_id: Optional[int], command_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("update", guild_id, payload["name"]))
        self._check("update", guild_id)
        records = self.records.setdefault(guild_id, [])
        for index, record in enumerate(records):
            if int(record["id"]) == command_id:
                records[index] = {**payload, "id": record["id"]}
                return dict(records[index])
        raise LookupError(command_id)

    async def delete(self, guild_id: Optional[int], command_id: int) -> None:
        name = next(
            (r["name"] for r in self.records.get(guild_id, []) if int(r["id"]) == command_id), None
        )
        self.calls.append(("delete", guild_id, name))
        self._check("delete", guild_id)
        self.records[guild_id] = [r for r in self.records.get(guild_id, []) if int(r["id"]) != command_id]

    async def fetch_permissions(self, guild_id: int) -> Dict[int, List[CommandPermission]]:
        self.calls.append(("fetch_permissions", guild_id))
        self._check("fetch_permissions", guild_id)
        return {
            command_id: list(perms)
            for (gid, command_id), perms in self.permissions.items()
            if gid == guild_id
        }

    async def set_permissions(self, guild_id: int, command_id: int, permissions: Sequence[CommandPermission]) -> None:
        self.calls.append(("set_permissions", guild_id, command_id))
        self._check("set_permissions", guild_id)
        self.permissions[(guild_id, command_id)] = list(permissions)


# =============================================================================
# Async Helpers
# =============================================================================

class AsyncIter:
    """Async iterator over a fixed list, standing in for channel.history()."""

    def __init__(self, items: Sequence[Any]) -> None:
        self._items = list(items)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._items:
            raise StopAsyncIteration
        return self._items.pop(0)


def make_guild(guild_id: int = 111, name: str = "Test Server") -> MagicMock:
    guild = MagicMock(spec=discord.Guild)
    guild.id = guild_id
    guild.name = name
    return guild


def make_interaction(
    kind: discord.InteractionType,
    data: Optional[Dict[str, Any]] = None,
    user_id: int = 42,
    guild: Optional[MagicMock] = None,
) -> MagicMock:
    """Interaction mock with an awaitable response and followup."""
    interaction = MagicMock(spec=discord.Interaction)
    interaction.id = 9001
    interaction.type = kind
    interaction.data = data or {}
    interaction.guild = guild
    interaction.user = MagicMock()
    interaction.user.id = user_id
    interaction.user.mention = f"<@{user_id}>"
    interaction.response = MagicMock()
    interaction.response.send_message = AsyncMock()
    interaction.response.send_modal = AsyncMock()
    interaction.response.autocomplete = AsyncMock()
    interaction.response.edit_message = AsyncMock()
    interaction.response.defer = AsyncMock()
    interaction.followup = MagicMock()
    interaction.followup.send = AsyncMock()
    return interaction


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def sink():
    """Recording telemetry sink."""
    return RecordingSink()


@pytest.fixture
def telemetry(sink):
    """Root telemetry handle writing to the recording sink."""
    return Telemetry("Parallax", sink=sink)


@pytest.fixture
def test_config(tmp_path):
    """Config pointing at a temporary database."""
    return Config(discord_token="test-token", owner_id=42, database_path=tmp_path / "parallax.db")


@pytest.fixture
def test_db(test_config):
    """Fresh database for each test."""
    db = Database(test_config.database_path)
    yield db
    db.close()


@pytest.fixture
def context(test_config, test_db, telemetry):
    """Bot context wired to the test database and recording telemetry."""
    return BotContext(config=test_config, db=test_db, telemetry=telemetry)


@pytest.fixture
def fake_api():
    """In-memory remote command registry."""
    return FakeCommandAPI()


@pytest.fixture
def guild():
    return make_guild()


@pytest.fixture
def guild_factory():
    """Factory for guild mocks: guild_factory(id, name)."""
    return make_guild


@pytest.fixture
def interaction_factory():
    """Factory for interaction mocks: interaction_factory(kind, data, ...)."""
    return make_interaction


@pytest.fixture
def async_iter():
    """AsyncIter class, for mocking channel.history()."""
    return AsyncIter
