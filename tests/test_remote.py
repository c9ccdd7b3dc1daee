"""
Parallax Discord Bot - Remote API Tests
=======================================

Route selection of the discord.py-backed command API, and background
task error logging.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from parallax.interaction.command import CommandPermission, PermissionTarget
from parallax.interaction.remote import DiscordCommandAPI
from parallax.utils.async_utils import create_safe_task


APP_ID = 1234


@pytest.fixture
def client():
    client = MagicMock()
    client.application_id = APP_ID
    client.http = AsyncMock()
    return client


@pytest.fixture
def api(client):
    return DiscordCommandAPI(client)


class TestDiscordCommandAPI:
    """guild_id=None selects the global routes."""

    @pytest.mark.asyncio
    async def test_list(self, api, client):
        client.http.get_global_commands.return_value = [{"name": "ping"}]
        client.http.get_guild_commands.return_value = []

        assert await api.list() == [{"name": "ping"}]
        assert await api.list(5) == []
        client.http.get_guild_commands.assert_awaited_once_with(APP_ID, 5)

    @pytest.mark.asyncio
    async def test_create_update_delete(self, api, client):
        payload = {"name": "ping", "type": 1}

        await api.create(None, payload)
        await api.create(5, payload)
        await api.update(None, 10, payload)
        await api.update(5, 10, payload)
        await api.delete(None, 10)
        await api.delete(5, 10)

        client.http.upsert_global_command.assert_awaited_once_with(APP_ID, payload)
        client.http.upsert_guild_command.assert_awaited_once_with(APP_ID, 5, payload)
        client.http.edit_global_command.assert_awaited_once_with(APP_ID, 10, payload)
        client.http.edit_guild_command.assert_awaited_once_with(APP_ID, 5, 10, payload)
        client.http.delete_global_command.assert_awaited_once_with(APP_ID, 10)
        client.http.delete_guild_command.assert_awaited_once_with(APP_ID, 5, 10)

    @pytest.mark.asyncio
    async def test_permissions(self, api, client):
        client.http.get_guild_application_command_permissions.return_value = [
            {"id": "10", "permissions": [{"id": "5", "type": 1, "permission": True}]},
        ]
        overwrite = CommandPermission(5, PermissionTarget.ROLE, True)

        assert await api.fetch_permissions(5) == {10: [overwrite]}

        await api.set_permissions(5, 10, [overwrite])
        client.http.edit_application_command_permissions.assert_awaited_once_with(
            APP_ID, 5, 10, {"permissions": [{"id": "5", "type": 1, "permission": True}]},
        )

    @pytest.mark.asyncio
    async def test_requires_login(self, api, client):
        client.application_id = None

        with pytest.raises(RuntimeError):
            await api.list()


class TestSafeTask:
    """create_safe_task logs instead of losing exceptions."""

    @pytest.mark.asyncio
    async def test_failure_is_logged(self, monkeypatch):
        fake_logger = MagicMock()
        monkeypatch.setattr("parallax.utils.async_utils.logger", fake_logger)

        async def boom():
            raise RuntimeError("lost")

        await create_safe_task(boom(), "Boom")

        title, details = fake_logger.error.call_args.args
        assert title == "Background Task Failed"
        assert ("Task", "Boom") in details

    @pytest.mark.asyncio
    async def test_result_task_completes(self):
        done = asyncio.Event()

        async def work():
            done.set()

        await create_safe_task(work())

        assert done.is_set()
