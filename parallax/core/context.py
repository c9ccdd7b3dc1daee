"""
Parallax Discord Bot - Bot Context
==================================

The shared state handed to every command, component, modal and service.

DESIGN:
    Built once in main.py and passed down explicitly. Nothing in the
    package reaches for a module-level singleton, so tests can assemble
    a context from an in-memory database and a recording telemetry sink.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from parallax.core.config import Config
from parallax.core.database import Database
from parallax.core.telemetry import Telemetry
from parallax.interaction.registry import CommandRegistry, ComponentRegistry, ModalRegistry
from parallax.utils.queuer import QueueRegistry

if TYPE_CHECKING:
    import discord


@dataclass
class BotContext:
    """
    Explicit replacement for the bot's process-wide managers.

    Attributes:
        config: Start-up configuration.
        db: Persistent storage.
        telemetry: Root reporting handle.
        queues: Per-resource task queues.
        commands: Declared application commands.
        components: Message component handlers.
        modals: Modal submit handlers.
        client: The connected Discord client, once created.
        start_time: When the context was built.
    """

    config: Config
    db: Database
    telemetry: Telemetry = field(default_factory=Telemetry)
    queues: QueueRegistry = field(default_factory=QueueRegistry)
    commands: CommandRegistry = field(default_factory=CommandRegistry)
    components: ComponentRegistry = field(default_factory=ComponentRegistry)
    modals: ModalRegistry = field(default_factory=ModalRegistry)
    client: Optional["discord.Client"] = None
    start_time: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_config(cls, config: Config) -> "BotContext":
        """Build a context with storage and queues configured from config."""
        return cls(
            config=config,
            db=Database(config.database_path),
            queues=QueueRegistry(delay=config.queue_delay),
        )

    # =========================================================================
    # Runtime Settings
    # =========================================================================

    def setting_int(self, key: str) -> Optional[int]:
        """Numeric bot_config value, None when unset or not a number."""
        value = self.db.bot_config(key)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    def owner_id(self) -> Optional[int]:
        """Bot owner, database value first, then the OWNER_ID default."""
        return self.setting_int("BotOwnerId") or self.config.owner_id

    def control_server_id(self) -> Optional[int]:
        return self.setting_int("ControlServerId")

    def telemetry_webhook_url(self) -> Optional[str]:
        return self.db.bot_config("TelemetryWebhookURL") or self.config.telemetry_webhook_url


__all__ = ["BotContext"]
