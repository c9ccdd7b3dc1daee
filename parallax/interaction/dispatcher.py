"""
Parallax Discord Bot - Interaction Dispatcher
=============================================

Single entry point for every inbound interaction.

DESIGN:
    Each interaction is classified by type and routed to exactly one
    handler:
    - application command -> Command.exec
    - autocomplete        -> Command.autocomplete
    - message component   -> Component.exec(action)
    - modal submit        -> Modal.exec(values)

    Unknown types and routing misses end silently; stale buttons and
    deleted commands are normal churn. Handler failures are reported
    through telemetry and never leave dispatch(), so one bad interaction
    cannot take down the event loop or block the next one.

    The dispatcher itself serializes nothing. Handlers that mutate shared
    guild state route the mutation through context.queues.
"""

from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Type

import discord

from parallax.core.context import BotContext
from parallax.interaction.command import Command
from parallax.interaction.component import Component
from parallax.interaction.modal import Modal, extract_modal_values
from parallax.interaction.reconciler import CommandLifecycleReconciler, ReconcileResult


# =============================================================================
# Outcome
# =============================================================================

class DispatchOutcome(str, Enum):
    """Terminal state of one dispatched interaction."""

    COMPLETED = "completed"
    FAILED = "failed"
    MISSED = "missed"
    DROPPED = "dropped"


COMMAND_QUEUE_KEY = "application-commands"


# =============================================================================
# Dispatcher
# =============================================================================

class InteractionDispatcher:
    """
    Routes interactions to registered handlers and drives command sync.

    Attributes:
        context: Shared bot context holding the registries.
        reconciler: Command lifecycle reconciler, None when not syncing.
    """

    def __init__(
        self,
        context: BotContext,
        reconciler: Optional[CommandLifecycleReconciler] = None,
    ) -> None:
        self.context = context
        self.reconciler = reconciler
        self.telemetry = context.telemetry.child("InteractionDispatcher")

    # =========================================================================
    # Loading
    # =========================================================================

    def load(
        self,
        commands: Iterable[Type[Command]] = (),
        components: Iterable[Type[Component]] = (),
        modals: Iterable[Type[Modal]] = (),
    ) -> None:
        """
        Instantiate and register handler classes.

        A class whose constructor fails is reported and skipped.
        """
        targets = (
            (commands, self.context.commands),
            (components, self.context.components),
            (modals, self.context.modals),
        )
        for classes, registry in targets:
            for handler_class in classes:
                try:
                    registry.register(handler_class(self.context))
                except Exception as e:
                    self.telemetry.child("load", id=handler_class.__name__).error(e)

        self.telemetry.log(
            f"Loaded {len(self.context.commands)} commands, "
            f"{len(self.context.components)} components, "
            f"{len(self.context.modals)} modals."
        )

    # =========================================================================
    # Command Lifecycle
    # =========================================================================

    async def start(self) -> List[ReconcileResult]:
        """Reconcile every declared command against Discord."""
        if self.reconciler is None:
            return []
        reconciler = self.reconciler
        commands = self.context.commands.declared()
        return await self.context.queues.enqueue(
            COMMAND_QUEUE_KEY,
            lambda: reconciler.reconcile_all(commands, gc=self.context.config.command_gc),
        )

    async def on_guild_join(self, guild: discord.Guild) -> List[ReconcileResult]:
        """Register guild-scoped commands on a newly available guild."""
        if self.reconciler is None:
            return []
        reconciler = self.reconciler
        commands = self.context.commands.declared()
        return await self.context.queues.enqueue(
            COMMAND_QUEUE_KEY,
            lambda: reconciler.reconcile_guild(commands, guild),
        )

    def on_guild_remove(self, guild: discord.Guild) -> int:
        """
        Forget per-guild state after the bot leaves a guild.

        Drops the guild's cached remote command list and every idle task
        queue. Busy queues are kept until a later prune.

        Returns:
            Number of queues removed.
        """
        if self.reconciler is not None:
            self.reconciler.invalidate(guild.id)
        pruned = self.context.queues.prune()
        self.telemetry.log(f"Left guild {guild.id}, pruned {pruned} idle queues.")
        return pruned

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def dispatch(self, interaction: discord.Interaction) -> DispatchOutcome:
        """
        Route one interaction to its handler.

        Never raises; the outcome is informational only.
        """
        data = interaction.data or {}
        kind = interaction.type

        if kind is discord.InteractionType.application_command:
            command = self.context.commands.find(data.get("name", ""), data.get("type", 1))
            if command is None:
                return DispatchOutcome.MISSED
            return await self._run(command, lambda: command.exec(interaction), interaction)

        if kind is discord.InteractionType.autocomplete:
            command = self.context.commands.find(data.get("name", ""), data.get("type", 1))
            if command is None:
                return DispatchOutcome.MISSED
            return await self._run(command, lambda: command.autocomplete(interaction), interaction)

        if kind is discord.InteractionType.component:
            resolved = self.context.components.resolve(data.get("custom_id"))
            if resolved is None:
                return DispatchOutcome.MISSED
            component, action = resolved
            return await self._run(component, lambda: component.exec(interaction, action), interaction)

        if kind is discord.InteractionType.modal_submit:
            modal = self.context.modals.lookup(data.get("custom_id", ""))
            if modal is None:
                return DispatchOutcome.MISSED
            values = extract_modal_values(data)
            return await self._run(modal, lambda: modal.exec(interaction, values), interaction)

        return DispatchOutcome.DROPPED

    async def _run(
        self,
        handler: Any,
        invoke: Callable[[], Awaitable[Any]],
        interaction: discord.Interaction,
    ) -> DispatchOutcome:
        try:
            await invoke()
        except Exception as e:
            handler.telemetry.child("interaction", id=interaction.id).error(e)
            return DispatchOutcome.FAILED
        return DispatchOutcome.COMPLETED


__all__ = ["COMMAND_QUEUE_KEY", "DispatchOutcome", "InteractionDispatcher"]
