"""
Parallax Discord Bot - Interaction Package
==========================================

Declaration, routing and registration of interactions.

DESIGN:
    - command / component / modal: handler base classes and wire formats
    - registry: identifier to handler maps filled at start-up
    - remote / reconciler: syncing declared commands to Discord
    - dispatcher: routing inbound interactions (import it directly)
"""

from .command import (
    AutocompleteNotSupported,
    Command,
    CommandData,
    CommandKind,
    CommandPermission,
    CommandScope,
    OptionType,
    PermissionTarget,
    option,
)
from .component import SEPARATOR, ButtonTemplate, Component, CustomIdError, make_custom_id, parse_custom_id
from .modal import Modal, ModalField, extract_modal_values
from .reconciler import CommandLifecycleReconciler, ReconcileResult, ReconcileStatus
from .registry import CommandRegistry, ComponentRegistry, ModalRegistry
from .remote import CommandAPI, DiscordCommandAPI

__all__ = [
    "AutocompleteNotSupported",
    "ButtonTemplate",
    "Command",
    "CommandAPI",
    "CommandData",
    "CommandKind",
    "CommandLifecycleReconciler",
    "CommandPermission",
    "CommandRegistry",
    "CommandScope",
    "Component",
    "ComponentRegistry",
    "CustomIdError",
    "DiscordCommandAPI",
    "Modal",
    "ModalField",
    "ModalRegistry",
    "OptionType",
    "PermissionTarget",
    "ReconcileResult",
    "ReconcileStatus",
    "SEPARATOR",
    "extract_modal_values",
    "make_custom_id",
    "option",
    "parse_custom_id",
]
