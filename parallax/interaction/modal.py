"""
Parallax Discord Bot - Modals
=============================

Modal forms keyed directly by their custom-id.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Mapping, Optional, Sequence

import discord

from parallax.core.telemetry import Telemetry

if TYPE_CHECKING:
    from parallax.core.context import BotContext


# =============================================================================
# Field Layout
# =============================================================================

@dataclass(frozen=True)
class ModalField:
    """One text input of a modal."""

    custom_id: str
    label: str
    style: discord.TextStyle = discord.TextStyle.short
    placeholder: Optional[str] = None
    required: bool = True
    min_length: Optional[int] = None
    max_length: Optional[int] = None


class _RoutedModal(discord.ui.Modal):
    """Modal whose submissions are left to the interaction dispatcher."""

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return False


# =============================================================================
# Modal Base
# =============================================================================

class Modal:
    """
    Modal submit handler.

    Subclasses set custom_id, title and fields, and implement exec(),
    which receives the submitted values keyed by field custom-id.
    """

    custom_id: ClassVar[str] = ""
    title: ClassVar[str] = ""
    fields: ClassVar[Sequence[ModalField]] = ()

    def __init__(self, context: "BotContext") -> None:
        if not self.custom_id:
            raise ValueError(f"{type(self).__name__} has no custom_id")
        self.context = context
        self.telemetry: Telemetry = context.telemetry.child(type(self).__name__)

    def build(self, defaults: Optional[Mapping[str, str]] = None) -> discord.ui.Modal:
        """
        Build the modal to send with interaction.response.send_modal().

        Args:
            defaults: Prefilled values keyed by field custom-id.
        """
        defaults = defaults or {}
        modal = _RoutedModal(title=self.title, custom_id=self.custom_id, timeout=600)
        for field in self.fields:
            modal.add_item(discord.ui.TextInput(
                label=field.label,
                custom_id=field.custom_id,
                style=field.style,
                placeholder=field.placeholder,
                default=defaults.get(field.custom_id),
                required=field.required,
                min_length=field.min_length,
                max_length=field.max_length,
            ))
        return modal

    async def exec(self, interaction: discord.Interaction, values: Dict[str, str]) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} custom_id={self.custom_id}>"


# =============================================================================
# Payload Helpers
# =============================================================================

def extract_modal_values(data: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """
    Flatten a modal submit payload into {field custom-id: value}.

    Args:
        data: interaction.data of a modal submit.
    """
    values: Dict[str, str] = {}
    stack = list((data or {}).get("components") or ())
    while stack:
        item = stack.pop(0)
        if "components" in item:
            stack.extend(item["components"])
        elif "component" in item:
            stack.append(item["component"])
        elif "custom_id" in item:
            values[item["custom_id"]] = item.get("value") or ""
    return values


__all__ = ["Modal", "ModalField", "extract_modal_values"]
