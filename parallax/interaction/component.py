"""
Parallax Discord Bot - Message Components
=========================================

Button layouts and the composite custom-id that routes their clicks.

DESIGN:
    Every button a component renders carries "<name>__<action>" as its
    custom-id. The dispatcher recovers both the owning component and the
    action from that string alone, so a component needs no per-message
    state and buttons keep working across restarts.

    Names and actions may not contain the separator. make_custom_id()
    enforces that together with Discord's 100 character ceiling.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Optional, Sequence, Tuple

import discord

from parallax.core.telemetry import Telemetry

if TYPE_CHECKING:
    from parallax.core.context import BotContext


# =============================================================================
# Custom-ID Wire Format
# =============================================================================

SEPARATOR = "__"
CUSTOM_ID_MAX_LENGTH = 100


class CustomIdError(ValueError):
    """Raised when a custom-id cannot be composed."""


def make_custom_id(name: str, action: str) -> str:
    """
    Compose the custom-id of a component action.

    Args:
        name: Component name.
        action: Action within the component.

    Raises:
        CustomIdError: On empty parts, an embedded separator, an underscore
            touching the separator, or overflow.
    """
    if not name or not action:
        raise CustomIdError("Component name and action must be non-empty")
    if SEPARATOR in name or SEPARATOR in action:
        raise CustomIdError(f"Component name and action may not contain '{SEPARATOR}'")
    if name.endswith("_") or action.startswith("_"):
        raise CustomIdError("Component name may not end, and action may not start, with '_'")

    custom_id = f"{name}{SEPARATOR}{action}"
    if len(custom_id) > CUSTOM_ID_MAX_LENGTH:
        raise CustomIdError(
            f"Custom-id '{custom_id[:20]}...' exceeds {CUSTOM_ID_MAX_LENGTH} characters"
        )
    return custom_id


def parse_custom_id(custom_id: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Split a custom-id into (name, action).

    Returns:
        The pair, or None for anything that is not exactly two non-empty parts.
    """
    if not custom_id:
        return None
    parts = custom_id.split(SEPARATOR)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


# =============================================================================
# Render Templates
# =============================================================================

@dataclass(frozen=True)
class ButtonTemplate:
    """One button of a component layout."""

    action: str
    label: str
    style: discord.ButtonStyle = discord.ButtonStyle.secondary
    emoji: Optional[str] = None
    disabled: bool = False


ButtonRow = Sequence[ButtonTemplate]


# =============================================================================
# Component Base
# =============================================================================

class Component:
    """
    Message component handler.

    Subclasses set `name` and `template` and implement exec(), which
    receives the action parsed from the clicked button's custom-id.
    """

    name: ClassVar[str] = ""
    template: ClassVar[Sequence[ButtonRow]] = ()

    def __init__(self, context: "BotContext") -> None:
        if not self.name or SEPARATOR in self.name or self.name.endswith("_"):
            raise CustomIdError(f"Invalid component name: {self.name!r}")
        self.context = context
        self.telemetry: Telemetry = context.telemetry.child(type(self).__name__)

    @classmethod
    def make_id(cls, action: str) -> str:
        """Custom-id for one of this component's actions."""
        return make_custom_id(cls.name, action)

    def render(
        self,
        rows: Optional[Sequence[ButtonRow]] = None,
        disabled: bool = False,
    ) -> discord.ui.View:
        """
        Build the button layout for a message.

        The returned view is already stopped, so discord.py never stores
        it and clicks reach the dispatcher by custom-id instead.

        Args:
            rows: Layout to render; defaults to the class template.
            disabled: Render every button disabled.
        """
        view = discord.ui.View(timeout=None)
        for row_index, row in enumerate(rows if rows is not None else self.template):
            for button in row:
                view.add_item(discord.ui.Button(
                    style=button.style,
                    label=button.label,
                    emoji=button.emoji,
                    custom_id=self.make_id(button.action),
                    disabled=disabled or button.disabled,
                    row=row_index,
                ))
        view.stop()
        return view

    async def exec(self, interaction: discord.Interaction, action: str) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name}>"


__all__ = [
    "ButtonTemplate",
    "CUSTOM_ID_MAX_LENGTH",
    "Component",
    "CustomIdError",
    "SEPARATOR",
    "make_custom_id",
    "parse_custom_id",
]
