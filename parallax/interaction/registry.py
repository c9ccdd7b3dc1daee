"""
Parallax Discord Bot - Handler Registries
=========================================

Identifier to handler maps for commands, components and modals.

DESIGN:
    Registries are filled once while the bot loads and only read while
    it dispatches. Registering an identifier twice replaces the earlier
    handler; lookups never raise.
"""

from typing import Callable, Dict, Generic, Hashable, Iterator, List, Optional, Tuple, TypeVar

from parallax.interaction.command import Command, CommandKind
from parallax.interaction.component import Component, parse_custom_id
from parallax.interaction.modal import Modal

H = TypeVar("H")
K = TypeVar("K", bound=Hashable)


# =============================================================================
# Generic Registry
# =============================================================================

class HandlerRegistry(Generic[K, H]):
    """Map of identifier to handler; last registration wins."""

    def __init__(self, key: Callable[[H], K]) -> None:
        self._key = key
        self._handlers: Dict[K, H] = {}

    def register(self, handler: H) -> H:
        self._handlers[self._key(handler)] = handler
        return handler

    def lookup(self, identifier: K) -> Optional[H]:
        return self._handlers.get(identifier)

    def clear(self) -> None:
        self._handlers.clear()

    def __iter__(self) -> Iterator[H]:
        return iter(list(self._handlers.values()))

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._handlers


# =============================================================================
# Concrete Registries
# =============================================================================

class CommandRegistry(HandlerRegistry[Tuple[str, CommandKind], Command]):
    """Commands keyed by (name, kind)."""

    def __init__(self) -> None:
        super().__init__(lambda command: command.key)

    def find(self, name: str, kind: int = CommandKind.CHAT_INPUT) -> Optional[Command]:
        """Look up by name and raw kind value from an interaction payload."""
        try:
            return self.lookup((name, CommandKind(int(kind))))
        except ValueError:
            return None

    def declared(self) -> List[Command]:
        return list(self)


class ComponentRegistry(HandlerRegistry[str, Component]):
    """Components keyed by name, resolved from composite custom-ids."""

    def __init__(self) -> None:
        super().__init__(lambda component: component.name)

    def resolve(self, custom_id: Optional[str]) -> Optional[Tuple[Component, str]]:
        """
        Find the component and action behind a custom-id.

        Returns:
            (component, action), or None for malformed or unknown ids.
        """
        parsed = parse_custom_id(custom_id)
        if parsed is None:
            return None
        name, action = parsed
        component = self.lookup(name)
        if component is None:
            return None
        return component, action


class ModalRegistry(HandlerRegistry[str, Modal]):
    """Modals keyed by custom-id."""

    def __init__(self) -> None:
        super().__init__(lambda modal: modal.custom_id)


__all__ = [
    "CommandRegistry",
    "ComponentRegistry",
    "HandlerRegistry",
    "ModalRegistry",
]
