"""
Parallax Discord Bot - Registry Tests
=====================================

Handler registration and lookup.
"""

import pytest

from parallax.interaction.command import Command, CommandData, CommandKind
from parallax.interaction.component import Component, CustomIdError
from parallax.interaction.modal import Modal
from parallax.interaction.registry import CommandRegistry, ComponentRegistry, HandlerRegistry, ModalRegistry


class Poll(Component):
    name = "poll"


class Survey(Modal):
    custom_id = "survey"


class TestHandlerRegistry:
    """Generic behavior."""

    def test_last_registration_wins(self):
        registry = HandlerRegistry(lambda item: item[0])
        registry.register(("a", 1))
        registry.register(("a", 2))

        assert registry.lookup("a") == ("a", 2)
        assert len(registry) == 1

    def test_lookup_never_raises(self):
        registry = HandlerRegistry(lambda item: item)
        assert registry.lookup("missing") is None
        assert "missing" not in registry

    def test_clear(self):
        registry = HandlerRegistry(lambda item: item)
        registry.register("x")
        registry.clear()
        assert list(registry) == []


class TestCommandRegistry:
    """Commands are keyed by (name, kind)."""

    def test_same_name_different_kinds(self, context):
        registry = CommandRegistry()
        slash = registry.register(Command(context, CommandData("info", "Info")))
        user = registry.register(Command(context, CommandData("info", kind=CommandKind.USER)))

        assert registry.find("info", 1) is slash
        assert registry.find("info", 2) is user
        assert registry.find("info", 3) is None
        assert registry.declared() == [slash, user]

    def test_bad_kind_is_a_miss(self, context):
        registry = CommandRegistry()
        registry.register(Command(context, CommandData("info", "Info")))

        assert registry.find("info", 42) is None
        assert registry.find("info", "x") is None


class TestComponentRegistry:
    """Components resolve from custom-ids."""

    def test_resolve(self, context):
        registry = ComponentRegistry()
        poll = registry.register(Poll(context))

        assert registry.resolve("poll__vote") == (poll, "vote")
        assert registry.resolve("quiz__vote") is None
        assert registry.resolve("poll") is None
        assert registry.resolve(None) is None

    @pytest.mark.parametrize("bad_name", ["", "bad__name", "bad_"])
    def test_invalid_component_name(self, context, bad_name):
        class Bad(Component):
            name = bad_name

        with pytest.raises(CustomIdError):
            Bad(context)


class TestModalRegistry:
    """Modals are keyed by custom-id."""

    def test_lookup(self, context):
        registry = ModalRegistry()
        survey = registry.register(Survey(context))

        assert registry.lookup("survey") is survey

    def test_modal_without_id(self, context):
        with pytest.raises(ValueError):
            Modal(context)
