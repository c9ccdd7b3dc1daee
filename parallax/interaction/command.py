"""
Parallax Discord Bot - Application Commands
===========================================

Command declarations and the handler interface.

DESIGN:
    A Command pairs an immutable CommandData declaration with handler
    methods. Every variant (slash, user context, message context) is the
    same class tagged by CommandKind; autocomplete is an optional
    capability detected by whether a subclass overrides autocomplete().

    CommandData.matches() decides whether a remote registration already
    has the declared shape, which is what keeps restarts free of
    redundant create/update calls.
"""

import inspect
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

import discord

from parallax.core.telemetry import Telemetry

if TYPE_CHECKING:
    from parallax.core.context import BotContext


# =============================================================================
# Enums
# =============================================================================

class CommandKind(IntEnum):
    """Application command type as sent by Discord."""

    CHAT_INPUT = 1
    USER = 2
    MESSAGE = 3

    @property
    def label(self) -> str:
        return self.name.lower()


class CommandScope(Enum):
    """Where a command is registered."""

    GLOBAL = "global"
    GUILD = "guild"


class PermissionTarget(IntEnum):
    """Target type of a command permission overwrite."""

    ROLE = 1
    USER = 2
    CHANNEL = 3


class OptionType(IntEnum):
    """Application command option types."""

    SUB_COMMAND = 1
    SUB_COMMAND_GROUP = 2
    STRING = 3
    INTEGER = 4
    BOOLEAN = 5
    USER = 6
    CHANNEL = 7
    ROLE = 8
    MENTIONABLE = 9
    NUMBER = 10
    ATTACHMENT = 11


GuildPredicate = Callable[[discord.Guild], Union[bool, Awaitable[bool]]]


class AutocompleteNotSupported(Exception):
    """Raised when autocomplete reaches a command that does not offer it."""

    def __init__(self, command_name: str) -> None:
        super().__init__(f"{command_name} does not support autocomplete.")
        self.command_name = command_name


# =============================================================================
# Option Helpers
# =============================================================================

_OPTION_KEYS = (
    "type", "name", "description", "required", "choices", "options",
    "channel_types", "min_value", "max_value", "min_length", "max_length",
    "autocomplete",
)


def option(
    type: OptionType,
    name: str,
    description: str,
    **extra: Any,
) -> Dict[str, Any]:
    """
    Build one option of a command's option tree.

    Args:
        type: Option type.
        name: Option name.
        description: Option description.
        **extra: required, choices, options, autocomplete, ...
    """
    data: Dict[str, Any] = {"type": int(type), "name": name, "description": description}
    for key, value in extra.items():
        if key not in _OPTION_KEYS:
            raise ValueError(f"Unknown option field: {key}")
        data[key] = value
    return data


def normalize_options(options: Optional[Sequence[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """
    Reduce an option tree to the fields that define its shape.

    Null, false and empty values are dropped because Discord omits them
    from what it returns; choices keep only name and value.
    """
    normalized = []
    for item in options or ():
        entry: Dict[str, Any] = {}
        for key in _OPTION_KEYS:
            value = item.get(key)
            if value is None or value is False or value == [] or value == ():
                continue
            if key == "options":
                value = normalize_options(value)
            elif key == "choices":
                value = [{"name": c["name"], "value": c["value"]} for c in value]
            elif key == "channel_types":
                value = sorted(int(v) for v in value)
            elif key == "type":
                value = int(value)
            entry[key] = value
        normalized.append(entry)
    return normalized


def _normalize_permissions(value: Any) -> Optional[str]:
    """Discord returns default_member_permissions as a string or null."""
    if value is None:
        return None
    return str(int(value))


# =============================================================================
# Declarations
# =============================================================================

@dataclass(frozen=True)
class CommandData:
    """
    Immutable declaration of an application command.

    Identity is (name, kind); two declarations with the same name but a
    different kind are different commands.
    """

    name: str
    description: str = ""
    kind: CommandKind = CommandKind.CHAT_INPUT
    options: Tuple[Dict[str, Any], ...] = ()
    default_member_permissions: Optional[int] = None
    nsfw: bool = False
    integration_types: Optional[Tuple[int, ...]] = None
    contexts: Optional[Tuple[int, ...]] = None

    @property
    def key(self) -> Tuple[str, CommandKind]:
        return (self.name, self.kind)

    def to_payload(self) -> Dict[str, Any]:
        """Render the declaration as a Discord API payload."""
        payload: Dict[str, Any] = {
            "name": self.name,
            "type": int(self.kind),
            "nsfw": self.nsfw,
            "default_member_permissions": _normalize_permissions(self.default_member_permissions),
        }
        if self.kind is CommandKind.CHAT_INPUT:
            payload["description"] = self.description
            payload["options"] = [dict(o) for o in self.options]
        if self.integration_types is not None:
            payload["integration_types"] = list(self.integration_types)
        if self.contexts is not None:
            payload["contexts"] = list(self.contexts)
        return payload

    def matches(self, record: Dict[str, Any]) -> bool:
        """
        Check whether a remote command record has this declaration's shape.

        Args:
            record: Command object as returned by the Discord API.
        """
        if record.get("name") != self.name:
            return False
        if int(record.get("type", CommandKind.CHAT_INPUT)) != int(self.kind):
            return False
        if self.kind is CommandKind.CHAT_INPUT:
            if (record.get("description") or "") != self.description:
                return False
            if normalize_options(record.get("options")) != normalize_options(self.options):
                return False
        if _normalize_permissions(record.get("default_member_permissions")) != \
                _normalize_permissions(self.default_member_permissions):
            return False
        if bool(record.get("nsfw", False)) != self.nsfw:
            return False
        if self.integration_types is not None and \
                sorted(record.get("integration_types") or ()) != sorted(self.integration_types):
            return False
        if self.contexts is not None and \
                sorted(record.get("contexts") or ()) != sorted(self.contexts):
            return False
        return True


@dataclass(frozen=True)
class CommandPermission:
    """One permission overwrite of a guild command."""

    id: int
    type: PermissionTarget
    permission: bool = True

    def to_payload(self) -> Dict[str, Any]:
        return {"id": str(self.id), "type": int(self.type), "permission": self.permission}

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "CommandPermission":
        return cls(id=int(data["id"]), type=PermissionTarget(int(data["type"])), permission=bool(data["permission"]))


# =============================================================================
# Command Handler
# =============================================================================

class Command:
    """
    Application command handler.

    Subclasses pass their declaration to __init__ and implement exec().
    Chat-input commands that offer option suggestions also implement
    autocomplete().

    Attributes:
        data: The command declaration.
        scope: Global or per-guild registration.
        guild_filter: Optional eligibility predicate for guild scope.
        permissions: Permission overwrites synced per guild.
        context: Shared bot context.
        telemetry: Reporting handle scoped to this command.
    """

    def __init__(
        self,
        context: "BotContext",
        data: CommandData,
        *,
        scope: CommandScope = CommandScope.GLOBAL,
        guilds: Optional[GuildPredicate] = None,
        permissions: Sequence[CommandPermission] = (),
    ) -> None:
        self.context = context
        self.data = data
        self.scope = scope
        self.guild_filter = guilds
        self.permissions: Tuple[CommandPermission, ...] = tuple(permissions)
        self.telemetry: Telemetry = context.telemetry.child(type(self).__name__)

    # =========================================================================
    # Identity
    # =========================================================================

    @property
    def name(self) -> str:
        return self.data.name

    @property
    def kind(self) -> CommandKind:
        return self.data.kind

    @property
    def key(self) -> Tuple[str, CommandKind]:
        return self.data.key

    @property
    def supports_autocomplete(self) -> bool:
        """Whether this command overrides autocomplete()."""
        return type(self).autocomplete is not Command.autocomplete

    # =========================================================================
    # Eligibility
    # =========================================================================

    async def is_eligible(self, guild: discord.Guild) -> bool:
        """
        Evaluate the guild eligibility predicate.

        Commands without a predicate are eligible everywhere. A predicate
        that raises counts as "not eligible" and the error is reported.
        """
        if self.guild_filter is None:
            return True
        try:
            result = self.guild_filter(guild)
            if inspect.isawaitable(result):
                result = await result
            return bool(result)
        except Exception as e:
            self.telemetry.child("is_eligible", id=guild.id).error(e)
            return False

    # =========================================================================
    # Handlers
    # =========================================================================

    async def exec(self, interaction: discord.Interaction) -> Any:
        raise NotImplementedError

    async def autocomplete(self, interaction: discord.Interaction) -> Any:
        raise AutocompleteNotSupported(self.name)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def not_owner(self, interaction: discord.Interaction) -> bool:
        """
        Reject interactions from anyone but the bot owner.

        Returns:
            True if the user is not the owner (a refusal has been sent).
        """
        if interaction.user.id == self.context.owner_id():
            return False

        await interaction.response.send_message(
            "Sorry! You dont have the necessary permission to execute this command.",
            ephemeral=True,
        )
        return True

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.kind.label}:{self.name} scope={self.scope.value}>"


# =============================================================================
# Interaction Payload Helpers
# =============================================================================

def focused_option(data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Find the option the user is typing in an autocomplete payload."""
    stack = list((data or {}).get("options") or ())
    while stack:
        item = stack.pop(0)
        if item.get("focused"):
            return item
        stack.extend(item.get("options") or ())
    return None


def command_path_and_options(data: Optional[Dict[str, Any]]) -> Tuple[Tuple[str, ...], Dict[str, Any]]:
    """
    Split an application command payload into its subcommand path and values.

    Returns:
        (("botconfig", "get"), {"key": "BotOwnerId"}) style tuples.
    """
    data = data or {}
    root = data.get("name")
    if not isinstance(root, str) or not root:
        return (), {}

    path: List[str] = [root]
    current = data.get("options") or []
    while current:
        first = current[0]
        if first.get("type") not in (OptionType.SUB_COMMAND, OptionType.SUB_COMMAND_GROUP):
            break
        path.append(first["name"])
        current = first.get("options") or []

    values = {item["name"]: item.get("value") for item in current if "name" in item}
    return tuple(path), values


__all__ = [
    "AutocompleteNotSupported",
    "Command",
    "CommandData",
    "CommandKind",
    "CommandPermission",
    "CommandScope",
    "GuildPredicate",
    "OptionType",
    "PermissionTarget",
    "command_path_and_options",
    "focused_option",
    "normalize_options",
    "option",
]
