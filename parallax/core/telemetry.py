"""
Parallax Discord Bot - Telemetry
================================

Scoped log/error reporting for managers, handlers and reconciliation.

DESIGN:
    A Telemetry handle carries its scope as an immutable tuple of names
    ("InteractionDispatcher", "dispatch", ...). Child handles copy the
    tuple and extend it, so no handle keeps a reference to its parent.

    Reporting is fire-and-forget: log() and error() write through the
    tree logger and schedule webhook delivery without awaiting it.
"""

import traceback
from typing import Any, Optional, Tuple

from parallax.core.logger import logger, TreeLogger
from parallax.utils.error_handler import ErrorHandler


# =============================================================================
# Telemetry Handle
# =============================================================================

class Telemetry:
    """
    Scoped reporting handle.

    Attributes:
        scope: Scope names from outermost to innermost.
        broadcast: Whether log() also notifies the webhook by default.
    """

    def __init__(
        self,
        *scope: str,
        broadcast: bool = False,
        sink: Optional[TreeLogger] = None,
    ) -> None:
        self.scope: Tuple[str, ...] = tuple(scope) or ("Parallax",)
        self.broadcast = broadcast
        self._sink = sink if sink is not None else logger

    # =========================================================================
    # Scope
    # =========================================================================

    @property
    def identifier(self) -> str:
        """Innermost scope name."""
        return self.scope[-1]

    @property
    def origin(self) -> str:
        """Enclosing scopes joined with "::"."""
        return "::".join(self.scope[:-1])

    @property
    def path(self) -> str:
        """Full scope joined with "::"."""
        return "::".join(self.scope)

    def child(
        self,
        name: str,
        id: Optional[Any] = None,
        broadcast: Optional[bool] = None,
    ) -> "Telemetry":
        """
        Create a handle for a nested scope.

        Args:
            name: Name of the nested scope (class, operation, ...).
            id: Optional instance id rendered as "name(id)".
            broadcast: Override the inherited broadcast default.

        Returns:
            A new, independent Telemetry handle.
        """
        label = f"{name}({id})" if id is not None else name
        return Telemetry(
            *self.scope,
            label,
            broadcast=self.broadcast if broadcast is None else broadcast,
            sink=self._sink,
        )

    # =========================================================================
    # Reporting
    # =========================================================================

    def log(self, message: Any, broadcast: Optional[bool] = None) -> "Telemetry":
        """
        Report an informational message.

        Args:
            message: Value to report, rendered with str().
            broadcast: Also deliver to the webhook; defaults to the handle's setting.
        """
        text = str(message)
        self._sink.info(f"[{self.path}] {text}")
        if self.broadcast if broadcast is None else broadcast:
            self._sink.notify(self.identifier, [("Origin", self.origin or "-"), ("Message", text)])
        return self

    def error(self, value: Any) -> "Telemetry":
        """
        Report a failure.

        Args:
            value: Exception or message describing the failure.
        """
        if isinstance(value, BaseException):
            category = ErrorHandler.categorize_error(value)
            self._sink.error(f"[{self.path}] Failed", [
                ("Origin", self.origin or "-"),
                ("Category", category),
                ("Error Type", type(value).__name__),
                ("Error", str(value)[:500]),
            ])
            self._sink.debug("".join(
                traceback.format_exception(type(value), value, value.__traceback__)
            ))
        else:
            self._sink.error(f"[{self.path}] Failed", [
                ("Origin", self.origin or "-"),
                ("Error", str(value)[:500]),
            ])
        return self

    def __repr__(self) -> str:
        return f"<Telemetry {self.path}>"


__all__ = ["Telemetry"]
