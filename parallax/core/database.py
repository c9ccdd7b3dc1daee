"""
Parallax Discord Bot - Database Module
======================================

sqlite-backed key/value and document storage.

DESIGN:
    Three small tables cover everything the bot persists:
    - bot_config: global settings keyed by name (owner, control server, ...)
    - guild_config: one JSON document per (guild, section)
    - member_data: one JSON document per (guild, member)

    Reads go through an in-memory cache that writes keep current, so
    hot paths (eligibility predicates, gateway clicks) do not hit disk.
"""

import json
import sqlite3
import threading
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from parallax.core.logger import logger


# =============================================================================
# Constants
# =============================================================================

BOT_CONFIG_KEYS = (
    "BotOwnerId",
    "ControlServerId",
    "TelemetryWebhookURL",
    "GuildMaxRoles",
)
"""Known bot_config keys, offered by /botconfig autocomplete."""

SCHEMA = """
CREATE TABLE IF NOT EXISTS bot_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS guild_config (
    guild_id INTEGER NOT NULL,
    section TEXT NOT NULL,
    data TEXT NOT NULL,
    PRIMARY KEY (guild_id, section)
);
CREATE TABLE IF NOT EXISTS member_data (
    guild_id INTEGER NOT NULL,
    member_id INTEGER NOT NULL,
    data TEXT NOT NULL,
    PRIMARY KEY (guild_id, member_id)
);
"""


# =============================================================================
# Helper Functions
# =============================================================================

def _safe_json_loads(value: Optional[str]) -> Dict[str, Any]:
    """Safely parse a JSON document, returning {} on error."""
    if not value:
        return {}
    try:
        data = json.loads(value)
    except (json.JSONDecodeError, ValueError):
        logger.warning(f"Corrupted JSON in database: {value[:50]}")
        return {}
    return data if isinstance(data, dict) else {}


# =============================================================================
# Records
# =============================================================================

@dataclass
class GatewayConfig:
    """Membership gateway settings of one guild."""

    enabled: bool = False
    channel: Optional[int] = None
    role: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GatewayConfig":
        return cls(
            enabled=bool(data.get("enabled", False)),
            channel=int(data["channel"]) if data.get("channel") else None,
            role=int(data["role"]) if data.get("role") else None,
        )


# =============================================================================
# Database Class
# =============================================================================

class Database:
    """
    Thread-safe sqlite storage with cached reads.

    Attributes:
        path: Database file location.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._db_lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None

        self._bot_config_cache: Dict[str, str] = {}
        self._guild_config_cache: Dict[Tuple[int, str], Dict[str, Any]] = {}
        self._member_data_cache: Dict[Tuple[int, int], Dict[str, Any]] = {}

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._connect()
        with self._db_lock:
            self._conn.executescript(SCHEMA)
            self._conn.commit()

    # =========================================================================
    # Connection Management
    # =========================================================================

    def _connect(self) -> None:
        """Establish database connection with WAL mode."""
        try:
            self._conn = sqlite3.connect(
                str(self.path),
                check_same_thread=False,
                timeout=30.0,
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA synchronous=NORMAL")
            self._conn.execute("PRAGMA busy_timeout=5000")
            self._conn.row_factory = sqlite3.Row
        except sqlite3.Error as e:
            logger.error("Database Connection Failed", [("Path", str(self.path)), ("Error", str(e))])
            raise

    def execute(self, query: str, params: Tuple = (), commit: bool = True) -> sqlite3.Cursor:
        """Execute a query with thread safety."""
        with self._db_lock:
            if self._conn is None:
                self._connect()
            cursor = self._conn.cursor()
            cursor.execute(query, params)
            if commit:
                self._conn.commit()
            return cursor

    def fetchone(self, query: str, params: Tuple = ()) -> Optional[sqlite3.Row]:
        """Fetch a single row."""
        return self.execute(query, params, commit=False).fetchone()

    def close(self) -> None:
        """Close the database connection."""
        with self._db_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # =========================================================================
    # Bot Config
    # =========================================================================

    def bot_config(self, key: str, value: Optional[str] = None) -> Optional[str]:
        """
        Get or upsert a global bot setting.

        Args:
            key: Setting name, see BOT_CONFIG_KEYS.
            value: New value; omitted to read.

        Returns:
            The current value, None when unset.
        """
        if value is not None:
            self.execute(
                "INSERT INTO bot_config (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, str(value)),
            )
            self._bot_config_cache[key] = str(value)
        elif key not in self._bot_config_cache:
            row = self.fetchone("SELECT value FROM bot_config WHERE key = ?", (key,))
            if row is not None:
                self._bot_config_cache[key] = row["value"]

        return self._bot_config_cache.get(key)

    # =========================================================================
    # Guild Config
    # =========================================================================

    def guild_config(self, guild_id: int, section: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Get or merge-upsert one section of a guild's configuration.

        Args:
            guild_id: Guild ID.
            section: Section name such as "gateway".
            data: Fields to merge into the stored document; omitted to read.

        Returns:
            A copy of the stored document.
        """
        cache_key = (guild_id, section)
        if cache_key not in self._guild_config_cache:
            row = self.fetchone(
                "SELECT data FROM guild_config WHERE guild_id = ? AND section = ?",
                (guild_id, section),
            )
            self._guild_config_cache[cache_key] = _safe_json_loads(row["data"] if row else None)

        if data:
            document = {**self._guild_config_cache[cache_key], **data}
            self.execute(
                "INSERT INTO guild_config (guild_id, section, data) VALUES (?, ?, ?) "
                "ON CONFLICT(guild_id, section) DO UPDATE SET data = excluded.data",
                (guild_id, section, json.dumps(document)),
            )
            self._guild_config_cache[cache_key] = document

        return dict(self._guild_config_cache[cache_key])

    def gateway_config(self, guild_id: int, **changes: Any) -> GatewayConfig:
        """
        Get or update the membership gateway settings of a guild.

        Args:
            guild_id: Guild ID.
            **changes: enabled / channel / role values to store.
        """
        unknown = set(changes) - set(asdict(GatewayConfig()))
        if unknown:
            raise ValueError(f"Unknown gateway config fields: {', '.join(sorted(unknown))}")
        return GatewayConfig.from_dict(self.guild_config(guild_id, "gateway", changes or None))

    # =========================================================================
    # Member Data
    # =========================================================================

    def member_data(self, guild_id: int, member_id: int, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Get or merge-upsert the stored document of a guild member.

        Args:
            guild_id: Guild ID.
            member_id: Member user ID.
            data: Fields to merge; omitted to read.

        Returns:
            A copy of the stored document ({} when none).
        """
        cache_key = (guild_id, member_id)
        if cache_key not in self._member_data_cache:
            row = self.fetchone(
                "SELECT data FROM member_data WHERE guild_id = ? AND member_id = ?",
                (guild_id, member_id),
            )
            self._member_data_cache[cache_key] = _safe_json_loads(row["data"] if row else None)

        if data:
            document = {**self._member_data_cache[cache_key], **data}
            self.execute(
                "INSERT INTO member_data (guild_id, member_id, data) VALUES (?, ?, ?) "
                "ON CONFLICT(guild_id, member_id) DO UPDATE SET data = excluded.data",
                (guild_id, member_id, json.dumps(document)),
            )
            self._member_data_cache[cache_key] = document

        return dict(self._member_data_cache[cache_key])


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "BOT_CONFIG_KEYS",
    "Database",
    "GatewayConfig",
]
