# =============================================================================
# Database Connection and Schema Management
# =============================================================================
# Manages the SQLite database that stands in for the remote message store.
#
# Schema overview:
#   - messages: Every message record, with folder placement and flags
#   - user_profiles: Display names for mailbox users
#
# The recipient-domain policy is enforced here as well as in the client, by
# triggers that abort non-draft writes whose recipient falls outside the
# configured domain. The abort message starts with DOMAIN_POLICY_MARKER so
# the client can recognise the rejection and report it as InvalidDomain.
#
# Uses aiosqlite for async operations, with WAL mode for better
# concurrent performance.
# =============================================================================

import logging
from pathlib import Path

import aiosqlite

from hexmail.config import DEFAULT_DOMAIN, Config


logger = logging.getLogger(__name__)

# Current schema version - increment when making schema changes
SCHEMA_VERSION = 1

# Prefix of the trigger abort message for domain policy violations
DOMAIN_POLICY_MARKER = "recipient_domain_policy"


class Database:
    """
    Manages the SQLite database connection and schema.

    This class handles:
        - Opening a single shared connection
        - Schema creation and migrations
        - Installing the recipient-domain triggers for the configured domain
        - Enabling SQLite optimizations (WAL mode, foreign keys)

    Usage:
        >>> db = Database(Path("hexmail.db"), domain="@hexmail.com")
        >>> await db.connect()
        >>> async with db.conn.execute("SELECT ...") as cursor:
        ...     rows = await cursor.fetchall()
        >>> await db.close()

    Attributes:
        db_path: Path to the SQLite database file.
        domain: Recipient domain suffix enforced by the triggers.
    """

    def __init__(self, db_path: Path | None = None, *, domain: str = DEFAULT_DOMAIN) -> None:
        """
        Initialize the database manager.

        Args:
            db_path: Path to database file. Defaults to XDG data location.
            domain: Recipient domain suffix (e.g., "@hexmail.com").
        """
        self.db_path = db_path or Config.default_database_path()
        self.domain = domain
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """
        Open the database connection and ensure schema is up to date.

        Creates the database file if it doesn't exist.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.debug(f"Opening database {self.db_path}")
        self._connection = await aiosqlite.connect(self.db_path)

        # Thread origins are foreign keys; SQLite leaves enforcement off by default
        await self._connection.execute("PRAGMA foreign_keys = ON")
        await self._connection.execute("PRAGMA journal_mode = WAL")

        await self._init_schema()
        await self._install_domain_policy()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    @property
    def conn(self) -> aiosqlite.Connection:
        """
        Get the active database connection.

        Raises:
            RuntimeError: If not connected.
        """
        if self._connection is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    async def _init_schema(self) -> None:
        """
        Initialize the database schema.

        Creates tables if they don't exist, runs migrations if needed.
        """
        try:
            async with self.conn.execute(
                "SELECT version FROM schema_version"
            ) as cursor:
                row = await cursor.fetchone()
                current_version = row[0] if row else 0
        except aiosqlite.OperationalError:
            # Table doesn't exist, this is a fresh database
            current_version = 0

        if current_version < SCHEMA_VERSION:
            await self._create_schema()
            await self._run_migrations(current_version)

    async def _create_schema(self) -> None:
        """Create the database schema from scratch."""
        schema = """
        -- Schema version tracking
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY
        );

        -- Display profiles, one per account
        CREATE TABLE IF NOT EXISTS user_profiles (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            display_name TEXT NOT NULL DEFAULT '',
            updated_at TEXT
        );

        -- Messages
        CREATE TABLE IF NOT EXISTS messages (
            id TEXT PRIMARY KEY,
            sender_id TEXT NOT NULL,
            recipient_email TEXT NOT NULL DEFAULT '',
            subject TEXT NOT NULL DEFAULT '',
            content TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL,
            read INTEGER NOT NULL DEFAULT 0,
            starred INTEGER NOT NULL DEFAULT 0,
            folder TEXT NOT NULL DEFAULT 'inbox'
                CHECK(folder IN ('inbox', 'sent', 'drafts', 'archive', 'trash')),
            parent_id TEXT REFERENCES messages(id),
            forward_id TEXT REFERENCES messages(id),
            is_draft INTEGER NOT NULL DEFAULT 0,
            labels TEXT NOT NULL DEFAULT '[]',       -- JSON array
            attachments TEXT NOT NULL DEFAULT '[]'   -- JSON array of {name, url}
        );

        -- Indexes for the folder-scoped queries
        CREATE INDEX IF NOT EXISTS idx_messages_recipient
            ON messages(recipient_email, folder);
        CREATE INDEX IF NOT EXISTS idx_messages_sender ON messages(sender_id);
        CREATE INDEX IF NOT EXISTS idx_messages_created ON messages(created_at DESC);
        """

        await self.conn.executescript(schema)

        await self.conn.execute(
            "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,)
        )
        await self.conn.commit()

    async def _run_migrations(self, from_version: int) -> None:
        """
        Run schema migrations from the given version to current.

        Args:
            from_version: Version to migrate from.
        """
        # Version 1 is the first schema; nothing to migrate yet
        pass

    async def _install_domain_policy(self) -> None:
        """
        (Re)create the triggers enforcing the recipient domain.

        Recreated on every connect so a domain change in the config takes
        effect. Drafts are exempt: a forward draft has no recipient yet.
        """
        suffix = self.domain.replace("'", "''")
        condition = (
            f"NEW.is_draft = 0 AND "
            f"substr(NEW.recipient_email, -{len(self.domain)}) IS NOT '{suffix}'"
        )
        abort = (
            f"SELECT RAISE(ABORT, '{DOMAIN_POLICY_MARKER}: "
            f"recipient_email must end with {suffix}');"
        )

        await self.conn.executescript(f"""
        DROP TRIGGER IF EXISTS messages_domain_insert;
        DROP TRIGGER IF EXISTS messages_domain_update;

        CREATE TRIGGER messages_domain_insert BEFORE INSERT ON messages
        WHEN {condition}
        BEGIN {abort} END;

        CREATE TRIGGER messages_domain_update
        BEFORE UPDATE OF recipient_email, is_draft ON messages
        WHEN {condition}
        BEGIN {abort} END;
        """)
        await self.conn.commit()
