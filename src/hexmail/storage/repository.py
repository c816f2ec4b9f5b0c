# =============================================================================
# Repository - Remote Store Access Layer
# =============================================================================
# The only way the mailbox core talks to persistence. It exposes the handful
# of operations a remote message store offers:
#
#   - select messages by predicate, newest first
#   - insert a message / update fields of one message by id
#   - select profiles by a set of ids / update a display name
#
# It handles:
#   - Converting between domain models and database rows
#   - Translating store errors into the mailbox error taxonomy:
#       * any aiosqlite error      -> RemoteFailure (detail = store message)
#       * foreign key violations   -> NotFound (thread origin missing)
#       * update of a missing row  -> NotFound
#
# All methods are async for non-blocking database access. Each mutation is
# a single independent write; there are no multi-message transactions.
# =============================================================================

import json
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Iterable, Iterator

import aiosqlite

from hexmail.core import (
    Attachment,
    FolderTag,
    Message,
    NewMessageDraft,
    NotFound,
    RemoteFailure,
    UserProfile,
)

if TYPE_CHECKING:
    from hexmail.storage.database import Database


logger = logging.getLogger(__name__)

# Column order used by every message SELECT (and _row_to_message)
MESSAGE_COLUMNS = (
    "id, sender_id, recipient_email, subject, content, created_at, read, "
    "starred, folder, parent_id, forward_id, is_draft, labels, attachments"
)

PROFILE_COLUMNS = "id, email, display_name, updated_at"

# Fields update_message() accepts
UPDATABLE_FIELDS = frozenset({"read", "starred", "folder"})


@dataclass(frozen=True)
class MessageQuery:
    """
    An equality predicate over the messages collection.

    Every attribute left as None is unconstrained; set attributes are
    combined with AND.

    Example:
        >>> MessageQuery(recipient_email="me@hexmail.com", starred=True)
    """
    sender_id: str | None = None
    recipient_email: str | None = None
    folder: FolderTag | None = None
    starred: bool | None = None

    def to_sql(self) -> tuple[str, list[Any]]:
        """Returns the WHERE clause (possibly empty) and its parameters."""
        clauses: list[str] = []
        params: list[Any] = []

        if self.sender_id is not None:
            clauses.append("sender_id = ?")
            params.append(self.sender_id)
        if self.recipient_email is not None:
            clauses.append("recipient_email = ?")
            params.append(self.recipient_email)
        if self.folder is not None:
            clauses.append("folder = ?")
            params.append(self.folder.value)
        if self.starred is not None:
            clauses.append("starred = ?")
            params.append(int(self.starred))

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """
    Wrap aiosqlite errors raised inside the block into RemoteFailure.
    """
    try:
        yield
    except aiosqlite.IntegrityError as e:
        detail = str(e)
        if "FOREIGN KEY" in detail:
            raise NotFound(f"{operation}: referenced message does not exist") from e
        raise RemoteFailure(f"{operation} failed: {detail}", detail=detail) from e
    except aiosqlite.Error as e:
        raise RemoteFailure(f"{operation} failed: {e}", detail=str(e)) from e


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Repository:
    """
    Data access layer over the `messages` and `user_profiles` collections.

    Usage:
        >>> repo = Repository(database)
        >>> inbox = await repo.select_messages(
        ...     MessageQuery(recipient_email="me@hexmail.com", folder=FolderTag.INBOX)
        ... )
        >>> await repo.update_message(inbox[0].id, read=True)

    Attributes:
        db: Database instance for executing queries.
    """

    def __init__(self, db: "Database") -> None:
        """
        Initialize the repository.

        Args:
            db: Connected Database instance.
        """
        self.db = db

    # =========================================================================
    # Message Operations
    # =========================================================================

    async def select_messages(self, query: MessageQuery) -> list[Message]:
        """
        Select messages matching `query`, newest first.

        Returns:
            List of Message objects ordered by created_at descending.

        Raises:
            RemoteFailure: If the store query fails.
        """
        where, params = query.to_sql()
        sql = (
            f"SELECT {MESSAGE_COLUMNS} FROM messages{where} "
            "ORDER BY created_at DESC, rowid DESC"
        )

        with _store_errors("Loading messages"):
            async with self.db.conn.execute(sql, params) as cursor:
                rows = await cursor.fetchall()

        return [self._row_to_message(row) for row in rows]

    async def get_message(self, message_id: str) -> Message | None:
        """
        Get a single message by id.

        Returns:
            Message if found, None otherwise.
        """
        with _store_errors("Loading message"):
            async with self.db.conn.execute(
                f"SELECT {MESSAGE_COLUMNS} FROM messages WHERE id = ?",
                (message_id,)
            ) as cursor:
                row = await cursor.fetchone()

        return self._row_to_message(row) if row else None

    async def insert_message(
        self,
        draft: NewMessageDraft,
        sender_id: str,
        *,
        created_at: datetime | None = None,
        read: bool = False,
        starred: bool = False,
    ) -> Message:
        """
        Insert a new message.

        Args:
            draft: The fields composed by the client.
            sender_id: Id of the authoring user.
            created_at: Creation timestamp. Defaults to now (UTC).
            read: Initial read flag (seeding only; new mail is unread).
            starred: Initial starred flag (seeding only).

        Returns:
            The stored Message with id and created_at populated.

        Raises:
            NotFound: If parent_id / forward_id reference a missing message.
            RemoteFailure: If the store rejects the write (including the
                           recipient-domain policy).
        """
        message = Message(
            id=str(uuid.uuid4()),
            sender_id=sender_id,
            recipient_email=draft.recipient_email,
            subject=draft.subject,
            content=draft.content,
            created_at=created_at or _now(),
            read=read,
            starred=starred,
            folder=draft.folder,
            parent_id=draft.parent_id,
            forward_id=draft.forward_id,
            is_draft=draft.is_draft,
            labels=set(draft.labels),
            attachments=list(draft.attachments),
        )

        with _store_errors("Saving message"):
            await self.db.conn.execute(
                f"""INSERT INTO messages ({MESSAGE_COLUMNS})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (message.id, message.sender_id, message.recipient_email,
                 message.subject, message.content, message.created_at.isoformat(),
                 int(message.read), int(message.starred), message.folder.value,
                 message.parent_id, message.forward_id, int(message.is_draft),
                 json.dumps(sorted(message.labels)),
                 json.dumps([a.to_dict() for a in message.attachments]))
            )
            await self.db.conn.commit()

        logger.info(f"Inserted message {message.id} into {message.folder.value}")
        return message

    async def update_message(self, message_id: str, **fields: Any) -> None:
        """
        Update fields of one message.

        Only read, starred and folder can change after creation.

        Args:
            message_id: Id of the message.
            **fields: New values, e.g. ``read=True`` or ``folder=FolderTag.TRASH``.

        Raises:
            ValueError: If asked to update any other field.
            NotFound: If no message has this id.
            RemoteFailure: If the store rejects the write.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown or not fields:
            raise ValueError(f"Cannot update message fields: {sorted(unknown) or 'none'}")

        assignments = []
        params: list[Any] = []
        for name, value in fields.items():
            assignments.append(f"{name} = ?")
            if isinstance(value, FolderTag):
                params.append(value.value)
            else:
                params.append(int(bool(value)))
        params.append(message_id)

        with _store_errors("Updating message"):
            cursor = await self.db.conn.execute(
                f"UPDATE messages SET {', '.join(assignments)} WHERE id = ?",
                params
            )
            await self.db.conn.commit()

        if cursor.rowcount == 0:
            raise NotFound(f"Message {message_id} not found")

        logger.debug(f"Updated message {message_id}: {fields}")

    def _row_to_message(self, row) -> Message:
        """Convert a database row to a Message object."""
        return Message(
            id=row[0],
            sender_id=row[1],
            recipient_email=row[2] or "",
            subject=row[3] or "",
            content=row[4] or "",
            created_at=datetime.fromisoformat(row[5]) if row[5] else None,
            read=bool(row[6]),
            starred=bool(row[7]),
            folder=FolderTag(row[8]),
            parent_id=row[9],
            forward_id=row[10],
            is_draft=bool(row[11]),
            labels=set(json.loads(row[12])) if row[12] else set(),
            attachments=[Attachment.from_dict(a) for a in json.loads(row[13])] if row[13] else [],
        )

    # =========================================================================
    # Profile Operations
    # =========================================================================

    async def select_profiles(self, profile_ids: Iterable[str]) -> list[UserProfile]:
        """
        Select the profiles whose id is in `profile_ids`.

        Ids without a profile are simply missing from the result.
        """
        ids = list(dict.fromkeys(profile_ids))
        if not ids:
            return []

        placeholders = ",".join("?" * len(ids))
        with _store_errors("Loading profiles"):
            async with self.db.conn.execute(
                f"SELECT {PROFILE_COLUMNS} FROM user_profiles WHERE id IN ({placeholders})",
                ids
            ) as cursor:
                rows = await cursor.fetchall()

        return [self._row_to_profile(row) for row in rows]

    async def get_profile(self, profile_id: str) -> UserProfile | None:
        profiles = await self.select_profiles([profile_id])
        return profiles[0] if profiles else None

    async def get_profile_by_email(self, email: str) -> UserProfile | None:
        """
        Get a profile by mailbox address.

        Returns:
            UserProfile if found, None otherwise.
        """
        with _store_errors("Loading profile"):
            async with self.db.conn.execute(
                f"SELECT {PROFILE_COLUMNS} FROM user_profiles WHERE email = ?",
                (email,)
            ) as cursor:
                row = await cursor.fetchone()

        return self._row_to_profile(row) if row else None

    async def save_profile(self, profile: UserProfile) -> UserProfile:
        """
        Insert a profile (or replace the one with the same id).
        """
        with _store_errors("Saving profile"):
            await self.db.conn.execute(
                f"INSERT OR REPLACE INTO user_profiles ({PROFILE_COLUMNS}) VALUES (?, ?, ?, ?)",
                (profile.id, profile.email, profile.display_name,
                 profile.updated_at.isoformat() if profile.updated_at else None)
            )
            await self.db.conn.commit()
        return profile

    async def update_profile(self, profile_id: str, display_name: str) -> UserProfile:
        """
        Change a profile's display name and stamp updated_at.

        Returns:
            The updated profile.

        Raises:
            NotFound: If the profile does not exist.
        """
        updated_at = _now()
        with _store_errors("Updating profile"):
            cursor = await self.db.conn.execute(
                "UPDATE user_profiles SET display_name = ?, updated_at = ? WHERE id = ?",
                (display_name, updated_at.isoformat(), profile_id)
            )
            await self.db.conn.commit()

        if cursor.rowcount == 0:
            raise NotFound(f"Profile {profile_id} not found")

        profile = await self.get_profile(profile_id)
        if profile is None:
            raise NotFound(f"Profile {profile_id} not found")
        return profile

    def _row_to_profile(self, row) -> UserProfile:
        """Convert a database row to a UserProfile object."""
        return UserProfile(
            id=row[0],
            email=row[1],
            display_name=row[2] or "",
            updated_at=datetime.fromisoformat(row[3]) if row[3] else None,
        )
