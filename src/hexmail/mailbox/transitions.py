# =============================================================================
# Folder Transition Engine
# =============================================================================
# The only code that changes a stored message after it was created. Four
# transitions, each on a single message:
#
#   - mark_read / mark_unread   read flag
#   - toggle_starred            starred overlay (independent of folder)
#   - move_to_folder            archive / trash, within the move lattice
#
# Every transition is optimistic. A TransitionCommand records the value it
# replaces, is applied to the view immediately, and is reverted if the
# remote write fails; the failure is then re-raised for the UI to report.
# Nothing is retried automatically.
#
# Ordering:
#   - Local changes happen synchronously, so they land in issuance order.
#   - Remote writes for one message go through a per-message asyncio.Lock,
#     which wakes waiters FIFO, so they reach the store in issuance order.
#   - Different messages never wait on each other.
#   - If an earlier write fails while a later command on the same field is
#     still pending, the later value stays on screen and the later command
#     takes over the earlier rollback target.
#
# Other clients' edits are not reconciled: the store is last-write-wins.
# =============================================================================

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from hexmail.auth import Session, require_user
from hexmail.core import (
    FolderTag,
    Message,
    NotFound,
    TransitionNotAllowed,
    allowed_moves,
)
from hexmail.mailbox.state import MailboxState
from hexmail.storage.repository import Repository


logger = logging.getLogger(__name__)


@dataclass
class TransitionCommand:
    """
    One optimistic change to one field of one message.

    Attributes:
        message: The view's message instance being changed.
        field: "read", "starred" or "folder".
        value: The new value.
        before: The value to restore on failure.
        generation: State generation the command was issued in.
        removed_at: Position the message had before a move took it out of
                    the view, or None if it stayed.
    """
    message: Message
    field: str
    value: Any
    before: Any
    generation: int
    removed_at: int | None = None

    def apply(self, state: MailboxState) -> None:
        setattr(self.message, self.field, self.value)
        if self.field == "folder" and not state.scope.retains(self.message):
            self.removed_at = state.remove(self.message.id)

    def revert(self, state: MailboxState) -> None:
        setattr(self.message, self.field, self.before)
        if self.removed_at is not None and state.is_current(self.generation):
            state.restore(self.removed_at, self.message)


class FolderTransitionEngine:
    """
    Applies read/starred/folder transitions to the active view.

    Usage:
        >>> engine = FolderTransitionEngine(repo, session, state)
        >>> await engine.toggle_starred(message_id, True)
        >>> await engine.move_to_folder(message_id, FolderTag.ARCHIVE)

    Each operation returns True if it changed something (and wrote it to
    the store), False if the message already had that value.
    """

    def __init__(self, repo: Repository, session: Session, state: MailboxState) -> None:
        self.repo = repo
        self.session = session
        self.state = state
        self._locks: dict[str, asyncio.Lock] = {}
        self._pending: dict[str, list[TransitionCommand]] = {}

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    async def mark_read(self, message_id: str) -> bool:
        """Mark a message read. Done implicitly when a message is opened."""
        return await self._transition(message_id, "read", True)

    async def mark_unread(self, message_id: str) -> bool:
        return await self._transition(message_id, "read", False)

    async def toggle_starred(self, message_id: str, value: bool) -> bool:
        """Set the starred overlay to `value`, whatever folder it is in."""
        return await self._transition(message_id, "starred", bool(value))

    async def move_to_folder(self, message_id: str, target: FolderTag | str) -> bool:
        """
        Move a message to another folder.

        If the message no longer belongs to the active view afterwards, it
        leaves the view at once and comes back if the store rejects the move.

        Raises:
            TransitionNotAllowed: If `target` is not offered for the
                                  message's current folder (e.g. anything
                                  from Trash).
        """
        target = FolderTag(target)
        require_user(self.session)
        message = self._require_message(message_id)

        if target not in allowed_moves(message.folder):
            raise TransitionNotAllowed(
                f"Cannot move a message from {message.folder.label} to {target.label}"
            )

        return await self._transition(message_id, "folder", target)

    def available_moves(self, message_id: str) -> frozenset[FolderTag]:
        """The folder moves to offer for a message in the view."""
        message = self.state.get(message_id)
        if message is None:
            return frozenset()
        return allowed_moves(message.folder)

    def is_pending(self, message_id: str) -> bool:
        """Returns True while a write for this message is unacknowledged."""
        return message_id in self._pending

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _require_message(self, message_id: str) -> Message:
        message = self.state.get(message_id)
        if message is None:
            raise NotFound(f"Message {message_id} is not in {self.state.scope.label}")
        return message

    async def _transition(self, message_id: str, field: str, value: Any) -> bool:
        require_user(self.session)
        message = self._require_message(message_id)

        before = getattr(message, field)
        if before == value:
            logger.debug(f"{message_id}: {field} already {value!r}, nothing to do")
            return False

        command = TransitionCommand(
            message=message,
            field=field,
            value=value,
            before=before,
            generation=self.state.generation,
        )
        command.apply(self.state)

        pending = self._pending.setdefault(message_id, [])
        pending.append(command)
        lock = self._locks.setdefault(message_id, asyncio.Lock())

        try:
            async with lock:
                await self.repo.update_message(message_id, **{field: value})
        except BaseException as e:
            # Includes cancellation: the write never completed
            self._rollback(command, pending)
            logger.warning(f"{message_id}: {field} -> {value!r} failed, rolled back: {e!r}")
            raise
        finally:
            pending.remove(command)
            if not pending:
                del self._pending[message_id]
                del self._locks[message_id]

        logger.info(f"{message_id}: {field} -> {_display(value)}")
        return True

    def _rollback(self, command: TransitionCommand, pending: list[TransitionCommand]) -> None:
        position = pending.index(command)
        for later in pending[position + 1:]:
            if later.field == command.field:
                # The later value is what the user asked for last; keep it
                later.before = command.before
                return
        command.revert(self.state)


def _display(value: Any) -> str:
    return value.value if isinstance(value, FolderTag) else repr(value)
