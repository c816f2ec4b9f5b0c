# =============================================================================
# Mailbox State
# =============================================================================
# The client-side state of the active view, held in one explicit object that
# every mailbox component receives instead of reaching for globals:
#
#   - scope:    which view is showing (a folder, or the Starred view)
#   - messages: the loaded messages for that view, newest first
#   - profiles: sender profiles resolved while this view was loaded
#
# Its lifetime is tied to the view. Switching views calls reset(), which
# throws the old messages and profile cache away (no merging) and bumps the
# load generation so responses still in flight for the old view can be
# recognised and dropped when they arrive.
# =============================================================================

import logging
from dataclasses import dataclass, field

from hexmail.core import FolderTag, Message, RealFolder, UserProfile, ViewScope


logger = logging.getLogger(__name__)


@dataclass
class MailboxState:
    """
    State of the active mailbox view.

    Attributes:
        scope: The active view.
        messages: Loaded messages, ordered by created_at descending.
        profiles: Profile cache for this view load, keyed by profile id.
        generation: Incremented on every reset; tags in-flight loads.
        loaded: True once a load for the current generation was applied.
    """
    scope: ViewScope = field(default_factory=lambda: RealFolder(FolderTag.INBOX))
    messages: list[Message] = field(default_factory=list)
    profiles: dict[str, UserProfile] = field(default_factory=dict)
    generation: int = 0
    loaded: bool = False

    def reset(self, scope: ViewScope) -> int:
        """
        Switch to `scope`, discarding the loaded messages and profiles.

        Returns:
            The load token for the new view.
        """
        self.scope = scope
        self.messages = []
        self.profiles = {}
        self.loaded = False
        self.generation += 1
        return self.generation

    def is_current(self, token: int) -> bool:
        """Returns True if a load tagged with `token` is still relevant."""
        return token == self.generation

    def apply(self, token: int, messages: list[Message]) -> bool:
        """
        Install the result of a load, unless the view changed since.

        Returns:
            True if applied, False if the response was stale.
        """
        if not self.is_current(token):
            logger.debug(
                f"Discarding stale load (token {token}, current {self.generation})"
            )
            return False
        self.messages = list(messages)
        self.loaded = True
        return True

    # -------------------------------------------------------------------------
    # Lookup and local edits (used by the transition engine)
    # -------------------------------------------------------------------------

    def get(self, message_id: str) -> Message | None:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def index_of(self, message_id: str) -> int | None:
        for index, message in enumerate(self.messages):
            if message.id == message_id:
                return index
        return None

    def remove(self, message_id: str) -> int | None:
        """
        Remove a message from the view.

        Returns:
            The position it occupied, or None if it was not in the view.
        """
        index = self.index_of(message_id)
        if index is not None:
            del self.messages[index]
        return index

    def restore(self, index: int, message: Message) -> None:
        """Put a removed message back at its old position."""
        if self.get(message.id) is None:
            self.messages.insert(min(index, len(self.messages)), message)

    @property
    def unread_count(self) -> int:
        return sum(1 for m in self.messages if not m.read)

    def __len__(self) -> int:
        return len(self.messages)
