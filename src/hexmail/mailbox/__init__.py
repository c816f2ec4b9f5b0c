# =============================================================================
# Mailbox Module
# =============================================================================
# The message lifecycle and folder-state machine.
#
# Components (leaf-first):
#   - AddressValidator: Gates recipients by domain
#   - ProfileResolver: Batched, per-view cached sender lookup
#   - MailboxState: Explicit state of the active view
#   - MessageStore: Loads a view from the remote store
#   - FolderTransitionEngine: Optimistic read/star/move with rollback
#   - ThreadComposer: Compose, reply, and forward drafts
#   - Mailbox: The facade the UI talks to
# =============================================================================

from hexmail.mailbox.address import AddressValidator, ValidationResult
from hexmail.mailbox.composer import ThreadComposer
from hexmail.mailbox.profiles import ProfileResolver
from hexmail.mailbox.service import Mailbox
from hexmail.mailbox.state import MailboxState
from hexmail.mailbox.store import MessageStore, query_for
from hexmail.mailbox.transitions import FolderTransitionEngine, TransitionCommand

__all__ = [
    "AddressValidator",
    "FolderTransitionEngine",
    "Mailbox",
    "MailboxState",
    "MessageStore",
    "ProfileResolver",
    "ThreadComposer",
    "TransitionCommand",
    "ValidationResult",
    "query_for",
]
