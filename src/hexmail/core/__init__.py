# =============================================================================
# Hexmail Core Module
# =============================================================================
# This module contains the core domain models for Hexmail. These are pure
# Python dataclasses with no external dependencies, so they can be imported
# anywhere without causing circular dependency issues.
#
# The core models represent the fundamental concepts of the mailbox:
#   - Message / NewMessageDraft: A stored message and one about to be stored
#   - Attachment: An opaque file reference on a message
#   - FolderTag / ViewScope: Where a message lives and what the user looks at
#   - UserProfile / CurrentUser: Who sent it and who is signed in
#   - Errors: The failures the mailbox core reports
# =============================================================================

from hexmail.core.errors import (
    EmptyBody,
    HexmailError,
    InvalidDomain,
    NotFound,
    RemoteFailure,
    TransitionNotAllowed,
    Unauthenticated,
)
from hexmail.core.folder import (
    DEFAULT_VIEWS,
    FolderTag,
    RealFolder,
    StarredView,
    ViewScope,
    allowed_moves,
)
from hexmail.core.message import UNKNOWN_SENDER, Attachment, Message, NewMessageDraft
from hexmail.core.profile import CurrentUser, UserProfile

__all__ = [
    "Attachment",
    "CurrentUser",
    "DEFAULT_VIEWS",
    "EmptyBody",
    "FolderTag",
    "HexmailError",
    "InvalidDomain",
    "Message",
    "NewMessageDraft",
    "NotFound",
    "RealFolder",
    "RemoteFailure",
    "StarredView",
    "TransitionNotAllowed",
    "UNKNOWN_SENDER",
    "Unauthenticated",
    "UserProfile",
    "ViewScope",
    "allowed_moves",
]
