# =============================================================================
# Message Model
# =============================================================================
# Represents a message record in the remote `messages` collection.
#
# A message carries:
#   - Envelope (sender id, recipient address, subject, created_at)
#   - Content (plain text) and opaque attachment references
#   - Placement (exactly one folder) and the read/starred overlays
#   - Thread linkage (parent_id for replies, forward_id for forward drafts)
#
# Messages are only created by compose, reply, or forward, and only mutated
# afterwards through the folder transition engine. NewMessageDraft is the
# not-yet-persisted form handed to the remote store on insert.
# =============================================================================

from dataclasses import dataclass, field
from datetime import datetime

from hexmail.core.folder import FolderTag

# Shown when a sender id cannot be resolved to a profile
UNKNOWN_SENDER = "Unknown User"


@dataclass(frozen=True)
class Attachment:
    """
    An opaque reference to a file attached to a message.

    The client never touches the file itself; it only shows the name and
    hands the locator to whoever downloads it.

    Attributes:
        name: Original filename (e.g., "report.pdf").
        locator: Where the file lives (usually a URL).
    """
    name: str
    locator: str

    def to_dict(self) -> dict[str, str]:
        """Serialized form as stored remotely (`{name, url}`)."""
        return {"name": self.name, "url": self.locator}

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> "Attachment":
        return cls(name=data.get("name", ""), locator=data.get("url", ""))


@dataclass
class Message:
    """
    A message as loaded from the remote store.

    Attributes:
        id: Opaque identifier assigned by the store.
        sender_id: Id of the authoring user's profile.
        recipient_email: The single recipient address.
        subject: Subject line.
        content: Plain text body.
        created_at: When the store accepted the message (UTC).

        read: True once the recipient has opened it.
        starred: Overlay flag, independent of folder.
        folder: Current placement.

        parent_id: Id of the message this replies to.
        forward_id: Id of the message this forward draft quotes.
        is_draft: True for forward drafts.

        labels: Free-form labels shown next to the subject.
        attachments: Ordered attachment references.

        sender_name: Display name of the sender. Not stored; filled in by
                     the message store after profile resolution.
    """

    id: str
    sender_id: str
    recipient_email: str = ""
    subject: str = ""
    content: str = ""
    created_at: datetime | None = None

    # Placement and overlays
    read: bool = False
    starred: bool = False
    folder: FolderTag = FolderTag.INBOX

    # Thread linkage
    parent_id: str | None = None
    forward_id: str | None = None
    is_draft: bool = False

    labels: set[str] = field(default_factory=set)
    attachments: list[Attachment] = field(default_factory=list)

    # Client-side only
    sender_name: str = UNKNOWN_SENDER

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None

    @property
    def is_forward(self) -> bool:
        return self.forward_id is not None

    @property
    def has_attachments(self) -> bool:
        return len(self.attachments) > 0

    @property
    def preview(self) -> str:
        """
        Returns a short single-line preview of the content (~100 chars).
        """
        text = " ".join(self.content.split())
        if len(text) > 100:
            return text[:97] + "..."
        return text

    def __str__(self) -> str:
        read_marker = " " if self.read else "*"
        star_marker = "!" if self.starred else " "
        return f"{read_marker}{star_marker} {self.sender_name}: {self.subject}"

    def __repr__(self) -> str:
        return (
            f"Message(id={self.id!r}, subject={self.subject!r}, "
            f"folder={self.folder.value}, read={self.read}, starred={self.starred})"
        )


@dataclass
class NewMessageDraft:
    """
    The fields of a message that has not been inserted yet.

    Produced by the thread composer (compose, reply, forward) and consumed
    by the remote store, which assigns the id and created_at.
    """
    recipient_email: str
    subject: str
    content: str
    folder: FolderTag = FolderTag.SENT
    parent_id: str | None = None
    forward_id: str | None = None
    is_draft: bool = False
    labels: set[str] = field(default_factory=set)
    attachments: list[Attachment] = field(default_factory=list)
