# =============================================================================
# Folders and Views
# =============================================================================
# A message lives in exactly one folder:
#   - inbox:   Mail addressed to the user
#   - sent:    Mail the user composed or replied with
#   - drafts:  Forward drafts waiting for a recipient
#   - archive: Mail the user filed away
#   - trash:   "Deleted" mail (nothing is ever hard-deleted here)
#
# "Starred" is NOT a folder. Starring is an overlay flag on a message in any
# folder, and the Starred view is a filter over the user's mail. The views
# the client can show are therefore a tagged variant:
#
#   ViewScope = RealFolder(tag) | StarredView
#
# The move lattice (which folder moves are offered from which folder) lives
# here too, so the UI and the transition engine agree on it.
# =============================================================================

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hexmail.core.message import Message


class FolderTag(Enum):
    """
    Storage placement of a message. Values are the strings stored remotely.
    """
    INBOX = "inbox"
    SENT = "sent"
    DRAFTS = "drafts"
    ARCHIVE = "archive"
    TRASH = "trash"

    @property
    def label(self) -> str:
        """Display name for the sidebar (e.g., "Inbox")."""
        return self.value.capitalize()


# Folder moves offered per current folder. Trash is terminal: emptying it
# is not something this client does.
MOVE_LATTICE: dict[FolderTag, frozenset[FolderTag]] = {
    FolderTag.INBOX: frozenset({FolderTag.ARCHIVE, FolderTag.TRASH}),
    FolderTag.SENT: frozenset({FolderTag.ARCHIVE, FolderTag.TRASH}),
    FolderTag.DRAFTS: frozenset({FolderTag.ARCHIVE, FolderTag.TRASH}),
    FolderTag.ARCHIVE: frozenset({FolderTag.TRASH}),
    FolderTag.TRASH: frozenset(),
}


def allowed_moves(current: FolderTag) -> frozenset[FolderTag]:
    """
    Returns the folders a message in `current` may be moved to.

    Example:
        >>> allowed_moves(FolderTag.ARCHIVE)
        frozenset({<FolderTag.TRASH: 'trash'>})
    """
    return MOVE_LATTICE[current]


class ViewScope(ABC):
    """
    Base class for the views the mailbox can show.

    Use `ViewScope.parse()` to build one from a name such as "inbox" or
    "starred", and `retains()` to ask whether a message still belongs to
    the view after a local change.
    """

    name: str = ""

    @property
    @abstractmethod
    def label(self) -> str:
        ...

    @abstractmethod
    def retains(self, message: "Message") -> bool:
        """Returns True if `message` still belongs to this view."""

    @staticmethod
    def parse(name: str) -> "ViewScope":
        """
        Build a scope from its name.

        Raises:
            ValueError: If the name is neither "starred" nor a folder tag.
        """
        normalized = name.strip().lower()
        if normalized == StarredView.name:
            return StarredView()
        try:
            return RealFolder(FolderTag(normalized))
        except ValueError:
            raise ValueError(f"Unknown view: {name!r}") from None


@dataclass(frozen=True)
class RealFolder(ViewScope):
    """A view showing exactly one storage folder."""

    tag: FolderTag

    @property
    def name(self) -> str:  # type: ignore[override]
        return self.tag.value

    @property
    def label(self) -> str:
        return self.tag.label

    def retains(self, message: "Message") -> bool:
        return message.folder is self.tag


@dataclass(frozen=True)
class StarredView(ViewScope):
    """The virtual view of the user's starred mail, across all folders."""

    name = "starred"

    @property
    def label(self) -> str:
        return "Starred"

    def retains(self, message: "Message") -> bool:
        return message.starred


# Sidebar order
DEFAULT_VIEWS: tuple[ViewScope, ...] = (
    RealFolder(FolderTag.INBOX),
    StarredView(),
    RealFolder(FolderTag.SENT),
    RealFolder(FolderTag.ARCHIVE),
    RealFolder(FolderTag.TRASH),
    RealFolder(FolderTag.DRAFTS),
)
