# =============================================================================
# Profiles
# =============================================================================
# UserProfile is a record in the remote `user_profiles` collection. Its id
# matches the owning account, and only the display name ever changes.
#
# CurrentUser is what the authentication collaborator hands back for the
# signed-in user: just enough identity to scope queries and sign messages.
# =============================================================================

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class CurrentUser:
    """
    The signed-in user.

    Attributes:
        id: Account id (also the profile id and message sender_id).
        email: The user's mailbox address.
    """
    id: str
    email: str

    def __str__(self) -> str:
        return self.email


@dataclass
class UserProfile:
    """
    Display information for a mailbox user.

    Attributes:
        id: Account id. Immutable.
        email: Mailbox address. Immutable.
        display_name: Name shown as the sender of the user's messages.
        updated_at: Last time the display name changed.
    """
    id: str
    email: str
    display_name: str = ""
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.display_name:
            self.display_name = self.email

    def __str__(self) -> str:
        return f"{self.display_name} <{self.email}>"
