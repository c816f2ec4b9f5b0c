# =============================================================================
# Error Taxonomy
# =============================================================================
# Every failure the mailbox core can report. All of them are recoverable at
# the UI boundary: the screen catches HexmailError and shows a notification.
#
#   - InvalidDomain:        recipient outside the mailbox domain
#   - Unauthenticated:      no active session
#   - NotFound:             referenced message or profile is absent
#   - RemoteFailure:        the remote store failed (I/O, constraint, ...)
#   - EmptyBody:            a reply with nothing in it
#   - TransitionNotAllowed: a folder move outside the move lattice
# =============================================================================


class HexmailError(Exception):
    """Base exception for all mailbox core errors."""
    pass


class InvalidDomain(HexmailError):
    """
    Raised when a recipient address is outside the mailbox domain.

    Raised identically whether the client-side validator or the remote
    store rejected the address.

    Attributes:
        address: The rejected address.
        domain: The required domain suffix (e.g., "@hexmail.com").
    """

    def __init__(self, address: str, domain: str) -> None:
        super().__init__(f"Only {domain} addresses are allowed")
        self.address = address
        self.domain = domain


class Unauthenticated(HexmailError):
    """Raised when an operation needs a signed-in user and there is none."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class NotFound(HexmailError):
    """Raised when a referenced message or profile does not exist."""
    pass


class RemoteFailure(HexmailError):
    """
    Raised when a call to the remote store fails.

    Attributes:
        detail: The store's own error text. Used to recognise store-side
                policy rejections (see AddressValidator.reclassify).
    """

    def __init__(self, message: str, detail: str = "") -> None:
        super().__init__(message)
        self.detail = detail or message


class EmptyBody(HexmailError):
    """Raised when a reply body is empty after trimming whitespace."""

    def __init__(self, message: str = "Reply cannot be empty") -> None:
        super().__init__(message)


class TransitionNotAllowed(HexmailError):
    """Raised when a folder move is not offered for the message's folder."""
    pass
