# =============================================================================
# Hexmail: Single-Domain Webmail in the Terminal
# =============================================================================
#
# Hexmail is the client side of a small webmail service: every user has an
# address in one domain, and mail only ever travels inside that domain.
#
# Features:
#   - Inbox, Sent, Archive, Trash, Drafts, and a Starred view
#   - Optimistic read/star/archive/trash with rollback on failure
#   - Reply and forward drafts with thread linkage
#   - Recipient domain policy enforced by the client and the store
#   - SQLite message store, XDG Base Directory compliant
#
# =============================================================================

__version__ = "0.1.0"
__app_name__ = "hexmail"

# Main entry point - this is what gets called by the 'hexmail' command
from hexmail.app import main

__all__ = ["main", "__version__", "__app_name__"]
