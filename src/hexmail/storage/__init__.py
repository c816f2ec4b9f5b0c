# =============================================================================
# Storage Module
# =============================================================================
# The message store the mailbox core talks to, backed by SQLite.
#
# Provides:
#   - Database initialization and migrations
#   - Query/insert/update operations over messages and user_profiles
#   - Store-side enforcement of the recipient-domain policy
#   - Async operations via aiosqlite
#
# The database is stored in the XDG data directory (~/.local/share/hexmail/).
# =============================================================================

from hexmail.storage.database import DOMAIN_POLICY_MARKER, Database
from hexmail.storage.repository import MessageQuery, Repository

__all__ = ["DOMAIN_POLICY_MARKER", "Database", "MessageQuery", "Repository"]
