# =============================================================================
# UI Widgets
# =============================================================================
# Building blocks used by the screens:
#   - ViewList: The sidebar of folders and the Starred view
#   - MessageList: The active view's messages
#   - MessagePreview: The opened message
# =============================================================================

from hexmail.ui.widgets.message_list import MessageList
from hexmail.ui.widgets.message_preview import MessagePreview
from hexmail.ui.widgets.view_list import ViewList

__all__ = ["MessageList", "MessagePreview", "ViewList"]
