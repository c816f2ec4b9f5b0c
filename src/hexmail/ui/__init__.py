# =============================================================================
# UI Module
# =============================================================================
# Textual-based user interface for Hexmail.
#
# Structure:
#   - screens/: Full-screen views and modal dialogs
#   - widgets/: The view list, message list, and preview
#
# Styles are inline CSS on each screen and widget.
# =============================================================================

from hexmail.ui.screens.compose import ComposeScreen
from hexmail.ui.screens.main import MainScreen
from hexmail.ui.widgets.message_list import MessageList
from hexmail.ui.widgets.message_preview import MessagePreview
from hexmail.ui.widgets.view_list import ViewList

__all__ = [
    "ComposeScreen",
    "MainScreen",
    "MessageList",
    "MessagePreview",
    "ViewList",
]
