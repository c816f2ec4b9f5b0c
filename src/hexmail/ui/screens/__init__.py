# =============================================================================
# UI Screens
# =============================================================================
# Full-screen views and modals.
#
#   - MainScreen: Views, message list, and preview
#   - ComposeScreen: New messages, replies, and sending forward drafts
#   - ProfileScreen: Change the display name
#   - ConfirmScreen: Yes/no question
# =============================================================================

from hexmail.ui.screens.compose import ComposeScreen
from hexmail.ui.screens.confirm import ConfirmScreen
from hexmail.ui.screens.main import MainScreen
from hexmail.ui.screens.profile import ProfileScreen

__all__ = ["ComposeScreen", "ConfirmScreen", "MainScreen", "ProfileScreen"]
