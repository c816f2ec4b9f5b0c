# =============================================================================
# Profile Screen
# =============================================================================
# A modal screen for changing the signed-in user's display name, which is
# what other users see in their From column.
#
# The new name is returned to the caller, which stores it.
# =============================================================================

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static


class ProfileScreen(ModalScreen[str | None]):
    """
    Modal screen for display name input.

    Returns:
        The entered display name, or None if cancelled.
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    CSS = """
    ProfileScreen {
        align: center middle;
    }

    #profile-dialog {
        width: 60;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #profile-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #profile-info {
        margin-bottom: 1;
        color: $text-muted;
    }

    #profile-input {
        margin-bottom: 1;
    }

    #profile-buttons {
        align: center middle;
        height: auto;
    }

    #profile-buttons Button {
        margin: 0 1;
    }
    """

    def __init__(self, email: str, display_name: str = "") -> None:
        """
        Args:
            email: The signed-in user's address.
            display_name: The current display name, pre-filled.
        """
        super().__init__()
        self._email = email
        self._display_name = display_name

    def compose(self) -> ComposeResult:
        with Vertical(id="profile-dialog"):
            yield Static("Display Name", id="profile-title")
            yield Static(f"Signed in as {self._email}", id="profile-info")
            yield Input(
                value=self._display_name,
                placeholder="Display name",
                id="profile-input",
            )
            with Horizontal(id="profile-buttons"):
                yield Button("Save", id="save-btn", variant="primary")
                yield Button("Cancel", id="cancel-btn")

    def on_mount(self) -> None:
        self.query_one("#profile-input", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save-btn":
            self.action_submit()
        elif event.button.id == "cancel-btn":
            self.action_cancel()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.action_submit()

    def action_submit(self) -> None:
        name = self.query_one("#profile-input", Input).value.strip()
        if name:
            self.dismiss(name)
        else:
            self.notify("Display name cannot be empty", severity="warning")

    def action_cancel(self) -> None:
        self.dismiss(None)
