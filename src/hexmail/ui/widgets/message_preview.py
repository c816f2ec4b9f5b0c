# =============================================================================
# Message Preview Widget
# =============================================================================
# Displays the message that was opened from the list.
#
# Features:
#   - Header block (From, To, Subject, Date, thread linkage)
#   - Plain text body with native scrolling
#   - Attachment names and locators
# =============================================================================

from textual.containers import ScrollableContainer
from textual.widgets import Static
from typing import TYPE_CHECKING

from hexmail.mailbox.composer import DEFAULT_TIMESTAMP_FORMAT, format_timestamp

if TYPE_CHECKING:
    from hexmail.core import Message, UserProfile


def escape_markup(text: str) -> str:
    """Escape Rich markup in user content."""
    if not text:
        return ""
    return text.replace("[", "\\[")


class MessagePreview(ScrollableContainer):
    """
    A widget for displaying an opened message.

    Usage:
        >>> preview = MessagePreview()
        >>> preview.show_message(message, sender_profile)
    """

    DEFAULT_CSS = """
    MessagePreview {
        padding: 0 1;
    }

    MessagePreview > #preview-header {
        height: auto;
        margin-bottom: 1;
    }

    MessagePreview > #preview-body {
        height: auto;
    }

    MessagePreview > #preview-attachments {
        height: auto;
        margin-top: 1;
        color: $text-muted;
    }
    """

    def __init__(self, timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT, **kwargs) -> None:
        super().__init__(**kwargs)
        self.timestamp_format = timestamp_format
        self._current_message: "Message | None" = None

    def compose(self):
        yield Static("Select a message to preview", id="preview-header")
        yield Static("", id="preview-body")
        yield Static("", id="preview-attachments")

    def show_message(self, message: "Message", sender: "UserProfile | None" = None) -> None:
        """
        Display a message in the preview.

        Args:
            message: Message to display.
            sender: The sender's profile, if it could be resolved.
        """
        self._current_message = message

        sender_line = escape_markup(message.sender_name)
        if sender is not None:
            sender_line += f" <{escape_markup(sender.email)}>"

        header_lines = [
            f"[bold]From:[/] {sender_line}",
            f"[bold]To:[/] {escape_markup(message.recipient_email) or '[dim](no recipient)[/]'}",
            f"[bold]Subject:[/] {escape_markup(message.subject)}",
            f"[bold]Date:[/] {format_timestamp(message.created_at, self.timestamp_format)}",
        ]
        if message.is_reply:
            header_lines.append("[dim]In reply to an earlier message[/]")
        if message.is_forward:
            header_lines.append("[dim]Forward draft[/]" if message.is_draft else "[dim]Forwarded[/]")
        if message.labels:
            header_lines.append(f"[bold]Labels:[/] {escape_markup(', '.join(sorted(message.labels)))}")
        header_lines.append("─" * 50)

        self.query_one("#preview-header", Static).update("\n".join(header_lines))

        body = escape_markup(message.content) if message.content else "[dim]No content[/]"
        self.query_one("#preview-body", Static).update(body)

        attachments = ""
        if message.has_attachments:
            attachments = "─" * 50 + "\n" + "\n".join(
                f"📎 {escape_markup(a.name)}  [dim]{escape_markup(a.locator)}[/]"
                for a in message.attachments
            )
        self.query_one("#preview-attachments", Static).update(attachments)

        # Scroll to top
        self.scroll_home()

    def clear(self) -> None:
        """Clear the preview."""
        self._current_message = None
        self.query_one("#preview-header", Static).update("Select a message to preview")
        self.query_one("#preview-body", Static).update("")
        self.query_one("#preview-attachments", Static).update("")

    @property
    def current_message(self) -> "Message | None":
        """Get the currently displayed message."""
        return self._current_message
