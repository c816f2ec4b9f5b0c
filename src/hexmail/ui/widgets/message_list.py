# =============================================================================
# Message List Widget
# =============================================================================
# A table of the messages in the active view.
#
# Features:
#   - Columns: Read status, Star, From (To in Sent), Subject, Date
#   - Unread messages in bold
#   - Labels and an attachment marker next to the subject
#   - Rows keyed by message id, so the cursor survives a redraw
# =============================================================================

from datetime import datetime
from typing import TYPE_CHECKING

from textual.widgets import DataTable
from textual.widgets.data_table import RowKey

from hexmail.ui.widgets.message_preview import escape_markup as escape

if TYPE_CHECKING:
    from hexmail.core import Message


class MessageList(DataTable):
    """
    A table widget displaying the active view's messages.

    Usage:
        >>> message_list = MessageList()
        >>> message_list.load_messages(mailbox.state.messages)
    """

    # Column configuration
    COLUMNS = [
        ("", 2),          # Read/unread indicator
        ("★", 2),         # Star indicator
        ("From", 25),     # Sender, or recipient in Sent
        ("Subject", 0),   # Subject (flexible width)
        ("Date", 12),     # Date
    ]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._messages: dict[RowKey, "Message"] = {}
        self._show_recipient = False

        self.cursor_type = "row"
        self.zebra_stripes = True

    def on_mount(self) -> None:
        """Set up columns when widget is mounted."""
        for label, width in self.COLUMNS:
            if width > 0:
                self.add_column(label, width=width, key=label or "read")
            else:
                self.add_column(label, key=label)

    def load_messages(self, messages: list["Message"], *, show_recipient: bool | None = None) -> None:
        """
        Show `messages`, keeping the cursor near where it was.

        Args:
            messages: Messages to display, in order.
            show_recipient: Show the recipient instead of the sender (Sent).
                            None keeps the current setting.
        """
        if show_recipient is not None:
            self._show_recipient = show_recipient

        cursor_row = self.cursor_row
        self.clear()
        self._messages.clear()

        for message in messages:
            row_key = self.add_row(*self._cells(message), key=message.id)
            self._messages[row_key] = message

        if self._messages:
            self.move_cursor(row=min(cursor_row, len(self._messages) - 1))

    def _cells(self, message: "Message") -> tuple[str, str, str, str, str]:
        read_indicator = " " if message.read else "●"
        star_indicator = "[yellow]★[/]" if message.starred else " "

        who = message.recipient_email if self._show_recipient else message.sender_name
        who = who or "(no recipient)"
        if len(who) > 25:
            who = who[:22] + "..."
        who = escape(who)

        subject = escape(message.subject or "(no subject)")
        if message.labels:
            subject += " " + " ".join(f"[reverse]{escape(label)}[/]" for label in sorted(message.labels))
        if message.has_attachments:
            subject += " 📎"

        # Bold for unread
        if not message.read:
            who = f"[bold]{who}[/]"
            subject = f"[bold]{subject}[/]"

        return read_indicator, star_indicator, who, subject, self._format_date(message.created_at)

    def _format_date(self, dt: datetime | None) -> str:
        """
        Format a date for display in local time.

        Shows:
            - Time if today
            - Day name if this week
            - Date otherwise
        """
        if not dt:
            return ""

        now = datetime.now()

        # Dates are stored in UTC
        dt_local = dt.astimezone().replace(tzinfo=None) if dt.tzinfo else dt

        if dt_local.date() == now.date():
            return dt_local.strftime("%H:%M")
        elif (now.date() - dt_local.date()).days < 7:
            return dt_local.strftime("%a")
        else:
            return dt_local.strftime("%b %d")

    def get_selected_message(self) -> "Message | None":
        """
        Get the message under the cursor.

        Returns:
            Selected Message or None.
        """
        if not self._messages:
            return None
        try:
            row_key = list(self._messages.keys())[self.cursor_row]
        except IndexError:
            return None
        return self._messages.get(row_key)

    def refresh_message(self, message: "Message") -> None:
        """
        Redraw one row after its read or starred flag changed.
        """
        row_key = RowKey(message.id)
        if row_key not in self._messages:
            return

        self._messages[row_key] = message
        for (label, _), value in zip(self.COLUMNS, self._cells(message)):
            self.update_cell(row_key, label or "read", value)
