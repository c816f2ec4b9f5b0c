# =============================================================================
# Compose Screen
# =============================================================================
# Screen for writing new messages, replies, and sending forward drafts.
#
# Modes:
#   - new:     To, Subject and Body are all editable
#   - reply:   To and Subject are fixed by the origin; only the Body is typed
#   - forward: Subject is fixed by the draft; To and the quoted Body are
#              editable
#
# The screen is dismissed with the stored Message, or None if cancelled.
# =============================================================================

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Input, Static, TextArea

from hexmail.core import HexmailError, Message
from hexmail.mailbox import Mailbox
from hexmail.mailbox.composer import REPLY_PREFIX


class ComposeScreen(Screen[Message | None]):
    """
    Screen for composing messages.

    Keybindings:
        - Ctrl+S: Send
        - Escape: Cancel
    """

    BINDINGS = [
        Binding("ctrl+s", "send", "Send", priority=True),
        Binding("escape", "cancel", "Cancel"),
    ]

    CSS = """
    #compose-container {
        padding: 1;
    }

    #compose-headers {
        height: auto;
        margin-bottom: 1;
    }

    .compose-field {
        height: 3;
        margin-bottom: 0;
    }

    .field-label {
        width: 10;
        padding: 1 1 0 0;
        text-align: right;
    }

    .compose-field Input {
        width: 1fr;
    }

    #body-editor {
        height: 1fr;
        min-height: 10;
        border: tall $primary;
    }

    #compose-actions {
        height: auto;
        margin-top: 1;
        align: center middle;
    }

    #compose-actions Button {
        margin: 0 1;
    }

    #status-display {
        height: 1;
        margin-top: 1;
        color: $text-muted;
        text-align: center;
    }
    """

    def __init__(
        self,
        mailbox: Mailbox,
        *,
        reply_to: Message | None = None,
        reply_address: str = "",
        forward_draft: Message | None = None,
    ) -> None:
        """
        Initialize the compose screen.

        Args:
            mailbox: Mailbox to send through.
            reply_to: Message being replied to (reply mode).
            reply_address: The origin sender's address, shown in To.
            forward_draft: Saved forward draft to send (forward mode).
        """
        super().__init__()
        self._mailbox = mailbox
        self._reply_to = reply_to
        self._reply_address = reply_address
        self._forward_draft = forward_draft
        self._sending = False

    @property
    def mode(self) -> str:
        if self._reply_to is not None:
            return "reply"
        if self._forward_draft is not None:
            return "forward"
        return "new"

    def compose(self) -> ComposeResult:
        """
        Layout:
        ┌─────────────────────────────────────────────────┐
        │                    Header                        │
        ├─────────────────────────────────────────────────┤
        │ To:      [                                    ] │
        │ Subject: [                                    ] │
        ├─────────────────────────────────────────────────┤
        │              [Text Editor Area]                  │
        ├─────────────────────────────────────────────────┤
        │ [Send]  [Cancel]                                │
        └─────────────────────────────────────────────────┘
        """
        to_value, subject_value, body_value = "", "", ""
        if self._reply_to is not None:
            to_value = self._reply_address
            subject_value = REPLY_PREFIX + self._reply_to.subject
        elif self._forward_draft is not None:
            subject_value = self._forward_draft.subject
            body_value = self._forward_draft.content

        yield Header()

        with Vertical(id="compose-container"):
            with Vertical(id="compose-headers"):
                with Horizontal(classes="compose-field"):
                    yield Static("To:", classes="field-label")
                    yield Input(
                        value=to_value,
                        id="to-input",
                        placeholder=f"someone{self._mailbox.validator.domain}",
                        disabled=self.mode == "reply",
                    )

                with Horizontal(classes="compose-field"):
                    yield Static("Subject:", classes="field-label")
                    yield Input(
                        value=subject_value,
                        id="subject-input",
                        placeholder="Subject",
                        disabled=self.mode != "new",
                    )

            yield TextArea(body_value, id="body-editor")

            yield Static("", id="status-display")

            with Horizontal(id="compose-actions"):
                yield Button("Send", id="send-btn", variant="primary")
                yield Button("Cancel", id="cancel-btn", variant="error")

        yield Footer()

    def on_mount(self) -> None:
        if self.mode == "reply":
            self.query_one("#body-editor", TextArea).focus()
        else:
            self.query_one("#to-input", Input).focus()

    def _update_status(self, text: str) -> None:
        self.query_one("#status-display", Static).update(text)

    def on_input_changed(self, event: Input.Changed) -> None:
        """Flag recipients outside the domain while typing."""
        if event.input.id != "to-input" or not event.value.strip():
            self._update_status("")
            return
        result = self._mailbox.validator.validate(event.value.strip())
        self._update_status("" if result else str(result.error))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            self.action_send()
        elif event.button.id == "cancel-btn":
            self.action_cancel()

    def action_send(self) -> None:
        if self._sending:
            return

        recipient = self.query_one("#to-input", Input).value.strip()
        if self.mode != "reply" and not recipient:
            self.notify("Please enter a recipient", severity="error")
            return

        self._do_send(recipient)

    @work(exclusive=True)
    async def _do_send(self, recipient: str) -> None:
        """Background worker to store the message."""
        self._sending = True
        send_btn = self.query_one("#send-btn", Button)
        send_btn.disabled = True
        self._update_status("Sending...")

        subject = self.query_one("#subject-input", Input).value
        body = self.query_one("#body-editor", TextArea).text

        try:
            if self._reply_to is not None:
                message = await self._mailbox.reply(self._reply_to.id, body)
            elif self._forward_draft is not None:
                message = await self._mailbox.send_forward(self._forward_draft.id, recipient, body)
            else:
                message = await self._mailbox.send(recipient, subject, body)
        except HexmailError as e:
            self._update_status(f"Send failed: {e}")
            self.notify(f"Failed to send: {e}", severity="error")
            return
        finally:
            self._sending = False
            send_btn.disabled = False

        self.notify(f"Sent to {message.recipient_email}", timeout=3)
        self.dismiss(message)

    def action_cancel(self) -> None:
        self.dismiss(None)
