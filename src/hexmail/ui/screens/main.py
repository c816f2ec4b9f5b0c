# =============================================================================
# Main Screen
# =============================================================================
# The primary view of Hexmail, showing:
#   - Left panel: The views (Inbox, Starred, Sent, Archive, Trash, Drafts)
#   - Center panel: Message list
#   - Bottom panel: Message preview
#
# Every mailbox call goes through the Mailbox facade. Transitions are
# optimistic: the row changes (or disappears) at once and is put back if the
# store rejects the write. Failures are shown as notifications and never
# end the app.
# =============================================================================

import asyncio
import logging
from collections.abc import Awaitable, Callable

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Footer, Header, Static

from hexmail.config import Config
from hexmail.core import FolderTag, HexmailError, Message, RealFolder, ViewScope
from hexmail.mailbox import Mailbox
from hexmail.ui.screens.compose import ComposeScreen
from hexmail.ui.screens.confirm import ConfirmScreen
from hexmail.ui.screens.profile import ProfileScreen
from hexmail.ui.widgets.message_list import MessageList
from hexmail.ui.widgets.message_preview import MessagePreview
from hexmail.ui.widgets.view_list import ViewList


logger = logging.getLogger(__name__)

SENT_VIEW = RealFolder(FolderTag.SENT)
DRAFTS_VIEW = RealFolder(FolderTag.DRAFTS)


class MainScreen(Screen):
    """
    The main mailbox screen.

    Keybindings:
        - j/k or arrows: Navigate message list
        - Enter: Open message (marks it read)
        - *: Toggle star
        - u: Mark unread
        - a: Archive
        - d: Move to Trash
        - r: Reply
        - f: Forward (or send a forward draft)
        - c: Compose
        - p: Change display name
    """

    BINDINGS = [
        Binding("j", "cursor_down", "Next", show=False),
        Binding("k", "cursor_up", "Previous", show=False),
        Binding("enter", "open_message", "Open", show=True),
        Binding("*", "toggle_star", "Star"),
        Binding("u", "mark_unread", "Unread"),
        Binding("a", "archive", "Archive"),
        Binding("d", "trash", "Trash"),
        Binding("delete", "trash", "Trash", show=False),
        Binding("r", "reply", "Reply"),
        Binding("f", "forward", "Forward"),
        Binding("c", "compose", "Compose"),
        Binding("p", "profile", "Profile", show=False),
        Binding("ctrl+r", "refresh", "Refresh"),
        Binding("tab", "focus_next_pane", "Next Pane", show=False),
        Binding("shift+tab", "focus_next_pane", "Prev Pane", show=False),
    ]

    CSS = """
    #main-container {
        height: 1fr;
    }

    #sidebar {
        width: 24;
        min-width: 20;
        max-width: 40;
        background: $surface-darken-1;
        border-right: solid $primary;
    }

    #sidebar-header {
        background: $primary;
        color: $text;
        text-align: center;
        height: 3;
        padding: 1;
    }

    #view-list {
        height: 1fr;
    }

    #content {
        width: 1fr;
    }

    #message-list {
        height: 50%;
        border-bottom: solid $primary;
    }

    #message-preview {
        height: 50%;
    }

    #status-line {
        height: 1;
        background: $surface-darken-2;
        color: $text-muted;
        padding: 0 1;
    }
    """

    def __init__(self, mailbox: Mailbox, config: Config) -> None:
        super().__init__()
        self._mailbox = mailbox
        self._config = config

    def compose(self) -> ComposeResult:
        """
        +--------------------------------------------------+
        |                    Header                         |
        +----------+---------------------------------------+
        |  Views   |          Message List                  |
        |          |----------------------------------------|
        |          |          Message Preview               |
        +----------+---------------------------------------+
        | Status                                            |
        +--------------------------------------------------+
        |                    Footer                         |
        +--------------------------------------------------+
        """
        yield Header()

        with Horizontal(id="main-container"):
            with Vertical(id="sidebar"):
                yield Static("Mailbox", id="sidebar-header")
                yield ViewList(id="view-list")

            with Vertical(id="content"):
                yield MessageList(id="message-list")
                yield MessagePreview(
                    self._config.ui.timestamp_format,
                    id="message-preview",
                    can_focus=False,
                )

        yield Static("Ready", id="status-line")
        yield Footer()

    def on_mount(self) -> None:
        views = self.query_one("#view-list", ViewList)
        views.load_views()

        scope = self._config.default_scope
        views.select_view(scope)
        self._select_view(scope)

        self.query_one("#message-list", MessageList).focus()

    def update_status(self, text: str) -> None:
        self.query_one("#status-line", Static).update(text)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @work
    async def _select_view(self, scope: ViewScope) -> None:
        """
        Load a view. A load that finishes after another view was selected
        is dropped by the mailbox, so several may be in flight.
        """
        self.update_status(f"Loading {scope.label}...")
        self.query_one("#message-preview", MessagePreview).clear()

        try:
            await self._mailbox.select_view(scope)
        except HexmailError as e:
            self.notify(f"Could not load {scope.label}: {e}", severity="error")
            self.update_status(f"{scope.label}: not loaded")
            return

        if self._mailbox.state.scope != scope:
            return
        self._render_view(reset_columns=True)

    def _render_view(self, *, reset_columns: bool = False) -> None:
        state = self._mailbox.state
        message_list = self.query_one("#message-list", MessageList)
        message_list.load_messages(
            state.messages,
            show_recipient=(state.scope == SENT_VIEW) if reset_columns else None,
        )
        self._update_counts()

    def _update_counts(self) -> None:
        state = self._mailbox.state
        self.query_one("#view-list", ViewList).update_unread_count(state.scope, state.unread_count)
        self.update_status(
            f"{state.scope.label}: {len(state)} messages ({state.unread_count} unread)"
        )

    def _redraw(self, message: Message) -> None:
        """Bring the list in line with the state after a transition step."""
        message_list = self.query_one("#message-list", MessageList)
        if message_list.row_count != len(self._mailbox.state):
            self._render_view()
            preview = self.query_one("#message-preview", MessagePreview)
            if preview.current_message is message and self._mailbox.state.get(message.id) is None:
                preview.clear()
        else:
            message_list.refresh_message(message)
            self._update_counts()

    def on_tree_node_selected(self, event: ViewList.NodeSelected) -> None:
        node = event.node
        if node.data and "scope" in node.data:
            self._select_view(node.data["scope"])

    async def on_data_table_row_selected(self, event: MessageList.RowSelected) -> None:
        await self.action_open_message()

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _selected(self) -> Message | None:
        message = self.query_one("#message-list", MessageList).get_selected_message()
        if message is None:
            self.notify("No message selected", severity="warning")
        return message

    async def _transition(
        self,
        message: Message,
        operation: Callable[..., Awaitable[bool]],
        *args,
    ) -> bool:
        """
        Run one transition, redrawing once the local change has landed and
        again when the store has answered.
        """
        task = asyncio.create_task(operation(message.id, *args))
        # Let the transition run up to its remote write
        await asyncio.sleep(0)
        self._redraw(message)

        try:
            changed = await task
        except HexmailError as e:
            self.notify(str(e), severity="error")
            changed = False

        self._redraw(message)
        return changed

    async def action_open_message(self) -> None:
        """Show the current message and mark it read."""
        message = self._selected()
        if message is None:
            return

        try:
            message, sender = await self._mailbox.open_message(message.id, mark_read=False)
        except HexmailError as e:
            self.notify(f"Could not open message: {e}", severity="error")
            return

        self.query_one("#message-preview", MessagePreview).show_message(message, sender)

        if not message.read:
            await self._transition(message, self._mailbox.mark_read)

    async def action_toggle_star(self) -> None:
        message = self._selected()
        if message is None:
            return
        if await self._transition(message, self._mailbox.toggle_starred, not message.starred):
            self.notify("Starred" if message.starred else "Unstarred")

    async def action_mark_unread(self) -> None:
        message = self._selected()
        if message is None:
            return
        if await self._transition(message, self._mailbox.mark_unread):
            self.notify("Marked as unread")

    async def action_archive(self) -> None:
        await self._move_selected(FolderTag.ARCHIVE)

    async def action_trash(self) -> None:
        message = self._selected()
        if message is None:
            return

        if not self._config.ui.confirm_delete:
            await self._move_selected(FolderTag.TRASH)
            return

        def on_answer(confirmed: bool | None) -> None:
            if confirmed:
                self._move_worker(FolderTag.TRASH)

        self.app.push_screen(ConfirmScreen(f"Move {message.subject!r} to Trash?"), on_answer)

    @work
    async def _move_worker(self, target: FolderTag) -> None:
        await self._move_selected(target)

    async def _move_selected(self, target: FolderTag) -> None:
        message = self._selected()
        if message is None:
            return

        if target not in self._mailbox.available_moves(message.id):
            self.notify(
                f"Cannot move from {message.folder.label} to {target.label}",
                severity="warning",
            )
            return

        if await self._transition(message, self._mailbox.engine.move_to_folder, target):
            self.notify(f"Moved to {target.label}: {message.subject}")

    # -------------------------------------------------------------------------
    # Composition
    # -------------------------------------------------------------------------

    def _after_compose(self, message: Message | None) -> None:
        """Reload the view if the new message belongs in it."""
        scope = self._mailbox.state.scope
        if message is not None and scope in (SENT_VIEW, DRAFTS_VIEW):
            self._select_view(scope)

    def action_compose(self) -> None:
        self.app.push_screen(ComposeScreen(self._mailbox), self._after_compose)

    async def action_reply(self) -> None:
        message = self._selected()
        if message is None:
            return

        try:
            origin, sender = await self._mailbox.open_message(message.id, mark_read=False)
        except HexmailError as e:
            self.notify(f"Could not open message: {e}", severity="error")
            return

        if sender is None:
            self.notify("Cannot reply: the sender no longer exists", severity="error")
            return

        self.app.push_screen(
            ComposeScreen(self._mailbox, reply_to=origin, reply_address=sender.email),
            self._after_compose,
        )

    async def action_forward(self) -> None:
        """Save a forward draft, or send one if the selection is a draft."""
        message = self._selected()
        if message is None:
            return

        if message.is_draft:
            draft = message
        else:
            try:
                draft = await self._mailbox.forward(message.id)
            except HexmailError as e:
                self.notify(f"Forward failed: {e}", severity="error")
                return
            self.notify("Forward draft saved to Drafts")
            self._after_compose(draft)

        self.app.push_screen(
            ComposeScreen(self._mailbox, forward_draft=draft),
            self._after_compose,
        )

    # -------------------------------------------------------------------------
    # Profile
    # -------------------------------------------------------------------------

    async def action_profile(self) -> None:
        user = self._mailbox.session.get_current_user()
        if user is None:
            self.notify("Not signed in", severity="error")
            return

        try:
            profile = await self._mailbox.resolver.resolve(user.id)
        except HexmailError as e:
            self.notify(f"Could not load profile: {e}", severity="error")
            return

        def on_name(name: str | None) -> None:
            if name:
                self._update_display_name(name)

        current = profile.display_name if profile else ""
        self.app.push_screen(ProfileScreen(user.email, current), on_name)

    @work(exclusive=True)
    async def _update_display_name(self, name: str) -> None:
        try:
            profile = await self._mailbox.update_display_name(name)
        except (HexmailError, ValueError) as e:
            self.notify(f"Could not update profile: {e}", severity="error")
            return
        self.notify(f"Display name is now {profile.display_name}")

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def action_refresh(self) -> None:
        self._select_view(self._mailbox.state.scope)

    def action_cursor_down(self) -> None:
        self.query_one("#message-list", MessageList).action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one("#message-list", MessageList).action_cursor_up()

    def action_focus_next_pane(self) -> None:
        """Move focus between the view list and the message list."""
        view_list = self.query_one("#view-list", ViewList)
        message_list = self.query_one("#message-list", MessageList)

        if self.focused == view_list:
            message_list.focus()
        else:
            view_list.focus()
