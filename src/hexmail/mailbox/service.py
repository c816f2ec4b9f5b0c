# =============================================================================
# Mailbox
# =============================================================================
# Wires the mailbox components together around one MailboxState and gives
# the UI a single object to call:
#
#   select_view ──> MessageStore.load ──> ProfileResolver.resolve_many
#   open_message ─> MessageStore.open ──> FolderTransitionEngine.mark_read
#   star/archive/trash/unread ─────────> FolderTransitionEngine
#   send/reply/forward ────────────────> ThreadComposer
#
# The Mailbox owns the Database connection when built with connect().
# =============================================================================

import logging

from hexmail.auth import Session
from hexmail.config import DEFAULT_DOMAIN, Config
from hexmail.core import EmptyBody, FolderTag, Message, NotFound, UserProfile, ViewScope
from hexmail.mailbox.address import AddressValidator
from hexmail.mailbox.composer import DEFAULT_TIMESTAMP_FORMAT, ThreadComposer
from hexmail.mailbox.profiles import ProfileResolver
from hexmail.mailbox.state import MailboxState
from hexmail.mailbox.store import MessageStore
from hexmail.mailbox.transitions import FolderTransitionEngine
from hexmail.storage.database import Database
from hexmail.storage.repository import Repository


logger = logging.getLogger(__name__)


class Mailbox:
    """
    The mailbox of the signed-in user.

    Usage:
        >>> mailbox = await Mailbox.connect(config, session)
        >>> await mailbox.select_view(ViewScope.parse("inbox"))
        >>> message, sender = await mailbox.open_message(mailbox.state.messages[0].id)
        >>> await mailbox.archive(message.id)
        >>> await mailbox.close()

    Attributes:
        state: State of the active view.
        validator, resolver, store, engine, composer: The components.
    """

    def __init__(
        self,
        repo: Repository,
        session: Session,
        *,
        domain: str = DEFAULT_DOMAIN,
        timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
        database: Database | None = None,
    ) -> None:
        self.repo = repo
        self.session = session
        self.state = MailboxState()

        self.validator = AddressValidator(domain)
        self.resolver = ProfileResolver(repo, session)
        self.store = MessageStore(repo, self.resolver, session)
        self.engine = FolderTransitionEngine(repo, session, self.state)
        self.composer = ThreadComposer(
            repo, session, self.validator, timestamp_format=timestamp_format
        )

        self._database = database

    @classmethod
    async def connect(cls, config: Config, session: Session) -> "Mailbox":
        """
        Open the configured database and build a Mailbox on top of it.
        """
        database = Database(config.database_path(), domain=config.general.domain)
        await database.connect()
        return cls(
            Repository(database),
            session,
            domain=config.general.domain,
            timestamp_format=config.ui.timestamp_format,
            database=database,
        )

    async def close(self) -> None:
        if self._database is not None:
            await self._database.close()
            self._database = None

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    async def select_view(self, scope: ViewScope) -> list[Message]:
        """Switch to `scope` and load it. Returns the messages shown."""
        await self.store.load(self.state, scope)
        return self.state.messages

    async def refresh(self) -> list[Message]:
        """Reload the active view."""
        return await self.select_view(self.state.scope)

    async def open_message(
        self,
        message_id: str,
        *,
        mark_read: bool = True,
    ) -> tuple[Message, UserProfile | None]:
        """
        Open a message for reading.

        The first open of an unread message marks it read: optimistically
        through the engine when it is in the active view, otherwise with a
        direct write. Pass mark_read=False to display first and mark
        separately.
        """
        message, sender = await self.store.open(self.state, message_id)
        if mark_read and not message.read:
            if self.state.get(message_id) is not None:
                await self.engine.mark_read(message_id)
            else:
                await self.repo.update_message(message_id, read=True)
                message.read = True
        return message, sender

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    async def mark_read(self, message_id: str) -> bool:
        return await self.engine.mark_read(message_id)

    async def mark_unread(self, message_id: str) -> bool:
        return await self.engine.mark_unread(message_id)

    async def toggle_starred(self, message_id: str, value: bool | None = None) -> bool:
        """
        Set the star on a message. With no value, flips the current one.
        """
        if value is None:
            message = self.state.get(message_id)
            if message is None:
                raise NotFound(f"Message {message_id} is not in {self.state.scope.label}")
            value = not message.starred
        return await self.engine.toggle_starred(message_id, value)

    async def archive(self, message_id: str) -> bool:
        return await self.engine.move_to_folder(message_id, FolderTag.ARCHIVE)

    async def trash(self, message_id: str) -> bool:
        return await self.engine.move_to_folder(message_id, FolderTag.TRASH)

    def available_moves(self, message_id: str) -> frozenset[FolderTag]:
        return self.engine.available_moves(message_id)

    # -------------------------------------------------------------------------
    # Composition
    # -------------------------------------------------------------------------

    async def send(self, recipient: str, subject: str, body: str) -> Message:
        """Compose and send a new message."""
        return await self.composer.submit(self.composer.compose(recipient, subject, body))

    async def reply(self, message_id: str, body: str) -> Message:
        """
        Reply to a message with `body`.

        Raises:
            EmptyBody: If `body` is blank, before the origin is fetched.
        """
        if not body.strip():
            raise EmptyBody()
        origin, sender = await self.store.open(self.state, message_id)
        return await self.composer.submit(self.composer.reply(origin, sender, body))

    async def forward(self, message_id: str) -> Message:
        """Save a forward draft of a message. Returns the draft."""
        origin, sender = await self.store.open(self.state, message_id)
        return await self.composer.submit(self.composer.forward(origin, sender))

    async def send_forward(
        self,
        draft_id: str,
        recipient: str,
        content: str | None = None,
    ) -> Message:
        """Send a saved forward draft to `recipient`."""
        draft, _ = await self.store.open(self.state, draft_id)
        return await self.composer.send_forward(draft, recipient, content)

    async def update_display_name(self, display_name: str) -> UserProfile:
        return await self.resolver.update_display_name(display_name, cache=self.state.profiles)
