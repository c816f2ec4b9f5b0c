# =============================================================================
# Message Store
# =============================================================================
# Loads the messages for a view from the remote store into MailboxState.
#
# Query scoping per view:
#   - Sent:    messages the user authored          (sender_id == me)
#   - Starred: the user's starred mail, any folder (recipient == me, starred)
#   - other:   the user's mail in that folder      (recipient == me, folder)
#
# Every load resets the state first, so nothing from the previous view is
# merged in. Loads are tagged with the state's generation; if the user
# switches views while a query is in flight, the late response is dropped
# instead of overwriting the new view.
#
# Sender names come from one batched profile lookup per load. Unknown
# senders show as "Unknown User" rather than failing the load.
# =============================================================================

import logging

from hexmail.auth import Session, require_user
from hexmail.core import (
    UNKNOWN_SENDER,
    CurrentUser,
    FolderTag,
    Message,
    NotFound,
    RealFolder,
    RemoteFailure,
    StarredView,
    UserProfile,
    ViewScope,
)
from hexmail.mailbox.profiles import ProfileResolver
from hexmail.mailbox.state import MailboxState
from hexmail.storage.repository import MessageQuery, Repository


logger = logging.getLogger(__name__)


def query_for(scope: ViewScope, user: CurrentUser) -> MessageQuery:
    """
    Build the store predicate for a view.

    Example:
        >>> query_for(StarredView(), CurrentUser("u1", "me@hexmail.com"))
        MessageQuery(sender_id=None, recipient_email='me@hexmail.com', folder=None, starred=True)
    """
    if isinstance(scope, StarredView):
        return MessageQuery(recipient_email=user.email, starred=True)
    if isinstance(scope, RealFolder):
        if scope.tag is FolderTag.SENT:
            return MessageQuery(sender_id=user.id)
        return MessageQuery(recipient_email=user.email, folder=scope.tag)
    raise TypeError(f"Unsupported view scope: {scope!r}")


class MessageStore:
    """
    Folder-scoped loader for the active view.

    Usage:
        >>> store = MessageStore(repo, resolver, session)
        >>> messages = await store.load(state, RealFolder(FolderTag.INBOX))
    """

    def __init__(
        self,
        repo: Repository,
        resolver: ProfileResolver,
        session: Session,
    ) -> None:
        self.repo = repo
        self.resolver = resolver
        self.session = session

    async def load(self, state: MailboxState, scope: ViewScope) -> list[Message]:
        """
        Switch `state` to `scope` and load its messages.

        Returns:
            The loaded messages, newest first. If another view was selected
            while this load was in flight, the messages are returned but
            not applied to `state`.

        Raises:
            Unauthenticated: If nobody is signed in (state left untouched).
            RemoteFailure: If the store query fails.
        """
        user = require_user(self.session)
        token = state.reset(scope)

        logger.info(f"Loading {scope.label} for {user.email}")
        messages = await self.repo.select_messages(query_for(scope, user))

        if not state.is_current(token):
            logger.debug(f"View changed while loading {scope.label}; dropping result")
            return messages

        try:
            profiles = await self.resolver.resolve_many(
                {m.sender_id for m in messages}, cache=state.profiles
            )
        except RemoteFailure as e:
            logger.warning(f"Could not resolve senders for {scope.label}: {e}")
            profiles = {}
        self._apply_sender_names(messages, profiles)

        if state.apply(token, messages):
            logger.info(f"Loaded {len(messages)} messages into {scope.label}")
        return messages

    async def open(
        self,
        state: MailboxState,
        message_id: str,
    ) -> tuple[Message, UserProfile | None]:
        """
        Fetch a message for reading, with its sender profile.

        Messages in the active view are returned as the view's own instance
        so later transitions act on what is displayed. Anything else is
        fetched from the store.

        Raises:
            Unauthenticated: If nobody is signed in.
            NotFound: If the message does not exist.
        """
        require_user(self.session)

        message = state.get(message_id)
        if message is None:
            message = await self.repo.get_message(message_id)
            if message is None:
                raise NotFound(f"Message {message_id} not found")

        sender = await self.resolver.resolve(message.sender_id, cache=state.profiles)
        message.sender_name = sender.display_name if sender else UNKNOWN_SENDER
        return message, sender

    def _apply_sender_names(
        self,
        messages: list[Message],
        profiles: dict[str, UserProfile],
    ) -> None:
        for message in messages:
            profile = profiles.get(message.sender_id)
            message.sender_name = profile.display_name if profile else UNKNOWN_SENDER
