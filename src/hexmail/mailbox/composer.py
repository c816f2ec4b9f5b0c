# =============================================================================
# Thread Composer
# =============================================================================
# Derives new message records: fresh mail, replies, and forward drafts.
#
#   compose  -> folder "sent"
#   reply    -> folder "sent",   parent_id = origin,  subject "Re: ..."
#   forward  -> folder "drafts", forward_id = origin, subject "Fwd: ...",
#               is_draft, no recipient yet, origin quoted in the body
#
# Prefixes are prepended once per hop and never de-duplicated, so replying
# to "Re: lunch" gives "Re: Re: lunch". That is the established behaviour of
# this mailbox and is kept as is.
#
# Building a draft never touches the network. Recipients are validated when
# a message is submitted (a forward draft has no recipient until then), and
# a store-side domain rejection surfaces as the same InvalidDomain.
# =============================================================================

import logging
from datetime import datetime

from hexmail.auth import Session, require_user
from hexmail.core import (
    UNKNOWN_SENDER,
    EmptyBody,
    FolderTag,
    Message,
    NewMessageDraft,
    NotFound,
    RemoteFailure,
    UserProfile,
)
from hexmail.mailbox.address import AddressValidator
from hexmail.storage.repository import Repository


logger = logging.getLogger(__name__)

REPLY_PREFIX = "Re: "
FORWARD_PREFIX = "Fwd: "
FORWARD_SEPARATOR = "---------- Forwarded message ----------"

DEFAULT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


def format_timestamp(moment: datetime | None, fmt: str = DEFAULT_TIMESTAMP_FORMAT) -> str:
    """
    Format a stored (UTC) timestamp in local time.
    """
    if moment is None:
        return "unknown date"
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime(fmt)


class ThreadComposer:
    """
    Builds and submits new messages.

    Usage:
        >>> composer = ThreadComposer(repo, session, AddressValidator())
        >>> draft = composer.reply(origin, sender_profile, "Sounds good")
        >>> sent = await composer.submit(draft)

    Attributes:
        repo: Remote store.
        session: Authentication collaborator.
        validator: Recipient domain gate.
        timestamp_format: strftime format used in forward quotes.
    """

    def __init__(
        self,
        repo: Repository,
        session: Session,
        validator: AddressValidator,
        *,
        timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
    ) -> None:
        self.repo = repo
        self.session = session
        self.validator = validator
        self.timestamp_format = timestamp_format

    # -------------------------------------------------------------------------
    # Drafting (pure)
    # -------------------------------------------------------------------------

    def compose(self, recipient: str, subject: str, body: str) -> NewMessageDraft:
        """A new message to `recipient`, filed in Sent once submitted."""
        return NewMessageDraft(
            recipient_email=recipient.strip(),
            subject=subject,
            content=body,
            folder=FolderTag.SENT,
        )

    def reply(
        self,
        origin: Message,
        sender_profile: UserProfile | None,
        body: str,
    ) -> NewMessageDraft:
        """
        A reply to `origin`, addressed to its sender.

        Raises:
            EmptyBody: If `body` is blank.
            NotFound: If the origin's sender could not be resolved, so
                      there is nobody to reply to.
        """
        if not body.strip():
            raise EmptyBody()
        if sender_profile is None:
            raise NotFound(f"Sender of message {origin.id} not found")

        return NewMessageDraft(
            recipient_email=sender_profile.email,
            subject=REPLY_PREFIX + origin.subject,
            content=body,
            folder=FolderTag.SENT,
            parent_id=origin.id,
        )

    def forward(
        self,
        origin: Message,
        origin_sender_profile: UserProfile | None,
    ) -> NewMessageDraft:
        """
        A forward draft quoting `origin`. It has no recipient yet and is
        filed in Drafts; forwarding never sends anything by itself.
        """
        sender_name = (
            origin_sender_profile.display_name if origin_sender_profile else UNKNOWN_SENDER
        )
        content = (
            f"{FORWARD_SEPARATOR}\n"
            f"From: {sender_name}\n"
            f"Date: {format_timestamp(origin.created_at, self.timestamp_format)}\n"
            f"Subject: {origin.subject}\n"
            f"\n"
            f"{origin.content}"
        )

        return NewMessageDraft(
            recipient_email="",
            subject=FORWARD_PREFIX + origin.subject,
            content=content,
            folder=FolderTag.DRAFTS,
            forward_id=origin.id,
            is_draft=True,
            attachments=list(origin.attachments),
        )

    # -------------------------------------------------------------------------
    # Submission (remote)
    # -------------------------------------------------------------------------

    async def submit(self, draft: NewMessageDraft) -> Message:
        """
        Store a composed message.

        Non-draft messages have their recipient validated first; an invalid
        recipient fails without any store call.

        Returns:
            The stored message.

        Raises:
            Unauthenticated: If nobody is signed in.
            InvalidDomain: If the recipient is outside the domain (checked
                           here or by the store).
            NotFound: If the thread origin no longer exists.
            RemoteFailure: If the store write fails for any other reason.
        """
        user = require_user(self.session)

        if not draft.is_draft:
            self.validator.require(draft.recipient_email)

        try:
            message = await self.repo.insert_message(draft, user.id)
        except RemoteFailure as e:
            error = self.validator.reclassify(e, draft.recipient_email)
            if error is e:
                raise
            raise error from e

        if message.is_draft:
            logger.info(f"Saved draft {message.subject!r}")
        else:
            logger.info(f"Sent {message.subject!r} to {message.recipient_email}")
        return message

    async def send_forward(
        self,
        draft_message: Message,
        recipient: str,
        content: str | None = None,
    ) -> Message:
        """
        Send a saved forward draft to `recipient`.

        Sends a new message with the draft's subject and (possibly edited)
        content. The draft itself stays in Drafts.

        Raises:
            ValueError: If `draft_message` is not a draft.
            InvalidDomain / Unauthenticated / RemoteFailure: As for submit().
        """
        if not draft_message.is_draft:
            raise ValueError(f"Message {draft_message.id} is not a draft")

        outgoing = self.compose(
            recipient,
            draft_message.subject,
            draft_message.content if content is None else content,
        )
        outgoing.attachments = list(draft_message.attachments)
        return await self.submit(outgoing)
