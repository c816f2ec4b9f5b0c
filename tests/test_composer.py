"""Tests for compose, reply, forward, and submission."""

from datetime import datetime, timezone

import pytest

from hexmail.core import (
    Attachment,
    EmptyBody,
    FolderTag,
    InvalidDomain,
    Message,
    NotFound,
    RemoteFailure,
    Unauthenticated,
)
from hexmail.mailbox import AddressValidator, ThreadComposer
from hexmail.mailbox.composer import FORWARD_SEPARATOR, format_timestamp
from hexmail.storage import MessageQuery

from conftest import ALICE, ME


def _origin(**overrides) -> Message:
    fields = dict(
        id="m-origin",
        sender_id=ALICE.id,
        recipient_email=ME.email,
        subject="Lunch",
        content="Noon at the usual place?",
        created_at=datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return Message(**fields)


class TestReply:

    @pytest.mark.parametrize("subject", ["Lunch", "Re: Lunch", ""])
    def test_subject_and_linkage(self, composer, subject):
        origin = _origin(subject=subject)
        draft = composer.reply(origin, ALICE, "Sounds good")

        assert draft.subject == "Re: " + subject
        assert draft.parent_id == origin.id
        assert draft.recipient_email == ALICE.email
        assert draft.folder is FolderTag.SENT
        assert not draft.is_draft

    @pytest.mark.parametrize("body", ["", "   ", "\n\t"])
    def test_empty_body(self, composer, body):
        with pytest.raises(EmptyBody):
            composer.reply(_origin(), ALICE, body)

    def test_unresolved_sender(self, composer):
        with pytest.raises(NotFound):
            composer.reply(_origin(), None, "hello?")


class TestForward:

    def test_draft_fields(self, composer):
        origin = _origin(attachments=[Attachment("menu.pdf", "https://files/menu.pdf")])
        draft = composer.forward(origin, ALICE)

        assert draft.is_draft
        assert draft.folder is FolderTag.DRAFTS
        assert draft.forward_id == origin.id
        assert draft.recipient_email == ""
        assert draft.subject == "Fwd: Lunch"
        assert draft.attachments == origin.attachments

    def test_quoted_block(self, composer):
        origin = _origin()
        draft = composer.forward(origin, ALICE)

        expected_date = format_timestamp(origin.created_at, "%Y-%m-%d %H:%M")
        assert draft.content == (
            f"{FORWARD_SEPARATOR}\n"
            f"From: Alice\n"
            f"Date: {expected_date}\n"
            f"Subject: Lunch\n"
            f"\n"
            f"Noon at the usual place?"
        )

    def test_forward_is_deterministic(self, composer):
        origin = _origin()
        assert composer.forward(origin, ALICE) == composer.forward(origin, ALICE)

    def test_unresolved_sender_uses_placeholder(self, composer):
        draft = composer.forward(_origin(), None)
        assert "From: Unknown User" in draft.content

    def test_missing_timestamp(self):
        assert format_timestamp(None) == "unknown date"


class TestSubmit:

    @pytest.mark.asyncio
    async def test_compose_to_domain_succeeds(self, repo, composer):
        sent = await composer.submit(composer.compose("alice@hexmail.com", "Hi", "Hello"))

        assert sent.folder is FolderTag.SENT
        assert sent.sender_id == ME.id
        assert (await repo.get_message(sent.id)).recipient_email == ALICE.email

    @pytest.mark.asyncio
    async def test_compose_outside_domain_issues_no_write(self, repo, composer, monkeypatch):
        writes = []
        monkeypatch.setattr(repo, "insert_message", lambda *a, **kw: writes.append(a))

        with pytest.raises(InvalidDomain):
            await composer.submit(composer.compose("user@other.com", "Hi", "Hello"))

        assert writes == []

    @pytest.mark.asyncio
    async def test_store_rejection_surfaces_as_invalid_domain(self, repo, session):
        # A client configured for a wider domain than the store enforces
        lenient = ThreadComposer(repo, session, AddressValidator("@other.com"))

        with pytest.raises(InvalidDomain) as exc_info:
            await lenient.submit(lenient.compose("user@other.com", "Hi", "Hello"))

        assert isinstance(exc_info.value.__cause__, RemoteFailure)
        assert await repo.select_messages(MessageQuery(sender_id=ME.id)) == []

    @pytest.mark.asyncio
    async def test_other_store_failures_propagate(self, repo, composer, monkeypatch):
        async def broken_insert(*args, **kwargs):
            raise RemoteFailure("Saving message failed: disk I/O error")

        monkeypatch.setattr(repo, "insert_message", broken_insert)
        with pytest.raises(RemoteFailure, match="disk I/O error"):
            await composer.submit(composer.compose(ALICE.email, "Hi", "Hello"))

    @pytest.mark.asyncio
    async def test_reply_is_stored_in_thread(self, repo, composer, deliver):
        origin = await deliver(ALICE.id, ME.email, "Lunch")
        reply = await composer.submit(composer.reply(origin, ALICE, "Yes!"))

        stored = await repo.get_message(reply.id)
        assert stored.parent_id == origin.id
        assert stored.subject == "Re: Lunch"
        assert stored.is_reply

    @pytest.mark.asyncio
    async def test_reply_to_deleted_origin(self, composer):
        with pytest.raises(NotFound):
            await composer.submit(composer.reply(_origin(id="gone"), ALICE, "hello"))

    @pytest.mark.asyncio
    async def test_forward_draft_skips_recipient_check(self, repo, composer, deliver):
        origin = await deliver(ALICE.id, ME.email, "Lunch")
        draft = await composer.submit(composer.forward(origin, ALICE))

        stored = await repo.get_message(draft.id)
        assert stored.is_draft
        assert stored.folder is FolderTag.DRAFTS
        assert stored.forward_id == origin.id

    @pytest.mark.asyncio
    async def test_requires_session(self, repo, signed_out, validator, monkeypatch):
        writes = []
        monkeypatch.setattr(repo, "insert_message", lambda *a, **kw: writes.append(a))
        composer = ThreadComposer(repo, signed_out, validator)

        with pytest.raises(Unauthenticated):
            await composer.submit(composer.compose(ALICE.email, "Hi", "Hello"))
        assert writes == []


class TestSendForward:

    @pytest.mark.asyncio
    async def test_sends_new_message_and_keeps_draft(self, repo, composer, deliver):
        origin = await deliver(ALICE.id, ME.email, "Lunch")
        draft = await composer.submit(composer.forward(origin, ALICE))

        sent = await composer.send_forward(draft, "bob@hexmail.com", "FYI\n\n" + draft.content)

        assert sent.folder is FolderTag.SENT
        assert sent.subject == "Fwd: Lunch"
        assert sent.content.startswith("FYI")
        assert sent.recipient_email == "bob@hexmail.com"
        assert (await repo.get_message(draft.id)).folder is FolderTag.DRAFTS

    @pytest.mark.asyncio
    async def test_validates_recipient(self, composer, deliver):
        origin = await deliver(ALICE.id, ME.email, "Lunch")
        draft = await composer.submit(composer.forward(origin, ALICE))

        with pytest.raises(InvalidDomain):
            await composer.send_forward(draft, "bob@other.com")

    @pytest.mark.asyncio
    async def test_rejects_non_drafts(self, composer):
        with pytest.raises(ValueError):
            await composer.send_forward(_origin(), "bob@hexmail.com")
