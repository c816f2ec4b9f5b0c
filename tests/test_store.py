"""Tests for view loading, sender resolution, and stale-load handling."""

import asyncio

import pytest

from hexmail.core import (
    UNKNOWN_SENDER,
    FolderTag,
    NotFound,
    RealFolder,
    RemoteFailure,
    StarredView,
    Unauthenticated,
    UserProfile,
)
from hexmail.mailbox import MailboxState, MessageStore, ProfileResolver, query_for
from hexmail.storage import MessageQuery

from conftest import ALICE, BOB, ME


class TestQueryFor:

    def test_sent_is_scoped_by_author(self):
        assert query_for(RealFolder(FolderTag.SENT), ME) == MessageQuery(sender_id=ME.id)

    def test_starred_ignores_folder(self):
        assert query_for(StarredView(), ME) == MessageQuery(
            recipient_email=ME.email, starred=True
        )

    @pytest.mark.parametrize("tag", [FolderTag.INBOX, FolderTag.ARCHIVE, FolderTag.TRASH])
    def test_other_folders_are_scoped_by_recipient(self, tag):
        assert query_for(RealFolder(tag), ME) == MessageQuery(recipient_email=ME.email, folder=tag)


class TestLoad:

    @pytest.mark.asyncio
    async def test_starred_view_spans_folders_newest_first(self, store, state, deliver):
        older = await deliver(ALICE.id, ME.email, "older", minutes=1, starred=True)
        newer = await deliver(BOB.id, ME.email, "newer", minutes=2, starred=True,
                              folder=FolderTag.ARCHIVE)
        await deliver(ALICE.id, ME.email, "not starred", minutes=3)
        await deliver(ME.id, ALICE.email, "someone else's", minutes=4, starred=True)

        messages = await store.load(state, StarredView())

        assert [m.id for m in messages] == [newer.id, older.id]
        assert state.messages == messages
        assert state.loaded

    @pytest.mark.asyncio
    async def test_inbox_excludes_other_folders(self, store, state, deliver):
        inbox = await deliver(ALICE.id, ME.email, "inbox")
        await deliver(ALICE.id, ME.email, "archived", folder=FolderTag.ARCHIVE)

        messages = await store.load(state, RealFolder(FolderTag.INBOX))
        assert [m.id for m in messages] == [inbox.id]

    @pytest.mark.asyncio
    async def test_sent_shows_authored_mail(self, store, state, deliver):
        sent = await deliver(ME.id, ALICE.email, "to alice", folder=FolderTag.SENT)
        await deliver(ALICE.id, ME.email, "to me")

        messages = await store.load(state, RealFolder(FolderTag.SENT))
        assert [m.id for m in messages] == [sent.id]
        assert messages[0].sender_name == "Me"

    @pytest.mark.asyncio
    async def test_sender_names_are_resolved(self, store, state, deliver):
        await deliver(ALICE.id, ME.email, "a", minutes=1)
        await deliver(BOB.id, ME.email, "b", minutes=2)

        messages = await store.load(state, RealFolder(FolderTag.INBOX))
        assert [m.sender_name for m in messages] == ["Bob", "Alice"]
        assert set(state.profiles) == {ALICE.id, BOB.id}

    @pytest.mark.asyncio
    async def test_unknown_sender_gets_placeholder(self, store, state, deliver):
        await deliver("u-deleted", ME.email, "from a ghost")

        messages = await store.load(state, RealFolder(FolderTag.INBOX))
        assert messages[0].sender_name == "Unknown User"

    @pytest.mark.asyncio
    async def test_profile_lookup_failure_still_loads(self, repo, store, state, deliver, monkeypatch):
        await deliver(ALICE.id, ME.email, "Hello")

        async def failing_select(ids):
            raise RemoteFailure("Loading profiles failed: io")

        monkeypatch.setattr(repo, "select_profiles", failing_select)
        messages = await store.load(state, RealFolder(FolderTag.INBOX))

        assert [m.sender_name for m in messages] == [UNKNOWN_SENDER]
        assert state.messages == messages

    @pytest.mark.asyncio
    async def test_profiles_fetched_in_one_batch(self, repo, session, state, deliver, monkeypatch):
        for minute in range(5):
            await deliver(ALICE.id if minute % 2 else BOB.id, ME.email, f"m{minute}", minutes=minute)

        calls = []
        original = repo.select_profiles

        async def counting_select(ids):
            calls.append(list(ids))
            return await original(ids)

        monkeypatch.setattr(repo, "select_profiles", counting_select)
        store = MessageStore(repo, ProfileResolver(repo, session), session)
        await store.load(state, RealFolder(FolderTag.INBOX))

        assert calls == [sorted([ALICE.id, BOB.id])]

    @pytest.mark.asyncio
    async def test_switching_views_discards_previous(self, store, state, deliver):
        await deliver(ALICE.id, ME.email, "inbox")
        await store.load(state, RealFolder(FolderTag.INBOX))
        assert len(state) == 1

        await store.load(state, RealFolder(FolderTag.TRASH))
        assert state.scope == RealFolder(FolderTag.TRASH)
        assert len(state) == 0
        assert state.profiles == {}

    @pytest.mark.asyncio
    async def test_requires_session(self, repo, signed_out, state):
        store = MessageStore(repo, ProfileResolver(repo, signed_out), signed_out)
        state.scope = RealFolder(FolderTag.ARCHIVE)

        with pytest.raises(Unauthenticated):
            await store.load(state, RealFolder(FolderTag.INBOX))

        # Nothing was reset
        assert state.scope == RealFolder(FolderTag.ARCHIVE)
        assert state.generation == 0


class TestStaleLoads:

    @pytest.mark.asyncio
    async def test_late_response_is_not_applied(self, repo, session, deliver, monkeypatch):
        inbox_message = await deliver(ALICE.id, ME.email, "inbox")
        trash_message = await deliver(ALICE.id, ME.email, "trash", folder=FolderTag.TRASH)

        release_inbox = asyncio.Event()
        original = repo.select_messages

        async def slow_inbox(query):
            if query.folder is FolderTag.INBOX:
                await release_inbox.wait()
            return await original(query)

        monkeypatch.setattr(repo, "select_messages", slow_inbox)
        state = MailboxState()
        store = MessageStore(repo, ProfileResolver(repo, session), session)

        inbox_load = asyncio.create_task(store.load(state, RealFolder(FolderTag.INBOX)))
        await asyncio.sleep(0)
        await store.load(state, RealFolder(FolderTag.TRASH))

        release_inbox.set()
        late = await inbox_load

        assert [m.id for m in late] == [inbox_message.id]
        assert state.scope == RealFolder(FolderTag.TRASH)
        assert [m.id for m in state.messages] == [trash_message.id]


class TestOpen:

    @pytest.mark.asyncio
    async def test_open_returns_view_instance(self, store, state, deliver):
        await deliver(ALICE.id, ME.email, "hello")
        await store.load(state, RealFolder(FolderTag.INBOX))

        message, sender = await store.open(state, state.messages[0].id)
        assert message is state.messages[0]
        assert sender.id == ALICE.id

    @pytest.mark.asyncio
    async def test_open_outside_view(self, store, state, deliver):
        archived = await deliver(BOB.id, ME.email, "old", folder=FolderTag.ARCHIVE)

        message, sender = await store.open(state, archived.id)
        assert message.id == archived.id
        assert message.sender_name == "Bob"
        assert isinstance(sender, UserProfile)

    @pytest.mark.asyncio
    async def test_open_missing(self, store, state):
        with pytest.raises(NotFound):
            await store.open(state, "nope")

    @pytest.mark.asyncio
    async def test_open_does_not_mark_read(self, store, state, repo, deliver):
        message = await deliver(ALICE.id, ME.email, "unread")
        await store.load(state, RealFolder(FolderTag.INBOX))

        await store.open(state, message.id)
        assert not (await repo.get_message(message.id)).read
