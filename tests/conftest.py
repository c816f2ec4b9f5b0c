# =============================================================================
# Pytest Configuration and Fixtures
# =============================================================================
# Shared fixtures for the Hexmail test suite.
#
# Mailbox tests run against a real SQLite store in a temporary directory,
# seeded with three profiles. "me" is signed in through a StaticSession.
# =============================================================================

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio

from hexmail.auth import StaticSession
from hexmail.core import CurrentUser, FolderTag, Message, NewMessageDraft, UserProfile
from hexmail.mailbox import (
    AddressValidator,
    FolderTransitionEngine,
    Mailbox,
    MailboxState,
    MessageStore,
    ProfileResolver,
    ThreadComposer,
)
from hexmail.storage import Database, Repository


ME = CurrentUser(id="u-me", email="me@hexmail.com")
ALICE = UserProfile(id="u-alice", email="alice@hexmail.com", display_name="Alice")
BOB = UserProfile(id="u-bob", email="bob@hexmail.com", display_name="Bob")

# Seeded messages are spaced a minute apart from here
BASE_TIME = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest_asyncio.fixture
async def database(temp_dir):
    """A connected database enforcing @hexmail.com."""
    db = Database(temp_dir / "hexmail.db")
    await db.connect()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def repo(database):
    """Repository with the me/Alice/Bob profiles seeded."""
    repository = Repository(database)
    await repository.save_profile(UserProfile(id=ME.id, email=ME.email, display_name="Me"))
    await repository.save_profile(ALICE)
    await repository.save_profile(BOB)
    return repository


@pytest.fixture
def deliver(repo):
    """
    Store a message directly, bypassing the composer.

    Usage:
        >>> message = await deliver(ALICE.id, ME.email, "Hello", minutes=3)
    """
    async def _deliver(
        sender_id: str,
        recipient_email: str,
        subject: str,
        *,
        minutes: int = 0,
        folder: FolderTag = FolderTag.INBOX,
        read: bool = False,
        starred: bool = False,
        content: str = "",
    ) -> Message:
        draft = NewMessageDraft(
            recipient_email=recipient_email,
            subject=subject,
            content=content or f"Body of {subject}",
            folder=folder,
        )
        return await repo.insert_message(
            draft,
            sender_id,
            created_at=BASE_TIME + timedelta(minutes=minutes),
            read=read,
            starred=starred,
        )

    return _deliver


@pytest.fixture
def session():
    return StaticSession(ME)


@pytest.fixture
def signed_out():
    return StaticSession()


@pytest.fixture
def state():
    return MailboxState()


@pytest.fixture
def validator():
    return AddressValidator("@hexmail.com")


@pytest.fixture
def resolver(repo, session):
    return ProfileResolver(repo, session)


@pytest.fixture
def store(repo, resolver, session):
    return MessageStore(repo, resolver, session)


@pytest.fixture
def engine(repo, session, state):
    return FolderTransitionEngine(repo, session, state)


@pytest.fixture
def composer(repo, session, validator):
    return ThreadComposer(repo, session, validator, timestamp_format="%Y-%m-%d %H:%M")


@pytest.fixture
def mailbox(repo, session):
    return Mailbox(repo, session, domain="@hexmail.com")
