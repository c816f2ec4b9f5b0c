"""Tests for the command line, logging setup, and session commands."""

import asyncio
import logging

import pytest
from keyring.errors import KeyringError

from hexmail import app
from hexmail.app import login, logout, parse_args, setup_logging
from hexmail.config import Config
from hexmail.core import UserProfile
from hexmail.storage import Database, Repository

from conftest import ALICE


@pytest.fixture
def config(temp_dir):
    config = Config()
    config.storage.database = str(temp_dir / "hexmail.db")
    config.logging.file = str(temp_dir / "logs" / "hexmail.log")
    return config


@pytest.fixture
def clean_logger():
    """Detach handlers added to the package logger during a test."""
    yield logging.getLogger("hexmail")
    package_logger = logging.getLogger("hexmail")
    for handler in list(package_logger.handlers):
        handler.close()
        package_logger.removeHandler(handler)


class RecordingSession:
    """Stands in for KeyringSession in the session commands."""

    signed_in = []
    signed_out = 0

    def sign_in(self, user):
        RecordingSession.signed_in.append(user)

    def sign_out(self):
        RecordingSession.signed_out += 1


@pytest.fixture
def recording_session(monkeypatch):
    RecordingSession.signed_in = []
    RecordingSession.signed_out = 0
    monkeypatch.setattr(app, "KeyringSession", RecordingSession)
    return RecordingSession


class TestParseArgs:

    def test_defaults(self):
        args = parse_args([])
        assert not args.paths
        assert not args.debug
        assert args.login is None
        assert not args.logout

    def test_login(self):
        assert parse_args(["--login", "alice@hexmail.com"]).login == "alice@hexmail.com"

    def test_login_and_logout_are_exclusive(self):
        with pytest.raises(SystemExit):
            parse_args(["--login", "alice@hexmail.com", "--logout"])


class TestSetupLogging:

    def test_writes_to_configured_file(self, config, clean_logger):
        path = setup_logging(config)
        logging.getLogger("hexmail.test").warning("something happened")
        for handler in clean_logger.handlers:
            handler.flush()

        assert path == config.log_path()
        assert "something happened" in path.read_text()

    def test_level_from_config(self, config, clean_logger):
        config.logging.level = "INFO"
        setup_logging(config)
        assert clean_logger.level == logging.INFO

    def test_debug_overrides_level(self, config, clean_logger):
        setup_logging(config, debug=True)
        assert clean_logger.level == logging.DEBUG

    def test_repeated_setup_keeps_one_handler(self, config, clean_logger):
        setup_logging(config)
        setup_logging(config)
        assert len(clean_logger.handlers) == 1


class TestSessionCommands:

    def test_login_known_user(self, config, recording_session, capsys):
        async def seed():
            database = Database(config.database_path())
            await database.connect()
            try:
                await Repository(database).save_profile(
                    UserProfile(id=ALICE.id, email=ALICE.email, display_name="Alice")
                )
            finally:
                await database.close()

        asyncio.run(seed())

        assert login(config, ALICE.email) == 0
        [user] = recording_session.signed_in
        assert user.id == ALICE.id
        assert "Signed in as alice@hexmail.com" in capsys.readouterr().out

    def test_login_unknown_user(self, config, recording_session, capsys):
        assert login(config, "ghost@hexmail.com") == 1
        assert recording_session.signed_in == []
        assert "No profile" in capsys.readouterr().err

    def test_logout(self, recording_session):
        assert logout() == 0
        assert recording_session.signed_out == 1


class BrokenKeyringSession:
    """A keyring session whose backend is unavailable."""

    def sign_in(self, user):
        raise KeyringError("no backend")

    def sign_out(self):
        raise KeyringError("no backend")


class TestSessionCommandsWithoutKeyring:

    @pytest.fixture(autouse=True)
    def broken_keyring(self, monkeypatch):
        monkeypatch.setattr(app, "KeyringSession", BrokenKeyringSession)

    def test_login_reports_keyring_error(self, config, capsys):
        async def seed():
            database = Database(config.database_path())
            await database.connect()
            try:
                await Repository(database).save_profile(ALICE)
            finally:
                await database.close()

        asyncio.run(seed())

        assert login(config, ALICE.email) == 1
        assert "keyring" in capsys.readouterr().err

    def test_logout_reports_keyring_error(self, capsys):
        assert logout() == 1
        assert "keyring" in capsys.readouterr().err
