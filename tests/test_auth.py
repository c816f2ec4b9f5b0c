"""Tests for the in-memory and keyring-backed sessions."""

import json

import pytest
from keyring.errors import KeyringError, PasswordDeleteError

from hexmail import auth
from hexmail.auth import KEYRING_SERVICE, KEYRING_USERNAME, KeyringSession, StaticSession, require_user
from hexmail.core import CurrentUser, Unauthenticated

from conftest import ME


@pytest.fixture
def fake_keyring(monkeypatch):
    """Replace the keyring backend calls with a dict."""
    store: dict[tuple[str, str], str] = {}

    def set_password(service, username, password):
        store[(service, username)] = password

    def get_password(service, username):
        return store.get((service, username))

    def delete_password(service, username):
        if (service, username) not in store:
            raise PasswordDeleteError("not found")
        del store[(service, username)]

    monkeypatch.setattr(auth.keyring, "set_password", set_password)
    monkeypatch.setattr(auth.keyring, "get_password", get_password)
    monkeypatch.setattr(auth.keyring, "delete_password", delete_password)
    return store


class TestRequireUser:

    def test_returns_user(self):
        assert require_user(StaticSession(ME)) == ME

    def test_raises_when_signed_out(self):
        with pytest.raises(Unauthenticated):
            require_user(StaticSession())


class TestStaticSession:

    def test_sign_in_and_out(self):
        session = StaticSession()
        session.sign_in(ME)
        assert session.get_current_user() == ME

        session.sign_out()
        assert session.get_current_user() is None


class TestKeyringSession:

    def test_sign_in_persists(self, fake_keyring):
        KeyringSession().sign_in(ME)

        payload = json.loads(fake_keyring[(KEYRING_SERVICE, KEYRING_USERNAME)])
        assert payload == {"id": ME.id, "email": ME.email}
        assert KeyringSession().get_current_user() == ME

    def test_sign_out_forgets(self, fake_keyring):
        KeyringSession().sign_in(ME)
        KeyringSession().sign_out()

        assert fake_keyring == {}
        assert KeyringSession().get_current_user() is None

    def test_sign_out_when_not_signed_in(self, fake_keyring):
        session = KeyringSession()
        session.sign_out()
        assert session.get_current_user() is None

    def test_user_is_cached(self, fake_keyring):
        session = KeyringSession()
        session.sign_in(ME)
        fake_keyring.clear()
        assert session.get_current_user() == ME

    def test_malformed_payload_means_signed_out(self, fake_keyring):
        fake_keyring[(KEYRING_SERVICE, KEYRING_USERNAME)] = "{not json"
        assert KeyringSession().get_current_user() is None

    def test_unavailable_keyring_means_signed_out(self, monkeypatch):
        def broken(service, username):
            raise KeyringError("no backend")

        monkeypatch.setattr(auth.keyring, "get_password", broken)
        assert KeyringSession().get_current_user() is None

    def test_separate_services(self, fake_keyring):
        KeyringSession(service="hexmail-test").sign_in(CurrentUser("u2", "two@hexmail.com"))
        assert KeyringSession().get_current_user() is None
