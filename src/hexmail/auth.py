# =============================================================================
# Session / Authentication
# =============================================================================
# The mailbox core only needs one thing from authentication: who is signed
# in right now. Every operation that needs an identity calls
# `get_current_user()` and fails with Unauthenticated when it returns None.
#
# Credential checks happen elsewhere. Here we only remember the signed-in
# user between runs, in the system keyring (the same place the rest of the
# desktop keeps secrets), under:
#
#   service: "hexmail"   username: "session"
#
# so it can be inspected or cleared from the keyring CLI if needed:
#   keyring del hexmail session
# =============================================================================

import json
import logging
from typing import Protocol

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from hexmail.core import CurrentUser, Unauthenticated


logger = logging.getLogger(__name__)

KEYRING_SERVICE = "hexmail"
KEYRING_USERNAME = "session"


class Session(Protocol):
    """The authentication collaborator the mailbox core depends on."""

    def get_current_user(self) -> CurrentUser | None:
        ...


def require_user(session: Session) -> CurrentUser:
    """
    Returns the signed-in user.

    Raises:
        Unauthenticated: If nobody is signed in.
    """
    user = session.get_current_user()
    if user is None:
        raise Unauthenticated()
    return user


class StaticSession:
    """
    A session held in memory. Used for embedding and tests.

    Example:
        >>> session = StaticSession(CurrentUser(id="u1", email="me@hexmail.com"))
        >>> session.sign_out()
        >>> session.get_current_user() is None
        True
    """

    def __init__(self, user: CurrentUser | None = None) -> None:
        self._user = user

    def get_current_user(self) -> CurrentUser | None:
        return self._user

    def sign_in(self, user: CurrentUser) -> None:
        self._user = user

    def sign_out(self) -> None:
        self._user = None


class KeyringSession:
    """
    A session remembered in the system keyring.

    The user is read from the keyring once and then cached; sign_in and
    sign_out update both.
    """

    def __init__(self, service: str = KEYRING_SERVICE) -> None:
        self.service = service
        self._user: CurrentUser | None = None
        self._loaded = False

    def get_current_user(self) -> CurrentUser | None:
        if not self._loaded:
            self._user = self._read()
            self._loaded = True
        return self._user

    def sign_in(self, user: CurrentUser) -> None:
        """
        Remember `user` as the signed-in user.

        Raises:
            KeyringError: If the keyring cannot store it.
        """
        payload = json.dumps({"id": user.id, "email": user.email})
        keyring.set_password(self.service, KEYRING_USERNAME, payload)
        self._user = user
        self._loaded = True
        logger.info(f"Signed in as {user.email}")

    def sign_out(self) -> None:
        """
        Forget the signed-in user.

        Raises:
            KeyringError: If the keyring is unavailable.
        """
        try:
            keyring.delete_password(self.service, KEYRING_USERNAME)
        except PasswordDeleteError:
            logger.debug("No stored session to delete")
        self._user = None
        self._loaded = True
        logger.info("Signed out")

    def _read(self) -> CurrentUser | None:
        try:
            payload = keyring.get_password(self.service, KEYRING_USERNAME)
        except KeyringError as e:
            logger.warning(f"Keyring unavailable, treating as signed out: {e}")
            return None

        if not payload:
            return None

        try:
            data = json.loads(payload)
            return CurrentUser(id=data["id"], email=data["email"])
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring malformed stored session: {e}")
            return None
