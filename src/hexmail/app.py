# =============================================================================
# Hexmail Main Application
# =============================================================================
# The Textual application class and the `hexmail` command.
#
# The app manages:
#   - Configuration loading (errors are shown, not fatal)
#   - Logging to a file (Textual owns the terminal)
#   - The Mailbox for the signed-in user, shared by all screens
#   - Global keybindings
#
# The command also handles the session: `--login EMAIL` remembers a user in
# the system keyring, `--logout` forgets it.
# =============================================================================

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from keyring.errors import KeyringError
from textual.app import App
from textual.binding import Binding

from hexmail import __app_name__, __version__
from hexmail.auth import KeyringSession, Session
from hexmail.config import Config, ConfigError, print_paths
from hexmail.core import CurrentUser, HexmailError
from hexmail.mailbox import Mailbox
from hexmail.storage import Database, Repository
from hexmail.ui.screens.main import MainScreen


logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"

THEMES = {
    "dark": "textual-dark",
    "light": "textual-light",
}


def setup_logging(config: Config, *, debug: bool = False) -> Path:
    """
    Send the `hexmail` loggers to the configured log file.

    Args:
        config: Supplies the level and the file path.
        debug: Force DEBUG regardless of the configured level.

    Returns:
        The log file path.
    """
    log_path = config.log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    level = logging.DEBUG if debug else logging.getLevelName(config.logging.level)
    if not isinstance(level, int):
        level = logging.WARNING

    package_logger = logging.getLogger("hexmail")
    package_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    package_logger.handlers.clear()

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    package_logger.addHandler(file_handler)

    return log_path


class HexmailApp(App):
    """
    The main Hexmail application.

    Attributes:
        config: The loaded application configuration.
        session: Who is signed in.
        mailbox: The signed-in user's mailbox, set once mounted.
    """

    TITLE = "Hexmail"
    SUB_TITLE = "Webmail"

    # Global keybindings - these work from any screen
    BINDINGS = [
        Binding("q", "quit", "Quit", priority=True),
        Binding("?", "show_help", "Help"),
    ]

    def __init__(
        self,
        config: Config | None = None,
        session: Session | None = None,
        *,
        config_error: str | None = None,
    ) -> None:
        """
        Initialize the Hexmail application.

        Args:
            config: Optional pre-loaded configuration. If not provided,
                    configuration will be loaded from the default location.
            session: Session to use. Defaults to the keyring session.
            config_error: A configuration problem to report once mounted.
        """
        super().__init__()

        self._config_error = config_error

        if config is None:
            try:
                config = Config.load()
            except ConfigError as e:
                config = Config()
                self._config_error = str(e)

        self.config = config
        self.session = session or KeyringSession()
        self.mailbox: Mailbox | None = None

    async def on_mount(self) -> None:
        """Open the mailbox and show the main screen."""
        self.theme = THEMES.get(self.config.ui.theme, THEMES["dark"])

        if self._config_error:
            self.notify(
                f"Config error: {self._config_error}",
                severity="error",
                timeout=10,
            )

        if self.session.get_current_user() is None:
            self.notify(
                f"Not signed in. Run `{__app_name__} --login EMAIL` first.",
                severity="warning",
                timeout=10,
            )

        self.mailbox = await Mailbox.connect(self.config, self.session)
        await self.push_screen(MainScreen(self.mailbox, self.config))

    async def on_unmount(self) -> None:
        if self.mailbox is not None:
            await self.mailbox.close()

    # -------------------------------------------------------------------------
    # Action Handlers
    # -------------------------------------------------------------------------

    def action_quit(self) -> None:
        """Quit the application."""
        self.exit()

    def action_show_help(self) -> None:
        self.notify(
            "Enter=open, *=star, u=unread, a=archive, d=trash, "
            "r=reply, f=forward, c=compose, p=profile, q=quit",
            timeout=10,
        )


# =============================================================================
# Session Commands
# =============================================================================

async def _find_user(config: Config, email: str) -> CurrentUser | None:
    """Look up a profile by email in the configured store."""
    database = Database(config.database_path(), domain=config.general.domain)
    await database.connect()
    try:
        profile = await Repository(database).get_profile_by_email(email)
    finally:
        await database.close()

    if profile is None:
        return None
    return CurrentUser(id=profile.id, email=profile.email)


def login(config: Config, email: str) -> int:
    """
    Remember the user with `email` as signed in.

    Returns:
        Exit code.
    """
    try:
        user = asyncio.run(_find_user(config, email))
    except HexmailError as e:
        print(f"Login failed: {e}", file=sys.stderr)
        return 1

    if user is None:
        print(f"No profile for {email}", file=sys.stderr)
        return 1

    try:
        KeyringSession().sign_in(user)
    except KeyringError as e:
        print(f"Could not save the session to the keyring: {e}", file=sys.stderr)
        return 1
    print(f"Signed in as {user.email}")
    return 0


def logout() -> int:
    try:
        KeyringSession().sign_out()
    except KeyringError as e:
        print(f"Could not clear the session from the keyring: {e}", file=sys.stderr)
        return 1
    print("Signed out")
    return 0


# =============================================================================
# CLI Entry Point
# =============================================================================

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog=__app_name__,
        description="Hexmail: a single-domain webmail client for the terminal",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--paths",
        action="store_true",
        help="Print configuration paths and exit",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (verbose logging)",
    )

    session_group = parser.add_mutually_exclusive_group()
    session_group.add_argument(
        "--login",
        metavar="EMAIL",
        help="Sign in as the user with this address and exit",
    )
    session_group.add_argument(
        "--logout",
        action="store_true",
        help="Forget the signed-in user and exit",
    )

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for Hexmail.

    This function:
        1. Parses command-line arguments
        2. Loads configuration and sets up logging
        3. Handles one-shot commands (--paths, --login, --logout)
        4. Starts the Textual application

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = parse_args(argv)

    config_error = None
    try:
        config = Config.load()
    except ConfigError as e:
        config = Config()
        config_error = str(e)

    if args.paths:
        print_paths(config)
        return 0

    log_path = setup_logging(config, debug=args.debug)
    logger.debug(f"{__app_name__} {__version__} logging to {log_path}")

    if args.login:
        return login(config, args.login)
    if args.logout:
        return logout()

    app = HexmailApp(config=config, config_error=config_error)
    app.run()

    return 0


if __name__ == "__main__":
    sys.exit(main())
