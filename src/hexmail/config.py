# =============================================================================
# Configuration Management
# =============================================================================
# Handles loading, saving, and validating Hexmail configuration.
#
# XDG Base Directory Compliance (https://specifications.freedesktop.org/basedir-spec/):
#   - Config:  $XDG_CONFIG_HOME/hexmail/  (default: ~/.config/hexmail/)
#   - Data:    $XDG_DATA_HOME/hexmail/    (default: ~/.local/share/hexmail/)
#   - State:   $XDG_STATE_HOME/hexmail/   (default: ~/.local/state/hexmail/)
#
# Files:
#   - config.toml: User configuration (domain, default view, preferences)
#   - hexmail.db: SQLite message store (in data directory)
#   - hexmail.log: Log file (in state directory; the TUI owns the terminal)
# =============================================================================

import os
import tomllib  # Built into Python 3.11+
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w  # For writing TOML (tomllib is read-only)

from hexmail.core.folder import ViewScope


# =============================================================================
# XDG Directory Management
# =============================================================================

# Application identifier used in all XDG paths
APP_NAME = "hexmail"

# The single domain recipients must belong to
DEFAULT_DOMAIN = "@hexmail.com"


def _xdg_home(variable: str, *fallback: str) -> Path:
    """
    Returns $<variable>/hexmail, or ~/<fallback...>/hexmail if unset.
    """
    value = os.environ.get(variable)
    base = Path(value) if value else Path.home().joinpath(*fallback)
    return base / APP_NAME


def get_xdg_config_home() -> Path:
    """Where config.toml lives (~/.config/hexmail/)."""
    return _xdg_home("XDG_CONFIG_HOME", ".config")


def get_xdg_data_home() -> Path:
    """Where persistent data lives (~/.local/share/hexmail/)."""
    return _xdg_home("XDG_DATA_HOME", ".local", "share")


def get_xdg_state_home() -> Path:
    """
    Where state lives (~/.local/state/hexmail/).

    Logs go here: like cache, but not something to share across machines.
    """
    return _xdg_home("XDG_STATE_HOME", ".local", "state")


def ensure_directories() -> dict[str, Path]:
    """
    Creates all required XDG directories if they don't exist.

    Returns:
        Dictionary mapping directory type to path.
    """
    dirs = {
        "config": get_xdg_config_home(),
        "data": get_xdg_data_home(),
        "state": get_xdg_state_home(),
    }

    for dir_path in dirs.values():
        dir_path.mkdir(parents=True, exist_ok=True)

    return dirs


# =============================================================================
# Configuration Data Structures
# =============================================================================

@dataclass
class GeneralConfig:
    """
    Mailbox-wide settings.

    Attributes:
        domain: Suffix every recipient address must end with. Matched
                literally and case-sensitively.
        default_view: View opened on startup ("inbox", "starred", ...).
    """
    domain: str = DEFAULT_DOMAIN
    default_view: str = "inbox"


@dataclass
class StorageConfig:
    """
    Configuration for the message store.

    Attributes:
        database: Path to the SQLite file. Empty means the XDG data default.
    """
    database: str = ""


@dataclass
class UIConfig:
    """
    Configuration for the user interface.

    Attributes:
        theme: Color theme ("dark" or "light").
        date_format: strftime format for dates (also used in forwards).
        time_format: strftime format for times.
        confirm_delete: Ask before moving a message to Trash.
    """
    theme: str = "dark"
    date_format: str = "%Y-%m-%d"
    time_format: str = "%H:%M"
    confirm_delete: bool = False

    @property
    def timestamp_format(self) -> str:
        """Combined date and time format."""
        return f"{self.date_format} {self.time_format}"


@dataclass
class LoggingConfig:
    """
    Attributes:
        level: Logging level name ("DEBUG", "INFO", ...).
        file: Log file path. Empty means hexmail.log in the state directory.
    """
    level: str = "WARNING"
    file: str = ""


@dataclass
class Config:
    """
    Main configuration container for Hexmail.

    Usage:
        >>> config = Config.load()
        >>> config.general.domain
        '@hexmail.com'
    """
    general: GeneralConfig = field(default_factory=GeneralConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # -------------------------------------------------------------------------
    # File Paths
    # -------------------------------------------------------------------------

    @staticmethod
    def config_file_path() -> Path:
        """Returns the path to the main config file."""
        return get_xdg_config_home() / "config.toml"

    @staticmethod
    def default_database_path() -> Path:
        """Returns the default path to the SQLite database."""
        return get_xdg_data_home() / "hexmail.db"

    @staticmethod
    def default_log_path() -> Path:
        return get_xdg_state_home() / "hexmail.log"

    def database_path(self) -> Path:
        """Returns the configured database path."""
        if self.storage.database:
            return Path(self.storage.database).expanduser()
        return self.default_database_path()

    def log_path(self) -> Path:
        if self.logging.file:
            return Path(self.logging.file).expanduser()
        return self.default_log_path()

    @property
    def default_scope(self) -> ViewScope:
        return ViewScope.parse(self.general.default_view)

    # -------------------------------------------------------------------------
    # Loading and Saving
    # -------------------------------------------------------------------------

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """
        Load configuration from the config file.

        If the config file doesn't exist, returns default configuration.
        Creates necessary directories if they don't exist.

        Args:
            path: Config file to read. Defaults to the XDG location.

        Returns:
            Loaded Config object.

        Raises:
            ConfigError: If the config file exists but is invalid.
        """
        ensure_directories()

        config_path = path or cls.config_file_path()

        if not config_path.exists():
            return cls()

        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid config file: {e}") from e

        return cls._from_dict(data)

    def save(self, path: Path | None = None) -> None:
        """
        Save configuration to the config file.

        Creates the config directory if it doesn't exist.
        """
        ensure_directories()

        config_path = path or self.config_file_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "wb") as f:
            tomli_w.dump(self._to_dict(), f)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """
        Create a Config object from a dictionary (parsed TOML).

        Raises:
            ConfigError: If a value is out of range.
        """
        config = cls()

        general = data.get("general", {})
        config.general = GeneralConfig(
            domain=general.get("domain", DEFAULT_DOMAIN),
            default_view=general.get("default_view", "inbox"),
        )

        storage = data.get("storage", {})
        config.storage = StorageConfig(
            database=storage.get("database", ""),
        )

        ui = data.get("ui", {})
        config.ui = UIConfig(
            theme=ui.get("theme", "dark"),
            date_format=ui.get("date_format", "%Y-%m-%d"),
            time_format=ui.get("time_format", "%H:%M"),
            confirm_delete=ui.get("confirm_delete", False),
        )

        log = data.get("logging", {})
        config.logging = LoggingConfig(
            level=str(log.get("level", "WARNING")).upper(),
            file=log.get("file", ""),
        )

        # Validate the values the rest of the app relies on
        if not config.general.domain.startswith("@"):
            raise ConfigError(
                f"general.domain must start with '@', got {config.general.domain!r}"
            )
        try:
            ViewScope.parse(config.general.default_view)
        except ValueError as e:
            raise ConfigError(f"general.default_view: {e}") from e

        return config

    def _to_dict(self) -> dict[str, Any]:
        """Convert Config to a dictionary for TOML serialization."""
        return {
            "general": {
                "domain": self.general.domain,
                "default_view": self.general.default_view,
            },
            "storage": {
                "database": self.storage.database,
            },
            "ui": {
                "theme": self.ui.theme,
                "date_format": self.ui.date_format,
                "time_format": self.ui.time_format,
                "confirm_delete": self.ui.confirm_delete,
            },
            "logging": {
                "level": self.logging.level,
                "file": self.logging.file,
            },
        }


# =============================================================================
# Exceptions
# =============================================================================

class ConfigError(Exception):
    """Raised when there's an error loading or parsing configuration."""
    pass


# =============================================================================
# Utility Functions
# =============================================================================

def print_paths(config: Config | None = None) -> None:
    """
    Print all XDG paths for debugging.
    Useful for users wondering where their config/data is stored.
    """
    config = config or Config()
    print(f"Config:  {get_xdg_config_home()}")
    print(f"Data:    {get_xdg_data_home()}")
    print(f"State:   {get_xdg_state_home()}")
    print()
    print(f"Config file:  {Config.config_file_path()}")
    print(f"Database:     {config.database_path()}")
    print(f"Log file:     {config.log_path()}")
