"""Runtime configuration for the contact sync server.

Reads CardDAV connection and sync settings from CLI args, environment
variables, .env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    CARDDAV_URL: Address book URL (required)
    CARDDAV_USERNAME: CardDAV username (required)
    CARDDAV_PASSWORD: CardDAV password (required)
    CARDDAV_INSECURE: Skip SSL verification (optional, default: false)
    CARDDAV_DEBUG: Enable debug logging (optional, default: false)
    CARDDAV_CONTACTS_PATH: Local contact folder (optional, default: Contacts)
    CARDDAV_SYNC_INTERVAL: Minutes between automatic syncs, 0 disables (optional, default: 30)
    CARDDAV_TIMEOUT: Read timeout in seconds for CardDAV requests (optional, default: 60)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONTACTS_PATH = "Contacts"
DEFAULT_SYNC_INTERVAL = 30


@dataclass
class Config:
    server_url: str
    username: str
    password: str
    contacts_path: str = DEFAULT_CONTACTS_PATH
    sync_interval: int = DEFAULT_SYNC_INTERVAL
    insecure: bool = False
    debug: bool = False
    connect_timeout: float = 10.0
    read_timeout: float = 60.0

    @property
    def timeout(self) -> tuple[float, float]:
        """``(connect, read)`` timeout tuple for requests."""
        return (self.connect_timeout, self.read_timeout)


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ConfigurationError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ConfigurationError: If URL format is invalid, credentials are empty,
            or sync settings are out of range.
    """
    config.server_url = config.server_url.strip()

    if not config.server_url.startswith(("http://", "https://")):
        raise ConfigurationError(
            f"Invalid CardDAV URL '{config.server_url}': must start with http:// or https://"
        )

    parsed = urlparse(config.server_url)
    if not parsed.hostname:
        raise ConfigurationError(
            f"Invalid CardDAV URL '{config.server_url}': URL must include a hostname"
        )

    # Address book collections are directories; relative hrefs resolve against them
    if not config.server_url.endswith("/"):
        config.server_url += "/"

    if not config.username.strip():
        raise ConfigurationError(
            "CardDAV username cannot be empty. Set CARDDAV_USERNAME environment variable."
        )

    if not config.password.strip():
        raise ConfigurationError(
            "CardDAV password cannot be empty. Set CARDDAV_PASSWORD environment variable."
        )

    if not config.contacts_path.strip():
        raise ConfigurationError("Contacts path cannot be empty.")

    if config.sync_interval < 0:
        raise ConfigurationError(
            f"Invalid sync interval {config.sync_interval}: must be 0 (disabled) or a positive number of minutes"
        )

    if config.connect_timeout <= 0 or config.read_timeout <= 0:
        raise ConfigurationError("CardDAV timeouts must be positive numbers")

    if config.insecure:
        logger.warning(
            "WARNING: SSL verification disabled (insecure=True). Use only for development."
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _resolve_int(
    env_key: str,
    cli_value: int | None,
    fallback: object,
    default: int,
) -> int:
    """Resolve an integer setting: CLI > env > YAML > default."""
    if cli_value is not None:
        return cli_value
    raw = os.getenv(env_key)
    if raw is not None:
        try:
            return int(raw)
        except ValueError:
            raise ConfigurationError(
                f"Invalid {env_key} '{raw}': must be a whole number"
            ) from None
    if fallback is not None:
        return int(fallback)  # type: ignore[call-overload]
    return default


def load_config(
    url: str | None = None,
    username: str | None = None,
    password: str | None = None,
    contacts_path: str | None = None,
    sync_interval: int | None = None,
    insecure: bool = False,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        url: Override address book URL.
        username: Override username.
        password: Override password.
        contacts_path: Override the local contact folder.
        sync_interval: Override the automatic sync interval in minutes.
        insecure: Skip SSL verification (CLI flag).
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flat dict of values from the YAML ``carddav`` and
            ``contacts`` sections. Used when CLI arg and env var are unset.

    Returns:
        Validated Config instance.

    Raises:
        ConfigurationError: If required config (URL, username, password) is
            missing after checking all sources, or a value is invalid.
    """
    fb = yaml_fallbacks or {}

    # --- String fields: CLI > env > YAML > error ---

    server_url = url or os.getenv("CARDDAV_URL") or fb.get("url")
    if not server_url:
        raise ConfigurationError(
            "CardDAV URL not found. Set CARDDAV_URL environment variable, "
            "pass --url CLI argument, or add 'url' to config.yml."
        )

    server_username = (
        username or os.getenv("CARDDAV_USERNAME") or fb.get("username")
    )
    if not server_username:
        raise ConfigurationError(
            "CardDAV username not found. Set CARDDAV_USERNAME environment variable, "
            "pass --username CLI argument, or add 'username' to config.yml."
        )

    server_password = (
        password or os.getenv("CARDDAV_PASSWORD") or fb.get("password")
    )
    if not server_password:
        raise ConfigurationError(
            "CardDAV password not found. Set CARDDAV_PASSWORD environment variable, "
            "pass --password CLI argument, or add 'password' to config.yml."
        )

    final_contacts_path = (
        contacts_path
        or os.getenv("CARDDAV_CONTACTS_PATH")
        or fb.get("path")
        or DEFAULT_CONTACTS_PATH
    )

    # --- Boolean fields: CLI > env > YAML > default ---

    if insecure:
        final_insecure = True
    else:
        env_insecure = _get_bool_env("CARDDAV_INSECURE")
        if env_insecure is not None:
            final_insecure = env_insecure
        else:
            final_insecure = bool(fb.get("insecure", False))

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("CARDDAV_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    # --- Numeric fields ---

    final_interval = _resolve_int(
        "CARDDAV_SYNC_INTERVAL",
        sync_interval,
        fb.get("sync_interval"),
        DEFAULT_SYNC_INTERVAL,
    )

    timeout_raw = os.getenv("CARDDAV_TIMEOUT")
    if timeout_raw is not None:
        try:
            final_timeout = float(timeout_raw)
        except ValueError:
            raise ConfigurationError(
                f"Invalid CARDDAV_TIMEOUT '{timeout_raw}': must be a number of seconds"
            ) from None
    elif "timeout" in fb:
        final_timeout = float(fb["timeout"])
    else:
        final_timeout = 60.0

    config = Config(
        server_url=server_url.strip(),
        username=server_username.strip(),
        password=server_password.strip(),
        contacts_path=final_contacts_path.strip(),
        sync_interval=final_interval,
        insecure=final_insecure,
        debug=final_debug,
        read_timeout=final_timeout,
    )

    validate_config(config)

    return config
