"""
YAML config file discovery and loading for carddav_sync.

A project file (``./.carddav_sync/config.yml``) and a global file
(``~/.config/carddav_sync/config.yml``) are combined key by key inside
each section, so credentials can live in the global file while the
project file names the address book and notes folder.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CARDDAV_SYNC_CONFIG"
CONFIG_DIR_NAME = ".carddav_sync"

# ${VAR} or ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")

_STARTER_CONFIG = """\
# carddav-sync configuration
#
# Connection settings can also be set via environment variables:
#   CARDDAV_URL, CARDDAV_USERNAME, CARDDAV_PASSWORD, CARDDAV_INSECURE
#
# carddav:
#   url: https://dav.example.com/addressbooks/me/contacts/
#   username: me
#   password: ${CARDDAV_PASSWORD}
#   insecure: false
#   timeout: 60
#
# contacts:
#   path: Contacts
#   sync_interval: 30   # minutes, 0 disables automatic sync
#
# logging:
#   level: INFO
#   file: null
"""


def interpolate_env_vars(value: Any) -> Any:
    """Expand ``${VAR}`` and ``${VAR:-default}`` in every string of *value*.

    Unset or empty variables expand to the default when one is given,
    otherwise to the empty string.
    """
    if isinstance(value, dict):
        return {k: interpolate_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [interpolate_env_vars(item) for item in value]
    if not isinstance(value, str):
        return value

    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1)) or match.group(2) or ""

    return _ENV_VAR_PATTERN.sub(_replace, value)


def discover_config_files() -> list[Path]:
    """Return existing config files, highest precedence first.

    ``CARDDAV_SYNC_CONFIG`` comes first, then ``config.yml`` or
    ``config.yaml`` under ``./.carddav_sync/``, then the global file.
    """
    candidates: list[Path] = []
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).expanduser().resolve())

    project_dir = Path.cwd() / CONFIG_DIR_NAME
    candidates.append(project_dir / "config.yml")
    candidates.append(project_dir / "config.yaml")
    candidates.append(Path.home() / ".config" / "carddav_sync" / "config.yml")

    return [p for p in candidates if p.exists()]


def ensure_config() -> Path:
    """Return the active config file, writing the commented starter if none exists."""
    existing = discover_config_files()
    if existing:
        logger.debug("Config file already exists: %s", existing[0])
        return existing[0]

    config_path = Path.cwd() / CONFIG_DIR_NAME / "config.yml"
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", config_path)
    return config_path


def _read_file(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Config file {path} must be a mapping of sections, "
            f"got {type(data).__name__}"
        )
    return data


def load_hierarchical_config() -> dict[str, Any]:
    """Load every discovered config file and combine them.

    Sections that are mappings in more than one file are merged key by key,
    the higher-precedence file winning; any other value is replaced whole.
    Env var references are expanded after the merge.  Returns ``{}`` when
    no config file exists.

    Raises:
        yaml.YAMLError: If a file is not valid YAML.
        ValueError: If a file's root is not a mapping.
    """
    merged: dict[str, Any] = {}
    for path in reversed(discover_config_files()):
        logger.debug("Loading config: %s", path)
        for section, value in _read_file(path).items():
            current = merged.get(section)
            if isinstance(current, dict) and isinstance(value, dict):
                merged[section] = {**current, **value}
            else:
                merged[section] = value

    return interpolate_env_vars(merged)
