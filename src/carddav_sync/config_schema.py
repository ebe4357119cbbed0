"""Unified configuration schema for carddav_sync.

Defines Pydantic models for the unified config structure with dedicated
sections for the CardDAV connection, the local contact collection and
logging.

Usage:
    from carddav_sync.config_schema import UnifiedConfig, build_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
    fallbacks = unified.fallbacks()
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class CardDAVConfig(BaseModel):
    """CardDAV server connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    url: str | None = Field(
        default=None, description="Address book collection URL"
    )
    username: str | None = Field(
        default=None, description="CardDAV username"
    )
    password: str | None = Field(
        default=None, description="CardDAV password"
    )
    insecure: bool = Field(
        default=False,
        description="Disable SSL verification (development only)",
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    timeout: float = Field(
        default=60.0,
        gt=0,
        le=600,
        description="Read timeout for CardDAV requests in seconds",
    )

    model_config = {"frozen": True}


class ContactsConfig(BaseModel):
    """Local contact collection settings.

    Attributes:
        path: Folder holding one Markdown note per contact.
        sync_interval: Minutes between automatic syncs (0 disables).
    """

    path: str = Field(
        default="Contacts", min_length=1, description="Contact folder"
    )
    sync_interval: int = Field(
        default=30,
        ge=0,
        description="Minutes between automatic syncs (0 disables)",
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unset keeps the per-mode default.
        file: Optional log file path.
    """

    level: str | None = Field(default=None, description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Aggregates all config sections. Every section has sensible defaults,
    so ``UnifiedConfig()`` (zero-config) is always valid.
    """

    carddav: CardDAVConfig = Field(default_factory=CardDAVConfig)
    contacts: ContactsConfig = Field(default_factory=ContactsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}

    def fallbacks(self) -> dict[str, Any]:
        """Flatten the ``carddav`` and ``contacts`` sections for ``load_config``.

        ``None`` values are dropped so they never shadow built-in defaults.
        """
        merged = {
            **self.carddav.model_dump(),
            **self.contacts.model_dump(),
        }
        return {k: v for k, v in merged.items() if v is not None}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully: anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)
