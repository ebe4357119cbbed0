"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ..config import Config, load_config
from ..config_loader import (
    discover_config_files,
    load_hierarchical_config,
)
from ..config_schema import LoggingConfig, build_config
from ..core.async_utils import run_sync
from ..core.client import CardDAVClient
from ..sync.engine import SyncEngine
from ..sync.models import SyncReport
from ..sync.observer import LoggingObserver
from ..sync.scheduler import SyncScheduler
from ..sync.store import MarkdownContactStore

logger = logging.getLogger(__name__)

_CREDENTIALS_HINT = "Check CARDDAV_URL, CARDDAV_USERNAME, CARDDAV_PASSWORD."


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


class NoticeObserver(LoggingObserver):
    """Logs like ``LoggingObserver`` and prints short notices to stderr."""

    def cycle_started(self) -> None:
        super().cycle_started()
        _stderr_print("Syncing contacts...")

    def cycle_completed(self, report: SyncReport) -> None:
        super().cycle_completed(report)
        notice = "Contacts synced"
        if report.errors:
            notice += f" with {len(report.errors)} errors"
        _stderr_print(notice)

    def cycle_failed(self, error: Exception) -> None:
        super().cycle_failed(error)
        _stderr_print(f"Contact sync failed: {error}")


@dataclass
class SyncContext:
    """Everything a tool handler needs, built once per server run."""

    config: Config
    client: CardDAVClient
    store: MarkdownContactStore
    engine: SyncEngine
    scheduler: SyncScheduler


def load_server_config(
    config_overrides: dict[str, Any] | None = None,
) -> tuple[Config, list[str]]:
    """
    Merge all configuration sources into a validated ``Config``.

    Precedence: CLI args > env vars (.env loaded first) > YAML config > defaults.

    Returns:
        Tuple of (config, descriptions of the sources that contributed).

    Raises:
        ValueError: If the configuration is missing or invalid.
    """
    # Load .env before YAML so ${VAR} interpolation can use .env values
    load_dotenv()

    yaml_fallbacks: dict[str, Any] | None = None
    sources: list[str] = []
    config_files = discover_config_files()
    if config_files:
        unified = build_config(load_hierarchical_config())
        yaml_fallbacks = unified.fallbacks()
        sources.append(f"config file: {config_files[0]}")

    overrides = config_overrides or {}
    config = load_config(
        url=overrides.get("url"),
        username=overrides.get("username"),
        password=overrides.get("password"),
        contacts_path=overrides.get("contacts_path"),
        sync_interval=overrides.get("sync_interval"),
        insecure=overrides.get("insecure", False),
        debug=overrides.get("debug", False),
        yaml_fallbacks=yaml_fallbacks,
    )

    if overrides:
        sources.append("CLI arguments")
    sources.append("environment variables")
    return config, sources


def load_logging_config() -> LoggingConfig:
    """Return the ``logging`` section of the YAML config, or its defaults."""
    load_dotenv()
    if not discover_config_files():
        return LoggingConfig()
    return build_config(load_hierarchical_config()).logging


def build_context(
    config: Config, observer: LoggingObserver | None = None
) -> SyncContext:
    """Wire the client, store, engine and scheduler for *config*."""
    client = CardDAVClient(config)
    store = MarkdownContactStore()
    engine = SyncEngine(
        remote=client,
        local_store=store,
        collection_path=Path(config.contacts_path),
        observer=observer,
    )
    scheduler = SyncScheduler(engine, interval_minutes=config.sync_interval)
    return SyncContext(
        config=config,
        client=client,
        store=store,
        engine=engine,
        scheduler=scheduler,
    )


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[SyncContext]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Load .env, YAML config and CLI overrides via ``load_server_config()``
    - Create the CardDAV client and validate the connection
    - Fail fast if the address book is unreachable
    - Start the periodic sync scheduler

    On shutdown:
    - Stop the scheduler, waiting for an in-flight sync to finish

    Args:
        config_overrides: Optional dict with config values from CLI.

    Yields:
        The initialized ``SyncContext``.

    Raises:
        RuntimeError: If configuration is invalid or the connection fails.
    """
    logger.info("MCP server starting...")
    _stderr_print("CardDAV Sync Server starting...")

    try:
        config, sources = load_server_config(config_overrides)
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        _stderr_print(
            "  Ensure CARDDAV_URL, CARDDAV_USERNAME, CARDDAV_PASSWORD are set."
        )
        raise RuntimeError(
            f"Configuration error: {e}. Ensure CARDDAV_URL, CARDDAV_USERNAME, CARDDAV_PASSWORD are set."
        ) from e

    source_desc = ", ".join(sources)
    logger.info("Configuration loaded from: %s", source_desc)
    _stderr_print(f"  Configuration loaded from: {source_desc}")
    logger.info("Address book URL: %s", config.server_url)
    _stderr_print(f"  Address book URL: {config.server_url}")

    ctx = build_context(config, observer=NoticeObserver())

    logger.info("Validating CardDAV connection...")
    _stderr_print("  Validating CardDAV connection...")
    try:
        await run_sync(ctx.client.test_connection)
    except Exception as e:
        logger.error("Failed to connect to CardDAV server: %s", e)
        _stderr_print("ERROR: CardDAV connection failed.")
        _stderr_print(f"  {e}")
        _stderr_print(f"  {_CREDENTIALS_HINT}")
        raise RuntimeError(
            f"CardDAV connection failed: {e}. {_CREDENTIALS_HINT}"
        ) from e

    _stderr_print(f"  Contacts folder: {config.contacts_path}")
    ctx.scheduler.start()
    if config.sync_interval:
        _stderr_print(f"  Automatic sync every {config.sync_interval} minutes")
    else:
        _stderr_print("  Automatic sync disabled")
    _stderr_print("Server ready. Waiting for MCP client connection...")

    try:
        yield ctx
    finally:
        await ctx.scheduler.stop()
        logger.info("MCP server shutting down")
        _stderr_print("CardDAV Sync Server shutting down.")
