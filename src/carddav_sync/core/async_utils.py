"""Async utilities for running the blocking sync engine from asyncio code."""

import asyncio
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Used to call the blocking CardDAV client and the sync engine from the
    MCP handlers and the scheduler.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        client = CardDAVClient(config)
        await run_sync(client.test_connection)
    """
    return await asyncio.to_thread(func, *args, **kwargs)
