"""Async utilities for bridging blocking HTTP calls to async MCP handlers."""

import asyncio
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a worker thread without blocking the event loop.

    Example:
        # In an MCP tool handler:
        issue = await run_sync(client.get_issue, "PROJ-1", fields=["summary"])
    """
    return await asyncio.to_thread(func, *args, **kwargs)
