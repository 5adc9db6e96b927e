import asyncio
import inspect
from typing import Any, Awaitable


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def synchronize(result: Any) -> Any:
    """Drive an awaitable to completion from synchronous code; plain values pass through.

    Raises
    ------
    RuntimeError
        If called while an event loop is already running in this thread.
    """
    if not inspect.isawaitable(result):
        return result

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(_await(result))

    if inspect.iscoroutine(result):
        result.close()
    raise RuntimeError("Cannot wait for an async tool while an event loop is running in this thread")
