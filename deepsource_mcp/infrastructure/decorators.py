"""
Decorators for cross-cutting concerns around API calls and tool handlers.

Decorators:
-   `async_timing_decorator`: Logs the execution time of an asynchronous function.
-   `mcp_try_except`: Converts exceptions raised by MCP tool handlers into
    error payloads.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from functools import wraps

from loguru import logger

from deepsource_mcp.core import logs as ls


def async_timing_decorator[**P, T](
    func: Callable[P, Awaitable[T]],
) -> Callable[P, Awaitable[T]]:
    """
    Decorator that logs the execution time of an asynchronous function.

    Args:
        func: The async function to wrap.

    Returns:
        The wrapped async function.
    """

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        start = time.perf_counter()
        try:
            return await func(*args, **kwargs)
        finally:
            elapsed = (time.perf_counter() - start) * 1000
            logger.debug(ls.FUNC_TIMING.format(func=func.__qualname__, time=elapsed))

    return wrapper


def mcp_try_except[T](
    error_factory: Callable[[BaseException], T],
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator factory that wraps an async tool handler in a try...except block.

    Cancellation and interpreter shutdown still propagate; every other
    exception is logged and handed to `error_factory`.

    Args:
        error_factory: Builds the error response from the raised exception.

    Returns:
        A decorator function.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except (asyncio.CancelledError, KeyboardInterrupt, SystemExit):
                raise
            except Exception as e:
                logger.error(
                    ls.MCP_SERVER_TOOL_ERROR.format(name=func.__name__, error=e)
                )
                return error_factory(e)

        return wrapper

    return decorator
