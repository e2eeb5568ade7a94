"""
Cancellation of in-flight outbound work when the inbound client disconnects.

The request body has already been consumed when the work starts, so the
next ASGI message on the receive channel is `http.disconnect`. A watcher
task waits for it and cancels the work when it arrives first.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

from starlette.requests import Request

from cepweather.core.errors import ClientDisconnected

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _wait_for_disconnect(request: Request) -> None:
    while True:
        message = await request.receive()
        if message["type"] == "http.disconnect":
            return


async def run_until_disconnect(request: Request, work: Awaitable[T]) -> T:
    """Await work, cancelling it if the client disconnects first.

    Args:
        request: The inbound request whose body has been fully read
        work: Coroutine performing the outbound calls

    Returns:
        The result of work

    Raises:
        ClientDisconnected: If the client went away before work finished
    """
    work_task = asyncio.ensure_future(work)
    watcher = asyncio.ensure_future(_wait_for_disconnect(request))
    try:
        await asyncio.wait({work_task, watcher}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        work_task.cancel()
        raise
    finally:
        watcher.cancel()

    if not work_task.done():
        work_task.cancel()
        try:
            await work_task
        except asyncio.CancelledError:
            pass
        logger.info("Client disconnected from %s, outbound work cancelled", request.url.path)
        raise ClientDisconnected("client disconnected")

    return work_task.result()
