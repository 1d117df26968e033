from __future__ import annotations

import asyncio
import logging
from typing import Callable, TypeVar

from fastapi import Request

from engine.cancel import CancelScope
from errors import QueryCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")

DISCONNECT_POLL_S = 0.05


def _reap(task: asyncio.Future) -> None:
    # The worker result is unwanted once the client is gone; just mark it retrieved.
    if not task.cancelled():
        task.exception()


async def run_cancellable(
    request: Request,
    fn: Callable[[CancelScope], T],
    *,
    poll_s: float = DISCONNECT_POLL_S,
) -> T:
    """
    Run blocking `fn(scope)` in a worker thread while watching the client.

    If the client disconnects first, the scope is cancelled (which interrupts the
    store query) and QueryCancelled is raised without waiting for the worker.
    """
    scope = CancelScope()
    task = asyncio.ensure_future(asyncio.to_thread(fn, scope))
    while True:
        done, _ = await asyncio.wait({task}, timeout=poll_s)
        if done:
            return task.result()
        if await request.is_disconnected():
            logger.info("Client disconnected; cancelling %s %s", request.method, request.url.path)
            scope.cancel()
            task.add_done_callback(_reap)
            raise QueryCancelled("client disconnected")
