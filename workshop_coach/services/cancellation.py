"""
Cancellation Token
==================

Caller-initiated, cooperative cancellation for streaming exchanges. Every
await that may block on the network goes through `CancellationToken.race`
so a cancel takes effect without waiting for the next chunk.
"""

import asyncio
import logging
from typing import Awaitable, TypeVar

from ..errors import StreamCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """One-shot cancel signal shared by a session and its transport call."""

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise StreamCancelled()

    async def race(self, awaitable: Awaitable[T]) -> T:
        """
        Await `awaitable` unless the token fires first.

        Raises:
            StreamCancelled: the token was, or became, cancelled; the
                awaitable is cancelled and its result discarded
        """
        task = asyncio.ensure_future(awaitable)
        if self.cancelled:
            await self._discard(task)
            raise StreamCancelled()

        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except BaseException:
            # Caller was cancelled while waiting; let the call unwind first
            task.cancel()
            await asyncio.wait({task})
            if not task.cancelled() and task.exception() is not None:
                logger.debug(f"[CANCELLATION] Call failed while unwinding: {task.exception()!r}")
            raise
        finally:
            waiter.cancel()

        if self.cancelled:
            await self._discard(task)
            raise StreamCancelled()
        return task.result()

    @staticmethod
    async def _discard(task: "asyncio.Future") -> None:
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug(f"[CANCELLATION] Discarded result of cancelled call: {e!r}")
