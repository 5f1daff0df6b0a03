"""Coalesce concurrent calls to one async operation."""
import asyncio
from typing import Any, Awaitable, Callable, Optional


class SingleFlight:
    """
    At most one call of the wrapped coroutine function runs at a time.

    The first caller of :meth:`run` starts ``fn``; callers arriving while it
    is in flight await the same future and get the same result or
    exception. The slot clears as soon as the call settles, so the next
    caller starts a fresh one.
    """

    def __init__(self):
        self._future: Optional[asyncio.Future] = None

    @property
    def in_flight(self) -> bool:
        return self._future is not None

    async def run(self, fn: Callable[[], Awaitable[Any]]) -> Any:
        if self._future is not None:
            # shield: a cancelled waiter must not cancel the shared call
            return await asyncio.shield(self._future)

        future = asyncio.get_running_loop().create_future()
        self._future = future
        try:
            result = await fn()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            # Mark retrieved so an unawaited failure is not reported by asyncio
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._future = None
