"""Per-key deduplication of concurrent asynchronous loads."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Generic, Hashable, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")

IsCurrent = Callable[[], bool]


def _retrieve_exception(task: "asyncio.Task[Any]") -> None:
    # Every caller may have gone away; keep asyncio from reporting the error as unhandled
    if not task.cancelled():
        task.exception()


class SingleFlight(Generic[T]):
    """
    Runs at most one load per key at a time and shares it with every caller.
    
    The load runs in its own task. Callers await it through ``asyncio.shield``,
    so a caller being cancelled never cancels a load others are waiting on.
    ``forget`` detaches a key's load: its waiters still get the result, but
    ``is_current()`` turns false for it and the next caller starts a new load.
    """
    
    def __init__(self):
        self._inflight: Dict[Hashable, "asyncio.Task[T]"] = {}
        self.started = 0
        self.shared = 0
    
    async def do(self, key: Hashable, fn: Callable[[IsCurrent], Awaitable[T]]) -> T:
        """Run ``fn`` for ``key`` unless a load for it is already in flight, then await the result."""
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run(key, fn))
            task.add_done_callback(_retrieve_exception)
            self._inflight[key] = task
            self.started += 1
        else:
            self.shared += 1
        return await asyncio.shield(task)
    
    async def _run(self, key: Hashable, fn: Callable[[IsCurrent], Awaitable[T]]) -> T:
        task = asyncio.current_task()
        
        def is_current() -> bool:
            return self._inflight.get(key) is task
        
        try:
            return await fn(is_current)
        finally:
            if is_current():
                del self._inflight[key]
    
    def is_in_flight(self, key: Hashable) -> bool:
        return key in self._inflight
    
    def forget(self, key: Hashable) -> None:
        self._inflight.pop(key, None)
    
    def forget_where(self, predicate: Callable[[Hashable], bool]) -> int:
        keys = [key for key in self._inflight if predicate(key)]
        for key in keys:
            del self._inflight[key]
        return len(keys)
    
    def forget_all(self) -> None:
        self._inflight.clear()
    
    def __len__(self) -> int:
        return len(self._inflight)
