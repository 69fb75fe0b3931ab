import asyncio
import inspect
import logging
from typing import Awaitable, Callable, List, Set

logger = logging.getLogger(__name__)

# Strong references; the loop only keeps weak ones to running tasks
_background_tasks: Set[asyncio.Future] = set()


def spawn(awaitable: Awaitable) -> asyncio.Future:
    """Schedule `awaitable` on the running loop and log it if it fails."""
    task = asyncio.ensure_future(awaitable)
    _background_tasks.add(task)
    task.add_done_callback(_task_done)
    return task


def _task_done(task: asyncio.Future) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task failed: {exc!r}", exc_info=exc)


class Signal:
    """
    Minimal observer list. Listeners are called in registration order;
    coroutine listeners are scheduled on the running loop.
    """

    def __init__(self, name: str):
        self.name = name
        self._listeners: List[Callable] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def connect(self, listener: Callable, once: bool = False) -> Callable:
        if once:
            def wrapper(*args):
                self.disconnect(wrapper)
                return listener(*args)

            self._listeners.append(wrapper)
            return wrapper

        self._listeners.append(listener)
        return listener

    def disconnect(self, listener: Callable) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, *args) -> None:
        for listener in list(self._listeners):
            result = listener(*args)
            if inspect.isawaitable(result):
                spawn(result)
