"""Bounded producer/consumer bridge between a DiscussionEngine and a transport."""

import asyncio
import logging
from contextlib import aclosing

from roundtable.engine import DiscussionEngine
from roundtable.events import DiscussionEvent, ErrorEvent, ModeratorPromptEvent

logger = logging.getLogger(__name__)

_DONE = object()


class EventChannel:
    """Runs the engine in a producer task that pushes events onto a bounded queue.

    A full queue suspends the producer, so a slow consumer paces the engine.
    close() cancels the engine and the producer; a closed channel cannot be
    resumed. With pause_on_moderator_prompt the producer waits after each
    moderator prompt until the consumer calls resume(), leaving room to add
    a moderator comment before the next turn is built.

    Usage::

        async with EventChannel(engine) as channel:
            async for event in channel:
                ...
    """

    def __init__(
        self,
        engine: DiscussionEngine,
        maxsize: int = 64,
        pause_on_moderator_prompt: bool = False,
    ) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")
        self._engine = engine
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._pause_on_moderator_prompt = pause_on_moderator_prompt
        self._resume = asyncio.Event()
        self._task: asyncio.Task | None = None
        self._closed = False
        self._finished = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("Channel already started")
        self._task = asyncio.create_task(self._produce())

    def resume(self) -> None:
        """Let a producer paused on a moderator prompt continue."""
        self._resume.set()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._engine.cancel()
        self._resume.set()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def _produce(self) -> None:
        try:
            async with aclosing(self._engine.run()) as events:
                async for event in events:
                    if self._closed:
                        break
                    if isinstance(event, ModeratorPromptEvent) and self._pause_on_moderator_prompt:
                        self._resume.clear()
                        await self._queue.put(event)
                        await self._resume.wait()
                    else:
                        await self._queue.put(event)
        except Exception as exc:
            logger.exception("Discussion producer failed")
            await self._queue.put(ErrorEvent(message=str(exc) or "Unknown error occurred"))
        finally:
            if not self._closed:
                await self._queue.put(_DONE)

    def __aiter__(self) -> "EventChannel":
        return self

    async def __anext__(self) -> DiscussionEvent:
        if self._finished or self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _DONE:
            self._finished = True
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> "EventChannel":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
