"""
Events that travel between nodes, and the bus that carries them.

Input nodes publish ``ImpulseEvent`` / ``ReleaseEvent`` / ``GestureEvent``,
the frame clock publishes ``TickEvent``, and the instrument answers with
``MoodEvent`` and (optionally) ``FrameEvent``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Generic, List, Optional, Type, TypeVar

from .geometry import FrameSnapshot

log = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")


@dataclass(frozen=True)
class Event:
    """Base event; ``t`` is the monotonic publish time."""

    t: float = field(default_factory=time.monotonic)


@dataclass(frozen=True)
class TickEvent(Event):
    """Frame tick from the clock."""

    frame: int = 0


@dataclass(frozen=True)
class ImpulseEvent(Event):
    """Normalized note impulse from any input device."""

    pitch: int = 60
    velocity: int = 100
    source: str = "midi"


@dataclass(frozen=True)
class ReleaseEvent(Event):
    """Note-off or contact lift; relaxes the global energy by ``factor``."""

    factor: float = 0.92
    source: str = "midi"


@dataclass(frozen=True)
class GestureEvent(Event):
    """User gesture that may unlock audio."""

    source: str = "keyboard"


@dataclass(frozen=True)
class MoodEvent(Event):
    mood: str = "calm"
    previous: str = "calm"


@dataclass(frozen=True)
class FrameEvent(Event):
    """Render attributes for one frame."""

    snapshot: Optional[FrameSnapshot] = None


class EventFilter:
    """Narrows a subscription by event type, input source and/or a predicate."""

    def __init__(
        self,
        event_type: Optional[Type[Event]] = None,
        source: Optional[str] = None,
        predicate: Optional[Callable[[Event], bool]] = None,
    ):
        self.event_type = event_type
        self.source = source
        self.predicate = predicate

    def matches(self, ev: Event) -> bool:
        if self.event_type is not None and not isinstance(ev, self.event_type):
            return False
        if self.source is not None and getattr(ev, "source", None) != self.source:
            return False
        return self.predicate is None or bool(self.predicate(ev))


class Subscription(Generic[E]):
    """
    One subscriber's bounded inbox.

    Filtering happens on delivery, so a queue only ever holds events its
    owner asked for. ``async for ev in sub`` reads until the task is
    cancelled.
    """

    def __init__(
        self,
        bus: "EventBus",
        event_type: Type[E],
        max_queue: int,
        filter: Optional[EventFilter] = None,
    ):
        self.bus = bus
        self.event_type = event_type
        self.filter = filter
        self.queue: "asyncio.Queue[E]" = asyncio.Queue(maxsize=max_queue)
        self.dropped = 0
        self.closed = False

    def wants(self, ev: Event) -> bool:
        if self.closed or not isinstance(ev, self.event_type):
            return False
        return self.filter is None or self.filter.matches(ev)

    def deliver(self, ev: E) -> bool:
        """Queue ``ev`` without blocking; a full inbox drops it."""
        try:
            self.queue.put_nowait(ev)
        except asyncio.QueueFull:
            self.dropped += 1
            return False
        return True

    async def recv(self) -> E:
        return await self.queue.get()

    def try_recv(self) -> Optional[E]:
        try:
            return self.queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def __aiter__(self) -> AsyncIterator[E]:
        return self

    async def __anext__(self) -> E:
        if self.closed and self.queue.empty():
            raise StopAsyncIteration
        return await self.recv()

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        await self.bus._remove(self)


class EventBus:
    """
    Async pub/sub between nodes.

    ``publish`` never waits on a slow subscriber: each subscriber has its own
    bounded inbox and overflow is dropped and counted in ``dropped``.
    """

    def __init__(self):
        self._subs: List[Subscription] = []
        self._lock = asyncio.Lock()
        self.dropped = 0

    async def subscribe(
        self,
        event_type: Type[E],
        filter: Optional[EventFilter] = None,
        max_queue: int = 2048,
    ) -> Subscription[E]:
        sub = Subscription(self, event_type, max_queue, filter)
        async with self._lock:
            self._subs.append(sub)
        return sub

    async def _remove(self, sub: Subscription) -> None:
        async with self._lock:
            if sub in self._subs:
                self._subs.remove(sub)

    async def publish(self, ev: Event) -> int:
        """Deliver ``ev`` to every interested subscriber. Returns how many got it."""
        async with self._lock:
            targets = [s for s in self._subs if s.wants(ev)]
        delivered = 0
        for sub in targets:
            if sub.deliver(ev):
                delivered += 1
            else:
                self.dropped += 1
                log.debug("bus: dropped %s for a full %s inbox", type(ev).__name__, sub.event_type.__name__)
        return delivered

    def __len__(self) -> int:
        return len(self._subs)
