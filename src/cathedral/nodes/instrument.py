"""
Instrument node: the engine on the event loop.
"""

import logging
from typing import Iterable, Optional

from ..engine import ImpulseEngine
from ..events import (
    Event,
    EventBus,
    EventFilter,
    FrameEvent,
    GestureEvent,
    ImpulseEvent,
    MoodEvent,
    ReleaseEvent,
    TickEvent,
)
from ..geometry import snapshot
from ..normalizer import Gesture, Impulse, Release, Signal
from .base import Node

log = logging.getLogger(__name__)

_INPUT_EVENTS = (TickEvent, ImpulseEvent, ReleaseEvent, GestureEvent)


def signal_to_event(sig: Signal, source: str) -> Event:
    if isinstance(sig, Impulse):
        return ImpulseEvent(pitch=sig.pitch, velocity=sig.velocity, source=source)
    if isinstance(sig, Release):
        return ReleaseEvent(factor=sig.factor, source=source)
    if isinstance(sig, Gesture):
        return GestureEvent(source=source)
    raise TypeError(f"unknown signal {sig!r}")


async def publish_signals(bus: EventBus, signals: Iterable[Signal], source: str) -> None:
    """Forward normalizer output onto the bus, in order."""
    for sig in signals:
        await bus.publish(signal_to_event(sig, source))


class InstrumentNode(Node):
    """
    Owns an ImpulseEngine and feeds it from the bus.

    Impulses, releases, gestures and ticks arrive through one subscription
    and each is handled to completion before the next, so the engine's pools
    are only ever touched from this coroutine.
    """

    def __init__(
        self,
        bus: EventBus,
        engine: ImpulseEngine,
        *,
        publish_frames: bool = False,
        seed: bool = True,
    ):
        self.bus = bus
        self.engine = engine
        self.publish_frames = publish_frames
        self.seed = seed

    async def handle(self, ev: Event) -> None:
        eng = self.engine
        if isinstance(ev, TickEvent):
            eng.tick()
            if self.publish_frames:
                await self.bus.publish(FrameEvent(snapshot=snapshot(eng.state)))
        elif isinstance(ev, ImpulseEvent):
            before = eng.state.mood.current
            eng.on_impulse(ev.pitch, ev.velocity)
            after = eng.state.mood.current
            if after is not before:
                await self.bus.publish(MoodEvent(mood=after.value, previous=before.value))
        elif isinstance(ev, ReleaseEvent):
            eng.release(ev.factor)
        elif isinstance(ev, GestureEvent):
            eng.unlock()

    async def start(self) -> None:
        if self.seed:
            self.engine.seed()
        sub = await self.bus.subscribe(
            Event, filter=EventFilter(predicate=lambda e: isinstance(e, _INPUT_EVENTS))
        )
        try:
            async for ev in sub:
                await self.handle(ev)
        finally:
            await sub.close()

    def stop(self) -> None:
        self.engine.shutdown()
