"""
Unattended player for demos and soak runs.
"""

import asyncio
import random
from typing import Optional, Tuple

from ..events import EventBus, GestureEvent, ImpulseEvent, ReleaseEvent
from ..utils import DefaultRandomPolicy, RandomPolicy
from .base import Node


class RandomImpulseNode(Node):
    """Plays random notes at random intervals, releasing each one afterwards."""

    def __init__(
        self,
        bus: EventBus,
        *,
        pitch_range: Tuple[int, int] = (36, 90),
        velocity_range: Tuple[int, int] = (40, 127),
        interval: Tuple[float, float] = (0.15, 0.9),
        release_factor: float = 0.92,
        rng: Optional[random.Random] = None,
        random_policy: RandomPolicy = None,
    ):
        self.bus = bus
        self.pitch_range = pitch_range
        self.velocity_range = velocity_range
        self.interval = interval
        self.release_factor = release_factor
        self.rng = rng or random.Random()
        self.random_policy = random_policy or DefaultRandomPolicy()
        self._running = False

    async def start(self) -> None:
        self._running = True
        await self.bus.publish(GestureEvent(source="demo"))
        while self._running:
            pitch = self.rng.randint(*self.pitch_range)
            velocity = self.rng.randint(*self.velocity_range)
            await self.bus.publish(ImpulseEvent(pitch=pitch, velocity=velocity, source="demo"))
            await asyncio.sleep(self.random_policy.uniform(*self.interval, rng=self.rng))
            await self.bus.publish(ReleaseEvent(factor=self.release_factor, source="demo"))

    def stop(self) -> None:
        self._running = False
