"""
Frame clock.
"""

import asyncio
import time

from ..events import EventBus, TickEvent
from .base import Node


class FrameClock(Node):
    """Publishes a TickEvent at a fixed frame rate."""

    def __init__(self, bus: EventBus, fps: float = 60.0, max_frames: int = 0):
        self.bus = bus
        self.fps = fps
        self.max_frames = max_frames
        self.frame = 0
        self._running = False

    def seconds_per_frame(self) -> float:
        return 1.0 / max(1e-9, self.fps)

    async def start(self) -> None:
        self._running = True
        spf = self.seconds_per_frame()
        next_t = time.monotonic()
        while self._running:
            self.frame += 1
            await self.bus.publish(TickEvent(frame=self.frame))
            if self.max_frames and self.frame >= self.max_frames:
                break
            # sleep to the frame grid, not a fixed interval
            next_t += spf
            await asyncio.sleep(max(0.0, next_t - time.monotonic()))

    def stop(self) -> None:
        self._running = False
