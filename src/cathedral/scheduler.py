"""
Delayed response scheduling.

Responses are plain heap entries with a due time. The simulation tick
drains whatever is due, so a response always runs between two ticks and
never interleaves with an impulse or with decay.
"""

import heapq
from dataclasses import dataclass
from typing import List, Tuple


@dataclass(frozen=True)
class ScheduledResponse:
    due: float
    pitch: int
    velocity: int
    scheduled_at: float


class ResponseScheduler:
    """Min-heap of pending responses ordered by due time, then scheduling order."""

    def __init__(self):
        self._heap: List[Tuple[float, int, ScheduledResponse]] = []
        self._counter = 0

    def schedule_at(self, when: float, pitch: int, velocity: int, now: float) -> ScheduledResponse:
        entry = ScheduledResponse(due=when, pitch=pitch, velocity=velocity, scheduled_at=now)
        self._counter += 1
        heapq.heappush(self._heap, (when, self._counter, entry))
        return entry

    def schedule_in(self, delay_s: float, pitch: int, velocity: int, now: float) -> ScheduledResponse:
        return self.schedule_at(now + max(0.0, delay_s), pitch, velocity, now)

    def pop_due(self, now: float) -> List[ScheduledResponse]:
        """Remove and return every entry due at or before ``now``, earliest first."""
        due: List[ScheduledResponse] = []
        while self._heap and self._heap[0][0] <= now:
            due.append(heapq.heappop(self._heap)[2])
        return due

    def next_due(self) -> float:
        return self._heap[0][0] if self._heap else float("inf")

    def pending(self) -> List[ScheduledResponse]:
        return [entry for _, _, entry in sorted(self._heap)]

    def __len__(self) -> int:
        return len(self._heap)
