"""
Bounded entity pools.

Every pool has a hard capacity enforced on ``insert`` and a per-tick
``tick()`` / ``reap()`` pair. Eviction is capacity driven and immediate;
decay and reaping are time driven. The engine calls tick then reap on each
pool once per frame.

Links never hold cells directly. They carry integer handles into the
``CellArena`` and resolve them with ``CellArena.get``, which returns None
for any cell that has been evicted or reaped.
"""

import logging
import random
from typing import Dict, Generic, Iterator, List, Optional, Protocol, TypeVar

from .entities import Cell, Link, Particle, Voice
from .utils import DefaultRandomPolicy, RandomPolicy, evict_oldest

log = logging.getLogger(__name__)

T = TypeVar("T")


class VoiceSink(Protocol):
    """Audio collaborator: receives voices to sound and voices to silence."""

    def start(self, voice: Voice) -> None: ...
    def stop(self, voice: Voice) -> None: ...


class EntityPool(Generic[T]):
    """Insertion-ordered list with a capacity and a batch eviction policy."""

    def __init__(self, capacity: int, evict_batch: int = 1):
        self.capacity = capacity
        self.evict_batch = evict_batch
        self._items: List[T] = []
        self.evicted = 0

    def insert(self, item: T) -> None:
        self._items.append(item)
        if len(self._items) > self.capacity:
            dropped = evict_oldest(self._items, self.evict_batch)
            self.evicted += len(dropped)

    def _alive(self, item: T) -> bool:
        return item.alive  # type: ignore[attr-defined]

    def reap(self) -> int:
        """Drop dead entities, keeping survivors in order. Returns how many were removed."""
        before = len(self._items)
        self._items = [it for it in self._items if self._alive(it)]
        return before - len(self._items)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))


class VoicePool(EntityPool[Voice]):
    """Active voices. Evicts (and force-stops) the single oldest voice when full."""

    def __init__(self, capacity: int, sink: Optional[VoiceSink] = None):
        super().__init__(capacity, evict_batch=1)
        self.sink = sink
        self._next_id = 0

    def insert(self, voice: Voice) -> None:
        while len(self._items) >= self.capacity:
            old = self._items.pop(0)
            self.evicted += 1
            self._stop(old)
            log.debug("voice %d force-stopped (pool full)", old.voice_id)
        self._next_id += 1
        voice.voice_id = self._next_id
        self._items.append(voice)
        if self.sink is not None:
            self.sink.start(voice)

    def _stop(self, voice: Voice) -> None:
        if voice.stopped:
            return
        voice.stopped = True
        if self.sink is not None:
            self.sink.stop(voice)

    def tick(self, now: float) -> None:
        for voice in self._items:
            if voice.expired(now):
                self._stop(voice)

    def _alive(self, item: Voice) -> bool:
        return not item.stopped

    def stop_all(self) -> None:
        for voice in self._items:
            self._stop(voice)
        self._items.clear()


class CellArena:
    """Cells keyed by stable integer handles, oldest first."""

    def __init__(self, capacity: int, decay: float = 0.26):
        self.capacity = capacity
        self.decay = decay
        self._cells: Dict[int, Cell] = {}
        self._next_handle = 0
        self.evicted = 0

    def insert(self, cell: Cell) -> int:
        handle = self._next_handle
        self._next_handle += 1
        cell.handle = handle
        self._cells[handle] = cell
        while len(self._cells) > self.capacity:
            oldest = next(iter(self._cells))
            del self._cells[oldest]
            self.evicted += 1
        return handle

    def get(self, handle: int) -> Optional[Cell]:
        """The live cell behind ``handle``, or None once it is gone."""
        cell = self._cells.get(handle)
        if cell is None or not cell.alive:
            return None
        return cell

    def __contains__(self, handle: int) -> bool:
        return self.get(handle) is not None

    def random_handle(
        self, rng: random.Random, policy: Optional[RandomPolicy] = None
    ) -> Optional[int]:
        if not self._cells:
            return None
        policy = policy or DefaultRandomPolicy()
        return policy.choice(self._cells.keys(), rng=rng)

    def tick(self, frame: int) -> None:
        for cell in self._cells.values():
            cell.update(frame, self.decay)

    def reap(self) -> int:
        dead = [h for h, c in self._cells.items() if not c.alive]
        for h in dead:
            del self._cells[h]
        return len(dead)

    def handles(self) -> List[int]:
        return list(self._cells.keys())

    def clear(self) -> None:
        self._cells.clear()

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(list(self._cells.values()))


class LinkPool(EntityPool[Link]):
    """Links between arena cells. Bulk-evicts the oldest batch when full."""

    def __init__(
        self,
        capacity: int,
        arena: CellArena,
        *,
        evict_batch: int = 12,
        decay: float = 0.6,
        autonomous_decay: float = 0.8,
        dying_threshold: float = 12.0,
        dying_extra_decay: float = 1.4,
    ):
        super().__init__(capacity, evict_batch=evict_batch)
        self.arena = arena
        self.decay = decay
        self.autonomous_decay = autonomous_decay
        self.dying_threshold = dying_threshold
        self.dying_extra_decay = dying_extra_decay

    def _endpoint_dying(self, handle: int) -> bool:
        cell = self.arena.get(handle)
        return cell is None or cell.life < self.dying_threshold

    def tick(self) -> None:
        for link in self._items:
            if link.a not in self.arena or link.b not in self.arena:
                # orphaned: never outlive the grace window
                link.life = min(link.life, self.dying_threshold)
            link.life -= self.autonomous_decay if link.autonomous else self.decay
            if self._endpoint_dying(link.a) or self._endpoint_dying(link.b):
                link.life -= self.dying_extra_decay


class ParticlePool(EntityPool[Particle]):
    def __init__(self, capacity: int, *, evict_batch: int = 200, decay: float = 3.1):
        super().__init__(capacity, evict_batch=evict_batch)
        self.decay = decay

    def tick(self) -> None:
        for p in self._items:
            p.update(self.decay)
