"""
Runs a set of nodes on one event loop.
"""

import asyncio
import logging
from typing import List, Optional

from .events import EventBus
from .nodes.base import Node

log = logging.getLogger(__name__)


class System:
    """
    Starts every node as its own task and tears them all down together.

    A node that raises is logged and left finished; the others keep
    running, so losing MIDI or the demo player never silences the engine.
    """

    def __init__(self, bus: Optional[EventBus] = None):
        self.bus = bus or EventBus()
        self.nodes: List[Node] = []
        self._tasks: List[asyncio.Task] = []

    def add(self, *nodes: Node) -> "System":
        self.nodes.extend(nodes)
        return self

    def __iter__(self):
        return iter(self.nodes)

    def __len__(self):
        return len(self.nodes)

    def _launch(self) -> None:
        self._tasks = []
        for node in self.nodes:
            task = asyncio.create_task(node.start(), name=node.name)
            task.add_done_callback(self._on_done)
            self._tasks.append(task)
        log.debug("started %d nodes", len(self._tasks))

    @staticmethod
    def _on_done(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error("node %s failed", task.get_name(), exc_info=exc)

    async def run_for(self, seconds: float) -> None:
        self._launch()
        try:
            await asyncio.sleep(max(0.0, seconds))
        finally:
            await self._shutdown()

    async def run_forever(self) -> None:
        """Run until every node has finished or the caller is cancelled."""
        self._launch()
        try:
            await asyncio.wait(self._tasks)
        finally:
            await self._shutdown()

    async def _shutdown(self) -> None:
        self.stop()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    def stop(self) -> None:
        for node in self.nodes:
            node.stop()
        for task in self._tasks:
            task.cancel()
