"""
Node interface.

A node is one long-running coroutine on the shared event loop: an input
reader, the frame clock, the instrument itself. ``System`` starts each
node as its own task.
"""

from abc import ABC, abstractmethod


class Node(ABC):
    """A coroutine that talks to the rest of the instrument over the bus."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def start(self) -> None:
        """Run until stopped or cancelled."""

    def stop(self) -> None:
        """Ask the node to wind down; called before its task is cancelled."""
