"""
MIDI input node.

Opens a mido input port (picked by keyword match), reads it on a background
thread into a queue, and publishes normalized impulses/releases on the bus.
If MIDI is unavailable the node logs once and exits; the rest of the
system keeps running.
"""

from __future__ import annotations

import asyncio
import logging
import queue
import threading
import time
from typing import Iterable, List, Optional, Tuple

import mido

from ..events import EventBus
from ..normalizer import EventNormalizer
from .base import Node
from .instrument import publish_signals

log = logging.getLogger(__name__)


def _normalize(s: str) -> str:
    return s.strip().lower()


def _match_score(port_name: str, keywords: Iterable[str]) -> int:
    pn = _normalize(port_name)
    score = 0
    for kw in keywords:
        kw = _normalize(kw)
        if kw and kw in pn:
            score += 1
    return score


def find_best_port(ports: List[str], keywords: Iterable[str]) -> Optional[str]:
    """Best keyword match; with no keywords the first port wins."""
    if not ports:
        return None
    keywords = list(keywords)
    if not keywords:
        return ports[0]
    scored: List[Tuple[int, str]] = [(_match_score(p, keywords), p) for p in ports]
    scored.sort(key=lambda x: (x[0], len(x[1])), reverse=True)
    best_score, best_port = scored[0]
    return best_port if best_score > 0 else None


class MidiInputNode(Node):
    """Publishes ImpulseEvent / ReleaseEvent for every note on/off from a MIDI input."""

    def __init__(
        self,
        bus: EventBus,
        *,
        port_name: Optional[str] = None,
        keywords: Optional[Iterable[str]] = None,
        normalizer: Optional[EventNormalizer] = None,
        queue_maxsize: int = 4096,
        poll_sleep: float = 0.001,
    ):
        self.bus = bus
        self.port_name = port_name
        self.keywords = list(keywords or [])
        self.normalizer = normalizer or EventNormalizer()
        self.poll_sleep = poll_sleep
        self.rx_queue: "queue.Queue[mido.Message]" = queue.Queue(maxsize=queue_maxsize)
        self._rx_stop = threading.Event()
        self._rx_thread: Optional[threading.Thread] = None
        self._input = None
        self._warned = False
        self._running = False

    def _unavailable(self, reason: str) -> None:
        if not self._warned:
            log.warning("MIDI input unavailable (%s); continuing without it", reason)
            self._warned = True

    def open(self) -> bool:
        try:
            names = mido.get_input_names()
        except Exception as e:
            self._unavailable(f"no backend: {e}")
            return False
        chosen = self.port_name or find_best_port(names, self.keywords)
        if chosen is None:
            self._unavailable("no matching input port")
            return False
        try:
            self._input = mido.open_input(chosen)
        except Exception as e:
            self._unavailable(f"cannot open {chosen!r}: {e}")
            return False
        log.info("MIDI input: %s", chosen)
        self._rx_stop.clear()
        self._rx_thread = threading.Thread(target=self._rx_loop, daemon=True)
        self._rx_thread.start()
        return True

    def _rx_loop(self) -> None:
        while not self._rx_stop.is_set():
            msg = self._input.poll()
            if msg is None:
                time.sleep(self.poll_sleep)
                continue
            try:
                self.rx_queue.put_nowait(msg)
            except queue.Full:
                # drop newest if consumer is slow
                pass

    def drain(self, max_messages: int = 256) -> List[mido.Message]:
        msgs: List[mido.Message] = []
        for _ in range(max_messages):
            try:
                msgs.append(self.rx_queue.get_nowait())
            except queue.Empty:
                break
        return msgs

    async def pump(self) -> int:
        """Publish whatever is queued; returns the number of messages consumed."""
        msgs = self.drain()
        for msg in msgs:
            await publish_signals(self.bus, self.normalizer.midi_message(msg), "midi")
        return len(msgs)

    async def start(self) -> None:
        if not self.open():
            return
        self._running = True
        try:
            while self._running:
                if not await self.pump():
                    await asyncio.sleep(self.poll_sleep)
        finally:
            self.close()

    def stop(self) -> None:
        self._running = False

    def close(self) -> None:
        self._rx_stop.set()
        if self._rx_thread and self._rx_thread.is_alive():
            self._rx_thread.join(timeout=1.0)
        self._rx_thread = None
        if self._input is not None:
            self._input.close()
            self._input = None
