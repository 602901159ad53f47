"""
Input normalization.

MIDI messages, key presses and pointer/touch contacts are reduced to a
common vocabulary of signals:

- ``Impulse(pitch, velocity)``: a note to play
- ``Release(factor)``: a note-off / lift, decays the global energy
- ``Gesture()``: a user gesture that may unlock the audio subsystem
"""

import math
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Union

from .config import EngineConfig
from .harmony import Scale, find_scale
from .utils import DefaultRandomPolicy, RandomPolicy, clamp, map_range

NOTE_OFF = 0x80
NOTE_ON = 0x90

KEY_MAP: Dict[str, int] = {
    # home row
    "a": 48, "s": 50, "d": 52, "f": 53, "g": 55, "h": 57, "j": 59, "k": 60, "l": 62,
    # top row
    "q": 60, "w": 62, "e": 64, "r": 65, "t": 67, "y": 69, "u": 71, "i": 72, "o": 74, "p": 76,
}


@dataclass(frozen=True)
class Impulse:
    pitch: int
    velocity: int


@dataclass(frozen=True)
class Release:
    factor: float


@dataclass(frozen=True)
class Gesture:
    pass


Signal = Union[Impulse, Release, Gesture]


@dataclass
class _Contact:
    note: int
    x: float


class EventNormalizer:
    """Stateful front end that tracks held keys and active pointer contacts."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        width: float = 1280.0,
        key_map: Optional[Dict[str, int]] = None,
        scales: Optional[Dict[str, Scale]] = None,
        rng: Optional[random.Random] = None,
        random_policy: RandomPolicy = None,
    ):
        self.config = config or EngineConfig()
        self.width = width
        self.key_map = dict(KEY_MAP if key_map is None else key_map)
        self.scales = scales
        self.rng = rng or random.Random()
        self.random_policy = random_policy or DefaultRandomPolicy()
        self.held_keys: Set[str] = set()
        self.contacts: Dict[object, _Contact] = {}
        self._drag_anchor: Optional[float] = None

    # ---------- MIDI ----------

    def midi(self, status: int, pitch: int, velocity: int) -> List[Signal]:
        cmd = status & 0xF0
        if cmd == NOTE_ON and velocity > 0:
            return [Impulse(int(pitch), int(velocity))]
        if cmd == NOTE_OFF or (cmd == NOTE_ON and velocity == 0):
            return [Release(self.config.note_off_decay)]
        return []

    def midi_message(self, msg) -> List[Signal]:
        """Accept a ``mido.Message``; anything but note on/off yields nothing."""
        if msg.type not in ("note_on", "note_off"):
            return []
        status, pitch, velocity = msg.bytes()[:3]
        return self.midi(status, pitch, velocity)

    # ---------- Keyboard ----------

    def key_down(self, symbol: str) -> List[Signal]:
        k = symbol.lower()
        out: List[Signal] = [Gesture()]
        if k in self.key_map and k not in self.held_keys:
            self.held_keys.add(k)
            out.append(Impulse(self.key_map[k], self.config.keyboard_velocity))
        return out

    def key_up(self, symbol: str) -> List[Signal]:
        self.held_keys.discard(symbol.lower())
        return []

    # ---------- Pointer / touch ----------

    def resize(self, width: float) -> None:
        self.width = max(1.0, float(width))

    def note_from_x(self, x: float) -> int:
        cfg = self.config
        n = int(
            math.floor(
                map_range(x, 0, self.width, cfg.touch_base_note, cfg.touch_base_note + cfg.touch_range)
            )
        )
        scale = find_scale(cfg.pointer_scale, self.scales)
        if scale is not None:
            n = scale.quantize(n, root=cfg.touch_base_note)
        lo, hi = cfg.touch_note_bounds
        return int(clamp(n, lo, hi))

    def velocity_from_speed(self, dx: float, dy: float = 0.0) -> int:
        sp = math.sqrt(dx * dx + dy * dy)
        lo, hi = self.config.drag_velocity_bounds
        return int(clamp(math.floor(map_range(sp, 0, 60, 50, 120)), lo, hi))

    def _primary(self) -> Optional[object]:
        return next(iter(self.contacts), None)

    def pointer_down(self, contact_id: object, x: float, y: float = 0.0) -> List[Signal]:
        out: List[Signal] = [Gesture()]
        if contact_id in self.contacts:
            return out
        note = self.note_from_x(x)
        self.contacts[contact_id] = _Contact(note=note, x=x)
        if self._primary() == contact_id:
            self._drag_anchor = x
        out.append(Impulse(note, self.config.touch_velocity))
        return out

    def pointer_move(self, contact_id: object, x: float, y: float = 0.0) -> List[Signal]:
        contact = self.contacts.get(contact_id)
        if contact is None:
            return []
        contact.x = x
        if self._primary() != contact_id or self._drag_anchor is None:
            return []
        dx = x - self._drag_anchor
        if abs(dx) <= self.config.drag_threshold_px:
            return []
        self._drag_anchor = x
        note = self.note_from_x(x)
        contact.note = note
        return [Impulse(note, self.velocity_from_speed(dx))]

    def pointer_up(self, contact_id: object) -> List[Signal]:
        if self.contacts.pop(contact_id, None) is None:
            return []
        primary = self._primary()
        self._drag_anchor = self.contacts[primary].x if primary is not None else None
        return [Release(self.config.touch_release_decay)]

    pointer_cancel = pointer_up

    def mouse_press(self, x: float, y: float = 0.0) -> List[Signal]:
        """Mouse fallback: one note, sometimes a harmonic spark above it."""
        cfg = self.config
        n = self.note_from_x(x)
        out: List[Signal] = [Gesture(), Impulse(n, cfg.mouse_velocity)]
        if self.random_policy.accept(cfg.spark_probability, rng=self.rng):
            step = self.random_policy.choice(cfg.spark_intervals, rng=self.rng)
            out.append(Impulse(n + step, cfg.spark_velocity))
        return out
