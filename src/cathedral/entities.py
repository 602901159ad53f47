"""
Simulation entities: voices, cells, links and particles.

Voices are audio-side records handed to a ``VoiceSink``; cells, links and
particles are geometric records handed to a renderer once per tick.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .utils import hz_to_midi


class Waveform(str, Enum):
    SINE = "sine"
    TRIANGLE = "triangle"


class ShapeKind(str, Enum):
    REGULAR = "regular"
    STAR = "star"
    HYBRID = "hybrid"


class Form(str, Enum):
    POLY = "poly"
    CUBE = "cube"
    PYRAMID = "pyramid"
    SPHERE = "sphere"


# Lower pitch bound (exclusive upper of the previous band) per form.
FORM_BANDS = ((45, Form.CUBE), (62, Form.POLY), (78, Form.PYRAMID))


def form_for_pitch(pitch: int) -> Form:
    """Pitch bands partition the whole range: <45 cube, <62 poly, <78 pyramid, else sphere."""
    for upper, form in FORM_BANDS:
        if pitch < upper:
            return form
    return Form.SPHERE


@dataclass
class Voice:
    """A sounding tone with a fixed attack/hold/release envelope."""

    waveform: Waveform
    frequency: float
    amplitude: float
    attack: float
    release: float
    pan: float
    started_at: float
    hold: float = 0.06
    cutoff: float = 1700.0
    autonomous: bool = False
    voice_id: int = 0
    stopped: bool = False

    @property
    def duration(self) -> float:
        return self.attack + self.hold + self.release

    @property
    def ends_at(self) -> float:
        return self.started_at + self.duration

    @property
    def midi_pitch(self) -> float:
        return hz_to_midi(self.frequency)

    def expired(self, now: float) -> bool:
        return self.stopped or now >= self.ends_at


@dataclass
class Cell:
    """Procedural 3-D glass cell."""

    position: List[float]
    rotation: List[float]
    rotation_velocity: List[float]
    outer_radius: float
    inner_radius: float
    sides: int
    height: float
    kind: ShapeKind
    form: Form
    hue: float
    alpha: float
    life: float = 255.0
    handle: int = -1
    pitch: Optional[int] = None

    def update(self, frame: int, decay: float) -> None:
        for i in range(3):
            self.rotation[i] += self.rotation_velocity[i]
        x, y = self.position[0], self.position[1]
        self.position[0] += math.sin(frame * 0.01 + y * 0.002) * 0.06
        self.position[1] += math.cos(frame * 0.012 + x * 0.002) * 0.04
        self.life -= decay

    @property
    def alive(self) -> bool:
        return self.life > 0


@dataclass
class Link:
    """Connection between two cells, held by arena handle rather than reference."""

    a: int
    b: int
    life: float
    hue: float
    width: float
    twist: float
    autonomous: bool = False

    @property
    def alive(self) -> bool:
        return self.life > 0


@dataclass
class Particle:
    position: List[float]
    velocity: List[float]
    life: float
    hue: float
    size: float

    def update(self, decay: float) -> None:
        for i in range(3):
            self.position[i] += self.velocity[i]
        self.life -= decay

    @property
    def alive(self) -> bool:
        return self.life > 0

