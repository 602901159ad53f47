"""
Utility functions for cathedral.
"""

import math
import random
from typing import Any, List, Protocol, Sequence, Tuple


# =========================
# Randomness policies
# =========================


class RandomPolicy(Protocol):
    """Protocol for custom randomness policies."""

    def accept(self, p: float, *, rng: random.Random) -> bool: ...
    def choice(self, seq: Sequence[Any], *, rng: random.Random) -> Any: ...
    def uniform(self, lo: float, hi: float, *, rng: random.Random) -> float: ...


class DefaultRandomPolicy:
    """Default randomness policy using Python's random module."""

    def accept(self, p: float, *, rng: random.Random) -> bool:
        p = max(0.0, min(1.0, float(p)))
        return rng.random() < p

    def choice(self, seq: Sequence[Any], *, rng: random.Random) -> Any:
        return rng.choice(list(seq))

    def uniform(self, lo: float, hi: float, *, rng: random.Random) -> float:
        return rng.uniform(lo, hi)


def random_unit_vector(rng: random.Random) -> Tuple[float, float, float]:
    """Uniformly distributed direction on the unit sphere."""
    theta = rng.uniform(0.0, 2.0 * math.pi)
    z = rng.uniform(-1.0, 1.0)
    s = math.sqrt(1.0 - z * z)
    return (s * math.cos(theta), s * math.sin(theta), z)


# =========================
# Math helpers
# =========================


def midi_to_hz(midi: float) -> float:
    """Convert MIDI note number to Hz."""
    return 440.0 * (2.0 ** ((midi - 69) / 12.0))


def hz_to_midi(hz: float) -> float:
    """Convert Hz to a (fractional) MIDI note number."""
    return 69.0 + 12.0 * math.log2(hz / 440.0)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between min and max."""
    return max(min_val, min(max_val, value))


def map_range(
    value: float,
    in_min: float,
    in_max: float,
    out_min: float,
    out_max: float,
) -> float:
    """Map a value from one range to another (not clamped)."""
    return (value - in_min) * (out_max - out_min) / (in_max - in_min) + out_min


def lerp_int(value: float, in_max: float, bounds: Tuple[int, int]) -> int:
    """Floor of ``value`` mapped from [0, in_max] onto ``bounds``, clamped."""
    lo, hi = bounds
    n = int(math.floor(map_range(value, 0, in_max, lo, hi)))
    return int(clamp(n, min(lo, hi), max(lo, hi)))


def fold_into_range(note: int, low: int, high: int, octave: int = 12) -> int:
    """Shift ``note`` by whole octaves until it lies inside [low, high]."""
    while note < low:
        note += octave
    while note > high:
        note -= octave
    return note


def evict_oldest(items: List[Any], count: int) -> List[Any]:
    """Remove and return the ``count`` oldest entries (front of the list)."""
    dropped = items[:count]
    del items[:count]
    return dropped
