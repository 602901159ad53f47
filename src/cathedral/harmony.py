"""
Voicings and scales.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from .mood import Mood
from .utils import fold_into_range


# Response voicings: semitone offsets from the triggering pitch
VOICINGS: Dict[Mood, Tuple[int, ...]] = {
    Mood.CALM: (0, 4, 7, 11, 14),  # maj9
    Mood.MYSTERY: (0, 3, 7, 10, 14, 17),  # m11
    Mood.TENSION: (0, 4, 10, 13, 15),  # altered cluster
    Mood.JOY: (0, 4, 6, 7, 11, 14),  # lydian
    Mood.EXPANSION: (0, 3, 7, 10, 14),  # m9
}
DEFAULT_VOICING: Tuple[int, ...] = VOICINGS[Mood.EXPANSION]


def voicing_for(mood: Mood) -> Tuple[int, ...]:
    """Offsets for ``mood``; unknown moods fall back to the m9 shape."""
    return VOICINGS.get(mood, DEFAULT_VOICING)


def choose_voicing(
    root: int, mood: Mood, safe_range: Tuple[int, int] = (36, 92)
) -> List[int]:
    """Absolute pitches of the voicing, each folded by octaves into ``safe_range``."""
    low, high = safe_range
    return [fold_into_range(root + off, low, high) for off in voicing_for(mood)]


@dataclass(frozen=True)
class Scale:
    """Pitch classes (semitones above a root) that pointer input may snap to."""

    name: str
    intervals: Tuple[int, ...]

    def quantize(self, note: int, root: int = 0) -> int:
        """Snap ``note`` down to the nearest scale tone at or below it."""
        octave, pc = divmod(note - root, 12)
        below = [i for i in self.intervals if i <= pc]
        step = max(below) if below else self.intervals[-1] - 12
        return root + octave * 12 + step

    def tones(self, root: int, low: int, high: int) -> List[int]:
        """Every scale tone in ``[low, high]``, ascending."""
        return [n for n in range(low, high + 1) if (n - root) % 12 in self.intervals]


# pointer quantization choices, keyed by EngineConfig.pointer_scale
SCALES: Dict[str, Scale] = {
    s.name: s
    for s in (
        Scale("pentatonic_major", (0, 2, 4, 7, 9)),
        Scale("pentatonic_minor", (0, 3, 5, 7, 10)),
        Scale("dorian", (0, 2, 3, 5, 7, 9, 10)),
        Scale("lydian", (0, 2, 4, 6, 7, 9, 11)),
        Scale("whole_tone", (0, 2, 4, 6, 8, 10)),
    )
}


def find_scale(name: Optional[str], scales: Optional[Mapping[str, Scale]] = None) -> Optional[Scale]:
    """The named scale, or None for no quantization (unknown names included)."""
    if name is None:
        return None
    return (SCALES if scales is None else scales).get(name)
