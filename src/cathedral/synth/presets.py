"""
Waveform presets for General MIDI soundfonts.
"""

from typing import Dict, Tuple

from ..entities import Waveform

# Waveform -> (bank, program)
# GM programs: https://www.midi.org/specifications/midi-reference-tables/gm-level-1-program-chart
WAVEFORM_PRESETS: Dict[str, Dict[Waveform, Tuple[int, int]]] = {
    "glass": {
        Waveform.SINE: (0, 89),  # Pad 2 (warm)
        Waveform.TRIANGLE: (0, 11),  # Vibraphone
    },
    "organ": {
        Waveform.SINE: (0, 19),  # Church Organ
        Waveform.TRIANGLE: (0, 16),  # Drawbar Organ
    },
    "choir": {
        Waveform.SINE: (0, 52),  # Choir Aahs
        Waveform.TRIANGLE: (0, 91),  # Pad 4 (choir)
    },
}


def get_preset(name: str) -> Dict[Waveform, Tuple[int, int]]:
    """Get a waveform preset by name."""
    return WAVEFORM_PRESETS.get(name, WAVEFORM_PRESETS["glass"])
