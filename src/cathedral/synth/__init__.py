"""
Synth module for cathedral.

Provides voice sinks:
- FluidSynthSink: software synth output
- NullSink: silent, records voices
"""

from .fluidsynth import FluidSynthSink
from .null import NullSink
from .presets import WAVEFORM_PRESETS, get_preset

__all__ = [
    "FluidSynthSink",
    "NullSink",
    "WAVEFORM_PRESETS",
    "get_preset",
]
