"""
Nodes module for cathedral.

Provides async components:
- FrameClock: fixed-rate TickEvents
- InstrumentNode: runs the ImpulseEngine from bus events
- MidiInputNode: MIDI note on/off to impulses
- RandomImpulseNode: unattended demo player
"""

from .base import Node
from .clock import FrameClock
from .demo import RandomImpulseNode
from .instrument import InstrumentNode, publish_signals, signal_to_event
from .midi import MidiInputNode, find_best_port

__all__ = [
    "Node",
    "FrameClock",
    "InstrumentNode",
    "publish_signals",
    "signal_to_event",
    "MidiInputNode",
    "find_best_port",
    "RandomImpulseNode",
]
