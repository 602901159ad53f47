"""
cathedral - call-and-response audiovisual instrument engine

Impulses from MIDI, keyboard and pointer input play a tone, grow a glass
cell, wire it into the scene and, a moment later, get answered by a chord
chosen from the current mood.

Quick Start:
    from cathedral import ImpulseEngine, EngineConfig
    from cathedral.synth import NullSink

    engine = ImpulseEngine(EngineConfig(), sink=NullSink())
    engine.unlock()
    engine.on_impulse(60, 100, now=0.0)
    engine.tick(now=0.2)

Architecture:
    - normalizer: device input to Impulse / Release / Gesture signals
    - mood, harmony: mood classifier and response voicings
    - entities, pools: voices, cells, links, particles and their bounded pools
    - engine, response, scheduler: the impulse engine and delayed replies
    - geometry: per-frame render attributes
    - events, nodes, system: asyncio runtime
    - synth: audio output sinks
"""

from .config import AudioConfig, EngineConfig
from .engine import EngineState, ImpulseEngine
from .entities import Cell, Form, Link, Particle, ShapeKind, Voice, Waveform, form_for_pitch
from .events import (
    Event,
    EventBus,
    EventFilter,
    FrameEvent,
    GestureEvent,
    ImpulseEvent,
    MoodEvent,
    ReleaseEvent,
    Subscription,
    TickEvent,
)
from .geometry import FrameSnapshot, render_form, snapshot
from .harmony import SCALES, VOICINGS, Scale, choose_voicing, find_scale, voicing_for
from .mood import Mood, MoodClassifier, classify
from .normalizer import EventNormalizer, Gesture, Impulse, Release
from .pools import CellArena, LinkPool, ParticlePool, VoicePool, VoiceSink
from .response import ResponseGenerator, response_delay
from .scheduler import ResponseScheduler
from .system import System
from .utils import DefaultRandomPolicy, RandomPolicy, midi_to_hz

__version__ = "0.1.0"

__all__ = [
    # Config
    "AudioConfig",
    "EngineConfig",
    # Engine
    "EngineState",
    "ImpulseEngine",
    "ResponseGenerator",
    "response_delay",
    "ResponseScheduler",
    # Entities and pools
    "Cell",
    "Form",
    "Link",
    "Particle",
    "ShapeKind",
    "Voice",
    "Waveform",
    "form_for_pitch",
    "CellArena",
    "LinkPool",
    "ParticlePool",
    "VoicePool",
    "VoiceSink",
    # Mood and harmony
    "Mood",
    "MoodClassifier",
    "classify",
    "VOICINGS",
    "Scale",
    "SCALES",
    "choose_voicing",
    "find_scale",
    "voicing_for",
    # Input
    "EventNormalizer",
    "Gesture",
    "Impulse",
    "Release",
    # Events
    "Event",
    "EventBus",
    "EventFilter",
    "Subscription",
    "TickEvent",
    "ImpulseEvent",
    "ReleaseEvent",
    "GestureEvent",
    "MoodEvent",
    "FrameEvent",
    # Render boundary
    "FrameSnapshot",
    "render_form",
    "snapshot",
    # Utils
    "DefaultRandomPolicy",
    "RandomPolicy",
    "midi_to_hz",
    # System
    "System",
]
