"""
Autonomous call-and-response.

Every impulse schedules one response. When it fires, the generator reads
the mood *at that moment*, builds a voicing on the triggering pitch and
plays it as a detuned chord, then lays extra autonomous links between
existing cells. It never spawns cells of its own.
"""

import logging
import math
from typing import TYPE_CHECKING, List, Tuple

from .entities import Waveform
from .harmony import choose_voicing
from .utils import lerp_int, map_range, midi_to_hz

if TYPE_CHECKING:
    from .engine import ImpulseEngine

log = logging.getLogger(__name__)


def response_delay(velocity: int, bounds: Tuple[float, float] = (0.220, 0.070)) -> float:
    """Seconds until the reply; harder hits are answered sooner."""
    slow, fast = bounds
    ms = math.floor(map_range(velocity, 0, 127, slow * 1000.0, fast * 1000.0))
    return ms / 1000.0


class ResponseGenerator:
    def __init__(self, engine: "ImpulseEngine"):
        self.engine = engine

    def respond(self, pitch: int, velocity: int, now: float) -> List[int]:
        """Play the answer to (pitch, velocity) and return the voiced pitches."""
        eng = self.engine
        cfg = eng.config
        policy, rng = eng.random_policy, eng.rng

        mood = eng.state.mood.current
        notes = choose_voicing(pitch, mood, cfg.safe_range)
        lo, hi = cfg.response_amp_range
        base_amp = map_range(velocity, 0, 127, lo, hi)

        for i, note in enumerate(notes):
            if i == 0:
                wave = Waveform.SINE
            else:
                wave = Waveform.TRIANGLE if policy.accept(0.5, rng=rng) else Waveform.SINE
            detune = policy.uniform(1.0 - cfg.response_detune, 1.0 + cfg.response_detune, rng=rng)
            eng.play_voice(
                midi_to_hz(note) * detune,
                base_amp * policy.uniform(0.55, 1.0, rng=rng),
                wave,
                cfg.response_attack,
                policy.uniform(*cfg.response_release, rng=rng),
                now=now,
                autonomous=True,
            )

        count = lerp_int(velocity, 127, cfg.autonomous_link_bounds)
        for _ in range(count):
            eng.add_random_link(autonomous=True)

        eng.state.responses_fired += 1
        log.debug("response to %d/%d in %s: %s", pitch, velocity, mood.value, notes)
        return notes
