"""
Impulse engine.

Turns normalized impulses into sound and geometry, and advances the whole
simulation one frame at a time. All mutable state lives in ``EngineState``
so several engines can run side by side and tests can drive one with a
seeded RNG and explicit timestamps.
"""

import logging
import math
import random
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from .config import EngineConfig
from .entities import Cell, Form, Link, Particle, ShapeKind, Voice, Waveform, form_for_pitch
from .mood import MoodClassifier
from .normalizer import Gesture, Impulse, Release, Signal
from .pools import CellArena, LinkPool, ParticlePool, VoicePool, VoiceSink
from .response import ResponseGenerator, response_delay
from .scheduler import ResponseScheduler
from .utils import (
    DefaultRandomPolicy,
    RandomPolicy,
    clamp,
    lerp_int,
    map_range,
    midi_to_hz,
    random_unit_vector,
)

log = logging.getLogger(__name__)


@dataclass
class EngineState:
    """Everything an engine mutates."""

    mood: MoodClassifier
    voices: VoicePool
    cells: CellArena
    links: LinkPool
    particles: ParticlePool
    scheduler: ResponseScheduler
    energy: float = 0.0
    frame: int = 0
    unlocked: bool = False
    dropped_impulses: int = 0
    impulses: int = 0
    responses_fired: int = 0

    @classmethod
    def create(cls, config: EngineConfig, sink: Optional[VoiceSink] = None) -> "EngineState":
        cells = CellArena(config.max_cells, decay=config.cell_decay)
        return cls(
            mood=MoodClassifier(config.mood_cooldown, config.initial_mood),
            voices=VoicePool(config.max_voices, sink),
            cells=cells,
            links=LinkPool(
                config.max_links,
                cells,
                evict_batch=config.link_evict_batch,
                decay=config.link_decay,
                autonomous_decay=config.autonomous_link_decay,
                dying_threshold=config.link_dying_threshold,
                dying_extra_decay=config.link_dying_extra_decay,
            ),
            particles=ParticlePool(
                config.max_particles,
                evict_batch=config.particle_evict_batch,
                decay=config.particle_decay,
            ),
            scheduler=ResponseScheduler(),
        )


class ImpulseEngine:
    """Central orchestrator: impulses in, voices/cells/links/particles out."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        sink: Optional[VoiceSink] = None,
        rng: Optional[random.Random] = None,
        random_policy: RandomPolicy = None,
        unlocker: Optional[Callable[[], bool]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or EngineConfig()
        self.rng = rng or random.Random()
        self.random_policy = random_policy or DefaultRandomPolicy()
        self.unlocker = unlocker
        self.clock = clock
        self.state = EngineState.create(self.config, sink)
        self.responder = ResponseGenerator(self)

    def _now(self, now: Optional[float]) -> float:
        return self.clock() if now is None else now

    def _uniform(self, lo: float, hi: float) -> float:
        return self.random_policy.uniform(lo, hi, rng=self.rng)

    # ---------- Unlock gate ----------

    def unlock(self) -> bool:
        """Try to unlock audio once; impulses are dropped until this succeeds."""
        if self.state.unlocked:
            return True
        try:
            ok = True if self.unlocker is None else bool(self.unlocker())
        except Exception as e:
            log.warning("audio unlock failed: %s", e)
            ok = False
        self.state.unlocked = ok
        if ok:
            log.info("audio unlocked")
        return ok

    # ---------- Input ----------

    def dispatch(self, signals: Iterable[Signal], now: Optional[float] = None) -> None:
        for sig in signals:
            if isinstance(sig, Gesture):
                self.unlock()
            elif isinstance(sig, Impulse):
                self.on_impulse(sig.pitch, sig.velocity, now=now)
            elif isinstance(sig, Release):
                self.release(sig.factor)

    def release(self, factor: float) -> None:
        """Note-off / lift: relax the energy only."""
        self.state.energy = max(0.0, self.state.energy * factor)

    def on_impulse(self, pitch: int, velocity: int, now: Optional[float] = None) -> None:
        st = self.state
        if not st.unlocked:
            st.dropped_impulses += 1
            return
        cfg = self.config
        now = self._now(now)
        st.impulses += 1

        freq = midi_to_hz(pitch)
        amp = map_range(velocity, 0, 127, *cfg.amp_range)

        st.energy = clamp(st.energy + amp * cfg.energy_gain, 0.0, cfg.energy_cap)
        st.mood.update(freq, velocity, now)

        self.play_voice(
            freq,
            amp * cfg.user_amp_scale,
            Waveform.TRIANGLE,
            cfg.user_attack,
            cfg.user_release,
            now=now,
        )

        cell = self.spawn_cell(pitch, velocity)
        st.cells.insert(cell)

        for _ in range(lerp_int(velocity, 127, cfg.link_density_bounds)):
            self.add_link_to(cell)

        self.emit_particles(cell.position, freq, amp)

        delay = response_delay(velocity, cfg.response_delay_bounds)
        st.scheduler.schedule_in(delay, pitch, velocity, now)
        log.debug("impulse %d/%d -> %s cell, reply in %.3fs", pitch, velocity, cell.form.value, delay)

    # ---------- Spawning ----------

    def play_voice(
        self,
        freq: float,
        amp: float,
        wave: Waveform,
        attack: float,
        release: float,
        *,
        now: float,
        autonomous: bool = False,
    ) -> Voice:
        cfg = self.config
        cutoff = clamp(map_range(freq, 80, 1400, 900, 3200), 500, 3600)
        voice = Voice(
            waveform=wave,
            frequency=freq,
            amplitude=amp,
            attack=attack,
            release=release,
            pan=self._uniform(-cfg.pan_spread, cfg.pan_spread),
            started_at=now,
            hold=cfg.voice_hold,
            cutoff=cutoff,
            autonomous=autonomous,
        )
        self.state.voices.insert(voice)
        return voice

    def _random_rotation(self):
        rot = [self._uniform(0.0, 2.0 * math.pi) for _ in range(3)]
        rvel = [self._uniform(0.0015, 0.010) for _ in range(3)]
        return rot, rvel

    def random_cell(self) -> Cell:
        """A seed cell with every attribute drawn at random."""
        policy, rng = self.random_policy, self.rng
        rot, rvel = self._random_rotation()
        outer = self._uniform(40, 105)
        return Cell(
            position=[self._uniform(-340, 340), self._uniform(-220, 220), self._uniform(-340, 340)],
            rotation=rot,
            rotation_velocity=rvel,
            outer_radius=outer,
            inner_radius=outer * self._uniform(0.35, 0.78),
            sides=int(math.floor(self._uniform(5, 11))),
            height=self._uniform(18, 62),
            kind=policy.choice(list(ShapeKind), rng=rng),
            form=policy.choice(list(Form), rng=rng),
            hue=self._uniform(180, 360),
            alpha=self._uniform(90, 200),
            life=self.config.cell_life,
        )

    def spawn_cell(self, pitch: int, velocity: int) -> Cell:
        """A cell shaped by the impulse: pitch picks hue/sides/form, velocity picks size/alpha."""
        rot, rvel = self._random_rotation()
        hue = (
            map_range(pitch, 24, 96, 180, 360)
            + self._uniform(-25, 25)
            + self.state.frame * 0.2
        ) % 360
        outer = map_range(velocity, 0, 127, 40, 130)
        sides = int(clamp(math.floor(map_range(pitch, 24, 96, 5, 13)), 5, 13))
        return Cell(
            position=[self._uniform(-420, 420), self._uniform(-280, 280), self._uniform(-420, 420)],
            rotation=rot,
            rotation_velocity=rvel,
            outer_radius=outer,
            inner_radius=outer * self._uniform(0.35, 0.85),
            sides=sides,
            height=self._uniform(18, 62),
            kind=self.random_policy.choice(list(ShapeKind), rng=self.rng),
            form=form_for_pitch(pitch),
            hue=hue,
            alpha=map_range(velocity, 0, 127, 85, 200),
            life=self.config.cell_life,
            pitch=pitch,
        )

    def _new_link(self, a: int, b: int, autonomous: bool) -> Link:
        return Link(
            a=a,
            b=b,
            life=self._uniform(180, 560),
            hue=self._uniform(180, 360),
            width=self._uniform(0.8, 3.2 if autonomous else 2.4),
            twist=self._uniform(0.004, 0.018),
            autonomous=autonomous,
        )

    def add_link_to(self, cell: Cell) -> Optional[Link]:
        cells = self.state.cells
        if len(cells) < 2:
            return None
        target = cells.random_handle(self.rng, self.random_policy)
        if target is None or target == cell.handle:
            return None
        link = self._new_link(cell.handle, target, autonomous=False)
        self.state.links.insert(link)
        return link

    def add_random_link(self, autonomous: bool = False) -> Optional[Link]:
        cells = self.state.cells
        a = cells.random_handle(self.rng, self.random_policy)
        b = cells.random_handle(self.rng, self.random_policy)
        if a is None or b is None or a == b:
            return None
        link = self._new_link(a, b, autonomous)
        self.state.links.insert(link)
        return link

    def emit_particles(self, origin, freq: float, amp: float) -> int:
        cfg = self.config
        lo, hi = cfg.particle_burst_bounds
        a_lo, a_hi = cfg.amp_range
        count = int(clamp(math.floor(map_range(amp, a_lo, a_hi, lo, hi)), lo, hi))
        for _ in range(count):
            speed = self._uniform(0.6, 3.2)
            direction = random_unit_vector(self.rng)
            self.state.particles.insert(
                Particle(
                    position=list(origin),
                    velocity=[c * speed for c in direction],
                    life=self._uniform(120, 240),
                    hue=(map_range(freq, 80, 1400, 180, 360) + self._uniform(-30, 30)) % 360,
                    size=self._uniform(1.8, 5.2),
                )
            )
        return count

    def seed(self) -> None:
        """Populate an empty scene with random cells and links."""
        for _ in range(self.config.seed_cells):
            self.state.cells.insert(self.random_cell())
        for _ in range(self.config.seed_links):
            self.add_random_link()

    # ---------- Simulation clock ----------

    def tick(self, now: Optional[float] = None) -> None:
        """Advance one frame: fire due responses, decay and reap every pool, relax energy."""
        st = self.state
        now = self._now(now)
        st.frame += 1

        for entry in st.scheduler.pop_due(now):
            self.responder.respond(entry.pitch, entry.velocity, now)

        st.links.tick()
        st.links.reap()
        st.cells.tick(st.frame)
        st.cells.reap()
        st.particles.tick()
        st.particles.reap()
        st.voices.tick(now)
        st.voices.reap()

        st.energy *= self.config.energy_decay

    def shutdown(self) -> None:
        self.state.voices.stop_all()
