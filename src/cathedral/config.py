"""
Configuration for the cathedral engine and its audio collaborator.
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .mood import Mood


@dataclass(frozen=True)
class EngineConfig:
    """Tunables for the impulse engine, its pools and the input mapping."""

    # Pool capacities
    max_voices: int = 10
    max_cells: int = 90
    max_links: int = 260
    max_particles: int = 1500
    link_evict_batch: int = 12
    particle_evict_batch: int = 200

    # Input mapping
    touch_base_note: int = 48
    touch_range: int = 36
    touch_note_bounds: Tuple[int, int] = (30, 96)
    pointer_scale: Optional[str] = None
    keyboard_velocity: int = 95
    touch_velocity: int = 90
    mouse_velocity: int = 95
    spark_velocity: int = 80
    spark_probability: float = 0.35
    spark_intervals: Tuple[int, ...] = (3, 4, 7, 10, 12)
    drag_threshold_px: float = 10.0
    drag_velocity_bounds: Tuple[int, int] = (45, 127)

    # Mood / energy
    initial_mood: Mood = Mood.CALM
    mood_cooldown: float = 0.85
    energy_cap: float = 1.4
    energy_gain: float = 0.85
    energy_decay: float = 0.985
    note_off_decay: float = 0.92
    touch_release_decay: float = 0.9
    amp_range: Tuple[float, float] = (0.04, 0.20)

    # Decay rates (per tick)
    cell_life: float = 255.0
    cell_decay: float = 0.26
    link_decay: float = 0.6
    autonomous_link_decay: float = 0.8
    link_dying_threshold: float = 12.0
    link_dying_extra_decay: float = 1.4
    particle_decay: float = 3.1

    # Spawning
    link_density_bounds: Tuple[int, int] = (1, 6)
    autonomous_link_bounds: Tuple[int, int] = (1, 4)
    particle_burst_bounds: Tuple[int, int] = (7, 28)
    seed_cells: int = 12
    seed_links: int = 20

    # Voices
    voice_hold: float = 0.06
    user_attack: float = 0.01
    user_release: float = 0.55
    user_amp_scale: float = 0.75
    response_attack: float = 0.02
    response_release: Tuple[float, float] = (0.85, 1.4)
    response_amp_range: Tuple[float, float] = (0.045, 0.16)
    response_detune: float = 0.006
    pan_spread: float = 0.65

    # Response timing (seconds, slow bound first)
    response_delay_bounds: Tuple[float, float] = (0.220, 0.070)
    safe_range: Tuple[int, int] = (36, 92)

    fps: float = 60.0

    def __post_init__(self) -> None:
        for name in ("max_voices", "max_cells", "max_links", "max_particles"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("link_evict_batch", "particle_evict_batch"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.mood_cooldown < 0:
            raise ValueError("mood_cooldown must be >= 0")
        if self.touch_range <= 0:
            raise ValueError("touch_range must be positive")
        lo, hi = self.safe_range
        if hi - lo < 11:
            raise ValueError(f"safe_range {self.safe_range} must span at least an octave")
        slow, fast = self.response_delay_bounds
        if fast < 0 or slow < fast:
            raise ValueError(
                f"response_delay_bounds must be (slow, fast) with slow >= fast >= 0, "
                f"got {self.response_delay_bounds}"
            )
        if self.fps <= 0:
            raise ValueError("fps must be positive")

    @property
    def tick_interval(self) -> float:
        return 1.0 / self.fps


@dataclass(frozen=True)
class AudioConfig:
    """Settings for the FluidSynth voice sink."""

    soundfont_path: str = "/usr/share/sounds/sf2/FluidR3_GM.sf2"
    driver: str = "alsa"
    gain: float = 0.5
    reverb: int = 92
    channels: Tuple[int, ...] = field(default_factory=lambda: tuple(range(9)))

    @classmethod
    def from_env(cls) -> "AudioConfig":
        """Read overrides from FLUIDSYNTH_SOUNDFONT / FLUIDSYNTH_DRIVER / CATHEDRAL_GAIN."""
        defaults = cls()
        gain = os.environ.get("CATHEDRAL_GAIN")
        return cls(
            soundfont_path=os.environ.get("FLUIDSYNTH_SOUNDFONT", defaults.soundfont_path),
            driver=os.environ.get("FLUIDSYNTH_DRIVER", defaults.driver),
            gain=float(gain) if gain else defaults.gain,
        )
