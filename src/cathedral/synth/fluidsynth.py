"""
FluidSynth audio output.
"""

import logging
from typing import Dict, Optional, Tuple

from ..config import AudioConfig
from ..entities import Voice, Waveform
from ..utils import clamp, map_range
from .presets import get_preset

log = logging.getLogger(__name__)

CC_VOLUME = 7
CC_PAN = 10
CC_CUTOFF = 74
BEND_RANGE = 2.0  # semitones, GM default


class FluidSynthSink:
    """
    Sounds voices through the FluidSynth software synthesizer.
    Requires: pip install pyfluidsynth (and the libfluidsynth shared library)

    Each voice gets its own channel (round-robin) so pan, filter cutoff and
    the fine-tuning pitch bend apply to that voice only. Until ``unlock``
    succeeds every call is a no-op.
    """

    def __init__(self, config: Optional[AudioConfig] = None, *, preset: str = "glass"):
        self.config = config or AudioConfig()
        self.programs: Dict[Waveform, Tuple[int, int]] = get_preset(preset)
        self._fs = None
        self._sfid = None
        self._next = 0
        self._playing: Dict[int, Tuple[int, int]] = {}

    @property
    def ready(self) -> bool:
        return self._fs is not None

    def unlock(self) -> bool:
        """Start the audio driver and load the soundfont. Returns True on success."""
        if self._fs is not None:
            return True
        cfg = self.config
        try:
            import fluidsynth

            fs = fluidsynth.Synth(gain=cfg.gain)
            fs.start(driver=cfg.driver)
            sfid = fs.sfload(cfg.soundfont_path)
            if sfid == -1:
                fs.delete()
                raise RuntimeError(f"cannot load soundfont {cfg.soundfont_path}")
            fs.set_reverb(cfg.reverb / 127.0, 0.2, 0.5, 1.0)
        except Exception as e:
            log.warning("FluidSynth unavailable: %s", e)
            return False
        self._fs, self._sfid = fs, sfid
        log.info("FluidSynth started (driver=%s, soundfont=%s)", cfg.driver, cfg.soundfont_path)
        return True

    def _channel(self) -> int:
        channels = self.config.channels
        ch = channels[self._next % len(channels)]
        self._next += 1
        return ch

    def start(self, voice: Voice) -> None:
        if self._fs is None:
            return
        ch = self._channel()
        bank, prog = self.programs[voice.waveform]
        self._fs.program_select(ch, self._sfid, bank, prog)

        pitch = voice.midi_pitch
        note = int(clamp(round(pitch), 0, 127))
        bend = int(clamp((pitch - note) / BEND_RANGE * 8192, -8192, 8191))
        self._fs.pitch_bend(ch, bend)
        self._fs.cc(ch, CC_PAN, int(clamp(map_range(voice.pan, -1.0, 1.0, 0, 127), 0, 127)))
        self._fs.cc(ch, CC_CUTOFF, int(clamp(map_range(voice.cutoff, 500, 3600, 0, 127), 0, 127)))
        self._fs.cc(ch, CC_VOLUME, 100)

        vel = int(clamp(round(voice.amplitude / 0.20 * 127), 1, 127))
        self._fs.noteon(ch, note, vel)
        self._playing[voice.voice_id] = (ch, note)

    def stop(self, voice: Voice) -> None:
        entry = self._playing.pop(voice.voice_id, None)
        if entry is None or self._fs is None:
            return
        ch, note = entry
        self._fs.noteoff(ch, note)

    def close(self) -> None:
        if self._fs:
            for ch, note in self._playing.values():
                self._fs.noteoff(ch, note)
            self._playing.clear()
            self._fs.delete()
            self._fs = None
