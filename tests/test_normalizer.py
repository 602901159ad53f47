import random

import mido

from cathedral.config import EngineConfig
from cathedral.normalizer import EventNormalizer, Gesture, Impulse, Release


class AlwaysPolicy:
    """Accepts every coin flip and always picks the first option."""

    def accept(self, p, *, rng):
        return True

    def choice(self, seq, *, rng):
        return list(seq)[0]

    def uniform(self, lo, hi, *, rng):
        return lo


class NeverPolicy(AlwaysPolicy):
    def accept(self, p, *, rng):
        return False


def test_midi_note_on_and_off() -> None:
    norm = EventNormalizer()
    assert norm.midi(0x90, 60, 100) == [Impulse(60, 100)]
    assert norm.midi(0x93, 61, 20) == [Impulse(61, 20)]
    assert norm.midi(0x80, 60, 0) == [Release(0.92)]
    assert norm.midi(0x90, 60, 0) == [Release(0.92)]
    assert norm.midi(0xB0, 1, 64) == []


def test_midi_message_from_mido() -> None:
    norm = EventNormalizer()
    assert norm.midi_message(mido.Message("note_on", note=64, velocity=90)) == [Impulse(64, 90)]
    assert norm.midi_message(mido.Message("note_off", note=64, velocity=40, channel=3)) == [
        Release(0.92)
    ]
    assert norm.midi_message(mido.Message("control_change", control=1, value=5)) == []


def test_key_fires_once_per_press() -> None:
    norm = EventNormalizer()
    assert norm.key_down("a") == [Gesture(), Impulse(48, 95)]
    assert norm.key_down("A") == [Gesture()]
    assert norm.key_up("a") == []
    assert norm.key_down("a") == [Gesture(), Impulse(48, 95)]


def test_unmapped_key_is_only_a_gesture() -> None:
    norm = EventNormalizer()
    assert norm.key_down("z") == [Gesture()]


def test_note_from_x() -> None:
    norm = EventNormalizer(width=1280)
    assert norm.note_from_x(0) == 48
    assert norm.note_from_x(640) == 66
    assert norm.note_from_x(1280) == 84
    assert norm.note_from_x(-1000) == 30
    assert norm.note_from_x(10000) == 96


def test_pointer_scale_quantization() -> None:
    norm = EventNormalizer(EngineConfig(pointer_scale="pentatonic_major"), width=1280)
    assert norm.note_from_x(40) == 48


def test_multitouch_contacts_each_fire() -> None:
    norm = EventNormalizer(width=1280)
    assert norm.pointer_down(1, 0) == [Gesture(), Impulse(48, 90)]
    assert norm.pointer_down(2, 640) == [Gesture(), Impulse(66, 90)]
    assert norm.pointer_down(1, 0) == [Gesture()]
    assert set(norm.contacts) == {1, 2}


def test_drag_retriggers_past_threshold() -> None:
    norm = EventNormalizer(width=1280)
    norm.pointer_down("t0", 100)
    assert norm.pointer_move("t0", 105) == []
    out = norm.pointer_move("t0", 130)
    assert out == [Impulse(norm.note_from_x(130), 85)]
    # anchor moved to 130
    assert norm.pointer_move("t0", 135) == []


def test_drag_velocity_is_clamped() -> None:
    norm = EventNormalizer()
    assert norm.velocity_from_speed(1000) == 127
    assert norm.velocity_from_speed(0) == 50
    assert 45 <= norm.velocity_from_speed(-11) <= 127


def test_only_primary_contact_drags() -> None:
    norm = EventNormalizer()
    norm.pointer_down(1, 100)
    norm.pointer_down(2, 500)
    assert norm.pointer_move(2, 900) == []
    assert norm.pointer_move(99, 900) == []


def test_pointer_up_releases_and_hands_over_primary() -> None:
    norm = EventNormalizer()
    norm.pointer_down(1, 100)
    norm.pointer_down(2, 500)
    assert norm.pointer_up(1) == [Release(0.9)]
    assert norm.pointer_move(2, 540) != []
    assert norm.pointer_cancel(2) == [Release(0.9)]
    assert norm.pointer_up(2) == []
    assert norm.contacts == {}


def test_mouse_press_spark() -> None:
    norm = EventNormalizer(width=1280, rng=random.Random(1), random_policy=AlwaysPolicy())
    assert norm.mouse_press(0) == [Gesture(), Impulse(48, 95), Impulse(51, 80)]


def test_mouse_press_without_spark() -> None:
    norm = EventNormalizer(width=1280, random_policy=NeverPolicy())
    assert norm.mouse_press(0) == [Gesture(), Impulse(48, 95)]
