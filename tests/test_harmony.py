import pytest

from cathedral.harmony import SCALES, VOICINGS, Scale, choose_voicing, find_scale, voicing_for
from cathedral.mood import Mood


def test_voicing_table() -> None:
    assert voicing_for(Mood.CALM) == (0, 4, 7, 11, 14)
    assert voicing_for(Mood.MYSTERY) == (0, 3, 7, 10, 14, 17)
    assert voicing_for(Mood.TENSION) == (0, 4, 10, 13, 15)
    assert voicing_for(Mood.JOY) == (0, 4, 6, 7, 11, 14)
    assert voicing_for(Mood.EXPANSION) == (0, 3, 7, 10, 14)


def test_expansion_voicing_on_40() -> None:
    assert choose_voicing(40, Mood.EXPANSION) == [40, 43, 47, 50, 54]


@pytest.mark.parametrize("mood", list(Mood))
def test_folded_pitches_stay_in_safe_range(mood: Mood) -> None:
    offsets = VOICINGS[mood]
    for root in range(0, 128):
        notes = choose_voicing(root, mood)
        assert len(notes) == len(offsets)
        for note, off in zip(notes, offsets):
            assert 36 <= note <= 92
            assert (note - (root + off)) % 12 == 0


def test_unfolded_when_already_in_range() -> None:
    notes = choose_voicing(60, Mood.MYSTERY)
    assert [n - 60 for n in notes] == list(VOICINGS[Mood.MYSTERY])


def test_high_root_folds_down_by_octaves() -> None:
    assert choose_voicing(90, Mood.CALM) == [90, 82, 85, 89, 92]


def test_scale_quantize() -> None:
    penta = Scale("p", (0, 2, 4, 7, 9))
    assert penta.quantize(49, root=48) == 48
    assert penta.quantize(54, root=48) == 52
    assert penta.quantize(47, root=48) == 45


def test_scale_tones() -> None:
    penta = SCALES["pentatonic_minor"]
    assert penta.tones(48, 48, 60) == [48, 51, 53, 55, 58, 60]


def test_find_scale() -> None:
    assert find_scale(None) is None
    assert find_scale("nope") is None
    assert find_scale("dorian").name == "dorian"
    custom = {"fifths": Scale("fifths", (0, 7))}
    assert find_scale("fifths", custom) is custom["fifths"]
    assert find_scale("dorian", custom) is None
