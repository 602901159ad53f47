import random

import pytest

from cathedral import EngineConfig, ImpulseEngine
from cathedral.entities import Form, Waveform, form_for_pitch
from cathedral.mood import Mood
from cathedral.normalizer import EventNormalizer
from cathedral.response import response_delay
from cathedral.synth import NullSink
from cathedral.utils import hz_to_midi


def test_locked_engine_drops_impulses(make_engine) -> None:
    engine = make_engine(unlocked=False)
    engine.on_impulse(60, 100, now=0.0)
    st = engine.state
    assert st.dropped_impulses == 1
    assert len(st.cells) == 0
    assert len(st.scheduler) == 0
    assert st.energy == 0.0


def test_failed_unlock_keeps_gate_closed() -> None:
    def boom() -> bool:
        raise RuntimeError("no audio device")

    for unlocker in (lambda: False, boom):
        engine = ImpulseEngine(unlocker=unlocker, rng=random.Random(0))
        assert engine.unlock() is False
        engine.on_impulse(60, 100, now=0.0)
        assert engine.state.dropped_impulses == 1


def test_gesture_signal_unlocks(make_engine) -> None:
    engine = make_engine(unlocked=False)
    norm = EventNormalizer()
    engine.dispatch(norm.key_down("k"), now=0.0)
    assert engine.state.unlocked
    assert engine.state.impulses == 1


def test_midi_before_gesture_is_dropped(make_engine) -> None:
    engine = make_engine(unlocked=False)
    engine.dispatch(EventNormalizer().midi(0x90, 60, 100), now=0.0)
    assert engine.state.dropped_impulses == 1
    assert not engine.state.unlocked


def test_energy_stays_bounded(make_engine) -> None:
    engine = make_engine(seed=3)
    rng = random.Random(11)
    t = 0.0
    for _ in range(600):
        r = rng.random()
        if r < 0.5:
            engine.on_impulse(rng.randint(0, 127), rng.randint(1, 127), now=t)
        elif r < 0.6:
            engine.release(0.92)
        else:
            engine.tick(now=t)
        t += 0.01
        assert 0.0 <= engine.state.energy <= engine.config.energy_cap


def test_pools_never_exceed_capacity(make_engine) -> None:
    engine = make_engine(seed=5, max_voices=4, max_cells=10, max_links=20, max_particles=60)
    engine.seed()
    st = engine.state
    t = 0.0
    for i in range(150):
        engine.on_impulse(30 + i % 60, 127, now=t)
        assert len(st.voices) <= 4
        assert len(st.cells) <= 10
        assert len(st.links) <= 20
        assert len(st.particles) <= 60
        if i % 3 == 0:
            engine.tick(now=t)
        t += 0.05


def test_scenario_low_loud_note(make_engine, sink) -> None:
    engine = make_engine()
    st = engine.state
    st.mood.force(Mood.EXPANSION, now=10.0)

    engine.on_impulse(40, 100, now=10.0)

    assert st.mood.current is Mood.EXPANSION
    cell = list(st.cells)[-1]
    assert cell.form is Form.CUBE
    [pending] = st.scheduler.pending()
    assert pending.due == pytest.approx(10.0 + response_delay(100))
    assert response_delay(100) == pytest.approx(0.101)

    user_voice = sink.started[0]
    assert user_voice.waveform is Waveform.TRIANGLE
    assert not user_voice.autonomous

    engine.tick(now=10.2)
    response_voices = [v for v in sink.started if v.autonomous]
    assert [round(hz_to_midi(v.frequency)) for v in response_voices] == [40, 43, 47, 50, 54]
    assert response_voices[0].waveform is Waveform.SINE
    assert st.responses_fired == 1


def test_response_delay_is_inverse_to_velocity() -> None:
    assert response_delay(0) == pytest.approx(0.220)
    assert response_delay(127) == pytest.approx(0.070)
    assert response_delay(20) > response_delay(60) > response_delay(120)


def test_response_waits_for_its_delay(make_engine) -> None:
    engine = make_engine()
    engine.on_impulse(60, 60, now=0.0)
    engine.tick(now=0.05)
    assert engine.state.responses_fired == 0
    engine.tick(now=0.25)
    assert engine.state.responses_fired == 1
    assert len(engine.state.scheduler) == 0


def test_loud_late_impulse_overtakes(make_engine) -> None:
    engine = make_engine()
    engine.on_impulse(50, 20, now=0.0)
    engine.on_impulse(70, 127, now=0.05)
    first, second = engine.state.scheduler.pending()
    assert first.velocity == 127
    assert second.velocity == 20


def test_response_uses_mood_at_fire_time(make_engine, sink) -> None:
    engine = make_engine()
    st = engine.state
    st.mood.force(Mood.CALM, now=0.0)
    engine.on_impulse(60, 100, now=0.0)
    st.mood.force(Mood.MYSTERY, now=0.05)
    engine.tick(now=0.5)
    response = [v for v in sink.started if v.autonomous]
    assert len(response) == 6


def test_response_spawns_links_not_cells(make_engine) -> None:
    engine = make_engine(seed=2)
    engine.seed()
    st = engine.state
    engine.on_impulse(60, 127, now=0.0)
    cells_before = [c.handle for c in st.cells]
    links_before = list(st.links)
    engine.responder.respond(60, 127, now=0.1)
    assert [c.handle for c in st.cells] == cells_before
    old = {id(l) for l in links_before}
    new_links = [l for l in st.links if id(l) not in old]
    assert len(new_links) <= 4
    assert all(l.autonomous for l in new_links)


def test_user_links_start_at_new_cell(make_engine) -> None:
    engine = make_engine(seed=4)
    engine.seed()
    st = engine.state
    before = list(st.links)
    engine.on_impulse(72, 127, now=0.0)
    cell = list(st.cells)[-1]
    old = {id(l) for l in before}
    new_links = [l for l in st.links if id(l) not in old]
    assert 0 < len(new_links) <= 6
    assert all(l.a == cell.handle and not l.autonomous for l in new_links)


def test_capacity_scenario_keeps_most_recent_cells(make_engine) -> None:
    engine = make_engine()
    t = 0.0
    for i in range(200):
        engine.on_impulse(36 + i % 50, 100, now=t)
        t += 0.001
    assert [c.handle for c in engine.state.cells] == list(range(110, 200))


def test_note_off_only_touches_energy(make_engine) -> None:
    engine = make_engine()
    engine.on_impulse(60, 100, now=0.0)
    st = engine.state
    energy, mood = st.energy, st.mood.current
    sizes = (len(st.voices), len(st.cells), len(st.links), len(st.particles))
    engine.dispatch(EventNormalizer().midi(0x80, 60, 0), now=0.1)
    assert st.energy == pytest.approx(energy * 0.92)
    assert st.mood.current is mood
    assert (len(st.voices), len(st.cells), len(st.links), len(st.particles)) == sizes


def test_tick_relaxes_energy(make_engine) -> None:
    engine = make_engine()
    engine.on_impulse(60, 127, now=0.0)
    assert engine.state.energy == pytest.approx(0.2 * 0.85)
    engine.tick(now=0.01)
    assert engine.state.energy == pytest.approx(0.2 * 0.85 * 0.985)


def test_energy_caps_at_upper_bound(make_engine) -> None:
    engine = make_engine()
    for i in range(40):
        engine.on_impulse(60, 127, now=i * 0.001)
    assert engine.state.energy == pytest.approx(1.4)


def test_particle_burst_scales_with_amplitude(make_engine) -> None:
    engine = make_engine()
    engine.on_impulse(60, 127, now=0.0)
    loud = len(engine.state.particles)
    assert 27 <= loud <= 28
    engine.on_impulse(60, 0, now=0.0)
    assert len(engine.state.particles) == loud + 7


def test_cell_attributes_follow_pitch_and_velocity(make_engine) -> None:
    engine = make_engine()
    engine.on_impulse(96, 127, now=0.0)
    cell = list(engine.state.cells)[-1]
    assert cell.form is Form.SPHERE
    assert cell.sides == 13
    assert cell.outer_radius == pytest.approx(130.0)
    assert cell.alpha == pytest.approx(200.0)
    assert 0.35 * 130.0 <= cell.inner_radius <= 0.85 * 130.0
    assert 0.0 <= cell.hue < 360.0
    assert cell.life == 255.0


@pytest.mark.parametrize(
    "pitch,form",
    [(0, Form.CUBE), (44, Form.CUBE), (45, Form.POLY), (61, Form.POLY), (62, Form.PYRAMID),
     (77, Form.PYRAMID), (78, Form.SPHERE), (127, Form.SPHERE)],
)
def test_form_bands(pitch: int, form: Form) -> None:
    assert form_for_pitch(pitch) is form


def test_cells_expire(make_engine) -> None:
    engine = make_engine(cell_life=1.0, cell_decay=0.6)
    engine.on_impulse(60, 100, now=0.0)
    engine.tick(now=1.0)
    assert len(engine.state.cells) == 1
    engine.tick(now=1.1)
    assert len(engine.state.cells) == 0


def test_voices_end_with_their_envelope(make_engine, sink) -> None:
    engine = make_engine()
    engine.on_impulse(60, 100, now=0.0)
    user = sink.started[0]
    engine.tick(now=0.3)
    assert user in engine.state.voices
    engine.tick(now=0.7)
    assert user not in engine.state.voices
    assert user in sink.stopped


def test_dangling_links_are_pruned(make_engine) -> None:
    engine = make_engine(seed=9, max_cells=20)
    engine.seed()
    for i in range(120):
        engine.on_impulse(36 + i % 50, 110, now=i * 0.001)
    engine.tick(now=5.0)  # fires every pending response
    for k in range(8):
        engine.tick(now=5.0 + k * 0.016)
    st = engine.state
    for link in st.links:
        assert st.cells.get(link.a) is not None
        assert st.cells.get(link.b) is not None


def run_sequence(seed: int):
    engine = ImpulseEngine(EngineConfig(), sink=NullSink(), rng=random.Random(seed))
    engine.unlock()
    script = random.Random(1234)
    moods, forms = [], []
    t = 0.0
    for _ in range(80):
        engine.on_impulse(script.randint(20, 110), script.randint(1, 127), now=t)
        moods.append(engine.state.mood.current)
        forms.append(list(engine.state.cells)[-1].form)
        engine.tick(now=t)
        t += script.uniform(0.05, 0.6)
    return moods, forms


def test_same_seed_same_moods_and_forms() -> None:
    assert run_sequence(42) == run_sequence(42)
