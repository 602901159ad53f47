import random

import pytest

from cathedral import EngineConfig, ImpulseEngine
from cathedral.synth import NullSink


@pytest.fixture
def sink() -> NullSink:
    return NullSink()


@pytest.fixture
def make_engine(sink):
    def _make(seed: int = 7, unlocked: bool = True, **overrides) -> ImpulseEngine:
        engine = ImpulseEngine(
            EngineConfig(**overrides), sink=sink, rng=random.Random(seed), clock=lambda: 0.0
        )
        if unlocked:
            assert engine.unlock()
        return engine

    return _make
