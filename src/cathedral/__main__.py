#!/usr/bin/env python3
"""
Run the cathedral instrument.

Usage:
    python -m cathedral                      # MIDI in, FluidSynth out, 60 s
    python -m cathedral --demo --seconds 30  # play itself
    python -m cathedral --silent --demo      # no audio, log only

Environment:
    FLUIDSYNTH_SOUNDFONT  soundfont path (default /usr/share/sounds/sf2/FluidR3_GM.sf2)
    FLUIDSYNTH_DRIVER     audio driver (default alsa)
    CATHEDRAL_GAIN        synth gain (default 0.5)
"""

import argparse
import asyncio
import logging
import random
from typing import List, Optional

from .config import AudioConfig, EngineConfig
from .engine import ImpulseEngine
from .events import EventBus
from .nodes import FrameClock, InstrumentNode, MidiInputNode, RandomImpulseNode
from .synth import FluidSynthSink, NullSink
from .system import System


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cathedral",
        description="Call-and-response audiovisual instrument engine",
    )
    parser.add_argument("--seconds", "-s", type=float, default=60.0, help="Run time (default: 60)")
    parser.add_argument("--fps", type=float, default=60.0, help="Simulation rate (default: 60)")
    parser.add_argument("--demo", action="store_true", help="Play random impulses")
    parser.add_argument("--midi-port", default=None, help="Exact MIDI input port name")
    parser.add_argument(
        "--midi-keyword",
        action="append",
        default=[],
        help="Pick the MIDI input whose name contains this (repeatable)",
    )
    parser.add_argument("--preset", default="glass", help="Waveform preset (glass, organ, choir)")
    parser.add_argument("--silent", action="store_true", help="Do not start FluidSynth")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def audio_label(sink, preset: str) -> str:
    """Banner text for the sink actually in use."""
    return "silent" if isinstance(sink, NullSink) else preset


async def main(args: argparse.Namespace) -> None:
    config = EngineConfig(fps=args.fps)
    rng = random.Random(args.seed)

    sink = NullSink() if args.silent else FluidSynthSink(AudioConfig.from_env(), preset=args.preset)
    engine = ImpulseEngine(config, sink=sink, rng=rng, unlocker=sink.unlock)

    # launching from a terminal counts as the unlocking gesture
    if not engine.unlock():
        print("Audio unavailable, running silent.", flush=True)
        sink = NullSink()
        engine.state.voices.sink = sink
        engine.unlocker = sink.unlock
        engine.unlock()

    bus = EventBus()
    system = System(bus)
    system.add(InstrumentNode(bus, engine))
    system.add(FrameClock(bus, fps=config.fps))
    system.add(MidiInputNode(bus, port_name=args.midi_port, keywords=args.midi_keyword))
    if args.demo:
        system.add(RandomImpulseNode(bus, rng=random.Random(rng.random())))

    print(f"Cathedral running for {args.seconds}s...", flush=True)
    print(f"  FPS: {config.fps}", flush=True)
    print(f"  Audio: {audio_label(sink, args.preset)}", flush=True)
    print(f"  Demo player: {'on' if args.demo else 'off'}", flush=True)

    try:
        await system.run_for(args.seconds)
    finally:
        sink.close()
        st = engine.state
        print(
            f"Done. impulses={st.impulses} responses={st.responses_fired} "
            f"dropped={st.dropped_impulses} mood={st.mood.current.value}",
            flush=True,
        )


def run(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(main(args))


if __name__ == "__main__":
    run()
