"""Command line front end for the drum machine: list, export, bounce and play."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Sequence
import wave

import numpy as np

from audio.backend import OfflineBackend
from audio.engine import EngineConfig
from audio.metrics import render_summary
from audio.synth import VoiceSynthesizer
from domain.persistence import PatternFileAdapter
from domain.presets import template_catalog
from tracker.clock import AsyncioTimerHost, ManualClock
from tracker.sequencer import DrumSequencer


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Three-voice 16-step drum machine (kick, snare, hi-hat).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity for transport and synthesis messages.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("templates", help="List the built-in pattern templates.")

    for name, help_text in (
        ("export", "Write a template or pattern file as a persisted pattern document."),
        ("bounce", "Render the pattern offline to a 16-bit WAV file."),
        ("play", "Play the pattern through the sound card for a while."),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        source = sub.add_mutually_exclusive_group()
        source.add_argument("--template", default=None, help="Template id to load (see `templates`).")
        source.add_argument("--pattern-file", type=Path, help="Pattern JSON document to import.")
        sub.add_argument("--bpm", type=int, default=None, help="Override the tempo in beats per minute.")
        if name in {"export", "bounce"}:
            sub.add_argument("--output", type=Path, required=True, help="Destination file.")
        if name == "bounce":
            sub.add_argument("--bars", type=int, default=1, help="Number of pattern passes to render.")
            sub.add_argument("--sample-rate", type=int, default=44_100, help="Output sample rate in Hz.")
        if name == "play":
            sub.add_argument("--seconds", type=float, default=8.0, help="How long to play before stopping.")
    return parser.parse_args(argv)


def _prepare(sequencer: DrumSequencer, args: argparse.Namespace) -> None:
    if args.template is not None:
        sequencer.load_template(args.template)
    elif args.pattern_file is not None:
        raw = args.pattern_file.read_text(encoding="utf-8")
        if not sequencer.import_pattern(raw):
            raise SystemExit(f"Invalid pattern document: {args.pattern_file}")
    if args.bpm is not None:
        sequencer.set_tempo(args.bpm)


def _offline_sequencer(sample_rate: int = 44_100) -> DrumSequencer:
    config = EngineConfig(sample_rate=sample_rate)
    return DrumSequencer(VoiceSynthesizer(OfflineBackend(config)), ManualClock())


def write_wav(path: Path, buffer: np.ndarray, sample_rate: int) -> Path:
    """Write a float buffer as 16-bit PCM."""

    data = buffer if buffer.ndim == 2 else buffer[:, None]
    pcm = (np.clip(data, -1.0, 1.0) * 32767.0).astype("<i2")
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), mode="wb") as handle:
        handle.setnchannels(data.shape[1])
        handle.setsampwidth(2)
        handle.setframerate(sample_rate)
        handle.writeframes(pcm.tobytes())
    return path


async def _play(sequencer: DrumSequencer, seconds: float) -> None:  # pragma: no cover - needs audio device
    sequencer.play()
    await asyncio.sleep(seconds)
    sequencer.stop()


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    if args.command == "templates":
        print(json.dumps(template_catalog(), indent=2))
        return 0

    if args.command == "export":
        sequencer = _offline_sequencer()
        _prepare(sequencer, args)
        adapter = PatternFileAdapter(args.output.parent)
        destination = adapter.save(sequencer.export_snapshot(), args.output.name)
        print(json.dumps({"output": str(destination), "bpm": sequencer.tempo_bpm}, indent=2))
        return 0

    if args.command == "bounce":
        sequencer = _offline_sequencer(args.sample_rate)
        _prepare(sequencer, args)
        buffer = sequencer.render_loop(args.bars)
        destination = write_wav(args.output, buffer, args.sample_rate)
        summary = {"output": str(destination), "bpm": sequencer.tempo_bpm, "bars": args.bars}
        summary.update(render_summary(buffer, sample_rate=args.sample_rate))
        print(json.dumps(summary, indent=2))
        return 0

    async def run() -> None:  # pragma: no cover - needs audio device
        sequencer = DrumSequencer.create(AsyncioTimerHost())
        _prepare(sequencer, args)
        print(sequencer.status())
        await _play(sequencer, args.seconds)

    asyncio.run(run())  # pragma: no cover - needs audio device
    return 0  # pragma: no cover


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
