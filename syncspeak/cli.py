"""CLI interface: inspect blocks and speakers, seek, generate and export narration."""

import argparse
import functools
import logging
import os
import re
import shutil
import sys

from syncspeak.constants import OUTPUT_DIR, VERSION
from syncspeak.errors import SyncSpeakError
from syncspeak.parser import wrap_collapsible
from syncspeak.reconcile import Policy
from syncspeak.session import Session
from syncspeak.settings import load_settings
from syncspeak.speakers import resolve_speakers
from syncspeak.sync import SyncModel
from syncspeak.tts import synthesize


def _check_ffmpeg():
    """Verify ffmpeg is installed (needed to decode edge-tts MP3 clips)."""
    if not shutil.which("ffmpeg"):
        print("Error: ffmpeg is required but not found.", file=sys.stderr)
        print("Install with: brew install ffmpeg", file=sys.stderr)
        raise SystemExit(1)


def slug_from_path(script_path: str) -> str:
    """Output directory slug: "Team Standup.md" → "team_standup"."""
    basename = os.path.splitext(os.path.basename(script_path))[0]
    return re.sub(r"[^a-zA-Z0-9]+", "_", basename).strip("_").lower()


def _read_script(file_path: str) -> str:
    if not os.path.exists(file_path):
        print(f"Error: File not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)
    with open(file_path, encoding="utf-8") as f:
        return f.read()


def _load_model(file_path: str, settings=None) -> SyncModel:
    if settings is None:
        settings = load_settings(file_path)
    model = SyncModel(
        seconds_per_word=settings.seconds_per_word,
        min_block_seconds=settings.min_block_seconds,
    )
    model.set_script(_read_script(file_path))
    return model


def _preview(text: str, width: int = 48) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= width else flat[:width - 3] + "..."


def cmd_speakers(args):
    """Show detected speakers and the pair used for synthesis."""
    model = _load_model(args.file)
    if model.speakers:
        print(f"Detected: {', '.join(model.speakers)}")
    else:
        print("Detected: (none)")
    print(f"Voices for: {', '.join(resolve_speakers(model.speakers))}")


def cmd_blocks(args):
    """Print the block table, marking the block active at --at."""
    model = _load_model(args.file)
    if args.at is not None:
        try:
            model.on_time_update(args.at)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            raise SystemExit(1)

    if not model.blocks:
        print("No blocks.")
        return

    active = model.active_block() if args.at is not None else None
    for block in model.blocks:
        marker = ">" if active is not None and block.id == active.id else " "
        speaker = block.speaker or "-"
        print(f"{marker} {block.id:>3}  {block.start_time:7.2f}s  {block.duration:6.2f}s  "
              f"{speaker:<12} {_preview(block.text)}")
    print(f"Total: {len(model.blocks)} blocks, {model.total_duration:.2f}s (estimated)")


def cmd_seek(args):
    """Print the playback time for a block."""
    model = _load_model(args.file)
    try:
        t = model.seek(args.block_id)
    except IndexError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)
    print(f"{t:.2f}")


def cmd_collapse(args):
    """Wrap a character range of the script in a collapsible section."""
    text = _read_script(args.file)
    try:
        updated = wrap_collapsible(text, args.start, args.end)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)
    with open(args.file, "w", encoding="utf-8") as f:
        f.write(updated)
    print(f"Updated: {args.file}")


def cmd_generate(args):
    """Synthesize narration, reconcile block timing and export the triple-pack."""
    _check_ffmpeg()

    settings = load_settings(args.file)
    model = _load_model(args.file, settings)
    synthesizer = functools.partial(
        synthesize,
        voices=settings.voices,
        rate=settings.rate,
        with_timing=not args.no_timing,
    )
    policy = Policy(args.policy) if args.policy else settings.policy
    session = Session(model=model, synthesizer=synthesizer, policy=policy)

    print(f"Generating audio for {len(model.blocks)} blocks...")
    try:
        session.generate_audio()
    except SyncSpeakError as e:
        print(f"Error generating audio: {e}", file=sys.stderr)
        raise SystemExit(1)

    output_dir = args.output or os.path.join(OUTPUT_DIR, slug_from_path(args.file))
    paths = session.export(output_dir)
    print(f"Timing: {model.timing}, {model.total_duration:.2f}s")
    for kind in ("script", "manifest", "audio"):
        if kind in paths:
            print(f"  {kind:<9}{paths[kind]}")


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="syncspeak",
        description="SyncSpeak: two-speaker dialogue scripts with synchronized narration",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    speakers_parser = subparsers.add_parser("speakers", help="Show detected speakers")
    speakers_parser.add_argument("file", help="Path to the script file")
    speakers_parser.set_defaults(func=cmd_speakers)

    blocks_parser = subparsers.add_parser("blocks", help="Show the block timeline")
    blocks_parser.add_argument("file", help="Path to the script file")
    blocks_parser.add_argument("--at", type=float, help="Mark the block active at this time (seconds)")
    blocks_parser.set_defaults(func=cmd_blocks)

    seek_parser = subparsers.add_parser("seek", help="Print the start time of a block")
    seek_parser.add_argument("file", help="Path to the script file")
    seek_parser.add_argument("block_id", type=int, help="Block id (0-based)")
    seek_parser.set_defaults(func=cmd_seek)

    collapse_parser = subparsers.add_parser("collapse", help="Wrap a character range in a collapsible section")
    collapse_parser.add_argument("file", help="Path to the script file")
    collapse_parser.add_argument("start", type=int, help="Start offset")
    collapse_parser.add_argument("end", type=int, help="End offset")
    collapse_parser.set_defaults(func=cmd_collapse)

    generate_parser = subparsers.add_parser("generate", help="Generate narration and export")
    generate_parser.add_argument("file", help="Path to the script file")
    generate_parser.add_argument("-o", "--output", help="Output directory")
    generate_parser.add_argument("--policy", choices=[p.value for p in Policy],
                                 help="How synthesized timing replaces estimates")
    generate_parser.add_argument("--no-timing", action="store_true",
                                 help="Discard per-block timing from the synthesizer")
    generate_parser.set_defaults(func=cmd_generate)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return

    args.func(args)
