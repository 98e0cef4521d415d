"""Export the script, block manifest and narration as three separate files."""

import json
import os
from datetime import datetime, timezone

from pydub import AudioSegment

from syncspeak.constants import MANIFEST_VERSION
from syncspeak.models import Block
from syncspeak.parser import chain_blocks


def build_manifest(blocks, exported_at: datetime) -> dict:
    return {
        "version": MANIFEST_VERSION,
        "blocks": [b.to_manifest() for b in blocks],
        "exportedAt": exported_at.isoformat(),
    }


def _file_stamp(moment: datetime) -> str:
    """ISO timestamp made safe for filenames: 2026-10-19T09-30-00-123456+00-00."""
    return moment.isoformat().replace(":", "-").replace(".", "-")


def export_pack(
    output_dir: str,
    script: str,
    audio: AudioSegment | None,
    blocks,
    now: datetime | None = None,
) -> dict[str, str]:
    """Write the export triple-pack.

    Creates:
      - script-<stamp>.md (source script)
      - manifest-<stamp>.json (block timing manifest)
      - audio-<stamp>.wav (narration, only when audio exists)

    Returns a dict of kind ("script", "manifest", "audio") → path.
    """
    now = now or datetime.now(timezone.utc)
    stamp = _file_stamp(now)
    os.makedirs(output_dir, exist_ok=True)

    paths = {}

    script_path = os.path.join(output_dir, f"script-{stamp}.md")
    with open(script_path, "w", encoding="utf-8") as f:
        f.write(script)
    paths["script"] = script_path

    manifest_path = os.path.join(output_dir, f"manifest-{stamp}.json")
    with open(manifest_path, "w", encoding="utf-8") as f:
        json.dump(build_manifest(blocks, now), f, indent=2)
    paths["manifest"] = manifest_path

    if audio is not None:
        audio_path = os.path.join(output_dir, f"audio-{stamp}.wav")
        audio.export(audio_path, format="wav")
        paths["audio"] = audio_path

    return paths


def load_manifest(path: str) -> tuple[Block, ...]:
    """Read blocks back from an exported manifest.

    Start times are rebuilt from the durations in manifest order.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    version = data.get("version")
    if version != MANIFEST_VERSION:
        raise ValueError(f"Unsupported manifest version: {version!r}")

    entries = sorted(data.get("blocks", []), key=lambda entry: entry["id"])
    blocks = [Block.from_manifest(entry) for entry in entries]
    return chain_blocks((b.text, b.duration, b.speaker) for b in blocks)
