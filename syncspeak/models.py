"""Data models for script blocks and synthesis results."""

from dataclasses import dataclass

from pydub import AudioSegment


@dataclass(frozen=True)
class Block:
    id: int            # 0-based index, stable only within one segmentation pass
    text: str          # raw paragraph, markup tags included
    start_time: float  # seconds from narration start
    duration: float    # seconds, always > 0
    speaker: str | None = None

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def to_manifest(self) -> dict:
        """Manifest entry: id, text, startTime, duration."""
        return {
            "id": self.id,
            "text": self.text,
            "startTime": self.start_time,
            "duration": self.duration,
        }

    @classmethod
    def from_manifest(cls, data: dict) -> "Block":
        return cls(
            id=int(data["id"]),
            text=data["text"],
            start_time=float(data["startTime"]),
            duration=float(data["duration"]),
        )


@dataclass
class SynthesisResult:
    audio: AudioSegment
    blocks: list[Block] | None = None  # authoritative timing, when the synthesizer supplies it

    @property
    def duration(self) -> float:
        return len(self.audio) / 1000
