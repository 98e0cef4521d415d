"""All magic numbers and configuration constants."""

SECONDS_PER_WORD = 0.45                      # heuristic speech rate (~133 wpm)
MIN_BLOCK_SECONDS = 2.0                      # floor for any block duration
MAX_SPEAKERS = 2                             # dialogue scripts have two voices
PLACEHOLDER_SPEAKERS = ("Speaker A", "Speaker B")
SPEAKER_VOICES = ("en-US-GuyNeural", "en-US-JennyNeural")  # voice per speaker slot
TTS_RATE = "+0%"                             # edge-tts relative speech rate
TTS_RETRY_COUNT = 3                          # max retries per TTS clip
TTS_RETRY_BASE_DELAY = 1.0                   # seconds, base delay for exponential backoff
MANIFEST_VERSION = "1.0"
COLLAPSIBLE_SUMMARY = "Click to Expand"
SETTINGS_SUFFIX = ".sync.json"               # sidecar config next to the script
OUTPUT_DIR = "output"
VERSION = "0.1.0"
