"""Exceptions raised across the editor core."""


class SyncSpeakError(Exception):
    """Base class for all syncspeak errors."""


class EmptyScript(SyncSpeakError):
    """The script has no content to segment or synthesize."""


class SynthesisFailed(SyncSpeakError):
    """The synthesis collaborator returned no usable audio or raised."""


class GenerationInProgress(SyncSpeakError):
    """A generation was requested while another one is still running."""
