class PaletteBotError(Exception):
    """Base class for recoverable per-submission failures."""


class ValidationFailed(PaletteBotError):
    pass


class ExtractionFailed(PaletteBotError):
    pass


class ClipboardFailed(PaletteBotError):
    """Copy capability failed. Best-effort: never surfaced as a blocking error."""
