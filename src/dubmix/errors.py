"""
Exception hierarchy for audio decoding, stretching and mixing.
"""


class DubMixError(RuntimeError):
    """Base exception raised by the dubbing mix core."""

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        self.detail = detail
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class CorruptAudioData(DubMixError):
    """Raised when audio bytes have a malformed length or header."""


class UnsupportedFormat(DubMixError):
    """Raised when the container decoder cannot parse the given bytes."""


class InputTooShort(DubMixError):
    """Raised when a buffer is shorter than one stretch grain."""


class EmptyBuffer(DubMixError):
    """Raised when an operation would produce a zero-frame buffer."""


__all__ = [
    "DubMixError",
    "CorruptAudioData",
    "UnsupportedFormat",
    "InputTooShort",
    "EmptyBuffer",
]
