from __future__ import annotations


class RecordingError(ValueError):
    """Base class for everything a decode attempt can fail with."""

    format: str = ""

    def __init__(self, reason: str, *, format: str = "") -> None:
        self.format = str(format or type(self).format)
        self.reason = str(reason)
        if self.format:
            super().__init__(f"{self.format}: {self.reason}")
        else:
            super().__init__(self.reason)


class UnexpectedEndOfData(RecordingError):
    def __init__(self, reason: str = "unexpected end of data", *, format: str = "") -> None:
        super().__init__(reason, format=format)


class MalformedRecording(RecordingError):
    pass


class UnsupportedFormat(MalformedRecording):
    pass


class IncompleteRecording(RecordingError):
    pass


class InconsistentMouseState(RecordingError):
    pass


class InvalidBoardLayout(RecordingError):
    pass


class ReplayStateError(RuntimeError):
    """A replay precondition was violated by the caller (a bug, not bad input)."""
