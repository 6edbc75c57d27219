"""Exception classes raised by the formatter and its collaborators."""


class FormatterError(Exception):
    """
    Base exception for all layout errors.

    Attributes:
        code: Short machine-readable error kind, e.g. ``"TickMismatch"``.
    """

    code = "FormatterError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class BadArgumentError(FormatterError, ValueError):
    """Raised when an entry point receives no voices or an unusable argument."""

    code = "BadArgument"


class TickMismatchError(FormatterError):
    """Raised when voices formatted together differ in total duration."""

    code = "TickMismatch"


class IncompleteVoiceError(FormatterError):
    """Raised when a strict voice does not contain enough notes."""

    code = "IncompleteVoice"


class NoMinTotalWidthError(FormatterError):
    """Raised when the minimum total width is read before it was computed."""

    code = "NoMinTotalWidth"


class TooManyTicksError(FormatterError):
    """Raised when a strict or full voice would overflow its total duration."""

    code = "TooManyTicks"


class BadDurationError(FormatterError, ValueError):
    """Raised for an unknown duration code or a malformed key."""

    code = "BadDuration"


class NoTickContextError(FormatterError):
    """Raised when a tickable's position is read before it joined a tick context."""

    code = "NoTickContext"
