"""tickspacer: horizontal layout of notes across aligned voices and staves."""

from tickspacer.contexts import ModifierContext, TickContext
from tickspacer.errors import (
    BadArgumentError,
    FormatterError,
    IncompleteVoiceError,
    NoMinTotalWidthError,
    TickMismatchError,
)
from tickspacer.formatter import Formatter
from tickspacer.stave import Stave
from tickspacer.tickables import Accidental, BarNote, Dot, Note, Tuplet
from tickspacer.voice import Voice, VoiceMode

__version__ = "0.1.0"

__all__ = [
    "Accidental",
    "BadArgumentError",
    "BarNote",
    "Dot",
    "Formatter",
    "FormatterError",
    "IncompleteVoiceError",
    "ModifierContext",
    "NoMinTotalWidthError",
    "Note",
    "Stave",
    "TickContext",
    "TickMismatchError",
    "Tuplet",
    "Voice",
    "VoiceMode",
    "__version__",
]
