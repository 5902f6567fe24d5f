"""Incinerator package root."""

from incinerator.exceptions import (
    ConfirmationAborted,
    IncineratorError,
    SourceTraversalError,
    SourceWriteError,
)

__all__ = [
    "__version__",
    "ConfirmationAborted",
    "IncineratorError",
    "SourceTraversalError",
    "SourceWriteError",
]

__version__ = "0.1.0"
