"""Exception hierarchy for incineration runs."""

from __future__ import annotations

from pathlib import Path


class IncineratorError(RuntimeError):
    """Base class for errors that abort an incineration run."""


class SourceTraversalError(IncineratorError):
    """Reading a candidate source file failed for a reason other than syntax.

    Syntax errors only mean "this file is not source" and are never raised;
    anything else found while walking the tree aborts the run.
    """

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"failed to read {path}: {reason}")
        self.path = path
        self.reason = reason


class SourceWriteError(IncineratorError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"failed to write {path}: {reason}")
        self.path = path
        self.reason = reason


class ConfirmationAborted(IncineratorError):
    """Input ended before the operator confirmed incineration."""
