"""Exception hierarchy for logicnet."""

from __future__ import annotations


class LogicNetError(Exception):
    """Base class for all logicnet errors."""


class ShapeError(LogicNetError, ValueError):
    """A buffer, vector or bound structure does not match the network shape."""


class CheckpointError(LogicNetError):
    """Base class for recoverable checkpoint I/O failures."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class CheckpointNotFoundError(CheckpointError, FileNotFoundError):
    """No checkpoint exists at the path, or it cannot be opened."""


class ShapeMismatchError(CheckpointError):
    """The checkpoint was written by a network of a different shape."""

    def __init__(self, message: str, path: str | None = None, *, expected=None, found=None) -> None:
        super().__init__(message, path)
        self.expected = expected
        self.found = found


class CheckpointCorruptError(CheckpointError):
    """The checkpoint exists but is truncated or otherwise unreadable."""


class CheckpointWriteError(CheckpointError, OSError):
    """The checkpoint could not be written."""


__all__ = [
    "LogicNetError",
    "ShapeError",
    "CheckpointError",
    "CheckpointNotFoundError",
    "ShapeMismatchError",
    "CheckpointCorruptError",
    "CheckpointWriteError",
]
