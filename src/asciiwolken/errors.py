"""Exception types raised by asciiwolken readers and writers."""

from __future__ import annotations


class AsciiWolkenError(Exception):
    """Base class for all asciiwolken failures.

    Attributes:
        filename: File being processed, if any.
        line: 1-based line number (counted from the read offset), if any.
        field: Name of the point field involved, if any.
    """

    def __init__(
        self,
        message: str,
        filename: str | None = None,
        line: int | None = None,
        field: str | None = None,
    ) -> None:
        self.message = message
        self.filename = filename
        self.line = line
        self.field = field
        super().__init__(self._format())

    def __str__(self) -> str:
        # OSError.__str__ would render errno/filename instead
        return self._format()

    def _format(self) -> str:
        # e.g. "expected 3 tokens, got 2, line 1, file 'points.txt'"
        parts = [self.message]
        if self.line is not None:
            parts.append(f"line {self.line}")
        if self.field is not None:
            parts.append(f"field '{self.field}'")
        if self.filename is not None:
            parts.append(f"file '{self.filename}'")
        return ", ".join(parts)


class ConfigurationError(AsciiWolkenError, ValueError):
    """The reader is not usable as configured (no schema, no separators, ...)."""


class PointCloudIOError(AsciiWolkenError, OSError):
    """The file could not be opened or read, or the offset lies past its end."""


class FormatError(AsciiWolkenError, ValueError):
    """The file content does not match the configured schema."""
