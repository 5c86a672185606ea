"""Base classes for readers and writers."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Iterator

from asciiwolken.core.pointcloud import PackedPointCloud
from asciiwolken.errors import ConfigurationError, PointCloudIOError


def check_offset(offset: Any) -> int:
    """Validate the `offset` read option (bytes to skip before the data)."""
    offset = int(offset)
    if offset < 0:
        raise ConfigurationError(f"Read offset must be >= 0, got {offset}")
    return offset


def open_at_offset(path: str, offset: int) -> BinaryIO:
    """Open a file for binary reading, positioned at `offset`.

    Raises:
        PointCloudIOError: The file cannot be opened, or `offset` lies past
            its end.
    """
    try:
        f = open(path, "rb")
    except OSError as exc:
        raise PointCloudIOError(
            f"cannot open file ({exc.strerror or exc})", filename=str(path)
        ) from exc
    size = os.fstat(f.fileno()).st_size
    if offset > size:
        f.close()
        raise PointCloudIOError(
            f"offset {offset} is beyond the end of the file ({size} bytes)",
            filename=str(path),
        )
    f.seek(offset)
    return f


class Reader(ABC):
    """Base class for all point cloud readers.

    Readers of different formats are interchangeable: both entry points
    return a :class:`PackedPointCloud` of the same shape, and failures raise
    :class:`~asciiwolken.errors.AsciiWolkenError` subclasses.
    """

    @abstractmethod
    def read_header(self, path: str, **options: Any) -> PackedPointCloud:
        """Load only the metadata of a point cloud file.

        Args:
            path: File path to read.
            **options: Format-specific options (e.g. ``offset``).

        Returns:
            Header-only PackedPointCloud: point count, fields and pose are
            set, the payload is empty.
        """

    @abstractmethod
    def read(self, path: str, **options: Any) -> PackedPointCloud:
        """Read a point cloud file.

        Args:
            path: File path to read.
            **options: Format-specific options (e.g. ``offset``).

        Returns:
            PackedPointCloud with the full payload.
        """

    def read_chunked(
        self, path: str, chunk_size: int = 1_000_000, **options: Any
    ) -> Iterator[PackedPointCloud]:
        """Read a file in chunks.

        Default implementation reads all then chunks.

        Args:
            path: File path to read.
            chunk_size: Points per chunk.
            **options: Format-specific options.

        Yields:
            PackedPointCloud chunks.
        """
        pc = self.read(path, **options)
        yield from pc.iter_chunks(chunk_size)

    @abstractmethod
    def extensions(self) -> list[str]:
        """File extensions this reader handles (e.g., ['.txt', '.xyz'])."""

    @classmethod
    @abstractmethod
    def type_name(cls) -> str:
        """Type identifier (e.g., 'readers.ascii')."""


class Writer(ABC):
    """Base class for all point cloud writers."""

    @abstractmethod
    def write(self, pc: PackedPointCloud, path: str, **options: Any) -> int:
        """Write a point cloud to file.

        Args:
            pc: PackedPointCloud to write.
            path: Output file path.
            **options: Format-specific options.

        Returns:
            Number of points written.
        """

    @classmethod
    @abstractmethod
    def extensions(cls) -> list[str]:
        """File extensions this writer handles."""

    @classmethod
    @abstractmethod
    def type_name(cls) -> str:
        """Type identifier (e.g., 'writers.ascii')."""
