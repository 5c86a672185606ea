"""I/O registry — format selection by extension and convenience functions."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

from asciiwolken.core.pointcloud import PackedPointCloud
from asciiwolken.io.base import Reader, Writer


class IORegistry:
    """Registry for readers and writers, keyed by file extension.

    Readers are registered as configured instances (their schema and
    extension are instance state); writers as classes.
    """

    def __init__(self) -> None:
        self._readers: dict[str, Reader] = {}  # extension -> Reader instance
        self._writers: dict[str, type[Writer]] = {}
        self._reader_types: dict[str, Reader] = {}  # type_name -> Reader instance
        self._writer_types: dict[str, type[Writer]] = {}

    def register_reader(self, reader: Reader) -> None:
        """Register a reader instance for its extensions.

        A later registration for the same extension replaces the earlier one.
        """
        for ext in reader.extensions():
            self._readers[ext.lower()] = reader
        self._reader_types[reader.type_name()] = reader

    def register_writer(self, cls: type[Writer]) -> None:
        """Register a writer class for its extensions."""
        for ext in cls.extensions():
            self._writers[ext.lower()] = cls
        self._writer_types[cls.type_name()] = cls

    def get_reader(self, path: str) -> Reader:
        """Get the reader registered for the given file path."""
        ext = Path(path).suffix.lower()
        if ext not in self._readers:
            raise ValueError(
                f"No reader for extension '{ext}'. "
                f"Supported: {list(self._readers.keys())}"
            )
        return self._readers[ext]

    def get_writer(self, path: str) -> Writer:
        """Get a writer instance for the given file path."""
        ext = Path(path).suffix.lower()
        if ext not in self._writers:
            raise ValueError(
                f"No writer for extension '{ext}'. "
                f"Supported: {list(self._writers.keys())}"
            )
        return self._writers[ext]()

    def get_reader_by_type(self, type_name: str) -> Reader:
        """Get a reader by its type name (e.g., 'readers.ascii')."""
        if type_name not in self._reader_types:
            raise ValueError(
                f"Unknown reader type '{type_name}'. "
                f"Available: {list(self._reader_types.keys())}"
            )
        return self._reader_types[type_name]

    def get_writer_by_type(self, type_name: str) -> Writer:
        """Get a writer by its type name (e.g., 'writers.ascii')."""
        if type_name not in self._writer_types:
            raise ValueError(
                f"Unknown writer type '{type_name}'. "
                f"Available: {list(self._writer_types.keys())}"
            )
        return self._writer_types[type_name]()

    @property
    def reader_extensions(self) -> list[str]:
        return list(self._readers.keys())


# Global registry instance
io_registry = IORegistry()


def _ensure_registered() -> None:
    """Register built-in readers/writers (lazy, on first use).

    The default readers expect x, y, z as float32; register a reconfigured
    reader to read other layouts through :func:`read`.
    """
    if io_registry._readers:
        return

    from asciiwolken.core.fields import PointXYZ
    from asciiwolken.io.ascii import AsciiReader, AsciiWriter
    from asciiwolken.io.binary import BinaryReader, BinaryWriter

    io_registry.register_reader(AsciiReader(PointXYZ))
    io_registry.register_writer(AsciiWriter)
    io_registry.register_reader(BinaryReader(PointXYZ))
    io_registry.register_writer(BinaryWriter)


def register_reader(reader: Reader) -> None:
    """Register a configured reader in the global registry."""
    _ensure_registered()
    io_registry.register_reader(reader)


def get_reader(path: str) -> Reader:
    """Get the globally registered reader for the given file path."""
    _ensure_registered()
    return io_registry.get_reader(path)


def read_header(path: str, **options: Any) -> PackedPointCloud:
    """Read only the metadata of a point cloud file (format from extension)."""
    _ensure_registered()
    reader = io_registry.get_reader(path)
    return reader.read_header(path, **options)


def read(path: str, **options: Any) -> PackedPointCloud:
    """Read a point cloud file (format from extension).

    Args:
        path: File path to read.
        **options: Format-specific options.

    Returns:
        PackedPointCloud with the full payload.
    """
    _ensure_registered()
    reader = io_registry.get_reader(path)
    return reader.read(path, **options)


def read_chunked(
    path: str, chunk_size: int = 1_000_000, **options: Any
) -> Iterator[PackedPointCloud]:
    """Read a point cloud file in chunks (format from extension).

    Args:
        path: File path to read.
        chunk_size: Points per chunk.
        **options: Format-specific options.

    Yields:
        PackedPointCloud chunks.
    """
    _ensure_registered()
    reader = io_registry.get_reader(path)
    yield from reader.read_chunked(path, chunk_size, **options)


def write(pc: PackedPointCloud, path: str, **options: Any) -> int:
    """Write a point cloud to file (format from extension).

    Args:
        pc: PackedPointCloud to write.
        path: Output file path.
        **options: Format-specific options.

    Returns:
        Number of points written.
    """
    _ensure_registered()
    writer = io_registry.get_writer(path)
    return writer.write(pc, path, **options)
