"""I/O readers and writers for ASCII and packed binary point files."""

from asciiwolken.io.registry import read, read_header, write, io_registry

__all__ = ["read", "read_header", "write", "io_registry"]
