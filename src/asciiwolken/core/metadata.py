"""Point cloud metadata container."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

# File version reported for formats that carry no version of their own
ASCII_FILE_VERSION = -1
BINARY_FILE_VERSION = -1

# Data type tags (what the payload looked like on disk)
DATA_TYPE_ASCII = 0
DATA_TYPE_BINARY = 1


def default_origin() -> np.ndarray:
    """Sensor origin used when a file carries none: (0, 0, 0)."""
    return np.zeros(3, dtype=np.float32)


def identity_orientation() -> np.ndarray:
    """Identity quaternion as (w, x, y, z)."""
    return np.array([1.0, 0.0, 0.0, 0.0], dtype=np.float32)


@dataclass
class Metadata:
    """Metadata associated with a point cloud.

    Attributes:
        source_file: Original file path this point cloud was read from.
        source_format: File format identifier (e.g. "ascii", "binary").
        origin: Sensor acquisition origin (x, y, z).
        orientation: Sensor acquisition orientation quaternion (w, x, y, z).
        file_version: Format version of the source file.
        data_type: How the payload was stored on disk (DATA_TYPE_*).
        data_offset: Byte offset at which point data begins in the file.
    """

    source_file: str | None = None
    source_format: str | None = None
    origin: np.ndarray = field(default_factory=default_origin)
    orientation: np.ndarray = field(default_factory=identity_orientation)
    file_version: int = ASCII_FILE_VERSION
    data_type: int = DATA_TYPE_ASCII
    data_offset: int = 0

    def copy(self) -> Metadata:
        """Return a copy with its own pose arrays."""
        return Metadata(
            source_file=self.source_file,
            source_format=self.source_format,
            origin=self.origin.copy(),
            orientation=self.orientation.copy(),
            file_version=self.file_version,
            data_type=self.data_type,
            data_offset=self.data_offset,
        )
