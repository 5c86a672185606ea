"""Core PackedPointCloud class — packed binary records plus a field schema."""

from __future__ import annotations

from typing import Iterator, Sequence

import numpy as np

from asciiwolken.core.fields import (
    PointField,
    fields_from_dtype,
    layout_fields,
    record_stride,
    to_numpy_dtype,
)
from asciiwolken.core.metadata import Metadata


class PackedPointCloud:
    """Point cloud stored as one contiguous little-endian byte payload.

    Every point is a record of ``point_step`` bytes whose layout is given by
    ``fields``. A cloud produced by a header-only read has ``width`` set but
    no payload (``has_data`` is False).

    Examples:
        >>> from asciiwolken.core.fields import PointXYZ
        >>> data = np.array([1, 2, 3, 4, 5, 6], dtype="<f4").tobytes()
        >>> pc = PackedPointCloud(PointXYZ.point_fields(), data, width=2)
        >>> len(pc)
        2
        >>> pc["y"]
        array([2., 5.], dtype=float32)
    """

    def __init__(
        self,
        fields: Sequence[PointField],
        data: bytes = b"",
        width: int | None = None,
        metadata: Metadata | None = None,
    ) -> None:
        self._fields: list[PointField] = layout_fields(fields)
        self._point_step: int = record_stride(self._fields)
        self._data: bytes = bytes(data)
        if width is None:
            if len(self._data) % self._point_step:
                raise ValueError(
                    f"Payload of {len(self._data)} bytes is not a multiple "
                    f"of the point step {self._point_step}"
                )
            width = len(self._data) // self._point_step
        elif self._data and len(self._data) != width * self._point_step:
            raise ValueError(
                f"Payload of {len(self._data)} bytes doesn't match "
                f"{width} points of {self._point_step} bytes"
            )
        self._width: int = width
        self._metadata: Metadata = metadata if metadata is not None else Metadata()

    # ── Properties ──────────────────────────────────────────────────

    @property
    def num_points(self) -> int:
        """Number of points in the cloud."""
        return self._width * self.height

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        """Always 1: clouds read from files are unorganized."""
        return 1

    @property
    def is_dense(self) -> bool:
        return True

    @property
    def fields(self) -> list[PointField]:
        """The record schema, with offsets assigned."""
        return list(self._fields)

    @property
    def dimensions(self) -> list[str]:
        """List of field names present in this cloud."""
        return [f.name for f in self._fields]

    @property
    def point_step(self) -> int:
        """Size of one point record in bytes."""
        return self._point_step

    @property
    def row_step(self) -> int:
        return self._point_step * self._width

    @property
    def data(self) -> bytes:
        """The raw payload (empty for header-only clouds)."""
        return self._data

    @property
    def has_data(self) -> bool:
        """Whether the payload has been materialized."""
        return len(self._data) == self.row_step

    @property
    def dtype(self) -> np.dtype:
        """Structured numpy dtype of one record."""
        return to_numpy_dtype(self._fields)

    @property
    def metadata(self) -> Metadata:
        return self._metadata

    @metadata.setter
    def metadata(self, value: Metadata) -> None:
        self._metadata = value

    @property
    def origin(self) -> np.ndarray:
        """Sensor acquisition origin (x, y, z)."""
        return self._metadata.origin

    @property
    def orientation(self) -> np.ndarray:
        """Sensor acquisition orientation quaternion (w, x, y, z)."""
        return self._metadata.orientation

    # ── Array Access ────────────────────────────────────────────────

    def __getitem__(self, key: str) -> np.ndarray:
        """Get a field array by name: pc['x']."""
        if key not in self:
            raise KeyError(f"Field '{key}' not found. Available: {self.dimensions}")
        return self.to_numpy()[key]

    def __contains__(self, key: str) -> bool:
        """Check if a field exists: 'x' in pc."""
        return any(f.name == key for f in self._fields)

    def __len__(self) -> int:
        """Number of points."""
        return self.num_points

    def __repr__(self) -> str:
        dims = ", ".join(self.dimensions[:6])
        if len(self.dimensions) > 6:
            dims += f", ... (+{len(self.dimensions) - 6} more)"
        state = "" if self.has_data else ", header only"
        return (
            f"PackedPointCloud({self.num_points:,} points, dims=[{dims}], "
            f"point_step={self._point_step}{state})"
        )

    # ── Slicing ─────────────────────────────────────────────────────

    def slice(self, start: int, end: int) -> PackedPointCloud:
        """Return a new cloud with points in [start, end) range."""
        self._require_data()
        start, end, _ = slice(start, end).indices(self._width)
        end = max(start, end)
        step = self._point_step
        return PackedPointCloud(
            self._fields,
            self._data[start * step:end * step],
            width=end - start,
            metadata=self._metadata.copy(),
        )

    def iter_chunks(self, chunk_size: int) -> Iterator[PackedPointCloud]:
        """Iterate over the point cloud in chunks.

        Args:
            chunk_size: Number of points per chunk.

        Yields:
            PackedPointCloud objects, each containing up to chunk_size points.
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        for start in range(0, self.num_points, chunk_size):
            yield self.slice(start, start + chunk_size)

    # ── Conversion ──────────────────────────────────────────────────

    def to_numpy(self) -> np.ndarray:
        """Read-only structured array view over the payload."""
        self._require_data()
        return np.frombuffer(self._data, dtype=self.dtype, count=self._width)

    def to_dict(self) -> dict[str, np.ndarray]:
        """Return a dict of field arrays (views into the payload)."""
        arr = self.to_numpy()
        return {name: arr[name] for name in self.dimensions}

    @classmethod
    def from_numpy(
        cls, arr: np.ndarray, metadata: Metadata | None = None
    ) -> PackedPointCloud:
        """Create from a numpy structured array.

        The array is repacked into little-endian records without padding.
        """
        fields = fields_from_dtype(arr.dtype)
        packed = np.empty(len(arr), dtype=to_numpy_dtype(fields))
        for name in arr.dtype.names:
            packed[name] = arr[name]
        return cls(fields, packed.tobytes(), width=len(arr), metadata=metadata)

    def copy(self) -> PackedPointCloud:
        """Copy of this point cloud (the payload is immutable bytes)."""
        return PackedPointCloud(
            self._fields, self._data, width=self._width,
            metadata=self._metadata.copy(),
        )

    def _require_data(self) -> None:
        if not self.has_data:
            raise ValueError("Point cloud holds a header only; read() it first")
