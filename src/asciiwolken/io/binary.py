"""Binary reader/writer — headerless files of packed little-endian records.

The layout of every record is given by the configured fields, exactly as in
the payload of a :class:`PackedPointCloud` (e.g. KITTI-style ``.bin`` scans
of x, y, z, intensity as float32).
"""

from __future__ import annotations

import logging
from typing import Any

from asciiwolken.core.fields import FieldSource, PointField, record_stride, resolve_fields
from asciiwolken.core.metadata import BINARY_FILE_VERSION, DATA_TYPE_BINARY, Metadata
from asciiwolken.core.pointcloud import PackedPointCloud
from asciiwolken.errors import ConfigurationError, FormatError, PointCloudIOError
from asciiwolken.io.base import Reader, Writer, check_offset, open_at_offset

logger = logging.getLogger(__name__)


class BinaryReader(Reader):
    """Read raw packed point records.

    Options:
        offset: int — Bytes to skip before the first record.
    """

    def __init__(self, fields: FieldSource | None = None) -> None:
        self._fields: list[PointField] | None = None
        if fields is not None:
            self.set_input_fields(fields)

    def set_input_fields(self, fields: FieldSource) -> None:
        self._fields = resolve_fields(fields)

    @property
    def input_fields(self) -> list[PointField] | None:
        return list(self._fields) if self._fields is not None else None

    def read_header(self, path: str, **options: Any) -> PackedPointCloud:
        fields = self._require_fields()
        offset = check_offset(options.get("offset", 0))
        stride = record_stride(fields)

        with open_at_offset(path, offset) as f:
            f.seek(0, 2)
            nbytes = f.tell() - offset

        count, remainder = divmod(nbytes, stride)
        if remainder:
            raise FormatError(
                f"{nbytes} data bytes is not a multiple of the "
                f"{stride}-byte record",
                filename=str(path),
            )
        return PackedPointCloud(
            fields, width=count, metadata=self._make_metadata(path, offset)
        )

    def read(self, path: str, **options: Any) -> PackedPointCloud:
        header = self.read_header(path, **options)
        offset = header.metadata.data_offset

        with open_at_offset(path, offset) as f:
            try:
                data = f.read(header.row_step)
            except OSError as exc:
                raise PointCloudIOError(f"read failed ({exc})", filename=str(path)) from exc

        if len(data) != header.row_step:
            raise FormatError(
                f"expected {header.row_step} data bytes, got {len(data)}; "
                f"the file changed while being read",
                filename=str(path),
            )

        logger.info("Read %d points (%d bytes) from %s", header.num_points, len(data), path)
        return PackedPointCloud(
            header.fields, data, width=header.num_points, metadata=header.metadata
        )

    def _require_fields(self) -> list[PointField]:
        if self._fields is None:
            raise ConfigurationError(
                "No input fields set; call set_input_fields() before reading"
            )
        return self._fields

    def _make_metadata(self, path: str, offset: int) -> Metadata:
        return Metadata(
            source_file=str(path),
            source_format="binary",
            file_version=BINARY_FILE_VERSION,
            data_type=DATA_TYPE_BINARY,
            data_offset=offset,
        )

    def extensions(self) -> list[str]:
        return [".bin"]

    @classmethod
    def type_name(cls) -> str:
        return "readers.binary"


class BinaryWriter(Writer):
    """Write the payload of a point cloud as raw packed records."""

    def write(self, pc: PackedPointCloud, path: str, **options: Any) -> int:
        if pc.num_points == 0:
            raise ValueError("Cannot write empty point cloud")
        if not pc.has_data:
            raise ValueError("Cannot write a header-only point cloud")

        with open(path, "wb") as f:
            f.write(pc.data)

        logger.info("Wrote %d points to %s", pc.num_points, path)
        return pc.num_points

    @classmethod
    def extensions(cls) -> list[str]:
        return [".bin"]

    @classmethod
    def type_name(cls) -> str:
        return "writers.binary"
