"""asciiwolken — read ASCII point files into packed point clouds."""

from asciiwolken._version import __version__
from asciiwolken.core.fields import FieldType, PointField
from asciiwolken.core.metadata import Metadata
from asciiwolken.core.pointcloud import PackedPointCloud
from asciiwolken.errors import (
    AsciiWolkenError,
    ConfigurationError,
    FormatError,
    PointCloudIOError,
)
from asciiwolken.io.ascii import AsciiReader, AsciiWriter
from asciiwolken.io.binary import BinaryReader, BinaryWriter
from asciiwolken.io.registry import read, read_header, read_chunked, write

__all__ = [
    "__version__",
    "FieldType",
    "PointField",
    "Metadata",
    "PackedPointCloud",
    "AsciiWolkenError",
    "ConfigurationError",
    "FormatError",
    "PointCloudIOError",
    "AsciiReader",
    "AsciiWriter",
    "BinaryReader",
    "BinaryWriter",
    "read",
    "read_header",
    "read_chunked",
    "write",
]
