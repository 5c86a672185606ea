"""Core data model for asciiwolken."""

from asciiwolken.core.fields import (
    FieldType,
    PointField,
    PointNormal,
    PointType,
    PointXYZ,
    PointXYZI,
    PointXYZRGB,
)
from asciiwolken.core.metadata import Metadata
from asciiwolken.core.pointcloud import PackedPointCloud

__all__ = [
    "FieldType",
    "PointField",
    "PointType",
    "PointXYZ",
    "PointXYZI",
    "PointXYZRGB",
    "PointNormal",
    "Metadata",
    "PackedPointCloud",
]
