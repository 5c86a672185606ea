"""Shared test fixtures."""

import numpy as np
import pytest

from asciiwolken.core.fields import FieldType, PointField, PointXYZ
from asciiwolken.core.pointcloud import PackedPointCloud
from asciiwolken.io import registry as registry_module
from asciiwolken.io.ascii import AsciiReader
from asciiwolken.io.registry import IORegistry


@pytest.fixture(autouse=True)
def fresh_registry(monkeypatch):
    """Give every test its own global registry (built-ins register lazily)."""
    registry = IORegistry()
    monkeypatch.setattr(registry_module, "io_registry", registry)
    return registry


@pytest.fixture
def write_text(tmp_path):
    """Write text to a file in tmp_path and return its path as str."""

    def _write(content: str, name: str = "points.txt") -> str:
        path = tmp_path / name
        path.write_bytes(content.encode("ascii"))
        return str(path)

    return _write


@pytest.fixture
def xyz_reader() -> AsciiReader:
    """Reader for x, y, z float32 separated by spaces or commas."""
    return AsciiReader(PointXYZ, sep_chars=" ,")


@pytest.fixture
def mixed_fields() -> list[PointField]:
    """Schema covering every numeric type plus a repeated field."""
    return [
        PointField("x", FieldType.FLOAT64),
        PointField("y", FieldType.FLOAT32),
        PointField("rgb", FieldType.UINT8, count=3),
        PointField("label", FieldType.INT8),
        PointField("ring", FieldType.UINT16),
        PointField("t", FieldType.INT16),
        PointField("id", FieldType.UINT32),
        PointField("delta", FieldType.INT32),
        PointField("big", FieldType.INT64),
        PointField("ubig", FieldType.UINT64),
    ]


@pytest.fixture
def sample_cloud() -> PackedPointCloud:
    """A small packed cloud with 100 random xyz + intensity points."""
    rng = np.random.default_rng(42)
    dtype = np.dtype([
        ("x", "<f4"), ("y", "<f4"), ("z", "<f4"), ("intensity", "<u2"),
    ])
    arr = np.empty(100, dtype=dtype)
    arr["x"] = rng.uniform(-50, 50, 100)
    arr["y"] = rng.uniform(-50, 50, 100)
    arr["z"] = rng.uniform(0, 10, 100)
    arr["intensity"] = rng.integers(0, 65535, 100)
    return PackedPointCloud.from_numpy(arr)
