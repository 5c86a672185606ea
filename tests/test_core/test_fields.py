"""Tests for point field descriptors and schema layout."""

import numpy as np
import pytest

from asciiwolken.core.fields import (
    FieldType,
    PointField,
    PointNormal,
    PointType,
    PointXYZ,
    PointXYZRGB,
    describe_fields,
    fields_from_dtype,
    layout_fields,
    record_stride,
    resolve_fields,
    to_numpy_dtype,
    token_count,
)
from asciiwolken.errors import ConfigurationError


class TestFieldType:
    @pytest.mark.parametrize("name,expected,size", [
        ("int8", FieldType.INT8, 1),
        ("uint8", FieldType.UINT8, 1),
        ("int16", FieldType.INT16, 2),
        ("uint16", FieldType.UINT16, 2),
        ("int32", FieldType.INT32, 4),
        ("uint32", FieldType.UINT32, 4),
        ("int64", FieldType.INT64, 8),
        ("uint64", FieldType.UINT64, 8),
        ("float32", FieldType.FLOAT32, 4),
        ("float64", FieldType.FLOAT64, 8),
    ])
    def test_parse_and_size(self, name, expected, size):
        assert FieldType.parse(name) is expected
        assert expected.size == size
        assert expected.dtype.itemsize == size

    def test_parse_aliases(self):
        assert FieldType.parse("float") is FieldType.FLOAT32
        assert FieldType.parse("double") is FieldType.FLOAT64
        assert FieldType.parse("uchar") is FieldType.UINT8
        assert FieldType.parse("FLOAT32") is FieldType.FLOAT32

    def test_parse_unknown_raises(self):
        with pytest.raises(ConfigurationError, match="Unknown field type"):
            FieldType.parse("f4")

    def test_from_dtype(self):
        assert FieldType.from_dtype(np.dtype(">i2")) is FieldType.INT16
        assert FieldType.from_dtype(np.float64) is FieldType.FLOAT64

    def test_from_dtype_unsupported(self):
        with pytest.raises(ConfigurationError):
            FieldType.from_dtype(np.dtype(bool))

    def test_kinds(self):
        assert FieldType.UINT32.is_integer
        assert not FieldType.UINT32.is_float
        assert FieldType.FLOAT64.is_float


class TestPointField:
    def test_string_datatype_is_parsed(self):
        f = PointField("x", "float32")
        assert f.datatype is FieldType.FLOAT32

    def test_size(self):
        assert PointField("rgb", FieldType.UINT8, count=3).size == 3
        assert PointField("n", FieldType.FLOAT64, count=2).size == 16

    def test_zero_count_raises(self):
        with pytest.raises(ConfigurationError, match="count"):
            PointField("x", FieldType.FLOAT32, count=0)

    def test_empty_name_raises(self):
        with pytest.raises(ConfigurationError, match="name"):
            PointField("", FieldType.FLOAT32)


class TestLayout:
    def test_sequential_offsets(self):
        fields = layout_fields([
            PointField("x", FieldType.FLOAT64),
            PointField("rgb", FieldType.UINT8, count=3),
            PointField("i", FieldType.UINT16),
        ])
        assert [f.offset for f in fields] == [0, 8, 11]
        assert record_stride(fields) == 13
        assert token_count(fields) == 5

    def test_explicit_offsets_may_reorder(self):
        fields = layout_fields([
            PointField("y", FieldType.FLOAT32, offset=4),
            PointField("x", FieldType.FLOAT32, offset=0),
        ])
        assert [f.name for f in fields] == ["y", "x"]
        assert record_stride(fields) == 8

    def test_overlap_raises(self):
        with pytest.raises(ConfigurationError, match="overlaps"):
            layout_fields([
                PointField("x", FieldType.FLOAT32, offset=0),
                PointField("y", FieldType.FLOAT32, offset=2),
            ])

    def test_gap_raises(self):
        with pytest.raises(ConfigurationError, match="gap"):
            layout_fields([
                PointField("x", FieldType.FLOAT32, offset=0),
                PointField("y", FieldType.FLOAT32, offset=8),
            ])

    def test_duplicate_name_raises(self):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            layout_fields([
                PointField("x", FieldType.FLOAT32),
                PointField("x", FieldType.FLOAT64),
            ])

    def test_empty_raises(self):
        with pytest.raises(ConfigurationError, match="at least one"):
            layout_fields([])

    def test_numpy_dtype(self):
        fields = layout_fields([
            PointField("x", FieldType.FLOAT32),
            PointField("rgb", FieldType.UINT8, count=3),
        ])
        dtype = to_numpy_dtype(fields)
        assert dtype.itemsize == 7
        assert dtype["rgb"].shape == (3,)
        assert dtype.fields["rgb"][1] == 4


class TestSelfDescribingTypes:
    def test_builtin_types_are_point_types(self):
        assert isinstance(PointXYZ, PointType)
        assert isinstance(PointNormal, PointType)

    def test_resolve_point_type(self):
        fields = resolve_fields(PointXYZRGB)
        assert [f.name for f in fields] == ["x", "y", "z", "r", "g", "b"]
        assert record_stride(fields) == 15

    def test_custom_point_type(self):
        class Scan:
            @classmethod
            def point_fields(cls):
                return [
                    PointField("range", FieldType.FLOAT32),
                    PointField("ring", FieldType.UINT16),
                ]

        fields = resolve_fields(Scan)
        assert [f.offset for f in fields] == [0, 4]

    def test_resolve_dtype(self):
        dtype = np.dtype([("x", "<f8"), ("n", "<f4", (3,))])
        fields = resolve_fields(dtype)
        assert fields[1].count == 3
        assert fields[1].offset == 8

    def test_fields_from_aligned_dtype_are_repacked(self):
        dtype = np.dtype([("a", "u1"), ("b", "<f4")], align=True)
        fields = fields_from_dtype(dtype)
        assert [f.offset for f in fields] == [0, 1]

    def test_resolve_rejects_strings(self):
        with pytest.raises(ConfigurationError):
            resolve_fields("x:float32")

    def test_describe(self):
        text = describe_fields(resolve_fields(PointXYZ))
        assert text == "x:float32, y:float32, z:float32"
