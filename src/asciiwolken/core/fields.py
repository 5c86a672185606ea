"""Point field descriptors — the schema of one packed point record."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Protocol, Sequence, Union, runtime_checkable

import numpy as np

from asciiwolken.errors import ConfigurationError


class FieldType(Enum):
    """Numeric datatypes a point field can hold.

    Each member carries (numpy dtype, little-endian struct format, byte size).
    """

    INT8 = (np.dtype("<i1"), "<b", 1)
    UINT8 = (np.dtype("<u1"), "<B", 1)
    INT16 = (np.dtype("<i2"), "<h", 2)
    UINT16 = (np.dtype("<u2"), "<H", 2)
    INT32 = (np.dtype("<i4"), "<i", 4)
    UINT32 = (np.dtype("<u4"), "<I", 4)
    INT64 = (np.dtype("<i8"), "<q", 8)
    UINT64 = (np.dtype("<u8"), "<Q", 8)
    FLOAT32 = (np.dtype("<f4"), "<f", 4)
    FLOAT64 = (np.dtype("<f8"), "<d", 8)

    @property
    def dtype(self) -> np.dtype:
        return self.value[0]

    @property
    def struct_format(self) -> str:
        return self.value[1]

    @property
    def size(self) -> int:
        return self.value[2]

    @property
    def is_integer(self) -> bool:
        return self.dtype.kind in "iu"

    @property
    def is_float(self) -> bool:
        return self.dtype.kind == "f"

    @classmethod
    def parse(cls, name: str | FieldType) -> FieldType:
        """Look up a field type by name (``"float32"``, ``"uchar"``, ...)."""
        if isinstance(name, FieldType):
            return name
        key = str(name).strip().lower()
        if key in _TYPE_ALIASES:
            return _TYPE_ALIASES[key]
        raise ConfigurationError(
            f"Unknown field type '{name}'. Supported: {sorted(_TYPE_ALIASES)}"
        )

    @classmethod
    def from_dtype(cls, dtype: np.dtype) -> FieldType:
        """Map a numpy scalar dtype to its field type (byte order ignored)."""
        dtype = np.dtype(dtype)
        for member in cls:
            if member.dtype.kind == dtype.kind and member.size == dtype.itemsize:
                return member
        raise ConfigurationError(f"Unsupported dtype for a point field: {dtype}")


# Type name → FieldType, including the PLY-style aliases
_TYPE_ALIASES: dict[str, FieldType] = {
    "int8": FieldType.INT8,
    "uint8": FieldType.UINT8,
    "int16": FieldType.INT16,
    "uint16": FieldType.UINT16,
    "int32": FieldType.INT32,
    "uint32": FieldType.UINT32,
    "int64": FieldType.INT64,
    "uint64": FieldType.UINT64,
    "float32": FieldType.FLOAT32,
    "float64": FieldType.FLOAT64,
    # Aliases
    "char": FieldType.INT8,
    "uchar": FieldType.UINT8,
    "short": FieldType.INT16,
    "ushort": FieldType.UINT16,
    "int": FieldType.INT32,
    "uint": FieldType.UINT32,
    "float": FieldType.FLOAT32,
    "double": FieldType.FLOAT64,
}


@dataclass(frozen=True)
class PointField:
    """One entry of a point schema.

    Attributes:
        name: Field name (unique within a schema).
        datatype: Numeric type of each element.
        count: Number of consecutive elements (e.g. 3 for an RGB triple).
        offset: Byte offset of the field inside one record. ``None`` means
            "assign sequentially" (see :func:`layout_fields`).
    """

    name: str
    datatype: FieldType
    count: int = 1
    offset: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.datatype, FieldType):
            object.__setattr__(self, "datatype", FieldType.parse(self.datatype))
        if not self.name:
            raise ConfigurationError("Point field name must not be empty")
        if self.count < 1:
            raise ConfigurationError(
                f"Field '{self.name}' has count {self.count}, must be >= 1"
            )
        if self.offset is not None and self.offset < 0:
            raise ConfigurationError(
                f"Field '{self.name}' has negative offset {self.offset}"
            )

    @property
    def size(self) -> int:
        """Bytes occupied by this field in one record."""
        return self.datatype.size * self.count

    @property
    def end(self) -> int:
        """Byte offset just past this field (requires an assigned offset)."""
        return (self.offset or 0) + self.size


@runtime_checkable
class PointType(Protocol):
    """A point type that can enumerate its own field layout."""

    @classmethod
    def point_fields(cls) -> list[PointField]: ...


FieldSource = Union[Sequence[PointField], PointType, type, np.dtype]


def layout_fields(fields: Iterable[PointField]) -> list[PointField]:
    """Validate a schema and return it with every offset assigned.

    If any offset is missing, all fields are packed back to back in declared
    order. If every offset is given, the fields must tile the record exactly.

    Raises:
        ConfigurationError: Empty schema, duplicate names, or a layout with
            gaps or overlaps.
    """
    fields = list(fields)
    if not fields:
        raise ConfigurationError("Schema must contain at least one field")

    seen: set[str] = set()
    for f in fields:
        if f.name in seen:
            raise ConfigurationError(f"Duplicate field name '{f.name}'")
        seen.add(f.name)

    if any(f.offset is None for f in fields):
        result = []
        offset = 0
        for f in fields:
            result.append(replace(f, offset=offset))
            offset += f.size
        return result

    expected = 0
    for f in sorted(fields, key=lambda f: f.offset):
        if f.offset != expected:
            kind = "overlaps" if f.offset < expected else "leaves a gap before"
            raise ConfigurationError(
                f"Field '{f.name}' at offset {f.offset} {kind} byte {expected}"
            )
        expected = f.end
    return fields


def record_stride(fields: Iterable[PointField]) -> int:
    """Total byte width of one packed record."""
    return sum(f.size for f in fields)


def token_count(fields: Iterable[PointField]) -> int:
    """Number of text tokens one record spans (sum of counts)."""
    return sum(f.count for f in fields)


def to_numpy_dtype(fields: Sequence[PointField]) -> np.dtype:
    """Build the little-endian structured dtype matching a laid-out schema."""
    names = [f.name for f in fields]
    formats = [
        f.datatype.dtype if f.count == 1 else (f.datatype.dtype, (f.count,))
        for f in fields
    ]
    offsets = [f.offset or 0 for f in fields]
    return np.dtype({
        "names": names,
        "formats": formats,
        "offsets": offsets,
        "itemsize": record_stride(fields),
    })


def fields_from_dtype(dtype: np.dtype) -> list[PointField]:
    """Derive a schema from a numpy structured dtype.

    Fields keep the dtype's declared order and are repacked back to back,
    so aligned or padded dtypes are accepted.
    """
    dtype = np.dtype(dtype)
    if dtype.names is None:
        raise ConfigurationError(f"Expected a structured dtype, got {dtype}")
    fields = []
    for name in dtype.names:
        sub = dtype.fields[name][0]
        if sub.subdtype is not None:
            base, shape = sub.subdtype
            count = int(np.prod(shape))
        else:
            base, count = sub, 1
        fields.append(PointField(name, FieldType.from_dtype(base), count))
    return layout_fields(fields)


def resolve_fields(source: FieldSource) -> list[PointField]:
    """Turn any accepted schema source into a laid-out field list.

    Accepts a sequence of :class:`PointField`, a :class:`PointType`, or a
    numpy structured dtype.
    """
    if isinstance(source, np.dtype):
        return fields_from_dtype(source)
    if isinstance(source, PointType):
        return layout_fields(source.point_fields())
    if isinstance(source, (str, bytes)):
        raise ConfigurationError(
            "Field list must be PointField objects; use parse_field_spec() for strings"
        )
    fields = list(source)
    for f in fields:
        if not isinstance(f, PointField):
            raise ConfigurationError(f"Not a PointField: {f!r}")
    return layout_fields(fields)


def describe_fields(fields: Iterable[PointField]) -> str:
    """Human-readable one-line schema summary: ``x:float32, rgb:uint8[3]``."""
    parts = []
    for f in fields:
        t = f.datatype.name.lower()
        parts.append(f"{f.name}:{t}" if f.count == 1 else f"{f.name}:{t}[{f.count}]")
    return ", ".join(parts)


# ── Built-in point types ────────────────────────────────────────────


class PointXYZ:
    """3D position as three float32 values."""

    @classmethod
    def point_fields(cls) -> list[PointField]:
        return [
            PointField("x", FieldType.FLOAT32),
            PointField("y", FieldType.FLOAT32),
            PointField("z", FieldType.FLOAT32),
        ]


class PointXYZI:
    """Position plus float32 intensity."""

    @classmethod
    def point_fields(cls) -> list[PointField]:
        return PointXYZ.point_fields() + [PointField("intensity", FieldType.FLOAT32)]


class PointXYZRGB:
    """Position plus an 8-bit RGB triple."""

    @classmethod
    def point_fields(cls) -> list[PointField]:
        return PointXYZ.point_fields() + [
            PointField("r", FieldType.UINT8),
            PointField("g", FieldType.UINT8),
            PointField("b", FieldType.UINT8),
        ]


class PointNormal:
    """Position, surface normal and curvature."""

    @classmethod
    def point_fields(cls) -> list[PointField]:
        return PointXYZ.point_fields() + [
            PointField("normal_x", FieldType.FLOAT32),
            PointField("normal_y", FieldType.FLOAT32),
            PointField("normal_z", FieldType.FLOAT32),
            PointField("curvature", FieldType.FLOAT32),
        ]
