"""ASCII reader/writer — delimited text point records with a caller-defined schema.

Each non-blank line of the file is one point. Tokens are separated by runs
of any of the configured separator characters and map, left to right, onto
the configured fields (a field with ``count > 1`` takes that many tokens).
"""

from __future__ import annotations

import logging
import math
import re
import struct
from functools import lru_cache
from typing import Any, BinaryIO, Iterator, Sequence

import numpy as np

from asciiwolken.core.fields import (
    FieldSource,
    FieldType,
    PointField,
    describe_fields,
    resolve_fields,
    token_count,
)
from asciiwolken.core.metadata import ASCII_FILE_VERSION, DATA_TYPE_ASCII, Metadata
from asciiwolken.core.pointcloud import PackedPointCloud
from asciiwolken.errors import ConfigurationError, FormatError, PointCloudIOError
from asciiwolken.io.base import Reader, Writer, check_offset, open_at_offset

logger = logging.getLogger(__name__)

DEFAULT_SEP_CHARS = " \t,"
DEFAULT_EXTENSIONS = [".txt", ".xyz"]

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|nan|inf(?:inity)?)",
    re.IGNORECASE,
)

# Smallest magnitude that rounds to infinity when narrowed to float32
_FLOAT32_OVERFLOW = (2.0 - 2.0 ** -24) * 2.0 ** 127


@lru_cache(maxsize=None)
def _int_bounds(datatype: FieldType) -> tuple[int, int]:
    info = np.iinfo(datatype.dtype)
    return int(info.min), int(info.max)


@lru_cache(maxsize=None)
def _packer(datatype: FieldType, count: int) -> struct.Struct:
    """Little-endian packer for `count` consecutive values of `datatype`."""
    return struct.Struct("<" + datatype.struct_format[1] * count)


def parse_token(token: str, datatype: FieldType) -> int | float:
    """Convert one text token to a value of the given field type.

    Integers must be plain base-10 literals within the type's range. Floats
    accept decimal and scientific notation plus ``nan``/``inf``, independent
    of locale.

    Raises:
        ValueError: The token is not a valid literal or is out of range.
    """
    type_name = datatype.name.lower()
    if datatype.is_integer:
        if not _INT_RE.fullmatch(token):
            raise ValueError(f"'{token}' is not a base-10 integer")
        value = int(token)
        lo, hi = _int_bounds(datatype)
        if not lo <= value <= hi:
            raise ValueError(f"{value} is out of range for {type_name} [{lo}, {hi}]")
        return value

    if not _FLOAT_RE.fullmatch(token):
        raise ValueError(f"'{token}' is not a number")
    value = float(token)
    if math.isinf(value) and "inf" not in token.lower():
        raise ValueError(f"{token} is out of range for {type_name}")
    if datatype is FieldType.FLOAT32 and math.isfinite(value) and abs(value) >= _FLOAT32_OVERFLOW:
        raise ValueError(f"{token} is out of range for {type_name}")
    return value


def parse_field(
    tokens: Sequence[str],
    field: PointField,
    buffer: bytearray,
    record_offset: int,
) -> int:
    """Convert the tokens of one field and pack them into `buffer`.

    Consumes ``field.count`` tokens and writes them at
    ``record_offset + field.offset``.

    Returns:
        Number of bytes written.

    Raises:
        ValueError: A token is missing, malformed or out of range.
    """
    if len(tokens) < field.count:
        raise ValueError(f"missing token: expected {field.count}, got {len(tokens)}")
    values = [parse_token(token, field.datatype) for token in tokens[:field.count]]
    packer = _packer(field.datatype, field.count)
    packer.pack_into(buffer, record_offset + (field.offset or 0), *values)
    return packer.size


def _data_lines(f: BinaryIO, path: str) -> Iterator[tuple[int, str]]:
    """Yield (line number, text) for every non-blank line from the current position.

    Raises:
        PointCloudIOError: Reading the file failed part way through.
    """
    try:
        for lineno, raw in enumerate(f, start=1):
            line = raw.decode("ascii", errors="replace").rstrip("\r\n")
            if line.strip():
                yield lineno, line
    except OSError as exc:
        raise PointCloudIOError(f"read failed ({exc})", filename=str(path)) from exc


class AsciiReader(Reader):
    """Read ASCII point files given an explicit field schema.

    Configure the reader with :meth:`set_input_fields` (or the ``fields``
    constructor argument) before reading. The schema and separators are
    instance state consulted on every read: share a configured reader between
    threads only if nobody reconfigures it meanwhile.

    Options accepted by :meth:`read_header` and :meth:`read`:
        offset: int — Bytes to skip before the data (e.g. an archive header).

    Examples:
        >>> from asciiwolken.core.fields import PointXYZ
        >>> reader = AsciiReader(PointXYZ, sep_chars=" ,")
        >>> pc = reader.read("scan.xyz")  # doctest: +SKIP
    """

    def __init__(
        self,
        fields: FieldSource | None = None,
        sep_chars: str = DEFAULT_SEP_CHARS,
        extension: str | None = None,
    ) -> None:
        self._fields: list[PointField] | None = None
        self._sep_chars: str = ""
        self._splitter: re.Pattern[str] | None = None
        self._extension: str | None = None

        if fields is not None:
            self.set_input_fields(fields)
        self.set_sep_chars(sep_chars)
        if extension is not None:
            self.set_extension(extension)

    # ── Configuration ───────────────────────────────────────────────

    def set_input_fields(self, fields: FieldSource) -> None:
        """Set the fields of the file, in the order they appear on a line.

        Args:
            fields: A list of PointField, a point type exposing
                ``point_fields()``, or a numpy structured dtype.
        """
        self._fields = resolve_fields(fields)
        logger.debug("Input fields: %s", describe_fields(self._fields))

    def set_sep_chars(self, chars: str) -> None:
        """Set the characters that separate tokens on a line.

        Any run of these characters counts as a single separator.
        """
        if not chars:
            raise ConfigurationError("Separator characters must not be empty")
        self._sep_chars = chars
        self._splitter = re.compile("[" + "".join(re.escape(c) for c in chars) + "]+")

    def set_extension(self, ext: str) -> None:
        """Set the file extension this reader is registered under (e.g. '.pts')."""
        ext = ext.strip().lower()
        if not ext or ext == ".":
            raise ConfigurationError("Extension must not be empty")
        self._extension = ext if ext.startswith(".") else "." + ext

    @property
    def input_fields(self) -> list[PointField] | None:
        return list(self._fields) if self._fields is not None else None

    @property
    def sep_chars(self) -> str:
        return self._sep_chars

    @property
    def is_configured(self) -> bool:
        return self._fields is not None

    # ── Reading ─────────────────────────────────────────────────────

    def read_header(self, path: str, **options: Any) -> PackedPointCloud:
        """Count the points of a file without parsing them.

        Every non-blank line after the offset counts as one point; tokens are
        not validated, so a later :meth:`read` can still fail on them.
        """
        fields = self._require_fields()
        offset = check_offset(options.get("offset", 0))

        count = 0
        with open_at_offset(path, offset) as f:
            for _ in _data_lines(f, path):
                count += 1

        logger.debug("Header scan of %s: %d points", path, count)
        return PackedPointCloud(
            fields, width=count, metadata=self._make_metadata(path, offset)
        )

    def read(self, path: str, **options: Any) -> PackedPointCloud:
        """Read and parse every point of an ASCII file.

        The file is scanned once to size the payload, then parsed.

        Raises:
            ConfigurationError: No fields are configured.
            PointCloudIOError: The file cannot be read or the offset is past
                its end.
            FormatError: A line has the wrong number of tokens, a token
                cannot be parsed, or the file changed between the scan and
                the parse.
        """
        header = self.read_header(path, **options)
        offset = header.metadata.data_offset
        fields = header.fields
        expected_points = header.num_points
        stride = header.point_step
        expected_tokens = token_count(fields)

        buffer = bytearray(expected_points * stride)
        parsed = 0
        with open_at_offset(path, offset) as f:
            for lineno, line in _data_lines(f, path):
                tokens = self._tokenize(line)
                if len(tokens) != expected_tokens:
                    raise FormatError(
                        f"expected {expected_tokens} tokens, got {len(tokens)}",
                        filename=str(path), line=lineno,
                    )
                if parsed == expected_points:
                    raise FormatError(
                        f"file grew past the {expected_points} points found "
                        f"by the header scan",
                        filename=str(path), line=lineno,
                    )
                self._parse_record(tokens, fields, buffer, parsed * stride, path, lineno)
                parsed += 1

        if parsed != expected_points:
            raise FormatError(
                f"parsed {parsed} points but the header scan found "
                f"{expected_points}; the file changed while being read",
                filename=str(path),
            )

        logger.info("Read %d points (%d bytes) from %s", parsed, len(buffer), path)
        return PackedPointCloud(
            fields, bytes(buffer), width=parsed, metadata=header.metadata
        )

    def read_points(self, path: str, **options: Any) -> np.ndarray:
        """Read a file straight into a writable numpy structured array."""
        return self.read(path, **options).to_numpy().copy()

    def _require_fields(self) -> list[PointField]:
        if self._fields is None:
            raise ConfigurationError(
                "No input fields set; call set_input_fields() before reading"
            )
        return self._fields

    def _tokenize(self, line: str) -> list[str]:
        tokens = (t.strip() for t in self._splitter.split(line))
        return [t for t in tokens if t]

    def _parse_record(
        self,
        tokens: list[str],
        fields: list[PointField],
        buffer: bytearray,
        record_offset: int,
        path: str,
        lineno: int,
    ) -> None:
        pos = 0
        for field in fields:
            try:
                parse_field(tokens[pos:], field, buffer, record_offset)
            except ValueError as exc:
                raise FormatError(
                    str(exc), filename=str(path), line=lineno, field=field.name
                ) from exc
            pos += field.count

    def _make_metadata(self, path: str, offset: int) -> Metadata:
        return Metadata(
            source_file=str(path),
            source_format="ascii",
            file_version=ASCII_FILE_VERSION,
            data_type=DATA_TYPE_ASCII,
            data_offset=offset,
        )

    def extensions(self) -> list[str]:
        if self._extension is not None:
            return [self._extension]
        return list(DEFAULT_EXTENSIONS)

    @classmethod
    def type_name(cls) -> str:
        return "readers.ascii"


class AsciiWriter(Writer):
    """Write ASCII point files, one point per line in field order.

    Options:
        delimiter: str — Token separator (default: ' ').
        precision: int — Significant digits for float values (default: enough
            to round-trip the field's type exactly).
    """

    def write(self, pc: PackedPointCloud, path: str, **options: Any) -> int:
        if pc.num_points == 0:
            raise ValueError("Cannot write empty point cloud")

        delimiter = options.get("delimiter", " ")
        precision = options.get("precision")

        arr = pc.to_numpy()

        # Flatten repeat-count fields into one column per element
        columns: list[np.ndarray] = []
        fmt_parts: list[str] = []
        for field in pc.fields:
            col = arr[field.name].reshape(pc.num_points, field.count)
            if field.datatype.is_float:
                if precision is not None:
                    fmt = f"%.{int(precision)}g"
                elif field.datatype is FieldType.FLOAT32:
                    fmt = "%.9g"
                else:
                    fmt = "%.17g"
            else:
                fmt = "%d"
            for j in range(field.count):
                # object columns keep 64-bit integers exact
                columns.append(col[:, j].astype(object))
                fmt_parts.append(fmt)

        data = np.column_stack(columns)
        np.savetxt(path, data, fmt=fmt_parts, delimiter=delimiter, comments="")

        logger.info("Wrote %d points to %s", pc.num_points, path)
        return pc.num_points

    @classmethod
    def extensions(cls) -> list[str]:
        return list(DEFAULT_EXTENSIONS)

    @classmethod
    def type_name(cls) -> str:
        return "writers.ascii"
