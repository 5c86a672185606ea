"""Schema configuration — JSON schema files and compact field specs.

A schema file describes how to read one family of ASCII files::

    {
        "fields": [
            {"name": "x", "type": "float32"},
            {"name": "y", "type": "float32"},
            {"name": "z", "type": "float32"},
            {"name": "rgb", "type": "uint8", "count": 3}
        ],
        "separators": " ,",
        "extension": ".xyz"
    }

The same field list can be written compactly as
``"x:float32,y:float32,z:float32,rgb:uint8:3"``.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from asciiwolken.core.fields import FieldType, PointField, layout_fields
from asciiwolken.errors import ConfigurationError
from asciiwolken.io.ascii import DEFAULT_SEP_CHARS, AsciiReader

# Pattern: name:type or name:type:count
_FIELD_PATTERN = re.compile(
    r"^(?P<name>[A-Za-z_]\w*)"
    r":(?P<type>[A-Za-z0-9_]+)"
    r"(?::(?P<count>\d+))?$"
)


def parse_field_spec(spec: str) -> list[PointField]:
    """Parse a compact field list like ``'x:float32,y:float32,rgb:uint8:3'``."""
    fields = []
    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        m = _FIELD_PATTERN.match(part)
        if not m:
            raise ConfigurationError(
                f"Invalid field spec: '{part}'. "
                f"Expected format: name:type[:count] (e.g., 'x:float32')"
            )
        count = int(m.group("count")) if m.group("count") else 1
        fields.append(PointField(m.group("name"), FieldType.parse(m.group("type")), count))
    return layout_fields(fields)


def format_field_spec(fields: list[PointField]) -> str:
    """Inverse of :func:`parse_field_spec`."""
    parts = []
    for f in fields:
        t = f.datatype.name.lower()
        parts.append(f"{f.name}:{t}" if f.count == 1 else f"{f.name}:{t}:{f.count}")
    return ",".join(parts)


@dataclass
class SchemaConfig:
    """Reader configuration loaded from JSON.

    Attributes:
        fields: Ordered, laid-out field list.
        separators: Token separator characters.
        extension: Optional extension to register the reader under.
    """

    fields: list[PointField]
    separators: str = DEFAULT_SEP_CHARS
    extension: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SchemaConfig:
        if not isinstance(data, dict):
            raise ConfigurationError("Schema JSON must be an object with a 'fields' key")

        raw_fields = data.get("fields")
        if isinstance(raw_fields, str):
            fields = parse_field_spec(raw_fields)
        elif isinstance(raw_fields, list):
            fields = layout_fields(_field_from_dict(entry) for entry in raw_fields)
        else:
            raise ConfigurationError("Schema 'fields' must be a list or a field spec string")

        separators = data.get("separators", DEFAULT_SEP_CHARS)
        if not isinstance(separators, str) or not separators:
            raise ConfigurationError("Schema 'separators' must be a non-empty string")

        extension = data.get("extension")
        if extension is not None and not isinstance(extension, str):
            raise ConfigurationError("Schema 'extension' must be a string")

        return cls(fields=fields, separators=separators, extension=extension)

    @classmethod
    def from_json(cls, json_str: str) -> SchemaConfig:
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Invalid schema JSON: {exc}") from exc
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "fields": [
                {"name": f.name, "type": f.datatype.name.lower(), "count": f.count}
                for f in self.fields
            ],
            "separators": self.separators,
        }
        if self.extension is not None:
            data["extension"] = self.extension
        return data

    def to_json(self) -> str:
        """Serialize the schema back to JSON."""
        return json.dumps(self.to_dict(), indent=2)

    def apply(self, reader: AsciiReader) -> AsciiReader:
        """Configure `reader` with this schema and return it."""
        reader.set_input_fields(self.fields)
        reader.set_sep_chars(self.separators)
        if self.extension is not None:
            reader.set_extension(self.extension)
        return reader

    def make_reader(self) -> AsciiReader:
        """Build a new reader configured with this schema."""
        return self.apply(AsciiReader())


def _field_from_dict(entry: Any) -> PointField:
    if not isinstance(entry, dict) or "name" not in entry or "type" not in entry:
        raise ConfigurationError(
            f"Invalid field entry: {entry!r}. Expected {{'name': ..., 'type': ...}}"
        )
    count = entry.get("count", 1)
    if not isinstance(count, int) or isinstance(count, bool):
        raise ConfigurationError(f"Field '{entry['name']}' count must be an integer")
    return PointField(
        str(entry["name"]),
        FieldType.parse(entry["type"]),
        count,
        entry.get("offset"),
    )


def load_schema(path: str) -> SchemaConfig:
    """Load a JSON schema file."""
    try:
        json_str = Path(path).read_text()
    except OSError as exc:
        raise ConfigurationError(f"Cannot read schema file '{path}': {exc}") from exc
    return SchemaConfig.from_json(json_str)
