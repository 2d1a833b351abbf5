"""
Declarative parameter shapes, JSON-Schema generation and argument decoding.

A ``ParamShape`` is the single source of truth for a tool's inputs: the same
field list produces the published ``inputSchema`` and drives validation of the
caller-supplied arguments into a typed parameter object.
"""

from __future__ import annotations

import copy
import json
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type

from bitcoin_data_mcp.errors import InvalidParametersError


class _Required:
    __slots__ = ()

    def __repr__(self) -> str:
        return "REQUIRED"


REQUIRED: Any = _Required()
_MISSING = object()

FIELD_TYPES = ("string", "integer", "number", "boolean")


class SchemaDefinitionError(Exception):
    """Raised at definition time for a malformed shape (programmer error)."""


@dataclass(frozen=True, slots=True)
class Field:
    name: str
    type: str
    description: str
    default: Any = REQUIRED
    enum: Optional[Type[Enum]] = None
    pattern: Optional[str] = None
    minimum: Optional[int] = None
    maximum: Optional[int] = None

    @property
    def required(self) -> bool:
        return self.default is REQUIRED

    def validate(self) -> None:
        if not self.name:
            raise SchemaDefinitionError("Field name must not be empty")
        if self.type not in FIELD_TYPES:
            raise SchemaDefinitionError(f"Field '{self.name}' has unknown type '{self.type}'")
        if self.enum is not None:
            if self.type != "string":
                raise SchemaDefinitionError(f"Enumerated field '{self.name}' must be typed string")
            if not self.required and self.default is not None and not isinstance(self.default, self.enum):
                raise SchemaDefinitionError(
                    f"Default for '{self.name}' is not a member of {self.enum.__name__}"
                )
        if self.pattern is not None:
            re.compile(self.pattern)


@dataclass(frozen=True, slots=True)
class ParamShape:
    """Ordered field list plus the factory that builds the typed params."""

    name: str
    fields: Tuple[Field, ...]
    factory: Callable[..., Any]

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for item in self.fields:
            item.validate()
            if item.name in seen:
                raise SchemaDefinitionError(f"Duplicate field '{item.name}' in shape '{self.name}'")
            seen.add(item.name)

    def field_names(self) -> Tuple[str, ...]:
        return tuple(item.name for item in self.fields)


def _encode_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def _field_schema(item: Field) -> Dict[str, Any]:
    prop: Dict[str, Any] = {"type": item.type, "description": item.description}
    if item.enum is not None:
        prop["enum"] = [member.value for member in item.enum]
    if item.pattern is not None:
        prop["pattern"] = item.pattern
    if item.minimum is not None:
        prop["minimum"] = item.minimum
    if item.maximum is not None:
        prop["maximum"] = item.maximum
    if not item.required:
        prop["default"] = _encode_default(item.default)
    return prop


@lru_cache(maxsize=None)
def _cached_schema(shape: ParamShape) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {item.name: _field_schema(item) for item in shape.fields},
        "required": [item.name for item in shape.fields if item.required],
        "additionalProperties": True,
    }


def generate_schema(shape: ParamShape) -> Dict[str, Any]:
    """Return the JSON-Schema document for ``shape`` (a fresh copy each call)."""
    return copy.deepcopy(_cached_schema(shape))


def schema_fingerprint(shape: ParamShape) -> str:
    """Canonical JSON text of the schema, stable across processes."""
    return json.dumps(_cached_schema(shape), separators=(",", ":"), ensure_ascii=True)


def _invalid(item: Field, reason: str) -> InvalidParametersError:
    return InvalidParametersError(f"Invalid parameters: field '{item.name}' {reason}", field=item.name)


def _decode_enum(item: Field, raw: Any) -> Enum:
    assert item.enum is not None
    if not isinstance(raw, str):
        raise _invalid(item, "must be a string")
    try:
        return item.enum(raw)
    except ValueError:
        # Enums may supply their own, more specific rejection.
        rejection = getattr(item.enum, "rejection", None)
        if rejection is not None:
            raise rejection(raw, field=item.name) from None
        allowed = ", ".join(member.value for member in item.enum)
        raise _invalid(item, f"must be one of: {allowed}") from None


def _decode_value(item: Field, raw: Any) -> Any:
    if item.enum is not None:
        return _decode_enum(item, raw)

    if item.type == "string":
        if not isinstance(raw, str):
            raise _invalid(item, "must be a string")
        if item.pattern is not None and not re.fullmatch(item.pattern, raw):
            raise _invalid(item, "has an invalid format")
        return raw

    if item.type == "boolean":
        if not isinstance(raw, bool):
            raise _invalid(item, "must be a boolean")
        return raw

    if item.type == "integer":
        if isinstance(raw, bool) or not isinstance(raw, int):
            # Accept integral floats such as 5.0 from loose JSON encoders.
            if isinstance(raw, float) and raw.is_integer():
                raw = int(raw)
            else:
                raise _invalid(item, "must be an integer")
    elif isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise _invalid(item, "must be a number")

    if item.minimum is not None and raw < item.minimum:
        raise _invalid(item, f"must be >= {item.minimum}")
    if item.maximum is not None and raw > item.maximum:
        raise _invalid(item, f"must be <= {item.maximum}")
    return raw


def decode_params(shape: ParamShape, blob: Optional[Mapping[str, Any]]) -> Any:
    """
    Bind an untyped argument mapping to ``shape``.

    Unknown keys are ignored, omitted (or null) optional fields take their
    declared default, and every other mismatch raises InvalidParametersError
    naming the offending field.
    """
    if blob is None:
        blob = {}
    if not isinstance(blob, Mapping):
        raise InvalidParametersError("Invalid parameters: arguments must be an object")

    values: Dict[str, Any] = {}
    for item in shape.fields:
        raw = blob.get(item.name, _MISSING)
        if raw is _MISSING or raw is None:
            if item.required:
                raise InvalidParametersError(
                    f"Invalid parameters: missing required field '{item.name}'", field=item.name
                )
            values[item.name] = item.default
            continue
        values[item.name] = _decode_value(item, raw)
    return shape.factory(**values)
