"""Dialogflow typed values (google.protobuf.Value) as an explicit tagged variant.

Dialogflow payloads reach us in two shapes depending on the client that
serialized them: plain JSON (``{"title": "Hammer"}``) or the tagged wire form
(``{"kind": "stringValue", "stringValue": "Hammer"}``, ``{"structValue":
{"fields": {...}}}``, ``{"listValue": {"values": [...]}}``). ``TypedValue.from_wire``
folds both into a single representation once, at the input boundary, so the
accessors below never have to probe loosely-typed dicts.

Conversion rules:
    - Content governs. A ``kind`` tag only selects between populated variants and
      is ignored when it names one that is not populated.
    - A value with no recognized variant populated is absent, never an error.
    - A mapping whose only key is ``fields`` is a struct wrapper.
    - Failures are local to a node: a number outside float range or a node
      nested deeper than ``MAX_DEPTH`` is absent, its siblings are not.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class ValueKind(str, Enum):
    """Variant names, matching the protobuf ``Value.kind`` oneof."""
    NULL = "nullValue"
    NUMBER = "numberValue"
    STRING = "stringValue"
    BOOL = "boolValue"
    STRUCT = "structValue"
    LIST = "listValue"


_VARIANT_KEYS = frozenset(kind.value for kind in ValueKind)
_TAGGED_KEYS = _VARIANT_KEYS | {"kind"}

# Probe order when the kind tag is missing or disagrees with the content.
_PROBE_ORDER = (
    ValueKind.STRUCT,
    ValueKind.LIST,
    ValueKind.STRING,
    ValueKind.BOOL,
    ValueKind.NUMBER,
)


@dataclass(frozen=True)
class TypedValue:
    """One node of a Dialogflow value tree.

    ``value`` holds ``None`` (absent), ``str``, ``float``, ``bool``,
    ``List[TypedValue]`` or ``Dict[str, TypedValue]`` according to ``kind``.
    """
    kind: ValueKind
    value: Any = None

    @property
    def is_absent(self) -> bool:
        return self.kind is ValueKind.NULL

    @classmethod
    def from_wire(cls, raw: Any) -> "TypedValue":
        """Purpose: Convert a raw JSON-ish value (plain or tagged) into a TypedValue tree.
        Inputs/Outputs: Input is any decoded JSON value or an existing TypedValue; output is a TypedValue.
        Side Effects / State: None; pure function.
        Dependencies: Uses _convert, which walks mappings and lists node by node.
        Failure Modes: Unrecognized types, out-of-range numbers and nodes nested deeper
            than MAX_DEPTH become ABSENT on their own; siblings still convert. Never raises.
        If Removed: Accessors fall back to probing raw dicts and kind/content mismatches resurface.
        Testing Notes: Feed plain JSON and tagged JSON for the same payload and compare results.
        """
        return _convert(raw, 0)

    def get(self, name: str) -> "TypedValue":
        """Return the named struct field, or ABSENT for missing fields and non-structs."""
        if self.kind is ValueKind.STRUCT:
            return self.value.get(name, ABSENT)
        return ABSENT


ABSENT = TypedValue(ValueKind.NULL)

# google.protobuf caps message nesting at 100 levels.
MAX_DEPTH = 100


def _number(raw: Any) -> Optional[TypedValue]:
    try:
        return TypedValue(ValueKind.NUMBER, float(raw))
    except OverflowError:
        return None


def _convert(raw: Any, depth: int) -> TypedValue:
    if isinstance(raw, TypedValue):
        return raw
    if raw is None or depth > MAX_DEPTH:
        return ABSENT
    # bool is an int subclass, so it must be tested first.
    if isinstance(raw, bool):
        return TypedValue(ValueKind.BOOL, raw)
    if isinstance(raw, (int, float)):
        return _number(raw) or ABSENT
    if isinstance(raw, str):
        return TypedValue(ValueKind.STRING, raw)
    if isinstance(raw, Mapping):
        return _from_mapping(raw, depth)
    if isinstance(raw, (list, tuple)):
        return _list(raw, depth)
    return ABSENT


def _is_tagged(raw: Mapping) -> bool:
    keys = set(raw.keys())
    if not keys or not keys <= _TAGGED_KEYS:
        return False
    if keys & _VARIANT_KEYS:
        return True
    # {"kind": "stringValue"} with nothing populated is a tagged, absent value.
    return raw.get("kind") in _VARIANT_KEYS


def _populated(raw: Mapping, kind: ValueKind, depth: int) -> Optional[TypedValue]:
    payload = raw.get(kind.value)
    if payload is None:
        return None
    if kind is ValueKind.STRUCT:
        fields = payload.get("fields") if isinstance(payload, Mapping) else None
        if isinstance(fields, Mapping):
            return _struct(fields, depth)
        return None
    if kind is ValueKind.LIST:
        values = payload.get("values") if isinstance(payload, Mapping) else payload
        if isinstance(values, (list, tuple)):
            return _list(values, depth)
        return None
    if kind is ValueKind.STRING and isinstance(payload, str):
        return TypedValue(ValueKind.STRING, payload)
    if kind is ValueKind.BOOL and isinstance(payload, bool):
        return TypedValue(ValueKind.BOOL, payload)
    if kind is ValueKind.NUMBER and isinstance(payload, (int, float)) and not isinstance(payload, bool):
        return _number(payload)
    return None


def _list(values, depth: int) -> TypedValue:
    return TypedValue(ValueKind.LIST, [_convert(item, depth + 1) for item in values])


def _struct(fields: Mapping, depth: int) -> TypedValue:
    return TypedValue(
        ValueKind.STRUCT, {str(name): _convert(child, depth + 1) for name, child in fields.items()}
    )


def _from_mapping(raw: Mapping, depth: int) -> TypedValue:
    if _is_tagged(raw):
        tag = raw.get("kind")
        if tag in _VARIANT_KEYS and tag != ValueKind.NULL.value:
            preferred = _populated(raw, ValueKind(tag), depth)
            if preferred is not None:
                return preferred
        for kind in _PROBE_ORDER:
            candidate = _populated(raw, kind, depth)
            if candidate is not None:
                return candidate
        return ABSENT
    if set(raw.keys()) == {"fields"} and isinstance(raw["fields"], Mapping):
        return _struct(raw["fields"], depth)
    return _struct(raw, depth)


def extract_string(field: Any) -> Optional[str]:
    """Purpose: Read the string variant of a typed value.
    Inputs/Outputs: Input is an optional TypedValue or raw wire value; output is str or None.
    Side Effects / State: None; pure function.
    Dependencies: Uses TypedValue.from_wire.
    Failure Modes: Non-string variants return None; never raises.
    If Removed: Product titles, urls and keywords cannot be read from payloads.
    Testing Notes: Plain "x", {"stringValue": "x"} and a mismatched kind tag all yield "x".
    """
    value = TypedValue.from_wire(field)
    if value.kind is ValueKind.STRING:
        return value.value
    return None


def extract_bool(field: Any) -> Optional[bool]:
    """Read the boolean variant; ``False`` is a present value, not an absent one."""
    value = TypedValue.from_wire(field)
    if value.kind is ValueKind.BOOL:
        return value.value
    return None


def extract_list(field: Any) -> List[TypedValue]:
    """Read the list variant; a missing or non-list value yields an empty list."""
    value = TypedValue.from_wire(field)
    if value.kind is ValueKind.LIST:
        return list(value.value)
    return []


def extract_struct(field: Any) -> Optional[Dict[str, TypedValue]]:
    """Read the field map of the struct variant, or None."""
    value = TypedValue.from_wire(field)
    if value.kind is ValueKind.STRUCT:
        return value.value
    return None
