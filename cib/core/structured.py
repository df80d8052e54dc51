"""Helpers for narrowing untyped YAML/JSON data.

``yaml.safe_load`` and ``json.loads`` hand back plain ``object`` trees. These
helpers validate shapes at that boundary so the rest of the code deals in
typed values.
"""

from __future__ import annotations

from datetime import date
from typing import Mapping, TypeGuard, cast

StrDict = dict[str, object]
ObjList = list[object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    """Return True if obj is a dict with string keys."""
    if not isinstance(obj, dict):
        return False
    d = cast(dict[object, object], obj)
    return all(isinstance(k, str) for k in d.keys())


def as_str_dict(obj: object) -> StrDict | None:
    if is_str_dict(obj):
        return obj
    return None


def as_obj_list(obj: object) -> ObjList | None:
    if isinstance(obj, list):
        return cast(ObjList, obj)
    return None


def scalar_str(value: object) -> str | None:
    """Render a YAML scalar as a string.

    Unquoted versions and build stamps (``1.2``, ``20240101``) come back from
    YAML as numbers or dates, so those are accepted and stringified. Booleans
    and containers are rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        s = value.strip()
        return s or None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    return None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a non-empty string value from a mapping."""
    value = table.get(key)
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def get_bool(table: Mapping[str, object], key: str) -> bool | None:
    value = table.get(key)
    if isinstance(value, bool):
        return value
    return None


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    """Get a nested mapping from a mapping."""
    return as_str_dict(table.get(key))


def as_str_list(obj: object) -> list[str] | None:
    """Return obj as a list of scalar strings, or None if any item is not one."""
    items = as_obj_list(obj)
    if items is None:
        return None
    out: list[str] = []
    for item in items:
        s = scalar_str(item)
        if s is None:
            return None
        out.append(s)
    return out
