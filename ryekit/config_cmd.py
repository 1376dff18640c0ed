"""Reading and editing keys of the global configuration document."""

from __future__ import annotations

import datetime
import json
import math
import re
from collections.abc import Iterable, Mapping, MutableMapping
from typing import Any

import tomlkit
from tomlkit.container import Container, OutOfOrderTableProxy
from tomlkit.items import AoT, Bool, InlineTable, Item, Table

_INT_RE = re.compile(r"[+-]?[0-9]+")
_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


class ConfigError(Exception):
    """Raised when a configuration operation is invalid."""


def _is_table(node: Any) -> bool:
    if isinstance(node, InlineTable):
        return False
    return isinstance(node, (Table, Container, OutOfOrderTableProxy, AoT))


def read_key(doc: Mapping, key: str) -> Any:
    """Return the value stored under a dotted key, or None.

    Tables are not values: a key that names a table reads as None.
    """
    node: Any = doc
    for piece in key.split("."):
        if not isinstance(node, Mapping) or piece not in node:
            return None
        node = node[piece]
    if _is_table(node):
        return None
    return node


def _unwrap(value: Any) -> Any:
    if isinstance(value, Bool):
        return value.value
    return value


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(float(value))


def _format_datetime(value: Any) -> str:
    if isinstance(value, Item):
        return value.as_string()
    return value.isoformat()


def value_to_string(value: Any) -> str:
    """Render a configuration value for line output."""
    value = _unwrap(value)
    if value is None:
        return "?"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return str(value)
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        return _format_float(float(value))
    if isinstance(value, (datetime.date, datetime.time)):
        return _format_datetime(value)
    if isinstance(value, Mapping):
        inner = ", ".join(f"{k} = {value_to_string(v)}" for k, v in value.items())
        return "{" + inner + "}"
    if isinstance(value, Iterable):
        return "[" + ", ".join(value_to_string(x) for x in value) + "]"
    return str(value)


def value_to_json(value: Any) -> Any:
    """Convert a configuration value into JSON-compatible data."""
    value = _unwrap(value)
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return str(value)
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        number = float(value)
        return number if math.isfinite(number) else None
    if isinstance(value, (datetime.date, datetime.time)):
        return _format_datetime(value)
    if isinstance(value, Mapping):
        return {str(k): value_to_json(v) for k, v in value.items()}
    if isinstance(value, Iterable):
        return [value_to_json(x) for x in value]
    return None


def _split_item(item: str, option: str) -> tuple[str, str]:
    key, sep, value = item.partition("=")
    if not sep:
        raise ConfigError(f"Invalid value for {option} ({item})")
    return key, value


def _parse_int(text: str, item: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ConfigError(f"Invalid value for --set-int ({item})")
    number = int(text)
    if not _I64_MIN <= number <= _I64_MAX:
        raise ConfigError(f"Invalid value for --set-int ({item})")
    return number


def _parse_bool(text: str, item: str) -> bool:
    if text == "true":
        return True
    if text == "false":
        return False
    raise ConfigError(f"Invalid value for --set-bool ({item})")


def parse_updates(
    set_items: Iterable[str] = (),
    set_int_items: Iterable[str] = (),
    set_bool_items: Iterable[str] = (),
) -> list[tuple[str, Any]]:
    """Parse ``key=value`` items into typed updates, strings first."""
    updates: list[tuple[str, Any]] = []
    for item in set_items:
        updates.append(_split_item(item, "--set"))
    for item in set_int_items:
        key, text = _split_item(item, "--set-int")
        updates.append((key, _parse_int(text, item)))
    for item in set_bool_items:
        key, text = _split_item(item, "--set-bool")
        updates.append((key, _parse_bool(text, item)))
    return updates


def set_key(doc: MutableMapping, key: str, value: Any) -> None:
    """Store ``value`` under a dotted key, creating tables on the way."""
    *parents, last = key.split(".")
    node: Any = doc
    for piece in parents:
        child = node.get(piece)
        if child is None:
            node[piece] = tomlkit.table()
            child = node[piece]
        elif not isinstance(child, MutableMapping):
            raise ConfigError(f"cannot set '{key}': '{piece}' is not a table")
        node = child
    node[last] = value


def unset_key(doc: MutableMapping, key: str) -> None:
    """Remove a dotted key; missing keys are ignored."""
    parent, sep, last = key.rpartition(".")
    if not sep:
        if key in doc:
            del doc[key]
        return
    node: Any = doc
    for piece in parent.split("."):
        if not isinstance(node, MutableMapping):
            raise ConfigError(f"cannot unset '{key}': '{piece}' is not a table")
        if piece not in node:
            return
        node = node[piece]
    if not isinstance(node, MutableMapping):
        raise ConfigError(f"cannot unset '{key}': '{parent}' is not a table")
    if last in node:
        del node[last]


def run_config(
    doc: MutableMapping,
    get: Iterable[str] = (),
    set_items: Iterable[str] = (),
    set_int_items: Iterable[str] = (),
    set_bool_items: Iterable[str] = (),
    unset: Iterable[str] = (),
    fmt: str | None = None,
) -> tuple[str, bool]:
    """Apply reads or modifications to ``doc``.

    Returns the text to print and whether the document was modified.
    """
    if fmt not in (None, "json"):
        raise ConfigError(f"unsupported format: {fmt}")
    get = list(get)
    unset = list(unset)

    read_as_json: dict[str, Any] = {}
    read_as_string: list[str] = []
    for item in get:
        value = read_key(doc, item)
        if fmt is None:
            read_as_string.append(value_to_string(value))
        else:
            read_as_json[item] = value_to_json(value)

    updates = parse_updates(set_items, set_int_items, set_bool_items)
    modifies = bool(updates) or bool(unset)
    if modifies and get:
        raise ConfigError("cannot mix get and set operations")

    for key, value in updates:
        set_key(doc, key, value)
    for key in unset:
        unset_key(doc, key)

    if fmt is None:
        text = "\n".join(read_as_string)
    else:
        text = json.dumps(read_as_json, indent=2, sort_keys=True)
    return text, modifies