"""
Get and set values at a field path inside an entity.

Paths use dots for keys and brackets for list indexes:

    "author"            -> ["author"]
    "meta.owner"        -> ["meta", "owner"]
    "items[0].product"  -> ["items", 0, "product"]

A path that exists verbatim as a key of the entity ("meta.owner" stored
as a single key) is treated as that single key.
"""

import re
from typing import Any, List, Union

from cytoolz import get_in

_PATH_TOKEN = re.compile(r"[^.\[\]]+|\[(?:(-?\d+)|([\"'])(.*?)\2)\]")

PathKey = Union[str, int]


def parse_path(path: Union[str, List[PathKey]], obj: Any = None) -> List[PathKey]:
    """
    Split a path string into its keys.

    Examples:
        parse_path("a.b[0].c") -> ["a", "b", 0, "c"]
        parse_path('a["x.y"]') -> ["a", "x.y"]
    """
    if isinstance(path, (list, tuple)):
        return list(path)
    if isinstance(obj, dict) and path in obj:
        return [path]

    keys: List[PathKey] = []
    for match in _PATH_TOKEN.finditer(path):
        index, _, quoted = match.groups()
        if index is not None:
            keys.append(int(index))
        elif quoted is not None:
            keys.append(quoted)
        else:
            keys.append(match.group(0))
    return keys


def get_path(obj: Any, path: Union[str, List[PathKey]], default: Any = None) -> Any:
    """Return the value at ``path`` or ``default`` when any step is missing."""
    keys = parse_path(path, obj)
    if not keys:
        return default
    return get_in(keys, obj, default)


def set_path(obj: Any, path: Union[str, List[PathKey]], value: Any) -> Any:
    """
    Set the value at ``path`` in place, creating missing containers on the way.

    Missing intermediate containers become lists when the next key is an
    integer index and dicts otherwise. Returns ``obj``.
    """
    keys = parse_path(path, obj)
    if not keys:
        return obj

    current = obj
    for key, next_key in zip(keys, keys[1:]):
        child = _get_child(current, key)
        if not isinstance(child, (dict, list)):
            child = [] if isinstance(next_key, int) else {}
            _set_child(current, key, child)
        current = child

    _set_child(current, keys[-1], value)
    return obj


def _get_child(container: Any, key: PathKey) -> Any:
    try:
        return container[key]
    except (KeyError, IndexError, TypeError):
        return None


def _set_child(container: Any, key: PathKey, value: Any) -> None:
    if isinstance(container, list):
        index = int(key)
        if index < 0:
            container[index] = value
            return
        # lists grow to fit the index
        if index >= len(container):
            container.extend([None] * (index + 1 - len(container)))
        container[index] = value
    else:
        container[key] = value
