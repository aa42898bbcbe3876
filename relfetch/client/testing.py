"""
In-memory transport for ResourceClient.

Serves fixture collections through the same request translation the HTTP
transport uses, so client code can be exercised without a server.
"""
import copy
from typing import Any, Callable, Dict, List, Optional

from relfetch.core.classes import RequestConfig, ResourceTraits
from relfetch.core.exceptions import NotFound
from relfetch.core.filters import (ORDERING_PARAM, SUPPORTED_OPERATORS,
                                   build_request_options, resolve_identifier,
                                   to_param_value)


def _as_number(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return value


def _compare(op: str) -> Callable[[Any, Any], bool]:
    def compare(actual: Any, expected: Any) -> bool:
        if actual is None:
            return False
        actual, expected = _as_number(actual), _as_number(expected)
        try:
            if op == "gt":
                return actual > expected
            if op == "gte":
                return actual >= expected
            if op == "lt":
                return actual < expected
            return actual <= expected
        except TypeError:
            return False
    return compare


def _text(op: Callable[[str, str], bool], fold: bool = False) -> Callable[[Any, Any], bool]:
    def compare(actual: Any, expected: Any) -> bool:
        if actual is None:
            return False
        actual, expected = to_param_value(actual), to_param_value(expected)
        if fold:
            actual, expected = actual.lower(), expected.lower()
        return op(actual, expected)
    return compare


def _in(actual: Any, expected: Any) -> bool:
    if isinstance(expected, (list, tuple, set, frozenset)):
        values = {to_param_value(item) for item in expected}
    else:
        values = set(to_param_value(expected).split(","))
    return to_param_value(actual) in values


_LOOKUPS: Dict[str, Callable[[Any, Any], bool]] = {
    "exact": lambda actual, expected: to_param_value(actual) == to_param_value(expected),
    "ne": lambda actual, expected: to_param_value(actual) != to_param_value(expected),
    "in": _in,
    "gt": _compare("gt"),
    "gte": _compare("gte"),
    "lt": _compare("lt"),
    "lte": _compare("lte"),
    "startswith": _text(str.startswith),
    "istartswith": _text(str.startswith, fold=True),
    "endswith": _text(str.endswith),
    "iendswith": _text(str.endswith, fold=True),
    "contains": _text(lambda actual, expected: expected in actual),
    "icontains": _text(lambda actual, expected: expected in actual, fold=True),
}


def _split_param(name: str):
    field_name, _, lookup = name.rpartition("__")
    if field_name and lookup in SUPPORTED_OPERATORS:
        return field_name, lookup
    return name, "exact"


class InMemoryTransport:
    """
    Execute collaborator over ``{resource name: [entity, ...]}``.

    Every query parameter except ``ordering`` is applied as a filter on the
    entity field it names. Every executed request is appended to ``calls``
    as the translated request options plus the resource name.
    """

    def __init__(self, collections: Dict[str, List[Dict[str, Any]]]):
        self.collections = collections
        self.calls: List[Dict[str, Any]] = []

    def calls_for(self, resource: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["resource"] == resource]

    async def __call__(
        self, config: RequestConfig, resource_traits: Optional[ResourceTraits] = None
    ) -> Dict[str, Any]:
        options = build_request_options(config, resource_traits)
        resource = config.head_resource
        self.calls.append({"resource": resource, **options})

        entities = self.collections.get(resource, [])
        identifier = resolve_identifier(resource_traits, config.default_identifier)

        if config.id is not None and not isinstance(config.id, (list, tuple, set, frozenset)):
            wanted = to_param_value(config.id)
            for entity in entities:
                if to_param_value(entity.get(identifier)) == wanted:
                    return {"data": copy.deepcopy(entity)}
            raise NotFound(f"{resource} with {identifier}={config.id} not found")

        params = options["params"]
        result = [
            entity for entity in entities
            if self._matches(entity, params)
        ]

        ordering = params.get(ORDERING_PARAM)
        if ordering:
            reverse = ordering.startswith("-")
            key = ordering.lstrip("-")
            result.sort(key=lambda entity: (entity.get(key) is None, entity.get(key)), reverse=reverse)

        return {"data": copy.deepcopy(result)}

    def _matches(self, entity: Dict[str, Any], params: Dict[str, Any]) -> bool:
        for name, expected in params.items():
            if name == ORDERING_PARAM:
                continue
            field_name, lookup = _split_param(name)
            if not _LOOKUPS[lookup](entity.get(field_name), expected):
                return False
        return True
