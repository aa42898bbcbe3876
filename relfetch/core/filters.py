"""
Translation of structured filters, ordering and ids into flat transport
parameters.

    {"filters": {"age": {"$gte": 18}}}           -> {"age__gte": 18}
    {"filters": {"name": {"$in": ["a", "b"]}}}   -> {"name__in": "a,b"}
    {"order_by": {"created": -1}}                -> {"ordering": "-created"}
    {"id": 5}                                    -> url "users/5"
    {"id": [1, 2]}                               -> {"id__in": "1,2"}
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from cytoolz import merge

from relfetch.core.classes import RequestConfig, ResourceTraits
from relfetch.core.exceptions import (ConflictingIdentifierFilter,
                                      InvalidOrderBySpecification,
                                      UnsupportedFilterCondition)

logger = logging.getLogger(__name__)


# Filter operator -> lookup suffix used in the parameter name
FILTER_OPERATORS: Dict[str, str] = {
    "$in": "in",
    "$gt": "gt",
    "$gte": "gte",
    "$lt": "lt",
    "$lte": "lte",
    "$ne": "ne",
    "$startswith": "startswith",
    "$istartswith": "istartswith",
    "$endswith": "endswith",
    "$iendswith": "iendswith",
    "$contains": "contains",
    "$icontains": "icontains",
}

# Lookup suffixes, used for stripping from pre-compiled parameter names
SUPPORTED_OPERATORS = frozenset(FILTER_OPERATORS.values())

ORDERING_PARAM = "ordering"


def to_param_value(value: Any) -> str:
    """Render a scalar the way it appears in a query string."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def _convert_in(value: Any) -> Any:
    if isinstance(value, (list, tuple, set, frozenset)):
        return ",".join(to_param_value(item) for item in value)
    return value


FILTER_VALUE_CONVERTERS: Dict[str, Callable[[Any], Any]] = {
    "$in": _convert_in,
}


def strip_lookup_operator(field_path: str) -> str:
    """
    Strip lookup operators from a parameter name.

    Examples:
        "status__in" -> "status"
        "name__icontains" -> "name"
        "created__gte" -> "created"
    """
    parts = field_path.split("__")
    base_parts = []
    for part in parts:
        if part in SUPPORTED_OPERATORS:
            break
        base_parts.append(part)
    return "__".join(base_parts) if base_parts else field_path


def resolve_identifier(
    resource_traits: Optional[ResourceTraits], default_identifier: str
) -> str:
    """Primary-key field of a resource: its trait identifier, else the default."""
    if resource_traits is not None and resource_traits.identifier:
        return resource_traits.identifier
    return default_identifier


def translate_filters(filters: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Compile a filter mapping into transport parameters.

    Literal values become equality parameters, operator maps become one
    ``<field>__<suffix>`` parameter per operator. A ``None`` value emits nothing.

    Raises:
        UnsupportedFilterCondition: for an operator key not in FILTER_OPERATORS.
    """
    params: Dict[str, Any] = {}
    for field_name, filter_value in (filters or {}).items():
        if filter_value is None:
            continue
        if isinstance(filter_value, Mapping):
            for operator, value in filter_value.items():
                suffix = FILTER_OPERATORS.get(operator)
                if suffix is None:
                    raise UnsupportedFilterCondition(
                        f"Filter condition '{operator}' is not supported"
                    )
                converter = FILTER_VALUE_CONVERTERS.get(operator)
                params[f"{field_name}__{suffix}"] = (
                    converter(value) if converter else value
                )
        else:
            params[field_name] = filter_value
    return params


def translate_order_by(order_by: Any) -> Optional[str]:
    """
    Translate an ordering specification into the ``ordering`` parameter value.

    A string passes through. For a mapping of field -> direction only the last
    entry is kept; a negative direction means descending. Directions must be
    numbers.
    """
    if order_by is None:
        return None
    if isinstance(order_by, str):
        return order_by
    if isinstance(order_by, Mapping):
        ordering = None
        for field_name, direction in order_by.items():
            if isinstance(direction, bool) or not isinstance(direction, (int, float)):
                raise InvalidOrderBySpecification(
                    f"Invalid orderBy direction for {field_name}: {direction!r}"
                )
            ordering = f"-{field_name}" if direction < 0 else field_name
        return ordering
    raise InvalidOrderBySpecification("Invalid orderBy specification")


def _identifier_filtered(filters: Mapping[str, Any], identifier: str) -> bool:
    return any(
        value is not None and strip_lookup_operator(key) == identifier
        for key, value in filters.items()
    )


def build_request_options(
    config: RequestConfig, resource_traits: Optional[ResourceTraits] = None
) -> Dict[str, Any]:
    """
    Build the transport request for a normalized head configuration.

    Returns ``{"url", "method", "params", "headers"}``. Derived filter
    parameters override caller ``params`` on key collision, and the
    ``ordering`` parameter derived from ``order_by`` overrides both.
    """
    url = config.head_resource or ""
    filters = dict(config.filters or {})

    ids = config.id
    if ids is not None:
        if isinstance(ids, (list, tuple, set, frozenset)):
            identifier = resolve_identifier(resource_traits, config.default_identifier)
            if _identifier_filtered(filters, identifier):
                raise ConflictingIdentifierFilter(
                    f"Filter by {identifier} property cannot be used when "
                    f"id configuration parameter is specified"
                )
            filters[identifier] = {"$in": list(ids)}
        else:
            if not url.endswith("/"):
                url = url + "/"
            url = url + to_param_value(ids)

    params = merge(config.params or {}, translate_filters(filters))

    ordering = translate_order_by(config.order_by)
    if ordering is not None:
        params[ORDERING_PARAM] = ordering

    logger.debug(f"GET {url} params={params}")
    return {
        "url": url,
        "method": "GET",
        "params": params,
        "headers": dict(config.headers or {}),
    }
