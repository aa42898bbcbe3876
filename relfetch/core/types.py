from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Mapping, Tuple, Union

# A resource is named by a string; references are declared as
# (name, {field path: resource specification}).
ResourceName = str
ReferenceMap = Mapping[str, Any]
ResourceSpec = Union[ResourceName, Tuple[ResourceName, ReferenceMap], List[Any]]

Entity = Dict[str, Any]
Response = Dict[str, Any]

# Reference ids must be one of these. bool is a subclass of int, listed for clarity.
REFERENCE_ID_TYPES = (int, float, str, bool)


class OperationType(str, Enum):
    GET = "get"
    # reserved for mutation collaborators
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
