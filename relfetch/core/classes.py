from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from relfetch.core.types import OperationType


class ResourceTraits(BaseModel):
    """
    Per-resource metadata, looked up by resource name.

    identifier:
        Name of the entity's primary-key field. Falls back to the client's
        default identifier when unset.
    transform_response_entry:
        ``(entry, config, resource) -> entry``, applied to every entity.
    transform_response:
        ``(response, config, resource) -> response``, applied to the whole
        response after the entry transform.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    identifier: Optional[str] = None
    transform_response_entry: Optional[Callable[..., Any]] = Field(
        default=None, alias="transformResponseEntry"
    )
    transform_response: Optional[Callable[..., Any]] = Field(
        default=None, alias="transformResponse"
    )


class RequestConfig(BaseModel):
    """
    Configuration of a single fetch. Built fresh for every call and every
    nested reference fetch. Unknown keys are kept and handed to the transport.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    resource: Any = None
    operation: OperationType = OperationType.GET
    is_array: bool = Field(default=True, alias="isArray")
    id: Any = None
    filters: Optional[Dict[str, Any]] = None
    order_by: Any = Field(default=None, alias="orderBy")
    params: Dict[str, Any] = Field(default_factory=dict)
    headers: Dict[str, Any] = Field(default_factory=dict)
    default_identifier: str = Field(default="id", alias="defaultIdentifier")
    max_depth: int = Field(default=1, alias="maxDepth")

    @classmethod
    def normalize_options(cls, options: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Rename camelCase aliases (``orderBy``, ``isArray``...) to field names."""
        if not options:
            return {}
        aliases = {
            info.alias: name
            for name, info in cls.model_fields.items()
            if info.alias is not None
        }
        return {aliases.get(key, key): value for key, value in dict(options).items()}

    @property
    def head_resource(self) -> Optional[str]:
        resource = self.resource
        if isinstance(resource, (list, tuple)) and resource:
            return resource[0]
        if isinstance(resource, str):
            return resource
        return None


@dataclass
class ReferenceNode:
    """A node of the reference graph: one resource at one position of a specification."""

    resource: str
    path: Optional[str] = None
    depth: int = 0
    spec: Any = field(default=None, repr=False)
