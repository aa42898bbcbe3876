from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Union

from relfetch.core.classes import ResourceTraits
from relfetch.core.exceptions import ConfigError

TraitsLike = Union[ResourceTraits, Mapping[str, Any]]


class ClientConfig:
    """
    Construction options of a ResourceClient.

    Parameters:
    -----------
    execute: Callable
        ``(config, resource_traits) -> raw response``, sync or async. Performs
        the transport call for the head resource of a normalized configuration.
    decode_response: Callable, optional
        ``(raw_response, config, resource) -> {"data": ...}``, sync or async.
    encode_request: Callable, optional
        Reserved for mutation payload shaping. Not used by reads.
    resources: Mapping[str, ResourceTraits | dict], optional
        Resource traits keyed by resource name.
    default_identifier: str, default="id"
        Primary-key field used when a resource declares no identifier.
    max_depth: int, default=1
        How many levels of reference maps are expanded per call.
    """

    execute: Optional[Callable] = None
    decode_response: Optional[Callable] = None
    encode_request: Optional[Callable] = None
    resources: ResourceRegistry = None
    default_identifier: str = "id"
    max_depth: int = 1

    def __init__(self, **kwargs) -> None:
        self.resources = ResourceRegistry()
        self.configure(**kwargs)

    def configure(self, **kwargs) -> None:
        for key, value in kwargs.items():
            if not hasattr(self, key):
                raise AttributeError(f"Invalid configuration key: {key}")
            if key == "resources":
                value = ResourceRegistry(value)
            setattr(self, key, value)

    def validate(self) -> None:
        """
        Check the options a client cannot work without.

        Raises:
            ConfigError: If ``execute`` is missing, a hook is not callable or
                ``max_depth`` is negative.
        """
        if self.execute is None:
            raise ConfigError("An execute callable is required")
        for name in ("execute", "decode_response", "encode_request"):
            hook = getattr(self, name)
            if hook is not None and not callable(hook):
                raise ConfigError(f"'{name}' must be callable, got {type(hook).__name__}")
        if not self.default_identifier:
            raise ConfigError("default_identifier must be a non-empty string")
        if self.max_depth < 0:
            raise ConfigError(f"max_depth must be >= 0, got {self.max_depth}")


class ResourceRegistry:
    """
    Resource traits keyed by resource name. Fixed once the client is built.
    """

    def __init__(self, resources: Optional[Union[ResourceRegistry, Mapping[str, TraitsLike]]] = None):
        self._resources: Dict[str, ResourceTraits] = {}
        if isinstance(resources, ResourceRegistry):
            self._resources = dict(resources._resources)
        elif resources:
            for name, traits in resources.items():
                self.register(name, traits)

    def register(self, name: str, traits: TraitsLike) -> None:
        if name in self._resources:
            raise ValueError(f"Resource {name} is already registered.")
        if not isinstance(traits, ResourceTraits):
            traits = ResourceTraits.model_validate(dict(traits))
        self._resources[name] = traits

    def get_traits(self, name: Optional[str]) -> Optional[ResourceTraits]:
        """Return the traits of ``name``, or None for an undeclared resource."""
        if name is None:
            return None
        return self._resources.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._resources

    def __len__(self) -> int:
        return len(self._resources)
