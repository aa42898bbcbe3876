"""
relfetch: an async REST resource client that resolves cross-resource references.
"""

from relfetch.core.classes import RequestConfig, ResourceTraits
from relfetch.core.config import ClientConfig, ResourceRegistry
from relfetch.core.exceptions import (ConfigError, ConflictError,
                                      ConflictingIdentifierFilter,
                                      InvalidOrderBySpecification,
                                      InvalidResourceSpecification, NotFound,
                                      PermissionDenied, RelFetchError,
                                      TransportError,
                                      UnsupportedFilterCondition,
                                      ValidationError)
from relfetch.core.request import ResourceClient
from relfetch.core.types import OperationType

__all__ = [
    # Types
    "OperationType",
    "RequestConfig",
    "ResourceTraits",
    # Configuration
    "ClientConfig",
    "ResourceRegistry",
    # Client
    "ResourceClient",
    # Errors
    "RelFetchError",
    "InvalidResourceSpecification",
    "ConflictingIdentifierFilter",
    "UnsupportedFilterCondition",
    "InvalidOrderBySpecification",
    "TransportError",
    "ValidationError",
    "PermissionDenied",
    "NotFound",
    "ConflictError",
    "ConfigError",
]

__version__ = "0.1.0"
