from dataclasses import dataclass
from typing import Dict, List, Optional, Union


@dataclass
class ErrorDetail:
    message: str
    code: str

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"ErrorDetail(message={self.message!r}, code={self.code!r})"


class RelFetchError(Exception):
    """Base exception for all relfetch errors."""

    status_code: Optional[int] = None
    default_detail: Union[str, Dict, List] = "A client error occurred."
    default_code: str = "error"

    def __init__(
        self,
        detail: Optional[Union[str, Dict, List]] = None,
        code: Optional[str] = None,
    ):
        detail = detail if detail is not None else self.default_detail
        self.detail = self._normalize_detail(detail, code or self.default_code)
        super().__init__(str(self.detail))

    def _normalize_detail(
        self, detail: Union[str, Dict, List], code: Optional[str]
    ) -> Union[ErrorDetail, Dict, List]:
        """Convert details to ErrorDetail objects recursively."""
        if isinstance(detail, str):
            return ErrorDetail(detail, code or self.default_code)
        elif isinstance(detail, dict):
            return {
                key: self._normalize_detail(value, code)
                for key, value in detail.items()
            }
        elif isinstance(detail, list):
            return [self._normalize_detail(item, code) for item in detail]
        return detail


# ---------------------------------------------------------------------------
# Request construction errors. Raised before or while building a request,
# always fatal for the whole call.
# ---------------------------------------------------------------------------

class InvalidResourceSpecification(RelFetchError):
    """Resource is neither a name nor a (name, reference map) pair."""

    default_detail = "Invalid resource specification."
    default_code = "invalid_resource_specification"


class ConflictingIdentifierFilter(RelFetchError):
    """An identifier filter was combined with an id-set fetch."""

    default_detail = "Identifier filter cannot be combined with an id set."
    default_code = "conflicting_identifier_filter"


class UnsupportedFilterCondition(RelFetchError):
    """A filter operator map contains an unknown operator key."""

    default_detail = "Filter condition is not supported."
    default_code = "unsupported_filter_condition"


class InvalidOrderBySpecification(RelFetchError):
    default_detail = "Invalid orderBy specification."
    default_code = "invalid_order_by_specification"


# ---------------------------------------------------------------------------
# Transport errors, mapped from the remote API's error responses
# ---------------------------------------------------------------------------

class TransportError(RelFetchError):
    """Error response received from the remote API."""

    status_code = 500
    default_detail = "A server error occurred."
    default_code = "transport_error"

    def __init__(
        self,
        detail: Optional[Union[str, Dict, List]] = None,
        status_code: Optional[int] = None,
    ):
        if status_code is not None:
            self.status_code = status_code
        super().__init__(detail, self.default_code)


class ValidationError(TransportError):
    """Error raised for invalid input. Corresponds to HTTP 400."""

    status_code = 400
    default_detail = "Invalid input."
    default_code = "validation_error"


class PermissionDenied(TransportError):
    """Error raised for permission issues. Corresponds to HTTP 403."""

    status_code = 403
    default_detail = "Permission denied."
    default_code = "permission_denied"


class NotFound(TransportError):
    """Error raised when an object is not found. Corresponds to HTTP 404."""

    status_code = 404
    default_detail = "Not found."
    default_code = "not_found"


class ConflictError(TransportError):
    status_code = 409
    default_detail = "Conflict."
    default_code = "conflict"


class ConfigError(Exception):
    """Error raised for configuration issues."""
    pass
