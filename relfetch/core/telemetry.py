"""
Telemetry collection for debugging reference resolution.

When a context is active and enabled, this module tracks:
- Fetches executed against the transport (head and nested)
- Reference paths resolved and how many distinct ids each one fetched
- Reference ids rejected for having an unusable type
- Reference ids that the referenced collection did not return
"""
from typing import Any, Dict, List, Optional
from contextvars import ContextVar
import time

# Context variable to hold the current telemetry context
_telemetry_context: ContextVar[Optional['TelemetryContext']] = ContextVar('telemetry_context', default=None)


class TelemetryContext:
    """
    Collects telemetry data for one logical unit of work (usually one get call).
    """

    def __init__(self):
        self.enabled = False
        self.start_time = time.time()
        self.fetches: List[Dict[str, Any]] = []
        self.references: List[Dict[str, Any]] = []
        self.rejected_ids: List[Dict[str, Any]] = []
        self.missing_references: List[Dict[str, Any]] = []

    def record_fetch(self, resource: str, id: Any = None, is_array: bool = True):
        """Record a fetch handed to the transport."""
        if not self.enabled:
            return
        self.fetches.append({
            'resource': resource,
            'id': self._sanitize_data(id),
            'is_array': is_array,
            'timestamp': time.time() - self.start_time
        })

    def record_reference(self, path: str, resource: str, id_count: int):
        """Record a batched reference fetch for one path."""
        if not self.enabled:
            return
        self.references.append({
            'path': path,
            'resource': resource,
            'id_count': id_count,
            'timestamp': time.time() - self.start_time
        })

    def record_rejected_id(self, resource: str, path: str, value: Any):
        if not self.enabled:
            return
        self.rejected_ids.append({
            'resource': resource,
            'path': path,
            'value': self._sanitize_data(value),
        })

    def record_missing_reference(self, resource: str, id: Any):
        if not self.enabled:
            return
        self.missing_references.append({
            'resource': resource,
            'id': id,
        })

    def fetch_count(self, resource: Optional[str] = None) -> int:
        """Number of recorded fetches, optionally only those for ``resource``."""
        if resource is None:
            return len(self.fetches)
        return sum(1 for fetch in self.fetches if fetch['resource'] == resource)

    def _sanitize_data(self, data: Any) -> Any:
        """
        Sanitize data for telemetry output.
        Limits size of large id sets.
        """
        if data is None:
            return None

        data_str = str(data)
        if len(data_str) > 1000:
            return data_str[:1000] + "... (truncated)"
        return data_str

    def get_telemetry_data(self) -> Dict[str, Any]:
        """
        Get all collected telemetry data.
        """
        if not self.enabled:
            return {}

        return {
            'enabled': True,
            'duration_ms': (time.time() - self.start_time) * 1000,
            'fetches': {
                'count': len(self.fetches),
                'details': self.fetches,
            },
            'references': {
                'count': len(self.references),
                'details': self.references,
            },
            'data_quality': {
                'rejected_ids': self.rejected_ids,
                'missing_references': self.missing_references,
            },
        }


def get_telemetry_context() -> Optional[TelemetryContext]:
    """Get the current telemetry context."""
    return _telemetry_context.get()


def set_telemetry_context(context: Optional[TelemetryContext]):
    """Set the current telemetry context."""
    _telemetry_context.set(context)


def create_telemetry_context(enabled: bool = False) -> TelemetryContext:
    """Create and activate a new telemetry context."""
    context = TelemetryContext()
    context.enabled = enabled
    set_telemetry_context(context)
    return context


def clear_telemetry_context():
    """Clear the current telemetry context."""
    set_telemetry_context(None)
