"""
HTTP transport for ResourceClient, built on httpx.

    transport = HTTPXTransport(url="https://api.example.com", token="secret")
    client = ResourceClient(execute=transport, decode_response=decode_json_response)
"""

import logging
from typing import Any, Dict, Optional

import httpx

from relfetch.core.classes import RequestConfig, ResourceTraits
from relfetch.core.exceptions import (ConflictError, NotFound,
                                      PermissionDenied, TransportError,
                                      ValidationError)
from relfetch.core.filters import build_request_options

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error mapping: the API reports {"type": ..., "detail": ...} on failure
# ---------------------------------------------------------------------------

_ERROR_MAP = {
    "ValidationError": ValidationError,
    "NotFound": NotFound,
    "PermissionDenied": PermissionDenied,
    "ConflictError": ConflictError,
}

_STATUS_MAP = {
    400: ValidationError,
    403: PermissionDenied,
    404: NotFound,
    409: ConflictError,
}


def parse_error(resp: httpx.Response) -> None:
    """Parse an error response and raise the matching exception."""
    try:
        data = resp.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        detail = data.get("detail", str(data))
        exc_cls = _ERROR_MAP.get(data.get("type", "")) or _STATUS_MAP.get(resp.status_code)
    else:
        detail = resp.text or resp.reason_phrase
        exc_cls = _STATUS_MAP.get(resp.status_code)

    if exc_cls is None:
        raise TransportError(detail, status_code=resp.status_code)
    raise exc_cls(detail)


def decode_json_response(
    response: httpx.Response, config: RequestConfig, resource: Optional[str]
) -> Dict[str, Any]:
    """Decode an httpx response into the ``{"data": ...}`` envelope."""
    return {
        "data": response.json(),
        "status": response.status_code,
        "headers": dict(response.headers),
    }


class HTTPXTransport:
    """Execute collaborator that sends reads over an httpx.AsyncClient."""

    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if client is None and not url:
            raise ValueError("Either url or client must be provided")
        self.headers = {"Accept": "application/json", **(headers or {})}
        if token:
            self.headers["Authorization"] = f"Token {token}"
        self.timeout = timeout
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=url.rstrip("/") + "/")

    async def __call__(
        self, config: RequestConfig, resource_traits: Optional[ResourceTraits] = None
    ) -> httpx.Response:
        options = build_request_options(config, resource_traits)
        timeout = (config.model_extra or {}).get("timeout", self.timeout)
        resp = await self.client.request(
            options["method"],
            options["url"],
            params=options["params"],
            headers={**self.headers, **options["headers"]},
            timeout=timeout,
        )
        if resp.status_code >= 400:
            logger.debug(f"{options['method']} {options['url']} failed with {resp.status_code}")
            parse_error(resp)
        return resp

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
