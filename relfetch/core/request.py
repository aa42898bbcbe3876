import inspect
import logging
from typing import Any, Mapping, Optional

from cytoolz import dissoc, merge

from relfetch.core.classes import RequestConfig
from relfetch.core.config import ClientConfig
from relfetch.core.resolver import (ReferenceResolver, build_reference_graph,
                                    graph_root)
from relfetch.core.telemetry import get_telemetry_context
from relfetch.core.transform import transform_response
from relfetch.core.types import OperationType, Response

logger = logging.getLogger(__name__)

_ID_SEQUENCE_TYPES = (list, tuple, set, frozenset)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class ResourceClient:
    """
    Fetches resources and expands their declared references.

    Usage:
        client = ResourceClient(ClientConfig(
            execute=HTTPXTransport(url="https://api.example.com"),
            decode_response=decode_json_response,
            resources={"users": {"identifier": "uid"}},
        ))

        user = await client.get("users", 5)
        users = await client.get("users", [1, 2, 3])
        adults = await client.get("users", {"filters": {"age": {"$gte": 18}}})
        posts = await client.get(("posts", {"author": "users"}))
    """

    def __init__(self, config: Optional[ClientConfig] = None, **kwargs):
        if config is None:
            config = ClientConfig(**kwargs)
        elif kwargs:
            config.configure(**kwargs)
        config.validate()

        self.config = config
        self.registry = config.resources
        self._execute = config.execute
        self._decode_response = config.decode_response
        self._encode_request = config.encode_request
        self.resolver = ReferenceResolver(self.registry, self._load_resource)

    @property
    def default_identifier(self) -> str:
        return self.config.default_identifier

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self) -> None:
        """Close the execute collaborator if it holds resources."""
        aclose = getattr(self._execute, "aclose", None)
        if aclose is not None:
            await aclose()

    # -- Pipeline --

    async def _call_request(self, config: RequestConfig) -> Any:
        resource_traits = self.registry.get_traits(config.head_resource)
        telemetry_ctx = get_telemetry_context()
        if telemetry_ctx:
            telemetry_ctx.record_fetch(config.head_resource, config.id, config.is_array)
        logger.debug(f"Fetching {config.head_resource} id={config.id!r} is_array={config.is_array}")
        return await _maybe_await(self._execute(config, resource_traits))

    async def _call_decode_response(self, response: Any, config: RequestConfig) -> Response:
        if self._decode_response is None:
            return response
        return await _maybe_await(
            self._decode_response(response, config, config.head_resource)
        )

    async def _load_resource(self, config: RequestConfig) -> Response:
        graph = build_reference_graph(config.resource)
        head_config = config.model_copy(update={"resource": graph_root(graph)[0]})

        response = await self._call_request(head_config)
        response = await self._call_decode_response(response, head_config)
        await self.resolver.resolve(response, config, graph)

        resource_traits = self.registry.get_traits(head_config.head_resource)
        return transform_response(response, config, resource_traits)

    def _base_options(self, config: Optional[Mapping[str, Any]]) -> dict:
        return merge(
            {
                "default_identifier": self.config.default_identifier,
                "max_depth": self.config.max_depth,
            },
            RequestConfig.normalize_options(config),
        )

    # -- Public API --

    async def get(self, resource: Any, query: Any = None, config: Optional[Mapping[str, Any]] = None) -> Response:
        """
        Fetch ``resource`` and resolve its declared references.

        ``query`` selects what is fetched:
            5 or "abc"              a single entity by id
            [1, 2, 3]               entities by id set
            {"filters": ...,        a filtered, ordered list; may also carry
             "order_by": ...,       ``id`` and ``params``
             "params": ...}
            None                    the whole collection

        ``config`` holds per-call options (``params``, ``headers``, ...) that
        ``query`` overrides.

        Raises:
            InvalidResourceSpecification: if ``resource`` is malformed.
            ConflictingIdentifierFilter, UnsupportedFilterCondition,
            InvalidOrderBySpecification: if the query cannot be translated.
        """
        options = self._base_options(config)
        forced = {"operation": OperationType.GET, "resource": resource}

        if isinstance(query, (int, float, str)) and not isinstance(query, bool):
            options = merge(options, forced, {"is_array": False, "id": query})
        elif isinstance(query, _ID_SEQUENCE_TYPES):
            options = merge(options, forced, {"is_array": True, "id": list(query)})
        elif isinstance(query, Mapping):
            options = merge(options, RequestConfig.normalize_options(query), forced)
            ids = options.get("id")
            # a scalar id addresses one entity
            options["is_array"] = ids is None or isinstance(ids, _ID_SEQUENCE_TYPES)
        else:
            options = merge(
                dissoc(options, "id", "filters", "order_by"),
                forced,
                {"is_array": True},
            )

        request_config = RequestConfig.model_validate(options)
        return await self._load_resource(request_config)

    async def create(self, resource: Any, data: Any, config: Optional[Mapping[str, Any]] = None) -> Response:
        raise NotImplementedError("create is not supported by this client")

    async def update(self, resource: Any, data: Any, config: Optional[Mapping[str, Any]] = None) -> Response:
        raise NotImplementedError("update is not supported by this client")

    async def delete(self, resource: Any, config: Optional[Mapping[str, Any]] = None) -> Response:
        raise NotImplementedError("delete is not supported by this client")
