"""
Resolution of reference fields into the entities they point to.

A resource specification declares which fields hold ids of another resource:

    ("posts", {"author": "users", "tags": "tags"})

For every declared path the resolver collects the distinct ids found in the
response, fetches them with one batched request and writes the resolved
entities back in place of the ids.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

import networkx as nx
from cytoolz import pluck

from relfetch.core.classes import ReferenceNode, RequestConfig
from relfetch.core.config import ResourceRegistry
from relfetch.core.exceptions import InvalidResourceSpecification
from relfetch.core.filters import resolve_identifier
from relfetch.core.paths import get_path, set_path
from relfetch.core.telemetry import get_telemetry_context
from relfetch.core.types import REFERENCE_ID_TYPES, OperationType, Response

logger = logging.getLogger(__name__)


def split_resource_spec(resource: Any) -> Tuple[str, Optional[Mapping[str, Any]]]:
    """
    Split a resource specification into its head resource and reference map.

    Examples:
        "users"                      -> ("users", None)
        ("posts", {"author": "users"}) -> ("posts", {"author": "users"})

    Raises:
        InvalidResourceSpecification: for anything else.
    """
    if isinstance(resource, str):
        return resource, None
    if isinstance(resource, (list, tuple)) and 1 <= len(resource) <= 2:
        head = resource[0]
        references = resource[1] if len(resource) == 2 else None
        if isinstance(head, str) and (references is None or isinstance(references, Mapping)):
            return head, references
    raise InvalidResourceSpecification(
        f"Invalid resource specification: {resource!r}"
    )


def build_reference_graph(
    resource: Any,
    graph: Optional[nx.DiGraph] = None,
    parent: Optional[Tuple[str, ...]] = None,
    path: Optional[str] = None,
    depth: int = 0,
) -> nx.DiGraph:
    """
    Build a directed graph of a resource specification.

    Nodes are positions in the specification, keyed by the head resource
    followed by the reference paths leading to them:

        ("posts",)                     the head resource
        ("posts", "author")            users referenced by posts.author
        ("posts", "author", "company") companies referenced by users.company

    Each node carries a ReferenceNode. Edges keep the declared order of
    reference paths and are labelled with the path. The whole specification
    is validated on the way.

    Raises:
        InvalidResourceSpecification: if any nested specification is invalid.
    """
    if graph is None:
        graph = nx.DiGraph()

    head, references = split_resource_spec(resource)
    node_id = (head,) if parent is None else parent + (path,)
    graph.add_node(
        node_id,
        data=ReferenceNode(resource=head, path=path, depth=depth, spec=resource),
    )
    if parent is not None:
        graph.add_edge(parent, node_id, path=path)

    for reference_path, reference in (references or {}).items():
        if not isinstance(reference_path, str):
            raise InvalidResourceSpecification(
                f"Reference path must be a string, got {reference_path!r}"
            )
        build_reference_graph(reference, graph, node_id, reference_path, depth + 1)

    return graph


def graph_root(graph: nx.DiGraph) -> Tuple[str, ...]:
    """The node of the head resource (the only node without predecessors)."""
    return next(node for node, degree in graph.in_degree() if degree == 0)


def reference_key(value: Any) -> str:
    """
    Key under which a reference id is deduplicated and looked up.

    Ids are compared by their query-string form, so ``"5"``, ``5`` and ``5.0``
    refer to the same entity.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_valid_reference_id(value: Any) -> bool:
    return isinstance(value, REFERENCE_ID_TYPES)


def _entries(response: Response, config: RequestConfig) -> List[Any]:
    data = response.get("data")
    if data is None:
        return []
    return data if config.is_array else [data]


class ReferenceResolver:
    """
    Expands the reference map of a resource specification, one path at a time.

    ``load_resource`` runs a nested fetch through the full request pipeline
    and is awaited once per reference path that has ids to resolve.
    """

    def __init__(
        self,
        registry: ResourceRegistry,
        load_resource: Callable[[RequestConfig], Awaitable[Response]],
    ):
        self.registry = registry
        self.load_resource = load_resource

    async def resolve(
        self, response: Response, config: RequestConfig, graph: nx.DiGraph
    ) -> None:
        """Resolve every reference path declared at the root of ``graph``, in order."""
        root = graph_root(graph)
        if graph.out_degree(root) == 0:
            return

        declared_depth = nx.dag_longest_path_length(graph)
        if declared_depth > config.max_depth:
            logger.debug(
                f"{config.head_resource} declares references {declared_depth} levels deep, "
                f"expanding {max(config.max_depth, 0)}"
            )
        if config.max_depth <= 0:
            return

        for child in graph.successors(root):
            path = graph.edges[root, child]["path"]
            reference = graph.nodes[child]["data"]
            await self.resolve_path(response, config, path, reference.spec)

    async def resolve_path(
        self, response: Response, config: RequestConfig, path: str, reference: Any
    ) -> None:
        ids = self.extract_reference_ids(response, config, path)
        if not ids:
            return

        reference_config = RequestConfig(
            operation=OperationType.GET,
            is_array=True,
            resource=reference,
            id=ids,
            default_identifier=config.default_identifier,
            max_depth=config.max_depth - 1,
        )
        logger.debug(
            f"Resolving {config.head_resource}['{path}'] with {len(ids)} "
            f"{reference_config.head_resource} id(s)"
        )
        telemetry_ctx = get_telemetry_context()
        if telemetry_ctx:
            telemetry_ctx.record_reference(path, reference_config.head_resource, len(ids))

        reference_response = await self.load_resource(reference_config)
        self.replace_reference_ids(
            response, config, reference_response, reference_config, path
        )

    def extract_reference_ids(
        self, response: Response, config: RequestConfig, path: str
    ) -> List[Any]:
        """
        Collect the distinct reference ids found at ``path`` across all entities.

        A list value contributes each of its elements. ``None`` is skipped,
        values that are not numbers, strings or booleans are skipped with a
        warning.
        """
        head_resource = config.head_resource
        ids: Dict[str, Any] = {}
        telemetry_ctx = get_telemetry_context()

        def add_id_if_valid(value: Any) -> None:
            if value is None:
                return
            if _is_valid_reference_id(value):
                ids.setdefault(reference_key(value), value)
            else:
                logger.warning(
                    f"Wrong type of resource reference id: {head_resource}['{path}']. Skipped"
                )
                if telemetry_ctx:
                    telemetry_ctx.record_rejected_id(head_resource, path, value)

        for entry in _entries(response, config):
            value = get_path(entry, path)
            if isinstance(value, (list, tuple)):
                for item in value:
                    add_id_if_valid(item)
            else:
                add_id_if_valid(value)

        return list(ids.values())

    def create_indexed_data(
        self, response: Response, config: RequestConfig
    ) -> Dict[str, Any]:
        """Index the entities of ``response`` by their identifier field."""
        traits = self.registry.get_traits(config.head_resource)
        identifier = resolve_identifier(traits, config.default_identifier)
        entries = _entries(response, config)
        keys = pluck(identifier, entries, default=None)
        return {
            reference_key(key): entry
            for key, entry in zip(keys, entries)
            if key is not None
        }

    def replace_reference_ids(
        self,
        response: Response,
        config: RequestConfig,
        reference_response: Response,
        reference_config: RequestConfig,
        path: str,
    ) -> None:
        """Write the resolved entities over the ids at ``path``, in place."""
        if reference_response.get("data") is None:
            return

        reference_resource = reference_config.head_resource
        indexed_reference_data = self.create_indexed_data(
            reference_response, reference_config
        )
        telemetry_ctx = get_telemetry_context()

        def map_id_to_reference_entry(id: Any) -> Any:
            if not _is_valid_reference_id(id):
                return None
            entry = indexed_reference_data.get(reference_key(id))
            if entry is None:
                logger.warning(
                    f"Reference of type {reference_resource} with id={id} "
                    f"hasn't been found. Replacing with null"
                )
                if telemetry_ctx:
                    telemetry_ctx.record_missing_reference(reference_resource, id)
            return entry

        for entry in _entries(response, config):
            # entities that are not containers have nothing to write into
            if not isinstance(entry, (dict, list)):
                continue
            value = get_path(entry, path)
            if isinstance(value, (list, tuple)):
                mapping = [map_id_to_reference_entry(item) for item in value]
            else:
                mapping = map_id_to_reference_entry(value)
            set_path(entry, path, mapping)
