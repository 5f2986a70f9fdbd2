"""
Graph model for the flowedit engine.

Nodes and edges are immutable values. Every mutation on a WorkflowGraph
returns a new WorkflowGraph with fresh node/edge tuples, so a graph that has
been archived in history can never be changed afterwards.

Node wire format (as exchanged with the host):
{
  "id": "node_fetch_1",
  "type": "workflow",
  "position": {"x": 0, "y": 0},
  "data": {"label": "Fetch", "config": {...}, "input": [...], "output": [...]}
}

Edge wire format:
{
  "id": "e1",
  "source": "node_fetch_1",
  "target": "node_parse_1",
  "sourceHandle": "out",      # optional
  "targetHandle": "in"        # optional
}
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple


# Keys injected into node data by the rendering layer. They never belong to
# the persisted graph.
EDITOR_ONLY_FIELDS = frozenset([
    'appName',
    'appIcon',
    'appVersion',
    'onDelete',
    'onEdit',
    'onDuplicate',
    'onAddNode',
    'hasInputConnection',
    'hasOutputConnection',
])


class GraphError(Exception):
    """Base class for recoverable graph model errors."""


class DuplicateIdError(GraphError):
    """Raised when adding a node or edge whose id is already taken."""

    def __init__(self, kind: str, item_id: str):
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"{kind} id '{item_id}' already exists")


class NotFoundError(GraphError):
    """Raised when an operation references a node or edge that does not exist."""

    def __init__(self, kind: str, item_id: str):
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"{kind} '{item_id}' not found")


def persistable_data(data: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Return a deep copy of node data without editor-only keys or callables."""
    if not data:
        return {}
    return copy.deepcopy({
        key: thaw(value)
        for key, value in data.items()
        if key not in EDITOR_ONLY_FIELDS and not callable(value)
    })


def freeze(value: Any) -> Any:
    """Read-only view of nested node data: mappings become proxies, lists tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of freeze(): fresh plain dicts and lists."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [thaw(item) for item in value]
    return value


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_value(cls, value: Any) -> "Position":
        """Accept a Position, an {x, y} mapping or an (x, y) sequence."""
        if isinstance(value, Position):
            return value
        if value is None:
            return cls()
        if isinstance(value, dict):
            return cls(float(value.get('x', 0.0)), float(value.get('y', 0.0)))
        x, y = value[0], value[1]
        return cls(float(x), float(y))

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y}


@dataclass(frozen=True)
class NodeRecord:
    """A persistable workflow node. UI decoration lives in flowedit.view."""
    id: str
    type: str
    position: Position = field(default_factory=Position)
    data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Records are shared between the live graph and history entries, so
        # data is a private read-only copy.
        object.__setattr__(self, 'position', Position.from_value(self.position))
        object.__setattr__(self, 'data', freeze(persistable_data(self.data)))

    @property
    def label(self) -> str:
        return str(self.data.get('label', ''))

    def moved_to(self, position: Any) -> "NodeRecord":
        return replace(self, position=Position.from_value(position))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NodeRecord":
        return cls(
            id=str(data['id']),
            type=str(data.get('type') or 'workflow'),
            position=Position.from_value(data.get('position')),
            data=dict(data.get('data') or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': self.type,
            'position': self.position.to_dict(),
            'data': copy.deepcopy(thaw(self.data)),
        }


@dataclass(frozen=True)
class Edge:
    id: str
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None
    label: Optional[str] = None

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id

    def same_connection(self, source: str, target: str,
                        source_handle: Optional[str] = None,
                        target_handle: Optional[str] = None) -> bool:
        return (self.source == source and self.target == target
                and self.source_handle == source_handle
                and self.target_handle == target_handle)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Edge":
        return cls(
            id=str(data['id']),
            source=str(data['source']),
            target=str(data['target']),
            source_handle=data.get('sourceHandle') or None,
            target_handle=data.get('targetHandle') or None,
            label=data.get('label'),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            'id': self.id,
            'source': self.source,
            'target': self.target,
        }
        if self.source_handle is not None:
            result['sourceHandle'] = self.source_handle
        if self.target_handle is not None:
            result['targetHandle'] = self.target_handle
        if self.label is not None:
            result['label'] = self.label
        return result


@dataclass(frozen=True)
class WorkflowGraph:
    """
    Immutable {nodes, edges} container.

    Node and edge ids are unique within their collection. Edges created by the
    engine always reference existing nodes; externally supplied graphs are
    taken as-is (see dangling_edges()).
    """
    nodes: Tuple[NodeRecord, ...] = ()
    edges: Tuple[Edge, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'nodes', tuple(self.nodes))
        object.__setattr__(self, 'edges', tuple(self.edges))

    # --- Queries ---

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def has_node(self, node_id: str) -> bool:
        return any(node.id == node_id for node in self.nodes)

    def has_edge(self, edge_id: str) -> bool:
        return any(edge.id == edge_id for edge in self.edges)

    def get_node(self, node_id: str) -> Optional[NodeRecord]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def edges_of(self, node_id: str) -> List[Edge]:
        """All edges where node_id is the source or the target."""
        return [edge for edge in self.edges if edge.touches(node_id)]

    def find_edge(self, source: str, target: str,
                  source_handle: Optional[str] = None,
                  target_handle: Optional[str] = None) -> Optional[Edge]:
        for edge in self.edges:
            if edge.same_connection(source, target, source_handle, target_handle):
                return edge
        return None

    def dangling_edges(self) -> List[Edge]:
        ids = set(self.node_ids())
        return [edge for edge in self.edges if edge.source not in ids or edge.target not in ids]

    # --- Mutations (each returns a new graph) ---

    def add_node(self, node: NodeRecord) -> "WorkflowGraph":
        if self.has_node(node.id):
            raise DuplicateIdError('node', node.id)
        return WorkflowGraph(self.nodes + (node,), self.edges)

    def remove_node(self, node_id: str) -> "WorkflowGraph":
        """Remove a node together with every edge that references it."""
        if not self.has_node(node_id):
            raise NotFoundError('node', node_id)
        nodes = tuple(node for node in self.nodes if node.id != node_id)
        edges = tuple(edge for edge in self.edges if not edge.touches(node_id))
        return WorkflowGraph(nodes, edges)

    def add_edge(self, edge: Edge) -> "WorkflowGraph":
        if self.has_edge(edge.id):
            raise DuplicateIdError('edge', edge.id)
        return WorkflowGraph(self.nodes, self.edges + (edge,))

    def remove_edge(self, edge_id: str) -> "WorkflowGraph":
        if not self.has_edge(edge_id):
            raise NotFoundError('edge', edge_id)
        return WorkflowGraph(self.nodes, tuple(edge for edge in self.edges if edge.id != edge_id))

    def update_node(self, node_id: str, patch: Dict[str, Any]) -> "WorkflowGraph":
        """
        Partially update a node.

        Args:
            node_id: Node to update
            patch: Any of 'type', 'position' (replaced) and 'data' (shallow-merged)

        Raises:
            NotFoundError: if node_id is absent
        """
        def apply(node: NodeRecord) -> NodeRecord:
            changes: Dict[str, Any] = {}
            if 'type' in patch:
                changes['type'] = str(patch['type'])
            if 'position' in patch:
                changes['position'] = Position.from_value(patch['position'])
            if 'data' in patch:
                merged = dict(node.data)
                merged.update(patch['data'] or {})
                changes['data'] = merged
            return replace(node, **changes)

        return self._map_node(node_id, apply)

    def update_node_position(self, node_id: str, position: Any) -> "WorkflowGraph":
        return self._map_node(node_id, lambda node: node.moved_to(position))

    def with_nodes(self, nodes: Iterable[NodeRecord]) -> "WorkflowGraph":
        return WorkflowGraph(tuple(nodes), self.edges)

    def _map_node(self, node_id: str, fn: Callable[[NodeRecord], NodeRecord]) -> "WorkflowGraph":
        if not self.has_node(node_id):
            raise NotFoundError('node', node_id)
        nodes = tuple(fn(node) if node.id == node_id else node for node in self.nodes)
        return WorkflowGraph(nodes, self.edges)

    # --- Serialisation ---

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "WorkflowGraph":
        """
        Build a graph from the editor wire format.

        Id uniqueness is enforced. Dangling edge references are not checked;
        that is the job of the schema layer that feeds us.
        """
        graph = cls()
        if not data:
            return graph
        for node in data.get('nodes', []):
            graph = graph.add_node(node if isinstance(node, NodeRecord) else NodeRecord.from_dict(node))
        for edge in data.get('edges', []):
            graph = graph.add_edge(edge if isinstance(edge, Edge) else Edge.from_dict(edge))
        return graph

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nodes': [node.to_dict() for node in self.nodes],
            'edges': [edge.to_dict() for edge in self.edges],
        }


def make_node(label: str, node_type: str = 'workflow', position: Any = None,
              data: Optional[Dict[str, Any]] = None, node_id: Optional[str] = None) -> NodeRecord:
    """
    Create a node record with a fresh id.
    ID is a short UUID4-based string, e.g. 'node-1a2b3c4d'.
    """
    payload = dict(data or {})
    payload.setdefault('label', label)
    return NodeRecord(
        id=node_id or f"node-{uuid.uuid4().hex[:8]}",
        type=node_type,
        position=Position.from_value(position),
        data=payload,
    )


def make_edge_id(graph: WorkflowGraph, source: str, target: str,
                 source_handle: Optional[str] = None,
                 target_handle: Optional[str] = None) -> str:
    """Deterministic edge id, suffixed when the plain form is already taken."""
    base = f"e{source}{'-' + source_handle if source_handle else ''}-{target}{'-' + target_handle if target_handle else ''}"
    candidate = base
    suffix = 1
    while graph.has_edge(candidate):
        suffix += 1
        candidate = f"{base}-{suffix}"
    return candidate
