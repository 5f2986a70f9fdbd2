"""
Conversion between the editor graph and the persisted workflow schema shape.

Editor node:  {"id", "type": "workflow", "position": {"x", "y"}, "data": {...}}
Schema node:  {"id", "type": "action", "position": [x, y], "label", "config", ...}

Editor edge:  {"id", "source", "target", "sourceHandle", "targetHandle"}
Schema edge:  {"id", "source": "nodeId:port", "target": "nodeId:port", "label"}

Structural validation of the schema payload belongs to the schema layer; this
module only reshapes data.
"""

import json
from typing import Any, Dict, List, Optional, Tuple

from flowedit.graph import Edge, NodeRecord, Position, WorkflowGraph, thaw

NODE_TYPES = ('trigger', 'action', 'transform', 'condition', 'loop')

# Node data keys that map one-to-one onto top-level schema node fields
SCHEMA_NODE_FIELDS = (
    'label', 'package', 'app', 'version', 'action', 'config', 'disabled',
    'notes', 'input', 'output', 'authenticationId', 'metadata', 'properties',
)

EDITOR_NODE_TYPE = 'workflow'


def is_valid_node_type(value: Any) -> bool:
    return isinstance(value, str) and value in NODE_TYPES


def get_node_type(data: Dict[str, Any]) -> Optional[str]:
    """Schema node type from node data; 'type' wins over the legacy 'nodeType'."""
    if is_valid_node_type(data.get('type')):
        return data['type']
    if is_valid_node_type(data.get('nodeType')):
        return data['nodeType']
    return None


def split_endpoint(endpoint: str) -> Tuple[str, Optional[str]]:
    """'node_1:out' -> ('node_1', 'out'); 'node_1' -> ('node_1', None)."""
    node_id, sep, port = endpoint.partition(':')
    return node_id, (port if sep and port else None)


def join_endpoint(node_id: str, handle: Optional[str]) -> str:
    return f"{node_id}:{handle}" if handle else node_id


def to_schema_node(node: NodeRecord) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        'id': node.id,
        'type': get_node_type(node.data) or 'action',
        'position': [node.position.x, node.position.y],
    }
    for key in SCHEMA_NODE_FIELDS:
        if node.data.get(key) is not None:
            result[key] = thaw(node.data[key])
    result.setdefault('disabled', False)
    return result


def from_schema_node(data: Dict[str, Any], editor_type: str = EDITOR_NODE_TYPE) -> NodeRecord:
    position = data.get('position') or [0, 0]
    if len(position) < 2:
        raise ValueError(f"Node {data.get('id')!r}: position needs at least [x, y]")
    node_data = {key: data[key] for key in SCHEMA_NODE_FIELDS if key in data}
    if is_valid_node_type(data.get('type')):
        node_data['type'] = data['type']
    return NodeRecord(
        id=str(data['id']),
        type=editor_type,
        position=Position(float(position[0]), float(position[1])),
        data=node_data,
    )


def to_schema_edge(edge: Edge) -> Dict[str, Any]:
    result = {
        'id': edge.id,
        'source': join_endpoint(edge.source, edge.source_handle),
        'target': join_endpoint(edge.target, edge.target_handle),
    }
    if edge.label is not None:
        result['label'] = edge.label
    return result


def from_schema_edge(data: Dict[str, Any]) -> Edge:
    source, source_handle = split_endpoint(str(data['source']))
    target, target_handle = split_endpoint(str(data['target']))
    return Edge(
        id=str(data['id']),
        source=source,
        target=target,
        source_handle=source_handle,
        target_handle=target_handle,
        label=data.get('label'),
    )


def to_schema_workflow(graph: WorkflowGraph, workflow_id: str, name: str,
                       version: str = '1.0.0', status: str = 'draft',
                       **extra: Any) -> Dict[str, Any]:
    """Wrap the graph in a workflow document (id, name, version, status, nodes, edges)."""
    payload: Dict[str, Any] = {
        'id': workflow_id,
        'name': name,
        'version': version,
        'status': status,
    }
    payload.update(extra)
    payload['nodes'] = [to_schema_node(node) for node in graph.nodes]
    payload['edges'] = [to_schema_edge(edge) for edge in graph.edges]
    return payload


def from_schema_workflow(payload: Dict[str, Any]) -> WorkflowGraph:
    nodes: List[NodeRecord] = [from_schema_node(node) for node in payload.get('nodes', [])]
    edges: List[Edge] = [from_schema_edge(edge) for edge in payload.get('edges', [])]
    return WorkflowGraph.from_dict({'nodes': nodes, 'edges': edges})


def export_workflow_json(graph: WorkflowGraph, workflow_id: str, name: str, **kwargs: Any) -> str:
    """Full export of the graph as a portable schema-shaped JSON string."""
    return json.dumps(to_schema_workflow(graph, workflow_id, name, **kwargs), indent=2)
