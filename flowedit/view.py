"""
Render-boundary view models.

NodeRecord holds what gets persisted. NodeView joins a record with what only
the canvas needs: connection indicators and per-node action callbacks. Views
are built on demand for each render and are never stored in editor state.

Connection status is derived from the networkx view of the graph used for
layout, so both agree on which edges count (edges with a missing endpoint are
ignored).
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from flowedit.edit.callbacks import EditorCallbacks
from flowedit.graph import NodeRecord, WorkflowGraph
from flowedit.layout import to_networkx


@dataclass(frozen=True)
class NodeView:
    record: NodeRecord
    has_input_connection: bool = False
    has_output_connection: bool = False
    on_delete: Optional[Callable[[str], Any]] = None
    on_edit: Optional[Callable[[str], Any]] = None
    on_duplicate: Optional[Callable[[str], Any]] = None
    on_add_node: Optional[Callable[..., Any]] = None

    @property
    def id(self) -> str:
        return self.record.id

    def to_render_dict(self) -> Dict[str, Any]:
        """Merged node dict in the shape the canvas component consumes."""
        node = self.record.to_dict()
        node['data'].update({
            'onDelete': self.on_delete,
            'onEdit': self.on_edit,
            'onDuplicate': self.on_duplicate,
            'onAddNode': self.on_add_node,
            'hasInputConnection': self.has_input_connection,
            'hasOutputConnection': self.has_output_connection,
        })
        return node


def connection_status(graph: WorkflowGraph) -> Dict[str, Tuple[bool, bool]]:
    """Map node id -> (has_input, has_output)."""
    G = to_networkx(graph)
    return {
        node_id: (G.in_degree(node_id) > 0, G.out_degree(node_id) > 0)
        for node_id in G.nodes
    }


def decorate(graph: WorkflowGraph, callbacks: Optional[EditorCallbacks] = None) -> List[NodeView]:
    """Build one NodeView per node, in node order."""
    callbacks = callbacks or EditorCallbacks()
    status = connection_status(graph)
    views = []
    for node in graph.nodes:
        has_input, has_output = status.get(node.id, (False, False))
        views.append(NodeView(
            record=node,
            has_input_connection=has_input,
            has_output_connection=has_output,
            on_delete=callbacks.on_node_delete,
            on_edit=callbacks.on_node_edit,
            on_duplicate=callbacks.on_node_duplicate,
            on_add_node=callbacks.on_add_node_from_handle,
        ))
    return views
