"""
Edit Actions Module for workflow graph editing

Executes graph mutations for discrete user intents (context menu, toolbar,
keyboard). Every mutation goes through the HistoryManager so each
user-visible action is one undo step, and every committed change is reported
to the host through on_change.
"""

import logging
from typing import Any, Dict, Iterable, Optional, Union

from flowedit.config import EditorConfig
from flowedit.edit.callbacks import EditorCallbacks, fire
from flowedit.edit.validation import (
    ConnectionRequest,
    EdgeValidation,
    ValidationRejected,
    validate_connection,
)
from flowedit.graph import Edge, NodeRecord, NotFoundError, Position, make_edge_id, make_node
from flowedit.history import HistoryManager
from flowedit.layout import arrange

logger = logging.getLogger(__name__)


class EditActions:
    """
    Handles execution of editing actions.

    Methods return True/False (or the created item) instead of raising when the
    target is absent, so menu and keyboard handlers can call them blindly.
    """

    def __init__(self, history: HistoryManager,
                 callbacks: Optional[EditorCallbacks] = None,
                 validation: Optional[EdgeValidation] = None,
                 config: Optional[EditorConfig] = None):
        self.history = history
        self.callbacks = callbacks or EditorCallbacks()
        self.validation = validation or EdgeValidation()
        self.config = config or EditorConfig()

    def commit(self) -> None:
        """Report the current graph to the host."""
        fire(self.callbacks.on_change, self.history.present.to_dict())

    # --- Nodes ---

    def add_node(self, node: NodeRecord) -> NodeRecord:
        """
        Add a node as one undoable step.

        Raises:
            DuplicateIdError: if the id is taken (nothing is recorded)
        """
        self.history.mutate(lambda graph: graph.add_node(node), 'add_node')
        self.commit()
        return node

    def insert(self, nodes: Iterable[NodeRecord], edges: Iterable[Edge] = ()) -> None:
        """
        Persist caller-built nodes and edges (duplicate, paste) as one step.

        Either everything is added or, on an id collision, nothing is.
        """
        nodes, edges = list(nodes), list(edges)

        def apply(graph):
            for node in nodes:
                graph = graph.add_node(node)
            for edge in edges:
                graph = graph.add_edge(edge)
            return graph

        self.history.mutate(apply, 'insert')
        self.commit()

    def delete_node(self, node_id: str) -> bool:
        """Delete a node and every edge attached to it."""
        if not self.history.present.has_node(node_id):
            logger.info(f"delete_node: '{node_id}' not found, ignoring")
            return False
        self.history.mutate(lambda graph: graph.remove_node(node_id), 'delete_node')
        self.commit()
        fire(self.callbacks.on_node_delete, node_id)
        return True

    def move_node(self, node_id: str, position: Any) -> bool:
        """Move a node as a discrete step (not a drag gesture)."""
        if not self.history.present.has_node(node_id):
            return False
        self.history.mutate(lambda graph: graph.update_node_position(node_id, position), 'move_node')
        self.commit()
        return True

    def update_node(self, node_id: str, patch: Dict[str, Any]) -> bool:
        if not self.history.present.has_node(node_id):
            return False
        self.history.mutate(lambda graph: graph.update_node(node_id, patch), 'update_node')
        self.commit()
        return True

    def edit_node(self, node_id: str) -> bool:
        """Editing is owned by the host; only forward the request."""
        if not self.history.present.has_node(node_id):
            return False
        return fire(self.callbacks.on_node_edit, node_id)

    def duplicate_node(self, node_id: str) -> bool:
        """The host builds the copy and hands it back through insert()."""
        if not self.history.present.has_node(node_id):
            return False
        return fire(self.callbacks.on_node_duplicate, node_id)

    def request_add_node(self, position: Any) -> Optional[NodeRecord]:
        """
        Ask the host for a node at position.

        Without an on_add_node_request handler a default node is created directly.
        """
        position = Position.from_value(position)
        if self.callbacks.on_add_node_request is not None:
            fire(self.callbacks.on_add_node_request, position.to_dict())
            return None
        return self.add_node(self._default_node(position))

    def add_node_from_handle(self, node_id: str, handle_type: str, handle_id: Optional[str] = None) -> bool:
        if handle_type not in ('source', 'target'):
            raise ValueError(f"handle_type must be 'source' or 'target', got {handle_type!r}")
        return fire(self.callbacks.on_add_node_from_handle, node_id, handle_type, handle_id)

    # --- Edges ---

    def connect(self, request: ConnectionRequest) -> Union[Edge, ValidationRejected]:
        """Validate a connection and, if accepted, add it as one undoable step."""
        graph = self.history.present
        rejected = validate_connection(request, graph, self.validation)
        if rejected is not None:
            logger.warning(f"Connection {request.source} -> {request.target} rejected: {rejected.message}")
            fire(self.callbacks.on_validation_rejected, rejected)
            return rejected

        edge = Edge(
            id=make_edge_id(graph, request.source, request.target,
                            request.source_handle, request.target_handle),
            source=request.source,
            target=request.target,
            source_handle=request.source_handle,
            target_handle=request.target_handle,
        )
        self.history.mutate(lambda g: g.add_edge(edge), 'connect')
        self.commit()
        fire(self.callbacks.on_edge_created, request)
        return edge

    def delete_edge(self, edge_id: str) -> bool:
        if not self.history.present.has_edge(edge_id):
            logger.info(f"delete_edge: '{edge_id}' not found, ignoring")
            return False
        self.history.mutate(lambda graph: graph.remove_edge(edge_id), 'delete_edge')
        self.commit()
        return True

    def create_connected_node(self, source_node_id: str, node: NodeRecord,
                              source_handle: Optional[str] = None) -> Edge:
        """
        Add node plus an edge source -> node as a single undoable step.

        Raises:
            DuplicateIdError: node id taken; nothing is recorded
            NotFoundError: source node no longer exists; nothing is recorded
        """
        graph = self.history.present
        if not graph.has_node(source_node_id):
            raise NotFoundError('node', source_node_id)
        edge = Edge(
            id=make_edge_id(graph, source_node_id, node.id),
            source=source_node_id,
            target=node.id,
            source_handle=source_handle,
        )
        self.history.mutate(lambda g: g.add_node(node).add_edge(edge), 'create_connected_node')
        self.commit()
        return edge

    # --- History and layout ---

    def undo(self) -> bool:
        if not self.history.undo():
            return False
        self.commit()
        return True

    def redo(self) -> bool:
        if not self.history.redo():
            return False
        self.commit()
        return True

    def auto_arrange(self) -> bool:
        """Re-layout every node as a single undoable step."""
        if not self.history.present.nodes:
            return False
        sizing = self.config.sizing
        self.history.mutate(lambda graph: graph.with_nodes(arrange(graph, sizing)), 'auto_arrange')
        self.commit()
        return True

    # --- Intent routing ---

    def dispatch(self, intent: str, **params: Any) -> Any:
        """
        Execute a named intent, e.g. dispatch('delete_node', node_id='n1').

        Raises:
            ValueError: for an unknown intent
        """
        handlers = {
            'add_node': lambda: self.add_node(params['node']),
            'delete_node': lambda: self.delete_node(params['node_id']),
            'delete_edge': lambda: self.delete_edge(params['edge_id']),
            'edit_node': lambda: self.edit_node(params['node_id']),
            'duplicate_node': lambda: self.duplicate_node(params['node_id']),
            'request_add_node': lambda: self.request_add_node(params['position']),
            'move_node': lambda: self.move_node(params['node_id'], params['position']),
            'connect': lambda: self.connect(params['request']),
            'undo': self.undo,
            'redo': self.redo,
            'auto_arrange': self.auto_arrange,
        }
        handler = handlers.get(intent)
        if handler is None:
            raise ValueError(f"Unknown intent: {intent}")
        return handler()

    def _default_node(self, position: Position) -> NodeRecord:
        return make_node(
            self.config.default_node_label,
            node_type=self.config.default_node_type,
            position=position,
        )
