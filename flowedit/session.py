"""
Editor session - the host-facing surface of the flowedit engine.

One session owns one workflow graph, its undo history and the in-progress
connection gesture. The rendering layer feeds it input events (node/edge
change lists, connection drags, key presses) and reads snapshots back through
get_graph() and views().

Typical host wiring:

    session = EditorSession(initial_workflow, callbacks=EditorCallbacks(
        on_change=save_draft,
        on_connection_dropped=open_node_picker,
    ))
    ...
    # picker closed with a choice
    session.complete_pending_connection('node_http_2', 'workflow', {'label': 'HTTP'})
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from flowedit.config import EditorConfig
from flowedit.edit.actions import EditActions
from flowedit.edit.callbacks import EditorCallbacks, fire
from flowedit.edit.controller import ConnectionController, ConnectionPhase, PendingConnection
from flowedit.edit.handlers import REDO, UNDO, shortcut_for
from flowedit.edit.validation import EdgeValidation, ValidationRejected
from flowedit.graph import DuplicateIdError, Edge, NodeRecord, NotFoundError, Position, WorkflowGraph, make_node
from flowedit.history import HistoryManager
from flowedit.view import NodeView, decorate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionChange:
    """
    A node moved.

    dragging=True marks an in-progress drag frame, dragging=False the final
    frame of a drag, None a one-off move (keyboard nudge, programmatic).
    """
    id: str
    position: Optional[Position] = None
    dragging: Optional[bool] = None


@dataclass(frozen=True)
class RemoveChange:
    id: str


@dataclass(frozen=True)
class SelectChange:
    id: str
    selected: bool = True


Change = Union[PositionChange, RemoveChange, SelectChange]


class EditorSession:
    """Graph state engine behind one editor canvas."""

    def __init__(self, initial: Union[WorkflowGraph, Dict[str, Any], None] = None,
                 callbacks: Optional[EditorCallbacks] = None,
                 validation: Optional[EdgeValidation] = None,
                 config: Optional[EditorConfig] = None):
        self.config = config or EditorConfig()
        self.callbacks = callbacks or EditorCallbacks()
        self.history = HistoryManager(_as_graph(initial), max_size=self.config.max_history_size)
        self.actions = EditActions(self.history, self.callbacks, validation, self.config)
        self.connections = ConnectionController()
        self._dragging: Set[str] = set()

    # --- Reading state ---

    @property
    def graph(self) -> WorkflowGraph:
        return self.history.present

    def get_graph(self) -> Dict[str, Any]:
        """Externalizable snapshot: plain dicts, persistable node data only."""
        return self.history.present.to_dict()

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def views(self) -> List[NodeView]:
        """Decorated nodes for the current render. Node actions route back into this session."""
        return decorate(self.graph, EditorCallbacks(
            on_node_delete=self.delete_node,
            on_node_edit=self.edit_node,
            on_node_duplicate=self.duplicate_node,
            on_add_node_from_handle=self.add_node_from_handle,
        ))

    # --- History ---

    def undo(self) -> bool:
        self._dragging.clear()
        return self.actions.undo()

    def redo(self) -> bool:
        self._dragging.clear()
        return self.actions.redo()

    def handle_key(self, key: str, ctrl: bool = False, meta: bool = False, shift: bool = False) -> bool:
        """Apply an undo/redo shortcut. Returns True if the key did something."""
        intent = shortcut_for(key, ctrl=ctrl, meta=meta, shift=shift)
        if intent == UNDO:
            return self.undo()
        if intent == REDO:
            return self.redo()
        return False

    def reset(self, workflow: Union[WorkflowGraph, Dict[str, Any], None] = None) -> None:
        """Load a new workflow, dropping history and any connection in progress."""
        self.history.reset(_as_graph(workflow))
        self.connections.abort_drag()
        self.connections.cancel()
        self._dragging.clear()

    # --- Discrete actions ---

    def auto_arrange(self) -> bool:
        return self.actions.auto_arrange()

    def add_node(self, node: NodeRecord) -> NodeRecord:
        return self.actions.add_node(node)

    def insert(self, nodes: Iterable[NodeRecord], edges: Iterable[Edge] = ()) -> None:
        self.actions.insert(nodes, edges)

    def delete_node(self, node_id: str) -> bool:
        self._dragging.discard(node_id)
        return self.actions.delete_node(node_id)

    def delete_edge(self, edge_id: str) -> bool:
        return self.actions.delete_edge(edge_id)

    def edit_node(self, node_id: str) -> bool:
        return self.actions.edit_node(node_id)

    def duplicate_node(self, node_id: str) -> bool:
        return self.actions.duplicate_node(node_id)

    def request_add_node(self, position: Any) -> Optional[NodeRecord]:
        return self.actions.request_add_node(position)

    def add_node_from_handle(self, node_id: str, handle_type: str, handle_id: Optional[str] = None) -> bool:
        return self.actions.add_node_from_handle(node_id, handle_type, handle_id)

    # --- Canvas change events ---

    def apply_node_changes(self, changes: Iterable[Change]) -> None:
        """
        Apply a batch of node change events from the canvas.

        The first dragging=True frame of a gesture takes the only snapshot;
        later frames are applied without history and on_change fires once
        the last dragged node is released.
        """
        for change in changes:
            if isinstance(change, PositionChange):
                self._apply_position_change(change)
            elif isinstance(change, RemoveChange):
                self.delete_node(change.id)

    def apply_edge_changes(self, changes: Iterable[Change]) -> None:
        for change in changes:
            if isinstance(change, RemoveChange):
                self.delete_edge(change.id)

    def _apply_position_change(self, change: PositionChange):
        if not self.graph.has_node(change.id):
            logger.debug(f"Position change for unknown node '{change.id}' ignored")
            return

        if change.dragging is None:
            if change.position is not None:
                self.actions.move_node(change.id, change.position)
            return

        if change.dragging:
            if change.id not in self._dragging:
                if not self._dragging:
                    self.history.snapshot('drag')
                self._dragging.add(change.id)
            self._move_without_history(change)
            return

        # Final frame of a drag
        if change.id not in self._dragging:
            if change.position is not None:
                self.actions.move_node(change.id, change.position)
            return
        self._move_without_history(change)
        self._dragging.discard(change.id)
        if not self._dragging:
            self.actions.commit()

    def _move_without_history(self, change: PositionChange):
        if change.position is None:
            return
        self.history.mutate_without_history(
            lambda graph: graph.update_node_position(change.id, change.position)
        )

    # --- Connection gestures ---

    def connect_start(self, node_id: str, handle_id: Optional[str] = None) -> None:
        self.connections.start_drag(node_id, handle_id)

    def connect_move(self, x: float, y: float) -> None:
        self.connections.move_pointer(x, y)

    def connect_abort(self) -> None:
        self.connections.abort_drag()

    def connect_end_on_node(self, target_id: str,
                            target_handle: Optional[str] = None) -> Union[Edge, ValidationRejected, None]:
        """Pointer released over a node handle: validate and create the edge."""
        if self.connections.phase is not ConnectionPhase.DRAGGING:
            logger.warning("Connection released on a node with no drag in progress")
            return None
        request = self.connections.drop_on_node(target_id, target_handle)
        return self.actions.connect(request)

    def connect_end_on_canvas(self, position: Any) -> Optional[PendingConnection]:
        """
        Pointer released over empty canvas.

        With an on_connection_dropped handler the connection waits for
        complete_pending_connection() / cancel_pending_connection(). Without
        one, a default node plus edge is created right away.
        """
        if self.connections.phase is not ConnectionPhase.DRAGGING:
            logger.warning("Connection released on the canvas with no drag in progress")
            return None
        pending = self.connections.drop_on_canvas(position)

        if self.callbacks.on_connection_dropped is not None:
            fire(self.callbacks.on_connection_dropped, pending)
            return pending

        self.connections.resolve(pending)
        node = make_node(
            self.config.default_node_label,
            node_type=self.config.default_node_type,
            position=pending.position,
        )
        try:
            self.actions.create_connected_node(pending.source_node_id, node, pending.source_handle)
        except NotFoundError as e:
            logger.warning(f"Dropped connection discarded: {e}")
        return None

    def get_pending_connection(self) -> Optional[PendingConnection]:
        return self.connections.pending

    def cancel_pending_connection(self) -> bool:
        return self.connections.cancel()

    def complete_pending_connection(self, node_id: str, node_type: str,
                                    data: Optional[Dict[str, Any]] = None,
                                    expected: Optional[PendingConnection] = None) -> Optional[Edge]:
        """
        Resolve the pending connection into a new node and one edge to it.

        Both are recorded as a single history entry. Pass expected (the object
        handed to on_connection_dropped) to ignore a stale completion after a
        newer gesture replaced it.

        Raises:
            DuplicateIdError: node_id is taken; graph, history and the pending
                connection are left as they were
        """
        pending = self.connections.pending
        if pending is None:
            logger.warning("No pending connection to complete")
            return None
        if expected is not None and expected is not pending:
            logger.warning(f"Pending connection from '{expected.source_node_id}' was superseded; ignoring")
            return None
        if self.graph.has_node(node_id):
            raise DuplicateIdError('node', node_id)

        self.connections.resolve(pending)
        node = NodeRecord(id=node_id, type=node_type, position=pending.position, data=data or {})
        try:
            return self.actions.create_connected_node(pending.source_node_id, node, pending.source_handle)
        except NotFoundError as e:
            logger.warning(f"Pending connection discarded: {e}")
            return None


def _as_graph(value: Union[WorkflowGraph, Dict[str, Any], None]) -> WorkflowGraph:
    if isinstance(value, WorkflowGraph):
        return value
    return WorkflowGraph.from_dict(value)
