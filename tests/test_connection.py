"""
Tests for drag-to-connect: the ConnectionController state machine on its own
and the pending-connection flow through an EditorSession.
"""

import pytest

from flowedit.edit import (
    ConnectionController,
    ConnectionPhase,
    EditorCallbacks,
    InvalidTransitionError,
)
from flowedit.edit.validation import ConnectionRequest
from flowedit.graph import DuplicateIdError, Edge, NodeRecord, Position, WorkflowGraph
from flowedit.session import EditorSession


@pytest.fixture
def controller():
    return ConnectionController()


@pytest.fixture
def graph():
    return WorkflowGraph(
        nodes=(
            NodeRecord(id='a', type='workflow', data={'label': 'A'}),
            NodeRecord(id='b', type='workflow', data={'label': 'B'}),
        ),
    )


class TestConnectionController:
    """Phase transitions without any graph involved."""

    def test_starts_idle(self, controller):
        assert controller.phase is ConnectionPhase.IDLE
        assert controller.pending is None

    def test_drop_on_node_returns_request_and_goes_idle(self, controller):
        controller.start_drag('a', 'out')
        assert controller.phase is ConnectionPhase.DRAGGING

        request = controller.drop_on_node('b', 'in')

        assert request == ConnectionRequest('a', 'b', 'out', 'in')
        assert controller.phase is ConnectionPhase.IDLE

    def test_drop_on_canvas_records_pending(self, controller):
        controller.start_drag('a', 'out')
        pending = controller.drop_on_canvas({'x': 300, 'y': 40})

        assert controller.phase is ConnectionPhase.AWAITING_RESOLUTION
        assert controller.pending is pending
        assert pending.source_node_id == 'a'
        assert pending.source_handle == 'out'
        assert pending.position == Position(300, 40)

    def test_new_drag_discards_pending(self, controller):
        controller.start_drag('a')
        controller.drop_on_canvas((1, 1))
        controller.start_drag('b')

        assert controller.phase is ConnectionPhase.DRAGGING
        assert controller.pending is None

    def test_resolve_ignores_superseded_pending(self, controller):
        controller.start_drag('a')
        first = controller.drop_on_canvas((1, 1))
        controller.start_drag('b')
        second = controller.drop_on_canvas((2, 2))

        assert controller.resolve(expected=first) is None
        assert controller.pending is second
        assert controller.resolve(expected=second) is second
        assert controller.phase is ConnectionPhase.IDLE

    def test_cancel(self, controller):
        assert controller.cancel() is False
        controller.start_drag('a')
        controller.drop_on_canvas((1, 1))
        assert controller.cancel() is True
        assert controller.pending is None
        assert controller.phase is ConnectionPhase.IDLE

    def test_abort_drag(self, controller):
        controller.start_drag('a')
        controller.move_pointer(10, 20)
        assert controller.state.pointer == Position(10, 20)
        controller.abort_drag()
        assert controller.phase is ConnectionPhase.IDLE

    def test_drop_without_drag_is_invalid(self, controller):
        with pytest.raises(InvalidTransitionError):
            controller.drop_on_node('b')
        with pytest.raises(InvalidTransitionError):
            controller.drop_on_canvas((0, 0))

    def test_state_change_callback(self, controller):
        seen = []
        controller.set_on_state_change(lambda state: seen.append(state.phase))
        controller.start_drag('a')
        controller.drop_on_canvas((0, 0))
        controller.cancel()
        assert seen == [
            ConnectionPhase.DRAGGING,
            ConnectionPhase.AWAITING_RESOLUTION,
            ConnectionPhase.IDLE,
        ]


class TestPendingConnectionFlow:
    """Drop-on-canvas resolution through the session."""

    @pytest.fixture
    def dropped(self):
        return []

    @pytest.fixture
    def session(self, graph, dropped):
        return EditorSession(graph, callbacks=EditorCallbacks(on_connection_dropped=dropped.append))

    def test_drop_notifies_handler_without_mutating(self, session, dropped):
        session.connect_start('a', 'out')
        pending = session.connect_end_on_canvas((400, 100))

        assert dropped == [pending]
        assert session.get_pending_connection() is pending
        assert len(session.graph.nodes) == 2
        assert not session.can_undo

    def test_two_drops_keep_only_second(self, session):
        session.connect_start('a')
        session.connect_end_on_canvas((1, 1))
        session.connect_start('b')
        second = session.connect_end_on_canvas((2, 2))

        assert session.get_pending_connection() is second
        assert session.get_pending_connection().source_node_id == 'b'

    def test_complete_creates_node_and_edge_as_one_undo_step(self, session):
        session.connect_start('a', 'out')
        session.connect_end_on_canvas((400, 100))

        edge = session.complete_pending_connection('c', 'workflow', {'label': 'C'})

        assert edge == Edge('ea-c', 'a', 'c', source_handle='out')
        node = session.graph.get_node('c')
        assert node.position == Position(400, 100)
        assert node.data == {'label': 'C'}
        assert session.get_pending_connection() is None
        assert len(session.history.past) == 1

        session.undo()
        assert not session.graph.has_node('c')
        assert session.graph.edges == ()

    def test_complete_without_pending_is_noop(self, session):
        assert session.complete_pending_connection('c', 'workflow', {}) is None
        assert len(session.graph.nodes) == 2

    def test_complete_stale_pending_is_noop(self, session):
        session.connect_start('a')
        first = session.connect_end_on_canvas((1, 1))
        session.connect_start('b')
        session.connect_end_on_canvas((2, 2))

        assert session.complete_pending_connection('c', 'workflow', {}, expected=first) is None
        assert not session.graph.has_node('c')
        assert session.get_pending_connection() is not None

    def test_complete_with_taken_id_leaves_everything(self, session):
        session.connect_start('a')
        pending = session.connect_end_on_canvas((1, 1))

        with pytest.raises(DuplicateIdError):
            session.complete_pending_connection('b', 'workflow', {})

        assert session.get_pending_connection() is pending
        assert len(session.graph.nodes) == 2
        assert not session.can_undo

    def test_cancel_leaves_graph(self, session):
        session.connect_start('a')
        session.connect_end_on_canvas((1, 1))
        assert session.cancel_pending_connection() is True
        assert session.get_pending_connection() is None
        assert len(session.graph.nodes) == 2
        assert session.graph.edges == ()

    def test_source_deleted_before_completion(self, session):
        session.connect_start('a')
        session.connect_end_on_canvas((1, 1))
        session.delete_node('a')

        assert session.complete_pending_connection('c', 'workflow', {}) is None
        assert not session.graph.has_node('c')
        assert session.graph.dangling_edges() == []


def test_drop_without_handler_creates_default_node(graph):
    changes = []
    session = EditorSession(graph, callbacks=EditorCallbacks(on_change=changes.append))

    session.connect_start('a', 'out')
    assert session.connect_end_on_canvas((200, 50)) is None

    assert session.get_pending_connection() is None
    assert len(session.graph.nodes) == 3
    new_node = session.graph.nodes[-1]
    assert new_node.type == 'workflow'
    assert new_node.label == 'New Node'
    assert new_node.position == Position(200, 50)
    (edge,) = session.graph.edges
    assert (edge.source, edge.target, edge.source_handle) == ('a', new_node.id, 'out')
    assert len(changes) == 1

    session.undo()
    assert len(session.graph.nodes) == 2
    assert session.graph.edges == ()


def test_drop_on_node_creates_edge(graph):
    created = []
    session = EditorSession(graph, callbacks=EditorCallbacks(on_edge_created=created.append))

    session.connect_start('a', 'out')
    edge = session.connect_end_on_node('b', 'in')

    assert isinstance(edge, Edge)
    assert session.graph.edges == (edge,)
    assert created == [ConnectionRequest('a', 'b', 'out', 'in')]


def test_release_without_drag_is_ignored(graph):
    session = EditorSession(graph)
    assert session.connect_end_on_node('b') is None
    assert session.connect_end_on_canvas((0, 0)) is None
    assert session.graph.edges == ()
