"""
Tests for EditorSession: drag batching, keyboard shortcuts and the host-facing
snapshot.
"""

import asyncio
from types import SimpleNamespace

import pytest

from flowedit.config import EditorConfig
from flowedit.edit import EditorCallbacks
from flowedit.graph import Position, WorkflowGraph
from flowedit.session import EditorSession, PositionChange, RemoveChange, SelectChange


WORKFLOW = {
    'nodes': [
        {'id': 'a', 'type': 'workflow', 'position': {'x': 0, 'y': 0}, 'data': {'label': 'A'}},
        {'id': 'b', 'type': 'workflow', 'position': {'x': 300, 'y': 0}, 'data': {'label': 'B'}},
    ],
    'edges': [{'id': 'e1', 'source': 'a', 'target': 'b'}],
}


NESTED = {
    'nodes': [
        {'id': 'a', 'type': 'workflow', 'position': {'x': 0, 'y': 0},
         'data': {'label': 'A', 'config': {'url': 'x'}, 'tags': ['http']}},
        {'id': 'b', 'type': 'workflow', 'position': {'x': 300, 'y': 0}, 'data': {'label': 'B'}},
    ],
    'edges': [{'id': 'e1', 'source': 'a', 'target': 'b'}],
}

@pytest.fixture
def changes():
    return []


@pytest.fixture
def session(changes):
    return EditorSession(WORKFLOW, callbacks=EditorCallbacks(on_change=changes.append))


def _drag(session, node_id, path):
    """Feed a full drag gesture: dragging frames along path, then release."""
    for x, y in path:
        session.apply_node_changes([PositionChange(node_id, Position(x, y), dragging=True)])
    x, y = path[-1]
    session.apply_node_changes([PositionChange(node_id, Position(x, y), dragging=False)])


class TestDragBatching:

    def test_drag_then_undo_restores_start(self, session):
        _drag(session, 'a', [(i * 5, i * 5) for i in range(1, 11)])

        assert session.graph.get_node('a').position == Position(50, 50)
        assert len(session.history.past) == 1

        assert session.undo() is True
        assert session.graph.get_node('a').position == Position(0, 0)
        assert not session.can_undo

    def test_on_change_fires_once_on_release(self, session, changes):
        session.apply_node_changes([PositionChange('a', Position(10, 10), dragging=True)])
        session.apply_node_changes([PositionChange('a', Position(20, 20), dragging=True)])
        assert changes == []

        session.apply_node_changes([PositionChange('a', Position(30, 30), dragging=False)])
        assert len(changes) == 1
        assert changes[0]['nodes'][0]['position'] == {'x': 30.0, 'y': 30.0}

    def test_multi_node_drag_is_one_entry(self, session, changes):
        session.apply_node_changes([
            PositionChange('a', Position(10, 0), dragging=True),
            PositionChange('b', Position(310, 0), dragging=True),
        ])
        session.apply_node_changes([PositionChange('a', Position(20, 0), dragging=False)])
        assert changes == []
        session.apply_node_changes([PositionChange('b', Position(320, 0), dragging=False)])

        assert len(changes) == 1
        assert len(session.history.past) == 1
        session.undo()
        assert session.graph.get_node('a').position == Position(0, 0)
        assert session.graph.get_node('b').position == Position(300, 0)

    def test_consecutive_drags_are_separate_entries(self, session):
        _drag(session, 'a', [(10, 10)])
        _drag(session, 'a', [(20, 20)])
        assert len(session.history.past) == 2
        session.undo()
        assert session.graph.get_node('a').position == Position(10, 10)

    def test_one_off_move_is_its_own_entry(self, session, changes):
        session.apply_node_changes([PositionChange('b', Position(5, 5))])
        assert session.graph.get_node('b').position == Position(5, 5)
        assert len(session.history.past) == 1
        assert len(changes) == 1

    def test_unknown_node_is_ignored(self, session):
        session.apply_node_changes([PositionChange('ghost', Position(1, 1), dragging=True)])
        assert not session.can_undo

    def test_undo_mid_drag_starts_fresh_gesture(self, session):
        _drag(session, 'b', [(1, 1)])
        session.apply_node_changes([PositionChange('a', Position(10, 10), dragging=True)])
        session.undo()
        # the next frame snapshots again instead of continuing the old gesture
        session.apply_node_changes([PositionChange('a', Position(20, 20), dragging=True)])
        assert len(session.history.past) == 2


class TestChangeEvents:

    def test_remove_change_deletes_node_with_edges(self, session):
        deleted = []
        session.callbacks.on_node_delete = deleted.append
        session.apply_node_changes([RemoveChange('a')])

        assert session.graph.node_ids() == ['b']
        assert session.graph.edges == ()
        assert deleted == ['a']

    def test_select_change_is_not_recorded(self, session, changes):
        session.apply_node_changes([SelectChange('a')])
        assert not session.can_undo
        assert changes == []

    def test_edge_remove_change(self, session):
        session.apply_edge_changes([RemoveChange('e1')])
        assert session.graph.edges == ()
        session.undo()
        assert [e.id for e in session.graph.edges] == ['e1']


class TestKeyboard:

    def test_ctrl_z_and_redo_variants(self, session):
        session.delete_edge('e1')

        assert session.handle_key('z', ctrl=True) is True
        assert session.graph.has_edge('e1')
        assert session.handle_key('z', meta=True, shift=True) is True
        assert not session.graph.has_edge('e1')
        session.undo()
        assert session.handle_key('y', ctrl=True) is True
        assert not session.graph.has_edge('e1')

    def test_plain_keys_do_nothing(self, session):
        session.delete_edge('e1')
        assert session.handle_key('z') is False
        assert session.handle_key('x', ctrl=True) is False
        assert not session.graph.has_edge('e1')

    def test_bound_keyboard_routes_keydown_only(self, session, monkeypatch):
        from nicegui import ui
        from flowedit.edit.handlers import bind_keyboard

        registered = {}

        def fake_keyboard(on_key=None, ignore=None):
            registered['on_key'] = on_key
            registered['ignore'] = ignore
            return 'keyboard'

        monkeypatch.setattr(ui, 'keyboard', fake_keyboard)
        assert bind_keyboard(session) == 'keyboard'
        assert 'input' in registered['ignore']
        on_key = registered['on_key']

        def key_event(name, keydown=True, repeat=False, ctrl=False, shift=False):
            return SimpleNamespace(
                action=SimpleNamespace(keydown=keydown, repeat=repeat),
                key=SimpleNamespace(name=name),
                modifiers=SimpleNamespace(ctrl=ctrl, meta=False, shift=shift),
            )

        session.delete_edge('e1')

        on_key(key_event('z', keydown=False, ctrl=True))
        on_key(key_event('z', repeat=True, ctrl=True))
        assert not session.graph.has_edge('e1')

        on_key(key_event('z', ctrl=True))
        assert session.graph.has_edge('e1')

        on_key(key_event('z', ctrl=True, shift=True))
        assert not session.graph.has_edge('e1')


class TestSnapshot:

    def test_get_graph_returns_plain_persistable_dicts(self):
        workflow = {
            'nodes': [{
                'id': 'a', 'type': 'workflow', 'position': {'x': 1, 'y': 2},
                'data': {'label': 'A', 'onDelete': print, 'hasInputConnection': False},
            }],
            'edges': [],
        }
        session = EditorSession(workflow)
        assert session.get_graph() == {
            'nodes': [{'id': 'a', 'type': 'workflow', 'position': {'x': 1.0, 'y': 2.0}, 'data': {'label': 'A'}}],
            'edges': [],
        }

    def test_views_carry_connection_status_and_route_back(self, session):
        views = session.views()
        assert [(v.id, v.has_input_connection, v.has_output_connection) for v in views] == [
            ('a', False, True),
            ('b', True, False),
        ]

        views[0].on_delete('a')
        assert session.graph.node_ids() == ['b']

    def test_live_graph_data_is_read_only(self):
        session = EditorSession(NESTED)
        session.delete_edge('e1')

        with pytest.raises(TypeError):
            session.graph.nodes[0].data['label'] = 'changed'
        with pytest.raises(TypeError):
            session.graph.nodes[0].data['config']['url'] = 'changed'

        session.undo()
        assert session.graph.nodes[0].data['label'] == 'A'
        assert session.graph.nodes[0].data['config']['url'] == 'x'

    def test_edits_to_snapshot_do_not_reach_history(self):
        session = EditorSession(NESTED)
        session.delete_edge('e1')

        snapshot = session.get_graph()
        snapshot['nodes'][0]['data']['config']['url'] = 'changed'
        snapshot['nodes'][0]['data']['tags'].append('changed')

        assert session.graph.nodes[0].data['config']['url'] == 'x'
        session.undo()
        restored = session.get_graph()['nodes'][0]['data']
        assert restored == {'label': 'A', 'config': {'url': 'x'}, 'tags': ['http']}

    def test_input_dict_is_copied(self):
        workflow = {
            'nodes': [{'id': 'a', 'type': 'workflow', 'data': {'label': 'A', 'config': {'url': 'x'}}}],
            'edges': [],
        }
        session = EditorSession(workflow)
        workflow['nodes'][0]['data']['config']['url'] = 'changed'
        assert session.graph.nodes[0].data['config']['url'] == 'x'

    def test_reset_drops_history_without_emitting(self, session, changes):
        session.delete_edge('e1')
        changes.clear()

        session.reset(WorkflowGraph())

        assert session.graph.nodes == ()
        assert not session.can_undo and not session.can_redo
        assert changes == []


def test_history_depth_from_config():
    session = EditorSession(WORKFLOW, config=EditorConfig(max_history_size=2))
    for x in range(5):
        session.apply_node_changes([PositionChange('a', Position(x + 1, 0))])
    assert len(session.history.past) == 2


def test_async_callback_is_scheduled():
    received = []

    async def on_change(payload):
        received.append(payload)

    async def scenario():
        session = EditorSession(WORKFLOW, callbacks=EditorCallbacks(on_change=on_change))
        session.delete_edge('e1')
        # the engine does not wait; the task runs on the next loop turn
        assert received == []
        await asyncio.sleep(0)
        return session

    session = asyncio.run(scenario())
    assert len(received) == 1
    assert received[0]['edges'] == []
    assert not session.graph.has_edge('e1')
