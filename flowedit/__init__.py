"""
flowedit - graph state engine for visual workflow editors.

Undoable node/edge editing, drag-to-connect resolution and deterministic
auto-arrange, independent of any rendering toolkit.
"""

__version__ = "0.1.0"

from flowedit.graph import (
    DuplicateIdError,
    Edge,
    GraphError,
    NodeRecord,
    NotFoundError,
    Position,
    WorkflowGraph,
    make_node,
)
from flowedit.history import HistoryEntry, HistoryManager
from flowedit.layout import LayoutSizing, arrange, assign_levels
from flowedit.config import EditorConfig
from flowedit.session import EditorSession, PositionChange, RemoveChange, SelectChange

__all__ = [
    'DuplicateIdError',
    'Edge',
    'GraphError',
    'NodeRecord',
    'NotFoundError',
    'Position',
    'WorkflowGraph',
    'make_node',
    'HistoryEntry',
    'HistoryManager',
    'LayoutSizing',
    'arrange',
    'assign_levels',
    'EditorConfig',
    'EditorSession',
    'PositionChange',
    'RemoveChange',
    'SelectChange',
]
