"""
Undo/redo history for the flowedit graph.

The manager owns the current WorkflowGraph plus two bounded stacks:

  past   - snapshots taken immediately before each recorded mutation
  future - states popped off by undo(), replayed by redo()

History is linear: any new recorded mutation clears the redo chain.

This module exposes:
- HistoryEntry: immutable snapshot (graph + action label)
- HistoryManager.snapshot(action) / mutate(fn, action) / mutate_without_history(fn)
- HistoryManager.replace(graph, action) / undo() / redo() / reset(graph)
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Optional, Tuple

from flowedit.constants import DEFAULT_MAX_HISTORY_SIZE
from flowedit.graph import Edge, NodeRecord, WorkflowGraph

logger = logging.getLogger(__name__)

GraphUpdate = Callable[[WorkflowGraph], WorkflowGraph]


@dataclass(frozen=True)
class HistoryEntry:
    """A graph state archived by the history manager. Never mutated."""
    graph: WorkflowGraph
    action: str = ''

    @property
    def nodes(self) -> Tuple[NodeRecord, ...]:
        return self.graph.nodes

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return self.graph.edges


class HistoryManager:
    """
    Wraps graph mutations in undo/redo stacks.

    Recorded mutations (mutate, replace) snapshot the state *before* applying the
    change, so undo() right after any of them restores the exact prior graph.
    Continuous gestures call snapshot() once at gesture start and then feed
    intermediate states through mutate_without_history().
    """

    def __init__(self, initial: Optional[WorkflowGraph] = None,
                 max_size: int = DEFAULT_MAX_HISTORY_SIZE):
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")
        self.max_size = max_size
        self._present = initial if initial is not None else WorkflowGraph()
        self._past: Deque[HistoryEntry] = deque(maxlen=max_size)
        self._future: Deque[HistoryEntry] = deque(maxlen=max_size)

    @property
    def present(self) -> WorkflowGraph:
        return self._present

    @property
    def past(self) -> Tuple[HistoryEntry, ...]:
        return tuple(self._past)

    @property
    def future(self) -> Tuple[HistoryEntry, ...]:
        return tuple(self._future)

    @property
    def can_undo(self) -> bool:
        return len(self._past) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._future) > 0

    def snapshot(self, action: str = '') -> None:
        """Archive the current state on the undo stack and drop the redo chain."""
        # deque(maxlen) evicts the oldest entry once the bound is exceeded
        self._past.append(HistoryEntry(self._present, action))
        self._future.clear()
        logger.debug(f"History snapshot '{action}' (past={len(self._past)})")

    def mutate(self, fn: GraphUpdate, action: str = '') -> WorkflowGraph:
        """
        Apply fn to the current graph as one undoable step.

        fn runs before anything is recorded: if it raises, neither the graph
        nor the stacks change.
        """
        updated = fn(self._present)
        self.snapshot(action)
        self._present = updated
        return updated

    def mutate_without_history(self, fn: GraphUpdate) -> WorkflowGraph:
        """Apply fn without recording it (e.g. intermediate drag positions)."""
        self._present = fn(self._present)
        return self._present

    def replace(self, graph: WorkflowGraph, action: str = '') -> WorkflowGraph:
        """Install a whole new graph as a single undoable step."""
        return self.mutate(lambda _current: graph, action)

    def undo(self) -> bool:
        if not self._past:
            return False
        previous = self._past.pop()
        self._future.append(HistoryEntry(self._present, previous.action))
        self._present = previous.graph
        logger.debug(f"Undo '{previous.action}' (past={len(self._past)}, future={len(self._future)})")
        return True

    def redo(self) -> bool:
        if not self._future:
            return False
        following = self._future.pop()
        self._past.append(HistoryEntry(self._present, following.action))
        self._present = following.graph
        logger.debug(f"Redo '{following.action}' (past={len(self._past)}, future={len(self._future)})")
        return True

    def reset(self, graph: Optional[WorkflowGraph] = None) -> None:
        """Replace the current graph and forget all history."""
        self._present = graph if graph is not None else WorkflowGraph()
        self._past.clear()
        self._future.clear()
