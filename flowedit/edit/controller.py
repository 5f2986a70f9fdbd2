"""
Connection Controller - state machine for drag-to-connect gestures.

Lifecycle:

  IDLE --start_drag--> DRAGGING --drop_on_node-->   IDLE  (edge requested)
                                --drop_on_canvas--> AWAITING_RESOLUTION
                                --abort_drag-->     IDLE
  AWAITING_RESOLUTION --resolve / cancel--> IDLE
  AWAITING_RESOLUTION --start_drag--> DRAGGING  (pending implicitly cancelled)

The controller never touches the graph. It only tracks gesture state and
hands back what should happen; the session performs the mutation.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from flowedit.edit.validation import ConnectionRequest
from flowedit.graph import Position

logger = logging.getLogger(__name__)


class ConnectionPhase(Enum):
    IDLE = 'idle'
    DRAGGING = 'dragging'
    AWAITING_RESOLUTION = 'awaiting_resolution'


class InvalidTransitionError(Exception):
    """Raised when a gesture event does not fit the current phase."""


@dataclass(frozen=True)
class PendingConnection:
    """A connection dropped on empty canvas, waiting for the caller to decide."""
    source_node_id: str
    position: Position
    source_handle: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'sourceNodeId': self.source_node_id,
            'sourceHandle': self.source_handle,
            'position': self.position.to_dict(),
        }


@dataclass(frozen=True)
class ConnectionState:
    """Immutable snapshot of current connection state."""
    phase: ConnectionPhase = ConnectionPhase.IDLE
    source_node_id: Optional[str] = None
    source_handle: Optional[str] = None
    pointer: Optional[Position] = None
    pending: Optional[PendingConnection] = None


class ConnectionController:
    """Tracks one in-progress connection gesture and at most one pending connection."""

    def __init__(self):
        self._state = ConnectionState()
        self._on_state_change: Optional[Callable[[ConnectionState], None]] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def phase(self) -> ConnectionPhase:
        return self._state.phase

    @property
    def pending(self) -> Optional[PendingConnection]:
        return self._state.pending

    def set_on_state_change(self, callback: Callable[[ConnectionState], None]):
        self._on_state_change = callback

    def start_drag(self, node_id: str, handle_id: Optional[str] = None) -> ConnectionState:
        if self._state.pending is not None:
            logger.info(f"Discarding pending connection from '{self._state.pending.source_node_id}' for a new drag")
        self._set(ConnectionState(
            phase=ConnectionPhase.DRAGGING,
            source_node_id=node_id,
            source_handle=handle_id,
        ))
        return self._state

    def move_pointer(self, x: float, y: float) -> ConnectionState:
        if self._state.phase is not ConnectionPhase.DRAGGING:
            return self._state
        self._set(ConnectionState(
            phase=ConnectionPhase.DRAGGING,
            source_node_id=self._state.source_node_id,
            source_handle=self._state.source_handle,
            pointer=Position(x, y),
        ))
        return self._state

    def drop_on_node(self, target_id: str, target_handle: Optional[str] = None) -> ConnectionRequest:
        self._require(ConnectionPhase.DRAGGING, 'drop_on_node')
        request = ConnectionRequest(
            source=self._state.source_node_id,
            target=target_id,
            source_handle=self._state.source_handle,
            target_handle=target_handle,
        )
        self._set(ConnectionState())
        return request

    def drop_on_canvas(self, position) -> PendingConnection:
        self._require(ConnectionPhase.DRAGGING, 'drop_on_canvas')
        pending = PendingConnection(
            source_node_id=self._state.source_node_id,
            position=Position.from_value(position),
            source_handle=self._state.source_handle,
        )
        self._set(ConnectionState(phase=ConnectionPhase.AWAITING_RESOLUTION, pending=pending))
        return pending

    def abort_drag(self) -> ConnectionState:
        if self._state.phase is ConnectionPhase.DRAGGING:
            self._set(ConnectionState())
        return self._state

    def resolve(self, expected: Optional[PendingConnection] = None) -> Optional[PendingConnection]:
        """
        Consume the pending connection and return to IDLE.

        If expected is given and is not the current pending connection (it was
        superseded by a newer gesture), nothing changes and None is returned.
        """
        pending = self._state.pending
        if pending is None:
            return None
        if expected is not None and expected is not pending:
            return None
        self._set(ConnectionState())
        return pending

    def cancel(self) -> bool:
        if self._state.pending is None:
            return False
        self._set(ConnectionState())
        return True

    def _require(self, phase: ConnectionPhase, event: str):
        if self._state.phase is not phase:
            raise InvalidTransitionError(f"{event} is not valid while {self._state.phase.value}")

    def _set(self, state: ConnectionState):
        self._state = state
        if self._on_state_change:
            self._on_state_change(self._state)
