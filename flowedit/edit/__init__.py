"""
Editing layer for the flowedit graph.

This package turns user input into graph mutations:
- ConnectionController: drag-to-connect state machine
- EditActions: history-wrapped execution of discrete intents
- EdgeValidation: policy applied before an edge is created
- EditorCallbacks: host notification surface
- handlers: keyboard shortcut mapping and NiceGUI binding

Usage:
    from flowedit.edit import EditActions, ConnectionController
    from flowedit.edit.handlers import bind_keyboard
"""

from flowedit.edit.callbacks import EditorCallbacks, fire
from flowedit.edit.controller import (
    ConnectionController,
    ConnectionPhase,
    ConnectionState,
    InvalidTransitionError,
    PendingConnection,
)
from flowedit.edit.validation import (
    ConnectionRequest,
    EdgeValidation,
    ValidationRejected,
    validate_connection,
)
from flowedit.edit.actions import EditActions
from flowedit.edit.handlers import shortcut_for, bind_keyboard

__all__ = [
    'EditorCallbacks',
    'fire',
    'ConnectionController',
    'ConnectionPhase',
    'ConnectionState',
    'InvalidTransitionError',
    'PendingConnection',
    'ConnectionRequest',
    'EdgeValidation',
    'ValidationRejected',
    'validate_connection',
    'EditActions',
    'shortcut_for',
    'bind_keyboard',
]
