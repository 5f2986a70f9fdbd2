"""
Edit Handlers - keyboard shortcuts for the editor host.

Modifier state is passed in explicitly by the host; nothing here tracks
global key state.

  Ctrl/Cmd+Z        -> undo
  Ctrl/Cmd+Shift+Z  -> redo
  Ctrl/Cmd+Y        -> redo
"""

from typing import Optional

UNDO = 'undo'
REDO = 'redo'


def shortcut_for(key: str, ctrl: bool = False, meta: bool = False, shift: bool = False) -> Optional[str]:
    """Map a key press to 'undo', 'redo' or None."""
    if not (ctrl or meta):
        return None
    key = str(key).lower()
    if key == 'z':
        return REDO if shift else UNDO
    if key == 'y':
        return REDO
    return None


def bind_keyboard(session):
    """
    Register a NiceGUI keyboard listener that routes shortcuts to the session.

    Must be called inside a NiceGUI page context. Returns the ui.keyboard element.
    """
    from nicegui import ui

    def handle_keyboard(e):
        if not e.action.keydown or e.action.repeat:
            return
        session.handle_key(
            e.key.name,
            ctrl=e.modifiers.ctrl,
            meta=e.modifiers.meta,
            shift=e.modifiers.shift,
        )

    return ui.keyboard(on_key=handle_keyboard, ignore=['input', 'select', 'button', 'textarea'])
