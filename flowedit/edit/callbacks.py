"""
Host callback surface.

Callbacks are notifications: the engine calls them after it has finished its
own work and never waits for them. An async callback is scheduled on the
running event loop; a failing callback is logged and otherwise ignored so the
graph state it was told about stays authoritative.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class EditorCallbacks:
    on_change: Optional[Callable[[dict], Any]] = None
    on_node_delete: Optional[Callable[[str], Any]] = None
    on_node_edit: Optional[Callable[[str], Any]] = None
    on_node_duplicate: Optional[Callable[[str], Any]] = None
    on_add_node_request: Optional[Callable[[dict], Any]] = None
    on_add_node_from_handle: Optional[Callable[[str, str, Optional[str]], Any]] = None
    on_connection_dropped: Optional[Callable[[Any], Any]] = None
    on_edge_created: Optional[Callable[[Any], Any]] = None
    on_validation_rejected: Optional[Callable[[Any], Any]] = None


def fire(callback: Optional[Callable[..., Any]], *args: Any) -> bool:
    """
    Invoke a host callback fire-and-forget.

    Returns True if a callback was present and called without raising.
    """
    if callback is None:
        return False
    try:
        result = callback(*args)
    except Exception as e:
        logger.error(f"Callback {getattr(callback, '__name__', callback)!r} failed: {e}", exc_info=True)
        return False

    if inspect.isawaitable(result):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop for async callback {getattr(callback, '__name__', callback)!r}")
            if inspect.iscoroutine(result):
                result.close()
            return True
        loop.create_task(_log_failure(result))
    return True


async def _log_failure(awaitable) -> None:
    try:
        await awaitable
    except Exception as e:
        logger.error(f"Async callback failed: {e}", exc_info=True)
