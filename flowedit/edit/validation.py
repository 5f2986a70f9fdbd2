"""
Edge-creation policy.

The graph model accepts any edge with a fresh id. Whether a user-initiated
connection should become an edge is decided here, before the model is touched.
A rejection is a value, not an exception: the graph stays valid and the UI is
told with a warning.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from flowedit.graph import WorkflowGraph

MISSING_NODE = 'missing_node'
SELF_CONNECTION = 'self_connection'
DUPLICATE_EDGE = 'duplicate_edge'
CUSTOM_VALIDATOR = 'custom_validator'


@dataclass(frozen=True)
class ConnectionRequest:
    """A prospective edge produced by a completed drag between two handles."""
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'source': self.source,
            'target': self.target,
            'sourceHandle': self.source_handle,
            'targetHandle': self.target_handle,
        }


@dataclass(frozen=True)
class ValidationRejected:
    """Returned instead of an edge when the policy vetoes a connection."""
    reason: str
    message: str
    request: ConnectionRequest


@dataclass(frozen=True)
class EdgeValidation:
    """
    Connection policy bundle.

    custom_validator receives the request and the full current graph and
    returns False to veto the connection.
    """
    allow_self_connections: bool = False
    allow_duplicates: bool = False
    custom_validator: Optional[Callable[[ConnectionRequest, WorkflowGraph], bool]] = None


def validate_connection(request: ConnectionRequest, graph: WorkflowGraph,
                        policy: Optional[EdgeValidation] = None) -> Optional[ValidationRejected]:
    """Return None if the connection is acceptable, else the rejection."""
    policy = policy or EdgeValidation()

    for endpoint in (request.source, request.target):
        if not graph.has_node(endpoint):
            return ValidationRejected(MISSING_NODE, f"Node '{endpoint}' does not exist", request)

    if not policy.allow_self_connections and request.source == request.target:
        return ValidationRejected(SELF_CONNECTION, 'Self-connections are not allowed', request)

    if not policy.allow_duplicates and graph.find_edge(
            request.source, request.target, request.source_handle, request.target_handle):
        return ValidationRejected(DUPLICATE_EDGE, 'Duplicate edge already exists', request)

    if policy.custom_validator and not policy.custom_validator(request, graph):
        return ValidationRejected(CUSTOM_VALIDATOR, 'Connection rejected by custom validator', request)

    return None
