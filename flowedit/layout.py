"""
Auto-arrange layout for workflow graphs.

Positions are recomputed from topology alone: prior positions are ignored,
so arranging an already-arranged graph reproduces the same layout.

Nodes flow left to right by BFS level; within a level they stack top to
bottom in the order they appear in the node list.
"""

from collections import deque
from dataclasses import dataclass
from typing import Dict, Tuple

import networkx as nx

from flowedit.constants import HORIZONTAL_GAP, NODE_HEIGHT, NODE_WIDTH, VERTICAL_GAP
from flowedit.graph import NodeRecord, Position, WorkflowGraph


@dataclass(frozen=True)
class LayoutSizing:
    node_width: float = NODE_WIDTH
    node_height: float = NODE_HEIGHT
    horizontal_gap: float = HORIZONTAL_GAP
    vertical_gap: float = VERTICAL_GAP

    @property
    def column_step(self) -> float:
        return self.node_width + self.horizontal_gap

    @property
    def row_step(self) -> float:
        return self.node_height + self.vertical_gap


def to_networkx(graph: WorkflowGraph) -> nx.DiGraph:
    """
    Build a DiGraph over the workflow's node ids.

    Edges whose endpoints are not both present are skipped so that external,
    denormalized data cannot introduce phantom nodes.
    """
    G = nx.DiGraph()
    for node in graph.nodes:
        G.add_node(node.id)
    for edge in graph.edges:
        if edge.source in G and edge.target in G:
            G.add_edge(edge.source, edge.target, id=edge.id)
    return G


def assign_levels(graph: WorkflowGraph) -> Dict[str, int]:
    """
    Compute the layout level of every node.

    BFS runs from all roots (in-degree 0) at once. A node reached through several
    paths keeps the deepest level seen, but is only expanded the first time, so
    cycles terminate. Nodes never reached (isolated or cycle-only) get level 0.
    """
    G = to_networkx(graph)
    roots = [node.id for node in graph.nodes if G.in_degree(node.id) == 0]

    levels: Dict[str, int] = {}
    visited = set()
    queue = deque((root, 0) for root in roots)

    while queue:
        node_id, level = queue.popleft()
        levels[node_id] = max(levels.get(node_id, 0), level)
        if node_id in visited:
            continue
        visited.add(node_id)
        for child in G.successors(node_id):
            queue.append((child, levels[node_id] + 1))

    for node in graph.nodes:
        levels.setdefault(node.id, 0)
    return levels


def arrange(graph: WorkflowGraph, sizing: LayoutSizing = LayoutSizing()) -> Tuple[NodeRecord, ...]:
    """
    Return the graph's nodes with freshly computed positions.

    x = level * (node_width + horizontal_gap)
    y = index_within_level * (node_height + vertical_gap)
    """
    levels = assign_levels(graph)

    # next free row per level; node-list order decides rows within a level
    rows: Dict[int, int] = {}

    arranged = []
    for node in graph.nodes:
        level = levels[node.id]
        index = rows.get(level, 0)
        rows[level] = index + 1
        arranged.append(node.moved_to(Position(level * sizing.column_step, index * sizing.row_step)))
    return tuple(arranged)
