"""Graph traversal primitives shared by the aggregate and analytics service.

All algorithms work on *links*: ``(source_id, target_id, bidirectional)``
triples. A link is always traversable ``source -> target`` and additionally
``target -> source`` when bidirectional.

Ordering: neighbors are visited in link order and start nodes in node
order. Callers pass insertion-ordered sequences, so the first path found by
BFS and the membership order of each DFS cluster are deterministic.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

type Link = tuple[str, str, bool]
type Adjacency = dict[str, list[str]]


def build_adjacency(links: Iterable[Link]) -> Adjacency:
    """Map each node to its traversable neighbors, in link order."""
    adjacency: Adjacency = {}
    for source, target, bidirectional in links:
        adjacency.setdefault(source, []).append(target)
        if bidirectional:
            adjacency.setdefault(target, []).append(source)
    return adjacency


def shortest_path(adjacency: Adjacency, start: str, end: str) -> list[str] | None:
    """Breadth-first search from *start* to *end*.

    The path is rebuilt from parent pointers the moment *end* is first
    discovered, so it is shortest in hop count. Returns ``[start]`` when
    ``start == end`` and ``None`` when *end* is unreachable.
    """
    if start == end:
        return [start]

    parent: dict[str, str] = {}
    visited: set[str] = {start}
    queue: deque[str] = deque([start])

    while queue:
        current = queue.popleft()
        for nxt in adjacency.get(current, ()):
            if nxt in visited:
                continue
            visited.add(nxt)
            parent[nxt] = current
            if nxt == end:
                return _unwind(parent, start, end)
            queue.append(nxt)
    return None


def _unwind(parent: dict[str, str], start: str, end: str) -> list[str]:
    path = [end]
    while path[-1] != start:
        path.append(parent[path[-1]])
    path.reverse()
    return path


def clusters(node_ids: Iterable[str], adjacency: Adjacency) -> list[list[str]]:
    """Group nodes by depth-first reachability.

    Each unvisited node (in *node_ids* order) seeds a new cluster holding
    every not-yet-visited node reachable from it, in preorder. A node with
    no links is a singleton cluster.
    """
    visited: set[str] = set()
    result: list[list[str]] = []
    for node_id in node_ids:
        if node_id in visited:
            continue
        result.append(_preorder(node_id, adjacency, visited))
    return result


def _preorder(start: str, adjacency: Adjacency, visited: set[str]) -> list[str]:
    # Explicit stack of neighbor iterators; same order as the recursive walk.
    visited.add(start)
    cluster = [start]
    stack = [iter(adjacency.get(start, ()))]
    while stack:
        for nxt in stack[-1]:
            if nxt not in visited:
                visited.add(nxt)
                cluster.append(nxt)
                stack.append(iter(adjacency.get(nxt, ())))
                break
        else:
            stack.pop()
    return cluster


def within_depth(adjacency: Adjacency, start: str, max_depth: int) -> list[str]:
    """Nodes reachable from *start* in at most *max_depth* hops, BFS order.

    The start node itself is excluded; ``max_depth <= 0`` yields ``[]``.
    """
    if max_depth <= 0:
        return []

    depth: dict[str, int] = {start: 0}
    queue: deque[str] = deque([start])
    found: list[str] = []

    while queue:
        current = queue.popleft()
        if depth[current] >= max_depth:
            continue
        for nxt in adjacency.get(current, ()):
            if nxt in depth:
                continue
            depth[nxt] = depth[current] + 1
            queue.append(nxt)
            found.append(nxt)
    return found
