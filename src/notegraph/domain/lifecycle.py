"""Node status lifecycle.

Archived is terminal: an archived node has no outgoing transitions, which is
why archiving twice is rejected.
"""

from __future__ import annotations

from notegraph.domain.types import NodeStatus

NODE_TRANSITIONS: dict[str, list[str]] = {
    NodeStatus.DRAFT: [NodeStatus.PUBLISHED, NodeStatus.ARCHIVED],
    NodeStatus.PUBLISHED: [NodeStatus.DRAFT, NodeStatus.ARCHIVED],
    NodeStatus.ARCHIVED: [],
}


def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]] = NODE_TRANSITIONS,
) -> bool:
    """Check if transitioning from *current* to *target* is allowed."""
    allowed = transitions.get(current, [])
    return target in allowed
