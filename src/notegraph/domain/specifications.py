"""Composable business-rule predicates over edges and nodes.

A :class:`Specification` answers one yes/no question about a candidate.
Specifications combine with ``&``, ``|`` and ``~`` (or ``and_``, ``or_``,
``not_``); ``and``/``or`` short-circuit left to right. Every specification,
composites included, is unsatisfied by ``None``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from notegraph.domain.edge import Edge
from notegraph.domain.node import Node
from notegraph.domain.types import ContentFormat, EdgeType, NodeStatus

type MetadataValidator = Callable[[Mapping[str, Any]], bool]


class Specification[T]:
    """Base predicate. Subclasses implement :meth:`_evaluate`."""

    def is_satisfied_by(self, candidate: T | None) -> bool:
        if candidate is None:
            return False
        return self._evaluate(candidate)

    def _evaluate(self, candidate: T) -> bool:
        raise NotImplementedError

    def and_(self, other: Specification[T]) -> Specification[T]:
        return AndSpecification(self, other)

    def or_(self, other: Specification[T]) -> Specification[T]:
        return OrSpecification(self, other)

    def not_(self) -> Specification[T]:
        return NotSpecification(self)

    def __and__(self, other: Specification[T]) -> Specification[T]:
        return self.and_(other)

    def __or__(self, other: Specification[T]) -> Specification[T]:
        return self.or_(other)

    def __invert__(self) -> Specification[T]:
        return self.not_()


class PredicateSpecification[T](Specification[T]):
    """Wraps a plain callable."""

    def __init__(self, predicate: Callable[[T], bool]) -> None:
        self._predicate = predicate

    def _evaluate(self, candidate: T) -> bool:
        return self._predicate(candidate)


class AndSpecification[T](Specification[T]):
    def __init__(self, left: Specification[T], right: Specification[T]) -> None:
        self.left = left
        self.right = right

    def _evaluate(self, candidate: T) -> bool:
        return self.left.is_satisfied_by(candidate) and self.right.is_satisfied_by(candidate)


class OrSpecification[T](Specification[T]):
    def __init__(self, left: Specification[T], right: Specification[T]) -> None:
        self.left = left
        self.right = right

    def _evaluate(self, candidate: T) -> bool:
        return self.left.is_satisfied_by(candidate) or self.right.is_satisfied_by(candidate)


class NotSpecification[T](Specification[T]):
    def __init__(self, spec: Specification[T]) -> None:
        self.spec = spec

    def _evaluate(self, candidate: T) -> bool:
        return not self.spec.is_satisfied_by(candidate)

    def not_(self) -> Specification[T]:
        # Double negation unwraps.
        return self.spec


def _has_required_keys(
    metadata: Mapping[str, Any],
    required_keys: Iterable[str],
    validator: MetadataValidator | None,
) -> bool:
    if any(key not in metadata for key in required_keys):
        return False
    if validator is not None:
        return validator(metadata)
    return True


# ---------------------------------------------------------------------------
# Edge specifications
# ---------------------------------------------------------------------------


class EdgeWeightSpec(Specification[Edge]):
    def __init__(self, min_weight: float, max_weight: float) -> None:
        self.min_weight = min_weight
        self.max_weight = max_weight

    def _evaluate(self, candidate: Edge) -> bool:
        return self.min_weight <= candidate.weight <= self.max_weight


class EdgeTypeSpec(Specification[Edge]):
    def __init__(self, *allowed: str) -> None:
        self.allowed = frozenset(allowed)

    def _evaluate(self, candidate: Edge) -> bool:
        return candidate.edge_type in self.allowed


class EdgeNotSelfLoopSpec(Specification[Edge]):
    def _evaluate(self, candidate: Edge) -> bool:
        return not candidate.is_self_loop


class EdgeBidirectionalSpec(Specification[Edge]):
    def __init__(self, must_be_bidirectional: bool) -> None:
        self.must_be_bidirectional = must_be_bidirectional

    def _evaluate(self, candidate: Edge) -> bool:
        return candidate.bidirectional == self.must_be_bidirectional


class EdgeConnectsNodesSpec(Specification[Edge]):
    """Satisfied when the edge touches any of the given nodes."""

    def __init__(self, *node_ids: str) -> None:
        self.node_ids = frozenset(node_ids)

    def _evaluate(self, candidate: Edge) -> bool:
        return candidate.source_id in self.node_ids or candidate.target_id in self.node_ids


class EdgeMetadataSpec(Specification[Edge]):
    def __init__(
        self,
        required_keys: Iterable[str] = (),
        validator: MetadataValidator | None = None,
    ) -> None:
        self.required_keys = tuple(required_keys)
        self.validator = validator

    def _evaluate(self, candidate: Edge) -> bool:
        return _has_required_keys(candidate.metadata, self.required_keys, self.validator)


class UniqueEdgeSpec(Specification[Edge]):
    """No other edge covers the same pair.

    An existing edge collides when it has the same ``source -> target``, or
    when it is bidirectional and runs ``target -> source``. The candidate is
    never compared with itself (matched by ID).
    """

    def __init__(self, existing: Iterable[Edge]) -> None:
        self.existing = list(existing)

    def _evaluate(self, candidate: Edge) -> bool:
        for edge in self.existing:
            if edge.id == candidate.id:
                continue
            if edge.source_id == candidate.source_id and edge.target_id == candidate.target_id:
                return False
            if (
                edge.bidirectional
                and edge.source_id == candidate.target_id
                and edge.target_id == candidate.source_id
            ):
                return False
        return True


def valid_edge_spec() -> Specification[Edge]:
    return EdgeWeightSpec(0.0, 1.0) & EdgeNotSelfLoopSpec() & EdgeTypeSpec(*EdgeType)


def hierarchical_edge_spec() -> Specification[Edge]:
    return EdgeTypeSpec(EdgeType.HIERARCHICAL) & EdgeBidirectionalSpec(False)


def strong_connection_spec() -> Specification[Edge]:
    return EdgeTypeSpec(EdgeType.STRONG) & EdgeWeightSpec(0.7, 1.0)


def weak_connection_spec() -> Specification[Edge]:
    return EdgeTypeSpec(EdgeType.WEAK) & EdgeWeightSpec(0.0, 0.3)


# ---------------------------------------------------------------------------
# Node specifications
# ---------------------------------------------------------------------------


class NodeContentLengthSpec(Specification[Node]):
    """Combined title and body length within ``[min_length, max_length]``."""

    def __init__(self, min_length: int, max_length: int) -> None:
        self.min_length = min_length
        self.max_length = max_length

    def _evaluate(self, candidate: Node) -> bool:
        length = len(candidate.content.title) + len(candidate.content.body)
        return self.min_length <= length <= self.max_length


class NodeHasTagsSpec(Specification[Node]):
    """Case-insensitive tag match; all tags when *match_all*, else any."""

    def __init__(self, required: Iterable[str], *, match_all: bool = True) -> None:
        self.required = [t.lower() for t in required]
        self.match_all = match_all

    def _evaluate(self, candidate: Node) -> bool:
        present = {t.lower() for t in candidate.tags}
        if self.match_all:
            return all(t in present for t in self.required)
        return any(t in present for t in self.required)


class NodeStatusSpec(Specification[Node]):
    def __init__(self, *allowed: str) -> None:
        self.allowed = frozenset(allowed)

    def _evaluate(self, candidate: Node) -> bool:
        return candidate.status in self.allowed


class NodePositionBoundsSpec(Specification[Node]):
    def __init__(
        self,
        min_x: float,
        max_x: float,
        min_y: float,
        max_y: float,
        min_z: float,
        max_z: float,
    ) -> None:
        self.bounds = ((min_x, max_x), (min_y, max_y), (min_z, max_z))

    def _evaluate(self, candidate: Node) -> bool:
        pos = candidate.position
        return all(
            low <= value <= high
            for value, (low, high) in zip((pos.x, pos.y, pos.z), self.bounds, strict=True)
        )


class NodeContentFormatSpec(Specification[Node]):
    def __init__(self, *allowed: str) -> None:
        self.allowed = frozenset(allowed)

    def _evaluate(self, candidate: Node) -> bool:
        return candidate.content.format in self.allowed


class NodeHasContentSpec(Specification[Node]):
    def __init__(self, *, require_title: bool = True, require_body: bool = False) -> None:
        self.require_title = require_title
        self.require_body = require_body

    def _evaluate(self, candidate: Node) -> bool:
        if self.require_title and not candidate.content.title.strip():
            return False
        return not (self.require_body and not candidate.content.body.strip())


class NodeTagCountSpec(Specification[Node]):
    def __init__(self, min_tags: int, max_tags: int) -> None:
        self.min_tags = min_tags
        self.max_tags = max_tags

    def _evaluate(self, candidate: Node) -> bool:
        return self.min_tags <= len(candidate.tags) <= self.max_tags


class NodeMetadataSpec(Specification[Node]):
    def __init__(
        self,
        required_keys: Iterable[str] = (),
        validator: MetadataValidator | None = None,
    ) -> None:
        self.required_keys = tuple(required_keys)
        self.validator = validator

    def _evaluate(self, candidate: Node) -> bool:
        return _has_required_keys(candidate.metadata, self.required_keys, self.validator)


def valid_node_spec(
    *,
    max_length: int = 50_000,
    max_coordinate: float = 10_000.0,
    max_tags: int = 20,
) -> Specification[Node]:
    bound = max_coordinate
    return (
        NodeHasContentSpec(require_title=True)
        & NodeContentLengthSpec(1, max_length)
        & NodePositionBoundsSpec(-bound, bound, -bound, bound, -bound, bound)
        & NodeTagCountSpec(0, max_tags)
    )


def active_node_spec() -> Specification[Node]:
    return NodeStatusSpec(NodeStatus.PUBLISHED, NodeStatus.DRAFT)


def archived_node_spec() -> Specification[Node]:
    return NodeStatusSpec(NodeStatus.ARCHIVED)


def searchable_node_spec() -> Specification[Node]:
    return active_node_spec() & NodeHasContentSpec(require_title=True, require_body=True)


def text_node_spec() -> Specification[Node]:
    """Nodes whose body is human-readable prose."""
    return NodeContentFormatSpec(ContentFormat.MARKDOWN, ContentFormat.PLAIN)
