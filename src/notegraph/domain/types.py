"""Enumerations shared across the graph domain."""

from __future__ import annotations

from enum import StrEnum


class EdgeType(StrEnum):
    """Relationship types an edge may carry."""

    NORMAL = "normal"
    STRONG = "strong"
    WEAK = "weak"
    REFERENCE = "reference"
    HIERARCHICAL = "hierarchical"
    TEMPORAL = "temporal"


class ContentFormat(StrEnum):
    """Markup formats accepted for node bodies."""

    MARKDOWN = "markdown"
    PLAIN = "plain"
    HTML = "html"
    JSON = "json"


class NodeStatus(StrEnum):
    """Node lifecycle status."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class LayoutType(StrEnum):
    """Graph layout algorithms offered to viewers."""

    FORCE_DIRECTED = "force_directed"
    HIERARCHICAL = "hierarchical"
    CIRCULAR = "circular"
    GRID = "grid"
