"""Node content and spatial position value objects.

Both models are frozen. The ``create`` factories validate their input and
raise :class:`ValidationError`; the plain constructors do not, so trusted
hydration from storage can carry values that later fail graph validation.
"""

from __future__ import annotations

import math

from pydantic import BaseModel

from notegraph.domain.errors import ValidationError
from notegraph.domain.types import ContentFormat

MAX_TITLE_LENGTH = 255
MAX_BODY_LENGTH = 50_000


class NodeContent(BaseModel):
    """Title, body, and markup format of a note."""

    model_config = {"frozen": True}

    title: str
    body: str = ""
    format: str = ContentFormat.MARKDOWN

    @classmethod
    def create(
        cls,
        title: str,
        body: str = "",
        format: str = ContentFormat.MARKDOWN,
    ) -> NodeContent:
        title = title.strip()
        if not title:
            raise ValidationError("title is required")
        if len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(f"title exceeds maximum length of {MAX_TITLE_LENGTH}")
        if len(body) > MAX_BODY_LENGTH:
            raise ValidationError(f"body exceeds maximum length of {MAX_BODY_LENGTH}")
        if format not in set(ContentFormat):
            raise ValidationError(f"invalid content format: {format!r}")
        return cls(title=title, body=body, format=ContentFormat(format))

    @property
    def text(self) -> str:
        """Title and body joined by a space."""
        return f"{self.title} {self.body}"

    def is_empty(self) -> bool:
        return not self.title and not self.body

    def word_count(self) -> int:
        return len(self.title.split()) + len(self.body.split())

    def summary(self, max_length: int = 100) -> str:
        """Return the body (or title) truncated to *max_length* characters."""
        source = self.body or self.title
        if len(source) <= max_length:
            return source
        if max_length <= 3:
            return source[:max_length]
        return source[: max_length - 3].rstrip() + "..."


class Position(BaseModel):
    """Point in 3D canvas space; 2D positions have ``z == 0``."""

    model_config = {"frozen": True}

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def create(cls, x: float, y: float, z: float = 0.0) -> Position:
        if not all(math.isfinite(v) for v in (x, y, z)):
            raise ValidationError("invalid coordinates: values must be finite")
        return cls(x=x, y=y, z=z)

    def distance_to(self, other: Position) -> float:
        return math.dist((self.x, self.y, self.z), (other.x, other.y, other.z))

    def within_bounds(self, limit: float) -> bool:
        return all(-limit <= v <= limit for v in (self.x, self.y, self.z))
