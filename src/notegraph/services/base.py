"""BaseService — abstract foundation for all notegraph services.

Every service receives a :class:`Workspace` at construction time. The
Workspace provides the graph repository, settings, and event bus.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from notegraph.domain.events import DomainEvent
    from notegraph.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)


class EventSource(Protocol):
    """Anything buffering domain events: the graph aggregate or a node."""

    def uncommitted_events(self) -> list[DomainEvent]: ...

    def mark_events_committed(self) -> None: ...


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class GraphService(BaseService):
            def rename(self, graph_id: str, name: str) -> ServiceResult:
                graph = self._workspace.graphs.get(graph_id)
                ...
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    @property
    def user(self) -> str:
        """The acting user every operation is scoped to."""
        return self._workspace.settings.user

    def _publish_events(self, source: EventSource, warnings: list[str]) -> None:
        """Hand *source*'s uncommitted events to the bus, then clear them.

        Called only after a successful save. Events are cleared even when no
        bus is configured, since the stored state already reflects them.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        bus = self._workspace.event_bus
        if bus is not None:
            for event in source.uncommitted_events():
                try:
                    bus.publish(event)
                except Exception:
                    logger.debug("Event dispatch failed for %s", event.event_type, exc_info=True)
                    warnings.append(f"Event dispatch failed for {event.event_type}")
        source.mark_events_committed()
