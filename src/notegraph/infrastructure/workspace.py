"""Workspace — the single dependency injected into every service.

Owns the resolved settings, the SQLite engine, the graph repository and,
once :meth:`Workspace.init_event_bus` has run, the plugin event bus.
Constructed once per CLI invocation and stored on the click context.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from notegraph.infrastructure.database.engine import init_database
from notegraph.infrastructure.repositories.graph import SqlGraphRepository

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from notegraph.config.settings import NotegraphSettings
    from notegraph.plugins.event_bus import EventBus
    from notegraph.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class Workspace:
    """Database, repository, and plugin wiring for one workspace root."""

    def __init__(self, settings: NotegraphSettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(settings.db_path)
        self._graphs = SqlGraphRepository(self._engine, settings.graph)
        self._plugin_manager: PluginManager | None = None
        self._event_bus: EventBus | None = None

    @property
    def root(self) -> Path:
        return self._settings.workspace_root

    @property
    def settings(self) -> NotegraphSettings:
        return self._settings

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def graphs(self) -> SqlGraphRepository:
        """The graph repository bound to this workspace's engine."""
        return self._graphs

    @property
    def plugin_manager(self) -> PluginManager | None:
        return self._plugin_manager

    @property
    def event_bus(self) -> EventBus | None:
        """The plugin event bus (None if not initialized or plugins disabled)."""
        return self._event_bus

    def init_event_bus(self, *, sync: bool = False) -> None:
        """Discover entry-point plugins and wire up the outbox event bus.

        Does nothing when ``[plugins] enabled = false``.
        """
        from notegraph.plugins.event_bus import EventBus
        from notegraph.plugins.manager import PluginManager

        plugins = self._settings.plugins
        if not plugins.enabled:
            logger.debug("Plugins disabled; events will not be delivered")
            return

        pm = PluginManager()
        pm.discover_and_load()
        self._plugin_manager = pm
        self._event_bus = EventBus(
            self._engine,
            pm,
            sync=sync,
            max_retries=plugins.max_retries,
            max_workers=plugins.workers,
        )

    def close(self) -> None:
        """Wait for in-flight event deliveries and release the engine."""
        if self._event_bus is not None:
            self._event_bus.shutdown()
        self._engine.dispose()
