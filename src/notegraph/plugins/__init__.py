"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) in the ``notegraph.plugins`` group.
INVARIANT: Plugin failures are warnings, never errors.
"""

from notegraph.plugins.event_bus import EventBus
from notegraph.plugins.hookspecs import hookimpl
from notegraph.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager", "hookimpl"]
