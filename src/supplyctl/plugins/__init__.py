"""Extension layer — notification observers via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Observer failures are warnings, never errors.
"""

from supplyctl.plugins.event_bus import EventBus
from supplyctl.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager"]
