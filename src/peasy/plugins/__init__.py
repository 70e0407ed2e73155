"""Extension layer — command lifecycle observers via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Plugin failures are warnings, never errors.
"""

import pluggy

from peasy.plugins.manager import PluginManager

hookimpl = pluggy.HookimplMarker("peasy")

__all__ = ["PluginManager", "hookimpl"]
