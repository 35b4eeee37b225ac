"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Plugin failures are warnings, never errors.
"""

import pluggy

from twinform.plugins.manager import PluginManager

hookimpl = pluggy.HookimplMarker("twinform")

__all__ = ["PluginManager", "hookimpl"]
