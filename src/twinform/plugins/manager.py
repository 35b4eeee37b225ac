"""Plugin discovery and loading.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints
for the ``twinform.plugins`` group, plus direct registration.
Capabilities: pipeline event hooks and coercion registration.
"""

from __future__ import annotations

import inspect
import logging

import pluggy

from twinform.plugins.hookspecs import TwinformHookSpec

PROJECT_NAME = "twinform"
ENTRY_POINT_GROUP = "twinform.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(TwinformHookSpec)
        self._loaded: bool = False

    def discover_and_load(self) -> list[str]:
        """Load plugins from the ``twinform.plugins`` entry point group.

        Returns a list of loaded plugin names.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._normalize_plugin_instances()
        for plugin in self._pm.get_plugins():
            self._register_plugin_coercers(plugin, self._name_of(plugin))
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        self._register_plugin_coercers(plugin, resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        """Access the hook relay for dispatching events."""
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._name_of(p) for p in self._pm.get_plugins()]

    def _name_of(self, plugin: object) -> str:
        return self._pm.get_name(plugin) or plugin.__class__.__name__

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly; hooks on a
        class object would be called with ``self`` unbound.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            plugin_name = self._name_of(plugin)
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue
            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)

    @staticmethod
    def _register_plugin_coercers(plugin: object, plugin_name: str) -> None:
        """Register coercions exposed by a single plugin instance.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        from twinform.domain.coercion import register_coercer

        hook = getattr(plugin, "register_coercers", None)
        if hook is None:
            return

        try:
            coercers = hook()
        except Exception:
            logger.warning(
                "Failed to collect coercers from plugin %s",
                plugin_name,
                exc_info=True,
            )
            return

        if coercers is None:
            return
        if not isinstance(coercers, dict):
            logger.warning("Plugin %s returned non-dict coercer registrations", plugin_name)
            return

        for name, converter in coercers.items():
            try:
                register_coercer(name, converter)
            except (TypeError, ValueError):
                logger.warning(
                    "Skipping coercer registration %r from plugin %s",
                    name,
                    plugin_name,
                    exc_info=True,
                )
