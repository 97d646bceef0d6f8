"""
Plugin registry for signalflow.

Holds registered plugins keyed by id and owns their lifecycle: `init` runs
once on first registration, `cleanup` runs once on unregistration.
Duplicate registrations are ignored with a warning so the first owner keeps
the plugin.

A process-wide default registry is created lazily and reached through
get_registry(). Code that wants isolation (tests, embedded use) builds its
own PluginRegistry and passes it to Signal.use(..., registry=...).

Usage:
    from signalflow import register_plugin, unregister_plugin

    register_plugin(LoggerPlugin())
    signal.use({"id": "logger", "options": {"level": "debug"}})
    unregister_plugin("logger")
"""

import threading
from typing import Any, Dict, List, Optional

from signalflow.interface import validate_plugin
from signalflow.utils.logger import get_logger

logger = get_logger(__name__)


class PluginRegistry:
    """
    Keyed store of registered plugins.

    Writes (register/unregister/clear) are serialized by a lock so that
    concurrent calls on the same id can't lose an init or a cleanup.
    Lookups read the dict directly.
    """

    def __init__(self):
        self._plugins: Dict[str, Any] = {}
        self._lock = threading.RLock()

    def register(self, plugin: Any, options: Any = None) -> bool:
        """
        Register a plugin, running its init hook once.

        Args:
            plugin: A SignalPlugin, or any object with `id` and `execute`
            options: Forwarded to `init` when given

        Returns:
            True if the plugin was stored, False if the id was already taken.

        Raises:
            ValueError: If the object does not satisfy the plugin contract
        """
        validation = validate_plugin(plugin)
        if not validation["valid"]:
            raise ValueError(
                f"Invalid plugin {getattr(plugin, 'id', plugin)!r}: "
                f"{', '.join(validation['errors'])}"
            )

        with self._lock:
            if plugin.id in self._plugins:
                logger.warning(
                    f"Plugin '{plugin.id}' is already registered. Skipping registration."
                )
                return False

            init = getattr(plugin, "init", None)
            if init is not None:
                if options is None:
                    init()
                else:
                    init(options)

            self._plugins[plugin.id] = plugin

        logger.info(f"Registered signal plugin: {plugin.id}")
        return True

    def unregister(self, plugin_id: str) -> bool:
        """
        Remove a plugin, running its cleanup hook once.

        The entry is removed even when cleanup raises; the error still
        propagates to the caller.

        Returns:
            True if a plugin was removed, False if the id was unknown.
        """
        with self._lock:
            plugin = self._plugins.get(plugin_id)
            if plugin is None:
                return False
            try:
                cleanup = getattr(plugin, "cleanup", None)
                if cleanup is not None:
                    cleanup()
            finally:
                del self._plugins[plugin_id]

        logger.info(f"Unregistered signal plugin: {plugin_id}")
        return True

    def clear(self) -> None:
        """
        Unregister every plugin, in registration order.

        Every cleanup runs even if an earlier one raises; the first error
        is re-raised once the registry is empty.
        """
        first_error: Optional[Exception] = None
        with self._lock:
            for plugin_id in list(self._plugins):
                try:
                    self.unregister(plugin_id)
                except Exception as e:
                    logger.error(f"Cleanup failed for plugin '{plugin_id}': {e}")
                    if first_error is None:
                        first_error = e
        if first_error is not None:
            raise first_error

    def get_plugin(self, plugin_id: str) -> Optional[Any]:
        return self._plugins.get(plugin_id)

    def has_plugin(self, plugin_id: str) -> bool:
        return plugin_id in self._plugins

    def plugin_ids(self) -> List[str]:
        """Registered ids, oldest first."""
        return list(self._plugins)

    def __contains__(self, plugin_id: object) -> bool:
        return plugin_id in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)


_default_registry: Optional[PluginRegistry] = None
_default_lock = threading.Lock()


def get_registry() -> PluginRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _default_registry
    if _default_registry is None:
        with _default_lock:
            if _default_registry is None:
                _default_registry = PluginRegistry()
    return _default_registry


def register_plugin(plugin: Any, options: Any = None) -> bool:
    """Register a plugin in the process-wide registry."""
    return get_registry().register(plugin, options)


def unregister_plugin(plugin_id: str) -> bool:
    """Unregister a plugin from the process-wide registry."""
    return get_registry().unregister(plugin_id)
