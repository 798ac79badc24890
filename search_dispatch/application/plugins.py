from __future__ import annotations

from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, TYPE_CHECKING

from ..domain.errors import ContractError, InvalidPluginError, UnknownPluginTypeError
from ..infrastructure.loader import resolve_factory
from ..infrastructure.logging import get_logger

if TYPE_CHECKING:
    from .client import SearchClient

logger = get_logger("search_dispatch.plugins")

# Keys that get_plugin(key, autocreate=True) can build on demand.
PLUGIN_TYPES: Dict[str, str] = {
    "loadbalancer": "search_dispatch.plugins.loadbalancer.LoadBalancer",
    "postbigrequest": "search_dispatch.plugins.post_big_request.PostBigRequest",
    "customizerequest": "search_dispatch.plugins.customize_request.CustomizeRequest",
    "bufferedadd": "search_dispatch.plugins.buffered_add.BufferedAdd",
    "prefetchiterator": "search_dispatch.plugins.prefetch_iterator.PrefetchIterator",
    "parallelexecution": "search_dispatch.plugins.parallel_execution.ParallelExecution",
}


class PluginRegistry:
    """Named plugin instances in registration order, owned by one client."""

    def __init__(self, client: "SearchClient", plugin_types: Optional[Mapping[str, Any]] = None) -> None:
        self._client = client
        self._plugin_types: Dict[str, Any] = dict(PLUGIN_TYPES if plugin_types is None else plugin_types)
        self._instances: Dict[str, Any] = {}

    def _instantiate(self, plugin: Any) -> Any:
        if isinstance(plugin, str):
            try:
                plugin = resolve_factory(plugin, self._plugin_types)
            except ContractError as exc:
                raise InvalidPluginError(f"Cannot resolve plugin '{plugin}': {exc}") from exc
        # Classes and plain factories are called; instances already carry init_plugin.
        if isinstance(plugin, type) or (callable(plugin) and not hasattr(plugin, "init_plugin")):
            plugin = plugin()
        return plugin

    def register(self, key: str, plugin: Any, options: Optional[Mapping[str, Any]] = None) -> Any:
        """Register an instance, class, or identifier under ``key``; returns the stored instance.

        An existing plugin under the same key is replaced without any hook being called.

        Raises:
            InvalidPluginError: The resolved object has no callable ``init_plugin``.
        """
        instance = self._instantiate(plugin)
        if not callable(getattr(instance, "init_plugin", None)):
            raise InvalidPluginError(
                f"Plugin '{key}' ({type(instance).__name__}) must provide init_plugin(client, options)"
            )
        instance.init_plugin(self._client, dict(options or {}))
        self._instances[key] = instance
        logger.info("Plugin registered | key=%s | type=%s", key, type(instance).__name__)
        return instance

    def register_many(self, plugins: Any) -> None:
        """Register a batch: mapping of key -> {plugin, options[, key]} or a list of such entries."""
        items = plugins.items() if isinstance(plugins, Mapping) else enumerate(plugins or [])
        for outer_key, entry in items:
            if not isinstance(entry, Mapping) or "plugin" not in entry:
                raise ContractError(f"Plugin entry '{outer_key}' must be a mapping with a 'plugin' field")
            key = entry.get("key", outer_key)
            if not isinstance(key, str):
                raise ContractError(f"Plugin entry {entry!r} has no 'key'")
            self.register(key, entry["plugin"], entry.get("options") or {})

    def get(self, key: str, autocreate: bool = True) -> Optional[Any]:
        if key in self._instances:
            return self._instances[key]
        if not autocreate:
            return None
        if key not in self._plugin_types:
            raise UnknownPluginTypeError(f"Cannot autoload plugin of unknown type: {key}")
        return self.register(key, self._plugin_types[key])

    def remove(self, plugin: Any) -> None:
        """Remove by key, or by identity when given an instance. Unknown keys/instances are ignored."""
        if isinstance(plugin, str):
            removed = self._instances.pop(plugin, None)
            if removed is not None:
                logger.info("Plugin removed | key=%s", plugin)
            return
        for key, instance in self._instances.items():
            if instance is plugin:
                del self._instances[key]
                logger.info("Plugin removed | key=%s", key)
                break

    def items(self) -> List[Tuple[str, Any]]:
        return list(self._instances.items())

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._instances)

    def plugin_types(self) -> Dict[str, Any]:
        return dict(self._plugin_types)

    def __iter__(self) -> Iterator[Tuple[str, Any]]:
        return iter(self.items())

    def __len__(self) -> int:
        return len(self._instances)

    def __contains__(self, key: object) -> bool:
        return key in self._instances
