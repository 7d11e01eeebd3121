"""Plugin registry and entry-point discovery for validator plugins."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Set

from ..errors import PluginError
from .base import ValidatorPlugin

ENTRY_POINT_GROUP = "storylint.validators"


class PluginRegistry:
    """Holds validator plugins keyed by name.

    Registering a name that already exists replaces the previous plugin but
    keeps its position; iteration otherwise follows insertion order.
    """

    def __init__(self, plugins: Iterable[ValidatorPlugin] = ()) -> None:
        self._plugins: Dict[str, ValidatorPlugin] = {}
        for plugin in plugins:
            self.register(plugin)

    def register(self, plugin: ValidatorPlugin) -> None:
        if not getattr(plugin, "name", None):
            raise PluginError(f"Plugin {plugin!r} does not define a name")
        self._plugins[plugin.name] = plugin

    def unregister(self, name: str) -> None:
        self._plugins.pop(name, None)

    def get(self, name: str) -> Optional[ValidatorPlugin]:
        return self._plugins.get(name)

    def get_all(self) -> Dict[str, ValidatorPlugin]:
        """Return a copy of the name -> plugin mapping."""
        return dict(self._plugins)

    def has(self, name: str) -> bool:
        return name in self._plugins

    def clear(self) -> None:
        self._plugins.clear()

    def names(self) -> List[str]:
        return list(self._plugins)

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    def __iter__(self) -> Iterator[ValidatorPlugin]:
        return iter(list(self._plugins.values()))

    def __len__(self) -> int:
        return len(self._plugins)


def _builtin_factories() -> Dict[str, Callable[[], ValidatorPlugin]]:
    from .characters import CharacterValidator
    from .link_graph import LinkGraphValidator

    return {
        LinkGraphValidator.name: LinkGraphValidator,
        CharacterValidator.name: CharacterValidator,
    }


def discover_plugins(enabled: Sequence[str] | None = None) -> List[ValidatorPlugin]:
    """Return instantiated built-in and entry-point plugins, honoring ``enabled``."""

    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}

    plugins: List[ValidatorPlugin] = []
    seen: Set[str] = set()

    def _add(name: str, factory: Callable[[], ValidatorPlugin]) -> None:
        key = name.lower()
        if enabled_set is not None and key not in enabled_set:
            return
        if key in seen:
            return
        instance = factory()
        if not isinstance(instance, ValidatorPlugin):
            raise PluginError(f"Plugin factory for '{name}' did not return a validator plugin")
        plugins.append(instance)
        seen.add(key)
        if enabled_set is not None:
            enabled_set.discard(key)

    for name, factory in _builtin_factories().items():
        _add(name, factory)

    for entry in _iter_entry_points():
        try:
            loaded = entry.load()
        except Exception as exc:
            raise PluginError(f"Failed to load plugin entry point '{entry.name}': {exc}") from exc

        def _factory(obj: object = loaded) -> ValidatorPlugin:
            return _coerce_plugin(obj)

        _add(entry.name, _factory)

    if enabled_set:
        missing = ", ".join(sorted(enabled_set))
        raise ValueError(f"Unknown validators requested: {missing}")

    return plugins


def _coerce_plugin(obj: object) -> ValidatorPlugin:
    if isinstance(obj, type):
        obj = obj()
    elif not isinstance(obj, ValidatorPlugin) and callable(obj):
        obj = obj()
    if isinstance(obj, ValidatorPlugin):
        return obj
    raise PluginError("Plugin entry point must be a validator class, instance or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points(group=ENTRY_POINT_GROUP)


__all__ = ["ENTRY_POINT_GROUP", "PluginRegistry", "discover_plugins"]
