"""
Core plugins and plugin context aggregation.

A plugin is any object exposing some of these optional hooks:

- ``activate_core_plugin(core)``: called once when the plugin joins a core
- ``before_track(payload_builder)``: called before the payload is built
- ``after_track(payload)``: called with the final payload
- ``contexts()``: returns entities to attach to every event
- ``logger(logger)``: receives the tracker logging facade

``CorePlugin`` is a convenience container for plugins assembled from
plain functions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from trackercore.contexts.otel import emit_plugin_context_failure
from trackercore.contexts.primitives import is_self_describing_json
from trackercore.logger import LOG

logger = logging.getLogger(__name__)


@dataclass
class CorePlugin:
    """Plugin built from optional hook callables."""

    activate_core_plugin: Optional[Callable[[Any], None]] = None
    before_track: Optional[Callable[[Any], None]] = None
    after_track: Optional[Callable[[dict[str, Any]], None]] = None
    contexts: Optional[Callable[[], list[dict[str, Any]]]] = None
    logger: Optional[Callable[[Any], None]] = None
    name: str = "plugin"


def plugin_name(plugin: Any) -> str:
    name = getattr(plugin, "name", None)
    return name if isinstance(name, str) else type(plugin).__name__


class PluginContexts:
    """Collects context contributions from the active plugins of a core."""

    def __init__(self, plugins: Sequence[Any]) -> None:
        # Shared with the owning core so plugins added later are seen
        self._plugins = plugins

    def add_plugin_contexts(
        self, additional_contexts: Optional[Sequence[dict[str, Any]]] = None
    ) -> list[dict[str, Any]]:
        """Plugin contexts in registration order, followed by *additional_contexts*.

        A plugin whose hook raises contributes nothing for this event, and
        items that are not self-describing JSON are dropped.
        """
        combined: list[dict[str, Any]] = []
        for plugin in self._plugins:
            hook = getattr(plugin, "contexts", None)
            if not callable(hook):
                continue
            try:
                contributed = hook()
            except Exception as exc:
                LOG.error("Error adding plugin contexts", exc)
                emit_plugin_context_failure(plugin_name(plugin), exc)
                continue
            if not contributed:
                continue
            if is_self_describing_json(contributed):
                contributed = [contributed]
            if not isinstance(contributed, (list, tuple)):
                logger.debug(
                    "Ignoring contexts() output of %s: %s",
                    plugin_name(plugin),
                    type(contributed).__name__,
                )
                continue
            entities = [item for item in contributed if is_self_describing_json(item)]
            if len(entities) != len(contributed):
                logger.debug(
                    "Dropped %d malformed entities from %s",
                    len(contributed) - len(entities),
                    plugin_name(plugin),
                )
            combined.extend(entities)

        if additional_contexts:
            combined.extend(additional_contexts)
        return combined


def plugin_contexts(plugins: Sequence[Any]) -> PluginContexts:
    return PluginContexts(plugins)
