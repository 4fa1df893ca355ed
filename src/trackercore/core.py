"""
Tracker core host.

``TrackerCore`` owns everything one tracker instance needs to turn an
event payload builder into a final payload: a global context registry, a
list of plugins, persistent payload pairs and the base64 toggle.

Usage::

    from trackercore.core import tracker_core
    from trackercore.events import PageViewEvent, build_page_view

    core = tracker_core()
    core.set_app_id("checkout")
    core.add_global_contexts([
        {"sc": "iglu:com.acme/user/jsonschema/1-0-0", "dt": {"id": "u-1"}},
    ])
    payload = core.track(build_page_view(PageViewEvent(page_url="https://acme.test")))
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from trackercore.config import TrackerCoreConfig, get_config
from trackercore.contexts.plugins import plugin_contexts, plugin_name
from trackercore.contexts.registry import global_contexts
from trackercore.logger import LOG, LogLevel
from trackercore.otel import emit_event_tracked
from trackercore.payload import PayloadBuilder, payload_json_processor

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TrueTimestamp:
    """Timestamp the host trusts as the real event time (``ttm``)."""

    value: int


@dataclass(frozen=True)
class DeviceTimestamp:
    """Timestamp read from the device clock (``dtm``)."""

    value: int


Timestamp = Union[TrueTimestamp, DeviceTimestamp, int, float]


def _now_ms() -> int:
    return int(time.time() * 1000)


def get_timestamp(timestamp: Optional[Timestamp] = None) -> tuple[str, int]:
    """Resolve *timestamp* to its payload key and value.

    A bare number is treated as a device timestamp; ``None`` means now.
    """
    if timestamp is None:
        return "dtm", _now_ms()
    if isinstance(timestamp, TrueTimestamp):
        return "ttm", int(timestamp.value)
    if isinstance(timestamp, DeviceTimestamp):
        return "dtm", int(timestamp.value)
    return "dtm", int(timestamp)


# ---------------------------------------------------------------------------
# Core
# ---------------------------------------------------------------------------


class TrackerCore:
    """
    Builds final payloads for one tracker.

    Context entities are attached to every tracked event in this order:
    applicable global contexts, plugin contexts, then the contexts passed
    to ``track()``.
    """

    def __init__(
        self,
        config: Optional[TrackerCoreConfig] = None,
        callback: Optional[Callable[[PayloadBuilder], None]] = None,
        plugins: Optional[Sequence[Any]] = None,
    ):
        self._callback = callback
        self._payload_pairs: dict[str, Any] = {}
        self._plugins: list[Any] = []
        self._global_contexts = global_contexts()
        self._plugin_contexts = plugin_contexts(self._plugins)
        self.set_config(config or get_config())

        for plugin in plugins or []:
            self.add_plugin(plugin)

    # -- tracking -----------------------------------------------------------

    def track(
        self,
        pb: PayloadBuilder,
        contexts: Optional[Sequence[dict[str, Any]]] = None,
        timestamp: Optional[Timestamp] = None,
    ) -> dict[str, Any]:
        """Complete *pb* and return the final payload.

        Args:
            pb: Builder produced by one of the ``build_*`` event builders.
            contexts: Entities to attach to this event only.
            timestamp: Event timestamp; defaults to the current time.

        Returns:
            The built payload.
        """
        pb.with_json_processor(payload_json_processor(self._base64))
        pb.add("eid", str(uuid.uuid4()))
        pb.add_dict(self._payload_pairs)
        key, value = get_timestamp(timestamp)
        pb.add(key, str(value))

        entities = self._global_contexts.get_applicable_contexts(pb)
        entities.extend(self._plugin_contexts.add_plugin_contexts(contexts))
        for entity in entities:
            pb.add_context_entity(entity)

        self._run_hooks("before_track", pb)

        if self._callback is not None:
            self._callback(pb)

        payload = pb.build()

        self._run_hooks("after_track", payload)

        emit_event_tracked(payload, context_count=len(entities), base64=self._base64)
        return payload

    def _run_hooks(self, hook_name: str, arg: Any) -> None:
        for plugin in self._plugins:
            hook = getattr(plugin, hook_name, None)
            if not callable(hook):
                continue
            try:
                hook(arg)
            except Exception as exc:
                LOG.error(f"Plugin {hook_name} error", exc, plugin_name(plugin))

    # -- configuration -------------------------------------------------------

    def get_config(self) -> TrackerCoreConfig:
        return self.config

    def set_config(self, config: TrackerCoreConfig) -> None:
        """Adopt *config*: base64 encoding, logging and the identity pairs.

        Identity pairs left unset by *config* are removed.
        """
        self.config = config
        self._base64 = config.base64

        LOG.set_log_level(LogLevel.from_name(config.log_level))
        LOG.log_format = config.log_format

        identity = {
            "tv": config.tracker_version,
            "tna": config.tracker_namespace,
            "aid": config.app_id,
            "p": config.platform,
        }
        for key, value in identity.items():
            if value is None:
                self._payload_pairs.pop(key, None)
            else:
                self.add_payload_pair(key, value)

    # -- plugins ------------------------------------------------------------

    def add_plugin(self, plugin: Any) -> None:
        """Register *plugin* and run its activation hooks."""
        self._plugins.append(plugin)

        logger_hook = getattr(plugin, "logger", None)
        if callable(logger_hook):
            logger_hook(LOG)

        activate = getattr(plugin, "activate_core_plugin", None)
        if callable(activate):
            activate(self)

        logger.debug("Activated plugin %s", plugin_name(plugin))

    @property
    def plugins(self) -> list[Any]:
        return list(self._plugins)

    # -- global contexts ----------------------------------------------------

    def add_global_contexts(self, contexts: Iterable[Any]) -> None:
        self._global_contexts.add_global_contexts(contexts)

    def remove_global_contexts(self, contexts: Iterable[Any]) -> None:
        self._global_contexts.remove_global_contexts(contexts)

    def clear_global_contexts(self) -> None:
        self._global_contexts.clear_global_contexts()

    @property
    def global_contexts(self):
        return self._global_contexts

    # -- encoding -----------------------------------------------------------

    def get_base64_encoding(self) -> bool:
        return self._base64

    def set_base64_encoding(self, encode: bool) -> None:
        self._base64 = encode

    # -- persistent payload pairs -------------------------------------------

    def add_payload_pair(self, key: str, value: Any) -> None:
        """Attach *key* to every subsequent payload; ``None`` is ignored."""
        if value is None:
            return
        self._payload_pairs[key] = value

    def add_payload_dict(self, values: dict[str, Any]) -> None:
        for key, value in values.items():
            self.add_payload_pair(key, value)

    def reset_payload_pairs(self, values: Optional[dict[str, Any]] = None) -> None:
        self._payload_pairs = {}
        if values:
            self.add_payload_dict(values)

    def get_payload_pairs(self) -> dict[str, Any]:
        return dict(self._payload_pairs)

    def set_tracker_version(self, version: Optional[str]) -> None:
        self.add_payload_pair("tv", version)

    def set_tracker_namespace(self, name: Optional[str]) -> None:
        self.add_payload_pair("tna", name)

    def set_app_id(self, app_id: Optional[str]) -> None:
        self.add_payload_pair("aid", app_id)

    def set_platform(self, value: Optional[str]) -> None:
        self.add_payload_pair("p", value)

    def set_user_id(self, user_id: Optional[str]) -> None:
        self.add_payload_pair("uid", user_id)

    def set_screen_resolution(self, width: int, height: int) -> None:
        self.add_payload_pair("res", f"{width}x{height}")

    def set_viewport(self, width: int, height: int) -> None:
        self.add_payload_pair("vp", f"{width}x{height}")

    def set_color_depth(self, depth: int) -> None:
        self.add_payload_pair("cd", str(depth))

    def set_timezone(self, timezone: str) -> None:
        self.add_payload_pair("tz", timezone)

    def set_lang(self, lang: str) -> None:
        self.add_payload_pair("lang", lang)

    def set_ip_address(self, ip: str) -> None:
        self.add_payload_pair("ip", ip)

    def set_useragent(self, useragent: str) -> None:
        self.add_payload_pair("ua", useragent)


def tracker_core(
    config: Optional[TrackerCoreConfig] = None,
    callback: Optional[Callable[[PayloadBuilder], None]] = None,
    plugins: Optional[Sequence[Any]] = None,
) -> TrackerCore:
    """Create a tracker core; *config* defaults to the global configuration."""
    return TrackerCore(config=config, callback=callback, plugins=plugins)
