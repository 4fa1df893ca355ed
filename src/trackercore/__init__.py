"""
TrackerCore - Event payload building and context resolution for analytics trackers.

This package builds self-describing event payloads and decides which
context entities (auxiliary self-describing JSON documents) attach to each
tracked event.

Key Features:
- Schema rule grammar with vendor wildcards and accept/reject rule sets
- Global contexts: static entities, generators, filter and rule-set providers
- Plugin context aggregation with per-hook failure isolation
- Two-phase payload builder with base64 encoding decided at build time

Example usage:
    from trackercore import tracker_core
    from trackercore.events import SelfDescribingEvent, build_self_describing_event

    core = tracker_core()
    core.add_global_contexts([
        ({"accept": "iglu:com.acme/*/jsonschema/*-*-*"},
         {"sc": "iglu:com.acme/session/jsonschema/1-0-0", "dt": {"id": "s-1"}}),
    ])
    payload = core.track(build_self_describing_event(SelfDescribingEvent(
        event={"sc": "iglu:com.acme/checkout/jsonschema/1-0-0", "dt": {"total": 42}},
    )))
"""

__version__ = "0.1.0"
__all__ = [
    "TrackerCore",
    "tracker_core",
    "global_contexts",
    "plugin_contexts",
    "resolve_dynamic_context",
    "get_schema_parts",
    "get_rule_parts",
    "validate_vendor",
    "validate_vendor_parts",
    "is_valid_rule",
    "is_valid_rule_set_arg",
    "is_rule_set",
    "match_schema_against_rule",
    "match_schema_against_rule_set",
    "payload_builder",
    "payload_json_processor",
    "__version__",
]

_LAZY_ATTRS = {
    "TrackerCore": "trackercore.core",
    "tracker_core": "trackercore.core",
    "global_contexts": "trackercore.contexts.registry",
    "plugin_contexts": "trackercore.contexts.plugins",
    "resolve_dynamic_context": "trackercore.contexts.primitives",
    "get_schema_parts": "trackercore.contexts.rules",
    "get_rule_parts": "trackercore.contexts.rules",
    "validate_vendor": "trackercore.contexts.rules",
    "validate_vendor_parts": "trackercore.contexts.rules",
    "is_valid_rule": "trackercore.contexts.rules",
    "is_valid_rule_set_arg": "trackercore.contexts.rules",
    "is_rule_set": "trackercore.contexts.rules",
    "match_schema_against_rule": "trackercore.contexts.rules",
    "match_schema_against_rule_set": "trackercore.contexts.rules",
    "payload_builder": "trackercore.payload",
    "payload_json_processor": "trackercore.payload",
}


# Lazy imports so ``trackercore.config`` can import ``__version__`` without a cycle
def __getattr__(name: str):
    module_name = _LAZY_ATTRS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    import importlib

    return getattr(importlib.import_module(module_name), name)
