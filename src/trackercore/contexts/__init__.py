"""
Context resolution and schema rule matching.

Decides which context entities attach to each tracked event: schema
rule matching, context primitives, conditional providers, the global
context registry, plugin context aggregation and declarative manifests.

Usage::

    from trackercore.contexts import global_contexts, match_schema_against_rule

    registry = global_contexts()
    match_schema_against_rule(
        "iglu:com.acme.*/event_x/jsonschema/1-*-*",
        "iglu:com.acme.sub/event_x/jsonschema/1-0-2",
    )  # True
"""

from trackercore.contexts.loader import ContextManifestLoader
from trackercore.contexts.manifest import ContextEntry, ContextManifest
from trackercore.contexts.plugins import CorePlugin, PluginContexts, plugin_contexts
from trackercore.contexts.primitives import (
    ConditionalContextProvider,
    ContextEvent,
    ContextGenerator,
    ContextPrimitive,
    FilterProvider,
    RuleSetProvider,
    StaticContext,
    is_conditional_context_provider,
    is_context_callback_function,
    is_context_primitive,
    is_filter_provider,
    is_json,
    is_non_empty_json,
    is_rule_set_provider,
    is_self_describing_json,
    resolve_dynamic_context,
    to_conditional_provider,
    to_context_primitive,
)
from trackercore.contexts.registry import GlobalContexts, global_contexts
from trackercore.contexts.rules import (
    get_rule_parts,
    get_schema_parts,
    is_rule_set,
    is_string_array,
    is_valid_rule,
    is_valid_rule_set_arg,
    match_schema_against_rule,
    match_schema_against_rule_set,
    validate_vendor,
    validate_vendor_parts,
)
from trackercore.contexts.schema import (
    CONTEXTS_SCHEMA,
    UNSTRUCT_EVENT_SCHEMA,
    RuleSet,
    SchemaIdentifier,
    SelfDescribingEntity,
    parse_schema,
)

__all__ = [
    # Rules
    "get_rule_parts",
    "get_schema_parts",
    "is_rule_set",
    "is_string_array",
    "is_valid_rule",
    "is_valid_rule_set_arg",
    "match_schema_against_rule",
    "match_schema_against_rule_set",
    "validate_vendor",
    "validate_vendor_parts",
    # Schema models
    "CONTEXTS_SCHEMA",
    "UNSTRUCT_EVENT_SCHEMA",
    "RuleSet",
    "SchemaIdentifier",
    "SelfDescribingEntity",
    "parse_schema",
    # Primitives
    "ConditionalContextProvider",
    "ContextEvent",
    "ContextGenerator",
    "ContextPrimitive",
    "FilterProvider",
    "RuleSetProvider",
    "StaticContext",
    "is_conditional_context_provider",
    "is_context_callback_function",
    "is_context_primitive",
    "is_filter_provider",
    "is_json",
    "is_non_empty_json",
    "is_rule_set_provider",
    "is_self_describing_json",
    "resolve_dynamic_context",
    "to_conditional_provider",
    "to_context_primitive",
    # Registry
    "GlobalContexts",
    "global_contexts",
    # Plugins
    "CorePlugin",
    "PluginContexts",
    "plugin_contexts",
    # Manifests
    "ContextEntry",
    "ContextManifest",
    "ContextManifestLoader",
]
