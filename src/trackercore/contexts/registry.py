"""
Global context registry.

Holds the unconditional context primitives and conditional providers
registered on one tracker core, and computes the entities applicable to
each tracked event.

Each ``TrackerCore`` owns its own ``GlobalContexts`` instance, so several
trackers in one process never share global contexts.

Usage::

    from trackercore.contexts.registry import global_contexts

    registry = global_contexts()
    registry.add_global_contexts([
        {"sc": "iglu:com.acme/user/jsonschema/1-0-0", "dt": {"id": "u-1"}},
        ({"accept": "iglu:com.acme/*/jsonschema/*-*-*"}, session_generator),
    ])
    entities = registry.get_applicable_contexts(payload_builder)
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from trackercore.contexts.otel import emit_contexts_resolved
from trackercore.contexts.primitives import (
    ConditionalContextProvider,
    ContextEvent,
    ContextPrimitive,
    to_conditional_provider,
    to_context_primitive,
)

logger = logging.getLogger(__name__)


def _remove_first(items: list, candidate: Any) -> bool:
    for index, existing in enumerate(items):
        if existing.same_as(candidate):
            del items[index]
            return True
    return False


class GlobalContexts:
    """Ordered collections of global context primitives and conditional providers."""

    def __init__(self) -> None:
        self._primitives: list[ContextPrimitive] = []
        self._conditionals: list[ConditionalContextProvider] = []

    def get_global_primitives(self) -> list[Any]:
        """Registered unconditional primitives, in registration order."""
        return [primitive.to_input() for primitive in self._primitives]

    def get_conditional_providers(self) -> list[Any]:
        """Registered conditional providers as ``(criterion, primitives)`` pairs."""
        return [provider.to_input() for provider in self._conditionals]

    def add_global_contexts(self, contexts: Iterable[Any]) -> None:
        """Register primitives and conditional providers.

        Inputs that are neither a valid conditional provider nor a valid
        primitive are discarded.
        """
        for context in contexts:
            provider = to_conditional_provider(context)
            if provider is not None:
                self._conditionals.append(provider)
                continue

            primitive = to_context_primitive(context)
            if primitive is not None:
                self._primitives.append(primitive)
                continue

            logger.debug("Discarding invalid global context: %r", context)

    def remove_global_contexts(self, contexts: Iterable[Any]) -> None:
        """Remove the first structurally-equal registration for each input.

        Data compares by value; callables compare by identity.
        """
        for context in contexts:
            provider = to_conditional_provider(context)
            if provider is not None:
                if not _remove_first(self._conditionals, provider):
                    logger.debug("No matching conditional provider to remove: %r", context)
                continue

            primitive = to_context_primitive(context)
            if primitive is not None:
                if not _remove_first(self._primitives, primitive):
                    logger.debug("No matching context primitive to remove: %r", context)

    def clear_global_contexts(self) -> None:
        self._primitives.clear()
        self._conditionals.clear()

    def get_applicable_contexts(self, payload_builder: Any) -> list[dict[str, Any]]:
        """Entities applicable to the event being built.

        Unconditional primitives come first, then matching conditional
        providers, each group in registration order.  Identical entities
        from different registrations are all kept.
        """
        event = ContextEvent.from_payload_builder(payload_builder)

        contexts: list[dict[str, Any]] = []
        for primitive in self._primitives:
            contexts.extend(primitive.resolve(event))

        unconditional_count = len(contexts)
        for provider in self._conditionals:
            contexts.extend(provider.resolve(event))

        emit_contexts_resolved(
            event,
            primitive_count=len(self._primitives),
            conditional_count=len(self._conditionals),
            unconditional_entities=unconditional_count,
            total_entities=len(contexts),
        )
        return contexts

    def __len__(self) -> int:
        return len(self._primitives) + len(self._conditionals)


def global_contexts() -> GlobalContexts:
    """Create an empty registry."""
    return GlobalContexts()
