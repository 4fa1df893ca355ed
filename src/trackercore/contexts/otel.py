"""
OTel span event emission helpers for context resolution.

Usage::

    from trackercore.contexts.otel import emit_contexts_resolved

    emit_contexts_resolved(event, primitive_count=2, conditional_count=1,
                           unconditional_entities=2, total_entities=3)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from trackercore._otel_helpers import add_span_event

if TYPE_CHECKING:
    from trackercore.contexts.primitives import ContextEvent

logger = logging.getLogger(__name__)


def emit_contexts_resolved(
    event: "ContextEvent",
    primitive_count: int,
    conditional_count: int,
    unconditional_entities: int,
    total_entities: int,
) -> None:
    """Emit a span event summarising global context resolution.

    Event name: ``contexts.resolved``
    """
    attrs: dict[str, str | int | float | bool] = {
        "contexts.event_type": event.event_type,
        "contexts.event_schema": event.event_schema,
        "contexts.primitives": primitive_count,
        "contexts.conditionals": conditional_count,
        "contexts.unconditional_entities": unconditional_entities,
        "contexts.conditional_entities": total_entities - unconditional_entities,
        "contexts.total_entities": total_entities,
    }

    logger.debug(
        "Resolved global contexts: type=%s schema=%s entities=%d",
        event.event_type or "-",
        event.event_schema or "-",
        total_entities,
    )

    add_span_event("contexts.resolved", attrs)


def emit_plugin_context_failure(plugin_name: str, error: BaseException) -> None:
    """Emit a span event for a plugin ``contexts()`` hook that raised.

    Event name: ``contexts.plugin_failed``
    """
    attrs: dict[str, str | int | float | bool] = {
        "contexts.plugin": plugin_name,
        "contexts.error_type": type(error).__name__,
        "contexts.error": str(error),
    }

    logger.warning("Plugin %s contexts() hook failed: %s", plugin_name, error)

    add_span_event("contexts.plugin_failed", attrs)
