"""
OTel span event emission helpers for payload building and tracking.

Usage::

    from trackercore.otel import emit_payload_built, emit_event_tracked

    emit_payload_built(key_count=12, json_count=1, context_count=3, processed=True)
    emit_event_tracked(payload, context_count=3, base64=True)
"""

from __future__ import annotations

import logging
from typing import Any

from trackercore._otel_helpers import add_span_event

logger = logging.getLogger(__name__)


def emit_payload_built(
    key_count: int,
    json_count: int,
    context_count: int,
    processed: bool,
) -> None:
    """Emit a span event when a payload builder is finalised.

    Event name: ``payload.built``
    """
    attrs: dict[str, str | int | float | bool] = {
        "payload.keys": key_count,
        "payload.deferred_json": json_count,
        "payload.context_entities": context_count,
        "payload.processed": processed,
    }

    if (json_count or context_count) and not processed:
        logger.warning(
            "Payload built without a JSON processor: %d deferred JSON and "
            "%d context entities were not serialised",
            json_count,
            context_count,
        )

    add_span_event("payload.built", attrs)


def emit_event_tracked(payload: dict[str, Any], context_count: int, base64: bool) -> None:
    """Emit a span event when the tracker core finishes tracking an event.

    Event name: ``event.tracked``
    """
    attrs: dict[str, str | int | float | bool] = {
        "event.id": str(payload.get("eid", "")),
        "event.type": str(payload.get("e", "")),
        "event.context_entities": context_count,
        "event.base64": base64,
    }

    logger.debug(
        "Tracked event: eid=%s type=%s contexts=%d",
        attrs["event.id"],
        attrs["event.type"],
        context_count,
    )

    add_span_event("event.tracked", attrs)
