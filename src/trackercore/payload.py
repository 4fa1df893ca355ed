"""
Payload builder.

A ``PayloadBuilder`` accumulates one event's payload in two phases:

- *immediate* key/value pairs, stored as they are added;
- *deferred* JSON blobs and context entities, cached until ``build()``
  so the base64 decision is taken exactly once, by the installed JSON
  processor.

A builder is ``Open`` until ``build()`` and ``Built`` afterwards.  Repeat
calls to ``build()`` return copies of the payload materialised by the first
call; any mutation after that raises ``PayloadAlreadyBuiltError``.

Usage::

    from trackercore.payload import payload_builder, payload_json_processor

    pb = payload_builder()
    pb.add("e", "ue")
    pb.add_json("ue_px", "ue_pr", {"sc": "...", "dt": {...}})
    pb.with_json_processor(payload_json_processor(encode_base64=True))
    payload = pb.build()
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from trackercore.contexts.primitives import is_json, is_non_empty_json
from trackercore.contexts.schema import CONTEXTS_SCHEMA
from trackercore.errors import PayloadAlreadyBuiltError
from trackercore.otel import emit_payload_built

logger = logging.getLogger(__name__)

# Payload keys for the context entity array
CONTEXT_KEY_ENCODED = "cx"
CONTEXT_KEY_NOT_ENCODED = "co"

__all__ = [
    "CONTEXT_KEY_ENCODED",
    "CONTEXT_KEY_NOT_ENCODED",
    "EventJson",
    "JsonProcessor",
    "PayloadBuilder",
    "base64url_decode",
    "base64url_encode",
    "is_json",
    "is_non_empty_json",
    "payload_builder",
    "payload_json_processor",
]


@dataclass(frozen=True)
class EventJson:
    """Unprocessed JSON awaiting the build-time encoding decision."""

    key_if_encoded: str
    key_if_not_encoded: str
    json: dict[str, Any]


JsonProcessor = Callable[["PayloadBuilder", list[EventJson], list[dict[str, Any]]], None]


class PayloadBuilder:
    """Mutable accumulator for a single event's payload."""

    def __init__(self) -> None:
        self._payload: dict[str, Any] = {}
        self._json: list[EventJson] = []
        self._context_entities: list[dict[str, Any]] = []
        self._processor: Optional[JsonProcessor] = None
        self._built: Optional[dict[str, Any]] = None

    def _check_open(self, operation: str) -> None:
        if self._built is not None:
            raise PayloadAlreadyBuiltError(operation)

    def add(self, key: str, value: Any) -> None:
        """Set *key*, replacing any previous value; ``None`` is ignored."""
        self._check_open("add")
        if value is None:
            return
        self._payload[key] = value

    def add_dict(self, values: dict[str, Any]) -> None:
        for key, value in values.items():
            self.add(key, value)

    def add_json(
        self, key_if_encoded: str, key_if_not_encoded: str, json: dict[str, Any]
    ) -> None:
        """Cache a JSON object to be stringified (and maybe encoded) on build.

        Empty or non-object JSON is ignored.
        """
        self._check_open("add_json")
        if not is_non_empty_json(json):
            logger.debug("Ignoring empty JSON for %s/%s", key_if_encoded, key_if_not_encoded)
            return
        self._json.append(EventJson(key_if_encoded, key_if_not_encoded, json))

    def add_context_entity(self, entity: dict[str, Any]) -> None:
        self._check_open("add_context_entity")
        self._context_entities.append(entity)

    def get_payload(self) -> dict[str, Any]:
        """The current immediate pairs (a copy of the final payload once built)."""
        if self._built is not None:
            return dict(self._built)
        return self._payload

    def get_json(self) -> list[EventJson]:
        return list(self._json)

    def get_context_entities(self) -> list[dict[str, Any]]:
        return list(self._context_entities)

    def with_json_processor(self, processor: JsonProcessor) -> None:
        """Install the processor run by ``build()``; the last call wins."""
        self._check_open("with_json_processor")
        self._processor = processor

    @property
    def is_built(self) -> bool:
        return self._built is not None

    def build(self) -> dict[str, Any]:
        """Process deferred content once and return a copy of the final payload."""
        if self._built is not None:
            return dict(self._built)

        if self._processor is not None:
            self._processor(self, list(self._json), list(self._context_entities))

        self._built = dict(self._payload)
        emit_payload_built(
            key_count=len(self._built),
            json_count=len(self._json),
            context_count=len(self._context_entities),
            processed=self._processor is not None,
        )
        return dict(self._built)


def payload_builder() -> PayloadBuilder:
    return PayloadBuilder()


# ---------------------------------------------------------------------------
# JSON processing
# ---------------------------------------------------------------------------


def base64url_encode(data: str) -> str:
    """URL-safe base64 of the UTF-8 bytes of *data*, without padding."""
    return base64.urlsafe_b64encode(data.encode("utf-8")).decode("ascii").rstrip("=")


def base64url_decode(data: str) -> str:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding).decode("utf-8")


def _stringify(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _entity_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def payload_json_processor(encode_base64: bool) -> JsonProcessor:
    """Create a processor that serialises deferred JSON onto the builder.

    Each deferred blob is stringified and added under ``key_if_encoded``
    (base64url) or ``key_if_not_encoded`` (plain).  All context entities,
    together with any deferred ``cx`` entry and any context already on the
    payload, are merged into one contexts array document.
    """

    def add(builder: PayloadBuilder, value: Any, key_if_encoded: str, key_if_not_encoded: str) -> None:
        text = _stringify(value)
        if encode_base64:
            builder.add(key_if_encoded, base64url_encode(text))
        else:
            builder.add(key_if_not_encoded, text)

    def context_from_payload(builder: PayloadBuilder) -> Optional[dict[str, Any]]:
        payload = builder.get_payload()
        existing = payload.get(CONTEXT_KEY_ENCODED if encode_base64 else CONTEXT_KEY_NOT_ENCODED)
        if not isinstance(existing, str):
            return None
        try:
            decoded = base64url_decode(existing) if encode_base64 else existing
            parsed = json.loads(decoded)
        except (ValueError, binascii.Error) as exc:
            logger.warning("Discarding unreadable context already on the payload: %s", exc)
            return None
        return parsed if is_json(parsed) else None

    def combine(
        builder: PayloadBuilder,
        original: Optional[dict[str, Any]],
        new: dict[str, Any],
    ) -> dict[str, Any]:
        context = original if original is not None else context_from_payload(builder)
        entities = _entity_list(new.get("dt"))
        if context is None:
            return {"sc": new.get("sc", CONTEXTS_SCHEMA), "dt": entities}
        context["dt"] = _entity_list(context.get("dt")) + entities
        return context

    def process(
        builder: PayloadBuilder,
        json_for_processing: list[EventJson],
        context_entities: list[dict[str, Any]],
    ) -> None:
        context: Optional[dict[str, Any]] = None
        for entry in json_for_processing:
            if entry.key_if_encoded == CONTEXT_KEY_ENCODED:
                context = combine(builder, context, entry.json)
            else:
                add(builder, entry.json, entry.key_if_encoded, entry.key_if_not_encoded)

        if context_entities:
            context = combine(builder, context, {"sc": CONTEXTS_SCHEMA, "dt": context_entities})

        if context is not None:
            add(builder, context, CONTEXT_KEY_ENCODED, CONTEXT_KEY_NOT_ENCODED)

    return process
