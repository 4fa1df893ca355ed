"""
Event builders.

Each ``build_*`` function maps a simple event object onto a fresh
``PayloadBuilder`` ready to be passed to ``TrackerCore.track()``.
Self-describing events are cached as deferred JSON (``ue_px``/``ue_pr``)
so their encoding is decided when the payload is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from trackercore.contexts.schema import UNSTRUCT_EVENT_SCHEMA
from trackercore.payload import PayloadBuilder, payload_builder

LINK_CLICK_SCHEMA = "iglu:com.snowplowanalytics.snowplow/link_click/jsonschema/1-0-1"
BUTTON_CLICK_SCHEMA = "iglu:com.snowplowanalytics.snowplow/button_click/jsonschema/1-0-0"
CUSTOM_EVENT_SCHEMA = "iglu:com.snowplowanalytics.snowplow/custom_event/jsonschema/1-0-0"
APPLICATION_BACKGROUND_SCHEMA = (
    "iglu:com.snowplowanalytics.snowplow/application_background/jsonschema/1-0-0"
)
APPLICATION_FOREGROUND_SCHEMA = (
    "iglu:com.snowplowanalytics.snowplow/application_foreground/jsonschema/1-0-0"
)
NETWORK_REQUEST_SCHEMA = "iglu:com.conviva/network_request/jsonschema/1-0-0"
DIAGNOSTIC_INFO_SCHEMA = "iglu:com.conviva/diagnostic_info/jsonschema/1-0-0"


# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------


@dataclass
class SelfDescribingEvent:
    """An event tracked against a custom schema."""

    event: dict[str, Any]  # {"sc": ..., "dt": {...}}


@dataclass
class PageViewEvent:
    page_url: Optional[str] = None
    page_title: Optional[str] = None
    referrer: Optional[str] = None


@dataclass
class PagePingEvent(PageViewEvent):
    min_x_offset: Optional[float] = None
    max_x_offset: Optional[float] = None
    min_y_offset: Optional[float] = None
    max_y_offset: Optional[float] = None


@dataclass
class StructuredEvent:
    category: str
    action: str
    label: Optional[str] = None
    property: Optional[str] = None
    value: Optional[float] = None


@dataclass
class CustomEvent:
    name: str
    data: Any = None


@dataclass
class NetworkRequestEvent:
    """One completed HTTP request made by the instrumented application."""

    target_url: str
    method: Optional[str] = None
    content_type: Optional[str] = None
    query_parameters: Optional[str] = None
    response_status_code: Optional[int] = None
    response_status_text: Optional[str] = None
    request_body: Any = None
    response_body: Any = None
    request_headers: Any = None
    response_headers: Any = None
    request_timestamp: Optional[int] = None
    response_timestamp: Optional[int] = None
    web_resource_timing: Any = None
    duration: Optional[float] = None
    request_size: Optional[int] = None
    response_size: Optional[int] = None


@dataclass
class LinkClickEvent:
    target_url: str
    element_id: Optional[str] = None
    element_classes: list[str] = field(default_factory=list)
    element_target: Optional[str] = None
    element_content: Optional[str] = None


@dataclass
class ButtonClickEvent:
    element_type: str
    element_id: Optional[str] = None
    element_classes: Optional[str] = None
    element_name: Optional[str] = None
    element_text: Optional[str] = None
    element_value: Optional[str] = None


@dataclass
class ApplicationBackgroundEvent:
    background_index: int


@dataclass
class ApplicationForegroundEvent:
    foreground_index: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def remove_empty_properties(
    event: dict[str, Any], exempt_fields: Optional[dict[str, bool]] = None
) -> dict[str, Any]:
    """Return a copy of *event* without ``None`` values.

    Keys flagged in *exempt_fields* are kept even when ``None``.
    """
    exempt_fields = exempt_fields or {}
    return {
        key: value
        for key, value in event.items()
        if exempt_fields.get(key) or value is not None
    }


def _round_offset(value: Optional[float]) -> Optional[str]:
    return None if value is None else str(round(value))


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_self_describing_event(event: SelfDescribingEvent) -> PayloadBuilder:
    pb = payload_builder()
    pb.add("e", "ue")
    pb.add_json("ue_px", "ue_pr", {"sc": UNSTRUCT_EVENT_SCHEMA, "dt": event.event})
    return pb


def build_page_view(event: PageViewEvent) -> PayloadBuilder:
    pb = payload_builder()
    pb.add("e", "pv")
    pb.add("url", event.page_url)
    pb.add("page", event.page_title)
    pb.add("refr", event.referrer)
    return pb


def build_page_ping(event: PagePingEvent) -> PayloadBuilder:
    pb = payload_builder()
    pb.add("e", "pp")
    pb.add("url", event.page_url)
    pb.add("page", event.page_title)
    pb.add("refr", event.referrer)
    pb.add("pp_mix", _round_offset(event.min_x_offset))
    pb.add("pp_max", _round_offset(event.max_x_offset))
    pb.add("pp_miy", _round_offset(event.min_y_offset))
    pb.add("pp_may", _round_offset(event.max_y_offset))
    return pb


def build_struct_event(event: StructuredEvent) -> PayloadBuilder:
    pb = payload_builder()
    pb.add("e", "se")
    pb.add("se_ca", event.category)
    pb.add("se_ac", event.action)
    pb.add("se_la", event.label)
    pb.add("se_pr", event.property)
    pb.add("se_va", None if event.value is None else str(event.value))
    return pb


def build_custom_event(event: CustomEvent) -> PayloadBuilder:
    return build_self_describing_event(
        SelfDescribingEvent(
            event={
                "sc": CUSTOM_EVENT_SCHEMA,
                "dt": remove_empty_properties({"name": event.name, "data": event.data}),
            }
        )
    )


def build_link_click(event: LinkClickEvent) -> PayloadBuilder:
    data = remove_empty_properties(
        {
            "targetUrl": event.target_url,
            "elementId": event.element_id,
            "elementClasses": event.element_classes or None,
            "elementTarget": event.element_target,
            "elementContent": event.element_content,
        }
    )
    return build_self_describing_event(
        SelfDescribingEvent(event={"sc": LINK_CLICK_SCHEMA, "dt": data})
    )


def build_button_click(event: ButtonClickEvent) -> PayloadBuilder:
    data = remove_empty_properties(
        {
            "elementType": event.element_type,
            "elementId": event.element_id,
            "elementClasses": event.element_classes,
            "elementName": event.element_name,
            "elementText": event.element_text,
            "elementValue": event.element_value,
        }
    )
    return build_self_describing_event(
        SelfDescribingEvent(event={"sc": BUTTON_CLICK_SCHEMA, "dt": data})
    )


def build_application_background_event(event: ApplicationBackgroundEvent) -> PayloadBuilder:
    return build_self_describing_event(
        SelfDescribingEvent(
            event={
                "sc": APPLICATION_BACKGROUND_SCHEMA,
                "dt": {"backgroundIndex": event.background_index},
            }
        )
    )


def build_application_foreground_event(event: ApplicationForegroundEvent) -> PayloadBuilder:
    return build_self_describing_event(
        SelfDescribingEvent(
            event={
                "sc": APPLICATION_FOREGROUND_SCHEMA,
                "dt": {"foregroundIndex": event.foreground_index},
            }
        )
    )


def build_network_request_event(event: NetworkRequestEvent) -> PayloadBuilder:
    # Bodies and headers use the short collector attribute names
    data = remove_empty_properties(
        {
            "targetUrl": event.target_url,
            "method": event.method,
            "contentType": event.content_type,
            "queryParameters": event.query_parameters,
            "responseStatusCode": event.response_status_code,
            "responseStatusText": event.response_status_text,
            "rqb": event.request_body,
            "rsb": event.response_body,
            "rqh": event.request_headers,
            "rsh": event.response_headers,
            "requestTimestamp": event.request_timestamp,
            "responseTimestamp": event.response_timestamp,
            "webResourceTiming": event.web_resource_timing,
            "duration": event.duration,
            "requestSize": event.request_size,
            "responseSize": event.response_size,
        }
    )
    return build_self_describing_event(
        SelfDescribingEvent(event={"sc": NETWORK_REQUEST_SCHEMA, "dt": data})
    )


def build_diagnostic_info_event(event: dict[str, Any]) -> PayloadBuilder:
    """Wrap free-form diagnostic data; ``None`` values are dropped."""
    return build_self_describing_event(
        SelfDescribingEvent(
            event={"sc": DIAGNOSTIC_INFO_SCHEMA, "dt": remove_empty_properties(dict(event))}
        )
    )
