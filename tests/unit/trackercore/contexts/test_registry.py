"""Tests for the global context registry."""

from __future__ import annotations

import copy

import pytest

from trackercore.contexts.registry import GlobalContexts, global_contexts
from trackercore.events import (
    PageViewEvent,
    SelfDescribingEvent,
    build_page_view,
    build_self_describing_event,
)

ACME_RULES = {"accept": "com.acme/*/jsonschema/*-*-*"}


@pytest.fixture
def registry() -> GlobalContexts:
    return global_contexts()


@pytest.fixture
def acme_pb(acme_event):
    return build_self_describing_event(SelfDescribingEvent(event=acme_event))


@pytest.fixture
def other_pb(other_event):
    return build_self_describing_event(SelfDescribingEvent(event=other_event))


class TestAddGlobalContexts:
    def test_classifies_inputs(self, registry, entity_a, entity_b):
        generator = lambda: entity_b  # noqa: E731
        predicate = lambda e: True  # noqa: E731
        registry.add_global_contexts(
            [entity_a, generator, (predicate, entity_a), [ACME_RULES, [entity_b]]]
        )
        assert registry.get_global_primitives() == [entity_a, generator]
        conditionals = registry.get_conditional_providers()
        assert conditionals[0] == (predicate, [entity_a])
        assert conditionals[1][0]["accept"] == ["com.acme/*/jsonschema/*-*-*"]
        assert conditionals[1][1] == [entity_b]
        assert len(registry) == 4

    def test_discards_invalid(self, registry, entity_a):
        registry.add_global_contexts(
            ["junk", {"sc": "x"}, ({"accept": "bad"}, entity_a), (lambda a, b: True, entity_a)]
        )
        assert len(registry) == 0

    def test_registries_are_independent(self, entity_a):
        first, second = global_contexts(), global_contexts()
        first.add_global_contexts([entity_a])
        assert len(second) == 0


class TestRemoveGlobalContexts:
    def test_added_twice_removed_once_leaves_one(self, registry, entity_a):
        registry.add_global_contexts([entity_a])
        registry.add_global_contexts([entity_a])
        registry.remove_global_contexts([entity_a])
        assert registry.get_global_primitives() == [entity_a]

    def test_added_once_removed_once(self, registry, entity_a):
        registry.add_global_contexts([entity_a])
        registry.remove_global_contexts([copy.deepcopy(entity_a)])
        assert registry.get_global_primitives() == []

    def test_removes_first_match_only(self, registry, entity_a, entity_b):
        registry.add_global_contexts([entity_a, entity_b, entity_a])
        registry.remove_global_contexts([entity_a])
        assert registry.get_global_primitives() == [entity_b, entity_a]

    def test_generators_removed_by_identity(self, registry, entity_a):
        def make():
            return lambda: entity_a

        generator = make()
        registry.add_global_contexts([generator])
        registry.remove_global_contexts([make()])
        assert len(registry) == 1
        registry.remove_global_contexts([generator])
        assert len(registry) == 0

    def test_conditional_requires_both_parts(self, registry, entity_a, entity_b):
        predicate = lambda e: True  # noqa: E731
        registry.add_global_contexts([(predicate, entity_a), [ACME_RULES, entity_b]])

        registry.remove_global_contexts([(predicate, entity_b)])
        registry.remove_global_contexts([[{"accept": "com.other/*/jsonschema/*-*-*"}, entity_b]])
        assert len(registry) == 2

        registry.remove_global_contexts([(predicate, copy.deepcopy(entity_a))])
        registry.remove_global_contexts([[dict(ACME_RULES), [copy.deepcopy(entity_b)]]])
        assert len(registry) == 0

    def test_missing_entry_is_ignored(self, registry, entity_a, entity_b):
        registry.add_global_contexts([entity_a])
        registry.remove_global_contexts([entity_b, "junk"])
        assert registry.get_global_primitives() == [entity_a]


class TestClearGlobalContexts:
    def test_clear(self, registry, entity_a):
        registry.add_global_contexts([entity_a, (lambda e: True, entity_a)])
        registry.clear_global_contexts()
        assert registry.get_global_primitives() == []
        assert registry.get_conditional_providers() == []


class TestGetApplicableContexts:
    def test_unconditional_before_conditional(self, registry, acme_pb, entity_a, entity_b, entity_c):
        registry.add_global_contexts([(lambda e: True, entity_c)])
        registry.add_global_contexts([entity_a])
        registry.add_global_contexts([[ACME_RULES, entity_b]])
        registry.add_global_contexts([lambda: entity_b])
        assert registry.get_applicable_contexts(acme_pb) == [entity_a, entity_b, entity_c, entity_b]

    def test_filter_always_and_never(self, registry, acme_pb, other_pb, entity_a, entity_b):
        registry.add_global_contexts([(lambda e: True, entity_a), (lambda e: False, entity_b)])
        assert registry.get_applicable_contexts(acme_pb) == [entity_a]
        assert registry.get_applicable_contexts(other_pb) == [entity_a]

    def test_rule_set_provider_by_vendor(self, registry, acme_pb, other_pb, entity_b):
        registry.add_global_contexts([[ACME_RULES, entity_b]])
        assert registry.get_applicable_contexts(acme_pb) == [entity_b]
        assert registry.get_applicable_contexts(other_pb) == []
        pv = build_page_view(PageViewEvent(page_url="https://acme.test"))
        assert registry.get_applicable_contexts(pv) == []

    def test_no_deduplication(self, registry, acme_pb, entity_a):
        registry.add_global_contexts([entity_a, [ACME_RULES, copy.deepcopy(entity_a)]])
        assert registry.get_applicable_contexts(acme_pb) == [entity_a, entity_a]

    def test_generators_receive_event(self, registry, acme_pb, entity_a):
        seen = []

        def generator(event):
            seen.append((event.event_type, event.event_schema))
            return entity_a

        registry.add_global_contexts([generator])
        registry.get_applicable_contexts(acme_pb)
        assert seen == [("ue", "iglu:com.acme/checkout/jsonschema/1-0-2")]

    def test_emits_span_event(self, registry, acme_pb, entity_a, entity_b, mock_otel):
        registry.add_global_contexts([entity_a, [ACME_RULES, entity_b]])
        registry.get_applicable_contexts(acme_pb)
        call_args = mock_otel.add_event.call_args
        assert call_args.kwargs["name"] == "contexts.resolved"
        attrs = call_args.kwargs["attributes"]
        assert attrs["contexts.event_type"] == "ue"
        assert attrs["contexts.unconditional_entities"] == 1
        assert attrs["contexts.conditional_entities"] == 1
        assert attrs["contexts.total_entities"] == 2
