"""Tests for plugin context aggregation."""

from __future__ import annotations

from unittest.mock import patch

from trackercore.contexts.plugins import CorePlugin, plugin_contexts, plugin_name


class NamedPlugin:
    name = "named"

    def __init__(self, entities):
        self._entities = entities

    def contexts(self):
        return self._entities


class TestAddPluginContexts:
    def test_plugin_output_then_additional(self, entity_a, entity_b, entity_c):
        plugins = [
            CorePlugin(contexts=lambda: [entity_a]),
            NamedPlugin([entity_b]),
        ]
        assert plugin_contexts(plugins).add_plugin_contexts([entity_c]) == [
            entity_a,
            entity_b,
            entity_c,
        ]

    def test_no_plugins(self, entity_a):
        assert plugin_contexts([]).add_plugin_contexts([entity_a]) == [entity_a]
        assert plugin_contexts([]).add_plugin_contexts() == []

    def test_plugins_without_hook_are_skipped(self, entity_a):
        plugins = [CorePlugin(), object(), CorePlugin(contexts=lambda: [entity_a])]
        assert plugin_contexts(plugins).add_plugin_contexts() == [entity_a]

    def test_single_entity_is_wrapped(self, entity_a):
        plugins = [CorePlugin(contexts=lambda: entity_a)]
        assert plugin_contexts(plugins).add_plugin_contexts() == [entity_a]

    def test_empty_and_non_list_output_ignored(self, entity_a):
        plugins = [
            CorePlugin(contexts=lambda: None),
            CorePlugin(contexts=lambda: []),
            CorePlugin(contexts=lambda: "junk"),
            CorePlugin(contexts=lambda: [entity_a]),
        ]
        assert plugin_contexts(plugins).add_plugin_contexts() == [entity_a]

    def test_malformed_items_dropped(self, entity_a, entity_b):
        plugins = [
            CorePlugin(
                contexts=lambda: [entity_a, {"sc": "iglu:com.acme/x/jsonschema/1-0-0"}, "junk", entity_b]
            )
        ]
        assert plugin_contexts(plugins).add_plugin_contexts() == [entity_a, entity_b]

    def test_failing_hook_contributes_nothing(self, entity_a, entity_b):
        def boom():
            raise RuntimeError("plugin failed")

        plugins = [
            CorePlugin(contexts=boom, name="broken"),
            CorePlugin(contexts=lambda: [entity_a]),
        ]
        with patch("trackercore.contexts.plugins.LOG") as mock_log:
            result = plugin_contexts(plugins).add_plugin_contexts([entity_b])

        assert result == [entity_a, entity_b]
        mock_log.error.assert_called_once()
        assert mock_log.error.call_args.args[0] == "Error adding plugin contexts"

    def test_failure_emits_span_event(self, mock_otel):
        def boom():
            raise RuntimeError("plugin failed")

        with patch("trackercore.contexts.plugins.LOG"):
            plugin_contexts([CorePlugin(contexts=boom, name="broken")]).add_plugin_contexts()

        call_args = mock_otel.add_event.call_args
        assert call_args.kwargs["name"] == "contexts.plugin_failed"
        attrs = call_args.kwargs["attributes"]
        assert attrs["contexts.plugin"] == "broken"
        assert attrs["contexts.error_type"] == "RuntimeError"

    def test_sees_plugins_added_later(self, entity_a):
        plugins = []
        aggregator = plugin_contexts(plugins)
        plugins.append(CorePlugin(contexts=lambda: [entity_a]))
        assert aggregator.add_plugin_contexts() == [entity_a]


class TestPluginName:
    def test_name_attribute(self):
        assert plugin_name(CorePlugin(name="consent")) == "consent"
        assert plugin_name(NamedPlugin([])) == "named"

    def test_falls_back_to_type_name(self):
        assert plugin_name(object()) == "object"
