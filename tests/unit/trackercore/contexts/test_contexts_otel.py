"""Tests for OTel span event emission helpers for context resolution."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from trackercore.contexts.otel import emit_contexts_resolved, emit_plugin_context_failure
from trackercore.contexts.primitives import ContextEvent


class TestEmitContextsResolved:
    def test_emits_correct_event(self, mock_otel):
        event = ContextEvent(
            event={"e": "ue"},
            event_type="ue",
            event_schema="iglu:com.acme/checkout/jsonschema/1-0-0",
        )
        emit_contexts_resolved(
            event,
            primitive_count=2,
            conditional_count=3,
            unconditional_entities=2,
            total_entities=5,
        )
        mock_otel.add_event.assert_called_once()
        call_args = mock_otel.add_event.call_args
        assert call_args.kwargs["name"] == "contexts.resolved"
        attrs = call_args.kwargs["attributes"]
        assert attrs["contexts.event_type"] == "ue"
        assert attrs["contexts.event_schema"] == "iglu:com.acme/checkout/jsonschema/1-0-0"
        assert attrs["contexts.primitives"] == 2
        assert attrs["contexts.conditionals"] == 3
        assert attrs["contexts.conditional_entities"] == 3
        assert attrs["contexts.total_entities"] == 5

    def test_no_event_when_span_not_recording(self, mock_otel):
        mock_otel.is_recording.return_value = False
        emit_contexts_resolved(
            ContextEvent(event={}),
            primitive_count=0,
            conditional_count=0,
            unconditional_entities=0,
            total_entities=0,
        )
        mock_otel.add_event.assert_not_called()


class TestEmitPluginContextFailure:
    def test_emits_correct_event(self, mock_otel):
        emit_plugin_context_failure("consent", ValueError("bad consent state"))
        call_args = mock_otel.add_event.call_args
        assert call_args.kwargs["name"] == "contexts.plugin_failed"
        attrs = call_args.kwargs["attributes"]
        assert attrs == {
            "contexts.plugin": "consent",
            "contexts.error_type": "ValueError",
            "contexts.error": "bad consent state",
        }

    def test_logs_warning(self, caplog):
        with patch("trackercore._otel_helpers.otel_trace") as mock_trace:
            mock_trace.get_current_span.return_value = MagicMock()
            with caplog.at_level("WARNING", logger="trackercore.contexts.otel"):
                emit_plugin_context_failure("consent", RuntimeError("boom"))
        assert "consent" in caplog.text
        assert "boom" in caplog.text
