"""Tests for the trackercore CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from trackercore.cli import main

MANIFEST_YAML = """\
manifest_version: "1"
contexts:
  - entity:
      sc: iglu:com.acme/service/jsonschema/1-0-0
      dt: {name: checkout}
  - entity:
      sc: iglu:com.acme/experiment/jsonschema/1-0-0
      dt: {variant: b}
    accept: "iglu:com.acme/*/jsonschema/*-*-*"
"""

SERVICE = {"sc": "iglu:com.acme/service/jsonschema/1-0-0", "dt": {"name": "checkout"}}
EXPERIMENT = {"sc": "iglu:com.acme/experiment/jsonschema/1-0-0", "dt": {"variant": "b"}}


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def manifest_file(tmp_path: Path) -> Path:
    path = tmp_path / "contexts.yaml"
    path.write_text(MANIFEST_YAML, encoding="utf-8")
    return path


class TestRuleCommands:
    def test_validate_valid(self, runner):
        result = runner.invoke(main, ["rule", "validate", "iglu:com.acme.*/*/jsonschema/1-*-*"])
        assert result.exit_code == 0
        assert "Valid rule" in result.output

    def test_validate_invalid_vendor(self, runner):
        result = runner.invoke(main, ["rule", "validate", "iglu:com.*.acme/*/jsonschema/1-*-*"])
        assert result.exit_code == 1
        assert "Invalid rule" in result.output
        assert "Vendor wildcards" in result.output

    def test_parse(self, runner):
        result = runner.invoke(main, ["rule", "parse", "iglu:com.acme/checkout/jsonschema/1-0-2"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "vendor": "com.acme",
            "name": "checkout",
            "format": "jsonschema",
            "model": 1,
            "revision": 0,
            "addition": 2,
        }

    def test_parse_malformed(self, runner):
        result = runner.invoke(main, ["rule", "parse", "iglu:com.acme/checkout"])
        assert result.exit_code == 1

    def test_match(self, runner):
        result = runner.invoke(
            main,
            [
                "rule",
                "match",
                "com.acme.*/event_x/jsonschema/1-*-*",
                "com.acme.sub/event_x/jsonschema/1-0-2",
            ],
        )
        assert result.exit_code == 0

    def test_no_match(self, runner):
        result = runner.invoke(
            main,
            [
                "rule",
                "match",
                "com.acme.*/event_x/jsonschema/1-*-*",
                "com.other/event_x/jsonschema/1-0-0",
            ],
        )
        assert result.exit_code == 1
        assert "does not match" in result.output

    def test_match_set_reject_wins(self, runner):
        schema = "iglu:com.acme/heartbeat/jsonschema/1-0-0"
        accepted = runner.invoke(
            main, ["rule", "match-set", schema, "--accept", "iglu:com.acme/*/jsonschema/*-*-*"]
        )
        rejected = runner.invoke(
            main,
            [
                "rule",
                "match-set",
                schema,
                "--accept",
                "iglu:com.acme/*/jsonschema/*-*-*",
                "--reject",
                "iglu:com.acme/heartbeat/jsonschema/*-*-*",
            ],
        )
        assert accepted.exit_code == 0
        assert rejected.exit_code == 1


class TestContextsCommands:
    def test_validate(self, runner, manifest_file):
        result = runner.invoke(main, ["contexts", "validate", "--path", str(manifest_file)])
        assert result.exit_code == 0
        assert "2 contexts, 1 conditional" in result.output

    def test_validate_invalid(self, runner, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("contexts:\n  - entity: {sc: x, dt: {}}\n", encoding="utf-8")
        result = runner.invoke(main, ["contexts", "validate", "--path", str(path)])
        assert result.exit_code == 1

    def test_resolve_matching_schema(self, runner, manifest_file):
        result = runner.invoke(
            main,
            [
                "contexts",
                "resolve",
                "--path",
                str(manifest_file),
                "--schema",
                "iglu:com.acme/checkout/jsonschema/1-0-0",
            ],
        )
        assert result.exit_code == 0
        assert json.loads(result.output) == [SERVICE, EXPERIMENT]

    def test_resolve_page_view(self, runner, manifest_file):
        result = runner.invoke(
            main, ["contexts", "resolve", "--path", str(manifest_file), "--event-type", "pv"]
        )
        assert result.exit_code == 0
        assert json.loads(result.output) == [SERVICE]

    def test_missing_manifest(self, runner, tmp_path):
        result = runner.invoke(
            main, ["contexts", "resolve", "--path", str(tmp_path / "missing.yaml")]
        )
        assert result.exit_code == 2
