"""
Context manifest CLI commands.

Usage:
    trackercore contexts validate --path contexts.yaml
    trackercore contexts resolve --path contexts.yaml --schema iglu:com.acme/checkout/jsonschema/1-0-0
"""

import json
import sys
from typing import Optional

import click
import yaml
from pydantic import ValidationError

from trackercore.contexts.loader import ContextManifestLoader
from trackercore.contexts.registry import global_contexts
from trackercore.events import SelfDescribingEvent, build_self_describing_event
from trackercore.payload import payload_builder


@click.group()
def contexts():
    """Context manifest commands."""
    pass


def _load(path: str):
    try:
        return ContextManifestLoader().load(path)
    except (TypeError, yaml.YAMLError, ValidationError) as e:
        click.echo(f"✗ Invalid manifest: {path}", err=True)
        click.echo(f"  ✗ Error: {e}", err=True)
        sys.exit(1)


@contexts.command()
@click.option(
    "--path",
    "-p",
    required=True,
    type=click.Path(exists=True),
    help="Path to the context manifest",
)
def validate(path: str):
    """Validate a context manifest."""
    manifest = _load(path)
    conditional = sum(1 for entry in manifest.contexts if entry.is_conditional)
    click.echo(
        f"✓ Valid manifest: {path} "
        f"({len(manifest.contexts)} contexts, {conditional} conditional)"
    )


@contexts.command()
@click.option(
    "--path",
    "-p",
    required=True,
    type=click.Path(exists=True),
    help="Path to the context manifest",
)
@click.option("--schema", "-s", default=None, help="Schema of a sample self-describing event")
@click.option("--event-type", "-e", default=None, help="Event type (e) of the sample event")
def resolve(path: str, schema: Optional[str], event_type: Optional[str]):
    """Print the entities the manifest attaches to a sample event."""
    manifest = _load(path)
    registry = global_contexts()
    manifest.apply(registry)

    if schema:
        pb = build_self_describing_event(SelfDescribingEvent(event={"sc": schema, "dt": {}}))
    else:
        pb = payload_builder()
    if event_type:
        pb.add("e", event_type)

    click.echo(json.dumps(registry.get_applicable_contexts(pb), indent=2))
