"""
Schema rule CLI commands.

Usage:
    trackercore rule validate "iglu:com.acme.*/*/jsonschema/1-*-*"
    trackercore rule parse "iglu:com.acme/checkout/jsonschema/1-0-2"
    trackercore rule match "iglu:com.acme.*/*/jsonschema/*-*-*" "iglu:com.acme.web/click/jsonschema/1-0-0"
    trackercore rule match-set "iglu:com.acme/click/jsonschema/1-0-0" --accept "iglu:com.acme/*/jsonschema/*-*-*"
"""

import json
import sys

import click

from trackercore.contexts.rules import (
    get_rule_parts,
    match_schema_against_rule,
    match_schema_against_rule_set,
    validate_vendor,
)
from trackercore.contexts.schema import parse_schema


@click.group()
def rule():
    """Schema rule tooling."""
    pass


@rule.command()
@click.argument("rule_string", metavar="RULE")
def validate(rule_string: str):
    """Check that RULE is a valid schema rule."""
    parts = get_rule_parts(rule_string)
    if parts is not None:
        click.echo(f"✓ Valid rule: {rule_string}")
        sys.exit(0)

    click.echo(f"✗ Invalid rule: {rule_string}")
    vendor = rule_string.split("/", 1)[0].removeprefix("iglu:")
    if vendor and not validate_vendor(vendor):
        click.echo(f"  ✗ Vendor wildcards must run to the end: {vendor}")
    sys.exit(1)


@rule.command()
@click.argument("schema")
def parse(schema: str):
    """Print the parts of SCHEMA as JSON."""
    identifier = parse_schema(schema)
    if identifier is None:
        click.echo(f"✗ Not a schema identifier: {schema}", err=True)
        sys.exit(1)
    click.echo(json.dumps(identifier.model_dump(), indent=2))


@rule.command()
@click.argument("rule_string", metavar="RULE")
@click.argument("schema")
def match(rule_string: str, schema: str):
    """Exit 0 if SCHEMA matches RULE, 1 otherwise."""
    if match_schema_against_rule(rule_string, schema):
        click.echo(f"✓ {schema} matches {rule_string}")
        sys.exit(0)
    click.echo(f"✗ {schema} does not match {rule_string}")
    sys.exit(1)


@rule.command("match-set")
@click.argument("schema")
@click.option("--accept", "-a", multiple=True, help="Accept rule (repeatable)")
@click.option("--reject", "-r", multiple=True, help="Reject rule (repeatable)")
def match_set(schema: str, accept: tuple[str, ...], reject: tuple[str, ...]):
    """Exit 0 if the accept/reject rule set admits SCHEMA, 1 otherwise."""
    rule_set = {"accept": list(accept), "reject": list(reject)}
    if match_schema_against_rule_set(rule_set, schema):
        click.echo(f"✓ {schema} accepted")
        sys.exit(0)
    click.echo(f"✗ {schema} rejected")
    sys.exit(1)
