"""
Schema identifier parsing and rule matching.

Schema strings identify the JSON schema a self-describing document
conforms to::

    iglu:com.acme.marketing/link_click/jsonschema/1-0-2
         ^vendor            ^name      ^format    ^model-revision-addition

The format is always the literal ``jsonschema``.  Rules have the same
shape, but the name, each version number and any dot-separated segment of
the vendor may be the wildcard ``*``.  Vendor wildcards must run to the
end of the vendor: ``com.acme.*`` is a rule, ``com.*.acme`` is not.  The
``iglu:`` prefix is optional for both schemas and rules.

Everything here is fail-soft: unparsable schemas and invalid rules yield
``None`` / ``False`` and never raise.

Usage::

    from trackercore.contexts.rules import match_schema_against_rule_set

    match_schema_against_rule_set(
        {"accept": "iglu:com.acme/*/jsonschema/1-*-*"},
        "iglu:com.acme/checkout/jsonschema/1-0-3",
    )  # True
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Optional

WILDCARD = "*"

_SEGMENT = r"[a-zA-Z0-9_-]+"
_VERSION = r"0|[1-9][0-9]*"
_FORMAT = "jsonschema"

# Matched with fullmatch(); no anchors needed
_SCHEMA_RE = re.compile(
    rf"(?:iglu:)?({_SEGMENT}(?:\.{_SEGMENT})*)"
    rf"/({_SEGMENT})/({_FORMAT})"
    rf"/({_VERSION})-({_VERSION})-({_VERSION})"
)

_RULE_SEGMENT = rf"(?:{_SEGMENT}|\*)"
_RULE_VERSION = rf"(?:{_VERSION}|\*)"

_RULE_RE = re.compile(
    rf"(?:iglu:)?({_RULE_SEGMENT}(?:\.{_RULE_SEGMENT})*)"
    rf"/({_RULE_SEGMENT})/({_FORMAT})"
    rf"/({_RULE_VERSION})-({_RULE_VERSION})-({_RULE_VERSION})"
)

RULE_SET_KEYS = frozenset({"accept", "reject"})


# ---------------------------------------------------------------------------
# Schema parsing
# ---------------------------------------------------------------------------


def get_schema_parts(input: Any) -> Optional[list[str]]:
    """Slice a schema string into its parts.

    Returns:
        ``[vendor, name, format, model, revision, addition]`` or ``None``
        when the string is not a well-formed schema identifier.
    """
    if not isinstance(input, str):
        return None
    match = _SCHEMA_RE.fullmatch(input)
    if match is None:
        return None
    return list(match.groups())


def validate_vendor_parts(parts: list[str]) -> bool:
    """Check that wildcard segments, once present, continue to the end."""
    if not parts:
        return False
    seen_wildcard = False
    for part in parts:
        if not part:
            return False
        if part == WILDCARD:
            seen_wildcard = True
        elif seen_wildcard:
            return False
    return True


def validate_vendor(input: str) -> bool:
    """Validate the vendor part of a rule.

    ``com.acme``, ``com.acme.*``, ``com.*.*`` and ``*`` are valid;
    ``com.*.acme`` and the empty string are not.
    """
    if not isinstance(input, str) or not input:
        return False
    return validate_vendor_parts(input.split("."))


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def get_rule_parts(input: Any) -> Optional[list[str]]:
    """Slice a rule string into its parts, or ``None`` if it is not a valid rule."""
    if not isinstance(input, str):
        return None
    match = _RULE_RE.fullmatch(input)
    if match is None or not validate_vendor(match.group(1)):
        return None
    return list(match.groups())


def is_valid_rule(input: Any) -> bool:
    return get_rule_parts(input) is not None


def is_string_array(input: Any) -> bool:
    """True for a list or tuple whose items are all strings."""
    return isinstance(input, (list, tuple)) and all(isinstance(x, str) for x in input)


def is_valid_rule_set_arg(input: Any) -> bool:
    """True for a single valid rule or a list of valid rules (possibly empty)."""
    if is_string_array(input):
        return all(is_valid_rule(rule) for rule in input)
    if isinstance(input, str):
        return is_valid_rule(input)
    return False


def is_rule_set(input: Any) -> bool:
    """Validate the shape of a rule set mapping.

    Only ``accept`` and ``reject`` keys are allowed, at least one must be
    present, and each present value must be a valid rule set argument.
    """
    if not isinstance(input, Mapping):
        return False
    keys = set(input.keys())
    if not keys or not keys <= RULE_SET_KEYS:
        return False
    return all(is_valid_rule_set_arg(input[key]) for key in keys)


def _match_part(rule_part: str, schema_part: str) -> bool:
    return rule_part == WILDCARD or rule_part == schema_part


def _match_vendor(rule_vendor: str, schema_vendor: str) -> bool:
    rule_parts = rule_vendor.split(".")
    schema_parts = schema_vendor.split(".")

    if rule_parts[-1] == WILDCARD:
        # Trailing wildcards absorb every remaining segment (at least one each)
        if len(schema_parts) < len(rule_parts):
            return False
        concrete = [part for part in rule_parts if part != WILDCARD]
        return schema_parts[: len(concrete)] == concrete

    return rule_parts == schema_parts


def match_schema_against_rule(rule: str, schema: str) -> bool:
    """Check whether *schema* matches a single *rule*.

    Fails closed: an invalid rule or an unparsable schema never matches.
    """
    rule_parts = get_rule_parts(rule)
    schema_parts = get_schema_parts(schema)
    if rule_parts is None or schema_parts is None:
        return False

    if not _match_vendor(rule_parts[0], schema_parts[0]):
        return False
    return all(
        _match_part(rule_part, schema_part)
        for rule_part, schema_part in zip(rule_parts[1:], schema_parts[1:])
    )


def _rules_for(rule_set: Any, key: str) -> list[str]:
    if isinstance(rule_set, Mapping):
        rules = rule_set.get(key)
    else:
        rules = getattr(rule_set, key, None)
    if rules is None:
        return []
    if isinstance(rules, str):
        return [rules]
    return list(rules)


def match_schema_against_rule_set(rule_set: Any, schema: str) -> bool:
    """Decide whether a rule set admits *schema*.

    Reject rules take precedence; absent an accepting rule the schema is
    denied.  *rule_set* may be a raw mapping or a ``RuleSet`` model.
    """
    if any(match_schema_against_rule(rule, schema) for rule in _rules_for(rule_set, "reject")):
        return False
    return any(
        match_schema_against_rule(rule, schema) for rule in _rules_for(rule_set, "accept")
    )
