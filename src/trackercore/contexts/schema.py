"""
Pydantic v2 models for schema identifiers, rule sets and context entities.

``RuleSet`` is the validated form of the ``{accept, reject}`` mapping used
by rule-set context providers.  Both sides are normalised to lists and
every rule is checked against the rule grammar at construction time, so an
invalid rule can never reach the matcher.

All models use ``extra="forbid"`` to reject unknown keys at parse time.

Usage::

    from trackercore.contexts.schema import RuleSet

    rule_set = RuleSet.model_validate({"accept": "iglu:com.acme/*/jsonschema/*-*-*"})
    rule_set.matches("iglu:com.acme/checkout/jsonschema/1-0-0")  # True
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trackercore.contexts.rules import (
    get_schema_parts,
    is_rule_set,
    is_valid_rule,
    match_schema_against_rule_set,
)

# Wrapper schema for the array of context entities attached to an event
CONTEXTS_SCHEMA = "iglu:com.snowplowanalytics.snowplow/contexts/jsonschema/1-0-0"

# Wrapper schema for a self-describing event
UNSTRUCT_EVENT_SCHEMA = "iglu:com.snowplowanalytics.snowplow/unstruct_event/jsonschema/1-0-0"


# ---------------------------------------------------------------------------
# Schema identifiers
# ---------------------------------------------------------------------------


class SchemaIdentifier(BaseModel):
    """Structural decomposition of a schema string."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    vendor: str
    name: str
    format: str
    model: int
    revision: int
    addition: int

    @property
    def vendor_segments(self) -> tuple[str, ...]:
        return tuple(self.vendor.split("."))

    @property
    def version(self) -> str:
        return f"{self.model}-{self.revision}-{self.addition}"

    def to_uri(self) -> str:
        return f"iglu:{self.vendor}/{self.name}/{self.format}/{self.version}"


def parse_schema(input: Any) -> Optional[SchemaIdentifier]:
    """Parse a schema string, returning ``None`` when it is malformed."""
    parts = get_schema_parts(input)
    if parts is None:
        return None
    vendor, name, fmt, model, revision, addition = parts
    return SchemaIdentifier(
        vendor=vendor,
        name=name,
        format=fmt,
        model=int(model),
        revision=int(revision),
        addition=int(addition),
    )


# ---------------------------------------------------------------------------
# Rule sets
# ---------------------------------------------------------------------------


class RuleSet(BaseModel):
    """Accept/reject rule lists deciding whether a context attaches to an event."""

    model_config = ConfigDict(extra="forbid")

    accept: list[str] = Field(default_factory=list)
    reject: list[str] = Field(default_factory=list)

    @field_validator("accept", "reject", mode="before")
    @classmethod
    def _normalise(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("accept", "reject")
    @classmethod
    def _check_rules(cls, value: list[str]) -> list[str]:
        invalid = [rule for rule in value if not is_valid_rule(rule)]
        if invalid:
            raise ValueError(f"Invalid rule(s): {', '.join(invalid)}")
        return value

    @classmethod
    def from_input(cls, value: Any) -> Optional["RuleSet"]:
        """Build a rule set from a raw mapping, or ``None`` if its shape is invalid."""
        if isinstance(value, RuleSet):
            return value
        if not is_rule_set(value):
            return None
        return cls.model_validate(dict(value))

    def matches(self, schema: str) -> bool:
        return match_schema_against_rule_set(self, schema)


# ---------------------------------------------------------------------------
# Context entities
# ---------------------------------------------------------------------------


class SelfDescribingEntity(BaseModel):
    """A context entity: schema string plus a non-empty data object."""

    model_config = ConfigDict(extra="forbid")

    sc: str = Field(..., min_length=1, description="Schema string")
    dt: dict[str, Any] = Field(..., min_length=1, description="Data conforming to the schema")

    def to_json(self) -> dict[str, Any]:
        return {"sc": self.sc, "dt": dict(self.dt)}
