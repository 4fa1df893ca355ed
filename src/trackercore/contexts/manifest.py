"""
Declarative context manifests.

A manifest lists static context entities to register as global contexts,
each optionally restricted to events matching an accept/reject rule set:

.. code-block:: yaml

    manifest_version: "1"
    description: Checkout service contexts
    contexts:
      - entity:
          sc: iglu:com.acme/service/jsonschema/1-0-0
          dt: {name: checkout}
      - entity:
          sc: iglu:com.acme/experiment/jsonschema/1-0-0
          dt: {variant: b}
        accept: "iglu:com.acme/*/jsonschema/1-*-*"
        reject: ["iglu:com.acme/heartbeat/jsonschema/*-*-*"]

Usage::

    from trackercore.contexts.loader import ContextManifestLoader

    manifest = ContextManifestLoader().load(Path("contexts.yaml"))
    manifest.apply(core.global_contexts)
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trackercore.contexts.registry import GlobalContexts
from trackercore.contexts.rules import is_valid_rule_set_arg
from trackercore.contexts.schema import RuleSet, SelfDescribingEntity

logger = logging.getLogger(__name__)

RuleArg = Union[str, list[str]]


class ContextEntry(BaseModel):
    """One entity, attached unconditionally unless a rule is given."""

    model_config = ConfigDict(extra="forbid")

    entity: SelfDescribingEntity
    accept: Optional[RuleArg] = None
    reject: Optional[RuleArg] = None

    @field_validator("accept", "reject")
    @classmethod
    def _check_rule_arg(cls, value: Optional[RuleArg]) -> Optional[RuleArg]:
        if value is not None and not is_valid_rule_set_arg(value):
            raise ValueError(f"Invalid rule set argument: {value!r}")
        return value

    @property
    def is_conditional(self) -> bool:
        return self.accept is not None or self.reject is not None

    def rule_set(self) -> Optional[RuleSet]:
        if not self.is_conditional:
            return None
        values: dict[str, Any] = {}
        if self.accept is not None:
            values["accept"] = self.accept
        if self.reject is not None:
            values["reject"] = self.reject
        return RuleSet.model_validate(values)

    def to_input(self) -> Any:
        """The raw form accepted by ``GlobalContexts.add_global_contexts``."""
        entity = self.entity.to_json()
        rule_set = self.rule_set()
        if rule_set is None:
            return entity
        return (rule_set, [entity])


class ContextManifest(BaseModel):
    """Validated contents of a context manifest file."""

    model_config = ConfigDict(extra="forbid")

    manifest_version: str = Field(default="1", description="Manifest format version")
    description: Optional[str] = None
    contexts: list[ContextEntry] = Field(default_factory=list)

    def to_inputs(self) -> list[Any]:
        return [entry.to_input() for entry in self.contexts]

    def apply(self, registry: GlobalContexts) -> int:
        """Register every entry on *registry*; returns the number registered."""
        inputs = self.to_inputs()
        registry.add_global_contexts(inputs)
        logger.debug(
            "Applied context manifest: entries=%d conditional=%d",
            len(inputs),
            sum(1 for entry in self.contexts if entry.is_conditional),
        )
        return len(inputs)
