"""
Context primitives and conditional context providers.

A *context primitive* is either a static self-describing entity or a
generator callable returning zero, one or many entities.  A *conditional
provider* pairs a criterion (a filter predicate or a ``RuleSet``) with one
or more primitives.

Raw user input is duck-typed (dicts, callables, 2-element lists); it is
classified exactly once, at registration time, into the closed tagged
variants defined here::

    ContextPrimitive            = StaticContext | ContextGenerator
    ConditionalContextProvider  = FilterProvider | RuleSetProvider

so resolution never re-inspects untyped values.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Optional, Sequence, Union

from trackercore.contexts.schema import RuleSet
from trackercore.logger import LOG

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shape predicates
# ---------------------------------------------------------------------------


def is_json(value: Any) -> bool:
    """An object: a dict, not ``None`` and not a list."""
    return isinstance(value, dict)


def is_non_empty_json(value: Any) -> bool:
    return is_json(value) and len(value) > 0


def is_self_describing_json(value: Any) -> bool:
    """A non-empty dict with a string ``sc`` and a non-empty dict ``dt``."""
    if not is_non_empty_json(value):
        return False
    return isinstance(value.get("sc"), str) and is_non_empty_json(value.get("dt"))


def is_context_callback_function(value: Any) -> bool:
    """A callable that can be invoked with at most one positional argument."""
    if not callable(value) or isinstance(value, type):
        return False
    try:
        signature = inspect.signature(value)
    except (TypeError, ValueError):
        # Builtins without introspectable signatures
        return True

    required_positional = 0
    for param in signature.parameters.values():
        if param.default is not param.empty:
            continue
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            required_positional += 1
        elif param.kind == param.KEYWORD_ONLY:
            return False
    return required_positional <= 1


def _invoke(fn: Callable[..., Any], args: tuple[Any, ...]) -> Any:
    """Call *fn* with as many of *args* as it accepts positionally."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return fn(*args)

    accepted = 0
    for param in signature.parameters.values():
        if param.kind == param.VAR_POSITIONAL:
            return fn(*args)
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            accepted += 1
    return fn(*args[:accepted])


def is_context_primitive(value: Any) -> bool:
    if isinstance(value, (StaticContext, ContextGenerator)):
        return True
    return is_context_callback_function(value) or is_self_describing_json(value)


def _is_pair(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and len(value) == 2


def _are_primitives(value: Any) -> bool:
    if isinstance(value, (list, tuple)):
        return all(is_context_primitive(item) for item in value)
    return is_context_primitive(value)


def is_filter_provider(value: Any) -> bool:
    """A pair of (filter callable, primitive or list of primitives)."""
    if isinstance(value, FilterProvider):
        return True
    return _is_pair(value) and is_context_callback_function(value[0]) and _are_primitives(value[1])


def is_rule_set_provider(value: Any) -> bool:
    """A pair of (rule set, primitive or list of primitives)."""
    if isinstance(value, RuleSetProvider):
        return True
    return (
        _is_pair(value)
        and RuleSet.from_input(value[0]) is not None
        and _are_primitives(value[1])
    )


def is_conditional_context_provider(value: Any) -> bool:
    return is_filter_provider(value) or is_rule_set_provider(value)


# ---------------------------------------------------------------------------
# Context event
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContextEvent:
    """Read-only view of the event passed to generators and filters."""

    event: Mapping[str, Any]
    event_type: str = ""
    event_schema: str = ""

    @classmethod
    def from_payload_builder(cls, payload_builder: Any) -> "ContextEvent":
        """Extract type (``e``) and self-describing schema from an open builder."""
        payload = payload_builder.get_payload()
        event_type = payload.get("e")

        event_schema = ""
        for entry in payload_builder.get_json():
            if entry.key_if_encoded != "ue_px":
                continue
            inner = entry.json.get("dt")
            if isinstance(inner, Mapping) and isinstance(inner.get("sc"), str):
                event_schema = inner["sc"]
                break

        return cls(
            event=MappingProxyType(dict(payload)),
            event_type=event_type if isinstance(event_type, str) else "",
            event_schema=event_schema,
        )


# ---------------------------------------------------------------------------
# Tagged variants
# ---------------------------------------------------------------------------


def _expand(output: Any, source: str) -> list[dict[str, Any]]:
    """Flatten generator output: nothing, one entity, or a list of entities."""
    if output is None:
        return []
    if is_self_describing_json(output):
        return [output]
    if isinstance(output, (list, tuple)):
        entities = [item for item in output if is_self_describing_json(item)]
        if len(entities) != len(output):
            logger.debug(
                "Dropped %d malformed entities from %s",
                len(output) - len(entities),
                source,
            )
        return entities
    logger.debug("Ignoring non-entity output from %s: %r", source, type(output).__name__)
    return []


@dataclass(frozen=True, eq=False)
class StaticContext:
    """A fixed self-describing entity attached as-is."""

    entity: dict[str, Any]

    def resolve(self, *args: Any) -> list[dict[str, Any]]:
        return [self.entity]

    def same_as(self, other: "ContextPrimitive") -> bool:
        return isinstance(other, StaticContext) and self.entity == other.entity

    def to_input(self) -> dict[str, Any]:
        return self.entity


@dataclass(frozen=True, eq=False)
class ContextGenerator:
    """A callable producing entities for each event."""

    fn: Callable[..., Any]

    def resolve(self, *args: Any) -> list[dict[str, Any]]:
        try:
            output = _invoke(self.fn, args)
        except Exception as exc:
            LOG.error("Exception thrown in context generator", exc)
            return []
        return _expand(output, getattr(self.fn, "__name__", "context generator"))

    def same_as(self, other: "ContextPrimitive") -> bool:
        # Callables are only equal to themselves
        return isinstance(other, ContextGenerator) and self.fn is other.fn

    def to_input(self) -> Callable[..., Any]:
        return self.fn


ContextPrimitive = Union[StaticContext, ContextGenerator]


def _primitives_equal(
    left: Sequence[ContextPrimitive], right: Sequence[ContextPrimitive]
) -> bool:
    return len(left) == len(right) and all(a.same_as(b) for a, b in zip(left, right))


def _resolve_all(primitives: Sequence[ContextPrimitive], *args: Any) -> list[dict[str, Any]]:
    resolved: list[dict[str, Any]] = []
    for primitive in primitives:
        resolved.extend(primitive.resolve(*args))
    return resolved


@dataclass(frozen=True, eq=False)
class FilterProvider:
    """Attaches its primitives when the predicate returns ``True``."""

    predicate: Callable[..., Any]
    primitives: tuple[ContextPrimitive, ...]

    def applies_to(self, event: ContextEvent) -> bool:
        try:
            return _invoke(self.predicate, (event,)) is True
        except Exception as exc:
            LOG.error("Exception thrown in context filter", exc)
            return False

    def resolve(self, event: ContextEvent) -> list[dict[str, Any]]:
        if not self.applies_to(event):
            return []
        return _resolve_all(self.primitives, event)

    def same_as(self, other: "ConditionalContextProvider") -> bool:
        return (
            isinstance(other, FilterProvider)
            and self.predicate is other.predicate
            and _primitives_equal(self.primitives, other.primitives)
        )

    def to_input(self) -> tuple[Any, list[Any]]:
        return (self.predicate, [p.to_input() for p in self.primitives])


@dataclass(frozen=True, eq=False)
class RuleSetProvider:
    """Attaches its primitives when the event schema is admitted by the rule set."""

    rule_set: RuleSet
    primitives: tuple[ContextPrimitive, ...]

    def applies_to(self, event: ContextEvent) -> bool:
        return self.rule_set.matches(event.event_schema)

    def resolve(self, event: ContextEvent) -> list[dict[str, Any]]:
        if not self.applies_to(event):
            return []
        return _resolve_all(self.primitives, event)

    def same_as(self, other: "ConditionalContextProvider") -> bool:
        return (
            isinstance(other, RuleSetProvider)
            and self.rule_set == other.rule_set
            and _primitives_equal(self.primitives, other.primitives)
        )

    def to_input(self) -> tuple[dict[str, Any], list[Any]]:
        return (
            self.rule_set.model_dump(),
            [p.to_input() for p in self.primitives],
        )


ConditionalContextProvider = Union[FilterProvider, RuleSetProvider]


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def to_context_primitive(value: Any) -> Optional[ContextPrimitive]:
    """Classify a raw value as a context primitive, or ``None``."""
    if isinstance(value, (StaticContext, ContextGenerator)):
        return value
    if is_self_describing_json(value):
        return StaticContext(value)
    if is_context_callback_function(value):
        return ContextGenerator(value)
    return None


def _to_primitives(value: Any) -> Optional[tuple[ContextPrimitive, ...]]:
    items = value if isinstance(value, (list, tuple)) else [value]
    primitives = tuple(to_context_primitive(item) for item in items)
    if any(p is None for p in primitives):
        return None
    return primitives  # type: ignore[return-value]


def to_conditional_provider(value: Any) -> Optional[ConditionalContextProvider]:
    """Classify a raw value as a conditional provider, or ``None``."""
    if isinstance(value, (FilterProvider, RuleSetProvider)):
        return value
    if not _is_pair(value):
        return None

    criterion, raw_primitives = value
    primitives = _to_primitives(raw_primitives)
    if primitives is None:
        return None

    if is_context_callback_function(criterion):
        return FilterProvider(criterion, primitives)
    rule_set = RuleSet.from_input(criterion)
    if rule_set is not None:
        return RuleSetProvider(rule_set, primitives)
    return None


# ---------------------------------------------------------------------------
# Dynamic context resolution
# ---------------------------------------------------------------------------


def resolve_dynamic_context(
    dynamic_or_static_contexts: Optional[Sequence[Any]], *extra_args: Any
) -> list[dict[str, Any]]:
    """Resolve a mixed list of entities and generators into entities.

    Generators are called with *extra_args*; their output is expanded in
    place.  Malformed entries are dropped.

    Args:
        dynamic_or_static_contexts: Entities and/or generator callables.
        *extra_args: Passed through to each generator.

    Returns:
        Self-describing entities in input order.
    """
    if not dynamic_or_static_contexts:
        return []

    resolved: list[dict[str, Any]] = []
    for item in dynamic_or_static_contexts:
        if callable(item) or isinstance(item, ContextGenerator):
            generator = item if isinstance(item, ContextGenerator) else ContextGenerator(item)
            resolved.extend(generator.resolve(*extra_args))
        elif is_self_describing_json(item):
            resolved.append(item)
        elif isinstance(item, StaticContext):
            resolved.append(item.entity)
        else:
            logger.debug("Dropping malformed context: %r", item)
    return resolved
