"""
Exception hierarchy for trackercore.

Data-shape problems (malformed schemas, rules, context providers) are never
raised; they are reported through validation predicates and discarded.
These exceptions are reserved for programmer misuse of the API.
"""

from __future__ import annotations


class TrackerCoreError(Exception):
    """Base class for all trackercore errors."""


class PayloadAlreadyBuiltError(TrackerCoreError):
    """Raised when a payload builder is mutated after ``build()``."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            f"Cannot call {operation}() on a payload builder that has already been built"
        )
        self.operation = operation
