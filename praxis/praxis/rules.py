"""
Rule and constraint descriptors and the registry that owns them.

Rules and constraints are looked up by stable ids so that a step can be
described as data (a list of ids) and replayed elsewhere.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Sequence

from .errors import DuplicateIdError
from .protocol import Event, Fact, State

logger = logging.getLogger(__name__)

# impl(state, context, events) -> facts. Must be pure apart from the context handle.
RuleFn = Callable[[State, Any, Sequence[Event]], Iterable[Fact]]

# impl(state, context) -> True, or False / an explanatory message.
ConstraintFn = Callable[[State, Any], "bool | str"]


@dataclass(frozen=True)
class RuleDescriptor:
    id: str
    description: str
    impl: RuleFn
    meta: dict[str, Any] | None = None


@dataclass(frozen=True)
class ConstraintDescriptor:
    id: str
    description: str
    impl: ConstraintFn
    meta: dict[str, Any] | None = None
    # Reported when impl returns a bare False.
    message: str | None = None


@dataclass(frozen=True)
class PraxisModule:
    """A bundle of rules and constraints registered together."""

    rules: list[RuleDescriptor] = field(default_factory=list)
    constraints: list[ConstraintDescriptor] = field(default_factory=list)
    meta: dict[str, Any] | None = None


class Registry:
    """
    Maps ids to rule and constraint descriptors.

    Ids are unique per kind; registering one twice raises DuplicateIdError
    at registration time. Iteration order is insertion order. There is no
    unregister: build the registry once and share it read-only.
    """

    def __init__(self) -> None:
        self._rules: dict[str, RuleDescriptor] = {}
        self._constraints: dict[str, ConstraintDescriptor] = {}
        self._module_count = 0

    def register_rule(self, descriptor: RuleDescriptor) -> None:
        if descriptor.id in self._rules:
            raise DuplicateIdError("rule", descriptor.id)
        self._rules[descriptor.id] = descriptor
        logger.debug(f"Registered rule {descriptor.id!r}")

    def register_constraint(self, descriptor: ConstraintDescriptor) -> None:
        if descriptor.id in self._constraints:
            raise DuplicateIdError("constraint", descriptor.id)
        self._constraints[descriptor.id] = descriptor
        logger.debug(f"Registered constraint {descriptor.id!r}")

    def register_module(self, module: PraxisModule) -> None:
        """
        Register every rule, then every constraint, of a module.

        Not atomic: on a duplicate id the items registered before it stay
        registered and the error propagates.
        """
        for rule in module.rules:
            self.register_rule(rule)
        for constraint in module.constraints:
            self.register_constraint(constraint)
        self._module_count += 1

    def get_rule(self, rule_id: str) -> RuleDescriptor | None:
        return self._rules.get(rule_id)

    def get_constraint(self, constraint_id: str) -> ConstraintDescriptor | None:
        return self._constraints.get(constraint_id)

    def get_rule_ids(self) -> list[str]:
        return list(self._rules.keys())

    def get_constraint_ids(self) -> list[str]:
        return list(self._constraints.keys())

    def get_all_rules(self) -> list[RuleDescriptor]:
        return list(self._rules.values())

    def get_all_constraints(self) -> list[ConstraintDescriptor]:
        return list(self._constraints.values())

    @property
    def module_count(self) -> int:
        """Number of modules fully registered through register_module."""
        return self._module_count
