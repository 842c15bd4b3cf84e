"""
The logic engine: runs rules over events, accumulates facts, checks constraints.

A step never raises. Missing ids, exceptions inside rule or constraint bodies
and constraint violations all come back as Diagnostic entries on the result.
"""

from __future__ import annotations

import copy
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from .errors import EngineOptionsError
from .protocol import (
    CONSTRAINT_VIOLATION,
    PROTOCOL_VERSION,
    RULE_ERROR,
    Diagnostic,
    Event,
    Fact,
    State,
    StepConfig,
    StepResult,
    to_json_value,
)
from .rules import ConstraintDescriptor, Registry, RuleDescriptor

logger = logging.getLogger(__name__)


@dataclass
class EngineOptions:
    initial_context: Any
    registry: Registry
    initial_facts: list[Fact] | None = None
    initial_meta: dict[str, Any] | None = None


def _error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def normalize_facts(items: Any) -> list[Fact]:
    """
    Turn whatever a rule returned into a list of JSON-clean facts.

    Accepts an iterable of Fact or ``{"tag", "payload"}`` mappings; ``None``
    counts as no facts. Raises TypeError/ValueError for anything else.
    """
    if items is None:
        return []
    if inspect.isawaitable(items):
        if inspect.iscoroutine(items):
            items.close()
        raise TypeError("returned an awaitable; rules must be synchronous")
    if isinstance(items, (str, bytes, Mapping, Fact)):
        raise TypeError(f"expected an iterable of facts, got {type(items).__name__}")

    facts: list[Fact] = []
    for item in items:
        if isinstance(item, Fact):
            facts.append(Fact(tag=item.tag, payload=to_json_value(item.payload)))
        elif isinstance(item, Mapping):
            fact = Fact.from_dict(item)
            facts.append(Fact(tag=fact.tag, payload=to_json_value(fact.payload)))
        else:
            raise TypeError(f"expected a Fact, got {type(item).__name__}")
    return facts


def _build_initial(options: EngineOptions) -> tuple[Any, State]:
    if not isinstance(options.registry, Registry):
        raise EngineOptionsError("registry must be a Registry instance")

    try:
        facts = normalize_facts(options.initial_facts)
    except (TypeError, ValueError) as e:
        raise EngineOptionsError(f"Invalid initial facts: {e}") from e

    meta = options.initial_meta
    if meta is not None and not isinstance(meta, Mapping):
        raise EngineOptionsError("initial_meta must be a mapping")

    try:
        context = copy.deepcopy(options.initial_context)
        state = State(
            context=to_json_value(context),
            facts=tuple(facts),
            meta=to_json_value(meta) if meta is not None else None,
            protocol_version=PROTOCOL_VERSION,
        )
    except TypeError as e:
        raise EngineOptionsError(f"Initial context is not JSON-serializable: {e}") from e
    return context, state


class LogicEngine:
    """
    Owns one session's state and typed context.

    Not thread-safe: callers must serialize ``step`` calls. The registry may be
    shared between engines; state and context may not.
    """

    def __init__(self, options: EngineOptions):
        self._registry = options.registry
        self._context, self._state = _build_initial(options)

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def protocol_version(self) -> str:
        return PROTOCOL_VERSION

    def get_state(self) -> State:
        return copy.deepcopy(self._state)

    def get_context(self) -> Any:
        return copy.deepcopy(self._context)

    def get_facts(self) -> list[Fact]:
        return copy.deepcopy(list(self._state.facts))

    def step(self, events: Iterable[Event]) -> StepResult:
        """Run every registered rule and constraint, in registry order."""
        return self.step_with_config(events, StepConfig())

    def step_with_config(self, events: Iterable[Event], config: StepConfig) -> StepResult:
        """Run the rules and constraints named by ``config``, in its order."""
        rule_ids = config.rule_ids if config.rule_ids is not None else tuple(self._registry.get_rule_ids())
        constraint_ids = (
            config.constraint_ids
            if config.constraint_ids is not None
            else tuple(self._registry.get_constraint_ids())
        )
        batch = tuple(events)
        diagnostics: list[Diagnostic] = []

        new_facts: list[Fact] = []
        for rule_id in rule_ids:
            rule = self._registry.get_rule(rule_id)
            if rule is None:
                diagnostics.append(
                    Diagnostic(
                        kind=RULE_ERROR,
                        message=f'Rule "{rule_id}" not found in registry',
                        data={"ruleId": rule_id},
                    )
                )
                continue
            new_facts.extend(self._run_rule(rule, batch, diagnostics))

        new_state = self._state.with_facts(new_facts)
        try:
            new_state = new_state.with_context(self._context)
        except TypeError as e:
            diagnostics.append(
                Diagnostic(
                    kind=RULE_ERROR,
                    message=f"Context is not JSON-serializable after rules ran: {_error_message(e)}",
                    data={"error": _error_message(e)},
                )
            )

        for constraint_id in constraint_ids:
            constraint = self._registry.get_constraint(constraint_id)
            if constraint is None:
                diagnostics.append(
                    Diagnostic(
                        kind=CONSTRAINT_VIOLATION,
                        message=f'Constraint "{constraint_id}" not found in registry',
                        data={"constraintId": constraint_id},
                    )
                )
                continue
            violation = self._check_constraint(constraint, new_state)
            if violation is not None:
                diagnostics.append(violation)

        self._state = new_state

        logger.debug(
            f"Step: {len(batch)} events, {len(rule_ids)} rules, {len(constraint_ids)} constraints, "
            f"{len(new_facts)} new facts, {len(diagnostics)} diagnostics"
        )
        for d in diagnostics:
            logger.debug(f"{d.kind}: {d.message}")

        # The engine keeps new_state; callers get their own copy.
        return StepResult(state=copy.deepcopy(new_state), diagnostics=diagnostics)

    def dispatch(self, events: Iterable[Event]) -> None:
        """Step and discard the diagnostics."""
        self.step(events)

    def _run_rule(
        self,
        rule: RuleDescriptor,
        events: tuple[Event, ...],
        diagnostics: list[Diagnostic],
    ) -> list[Fact]:
        try:
            return normalize_facts(rule.impl(self._state, self._context, events))
        except Exception as e:
            diagnostics.append(
                Diagnostic(
                    kind=RULE_ERROR,
                    message=f'Error executing rule "{rule.id}": {_error_message(e)}',
                    data={"ruleId": rule.id, "error": _error_message(e)},
                )
            )
            return []

    def _check_constraint(self, constraint: ConstraintDescriptor, state: State) -> Diagnostic | None:
        try:
            result = constraint.impl(state, self._context)
        except Exception as e:
            return Diagnostic(
                kind=CONSTRAINT_VIOLATION,
                message=f'Error checking constraint "{constraint.id}": {_error_message(e)}',
                data={"constraintId": constraint.id, "error": _error_message(e)},
            )

        default = f'Constraint "{constraint.id}" violated'
        if isinstance(result, str):
            message = result or constraint.message or default
        elif result is False:
            message = constraint.message or default
        else:
            return None

        return Diagnostic(
            kind=CONSTRAINT_VIOLATION,
            message=message,
            data={"constraintId": constraint.id, "description": constraint.description},
        )

    # Escape hatches. Prefer rules for anything that should be replayable.

    def update_context(self, updater: Callable[[Any], Any]) -> None:
        """Replace the context with ``updater(context)`` and re-serialize it."""
        context = updater(self._context)
        self._state = self._state.with_context(context)
        self._context = context

    def add_facts(self, facts: Iterable[Fact]) -> None:
        self._state = self._state.with_facts(normalize_facts(list(facts)))

    def clear_facts(self) -> None:
        self._state = State(
            context=self._state.context,
            facts=(),
            meta=self._state.meta,
            protocol_version=self._state.protocol_version,
        )

    def reset(self, options: EngineOptions) -> None:
        """Reinitialize as if freshly constructed from ``options``."""
        context, state = _build_initial(options)
        self._registry = options.registry
        self._context = context
        self._state = state


def create_engine(
    initial_context: Any,
    registry: Registry,
    *,
    initial_facts: list[Fact] | None = None,
    initial_meta: dict[str, Any] | None = None,
) -> LogicEngine:
    """Create a LogicEngine from keyword arguments."""
    return LogicEngine(
        EngineOptions(
            initial_context=initial_context,
            registry=registry,
            initial_facts=initial_facts,
            initial_meta=initial_meta,
        )
    )
