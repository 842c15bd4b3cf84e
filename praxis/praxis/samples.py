"""
Small ready-made modules, used by the CLI docs and tests.

    praxis inspect praxis.samples:counter_registry --format mermaid
"""

from __future__ import annotations

from typing import Any

from .dsl import define_constraint, define_event, define_fact, define_module, define_rule, filter_events
from .rules import Registry

Increment = define_event("INCREMENT")
Reset = define_event("RESET")
Incremented = define_fact("Incremented")
WasReset = define_fact("WasReset")


def _increment(state, context: dict[str, Any], events):
    facts = []
    for ev in filter_events(events, Increment):
        amount = int((ev.payload or {}).get("amount", 1))
        context["count"] = context.get("count", 0) + amount
        facts.append(Incremented.create({"amount": amount, "count": context["count"]}))
    return facts


def _reset(state, context: dict[str, Any], events):
    if filter_events(events, Reset):
        context["count"] = 0
        return [WasReset.create({})]
    return []


def _non_negative(state, context: dict[str, Any]):
    count = context.get("count", 0)
    return count >= 0 or f"Count is negative ({count})"


def _max_count(state, context: dict[str, Any]):
    limit = context.get("max", 100)
    return context.get("count", 0) <= limit


counter_module = define_module(
    rules=[
        define_rule(id="counter.increment", description="Apply INCREMENT events", impl=_increment),
        define_rule(
            id="counter.reset",
            description="Apply RESET events",
            impl=_reset,
            meta={"dependsOn": "counter.increment"},
        ),
    ],
    constraints=[
        define_constraint(
            id="counter.nonNegative",
            description="Count never drops below zero",
            impl=_non_negative,
            meta={"constrains": ["counter.increment"]},
        ),
        define_constraint(
            id="counter.max",
            description="Count stays within context max",
            impl=_max_count,
            meta={"constrains": ["counter.increment"]},
            message="Count exceeds the configured maximum",
        ),
    ],
    meta={"name": "counter"},
)


def counter_registry() -> Registry:
    registry = Registry()
    registry.register_module(counter_module)
    return registry
