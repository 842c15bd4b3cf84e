"""Pytest configuration and fixtures."""

import pytest

from praxis.dsl import define_constraint, define_rule
from praxis.engine import LogicEngine, create_engine
from praxis.protocol import Fact
from praxis.rules import Registry
from praxis.samples import counter_registry


def _emit(tag: str, payload=None):
    """Rule impl that always emits one fact."""

    def impl(state, context, events):
        return [Fact(tag, payload)]

    return impl


def _boom(state, context, events):
    raise RuntimeError("boom")


@pytest.fixture
def registry() -> Registry:
    return Registry()


@pytest.fixture
def abc_registry() -> Registry:
    """Rules A (emits X), B (raises), C (emits Y)."""
    reg = Registry()
    reg.register_rule(define_rule(id="A", description="emit X", impl=_emit("X")))
    reg.register_rule(define_rule(id="B", description="always fails", impl=_boom))
    reg.register_rule(define_rule(id="C", description="emit Y", impl=_emit("Y")))
    return reg


@pytest.fixture
def max_facts_registry() -> Registry:
    reg = Registry()
    reg.register_rule(define_rule(id="grow", description="one fact per step", impl=_emit("Tick")))
    reg.register_constraint(
        define_constraint(
            id="maxFacts",
            description="At most two facts",
            impl=lambda state, context: len(state.facts) <= 2,
        )
    )
    return reg


@pytest.fixture
def counter_engine() -> LogicEngine:
    return create_engine({"count": 0, "max": 10}, counter_registry())
