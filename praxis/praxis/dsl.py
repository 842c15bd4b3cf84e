"""
Helpers for declaring facts, events, rules, constraints and modules.

Definitions give typed constructors and tag checks while the values they
produce stay plain Fact/Event data.

    UserLoggedIn = define_fact("UserLoggedIn")
    Login = define_event("LOGIN")

    def _login(state, context, events):
        ev = find_event(events, Login)
        return [UserLoggedIn.create({"userId": ev.payload["username"]})] if ev else []

    login = define_rule(id="auth.login", description="Process login", impl=_login)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Iterable, TypeVar

from .protocol import Event, Fact
from .rules import ConstraintDescriptor, ConstraintFn, PraxisModule, RuleDescriptor, RuleFn

P = TypeVar("P")


@dataclass(frozen=True)
class FactDefinition(Generic[P]):
    tag: str

    def create(self, payload: P) -> Fact:
        return Fact(tag=self.tag, payload=payload)

    def is_(self, fact: Fact) -> bool:
        return fact.tag == self.tag


@dataclass(frozen=True)
class EventDefinition(Generic[P]):
    tag: str

    def create(self, payload: P) -> Event:
        return Event(tag=self.tag, payload=payload)

    def is_(self, event: Event) -> bool:
        return event.tag == self.tag


def define_fact(tag: str) -> FactDefinition[Any]:
    return FactDefinition(tag)


def define_event(tag: str) -> EventDefinition[Any]:
    return EventDefinition(tag)


def define_rule(
    *,
    id: str,
    description: str,
    impl: RuleFn,
    meta: dict[str, Any] | None = None,
) -> RuleDescriptor:
    return RuleDescriptor(id=id, description=description, impl=impl, meta=meta)


def define_constraint(
    *,
    id: str,
    description: str,
    impl: ConstraintFn,
    meta: dict[str, Any] | None = None,
    message: str | None = None,
) -> ConstraintDescriptor:
    return ConstraintDescriptor(id=id, description=description, impl=impl, meta=meta, message=message)


def define_module(
    *,
    rules: Iterable[RuleDescriptor] | None = None,
    constraints: Iterable[ConstraintDescriptor] | None = None,
    meta: dict[str, Any] | None = None,
) -> PraxisModule:
    return PraxisModule(rules=list(rules or []), constraints=list(constraints or []), meta=meta)


def filter_events(events: Iterable[Event], definition: EventDefinition[Any]) -> list[Event]:
    return [e for e in events if definition.is_(e)]


def filter_facts(facts: Iterable[Fact], definition: FactDefinition[Any]) -> list[Fact]:
    return [f for f in facts if definition.is_(f)]


def find_event(events: Iterable[Event], definition: EventDefinition[Any]) -> Event | None:
    return next((e for e in events if definition.is_(e)), None)


def find_fact(facts: Iterable[Fact], definition: FactDefinition[Any]) -> Fact | None:
    return next((f for f in facts if definition.is_(f)), None)
