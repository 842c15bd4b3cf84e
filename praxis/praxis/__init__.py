"""praxis - deterministic logic engine (facts, events, rules, constraints)."""

__version__ = "0.1.0"

from .actors import Actor, ActorManager
from .dsl import (
    EventDefinition,
    FactDefinition,
    define_constraint,
    define_event,
    define_fact,
    define_module,
    define_rule,
    filter_events,
    filter_facts,
    find_event,
    find_fact,
)
from .engine import EngineOptions, LogicEngine, create_engine
from .errors import (
    ActorError,
    ConfigError,
    DuplicateIdError,
    EngineOptionsError,
    PraxisError,
    SnapshotError,
)
from .introspection import RegistryIntrospector, create_introspector
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
)
from .rules import ConstraintDescriptor, PraxisModule, Registry, RuleDescriptor

__all__ = [
    "__version__",
    # Protocol
    "CONSTRAINT_VIOLATION",
    "PROTOCOL_VERSION",
    "RULE_ERROR",
    "Diagnostic",
    "Event",
    "Fact",
    "State",
    "StepConfig",
    "StepResult",
    # Registry
    "ConstraintDescriptor",
    "PraxisModule",
    "Registry",
    "RuleDescriptor",
    # Engine
    "EngineOptions",
    "LogicEngine",
    "create_engine",
    # DSL
    "EventDefinition",
    "FactDefinition",
    "define_constraint",
    "define_event",
    "define_fact",
    "define_module",
    "define_rule",
    "filter_events",
    "filter_facts",
    "find_event",
    "find_fact",
    # Introspection
    "RegistryIntrospector",
    "create_introspector",
    # Actors
    "Actor",
    "ActorManager",
    # Errors
    "ActorError",
    "ConfigError",
    "DuplicateIdError",
    "EngineOptionsError",
    "PraxisError",
    "SnapshotError",
]
