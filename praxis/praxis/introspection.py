"""
Read-only reporting over a registry: stats, schema, graph, DOT and Mermaid.

Edges come from descriptor metadata:
- ``meta["dependsOn"]`` on a rule gives ``dep -> rule`` edges (depends-on)
- ``meta["constrains"]`` on a constraint gives ``constraint -> target`` edges (constrains)
Either may be a single id or a list of ids.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Literal

from .protocol import PROTOCOL_VERSION, to_json_value
from .rules import ConstraintDescriptor, Registry, RuleDescriptor

NodeType = Literal["rule", "constraint"]
EdgeType = Literal["triggers", "constrains", "depends-on"]


@dataclass(frozen=True)
class GraphNode:
    id: str
    type: NodeType
    description: str
    meta: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"id": self.id, "type": self.type, "description": self.description}
        if self.meta is not None:
            result["meta"] = _safe_meta(self.meta)
        return result


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    type: EdgeType

    def to_dict(self) -> dict[str, Any]:
        return {"from": self.source, "to": self.target, "type": self.type}


@dataclass
class RegistryGraph:
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)

    @property
    def rule_count(self) -> int:
        return sum(1 for n in self.nodes if n.type == "rule")

    @property
    def constraint_count(self) -> int:
        return sum(1 for n in self.nodes if n.type == "constraint")

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "meta": {
                "nodeCount": len(self.nodes),
                "ruleCount": self.rule_count,
                "constraintCount": self.constraint_count,
            },
        }


@dataclass(frozen=True)
class RegistryStats:
    rule_count: int
    constraint_count: int
    module_count: int
    rules_by_id: list[str]
    constraints_by_id: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ruleCount": self.rule_count,
            "constraintCount": self.constraint_count,
            "moduleCount": self.module_count,
            "rulesById": list(self.rules_by_id),
            "constraintsById": list(self.constraints_by_id),
        }


def _safe_meta(meta: dict[str, Any]) -> Any:
    # Metadata is free-form; fall back to repr for values JSON can't carry.
    try:
        return to_json_value(meta)
    except TypeError:
        return {str(k): repr(v) for k, v in meta.items()}


def _as_id_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


class RegistryIntrospector:
    """Introspection helpers for one registry."""

    def __init__(self, registry: Registry):
        self.registry = registry

    def get_stats(self) -> RegistryStats:
        rule_ids = self.registry.get_rule_ids()
        constraint_ids = self.registry.get_constraint_ids()
        return RegistryStats(
            rule_count=len(rule_ids),
            constraint_count=len(constraint_ids),
            module_count=self.registry.module_count,
            rules_by_id=rule_ids,
            constraints_by_id=constraint_ids,
        )

    def generate_schema(self, protocol_version: str = PROTOCOL_VERSION) -> dict[str, Any]:
        """JSON-schema-like description of everything registered."""

        def entry(d: RuleDescriptor | ConstraintDescriptor, kind: str) -> dict[str, Any]:
            result: dict[str, Any] = {"id": d.id, "description": d.description, "type": kind}
            if d.meta is not None:
                result["meta"] = _safe_meta(d.meta)
            return result

        rules = [entry(r, "rule") for r in self.registry.get_all_rules()]
        constraints = [entry(c, "constraint") for c in self.registry.get_all_constraints()]
        return {
            "protocolVersion": protocol_version,
            "rules": rules,
            "constraints": constraints,
            "meta": {"ruleCount": len(rules), "constraintCount": len(constraints)},
        }

    def generate_graph(self) -> RegistryGraph:
        graph = RegistryGraph()

        for rule in self.registry.get_all_rules():
            graph.nodes.append(GraphNode(id=rule.id, type="rule", description=rule.description, meta=rule.meta))
            for dep in _as_id_list((rule.meta or {}).get("dependsOn")):
                graph.edges.append(GraphEdge(source=dep, target=rule.id, type="depends-on"))

        for constraint in self.registry.get_all_constraints():
            graph.nodes.append(
                GraphNode(
                    id=constraint.id,
                    type="constraint",
                    description=constraint.description,
                    meta=constraint.meta,
                )
            )
            for target in _as_id_list((constraint.meta or {}).get("constrains")):
                graph.edges.append(GraphEdge(source=constraint.id, target=target, type="constrains"))

        return graph

    def export_dot(self) -> str:
        """Render the registry graph as Graphviz DOT."""

        def esc(s: str) -> str:
            return s.replace("\\", "\\\\").replace('"', '\\"')

        graph = self.generate_graph()
        lines = [
            "digraph PraxisRegistry {",
            "  rankdir=TB;",
            "  node [shape=box, style=rounded];",
            "",
        ]

        for node in graph.nodes:
            shape = "box" if node.type == "rule" else "diamond"
            color = "lightblue" if node.type == "rule" else "lightcoral"
            label = f"{esc(node.id)}\\n{esc(node.description)}"
            lines.append(f'  "{esc(node.id)}" [label="{label}", shape={shape}, style=filled, fillcolor={color}];')

        lines.append("")

        for edge in graph.edges:
            style = "dashed" if edge.type == "constrains" else "solid"
            lines.append(f'  "{esc(edge.source)}" -> "{esc(edge.target)}" [label="{edge.type}", style={style}];')

        lines.append("}")
        return "\n".join(lines)

    def export_mermaid(self) -> str:
        """Render the registry graph as a Mermaid flowchart."""
        graph = self.generate_graph()
        ids = _mermaid_ids([n.id for n in graph.nodes] + [i for e in graph.edges for i in (e.source, e.target)])
        lines = ["graph TB"]

        for node in graph.nodes:
            label = f"{node.id}<br/>{node.description}".replace('"', "#quot;")
            if node.type == "rule":
                lines.append(f'  {ids[node.id]}["{label}"]')
            else:
                lines.append(f'  {ids[node.id]}{{"{label}"}}')

        lines.append("")

        for edge in graph.edges:
            arrow = "-.->|constrains|" if edge.type == "constrains" else f"-->|{edge.type}|"
            lines.append(f"  {ids[edge.source]} {arrow} {ids[edge.target]}")

        return "\n".join(lines)

    def get_rule_info(self, rule_id: str) -> RuleDescriptor | None:
        return self.registry.get_rule(rule_id)

    def get_constraint_info(self, constraint_id: str) -> ConstraintDescriptor | None:
        return self.registry.get_constraint(constraint_id)

    def search_rules(self, query: str) -> list[RuleDescriptor]:
        q = query.lower()
        return [r for r in self.registry.get_all_rules() if q in r.id.lower() or q in r.description.lower()]

    def search_constraints(self, query: str) -> list[ConstraintDescriptor]:
        q = query.lower()
        return [c for c in self.registry.get_all_constraints() if q in c.id.lower() or q in c.description.lower()]


_MERMAID_UNSAFE = re.compile(r"[^A-Za-z0-9_]")


def _mermaid_ids(node_ids: list[str]) -> dict[str, str]:
    """Map registry ids to unique Mermaid node ids, in first-seen order."""
    # Mermaid node ids can't contain dots or dashes; "a.b" and "a_b" would
    # otherwise both become "a_b".
    result: dict[str, str] = {}
    used: set[str] = set()
    for node_id in node_ids:
        if node_id in result:
            continue
        base = _MERMAID_UNSAFE.sub("_", node_id)
        candidate, n = base, 1
        while candidate in used:
            n += 1
            candidate = f"{base}_{n}"
        used.add(candidate)
        result[node_id] = candidate
    return result


def create_introspector(registry: Registry) -> RegistryIntrospector:
    return RegistryIntrospector(registry)
