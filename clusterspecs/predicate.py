"""
Predicate tree for cluster queries.

A compiled query is plain data: a tree of conditions and junctions over
entity fields, the joins those fields need, and whether the result must be
de-duplicated. Nothing here knows about SQL; executor.py translates it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Tuple, Union


class PredicateError(ValueError):
    """Raised when a predicate tree references fields it cannot reach."""
    pass


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Entity(str, Enum):
    CLUSTER = "Cluster"
    COMMAND = "Command"
    APPLICATION = "Application"


class Operator(str, Enum):
    EQ = "EQ"
    LK = "LK"
    GTE = "GTE"
    LT = "LT"
    MEMBER = "MEMBER"


class LogicalOperator(str, Enum):
    AND = "And"
    OR = "Or"


# ---------------------------------------------------------------------------
# Fields and joins
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldRef:
    entity: Entity
    name: str

    def __str__(self) -> str:
        return f"{self.entity.value}.{self.name}"


@dataclass(frozen=True)
class Join:
    """Join requirement along a relationship attribute of the source entity."""
    source: Entity
    target: Entity
    attribute: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source.value,
            "target": self.target.value,
            "attribute": self.attribute,
        }


CLUSTER_COMMANDS = Join(Entity.CLUSTER, Entity.COMMAND, "commands")
COMMAND_APPLICATION = Join(Entity.COMMAND, Entity.APPLICATION, "application")


class ClusterFields:
    id = FieldRef(Entity.CLUSTER, "id")
    name = FieldRef(Entity.CLUSTER, "name")
    status = FieldRef(Entity.CLUSTER, "status")
    updated = FieldRef(Entity.CLUSTER, "updated")
    tags = FieldRef(Entity.CLUSTER, "tags")


class CommandFields:
    id = FieldRef(Entity.COMMAND, "id")
    name = FieldRef(Entity.COMMAND, "name")
    status = FieldRef(Entity.COMMAND, "status")


class ApplicationFields:
    id = FieldRef(Entity.APPLICATION, "id")
    name = FieldRef(Entity.APPLICATION, "name")
    status = FieldRef(Entity.APPLICATION, "status")


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------

def _render(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class Condition:
    """
    Leaf of the tree: field, operator, value.

    For MEMBER the value is the element and the field is the collection
    it must belong to.
    """
    field: FieldRef
    operator: Operator = Operator.EQ
    value: Any = None

    def fields(self) -> FrozenSet[FieldRef]:
        return frozenset([self.field])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": str(self.field),
            "operator": self.operator.value,
            "value": _render(self.value),
        }


@dataclass(frozen=True)
class Junction:
    """AND/OR over child nodes. An empty AND matches everything."""
    logical_operator: LogicalOperator = LogicalOperator.AND
    operands: Tuple["Node", ...] = ()

    def fields(self) -> FrozenSet[FieldRef]:
        refs: FrozenSet[FieldRef] = frozenset()
        for operand in self.operands:
            refs = refs | operand.fields()
        return refs

    def to_dict(self) -> Dict[str, Any]:
        return {
            "logicalOperator": self.logical_operator.value,
            "operands": [o.to_dict() for o in self.operands],
        }


Node = Union[Condition, Junction]

MATCH_ALL = Junction(LogicalOperator.AND, ())


def equals(ref: FieldRef, value: Any) -> Condition:
    return Condition(ref, Operator.EQ, value)


def like(ref: FieldRef, pattern: str) -> Condition:
    return Condition(ref, Operator.LK, pattern)


def greater_or_equal(ref: FieldRef, value: Any) -> Condition:
    return Condition(ref, Operator.GTE, value)


def less_than(ref: FieldRef, value: Any) -> Condition:
    return Condition(ref, Operator.LT, value)


def member_of(value: Any, collection: FieldRef) -> Condition:
    return Condition(collection, Operator.MEMBER, value)


def and_(*operands: Node) -> Junction:
    return Junction(LogicalOperator.AND, tuple(operands))


def or_(*operands: Node) -> Junction:
    return Junction(LogicalOperator.OR, tuple(operands))


# ---------------------------------------------------------------------------
# Compiled query
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClusterQuery:
    """
    Predicate over Cluster rows plus the joins it needs.

    distinct asks the executor to return each cluster once even when a join
    fans out to several matching rows.
    """
    predicate: Junction = MATCH_ALL
    joins: Tuple[Join, ...] = ()
    distinct: bool = False

    def entities(self) -> FrozenSet[Entity]:
        """Entities reachable from Cluster through joins, in declared order."""
        reachable = {Entity.CLUSTER}
        for join in self.joins:
            if join.source in reachable:
                reachable.add(join.target)
        return frozenset(reachable)

    def is_match_all(self) -> bool:
        return not self.predicate.operands and not self.joins

    def to_dict(self) -> Dict[str, Any]:
        return {
            "predicate": self.predicate.to_dict(),
            "joins": [j.to_dict() for j in self.joins],
            "distinct": self.distinct,
        }


def check_well_formed(query: ClusterQuery) -> None:
    """
    Raises:
        PredicateError: a join starts from an entity that is not yet joined,
            or a condition uses a field of an entity that is never joined
    """
    for index, join in enumerate(query.joins):
        if join.source not in ClusterQuery(joins=query.joins[:index]).entities():
            raise PredicateError(
                f"Join {join.source.value}.{join.attribute} declared before "
                f"{join.source.value} is reachable"
            )

    reachable = query.entities()
    for ref in sorted(query.predicate.fields(), key=str):
        if ref.entity not in reachable:
            raise PredicateError(f"Field {ref} requires a join to {ref.entity.value}")
