# Copyright 2019-present Kensho Technologies, LLC.
"""The QueryPlan and the clause types it is made of.

A QueryPlan is the only output of the compiler. It describes joins, filters, ordering,
eager loads and projections in terms of table aliases and field names, and is translated
into an actual query by a separate query-execution adapter.
"""
from dataclasses import dataclass
from enum import Enum, auto, unique
from typing import Any, Optional, Tuple, Union

from ..global_utils import RelationPath
from ..schema.entity import EntityDescriptor


@unique
class FilterOperator(Enum):
    """The comparison performed by a filter clause."""

    Eq = auto()  # Equality with a typed scalar value.
    Like = auto()  # Pattern match, where the value contains pattern wildcards.


@unique
class BooleanContext(Enum):
    """How a filter clause combines with the other clauses of its group."""

    And = auto()
    Or = auto()


@unique
class JoinDirection(Enum):
    """The kind of outer join used to reach a related table."""

    Left = auto()  # Used for to-one relations.
    Right = auto()  # Used for to-many relations.


@unique
class OrderDirection(Enum):
    Ascending = auto()
    Descending = auto()


@dataclass(frozen=True)
class FilterClause:
    table_alias: str
    field: str
    operator: FilterOperator
    value: Any  # str for Like, and a coerced scalar (str, int, float, bool or None) for Eq.
    boolean: BooleanContext


@dataclass(frozen=True)
class JoinClause:
    """Join of a new table alias onto an alias already present in the plan.

    The join condition is source_alias.source_key = target_alias.target_key, where
    target_alias refers to target_table.
    """

    direction: JoinDirection
    source_alias: str
    source_key: str
    target_table: str
    target_alias: str
    target_key: str


@dataclass(frozen=True)
class OrderClause:
    table_alias: str
    field: str
    direction: OrderDirection


@dataclass(frozen=True)
class RandomOrder:
    """Marker requesting results in random order. Never combined with OrderClauses."""


RANDOM_ORDER = RandomOrder()

# Either a non-empty tuple of OrderClauses, applied in sequence, or the RandomOrder marker.
Ordering = Union[Tuple[OrderClause, ...], RandomOrder]


@dataclass(frozen=True)
class ClosureMember:
    """An entity reached from the root of the compilation, under its own table alias."""

    alias: str
    entity: EntityDescriptor
    path: RelationPath  # Relation names leading here from the root; empty for the root.


@dataclass(frozen=True)
class RelationClosure:
    """The root entity plus every entity reached by traversing the requested relation chains."""

    # All members in join order, the root first.
    members: Tuple[ClosureMember, ...]

    def __post_init__(self) -> None:
        """Validate fields."""
        if not self.members or self.members[0].path:
            raise AssertionError(
                f"Expected the first closure member to be the root, but got: {self.members}"
            )

    @property
    def root(self) -> ClosureMember:
        """Return the member for the root entity."""
        return self.members[0]

    @property
    def is_active(self) -> bool:
        """Return True if at least one related entity has been joined onto the root."""
        return len(self.members) > 1

    def get_member(self, path: RelationPath) -> Optional[ClosureMember]:
        """Return the member reached through the given relation path, or None if not joined."""
        for member in self.members:
            if member.path == path:
                return member
        return None


@dataclass(frozen=True)
class EagerLoadNode:
    """A node of the eager-load tree: a relation to pre-fetch, and what to pre-fetch below it."""

    relation: str
    alias: str
    children: Tuple["EagerLoadNode", ...]


# Field name of the projection that selects all columns of a table.
ALL_COLUMNS_FIELD = "*"


@dataclass(frozen=True)
class Projection:
    """A root column selected under an explicit label, so joined columns cannot shadow it.

    A projection of ALL_COLUMNS_FIELD selects every column of the table, unlabeled.
    """

    table_alias: str
    field: str
    label: Optional[str]


@dataclass(frozen=True)
class QueryPlan:
    """The compiled, ready-to-translate description of a query."""

    root_entity: str
    root_alias: str

    joins: Tuple[JoinClause, ...]

    # Namespaced filters first, then general filters, each in request order.
    filters: Tuple[FilterClause, ...]

    order: Optional[Ordering]

    # Dot-separated relation chains to pre-fetch alongside the root, e.g. "parent.grandparent".
    eager_loads: Tuple[str, ...]
    eager_load_tree: Tuple[EagerLoadNode, ...]

    projections: Tuple[Projection, ...]

    @property
    def and_filters(self) -> Tuple[FilterClause, ...]:
        """Return the filters that must all hold."""
        return tuple(clause for clause in self.filters if clause.boolean == BooleanContext.And)

    @property
    def or_filters(self) -> Tuple[FilterClause, ...]:
        """Return the filters of which at least one must hold, grouped together."""
        return tuple(clause for clause in self.filters if clause.boolean == BooleanContext.Or)
