# Copyright 2019-present Kensho Technologies, LLC.
"""Expand "_with" relation chains into joins, table aliases and eager-load instructions."""
from dataclasses import dataclass
import logging
from typing import AbstractSet, Dict, List, Optional, Sequence, Set, Tuple

import funcy

from ..global_utils import RELATION_CHAIN_SEPARATOR, RelationPath, relation_path_to_chain
from ..schema.entity import EntityDescriptor, RelationDescriptor, RelationKind
from ..schema.schema_info import SchemaInfo
from .parameter_classification import split_control_list
from .query_plan import (
    ClosureMember,
    EagerLoadNode,
    JoinClause,
    JoinDirection,
    RelationClosure,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JoinGraph:
    """Everything derived from the requested relation chains."""

    joins: Tuple[JoinClause, ...]
    closure: RelationClosure
    eager_loads: Tuple[str, ...]
    eager_load_tree: Tuple[EagerLoadNode, ...]


def _allocate_alias(
    table_name: str, table_occurrences: Dict[str, int], taken_aliases: AbstractSet[str]
) -> str:
    """Return the alias for the next occurrence of the table in the plan.

    The first occurrence of a table keeps the bare table name. Each later occurrence gets the
    suffix _1, then _2, etc., skipping any name that is already in use in the plan.
    """
    occurrences = table_occurrences.get(table_name, 0)
    alias = table_name
    if occurrences > 0:
        alias = "{}_{}".format(table_name, occurrences)
    while alias in taken_aliases:
        occurrences += 1
        alias = "{}_{}".format(table_name, occurrences)
    table_occurrences[table_name] = occurrences + 1
    return alias


def _make_join_clause(
    source: ClosureMember, relation: RelationDescriptor, target: EntityDescriptor, alias: str
) -> JoinClause:
    """Return the join that attaches the target of the relation onto the source member."""
    if relation.kind == RelationKind.ToOne:
        direction = JoinDirection.Left
        source_key = relation.foreign_key
        target_key = relation.referenced_key or target.primary_key
    elif relation.kind == RelationKind.ToMany:
        direction = JoinDirection.Right
        source_key = relation.referenced_key or source.entity.primary_key
        target_key = relation.foreign_key
    else:
        raise AssertionError(f"Unknown relation kind {relation.kind} for relation {relation}.")

    return JoinClause(
        direction=direction,
        source_alias=source.alias,
        source_key=source_key,
        target_table=target.table_name,
        target_alias=alias,
        target_key=target_key,
    )


def _build_eager_load_tree(members: Sequence[ClosureMember]) -> Tuple[EagerLoadNode, ...]:
    """Arrange the joined members into a tree of eager loads, built from the leaves up."""

    def build_children(parent_path: RelationPath) -> Tuple[EagerLoadNode, ...]:
        return tuple(
            EagerLoadNode(
                relation=member.path[-1],
                alias=member.alias,
                children=build_children(member.path),
            )
            for member in members
            if member.path and member.path[:-1] == parent_path
        )

    return build_children(())


def build_join_graph(
    schema_info: SchemaInfo, root_entity: EntityDescriptor, with_value: Optional[str]
) -> JoinGraph:
    """Walk every relation chain of the "_with" value and collect the resulting joins.

    Args:
        schema_info: the schema the root entity belongs to
        root_entity: the entity the compilation starts from
        with_value: comma-separated list of dot-separated relation chains, e.g.
                    "parent.grandparent,other_parent", or None if not requested

    Returns:
        JoinGraph with the joins in traversal order, the relation closure, and the resolved
        part of every chain as an eager load. A chain with an unknown relation name is
        truncated at that name; the joins resolved before it are kept.
    """
    root_member = ClosureMember(alias=root_entity.table_name, entity=root_entity, path=())
    members: List[ClosureMember] = [root_member]
    member_by_path: Dict[RelationPath, ClosureMember] = {(): root_member}

    # The root table is the first occurrence of its own table.
    table_occurrences: Dict[str, int] = {root_entity.table_name: 1}
    taken_aliases: Set[str] = {root_member.alias}

    joins: List[JoinClause] = []
    eager_loads: List[str] = []

    for chain in split_control_list(with_value or ""):
        current = root_member
        for relation_name in chain.split(RELATION_CHAIN_SEPARATOR):
            relation_name = relation_name.strip()
            relation = current.entity.get_relation(relation_name)
            if relation is None:
                logger.debug(
                    "Truncating relation chain %(chain)s at %(relation)s: entity %(entity)s "
                    "declares no such relation.",
                    {"chain": chain, "relation": relation_name, "entity": current.entity.name},
                )
                break

            path = current.path + (relation_name,)
            next_member = member_by_path.get(path)
            if next_member is None:
                target = schema_info.get_relation_target(relation)
                alias = _allocate_alias(target.table_name, table_occurrences, taken_aliases)
                taken_aliases.add(alias)
                joins.append(_make_join_clause(current, relation, target, alias))

                next_member = ClosureMember(alias=alias, entity=target, path=path)
                members.append(next_member)
                member_by_path[path] = next_member
            current = next_member

        if current.path:
            eager_loads.append(relation_path_to_chain(current.path))

    return JoinGraph(
        joins=tuple(joins),
        closure=RelationClosure(members=tuple(members)),
        eager_loads=tuple(funcy.distinct(eager_loads)),
        eager_load_tree=_build_eager_load_tree(members),
    )
