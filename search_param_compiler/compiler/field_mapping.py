# Copyright 2019-present Kensho Technologies, LLC.
"""Resolve request field names to the entities of the relation closure that own them."""
from typing import NamedTuple, Optional, Tuple

from .query_plan import ClosureMember, RelationClosure


# Separates a relation name from the field name in relation-prefixed fields, e.g. "parent_name".
RELATION_FIELD_SEPARATOR = "_"


class FieldMapping(NamedTuple):
    """A field of one specific member of the relation closure."""

    member: ClosureMember
    field: str


def _get_related_member(
    closure: RelationClosure, member: ClosureMember, relation_name: str
) -> Optional[ClosureMember]:
    """Return the member reached from the given member through the named relation, if joined."""
    if member.entity.get_relation(relation_name) is None:
        return None
    return closure.get_member(member.path + (relation_name,))


def _map_relation_prefixed_field(
    closure: RelationClosure, field_name: str, member: ClosureMember
) -> Optional[FieldMapping]:
    """Map a field name of the form <relation>_<field>, where both parts may contain "_".

    Candidate relation names are tried shortest first: for "other_parent_name" the candidates
    are "other" (field "parent_name") and then "other_parent" (field "name"). A candidate
    whose remaining field cannot be mapped on the related entity does not end the search.
    """
    segments = field_name.split(RELATION_FIELD_SEPARATOR)
    for split_index in range(1, len(segments)):
        relation_name = RELATION_FIELD_SEPARATOR.join(segments[:split_index])
        related_member = _get_related_member(closure, member, relation_name)
        if related_member is None:
            continue

        remaining_field_name = RELATION_FIELD_SEPARATOR.join(segments[split_index:])
        mapping = map_field(closure, remaining_field_name, related_member)
        if mapping is not None:
            return mapping

    return None


def map_field(
    closure: RelationClosure, field_name: str, member: Optional[ClosureMember] = None
) -> Optional[FieldMapping]:
    """Determine which member of the relation closure owns the given field.

    Args:
        closure: the relation closure of the current compilation
        field_name: bare or relation-prefixed field name, e.g. "name" or "parent_name"
        member: the member to start from; defaults to the root of the closure

    Returns:
        FieldMapping of the owning member and the field name on it, or None if the field
        cannot be mapped. Fields of the starting member take precedence. Related entities
        are only considered when the closure is active, and only if they were joined.
    """
    if member is None:
        member = closure.root

    if member.entity.is_searchable(field_name):
        return FieldMapping(member, field_name)

    if not closure.is_active:
        return None

    related_member = _get_related_member(closure, member, field_name)
    if related_member is not None:
        mapping = map_field(closure, field_name, related_member)
        if mapping is not None:
            return mapping

    return _map_relation_prefixed_field(closure, field_name, member)


def map_general_field(closure: RelationClosure, field_name: str) -> Tuple[FieldMapping, ...]:
    """Return a mapping for every closure member that has the field, the root first."""
    return tuple(
        FieldMapping(member, field_name)
        for member in closure.members
        if member.entity.is_searchable(field_name)
    )
