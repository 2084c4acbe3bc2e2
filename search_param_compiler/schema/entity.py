# Copyright 2019-present Kensho Technologies, LLC.
from dataclasses import dataclass, field
from enum import Enum, auto, unique
from types import MappingProxyType
from typing import AbstractSet, Iterable, Mapping, Optional, Union

from ..global_utils import to_snake_case


@unique
class RelationKind(Enum):
    """The cardinality of a relation, as seen from its source entity."""

    # Each source row points to at most one target row, via a foreign key on the source table.
    ToOne = auto()

    # Each source row is pointed to by any number of target rows, via a foreign key on the
    # target table.
    ToMany = auto()


@dataclass(frozen=True)
class RelationDescriptor:
    """Describes a named relationship from one entity to another.

    The resulting join expression could be something like:
    - ToOne:  source_table.foreign_key = target_table.referenced_key
    - ToMany: source_table.referenced_key = target_table.foreign_key
    where referenced_key falls back to the primary key of the referenced table.
    """

    name: str  # Name of the relation, as used in "_with" chains and relation-prefixed fields.
    kind: RelationKind
    foreign_key: str  # Name of the foreign key column; on which table depends on the kind.
    target_entity: str  # Name of the destination entity in the SchemaInfo.

    # Column the foreign key points to, if it is not the primary key of the referenced table.
    # The referenced table is the target for ToOne relations and the source for ToMany ones.
    referenced_key: Optional[str] = None


@dataclass(frozen=True, init=False)
class EntityDescriptor:
    """Static schema metadata for one entity type."""

    name: str  # Type name of the entity, e.g. "ParentNode".
    table_name: str
    primary_key: str

    # Names of the fields that may be filtered and ordered on.
    searchable_fields: AbstractSet[str]

    # Relation name -> RelationDescriptor for every relation declared on this entity.
    relationships: Mapping[str, RelationDescriptor] = field(
        default_factory=dict, hash=False
    )

    # Prefix that marks request parameters addressed unambiguously to this entity.
    # Defaults to the snake_case form of the entity name.
    namespace: str = ""

    def __init__(
        self,
        name: str,
        table_name: str,
        primary_key: str,
        searchable_fields: Iterable[str],
        relationships: Union[
            Mapping[str, RelationDescriptor], Iterable[RelationDescriptor], None
        ] = None,
        namespace: Optional[str] = None,
    ) -> None:
        """Initialize the EntityDescriptor, freezing its collections."""
        if relationships is None:
            relation_by_name = {}
        elif isinstance(relationships, Mapping):
            relation_by_name = dict(relationships)
        else:
            relation_by_name = {relation.name: relation for relation in relationships}

        for relation_name, relation in relation_by_name.items():
            if relation_name != relation.name:
                raise AssertionError(
                    f"Relation {relation} of entity {name} is registered under "
                    f"mismatched name {relation_name}."
                )

        # Per the docs, frozen dataclasses use object.__setattr__() to write their attributes.
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "table_name", table_name)
        object.__setattr__(self, "primary_key", primary_key)
        object.__setattr__(self, "searchable_fields", frozenset(searchable_fields))
        object.__setattr__(self, "relationships", MappingProxyType(relation_by_name))
        object.__setattr__(self, "namespace", namespace or to_snake_case(name))

    def is_searchable(self, field_name: str) -> bool:
        """Return True if the entity allows filtering and ordering on the given field."""
        return field_name in self.searchable_fields

    def get_relation(self, relation_name: str) -> Optional[RelationDescriptor]:
        """Return the relation with the given name, or None if the entity does not declare it."""
        return self.relationships.get(relation_name)
