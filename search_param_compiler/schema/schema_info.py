# Copyright 2019-present Kensho Technologies, LLC.
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Mapping

from ..exceptions import InvalidEntityError, InvalidSchemaError
from .entity import EntityDescriptor, RelationDescriptor


@dataclass(frozen=True)
class SchemaInfo:
    """All schema information needed to compile request parameters into query plans.

    Created once at schema-registration time and never mutated afterward, so a single
    SchemaInfo may be shared by any number of concurrent compilations.
    """

    # Entity name -> EntityDescriptor, for every entity that can be compiled against or joined.
    entities: Mapping[str, EntityDescriptor]

    def get_entity(self, entity_name: str) -> EntityDescriptor:
        """Return the entity with the given name, raising InvalidEntityError if there is none."""
        entity = self.entities.get(entity_name)
        if entity is None:
            raise InvalidEntityError(
                f"Entity {entity_name} is not part of the schema. "
                f"Known entities: {sorted(self.entities)}"
            )
        return entity

    def get_relation_target(self, relation: RelationDescriptor) -> EntityDescriptor:
        """Return the destination entity of the given relation."""
        target = self.entities.get(relation.target_entity)
        if target is None:
            raise AssertionError(
                f"Relation {relation} points to entity {relation.target_entity}, which is "
                f"not part of the schema. This should have been caught by make_schema_info."
            )
        return target


def make_schema_info(entities: Iterable[EntityDescriptor]) -> SchemaInfo:
    """Validate the given entity descriptors and wrap them into a SchemaInfo.

    Args:
        entities: every EntityDescriptor in the schema. Entity names must be unique, and every
                  relation must point to an entity in this collection.

    Returns:
        SchemaInfo containing the given entities
    """
    entity_by_name: Dict[str, EntityDescriptor] = {}
    for entity in entities:
        if not isinstance(entity, EntityDescriptor):
            raise InvalidSchemaError(
                f"Expected an EntityDescriptor, but got {entity} of type {type(entity)}."
            )
        if entity.name in entity_by_name:
            raise InvalidSchemaError(f"Found duplicate entity name {entity.name} in the schema.")
        entity_by_name[entity.name] = entity

    for entity in entity_by_name.values():
        for relation in entity.relationships.values():
            if relation.target_entity not in entity_by_name:
                raise InvalidSchemaError(
                    f"Relation {relation.name} of entity {entity.name} references a "
                    f"non-existent entity {relation.target_entity}."
                )

    return SchemaInfo(entities=MappingProxyType(entity_by_name))
