# Copyright 2019-present Kensho Technologies, LLC.
from typing import Dict, Iterable, Mapping, Optional

from sqlalchemy import Table

from ...global_utils import merge_non_overlapping_dicts
from ...schema.entity import EntityDescriptor, RelationDescriptor
from ...schema.schema_info import SchemaInfo, make_schema_info
from .relation_descriptors import (
    generate_to_one_relations_from_foreign_keys,
    validate_relation_descriptors,
)
from .utils import (
    get_primary_key_name,
    validate_that_tables_belong_to_the_same_metadata_object,
    validate_that_tables_have_primary_keys,
)


def get_schema_info_from_sqlalchemy_tables(
    entity_name_to_table: Mapping[str, Table],
    relations: Optional[Mapping[str, Iterable[RelationDescriptor]]] = None,
    searchable_fields: Optional[Mapping[str, Iterable[str]]] = None,
) -> SchemaInfo:
    """Return a SchemaInfo describing the given SQLAlchemy tables.

    Args:
        entity_name_to_table: dict, str -> SQLAlchemy Table. Each table becomes an entity named
                              after its dictionary key, e.g. "ParentNode". The namespace of the
                              entity is the snake_case form of that name. Every table must
                              have a single-column primary key.
        relations: optional dict, entity name -> RelationDescriptors declared on that entity.
                   Use this for to-many relations and for to-one relations that should not be
                   named after their foreign key column. A to-one relation is also generated
                   for every single-column foreign key in the tables, named after the column
                   without its "_id" suffix (e.g. parent_id -> parent), unless a declared
                   relation already uses that name.
        searchable_fields: optional dict, entity name -> names of the columns that may be
                           filtered and ordered on. Entities without an entry get every column
                           except their primary key.

    Return:
        SchemaInfo containing an EntityDescriptor for every table
    """
    if relations is None:
        relations = {}
    if searchable_fields is None:
        searchable_fields = {}

    tables = list(entity_name_to_table.values())
    validate_that_tables_belong_to_the_same_metadata_object(tables)
    validate_that_tables_have_primary_keys(tables)
    validate_relation_descriptors(entity_name_to_table, relations)

    generated_relations = generate_to_one_relations_from_foreign_keys(entity_name_to_table)

    entities = []
    for entity_name, table in entity_name_to_table.items():
        declared: Dict[str, RelationDescriptor] = {
            relation.name: relation for relation in relations.get(entity_name, ())
        }
        generated: Dict[str, RelationDescriptor] = {
            relation.name: relation
            for relation in generated_relations.get(entity_name, ())
            if relation.name not in declared
        }

        primary_key = get_primary_key_name(table)
        entity_searchable_fields = searchable_fields.get(entity_name)
        if entity_searchable_fields is None:
            entity_searchable_fields = [
                column.name for column in table.columns if column.name != primary_key
            ]

        entities.append(
            EntityDescriptor(
                name=entity_name,
                table_name=table.name,
                primary_key=primary_key,
                searchable_fields=entity_searchable_fields,
                relationships=merge_non_overlapping_dicts(declared, generated),
            )
        )

    return make_schema_info(entities)
