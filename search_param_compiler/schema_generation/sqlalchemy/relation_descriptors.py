# Copyright 2019-present Kensho Technologies, LLC.
from typing import Dict, Iterable, List, Mapping, Optional
import warnings

from sqlalchemy import Table

from ...exceptions import InvalidRelationError
from ...global_utils import to_snake_case
from ...schema.entity import RelationDescriptor, RelationKind
from .utils import get_primary_key_name


FOREIGN_KEY_COLUMN_SUFFIX = "_id"


def validate_relation_descriptors(
    entity_name_to_table: Mapping[str, Table],
    relations: Mapping[str, Iterable[RelationDescriptor]],
) -> None:
    """Validate that the relations do not reference non-existent entities or columns."""
    for entity_name, entity_relations in relations.items():
        if entity_name not in entity_name_to_table:
            raise InvalidRelationError(
                f"Relations {list(entity_relations)} are declared on a non-existent "
                f"entity {entity_name}."
            )
        for relation in entity_relations:
            if relation.target_entity not in entity_name_to_table:
                raise InvalidRelationError(
                    "Relation {} of entity {} references a non-existent entity {}".format(
                        relation.name, entity_name, relation.target_entity
                    )
                )

            if relation.kind == RelationKind.ToOne:
                foreign_key_table = entity_name_to_table[entity_name]
                referenced_table = entity_name_to_table[relation.target_entity]
            elif relation.kind == RelationKind.ToMany:
                foreign_key_table = entity_name_to_table[relation.target_entity]
                referenced_table = entity_name_to_table[entity_name]
            else:
                raise AssertionError(
                    f"Unknown relation kind {relation.kind} for relation {relation}."
                )

            if relation.foreign_key not in foreign_key_table.columns:
                raise InvalidRelationError(
                    "Relation {} of entity {} references a non-existent column {} "
                    "in table {}".format(
                        relation.name,
                        entity_name,
                        relation.foreign_key,
                        foreign_key_table.fullname,
                    )
                )

            if (
                relation.referenced_key is not None
                and relation.referenced_key not in referenced_table.columns
            ):
                raise InvalidRelationError(
                    "Relation {} of entity {} references a non-existent column {} "
                    "in table {}".format(
                        relation.name,
                        entity_name,
                        relation.referenced_key,
                        referenced_table.fullname,
                    )
                )


def _get_relation_name_for_foreign_key(column_name: str, referenced_entity_name: str) -> str:
    """Return the relation name implied by a foreign key column, e.g. parent_id -> parent."""
    if column_name.endswith(FOREIGN_KEY_COLUMN_SUFFIX) and len(column_name) > len(
        FOREIGN_KEY_COLUMN_SUFFIX
    ):
        return column_name[: -len(FOREIGN_KEY_COLUMN_SUFFIX)]
    return to_snake_case(referenced_entity_name)


def _get_referenced_key(referenced_column_name: str, referenced_table: Table) -> Optional[str]:
    """Return the referenced column name, or None if it is the primary key of its table."""
    if referenced_column_name == get_primary_key_name(referenced_table):
        return None
    return referenced_column_name


def generate_to_one_relations_from_foreign_keys(
    entity_name_to_table: Mapping[str, Table]
) -> Dict[str, List[RelationDescriptor]]:
    """Generate a to-one relation for each single-column foreign key in the SQLAlchemy tables.

    Args:
        entity_name_to_table: a mapping of entity names to the underlying SQLAlchemy table
                              objects. Each SQLAlchemy table must have an unique entity name.

    Return:
        dict mapping entity names to the relations generated for them. For instance, suppose
        there is a foreign key A.b_id referencing table B, and that V_a and V_b are the entity
        names of table A and B, respectively. Then this function would generate the relation:
        RelationDescriptor(
            name="b",
            kind=RelationKind.ToOne,
            foreign_key="b_id",
            target_entity=V_b,
        )
        on entity V_a. Relations that would share a name with another generated relation are
        skipped, with a warning.
    """
    table_to_entity_name = _get_table_to_entity_name(entity_name_to_table)
    relations: Dict[str, List[RelationDescriptor]] = {}

    number_of_composite_foreign_keys = 0
    for entity_name, table in entity_name_to_table.items():
        entity_relations = relations.setdefault(entity_name, [])
        for fk_constraint in table.foreign_key_constraints:
            foreign_key_columns = list(fk_constraint.columns)
            # The .elements attribute refers to a list of ForeignKey objects.
            referenced_columns = [element.column for element in fk_constraint.elements]
            if len(foreign_key_columns) == 1 and len(referenced_columns) == 1:
                foreign_key_column = foreign_key_columns[0]
                referenced_column = referenced_columns[0]
                referenced_table = referenced_column.table
                if referenced_table not in table_to_entity_name:
                    warnings.warn(
                        "Ignored foreign key {} of table {}, which references table {} "
                        "outside of the schema.".format(
                            foreign_key_column.name, table.fullname, referenced_table.fullname
                        )
                    )
                    continue

                referenced_entity_name = table_to_entity_name[referenced_table]
                relation_name = _get_relation_name_for_foreign_key(
                    foreign_key_column.name, referenced_entity_name
                )
                if any(relation.name == relation_name for relation in entity_relations):
                    warnings.warn(
                        "Ignored foreign key {} of table {}: relation name {} is already "
                        "taken.".format(foreign_key_column.name, table.fullname, relation_name)
                    )
                    continue

                entity_relations.append(
                    RelationDescriptor(
                        name=relation_name,
                        kind=RelationKind.ToOne,
                        foreign_key=foreign_key_column.name,
                        target_entity=referenced_entity_name,
                        referenced_key=_get_referenced_key(
                            referenced_column.name, referenced_table
                        ),
                    )
                )
            elif len(foreign_key_columns) == 0 or len(referenced_columns) == 0:
                raise AssertionError(
                    "Found invalid foreign key in table {}. Foreign key "
                    "columns {}. Referenced primary key columns {}.".format(
                        table.fullname, foreign_key_columns, referenced_columns
                    )
                )
            else:
                number_of_composite_foreign_keys += 1

    if number_of_composite_foreign_keys:
        warnings.warn(
            "Ignored {} relations implied by composite foreign keys. We currently do not "
            "support relations with multiple foreign key columns.".format(
                number_of_composite_foreign_keys
            )
        )

    return relations


def _get_table_to_entity_name(entity_name_to_table: Mapping[str, Table]) -> Dict[Table, str]:
    """Return a mapping of SQLAlchemy Table objects to their entity names."""
    table_to_entity_name: Dict[Table, str] = {}

    for entity_name, table in entity_name_to_table.items():
        if table in table_to_entity_name:
            other_entity_name = table_to_entity_name[table]
            raise AssertionError(
                "Table {} is associated with multiple entities: {} and {}.".format(
                    table.fullname, entity_name, other_entity_name
                )
            )
        table_to_entity_name[table] = entity_name

    return table_to_entity_name
