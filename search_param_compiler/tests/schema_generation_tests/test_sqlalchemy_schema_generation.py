# Copyright 2019-present Kensho Technologies, LLC.
from typing import Dict
import unittest

from sqlalchemy import Column, ForeignKey, ForeignKeyConstraint, Integer, MetaData, String, Table
from sqlalchemy.types import Date

from ... import compile_query_plan, get_schema_info_from_sqlalchemy_tables
from ...compiler.query_plan import JoinClause, JoinDirection
from ...exceptions import InvalidRelationError, MissingPrimaryKeyError
from ...schema import RelationDescriptor, RelationKind
from ...schema_generation.sqlalchemy.relation_descriptors import (
    generate_to_one_relations_from_foreign_keys,
)


def _get_test_entity_name_to_table() -> Dict[str, Table]:
    """Return a dict mapping the name of each entity to the underlying SQLAlchemy Table."""
    metadata = MetaData()
    simples = Table(
        "simples",
        metadata,
        Column("id", Integer(), primary_key=True),
        Column("name", String()),
        Column("input", String()),
        Column("parent_id", Integer(), ForeignKey("parent_nodes.id")),
    )
    parent_nodes = Table(
        "parent_nodes",
        metadata,
        Column("id", Integer(), primary_key=True),
        Column("name", String()),
        Column("due_date", Date()),
        Column("grand_parent_node_id", Integer(), ForeignKey("grand_parent_nodes.id")),
    )
    grand_parent_nodes = Table(
        "grand_parent_nodes",
        metadata,
        Column("id", Integer(), primary_key=True),
        Column("name", String()),
    )
    return {
        "Simple": simples,
        "ParentNode": parent_nodes,
        "GrandParentNode": grand_parent_nodes,
    }


class SQLAlchemySchemaInfoGenerationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.maxDiff = None
        self.entity_name_to_table = _get_test_entity_name_to_table()

    def test_entities_from_tables(self) -> None:
        schema_info = get_schema_info_from_sqlalchemy_tables(self.entity_name_to_table)
        simple = schema_info.get_entity("Simple")
        self.assertEqual("simples", simple.table_name)
        self.assertEqual("id", simple.primary_key)
        self.assertEqual("simple", simple.namespace)
        self.assertEqual(frozenset({"name", "input", "parent_id"}), simple.searchable_fields)
        self.assertEqual("parent_node", schema_info.get_entity("ParentNode").namespace)

    def test_to_one_relations_from_foreign_keys(self) -> None:
        schema_info = get_schema_info_from_sqlalchemy_tables(self.entity_name_to_table)
        self.assertEqual(
            {"parent": RelationDescriptor("parent", RelationKind.ToOne, "parent_id", "ParentNode")},
            dict(schema_info.get_entity("Simple").relationships),
        )
        self.assertEqual(
            {
                "grand_parent_node": RelationDescriptor(
                    "grand_parent_node",
                    RelationKind.ToOne,
                    "grand_parent_node_id",
                    "GrandParentNode",
                )
            },
            dict(schema_info.get_entity("ParentNode").relationships),
        )
        self.assertEqual({}, dict(schema_info.get_entity("GrandParentNode").relationships))

    def test_declared_relations(self) -> None:
        relations = {
            "ParentNode": [
                RelationDescriptor(
                    "grandparent", RelationKind.ToOne, "grand_parent_node_id", "GrandParentNode"
                ),
                RelationDescriptor("children", RelationKind.ToMany, "parent_id", "Simple"),
            ],
        }
        schema_info = get_schema_info_from_sqlalchemy_tables(
            self.entity_name_to_table, relations=relations
        )
        self.assertEqual(
            {"grandparent", "grand_parent_node", "children"},
            set(schema_info.get_entity("ParentNode").relationships),
        )

        plan = compile_query_plan(schema_info, "ParentNode", {"_with": "children.parent"})
        self.assertEqual(
            (
                JoinClause(
                    JoinDirection.Right, "parent_nodes", "id", "simples", "simples", "parent_id"
                ),
                JoinClause(
                    JoinDirection.Left,
                    "simples",
                    "parent_id",
                    "parent_nodes",
                    "parent_nodes_1",
                    "id",
                ),
            ),
            plan.joins,
        )

    def test_declared_relation_overrides_generated_one(self) -> None:
        relations = {
            "Simple": [RelationDescriptor("parent", RelationKind.ToOne, "parent_id", "ParentNode")],
        }
        schema_info = get_schema_info_from_sqlalchemy_tables(
            self.entity_name_to_table, relations=relations
        )
        self.assertEqual(["parent"], list(schema_info.get_entity("Simple").relationships))

    def test_searchable_field_override(self) -> None:
        schema_info = get_schema_info_from_sqlalchemy_tables(
            self.entity_name_to_table, searchable_fields={"Simple": ["name"]}
        )
        self.assertEqual(frozenset({"name"}), schema_info.get_entity("Simple").searchable_fields)
        self.assertEqual(
            frozenset({"name", "due_date", "grand_parent_node_id"}),
            schema_info.get_entity("ParentNode").searchable_fields,
        )

    def test_relation_to_non_existent_entity(self) -> None:
        relations = {
            "Simple": [RelationDescriptor("other", RelationKind.ToOne, "parent_id", "Nonexistent")],
        }
        with self.assertRaises(InvalidRelationError):
            get_schema_info_from_sqlalchemy_tables(self.entity_name_to_table, relations=relations)

    def test_relation_on_non_existent_entity(self) -> None:
        relations = {
            "Nonexistent": [
                RelationDescriptor("parent", RelationKind.ToOne, "parent_id", "ParentNode")
            ],
        }
        with self.assertRaises(InvalidRelationError):
            get_schema_info_from_sqlalchemy_tables(self.entity_name_to_table, relations=relations)

    def test_relation_with_non_existent_column(self) -> None:
        # For to-many relations, the foreign key lives on the target table.
        relations = {
            "Simple": [
                RelationDescriptor("parents", RelationKind.ToMany, "parent_id", "ParentNode")
            ],
        }
        with self.assertRaises(InvalidRelationError):
            get_schema_info_from_sqlalchemy_tables(self.entity_name_to_table, relations=relations)

    def test_missing_primary_key(self) -> None:
        metadata = MetaData()
        table = Table("no_keys", metadata, Column("name", String()))
        with self.assertRaises(MissingPrimaryKeyError):
            get_schema_info_from_sqlalchemy_tables({"NoKeys": table})

    def test_composite_primary_key(self) -> None:
        metadata = MetaData()
        table = Table(
            "composite_keys",
            metadata,
            Column("key1", Integer(), primary_key=True),
            Column("key2", Integer(), primary_key=True),
        )
        with self.assertRaises(MissingPrimaryKeyError):
            get_schema_info_from_sqlalchemy_tables({"CompositeKeys": table})

    def test_tables_from_different_metadata(self) -> None:
        entity_name_to_table = dict(self.entity_name_to_table)
        entity_name_to_table["Other"] = Table(
            "others", MetaData(), Column("id", Integer(), primary_key=True)
        )
        with self.assertRaises(AssertionError):
            get_schema_info_from_sqlalchemy_tables(entity_name_to_table)

    def test_foreign_key_without_id_suffix(self) -> None:
        metadata = MetaData()
        authors = Table("authors", metadata, Column("id", Integer(), primary_key=True))
        books = Table(
            "books",
            metadata,
            Column("id", Integer(), primary_key=True),
            Column("written_by", Integer(), ForeignKey("authors.id")),
        )
        relations = generate_to_one_relations_from_foreign_keys(
            {"BookAuthor": authors, "Book": books}
        )
        self.assertEqual(
            [RelationDescriptor("book_author", RelationKind.ToOne, "written_by", "BookAuthor")],
            relations["Book"],
        )

    def test_composite_foreign_keys_are_skipped(self) -> None:
        metadata = MetaData()
        targets = Table(
            "targets",
            metadata,
            Column("key1", Integer(), primary_key=True),
            Column("key2", Integer()),
        )
        sources = Table(
            "sources",
            metadata,
            Column("id", Integer(), primary_key=True),
            Column("target_key1", Integer()),
            Column("target_key2", Integer()),
            ForeignKeyConstraint(
                ["target_key1", "target_key2"], ["targets.key1", "targets.key2"]
            ),
        )
        with self.assertWarns(UserWarning):
            relations = generate_to_one_relations_from_foreign_keys(
                {"Target": targets, "Source": sources}
            )
        self.assertEqual([], relations["Source"])

    def test_foreign_key_to_unique_non_primary_key_column(self) -> None:
        metadata = MetaData()
        parent_nodes = Table(
            "parent_nodes",
            metadata,
            Column("id", Integer(), primary_key=True),
            Column("code", String(), unique=True),
            Column("name", String()),
        )
        simples = Table(
            "simples",
            metadata,
            Column("id", Integer(), primary_key=True),
            Column("name", String()),
            Column("parent_id", String(), ForeignKey("parent_nodes.code")),
        )
        schema_info = get_schema_info_from_sqlalchemy_tables(
            {"Simple": simples, "ParentNode": parent_nodes}
        )
        self.assertEqual(
            RelationDescriptor(
                "parent", RelationKind.ToOne, "parent_id", "ParentNode", referenced_key="code"
            ),
            schema_info.get_entity("Simple").get_relation("parent"),
        )

        plan = compile_query_plan(schema_info, "Simple", {"_with": "parent"})
        self.assertEqual(
            (
                JoinClause(
                    JoinDirection.Left,
                    "simples",
                    "parent_id",
                    "parent_nodes",
                    "parent_nodes",
                    "code",
                ),
            ),
            plan.joins,
        )

    def test_declared_relation_with_non_existent_referenced_column(self) -> None:
        relations = {
            "Simple": [
                RelationDescriptor(
                    "parent", RelationKind.ToOne, "parent_id", "ParentNode", referenced_key="code"
                )
            ],
        }
        with self.assertRaises(InvalidRelationError):
            get_schema_info_from_sqlalchemy_tables(self.entity_name_to_table, relations=relations)
