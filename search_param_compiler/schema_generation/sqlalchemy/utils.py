# Copyright 2019-present Kensho Technologies, LLC.
from typing import Iterable, Set

from sqlalchemy import Table

from ...exceptions import MissingPrimaryKeyError


def validate_that_tables_have_primary_keys(tables: Iterable[Table]) -> None:
    """Validate that each SQLAlchemy Table object has a single-column primary key."""
    tables_missing_primary_keys: Set[str] = set()
    for table in tables:
        if len(table.primary_key.columns) != 1:
            tables_missing_primary_keys.add(table.fullname)
    if tables_missing_primary_keys:
        raise MissingPrimaryKeyError(
            "At least one SQLAlchemy Table is missing a single-column "
            "primary key. Note that the primary keys in SQLAlchemy "
            "Table objects do not have to match the primary keys in "
            "the underlying row. They must simply be unique and "
            f"non-null identifiers of each row. Tables missing primary keys: "
            f"{tables_missing_primary_keys}"
        )


def validate_that_tables_belong_to_the_same_metadata_object(tables: Iterable[Table]) -> None:
    """Validate that all the SQLAlchemy Table objects belong to the same MetaData object."""
    metadata = None
    for table in tables:
        if metadata is None:
            metadata = table.metadata
        else:
            if table.metadata is not metadata:
                raise AssertionError(
                    "Multiple SQLAlchemy MetaData objects used for schema generation."
                )


def get_primary_key_name(table: Table) -> str:
    """Return the name of the single-column primary key of the table."""
    primary_key_columns = list(table.primary_key.columns)
    if len(primary_key_columns) != 1:
        raise AssertionError(
            f"Expected table {table.fullname} to have a single-column primary key, but found "
            f"{primary_key_columns}. This should have been caught by "
            f"validate_that_tables_have_primary_keys."
        )
    return str(primary_key_columns[0].name)
