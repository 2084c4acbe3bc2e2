# Copyright 2017-present Kensho Technologies, LLC.
"""Commonly-used functions and data types from this package."""
from .compiler import (  # noqa
    ALL_COLUMNS_FIELD,
    RANDOM_ORDER,
    BooleanContext,
    CompilationOptions,
    DEFAULT_COMPILATION_OPTIONS,
    EagerLoadNode,
    FilterClause,
    FilterOperator,
    JoinClause,
    JoinDirection,
    OrderClause,
    OrderDirection,
    Projection,
    QueryPlan,
    RandomOrder,
    compile_query_plan,
)
from .exceptions import (  # noqa
    ConflictingModifiersError,
    InvalidEntityError,
    InvalidRelationError,
    InvalidSchemaError,
    MissingPrimaryKeyError,
    SchemaError,
    SearchParamCompilerError,
)
from .schema import (  # noqa
    EntityDescriptor,
    RelationDescriptor,
    RelationKind,
    SchemaInfo,
    make_schema_info,
)
from .schema_generation.sqlalchemy import get_schema_info_from_sqlalchemy_tables  # noqa


__package_name__ = "search-param-compiler"
__version__ = "1.0.0"
