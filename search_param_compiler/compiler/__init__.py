# Copyright 2017-present Kensho Technologies, LLC.
from .common import compile_query_plan  # noqa
from .options import DEFAULT_COMPILATION_OPTIONS, CompilationOptions  # noqa
from .query_plan import (  # noqa
    ALL_COLUMNS_FIELD,
    RANDOM_ORDER,
    BooleanContext,
    ClosureMember,
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
    RelationClosure,
)
