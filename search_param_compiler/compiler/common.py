# Copyright 2017-present Kensho Technologies, LLC.
import logging
from typing import List, Mapping, Optional, Tuple, Union

from ..exceptions import InvalidEntityError
from ..schema.entity import EntityDescriptor
from ..schema.schema_info import SchemaInfo
from .field_mapping import FieldMapping, map_field, map_general_field
from .join_graph import build_join_graph
from .options import DEFAULT_COMPILATION_OPTIONS, CompilationOptions
from .ordering import check_ordering_conflict, resolve_ordering
from .parameter_classification import (
    RawParameterSet,
    RawParameterValue,
    classify_parameters,
    get_control_value,
    get_filter_value,
    strip_namespace,
)
from .predicates import build_filter_clause
from .query_plan import (
    ALL_COLUMNS_FIELD,
    BooleanContext,
    ClosureMember,
    FilterClause,
    Projection,
    QueryPlan,
    RelationClosure,
)


logger = logging.getLogger(__name__)


PROJECTION_LABEL_FORMAT_STRING = "{}_{}"


def _get_root_entity(
    schema_info: SchemaInfo, entity: Union[str, EntityDescriptor]
) -> EntityDescriptor:
    """Return the registered EntityDescriptor the compilation starts from."""
    if isinstance(entity, EntityDescriptor):
        if schema_info.entities.get(entity.name) != entity:
            raise InvalidEntityError(
                f"Entity {entity.name} is not the one registered in the schema under that name."
            )
        return entity
    elif isinstance(entity, str):
        return schema_info.get_entity(entity)
    else:
        raise InvalidEntityError(
            f"Can only compile query plans for entities, but got {entity} of type "
            f"{type(entity)}."
        )


def _build_namespaced_filters(
    closure: RelationClosure,
    namespaced: Mapping[str, RawParameterValue],
    options: CompilationOptions,
) -> List[FilterClause]:
    """Return an And filter clause for every namespaced parameter that maps onto the closure."""
    namespace = closure.root.entity.namespace
    filter_clauses: List[FilterClause] = []
    for key, raw_value in namespaced.items():
        value = get_filter_value(raw_value)
        if value is None:
            continue

        field_name = strip_namespace(key, namespace, options)
        mapping = map_field(closure, field_name)
        if mapping is None:
            logger.debug("Dropping filter %s, which maps to no joined entity.", key)
            continue

        filter_clauses.append(
            build_filter_clause(
                mapping.member.alias, mapping.field, value, BooleanContext.And, options
            )
        )
    return filter_clauses


def _build_general_filters(
    closure: RelationClosure,
    general: Mapping[str, RawParameterValue],
    options: CompilationOptions,
) -> List[FilterClause]:
    """Return the filter clauses for the general parameters.

    A general parameter filters every member of the closure that has the field, so that with
    joined relations a search matches the root or any related entity. Those clauses are
    combined with Or whenever relations are joined, and with And otherwise.
    """
    boolean = BooleanContext.Or if closure.is_active else BooleanContext.And
    filter_clauses: List[FilterClause] = []
    for key, raw_value in general.items():
        value = get_filter_value(raw_value)
        if value is None:
            continue

        mappings: Tuple[FieldMapping, ...] = map_general_field(closure, key)
        if not mappings:
            # Relation-prefixed fields, e.g. "parent_name", address a single joined entity.
            mapping = map_field(closure, key)
            if mapping is not None:
                mappings = (mapping,)
        if not mappings:
            logger.debug("Dropping filter %s, which maps to no joined entity.", key)
            continue

        filter_clauses.extend(
            build_filter_clause(mapping.member.alias, mapping.field, value, boolean, options)
            for mapping in mappings
        )
    return filter_clauses


def _build_projections(root: ClosureMember) -> Tuple[Projection, ...]:
    """Return a labeled projection for every searchable field of the root, then all its columns.

    The trailing all-columns projection keeps the primary key and the non-searchable columns
    of the root in the selection.
    """
    labeled_projections = tuple(
        Projection(
            table_alias=root.alias,
            field=field_name,
            label=PROJECTION_LABEL_FORMAT_STRING.format(root.alias, field_name),
        )
        for field_name in sorted(root.entity.searchable_fields)
    )
    return labeled_projections + (Projection(root.alias, ALL_COLUMNS_FIELD, None),)


def compile_query_plan(
    schema_info: SchemaInfo,
    entity: Union[str, EntityDescriptor],
    parameters: RawParameterSet,
    options: Optional[CompilationOptions] = None,
) -> QueryPlan:
    """Compile the request parameters into a QueryPlan against the given root entity.

    Args:
        schema_info: SchemaInfo describing every entity that may be queried or joined
        entity: the root entity, or its name in the schema
        parameters: the request parameters, mapping each key to a string, or to a list of
                    strings for keys repeated in the request
        options: the request vocabulary to use; defaults to DEFAULT_COMPILATION_OPTIONS

    Returns:
        QueryPlan with joins, filters, ordering, eager loads and projections. Compiling the
        same inputs again produces an equal QueryPlan.

    Raises:
        InvalidEntityError: if the entity is not registered in the schema
        ConflictingModifiersError: if the parameters request both field and random ordering
    """
    if options is None:
        options = DEFAULT_COMPILATION_OPTIONS

    root_entity = _get_root_entity(schema_info, entity)
    classified = classify_parameters(parameters, root_entity.namespace, options)
    check_ordering_conflict(classified.control, options)

    join_graph = build_join_graph(
        schema_info, root_entity, get_control_value(classified.control, options.with_key)
    )
    closure = join_graph.closure

    filters = _build_namespaced_filters(closure, classified.namespaced, options)
    filters.extend(_build_general_filters(closure, classified.general, options))

    order = resolve_ordering(closure, classified.control, options)

    projections: Tuple[Projection, ...] = ()
    if join_graph.joins:
        projections = _build_projections(closure.root)

    logger.debug(
        "Compiled query plan for entity %(entity)s with %(joins)d joins and %(filters)d filters.",
        {"entity": root_entity.name, "joins": len(join_graph.joins), "filters": len(filters)},
    )

    return QueryPlan(
        root_entity=root_entity.name,
        root_alias=closure.root.alias,
        joins=join_graph.joins,
        filters=tuple(filters),
        order=order,
        eager_loads=join_graph.eager_loads,
        eager_load_tree=join_graph.eager_load_tree,
        projections=projections,
    )
