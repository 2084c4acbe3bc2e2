# Copyright 2019-present Kensho Technologies, LLC.
import logging
from typing import List, Mapping, Optional

from ..exceptions import ConflictingModifiersError
from .field_mapping import map_field
from .options import CompilationOptions
from .parameter_classification import (
    RawParameterValue,
    get_control_value,
    get_filter_value,
    split_control_list,
)
from .query_plan import RANDOM_ORDER, OrderClause, OrderDirection, Ordering, RelationClosure


logger = logging.getLogger(__name__)


DESCENDING_ORDER_VALUE = "desc"


def check_ordering_conflict(
    control: Mapping[str, RawParameterValue], options: CompilationOptions
) -> None:
    """Raise ConflictingModifiersError if both field ordering and random ordering are requested."""
    if options.order_by_key in control and options.order_random_key in control:
        raise ConflictingModifiersError(
            f"Cannot combine {options.order_by_key} with {options.order_random_key}: a query "
            f"is either ordered by fields or randomly ordered. Received "
            f"{options.order_by_key}={control[options.order_by_key]!r} and "
            f"{options.order_random_key}={control[options.order_random_key]!r}."
        )


def get_order_direction(direction_value: Optional[str]) -> OrderDirection:
    """Return Descending for "desc" in any letter case, and Ascending for everything else."""
    if direction_value is not None and direction_value.lower() == DESCENDING_ORDER_VALUE:
        return OrderDirection.Descending
    return OrderDirection.Ascending


def resolve_ordering(
    closure: RelationClosure,
    control: Mapping[str, RawParameterValue],
    options: CompilationOptions,
) -> Optional[Ordering]:
    """Return the ordering requested by the control parameters.

    Args:
        closure: the relation closure of the current compilation
        control: the control parameters of the request
        options: the request vocabulary in use

    Returns:
        - RANDOM_ORDER if random ordering is requested;
        - a tuple of OrderClauses, one per "_orderBy" field that maps onto the closure,
          all in the "_order" direction;
        - None if no ordering is requested, or none of the requested fields could be mapped.
    """
    check_ordering_conflict(control, options)

    if options.order_random_key in control:
        return RANDOM_ORDER

    order_by_value = get_control_value(control, options.order_by_key)
    if order_by_value is None:
        return None

    direction_value = None
    if options.order_direction_key in control:
        direction_value = get_filter_value(control[options.order_direction_key])
    direction = get_order_direction(direction_value)

    order_clauses: List[OrderClause] = []
    for field_name in split_control_list(order_by_value):
        mapping = map_field(closure, field_name)
        if mapping is None:
            logger.debug("Dropping order field %s, which maps to no joined entity.", field_name)
            continue
        order_clauses.append(
            OrderClause(table_alias=mapping.member.alias, field=mapping.field, direction=direction)
        )

    if not order_clauses:
        return None
    return tuple(order_clauses)
