# Copyright 2019-present Kensho Technologies, LLC.
from dataclasses import dataclass
from enum import Enum, auto, unique
from typing import Dict, Mapping, Optional, Sequence, Union

from .options import CompilationOptions


# Values arrive as strings, or as lists of strings for keys repeated in the request.
RawParameterValue = Union[str, Sequence[str]]
RawParameterSet = Mapping[str, RawParameterValue]

CONTROL_VALUE_LIST_SEPARATOR = ","


@unique
class ParameterCategory(Enum):
    """The bucket a request parameter is sorted into."""

    Control = auto()  # Configures the shape of the plan, e.g. "_with" or "_orderBy".
    Namespaced = auto()  # Filters a field of the root entity, e.g. "simple_name".
    General = auto()  # Filters a bare field name, e.g. "name".


@dataclass(frozen=True)
class ClassifiedParameters:
    """Request parameters partitioned by category. Each raw key lands in exactly one bucket."""

    control: Dict[str, RawParameterValue]
    namespaced: Dict[str, RawParameterValue]
    general: Dict[str, RawParameterValue]


def classify_parameter(key: str, namespace: str, options: CompilationOptions) -> ParameterCategory:
    """Return the category of a single request parameter key.

    Args:
        key: the raw request parameter name
        namespace: the namespace tag of the root entity, e.g. "simple" for entity Simple
        options: the request vocabulary in use

    Returns:
        the ParameterCategory of the key
    """
    if key.startswith(options.control_sigil):
        return ParameterCategory.Control
    elif key.startswith(namespace + options.namespace_separator):
        return ParameterCategory.Namespaced
    else:
        return ParameterCategory.General


def classify_parameters(
    parameters: RawParameterSet, namespace: str, options: CompilationOptions
) -> ClassifiedParameters:
    """Partition the request parameters into control, namespaced and general buckets.

    Keys are kept verbatim: namespaced keys keep their prefix until strip_namespace is
    called on them, and unknown control keys are preserved but never consumed.
    """
    buckets: Dict[ParameterCategory, Dict[str, RawParameterValue]] = {
        category: {} for category in ParameterCategory
    }
    for key, value in parameters.items():
        buckets[classify_parameter(key, namespace, options)][key] = value

    return ClassifiedParameters(
        control=buckets[ParameterCategory.Control],
        namespaced=buckets[ParameterCategory.Namespaced],
        general=buckets[ParameterCategory.General],
    )


def strip_namespace(key: str, namespace: str, options: CompilationOptions) -> str:
    """Return the field name addressed by a namespaced parameter key."""
    prefix = namespace + options.namespace_separator
    if not key.startswith(prefix):
        raise AssertionError(f"Key {key} is not namespaced with prefix {prefix}.")
    return key[len(prefix) :]


def get_control_value(control: Mapping[str, RawParameterValue], key: str) -> Optional[str]:
    """Return the value of a control parameter as a single string, or None if it is absent.

    Repeated keys accumulate: their values are joined as if they were a comma-separated list.
    """
    if key not in control:
        return None
    value = control[key]
    if not isinstance(value, (list, tuple)):
        return str(value)
    return CONTROL_VALUE_LIST_SEPARATOR.join(str(element) for element in value)


def get_filter_value(value: RawParameterValue) -> Optional[str]:
    """Return the value to filter on, or None if the parameter carries no value at all.

    When a filter key is repeated in the request, the last occurrence wins.
    """
    if not isinstance(value, (list, tuple)):
        return value
    if not value:
        return None
    return value[-1]


def split_control_list(value: str) -> Sequence[str]:
    """Split a comma-separated control value into its non-blank, whitespace-trimmed entries."""
    entries = (entry.strip() for entry in value.split(CONTROL_VALUE_LIST_SEPARATOR))
    return [entry for entry in entries if entry]
