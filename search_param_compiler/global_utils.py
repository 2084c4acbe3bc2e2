# Copyright 2017-present Kensho Technologies, LLC.
import re
from typing import Dict, Tuple, TypeVar


# A path of relation names, starting at the root entity of a compilation.
# The empty path denotes the root entity itself.
RelationPath = Tuple[str, ...]

RELATION_CHAIN_SEPARATOR = "."

# Every uppercase letter after the first character starts a new word.
_UPPERCASE_BOUNDARY_PATTERN = re.compile(r"(?<=.)(?=[A-Z])")


KT = TypeVar("KT")
VT = TypeVar("VT")


def merge_non_overlapping_dicts(merge_target: Dict[KT, VT], new_data: Dict[KT, VT]) -> Dict[KT, VT]:
    """Produce the merged result of two dicts that are supposed to not overlap."""
    result = dict(merge_target)

    for key, value in new_data.items():
        if key in merge_target:
            raise AssertionError(
                'Overlapping key "{}" found in dicts that are supposed '
                "to not overlap. Values: {} {}".format(key, merge_target[key], value)
            )

        result[key] = value

    return result


def to_snake_case(name: str) -> str:
    """Convert a type name into its snake_case form, e.g. ParentNode -> parent_node.

    Whitespace-separated words are capitalized and joined first, so "Two words" -> two_words.
    Runs of capitals are split letter by letter: HTTPServer -> h_t_t_p_server.
    """
    joined_words = "".join(word[:1].upper() + word[1:] for word in name.split())
    return _UPPERCASE_BOUNDARY_PATTERN.sub("_", joined_words).lower()


def relation_path_to_chain(relation_path: RelationPath) -> str:
    """Return the dot-separated relation chain string for the given relation path."""
    return RELATION_CHAIN_SEPARATOR.join(relation_path)
