# Copyright 2019-present Kensho Technologies, LLC.
from dataclasses import dataclass


@dataclass(frozen=True)
class CompilationOptions:
    """The request vocabulary the compiler recognizes.

    The defaults match the conventional request format, e.g.
    ?_with=parent.grandparent&_orderBy=name&_order=desc&simple_name=~smith
    """

    # Keys starting with this prefix configure the plan rather than filter the data.
    control_sigil: str = "_"

    # Separates an entity's namespace from the field name in namespaced parameters.
    namespace_separator: str = "_"

    # Marks a filter value as a pattern; each marker becomes a pattern wildcard.
    wildcard_marker: str = "~"
    pattern_wildcard: str = "%"

    # Control parameter names.
    with_key: str = "_with"
    order_by_key: str = "_orderBy"
    order_direction_key: str = "_order"
    order_random_key: str = "_orderRandom"

    def __post_init__(self) -> None:
        """Validate fields."""
        if not self.control_sigil:
            raise AssertionError("The control_sigil field is expected to be non-empty.")
        if not self.wildcard_marker:
            raise AssertionError("The wildcard_marker field is expected to be non-empty.")
        control_keys = (
            self.with_key,
            self.order_by_key,
            self.order_direction_key,
            self.order_random_key,
        )
        for control_key in control_keys:
            if not control_key.startswith(self.control_sigil):
                raise AssertionError(
                    f"Control key {control_key} does not start with the control sigil "
                    f"{self.control_sigil}, so it would never be classified as a control key."
                )


DEFAULT_COMPILATION_OPTIONS = CompilationOptions()
