# Copyright 2019-present Kensho Technologies, LLC.
import unittest

from ..compiler.options import CompilationOptions
from ..compiler.predicates import build_filter_clause, coerce_scalar
from ..compiler.query_plan import BooleanContext, FilterClause, FilterOperator


class ScalarCoercionTests(unittest.TestCase):
    def test_booleans(self) -> None:
        self.assertIs(True, coerce_scalar("true"))
        self.assertIs(False, coerce_scalar("false"))
        self.assertEqual("True", coerce_scalar("True"))

    def test_nulls(self) -> None:
        self.assertIsNone(coerce_scalar("null"))
        self.assertIsNone(coerce_scalar("undefined"))
        self.assertEqual("NULL", coerce_scalar("NULL"))

    def test_integers(self) -> None:
        test_data = {
            "0": 0,
            "42": 42,
            "-17": -17,
            "1.0": 1,
            "1e3": 1000,
            "2.5E2": 250,
            "123456789012345678901234567890": 123456789012345678901234567890,
        }
        for raw_value, expected_value in test_data.items():
            coerced_value = coerce_scalar(raw_value)
            self.assertEqual(expected_value, coerced_value, msg=raw_value)
            self.assertIsInstance(coerced_value, int, msg=raw_value)

    def test_floats(self) -> None:
        test_data = {
            "0.5": 0.5,
            "-3.25": -3.25,
            "0.1": 0.1,
            "1.5e-3": 0.0015,
        }
        for raw_value, expected_value in test_data.items():
            coerced_value = coerce_scalar(raw_value)
            self.assertEqual(expected_value, coerced_value, msg=raw_value)
            self.assertIsInstance(coerced_value, float, msg=raw_value)

    def test_values_kept_as_strings(self) -> None:
        for raw_value in (
            "something",
            "",
            " 42",
            "007",
            "+5",
            ".5",
            "5.",
            "1,000",
            "nan",
            "inf",
            "0x1A",
            "1e400",
            # More significant digits than a float can hold.
            "3.14159265358979323846",
        ):
            self.assertEqual(raw_value, coerce_scalar(raw_value))

    def test_non_string_values_pass_through(self) -> None:
        self.assertEqual(5, coerce_scalar(5))
        self.assertIsNone(coerce_scalar(None))


class FilterClauseTests(unittest.TestCase):
    def test_equality_filter(self) -> None:
        self.assertEqual(
            FilterClause(
                table_alias="simples",
                field="input",
                operator=FilterOperator.Eq,
                value="something",
                boolean=BooleanContext.And,
            ),
            build_filter_clause("simples", "input", "something", BooleanContext.And),
        )

    def test_equality_filter_coerces_value(self) -> None:
        clause = build_filter_clause("simples", "input", "42", BooleanContext.Or)
        self.assertEqual(FilterOperator.Eq, clause.operator)
        self.assertEqual(42, clause.value)
        self.assertEqual(BooleanContext.Or, clause.boolean)

    def test_like_filters(self) -> None:
        test_data = {
            "~something": "%something",
            "something~": "something%",
            "some~thing": "some%thing",
            "~some~thing~": "%some%thing%",
            "~": "%",
            # Pattern values are never coerced.
            "~42": "%42",
        }
        for raw_value, expected_pattern in test_data.items():
            clause = build_filter_clause("simples", "name", raw_value, BooleanContext.And)
            self.assertEqual(FilterOperator.Like, clause.operator, msg=raw_value)
            self.assertEqual(expected_pattern, clause.value, msg=raw_value)

    def test_like_filter_with_custom_wildcards(self) -> None:
        options = CompilationOptions(wildcard_marker="*", pattern_wildcard="%")
        clause = build_filter_clause("simples", "name", "some*", BooleanContext.And, options)
        self.assertEqual(FilterOperator.Like, clause.operator)
        self.assertEqual("some%", clause.value)

        clause = build_filter_clause("simples", "name", "some~", BooleanContext.And, options)
        self.assertEqual(FilterOperator.Eq, clause.operator)
        self.assertEqual("some~", clause.value)
