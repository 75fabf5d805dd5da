"""
Unit tests for the CertLogic expression evaluator.

Tests cover:
- Literals, arrays and var lookups
- Control flow and truthiness
- Integer and date-time comparisons
- plusTime, reduce and extractFromUVCI
- Malformed expressions and operand type errors
"""

from datetime import UTC, datetime

import pytest

from certlogic_engine.core.errors import CertLogicEvaluationError
from certlogic_engine.domain.models import BooleanOutcome, OtherOutcome
from certlogic_engine.engine.certlogic import evaluate, is_truthy, parse_date_time

DATA = {
    "external": {"validationClock": "2021-06-01T00:00:00Z", "valueSets": {"tg": ["840539006"]}},
    "payload": {
        "ver": "1.0.0",
        "v": [{"tg": "840539006", "dn": 2, "sd": 2, "dt": "2021-05-01"}],
    },
}


def value_of(logic, data=DATA):
    outcome = evaluate(logic, data)
    return outcome.value


# ============================================================================
# Outcome tagging
# ============================================================================


@pytest.mark.anyio
async def test_boolean_results_are_tagged_boolean():
    assert evaluate(True, {}) == BooleanOutcome(True)
    assert evaluate({"===": [1, 2]}, {}) == BooleanOutcome(False)


@pytest.mark.anyio
async def test_non_boolean_results_are_tagged_other():
    assert evaluate(None, {}) == OtherOutcome(None)
    assert evaluate(1, {}) == OtherOutcome(1)
    assert evaluate({"var": "payload.v.0.tg"}, DATA) == OtherOutcome("840539006")


@pytest.mark.anyio
async def test_arrays_are_evaluated_element_wise():
    assert value_of([1, {"var": "payload.ver"}, True]) == [1, "1.0.0", True]


# ============================================================================
# var
# ============================================================================


class TestVar:
    @pytest.mark.anyio
    async def test_dotted_path_with_array_index(self):
        assert value_of({"var": "payload.v.0.dn"}) == 2

    @pytest.mark.anyio
    async def test_missing_path_is_null(self):
        assert value_of({"var": "payload.r.0.fr"}) is None
        assert value_of({"var": "payload.v.5"}) is None
        assert value_of({"var": "payload.ver.major"}) is None

    @pytest.mark.anyio
    async def test_empty_path_is_whole_data(self):
        assert value_of({"var": ""}, {"a": 1}) == {"a": 1}

    @pytest.mark.anyio
    async def test_integer_path_indexes_array(self):
        assert value_of({"var": 1}, ["a", "b"]) == "b"

    @pytest.mark.anyio
    async def test_single_element_array_form(self):
        assert value_of({"var": ["payload.ver"]}) == "1.0.0"

    @pytest.mark.anyio
    async def test_non_string_path_raises(self):
        with pytest.raises(CertLogicEvaluationError):
            evaluate({"var": {"x": 1}}, DATA)


# ============================================================================
# Truthiness and control flow
# ============================================================================


@pytest.mark.anyio
@pytest.mark.parametrize("value", [False, None, 0, "", [], {}])
async def test_falsy_values(value):
    assert not is_truthy(value)


@pytest.mark.anyio
@pytest.mark.parametrize("value", [True, 1, -1, "0", [0], {"a": None}])
async def test_truthy_values(value):
    assert is_truthy(value)


class TestControlFlow:
    @pytest.mark.anyio
    async def test_if_picks_branch_by_truthiness(self):
        assert value_of({"if": [{"var": "payload.v.0"}, "yes", "no"]}) == "yes"
        assert value_of({"if": [{"var": "payload.r.0"}, "yes", "no"]}) == "no"

    @pytest.mark.anyio
    async def test_if_requires_three_operands(self):
        with pytest.raises(CertLogicEvaluationError):
            evaluate({"if": [True, 1]}, {})

    @pytest.mark.anyio
    async def test_and_returns_first_falsy_operand(self):
        assert value_of({"and": [True, 0, {"var": "missing.path"}]}) == 0

    @pytest.mark.anyio
    async def test_and_returns_last_operand_when_all_truthy(self):
        assert value_of({"and": [True, {"var": "payload.ver"}]}) == "1.0.0"

    @pytest.mark.anyio
    async def test_and_short_circuits(self):
        """The malformed second operand is never evaluated."""
        assert value_of({"and": [False, {"unknown-op": []}]}) is False

    @pytest.mark.anyio
    async def test_not_negates_truthiness(self):
        assert value_of({"!": [{"var": "payload.r"}]}) is True
        assert value_of({"!": [{"var": "payload.v"}]}) is False


# ============================================================================
# Values
# ============================================================================


class TestValues:
    @pytest.mark.anyio
    async def test_strict_equality(self):
        assert value_of({"===": [{"var": "payload.v.0.dn"}, {"var": "payload.v.0.sd"}]}) is True
        assert value_of({"===": [{"var": "payload.v.0.dn"}, "2"]}) is False

    @pytest.mark.anyio
    async def test_strict_equality_does_not_equate_bool_and_int(self):
        assert value_of({"===": [True, 1]}) is False

    @pytest.mark.anyio
    async def test_in_value_set(self):
        logic = {"in": [{"var": "payload.v.0.tg"}, {"var": "external.valueSets.tg"}]}
        assert value_of(logic) is True

    @pytest.mark.anyio
    async def test_in_requires_array(self):
        with pytest.raises(CertLogicEvaluationError):
            evaluate({"in": ["a", "abc"]}, {})

    @pytest.mark.anyio
    async def test_plus_sums_integers(self):
        assert value_of({"+": [1, 2, {"var": "payload.v.0.dn"}]}) == 5

    @pytest.mark.anyio
    async def test_plus_rejects_non_integers(self):
        with pytest.raises(CertLogicEvaluationError):
            evaluate({"+": [1, "2"]}, {})


# ============================================================================
# Comparisons
# ============================================================================


class TestComparisons:
    @pytest.mark.anyio
    @pytest.mark.parametrize(
        ("operator", "left", "right", "expected"),
        [
            ("<", 1, 2, True),
            ("<", 2, 2, False),
            (">", 3, 2, True),
            ("<=", 2, 2, True),
            (">=", 1, 2, False),
        ],
    )
    async def test_integer_comparisons(self, operator, left, right, expected):
        assert value_of({operator: [left, right]}) is expected

    @pytest.mark.anyio
    async def test_three_operand_comparison_is_a_range(self):
        assert value_of({"<=": [1, {"var": "payload.v.0.dn"}, 2]}) is True
        assert value_of({"<": [1, 2, 2]}) is False

    @pytest.mark.anyio
    async def test_comparison_rejects_strings(self):
        with pytest.raises(CertLogicEvaluationError):
            evaluate({"<": ["1", 2]}, {})

    @pytest.mark.anyio
    async def test_comparison_rejects_wrong_operand_count(self):
        with pytest.raises(CertLogicEvaluationError):
            evaluate({"<": [1]}, {})

    @pytest.mark.anyio
    async def test_vaccination_date_before_clock(self):
        logic = {
            "not-after": [
                {"plusTime": [{"var": "payload.v.0.dt"}, 14, "day"]},
                {"plusTime": [{"var": "external.validationClock"}, 0, "day"]},
            ]
        }
        assert value_of(logic) is True

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        ("operator", "expected"),
        [("before", True), ("after", False), ("not-before", False), ("not-after", True)],
    )
    async def test_date_time_comparisons(self, operator, expected):
        logic = {
            operator: [
                {"plusTime": ["2021-01-01", 0, "day"]},
                {"plusTime": ["2021-01-02", 0, "day"]},
            ]
        }
        assert value_of(logic) is expected

    @pytest.mark.anyio
    async def test_date_time_comparison_rejects_strings(self):
        with pytest.raises(CertLogicEvaluationError):
            evaluate({"before": ["2021-01-01", "2021-01-02"]}, {})


# ============================================================================
# plusTime
# ============================================================================


class TestPlusTime:
    @pytest.mark.anyio
    async def test_date_only_values_are_midnight_utc(self):
        assert value_of({"plusTime": ["2021-05-01", 0, "day"]}) == datetime(
            2021, 5, 1, tzinfo=UTC
        )

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        ("amount", "unit", "expected"),
        [
            (14, "day", datetime(2021, 5, 15, tzinfo=UTC)),
            (-1, "day", datetime(2021, 4, 30, tzinfo=UTC)),
            (36, "hour", datetime(2021, 5, 2, 12, tzinfo=UTC)),
            (9, "month", datetime(2022, 2, 1, tzinfo=UTC)),
            (1, "year", datetime(2022, 5, 1, tzinfo=UTC)),
        ],
    )
    async def test_units(self, amount, unit, expected):
        assert value_of({"plusTime": ["2021-05-01", amount, unit]}) == expected

    @pytest.mark.anyio
    async def test_month_arithmetic_clamps_to_month_end(self):
        assert value_of({"plusTime": ["2021-01-31", 1, "month"]}) == datetime(
            2021, 2, 28, tzinfo=UTC
        )

    @pytest.mark.anyio
    async def test_leap_day_plus_one_year(self):
        assert value_of({"plusTime": ["2020-02-29", 1, "year"]}) == datetime(
            2021, 2, 28, tzinfo=UTC
        )

    @pytest.mark.anyio
    async def test_offsets_are_preserved_for_comparison(self):
        moment = value_of({"plusTime": ["2021-05-01T02:00:00+02:00", 0, "hour"]})
        assert moment == datetime(2021, 5, 1, tzinfo=UTC)

    @pytest.mark.anyio
    async def test_unknown_unit_raises(self):
        with pytest.raises(CertLogicEvaluationError):
            evaluate({"plusTime": ["2021-05-01", 1, "week"]}, {})

    @pytest.mark.anyio
    async def test_invalid_date_raises(self):
        with pytest.raises(CertLogicEvaluationError):
            evaluate({"plusTime": ["not-a-date", 1, "day"]}, {})

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        ("amount", "unit"),
        [(999999999, "day"), (999999999, "hour"), (999999, "year"), (-99999999, "month")],
    )
    async def test_out_of_range_result_raises_evaluation_error(self, amount, unit):
        with pytest.raises(CertLogicEvaluationError) as exc_info:
            evaluate({"plusTime": ["2021-01-01", amount, unit]}, {})
        assert exc_info.value.details == {"path": "$", "amount": amount, "unit": unit}

    @pytest.mark.anyio
    async def test_parse_date_time_treats_naive_as_utc(self):
        assert parse_date_time("2021-05-01T10:00:00") == datetime(2021, 5, 1, 10, tzinfo=UTC)


# ============================================================================
# reduce and extractFromUVCI
# ============================================================================


class TestReduce:
    @pytest.mark.anyio
    async def test_reduce_folds_left(self):
        logic = {
            "reduce": [
                {"var": "payload.v"},
                {"+": [{"var": "accumulator"}, {"var": "current.dn"}]},
                0,
            ]
        }
        assert value_of(logic) == 2

    @pytest.mark.anyio
    async def test_reduce_lambda_can_reach_outer_data(self):
        logic = {
            "reduce": [
                [1, 2],
                {"+": [{"var": "accumulator"}, {"var": "data.payload.v.0.sd"}]},
                0,
            ]
        }
        assert value_of(logic) == 4

    @pytest.mark.anyio
    async def test_reduce_over_null_returns_initial(self):
        assert value_of({"reduce": [{"var": "payload.r"}, {"var": "current"}, 7]}) == 7

    @pytest.mark.anyio
    async def test_reduce_rejects_non_array(self):
        with pytest.raises(CertLogicEvaluationError):
            evaluate({"reduce": ["abc", {"var": "current"}, 0]}, {})


class TestExtractFromUVCI:
    UVCI = "URN:UVCI:01:NL:187/37512422923"

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        ("index", "expected"),
        [(0, "01"), (1, "NL"), (2, "187"), (3, "37512422923"), (4, None), (-1, None)],
    )
    async def test_fragments(self, index, expected):
        assert value_of({"extractFromUVCI": [self.UVCI, index]}, {}) == expected

    @pytest.mark.anyio
    async def test_hash_separator(self):
        uvci = "URN:UVCI:01DE/IZ12345A/5CWLU12RNOB9RXSEOP6FG8#W"
        assert value_of({"extractFromUVCI": [uvci, 3]}, {}) == "W"

    @pytest.mark.anyio
    async def test_null_uvci_is_null(self):
        assert value_of({"extractFromUVCI": [{"var": "payload.v.0.ci"}, 0]}) is None

    @pytest.mark.anyio
    async def test_index_must_be_integer(self):
        with pytest.raises(CertLogicEvaluationError):
            evaluate({"extractFromUVCI": [self.UVCI, "0"]}, {})


# ============================================================================
# Malformed expressions
# ============================================================================


class TestMalformed:
    @pytest.mark.anyio
    async def test_unknown_operator(self):
        with pytest.raises(CertLogicEvaluationError) as exc_info:
            evaluate({"unknown-op": [1]}, {})
        assert exc_info.value.details["operator"] == "unknown-op"

    @pytest.mark.anyio
    async def test_multiple_keys(self):
        with pytest.raises(CertLogicEvaluationError):
            evaluate({"and": [True, True], "!": [False]}, {})

    @pytest.mark.anyio
    async def test_operands_must_be_array(self):
        with pytest.raises(CertLogicEvaluationError):
            evaluate({"!": True}, {})

    @pytest.mark.anyio
    async def test_error_path_points_at_failing_node(self):
        with pytest.raises(CertLogicEvaluationError) as exc_info:
            evaluate({"and": [True, {"+": [1, "x"]}]}, {})
        assert exc_info.value.path == "$.and[1].+"
        assert exc_info.value.details["path"] == "$.and[1].+"
