"""
CertLogic expression evaluator.

CertLogic is the JsonLogic dialect used by EU DCC business rules. An
expression is a JSON value; objects with a single key are operations
(``{"operator": [operands...]}``), arrays are evaluated element-wise and all
other values are literals.

Supported operations:
- var: dotted data lookup, integer fragments index arrays, "" is the whole data
- if, and, !: control flow with CertLogic truthiness
- ===, in, +: equality, membership, integer sum
- <, >, <=, >=: integer comparison, 2 or 3 operands
- before, after, not-before, not-after: date-time comparison, 2 or 3 operands
- plusTime: date-time arithmetic in year/month/day/hour units
- reduce: left fold with a {"current", "accumulator"} data object
- extractFromUVCI: fragment extraction from a certificate identifier

The engine only depends on evaluate(), which never returns raw values: the
result is wrapped as BooleanOutcome or OtherOutcome. Malformed expressions
and operand type mismatches raise CertLogicEvaluationError.
"""

import calendar
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from certlogic_engine.core.errors import CertLogicEvaluationError
from certlogic_engine.domain.models import BooleanOutcome, EvaluationOutcome, OtherOutcome

logger = logging.getLogger(__name__)

TIME_UNITS = ("year", "month", "day", "hour")

UVCI_PREFIX = "URN:UVCI:"
UVCI_SEPARATORS = ("/", "#", ":")


def evaluate(logic: Any, data: Any) -> EvaluationOutcome:
    """
    Evaluate a CertLogic expression against a data context.

    Args:
        logic: Expression tree (decoded JSON)
        data: Data context, typically {"external": {...}, "payload": {...}}

    Returns:
        BooleanOutcome for boolean results, OtherOutcome for anything else

    Raises:
        CertLogicEvaluationError: If the expression is malformed or an
            operation receives operands of the wrong type

    Example:
        >>> evaluate({"===": [{"var": "payload.ver"}, "1.0.0"]}, {"payload": {"ver": "1.0.0"}})
        BooleanOutcome(value=True)
    """
    value = _evaluate(logic, data, "$")
    if isinstance(value, bool):
        return BooleanOutcome(value)
    return OtherOutcome(value)


def is_truthy(value: Any) -> bool:
    """CertLogic truthiness: false, null, 0, "", empty arrays and objects are falsy."""
    if value is None or value is False:
        return False
    if _is_int(value) and value == 0:
        return False
    if isinstance(value, (str, list, dict)) and len(value) == 0:
        return False
    return True


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _evaluate(node: Any, data: Any, path: str) -> Any:
    """Recursively evaluate one node."""
    if isinstance(node, list):
        return [_evaluate(item, data, f"{path}[{i}]") for i, item in enumerate(node)]

    if isinstance(node, dict):
        if len(node) != 1:
            raise CertLogicEvaluationError(
                f"Operation object must have exactly one key at {path}",
                path=path,
                details={"keys": list(node.keys())},
            )
        operator, operands = next(iter(node.items()))
        handler = OPERATIONS.get(operator)
        if handler is None:
            raise CertLogicEvaluationError(
                f"Unrecognised operation '{operator}' at {path}",
                path=path,
                details={"operator": operator},
            )
        if operator != "var" and not isinstance(operands, list):
            raise CertLogicEvaluationError(
                f"Operands of '{operator}' must be an array at {path}",
                path=path,
                details={"operator": operator},
            )
        return handler(operands, data, f"{path}.{operator}")

    if node is None or isinstance(node, (str, bool, int, float)):
        return node

    raise CertLogicEvaluationError(
        f"Invalid CertLogic expression at {path}",
        path=path,
        details={"type": type(node).__name__},
    )


def _require_count(operator: str, operands: list, path: str, *counts: int) -> None:
    if len(operands) not in counts:
        expected = " or ".join(str(c) for c in counts)
        raise CertLogicEvaluationError(
            f"'{operator}' expects {expected} operands at {path}, got {len(operands)}",
            path=path,
        )


# =============================================================================
# Data access
# =============================================================================


def _op_var(operand: Any, data: Any, path: str) -> Any:
    if isinstance(operand, list):
        # Tolerate the JsonLogic single-element array form.
        if len(operand) != 1:
            raise CertLogicEvaluationError(f"'var' expects a single path at {path}", path=path)
        operand = operand[0]

    if _is_int(operand):
        operand = str(operand)
    if not isinstance(operand, str):
        raise CertLogicEvaluationError(
            f"'var' path must be a string at {path}",
            path=path,
            details={"type": type(operand).__name__},
        )

    if operand == "":
        return data

    current = data
    for fragment in operand.split("."):
        if current is None:
            return None
        if isinstance(current, list):
            try:
                index = int(fragment)
            except ValueError:
                return None
            if index < 0 or index >= len(current):
                return None
            current = current[index]
        elif isinstance(current, dict):
            current = current.get(fragment)
        else:
            return None
    return current


# =============================================================================
# Control flow
# =============================================================================


def _op_if(operands: list, data: Any, path: str) -> Any:
    _require_count("if", operands, path, 3)
    guard = _evaluate(operands[0], data, f"{path}[0]")
    if is_truthy(guard):
        return _evaluate(operands[1], data, f"{path}[1]")
    return _evaluate(operands[2], data, f"{path}[2]")


def _op_and(operands: list, data: Any, path: str) -> Any:
    if len(operands) < 2:
        raise CertLogicEvaluationError(f"'and' expects at least 2 operands at {path}", path=path)
    value: Any = True
    for i, operand in enumerate(operands):
        value = _evaluate(operand, data, f"{path}[{i}]")
        if not is_truthy(value):
            return value
    return value


def _op_not(operands: list, data: Any, path: str) -> bool:
    _require_count("!", operands, path, 1)
    return not is_truthy(_evaluate(operands[0], data, f"{path}[0]"))


# =============================================================================
# Values
# =============================================================================


def _op_strict_equals(operands: list, data: Any, path: str) -> bool:
    _require_count("===", operands, path, 2)
    left = _evaluate(operands[0], data, f"{path}[0]")
    right = _evaluate(operands[1], data, f"{path}[1]")
    # bool is an int subclass; True must not equal 1.
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def _op_in(operands: list, data: Any, path: str) -> bool:
    _require_count("in", operands, path, 2)
    value = _evaluate(operands[0], data, f"{path}[0]")
    container = _evaluate(operands[1], data, f"{path}[1]")
    if not isinstance(container, list):
        raise CertLogicEvaluationError(
            f"Right operand of 'in' must be an array at {path}",
            path=path,
            details={"type": type(container).__name__},
        )
    return value in container


def _op_plus(operands: list, data: Any, path: str) -> int:
    values = [_evaluate(operand, data, f"{path}[{i}]") for i, operand in enumerate(operands)]
    for value in values:
        if not _is_int(value):
            raise CertLogicEvaluationError(
                f"Operands of '+' must be integers at {path}",
                path=path,
                details={"value": value},
            )
    return sum(values)


def _compare(
    symbol: str, check: Callable[[Any, Any], bool], kind: type | tuple
) -> Callable[[list, Any, str], bool]:
    """Build a 2-or-3 operand comparison over values of one kind."""

    def operation(operands: list, data: Any, path: str) -> bool:
        _require_count(symbol, operands, path, 2, 3)
        values = [_evaluate(operand, data, f"{path}[{i}]") for i, operand in enumerate(operands)]
        for value in values:
            if not isinstance(value, kind) or isinstance(value, bool):
                raise CertLogicEvaluationError(
                    f"Operands of '{symbol}' must be {_kind_name(kind)} at {path}",
                    path=path,
                    details={"type": type(value).__name__},
                )
        return all(check(values[i], values[i + 1]) for i in range(len(values) - 1))

    return operation


def _kind_name(kind: type | tuple) -> str:
    return "date-times" if kind is datetime else "integers"


# =============================================================================
# Date-times
# =============================================================================


def parse_date_time(value: str, path: str = "$") -> datetime:
    """
    Parse an ISO 8601 date or date-time string.

    Date-only values are midnight UTC; values without an offset are UTC.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise CertLogicEvaluationError(
            f"Not a valid date-time '{value}' at {path}", path=path
        ) from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _op_plus_time(operands: list, data: Any, path: str) -> datetime:
    _require_count("plusTime", operands, path, 3)
    value = _evaluate(operands[0], data, f"{path}[0]")
    amount = operands[1]
    unit = operands[2]

    if not isinstance(value, str):
        raise CertLogicEvaluationError(
            f"First operand of 'plusTime' must be a date-time string at {path}",
            path=path,
            details={"type": type(value).__name__},
        )
    if not _is_int(amount):
        raise CertLogicEvaluationError(
            f"Amount of 'plusTime' must be an integer literal at {path}", path=path
        )
    if unit not in TIME_UNITS:
        raise CertLogicEvaluationError(
            f"Unit of 'plusTime' must be one of {TIME_UNITS} at {path}",
            path=path,
            details={"unit": unit},
        )

    moment = parse_date_time(value, path)
    try:
        if unit == "year":
            return _add_months(moment, 12 * amount)
        if unit == "month":
            return _add_months(moment, amount)
        if unit == "day":
            return moment + timedelta(days=amount)
        return moment + timedelta(hours=amount)
    except (OverflowError, ValueError) as e:
        raise CertLogicEvaluationError(
            f"Result of 'plusTime' is out of the supported date range at {path}",
            path=path,
            details={"amount": amount, "unit": unit},
        ) from e


# =============================================================================
# Collections and identifiers
# =============================================================================


def _op_reduce(operands: list, data: Any, path: str) -> Any:
    _require_count("reduce", operands, path, 3)
    items = _evaluate(operands[0], data, f"{path}[0]")
    lambda_expr = operands[1]
    accumulator = _evaluate(operands[2], data, f"{path}[2]")

    if items is None:
        return accumulator
    if not isinstance(items, list):
        raise CertLogicEvaluationError(
            f"First operand of 'reduce' must be an array or null at {path}",
            path=path,
            details={"type": type(items).__name__},
        )
    for item in items:
        accumulator = _evaluate(
            lambda_expr,
            {"current": item, "accumulator": accumulator, "data": data},
            f"{path}[1]",
        )
    return accumulator


def _op_extract_from_uvci(operands: list, data: Any, path: str) -> str | None:
    _require_count("extractFromUVCI", operands, path, 2)
    uvci = _evaluate(operands[0], data, f"{path}[0]")
    index = operands[1]

    if not _is_int(index):
        raise CertLogicEvaluationError(
            f"Index of 'extractFromUVCI' must be an integer literal at {path}", path=path
        )
    if uvci is None:
        return None
    if not isinstance(uvci, str):
        raise CertLogicEvaluationError(
            f"First operand of 'extractFromUVCI' must be a string or null at {path}",
            path=path,
        )

    if uvci.startswith(UVCI_PREFIX):
        uvci = uvci[len(UVCI_PREFIX) :]
    fragments = [uvci]
    for separator in UVCI_SEPARATORS:
        fragments = [part for fragment in fragments for part in fragment.split(separator)]
    if index < 0 or index >= len(fragments):
        return None
    return fragments[index]


OPERATIONS: dict[str, Callable[[Any, Any, str], Any]] = {
    "var": _op_var,
    "if": _op_if,
    "and": _op_and,
    "!": _op_not,
    "===": _op_strict_equals,
    "in": _op_in,
    "+": _op_plus,
    "<": _compare("<", lambda a, b: a < b, int),
    ">": _compare(">", lambda a, b: a > b, int),
    "<=": _compare("<=", lambda a, b: a <= b, int),
    ">=": _compare(">=", lambda a, b: a >= b, int),
    "before": _compare("before", lambda a, b: a < b, datetime),
    "after": _compare("after", lambda a, b: a > b, datetime),
    "not-before": _compare("not-before", lambda a, b: a >= b, datetime),
    "not-after": _compare("not-after", lambda a, b: a <= b, datetime),
    "plusTime": _op_plus_time,
    "reduce": _op_reduce,
    "extractFromUVCI": _op_extract_from_uvci,
}
