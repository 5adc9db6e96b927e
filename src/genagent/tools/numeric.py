import ast
import logging
import math
import operator
import re
import statistics
from typing import Any

from ..core.exceptions import ValidationError
from ..core.tool import tool

logger = logging.getLogger(__name__)

_DISALLOWED = re.compile(r"[^0-9+\-*/().\s]")

MAX_EXPONENT = 1000
MAX_RESULT_DIGITS = 1000


def _power(base: int | float, exponent: int | float) -> int | float:
    if abs(exponent) > MAX_EXPONENT:
        raise ValueError(f"exponent {exponent} exceeds {MAX_EXPONENT}")
    if abs(base) > 1 and abs(exponent) * math.log10(abs(base)) > MAX_RESULT_DIGITS:
        raise ValueError(f"result exceeds {MAX_RESULT_DIGITS} digits")
    result = base**exponent
    if isinstance(result, complex):
        raise ValueError("result is not a real number")
    return result


_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Pow: _power,
}
_UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


def _evaluate(node: ast.AST) -> int | float:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        return _BINARY_OPS[type(node.op)](_evaluate(node.left), _evaluate(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_evaluate(node.operand))
    raise ValueError(f"unsupported syntax '{ast.dump(node)[:40]}'")


@tool(returns="number")
def calculator(expression: str) -> dict:
    """Perform mathematical calculations and solve equations.

    Args:
        expression: The mathematical expression to evaluate (e.g., '2 + 2', '(3 * 4) / 2')
    """
    sanitized = _DISALLOWED.sub("", str(expression)).strip()
    if not sanitized:
        raise ValidationError("Invalid mathematical expression")

    try:
        result = _evaluate(ast.parse(sanitized, mode="eval"))
    except (SyntaxError, ValueError, ArithmeticError) as e:
        raise ValidationError(f"Calculation failed: {e}") from e

    return {"success": True, "expression": expression, "result": result}


def _to_number(value: Any) -> float | int | None:
    """Coerce a data point to a number; None when it has no numeric reading."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    return None if math.isnan(number) else number


@tool
def data_analyzer(data: list, analysis_type: str = "summary") -> dict:
    """Analyze datasets and generate statistical insights.

    Args:
        data: Array of data points to analyze
        analysis_type: Type of analysis: 'summary', 'correlation', 'distribution', 'trend'
    """
    if not isinstance(data, list) or not data:
        raise ValidationError("Data must be a non-empty array")

    numbers = [n for n in map(_to_number, data) if n is not None]
    if not numbers:
        raise ValidationError("No valid numeric data found")

    if len(numbers) < len(data):
        logger.debug(f"Dropped {len(data) - len(numbers)} non-numeric data point(s)")

    ordered = sorted(numbers)
    total = sum(numbers)
    mean = total / len(numbers)
    # population variance: divide by N, not N - 1
    variance = sum((n - mean) ** 2 for n in numbers) / len(numbers)

    return {
        "success": True,
        "analysis_type": analysis_type,
        "count": len(numbers),
        "sum": total,
        "mean": mean,
        "median": statistics.median(ordered),
        "min": ordered[0],
        "max": ordered[-1],
        "range": ordered[-1] - ordered[0],
        "variance": variance,
        "standard_deviation": math.sqrt(variance),
    }
