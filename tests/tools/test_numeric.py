import math

import pytest

from genagent.core.exceptions import ValidationError
from genagent.tools import calculator, data_analyzer


class TestCalculator:
    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("2 + 2", 4),
            ("(3 * 4) / 2", 6),
            ("-5 + 10", 5),
            ("1.5 * 2", 3),
            ("10 / 4", 2.5),
            ("2 * (3 + (4 - 1))", 12),
        ],
    )
    def test_arithmetic(self, expression, expected):
        result = calculator(expression)
        assert result["success"] is True
        assert result["result"] == expected
        assert result["expression"] == expression

    def test_other_characters_are_stripped(self):
        assert calculator("what is 2 + 2?")["result"] == 4
        assert calculator("2x + 3y")["result"] == 5

    def test_injection_never_executes(self):
        # strips to "2 + 2 (1)", which is not a valid expression
        with pytest.raises(ValidationError, match="Calculation failed"):
            calculator("2 + 2; alert(1)")

    def test_empty_after_stripping(self):
        with pytest.raises(ValidationError, match="Invalid mathematical expression"):
            calculator("abc")

    def test_division_by_zero(self):
        with pytest.raises(ValidationError, match="Calculation failed"):
            calculator("1 / 0")

    @pytest.mark.parametrize(
        "expression, expected",
        [("2 ** 10", 1024), ("2 ** -1", 0.5), ("-2 ** 2", -4), ("(1 + 1) ** 3 ** 2", 512), ("4 ** .5", 2.0)],
    )
    def test_power(self, expression, expected):
        assert calculator(expression)["result"] == expected

    @pytest.mark.parametrize("expression", ["2 ** 100000", "9 ** 9 ** 9", "10 ** 1001", "(-8) ** .5", "0 ** -1"])
    def test_power_out_of_range(self, expression):
        with pytest.raises(ValidationError, match="Calculation failed"):
            calculator(expression)

    def test_definition(self):
        definition = calculator.definition
        assert definition.name == "calculator"
        assert definition.return_type == "number"
        assert [(p.name, p.type, p.required) for p in definition.parameters] == [("expression", "string", True)]


class TestDataAnalyzer:
    def test_summary_statistics(self):
        result = data_analyzer([1, 2, 3, 4])
        assert result["success"] is True
        assert result["count"] == 4
        assert result["sum"] == 10
        assert result["mean"] == 2.5
        assert result["median"] == 2.5
        assert result["min"] == 1
        assert result["max"] == 4
        assert result["range"] == 3
        assert result["variance"] == 1.25
        assert result["standard_deviation"] == pytest.approx(1.118, abs=1e-3)
        assert result["analysis_type"] == "summary"

    def test_odd_count_median(self):
        assert data_analyzer([5, 1, 3])["median"] == 3

    def test_population_variance(self):
        result = data_analyzer([2, 4, 4, 4, 5, 5, 7, 9])
        assert result["variance"] == 4
        assert result["standard_deviation"] == 2

    def test_non_numeric_entries_are_dropped(self):
        result = data_analyzer(["1", 2, "three", None, True, float("nan"), " 4 "])
        assert result["count"] == 3
        assert result["sum"] == 7

    def test_empty(self):
        with pytest.raises(ValidationError, match="non-empty array"):
            data_analyzer([])

    def test_not_a_list(self):
        with pytest.raises(ValidationError, match="non-empty array"):
            data_analyzer("1, 2, 3")

    def test_no_numeric_entries(self):
        with pytest.raises(ValidationError, match="No valid numeric data"):
            data_analyzer(["a", "b"])

    def test_single_value(self):
        result = data_analyzer([7])
        assert result["variance"] == 0
        assert result["range"] == 0
        assert not math.isnan(result["standard_deviation"])
