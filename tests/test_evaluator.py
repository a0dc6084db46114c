"""Tests for the SymPy-backed arithmetic evaluator."""

import pytest

from deskcalc_pkg.config import MAX_EXPRESSION_LENGTH
from deskcalc_pkg.evaluator import SympyEvaluator, normalize_signs
from deskcalc_pkg.types import (
    DivisionByZeroError,
    EvaluationError,
    InvalidDomainError,
    MalformedExpressionError,
)


@pytest.fixture
def evaluator():
    return SympyEvaluator()


class TestArithmetic:
    def test_precedence(self, evaluator):
        assert evaluator.evaluate("2+3*4") == 14

    def test_left_associativity(self, evaluator):
        assert evaluator.evaluate("10-4-3") == 3
        assert evaluator.evaluate("8/4/2") == 1

    def test_unary_minus(self, evaluator):
        assert evaluator.evaluate("-(5)") == -5
        assert evaluator.evaluate("3*-2") == -6

    def test_functions(self, evaluator):
        assert evaluator.evaluate("pow(3, 2)") == 9
        assert evaluator.evaluate("sqrt(16)") == 4
        assert evaluator.evaluate("1/(4)") == 0.25
        assert evaluator.evaluate("sqrt(sqrt(4))") == pytest.approx(1.41421356237)

    def test_decimals(self, evaluator):
        assert evaluator.evaluate("0.1+0.2") == pytest.approx(0.3)
        assert evaluator.evaluate("1.5E8/2") == pytest.approx(75000000)

    def test_returns_float(self, evaluator):
        assert isinstance(evaluator.evaluate("7"), float)


class TestFailures:
    def test_division_by_zero(self, evaluator):
        with pytest.raises(DivisionByZeroError):
            evaluator.evaluate("5/0")
        with pytest.raises(DivisionByZeroError):
            evaluator.evaluate("0/0")
        with pytest.raises(DivisionByZeroError):
            evaluator.evaluate("pow(0, -1)")

    def test_sqrt_of_negative(self, evaluator):
        with pytest.raises(InvalidDomainError) as exc_info:
            evaluator.evaluate("sqrt(-4)")
        assert exc_info.value.code == "NOT_REAL"

    def test_overflow(self, evaluator):
        with pytest.raises(InvalidDomainError):
            evaluator.evaluate("pow(10, 400)")

    @pytest.mark.parametrize("expression", ["5+", "sqrt(4", "*3", "4)", "1,2", "pow(2)"])
    def test_malformed(self, evaluator, expression):
        with pytest.raises(MalformedExpressionError):
            evaluator.evaluate(expression)

    def test_empty(self, evaluator):
        with pytest.raises(MalformedExpressionError) as exc_info:
            evaluator.evaluate("   ")
        assert exc_info.value.code == "EMPTY_INPUT"

    def test_forbidden_token(self, evaluator):
        with pytest.raises(MalformedExpressionError) as exc_info:
            evaluator.evaluate("__import__('os')")
        assert exc_info.value.code == "FORBIDDEN_TOKEN"

    def test_unknown_names(self, evaluator):
        with pytest.raises(MalformedExpressionError) as exc_info:
            evaluator.evaluate("x+1")
        assert exc_info.value.code == "UNKNOWN_NAME"
        with pytest.raises(MalformedExpressionError):
            evaluator.evaluate("sin(0)")

    def test_unsupported_characters(self, evaluator):
        with pytest.raises(MalformedExpressionError) as exc_info:
            evaluator.evaluate("2^3")
        assert exc_info.value.code == "INVALID_CHARACTER"

    def test_too_long(self, evaluator):
        with pytest.raises(MalformedExpressionError) as exc_info:
            evaluator.evaluate("1+" * MAX_EXPRESSION_LENGTH + "1")
        assert exc_info.value.code == "TOO_LONG"

    def test_errors_share_a_base_class(self, evaluator):
        for expression in ("5/0", "sqrt(-1)", "5+"):
            with pytest.raises(EvaluationError):
                evaluator.evaluate(expression)


class TestNormalizeSigns:
    def test_double_negative(self):
        assert normalize_signs("5--3") == "5+3"
        assert normalize_signs("5--(3)") == "5+(3)"

    def test_mixed_signs(self):
        assert normalize_signs("5+-3") == "5-3"
        assert normalize_signs("5-+3") == "5-3"

    def test_runs_until_stable(self):
        assert normalize_signs("5---3") == "5-3"

    def test_leaves_other_text_alone(self):
        assert normalize_signs("12+sqrt(4)*-2") == "12+sqrt(4)*-2"
