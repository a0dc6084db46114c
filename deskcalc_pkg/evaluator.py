"""Arithmetic evaluator used by the calculator session.

The session only needs a narrow grammar: numbers, + - * /, unary minus,
parentheses, pow(x, n) and sqrt(x). Expressions are screened, parsed with
SymPy against a two-name allow-list and evaluated numerically.
"""

from __future__ import annotations

import math
import re
from tokenize import TokenError
from typing import Protocol

import sympy as sp
from sympy.parsing.sympy_parser import parse_expr, standard_transformations

from .config import (
    ALLOWED_EVALUATOR_NAMES,
    DOUBLE_NEGATIVE_RE,
    EXPRESSION_CHARS_RE,
    FORBIDDEN_TOKENS,
    INTEGER_SNAP_TOLERANCE,
    MAX_EXPRESSION_DEPTH,
    MAX_EXPRESSION_LENGTH,
    MIXED_SIGN_RE,
)
from .logging_config import get_logger
from .types import (
    DivisionByZeroError,
    InvalidDomainError,
    MalformedExpressionError,
)

logger = get_logger("evaluator")

# Names only count when they do not continue a number such as 1.5E8
_IDENTIFIER_RE = re.compile(r"(?<![0-9.])[A-Za-z_][A-Za-z0-9_]*")

# Significant digits requested from SymPy; enough to fill a double
_NUMERIC_DIGITS = 17


class Evaluator(Protocol):
    """Contract for the expression evaluator collaborator."""

    def evaluate(self, expression: str) -> float:
        """Return the value of an infix arithmetic expression.

        Raises:
            EvaluationError: For malformed syntax or math errors
        """
        ...


def normalize_signs(expression: str) -> str:
    """Collapse adjacent sign operators left behind by sign operations.

    "--" becomes "+", and "+-" / "-+" become "-". Applied until stable, so
    "5---3" ends up as "5-3".
    """
    previous = None
    while previous != expression:
        previous = expression
        expression = DOUBLE_NEGATIVE_RE.sub("+", expression)
        expression = MIXED_SIGN_RE.sub("-", expression)
    return expression


def _check_depth(expr: sp.Basic) -> None:
    stack = [(expr, 0)]
    while stack:
        node, depth = stack.pop()
        if depth > MAX_EXPRESSION_DEPTH:
            raise MalformedExpressionError(
                f"Expression too deeply nested (>{MAX_EXPRESSION_DEPTH} levels)",
                "TOO_DEEP",
            )
        stack.extend((arg, depth + 1) for arg in node.args)


class SympyEvaluator:
    """Evaluator backed by SymPy's parser and numeric evaluation."""

    def __init__(self, allowed_names: dict | None = None):
        self.allowed_names = dict(allowed_names or ALLOWED_EVALUATOR_NAMES)

    def _screen(self, expression: str) -> str:
        stripped = expression.strip() if expression else ""
        if not stripped:
            raise MalformedExpressionError("Expression is empty", "EMPTY_INPUT")
        if len(stripped) > MAX_EXPRESSION_LENGTH:
            raise MalformedExpressionError(
                f"Expression too long (>{MAX_EXPRESSION_LENGTH} characters)", "TOO_LONG"
            )

        lowered = stripped.lower()
        for tok in FORBIDDEN_TOKENS:
            if tok in lowered:
                logger.warning(
                    "Blocked expression containing forbidden token %r (length %d)",
                    tok,
                    len(stripped),
                )
                raise MalformedExpressionError(
                    f"Expression contains forbidden token: {tok}", "FORBIDDEN_TOKEN"
                )

        if not EXPRESSION_CHARS_RE.match(stripped):
            raise MalformedExpressionError(
                "Expression contains unsupported characters", "INVALID_CHARACTER"
            )
        for name in _IDENTIFIER_RE.findall(stripped):
            if name not in self.allowed_names:
                raise MalformedExpressionError(
                    f"Name '{name}' is not allowed", "UNKNOWN_NAME"
                )
        return stripped

    def parse(self, expression: str) -> sp.Expr:
        """Screen and parse an expression into a SymPy expression.

        Raises:
            MalformedExpressionError: If screening or parsing fails
        """
        stripped = self._screen(expression)
        try:
            expr = parse_expr(
                stripped,
                local_dict=dict(self.allowed_names),
                transformations=standard_transformations,
                evaluate=True,
            )
        except (SyntaxError, TokenError) as e:
            logger.debug("Parse error for %r: %s", stripped, e)
            raise MalformedExpressionError(
                "Invalid syntax. Check for missing operands or unmatched parentheses.",
                "SYNTAX_ERROR",
            ) from e
        except (TypeError, ValueError, AttributeError) as e:
            logger.debug("Parse error for %r: %s", stripped, e)
            raise MalformedExpressionError(
                f"Invalid expression: {e}", "PARSE_ERROR"
            ) from e
        except ZeroDivisionError as e:
            raise DivisionByZeroError("Division by zero") from e

        if not isinstance(expr, sp.Expr) or expr.free_symbols:
            raise MalformedExpressionError("Expression is not a number", "NOT_NUMERIC")
        _check_depth(expr)
        return expr

    def evaluate(self, expression: str) -> float:
        """Evaluate an arithmetic expression to a finite real number.

        Args:
            expression: Infix expression such as "12+sqrt(4)" or "pow(3, 2)/2"

        Returns:
            The numeric value as a float

        Raises:
            MalformedExpressionError: For syntax problems or disallowed names
            DivisionByZeroError: For results that involve division by zero
            InvalidDomainError: For non-real or non-finite results
        """
        expr = self.parse(expression)
        if expr.has(sp.zoo, sp.nan):
            raise DivisionByZeroError("Division by zero")
        if expr.has(sp.oo, -sp.oo):
            raise InvalidDomainError("Result is infinite", "OVERFLOW")

        try:
            approx = sp.N(expr, _NUMERIC_DIGITS)
            real_part, imag_part = approx.as_real_imag()
            if abs(float(imag_part)) > INTEGER_SNAP_TOLERANCE:
                raise InvalidDomainError("Result is not a real number", "NOT_REAL")
            value = float(real_part)
        except OverflowError as e:
            raise InvalidDomainError("Result is too large", "OVERFLOW") from e
        except (TypeError, ValueError) as e:
            raise InvalidDomainError(f"Evaluation failed: {e}") from e

        if not math.isfinite(value):
            raise InvalidDomainError("Result is too large", "OVERFLOW")
        return value
