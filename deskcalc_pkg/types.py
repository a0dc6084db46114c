"""Type definitions, state tags and the error taxonomy for the calculator core."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DisplayMode(str, Enum):
    """Tag telling the presentation layer what the main display holds."""

    INPUT = "Input"
    RESULT = "Result"


class OperandState(Enum):
    """Where the session stands with respect to the current operand.

    FRESH_OPERAND: the next digit starts a new operand.
    TYPING_OPERAND: the user is typing (or recalled) a live operand.
    PREVIEW_RESULT: a binary operator just produced a running-total preview.
    UNARY_RESULT: an immediate unary operation just produced its value.
    PENDING_UNARY: a deferred unary opening awaits its operand.
    """

    FRESH_OPERAND = "fresh_operand"
    TYPING_OPERAND = "typing_operand"
    PREVIEW_RESULT = "preview_result"
    UNARY_RESULT = "unary_result"
    PENDING_UNARY = "pending_unary"

    @property
    def awaiting_new_operand(self) -> bool:
        return self is not OperandState.TYPING_OPERAND

    @property
    def just_produced_result(self) -> bool:
        return self in (OperandState.PREVIEW_RESULT, OperandState.UNARY_RESULT)


class UnaryKind(str, Enum):
    SQUARE = "square"
    SQRT = "sqrt"
    RECIPROCAL = "reciprocal"
    NEGATE = "negate"


class Panel(str, Enum):
    HISTORY = "history"
    MEMORY = "memory"


@dataclass
class SessionSnapshot:
    """Observable outputs of a session after an action."""

    main_display: str
    expression: str
    display_mode: DisplayMode
    history: list[str] = field(default_factory=list)
    memory: list[str] = field(default_factory=list)
    active_panel: Panel = Panel.HISTORY
    error: str | None = None

    @property
    def visible_items(self) -> list[str]:
        """The list the side panel currently shows."""
        return self.memory if self.active_panel is Panel.MEMORY else self.history

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict = {
            "main_display": self.main_display,
            "expression": self.expression,
            "display_mode": self.display_mode.value,
            "history": list(self.history),
            "memory": list(self.memory),
            "active_panel": self.active_panel.value,
        }
        if self.error is not None:
            result_dict["error"] = self.error
        return result_dict

    def __repr__(self) -> str:
        parts = [
            f"main_display={self.main_display!r}",
            f"expression={self.expression!r}",
            f"display_mode={self.display_mode.value!r}",
        ]
        if self.error is not None:
            parts.append(f"error={self.error!r}")
        return f"SessionSnapshot({', '.join(parts)})"


class CalculatorError(Exception):
    """Base class for failures the session resolves into an error display."""

    default_code = "CALCULATOR_ERROR"
    display_text = "Error"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class EvaluationError(CalculatorError):
    """Raised by an evaluator that cannot produce a real, finite number."""

    default_code = "EVALUATION_ERROR"


class MalformedExpressionError(EvaluationError):
    """Raised when the evaluator string is not valid arithmetic syntax."""

    default_code = "MALFORMED_EXPRESSION"


class DivisionByZeroError(EvaluationError):
    default_code = "DIVISION_BY_ZERO"
    display_text = "Cannot divide by zero"


class InvalidDomainError(EvaluationError):
    """Raised for non-real or non-finite results (e.g. sqrt of a negative)."""

    default_code = "INVALID_DOMAIN"
    display_text = "Invalid input"


class NumericParseError(CalculatorError):
    """Raised when display text cannot be read back as a number."""

    default_code = "NUMERIC_PARSE_FAILURE"
