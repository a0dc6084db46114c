"""Calculator session: the input/expression state machine.

A session turns discrete user actions (digits, operators, unary
operations, percent toggles, clear/backspace, memory keys) into two
mirrored expression strings:

- the display expression, shown to the user ("12 + √(4)")
- the evaluator expression, handed to the evaluator ("12+sqrt(4)")

plus the operand buffer that feeds the main display. Every mutation of the
expression strings goes through ``_append`` or ``_truncate_to_segment`` so
the two strings never drift apart.

Sessions are single-threaded; callers must serialize access.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from .config import (
    CONSTANTS,
    DECIMAL_POINT,
    EQUALS_SUFFIX,
    OPERATOR_ALIASES,
    OPERATOR_GLYPHS,
    ZERO_DISPLAY,
)
from .evaluator import Evaluator, SympyEvaluator, normalize_signs
from .formatter import (
    format_number,
    format_percent,
    is_percent_text,
    parse_display_value,
    parse_number,
)
from .logging_config import get_logger
from .types import (
    CalculatorError,
    DisplayMode,
    DivisionByZeroError,
    InvalidDomainError,
    NumericParseError,
    OperandState,
    Panel,
    SessionSnapshot,
    UnaryKind,
)

logger = get_logger("session")

DIGITS = frozenset("0123456789")

_PLAIN_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?(?:E-?\d+)?$")


class UnaryTemplate(NamedTuple):
    """Spellings of one unary operation around its operand."""

    display_prefix: str
    display_suffix: str
    eval_prefix: str
    eval_suffix: str
    notation_prefix: str
    notation_suffix: str
    group_operand: bool = False

    def _group(self, text: str) -> str:
        if self.group_operand and not _PLAIN_NUMBER_RE.match(text):
            return f"({text})"
        return text

    def wrap(self, display: str, evaluator: str, notation: str) -> tuple[str, str, str]:
        """Return (display term, evaluator term, history notation) for an operand."""
        return (
            self.display_prefix + self._group(display) + self.display_suffix,
            self.eval_prefix + evaluator + self.eval_suffix,
            self.notation_prefix + self._group(notation) + self.notation_suffix,
        )


UNARY_TEMPLATES = {
    UnaryKind.SQUARE: UnaryTemplate("", "²", "pow(", ", 2)", "", "²", group_operand=True),
    UnaryKind.SQRT: UnaryTemplate("√(", ")", "sqrt(", ")", "sqrt(", ")"),
    UnaryKind.RECIPROCAL: UnaryTemplate("1/(", ")", "1/(", ")", "1/(", ")"),
    UnaryKind.NEGATE: UnaryTemplate("-(", ")", "-(", ")", "negate(", ")"),
}


class _UnaryChain(NamedTuple):
    """Trailing term produced by an immediate unary operation."""

    display: str
    evaluator: str
    notation: str
    history_entry: str


class CalculatorSession:
    """Stateful engine behind one calculator window.

    Args:
        evaluator: Expression evaluator collaborator (defaults to SympyEvaluator)
    """

    def __init__(self, evaluator: Evaluator | None = None):
        self.evaluator = evaluator or SympyEvaluator()
        self.history: list[str] = []
        self.memory: list[str] = []
        self.active_panel = Panel.HISTORY
        self._reset_state()

    def _reset_state(self) -> None:
        self._display_expr = ""
        self._eval_expr = ""
        self._segment = (0, 0)
        self._pending: list[UnaryKind] = []
        self._chain: _UnaryChain | None = None
        self._finished_trail: str | None = None
        self.current_input = ""
        self.state = OperandState.FRESH_OPERAND
        self.percent_active = False
        self.display_mode = DisplayMode.INPUT
        self.error: CalculatorError | None = None

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def display_expression(self) -> str:
        return self._display_expr

    @property
    def eval_expression(self) -> str:
        return self._eval_expr

    @property
    def pending_unary_depth(self) -> int:
        return len(self._pending)

    @property
    def pending_unary_kind(self) -> UnaryKind | None:
        return self._pending[-1] if self._pending else None

    @property
    def awaiting_new_operand(self) -> bool:
        return self.state.awaiting_new_operand

    @property
    def just_produced_result(self) -> bool:
        return self.state.just_produced_result

    @property
    def main_value(self) -> str:
        """Text of the main display value, ignoring any error indicator."""
        return self.current_input or ZERO_DISPLAY

    @property
    def main_display(self) -> str:
        if self.error is not None:
            return self.error.display_text
        return self.main_value

    @property
    def expression(self) -> str:
        """The expression trail shown above the main display."""
        if self._finished_trail is not None:
            return self._finished_trail
        return self._display_expr

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            main_display=self.main_display,
            expression=self.expression,
            display_mode=self.display_mode,
            history=list(self.history),
            memory=list(self.memory),
            active_panel=self.active_panel,
            error=self.error.message if self.error is not None else None,
        )

    # ------------------------------------------------------------------
    # Expression string helpers
    # ------------------------------------------------------------------

    def _append(self, display_fragment: str, eval_fragment: str) -> None:
        self._display_expr += display_fragment
        self._eval_expr += eval_fragment

    def _mark_segment(self) -> None:
        """Record where the next operand term starts in both strings."""
        self._segment = (len(self._display_expr), len(self._eval_expr))

    def _truncate_to_segment(self) -> None:
        display_start, eval_start = self._segment
        self._display_expr = self._display_expr[:display_start]
        self._eval_expr = self._eval_expr[:eval_start]

    def _ends_with_operator(self) -> bool:
        return self._eval_expr[-1:] in OPERATOR_GLYPHS

    def _strip_trailing_operator(self) -> None:
        if self._ends_with_operator():
            glyph = OPERATOR_GLYPHS[self._eval_expr[-1]]
            self._eval_expr = self._eval_expr[:-1]
            self._display_expr = self._display_expr[: -len(f" {glyph} ")]

    def _commit_operand(self) -> None:
        """Write the operand buffer into the current term of both strings."""
        text = format_number(parse_number(self.current_input or ZERO_DISPLAY))
        self._truncate_to_segment()
        self._append(text, text)

    def _close_pending(self) -> None:
        for kind in reversed(self._pending):
            template = UNARY_TEMPLATES[kind]
            self._append(template.display_suffix, template.eval_suffix)
        self._pending.clear()

    def _reset_expression(self) -> None:
        self._display_expr = ""
        self._eval_expr = ""
        self._segment = (0, 0)
        self._pending.clear()
        self._chain = None

    def _convert_percent(self) -> None:
        """Replace a percent-marked operand with its decimal value."""
        if is_percent_text(self.current_input):
            self.current_input = format_number(parse_display_value(self.current_input))

    def _fail(self, error: CalculatorError, action: str) -> None:
        logger.warning("%s failed (%s): %s", action, error.code, error.message)
        self.error = error

    def _holds_finished_result(self) -> bool:
        return (
            self.state is OperandState.FRESH_OPERAND
            and self._finished_trail is not None
            and not self._display_expr
        )

    def _start_operand(self) -> None:
        """Begin a fresh operand if the buffer is not live typed input."""
        if self.state is OperandState.TYPING_OPERAND:
            return
        if self.state is OperandState.UNARY_RESULT:
            # typing replaces the unary term
            self._truncate_to_segment()
        if not self._display_expr:
            self._finished_trail = None
        self._chain = None
        self.current_input = ""
        self.percent_active = False
        self.state = OperandState.TYPING_OPERAND

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def append_digit_or_point(self, token: str) -> None:
        """Append a digit or the decimal point to the operand buffer."""
        if token not in DIGITS and token != DECIMAL_POINT:
            raise ValueError(f"Expected a digit or '{DECIMAL_POINT}', got {token!r}")
        self.error = None
        self._start_operand()
        self.display_mode = DisplayMode.INPUT

        if token == DECIMAL_POINT:
            if DECIMAL_POINT in self.current_input:
                return
            if not self.current_input:
                self.current_input = ZERO_DISPLAY
        elif self.current_input == ZERO_DISPLAY:
            self.current_input = ""
        self.current_input += token

    def insert_constant(self, name: str) -> None:
        """Load pi or e into the operand buffer as a complete operand."""
        if name not in CONSTANTS:
            raise ValueError(f"Unknown constant {name!r}")
        self.error = None
        self._start_operand()
        self.current_input = format_number(float(CONSTANTS[name]))
        self.percent_active = False
        self.display_mode = DisplayMode.INPUT
        self.state = OperandState.FRESH_OPERAND

    def apply_binary_operator(self, op: str) -> None:
        """Apply +, -, * or / (display glyphs x, × and ÷ are accepted)."""
        token = OPERATOR_ALIASES.get(op)
        if token is None:
            raise ValueError(f"Unknown binary operator {op!r}")
        self.error = None
        try:
            self._convert_percent()
            if not self.state.just_produced_result:
                self._commit_operand()
        except CalculatorError as e:
            self._fail(e, "Operator")
            return

        self._close_pending()
        self._strip_trailing_operator()
        self._append(f" {OPERATOR_GLYPHS[token]} ", token)
        self._mark_segment()
        self._chain = None
        self._finished_trail = None
        logger.debug("Operator %s -> %r", token, self._eval_expr)

        self._preview()
        self.state = OperandState.PREVIEW_RESULT
        self.display_mode = DisplayMode.RESULT

    def _preview(self) -> None:
        """Evaluate the expression so far and adopt the running total.

        Failures are expected mid-expression and leave the display as is.
        """
        expression = self._eval_expr
        if self._ends_with_operator():
            expression = expression[:-1]
        try:
            text = format_number(self.evaluator.evaluate(expression))
        except CalculatorError as e:
            logger.debug("Preview of %r skipped: %s", expression, e)
            return
        self.current_input = text
        self.percent_active = False

    def apply_unary_operation(self, kind: UnaryKind | str) -> None:
        """Apply square, sqrt, reciprocal or negate.

        Right after a binary operator (or onto a still-open unary operation)
        only the opening is written and the operation closes with the next
        operator or equals. Otherwise the operation is evaluated at once on
        the displayed value, or on the whole trailing term when chaining onto
        a unary result.
        """
        kind = UnaryKind(kind)
        template = UNARY_TEMPLATES[kind]
        self.error = None
        after_operator = (
            self.state is OperandState.PREVIEW_RESULT and self._ends_with_operator()
        )
        try:
            self._convert_percent()
        except CalculatorError as e:
            self._fail(e, "Unary operation")
            return

        if after_operator or self.state is OperandState.PENDING_UNARY:
            self._append(template.display_prefix, template.eval_prefix)
            self._mark_segment()
            self._pending.append(kind)
            self._chain = None
            self.state = OperandState.PENDING_UNARY
            logger.debug("Deferred %s, depth %d", kind.value, len(self._pending))
            return

        chain = self._chain if self.state is OperandState.UNARY_RESULT else None
        try:
            if chain is not None:
                operand = (chain.display, chain.evaluator, chain.notation)
            else:
                value = parse_display_value(self.main_value)
                self._check_domain(kind, value)
                value_text = format_number(value)
                operand = (value_text, value_text, value_text)
            display_term, eval_term, notation = template.wrap(*operand)
            result_text = format_number(self.evaluator.evaluate(eval_term))
        except CalculatorError as e:
            self._fail(e, "Unary operation")
            return

        self._truncate_to_segment()
        self._append(display_term, eval_term)
        self._finished_trail = None

        entry = f"{notation} = {result_text}"
        if chain is not None and self.history and self.history[0] == chain.history_entry:
            self.history[0] = entry
        else:
            self.history.insert(0, entry)

        self.current_input = result_text
        self.percent_active = False
        self._chain = _UnaryChain(display_term, eval_term, notation, entry)
        self.state = OperandState.UNARY_RESULT
        self.display_mode = DisplayMode.RESULT
        logger.debug("Unary %s -> %s", notation, result_text)

    @staticmethod
    def _check_domain(kind: UnaryKind, value: float) -> None:
        if kind is UnaryKind.RECIPROCAL and value == 0:
            raise DivisionByZeroError("Cannot take the reciprocal of zero")
        if kind is UnaryKind.SQRT and value < 0:
            raise InvalidDomainError(
                "Cannot take the square root of a negative number"
            )

    def evaluate_expression(self) -> None:
        """Finish the expression (the = key)."""
        self.error = None
        # the previous = already consumed its result unless it was rescaled
        consumed = self._holds_finished_result() and not is_percent_text(
            self.current_input
        )
        try:
            self._convert_percent()
            if not (self.state.just_produced_result or consumed) and (
                self.current_input or self.state is OperandState.PENDING_UNARY
            ):
                self._commit_operand()
        except CalculatorError as e:
            self._fail(e, "Evaluation")
            return

        self._close_pending()
        self._strip_trailing_operator()
        if not self._eval_expr:
            return

        expression_text = self._display_expr
        eval_text = normalize_signs(self._eval_expr)
        try:
            result_text = format_number(self.evaluator.evaluate(eval_text))
        except CalculatorError as e:
            self.clear()
            self._fail(e, f"Evaluation of {eval_text!r}")
            return

        self.history.insert(0, f"{expression_text} = {result_text}")
        self._reset_expression()
        if expression_text.endswith(EQUALS_SUFFIX):
            self._finished_trail = expression_text
        else:
            self._finished_trail = expression_text + EQUALS_SUFFIX
        self.current_input = result_text
        self.percent_active = False
        self.state = OperandState.FRESH_OPERAND
        self.display_mode = DisplayMode.RESULT
        logger.info("Evaluated %s = %s", expression_text, result_text)

    def toggle_percent(self) -> None:
        """Switch the main value between decimal and percent notation.

        Freshly typed input is marked as typed ("50" -> "50%"); results, and
        values that already went through percent once, are scaled by 100
        ("250" -> "25000%"). A percent value converts back by dividing by 100.
        """
        self.error = None
        text = self.main_value
        try:
            if is_percent_text(text):
                self.current_input = format_number(parse_display_value(text))
                self.percent_active = True
                self.state = OperandState.TYPING_OPERAND
                return
            value = parse_number(text)
            if self.display_mode is DisplayMode.INPUT and not self.percent_active:
                shown = format_percent(value)
            else:
                shown = format_percent(value * 100)
        except CalculatorError as e:
            self._fail(e, "Percent")
            return
        self.current_input = shown
        self._chain = None
        self.state = OperandState.FRESH_OPERAND

    def clear(self) -> None:
        """Reset to the start-up state; history and memory are kept."""
        self._reset_state()
        logger.debug("Session cleared")

    def clear_entry(self) -> None:
        """Empty the operand buffer, keeping the expression trail."""
        self.error = None
        self.current_input = ""
        self.percent_active = False
        self._chain = None
        if self.state is not OperandState.PENDING_UNARY:
            self.state = OperandState.FRESH_OPERAND

    def backspace(self) -> None:
        """Remove the last typed character; results are left alone."""
        self.error = None
        if self.state is not OperandState.TYPING_OPERAND:
            return
        self.current_input = self.current_input[:-1]

    # ------------------------------------------------------------------
    # Memory and side panel
    # ------------------------------------------------------------------

    def _memory_operand(self, action: str) -> float | None:
        try:
            return parse_display_value(self.main_value)
        except NumericParseError as e:
            self._fail(e, action)
            return None

    def _end_entry(self) -> None:
        if self.state is OperandState.TYPING_OPERAND:
            self.state = OperandState.FRESH_OPERAND

    def memory_save(self) -> None:
        self.error = None
        value = self._memory_operand("Memory save")
        if value is None:
            return
        self.memory.insert(0, format_number(value))
        self._end_entry()

    def memory_add(self) -> None:
        """Add the displayed value into memory slot 0 (creating it if needed)."""
        self.error = None
        value = self._memory_operand("Memory add")
        if value is None:
            return
        if self.memory:
            self.memory[0] = format_number(parse_number(self.memory[0]) + value)
        else:
            self.memory.insert(0, format_number(value))
        self._end_entry()

    def memory_subtract(self) -> None:
        self.error = None
        value = self._memory_operand("Memory subtract")
        if value is None:
            return
        if self.memory:
            self.memory[0] = format_number(parse_number(self.memory[0]) - value)
        else:
            logger.debug("Memory subtract ignored: memory is empty")
        self._end_entry()

    def memory_recall(self) -> None:
        self.error = None
        if not self.memory:
            return
        self._start_operand()
        self.current_input = self.memory[0]
        self.percent_active = False
        self.display_mode = DisplayMode.INPUT

    def memory_clear(self) -> None:
        self.error = None
        self.memory.clear()

    def clear_history(self) -> None:
        self.error = None
        self.history.clear()

    def select_panel(self, panel: Panel | str) -> None:
        """Choose which list the side panel shows.

        Calculator state is untouched, including a pending error indicator.
        """
        self.active_panel = Panel(panel)
