"""Public API for the desk calculator - key-label intake returning snapshots."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from .config import DECIMAL_POINT, OPERATOR_ALIASES
from .evaluator import Evaluator
from .logging_config import get_logger
from .session import DIGITS, CalculatorSession
from .types import Panel, SessionSnapshot, UnaryKind

logger = get_logger("api")

UNARY_KEYS = {
    "√": UnaryKind.SQRT,
    "sqrt": UnaryKind.SQRT,
    "x²": UnaryKind.SQUARE,
    "sqr": UnaryKind.SQUARE,
    "1/x": UnaryKind.RECIPROCAL,
    "(-)": UnaryKind.NEGATE,
    "+/-": UnaryKind.NEGATE,
    "neg": UnaryKind.NEGATE,
}

CONSTANT_KEYS = {
    "π": "pi",
    "pi": "pi",
    "e": "e",
}

# Scientific-mode keys are accepted but do nothing in standard mode
SCIENTIFIC_KEYS = frozenset({"(", ")", "^", "xʸ"})

_COMMAND_KEYS: dict[str, Callable[[CalculatorSession], None]] = {
    "C": CalculatorSession.clear,
    "CE": CalculatorSession.clear_entry,
    "⌫": CalculatorSession.backspace,
    "BS": CalculatorSession.backspace,
    "=": CalculatorSession.evaluate_expression,
    "%": CalculatorSession.toggle_percent,
    "MS": CalculatorSession.memory_save,
    "M+": CalculatorSession.memory_add,
    "M-": CalculatorSession.memory_subtract,
    "MR": CalculatorSession.memory_recall,
    "MC": CalculatorSession.memory_clear,
}

_PANEL_KEYS = {
    "History": Panel.HISTORY,
    "Memory": Panel.MEMORY,
}


def new_session(evaluator: Evaluator | None = None) -> CalculatorSession:
    """Create a session in its start-up state."""
    return CalculatorSession(evaluator)


def is_known_key(key: str) -> bool:
    return (
        key in DIGITS
        or key == DECIMAL_POINT
        or key in OPERATOR_ALIASES
        or key in UNARY_KEYS
        or key in CONSTANT_KEYS
        or key in SCIENTIFIC_KEYS
        or key in _COMMAND_KEYS
        or key in _PANEL_KEYS
    )


def press(session: CalculatorSession, key: str) -> SessionSnapshot:
    """Dispatch one key label to the session.

    Args:
        session: Session to drive
        key: Button label such as "7", ".", "+", "÷", "√", "%", "=", "MS"

    Returns:
        SessionSnapshot after the action

    Raises:
        ValueError: If the key label is not recognised

    Example:
        >>> from deskcalc_pkg.api import new_session, press
        >>> session = new_session()
        >>> press(session, "9").main_display
        '9'
        >>> press(session, "√").main_display
        '3'
    """
    logger.debug("Key %r in state %s", key, session.state.value)
    if key in DIGITS or key == DECIMAL_POINT:
        session.append_digit_or_point(key)
    elif key in OPERATOR_ALIASES:
        session.apply_binary_operator(key)
    elif key in UNARY_KEYS:
        session.apply_unary_operation(UNARY_KEYS[key])
    elif key in CONSTANT_KEYS:
        session.insert_constant(CONSTANT_KEYS[key])
    elif key in _COMMAND_KEYS:
        _COMMAND_KEYS[key](session)
    elif key in _PANEL_KEYS:
        session.select_panel(_PANEL_KEYS[key])
    elif key in SCIENTIFIC_KEYS:
        logger.info("Key %r is not available in standard mode", key)
    else:
        raise ValueError(f"Unknown key: {key!r}")
    return session.snapshot()


def tokenize_keys(keys: str) -> list[str]:
    """Split a key sequence into key labels.

    Labels are separated by whitespace; a run of digits and points is
    split into single keystrokes.

    Example:
        >>> tokenize_keys("12.5 + √ =")
        ['1', '2', '.', '5', '+', '√', '=']
    """
    tokens: list[str] = []
    for word in keys.split():
        if all(ch in DIGITS or ch == DECIMAL_POINT for ch in word):
            tokens.extend(word)
        else:
            tokens.append(word)
    return tokens


def run_keys(
    keys: str | Iterable[str], session: CalculatorSession | None = None
) -> SessionSnapshot:
    """Feed a key sequence into a session and return the final snapshot.

    Args:
        keys: Whitespace-separated labels ("5 + 3 =") or an iterable of labels
        session: Session to drive (a new one is created when omitted)

    Returns:
        SessionSnapshot after the last key

    Example:
        >>> from deskcalc_pkg.api import run_keys
        >>> run_keys("200 + 50 = %").main_display
        '25000%'
    """
    session = session or new_session()
    labels = tokenize_keys(keys) if isinstance(keys, str) else list(keys)
    for label in labels:
        press(session, label)
    return session.snapshot()
