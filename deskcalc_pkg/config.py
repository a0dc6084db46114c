"""Centralized configuration for the desk calculator.

This module defines:
- Number formatting thresholds (integer snapping, scientific bounds)
- Evaluator input limits (length, depth)
- Display glyphs and evaluator tokens for binary operators
- The evaluator allow-list and screening patterns

Configuration can be overridden via:
- CLI flags (see cli.py)
- Environment variables (prefixed with DESKCALC_)
"""

import os
import re
from importlib import metadata

import sympy as sp

try:
    VERSION = metadata.version("deskcalc")
except metadata.PackageNotFoundError:
    # Running from a source checkout
    VERSION = "1.0.0"

# Number formatter rules
INTEGER_SNAP_TOLERANCE = float(
    os.getenv("DESKCALC_INTEGER_SNAP_TOLERANCE", "1e-10")
)  # values this close to an integer render as that integer
SCIENTIFIC_LOWER_BOUND = float(os.getenv("DESKCALC_SCIENTIFIC_LOWER_BOUND", "1e-7"))
SCIENTIFIC_UPPER_BOUND = float(os.getenv("DESKCALC_SCIENTIFIC_UPPER_BOUND", "1e7"))
FIXED_FRACTION_DIGITS = int(os.getenv("DESKCALC_FIXED_FRACTION_DIGITS", "10"))
SCIENTIFIC_FRACTION_DIGITS = int(
    os.getenv("DESKCALC_SCIENTIFIC_FRACTION_DIGITS", "6")
)

# Evaluator input limits
MAX_EXPRESSION_LENGTH = int(
    os.getenv("DESKCALC_MAX_EXPRESSION_LENGTH", "2000")
)  # characters
MAX_EXPRESSION_DEPTH = int(
    os.getenv("DESKCALC_MAX_EXPRESSION_DEPTH", "100")
)  # tree depth

DEFAULT_LOG_LEVEL = os.getenv("DESKCALC_LOG_LEVEL", "WARNING")

# Display glyphs
PERCENT_MARKER = "%"
DECIMAL_POINT = "."
EQUALS_SUFFIX = " ="
ZERO_DISPLAY = "0"

# Binary operators: evaluator token -> display glyph
OPERATOR_GLYPHS = {
    "+": "+",
    "-": "-",
    "*": "×",
    "/": "÷",
}

# Key labels accepted for each evaluator token
OPERATOR_ALIASES = {
    "+": "+",
    "-": "-",
    "*": "*",
    "x": "*",
    "×": "*",
    "/": "/",
    "÷": "/",
}

CONSTANTS = {
    "pi": sp.pi,
    "e": sp.E,
}

ALLOWED_EVALUATOR_NAMES = {
    "sqrt": sp.sqrt,
    "pow": sp.Pow,
}

# Basic denylist applied before SymPy parsing
FORBIDDEN_TOKENS = (
    "__",
    "import",
    "lambda",
    "eval",
    "exec",
    "open",
    "getattr",
    "globals",
    "locals",
)

EXPRESSION_CHARS_RE = re.compile(r"^[0-9A-Za-z.+\-*/(),\s]*$")
DOUBLE_NEGATIVE_RE = re.compile(r"-\s*-")
MIXED_SIGN_RE = re.compile(r"\+\s*-|-\s*\+")
