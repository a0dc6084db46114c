"""Desk calculator package: number formatter, evaluator, session engine and CLI."""

__all__ = [
    "config",
    "formatter",
    "evaluator",
    "session",
    "cli",
    "types",
    "api",
    "logging_config",
]

# Public API exports

__api_exports__ = [
    "new_session",
    "press",
    "run_keys",
    "tokenize_keys",
]
