"""Main entry point for running deskcalc_pkg as a module.

This allows running the calculator with:
    python -m deskcalc_pkg
    python -m deskcalc_pkg --health-check
    python -m deskcalc_pkg -e "12 + 3 ="
"""

from __future__ import annotations

import sys

from .cli import main_entry

if __name__ == "__main__":
    sys.exit(main_entry())
