from __future__ import annotations

import argparse
import json
import sys

from .api import is_known_key, new_session, press, tokenize_keys
from .config import VERSION
from .logging_config import get_logger, setup_logging
from .session import CalculatorSession
from .types import Panel, SessionSnapshot

logger = get_logger("cli")


def print_snapshot(snap: SessionSnapshot, output_format: str = "human") -> None:
    """Print the observable outputs of a session.

    Args:
        snap: Snapshot to print
        output_format: "json" for JSON output, "human" for human-readable
    """
    if output_format == "json":
        print(json.dumps(snap.to_dict(), indent=2, ensure_ascii=False))
        return
    if snap.expression:
        print(f"  {snap.expression}")
    print(f"  {snap.main_display}    [{snap.display_mode.value}]")


def print_panel(snap: SessionSnapshot) -> None:
    title = "Memory" if snap.active_panel is Panel.MEMORY else "History"
    items = snap.visible_items
    print(f"{title}:")
    if not items:
        print("  (empty)")
    for item in items:
        print(f"  {item}")


def print_help_text() -> None:
    print(
        "Enter key labels separated by spaces, e.g. '12 + 3 =' or '4 √ √'.\n"
        "  digits . + - x ÷ * /      operands and operators\n"
        "  √ x² 1/x (-) %            unary operations and percent\n"
        "  = C CE ⌫                  equals, clear, clear entry, backspace\n"
        "  MS M+ M- MR MC            memory\n"
        "  π e                       constants\n"
        "  History Memory            choose the side panel\n"
        "Commands: show (print the side panel), help, quit"
    )


def run_line(session: CalculatorSession, line: str) -> SessionSnapshot:
    """Feed one line of key labels into the session.

    Raises:
        ValueError: If the line contains an unknown key label
    """
    labels = tokenize_keys(line)
    unknown = [label for label in labels if not is_known_key(label)]
    if unknown:
        raise ValueError(f"Unknown key(s): {', '.join(unknown)}")
    for label in labels:
        press(session, label)
    return session.snapshot()


def repl_loop(output_format: str = "human") -> None:
    """Interactive REPL driving a single calculator session."""
    try:
        import readline  # noqa: F401
    except ImportError:
        # readline not available on Windows - that's fine
        pass

    session = new_session()
    print("Desk calculator - type 'help' for keys, 'quit' to exit.")
    print_snapshot(session.snapshot(), output_format)
    while True:
        try:
            raw = input(">>> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye.")
            return
        if not raw:
            continue
        command = raw.lower()
        if command in ("quit", "exit"):
            print("Goodbye.")
            return
        if command == "help":
            print_help_text()
            continue
        if command == "show":
            print_panel(session.snapshot())
            continue
        try:
            snap = run_line(session, raw)
        except ValueError as e:
            print(f"Error: {e}")
            continue
        print_snapshot(snap, output_format)


def _health_check() -> int:
    """Run a few known key sequences and report whether they behave."""
    checks = [
        ("5 + - 3 =", "2"),
        ("4 √ √", "1.4142135624"),
        ("200 + 50 = %", "25000%"),
        ("7 MS 3 M+ MR", "10"),
    ]
    failures = 0
    for keys, expected in checks:
        session = new_session()
        try:
            got = run_line(session, keys).main_display
        except ValueError as e:
            got = f"error: {e}"
        ok = got == expected
        failures += 0 if ok else 1
        print(f"[{'OK' if ok else 'FAIL'}] {keys!r} -> {got!r}")
    return 0 if failures == 0 else 1


def main_entry(argv: list[str] | None = None) -> int:
    """
    Main entry point for the desk calculator CLI.

    Args:
        argv: Optional command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = argparse.ArgumentParser(prog="deskcalc")
    parser.add_argument(
        "-e",
        "--eval",
        type=str,
        help="Run one key sequence (e.g. '12 + 3 =') and exit",
        dest="eval_keys",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["json", "human"],
        default="human",
        help="Output format: json (machine-readable) or human (human-readable)",
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="Show program version"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging level",
    )
    parser.add_argument("--log-file", type=str, help="Write logs to file")
    parser.add_argument(
        "--health-check",
        action="store_true",
        help="Run a self-test of the calculator engine",
    )
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_file=args.log_file)

    if args.version:
        print(f"deskcalc {VERSION}")
        return 0
    if args.health_check:
        return _health_check()
    if args.eval_keys is not None:
        session = new_session()
        try:
            snap = run_line(session, args.eval_keys)
        except ValueError as e:
            logger.error("Invalid key sequence: %s", e)
            print(f"Error: {e}", file=sys.stderr)
            return 2
        print_snapshot(snap, args.format)
        return 0 if snap.error is None else 1

    repl_loop(args.format)
    return 0


if __name__ == "__main__":
    sys.exit(main_entry())
