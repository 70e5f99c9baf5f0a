"""
Command-line entry point of the desk calculator.

Subcommands:
- ``eval``: evaluate one expression and print what the display would show
- ``keys``: replay key presses on a fresh keypad display
- ``batch``: evaluate a file (or archive) of expressions in worker processes
"""

import argparse
from pathlib import Path
import sys
import tarfile
from typing import List, Optional

from pydantic import BaseModel, Field, FilePath, ValidationError

from desk_calculator.batch.runner import BatchEvaluator
from desk_calculator.batch.sources import ExpressionSource
from desk_calculator.common.evaluator import evaluate_to_display
from desk_calculator.common.logger import logger, set_log_level
from desk_calculator.common.operations import ERROR_MARKER
from desk_calculator.keypad.display import CalculatorDisplay

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class BatchArgs(BaseModel):
    """
    Pydantic model used to validate ``batch`` arguments.

    Attributes
    ----------
    file_path : FilePath
        Path to the file containing arithmetic operations.
    output_path : Path, optional
        Where to write results; derived from ``file_path`` when omitted.
    workers : int, optional
        Upper bound on simultaneous worker processes.
    """

    file_path: FilePath
    output_path: Optional[Path] = None
    workers: Optional[int] = Field(default=None, ge=1)


def build_output_path(input_path: Path) -> Path:
    """
    Construct a safe output file path based on the input file.

    - Preserves the original folder
    - Replaces dots in extensions with underscores
    - Appends '_results.txt' at the end

    Examples
    --------
    input: resources/operations_short.7z
    output: resources/operations_short_7z_results.txt

    :param input_path: Path to the input file
    :return: Path to the output file
    """
    suffixes = "".join(input_path.suffixes)
    stem = input_path.name[: len(input_path.name) - len(suffixes)] if suffixes else input_path.name
    suffix_safe = suffixes.replace(".", "_")
    return input_path.with_name(f"{stem}{suffix_safe}_results.txt")


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with its three subcommands."""
    parser = argparse.ArgumentParser(
        prog="desk-calculator",
        description="Evaluate arithmetic expressions the way a desk calculator does",
    )
    parser.add_argument("--log-level", choices=LOG_LEVELS, default=None, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    eval_parser = subparsers.add_parser("eval", help="Evaluate one expression")
    eval_parser.add_argument("expression", nargs="+", help="Expression, e.g. '2+3*4'")

    keys_parser = subparsers.add_parser("keys", help="Press keys on a calculator keypad")
    keys_parser.add_argument("sequence", help="Keys to press, e.g. '12+3=' (C clears, ← deletes)")

    batch_parser = subparsers.add_parser("batch", help="Evaluate a file of expressions")
    batch_parser.add_argument("file_path", help="Text file or .zip/.tar.xz/.7z archive, one expression per line")
    batch_parser.add_argument("--output", dest="output_path", default=None, help="Results file path")
    batch_parser.add_argument("--workers", type=int, default=None, help="Maximum simultaneous workers")

    return parser


def run_eval(expression: str) -> int:
    shown = evaluate_to_display(expression)
    print(shown)
    return 1 if shown == ERROR_MARKER else 0


def run_keys(sequence: str, parser: argparse.ArgumentParser) -> int:
    display = CalculatorDisplay()
    try:
        shown = display.press_sequence(sequence)
    except ValueError as exc:
        parser.error(str(exc))
    print(shown)
    return 1 if shown == ERROR_MARKER else 0


def run_batch(batch_args: BatchArgs) -> int:
    """
    Evaluate every expression of the input file and write the results file.

    :param BatchArgs batch_args: Validated batch arguments
    :return: Exit status, 1 when at least one expression failed
    """
    output_path = batch_args.output_path or build_output_path(batch_args.file_path)
    expressions = ExpressionSource(path=batch_args.file_path).expressions()

    evaluator = BatchEvaluator(output_file=output_path, max_workers=batch_args.workers)
    outcomes = evaluator.run(expressions)

    failures = sum(1 for outcome in outcomes if not outcome.succeeded)
    print(f"{len(outcomes)} expressions evaluated, {failures} failed, results in {output_path}")
    return 1 if failures else 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments and run the requested subcommand.

    :param argv: Arguments without the program name, ``sys.argv[1:]`` by default
    :return: Process exit status
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        set_log_level(args.log_level)

    if args.command == "eval":
        return run_eval(" ".join(args.expression))

    if args.command == "keys":
        return run_keys(args.sequence, parser)

    try:
        batch_args = BatchArgs(file_path=args.file_path, output_path=args.output_path, workers=args.workers)
    except ValidationError as exc:
        parser.error(str(exc))

    try:
        return run_batch(batch_args)
    except (ValueError, tarfile.TarError) as exc:
        logger.error(f"📄❌ Could not read {batch_args.file_path}: {exc}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
