"""Command-line entry point."""

from __future__ import annotations

import json
import logging
import math
import sys

from .backend import generate
from .errors import SnackError
from .frontend import analyze, parse
from .middleend import optimize
from .serialize import serialize
from . import _extract_pragmas

PHASES: list[str] = [
    "parse",
    "analyze",
    "optimize",
]

USAGE: str = """\
snackscript [OPTIONS] [INPUT] [-o OUTPUT]

Options:
  --stop-at PHASE     Stop after phase and print it as JSON: parse, analyze,
                      optimize
  --no-optimize       Skip the optimizer
  --mangle-by-name    Number identifiers by source name instead of by
                      declaration
  -v, --verbose       Log pipeline progress to stderr
  -o, --output FILE   Write output to FILE instead of stdout
  --help              Show this help message
"""

logger = logging.getLogger(__name__)


def read_source(input_file: str | None) -> tuple[str, int]:
    """Read SnackScript source from INPUT, or from stdin when no file is given.

    Returns (source, exit_code). A byte-order mark left by an editor is dropped.
    """
    name = "<stdin>" if input_file is None else input_file
    try:
        if input_file is None:
            raw = sys.stdin.buffer.read()
        else:
            with open(input_file, "rb") as f:
                raw = f.read()
    except OSError as e:
        print("error: cannot open '" + name + "': " + str(e.strerror), file=sys.stderr)
        return ("", 1)
    try:
        return (raw.decode("utf-8-sig"), 0)
    except UnicodeDecodeError as e:
        print("error: " + name + " is not valid utf-8 (byte " + str(e.start) + ")", file=sys.stderr)
        return ("", 1)


def write_output(output: str, output_file: str | None) -> int:
    """Write output to file or stdout. Returns 0 on success, 1 on error."""
    if output_file is not None:
        try:
            with open(output_file, "w", encoding="utf-8") as f:
                f.write(output + "\n")
        except OSError:
            print("error: cannot write '" + output_file + "'", file=sys.stderr)
            return 1
        return 0
    print(output)
    return 0


# --- JSON dumps ---


def _json_value(obj: object) -> object:
    """Spell non-finite floats the way JavaScript does; JSON has no literal for them."""
    if isinstance(obj, float) and not math.isfinite(obj):
        if math.isnan(obj):
            return "NaN"
        return "Infinity" if obj > 0 else "-Infinity"
    if isinstance(obj, (list, tuple)):
        return [_json_value(x) for x in obj]
    if isinstance(obj, dict):
        return {k: _json_value(v) for k, v in obj.items()}
    return obj


def to_json(obj: object) -> str:
    """Serialize a raw tree or serialized IR to pretty-printed JSON."""
    return json.dumps(_json_value(obj), indent=2, ensure_ascii=False)


# --- Pipeline ---


def run_pipeline(
    source: str, stop_at: str | None, no_optimize: bool, mangle_by_name: bool
) -> tuple[int, str]:
    """Run the compilation pipeline. Returns (exit_code, output)."""
    pragma_no_optimize, pragma_by_name = _extract_pragmas(source)
    no_optimize = no_optimize or pragma_no_optimize
    mangle_by_name = mangle_by_name or pragma_by_name
    try:
        tree = parse(source)
        if stop_at == "parse":
            return (0, to_json(tree))
        program = analyze(tree)
        if stop_at == "analyze":
            return (0, to_json(serialize(program)))
        if not no_optimize:
            program = optimize(program)
        if stop_at == "optimize":
            return (0, to_json(serialize(program)))
        return (0, generate(program, mangle_by_name=mangle_by_name))
    except SnackError as e:
        print("error: " + str(e), file=sys.stderr)
        return (1, "")


def parse_args(
    argv: list[str] | None = None,
) -> tuple[str | None, bool, bool, bool, str | None, str | None]:
    """Parse command-line arguments.

    Returns (stop_at, no_optimize, mangle_by_name, verbose, input_file, output_file).
    """
    args = sys.argv[1:] if argv is None else argv
    stop_at: str | None = None
    no_optimize = False
    mangle_by_name = False
    verbose = False
    input_file: str | None = None
    output_file: str | None = None
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            sys.exit(0)
        elif arg == "--stop-at":
            if i + 1 >= len(args):
                print("error: --stop-at requires an argument", file=sys.stderr)
                sys.exit(2)
            stop_at = args[i + 1]
            i += 2
        elif arg == "-o" or arg == "--output":
            if i + 1 >= len(args):
                print("error: " + arg + " requires an argument", file=sys.stderr)
                sys.exit(2)
            output_file = args[i + 1]
            i += 2
        elif arg == "--no-optimize":
            no_optimize = True
            i += 1
        elif arg == "--mangle-by-name":
            mangle_by_name = True
            i += 1
        elif arg == "-v" or arg == "--verbose":
            verbose = True
            i += 1
        elif arg.startswith("-"):
            print("error: unknown flag '" + arg + "'", file=sys.stderr)
            sys.exit(2)
        else:
            if input_file is not None:
                print("error: unexpected argument '" + arg + "'", file=sys.stderr)
                sys.exit(2)
            input_file = arg
            i += 1
    if stop_at is not None and stop_at not in PHASES:
        print("error: unknown phase '" + stop_at + "'", file=sys.stderr)
        sys.exit(2)
    return (stop_at, no_optimize, mangle_by_name, verbose, input_file, output_file)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    stop_at, no_optimize, mangle_by_name, verbose, input_file, output_file = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    source, err = read_source(input_file)
    if err != 0:
        return err
    if len(source.strip()) == 0:
        print("error: no input provided", file=sys.stderr)
        return 2
    logger.debug("read %d characters", len(source))
    exit_code, output = run_pipeline(source, stop_at, no_optimize, mangle_by_name)
    if exit_code != 0:
        return exit_code
    if len(output) > 0:
        return write_output(output, output_file)
    return 0


if __name__ == "__main__":
    sys.exit(main())
