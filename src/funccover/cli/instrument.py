"""
Instrument command: rewrite Python sources for function coverage.
"""
import logging
import os
import sys

from funccover.application.config import InstrumentConfig, is_valid_cover_var
from funccover.application.errors import InstrumentationError
from funccover.instrumentation import instrument_for_function_coverage

LOG = logging.getLogger(__name__)


def add_instrument_parser(subparsers):
    """Add instrument subcommand parser."""
    instrument_parser = subparsers.add_parser(
        "instrument",
        help="Instrument Python files for function coverage"
    )
    instrument_parser.add_argument(
        "sources",
        nargs="+",
        help="Python source files to instrument"
    )
    instrument_parser.add_argument(
        "-o", "--output",
        help="Output file (single source) or directory (several sources)"
    )
    instrument_parser.add_argument(
        "--cover-var",
        help="Name of the coverage table variable (single source only)"
    )
    instrument_parser.add_argument(
        "--source-name",
        help="Path recorded in the coverage table (single source only)"
    )
    instrument_parser.add_argument(
        "--entry-point",
        default="main",
        help="Name of the program entry-point function (default: main)"
    )
    instrument_parser.add_argument(
        "--suffix",
        default="",
        help="Suffix added to output file names in an output directory"
    )
    instrument_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )
    instrument_parser.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Debug output"
    )


def _output_path(src, args, config):
    if args.output is None:
        directory, _ = os.path.split(src)
        return os.path.join(directory, config.output_name_for(src))
    if len(args.sources) == 1 and not os.path.isdir(args.output):
        return args.output
    return os.path.join(args.output, config.output_name_for(src))


def run_instrument(args):
    """Instrument every source; returns the process exit code."""
    level = logging.DEBUG if args.debug else logging.INFO if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    if len(args.sources) > 1 and (args.cover_var or args.source_name):
        print("Error: --cover-var and --source-name need a single source", file=sys.stderr)
        return 2
    if args.cover_var and not is_valid_cover_var(args.cover_var):
        print(f"Error: invalid cover variable name '{args.cover_var}'", file=sys.stderr)
        return 2

    config = InstrumentConfig()
    config.set_option("entry_point_name", args.entry_point)
    config.set_option("output_suffix", args.suffix)

    if args.output is None and not args.suffix:
        print("Error: refusing to overwrite sources; give --output or --suffix", file=sys.stderr)
        return 2

    targets = {}
    for src in args.sources:
        out_path = _output_path(src, args, config)
        key = os.path.normcase(os.path.abspath(out_path))
        if key in targets:
            print(f"Error: '{src}' and '{targets[key]}' would both be written to '{out_path}'", file=sys.stderr)
            return 2
        targets[key] = src

    failures = 0
    for src in args.sources:
        out_path = _output_path(src, args, config)
        cover_var = args.cover_var or config.cover_var_for(src)
        src_name = args.source_name or src
        try:
            instrument_for_function_coverage(src, src_name, cover_var, out_path, config)
        except (InstrumentationError, OSError) as exc:
            LOG.error("Instrumentation failed: %s", exc)
            failures += 1

    if failures:
        print(f"{failures} of {len(args.sources)} files could not be instrumented.", file=sys.stderr)
        return 1
    return 0
