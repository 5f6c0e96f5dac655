"""
Command line interface for pma.

Usage:
    pma [-c config] [-s single-file] [-m multi-file-dir] [-d] [-p] [-v] input-file ...

``-`` as an input file reads standard input.  When it is the FIRST input,
its first data set only serves to discover the devices and is not
emitted.  Diagnostics go to standard error; ``-p`` and ``-d`` reports go
to standard output after all inputs have been read.
"""

from __future__ import annotations

import argparse
import locale
import logging
import sys

from pma._pipeline import run_analysis
from pma.config import format_parameter_table
from pma.exceptions import PmaError
from pma.summary import format_summary

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(levelname)s: %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pma",
        description="Performance Monitor Analyzer: reshape and scale performance "
        "monitor output into plotting-friendly files.",
    )
    parser.add_argument("-c", "--configurationfile", dest="config", metavar="config",
                        help="configuration file (scale factors and tunables)")
    parser.add_argument("-s", "--singlefile", dest="single_file", metavar="single-file",
                        help="write every active series to one wide table "
                        "(a .parquet suffix writes Parquet)")
    parser.add_argument("-m", "--multifiledirectory", dest="multi_dir", metavar="multi-file-dir",
                        help="write one file per active series into this directory")
    parser.add_argument("-d", "--datavalues", dest="summary", action="store_true",
                        help="print the data values summary")
    parser.add_argument("-p", "--parameters", dest="parameters", action="store_true",
                        help="print the parameter table")
    parser.add_argument("-v", "--verbose", dest="verbosity", action="count", default=0,
                        help="verbose diagnostics (repeat for more)")
    parser.add_argument("inputs", nargs="*", metavar="input-file",
                        help="performance monitor output; '-' reads standard input")
    return parser


def _log_level(verbosity: int) -> int:
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=_log_level(args.verbosity), format=_LOG_FORMAT, stream=sys.stderr)

    if not args.inputs:
        parser.print_usage(sys.stderr)
        return 1

    try:
        locale.setlocale(locale.LC_ALL, "")
    except locale.Error as exc:
        logger.warning("Could not set the locale from the environment: %s", exc)

    if args.single_file is None and args.multi_dir is None:
        logger.warning("No output file has been specified")

    try:
        result = run_analysis(
            args.inputs,
            config_path=args.config,
            single_file=args.single_file,
            multi_dir=args.multi_dir,
        )
    except PmaError as exc:
        logger.error("%s", exc)
        return 1

    if args.parameters:
        print(format_parameter_table(result.config.parameters))
    if args.summary:
        print(format_summary(result.summary()))
    return 0


if __name__ == "__main__":
    sys.exit(main())
