"""Command line entry point.

Usage::

    tmx-filter -langs EN,FR -novote -plaintext -output out.tmx corpus.tmx

Without ``-output`` the filtered corpus goes to standard output.  The exit
status is 2 for invalid options, 1 when the input cannot be read or is
malformed and 0 otherwise.
"""

from __future__ import annotations

import argparse
import datetime
import sys
from typing import List

from lxml import etree

import config

from .errors import ConfigurationError, TmxFilterError
from .processor import TmxFilter
from .rewriter import FilterOptions


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="tmx-filter",
        description="Filter languages, vote units and markup out of a TMX corpus",
    )
    ap.add_argument("input", help="TMX file to filter")
    ap.add_argument(
        "-langs",
        "--langs",
        metavar="<langlist>",
        help="comma separated language codes to keep. Valid choices: "
        + ",".join(sorted(config.VALID_LANGUAGES)),
    )
    ap.add_argument(
        "-novote",
        "--novote",
        action="store_true",
        help="remove units that contain voting information",
    )
    ap.add_argument(
        "-plaintext",
        "--plaintext",
        action="store_true",
        help="remove footnotes and flatten symbols so each segment contains only text",
    )
    ap.add_argument(
        "-sessions",
        "--sessions",
        metavar="<sessionlist>",
        help="comma separated session numbers to keep. Valid choices: "
        + ",".join(sorted(config.VALID_SESSIONS)),
    )
    ap.add_argument("-output", "--output", help="file to write results to (default: stdout)")
    ap.add_argument("--log-dir", help=f"directory for run logs (default: {config.LOG_DIR})")
    return ap


def main(argv: List[str] | None = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    try:
        options = FilterOptions.from_choices(
            langs=args.langs,
            sessions=args.sessions,
            drop_vote_units=args.novote,
            plaintext=args.plaintext,
        )
    except ConfigurationError as exc:
        ap.error(str(exc))

    status = 0
    print(f"START: {datetime.datetime.now()}", file=sys.stderr)
    try:
        TmxFilter(options, args.log_dir).filter_file(args.input, args.output)
    except (TmxFilterError, etree.XMLSyntaxError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        status = 1
    print(f"END  : {datetime.datetime.now()}", file=sys.stderr)
    return status


if __name__ == "__main__":
    sys.exit(main())
