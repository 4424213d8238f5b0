from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

import pandas as pd

import breseq2records
from breseq2records.extractors.data_types import RECORD_COLUMNS, ReportContent
from breseq2records.extractors.report_formats import BRESEQ_0_27

logger = logging.getLogger(__name__)

DELIMITERS = {"csv": ",", "tsv": "\t"}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="breseq2records",
        description="Extract sequence annotation records from breseq HTML reports.",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Turn on debug logging to stderr.",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Report tool progress to stderr.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    parse = commands.add_parser(
        "parse",
        help="Parse a sequence annotation file.",
        description="Parse a sequence annotation file. The only supported input format is HTML.",
    )
    parse.add_argument(
        "-f",
        "--filepath",
        type=Path,
        required=True,
        help="Path to the report to parse.",
    )
    parse.add_argument(
        "-a",
        "--app-name",
        default=BRESEQ_0_27.application,
        help="Application that generated the report.",
    )
    parse.add_argument(
        "-v",
        "--app-version",
        default=f"{BRESEQ_0_27.version}.*",
        help="Version of the application that generated the report.",
    )
    parse.add_argument(
        "--ot",
        dest="output_type",
        choices=sorted(DELIMITERS),
        default="csv",
        help="Output type: csv, tsv.",
    )
    parse.add_argument(
        "--json",
        action="store_true",
        help="Emit the structured report as JSON instead of delimited rows.",
    )
    return parser


def _configure_logging(debug: bool, status: bool) -> None:
    if debug:
        level = logging.DEBUG
    elif status:
        level = logging.INFO
    else:
        return
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )


def _write_collections(report: ReportContent, delimiter: str) -> None:
    for index, collection in enumerate(report.collections):
        sys.stdout.write(f"Collection {index}\n")
        frame = pd.DataFrame(
            [[getattr(record, name) for name in RECORD_COLUMNS] for record in collection],
            columns=list(RECORD_COLUMNS),
        )
        frame.to_csv(sys.stdout, sep=delimiter, header=False, lineterminator="\n")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args, unknown = parser.parse_known_args(argv)
    except SystemExit as exc:
        code = exc.code if isinstance(exc.code, int) else 1
        return code

    if unknown:
        unknown_str = " ".join(unknown)
        print(
            f"breseq2records: warning: unsupported arguments: {unknown_str}",
            file=sys.stderr,
        )
        return 1

    _configure_logging(args.debug, args.status)

    try:
        report_format = breseq2records.get_report_format(
            args.app_name, args.app_version
        )
        logger.info(f"Parsing file: {args.filepath}")
        reports = list(breseq2records.read_file(args.filepath, report_format))
        if args.json:
            payload = [report.to_json() for report in reports]
            json.dump(payload[0] if len(payload) == 1 else payload, sys.stdout)
            sys.stdout.write("\n")
        else:
            for report in reports:
                _write_collections(report, DELIMITERS[args.output_type])
        logger.info(
            f"Parsed {sum(len(r.collections) for r in reports)} record collection(s)"
        )
        return 0
    except Exception as exc:
        print(f"breseq2records: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
