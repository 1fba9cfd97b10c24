import argparse
import logging
from pathlib import Path
import sys

from scrubcsv.config import APP_NAME, APP_VERSION, Settings, get_settings
from scrubcsv.csv_io import open_bad_rows, open_input, open_stdout, parse_char_specifier, set_field_size_limit
from scrubcsv.errors import ScrubError, TooManyBadRowsError
from scrubcsv.pipeline import ScrubPipeline
from scrubcsv.quality import enforce_quality_gate
from scrubcsv.schemas import ScrubOptions, ScrubResult


logger = logging.getLogger(__name__)

EPILOG = """\
Read a CSV file, normalize the "good" lines, and print them to standard
output.  Discard any lines with the wrong number of columns.

Regular expressions use Python `re` syntax and must match the whole value.

scrubcsv should work with any ASCII-compatible encoding, but it will not
attempt to transcode.

Exit code:
    0 on success
    1 on error
    2 if more than 10% of rows were bad"""

_BINARY_UNITS = ("B", "KiB", "MiB", "GiB", "TiB")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Clean and normalize a CSV file.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input", nargs="?", type=Path, default=None, help="Input file (uses stdin if omitted)")
    parser.add_argument(
        "-d",
        "--delimiter",
        metavar="CHAR",
        default=",",
        help='Character used to separate fields in a row (a single ASCII byte, or "tab")',
    )
    parser.add_argument(
        "-n",
        "--null",
        metavar="NULL_REGEX",
        default=None,
        help="Convert values matching NULL_REGEX to an empty string. Use (?i) for a case-insensitive match",
    )
    parser.add_argument(
        "--replace-newlines",
        action="store_true",
        help="Replace LF, CRLF and CR sequences in values with spaces",
    )
    parser.add_argument("--trim-whitespace", action="store_true", help="Remove whitespace at beginning and end of each cell")
    parser.add_argument(
        "--clean-column-names",
        action="store_true",
        help="Make column names unique, using only lowercase letters, numbers and underscores",
    )
    parser.add_argument(
        "--drop-row-if-null",
        metavar="COL",
        action="append",
        default=[],
        help="Drop rows where this column is empty or NULL. May be repeated. Uses cleaned column names",
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Do not print performance information")
    parser.add_argument(
        "--quote",
        metavar="CHAR",
        default='"',
        help='Character used to quote entries. May be set to "none" to ignore all quoting',
    )
    parser.add_argument("--bad-rows-path", metavar="PATH", type=Path, default=None, help="Save badly formed rows to a file")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    return parser.parse_args(argv)


def build_options(args: argparse.Namespace) -> ScrubOptions:
    return ScrubOptions(
        delimiter=parse_char_specifier(args.delimiter),
        quote=parse_char_specifier(args.quote),
        null_pattern=args.null,
        replace_newlines=args.replace_newlines,
        trim_whitespace=args.trim_whitespace,
        clean_column_names=args.clean_column_names,
        drop_row_if_null=tuple(args.drop_row_if_null),
    )


def format_bytes(count: float) -> str:
    for unit in _BINARY_UNITS:
        if count < 1024 or unit == _BINARY_UNITS[-1]:
            break
        count /= 1024
    if unit == "B":
        return f"{int(count)} B"
    return f"{count:.2f} {unit}"


def format_summary(result: ScrubResult) -> str:
    return "{rows} rows ({bad} bad) in {seconds:.2f} seconds, {rate}/sec".format(
        rows=result.rows_total,
        bad=result.rows_bad,
        seconds=result.elapsed_seconds,
        rate=format_bytes(result.bytes_per_second),
    )


def print_summary(result: ScrubResult) -> None:
    try:
        print(format_summary(result), file=sys.stderr, flush=True)
    except OSError:
        logger.warning("cannot write summary line", exc_info=True)


def report_error(exc: ScrubError) -> None:
    if isinstance(exc, TooManyBadRowsError):
        print(str(exc), file=sys.stderr)
        return

    print(f"ERROR: {exc}", file=sys.stderr)
    cause = exc.__cause__
    while cause is not None:
        print(f"  caused by: {cause}", file=sys.stderr)
        cause = cause.__cause__


def run(args: argparse.Namespace, settings: Settings) -> ScrubResult:
    options = build_options(args)
    logger.debug("options", extra={"options": options})

    pipeline = ScrubPipeline(options)
    set_field_size_limit(settings.field_size_limit)

    with (
        open_input(args.input, buffer_size=settings.buffer_size) as source,
        open_stdout(buffer_size=settings.buffer_size) as output,
        open_bad_rows(args.bad_rows_path, buffer_size=settings.buffer_size) as bad_rows_output,
    ):
        result = pipeline.run(source, output, bad_rows_output)

    if not args.quiet:
        print_summary(result)

    # Everything written so far stays written; the gate only decides the exit code.
    enforce_quality_gate(result)
    return result


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    try:
        settings = get_settings()
        logging.basicConfig(
            level=getattr(logging, settings.log_level.upper(), logging.WARNING),
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        run(args, settings)
    except ScrubError as exc:
        report_error(exc)
        raise SystemExit(exc.exit_code) from None
    except Exception:
        logger.exception("scrub failed")
        raise SystemExit(1) from None


if __name__ == "__main__":
    main()
