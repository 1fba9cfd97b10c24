from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
import csv
import io
import logging
from pathlib import Path
import sys
from typing import Any, TextIO

from scrubcsv.errors import ConfigError, InputOpenError, OutputWriteError, RecordParseError


logger = logging.getLogger(__name__)

# latin-1 maps each byte to exactly one code point, so any ASCII-compatible
# input passes through without transcoding and len(field) is its byte length.
BYTE_TRANSPARENT_ENCODING = "latin-1"
OUTPUT_DELIMITER = ","
OUTPUT_QUOTE = '"'
LINE_TERMINATOR = "\n"


def parse_char_specifier(specifier: str) -> str | None:
    if len(specifier.encode("utf-8")) == 1:
        return specifier
    # xsv accepts a typed `\t` as well, which is easier than a literal tab in most shells.
    if specifier in ("\\t", "tab"):
        return "\t"
    if specifier == "none":
        return None
    raise ConfigError(f"cannot parse character specifier: {specifier!r}")


def to_field(text: str) -> str:
    """Encode user-supplied text the same way input fields are represented."""
    return text.encode("utf-8").decode(BYTE_TRANSPARENT_ENCODING)


def set_field_size_limit(limit: int) -> None:
    csv.field_size_limit(limit)


def build_reader(lines: Iterable[str], *, delimiter: str | None, quote: str | None) -> Any:
    if delimiter is None:
        raise ConfigError("field delimiter is required")

    try:
        if quote is None:
            return csv.reader(lines, delimiter=delimiter, quoting=csv.QUOTE_NONE, quotechar=None, strict=False)
        return csv.reader(lines, delimiter=delimiter, quotechar=quote, doublequote=True, strict=False)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"cannot use delimiter {delimiter!r} with quote {quote!r}") from exc


class RecordWriter:
    """Minimal-quoting CSV writer that also quotes fields holding a bare CR.

    Some csv.writer releases only quote the characters of the line terminator, which
    would let a lone CR through unquoted and split the row when it is read back.
    """

    def __init__(self, output: TextIO, *, delimiter: str, quote: str) -> None:
        self._output = output
        self._delimiter = delimiter
        self._quote = quote
        self._specials = (delimiter, quote, "\n", "\r")
        self._writer = csv.writer(
            output,
            delimiter=delimiter,
            quotechar=quote,
            quoting=csv.QUOTE_MINIMAL,
            lineterminator=LINE_TERMINATOR,
        )

    def writerow(self, record: Sequence[str]) -> None:
        if any("\r" in value for value in record):
            self._output.write(self._delimiter.join(self._quote_field(value) for value in record) + LINE_TERMINATOR)
            return
        self._writer.writerow(record)

    def _quote_field(self, value: str) -> str:
        if any(char in value for char in self._specials):
            quote = self._quote
            return quote + value.replace(quote, quote + quote) + quote
        return value


def build_writer(output: TextIO) -> RecordWriter:
    # Output is always normalized, whatever the input looked like.
    return RecordWriter(output, delimiter=OUTPUT_DELIMITER, quote=OUTPUT_QUOTE)


def build_bad_row_writer(output: TextIO, *, delimiter: str | None, quote: str | None) -> RecordWriter:
    # Diverted rows keep the input's delimiter so they can be fixed and fed back in.
    try:
        return RecordWriter(output, delimiter=delimiter or OUTPUT_DELIMITER, quote=quote or OUTPUT_QUOTE)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"cannot write bad rows with delimiter {delimiter!r}") from exc


def iter_records(reader: Any) -> Iterator[list[str]]:
    try:
        for record in reader:
            # Blank lines carry no fields; skip them rather than count them as short rows.
            if record:
                yield record
    except csv.Error as exc:
        raise RecordParseError(f"cannot read record near line {reader.line_num}") from exc
    except OSError as exc:
        raise RecordParseError("cannot read record") from exc


@contextmanager
def open_input(path: Path | None, *, buffer_size: int) -> Iterator[TextIO]:
    if path is None or str(path) == "-":
        stream = io.TextIOWrapper(
            io.BufferedReader(io.FileIO(sys.stdin.fileno(), "rb", closefd=False), buffer_size),
            encoding=BYTE_TRANSPARENT_ENCODING,
            newline="",
        )
    else:
        try:
            stream = open(path, "r", encoding=BYTE_TRANSPARENT_ENCODING, newline="", buffering=buffer_size)
        except OSError as exc:
            raise InputOpenError(f"cannot open {path}") from exc

    with stream:
        yield stream


@contextmanager
def closing_output(stream: TextIO, context: str) -> Iterator[TextIO]:
    try:
        yield stream
    except BaseException:
        try:
            stream.close()
        except OSError:
            # The error already propagating names the failed write.
            logger.debug("close failed after earlier error on %s", context, exc_info=True)
        raise

    try:
        stream.close()
    except OSError as exc:
        raise OutputWriteError(context) from exc


@contextmanager
def open_stdout(*, buffer_size: int) -> Iterator[TextIO]:
    stream = open(
        sys.stdout.fileno(),
        "w",
        encoding=BYTE_TRANSPARENT_ENCODING,
        newline="",
        buffering=buffer_size,
        closefd=False,
    )
    with closing_output(stream, "cannot flush standard output") as output:
        yield output


@contextmanager
def open_bad_rows(path: Path | None, *, buffer_size: int) -> Iterator[TextIO | None]:
    if path is None:
        yield None
        return

    try:
        stream = open(path, "w", encoding=BYTE_TRANSPARENT_ENCODING, newline="", buffering=buffer_size)
    except OSError as exc:
        raise OutputWriteError(f"cannot create {path}") from exc

    with closing_output(stream, f"cannot write {path}") as output:
        yield output
