from collections.abc import Iterable, Iterator
import logging
import re
import time
from typing import Any, TextIO

from scrubcsv.cleaning import CellCleaner, compile_null_pattern, text_view
from scrubcsv.csv_io import build_bad_row_writer, build_reader, build_writer, iter_records, to_field
from scrubcsv.errors import ConfigError, OutputWriteError
from scrubcsv.schemas import RunCounters, ScrubOptions, ScrubResult
from scrubcsv.uniquifier import Uniquifier


logger = logging.getLogger(__name__)


def _count_bytes(lines: Iterable[str], counters: RunCounters) -> Iterator[str]:
    for line in lines:
        counters.bytes_read += len(line)
        yield line


class ScrubPipeline:
    def __init__(self, options: ScrubOptions) -> None:
        self.options = options
        try:
            null_pattern = compile_null_pattern(options.null_pattern)
        except re.error as exc:
            raise ConfigError("can't compile regular expression") from exc

        self.cleaner = CellCleaner(
            null_pattern=null_pattern,
            replace_newlines=options.replace_newlines,
            trim_whitespace=options.trim_whitespace,
        )
        # Copy rows straight through when nothing asks us to look inside the cells.
        self.use_fast_path = self.cleaner.is_noop and not options.drop_row_if_null

    def run(self, source: TextIO, output: TextIO, bad_rows_output: TextIO | None = None) -> ScrubResult:
        started = time.perf_counter()
        counters = RunCounters()

        reader = build_reader(
            _count_bytes(source, counters),
            delimiter=self.options.delimiter,
            quote=self.options.quote,
        )
        writer = build_writer(output)
        bad_rows_writer = None
        if bad_rows_output is not None:
            bad_rows_writer = build_bad_row_writer(
                bad_rows_output,
                delimiter=self.options.delimiter,
                quote=self.options.quote,
            )

        records = iter_records(reader)
        header = next(records, None)
        if header is None:
            logger.warning("input is empty, no header found")
            header = []
        else:
            header = self._canonical_header(header)
            try:
                writer.writerow(header)
            except OSError as exc:
                raise OutputWriteError("cannot write headers") from exc
            self._scrub_rows(records, header, writer, bad_rows_writer, counters)

        self._flush(output, "error writing records")
        if bad_rows_output is not None:
            self._flush(bad_rows_output, "error writing bad rows")

        result = ScrubResult(
            rows_total=counters.rows_total,
            rows_bad=counters.rows_bad,
            bytes_read=counters.bytes_read,
            elapsed_seconds=time.perf_counter() - started,
            header=tuple(header),
        )
        logger.info(
            "scrub finished",
            extra={"rows_total": result.rows_total, "rows_bad": result.rows_bad, "bytes_read": result.bytes_read},
        )
        return result

    def _scrub_rows(
        self,
        records: Iterator[list[str]],
        header: list[str],
        writer: Any,
        bad_rows_writer: Any | None,
        counters: RunCounters,
    ) -> None:
        expected_cols = len(header)
        required_mask = self._required_mask(header)
        required_positions = [index for index, required in enumerate(required_mask) if required]
        check_required = bool(self.options.drop_row_if_null)
        clean_record = self.cleaner.clean_record
        use_fast_path = self.use_fast_path

        try:
            for record in records:
                counters.rows_total += 1

                # Wrong delimiters, stray newlines and truncated rows all show up here.
                if len(record) != expected_cols:
                    counters.rows_bad += 1
                    if bad_rows_writer is not None:
                        bad_rows_writer.writerow(record)
                    continue

                if use_fast_path:
                    writer.writerow(record)
                    continue

                cleaned = clean_record(record)
                if check_required and any(not cleaned[index] for index in required_positions):
                    counters.rows_bad += 1
                    # Divert the row as received, not the partially cleaned copy.
                    if bad_rows_writer is not None:
                        bad_rows_writer.writerow(record)
                    continue

                writer.writerow(cleaned)
        except OSError as exc:
            raise OutputWriteError("cannot write record") from exc

    def _canonical_header(self, header: list[str]) -> list[str]:
        if not self.options.clean_column_names:
            return header
        uniquifier = Uniquifier()
        return [uniquifier.unique_id_for(text_view(name)) for name in header]

    def _required_mask(self, header: list[str]) -> tuple[bool, ...]:
        required = {to_field(name) for name in self.options.drop_row_if_null}
        for name in sorted(required.difference(header)):
            logger.warning("required column %r not found in header", name, extra={"column": name})
        return tuple(name in required for name in header)

    def _flush(self, stream: TextIO, context: str) -> None:
        try:
            stream.flush()
        except OSError as exc:
            raise OutputWriteError(context) from exc
