from dataclasses import dataclass


@dataclass(frozen=True)
class ScrubOptions:
    delimiter: str | None = ","
    quote: str | None = '"'
    null_pattern: str | None = None
    replace_newlines: bool = False
    trim_whitespace: bool = False
    clean_column_names: bool = False
    drop_row_if_null: tuple[str, ...] = ()


@dataclass
class RunCounters:
    # The header counts as a row for backwards compatibility.
    rows_total: int = 1
    rows_bad: int = 0
    bytes_read: int = 0


@dataclass(frozen=True)
class ScrubResult:
    rows_total: int
    rows_bad: int
    bytes_read: int
    elapsed_seconds: float
    header: tuple[str, ...]

    @property
    def bytes_per_second(self) -> float:
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.bytes_read / self.elapsed_seconds
