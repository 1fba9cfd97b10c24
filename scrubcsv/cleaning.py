from collections.abc import Sequence
from dataclasses import dataclass, field
import re

# Space, tab, LF, FF and CR. Vertical tab is not treated as whitespace.
ASCII_WHITESPACE = " \t\n\x0c\r"


def text_view(value: str) -> str:
    """Decode a byte-transparent (latin-1) field as UTF-8, replacing invalid sequences."""
    if value.isascii():
        return value
    return value.encode("latin-1").decode("utf-8", errors="replace")


def compile_null_pattern(pattern: str | None) -> re.Pattern[str] | None:
    if pattern is None:
        return None
    return re.compile(pattern)


@dataclass(frozen=True)
class CellCleaner:
    null_pattern: re.Pattern[str] | None = None
    replace_newlines: bool = False
    trim_whitespace: bool = False
    newline_pattern: re.Pattern[str] = field(default_factory=lambda: re.compile(r"\r\n|\n|\r"), repr=False)

    @property
    def is_noop(self) -> bool:
        return self.null_pattern is None and not self.replace_newlines and not self.trim_whitespace

    def clean(self, value: str) -> str:
        if self.null_pattern is not None and self.null_pattern.fullmatch(text_view(value)):
            value = ""

        if self.trim_whitespace:
            value = value.strip(ASCII_WHITESPACE)

        # Embedded newlines break some importers, BigQuery's among them.
        if self.replace_newlines and ("\n" in value or "\r" in value):
            value = self.newline_pattern.sub(" ", value)

        return value

    def clean_record(self, record: Sequence[str]) -> list[str]:
        clean = self.clean
        return [clean(value) for value in record]
