from collections.abc import Callable
from dataclasses import dataclass
import io

import pytest

from scrubcsv.pipeline import ScrubPipeline
from scrubcsv.schemas import ScrubOptions, ScrubResult


@dataclass(frozen=True)
class ScrubOutcome:
    output: str
    bad_rows: str
    result: ScrubResult


@pytest.fixture()
def scrub() -> Callable[..., ScrubOutcome]:
    def _scrub(text: str, **options: object) -> ScrubOutcome:
        source = io.StringIO(text, newline="")
        output = io.StringIO(newline="")
        bad_rows = io.StringIO(newline="")
        result = ScrubPipeline(ScrubOptions(**options)).run(source, output, bad_rows)
        return ScrubOutcome(output=output.getvalue(), bad_rows=bad_rows.getvalue(), result=result)

    return _scrub
