from scrubcsv.errors import TooManyBadRowsError
from scrubcsv.schemas import ScrubResult


# One bad row in ten is tolerated; anything above usually means a wrong delimiter or quote.
MAX_BAD_ROWS_PER_TEN = 1


def exceeds_bad_row_limit(bad_rows: int, total_rows: int) -> bool:
    return bad_rows * 10 > total_rows * MAX_BAD_ROWS_PER_TEN


def enforce_quality_gate(result: ScrubResult) -> None:
    if exceeds_bad_row_limit(result.rows_bad, result.rows_total):
        raise TooManyBadRowsError(result.rows_bad, result.rows_total)
