class ScrubError(Exception):
    exit_code = 1


class ConfigError(ScrubError):
    pass


class InputOpenError(ScrubError):
    pass


class RecordParseError(ScrubError):
    pass


class OutputWriteError(ScrubError):
    pass


class TooManyBadRowsError(ScrubError):
    # Only arguably an error, so it gets its own exit code for callers who want to tolerate it.
    exit_code = 2

    def __init__(self, bad_rows: int, total_rows: int) -> None:
        super().__init__(f"Too many rows ({bad_rows} of {total_rows}) were bad")
        self.bad_rows = bad_rows
        self.total_rows = total_rows
