import io
import logging

import pytest

from scrubcsv.errors import ConfigError
from scrubcsv.pipeline import ScrubPipeline
from scrubcsv.schemas import ScrubOptions


def test_basic_scrubbing_normalizes_quotes(scrub) -> None:
    outcome = scrub('a,b,c\n1,"2",3\n"Paris, France","Broken " quotes",\n')

    assert outcome.output == 'a,b,c\n1,2,3\n"Paris, France","Broken  quotes""",\n'
    assert outcome.result.rows_total == 3
    assert outcome.result.rows_bad == 0


def test_custom_delimiter_is_normalized_to_comma(scrub) -> None:
    outcome = scrub("a|b|c\n1|2|3\n", delimiter="|")

    assert outcome.output == "a,b,c\n1,2,3\n"


def test_tab_file_read_with_comma_delimiter_rejects_rows(scrub) -> None:
    outcome = scrub("name\tcity\nSmith, J\tParis\nDoe, A\tRome\n")

    assert outcome.output == "name\tcity\n"
    assert outcome.result.rows_bad == 2
    assert outcome.result.rows_total == 3


def test_rows_with_wrong_shape_are_counted_and_diverted(scrub) -> None:
    outcome = scrub("a,b,c\n1,2,3\n1,2\n1,2,3,4\n4,5,6\n")

    assert outcome.output == "a,b,c\n1,2,3\n4,5,6\n"
    assert outcome.bad_rows == "1,2\n1,2,3,4\n"
    assert outcome.result.rows_total == 5
    assert outcome.result.rows_bad == 2


def test_short_row_scenario_counts_header(scrub) -> None:
    outcome = scrub("a,b,c\n1,2\n")

    assert outcome.output == "a,b,c\n"
    assert (outcome.result.rows_bad, outcome.result.rows_total) == (1, 2)


def test_null_pattern_blanks_whole_values_only(scrub) -> None:
    outcome = scrub("a,b,c,d,e\nnull,NIL,nil,,not null\n", null_pattern="(?i)null|NIL")

    assert outcome.output == "a,b,c,d,e\n,,,,not null\n"


def test_clean_column_names(scrub) -> None:
    outcome = scrub(",,a,a\n1,2,3,4\n", clean_column_names=True)

    assert outcome.output == "_,__2,a,a_2\n1,2,3,4\n"
    assert outcome.result.header == ("_", "__2", "a", "a_2")


def test_drop_row_if_null_diverts_original_rows(scrub) -> None:
    outcome = scrub(
        "c1,c2,c3\n1,,\n,2,\nNULL,3,\na,b,c\n",
        null_pattern="NULL",
        drop_row_if_null=("c1", "c2"),
    )

    assert outcome.output == "c1,c2,c3\na,b,c\n"
    assert outcome.bad_rows == "1,,\n,2,\nNULL,3,\n"
    assert outcome.result.rows_bad == 3
    assert outcome.result.rows_total == 5


def test_required_column_check_runs_after_cleaning(scrub) -> None:
    outcome = scrub("id,name\n  ,x\n 7 ,y\n", trim_whitespace=True, drop_row_if_null=("id",))

    assert outcome.output == "id,name\n7,y\n"
    assert outcome.bad_rows == "  ,x\n"


def test_required_columns_use_cleaned_names(scrub) -> None:
    outcome = scrub("User ID,Name\n,x\n1,y\n", clean_column_names=True, drop_row_if_null=("user_id",))

    assert outcome.output == "user_id,name\n1,y\n"
    assert outcome.result.rows_bad == 1


def test_unknown_required_column_is_logged_and_ignored(scrub, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="scrubcsv.pipeline"):
        outcome = scrub("a,b\n,1\n", drop_row_if_null=("missing",))

    assert outcome.output == "a,b\n,1\n"
    assert outcome.result.rows_bad == 0
    assert "'missing' not found in header" in caplog.text


def test_trim_and_replace_newlines(scrub) -> None:
    outcome = scrub('a,b\n" x ","line\r\nbreak"\n', trim_whitespace=True, replace_newlines=True)

    assert outcome.output == "a,b\nx,line break\n"


def test_fast_path_matches_slow_path_without_cleaning() -> None:
    text = 'a,b,c\n1,"two, three","say ""hi"""\n"multi\nline",,x\n  padded ,NULL,\r\nshort\n'

    fast = ScrubPipeline(ScrubOptions())
    slow = ScrubPipeline(ScrubOptions())
    slow.use_fast_path = False
    assert fast.use_fast_path

    outputs = []
    for pipeline in (fast, slow):
        output = io.StringIO(newline="")
        pipeline.run(io.StringIO(text, newline=""), output)
        outputs.append(output.getvalue())

    assert outputs[0] == outputs[1]
    assert outputs[0] == 'a,b,c\n1,"two, three","say ""hi"""\n"multi\nline",,x\n  padded ,NULL,\n'


def test_any_option_disables_fast_path() -> None:
    assert not ScrubPipeline(ScrubOptions(trim_whitespace=True)).use_fast_path
    assert not ScrubPipeline(ScrubOptions(replace_newlines=True)).use_fast_path
    assert not ScrubPipeline(ScrubOptions(null_pattern="x")).use_fast_path
    assert not ScrubPipeline(ScrubOptions(drop_row_if_null=("a",))).use_fast_path
    assert ScrubPipeline(ScrubOptions(clean_column_names=True)).use_fast_path


def test_non_utf8_bytes_pass_through_unchanged(scrub) -> None:
    # latin-1 decoded bytes: 0xE9 on its own is not valid UTF-8.
    outcome = scrub("name\ncaf\xe9\n", trim_whitespace=True)

    assert outcome.output == "name\ncaf\xe9\n"


def test_empty_input_writes_nothing(scrub) -> None:
    outcome = scrub("")

    assert outcome.output == ""
    assert outcome.result.rows_total == 1
    assert outcome.result.rows_bad == 0


def test_bytes_read_counts_all_input(scrub) -> None:
    text = "a,b\n1,2\n3\n"

    outcome = scrub(text)

    assert outcome.result.bytes_read == len(text)


def test_bad_rows_keep_input_delimiter(scrub) -> None:
    outcome = scrub("a|b\n1|2|3\n4|5\n", delimiter="|")

    assert outcome.output == "a,b\n4,5\n"
    assert outcome.bad_rows == "1|2|3\n"


def test_disabled_quoting_treats_quotes_as_data(scrub) -> None:
    outcome = scrub('a,b\n"x,y"\n', quote=None)

    assert outcome.output == 'a,b\n"""x","y"""\n'


def test_invalid_null_pattern_is_a_config_error() -> None:
    with pytest.raises(ConfigError, match="can't compile regular expression"):
        ScrubPipeline(ScrubOptions(null_pattern="(unclosed"))


def test_bare_carriage_return_stays_quoted_on_fast_path(scrub) -> None:
    outcome = scrub('a,b\n"x\ry",z\n')

    assert outcome.output == 'a,b\n"x\ry",z\n'


def test_bare_carriage_return_stays_quoted_on_slow_path(scrub) -> None:
    outcome = scrub('a,b\n" x\ry ",z\n', trim_whitespace=True)

    assert outcome.output == 'a,b\n"x\ry",z\n'


def test_scrubbed_output_reads_back_with_same_rows(scrub) -> None:
    first = scrub('a,b\n"x\ry",z\n"1\r\n2","3\n4"\n')
    second = scrub(first.output)

    assert second.output == first.output
    assert second.result.rows_total == first.result.rows_total == 3
    assert second.result.rows_bad == 0
