import pytest

from forksh.core.commands import ParseError, parse_input, tokenize
from forksh.core.types import OutputMode


def test_blank_line_yields_no_command() -> None:
    for line in ("", "   ", "\t\n", "# just a comment"):
        assert parse_input(line) == (None, None)


def test_simple_command_words() -> None:
    pipeline, error = parse_input("ls -l /tmp")
    assert error is None
    assert pipeline is not None
    assert not pipeline.is_pipeline
    assert pipeline.first.argv == ["ls", "-l", "/tmp"]
    assert pipeline.first.output_mode is OutputMode.NONE


def test_quotes_and_escapes() -> None:
    pipeline, error = parse_input("""echo 'a b' "c \\"d\\"" e\\ f ''""")
    assert error is None
    assert pipeline is not None
    assert pipeline.first.argv == ["echo", "a b", 'c "d"', "e f", ""]


def test_quoted_operators_are_words() -> None:
    pipeline, error = parse_input("echo '|' \">\" x\\<y")
    assert error is None
    assert pipeline is not None
    assert pipeline.first.argv == ["echo", "|", ">", "x<y"]
    assert pipeline.first.output_target is None


def test_comment_ends_line_but_quoted_hash_is_literal() -> None:
    pipeline, _ = parse_input("echo 'a#b' \\# # trailing comment | cat")
    assert pipeline is not None
    assert not pipeline.is_pipeline
    assert pipeline.first.argv == ["echo", "a#b", "#"]


def test_redirections_without_spaces() -> None:
    pipeline, error = parse_input("sort<in.txt>>out.txt")
    assert error is None
    assert pipeline is not None
    stage = pipeline.first
    assert stage.argv == ["sort"]
    assert stage.input_source == "in.txt"
    assert stage.output_target == "out.txt"
    assert stage.output_mode is OutputMode.APPEND


def test_truncate_redirection() -> None:
    pipeline, _ = parse_input("echo hi > /tmp/out.txt")
    assert pipeline is not None
    assert pipeline.first.output_target == "/tmp/out.txt"
    assert pipeline.first.output_mode is OutputMode.TRUNCATE


def test_pipeline_stages_pipe_except_last() -> None:
    pipeline, error = parse_input("cat < in | sort | uniq > out")
    assert error is None
    assert pipeline is not None
    assert [stage.argv for stage in pipeline.stages] == [["cat"], ["sort"], ["uniq"]]
    assert [stage.output_mode for stage in pipeline.stages] == [
        OutputMode.PIPE,
        OutputMode.PIPE,
        OutputMode.TRUNCATE,
    ]
    assert pipeline.first.input_source == "in"
    assert pipeline.last.output_target == "out"


def test_piped_stage_keeps_recorded_target_but_pipes() -> None:
    pipeline, _ = parse_input("echo hi > ignored | cat")
    assert pipeline is not None
    assert pipeline.first.output_target == "ignored"
    assert pipeline.first.output_mode is OutputMode.PIPE
    assert not pipeline.first.writes_file


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("echo 'oops", ParseError.UNTERMINATED_QUOTE),
        ('echo "oops', ParseError.UNTERMINATED_QUOTE),
        ("cat <", ParseError.MISSING_REDIRECT_TARGET),
        ("echo hi > | cat", ParseError.MISSING_REDIRECT_TARGET),
        ("cat < a < b", ParseError.DUPLICATE_INPUT_REDIRECT),
        ("echo > a >> b", ParseError.DUPLICATE_OUTPUT_REDIRECT),
        ("| cat", ParseError.EMPTY_PIPELINE_STAGE),
        ("echo hi |", ParseError.EMPTY_PIPELINE_STAGE),
        ("echo hi | | cat", ParseError.EMPTY_PIPELINE_STAGE),
        ("echo hi || cat", ParseError.UNSUPPORTED_OPERATOR),
        ("cat <> file", ParseError.UNSUPPORTED_OPERATOR),
        ("echo hi >| file", ParseError.UNSUPPORTED_OPERATOR),
        ("echo hi >>> file", ParseError.UNSUPPORTED_OPERATOR),
        ("echo trailing\\", ParseError.TRAILING_ESCAPE),
        ("> out", ParseError.EMPTY_PIPELINE_STAGE),
    ],
)
def test_structural_errors(line: str, expected: ParseError) -> None:
    assert parse_input(line) == (None, expected)


def test_tokenize_marks_operators() -> None:
    tokens = tokenize("a|b >>c")
    assert [(token.kind, token.text) for token in tokens] == [
        ("word", "a"),
        ("op", "|"),
        ("word", "b"),
        ("op", ">>"),
        ("word", "c"),
    ]
