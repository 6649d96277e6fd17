"""Command line parsing."""

from __future__ import annotations

import io
import shlex
from dataclasses import dataclass
from enum import Enum

from forksh.core.types import OutputMode, Pipeline, Stage

PIPE_OP = "|"
INPUT_OP = "<"
TRUNCATE_OP = ">"
APPEND_OP = ">>"
OPERATORS = frozenset({PIPE_OP, INPUT_OP, TRUNCATE_OP, APPEND_OP})
OPERATOR_CHARS = "|<>"
COMMENT_CHARS = "#"


class ParseError(Enum):
    """Structural errors reported for one input line."""

    UNTERMINATED_QUOTE = "unterminated quote"
    TRAILING_ESCAPE = "no character after escape"
    UNSUPPORTED_OPERATOR = "unsupported operator"
    MISSING_REDIRECT_TARGET = "missing file name after redirection"
    DUPLICATE_INPUT_REDIRECT = "more than one input redirection"
    DUPLICATE_OUTPUT_REDIRECT = "more than one output redirection"
    EMPTY_PIPELINE_STAGE = "empty command in pipeline"

    @property
    def message(self) -> str:
        return self.value


@dataclass(frozen=True)
class Token:
    """One lexical token: a word or an operator."""

    kind: str  # word|op
    text: str


class _ParseFailure(Exception):
    def __init__(self, error: ParseError) -> None:
        super().__init__(error.message)
        self.error = error


class _QuoteTrackingStream:
    """Character source for a shlex lexer that notes quoted or escaped reads.

    shlex drops quotes in POSIX mode, so ``'|'`` and ``|`` produce the same
    text. A character read while the lexer sits in a quote or escape state
    marks the current token as quoted, which keeps it a word.
    """

    def __init__(self, text: str) -> None:
        self._source = io.StringIO(text)
        self.lexer: shlex.shlex | None = None
        self.quoted = False

    def read(self, size: int = -1) -> str:
        lexer = self.lexer
        if lexer is not None and lexer.state is not None:
            if lexer.state in lexer.quotes or lexer.state in lexer.escape:
                self.quoted = True
        return self._source.read(size)

    def readline(self) -> str:
        return self._source.readline()


def tokenize(line: str) -> list[Token]:
    """Split a line into words and operators using shell quoting rules."""

    stream = _QuoteTrackingStream(line)
    lexer = shlex.shlex(stream, posix=True, punctuation_chars=OPERATOR_CHARS)
    lexer.whitespace_split = True
    lexer.commenters = COMMENT_CHARS
    stream.lexer = lexer

    tokens: list[Token] = []
    while True:
        stream.quoted = False
        try:
            text = lexer.get_token()
        except ValueError as exc:
            # shlex leaves its state on the quote or escape that never closed
            if lexer.state is not None and lexer.state in lexer.quotes:
                raise _ParseFailure(ParseError.UNTERMINATED_QUOTE) from exc
            raise _ParseFailure(ParseError.TRAILING_ESCAPE) from exc
        if text is None:
            return tokens

        if stream.quoted or not text or text.strip(OPERATOR_CHARS):
            tokens.append(Token(kind="word", text=text))
            continue
        if text not in OPERATORS:
            raise _ParseFailure(ParseError.UNSUPPORTED_OPERATOR)
        tokens.append(Token(kind="op", text=text))


def parse_input(line: str) -> tuple[Pipeline | None, ParseError | None]:
    """Parse one input line.

    Returns ``(None, None)`` for a blank line, ``(None, error)`` when the line
    is malformed, and ``(pipeline, None)`` otherwise.
    """

    try:
        tokens = tokenize(line)
        if not tokens:
            return None, None
        segments = _split_segments(tokens)
        last_index = len(segments) - 1
        stages = [_build_stage(segment, piped=index < last_index) for index, segment in enumerate(segments)]
    except _ParseFailure as exc:
        return None, exc.error
    return Pipeline(stages=stages), None


def _split_segments(tokens: list[Token]) -> list[list[Token]]:
    segments: list[list[Token]] = []
    current: list[Token] = []
    for token in tokens:
        if token.kind == "op" and token.text == PIPE_OP:
            segments.append(current)
            current = []
            continue
        current.append(token)
    segments.append(current)
    return segments


def _build_stage(tokens: list[Token], *, piped: bool) -> Stage:
    argv: list[str] = []
    input_source: str | None = None
    output_target: str | None = None
    output_mode = OutputMode.NONE

    idx = 0
    while idx < len(tokens):
        token = tokens[idx]
        if token.kind == "word":
            argv.append(token.text)
            idx += 1
            continue

        if idx + 1 >= len(tokens) or tokens[idx + 1].kind != "word":
            raise _ParseFailure(ParseError.MISSING_REDIRECT_TARGET)
        target = tokens[idx + 1].text
        idx += 2

        if token.text == INPUT_OP:
            if input_source is not None:
                raise _ParseFailure(ParseError.DUPLICATE_INPUT_REDIRECT)
            input_source = target
            continue

        if output_target is not None:
            raise _ParseFailure(ParseError.DUPLICATE_OUTPUT_REDIRECT)
        output_target = target
        output_mode = OutputMode.APPEND if token.text == APPEND_OP else OutputMode.TRUNCATE

    if not argv:
        raise _ParseFailure(ParseError.EMPTY_PIPELINE_STAGE)

    if piped:
        # A piped stage keeps its recorded target but its output goes to the pipe.
        output_mode = OutputMode.PIPE
    return Stage(argv=argv, input_source=input_source, output_target=output_target, output_mode=output_mode)
