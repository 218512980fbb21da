"""Tests for the SnackScript tokenizer."""

import pytest

from snackscript.errors import TokenizeError
from snackscript.frontend.tokens import (
    KW_VAR,
    TK_EOF,
    TK_IDENT,
    TK_KEYWORD,
    TK_NUMBER,
    TK_OP,
    TK_STRING,
    TK_TYPE,
    tokenize,
)


def _kinds(source: str) -> list[tuple[str, str]]:
    return [(t.type, t.value) for t in tokenize(source)]


def test_var_decl_tokens():
    assert _kinds("🍳 🥚 x = 42") == [
        (TK_KEYWORD, KW_VAR),
        (TK_TYPE, "🥚"),
        (TK_IDENT, "x"),
        (TK_OP, "="),
        (TK_NUMBER, "42"),
        (TK_EOF, ""),
    ]


def test_range_does_not_swallow_dots():
    assert _kinds("1...10")[:3] == [(TK_NUMBER, "1"), (TK_OP, "..."), (TK_NUMBER, "10")]
    assert _kinds("0..<n")[:3] == [(TK_NUMBER, "0"), (TK_OP, "..<"), (TK_IDENT, "n")]


def test_float_forms():
    values = [t.value for t in tokenize("2.5 1e3 6.02E-23") if t.type == TK_NUMBER]
    assert values == ["2.5", "1e3", "6.02E-23"]


def test_variation_selector_is_skipped():
    assert _kinds("🍳\ufe0f x")[:2] == [(TK_KEYWORD, KW_VAR), (TK_IDENT, "x")]


def test_in_is_a_keyword():
    toks = tokenize("🥐 i in xs")
    assert toks[2].type == TK_KEYWORD
    assert toks[2].value == "in"


def test_string_escapes_decoded():
    toks = tokenize('"a\\n\\"b"')
    assert toks[0].type == TK_STRING
    assert toks[0].value == 'a\n"b'


def test_comments_skipped():
    source = "🍦 a line comment\n🍨 a block\ncomment 🍨 x"
    assert _kinds(source) == [(TK_IDENT, "x"), (TK_EOF, "")]


def test_positions_track_lines():
    toks = tokenize("x\n  y")
    assert (toks[1].line, toks[1].col) == (2, 3)


def test_longest_operator_wins():
    ops = [t.value for t in tokenize("a ?? b?.c ** 2 -> != ++") if t.type == TK_OP]
    assert ops == ["??", "?.", "**", "->", "!=", "++"]


def test_unterminated_string():
    with pytest.raises(TokenizeError) as exc:
        tokenize('🍽 "oops')
    assert exc.value.line == 1
    assert exc.value.col == 3


def test_unterminated_block_comment():
    with pytest.raises(TokenizeError):
        tokenize("🍨 never closed")


def test_unexpected_character():
    with pytest.raises(TokenizeError) as exc:
        tokenize("x = @")
    assert "unexpected character" in str(exc.value)
