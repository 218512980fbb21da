"""SnackScript tokenizer: lexes source into a flat token list."""

from __future__ import annotations

from ..errors import TokenizeError


# Token type constants
TK_NUMBER = "NUMBER"
TK_STRING = "STRING"
TK_IDENT = "IDENT"
TK_KEYWORD = "KEYWORD"
TK_TYPE = "TYPE"
TK_OP = "OP"
TK_EOF = "EOF"

# Statement and literal keywords
KW_VAR = "🍳"
KW_COLLECTION = "🥡"
KW_FUNCTION = "🥘"
KW_CLASS = "🫙"
KW_IF = "🧁"
KW_ELSE_IF = "🍰"
KW_ELSE = "🎂"
KW_WHILE = "🍤"
KW_FOR = "🥐"
KW_PRINT = "🍽"
KW_RETURN = "🫗"
KW_BREAK = "☕"
KW_TRUE = "🥗"
KW_FALSE = "🍲"
KW_NONE = "🫥"
KW_IN = "in"

KEYWORDS: set[str] = {
    KW_VAR,
    KW_COLLECTION,
    KW_FUNCTION,
    KW_CLASS,
    KW_IF,
    KW_ELSE_IF,
    KW_ELSE,
    KW_WHILE,
    KW_FOR,
    KW_PRINT,
    KW_RETURN,
    KW_BREAK,
    KW_TRUE,
    KW_FALSE,
    KW_NONE,
}

# Type emojis, mapped to primitive kind names
TYPE_NAMES: dict[str, str] = {
    "🧈": "bool",
    "🥚": "int",
    "🥓": "float",
    "🍝": "string",
    "🥮": "void",
    "🍞": "any",
}

LINE_COMMENT = "🍦"
BLOCK_COMMENT = "🍨"

# Emoji presentation selector; optional after any emoji keyword.
VARIATION_SELECTOR = "\ufe0f"

# Multi-character operators, sorted by length descending for greedy matching
MULTI_OPS: list[str] = [
    "...",
    "..<",
    "**",
    "&&",
    "||",
    "??",
    "?.",
    "<=",
    ">=",
    "==",
    "!=",
    "+=",
    "++",
    "--",
    "->",
]

SINGLE_OPS: set[str] = {
    "+",
    "-",
    "*",
    "/",
    "%",
    "<",
    ">",
    "!",
    "=",
    ".",
    "(",
    ")",
    "[",
    "]",
    "{",
    "}",
    ",",
    ":",
    ";",
    "?",
}

ESCAPE_MAP: dict[str, str] = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    '"': '"',
    "'": "'",
}


class Token:
    """A token with type, value, and position."""

    def __init__(self, type_: str, value: str, line: int, col: int):
        self.type: str = type_
        self.value: str = value
        self.line: int = line
        self.col: int = col

    def __repr__(self) -> str:
        return (
            "Token("
            + self.type
            + ", "
            + repr(self.value)
            + ", "
            + str(self.line)
            + ", "
            + str(self.col)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


def tokenize(source: str) -> list[Token]:
    """Tokenize SnackScript source into a flat list ending with TK_EOF."""
    tokens: list[Token] = []
    pos = 0
    line = 1
    col = 1
    length = len(source)

    while pos < length:
        c = source[pos]

        # Newlines
        if c == "\n":
            pos += 1
            line += 1
            col = 1
            continue

        # Whitespace, and stray selectors left behind by editors
        if c == " " or c == "\t" or c == "\r" or c == VARIATION_SELECTOR:
            pos += 1
            col += 1
            continue

        # Line comment
        if c == LINE_COMMENT:
            while pos < length and source[pos] != "\n":
                pos += 1
            continue

        start_line = line
        start_col = col

        # Block comment
        if c == BLOCK_COMMENT:
            pos += 1
            col += 1
            while pos < length and source[pos] != BLOCK_COMMENT:
                if source[pos] == "\n":
                    line += 1
                    col = 1
                else:
                    col += 1
                pos += 1
            if pos >= length:
                raise TokenizeError("unterminated block comment", start_line, start_col)
            pos += 1
            col += 1
            continue

        # Number: int or float
        if _is_digit(c):
            start_pos = pos
            while pos < length and _is_digit(source[pos]):
                pos += 1
                col += 1
            if (
                pos + 1 < length
                and source[pos] == "."
                and _is_digit(source[pos + 1])
            ):
                pos += 1
                col += 1
                while pos < length and _is_digit(source[pos]):
                    pos += 1
                    col += 1
            if pos < length and (source[pos] == "e" or source[pos] == "E"):
                pos += 1
                col += 1
                if pos < length and (source[pos] == "+" or source[pos] == "-"):
                    pos += 1
                    col += 1
                if pos >= length or not _is_digit(source[pos]):
                    raise TokenizeError("invalid float exponent", start_line, start_col)
                while pos < length and _is_digit(source[pos]):
                    pos += 1
                    col += 1
            tokens.append(Token(TK_NUMBER, source[start_pos:pos], start_line, start_col))
            continue

        # String literal, escapes resolved
        if c == '"':
            pos += 1
            col += 1
            chars: list[str] = []
            while pos < length and source[pos] != '"':
                if source[pos] == "\n":
                    raise TokenizeError("unterminated string literal", start_line, start_col)
                if source[pos] == "\\":
                    if pos + 1 >= length:
                        raise TokenizeError("unterminated string literal", start_line, start_col)
                    esc = source[pos + 1]
                    if esc not in ESCAPE_MAP:
                        raise TokenizeError("invalid escape: \\" + esc, line, col)
                    chars.append(ESCAPE_MAP[esc])
                    pos += 2
                    col += 2
                    continue
                chars.append(source[pos])
                pos += 1
                col += 1
            if pos >= length:
                raise TokenizeError("unterminated string literal", start_line, start_col)
            pos += 1
            col += 1
            tokens.append(Token(TK_STRING, "".join(chars), start_line, start_col))
            continue

        # Identifier or the word keyword "in"
        if _is_alpha(c):
            start_pos = pos
            while pos < length and _is_alnum(source[pos]):
                pos += 1
                col += 1
            word = source[start_pos:pos]
            if word == KW_IN:
                tokens.append(Token(TK_KEYWORD, word, start_line, start_col))
            else:
                tokens.append(Token(TK_IDENT, word, start_line, start_col))
            continue

        # Emoji keywords and types
        if c in KEYWORDS or c in TYPE_NAMES:
            pos += 1
            col += 1
            if pos < length and source[pos] == VARIATION_SELECTOR:
                pos += 1
                col += 1
            if c in KEYWORDS:
                tokens.append(Token(TK_KEYWORD, c, start_line, start_col))
            else:
                tokens.append(Token(TK_TYPE, c, start_line, start_col))
            continue

        # Operators
        matched = False
        for op in MULTI_OPS:
            if source.startswith(op, pos):
                tokens.append(Token(TK_OP, op, start_line, start_col))
                pos += len(op)
                col += len(op)
                matched = True
                break
        if matched:
            continue
        if c in SINGLE_OPS:
            tokens.append(Token(TK_OP, c, start_line, start_col))
            pos += 1
            col += 1
            continue

        raise TokenizeError("unexpected character '" + c + "'", start_line, start_col)

    tokens.append(Token(TK_EOF, "", line, col))
    return tokens
