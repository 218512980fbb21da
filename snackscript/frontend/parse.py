"""Parse SnackScript source to a dict-based raw parse tree.

Every node is a dict with a "kind" tag plus "lineno"/"col" position keys.
Children are untyped: literal values stay as source strings, sub-expressions
are nested nodes. The analyzer is the only consumer of this shape.
"""

from __future__ import annotations

import logging

from ..errors import ParseError
from .tokens import (
    KW_BREAK,
    KW_CLASS,
    KW_COLLECTION,
    KW_ELSE,
    KW_ELSE_IF,
    KW_FALSE,
    KW_FOR,
    KW_FUNCTION,
    KW_IF,
    KW_IN,
    KW_NONE,
    KW_PRINT,
    KW_RETURN,
    KW_TRUE,
    KW_VAR,
    KW_WHILE,
    TK_EOF,
    TK_IDENT,
    TK_NUMBER,
    TK_OP,
    TK_STRING,
    TK_TYPE,
    Token,
    tokenize,
)

logger = logging.getLogger(__name__)

# Type aliases
ASTNode = dict[str, object]

COMPARE_OPS: set[str] = {"<", "<=", "==", "!=", ">=", ">"}
RANGE_OPS: set[str] = {"...", "..<"}


def make_node(
    kind: str, lineno: int, col: int, fields: dict[str, object] | None = None
) -> ASTNode:
    """Create a raw tree node with position info."""
    result: ASTNode = {"kind": kind, "lineno": lineno, "col": col}
    if fields is not None:
        for key, value in fields.items():
            result[key] = value
    return result


class Parser:
    """Recursive descent parser for SnackScript."""

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[len(self.tokens) - 1]
        return self.tokens[idx]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TK_EOF:
            self.pos += 1
        return tok

    def at(self, value: str) -> bool:
        tok = self.current()
        return tok.value == value and tok.type not in (TK_STRING, TK_EOF)

    def at_type(self, type_: str) -> bool:
        return self.current().type == type_

    def expect(self, value: str) -> Token:
        tok = self.current()
        if not self.at(value):
            raise self.error("expected '" + value + "', got " + _describe(tok))
        return self.advance()

    def expect_ident(self) -> Token:
        tok = self.current()
        if tok.type != TK_IDENT:
            raise self.error("expected identifier, got " + _describe(tok))
        return self.advance()

    def error(self, msg: str) -> ParseError:
        tok = self.current()
        return ParseError(msg, tok.line, tok.col)

    def _at_type_start(self) -> bool:
        """Check if current token begins an explicit type annotation.

        A bare identifier is a class type only when another identifier
        or an optional marker follows it (`Point p`, `Point? p`).
        """
        tok = self.current()
        if tok.type == TK_TYPE:
            return True
        if self.at("[") or self.at("{"):
            return True
        if tok.type != TK_IDENT:
            return False
        nxt = self.peek(1)
        return nxt.type == TK_IDENT or (nxt.type == TK_OP and nxt.value == "?")

    def _at_expr_start(self) -> bool:
        """Check if current token can start an expression."""
        tok = self.current()
        if tok.type in (TK_NUMBER, TK_STRING, TK_IDENT):
            return True
        if tok.value in (KW_TRUE, KW_FALSE, KW_NONE):
            return True
        if tok.type == TK_OP and tok.value in ("(", "[", "{", "-", "!"):
            return True
        return False

    # ── Top Level ────────────────────────────────────────────

    def parse_program(self) -> ASTNode:
        statements: list[ASTNode] = []
        while not self.at_type(TK_EOF):
            statements.append(self.parse_stmt())
        return make_node("Program", 1, 1, {"statements": statements})

    def parse_block(self) -> list[ASTNode]:
        """Block = ':' Statement* ';'"""
        self.expect(":")
        stmts: list[ASTNode] = []
        while not self.at(";"):
            if self.at_type(TK_EOF):
                raise self.error("unterminated block, expected ';'")
            stmts.append(self.parse_stmt())
        self.expect(";")
        return stmts

    # ── Types ────────────────────────────────────────────────

    def parse_type(self) -> ASTNode:
        """Type = (emoji | '[' Type ']' | '{' Type ':' Type '}' | id) '?'*"""
        tok = self.current()
        if tok.type == TK_TYPE:
            self.advance()
            node = make_node("type", tok.line, tok.col, {"name": tok.value})
        elif self.at("["):
            self.advance()
            base = self.parse_type()
            self.expect("]")
            node = make_node("arraytype", tok.line, tok.col, {"base": base})
        elif self.at("{"):
            self.advance()
            key = self.parse_type()
            self.expect(":")
            value = self.parse_type()
            self.expect("}")
            node = make_node("dicttype", tok.line, tok.col, {"key": key, "value": value})
        elif tok.type == TK_IDENT:
            self.advance()
            node = make_node("typeid", tok.line, tok.col, {"id": tok.value})
        else:
            raise self.error("expected type, got " + _describe(tok))
        while self.at("?"):
            self.advance()
            node = make_node("optionaltype", tok.line, tok.col, {"base": node})
        return node

    # ── Statements ───────────────────────────────────────────

    def parse_stmt(self) -> ASTNode:
        tok = self.current()
        if tok.value == KW_VAR:
            return self.parse_var_decl()
        if tok.value == KW_COLLECTION:
            return self.parse_collection_decl()
        if tok.value == KW_FUNCTION:
            return self.parse_function()
        if tok.value == KW_CLASS:
            return self.parse_class()
        if tok.value == KW_IF:
            return self.parse_if_stmt()
        if tok.value == KW_WHILE:
            return self.parse_while_stmt()
        if tok.value == KW_FOR:
            return self.parse_for_stmt()
        if tok.value == KW_PRINT:
            return self.parse_print_stmt()
        if tok.value == KW_RETURN:
            return self.parse_return_stmt()
        if tok.value == KW_BREAK:
            self.advance()
            return make_node("break", tok.line, tok.col)
        return self.parse_expr_stmt()

    def parse_var_decl(self) -> ASTNode:
        """VarDecl = '🍳' Type? id ('=' Exp)?"""
        tok = self.expect(KW_VAR)
        typ: ASTNode | None = None
        if self._at_type_start():
            typ = self.parse_type()
        name_tok = self.expect_ident()
        exp: ASTNode | None = None
        if self.at("="):
            self.advance()
            exp = self.parse_expr()
        return make_node(
            "vardecl", tok.line, tok.col, {"type": typ, "id": name_tok.value, "exp": exp}
        )

    def parse_collection_decl(self) -> ASTNode:
        """CollectionDecl = '🥡' id '=' (ArrayLit | DictLit)"""
        tok = self.expect(KW_COLLECTION)
        name_tok = self.expect_ident()
        self.expect("=")
        if not (self.at("[") or self.at("{")):
            raise self.error("expected collection literal, got " + _describe(self.current()))
        collection = self.parse_primary()
        return make_node(
            "collection", tok.line, tok.col, {"id": name_tok.value, "collection": collection}
        )

    def parse_function(self) -> ASTNode:
        """Function = '🥘' id ('(' Params ')')? ('->' Type)? Block"""
        tok = self.expect(KW_FUNCTION)
        name_tok = self.expect_ident()
        params: list[ASTNode] | None = None
        if self.at("("):
            self.advance()
            params = self.parse_param_list()
            self.expect(")")
        returns: ASTNode | None = None
        if self.at("->"):
            self.advance()
            returns = self.parse_type()
        block = self.parse_block()
        if params is None:
            return make_node(
                "simplefunction",
                tok.line,
                tok.col,
                {"id": name_tok.value, "returns": returns, "block": block},
            )
        return make_node(
            "function",
            tok.line,
            tok.col,
            {"id": name_tok.value, "params": params, "returns": returns, "block": block},
        )

    def parse_param_list(self) -> list[ASTNode]:
        params: list[ASTNode] = []
        if self.at(")"):
            return params
        params.append(self.parse_param())
        while self.at(","):
            self.advance()
            params.append(self.parse_param())
        return params

    def parse_param(self) -> ASTNode:
        """Param = Type? id"""
        tok = self.current()
        typ: ASTNode | None = None
        if self._at_type_start():
            typ = self.parse_type()
        name_tok = self.expect_ident()
        return make_node("param", tok.line, tok.col, {"type": typ, "id": name_tok.value})

    def parse_class(self) -> ASTNode:
        """Class = '🫙' id Block"""
        tok = self.expect(KW_CLASS)
        name_tok = self.expect_ident()
        block = self.parse_block()
        return make_node("class", tok.line, tok.col, {"id": name_tok.value, "block": block})

    def parse_if_stmt(self) -> ASTNode:
        """If = '🧁' Exp Block ('🍰' Exp Block)* ('🎂' Block)?"""
        tok = self.expect(KW_IF)
        exp = self.parse_expr()
        block = self.parse_block()
        elseifs: list[ASTNode] = []
        while self.at(KW_ELSE_IF):
            elif_tok = self.advance()
            elif_exp = self.parse_expr()
            elif_block = self.parse_block()
            elseifs.append(
                make_node(
                    "elseif", elif_tok.line, elif_tok.col, {"exp": elif_exp, "block": elif_block}
                )
            )
        elsepart: list[ASTNode] | None = None
        if self.at(KW_ELSE):
            self.advance()
            elsepart = self.parse_block()
        return make_node(
            "if",
            tok.line,
            tok.col,
            {"exp": exp, "block": block, "elseifs": elseifs, "elsepart": elsepart},
        )

    def parse_while_stmt(self) -> ASTNode:
        tok = self.expect(KW_WHILE)
        exp = self.parse_expr()
        block = self.parse_block()
        return make_node("while", tok.line, tok.col, {"exp": exp, "block": block})

    def parse_for_stmt(self) -> ASTNode:
        """For = '🥐' id 'in' Exp ('...' | '..<') Exp Block
               | '🥐' id (',' id)* 'in' Exp Block
        """
        tok = self.expect(KW_FOR)
        ids: list[str] = [self.expect_ident().value]
        while self.at(","):
            self.advance()
            ids.append(self.expect_ident().value)
        self.expect(KW_IN)
        exp = self.parse_expr()
        if self.current().value in RANGE_OPS and self.at_type(TK_OP):
            if len(ids) != 1:
                raise self.error("range loop takes a single iterator")
            op = self.advance().value
            high = self.parse_expr()
            block = self.parse_block()
            return make_node(
                "forloop",
                tok.line,
                tok.col,
                {"id": ids[0], "low": exp, "op": op, "high": high, "block": block},
            )
        block = self.parse_block()
        return make_node("foreach", tok.line, tok.col, {"ids": ids, "exp": exp, "block": block})

    def parse_print_stmt(self) -> ASTNode:
        tok = self.expect(KW_PRINT)
        exps: list[ASTNode] = [self.parse_expr()]
        while self.at(","):
            self.advance()
            exps.append(self.parse_expr())
        return make_node("print", tok.line, tok.col, {"exps": exps})

    def parse_return_stmt(self) -> ASTNode:
        """Return = '🫗' Exp?  (the expression must start on the same line)"""
        tok = self.expect(KW_RETURN)
        exp: ASTNode | None = None
        if self.current().line == tok.line and self._at_expr_start():
            exp = self.parse_expr()
        return make_node("return", tok.line, tok.col, {"exp": exp})

    def parse_expr_stmt(self) -> ASTNode:
        """ExprStmt = Target ('=' Exp | '+=' Exp | '++' | '--') | Call"""
        tok = self.current()
        if not self._at_expr_start():
            raise self.error("expected statement, got " + _describe(tok))
        expr = self.parse_expr()
        if self.at("=") or self.at("+="):
            op = self.advance().value
            self._check_target(expr)
            value = self.parse_expr()
            kind = "assign" if op == "=" else "addassign"
            return make_node(kind, tok.line, tok.col, {"target": expr, "exp": value})
        if self.at("++") or self.at("--"):
            op = self.advance().value
            self._check_target(expr)
            return make_node("bump", tok.line, tok.col, {"target": expr, "op": op})
        if expr["kind"] != "call":
            raise ParseError("expression is not a statement", tok.line, tok.col)
        return expr

    def _check_target(self, expr: ASTNode) -> None:
        if expr["kind"] != "var" and expr["kind"] != "member":
            raise ParseError("invalid assignment target", int(expr["lineno"]), int(expr["col"]))

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> ASTNode:
        return self.parse_coalesce()

    def parse_coalesce(self) -> ASTNode:
        """Coalesce = Or ( '??' Coalesce )?"""
        left = self.parse_or()
        if self.at("??"):
            self.advance()
            right = self.parse_coalesce()
            return _binary(left, "??", right)
        return left

    def parse_or(self) -> ASTNode:
        """Or = And ( '||' And )*"""
        left = self.parse_and()
        while self.at("||"):
            self.advance()
            right = self.parse_and()
            left = _binary(left, "||", right)
        return left

    def parse_and(self) -> ASTNode:
        """And = Compare ( '&&' Compare )*"""
        left = self.parse_compare()
        while self.at("&&"):
            self.advance()
            right = self.parse_compare()
            left = _binary(left, "&&", right)
        return left

    def parse_compare(self) -> ASTNode:
        """Compare = Sum ( CompOp Sum )?"""
        left = self.parse_sum()
        tok = self.current()
        if tok.type == TK_OP and tok.value in COMPARE_OPS:
            op = self.advance().value
            right = self.parse_sum()
            return _binary(left, op, right)
        return left

    def parse_sum(self) -> ASTNode:
        """Sum = Product ( ( '+' | '-' ) Product )*"""
        left = self.parse_product()
        while self.at("+") or self.at("-"):
            op = self.advance().value
            right = self.parse_product()
            left = _binary(left, op, right)
        return left

    def parse_product(self) -> ASTNode:
        """Product = Unary ( ( '*' | '/' | '%' ) Unary )*"""
        left = self.parse_unary()
        while self.at("*") or self.at("/") or self.at("%"):
            op = self.advance().value
            right = self.parse_unary()
            left = _binary(left, op, right)
        return left

    def parse_unary(self) -> ASTNode:
        """Unary = ( '-' | '!' ) Unary | Power"""
        if self.at("-") or self.at("!"):
            tok = self.advance()
            operand = self.parse_unary()
            return make_node("unary", tok.line, tok.col, {"op": tok.value, "operand": operand})
        return self.parse_power()

    def parse_power(self) -> ASTNode:
        """Power = Postfix ( '**' Unary )?"""
        left = self.parse_postfix()
        if self.at("**"):
            self.advance()
            right = self.parse_unary()
            return _binary(left, "**", right)
        return left

    def parse_postfix(self) -> ASTNode:
        """Postfix = Primary ( ('.' | '?.') id | '(' Args ')' )*"""
        expr = self.parse_primary()
        while True:
            if self.at(".") or self.at("?."):
                op = self.advance().value
                name_tok = self.expect_ident()
                expr = make_node(
                    "member",
                    int(expr["lineno"]),
                    int(expr["col"]),
                    {"object": expr, "op": op, "id": name_tok.value},
                )
            elif self.at("("):
                self.advance()
                args = self.parse_expr_list(")")
                self.expect(")")
                expr = make_node(
                    "call", int(expr["lineno"]), int(expr["col"]), {"callee": expr, "args": args}
                )
            else:
                break
        return expr

    def parse_expr_list(self, close: str) -> list[ASTNode]:
        items: list[ASTNode] = []
        if self.at(close):
            return items
        items.append(self.parse_expr())
        while self.at(","):
            self.advance()
            items.append(self.parse_expr())
        return items

    def parse_primary(self) -> ASTNode:
        """Parse a primary expression."""
        tok = self.current()
        if tok.type == TK_NUMBER:
            self.advance()
            return make_node("num", tok.line, tok.col, {"value": tok.value})
        if tok.type == TK_STRING:
            self.advance()
            return make_node("string", tok.line, tok.col, {"value": tok.value})
        if tok.type == TK_IDENT:
            self.advance()
            return make_node("var", tok.line, tok.col, {"id": tok.value})
        if self.at(KW_TRUE) or self.at(KW_FALSE):
            self.advance()
            return make_node("bool", tok.line, tok.col, {"value": tok.value})
        if self.at(KW_NONE):
            self.advance()
            typ = self.parse_type()
            return make_node("emptyoptional", tok.line, tok.col, {"type": typ})
        if self.at("("):
            self.advance()
            first = self.parse_expr()
            if self.at(","):
                items: list[ASTNode] = [first]
                while self.at(","):
                    self.advance()
                    items.append(self.parse_expr())
                self.expect(")")
                return make_node("tuple", tok.line, tok.col, {"items": items})
            self.expect(")")
            return make_node("paren", tok.line, tok.col, {"exp": first})
        if self.at("["):
            self.advance()
            # A type emoji never starts an expression, so [🥚] is an empty array
            if self.at_type(TK_TYPE):
                typ = self.parse_type()
                self.expect("]")
                return make_node("emptyarray", tok.line, tok.col, {"type": typ})
            items = self.parse_expr_list("]")
            self.expect("]")
            return make_node("array", tok.line, tok.col, {"items": items})
        if self.at("{"):
            return self.parse_dict_lit()
        raise self.error("expected expression, got " + _describe(tok))

    def parse_dict_lit(self) -> ASTNode:
        """DictLit = '{' ( Exp ':' Exp ( ',' Exp ':' Exp )* )? '}'"""
        tok = self.expect("{")
        entries: list[ASTNode] = []
        while not self.at("}"):
            key = self.parse_expr()
            self.expect(":")
            value = self.parse_expr()
            entries.append(
                make_node("entry", int(key["lineno"]), int(key["col"]), {"key": key, "value": value})
            )
            if not self.at(","):
                break
            self.advance()
        self.expect("}")
        return make_node("dict", tok.line, tok.col, {"entries": entries})


def _binary(left: ASTNode, op: str, right: ASTNode) -> ASTNode:
    return make_node(
        "binary", int(left["lineno"]), int(left["col"]), {"left": left, "op": op, "right": right}
    )


def _describe(tok: Token) -> str:
    if tok.type == TK_EOF:
        return "end of input"
    if tok.type == TK_STRING:
        return "string literal"
    return "'" + tok.value + "'"


def parse(source: str) -> ASTNode:
    """Parse SnackScript source to a dict-based raw tree."""
    tokens = tokenize(source)
    logger.debug("tokenized %d tokens", len(tokens))
    parser = Parser(tokens)
    return parser.parse_program()
