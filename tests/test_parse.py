"""Tests for the raw parse tree shapes."""

import pytest

from snackscript.errors import ParseError
from snackscript.frontend.parse import parse


def _stmt(source: str) -> dict:
    return parse(source)["statements"][0]


def _expr(source: str) -> dict:
    return _stmt("🍽 " + source)["exps"][0]


def test_program_node():
    tree = parse("🍳 x = 1\n🍽 x")
    assert tree["kind"] == "Program"
    assert [s["kind"] for s in tree["statements"]] == ["vardecl", "print"]


def test_var_decl_with_type():
    node = _stmt("🍳 🥚 x = 1")
    assert node["type"] == {"kind": "type", "lineno": 1, "col": 3, "name": "🥚"}
    assert node["id"] == "x"
    assert node["exp"]["kind"] == "num"
    assert node["exp"]["value"] == "1"


def test_var_decl_class_and_optional_types():
    assert _stmt("🍳 Point p")["type"]["kind"] == "typeid"
    node = _stmt("🍳 Point? q = 🫥 Point")
    assert node["type"]["kind"] == "optionaltype"
    assert node["type"]["base"]["id"] == "Point"
    assert node["exp"]["kind"] == "emptyoptional"


def test_collection_types():
    node = _stmt("🍳 {🍝: [🥓]} d")
    assert node["type"]["kind"] == "dicttype"
    assert node["type"]["value"]["kind"] == "arraytype"


def test_function_with_params():
    node = _stmt("🥘 add(🥚 a, b) -> 🥚: 🫗 a + b ;")
    assert node["kind"] == "function"
    assert [p["id"] for p in node["params"]] == ["a", "b"]
    assert node["params"][1]["type"] is None
    assert node["returns"]["name"] == "🥚"
    assert node["block"][0]["kind"] == "return"


def test_simple_function():
    node = _stmt("🥘 hello: 🍽 \"hi\" ;")
    assert node["kind"] == "simplefunction"
    assert node["returns"] is None


def test_return_value_must_share_the_line():
    node = _stmt("🥘 f:\n  🫗\n  f()\n;")
    assert node["block"][0]["exp"] is None
    assert node["block"][1]["kind"] == "call"


def test_if_with_else_ifs_and_else():
    node = _stmt("🧁 a: ☕ ; 🍰 b: ☕ ; 🍰 c: ☕ ; 🎂: ☕ ;")
    assert node["kind"] == "if"
    assert [e["exp"]["id"] for e in node["elseifs"]] == ["b", "c"]
    assert node["elsepart"][0]["kind"] == "break"


def test_for_range_and_foreach():
    node = _stmt("🥐 i in 0 ..< n: ;")
    assert node["kind"] == "forloop"
    assert node["op"] == "..<"
    node = _stmt("🥐 k, v in d: ;")
    assert node["kind"] == "foreach"
    assert node["ids"] == ["k", "v"]


def test_assignment_forms():
    assert _stmt("x = 1")["kind"] == "assign"
    assert _stmt("x += 1")["kind"] == "addassign"
    node = _stmt("p.count++")
    assert node["kind"] == "bump"
    assert node["target"]["kind"] == "member"


def test_precedence():
    node = _expr("1 + 2 * 3")
    assert node["op"] == "+"
    assert node["right"]["op"] == "*"
    node = _expr("a || b && c")
    assert node["op"] == "||"
    assert node["right"]["op"] == "&&"


def test_power_is_right_associative_and_binds_tighter_than_unary():
    node = _expr("2 ** 3 ** 2")
    assert node["right"]["op"] == "**"
    node = _expr("-x ** 2")
    assert node["kind"] == "unary"
    assert node["operand"]["op"] == "**"


def test_coalesce_is_right_associative():
    node = _expr("a ?? b ?? c")
    assert node["left"]["id"] == "a"
    assert node["right"]["op"] == "??"


def test_postfix_chain():
    node = _expr("p?.next.value(1)")
    assert node["kind"] == "call"
    assert node["callee"]["kind"] == "member"
    assert node["callee"]["object"]["op"] == "?."


def test_literals():
    assert _expr("(1, \"a\")")["kind"] == "tuple"
    assert _expr("(1)")["kind"] == "paren"
    assert _expr("[🥚]")["kind"] == "emptyarray"
    assert _expr("[1, 2]")["kind"] == "array"
    node = _expr("{\"a\": 1, \"b\": 2}")
    assert node["kind"] == "dict"
    assert len(node["entries"]) == 2
    assert _expr("🥗")["value"] == "🥗"


def test_error_has_position():
    with pytest.raises(ParseError) as exc:
        parse("🍳 = 1")
    assert (exc.value.line, exc.value.col) == (1, 3)
    assert "expected identifier" in exc.value.msg


def test_bare_expression_is_not_a_statement():
    with pytest.raises(ParseError, match="not a statement"):
        parse("x + 1")


def test_invalid_assignment_target():
    with pytest.raises(ParseError, match="invalid assignment target"):
        parse("f() = 1")


def test_unterminated_block():
    with pytest.raises(ParseError, match="unterminated block"):
        parse("🍤 🥗: 🍽 1")
