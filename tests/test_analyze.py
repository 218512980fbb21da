"""Tests for name resolution and type checking."""

import pytest

from conftest import analyzed

from snackscript.errors import (
    AnalysisError,
    ArityMismatch,
    DuplicateDeclaration,
    IllegalBreak,
    IllegalReturn,
    MustReturnValue,
    SnackTypeError,
    TypeMismatch,
    UndeclaredIdentifier,
    UnknownField,
    UnsupportedConstruct,
)
from snackscript.frontend.analyze import analyze, is_assignable, type_eq
from snackscript.ir import (
    ANY,
    BOOL,
    FLOAT,
    INT,
    STRING,
    ArrayType,
    BinaryExpression,
    Class,
    ConstructorCall,
    DictType,
    ForStatement,
    FunctionCall,
    FunctionDeclaration,
    FunctionType,
    IfStatement,
    IntegerLiteral,
    OptionalType,
    PrintStatement,
    StructType,
    Variable,
    VariableDeclaration,
)


def _fails(source: str, exc: type[AnalysisError], message: str = "") -> AnalysisError:
    with pytest.raises(exc) as info:
        analyzed(source)
    assert message in info.value.msg
    return info.value


# --- Types ---


def test_type_eq_structural():
    assert type_eq(ArrayType(INT), ArrayType(INT))
    assert not type_eq(ArrayType(INT), ArrayType(FLOAT))
    assert type_eq(DictType(STRING, OptionalType(INT)), DictType(STRING, OptionalType(INT)))


def test_struct_types_are_nominal():
    a = StructType("P")
    b = StructType("P")
    assert type_eq(a, a)
    assert not type_eq(a, b)


def test_anything_is_assignable_to_any():
    assert is_assignable(ArrayType(STRING), ANY)
    assert not is_assignable(ANY, INT)


def test_function_assignability():
    narrow = FunctionType((ANY,), INT)
    wide = FunctionType((INT,), ANY)
    assert is_assignable(narrow, wide)
    assert not is_assignable(wide, narrow)
    assert not is_assignable(FunctionType((), INT), FunctionType((INT,), INT))


# --- Declarations and scopes ---


def test_variable_gets_initializer_type():
    program = analyzed("🍳 x = 42")
    decl = program.statements[0]
    assert isinstance(decl, VariableDeclaration)
    assert decl.variable.typ == INT
    assert isinstance(decl.initializer, IntegerLiteral)
    assert decl.initializer.value == 42


def test_references_share_the_declared_entity():
    program = analyzed("🍳 x = 1\n🍽 x")
    decl = program.statements[0]
    printed = program.statements[1]
    assert isinstance(printed, PrintStatement)
    assert printed.expressions[0] is decl.variable


def test_duplicate_declaration():
    err = _fails("🍳 x = 1\n🍳 x = 2", DuplicateDeclaration, "Identifier x already declared")
    assert (err.line, err.col) == (2, 1)


def test_shadowing_in_nested_scope_is_allowed():
    program = analyzed("🍳 x = 1\n🧁 🥗: 🍳 x = \"inner\"\n🍽 x ;")
    inner = program.statements[1].consequent
    assert inner[0].variable is not program.statements[0].variable
    assert inner[1].expressions[0] is inner[0].variable


def test_block_scope_ends_with_block():
    _fails("🧁 🥗: 🍳 y = 1 ;\n🍽 y", UndeclaredIdentifier, "Identifier y not declared")


def test_undeclared_identifier():
    _fails("🍽 nope", UndeclaredIdentifier, "Identifier nope not declared")


def test_use_before_declaration():
    _fails("🍳 x = x", UndeclaredIdentifier)


def test_recursion_resolves():
    program = analyzed("🥘 f(🥚 n) -> 🥚: 🫗 f(n - 1) ;")
    fun = program.statements[0].function
    call = fun.body[0].expression
    assert isinstance(call, FunctionCall)
    assert call.callee is fun


def test_untyped_parameter_is_any():
    program = analyzed("🥘 f(a): 🍽 a ;")
    assert program.statements[0].function.params[0].typ == ANY


# --- Statements ---


def test_return_outside_function():
    _fails("🫗 1", IllegalReturn, "Return can only appear in a function")


def test_break_outside_loop():
    _fails("☕", IllegalBreak, "Break can only appear in a loop")


def test_break_inside_function_inside_loop():
    _fails("🍤 🥗: 🥘 f: ☕ ; ;", IllegalBreak)


def test_break_in_nested_if_inside_loop():
    analyzed("🍤 🥗: 🧁 🥗: ☕ ; ;")


def test_missing_return_value():
    _fails("🥘 f -> 🥚: 🫗 ;", MustReturnValue, "Something should be returned")


def test_return_value_from_void_function():
    _fails("🥘 f: 🫗 1 ;", MustReturnValue, "Cannot return a value from this function")


def test_return_type_checked():
    _fails("🥘 f -> 🥚: 🫗 \"a\" ;", TypeMismatch, "Cannot assign a string to a int")


def test_declared_type_mismatch():
    _fails("🍳 🥚 x = \"hi\"", TypeMismatch, "Cannot assign a string to a int")


def test_assignment_mismatch():
    _fails("🍳 x = 1\nx = 🥗", TypeMismatch)


def test_cannot_assign_to_function():
    _fails("🥘 f: ;\nf = f", TypeMismatch, "Cannot assign to f")


def test_function_arity_mismatch_on_assignment():
    _fails(
        "🥘 f(🥚 a): ;\n🥘 g: ;\n🍳 h = f\nh = g",
        ArityMismatch,
        "Cannot assign a ()->void to a (int)->void",
    )


def test_if_requires_boolean():
    _fails("🧁 1: ;", SnackTypeError, "Expected a boolean")


def test_else_if_chain_nests_alternates():
    program = analyzed("🍳 x = 1\n🧁 x < 0: ; 🍰 x < 5: ; 🎂: 🍽 x ;")
    top = program.statements[1]
    assert isinstance(top, IfStatement)
    assert isinstance(top.alternate, IfStatement)
    assert isinstance(top.alternate.alternate, list)
    assert isinstance(top.alternate.alternate[0], PrintStatement)


def test_range_bounds_must_be_numeric():
    _fails("🥐 i in \"a\" ... 3: ;", SnackTypeError, "Expected a number")


def test_range_iterator_is_read_only_variable():
    program = analyzed("🥐 i in 1 ... 3: 🍽 i ;")
    iterator = program.statements[0].iterator
    assert isinstance(iterator, Variable)
    assert not iterator.mutable


def test_loop_iterators_cannot_be_assigned():
    _fails("🥐 i in 1 ... 3: i = 5 ;", TypeMismatch, "Cannot assign to loop iterator i")
    _fails("🥡 xs = [1, 2]\n🥐 x in xs: x += 1 ;", TypeMismatch, "Cannot assign to loop iterator x")
    _fails("🥡 d = {\"a\": 1}\n🥐 k, v in d: v++ ;", TypeMismatch, "Cannot assign to loop iterator v")


def test_loop_body_variables_stay_assignable():
    analyzed("🥡 xs = [1, 2]\n🥐 x in xs: 🍳 y = x\ny = 5\ny-- ;")


def test_foreach_over_dict_binds_key_and_value():
    program = analyzed("🥡 d = {\"a\": 1.5}\n🥐 k, v in d.items: 🍽 k, v ;")
    loop = program.statements[1]
    assert isinstance(loop, ForStatement)
    assert [i.typ for i in loop.iterators] == [STRING, FLOAT]


def test_foreach_arity():
    _fails("🥡 xs = [1, 2]\n🥐 a, b in xs: ;", ArityMismatch, "1 iterator(s) required but 2 given")


def test_foreach_requires_collection():
    _fails("🥐 x in 5: ;", SnackTypeError, "Expected an array or dict")


def test_increment_requires_number():
    _fails("🍳 s = \"a\"\ns++", SnackTypeError, "Expected a number")


def test_add_assign_on_strings():
    analyzed("🍳 s = \"a\"\ns += \"b\"")
    _fails("🍳 b = 🥗\nb += 🍲", SnackTypeError, "Expected a number or string")


# --- Expressions ---


def test_integer_literal_bounds():
    assert analyzed("🍽 " + "9" * 300).statements[0].expressions[0].value == int("9" * 300)
    _fails("🍽 " + "1" * 5000, SnackTypeError, "Integer literal too large")
    _fails("🍽 " + str(2**1024), SnackTypeError, "Integer literal too large")


def test_huge_float_literal_is_infinite():
    assert analyzed("🍽 1e999").statements[0].expressions[0].value == float("inf")


def test_operand_types_must_match():
    _fails("🍽 1 + \"a\"", TypeMismatch, "Operands do not have the same type")


def test_arithmetic_requires_numbers():
    _fails("🍽 \"a\" - \"b\"", SnackTypeError, "Expected a number")


def test_any_is_not_numeric():
    _fails("🥘 f(a): 🍽 a + 1 ;", SnackTypeError, "Expected a number or string")


def test_comparison_is_boolean():
    program = analyzed("🍽 1 < 2")
    expr = program.statements[0].expressions[0]
    assert isinstance(expr, BinaryExpression)
    assert expr.typ == BOOL


def test_logical_requires_booleans():
    _fails("🍽 1 && 🥗", SnackTypeError, "Expected a boolean")


def test_coalesce_unwraps_optional():
    program = analyzed("🍳 🥚? n = 🫥 🥚\n🍽 n ?? 3")
    assert program.statements[1].expressions[0].typ == INT
    _fails("🍽 1 ?? 2", SnackTypeError, "Expected an optional")


def test_array_elements_must_agree():
    _fails("🍽 [1, \"a\"]", TypeMismatch, "Not all elements have the same type")


def test_empty_array_literal_type():
    program = analyzed("🍳 [🥚] xs = [🥚]")
    assert program.statements[0].variable.typ == ArrayType(INT)


def test_call_argument_count():
    _fails("🥘 f(a): ;\nf(1, 2)", ArityMismatch, "1 argument(s) required but 2 passed")


def test_print_is_variadic():
    analyzed("print(1, \"two\", 3.0)")


def test_call_of_non_function():
    _fails("🍳 x = 1\nx(2)", SnackTypeError, "Call of non-function or non-constructor")


# --- Classes ---


POINT = "🫙 Point:\n  🍳 🥓 x\n  🍳 🥓 y\n  🥘 norm -> 🥓: 🫗 sqrt(self.x * self.x + self.y * self.y) ;\n;\n"


def test_class_fields_and_methods():
    program = analyzed(POINT)
    klass = program.statements[0].klass
    assert isinstance(klass, Class)
    assert [f.name for f in klass.typ.fields] == ["x", "y"]
    assert klass.typ.methods["norm"] == FunctionType((), FLOAT)
    assert klass.methods[0].is_method


def test_constructor_call():
    program = analyzed(POINT + "🍳 p = Point(3.0, 4.0)\n🍽 p.norm()")
    init = program.statements[1].initializer
    assert isinstance(init, ConstructorCall)
    assert init.typ is program.statements[0].klass.typ


def test_constructor_arity():
    _fails(POINT + "🍳 p = Point(1.0)", ArityMismatch, "2 argument(s) required but 1 passed")


def test_unknown_field():
    _fails(POINT + "🍳 p = Point(1.0, 2.0)\n🍽 p.z", UnknownField, "No such field")


def test_member_access_requires_struct():
    _fails("🍳 n = 1\n🍽 n.x", SnackTypeError, "Expected a struct")


def test_optional_chaining_requires_optional_struct():
    _fails(POINT + "🍳 p = Point(1.0, 2.0)\n🍽 p?.x", SnackTypeError, "Expected an optional struct")
    program = analyzed(POINT + "🍳 Point? q = 🫥 Point\n🍽 q?.x")
    assert program.statements[2].expressions[0].typ == OptionalType(FLOAT)


def test_field_initializer_rejected():
    _fails("🫙 C: 🍳 🥚 n = 1 ;", UnsupportedConstruct, "Field initializers are not supported")


def test_duplicate_member():
    _fails("🫙 C: 🍳 🥚 n 🥘 n: ; ;", DuplicateDeclaration, "Identifier n already declared")


def test_methods_are_not_in_scope():
    _fails("🫙 C: 🥘 m: ; 🥘 k: m() ; ;", UndeclaredIdentifier)


MIXED = """\
🫙 Mixed:
  🥘 first: 🍽 "first" ;
  🍳 🥚 count
  🍽 "not a method"
  🥘 second(a): 🫗 ;
;
"""


def test_only_functions_become_methods():
    klass = analyzed(MIXED).statements[0].klass
    assert [m.name for m in klass.methods] == ["first", "second"]
    assert [f.name for f in klass.typ.fields] == ["count"]


def test_class_body_statements_are_still_checked():
    _fails("🫙 C: 🍽 missing ;", UndeclaredIdentifier, "Identifier missing not declared")


def test_class_is_not_a_value():
    _fails(POINT + "🍳 q = Point", SnackTypeError, "Class Point cannot be used as a value")
    _fails(POINT + "🍽 Point.x", SnackTypeError, "Class Point cannot be used as a value")


def test_self_is_the_receiver():
    program = analyzed("🫙 C: 🍳 🥚 n 🥘 me -> C: 🫗 self ; ;")
    klass = program.statements[0].klass
    ret = klass.methods[0].body[0]
    assert ret.expression is klass


# --- Raw tree input ---


def test_unknown_statement_kind():
    tree = {"kind": "Program", "statements": [{"kind": "goto", "lineno": 3, "col": 1}]}
    with pytest.raises(UnsupportedConstruct) as info:
        analyze(tree)
    assert str(info.value) == "3:1: Unsupported statement kind: goto"


def test_hand_built_tree():
    tree = {
        "kind": "Program",
        "statements": [
            {
                "kind": "function",
                "id": "id",
                "params": [{"kind": "param", "type": {"kind": "type", "name": "int"}, "id": "n"}],
                "returns": {"kind": "type", "name": "int"},
                "block": [{"kind": "return", "exp": {"kind": "var", "id": "n"}}],
            }
        ],
    }
    program = analyze(tree)
    decl = program.statements[0]
    assert isinstance(decl, FunctionDeclaration)
    assert decl.function.typ == FunctionType((INT,), INT)
