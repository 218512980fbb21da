"""Serialization of IR objects to JSON-compatible dicts."""

from __future__ import annotations

from .ir import (
    AddAssignment,
    ArrayExpression,
    ArrayType,
    Assignment,
    BinaryExpression,
    BooleanLiteral,
    BreakStatement,
    BuiltInFunction,
    CallStatement,
    Class,
    ClassDeclaration,
    Constant,
    ConstructorCall,
    Decrement,
    DictExpression,
    DictType,
    EmptyArray,
    EmptyOptional,
    Entity,
    Expr,
    FloatLiteral,
    ForRangeStatement,
    ForStatement,
    Function,
    FunctionCall,
    FunctionDeclaration,
    FunctionType,
    IfStatement,
    Increment,
    IntegerLiteral,
    Loc,
    MemberExpression,
    OptionalType,
    Parameter,
    Primitive,
    PrintStatement,
    Program,
    ReturnStatement,
    Stmt,
    StringLiteral,
    StructType,
    TupleExpression,
    TupleType,
    Type,
    UnaryExpression,
    Variable,
    VariableDeclaration,
    WhileStatement,
)


def serialize(obj: object) -> object:
    """Recursively serialize an object to a JSON-compatible structure."""
    if obj is None:
        return None
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, (int, float)):
        return obj
    if isinstance(obj, str):
        return obj
    if isinstance(obj, (list, tuple)):
        return [serialize(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): serialize(v) for k, v in obj.items()}
    return _ir_serialize(obj)


def _ir_serialize(obj: object) -> object:
    """Serialize IR types via isinstance dispatch."""
    if isinstance(obj, Program):
        return {"_type": "Program", "statements": serialize(obj.statements)}
    if isinstance(obj, Type):
        return _serialize_type(obj)
    if isinstance(obj, Entity):
        return _serialize_ref(obj)
    if isinstance(obj, Expr):
        return _serialize_expr(obj)
    if isinstance(obj, Stmt):
        return _serialize_stmt(obj)
    if isinstance(obj, Loc):
        return {"_type": "Loc", "line": obj.line, "col": obj.col}
    raise TypeError("cannot serialize " + type(obj).__name__)


def _serialize_type(obj: Type) -> dict[str, object]:
    if isinstance(obj, Primitive):
        return {"_type": "Primitive", "kind": obj.kind}
    if isinstance(obj, ArrayType):
        return {"_type": "ArrayType", "element": serialize(obj.element)}
    if isinstance(obj, DictType):
        return {"_type": "DictType", "key": serialize(obj.key), "value": serialize(obj.value)}
    if isinstance(obj, TupleType):
        return {"_type": "TupleType", "elements": serialize(obj.elements)}
    if isinstance(obj, OptionalType):
        return {"_type": "OptionalType", "base": serialize(obj.base)}
    if isinstance(obj, FunctionType):
        return {"_type": "FunctionType", "params": serialize(obj.params), "ret": serialize(obj.ret)}
    if isinstance(obj, StructType):
        # Fields are listed on the ClassDeclaration; a field may name its own struct
        return {"_type": "StructType", "name": obj.name}
    raise TypeError("cannot serialize type " + type(obj).__name__)


def _serialize_ref(obj: Entity) -> dict[str, object]:
    """Entity use sites: the name and kind, not the declaration body."""
    if isinstance(obj, Variable):
        return {"_type": "Variable", "name": obj.name, "typ": serialize(obj.typ)}
    if isinstance(obj, Parameter):
        return {"_type": "Parameter", "name": obj.name, "typ": serialize(obj.typ)}
    if isinstance(obj, Function):
        return {"_type": "Function", "name": obj.name, "typ": serialize(obj.typ)}
    if isinstance(obj, Class):
        return {"_type": "Class", "name": obj.name}
    if isinstance(obj, BuiltInFunction):
        return {"_type": "BuiltInFunction", "name": obj.name}
    if isinstance(obj, Constant):
        return {"_type": "Constant", "name": obj.name}
    raise TypeError("cannot serialize entity " + type(obj).__name__)


def _serialize_function(obj: Function) -> dict[str, object]:
    return {
        "_type": "Function",
        "name": obj.name,
        "params": serialize(obj.params),
        "typ": serialize(obj.typ),
        "is_method": obj.is_method,
        "body": serialize(obj.body),
        "loc": serialize(obj.loc),
    }


def _serialize_expr(obj: Expr) -> dict[str, object]:
    if isinstance(obj, IntegerLiteral):
        return {"_type": "IntegerLiteral", "value": obj.value}
    if isinstance(obj, FloatLiteral):
        return {"_type": "FloatLiteral", "value": obj.value}
    if isinstance(obj, StringLiteral):
        return {"_type": "StringLiteral", "value": obj.value}
    if isinstance(obj, BooleanLiteral):
        return {"_type": "BooleanLiteral", "value": obj.value}
    if isinstance(obj, BinaryExpression):
        return {
            "_type": "BinaryExpression",
            "op": obj.op,
            "left": serialize(obj.left),
            "right": serialize(obj.right),
            "typ": serialize(obj.typ),
        }
    if isinstance(obj, UnaryExpression):
        return {
            "_type": "UnaryExpression",
            "op": obj.op,
            "operand": serialize(obj.operand),
            "typ": serialize(obj.typ),
        }
    if isinstance(obj, FunctionCall):
        return {
            "_type": "FunctionCall",
            "callee": serialize(obj.callee),
            "args": serialize(obj.args),
            "typ": serialize(obj.typ),
        }
    if isinstance(obj, ConstructorCall):
        return {
            "_type": "ConstructorCall",
            "callee": serialize(obj.callee),
            "args": serialize(obj.args),
        }
    if isinstance(obj, MemberExpression):
        return {
            "_type": "MemberExpression",
            "obj": serialize(obj.obj),
            "op": obj.op,
            "field": obj.field,
            "typ": serialize(obj.typ),
        }
    if isinstance(obj, ArrayExpression):
        return {
            "_type": "ArrayExpression",
            "elements": serialize(obj.elements),
            "typ": serialize(obj.typ),
        }
    if isinstance(obj, TupleExpression):
        return {
            "_type": "TupleExpression",
            "elements": serialize(obj.elements),
            "typ": serialize(obj.typ),
        }
    if isinstance(obj, DictExpression):
        return {
            "_type": "DictExpression",
            "entries": [
                {"key": serialize(e.key), "value": serialize(e.value)} for e in obj.entries
            ],
            "typ": serialize(obj.typ),
        }
    if isinstance(obj, EmptyArray):
        return {"_type": "EmptyArray", "typ": serialize(obj.typ)}
    if isinstance(obj, EmptyOptional):
        return {"_type": "EmptyOptional", "typ": serialize(obj.typ)}
    raise TypeError("cannot serialize expression " + type(obj).__name__)


def _serialize_stmt(obj: Stmt) -> dict[str, object]:
    if isinstance(obj, VariableDeclaration):
        return {
            "_type": "VariableDeclaration",
            "variable": serialize(obj.variable),
            "initializer": serialize(obj.initializer),
            "loc": serialize(obj.loc),
        }
    if isinstance(obj, FunctionDeclaration):
        return {
            "_type": "FunctionDeclaration",
            "function": _serialize_function(obj.function),
            "loc": serialize(obj.loc),
        }
    if isinstance(obj, ClassDeclaration):
        struct = obj.klass.typ
        assert isinstance(struct, StructType)
        return {
            "_type": "ClassDeclaration",
            "name": obj.klass.name,
            "fields": [{"name": f.name, "typ": serialize(f.typ)} for f in struct.fields],
            "methods": [_serialize_function(m) for m in obj.klass.methods],
            "loc": serialize(obj.loc),
        }
    if isinstance(obj, Assignment):
        return {
            "_type": "Assignment",
            "target": serialize(obj.target),
            "source": serialize(obj.source),
            "loc": serialize(obj.loc),
        }
    if isinstance(obj, AddAssignment):
        return {
            "_type": "AddAssignment",
            "target": serialize(obj.target),
            "source": serialize(obj.source),
            "loc": serialize(obj.loc),
        }
    if isinstance(obj, Increment):
        return {"_type": "Increment", "variable": serialize(obj.variable), "loc": serialize(obj.loc)}
    if isinstance(obj, Decrement):
        return {"_type": "Decrement", "variable": serialize(obj.variable), "loc": serialize(obj.loc)}
    if isinstance(obj, IfStatement):
        return {
            "_type": "IfStatement",
            "test": serialize(obj.test),
            "consequent": serialize(obj.consequent),
            "alternate": serialize(obj.alternate),
            "loc": serialize(obj.loc),
        }
    if isinstance(obj, WhileStatement):
        return {
            "_type": "WhileStatement",
            "test": serialize(obj.test),
            "body": serialize(obj.body),
            "loc": serialize(obj.loc),
        }
    if isinstance(obj, ForRangeStatement):
        return {
            "_type": "ForRangeStatement",
            "iterator": serialize(obj.iterator),
            "low": serialize(obj.low),
            "op": obj.op,
            "high": serialize(obj.high),
            "body": serialize(obj.body),
            "loc": serialize(obj.loc),
        }
    if isinstance(obj, ForStatement):
        return {
            "_type": "ForStatement",
            "iterators": serialize(obj.iterators),
            "collection": serialize(obj.collection),
            "body": serialize(obj.body),
            "loc": serialize(obj.loc),
        }
    if isinstance(obj, ReturnStatement):
        return {
            "_type": "ReturnStatement",
            "expression": serialize(obj.expression),
            "loc": serialize(obj.loc),
        }
    if isinstance(obj, BreakStatement):
        return {"_type": "BreakStatement", "loc": serialize(obj.loc)}
    if isinstance(obj, PrintStatement):
        return {
            "_type": "PrintStatement",
            "expressions": serialize(obj.expressions),
            "loc": serialize(obj.loc),
        }
    if isinstance(obj, CallStatement):
        return {"_type": "CallStatement", "call": serialize(obj.call), "loc": serialize(obj.loc)}
    raise TypeError("cannot serialize statement " + type(obj).__name__)
