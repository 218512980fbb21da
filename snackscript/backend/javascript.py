"""JavaScript backend: typed IR -> JavaScript source."""

from __future__ import annotations

import logging
import math

from ..errors import UnsupportedConstruct
from ..ir import (
    MAX_INT_BITS,
    AddAssignment,
    ArrayExpression,
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
    Expr,
    FloatLiteral,
    ForRangeStatement,
    ForStatement,
    Function,
    FunctionCall,
    FunctionDeclaration,
    IfStatement,
    Increment,
    IntegerLiteral,
    MemberExpression,
    Parameter,
    PrintStatement,
    Program,
    ReturnStatement,
    Stmt,
    StringLiteral,
    TupleExpression,
    UnaryExpression,
    Variable,
    VariableDeclaration,
    WhileStatement,
)

logger = logging.getLogger(__name__)


# Built-ins that map onto a JavaScript function of the same arity
BUILTIN_FUNCTIONS: dict[str, str] = {
    "print": "console.log",
    "str": "String",
    "num": "Number",
    "sqrt": "Math.sqrt",
    "sin": "Math.sin",
    "cos": "Math.cos",
    "exp": "Math.exp",
    "ln": "Math.log",
    "abs": "Math.abs",
    "hypot": "Math.hypot",
}

BUILTIN_CONSTANTS: dict[str, str] = {
    "PI": "Math.PI",
    "TRUE": "true",
    "FALSE": "false",
}

BINARY_OPS: dict[str, str] = {
    "==": "===",
    "!=": "!==",
}


class JavaScriptBackend:
    """Emits JavaScript, two-space indented, one statement per line.

    Declared names get a numeric suffix on first use. By default the suffix
    is keyed on the declaration itself, so shadowing declarations stay
    distinct; mangle_by_name keys it on the source name instead.
    """

    def __init__(self, mangle_by_name: bool = False) -> None:
        self.mangle_by_name = mangle_by_name
        self.indent = 0
        self.lines: list[str] = []
        self.names: dict[object, str] = {}

    def emit(self, program: Program) -> str:
        """Emit code from an IR Program."""
        self.indent = 0
        self.lines = []
        self.names = {}
        for stmt in program.statements:
            self._emit_stmt(stmt)
        logger.debug("emitted %d lines, %d mangled names", len(self.lines), len(self.names))
        return "\n".join(self.lines)

    def _line(self, text: str = "") -> None:
        if text:
            self.lines.append("  " * self.indent + text)
        else:
            self.lines.append("")

    def _name(self, entity: Variable | Parameter | Function | Class) -> str:
        key: object = entity.name if self.mangle_by_name else entity
        if key not in self.names:
            self.names[key] = entity.name + "_" + str(len(self.names) + 1)
            logger.debug("mangled %s -> %s", entity.name, self.names[key])
        return self.names[key]

    # ============================================================
    # STATEMENTS
    # ============================================================

    def _emit_block(self, stmts: list[Stmt]) -> None:
        self.indent += 1
        for s in stmts:
            self._emit_stmt(s)
        self.indent -= 1

    def _emit_stmt(self, stmt: Stmt) -> None:
        match stmt:
            case VariableDeclaration(variable=variable, initializer=initializer):
                name = self._name(variable)
                if initializer is None:
                    self._line(f"let {name};")
                else:
                    self._line(f"let {name} = {self._expr(initializer)};")
            case FunctionDeclaration(function=function):
                self._emit_function(function, self._name(function), "function ")
            case ClassDeclaration(klass=klass):
                self._emit_class(klass)
            case Assignment(target=target, source=source):
                self._line(f"{self._expr(target)} = {self._expr(source)};")
            case AddAssignment(target=target, source=source):
                self._line(f"{self._expr(target)} += {self._expr(source)};")
            case Increment(variable=variable):
                self._line(f"{self._expr(variable)}++;")
            case Decrement(variable=variable):
                self._line(f"{self._expr(variable)}--;")
            case ReturnStatement(expression=None):
                self._line("return;")
            case ReturnStatement(expression=expression):
                self._line(f"return {self._expr(expression)};")
            case PrintStatement(expressions=expressions):
                args = ", ".join(self._expr(e) for e in expressions)
                self._line(f"console.log({args});")
            case IfStatement(test=test, consequent=consequent, alternate=alternate):
                self._line(f"if ({self._expr(test)}) {{")
                self._emit_block(consequent)
                self._emit_else_body(alternate)
            case WhileStatement(test=test, body=body):
                self._line(f"while ({self._expr(test)}) {{")
                self._emit_block(body)
                self._line("}")
            case ForRangeStatement(iterator=iterator, low=low, op=op, high=high, body=body):
                name = self._name(iterator)
                cmp = "<=" if op == "..." else "<"
                self._line(
                    f"for (let {name} = {self._expr(low)}; "
                    f"{name} {cmp} {self._expr(high)}; {name}++) {{"
                )
                self._emit_block(body)
                self._line("}")
            case ForStatement(iterators=iterators, collection=collection, body=body):
                self._emit_foreach(iterators, collection, body)
            case BreakStatement():
                self._line("break;")
            case CallStatement(call=call):
                code = self._expr(call)
                if code:
                    self._line(f"{code};")
            case _:
                raise UnsupportedConstruct("Unsupported statement kind: " + type(stmt).__name__)

    def _emit_else_body(self, alternate: list[Stmt] | IfStatement | None) -> None:
        """Emit else body, flattening nested ifs into else-if chains."""
        if alternate is None or (isinstance(alternate, list) and not alternate):
            self._line("}")
            return
        if isinstance(alternate, IfStatement):
            self._line(f"}} else if ({self._expr(alternate.test)}) {{")
            self._emit_block(alternate.consequent)
            self._emit_else_body(alternate.alternate)
            return
        self._line("} else {")
        self._emit_block(alternate)
        self._line("}")

    def _emit_function(self, function: Function, name: str, keyword: str) -> None:
        params = ", ".join(self._name(p) for p in function.params)
        self._line(f"{keyword}{name}({params}) {{")
        self._emit_block(function.body)
        self._line("}")

    def _emit_class(self, klass: Class) -> None:
        fields = [f.name for f in klass.typ.fields]
        self._line(f"class {self._name(klass)} {{")
        self.indent += 1
        self._line(f"constructor({', '.join(fields)}) {{")
        self.indent += 1
        for f in fields:
            self._line(f"this.{f} = {f};")
        self.indent -= 1
        self._line("}")
        for method in klass.methods:
            self._emit_function(method, method.name, "")
        self.indent -= 1
        self._line("}")

    def _emit_foreach(self, iterators: list[Variable], collection: Expr, body: list[Stmt]) -> None:
        coll = self._expr(collection)
        if len(iterators) == 2:
            is_items = isinstance(collection, MemberExpression) and collection.field == "items"
            if not is_items:
                coll = f"Object.entries({coll})"
            names = ", ".join(self._name(i) for i in iterators)
            self._line(f"for (const [{names}] of {coll}) {{")
        else:
            self._line(f"for (const {self._name(iterators[0])} of {coll}) {{")
        self._emit_block(body)
        self._line("}")

    # ============================================================
    # EXPRESSIONS
    # ============================================================

    def _expr(self, expr: Expr) -> str:
        match expr:
            case IntegerLiteral(value=value) | FloatLiteral(value=value):
                return _number_literal(value)
            case StringLiteral(value=value):
                return _string_literal(value)
            case BooleanLiteral(value=value):
                return "true" if value else "false"
            case Variable() | Parameter():
                return self._name(expr)
            case Function(is_method=True):
                return expr.name
            case Function():
                return self._name(expr)
            case Class():
                # A class used as a value is the receiver inside its methods
                return "this"
            case BuiltInFunction(name=name):
                if name == "len":
                    return "((s) => s.length)"
                return BUILTIN_FUNCTIONS[name]
            case Constant(name=name):
                return BUILTIN_CONSTANTS[name]
            case BinaryExpression(op=op, left=left, right=right):
                js_op = BINARY_OPS.get(op, op)
                return f"({self._expr(left)} {js_op} {self._expr(right)})"
            case UnaryExpression(op="print", operand=operand):
                self._line(f"console.log({self._expr(operand)});")
                return ""
            case UnaryExpression(op=op, operand=operand):
                return f"({op}{self._expr(operand)})"
            case FunctionCall(callee=callee, args=args):
                return self._call(callee, args)
            case ConstructorCall(callee=callee, args=args):
                arg_list = ", ".join(self._expr(a) for a in args)
                return f"new {self._name(callee)}({arg_list})"
            case MemberExpression(obj=obj, op=op, field=field):
                if field == "items" and isinstance(obj.typ, DictType):
                    return f"Object.entries({self._expr(obj)})"
                return f"{self._expr(obj)}{op}{field}"
            case ArrayExpression(elements=elements) | TupleExpression(elements=elements):
                return "[" + ", ".join(self._expr(e) for e in elements) + "]"
            case DictExpression(entries=entries):
                pairs = [f"{self._key(e.key)}: {self._expr(e.value)}" for e in entries]
                return "{" + ", ".join(pairs) + "}"
            case EmptyArray():
                return "[]"
            case EmptyOptional():
                return "undefined"
            case _:
                raise UnsupportedConstruct("Unsupported expression kind: " + type(expr).__name__)

    def _key(self, key: Expr) -> str:
        if isinstance(key, StringLiteral):
            return self._expr(key)
        if isinstance(key, IntegerLiteral) and key.value >= 0:
            return self._expr(key)
        return f"[{self._expr(key)}]"

    def _call(self, callee: Expr, args: list[Expr]) -> str:
        arg_strs = [self._expr(a) for a in args]
        if isinstance(callee, BuiltInFunction) and callee.name == "len":
            return f"{arg_strs[0]}.length"
        return f"{self._expr(callee)}({', '.join(arg_strs)})"


# ── Helpers ──────────────────────────────────────────────────


def _number_literal(value: int | float) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "(-Infinity)"
    elif abs(value).bit_length() > MAX_INT_BITS:
        return "Infinity" if value > 0 else "(-Infinity)"
    text = repr(value)
    # Negative literals next to ** or - must not read as a prefix operator
    if value < 0:
        return "(" + text + ")"
    return text


def _string_literal(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\r", "\\r")
    )
    return '"' + escaped + '"'


def generate(program: Program, mangle_by_name: bool = False) -> str:
    """Generate JavaScript for an optimized IR Program."""
    return JavaScriptBackend(mangle_by_name).emit(program)
