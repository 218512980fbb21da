"""SnackScript IR - the typed core representation.

This module defines the complete IR type system. Each node's docstring
documents its semantics and invariants.

Architecture:
    Source -> Frontend (tokenize, parse, analyze) -> [IR] -> Middleend (optimize) -> Backend -> JavaScript

The analyzer produces fully-typed IR. The optimizer rewrites IR in place.
The backend emits code and never changes the tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


# ============================================================
# SOURCE LOCATIONS
# ============================================================


@dataclass(unsafe_hash=True)
class Loc:
    """Source location for error messages.

    Invariants:
    - line >= 1 for valid locations (0 indicates unknown)
    - col >= 1 for valid locations
    """

    line: int
    col: int


def loc_unknown() -> Loc:
    """Factory for unknown source location."""
    return Loc(0, 0)


# ============================================================
# TYPES
#
# Types compare structurally: two ArrayType(INT) instances are equal
# regardless of identity. StructType is the exception (nominal).
# ============================================================


@dataclass(unsafe_hash=True)
class Type:
    """Base for all types. Abstract."""


@dataclass(unsafe_hash=True)
class Primitive(Type):
    """Primitive types.

    | Kind   | Emoji | JavaScript |
    |--------|-------|------------|
    | bool   | 🧈    | boolean    |
    | int    | 🥚    | number     |
    | float  | 🥓    | number     |
    | string | 🍝    | string     |
    | void   | 🥮    | undefined  |
    | any    | 🍞    | any value  |
    """

    kind: Literal["bool", "int", "float", "string", "void", "any"]


@dataclass(unsafe_hash=True)
class ArrayType(Type):
    """Homogeneous growable array, written [T]."""

    element: Type


@dataclass(unsafe_hash=True)
class DictType(Type):
    """Key-value mapping, written {K: V}.

    Emitted as a plain JavaScript object; iteration goes through Object.entries.
    """

    key: Type
    value: Type


@dataclass(unsafe_hash=True)
class TupleType(Type):
    """Fixed-arity heterogeneous product, the type of tuple literals (a, b)."""

    elements: tuple[Type, ...]


@dataclass(unsafe_hash=True)
class OptionalType(Type):
    """Value that may be absent, written T?.

    Invariants:
    - base is not itself an OptionalType
    """

    base: Type


@dataclass(unsafe_hash=True)
class FunctionType(Type):
    """Function type: params mapped to ret.

    Invariants:
    - ret is VOID for functions without a declared return type
    """

    params: tuple[Type, ...]
    ret: Type


@dataclass
class Field:
    """Struct field. Order is constructor parameter order."""

    name: str
    typ: Type


@dataclass(eq=False)
class StructType(Type):
    """Nominal type of a class.

    Equal only to itself. fields and methods are filled in while the class
    body is analyzed, so they stay mutable.
    """

    name: str
    fields: list[Field] = field(default_factory=list, repr=False)
    methods: dict[str, FunctionType] = field(default_factory=dict, repr=False)

    def __eq__(self, other: object) -> bool:
        return self is other

    def __hash__(self) -> int:
        return id(self)

    def field_named(self, name: str) -> Field | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None


# Singleton primitive types
BOOL = Primitive("bool")
INT = Primitive("int")
FLOAT = Primitive("float")
STRING = Primitive("string")
VOID = Primitive("void")
ANY = Primitive("any")

# Integers wider than this many bits overflow a JavaScript number to Infinity
MAX_INT_BITS = 1024


def type_name(t: Type) -> str:
    """Human-readable description used in error messages."""
    if isinstance(t, Primitive):
        return t.kind
    if isinstance(t, StructType):
        return t.name
    if isinstance(t, ArrayType):
        return "[" + type_name(t.element) + "]"
    if isinstance(t, DictType):
        return "{" + type_name(t.key) + ": " + type_name(t.value) + "}"
    if isinstance(t, OptionalType):
        return type_name(t.base) + "?"
    if isinstance(t, TupleType):
        return "(" + ", ".join(type_name(e) for e in t.elements) + ")"
    if isinstance(t, FunctionType):
        params = ", ".join(type_name(p) for p in t.params)
        return "(" + params + ")->" + type_name(t.ret)
    return type(t).__name__


# ============================================================
# EXPRESSIONS
#
# Every expression carries its resolved type once analysis is done.
# ============================================================


@dataclass(kw_only=True)
class Expr:
    """Base for all expressions. Abstract.

    Invariants (post-analysis):
    - typ is fully resolved
    """

    typ: Type
    loc: Loc = field(default_factory=loc_unknown)


# --- Entities ---
#
# Declared entities double as their own reference expressions: every use
# site holds the very object created at the declaration.


@dataclass(kw_only=True, eq=False)
class Entity(Expr):
    """A declared name. Compared and hashed by identity."""

    def __eq__(self, other: object) -> bool:
        return self is other

    def __hash__(self) -> int:
        return id(self)


@dataclass(eq=False)
class Variable(Entity):
    """Local or global variable, including loop iterators.

    Invariants:
    - declared exactly once in its scope
    """

    name: str
    mutable: bool = True


@dataclass(eq=False)
class Parameter(Entity):
    """Function parameter. Untyped parameters get ANY."""

    name: str


@dataclass(eq=False)
class Function(Entity):
    """Function or method.

    Invariants:
    - typ is a FunctionType whose params follow params in order
    - parameter names are unique
    """

    name: str
    params: list[Parameter] = field(default_factory=list)
    body: list[Stmt] = field(default_factory=list, repr=False)
    is_method: bool = False


@dataclass(eq=False)
class Class(Entity):
    """Class declaration entity. Used as a value it is the receiver (self).

    Invariants:
    - typ is the class's StructType
    - methods are exactly the function declarations of the class body
    """

    name: str
    methods: list[Function] = field(default_factory=list, repr=False)


@dataclass(eq=False)
class BuiltInFunction(Entity):
    """Standard library function. Variadic built-ins skip arity checks."""

    name: str
    variadic: bool = False


@dataclass(eq=False)
class Constant(Entity):
    """Standard library constant."""

    name: str
    value: object = None


# --- Literals ---


@dataclass
class IntegerLiteral(Expr):
    """Integer literal.

    Invariants:
    - typ is INT
    """

    value: int
    typ: Type = field(default=INT, kw_only=True)


@dataclass
class FloatLiteral(Expr):
    """Float literal.

    Invariants:
    - typ is FLOAT
    """

    value: float
    typ: Type = field(default=FLOAT, kw_only=True)


@dataclass
class StringLiteral(Expr):
    """String literal holding the decoded value."""

    value: str
    typ: Type = field(default=STRING, kw_only=True)


@dataclass
class BooleanLiteral(Expr):
    value: bool
    typ: Type = field(default=BOOL, kw_only=True)


# --- Operators ---


@dataclass
class BinaryExpression(Expr):
    """Binary operation.

    Semantics:
    - typ is BOOL for comparisons, otherwise the shared operand type
    - ?? yields left's base type when present, else right

    Invariants:
    - op is one of + - * / % ** < <= == != >= > && || ??
    """

    op: str
    left: Expr
    right: Expr


@dataclass
class UnaryExpression(Expr):
    """Prefix operation: - or !."""

    op: str
    operand: Expr


# --- Calls and access ---


@dataclass
class FunctionCall(Expr):
    """Call of a function, method or built-in.

    Invariants:
    - callee.typ is a FunctionType
    - len(args) == len(callee.typ.params) unless callee is variadic
    """

    callee: Expr
    args: list[Expr]


@dataclass
class ConstructorCall(Expr):
    """Struct instantiation: one argument per field, in field order."""

    callee: Class
    args: list[Expr]


@dataclass
class MemberExpression(Expr):
    """Field or method access: obj.field, obj?.field, or dict.items.

    Invariants:
    - op is "." or "?."
    - field names a struct field, a method, or "items" on a dict
    """

    obj: Expr
    op: str
    field: str


# --- Collections ---


@dataclass
class ArrayExpression(Expr):
    """Array literal.

    Invariants:
    - typ is ArrayType; every element's type equals typ.element
    """

    elements: list[Expr]


@dataclass
class TupleExpression(Expr):
    elements: list[Expr]


@dataclass
class DictEntry:
    key: Expr
    value: Expr


@dataclass
class DictExpression(Expr):
    """Dict literal. typ is DictType of the first entry's key/value types."""

    entries: list[DictEntry]


@dataclass
class EmptyArray(Expr):
    """Typed empty array sentinel. Loops over it never execute."""


@dataclass
class EmptyOptional(Expr):
    """Typed absent optional value (🫥 T)."""


# ============================================================
# STATEMENTS
# ============================================================


@dataclass(kw_only=True)
class Stmt:
    """Base for all statements. Abstract."""

    loc: Loc = field(default_factory=loc_unknown)


@dataclass
class Program:
    """A complete compilation unit. Root of the tree."""

    statements: list[Stmt]


@dataclass
class VariableDeclaration(Stmt):
    """Variable declaration with optional initializer.

    Semantics:
    - Introduces variable into the current scope
    """

    variable: Variable
    initializer: Expr | None = None


@dataclass
class FunctionDeclaration(Stmt):
    function: Function


@dataclass
class ClassDeclaration(Stmt):
    klass: Class


@dataclass
class Assignment(Stmt):
    """Assignment to a variable, parameter, or member.

    Invariants:
    - source.typ is assignable to target.typ
    """

    target: Expr
    source: Expr


@dataclass
class AddAssignment(Stmt):
    """target += source."""

    target: Expr
    source: Expr


@dataclass
class Increment(Stmt):
    """variable++. variable.typ is INT or FLOAT."""

    variable: Expr


@dataclass
class Decrement(Stmt):
    """variable--. variable.typ is INT or FLOAT."""

    variable: Expr


@dataclass
class IfStatement(Stmt):
    """Conditional statement.

    Semantics:
    - Evaluate test; if true, execute consequent; else execute alternate

    Invariants:
    - test.typ is BOOL
    - alternate is a statement list, a nested IfStatement (else-if chain),
      or None; backends format else-if chains from the nested form
    """

    test: Expr
    consequent: list[Stmt]
    alternate: list[Stmt] | IfStatement | None = None


@dataclass
class WhileStatement(Stmt):
    """Pre-test loop. test.typ is BOOL."""

    test: Expr
    body: list[Stmt]


@dataclass
class ForRangeStatement(Stmt):
    """Counting loop over low..high.

    Semantics:
    - op "..." includes high, "..<" excludes it
    - iterator steps by one
    """

    iterator: Variable
    low: Expr
    op: Literal["...", "..<"]
    high: Expr
    body: list[Stmt]


@dataclass
class ForStatement(Stmt):
    """For-each loop.

    Invariants:
    - one iterator for arrays, two (key, value) for dicts
    """

    iterators: list[Variable]
    collection: Expr
    body: list[Stmt]


@dataclass
class ReturnStatement(Stmt):
    """Return from function.

    Semantics:
    - If expression is None, the function returns void
    """

    expression: Expr | None = None


@dataclass
class BreakStatement(Stmt):
    pass


@dataclass
class PrintStatement(Stmt):
    expressions: list[Expr]


@dataclass
class CallStatement(Stmt):
    """Call evaluated for side effects, result discarded."""

    call: Expr
