"""SnackScript analyzer: resolves names and checks types, producing typed IR.

Consumes the dict-based raw tree from parse.py. The first violated rule
raises; there is no recovery.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..errors import (
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
from ..ir import (
    ANY,
    BOOL,
    FLOAT,
    INT,
    MAX_INT_BITS,
    STRING,
    VOID,
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
    DictEntry,
    DictExpression,
    DictType,
    EmptyArray,
    EmptyOptional,
    Entity,
    Expr,
    Field,
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
    type_name,
)
from .parse import ASTNode
from .tokens import KW_TRUE, TYPE_NAMES

logger = logging.getLogger(__name__)


PRIMITIVES: dict[str, Type] = {
    "bool": BOOL,
    "int": INT,
    "float": FLOAT,
    "string": STRING,
    "void": VOID,
    "any": ANY,
}

RELATIONAL_OPS: set[str] = {"<", "<=", ">", ">="}
EQUALITY_OPS: set[str] = {"==", "!="}
ARITHMETIC_OPS: set[str] = {"-", "*", "/", "%", "**"}
LOGICAL_OPS: set[str] = {"&&", "||"}

# Decimal digits in 2 ** MAX_INT_BITS
MAX_INT_DIGITS = 309


# ============================================================
# TYPE EQUIVALENCE
# ============================================================


def type_eq(a: Type, b: Type) -> bool:
    """Structural type equivalence. Struct types are nominal."""
    if a is b:
        return True
    if isinstance(a, Primitive) and isinstance(b, Primitive):
        return a.kind == b.kind
    if isinstance(a, ArrayType) and isinstance(b, ArrayType):
        return type_eq(a.element, b.element)
    if isinstance(a, OptionalType) and isinstance(b, OptionalType):
        return type_eq(a.base, b.base)
    if isinstance(a, DictType) and isinstance(b, DictType):
        return type_eq(a.key, b.key) and type_eq(a.value, b.value)
    if isinstance(a, TupleType) and isinstance(b, TupleType):
        if len(a.elements) != len(b.elements):
            return False
        return all(type_eq(x, y) for x, y in zip(a.elements, b.elements))
    if isinstance(a, FunctionType) and isinstance(b, FunctionType):
        if len(a.params) != len(b.params):
            return False
        if not all(type_eq(x, y) for x, y in zip(a.params, b.params)):
            return False
        return type_eq(a.ret, b.ret)
    return False


# ============================================================
# ASSIGNABILITY
# ============================================================


def is_assignable(source: Type, target: Type) -> bool:
    """Can a value of type `source` be stored in a slot of type `target`?"""
    if type_eq(target, ANY):
        return True
    if type_eq(source, target):
        return True
    if isinstance(source, FunctionType) and isinstance(target, FunctionType):
        if len(source.params) != len(target.params):
            return False
        # covariant in the return type, contravariant in parameter types
        if not is_assignable(source.ret, target.ret):
            return False
        return all(is_assignable(t, s) for s, t in zip(source.params, target.params))
    return False


def is_numeric(t: Type) -> bool:
    return type_eq(t, INT) or type_eq(t, FLOAT)


# ============================================================
# STANDARD LIBRARY
# ============================================================


def standard_library() -> dict[str, Entity]:
    """Fresh root-scope entities: intrinsics, math functions and constants."""
    one_any = FunctionType((ANY,), FLOAT)
    return {
        "print": BuiltInFunction("print", variadic=True, typ=FunctionType((), VOID)),
        "len": BuiltInFunction("len", typ=FunctionType((ANY,), INT)),
        "str": BuiltInFunction("str", typ=FunctionType((ANY,), STRING)),
        "num": BuiltInFunction("num", typ=one_any),
        "sqrt": BuiltInFunction("sqrt", typ=one_any),
        "sin": BuiltInFunction("sin", typ=one_any),
        "cos": BuiltInFunction("cos", typ=one_any),
        "exp": BuiltInFunction("exp", typ=one_any),
        "ln": BuiltInFunction("ln", typ=one_any),
        "abs": BuiltInFunction("abs", typ=one_any),
        "hypot": BuiltInFunction("hypot", typ=FunctionType((ANY, ANY), FLOAT)),
        "PI": Constant("PI", 3.141592653589793, typ=FLOAT),
        "TRUE": Constant("TRUE", True, typ=BOOL),
        "FALSE": Constant("FALSE", False, typ=BOOL),
    }


# ============================================================
# SCOPES
# ============================================================


@dataclass
class Scope:
    """One lexical region. in_loop, function and klass inherit from parent
    unless the child overrides them."""

    parent: Scope | None = None
    locals: dict[str, Entity] = field(default_factory=dict)
    in_loop: bool = False
    function: Function | None = None
    klass: Class | None = None

    def lookup(self, name: str) -> Entity | None:
        scope: Scope | None = self
        while scope is not None:
            if name in scope.locals:
                return scope.locals[name]
            scope = scope.parent
        return None


# ============================================================
# ANALYZER
# ============================================================


class Analyzer:
    def __init__(self) -> None:
        self.scope: Scope = Scope(locals=standard_library())

    def error(self, cls: type[AnalysisError], msg: str, node: ASTNode | None) -> AnalysisError:
        if node is None:
            return cls(msg)
        return cls(msg, int(node.get("lineno", 0)), int(node.get("col", 0)))

    # ── Scope management ──────────────────────────────────────

    def enter_scope(
        self,
        in_loop: bool | None = None,
        function: Function | None = None,
        klass: Class | None = None,
    ) -> None:
        parent = self.scope
        self.scope = Scope(
            parent=parent,
            in_loop=parent.in_loop if in_loop is None else in_loop,
            function=parent.function if function is None else function,
            klass=parent.klass if klass is None else klass,
        )

    def exit_scope(self) -> None:
        assert self.scope.parent is not None
        self.scope = self.scope.parent

    def declare(self, name: str, entity: Entity, node: ASTNode) -> None:
        self.check_not_declared(name, node)
        self.scope.locals[name] = entity

    def check_not_declared(self, name: str, node: ASTNode) -> None:
        if name in self.scope.locals:
            raise self.error(DuplicateDeclaration, "Identifier " + name + " already declared", node)

    def lookup(self, name: str, node: ASTNode) -> Entity:
        entity = self.scope.lookup(name)
        if entity is None:
            raise self.error(UndeclaredIdentifier, "Identifier " + name + " not declared", node)
        return entity

    # ── Checks ────────────────────────────────────────────────

    def check_numeric(self, e: Expr, node: ASTNode) -> None:
        if not is_numeric(e.typ):
            raise self.error(SnackTypeError, "Expected a number", node)

    def check_numeric_or_string(self, e: Expr, node: ASTNode) -> None:
        if not (is_numeric(e.typ) or type_eq(e.typ, STRING)):
            raise self.error(SnackTypeError, "Expected a number or string", node)

    def check_boolean(self, e: Expr, node: ASTNode) -> None:
        if not type_eq(e.typ, BOOL):
            raise self.error(SnackTypeError, "Expected a boolean, got " + type_name(e.typ), node)

    def check_same_type(self, left: Expr, right: Expr, node: ASTNode) -> None:
        if not type_eq(left.typ, right.typ):
            raise self.error(
                TypeMismatch,
                "Operands do not have the same type: "
                + type_name(left.typ)
                + ", "
                + type_name(right.typ),
                node,
            )

    def check_assignable(self, e: Expr, target: Type, node: ASTNode) -> None:
        if is_assignable(e.typ, target):
            return
        msg = "Cannot assign a " + type_name(e.typ) + " to a " + type_name(target)
        if (
            isinstance(e.typ, FunctionType)
            and isinstance(target, FunctionType)
            and len(e.typ.params) != len(target.params)
        ):
            raise self.error(ArityMismatch, msg, node)
        raise self.error(TypeMismatch, msg, node)

    def check_argument_count(self, passed: int, required: int, node: ASTNode) -> None:
        if passed != required:
            raise self.error(
                ArityMismatch,
                str(required) + " argument(s) required but " + str(passed) + " passed",
                node,
            )

    # ── Type resolution ───────────────────────────────────────

    def resolve_type(self, node: ASTNode) -> Type:
        match node["kind"]:
            case "type":
                name = str(node["name"])
                kind = TYPE_NAMES.get(name, name)
                if kind not in PRIMITIVES:
                    raise self.error(UnsupportedConstruct, "Unknown type " + name, node)
                return PRIMITIVES[kind]
            case "arraytype":
                return ArrayType(self.resolve_type(node["base"]))
            case "dicttype":
                return DictType(self.resolve_type(node["key"]), self.resolve_type(node["value"]))
            case "optionaltype":
                base = self.resolve_type(node["base"])
                if isinstance(base, OptionalType):
                    return base
                return OptionalType(base)
            case "typeid":
                entity = self.lookup(str(node["id"]), node)
                if not isinstance(entity, Class):
                    raise self.error(SnackTypeError, "Type expected", node)
                return entity.typ
            case kind:
                raise self.error(UnsupportedConstruct, "Unsupported type kind: " + str(kind), node)

    # ── Program and statements ────────────────────────────────

    def analyze_program(self, node: ASTNode) -> Program:
        statements = self.analyze_block(node["statements"])
        return Program(statements)

    def analyze_block(self, nodes: list[ASTNode]) -> list[Stmt]:
        return [self.analyze_stmt(n) for n in nodes]

    def analyze_stmt(self, node: ASTNode) -> Stmt:
        match node["kind"]:
            case "vardecl":
                return self.analyze_var_decl(node)
            case "collection":
                return self.analyze_collection_decl(node)
            case "function" | "simplefunction":
                return FunctionDeclaration(self.analyze_function(node, None), loc=_loc(node))
            case "class":
                return self.analyze_class(node)
            case "if":
                return self.analyze_if_stmt(node)
            case "while":
                return self.analyze_while_stmt(node)
            case "forloop":
                return self.analyze_for_range_stmt(node)
            case "foreach":
                return self.analyze_foreach_stmt(node)
            case "return":
                return self.analyze_return_stmt(node)
            case "break":
                if not self.scope.in_loop:
                    raise self.error(IllegalBreak, "Break can only appear in a loop", node)
                return BreakStatement(loc=_loc(node))
            case "print":
                exps = [self.analyze_expr(e) for e in node["exps"]]
                return PrintStatement(exps, loc=_loc(node))
            case "assign":
                return self.analyze_assign_stmt(node)
            case "addassign":
                return self.analyze_add_assign_stmt(node)
            case "bump":
                return self.analyze_bump_stmt(node)
            case "call":
                return CallStatement(self.analyze_call(node), loc=_loc(node))
            case kind:
                raise self.error(
                    UnsupportedConstruct, "Unsupported statement kind: " + str(kind), node
                )

    def analyze_var_decl(self, node: ASTNode) -> VariableDeclaration:
        name = str(node["id"])
        self.check_not_declared(name, node)
        declared: Type | None = None
        if node.get("type") is not None:
            declared = self.resolve_type(node["type"])
        initializer: Expr | None = None
        if node.get("exp") is not None:
            initializer = self.analyze_expr(node["exp"])
        if declared is not None:
            if initializer is not None:
                self.check_assignable(initializer, declared, node)
            typ = declared
        elif initializer is not None:
            typ = initializer.typ
        else:
            typ = ANY
        variable = Variable(name, typ=typ, loc=_loc(node))
        self.declare(name, variable, node)
        return VariableDeclaration(variable, initializer, loc=_loc(node))

    def analyze_collection_decl(self, node: ASTNode) -> VariableDeclaration:
        name = str(node["id"])
        self.check_not_declared(name, node)
        collection = self.analyze_expr(node["collection"])
        variable = Variable(name, typ=collection.typ, loc=_loc(node))
        self.declare(name, variable, node)
        return VariableDeclaration(variable, collection, loc=_loc(node))

    def analyze_function(self, node: ASTNode, klass: Class | None) -> Function:
        """Shared by functions and methods.

        The function is declared before its body is analyzed, so direct
        recursion resolves. Methods register on the struct instead of the
        scope and are reached through self.
        """
        name = str(node["id"])
        ret = VOID
        if node.get("returns") is not None:
            ret = self.resolve_type(node["returns"])
        fun = Function(name, typ=FunctionType((), ret), is_method=klass is not None, loc=_loc(node))
        if klass is None:
            self.declare(name, fun, node)
        else:
            struct = klass.typ
            assert isinstance(struct, StructType)
            if struct.field_named(name) is not None or name in struct.methods:
                raise self.error(
                    DuplicateDeclaration, "Identifier " + name + " already declared", node
                )
        self.enter_scope(in_loop=False, function=fun)
        for p in node.get("params") or []:
            ptyp = ANY
            if p.get("type") is not None:
                ptyp = self.resolve_type(p["type"])
            param = Parameter(str(p["id"]), typ=ptyp, loc=_loc(p))
            self.declare(param.name, param, p)
            fun.params.append(param)
        fun.typ = FunctionType(tuple(p.typ for p in fun.params), ret)
        if klass is not None:
            klass.typ.methods[name] = fun.typ
            klass.methods.append(fun)
        fun.body = self.analyze_block(node["block"])
        self.exit_scope()
        return fun

    def analyze_class(self, node: ASTNode) -> ClassDeclaration:
        name = str(node["id"])
        struct = StructType(name)
        klass = Class(name, typ=struct, loc=_loc(node))
        self.declare(name, klass, node)
        self.enter_scope(in_loop=False, klass=klass)
        members: list[ASTNode] = node["block"]
        # Fields first, so methods can use fields declared after them
        for member in members:
            if member["kind"] == "vardecl":
                self.analyze_field(member, struct)
        for member in members:
            kind = member["kind"]
            if kind == "function" or kind == "simplefunction":
                self.analyze_function(member, klass)
            elif kind != "vardecl":
                # Checked in the class scope, then left out of the class
                self.analyze_stmt(member)
                logger.debug("dropped %s statement from class %s", kind, name)
        self.exit_scope()
        return ClassDeclaration(klass, loc=_loc(node))

    def analyze_field(self, node: ASTNode, struct: StructType) -> None:
        name = str(node["id"])
        if node.get("exp") is not None:
            raise self.error(UnsupportedConstruct, "Field initializers are not supported", node)
        if struct.field_named(name) is not None:
            raise self.error(DuplicateDeclaration, "Identifier " + name + " already declared", node)
        typ = ANY
        if node.get("type") is not None:
            typ = self.resolve_type(node["type"])
        struct.fields.append(Field(name, typ))

    def analyze_if_stmt(self, node: ASTNode) -> IfStatement:
        test = self.analyze_expr(node["exp"])
        self.check_boolean(test, node["exp"])
        consequent = self.analyze_scoped_block(node["block"])
        branches: list[tuple[Expr, list[Stmt], Loc]] = []
        for elseif in node.get("elseifs") or []:
            elif_test = self.analyze_expr(elseif["exp"])
            self.check_boolean(elif_test, elseif["exp"])
            branches.append((elif_test, self.analyze_scoped_block(elseif["block"]), _loc(elseif)))
        alternate: list[Stmt] | IfStatement | None = None
        if node.get("elsepart") is not None:
            alternate = self.analyze_scoped_block(node["elsepart"])
        # Right-fold else-ifs into a chain; the last one owns the else block
        for elif_test, elif_body, loc in reversed(branches):
            alternate = IfStatement(elif_test, elif_body, alternate, loc=loc)
        return IfStatement(test, consequent, alternate, loc=_loc(node))

    def analyze_scoped_block(self, nodes: list[ASTNode]) -> list[Stmt]:
        self.enter_scope()
        body = self.analyze_block(nodes)
        self.exit_scope()
        return body

    def analyze_while_stmt(self, node: ASTNode) -> WhileStatement:
        test = self.analyze_expr(node["exp"])
        self.check_boolean(test, node["exp"])
        self.enter_scope(in_loop=True)
        body = self.analyze_block(node["block"])
        self.exit_scope()
        return WhileStatement(test, body, loc=_loc(node))

    def analyze_for_range_stmt(self, node: ASTNode) -> ForRangeStatement:
        low = self.analyze_expr(node["low"])
        self.check_numeric(low, node["low"])
        high = self.analyze_expr(node["high"])
        self.check_numeric(high, node["high"])
        iterator = Variable(str(node["id"]), mutable=False, typ=low.typ, loc=_loc(node))
        self.enter_scope(in_loop=True)
        self.declare(iterator.name, iterator, node)
        body = self.analyze_block(node["block"])
        self.exit_scope()
        op = str(node["op"])
        if op != "..." and op != "..<":
            raise self.error(UnsupportedConstruct, "Unsupported range operator: " + op, node)
        return ForRangeStatement(iterator, low, op, high, body, loc=_loc(node))

    def analyze_foreach_stmt(self, node: ASTNode) -> ForStatement:
        collection = self.analyze_expr(node["exp"])
        coll_type = collection.typ
        if isinstance(coll_type, ArrayType):
            element_types = [coll_type.element]
        elif isinstance(coll_type, DictType):
            element_types = [coll_type.key, coll_type.value]
        else:
            raise self.error(
                SnackTypeError, "Expected an array or dict, got " + type_name(coll_type), node["exp"]
            )
        ids: list[str] = [str(i) for i in node["ids"]]
        if len(ids) != len(element_types):
            raise self.error(
                ArityMismatch,
                str(len(element_types))
                + " iterator(s) required but "
                + str(len(ids))
                + " given",
                node,
            )
        self.enter_scope(in_loop=True)
        iterators: list[Variable] = []
        for name, typ in zip(ids, element_types):
            iterator = Variable(name, mutable=False, typ=typ, loc=_loc(node))
            self.declare(name, iterator, node)
            iterators.append(iterator)
        body = self.analyze_block(node["block"])
        self.exit_scope()
        return ForStatement(iterators, collection, body, loc=_loc(node))

    def analyze_return_stmt(self, node: ASTNode) -> ReturnStatement:
        fun = self.scope.function
        if fun is None:
            raise self.error(IllegalReturn, "Return can only appear in a function", node)
        assert isinstance(fun.typ, FunctionType)
        ret = fun.typ.ret
        if node.get("exp") is None:
            if not type_eq(ret, VOID):
                raise self.error(MustReturnValue, "Something should be returned", node)
            return ReturnStatement(None, loc=_loc(node))
        if type_eq(ret, VOID):
            raise self.error(MustReturnValue, "Cannot return a value from this function", node)
        value = self.analyze_expr(node["exp"])
        self.check_assignable(value, ret, node["exp"])
        return ReturnStatement(value, loc=_loc(node))

    def analyze_target(self, node: ASTNode) -> Expr:
        target = self.analyze_expr(node)
        if isinstance(target, (Function, Class, BuiltInFunction, Constant)):
            raise self.error(TypeMismatch, "Cannot assign to " + target.name, node)
        if isinstance(target, Variable) and not target.mutable:
            raise self.error(TypeMismatch, "Cannot assign to loop iterator " + target.name, node)
        return target

    def analyze_assign_stmt(self, node: ASTNode) -> Assignment:
        source = self.analyze_expr(node["exp"])
        target = self.analyze_target(node["target"])
        self.check_assignable(source, target.typ, node["target"])
        return Assignment(target, source, loc=_loc(node))

    def analyze_add_assign_stmt(self, node: ASTNode) -> AddAssignment:
        source = self.analyze_expr(node["exp"])
        target = self.analyze_target(node["target"])
        self.check_numeric_or_string(target, node["target"])
        self.check_assignable(source, target.typ, node["target"])
        return AddAssignment(target, source, loc=_loc(node))

    def analyze_bump_stmt(self, node: ASTNode) -> Increment | Decrement:
        target = self.analyze_target(node["target"])
        self.check_numeric(target, node["target"])
        if node["op"] == "++":
            return Increment(target, loc=_loc(node))
        return Decrement(target, loc=_loc(node))

    # ── Expressions ───────────────────────────────────────────

    def analyze_expr(self, node: ASTNode) -> Expr:
        match node["kind"]:
            case "num":
                return self.analyze_number(node)
            case "string":
                return StringLiteral(str(node["value"]), loc=_loc(node))
            case "bool":
                return BooleanLiteral(node["value"] == KW_TRUE, loc=_loc(node))
            case "var":
                return self.analyze_var(node)
            case "paren":
                return self.analyze_expr(node["exp"])
            case "binary":
                return self.analyze_binary(node)
            case "unary":
                return self.analyze_unary(node)
            case "call":
                return self.analyze_call(node)
            case "member":
                return self.analyze_member(node)
            case "array":
                return self.analyze_array(node)
            case "tuple":
                elements = [self.analyze_expr(e) for e in node["items"]]
                typ = TupleType(tuple(e.typ for e in elements))
                return TupleExpression(elements, typ=typ, loc=_loc(node))
            case "dict":
                return self.analyze_dict(node)
            case "emptyarray":
                element = self.resolve_type(node["type"])
                return EmptyArray(typ=ArrayType(element), loc=_loc(node))
            case "emptyoptional":
                base = self.resolve_type(node["type"])
                return EmptyOptional(typ=OptionalType(base), loc=_loc(node))
            case kind:
                raise self.error(
                    UnsupportedConstruct, "Unsupported expression kind: " + str(kind), node
                )

    def analyze_var(self, node: ASTNode) -> Expr:
        """Resolve a name in value position. A Class value is only ever the receiver."""
        name = str(node["id"])
        if name == "self" and self.scope.klass is not None:
            return self.scope.klass
        entity = self.lookup(name, node)
        if isinstance(entity, Class):
            raise self.error(SnackTypeError, "Class " + name + " cannot be used as a value", node)
        return entity

    def analyze_number(self, node: ASTNode) -> Expr:
        text = str(node["value"])
        loc = _loc(node)
        if "." in text or "e" in text or "E" in text:
            return FloatLiteral(float(text), loc=loc)
        # Checked on the text first, since int() refuses very long digit strings
        if len(text) > MAX_INT_DIGITS or int(text).bit_length() > MAX_INT_BITS:
            raise self.error(SnackTypeError, "Integer literal too large", node)
        return IntegerLiteral(int(text), loc=loc)

    def analyze_callee(self, node: ASTNode) -> Expr:
        if node["kind"] == "var" and node["id"] != "self":
            return self.lookup(str(node["id"]), node)
        return self.analyze_expr(node)

    def analyze_binary(self, node: ASTNode) -> BinaryExpression:
        op = str(node["op"])
        left = self.analyze_expr(node["left"])
        right = self.analyze_expr(node["right"])
        typ: Type
        if op in LOGICAL_OPS:
            self.check_boolean(left, node["left"])
            self.check_boolean(right, node["right"])
            typ = BOOL
        elif op == "??":
            if not isinstance(left.typ, OptionalType):
                raise self.error(SnackTypeError, "Expected an optional", node["left"])
            self.check_assignable(right, left.typ.base, node["right"])
            typ = left.typ.base
        elif op in RELATIONAL_OPS:
            self.check_numeric_or_string(left, node["left"])
            self.check_same_type(left, right, node)
            typ = BOOL
        elif op in EQUALITY_OPS:
            self.check_same_type(left, right, node)
            typ = BOOL
        elif op == "+":
            self.check_numeric_or_string(left, node["left"])
            self.check_same_type(left, right, node)
            typ = left.typ
        elif op in ARITHMETIC_OPS:
            self.check_numeric(left, node["left"])
            self.check_same_type(left, right, node)
            typ = left.typ
        else:
            raise self.error(UnsupportedConstruct, "Unsupported operator: " + op, node)
        return BinaryExpression(op, left, right, typ=typ, loc=_loc(node))

    def analyze_unary(self, node: ASTNode) -> UnaryExpression:
        op = str(node["op"])
        operand = self.analyze_expr(node["operand"])
        if op == "-":
            self.check_numeric(operand, node["operand"])
        elif op == "!":
            self.check_boolean(operand, node["operand"])
        else:
            raise self.error(UnsupportedConstruct, "Unsupported operator: " + op, node)
        return UnaryExpression(op, operand, typ=operand.typ, loc=_loc(node))

    def analyze_call(self, node: ASTNode) -> FunctionCall | ConstructorCall:
        callee = self.analyze_callee(node["callee"])
        arg_nodes: list[ASTNode] = node["args"]
        if isinstance(callee, Class):
            assert isinstance(callee.typ, StructType)
            self.check_argument_count(len(arg_nodes), len(callee.typ.fields), node)
            args = [self.analyze_expr(a) for a in arg_nodes]
            return ConstructorCall(callee, args, typ=callee.typ, loc=_loc(node))
        if not isinstance(callee.typ, FunctionType):
            raise self.error(SnackTypeError, "Call of non-function or non-constructor", node)
        if not (isinstance(callee, BuiltInFunction) and callee.variadic):
            self.check_argument_count(len(arg_nodes), len(callee.typ.params), node)
        args = [self.analyze_expr(a) for a in arg_nodes]
        return FunctionCall(callee, args, typ=callee.typ.ret, loc=_loc(node))

    def analyze_member(self, node: ASTNode) -> MemberExpression:
        obj = self.analyze_expr(node["object"])
        op = str(node["op"])
        name = str(node["id"])
        if isinstance(obj.typ, DictType):
            if name != "items":
                raise self.error(UnknownField, "No such field", node)
            return MemberExpression(obj, op, name, typ=obj.typ, loc=_loc(node))
        if op == "?.":
            if not (isinstance(obj.typ, OptionalType) and isinstance(obj.typ.base, StructType)):
                raise self.error(SnackTypeError, "Expected an optional struct", node["object"])
            struct = obj.typ.base
        else:
            if not isinstance(obj.typ, StructType):
                raise self.error(SnackTypeError, "Expected a struct", node["object"])
            struct = obj.typ
        fld = struct.field_named(name)
        typ: Type
        if fld is not None:
            typ = fld.typ
        elif name in struct.methods:
            typ = struct.methods[name]
        else:
            raise self.error(UnknownField, "No such field", node)
        if op == "?." and not isinstance(typ, OptionalType):
            typ = OptionalType(typ)
        return MemberExpression(obj, op, name, typ=typ, loc=_loc(node))

    def analyze_array(self, node: ASTNode) -> ArrayExpression:
        elements = [self.analyze_expr(e) for e in node["items"]]
        element_type = elements[0].typ if len(elements) > 0 else ANY
        for e in elements[1:]:
            if not type_eq(e.typ, element_type):
                raise self.error(TypeMismatch, "Not all elements have the same type", node)
        return ArrayExpression(elements, typ=ArrayType(element_type), loc=_loc(node))

    def analyze_dict(self, node: ASTNode) -> DictExpression:
        entries: list[DictEntry] = []
        for entry in node["entries"]:
            key = self.analyze_expr(entry["key"])
            value = self.analyze_expr(entry["value"])
            entries.append(DictEntry(key, value))
        key_type = entries[0].key.typ if len(entries) > 0 else ANY
        value_type = entries[0].value.typ if len(entries) > 0 else ANY
        for e in entries[1:]:
            if not type_eq(e.key.typ, key_type) or not type_eq(e.value.typ, value_type):
                raise self.error(TypeMismatch, "Not all entries have the same type", node)
        return DictExpression(entries, typ=DictType(key_type, value_type), loc=_loc(node))


# ============================================================
# HELPERS
# ============================================================


def _loc(node: ASTNode) -> Loc:
    return Loc(int(node.get("lineno", 0)), int(node.get("col", 0)))


# ============================================================
# PUBLIC API
# ============================================================


def analyze(tree: ASTNode) -> Program:
    """Check a raw parse tree and build the typed IR. Raises on the first error."""
    analyzer = Analyzer()
    program = analyzer.analyze_program(tree)
    logger.debug("analyzed %d top-level statements", len(program.statements))
    return program
