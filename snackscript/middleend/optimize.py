"""Optimizer: constant folding, algebraic identities, dead code removal.

Works bottom-up and rewrites the tree in place. A statement rewrite may
return a list, which callers splice into the enclosing statement list.
"""

from __future__ import annotations

import logging

from ..ir import (
    INT,
    MAX_INT_BITS,
    AddAssignment,
    ArrayExpression,
    Assignment,
    BinaryExpression,
    BooleanLiteral,
    CallStatement,
    ClassDeclaration,
    ConstructorCall,
    Decrement,
    DictExpression,
    EmptyArray,
    EmptyOptional,
    Expr,
    FloatLiteral,
    ForRangeStatement,
    ForStatement,
    FunctionCall,
    FunctionDeclaration,
    IfStatement,
    Increment,
    IntegerLiteral,
    MemberExpression,
    PrintStatement,
    Program,
    ReturnStatement,
    Stmt,
    TupleExpression,
    UnaryExpression,
    VariableDeclaration,
    WhileStatement,
)

logger = logging.getLogger(__name__)


def optimize(node):
    """Optimize any node. Statements may come back as a list to splice."""
    match node:
        case Program():
            before = len(node.statements)
            node.statements = optimize_block(node.statements)
            logger.debug(
                "optimized program: %d -> %d top-level statements",
                before,
                len(node.statements),
            )
            return node
        case VariableDeclaration():
            if node.initializer is not None:
                node.initializer = optimize(node.initializer)
            return node
        case FunctionDeclaration():
            node.function.body = optimize_block(node.function.body)
            return node
        case ClassDeclaration():
            for method in node.klass.methods:
                method.body = optimize_block(method.body)
            return node
        case Assignment():
            node.source = optimize(node.source)
            node.target = optimize(node.target)
            if node.source is node.target:
                logger.debug("removed self-assignment at %s", node.loc)
                return []
            return node
        case AddAssignment():
            node.source = optimize(node.source)
            node.target = optimize(node.target)
            return node
        case Increment() | Decrement():
            node.variable = optimize(node.variable)
            return node
        case IfStatement():
            return _optimize_if(node)
        case WhileStatement():
            node.test = optimize(node.test)
            if isinstance(node.test, BooleanLiteral) and not node.test.value:
                logger.debug("removed while-false loop at %s", node.loc)
                return []
            node.body = optimize_block(node.body)
            return node
        case ForRangeStatement():
            node.low = optimize(node.low)
            node.high = optimize(node.high)
            node.body = optimize_block(node.body)
            if _is_number(node.low) and _is_number(node.high) and node.low.value > node.high.value:
                logger.debug("removed empty range loop at %s", node.loc)
                return []
            return node
        case ForStatement():
            node.collection = optimize(node.collection)
            node.body = optimize_block(node.body)
            if isinstance(node.collection, EmptyArray):
                logger.debug("removed loop over empty array at %s", node.loc)
                return []
            return node
        case ReturnStatement():
            if node.expression is not None:
                node.expression = optimize(node.expression)
            return node
        case PrintStatement():
            node.expressions = [optimize(e) for e in node.expressions]
            return node
        case CallStatement():
            node.call = optimize(node.call)
            return node
        case BinaryExpression():
            node.left = optimize(node.left)
            node.right = optimize(node.right)
            return _simplify_binary(node)
        case UnaryExpression():
            node.operand = optimize(node.operand)
            if node.op == "-" and _is_number(node.operand):
                return _literal(-node.operand.value, node)
            return node
        case FunctionCall():
            node.callee = optimize(node.callee)
            node.args = [optimize(a) for a in node.args]
            return node
        case ConstructorCall():
            node.args = [optimize(a) for a in node.args]
            return node
        case MemberExpression():
            node.obj = optimize(node.obj)
            return node
        case ArrayExpression() | TupleExpression():
            node.elements = [optimize(e) for e in node.elements]
            return node
        case DictExpression():
            for entry in node.entries:
                entry.key = optimize(entry.key)
                entry.value = optimize(entry.value)
            return node
        case _:
            return node


def optimize_block(stmts: list[Stmt]) -> list[Stmt]:
    """Optimize a statement list, flattening spliced results one level."""
    result: list[Stmt] = []
    for stmt in stmts:
        out = optimize(stmt)
        if isinstance(out, list):
            result.extend(out)
        else:
            result.append(out)
    return result


def _optimize_if(node: IfStatement):
    node.test = optimize(node.test)
    node.consequent = optimize_block(node.consequent)
    if isinstance(node.alternate, IfStatement):
        node.alternate = optimize(node.alternate)
    elif node.alternate is not None:
        node.alternate = optimize_block(node.alternate)
    if isinstance(node.test, BooleanLiteral):
        logger.debug("removed dead branch at %s", node.loc)
        if node.test.value:
            return node.consequent
        if node.alternate is None:
            return []
        return node.alternate
    return node


# ============================================================
# BINARY SIMPLIFICATION
# ============================================================


def _simplify_binary(node: BinaryExpression) -> Expr:
    op = node.op
    left = node.left
    right = node.right
    if op == "??":
        if isinstance(left, EmptyOptional):
            return right
    elif op == "&&":
        if _is_true(left):
            return right
        if _is_true(right):
            return left
    elif op == "||":
        if _is_false(left):
            return right
        if _is_false(right):
            return left
    elif _is_number(left) and _is_number(right):
        value = fold(left.value, op, right.value)
        if value is not None:
            return _literal(value, node)
    elif _is_number(left):
        if _is_zero(left) and op == "+":
            return right
        if _is_one(left) and op == "*":
            return right
        if _is_zero(left) and op == "-":
            return UnaryExpression("-", right, typ=right.typ, loc=node.loc)
        if _is_one(left) and op == "**":
            return left
        if _is_zero(left) and (op == "*" or op == "/"):
            return left
    elif _is_number(right):
        if _is_zero(right) and (op == "+" or op == "-"):
            return left
        if _is_one(right) and (op == "*" or op == "/"):
            return left
        if _is_zero(right) and op == "*":
            return right
        if _is_zero(right) and op == "**":
            if node.typ == INT:
                return IntegerLiteral(1, loc=node.loc)
            return FloatLiteral(1.0, loc=node.loc)
    return node


def fold(x: int | float, op: str, y: int | float) -> int | float | bool | None:
    """Evaluate a binary operation on two numbers, or None if it can't fold."""
    try:
        match op:
            case "+":
                result = x + y
            case "-":
                result = x - y
            case "*":
                result = x * y
            case "/":
                result = x / y
            case "**":
                if _power_overflows(x, y):
                    return None
                result = x**y
            case "<":
                result = x < y
            case "<=":
                result = x <= y
            case "==":
                result = x == y
            case "!=":
                result = x != y
            case ">=":
                result = x >= y
            case ">":
                result = x > y
            case _:
                return None
    except (ZeroDivisionError, OverflowError):
        return None
    # Negative base with fractional exponent
    if isinstance(result, complex):
        return None
    # Left for JavaScript, where it becomes Infinity
    if isinstance(result, int) and result.bit_length() > MAX_INT_BITS:
        return None
    return result


def _power_overflows(x: int | float, y: int | float) -> bool:
    if not (isinstance(x, int) and isinstance(y, int)) or y <= 0 or abs(x) <= 1:
        return False
    return (abs(x).bit_length() - 1) * y > MAX_INT_BITS


# ── Helpers ──────────────────────────────────────────────────


def _literal(value: int | float | bool, node: Expr) -> Expr:
    if isinstance(value, bool):
        return BooleanLiteral(value, loc=node.loc)
    if isinstance(value, int):
        return IntegerLiteral(value, loc=node.loc)
    return FloatLiteral(value, loc=node.loc)


def _is_number(e: Expr) -> bool:
    return isinstance(e, (IntegerLiteral, FloatLiteral))


def _is_zero(e: Expr) -> bool:
    return _is_number(e) and e.value == 0


def _is_one(e: Expr) -> bool:
    return _is_number(e) and e.value == 1


def _is_true(e: Expr) -> bool:
    return isinstance(e, BooleanLiteral) and e.value is True


def _is_false(e: Expr) -> bool:
    return isinstance(e, BooleanLiteral) and e.value is False
