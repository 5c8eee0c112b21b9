"""AST-walking pretty-printer for expressions.

Walks a parsed AST and emits canonical expression text using isinstance
dispatch. Parentheses are only emitted where precedence requires them, so
formatting and re-parsing yields an equivalent tree.
"""

from __future__ import annotations

import dataclasses
import re
from enum import Enum

from spel.ast_nodes import (
    Assign,
    BeanRef,
    BinaryExpr,
    BooleanLit,
    CompoundExpr,
    ConstructorRef,
    Elvis,
    Expr,
    FloatLit,
    FunctionRef,
    Identifier,
    Indexer,
    InlineList,
    InlineMap,
    IntLit,
    LongLit,
    MethodRef,
    NullLit,
    Projection,
    PropertyRef,
    QualifiedId,
    RealLit,
    Selection,
    StringLit,
    Ternary,
    TypeRef,
    UnaryExpr,
    VariableRef,
    children,
)

# Operator precedence table (higher binds tighter)
_PRECEDENCE: dict[str, int] = {
    "or": 2,
    "and": 3,
    "==": 4, "!=": 4, "<": 4, "<=": 4, ">": 4, ">=": 4,
    "instanceof": 4, "matches": 4, "between": 4,
    "+": 5, "-": 5,
    "*": 6, "/": 6, "%": 6,
    "^": 7,
}

_CONDITIONAL = 1
_RELATIONAL = 4
_POSTFIX = 7
_PREFIX = 8
_PRIMARY = 9

_BEAN_NAME = re.compile(r"[A-Za-z_$][\w$]*")


class ExpressionFormatter:
    """Format an expression AST back to canonical source text."""

    def format(self, expr: Expr) -> str:
        return self._format_expr(expr)

    # ── Expression dispatch ────────────────────────────────────

    def _format_expr(self, expr: Expr, parent_prec: int = 0) -> str:
        if isinstance(expr, (IntLit, LongLit, RealLit, FloatLit)):
            return expr.text
        if isinstance(expr, StringLit):
            return "'" + expr.value.replace("'", "''") + "'"
        if isinstance(expr, BooleanLit):
            return "true" if expr.value else "false"
        if isinstance(expr, NullLit):
            return "null"
        if isinstance(expr, BinaryExpr):
            return self._format_binary(expr, parent_prec)
        if isinstance(expr, UnaryExpr):
            return self._format_unary(expr, parent_prec)
        if isinstance(expr, Assign):
            result = (
                f"{self._format_expr(expr.target, 2)} = {self._format_expr(expr.value, 2)}"
            )
            return self._wrap(result, _CONDITIONAL, parent_prec)
        if isinstance(expr, Elvis):
            result = (
                f"{self._format_expr(expr.value, 2)} ?: "
                f"{self._format_expr(expr.fallback, _CONDITIONAL)}"
            )
            return self._wrap(result, _CONDITIONAL, parent_prec)
        if isinstance(expr, Ternary):
            result = (
                f"{self._format_expr(expr.condition, 2)} ? "
                f"{self._format_expr(expr.if_true, _CONDITIONAL)} : "
                f"{self._format_expr(expr.if_false, _CONDITIONAL)}"
            )
            return self._wrap(result, _CONDITIONAL, parent_prec)
        if isinstance(expr, CompoundExpr):
            return self._format_compound(expr)
        if isinstance(expr, PropertyRef):
            return expr.name
        if isinstance(expr, MethodRef):
            return f"{expr.name}({self._format_args(expr.args)})"
        if isinstance(expr, FunctionRef):
            return f"#{expr.name}({self._format_args(expr.args)})"
        if isinstance(expr, VariableRef):
            return f"#{expr.name}"
        if isinstance(expr, BeanRef):
            return self._format_bean_ref(expr)
        if isinstance(expr, Indexer):
            return f"[{self._format_expr(expr.index)}]"
        if isinstance(expr, Projection):
            return f"![{self._format_expr(expr.expr)}]"
        if isinstance(expr, Selection):
            return f"{expr.kind.value}{self._format_expr(expr.expr)}]"
        if isinstance(expr, InlineList):
            return "{" + self._format_args(expr.elements) + "}"
        if isinstance(expr, InlineMap):
            if not expr.items:
                return "{:}"
            entries = ", ".join(
                f"{self._format_expr(k)}: {self._format_expr(v)}" for k, v in expr.entries
            )
            return "{" + entries + "}"
        if isinstance(expr, (Identifier, QualifiedId)):
            return expr.name
        if isinstance(expr, TypeRef):
            return f"T({expr.name.name}{'[]' * expr.dimensions})"
        if isinstance(expr, ConstructorRef):
            return self._format_constructor(expr)
        raise TypeError(f"cannot format {type(expr).__name__}")

    @staticmethod
    def _wrap(result: str, prec: int, parent_prec: int) -> str:
        if prec < parent_prec:
            return f"({result})"
        return result

    def _format_args(self, args: list[Expr]) -> str:
        return ", ".join(self._format_expr(a) for a in args)

    # ── Operators ──────────────────────────────────────────────

    def _format_binary(self, expr: BinaryExpr, parent_prec: int) -> str:
        prec = _PRECEDENCE.get(expr.op, 0)
        if prec == _RELATIONAL:
            # relational operators do not chain
            left = self._format_expr(expr.left, prec + 1)
            right = self._format_expr(expr.right, prec + 1)
        elif expr.op == "^":
            left = self._format_expr(expr.left, _PREFIX)
            right = self._format_expr(expr.right, _PREFIX)
        else:
            left = self._format_expr(expr.left, prec)
            right = self._format_expr(expr.right, prec + 1)
        return self._wrap(f"{left} {expr.op} {right}", prec, parent_prec)

    def _format_unary(self, expr: UnaryExpr, parent_prec: int) -> str:
        operand = self._format_expr(expr.operand, _PREFIX)
        if expr.postfix:
            return self._wrap(f"{operand}{expr.op}", _POSTFIX, parent_prec)
        if expr.op in ("+", "-") and operand.startswith(expr.op) or (
            expr.op == "!" and operand.startswith("[")
        ):
            # keep `- -a` from lexing as `--a` and `! [0]` as a projection
            operand = " " + operand
        return self._wrap(f"{expr.op}{operand}", _PREFIX, parent_prec)

    # ── References ─────────────────────────────────────────────

    def _format_compound(self, expr: CompoundExpr) -> str:
        parts = [self._format_expr(expr.parts[0], _PRIMARY)]
        for part in expr.parts[1:]:
            if isinstance(part, Indexer):
                parts.append(self._format_expr(part))
                continue
            dot = "?." if getattr(part, "null_safe", False) else "."
            parts.append(dot + self._format_expr(part))
        return "".join(parts)

    def _format_bean_ref(self, expr: BeanRef) -> str:
        marker = "&" if expr.factory else "@"
        if _BEAN_NAME.fullmatch(expr.name):
            return f"{marker}{expr.name}"
        return f"{marker}'{expr.name}'"

    def _format_constructor(self, expr: ConstructorRef) -> str:
        head = f"new {expr.type_name.name}"
        if expr.dimensions is None:
            return f"{head}({self._format_args(expr.args)})"
        dims = "".join(
            "[]" if d is None else f"[{self._format_expr(d)}]" for d in expr.dimensions
        )
        init = self._format_expr(expr.initializer) if expr.initializer is not None else ""
        return head + dims + init


def dump(node: Expr, indent: int = 0) -> str:
    """Render ``node`` as an indented tree, one node per line with its span."""
    attrs: list[str] = []
    for f in dataclasses.fields(node):
        if f.name == "span":
            continue
        value = getattr(node, f.name)
        if isinstance(value, Enum):
            attrs.append(f"{f.name}={value.value!r}")
        elif isinstance(value, (str, int, float, bool)):
            attrs.append(f"{f.name}={value!r}")
    header = " ".join([type(node).__name__, *attrs, str(node.span)])
    lines = ["  " * indent + header]
    for child in children(node):
        lines.append(dump(child, indent + 1))
    return "\n".join(lines)
