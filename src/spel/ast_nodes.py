"""AST node definitions for the expression language."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Union

from spel.source import Span

# ── Literals ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class IntLit:
    text: str
    value: int
    radix: int
    span: Span


@dataclass(frozen=True)
class LongLit:
    text: str
    value: int
    radix: int
    span: Span


@dataclass(frozen=True)
class RealLit:
    text: str
    value: float
    span: Span


@dataclass(frozen=True)
class FloatLit:
    text: str
    value: float
    span: Span


@dataclass(frozen=True)
class StringLit:
    value: str
    span: Span


@dataclass(frozen=True)
class BooleanLit:
    value: bool
    span: Span


@dataclass(frozen=True)
class NullLit:
    span: Span


# ── Operators ────────────────────────────────────────────────────


@dataclass(frozen=True)
class BinaryExpr:
    left: Expr
    op: str
    right: Expr
    span: Span


@dataclass(frozen=True)
class UnaryExpr:
    op: str
    operand: Expr
    postfix: bool
    span: Span


@dataclass(frozen=True)
class Assign:
    target: Expr
    value: Expr
    span: Span


@dataclass(frozen=True)
class Ternary:
    condition: Expr
    if_true: Expr
    if_false: Expr
    span: Span


@dataclass(frozen=True)
class Elvis:
    value: Expr
    fallback: Expr
    span: Span


# ── References and navigation ────────────────────────────────────


class SelectionKind(Enum):
    ALL = "?["
    FIRST = "^["
    LAST = "$["


@dataclass(frozen=True)
class PropertyRef:
    name: str
    null_safe: bool
    span: Span


@dataclass(frozen=True)
class MethodRef:
    name: str
    args: list[Expr]
    null_safe: bool
    span: Span


@dataclass(frozen=True)
class FunctionRef:
    name: str
    args: list[Expr]
    span: Span


@dataclass(frozen=True)
class VariableRef:
    name: str
    span: Span


@dataclass(frozen=True)
class BeanRef:
    name: str
    factory: bool  # `&name` rather than `@name`
    span: Span


@dataclass(frozen=True)
class Indexer:
    index: Expr
    span: Span


@dataclass(frozen=True)
class Projection:
    expr: Expr
    null_safe: bool
    span: Span


@dataclass(frozen=True)
class Selection:
    expr: Expr
    kind: SelectionKind
    null_safe: bool
    span: Span


@dataclass(frozen=True)
class CompoundExpr:
    parts: list[Expr]  # start node followed by each continuation
    span: Span


# ── Collections ──────────────────────────────────────────────────


@dataclass(frozen=True)
class InlineList:
    elements: list[Expr]
    span: Span


@dataclass(frozen=True)
class InlineMap:
    items: list[Expr]  # key, value, key, value, ...
    span: Span

    @property
    def entries(self) -> list[tuple[Expr, Expr]]:
        return list(zip(self.items[::2], self.items[1::2]))


# ── Types and construction ───────────────────────────────────────


@dataclass(frozen=True)
class Identifier:
    name: str
    span: Span


@dataclass(frozen=True)
class QualifiedId:
    pieces: list[Identifier]
    span: Span

    @property
    def name(self) -> str:
        return ".".join(p.name for p in self.pieces)


@dataclass(frozen=True)
class TypeRef:
    name: QualifiedId
    dimensions: int
    span: Span


@dataclass(frozen=True)
class ConstructorRef:
    type_name: QualifiedId
    args: list[Expr]
    dimensions: list[Expr | None] | None  # None for a plain constructor call
    initializer: InlineList | InlineMap | None
    span: Span

    @property
    def is_array(self) -> bool:
        return self.dimensions is not None


Expr = Union[
    IntLit, LongLit, RealLit, FloatLit, StringLit, BooleanLit, NullLit,
    BinaryExpr, UnaryExpr, Assign, Ternary, Elvis,
    PropertyRef, MethodRef, FunctionRef, VariableRef, BeanRef,
    Indexer, Projection, Selection, CompoundExpr,
    InlineList, InlineMap,
    Identifier, QualifiedId, TypeRef, ConstructorRef,
]


# ── Traversal ────────────────────────────────────────────────────


def children(node: Expr) -> Iterator[Expr]:
    """Yield the direct child nodes of ``node`` in source order."""
    for f in dataclasses.fields(node):
        if f.name == "span":
            continue
        value = getattr(node, f.name)
        if isinstance(value, list):
            for item in value:
                if item is not None:
                    yield item
        elif dataclasses.is_dataclass(value):
            yield value


def walk(node: Expr) -> Iterator[Expr]:
    """Yield ``node`` and all of its descendants, depth-first, pre-order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(children(current))))
