"""Shared test helpers for the expression parser test suite."""

from __future__ import annotations

import pytest

from spel.ast_nodes import Expr
from spel.config import ParserConfig
from spel.errors import ExpressionError, Message
from spel.parser import Parser


def parse(expression: str, **limits: int | None) -> Expr:
    """Parse expression and return the AST root."""
    return Parser(ParserConfig(**limits)).parse(expression).ast


def parse_fails(expression: str, message: Message, **limits: int | None) -> ExpressionError:
    """Parse expression, asserting it fails with the given message."""
    with pytest.raises(ExpressionError) as exc_info:
        parse(expression, **limits)
    err = exc_info.value
    assert err.message is message, (
        f"Expected {message.name} but got {err.message.name}: {err}"
    )
    return err
