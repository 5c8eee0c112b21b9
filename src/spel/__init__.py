"""spel: tokenizer and parser for a Spring-style expression language."""

from __future__ import annotations

__version__ = "0.1.0"

from spel.config import ParserConfig
from spel.errors import ExpressionError, ExpressionSyntaxError, LexicalError, Message
from spel.parser import ParsedExpression, Parser, parse_expression

__all__ = [
    "ExpressionError",
    "ExpressionSyntaxError",
    "LexicalError",
    "Message",
    "ParsedExpression",
    "Parser",
    "ParserConfig",
    "__version__",
    "parse_expression",
]
