"""Token kinds and token representation for the expression lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spel.source import Span


class TokenKind(Enum):
    # Literals
    LITERAL_INT = auto()
    LITERAL_LONG = auto()
    LITERAL_HEXINT = auto()
    LITERAL_HEXLONG = auto()
    LITERAL_STRING = auto()
    LITERAL_REAL = auto()
    LITERAL_REAL_FLOAT = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()
    COLON = auto()
    HASH = auto()
    LSQUARE = auto()
    RSQUARE = auto()
    LCURLY = auto()
    RCURLY = auto()
    DOT = auto()

    # Identifiers
    IDENTIFIER = auto()

    # Arithmetic
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    DIV = auto()
    MOD = auto()
    POWER = auto()
    INC = auto()
    DEC = auto()

    # Relational
    GE = auto()
    GT = auto()
    LE = auto()
    LT = auto()
    EQ = auto()
    NE = auto()
    INSTANCEOF = auto()
    MATCHES = auto()
    BETWEEN = auto()

    # Logical
    NOT = auto()
    SYMBOLIC_AND = auto()
    SYMBOLIC_OR = auto()

    # Conditional and assignment
    ASSIGN = auto()
    QMARK = auto()
    ELVIS = auto()

    # Navigation and collections
    SAFE_NAVI = auto()
    PROJECT = auto()
    SELECT = auto()
    SELECT_FIRST = auto()
    SELECT_LAST = auto()

    # References
    BEAN_REF = auto()
    FACTORY_BEAN_REF = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str | None
    span: Span

    @property
    def is_identifier_like(self) -> bool:
        """True for identifiers and for textual operator aliases such as ``ne``."""
        if self.kind == TokenKind.IDENTIFIER:
            return True
        return self.kind in ALIASABLE_OPERATORS and self.value is not None

    @property
    def is_numeric_relational(self) -> bool:
        return self.kind in NUMERIC_RELATIONAL_OPERATORS

    def text(self) -> str:
        """The token's payload if it has one, otherwise its symbol."""
        if self.value is not None:
            return self.value
        return TOKEN_TEXT.get(self.kind, self.kind.name.lower())


TOKEN_TEXT: dict[TokenKind, str] = {
    TokenKind.LPAREN: "(",
    TokenKind.RPAREN: ")",
    TokenKind.COMMA: ",",
    TokenKind.COLON: ":",
    TokenKind.HASH: "#",
    TokenKind.LSQUARE: "[",
    TokenKind.RSQUARE: "]",
    TokenKind.LCURLY: "{",
    TokenKind.RCURLY: "}",
    TokenKind.DOT: ".",
    TokenKind.PLUS: "+",
    TokenKind.MINUS: "-",
    TokenKind.STAR: "*",
    TokenKind.DIV: "/",
    TokenKind.MOD: "%",
    TokenKind.POWER: "^",
    TokenKind.INC: "++",
    TokenKind.DEC: "--",
    TokenKind.GE: ">=",
    TokenKind.GT: ">",
    TokenKind.LE: "<=",
    TokenKind.LT: "<",
    TokenKind.EQ: "==",
    TokenKind.NE: "!=",
    TokenKind.INSTANCEOF: "instanceof",
    TokenKind.MATCHES: "matches",
    TokenKind.BETWEEN: "between",
    TokenKind.NOT: "!",
    TokenKind.SYMBOLIC_AND: "&&",
    TokenKind.SYMBOLIC_OR: "||",
    TokenKind.ASSIGN: "=",
    TokenKind.QMARK: "?",
    TokenKind.ELVIS: "?:",
    TokenKind.SAFE_NAVI: "?.",
    TokenKind.PROJECT: "![",
    TokenKind.SELECT: "?[",
    TokenKind.SELECT_FIRST: "^[",
    TokenKind.SELECT_LAST: "$[",
    TokenKind.BEAN_REF: "@",
    TokenKind.FACTORY_BEAN_REF: "&",
}

# Textual operator names, matched case-insensitively by the lexer.
# ``and``/``or`` are not here: the parser resolves them from identifiers.
ALTERNATIVE_OPERATOR_NAMES: dict[str, TokenKind] = {
    "DIV": TokenKind.DIV,
    "EQ": TokenKind.EQ,
    "GE": TokenKind.GE,
    "GT": TokenKind.GT,
    "LE": TokenKind.LE,
    "LT": TokenKind.LT,
    "MOD": TokenKind.MOD,
    "NE": TokenKind.NE,
    "NOT": TokenKind.NOT,
}

ALIASABLE_OPERATORS: frozenset[TokenKind] = frozenset(ALTERNATIVE_OPERATOR_NAMES.values())

NUMERIC_RELATIONAL_OPERATORS: frozenset[TokenKind] = frozenset({
    TokenKind.GE,
    TokenKind.GT,
    TokenKind.LE,
    TokenKind.LT,
    TokenKind.EQ,
    TokenKind.NE,
})

# Words the parser gives meaning to by exact (mostly case-insensitive) text.
KEYWORDS: tuple[str, ...] = (
    "and", "or", "true", "false", "null", "new", "T",
    "instanceof", "matches", "between",
)


def unquote(raw: str) -> str:
    """Strip the quotes from a string literal and collapse doubled quotes."""
    quote = raw[0]
    return raw[1:-1].replace(quote + quote, quote)
