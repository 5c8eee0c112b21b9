"""Lexer for the expression language.

Produces a flat list of tokens from expression text in a single left-to-right
pass. The lexer knows nothing about the grammar: keywords such as ``and``,
``null`` or ``new`` stay identifiers and are resolved by the parser.
"""

from __future__ import annotations

from spel.errors import LexicalError, Message
from spel.source import Span
from spel.tokens import ALTERNATIVE_OPERATOR_NAMES, Token, TokenKind

_DIGITS = "0123456789"
_HEX_DIGITS = "0123456789abcdefABCDEF"
_WHITESPACE = " \t\r\n"

# Two-character operators, preferred over their one-character prefixes.
_PAIR_TOKENS: dict[str, TokenKind] = {
    "++": TokenKind.INC,
    "--": TokenKind.DEC,
    "!=": TokenKind.NE,
    "![": TokenKind.PROJECT,
    "==": TokenKind.EQ,
    "&&": TokenKind.SYMBOLIC_AND,
    "||": TokenKind.SYMBOLIC_OR,
    "?[": TokenKind.SELECT,
    "?:": TokenKind.ELVIS,
    "?.": TokenKind.SAFE_NAVI,
    "^[": TokenKind.SELECT_FIRST,
    "$[": TokenKind.SELECT_LAST,
    ">=": TokenKind.GE,
    "<=": TokenKind.LE,
}

_SINGLE_TOKENS: dict[str, TokenKind] = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "/": TokenKind.DIV,
    "%": TokenKind.MOD,
    "^": TokenKind.POWER,
    ":": TokenKind.COLON,
    ".": TokenKind.DOT,
    ",": TokenKind.COMMA,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LSQUARE,
    "]": TokenKind.RSQUARE,
    "{": TokenKind.LCURLY,
    "}": TokenKind.RCURLY,
    "#": TokenKind.HASH,
    "@": TokenKind.BEAN_REF,
    "&": TokenKind.FACTORY_BEAN_REF,
    "!": TokenKind.NOT,
    "=": TokenKind.ASSIGN,
    "?": TokenKind.QMARK,
    ">": TokenKind.GT,
    "<": TokenKind.LT,
}


class Lexer:
    """Tokenizes an expression string."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0
        self.tokens: list[Token] = []

    def lex(self) -> list[Token]:
        """Tokenize the entire source and return the token list."""
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch.isalpha() or ch == '_':
                self._lex_identifier()
            elif ch == '$':
                if self._peek(1) == '[':
                    self._emit_pair(TokenKind.SELECT_LAST)
                else:
                    self._lex_identifier()
            elif ch in _DIGITS:
                self._lex_number()
            elif ch in _WHITESPACE:
                self.pos += 1
            elif ch == "'":
                self._lex_string("'", Message.NON_TERMINATING_QUOTED_STRING)
            elif ch == '"':
                self._lex_string('"', Message.NON_TERMINATING_DOUBLE_QUOTED_STRING)
            elif ch == '\\':
                raise self._error(Message.UNEXPECTED_ESCAPE_CHAR, self.pos)
            else:
                self._lex_operator_or_punct()
        return self.tokens

    # ── Helpers ───────────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    @staticmethod
    def _is_ident_char(ch: str) -> bool:
        return ch.isalpha() or ch in _DIGITS or ch == '_' or ch == '$'

    def _emit(self, kind: TokenKind, start: int, *, payload: bool = True) -> Token:
        value = self.source[start:self.pos] if payload else None
        tok = Token(kind, value, Span(start, self.pos))
        self.tokens.append(tok)
        return tok

    def _emit_pair(self, kind: TokenKind) -> None:
        start = self.pos
        self.pos += 2
        self._emit(kind, start, payload=False)

    def _error(self, message: Message, position: int, *inserts: object) -> LexicalError:
        return LexicalError(self.source, position, message, *inserts)

    # ── Strings ──────────────────────────────────────────────────

    def _lex_string(self, quote: str, unterminated: Message) -> None:
        start = self.pos
        self.pos += 1  # skip opening quote
        while True:
            if self.pos >= len(self.source):
                raise self._error(unterminated, start)
            if self.source[self.pos] == quote:
                if self._peek(1) == quote:
                    # doubled quote is an escaped quote
                    self.pos += 2
                    continue
                self.pos += 1
                break
            self.pos += 1
        self._emit(TokenKind.LITERAL_STRING, start)

    # ── Numbers ──────────────────────────────────────────────────

    def _lex_number(self) -> None:
        start = self.pos

        if self._peek() == '0' and self._peek(1) in ('x', 'X'):
            self._lex_hex_number(start)
            return

        while self._peek() in _DIGITS:
            self.pos += 1

        is_real = False
        if self._peek() == '.':
            dot = self.pos
            self.pos += 1
            while self._peek() in _DIGITS:
                self.pos += 1
            if self.pos == dot + 1:
                # `3.toString()`: the dot belongs to the next token
                self.pos = dot
                self._emit(TokenKind.LITERAL_INT, start)
                return
            is_real = True

        ch = self._peek()
        if ch in ('L', 'l'):
            if is_real:
                raise self._error(Message.REAL_CANNOT_BE_LONG, start)
            self.pos += 1
            self._emit(TokenKind.LITERAL_LONG, start)
            return

        if ch in ('e', 'E'):
            self.pos += 1
            if self._peek() in ('+', '-'):
                self.pos += 1
            exponent_start = self.pos
            while self._peek() in _DIGITS:
                self.pos += 1
            if self.pos == exponent_start:
                raise self._error(Message.NOT_A_REAL, start, self.source[start:self.pos])
            is_real = True
            ch = self._peek()

        if ch in ('f', 'F'):
            self.pos += 1
            self._emit(TokenKind.LITERAL_REAL_FLOAT, start)
        elif ch in ('d', 'D'):
            self.pos += 1
            self._emit(TokenKind.LITERAL_REAL, start)
        elif is_real:
            self._emit(TokenKind.LITERAL_REAL, start)
        else:
            self._emit(TokenKind.LITERAL_INT, start)

    def _lex_hex_number(self, start: int) -> None:
        self.pos += 2  # skip 0x
        while self._peek() in _HEX_DIGITS:
            self.pos += 1
        has_digits = self.pos > start + 2
        if self._peek() in ('L', 'l'):
            self.pos += 1
            if not has_digits:
                raise self._error(Message.NOT_A_LONG, start, self.source[start:self.pos])
            self._emit(TokenKind.LITERAL_HEXLONG, start)
            return
        if not has_digits:
            raise self._error(Message.NOT_AN_INTEGER, start, self.source[start:self.pos])
        self._emit(TokenKind.LITERAL_HEXINT, start)

    # ── Identifiers and textual operators ────────────────────────

    def _lex_identifier(self) -> None:
        start = self.pos
        self.pos += 1
        while self._is_ident_char(self._peek()):
            self.pos += 1
        word = self.source[start:self.pos]

        if len(word) in (2, 3):
            kind = ALTERNATIVE_OPERATOR_NAMES.get(word.upper())
            if kind is not None:
                self._emit(kind, start)
                return

        self._emit(TokenKind.IDENTIFIER, start)

    # ── Operators and punctuation ────────────────────────────────

    def _lex_operator_or_punct(self) -> None:
        ch = self.source[self.pos]

        kind = _PAIR_TOKENS.get(ch + self._peek(1))
        if kind is not None:
            self._emit_pair(kind)
            return

        if ch == '|':
            raise self._error(Message.MISSING_CHARACTER, self.pos, '|')

        kind = _SINGLE_TOKENS.get(ch)
        if kind is None:
            raise self._error(Message.UNSUPPORTED_CHARACTER, self.pos, ch, ord(ch))
        start = self.pos
        self.pos += 1
        self._emit(kind, start, payload=False)
