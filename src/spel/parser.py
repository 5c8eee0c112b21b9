"""Parser for the expression language.

Transforms the lexer's token list into an AST by recursive descent, with one
method per precedence level (expression, logical-or, logical-and, relational,
sum, product, power/inc-dec, unary, primary). Every ``_start_node`` and
``_dotted_node`` alternative returns ``None`` when it does not match and
raises ``ExpressionSyntaxError`` once it has committed to a production.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import TypeVar

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
    SelectionKind,
    StringLit,
    Ternary,
    TypeRef,
    UnaryExpr,
    VariableRef,
    children,
)
from spel.config import ParserConfig
from spel.errors import ExpressionSyntaxError, Message
from spel.formatter import ExpressionFormatter
from spel.lexer import Lexer
from spel.source import cover
from spel.tokens import TOKEN_TEXT, Token, TokenKind, unquote

logger = logging.getLogger(__name__)

_N = TypeVar("_N")

_VALID_QUALIFIED_ID = re.compile(r"[\w$]+")

_INT_MAX = 2**31 - 1
_LONG_MAX = 2**63 - 1

_BINARY_OPS: dict[TokenKind, str] = {
    TokenKind.PLUS: '+', TokenKind.MINUS: '-', TokenKind.STAR: '*',
    TokenKind.DIV: '/', TokenKind.MOD: '%', TokenKind.POWER: '^',
    TokenKind.EQ: '==', TokenKind.NE: '!=',
    TokenKind.LT: '<', TokenKind.LE: '<=',
    TokenKind.GT: '>', TokenKind.GE: '>=',
    TokenKind.INSTANCEOF: 'instanceof', TokenKind.MATCHES: 'matches',
    TokenKind.BETWEEN: 'between',
    TokenKind.SYMBOLIC_AND: 'and', TokenKind.SYMBOLIC_OR: 'or',
}

_UNARY_OPS: dict[TokenKind, str] = {
    TokenKind.PLUS: '+', TokenKind.MINUS: '-', TokenKind.NOT: '!',
    TokenKind.INC: '++', TokenKind.DEC: '--',
}

_RELATIONAL_WORDS: dict[str, TokenKind] = {
    "instanceof": TokenKind.INSTANCEOF,
    "matches": TokenKind.MATCHES,
    "between": TokenKind.BETWEEN,
}

_SELECTION_KINDS: dict[TokenKind, SelectionKind] = {
    TokenKind.SELECT: SelectionKind.ALL,
    TokenKind.SELECT_FIRST: SelectionKind.FIRST,
    TokenKind.SELECT_LAST: SelectionKind.LAST,
}


def _describe(kind: TokenKind) -> str:
    return TOKEN_TEXT.get(kind, kind.name.lower())


@dataclass(frozen=True)
class ParsedExpression:
    """A parsed AST together with the text it came from."""

    expression: str
    ast: Expr

    def __str__(self) -> str:
        return ExpressionFormatter().format(self.ast)


class Parser:
    """Parses expression strings into ASTs.

    A parser resets its state on every ``parse`` call, so one instance can be
    reused sequentially. It must not be shared between threads.
    """

    def __init__(self, config: ParserConfig | None = None) -> None:
        self.config = config or ParserConfig()
        self.expression = ""
        self.tokens: list[Token] = []
        self.pos = 0
        self._depth = 0
        self._node_count = 0
        self._heights: dict[int, int] = {}

    def parse(self, expression: str) -> ParsedExpression:
        """Parse ``expression`` and return its AST."""
        limit = self.config.max_expression_length
        if limit is not None and len(expression) > limit:
            raise ExpressionSyntaxError(
                expression, 0, Message.MAX_EXPRESSION_LENGTH_EXCEEDED, len(expression), limit,
            )

        self.expression = expression
        self.tokens = Lexer(expression).lex()
        self.pos = 0
        self._depth = 0
        self._node_count = 0
        self._heights = {}

        try:
            ast = self._expression()
        except RecursionError:
            raise self._error(
                Message.NESTING_TOO_DEEP, self._position(), self.config.max_nesting_depth,
            ) from None

        tok = self._peek()
        if ast is None:
            if tok is None:
                raise self._error(Message.OUT_OF_DATA, len(expression))
            raise self._error(Message.NOT_EXPECTED_TOKEN, tok.span.start, "expression", tok.text())
        if tok is not None:
            raise self._error(Message.MORE_INPUT, tok.span.start, tok.text())

        logger.debug(
            "parsed %r: %d tokens, %d nodes", expression, len(self.tokens), self._node_count,
        )
        return ParsedExpression(expression, ast)

    # ── Token access ─────────────────────────────────────────────

    def _peek(self) -> Token | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _at(self, *kinds: TokenKind) -> bool:
        tok = self._peek()
        return tok is not None and tok.kind in kinds

    def _at_word(self, word: str) -> bool:
        """True if the current token is the identifier ``word``, ignoring case."""
        tok = self._peek()
        return (
            tok is not None
            and tok.kind == TokenKind.IDENTIFIER
            and tok.value is not None
            and tok.value.lower() == word
        )

    def _advance(self) -> Token:
        tok = self.tokens[self.pos]
        self.pos += 1
        return tok

    def _accept(self, kind: TokenKind) -> Token | None:
        """Consume and return the current token if it is of ``kind``."""
        if self._at(kind):
            return self._advance()
        return None

    def _expect(self, kind: TokenKind) -> Token:
        tok = self._peek()
        if tok is None:
            raise self._error(Message.OUT_OF_DATA, len(self.expression))
        if tok.kind != kind:
            raise self._error(
                Message.NOT_EXPECTED_TOKEN, tok.span.start, _describe(kind), tok.text(),
            )
        return self._advance()

    def _position(self) -> int:
        tok = self._peek()
        if tok is None:
            return len(self.expression)
        return tok.span.start

    # ── Bookkeeping ──────────────────────────────────────────────

    def _error(self, message: Message, position: int, *inserts: object) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(self.expression, position, message, *inserts)

    def _track(self, node: _N) -> _N:
        self._node_count += 1
        limit = self.config.max_node_count
        if limit is not None and self._node_count > limit:
            raise self._error(Message.MAX_NODE_COUNT_EXCEEDED, node.span.start, limit)

        # tree height, keyed by id; left-associative chains grow it without recursion
        height = 1 + max((self._heights.get(id(c), 1) for c in children(node)), default=0)
        if height > self.config.max_nesting_depth:
            raise self._error(
                Message.NESTING_TOO_DEEP, self._position(), self.config.max_nesting_depth,
            )
        self._heights[id(node)] = height
        return node

    @contextmanager
    def _nested(self) -> Iterator[None]:
        self._depth += 1
        try:
            if self._depth > self.config.max_nesting_depth:
                raise self._error(
                    Message.NESTING_TOO_DEEP, self._position(), self.config.max_nesting_depth,
                )
            yield
        finally:
            self._depth -= 1

    def _operand(self, op: Token, operand: Expr | None, message: Message) -> Expr:
        if operand is None:
            raise self._error(message, op.span.start)
        return operand

    def _binary(self, op: Token, left: Expr | None, right: Expr | None) -> BinaryExpr:
        left = self._operand(op, left, Message.LEFT_OPERAND_PROBLEM)
        right = self._operand(op, right, Message.RIGHT_OPERAND_PROBLEM)
        return self._track(BinaryExpr(
            left, _BINARY_OPS[op.kind], right, cover(left.span, right.span),
        ))

    def _required_expression(self) -> Expr:
        expr = self._expression()
        if expr is None:
            tok = self._peek()
            if tok is None:
                raise self._error(Message.OUT_OF_DATA, len(self.expression))
            raise self._error(Message.NOT_EXPECTED_TOKEN, tok.span.start, "expression", tok.text())
        return expr

    # ── Precedence levels ────────────────────────────────────────

    def _expression(self) -> Expr | None:
        """expression: logical-or ( '=' logical-or | '?:' expression
        | '?' expression ':' expression )?"""
        with self._nested():
            expr = self._logical_or()
            tok = self._peek()
            if tok is None:
                return expr

            if tok.kind == TokenKind.ASSIGN:
                self._advance()
                target = self._operand(tok, expr, Message.LEFT_OPERAND_PROBLEM)
                value = self._operand(tok, self._logical_or(), Message.RIGHT_OPERAND_PROBLEM)
                return self._track(Assign(target, value, cover(target.span, value.span)))

            if tok.kind == TokenKind.ELVIS:
                self._advance()
                value = self._operand(tok, expr, Message.LEFT_OPERAND_PROBLEM)
                fallback = self._operand(tok, self._expression(), Message.RIGHT_OPERAND_PROBLEM)
                return self._track(Elvis(value, fallback, cover(value.span, fallback.span)))

            if tok.kind == TokenKind.QMARK:
                self._advance()
                condition = self._operand(tok, expr, Message.LEFT_OPERAND_PROBLEM)
                if_true = self._operand(tok, self._expression(), Message.RIGHT_OPERAND_PROBLEM)
                colon = self._expect(TokenKind.COLON)
                if_false = self._operand(colon, self._expression(), Message.RIGHT_OPERAND_PROBLEM)
                return self._track(Ternary(
                    condition, if_true, if_false, cover(condition.span, if_false.span),
                ))

            return expr

    def _logical_or(self) -> Expr | None:
        expr = self._logical_and()
        while self._at_word("or") or self._at(TokenKind.SYMBOLIC_OR):
            tok = replace(self._advance(), kind=TokenKind.SYMBOLIC_OR)
            expr = self._binary(tok, expr, self._logical_and())
        return expr

    def _logical_and(self) -> Expr | None:
        expr = self._relational()
        while self._at_word("and") or self._at(TokenKind.SYMBOLIC_AND):
            tok = replace(self._advance(), kind=TokenKind.SYMBOLIC_AND)
            expr = self._binary(tok, expr, self._relational())
        return expr

    def _relational(self) -> Expr | None:
        """relational: sum (relational-operator sum)?

        Relational operators do not chain: `a < b < c` is an error.
        """
        expr = self._sum()
        op = self._relational_operator()
        if op is None:
            return expr
        self._advance()
        return self._binary(op, expr, self._sum())

    def _relational_operator(self) -> Token | None:
        tok = self._peek()
        if tok is None:
            return None
        if tok.is_numeric_relational:
            return tok
        if tok.kind == TokenKind.IDENTIFIER and tok.value is not None:
            kind = _RELATIONAL_WORDS.get(tok.value.lower())
            if kind is not None:
                return replace(tok, kind=kind)
        return None

    def _sum(self) -> Expr | None:
        expr = self._product()
        while self._at(TokenKind.PLUS, TokenKind.MINUS, TokenKind.INC):
            tok = self._advance()
            right = self._operand(tok, self._product(), Message.RIGHT_OPERAND_PROBLEM)
            if tok.kind == TokenKind.INC:
                # a second `++` after a postfix one has no binary meaning
                raise self._error(
                    Message.NOT_EXPECTED_TOKEN, tok.span.start, "binary operator", tok.text(),
                )
            expr = self._binary(tok, expr, right)
        return expr

    def _product(self) -> Expr | None:
        expr = self._power_inc_dec()
        while self._at(TokenKind.STAR, TokenKind.DIV, TokenKind.MOD):
            tok = self._advance()
            expr = self._binary(tok, expr, self._power_inc_dec())
        return expr

    def _power_inc_dec(self) -> Expr | None:
        """power: unary ('^' unary)? | unary ('++' | '--')?"""
        expr = self._unary()
        if self._at(TokenKind.POWER):
            tok = self._advance()
            return self._binary(tok, expr, self._unary())
        if expr is not None and self._at(TokenKind.INC, TokenKind.DEC):
            tok = self._advance()
            return self._track(UnaryExpr(
                _UNARY_OPS[tok.kind], expr, True, cover(expr.span, tok.span),
            ))
        return expr

    def _unary(self) -> Expr | None:
        if not self._at(*_UNARY_OPS):
            return self._primary()
        with self._nested():
            tok = self._advance()
            operand = self._operand(tok, self._unary(), Message.RIGHT_OPERAND_PROBLEM)
            return self._track(UnaryExpr(
                _UNARY_OPS[tok.kind], operand, False, cover(tok.span, operand.span),
            ))

    def _primary(self) -> Expr | None:
        """primary: start-node (('.' | '?.') dotted-node | indexer)*"""
        start = self._start_node()
        if start is None:
            return None
        parts = [start]
        node = self._node()
        while node is not None:
            parts.append(node)
            node = self._node()
        if len(parts) == 1:
            return start
        return self._track(CompoundExpr(parts, cover(start.span, parts[-1].span)))

    def _node(self) -> Expr | None:
        if self._at(TokenKind.DOT, TokenKind.SAFE_NAVI):
            return self._dotted_node()
        if self._at(TokenKind.LSQUARE):
            return self._indexer()
        return None

    # ── Start and dotted nodes ───────────────────────────────────

    def _start_node(self) -> Expr | None:
        alternatives: tuple[Callable[[], Expr | None], ...] = (
            self._literal,
            self._paren_expression,
            self._type_reference,
            self._null_reference,
            self._constructor_reference,
            self._method_or_property,
            self._function_or_var,
            self._bean_reference,
            self._projection,
            self._selection,
            self._indexer,
            self._inline_list_or_map,
        )
        for alternative in alternatives:
            node = alternative()
            if node is not None:
                return node
        return None

    def _dotted_node(self) -> Expr:
        dot = self._advance()  # '.' or '?.'
        null_safe = dot.kind == TokenKind.SAFE_NAVI
        alternatives: tuple[Callable[[], Expr | None], ...] = (
            lambda: self._method_or_property(null_safe),
            self._function_or_var,
            lambda: self._projection(null_safe),
            lambda: self._selection(null_safe),
        )
        for alternative in alternatives:
            node = alternative()
            if node is not None:
                return node
        tok = self._peek()
        if tok is None:
            raise self._error(Message.OUT_OF_DATA, dot.span.start)
        raise self._error(Message.UNEXPECTED_DATA_AFTER_DOT, dot.span.start, tok.text())

    def _literal(self) -> Expr | None:
        tok = self._peek()
        if tok is None:
            return None
        text = tok.value or ""
        node: Expr
        match tok.kind:
            case TokenKind.LITERAL_INT:
                node = self._int_literal(tok, text, 10)
            case TokenKind.LITERAL_HEXINT:
                node = self._int_literal(tok, text[2:], 16)
            case TokenKind.LITERAL_LONG:
                node = self._long_literal(tok, text[:-1], 10)
            case TokenKind.LITERAL_HEXLONG:
                node = self._long_literal(tok, text[2:-1], 16)
            case TokenKind.LITERAL_REAL | TokenKind.LITERAL_REAL_FLOAT:
                node = self._real_literal(tok, text)
            case TokenKind.LITERAL_STRING:
                node = StringLit(unquote(text), tok.span)
            case TokenKind.IDENTIFIER if text.lower() in ("true", "false"):
                node = BooleanLit(text.lower() == "true", tok.span)
            case _:
                return None
        self._advance()
        return self._track(node)

    def _int_literal(self, tok: Token, digits: str, radix: int) -> IntLit:
        value = int(digits, radix)
        if value > _INT_MAX:
            raise self._error(Message.NOT_AN_INTEGER, tok.span.start, tok.value)
        return IntLit(tok.value or digits, value, radix, tok.span)

    def _long_literal(self, tok: Token, digits: str, radix: int) -> LongLit:
        value = int(digits, radix)
        if value > _LONG_MAX:
            raise self._error(Message.NOT_A_LONG, tok.span.start, tok.value)
        return LongLit(tok.value or digits, value, radix, tok.span)

    def _real_literal(self, tok: Token, text: str) -> RealLit | FloatLit:
        value = float(text.rstrip("fFdD"))
        if tok.kind == TokenKind.LITERAL_REAL_FLOAT:
            return FloatLit(text, value, tok.span)
        return RealLit(text, value, tok.span)

    def _paren_expression(self) -> Expr | None:
        if self._accept(TokenKind.LPAREN) is None:
            return None
        expr = self._required_expression()
        self._expect(TokenKind.RPAREN)
        return expr

    def _type_reference(self) -> Expr | None:
        """T(qualified.Id[][]), or a plain property named T when used as `T]`."""
        tok = self._peek()
        if tok is None or tok.kind != TokenKind.IDENTIFIER or tok.value != "T":
            return None
        self._advance()
        if self._at(TokenKind.RSQUARE):
            return self._track(PropertyRef("T", False, tok.span))
        self._expect(TokenKind.LPAREN)
        name = self._qualified_id()
        dimensions = 0
        while self._accept(TokenKind.LSQUARE) is not None:
            self._expect(TokenKind.RSQUARE)
            dimensions += 1
        end = self._expect(TokenKind.RPAREN)
        return self._track(TypeRef(name, dimensions, cover(tok.span, end.span)))

    def _null_reference(self) -> Expr | None:
        if not self._at_word("null"):
            return None
        tok = self._advance()
        return self._track(NullLit(tok.span))

    def _constructor_reference(self) -> Expr | None:
        """new a.b.C(args), new int[3], new int[]{1, 2}, or `new]` as a map key."""
        if not self._at_word("new"):
            return None
        new_tok = self._advance()
        if self._at(TokenKind.RSQUARE):
            return self._track(PropertyRef(new_tok.value or "new", False, new_tok.span))

        type_name = self._qualified_id()

        if self._at(TokenKind.LSQUARE):
            dimensions: list[Expr | None] = []
            end = new_tok
            while self._accept(TokenKind.LSQUARE) is not None:
                if self._at(TokenKind.RSQUARE):
                    dimensions.append(None)
                else:
                    dimensions.append(self._required_expression())
                end = self._expect(TokenKind.RSQUARE)
            initializer = self._inline_list_or_map()
            last = initializer.span if initializer is not None else end.span
            return self._track(ConstructorRef(
                type_name, [], dimensions, initializer, cover(new_tok.span, last),
            ))

        if not self._at(TokenKind.LPAREN):
            raise self._error(Message.MISSING_CONSTRUCTOR_ARGS, self._position())
        args, close = self._arguments()
        return self._track(ConstructorRef(
            type_name, args, None, None, cover(new_tok.span, close.span),
        ))

    def _method_or_property(self, null_safe: bool = False) -> Expr | None:
        tok = self._peek()
        if tok is None or not tok.is_identifier_like:
            return None
        self._advance()
        name = tok.value or ""
        if self._at(TokenKind.LPAREN):
            args, close = self._arguments()
            return self._track(MethodRef(name, args, null_safe, cover(tok.span, close.span)))
        return self._track(PropertyRef(name, null_safe, tok.span))

    def _function_or_var(self) -> Expr | None:
        """#name(args) or #name"""
        hash_tok = self._accept(TokenKind.HASH)
        if hash_tok is None:
            return None
        name_tok = self._expect(TokenKind.IDENTIFIER)
        name = name_tok.value or ""
        if self._at(TokenKind.LPAREN):
            args, close = self._arguments()
            return self._track(FunctionRef(name, args, cover(hash_tok.span, close.span)))
        return self._track(VariableRef(name, cover(hash_tok.span, name_tok.span)))

    def _bean_reference(self) -> Expr | None:
        """@name, @'dotted.name' or &factoryName"""
        if not self._at(TokenKind.BEAN_REF, TokenKind.FACTORY_BEAN_REF):
            return None
        marker = self._advance()
        tok = self._peek()
        if tok is not None and tok.is_identifier_like:
            name = tok.value or ""
        elif tok is not None and tok.kind == TokenKind.LITERAL_STRING:
            name = (tok.value or "")[1:-1]
        else:
            raise self._error(Message.INVALID_BEAN_REFERENCE, marker.span.start, marker.text())
        self._advance()
        return self._track(BeanRef(
            name, marker.kind == TokenKind.FACTORY_BEAN_REF, cover(marker.span, tok.span),
        ))

    def _projection(self, null_safe: bool = False) -> Expr | None:
        """![expression]"""
        tok = self._accept(TokenKind.PROJECT)
        if tok is None:
            return None
        expr = self._expression()
        if expr is None:
            raise self._error(Message.MISSING_SELECTION_EXPRESSION, tok.span.start)
        close = self._expect(TokenKind.RSQUARE)
        return self._track(Projection(expr, null_safe, cover(tok.span, close.span)))

    def _selection(self, null_safe: bool = False) -> Expr | None:
        """?[expression], ^[expression] or $[expression]"""
        tok = self._peek()
        if tok is None or tok.kind not in _SELECTION_KINDS:
            return None
        self._advance()
        expr = self._expression()
        if expr is None:
            raise self._error(Message.MISSING_SELECTION_EXPRESSION, tok.span.start)
        close = self._expect(TokenKind.RSQUARE)
        return self._track(Selection(
            expr, _SELECTION_KINDS[tok.kind], null_safe, cover(tok.span, close.span),
        ))

    def _indexer(self) -> Expr | None:
        tok = self._accept(TokenKind.LSQUARE)
        if tok is None:
            return None
        index = self._required_expression()
        close = self._expect(TokenKind.RSQUARE)
        return self._track(Indexer(index, cover(tok.span, close.span)))

    def _inline_list_or_map(self) -> InlineList | InlineMap | None:
        """{}, {:}, {a, b, ...} or {k: v, ...}"""
        open_tok = self._accept(TokenKind.LCURLY)
        if open_tok is None:
            return None

        close = self._accept(TokenKind.RCURLY)
        if close is not None:
            return self._track(InlineList([], cover(open_tok.span, close.span)))

        if self._accept(TokenKind.COLON) is not None:
            close = self._expect(TokenKind.RCURLY)
            return self._track(InlineMap([], cover(open_tok.span, close.span)))

        first = self._required_expression()

        if self._at(TokenKind.RCURLY):
            close = self._advance()
            return self._track(InlineList([first], cover(open_tok.span, close.span)))

        if self._accept(TokenKind.COMMA) is not None:
            elements = [first, self._required_expression()]
            while self._accept(TokenKind.COMMA) is not None:
                elements.append(self._required_expression())
            close = self._expect(TokenKind.RCURLY)
            return self._track(InlineList(elements, cover(open_tok.span, close.span)))

        if self._accept(TokenKind.COLON) is not None:
            items = [first, self._required_expression()]
            while self._accept(TokenKind.COMMA) is not None:
                items.append(self._required_expression())
                self._expect(TokenKind.COLON)
                items.append(self._required_expression())
            close = self._expect(TokenKind.RCURLY)
            return self._track(InlineMap(items, cover(open_tok.span, close.span)))

        tok = self._peek()
        if tok is None:
            raise self._error(Message.OUT_OF_DATA, open_tok.span.start)
        raise self._error(Message.NOT_EXPECTED_TOKEN, tok.span.start, "}", tok.text())

    # ── Shared pieces ────────────────────────────────────────────

    def _arguments(self) -> tuple[list[Expr], Token]:
        """(arg, arg, ...) for methods, functions and constructors.

        A trailing comma before the closing parenthesis is allowed.
        """
        open_tok = self._advance()  # '('
        args: list[Expr] = []
        while True:
            tok = self._peek()
            if tok is None:
                raise self._error(Message.RUN_OUT_OF_ARGUMENTS, open_tok.span.start)
            if tok.kind != TokenKind.RPAREN:
                args.append(self._required_expression())
            if self._accept(TokenKind.COMMA) is None:
                break
        if self._peek() is None:
            raise self._error(Message.RUN_OUT_OF_ARGUMENTS, open_tok.span.start)
        close = self._expect(TokenKind.RPAREN)
        return args, close

    def _qualified_id(self) -> QualifiedId:
        """a.b.c inside T(...) and after `new`."""
        pieces: list[Identifier] = []
        tok = self._peek()
        while self._is_qualified_id_piece(tok):
            self._advance()
            if tok.kind != TokenKind.DOT:
                pieces.append(self._track(Identifier(tok.text(), tok.span)))
            tok = self._peek()
        if not pieces:
            if tok is None:
                raise self._error(Message.OUT_OF_DATA, len(self.expression))
            raise self._error(
                Message.NOT_EXPECTED_TOKEN, tok.span.start, "qualified ID", tok.text(),
            )
        return self._track(QualifiedId(pieces, cover(pieces[0].span, pieces[-1].span)))

    @staticmethod
    def _is_qualified_id_piece(tok: Token | None) -> bool:
        if tok is None or tok.kind == TokenKind.LITERAL_STRING:
            return False
        if tok.kind in (TokenKind.DOT, TokenKind.IDENTIFIER):
            return True
        return tok.value is not None and _VALID_QUALIFIED_ID.fullmatch(tok.value) is not None


def parse_expression(expression: str, config: ParserConfig | None = None) -> ParsedExpression:
    """Parse ``expression`` with a fresh parser."""
    return Parser(config).parse(expression)
