"""Error types, message catalog and Rust-style colored diagnostic rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from spel.source import Span

if TYPE_CHECKING:
    from spel.source import SourceText


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


class Message(Enum):
    """Every way lexing or parsing can fail, with a stable code."""

    # Lexical
    NON_TERMINATING_QUOTED_STRING = ("E101", "cannot find terminating ' for string")
    NON_TERMINATING_DOUBLE_QUOTED_STRING = ("E102", 'cannot find terminating " for string')
    UNEXPECTED_ESCAPE_CHAR = ("E103", "unexpected escape character")
    UNSUPPORTED_CHARACTER = ("E104", "unsupported character {0!r} ({1}) encountered in expression")
    MISSING_CHARACTER = ("E105", "missing expected character {0!r}")
    REAL_CANNOT_BE_LONG = ("E106", "real number cannot be suffixed with a long (L or l) suffix")
    NOT_AN_INTEGER = ("E107", "the value {0!r} cannot be parsed as an int")
    NOT_A_LONG = ("E108", "the value {0!r} cannot be parsed as a long")
    NOT_A_REAL = ("E109", "the value {0!r} cannot be parsed as a real number")

    # Syntax
    OUT_OF_DATA = ("E201", "unexpectedly ran out of input")
    NOT_EXPECTED_TOKEN = ("E202", "unexpected token: expected {0!r} but was {1!r}")
    UNEXPECTED_DATA_AFTER_DOT = ("E203", "unexpected data after '.': {0!r}")
    MORE_INPUT = ("E204", "after parsing a valid expression, there is still more data: {0!r}")
    LEFT_OPERAND_PROBLEM = ("E205", "problem parsing left operand")
    RIGHT_OPERAND_PROBLEM = ("E206", "problem parsing right operand")
    MISSING_SELECTION_EXPRESSION = ("E207", "a required selection expression has not been specified")
    MISSING_CONSTRUCTOR_ARGS = ("E208", "the arguments '(...)' for the constructor call are missing")
    RUN_OUT_OF_ARGUMENTS = ("E209", "unexpectedly ran out of arguments")
    INVALID_BEAN_REFERENCE = ("E210", "expected a bean name or quoted bean name after {0!r}")
    MAX_EXPRESSION_LENGTH_EXCEEDED = (
        "E211", "expression is {0} characters long, exceeding the limit of {1}",
    )
    MAX_NODE_COUNT_EXCEEDED = ("E212", "expression has more than {0} nodes")
    NESTING_TOO_DEEP = ("E213", "expression nesting too deep (limit {0})")

    def __init__(self, code: str, template: str) -> None:
        self.code = code
        self.template = template

    def format(self, *inserts: object) -> str:
        return self.template.format(*inserts)


# Guard messages and the `[parser]` key in spel.toml that sets each limit
_LIMIT_KEYS = {
    Message.MAX_EXPRESSION_LENGTH_EXCEEDED: "max_expression_length",
    Message.MAX_NODE_COUNT_EXCEEDED: "max_node_count",
    Message.NESTING_TOO_DEEP: "max_nesting_depth",
}


# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",    # bold red
    Severity.WARNING: "\033[1;33m",  # bold yellow
    Severity.NOTE: "\033[1;36m",     # bold cyan
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class DiagnosticLabel:
    """Points to a specific source location."""

    span: Span
    message: str


@dataclass
class Diagnostic:
    """A single diagnostic message with optional labels and notes."""

    severity: Severity
    code: str
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


class ExpressionError(Exception):
    """A lexing or parsing failure at a character offset in an expression."""

    family = "parse"

    def __init__(
        self,
        expression: str,
        position: int,
        message: Message,
        *inserts: object,
    ) -> None:
        self.expression = expression
        self.position = position
        self.message = message
        self.inserts = inserts
        super().__init__(f"{message.code} ({self.family}) at position {position}: {self.detail}")

    @property
    def code(self) -> str:
        return self.message.code

    @property
    def detail(self) -> str:
        return self.message.format(*self.inserts)

    def to_diagnostic(self) -> Diagnostic:
        span = Span(self.position, self.position + 1)
        notes: list[str] = []
        key = _LIMIT_KEYS.get(self.message)
        if key is not None:
            notes.append(f"the limit is set by `{key}` in the [parser] table of spel.toml")
        return Diagnostic(
            severity=Severity.ERROR,
            code=self.code,
            message=self.detail,
            labels=[DiagnosticLabel(span=span, message="")],
            notes=notes,
        )


class LexicalError(ExpressionError):
    """Raised by the lexer."""

    family = "lexical"


class ExpressionSyntaxError(ExpressionError):
    """Raised by the parser."""

    family = "syntax"


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def render(self, diag: Diagnostic, source: SourceText) -> str:
        lines: list[str] = []
        sev = diag.severity
        color = _COLORS[sev]

        # Header: error[E206]: message
        lines.append(
            f"{self._c(color)}{sev.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        for label in diag.labels:
            line_num, col = source.location(label.span.start)
            lines.append(
                f"  {self._c(_BLUE)}-->{self._c(_RESET)} {source.name}:{line_num}:{col}"
            )
            gutter = f"{line_num:>4}"
            lines.append(f"  {self._c(_BLUE)}   |{self._c(_RESET)}")
            lines.append(
                f"  {self._c(_BLUE)}{gutter} |{self._c(_RESET)} {source.line_at(line_num)}"
            )

            # Carets stop at the end of the first line of the span
            end_line, end_col = source.location(label.span.end)
            if end_line != line_num:
                end_col = len(source.line_at(line_num)) + 1
            caret_len = max(1, end_col - col)
            padding = " " * (col - 1)
            lines.append(
                f"  {self._c(_BLUE)}   |{self._c(_RESET)} "
                f"{padding}{self._c(color)}{'^' * caret_len}{self._c(_RESET)}"
            )

            if label.message:
                lines.append(
                    f"  {self._c(_BLUE)}   |{self._c(_RESET)}   "
                    f"{self._c(color)}{label.message}{self._c(_RESET)}"
                )

        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        return "\n".join(lines)
