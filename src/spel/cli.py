"""spel command line interface."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from spel import __version__
from spel.config import SpelConfig, discover_config, load_config
from spel.errors import DiagnosticRenderer, ExpressionError
from spel.formatter import ExpressionFormatter, dump
from spel.lexer import Lexer
from spel.parser import ParsedExpression, Parser
from spel.source import SourceText

EXPRESSION_SUFFIX = ".spel"


def _config(ctx: click.Context) -> SpelConfig:
    return ctx.find_object(SpelConfig) or SpelConfig()


def _report(config: SpelConfig, err: ExpressionError, source: SourceText) -> None:
    renderer = DiagnosticRenderer(color=config.output.color)
    click.echo(renderer.render(err.to_diagnostic(), source), err=True)


def _read_expression(expression: str | None) -> SourceText:
    if expression is None or expression == "-":
        return SourceText(sys.stdin.read(), "<stdin>")
    return SourceText(expression)


def _parse_or_exit(config: SpelConfig, source: SourceText) -> ParsedExpression:
    try:
        return Parser(config.parser).parse(source.text)
    except ExpressionError as e:
        _report(config, e, source)
        raise SystemExit(1)


@click.group()
@click.version_option(__version__, prog_name="spel")
@click.option(
    "--config", "config_path", type=click.Path(exists=True, dir_okay=False),
    help="Use this spel.toml instead of searching for one.",
)
@click.option("--color/--no-color", default=None, help="Force colored diagnostics on or off.")
@click.option("-v", "--verbose", is_flag=True, help="Log parser activity to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, color: bool | None, verbose: bool) -> None:
    """Tokenize, parse and format SpEL-style expressions."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    config = load_config(Path(config_path)) if config_path else discover_config()
    if color is not None:
        config.output.color = color
    ctx.obj = config


@main.command()
@click.argument("expression", required=False)
@click.pass_context
def tokens(ctx: click.Context, expression: str | None) -> None:
    """Print the tokens of EXPRESSION (or stdin), one per line."""
    config = _config(ctx)
    source = _read_expression(expression)
    try:
        toks = Lexer(source.text).lex()
    except ExpressionError as e:
        _report(config, e, source)
        raise SystemExit(1)
    for tok in toks:
        value = "" if tok.value is None else f" {tok.value}"
        click.echo(f"{tok.span} {tok.kind.name}{value}")


@main.command()
@click.argument("expression", required=False)
@click.pass_context
def parse(ctx: click.Context, expression: str | None) -> None:
    """Print the AST of EXPRESSION (or stdin)."""
    config = _config(ctx)
    parsed = _parse_or_exit(config, _read_expression(expression))
    click.echo(dump(parsed.ast))


@main.command(name="format")
@click.argument("expression", required=False)
@click.option("--check", is_flag=True, help="Exit with status 1 if the input is not canonical.")
@click.pass_context
def format_cmd(ctx: click.Context, expression: str | None, check: bool) -> None:
    """Print EXPRESSION (or stdin) in canonical form."""
    config = _config(ctx)
    source = _read_expression(expression)
    parsed = _parse_or_exit(config, source)
    formatted = ExpressionFormatter().format(parsed.ast)
    if check:
        if formatted != source.text.strip():
            click.echo(f"would reformat {source.name}", err=True)
            raise SystemExit(1)
        return
    click.echo(formatted)


@main.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@click.pass_context
def check(ctx: click.Context, paths: tuple[str, ...]) -> None:
    """Parse expression files; each file holds one expression.

    Directories are searched recursively for *.spel files.
    """
    config = _config(ctx)
    files: list[Path] = []
    for path in map(Path, paths):
        if path.is_dir():
            files.extend(sorted(path.rglob(f"*{EXPRESSION_SUFFIX}")))
        else:
            files.append(path)

    if not files:
        click.echo(f"warning: no {EXPRESSION_SUFFIX} files found", err=True)
        return

    parser = Parser(config.parser)
    failures = 0
    for file in files:
        source = SourceText.from_path(file)
        try:
            parser.parse(source.text)
        except ExpressionError as e:
            failures += 1
            _report(config, e, source)

    if failures:
        click.echo(f"{failures} of {len(files)} expressions failed to parse", err=True)
        raise SystemExit(1)
    click.echo(f"checked {len(files)} expressions, no errors")


@main.command()
def lsp() -> None:
    """Start the expression language server."""
    from spel.lsp import main as lsp_main

    lsp_main()
