"""Command-line entry point for Lox."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from . import ast
from .errors import LoxError, LoxRuntimeError, StaticErrors
from .interpreter import Interpreter
from .lexer import scan
from .parser import Parser, parse
from .printer import dump_statements, format_token
from .semantic import Resolution, resolve
from .token import TokenType

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STATIC_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_RUNTIME_ERROR = 70

DEFAULT_AST_OUTPUT = "ast.txt"
RECURSION_LIMIT = 10_000


#pipelines lexing->parsing->resolution; any static error stops here
def analyze(source: str) -> Resolution:
    tokens, lex_errors = scan(source)
    statements, parse_errors = parse(tokens)
    errors: List[LoxError] = [*lex_errors, *parse_errors]
    if errors:
        raise StaticErrors(errors)
    resolution = resolve(statements)
    if resolution.errors:
        raise StaticErrors(resolution.errors)
    return resolution


#REPL input without a semicolon may be a bare expression whose value is shown
def analyze_expression(source: str) -> Optional[Resolution]:
    tokens, lex_errors = scan(source)
    if lex_errors or any(token.type is TokenType.SEMICOLON for token in tokens):
        return None
    parser = Parser(tokens)
    try:
        expr = parser.parse_expression()
    except LoxError:
        return None
    if parser.errors:
        return None
    resolution = resolve([ast.PrintStmt(span=expr.span, expr=expr)])
    if resolution.errors:
        return None
    return resolution


#executes an analyzed program, reporting a runtime error if one escapes
def execute(resolution: Resolution, interpreter: Interpreter, err: TextIO) -> int:
    interpreter.resolve(resolution.bindings)
    try:
        interpreter.interpret(resolution.statements)
    except LoxRuntimeError as error:
        print(error.format(), file=err)
        return EXIT_RUNTIME_ERROR
    return EXIT_OK


#runs one source text against `interpreter`, printing diagnostics to `err`
def run_source(source: str, interpreter: Interpreter, err: TextIO) -> int:
    try:
        resolution = analyze(source)
    except StaticErrors as error:
        print(error.format(), file=err)
        return EXIT_STATIC_ERROR
    return execute(resolution, interpreter, err)


#unbalanced braces mean the statement continues on the next line
def needs_more_input(source: str) -> bool:
    tokens, _ = scan(source)
    depth = 0
    for token in tokens:
        if token.type is TokenType.LEFT_BRACE:
            depth += 1
        elif token.type is TokenType.RIGHT_BRACE:
            depth -= 1
    return depth > 0


#one interpreter, and so one global environment, for the whole session
def run_prompt(interpreter: Interpreter, stdin: TextIO, stdout: TextIO, err: TextIO) -> int:
    buffer: List[str] = []
    while True:
        stdout.write("... " if buffer else "> ")
        stdout.flush()
        line = stdin.readline()
        if not line:
            break
        buffer.append(line)
        source = "".join(buffer)
        if not source.strip():
            buffer.clear()
            continue
        if needs_more_input(source):
            continue
        buffer.clear()
        _run_repl_input(source, interpreter, err)
    if buffer:
        _run_repl_input("".join(buffer), interpreter, err)
    stdout.write("\n")
    return EXIT_OK


def _run_repl_input(source: str, interpreter: Interpreter, err: TextIO) -> None:
    resolution = analyze_expression(source)
    if resolution is not None:
        execute(resolution, interpreter, err)
    else:
        run_source(source, interpreter, err)


#loads a script from disk, or from stdin when the path is `-`
def read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


#handles `lox run [path]`
def cmd_run(args: argparse.Namespace) -> int:
    sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))
    interpreter = Interpreter(stream=sys.stdout, trace=args.trace)
    if args.source is None:
        return run_prompt(interpreter, sys.stdin, sys.stdout, sys.stderr)
    try:
        source = read_source(args.source)
    except OSError as error:
        print(f"cannot read {args.source}: {error.strerror or error}", file=sys.stderr)
        return EXIT_NO_INPUT
    return run_source(source, interpreter, sys.stderr)


#prints every token without parsing
def cmd_show_tokens(args: argparse.Namespace) -> int:
    try:
        source = read_source(args.source)
    except OSError as error:
        print(f"cannot read {args.source}: {error.strerror or error}", file=sys.stderr)
        return EXIT_NO_INPUT
    tokens, errors = scan(source)
    for token in tokens:
        print(format_token(token))
    for error in errors:
        print(error.format(), file=sys.stderr)
    return EXIT_STATIC_ERROR if errors else EXIT_OK


#writes the (possibly partial) syntax tree to a file without executing
def cmd_show_ast(args: argparse.Namespace) -> int:
    try:
        source = read_source(args.source)
    except OSError as error:
        print(f"cannot read {args.source}: {error.strerror or error}", file=sys.stderr)
        return EXIT_NO_INPUT
    tokens, lex_errors = scan(source)
    statements, parse_errors = parse(tokens)
    output = Path(args.output or DEFAULT_AST_OUTPUT)
    output.write_text(dump_statements(statements) + "\n", encoding="utf-8")
    logger.info("wrote syntax tree to %s", output)
    errors: List[LoxError] = [*lex_errors, *parse_errors]
    for error in errors:
        print(error.format(), file=sys.stderr)
    return EXIT_STATIC_ERROR if errors else EXIT_OK


#--verbose shows every stage's log; --trace shows only executed statements
def configure_logging(verbose: bool, trace: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="[%(name)s] %(message)s", stream=sys.stderr)
    elif trace:
        logging.basicConfig(level=logging.WARNING, format="[trace] %(message)s", stream=sys.stderr)
        logging.getLogger("lox.interpreter").setLevel(logging.DEBUG)


#configures the CLI surface across run/show-tokens/show-ast
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lox", description="Lox language tools")
    parser.add_argument("-v", "--verbose", action="store_true", help="log pipeline stages to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_run = subparsers.add_parser("run", help="run a script, or start a REPL without one")
    p_run.add_argument("source", nargs="?", help="path to source file")
    p_run.add_argument("--trace", action="store_true", help="log each executed statement")
    p_run.set_defaults(func=cmd_run)

    p_tokens = subparsers.add_parser("show-tokens", help="print the token stream")
    p_tokens.add_argument("source", help="path to source file, or '-' for stdin")
    p_tokens.set_defaults(func=cmd_show_tokens)

    p_ast = subparsers.add_parser("show-ast", help="write the syntax tree to a file")
    p_ast.add_argument("source", help="path to source file, or '-' for stdin")
    p_ast.add_argument("output", nargs="?", help=f"output path (default: {DEFAULT_AST_OUTPUT})")
    p_ast.set_defaults(func=cmd_show_ast)

    return parser


#entry point used by both console script and module execution
def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose, getattr(args, "trace", False))
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
