"""Lox: a small tree-walking scripting language interpreter."""

import logging

#makes package exports explicit for downstream imports
from . import ast, environment, errors, interpreter, lexer, parser, printer, runtime, semantic, token

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ast",
    "environment",
    "errors",
    "interpreter",
    "lexer",
    "parser",
    "printer",
    "runtime",
    "semantic",
    "token",
]
