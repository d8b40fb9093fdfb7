"""Abstract syntax tree definitions for Lox.

Nodes compare and hash by identity (``eq=False``): the resolver keys its
binding table by node, and two textually identical references at different
positions must resolve independently. Nodes are also weakly referenceable so
the interpreter can drop the bindings of code that is no longer reachable.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .errors import SourceSpan
from .token import Token


#notes that every AST node tracks a span for diagnostics
@dataclass(slots=True, eq=False, weakref_slot=True)
class Node:
    span: SourceSpan

    @property
    def line(self) -> int:
        return self.span.start.line


# Expressions ------------------------------------------------------------------


#expressions share the base `Node` to carry spans
@dataclass(slots=True, eq=False)
class Expr(Node):
    pass


#number, string, boolean, and nil literals store the host value directly
@dataclass(slots=True, eq=False)
class LiteralExpr(Expr):
    value: float | str | bool | None


#variable references keep the name token for resolution and error reporting
@dataclass(slots=True, eq=False)
class VariableExpr(Expr):
    name: Token


@dataclass(slots=True, eq=False)
class AssignExpr(Expr):
    name: Token
    value: Expr


#binary operations keep the operator token for dispatch and line numbers
@dataclass(slots=True, eq=False)
class BinaryExpr(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(slots=True, eq=False)
class UnaryExpr(Expr):
    operator: Token
    right: Expr


#`and`/`or` short-circuit, so they are kept apart from arithmetic
@dataclass(slots=True, eq=False)
class LogicalExpr(Expr):
    left: Expr
    operator: Token
    right: Expr


#`condition ? then_branch : else_branch`
@dataclass(slots=True, eq=False)
class TernaryExpr(Expr):
    condition: Expr
    then_branch: Expr
    else_branch: Expr


#calls remember the closing paren so runtime errors point at the call site
@dataclass(slots=True, eq=False)
class CallExpr(Expr):
    callee: Expr
    paren: Token
    arguments: List[Expr] = field(default_factory=list)


@dataclass(slots=True, eq=False)
class GetExpr(Expr):
    object: Expr
    name: Token


@dataclass(slots=True, eq=False)
class SetExpr(Expr):
    object: Expr
    name: Token
    value: Expr


@dataclass(slots=True, eq=False)
class ThisExpr(Expr):
    keyword: Token


@dataclass(slots=True, eq=False)
class SuperExpr(Expr):
    keyword: Token
    method: Token


@dataclass(slots=True, eq=False)
class GroupingExpr(Expr):
    expression: Expr


#anonymous `fn (params) { body }` expressions
@dataclass(slots=True, eq=False)
class FunctionExpr(Expr):
    params: List[Token] = field(default_factory=list)
    body: List["Stmt"] = field(default_factory=list)


# Statements -------------------------------------------------------------------


#common base for all statements allowing polymorphic handling
@dataclass(slots=True, eq=False)
class Stmt(Node):
    pass


#expression statements preserve results solely for side effects
@dataclass(slots=True, eq=False)
class ExprStmt(Stmt):
    expr: Expr


#represents `print` commands in the language
@dataclass(slots=True, eq=False)
class PrintStmt(Stmt):
    expr: Expr


#`var name = initializer;` where the initializer is optional
@dataclass(slots=True, eq=False)
class VarDecl(Stmt):
    name: Token
    initializer: Expr | None = None


#container for zero or more statements with its own scope
@dataclass(slots=True, eq=False)
class BlockStmt(Stmt):
    statements: List[Stmt] = field(default_factory=list)


#classic `if` syntax with optional `else` branch
@dataclass(slots=True, eq=False)
class IfStmt(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Stmt | None = None


#`while` loops hold the condition and body statement; `for` is lowered to this
@dataclass(slots=True, eq=False)
class WhileStmt(Stmt):
    condition: Expr
    body: Stmt


#named functions and class methods share this node
@dataclass(slots=True, eq=False)
class FunctionDecl(Stmt):
    name: Token
    params: List[Token] = field(default_factory=list)
    body: List[Stmt] = field(default_factory=list)


#the value is optional; a bare `return;` yields nil
@dataclass(slots=True, eq=False)
class ReturnStmt(Stmt):
    keyword: Token
    value: Expr | None = None


#classes name an optional superclass and an ordered list of methods
@dataclass(slots=True, eq=False)
class ClassDecl(Stmt):
    name: Token
    superclass: VariableExpr | None = None
    methods: List[FunctionDecl] = field(default_factory=list)
