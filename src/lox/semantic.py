"""Static scope resolution for Lox ASTs."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List

from . import ast
from .errors import ResolutionError
from .token import Token

logger = logging.getLogger(__name__)


#bindings describe where the interpreter will find a referenced name
@dataclass(frozen=True, slots=True)
class VarBinding:
    name: str


#looked up by name in the outermost environment
@dataclass(frozen=True, slots=True)
class GlobalBinding(VarBinding):
    pass


#found exactly `depth` enclosing links away from the current environment
@dataclass(frozen=True, slots=True)
class LocalBinding(VarBinding):
    depth: int


#result of one resolution pass over a list of statements
@dataclass(slots=True)
class Resolution:
    statements: List[ast.Stmt]
    bindings: Dict[ast.Expr, VarBinding] = field(default_factory=dict)
    errors: List[ResolutionError] = field(default_factory=list)


#what kind of function body is being resolved
class FunctionKind(Enum):
    NONE = auto()
    FUNCTION = auto()
    METHOD = auto()
    INITIALIZER = auto()


class ClassKind(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


#individual lexical scopes map names to a "definition finished" flag
@dataclass(slots=True)
class _Scope:
    defined: Dict[str, bool] = field(default_factory=dict)


#computes scope distances for every variable reference and checks static rules
class Resolver:
    def __init__(self, statements: List[ast.Stmt]) -> None:
        self._statements = statements
        self._scopes: List[_Scope] = []
        self._bindings: Dict[ast.Expr, VarBinding] = {}
        self._errors: List[ResolutionError] = []
        self._current_function = FunctionKind.NONE
        self._current_class = ClassKind.NONE

    #top-level statements resolve independently so runaway nesting costs one error
    def resolve(self) -> Resolution:
        for stmt in self._statements:
            try:
                self._resolve_stmt(stmt)
            except RecursionError:
                self._errors.append(ResolutionError("program nests too deeply", stmt.span))
                self._scopes.clear()
                self._current_function = FunctionKind.NONE
                self._current_class = ClassKind.NONE
        logger.debug("resolved %d binding(s) with %d error(s)", len(self._bindings), len(self._errors))
        return Resolution(statements=self._statements, bindings=self._bindings, errors=self._errors)

    # Statements ----------------------------------------------------------------

    def _resolve_stmts(self, statements: List[ast.Stmt]) -> None:
        for stmt in statements:
            self._resolve_stmt(stmt)

    #dispatches to the appropriate resolver based on statement type
    def _resolve_stmt(self, stmt: ast.Stmt) -> None:
        if isinstance(stmt, ast.BlockStmt):
            self._push_scope()
            self._resolve_stmts(stmt.statements)
            self._pop_scope()
        elif isinstance(stmt, ast.VarDecl):
            self._declare(stmt.name)
            if stmt.initializer is not None:
                self._resolve_expr(stmt.initializer)
            self._define(stmt.name)
        elif isinstance(stmt, ast.FunctionDecl):
            #defined before the body so the function can recurse
            self._declare(stmt.name)
            self._define(stmt.name)
            self._resolve_function(stmt, FunctionKind.FUNCTION)
        elif isinstance(stmt, ast.ClassDecl):
            self._resolve_class(stmt)
        elif isinstance(stmt, ast.ExprStmt):
            self._resolve_expr(stmt.expr)
        elif isinstance(stmt, ast.PrintStmt):
            self._resolve_expr(stmt.expr)
        elif isinstance(stmt, ast.IfStmt):
            self._resolve_expr(stmt.condition)
            self._resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self._resolve_stmt(stmt.else_branch)
        elif isinstance(stmt, ast.WhileStmt):
            self._resolve_expr(stmt.condition)
            self._resolve_stmt(stmt.body)
        elif isinstance(stmt, ast.ReturnStmt):
            self._resolve_return(stmt)
        else:
            raise AssertionError(f"unexpected statement {stmt!r}")

    #a `super` scope wraps a `this` scope, which wraps every method
    def _resolve_class(self, stmt: ast.ClassDecl) -> None:
        enclosing_class = self._current_class
        self._current_class = ClassKind.CLASS
        self._declare(stmt.name)
        self._define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self._error(stmt.superclass.name, "a class can't inherit from itself")
            self._current_class = ClassKind.SUBCLASS
            self._resolve_expr(stmt.superclass)
            self._push_scope()
            self._scopes[-1].defined["super"] = True

        self._push_scope()
        self._scopes[-1].defined["this"] = True
        for method in stmt.methods:
            kind = FunctionKind.INITIALIZER if method.name.lexeme == "init" else FunctionKind.METHOD
            self._resolve_function(method, kind)
        self._pop_scope()

        if stmt.superclass is not None:
            self._pop_scope()
        self._current_class = enclosing_class

    def _resolve_return(self, stmt: ast.ReturnStmt) -> None:
        if self._current_function is FunctionKind.NONE:
            self._error(stmt.keyword, "can't return from top-level code")
        if stmt.value is not None:
            if self._current_function is FunctionKind.INITIALIZER:
                self._error(stmt.keyword, "can't return a value from an initializer")
            self._resolve_expr(stmt.value)

    #parameters and body locals share one scope, mirroring a call's environment
    def _resolve_function(self, function: ast.FunctionDecl | ast.FunctionExpr, kind: FunctionKind) -> None:
        enclosing_function = self._current_function
        self._current_function = kind
        self._push_scope()
        for param in function.params:
            self._declare(param)
            self._define(param)
        self._resolve_stmts(function.body)
        self._pop_scope()
        self._current_function = enclosing_function

    # Expressions ---------------------------------------------------------------

    def _resolve_expr(self, expr: ast.Expr) -> None:
        if isinstance(expr, ast.LiteralExpr):
            return
        if isinstance(expr, ast.VariableExpr):
            if self._scopes and self._scopes[-1].defined.get(expr.name.lexeme) is False:
                self._error(expr.name, "can't read local variable in its own initializer")
            self._resolve_local(expr, expr.name)
            return
        if isinstance(expr, ast.AssignExpr):
            self._resolve_expr(expr.value)
            self._resolve_local(expr, expr.name)
            return
        if isinstance(expr, (ast.BinaryExpr, ast.LogicalExpr)):
            self._resolve_expr(expr.left)
            self._resolve_expr(expr.right)
            return
        if isinstance(expr, ast.UnaryExpr):
            self._resolve_expr(expr.right)
            return
        if isinstance(expr, ast.TernaryExpr):
            self._resolve_expr(expr.condition)
            self._resolve_expr(expr.then_branch)
            self._resolve_expr(expr.else_branch)
            return
        if isinstance(expr, ast.GroupingExpr):
            self._resolve_expr(expr.expression)
            return
        if isinstance(expr, ast.CallExpr):
            self._resolve_expr(expr.callee)
            for argument in expr.arguments:
                self._resolve_expr(argument)
            return
        if isinstance(expr, ast.GetExpr):
            #property names are looked up dynamically
            self._resolve_expr(expr.object)
            return
        if isinstance(expr, ast.SetExpr):
            self._resolve_expr(expr.value)
            self._resolve_expr(expr.object)
            return
        if isinstance(expr, ast.ThisExpr):
            if self._current_class is ClassKind.NONE:
                self._error(expr.keyword, "can't use 'this' outside of a class")
                return
            self._resolve_local(expr, expr.keyword)
            return
        if isinstance(expr, ast.SuperExpr):
            if self._current_class is ClassKind.NONE:
                self._error(expr.keyword, "can't use 'super' outside of a class")
                return
            if self._current_class is not ClassKind.SUBCLASS:
                self._error(expr.keyword, "can't use 'super' in a class with no superclass")
                return
            self._resolve_local(expr, expr.keyword)
            return
        if isinstance(expr, ast.FunctionExpr):
            self._resolve_function(expr, FunctionKind.FUNCTION)
            return
        raise AssertionError(f"unexpected expression {expr!r}")

    # Scopes --------------------------------------------------------------------

    #manages the scope stack whenever we enter or leave a block
    def _push_scope(self) -> None:
        self._scopes.append(_Scope())

    def _pop_scope(self) -> None:
        self._scopes.pop()

    #globals are not tracked; the global scope allows redeclaration
    def _declare(self, name: Token) -> None:
        if not self._scopes:
            return
        scope = self._scopes[-1]
        if name.lexeme in scope.defined:
            self._error(name, f"already a variable named '{name.lexeme}' in this scope")
        scope.defined[name.lexeme] = False

    def _define(self, name: Token) -> None:
        if not self._scopes:
            return
        self._scopes[-1].defined[name.lexeme] = True

    #nearest enclosing scope wins; anything not found is global
    def _resolve_local(self, expr: ast.Expr, name: Token) -> None:
        for depth, scope in enumerate(reversed(self._scopes)):
            if name.lexeme in scope.defined:
                self._bindings[expr] = LocalBinding(name=name.lexeme, depth=depth)
                return
        self._bindings[expr] = GlobalBinding(name=name.lexeme)

    def _error(self, token: Token, message: str) -> None:
        self._errors.append(ResolutionError(message, token.span))


#convenience wrapper mirroring `scan` and `parse`
def resolve(statements: List[ast.Stmt]) -> Resolution:
    return Resolver(statements).resolve()
