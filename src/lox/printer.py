"""Human-readable dumps of tokens and syntax trees for the debug commands."""
from __future__ import annotations

from typing import List

from . import ast
from .runtime import stringify
from .token import Token

_INDENT = "  "


#one line per token: kind, lexeme, and source line
def format_token(token: Token) -> str:
    return f"{token.type.name:<14} {token.lexeme!r:<20} line {token.line}"


#renders a (possibly partial) program as an indented tree
def dump_statements(statements: List[ast.Stmt]) -> str:
    lines: List[str] = []
    for stmt in statements:
        _dump_stmt(stmt, 0, lines)
    return "\n".join(lines)


#expressions render on one line in prefix form
def format_expr(expr: ast.Expr) -> str:
    if isinstance(expr, ast.LiteralExpr):
        if isinstance(expr.value, str):
            return f'"{expr.value}"'
        return stringify(expr.value)
    if isinstance(expr, ast.VariableExpr):
        return expr.name.lexeme
    if isinstance(expr, ast.AssignExpr):
        return f"(= {expr.name.lexeme} {format_expr(expr.value)})"
    if isinstance(expr, (ast.BinaryExpr, ast.LogicalExpr)):
        return f"({expr.operator.lexeme} {format_expr(expr.left)} {format_expr(expr.right)})"
    if isinstance(expr, ast.UnaryExpr):
        return f"({expr.operator.lexeme} {format_expr(expr.right)})"
    if isinstance(expr, ast.TernaryExpr):
        parts = (format_expr(expr.condition), format_expr(expr.then_branch), format_expr(expr.else_branch))
        return "(?: " + " ".join(parts) + ")"
    if isinstance(expr, ast.GroupingExpr):
        return f"(group {format_expr(expr.expression)})"
    if isinstance(expr, ast.CallExpr):
        args = "".join(" " + format_expr(argument) for argument in expr.arguments)
        return f"(call {format_expr(expr.callee)}{args})"
    if isinstance(expr, ast.GetExpr):
        return f"(. {format_expr(expr.object)} {expr.name.lexeme})"
    if isinstance(expr, ast.SetExpr):
        return f"(.= {format_expr(expr.object)} {expr.name.lexeme} {format_expr(expr.value)})"
    if isinstance(expr, ast.ThisExpr):
        return "this"
    if isinstance(expr, ast.SuperExpr):
        return f"(super {expr.method.lexeme})"
    if isinstance(expr, ast.FunctionExpr):
        params = " ".join(param.lexeme for param in expr.params)
        return f"(fn ({params}) <{len(expr.body)} stmt(s)>)"
    raise AssertionError(f"unexpected expression {expr!r}")


#handles statement-specific formatting, recursing into nested bodies
def _dump_stmt(stmt: ast.Stmt, depth: int, lines: List[str]) -> None:
    pad = _INDENT * depth
    prefix = f"{pad}[line {stmt.line}] "
    if isinstance(stmt, ast.ExprStmt):
        lines.append(f"{prefix}Expr {format_expr(stmt.expr)}")
    elif isinstance(stmt, ast.PrintStmt):
        lines.append(f"{prefix}Print {format_expr(stmt.expr)}")
    elif isinstance(stmt, ast.VarDecl):
        init = "" if stmt.initializer is None else f" = {format_expr(stmt.initializer)}"
        lines.append(f"{prefix}Var {stmt.name.lexeme}{init}")
    elif isinstance(stmt, ast.BlockStmt):
        lines.append(f"{prefix}Block")
        for child in stmt.statements:
            _dump_stmt(child, depth + 1, lines)
    elif isinstance(stmt, ast.IfStmt):
        lines.append(f"{prefix}If {format_expr(stmt.condition)}")
        _dump_stmt(stmt.then_branch, depth + 1, lines)
        if stmt.else_branch is not None:
            lines.append(f"{pad}Else")
            _dump_stmt(stmt.else_branch, depth + 1, lines)
    elif isinstance(stmt, ast.WhileStmt):
        lines.append(f"{prefix}While {format_expr(stmt.condition)}")
        _dump_stmt(stmt.body, depth + 1, lines)
    elif isinstance(stmt, ast.FunctionDecl):
        params = ", ".join(param.lexeme for param in stmt.params)
        lines.append(f"{prefix}Fn {stmt.name.lexeme}({params})")
        for child in stmt.body:
            _dump_stmt(child, depth + 1, lines)
    elif isinstance(stmt, ast.ReturnStmt):
        value = "" if stmt.value is None else f" {format_expr(stmt.value)}"
        lines.append(f"{prefix}Return{value}")
    elif isinstance(stmt, ast.ClassDecl):
        parent = "" if stmt.superclass is None else f" < {stmt.superclass.name.lexeme}"
        lines.append(f"{prefix}Class {stmt.name.lexeme}{parent}")
        for method in stmt.methods:
            _dump_stmt(method, depth + 1, lines)
    else:
        raise AssertionError(f"unexpected statement {stmt!r}")


__all__ = ["dump_statements", "format_expr", "format_token"]
