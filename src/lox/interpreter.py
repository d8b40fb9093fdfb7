"""Tree-walking interpreter for resolved Lox programs."""
from __future__ import annotations

import logging
import weakref
from typing import Any, Dict, List, Optional, TextIO

from . import ast
from .environment import Environment
from .errors import LoxRuntimeError, SourceSpan
from .runtime import (
    LoxCallable,
    LoxClass,
    LoxFunction,
    LoxInstance,
    ReturnSignal,
    define_natives,
    is_equal,
    is_truthy,
    stringify,
)
from .semantic import LocalBinding, VarBinding
from .token import Token, TokenType

logger = logging.getLogger(__name__)


#executes statements against an explicitly owned global environment
class Interpreter:
    def __init__(
        self,
        globals: Optional[Environment] = None,
        stream: Optional[TextIO] = None,
        trace: bool = False,
    ) -> None:
        self.globals = globals if globals is not None else Environment()
        define_natives(self.globals)
        self.bindings: weakref.WeakKeyDictionary[ast.Expr, VarBinding] = weakref.WeakKeyDictionary()
        self.output: List[str] = []
        self.stream = stream
        self.trace = trace
        self._environment = self.globals
        self._last_span: Optional[SourceSpan] = None

    #merges a resolver table; entries vanish with their nodes, so a REPL session
    #only keeps bindings for code that closures or classes still reference
    def resolve(self, bindings: Dict[ast.Expr, VarBinding]) -> None:
        self.bindings.update(bindings)

    #runs top-level statements; the first runtime error aborts the rest
    def interpret(self, statements: List[ast.Stmt]) -> List[str]:
        start = len(self.output)
        try:
            for stmt in statements:
                self.execute(stmt)
        except RecursionError:
            span = self._last_span if self._last_span is not None else statements[0].span
            raise LoxRuntimeError("stack overflow", span) from None
        finally:
            self._environment = self.globals
        return self.output[start:]

    # Statements ----------------------------------------------------------------

    #dispatches on statement type
    def execute(self, stmt: ast.Stmt) -> None:
        self._last_span = stmt.span
        if self.trace:
            self._log(f"line {stmt.line} {type(stmt).__name__}")
        if isinstance(stmt, ast.ExprStmt):
            self.evaluate(stmt.expr)
        elif isinstance(stmt, ast.PrintStmt):
            self._emit(stringify(self.evaluate(stmt.expr)))
        elif isinstance(stmt, ast.VarDecl):
            value = None
            if stmt.initializer is not None:
                value = self.evaluate(stmt.initializer)
            self._environment.define(stmt.name.lexeme, value)
        elif isinstance(stmt, ast.BlockStmt):
            self.execute_block(stmt.statements, Environment(self._environment))
        elif isinstance(stmt, ast.IfStmt):
            if is_truthy(self.evaluate(stmt.condition)):
                self.execute(stmt.then_branch)
            elif stmt.else_branch is not None:
                self.execute(stmt.else_branch)
        elif isinstance(stmt, ast.WhileStmt):
            while is_truthy(self.evaluate(stmt.condition)):
                self.execute(stmt.body)
        elif isinstance(stmt, ast.FunctionDecl):
            function = LoxFunction(stmt, self._environment)
            self._environment.define(stmt.name.lexeme, function)
        elif isinstance(stmt, ast.ReturnStmt):
            value = None
            if stmt.value is not None:
                value = self.evaluate(stmt.value)
            raise ReturnSignal(value)
        elif isinstance(stmt, ast.ClassDecl):
            self._execute_class(stmt)
        else:
            raise AssertionError(f"unexpected statement {stmt!r}")

    #swaps in `environment` for the duration of the block, restoring it on any exit
    def execute_block(self, statements: List[ast.Stmt], environment: Environment) -> None:
        previous = self._environment
        try:
            self._environment = environment
            for stmt in statements:
                self.execute(stmt)
        finally:
            self._environment = previous

    #methods close over a scope holding `super` when there is a superclass
    def _execute_class(self, stmt: ast.ClassDecl) -> None:
        self._environment.define(stmt.name.lexeme, None)

        superclass = None
        if stmt.superclass is not None:
            superclass = self.evaluate(stmt.superclass)
            if not isinstance(superclass, LoxClass):
                raise LoxRuntimeError("superclass must be a class", stmt.superclass.span)

        closure = self._environment
        if superclass is not None:
            closure = Environment(closure)
            closure.define("super", superclass)

        methods = {
            method.name.lexeme: LoxFunction(method, closure, is_initializer=method.name.lexeme == "init")
            for method in stmt.methods
        }
        klass = LoxClass(name=stmt.name.lexeme, superclass=superclass, methods=methods)
        self._environment.assign(stmt.name, klass)

    # Expressions ---------------------------------------------------------------

    def evaluate(self, expr: ast.Expr) -> Any:
        if isinstance(expr, ast.LiteralExpr):
            return expr.value
        if isinstance(expr, ast.GroupingExpr):
            return self.evaluate(expr.expression)
        if isinstance(expr, ast.VariableExpr):
            return self._look_up(expr.name, expr)
        if isinstance(expr, ast.AssignExpr):
            value = self.evaluate(expr.value)
            binding = self.bindings.get(expr)
            if isinstance(binding, LocalBinding):
                self._environment.assign_at(binding.depth, expr.name, value)
            else:
                self.globals.assign(expr.name, value)
            return value
        if isinstance(expr, ast.UnaryExpr):
            return self._unary(expr)
        if isinstance(expr, ast.BinaryExpr):
            return self._binary(expr)
        if isinstance(expr, ast.LogicalExpr):
            left = self.evaluate(expr.left)
            if expr.operator.type is TokenType.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(expr.right)
        if isinstance(expr, ast.TernaryExpr):
            if is_truthy(self.evaluate(expr.condition)):
                return self.evaluate(expr.then_branch)
            return self.evaluate(expr.else_branch)
        if isinstance(expr, ast.CallExpr):
            return self._call(expr)
        if isinstance(expr, ast.GetExpr):
            obj = self.evaluate(expr.object)
            if isinstance(obj, LoxInstance):
                return obj.get(expr.name)
            raise LoxRuntimeError("only instances have properties", expr.name.span)
        if isinstance(expr, ast.SetExpr):
            obj = self.evaluate(expr.object)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError("only instances have fields", expr.name.span)
            value = self.evaluate(expr.value)
            obj.set(expr.name, value)
            return value
        if isinstance(expr, ast.ThisExpr):
            return self._look_up(expr.keyword, expr)
        if isinstance(expr, ast.SuperExpr):
            return self._super(expr)
        if isinstance(expr, ast.FunctionExpr):
            return LoxFunction(expr, self._environment)
        raise AssertionError(f"unexpected expression {expr!r}")

    #local references go straight to the resolved frame; never a name search
    def _look_up(self, name: Token, expr: ast.Expr) -> Any:
        binding = self.bindings.get(expr)
        if isinstance(binding, LocalBinding):
            return self._environment.get_at(binding.depth, name.lexeme)
        return self.globals.get(name)

    #`super` is bound one scope outside the `this` of the defining class
    def _super(self, expr: ast.SuperExpr) -> Any:
        binding = self.bindings.get(expr)
        if not isinstance(binding, LocalBinding):
            raise LoxRuntimeError("can't use 'super' outside of a class", expr.keyword.span)
        superclass: LoxClass = self._environment.get_at(binding.depth, "super")
        receiver: LoxInstance = self._environment.get_at(binding.depth - 1, "this")
        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise LoxRuntimeError(f"undefined property '{expr.method.lexeme}'", expr.method.span)
        return method.bind(receiver)

    #arguments are evaluated left to right before the arity check
    def _call(self, expr: ast.CallExpr) -> Any:
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(argument) for argument in expr.arguments]
        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError("can only call functions and classes", expr.paren.span)
        arity = callee.arity()
        if len(arguments) != arity:
            raise LoxRuntimeError(f"expected {arity} argument(s) but got {len(arguments)}", expr.paren.span)
        return callee.call(self, arguments)

    def _unary(self, expr: ast.UnaryExpr) -> Any:
        right = self.evaluate(expr.right)
        match expr.operator.type:
            case TokenType.MINUS:
                self._check_number_operand(expr.operator, right)
                return -right
            case TokenType.BANG:
                return not is_truthy(right)
        raise AssertionError(f"unexpected unary operator {expr.operator!r}")

    def _binary(self, expr: ast.BinaryExpr) -> Any:
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        operator = expr.operator
        match operator.type:
            case TokenType.PLUS:
                if isinstance(left, float) and isinstance(right, float):
                    return left + right
                if isinstance(left, str) and isinstance(right, str):
                    return left + right
                raise LoxRuntimeError("operands must be two numbers or two strings", operator.span)
            case TokenType.MINUS:
                self._check_number_operands(operator, left, right)
                return left - right
            case TokenType.STAR:
                self._check_number_operands(operator, left, right)
                return left * right
            case TokenType.SLASH:
                self._check_number_operands(operator, left, right)
                if right == 0:
                    raise LoxRuntimeError("division by zero", operator.span)
                return left / right
            case TokenType.GREATER:
                self._check_number_operands(operator, left, right)
                return left > right
            case TokenType.GREATER_EQUAL:
                self._check_number_operands(operator, left, right)
                return left >= right
            case TokenType.LESS:
                self._check_number_operands(operator, left, right)
                return left < right
            case TokenType.LESS_EQUAL:
                self._check_number_operands(operator, left, right)
                return left <= right
            case TokenType.EQUAL_EQUAL:
                return is_equal(left, right)
            case TokenType.BANG_EQUAL:
                return not is_equal(left, right)
        raise AssertionError(f"unexpected binary operator {operator!r}")

    # Helpers -----------------------------------------------------------------

    def _check_number_operand(self, operator: Token, operand: Any) -> None:
        if not isinstance(operand, float):
            raise LoxRuntimeError(f"operand of '{operator.lexeme}' must be a number", operator.span)

    def _check_number_operands(self, operator: Token, left: Any, right: Any) -> None:
        if not (isinstance(left, float) and isinstance(right, float)):
            raise LoxRuntimeError(f"operands of '{operator.lexeme}' must be numbers", operator.span)

    #records printed text and echoes it to the attached stream
    def _emit(self, text: str) -> None:
        self.output.append(text)
        if self.stream is not None:
            self.stream.write(text + "\n")

    def _log(self, message: str) -> None:
        logger.debug(message)


__all__ = ["Interpreter", "LoxRuntimeError"]
