from typing import List

import pytest

from lox import ast
from lox.errors import ParseError
from lox.lexer import scan
from lox.parser import Parser, parse
from lox.token import TokenType


#parses helper sources for parser assertions, requiring a clean parse
def parse_ok(source: str) -> List[ast.Stmt]:
    tokens, lex_errors = scan(source)
    assert lex_errors == []
    statements, errors = parse(tokens)
    assert errors == [], [error.format() for error in errors]
    return statements


def parse_errors(source: str):
    tokens, _ = scan(source)
    return parse(tokens)


#verifies top-level var parsing with and without initializers
def test_top_level_var_declarations() -> None:
    statements = parse_ok(
        """
        var x = 1;
        var y;
        """
    )
    assert len(statements) == 2
    first, second = statements
    assert isinstance(first, ast.VarDecl)
    assert first.name.lexeme == "x"
    assert isinstance(first.initializer, ast.LiteralExpr)
    assert first.initializer.value == 1.0
    assert isinstance(second, ast.VarDecl)
    assert second.initializer is None


#ensures functions capture statements and parameters correctly
def test_function_with_statements() -> None:
    statements = parse_ok(
        """
        fn add(a, b) {
            var total = a + b;
            print total;
            return total;
        }
        """
    )
    fn_decl = statements[0]
    assert isinstance(fn_decl, ast.FunctionDecl)
    assert fn_decl.name.lexeme == "add"
    assert [param.lexeme for param in fn_decl.params] == ["a", "b"]
    assert len(fn_decl.body) == 3
    assert isinstance(fn_decl.body[-1], ast.ReturnStmt)
    assert fn_decl.line == 2


#covers nested control-flow constructs
def test_if_else_and_while_parse() -> None:
    statements = parse_ok(
        """
        var i = 0;
        if (i) { print 1; } else print 2;
        while (i) { i = i - 1; }
        """
    )
    if_stmt, while_stmt = statements[1], statements[2]
    assert isinstance(if_stmt, ast.IfStmt)
    assert isinstance(if_stmt.then_branch, ast.BlockStmt)
    assert isinstance(if_stmt.else_branch, ast.PrintStmt)
    assert isinstance(while_stmt, ast.WhileStmt)


#`for` reaches later stages as a block around a while loop
def test_for_is_desugared_into_while() -> None:
    statements = parse_ok("for (var i = 0; i < 3; i = i + 1) print i;")
    assert len(statements) == 1
    outer = statements[0]
    assert isinstance(outer, ast.BlockStmt)
    init, loop = outer.statements
    assert isinstance(init, ast.VarDecl)
    assert isinstance(loop, ast.WhileStmt)
    assert isinstance(loop.condition, ast.BinaryExpr)
    body = loop.body
    assert isinstance(body, ast.BlockStmt)
    assert isinstance(body.statements[0], ast.PrintStmt)
    increment = body.statements[1]
    assert isinstance(increment, ast.ExprStmt)
    assert isinstance(increment.expr, ast.AssignExpr)


#omitted clauses: no initializer block and a literal `true` condition
def test_for_with_empty_clauses() -> None:
    statements = parse_ok("for (;;) print 1;")
    loop = statements[0]
    assert isinstance(loop, ast.WhileStmt)
    assert isinstance(loop.condition, ast.LiteralExpr)
    assert loop.condition.value is True
    assert isinstance(loop.body, ast.PrintStmt)


#ternary binds looser than `or` and tighter than assignment, nesting to the right
def test_ternary_precedence_and_associativity() -> None:
    statements = parse_ok("x = a or b ? 1 : c ? 2 : 3;")
    assign = statements[0].expr
    assert isinstance(assign, ast.AssignExpr)
    ternary = assign.value
    assert isinstance(ternary, ast.TernaryExpr)
    assert isinstance(ternary.condition, ast.LogicalExpr)
    assert ternary.condition.operator.type is TokenType.OR
    assert isinstance(ternary.then_branch, ast.LiteralExpr)
    nested = ternary.else_branch
    assert isinstance(nested, ast.TernaryExpr)
    assert isinstance(nested.condition, ast.VariableExpr)


#factor binds tighter than term, unary tighter than factor
def test_arithmetic_precedence() -> None:
    expr = parse_ok("print -1 + 2 * 3;")[0].expr
    assert isinstance(expr, ast.BinaryExpr)
    assert expr.operator.type is TokenType.PLUS
    assert isinstance(expr.left, ast.UnaryExpr)
    assert isinstance(expr.right, ast.BinaryExpr)
    assert expr.right.operator.type is TokenType.STAR


#classes carry their superclass reference and methods in order
def test_class_declaration_with_superclass() -> None:
    statements = parse_ok(
        """
        class Dog < Animal {
            init(name) { this.name = name; }
            fn speak() { return super.speak(); }
        }
        """
    )
    decl = statements[0]
    assert isinstance(decl, ast.ClassDecl)
    assert decl.name.lexeme == "Dog"
    assert decl.superclass is not None
    assert decl.superclass.name.lexeme == "Animal"
    assert [method.name.lexeme for method in decl.methods] == ["init", "speak"]
    assign = decl.methods[0].body[0].expr
    assert isinstance(assign, ast.SetExpr)
    assert isinstance(assign.object, ast.ThisExpr)
    ret = decl.methods[1].body[0]
    assert isinstance(ret.value, ast.CallExpr)
    assert isinstance(ret.value.callee, ast.SuperExpr)


#property chains and calls nest left to right
def test_call_and_property_chains() -> None:
    expr = parse_ok("a.b(1, 2).c.init();")[0].expr
    assert isinstance(expr, ast.CallExpr)
    assert isinstance(expr.callee, ast.GetExpr)
    assert expr.callee.name.lexeme == "init"
    inner = expr.callee.object
    assert isinstance(inner, ast.GetExpr)
    assert isinstance(inner.object, ast.CallExpr)
    assert len(inner.object.arguments) == 2


#anonymous functions are expressions
def test_function_expression() -> None:
    decl = parse_ok("var add = fn (a, b) { return a + b; };")[0]
    assert isinstance(decl.initializer, ast.FunctionExpr)
    assert [p.lexeme for p in decl.initializer.params] == ["a", "b"]


#assignment should reject non-lvalue targets without aborting the parse
def test_invalid_assignment_target_is_reported() -> None:
    statements, errors = parse_errors("(1 + 2) = 3;\nprint 4;")
    assert len(errors) == 1
    assert "invalid assignment target" in errors[0].message
    assert isinstance(statements[-1], ast.PrintStmt)


#two independent mistakes around a valid statement yield exactly two errors
def test_parser_recovers_and_reports_every_error() -> None:
    statements, errors = parse_errors(
        "var = 1;\n"
        "print \"ok\";\n"
        "print (;\n"
    )
    assert [error.line for error in errors] == [1, 3]
    assert errors[0].format() == "[line 1] parse error: at '=': expected variable name"
    assert len(statements) == 1
    assert isinstance(statements[0], ast.PrintStmt)


#errors inside a block do not swallow the statements that follow it
def test_recovery_inside_blocks() -> None:
    statements, errors = parse_errors("{ var a = ; print 1; }\nprint 2;")
    assert len(errors) == 1
    assert isinstance(statements[-1], ast.PrintStmt)


#missing closing tokens are reported at end of input
def test_error_at_end_of_input() -> None:
    _, errors = parse_errors("print 1")
    assert len(errors) == 1
    assert errors[0].message == "at end: expected ';' after value"


#`init` is reserved; it cannot name a plain variable
def test_init_is_not_a_variable_name() -> None:
    _, errors = parse_errors("var init = 1;")
    assert len(errors) == 1


#the REPL's expression mode parses a single bare expression
def test_parse_expression_entry_point() -> None:
    tokens, _ = scan("1 + 2 * x")
    expr = Parser(tokens).parse_expression()
    assert isinstance(expr, ast.BinaryExpr)


#runaway nesting becomes one parse error instead of a host crash
def test_deep_nesting_is_reported() -> None:
    depth = 5000
    statements, errors = parse_errors("print " + "(" * depth + "1" + ")" * depth + ";\nprint 2;")
    assert statements == []
    assert len(errors) == 1
    assert errors[0].message.endswith("program nests too deeply")
    assert errors[0].line == 1


def test_deep_nesting_in_expression_mode() -> None:
    tokens, _ = scan("-" * 20000 + "1")
    with pytest.raises(ParseError, match="program nests too deeply"):
        Parser(tokens).parse_expression()
