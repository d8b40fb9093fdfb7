"""Parser that turns Lox tokens into an AST."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from . import ast
from .errors import ParseError
from .token import Token, TokenType

logger = logging.getLogger(__name__)

MAX_ARGUMENTS = 255
NESTING_MESSAGE = "program nests too deeply"

#tokens that begin a fresh declaration or statement; used for recovery
_STATEMENT_STARTS = frozenset(
    {
        TokenType.CLASS,
        TokenType.FN,
        TokenType.VAR,
        TokenType.FOR,
        TokenType.IF,
        TokenType.WHILE,
        TokenType.PRINT,
        TokenType.RETURN,
    }
)


#navigates the token stream via recursive descent
@dataclass(slots=True)
class Parser:
    tokens: List[Token]
    errors: List[ParseError] = field(init=False, default_factory=list)
    _current: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        self._current = 0

    #parses a whole program, collecting errors instead of stopping at the first
    def parse(self) -> List[ast.Stmt]:
        statements: List[ast.Stmt] = []
        while not self._is_at_end():
            try:
                stmt = self._declaration()
            except RecursionError:
                #no recovery past runaway nesting; the rest of the input is skipped
                self.errors.append(self._error(self._peek(), NESTING_MESSAGE))
                self._current = len(self.tokens) - 1
                break
            if stmt is not None:
                statements.append(stmt)
        logger.debug("parsed %d statement(s) with %d error(s)", len(statements), len(self.errors))
        return statements

    #parses a single bare expression; used by the REPL's expression mode
    def parse_expression(self) -> ast.Expr:
        try:
            expr = self._expression()
        except RecursionError:
            raise self._error(self._peek(), NESTING_MESSAGE) from None
        if not self._is_at_end():
            raise self._error(self._peek(), "expected end of expression")
        return expr

    # Declarations ---------------------------------------------------------------

    #a failed declaration is recorded and skipped so parsing can continue
    def _declaration(self) -> ast.Stmt | None:
        try:
            if self._match(TokenType.CLASS):
                return self._class_decl()
            if self._check(TokenType.FN) and self._check_next(TokenType.IDENTIFIER):
                return self._function_decl()
            if self._match(TokenType.VAR):
                return self._var_decl()
            return self._statement()
        except ParseError as error:
            self.errors.append(error)
            self._synchronize()
            return None

    #`class Name < Super { methods }`
    def _class_decl(self) -> ast.ClassDecl:
        keyword = self._previous()
        name = self._consume(TokenType.IDENTIFIER, "expected class name")
        superclass = None
        if self._match(TokenType.LESS):
            super_name = self._consume(TokenType.IDENTIFIER, "expected superclass name")
            superclass = ast.VariableExpr(span=super_name.span, name=super_name)
        self._consume(TokenType.LEFT_BRACE, "expected '{' before class body")
        methods: List[ast.FunctionDecl] = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            methods.append(self._method())
        close_brace = self._consume(TokenType.RIGHT_BRACE, "expected '}' after class body")
        return ast.ClassDecl(
            span=keyword.span.merge(close_brace.span),
            name=name,
            superclass=superclass,
            methods=methods,
        )

    #methods may be written with or without a leading `fn`
    def _method(self) -> ast.FunctionDecl:
        start = self._peek()
        self._match(TokenType.FN)
        name = self._consume_name("expected method name")
        return self._function_rest("method", start, name)

    def _function_decl(self) -> ast.FunctionDecl:
        fn_keyword = self._advance()  # consume 'fn'
        name = self._consume(TokenType.IDENTIFIER, "expected function name")
        return self._function_rest("function", fn_keyword, name)

    #parses the parameter list and body shared by functions and methods
    def _function_rest(self, kind: str, start: Token, name: Token) -> ast.FunctionDecl:
        self._consume(TokenType.LEFT_PAREN, f"expected '(' after {kind} name")
        params = self._parameters()
        self._consume(TokenType.LEFT_BRACE, f"expected '{{' before {kind} body")
        body, close_brace = self._block_body()
        return ast.FunctionDecl(
            span=start.span.merge(close_brace.span),
            name=name,
            params=params,
            body=body,
        )

    #consumes parameter names up to and including the closing paren
    def _parameters(self) -> List[Token]:
        params: List[Token] = []
        if not self._check(TokenType.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    self.errors.append(self._error(self._peek(), f"can't have more than {MAX_ARGUMENTS} parameters"))
                params.append(self._consume(TokenType.IDENTIFIER, "expected parameter name"))
                if not self._match(TokenType.COMMA):
                    break
        self._consume(TokenType.RIGHT_PAREN, "expected ')' after parameters")
        return params

    #handles `var` definitions both globally and locally
    def _var_decl(self) -> ast.VarDecl:
        keyword = self._previous()
        name = self._consume(TokenType.IDENTIFIER, "expected variable name")
        initializer = None
        if self._match(TokenType.EQUAL):
            initializer = self._expression()
        semicolon = self._consume(TokenType.SEMICOLON, "expected ';' after variable declaration")
        return ast.VarDecl(span=keyword.span.merge(semicolon.span), name=name, initializer=initializer)

    # Statements ----------------------------------------------------------------

    #directs statements based on leading token kind
    def _statement(self) -> ast.Stmt:
        if self._match(TokenType.PRINT):
            return self._print_stmt()
        if self._match(TokenType.IF):
            return self._if_stmt()
        if self._match(TokenType.WHILE):
            return self._while_stmt()
        if self._match(TokenType.FOR):
            return self._for_stmt()
        if self._match(TokenType.RETURN):
            return self._return_stmt()
        if self._match(TokenType.LEFT_BRACE):
            return self._block_from_open_brace(open_brace=self._previous())
        return self._expr_stmt()

    #allows nested blocks by reusing the token captured earlier
    def _block_from_open_brace(self, open_brace: Token) -> ast.BlockStmt:
        statements, close_brace = self._block_body()
        span = open_brace.span.merge(close_brace.span)
        return ast.BlockStmt(span=span, statements=statements)

    #reads declarations up to the closing brace, which it also consumes
    def _block_body(self) -> Tuple[List[ast.Stmt], Token]:
        statements: List[ast.Stmt] = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            stmt = self._declaration()
            if stmt is not None:
                statements.append(stmt)
        close_brace = self._consume(TokenType.RIGHT_BRACE, "expected '}' after block")
        return statements, close_brace

    #`print` statements expect an expression followed by semicolon
    def _print_stmt(self) -> ast.PrintStmt:
        keyword = self._previous()
        value = self._expression()
        semicolon = self._consume(TokenType.SEMICOLON, "expected ';' after value")
        return ast.PrintStmt(span=keyword.span.merge(semicolon.span), expr=value)

    #if/else nests arbitrary statements for branches
    def _if_stmt(self) -> ast.IfStmt:
        keyword = self._previous()
        self._consume(TokenType.LEFT_PAREN, "expected '(' after 'if'")
        condition = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "expected ')' after if condition")
        then_branch = self._statement()
        else_branch = None
        span = keyword.span.merge(then_branch.span)
        if self._match(TokenType.ELSE):
            else_branch = self._statement()
            span = span.merge(else_branch.span)
        return ast.IfStmt(span=span, condition=condition, then_branch=then_branch, else_branch=else_branch)

    #while loops reuse expression parsing for the condition
    def _while_stmt(self) -> ast.WhileStmt:
        keyword = self._previous()
        self._consume(TokenType.LEFT_PAREN, "expected '(' after 'while'")
        condition = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "expected ')' after while condition")
        body = self._statement()
        return ast.WhileStmt(span=keyword.span.merge(body.span), condition=condition, body=body)

    #`for` is lowered here into a block holding the initializer and a while loop
    def _for_stmt(self) -> ast.Stmt:
        keyword = self._previous()
        self._consume(TokenType.LEFT_PAREN, "expected '(' after 'for'")

        initializer: ast.Stmt | None
        if self._match(TokenType.SEMICOLON):
            initializer = None
        elif self._match(TokenType.VAR):
            initializer = self._var_decl()
        else:
            initializer = self._expr_stmt()

        condition = None
        if not self._check(TokenType.SEMICOLON):
            condition = self._expression()
        self._consume(TokenType.SEMICOLON, "expected ';' after loop condition")

        increment = None
        if not self._check(TokenType.RIGHT_PAREN):
            increment = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "expected ')' after for clauses")

        body = self._statement()
        span = keyword.span.merge(body.span)

        if increment is not None:
            body = ast.BlockStmt(
                span=body.span.merge(increment.span),
                statements=[body, ast.ExprStmt(span=increment.span, expr=increment)],
            )
        if condition is None:
            condition = ast.LiteralExpr(span=keyword.span, value=True)
        loop: ast.Stmt = ast.WhileStmt(span=span, condition=condition, body=body)
        if initializer is not None:
            loop = ast.BlockStmt(span=span, statements=[initializer, loop])
        return loop

    #the value is optional; the resolver decides whether a return is legal
    def _return_stmt(self) -> ast.ReturnStmt:
        keyword = self._previous()
        value = None
        if not self._check(TokenType.SEMICOLON):
            value = self._expression()
        semicolon = self._consume(TokenType.SEMICOLON, "expected ';' after return value")
        return ast.ReturnStmt(span=keyword.span.merge(semicolon.span), keyword=keyword, value=value)

    #plain expressions become expression statements
    def _expr_stmt(self) -> ast.ExprStmt:
        expr = self._expression()
        semicolon = self._consume(TokenType.SEMICOLON, "expected ';' after expression")
        return ast.ExprStmt(span=expr.span.merge(semicolon.span), expr=expr)

    # Expressions ---------------------------------------------------------------

    def _expression(self) -> ast.Expr:
        return self._assignment()

    #assignment is right-associative and validates the left side
    def _assignment(self) -> ast.Expr:
        expr = self._ternary()
        if self._match(TokenType.EQUAL):
            equals = self._previous()
            value = self._assignment()
            span = expr.span.merge(value.span)
            if isinstance(expr, ast.VariableExpr):
                return ast.AssignExpr(span=span, name=expr.name, value=value)
            if isinstance(expr, ast.GetExpr):
                return ast.SetExpr(span=span, object=expr.object, name=expr.name, value=value)
            #reported without unwinding; the parser is not confused
            self.errors.append(self._error(equals, "invalid assignment target"))
        return expr

    #`cond ? a : b` is right-associative and sits between assignment and `or`
    def _ternary(self) -> ast.Expr:
        expr = self._or()
        if self._match(TokenType.QUESTION):
            then_branch = self._expression()
            self._consume(TokenType.COLON, "expected ':' in conditional expression")
            else_branch = self._ternary()
            span = expr.span.merge(else_branch.span)
            return ast.TernaryExpr(span=span, condition=expr, then_branch=then_branch, else_branch=else_branch)
        return expr

    def _or(self) -> ast.Expr:
        expr = self._and()
        while self._match(TokenType.OR):
            operator = self._previous()
            right = self._and()
            expr = ast.LogicalExpr(span=expr.span.merge(right.span), left=expr, operator=operator, right=right)
        return expr

    def _and(self) -> ast.Expr:
        expr = self._equality()
        while self._match(TokenType.AND):
            operator = self._previous()
            right = self._equality()
            expr = ast.LogicalExpr(span=expr.span.merge(right.span), left=expr, operator=operator, right=right)
        return expr

    def _equality(self) -> ast.Expr:
        return self._binary_level(self._comparison, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def _comparison(self) -> ast.Expr:
        return self._binary_level(
            self._term,
            TokenType.GREATER,
            TokenType.GREATER_EQUAL,
            TokenType.LESS,
            TokenType.LESS_EQUAL,
        )

    #handles `+` and `-` with left-associativity
    def _term(self) -> ast.Expr:
        return self._binary_level(self._factor, TokenType.MINUS, TokenType.PLUS)

    #handles `*` and `/` precedence level
    def _factor(self) -> ast.Expr:
        return self._binary_level(self._unary, TokenType.SLASH, TokenType.STAR)

    #shared loop for every left-associative binary precedence level
    def _binary_level(self, operand, *operators: TokenType) -> ast.Expr:
        expr = operand()
        while self._match(*operators):
            operator = self._previous()
            right = operand()
            expr = ast.BinaryExpr(span=expr.span.merge(right.span), left=expr, operator=operator, right=right)
        return expr

    def _unary(self) -> ast.Expr:
        if self._match(TokenType.BANG, TokenType.MINUS):
            operator = self._previous()
            right = self._unary()
            return ast.UnaryExpr(span=operator.span.merge(right.span), operator=operator, right=right)
        return self._call()

    #postfix calls and property accesses chain left to right
    def _call(self) -> ast.Expr:
        expr = self._primary()
        while True:
            if self._match(TokenType.LEFT_PAREN):
                expr = self._finish_call(expr)
            elif self._match(TokenType.DOT):
                name = self._consume_name("expected property name after '.'")
                expr = ast.GetExpr(span=expr.span.merge(name.span), object=expr, name=name)
            else:
                break
        return expr

    def _finish_call(self, callee: ast.Expr) -> ast.Expr:
        arguments: List[ast.Expr] = []
        if not self._check(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    self.errors.append(self._error(self._peek(), f"can't have more than {MAX_ARGUMENTS} arguments"))
                arguments.append(self._expression())
                if not self._match(TokenType.COMMA):
                    break
        paren = self._consume(TokenType.RIGHT_PAREN, "expected ')' after arguments")
        return ast.CallExpr(span=callee.span.merge(paren.span), callee=callee, paren=paren, arguments=arguments)

    #primary expressions include literals, identifiers, and parenthesized forms
    def _primary(self) -> ast.Expr:
        if self._match(TokenType.FALSE):
            return ast.LiteralExpr(span=self._previous().span, value=False)
        if self._match(TokenType.TRUE):
            return ast.LiteralExpr(span=self._previous().span, value=True)
        if self._match(TokenType.NIL):
            return ast.LiteralExpr(span=self._previous().span, value=None)
        if self._match(TokenType.NUMBER, TokenType.STRING):
            token = self._previous()
            return ast.LiteralExpr(span=token.span, value=token.literal)
        if self._match(TokenType.SUPER):
            keyword = self._previous()
            self._consume(TokenType.DOT, "expected '.' after 'super'")
            method = self._consume_name("expected superclass method name")
            return ast.SuperExpr(span=keyword.span.merge(method.span), keyword=keyword, method=method)
        if self._match(TokenType.THIS):
            keyword = self._previous()
            return ast.ThisExpr(span=keyword.span, keyword=keyword)
        if self._match(TokenType.IDENTIFIER):
            token = self._previous()
            return ast.VariableExpr(span=token.span, name=token)
        if self._match(TokenType.LEFT_PAREN):
            open_paren = self._previous()
            expr = self._expression()
            close_paren = self._consume(TokenType.RIGHT_PAREN, "expected ')' after expression")
            return ast.GroupingExpr(span=open_paren.span.merge(close_paren.span), expression=expr)
        if self._match(TokenType.FN):
            return self._function_expr()
        raise self._error(self._peek(), "expected expression")

    #anonymous functions: `fn (a, b) { ... }`
    def _function_expr(self) -> ast.FunctionExpr:
        keyword = self._previous()
        self._consume(TokenType.LEFT_PAREN, "expected '(' after 'fn'")
        params = self._parameters()
        self._consume(TokenType.LEFT_BRACE, "expected '{' before function body")
        body, close_brace = self._block_body()
        return ast.FunctionExpr(span=keyword.span.merge(close_brace.span), params=params, body=body)

    # Utilities ----------------------------------------------------------------

    #builds a located error; callers decide whether to raise it
    def _error(self, token: Token, message: str) -> ParseError:
        where = "at end" if token.type is TokenType.EOF else f"at '{token.lexeme}'"
        return ParseError(f"{where}: {message}", token.span)

    #discards tokens until a likely statement boundary
    def _synchronize(self) -> None:
        self._advance()
        while not self._is_at_end():
            if self._previous().type is TokenType.SEMICOLON:
                return
            if self._peek().type in _STATEMENT_STARTS:
                return
            self._advance()

    #helper for multi-token lookahead checks
    def _match(self, *types: TokenType) -> bool:
        for token_type in types:
            if self._check(token_type):
                self._advance()
                return True
        return False

    #convenience to assert the upcoming token type
    def _consume(self, token_type: TokenType, message: str) -> Token:
        if self._check(token_type):
            return self._advance()
        raise self._error(self._peek(), message)

    #method and property names may also be the reserved word `init`
    def _consume_name(self, message: str) -> Token:
        if self._check(TokenType.IDENTIFIER) or self._check(TokenType.INIT):
            return self._advance()
        raise self._error(self._peek(), message)

    #safely checks the current token without consuming it
    def _check(self, token_type: TokenType) -> bool:
        if self._is_at_end():
            return False
        return self._peek().type is token_type

    def _check_next(self, token_type: TokenType) -> bool:
        if self._current + 1 >= len(self.tokens):
            return False
        return self.tokens[self._current + 1].type is token_type

    #moves the cursor forward returning the previous token
    def _advance(self) -> Token:
        if not self._is_at_end():
            self._current += 1
        return self._previous()

    #EOF tokens guard termination
    def _is_at_end(self) -> bool:
        return self._peek().type is TokenType.EOF

    #peeks at the current token without consuming
    def _peek(self) -> Token:
        return self.tokens[self._current]

    #returns the token immediately before `_current`
    def _previous(self) -> Token:
        return self.tokens[self._current - 1]


#convenience wrapper returning statements and every parse error in one call
def parse(tokens: List[Token]) -> Tuple[List[ast.Stmt], List[ParseError]]:
    parser = Parser(tokens)
    statements = parser.parse()
    return statements, parser.errors
