"""Lexical analysis for the Lox language."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from .errors import LexError, SourceLocation, SourceSpan
from .token import KEYWORDS, Token, TokenType

logger = logging.getLogger(__name__)


#characters that always form a token on their own
_SINGLE_CHAR_TOKENS = {
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "{": TokenType.LEFT_BRACE,
    "}": TokenType.RIGHT_BRACE,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    "-": TokenType.MINUS,
    "+": TokenType.PLUS,
    ";": TokenType.SEMICOLON,
    "*": TokenType.STAR,
    "?": TokenType.QUESTION,
    ":": TokenType.COLON,
}

#operators that may be followed by `=` to form a two-character token
_EQUAL_SUFFIX_TOKENS = {
    "!": (TokenType.BANG, TokenType.BANG_EQUAL),
    "=": (TokenType.EQUAL, TokenType.EQUAL_EQUAL),
    "<": (TokenType.LESS, TokenType.LESS_EQUAL),
    ">": (TokenType.GREATER, TokenType.GREATER_EQUAL),
}


#identifiers and numbers are ASCII-only
def _is_alpha(char: str) -> bool:
    return ("a" <= char <= "z") or ("A" <= char <= "Z") or char == "_"


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


#transforms raw characters into a stream of tokens consumed by the parser
@dataclass(slots=True)
class Lexer:
    source: str
    errors: List[LexError] = field(init=False, default_factory=list)
    _length: int = field(init=False)
    _index: int = field(init=False, default=0)
    _start: int = field(init=False, default=0)
    _line: int = field(init=False, default=1)
    _column: int = field(init=False, default=1)

    def __post_init__(self) -> None:
        self._length = len(self.source)
        self._index = 0
        self._line = 1
        self._column = 1

    def lex(self) -> List[Token]:
        tokens: List[Token] = []
        while not self._is_at_end():
            self._skip_whitespace()
            if self._is_at_end():
                break

            start_loc = self._current_location()
            self._start = self._index
            char = self._advance()

            if _is_alpha(char):
                tokens.append(self._identifier(start_loc))
                continue

            if _is_digit(char):
                tokens.append(self._number(start_loc))
                continue

            match char:
                case _ if char in _SINGLE_CHAR_TOKENS:
                    tokens.append(self._make_token(_SINGLE_CHAR_TOKENS[char], start_loc))
                case _ if char in _EQUAL_SUFFIX_TOKENS:
                    single, double = _EQUAL_SUFFIX_TOKENS[char]
                    token_type = double if self._match("=") else single
                    tokens.append(self._make_token(token_type, start_loc))
                case "/":
                    if self._match("/"):
                        self._line_comment()
                    elif self._match("*"):
                        self._block_comment(start_loc)
                    else:
                        tokens.append(self._make_token(TokenType.SLASH, start_loc))
                case '"':
                    token = self._string(start_loc)
                    if token is not None:
                        tokens.append(token)
                case _:
                    span = SourceSpan(start=start_loc, end=self._current_location())
                    self._error(f"unexpected character {char!r}", span)

        eof_loc = self._current_location()
        tokens.append(
            Token(
                type=TokenType.EOF,
                lexeme="",
                span=SourceSpan(start=eof_loc, end=eof_loc),
            )
        )
        logger.debug("scanned %d token(s) with %d error(s)", len(tokens), len(self.errors))
        return tokens

    # Internal helpers -------------------------------------------------

    def _is_at_end(self) -> bool:
        return self._index >= self._length

    def _current_location(self) -> SourceLocation:
        return SourceLocation(line=self._line, column=self._column)

    def _advance(self) -> str:
        char = self.source[self._index]
        self._index += 1
        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return char

    def _peek(self) -> str:
        if self._is_at_end():
            return "\0"
        return self.source[self._index]

    def _peek_next(self) -> str:
        if self._index + 1 >= self._length:
            return "\0"
        return self.source[self._index + 1]

    def _match(self, expected: str) -> bool:
        if self._is_at_end():
            return False
        if self.source[self._index] != expected:
            return False
        self._advance()
        return True

    def _skip_whitespace(self) -> None:
        while not self._is_at_end():
            char = self._peek()
            if char in " \r\t\n":
                self._advance()
            else:
                break

    #errors are recorded rather than raised so one pass reports all of them
    def _error(self, message: str, span: SourceSpan) -> None:
        self.errors.append(LexError(message, span))

    def _make_token(self, token_type: TokenType, start: SourceLocation, literal=None) -> Token:
        end = self._current_location()
        lexeme = self.source[self._start : self._index]
        return Token(token_type, lexeme, SourceSpan(start=start, end=end), literal=literal)

    def _identifier(self, start: SourceLocation) -> Token:
        while _is_alpha(self._peek()) or _is_digit(self._peek()):
            self._advance()
        lexeme = self.source[self._start : self._index]
        token_type = KEYWORDS.get(lexeme, TokenType.IDENTIFIER)
        return self._make_token(token_type, start)

    def _number(self, start: SourceLocation) -> Token:
        while _is_digit(self._peek()):
            self._advance()
        #a fractional part needs at least one digit after the dot
        if self._peek() == "." and _is_digit(self._peek_next()):
            self._advance()
            while _is_digit(self._peek()):
                self._advance()
        lexeme = self.source[self._start : self._index]
        return self._make_token(TokenType.NUMBER, start, literal=float(lexeme))

    def _string(self, start: SourceLocation) -> Token | None:
        while not self._is_at_end() and self._peek() != '"':
            self._advance()
        if self._is_at_end():
            self._error("unterminated string", SourceSpan(start=start, end=self._current_location()))
            return None
        self._advance()  # closing quote
        value = self.source[self._start + 1 : self._index - 1]
        return self._make_token(TokenType.STRING, start, literal=value)

    def _line_comment(self) -> None:
        while not self._is_at_end() and self._peek() != "\n":
            self._advance()

    def _block_comment(self, start: SourceLocation) -> None:
        while not self._is_at_end():
            if self._peek() == "*" and self._peek_next() == "/":
                self._advance()
                self._advance()
                return
            self._advance()
        self._error("unterminated block comment", SourceSpan(start=start, end=self._current_location()))


#convenience wrapper returning tokens and every lexical error in one call
def scan(source: str) -> Tuple[List[Token], List[LexError]]:
    lexer = Lexer(source)
    tokens = lexer.lex()
    return tokens, lexer.errors
