"""Runtime scopes: a variable mapping plus a link to the enclosing scope."""
from __future__ import annotations

from typing import Any, Dict, Optional

from .errors import LoxRuntimeError
from .token import Token


#one lexical scope; closures keep their defining chain alive by reference
class Environment:
    __slots__ = ("values", "enclosing")

    def __init__(self, enclosing: Optional["Environment"] = None) -> None:
        self.values: Dict[str, Any] = {}
        self.enclosing = enclosing

    #declarations always bind in this scope, shadowing outer names
    def define(self, name: str, value: Any) -> None:
        self.values[name] = value

    #name search along the chain; only used for globals
    def get(self, name: Token) -> Any:
        env: Optional[Environment] = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing
        raise LoxRuntimeError(f"undefined variable '{name.lexeme}'", name.span)

    #assignment never creates a variable
    def assign(self, name: Token, value: Any) -> None:
        env: Optional[Environment] = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.enclosing
        raise LoxRuntimeError(f"undefined variable '{name.lexeme}'", name.span)

    #walks exactly `distance` links outward
    def ancestor(self, distance: int) -> "Environment":
        env = self
        for _ in range(distance):
            if env.enclosing is None:
                raise LookupError(f"no environment {distance} level(s) out")
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str) -> Any:
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: Token, value: Any) -> None:
        self.ancestor(distance).values[name.lexeme] = value

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        depth = 0
        env = self.enclosing
        while env is not None:
            depth += 1
            env = env.enclosing
        return f"Environment(names={sorted(self.values)}, depth={depth})"
