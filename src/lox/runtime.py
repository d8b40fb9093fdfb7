"""Runtime value model: callables, classes, instances, and value helpers.

Lox values map onto host values: ``nil`` is ``None``, booleans are ``bool``,
numbers are ``float`` and strings are ``str``. Functions, classes and
instances are the objects defined here and compare by identity.
"""
from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from . import ast
from .environment import Environment
from .errors import LoxRuntimeError
from .token import Token

if TYPE_CHECKING:
    from .interpreter import Interpreter


#carries a `return` value back to the call site; never escapes a call
class ReturnSignal(Exception):
    def __init__(self, value: Any) -> None:
        super().__init__("return")
        self.value = value


#anything that can appear before `(` at a call site
class LoxCallable(ABC):
    @abstractmethod
    def arity(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        raise NotImplementedError


#user-defined function or method paired with its defining environment
@dataclass(eq=False)
class LoxFunction(LoxCallable):
    declaration: ast.FunctionDecl | ast.FunctionExpr
    closure: Environment
    is_initializer: bool = False

    @property
    def name(self) -> Optional[str]:
        if isinstance(self.declaration, ast.FunctionDecl):
            return self.declaration.name.lexeme
        return None

    def arity(self) -> int:
        return len(self.declaration.params)

    #parameters and body share one fresh scope whose parent is the closure
    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        environment = Environment(self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            environment.define(param.lexeme, argument)
        try:
            interpreter.execute_block(self.declaration.body, environment)
        except ReturnSignal as signal:
            if self.is_initializer:
                return self.closure.get_at(0, "this")
            return signal.value
        if self.is_initializer:
            return self.closure.get_at(0, "this")
        return None

    #wraps the closure in a scope where `this` names the receiver
    def bind(self, instance: "LoxInstance") -> "LoxFunction":
        environment = Environment(self.closure)
        environment.define("this", instance)
        return LoxFunction(self.declaration, environment, self.is_initializer)

    def __str__(self) -> str:
        if self.name is None:
            return "<fn>"
        return f"<fn {self.name}>"


#host-implemented function registered in the global scope
@dataclass(eq=False)
class NativeFunction(LoxCallable):
    name: str
    parameter_count: int
    function: Callable[..., Any]

    def arity(self) -> int:
        return self.parameter_count

    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        return self.function(*arguments)

    def __str__(self) -> str:
        return "<native fn>"


#classes are callable; calling one constructs an instance
@dataclass(eq=False)
class LoxClass(LoxCallable):
    name: str
    superclass: Optional["LoxClass"] = None
    methods: Dict[str, LoxFunction] = field(default_factory=dict)

    #nearest definition wins, walking up the superclass chain
    def find_method(self, name: str) -> Optional[LoxFunction]:
        klass: Optional[LoxClass] = self
        while klass is not None:
            method = klass.methods.get(name)
            if method is not None:
                return method
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is None:
            return 0
        return initializer.arity()

    #the expression's value is always the new instance, whatever `init` returns
    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        instance = LoxInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self) -> str:
        return self.name


#objects created from a class; each holds its own field mapping
@dataclass(eq=False)
class LoxInstance:
    klass: LoxClass
    fields: Dict[str, Any] = field(default_factory=dict)

    #fields shadow methods of the same name
    def get(self, name: Token) -> Any:
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)
        raise LoxRuntimeError(f"undefined property '{name.lexeme}'", name.span)

    def set(self, name: Token, value: Any) -> None:
        self.fields[name.lexeme] = value

    def __str__(self) -> str:
        return f"{self.klass.name} instance"


# Value helpers ----------------------------------------------------------------


#nil and false are falsy; everything else, including 0 and "", is truthy
def is_truthy(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


#primitives compare by value, objects by identity; no cross-type equality
def is_equal(left: Any, right: Any) -> bool:
    if type(left) is not type(right):
        return False
    if left is None or isinstance(left, (bool, float, str)):
        return left == right
    return left is right


#renders a value the way `print` shows it
def stringify(value: Any) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        #shortest round-trip form; `3.0` prints as `3`, `-0.0` as `-0`
        text = repr(value)
        return text[:-2] if text.endswith(".0") else text
    return str(value)


def _clock() -> float:
    return time.time()


#native functions installed in every fresh global environment
NATIVES = (NativeFunction("clock", 0, _clock),)


def define_natives(environment: Environment) -> None:
    for native in NATIVES:
        environment.define(native.name, native)
