import gc
import io
from typing import List, Optional

import pytest

from lox.environment import Environment
from lox.errors import LoxRuntimeError
from lox.interpreter import Interpreter
from lox.lexer import scan
from lox.parser import parse
from lox.semantic import resolve


#compiles a snippet through every static stage, then runs it and returns printed lines
def run_source(source: str, interpreter: Optional[Interpreter] = None) -> List[str]:
    tokens, lex_errors = scan(source)
    statements, parse_errors = parse(tokens)
    assert lex_errors == [] and parse_errors == []
    resolution = resolve(statements)
    assert resolution.errors == [], [error.format() for error in resolution.errors]
    interpreter = interpreter if interpreter is not None else Interpreter()
    interpreter.resolve(resolution.bindings)
    return interpreter.interpret(statements)


def runtime_error(source: str) -> LoxRuntimeError:
    with pytest.raises(LoxRuntimeError) as excinfo:
        run_source(source)
    return excinfo.value


#arithmetic, concatenation and number formatting
def test_expressions_and_printing() -> None:
    assert run_source(
        """
        print 1 + 2 * 3;
        print 10 / 4;
        print -0.5;
        print "lo" + "x";
        print nil;
        print !nil;
        print (1 + 2) * 3 >= 9;
        """
    ) == ["7", "2.5", "-0.5", "lox", "nil", "true", "true"]


#inner declarations shadow outer ones only inside their block
def test_block_shadowing() -> None:
    assert run_source("var a = 1; { var a = 2; print a; } print a;") == ["2", "1"]


def test_string_shadowing_and_printing_counter() -> None:
    assert run_source(
        'var x = "global"; { var x = "local"; print x; } print x;'
    ) == ["local", "global"]
    assert run_source(
        "fn counter(){ var i=0; fn inc(){ i=i+1; print i; } return inc; } var c=counter(); c(); c();"
    ) == ["1", "2"]


#a closure keeps the environment it was created in, even after that scope ends
def test_closure_resolves_where_it_was_defined() -> None:
    assert run_source(
        """
        var a = "global";
        {
            fn showA() { print a; }
            showA();
            var a = "block";
            showA();
        }
        """
    ) == ["global", "global"]


#each counter owns its own captured variable
def test_counter_closures_are_independent() -> None:
    assert run_source(
        """
        fn makeCounter() {
            var i = 0;
            fn count() {
                i = i + 1;
                return i;
            }
            return count;
        }
        var a = makeCounter();
        var b = makeCounter();
        print a();
        print a();
        print b();
        """
    ) == ["1", "2", "1"]


#two closures created together share one captured variable
def test_sibling_closures_share_state() -> None:
    assert run_source(
        """
        var inc;
        var get;
        fn make() {
            var n = 0;
            fn i() { n = n + 1; }
            fn g() { return n; }
            inc = i;
            get = g;
        }
        make();
        inc();
        inc();
        print get();
        """
    ) == ["2"]


def test_recursion_and_loops() -> None:
    assert run_source(
        """
        fn fib(n) {
            if (n < 2) return n;
            return fib(n - 1) + fib(n - 2);
        }
        for (var i = 0; i < 3; i = i + 1) print fib(i + 5);
        var j = 3;
        while (j > 0) j = j - 1;
        print j;
        """
    ) == ["5", "8", "13", "0"]


#`and`/`or` return an operand rather than a coerced boolean
def test_logical_operators_return_operands() -> None:
    assert run_source(
        """
        print nil or "fallback";
        print 0 and "zero is truthy";
        print false and missing();
        print "first" or missing();
        """
    ) == ["fallback", "zero is truthy", "false", "first"]


#only the selected ternary branch is evaluated
def test_ternary_evaluates_one_branch() -> None:
    assert run_source(
        """
        print true ? "yes" : undefinedThing;
        print nil ? undefinedThing : "no";
        print false ? 1 : nil ? 2 : 3;
        """
    ) == ["yes", "no", "3"]


#values of different kinds are never equal; objects compare by identity
def test_equality_semantics() -> None:
    assert run_source(
        """
        class A {}
        var a = A();
        print 1 == 1;
        print "a" == "a";
        print nil == nil;
        print 1 == "1";
        print nil == false;
        print a == a;
        print a == A();
        print 1 != 2;
        """
    ) == ["true", "true", "true", "false", "false", "true", "false", "true"]


def test_callables_print_their_names() -> None:
    assert run_source(
        """
        fn f() {}
        class Box {}
        print f;
        print fn () {};
        print clock;
        print Box;
        print Box();
        print f();
        """
    ) == ["<fn f>", "<fn>", "<native fn>", "Box", "Box instance", "nil"]


def test_clock_native() -> None:
    assert run_source("print clock() > 0;") == ["true"]


def test_function_expressions() -> None:
    assert run_source(
        """
        var add = fn (a, b) { return a + b; };
        fn apply(f, x) { return f(x, x); }
        print add(1, 2);
        print apply(add, 4);
        """
    ) == ["3", "8"]


#fields are per instance and shadow methods of the same name
def test_fields_and_methods() -> None:
    assert run_source(
        """
        class Point {
            init(x, y) {
                this.x = x;
                this.y = y;
            }
            sum() { return this.x + this.y; }
        }
        var p = Point(1, 2);
        print p.sum();
        var method = p.sum;
        p.x = 10;
        print method();
        p.sum = "shadowed";
        print p.sum;
        """
    ) == ["3", "12", "shadowed"]


#a bare `return;` in an initializer still produces the instance
def test_initializer_early_return_yields_instance() -> None:
    assert run_source(
        """
        class Foo {
            init(x) {
                this.x = x;
                if (x > 1) return;
                this.x = 0;
            }
        }
        var f = Foo(3);
        print f.x;
        print f;
        print Foo(1).x;
        print f.init(5) == f;
        print f.x;
        """
    ) == ["3", "Foo instance", "0", "true", "5"]


#each `super` call reaches the immediate superclass of the defining class
def test_three_level_super_chain() -> None:
    assert run_source(
        """
        class A { m() { print "A"; } }
        class B < A { m() { print "B"; super.m(); } }
        class C < B { m() { print "C"; super.m(); } }
        C().m();
        """
    ) == ["C", "B", "A"]


#`super` depends on where the method was written, not on the receiver
def test_super_is_static_not_receiver_based() -> None:
    assert run_source(
        """
        class A { method() { print "A method"; } }
        class B < A {
            method() { print "B method"; }
            test() { super.method(); }
        }
        class C < B {}
        C().test();
        """
    ) == ["A method"]


#initializers and methods are inherited
def test_inherited_initializer() -> None:
    assert run_source(
        """
        class Animal {
            init(name) { this.name = name; }
            speak() { return this.name + " makes a sound"; }
        }
        class Dog < Animal {
            speak() { return super.speak() + ", woof"; }
        }
        print Dog("rex").speak();
        """
    ) == ["rex makes a sound, woof"]


#running the same program twice produces identical output
def test_execution_is_deterministic() -> None:
    source = """
    class Acc { init() { this.total = 0; } add(n) { this.total = this.total + n; return this; } }
    var acc = Acc();
    for (var i = 1; i <= 4; i = i + 1) acc.add(i);
    print acc.total;
    """
    assert run_source(source) == run_source(source) == ["10"]


def test_arity_mismatch_is_runtime_error() -> None:
    error = runtime_error("fn add(a, b) { return a + b; }\nadd(1);")
    assert error.message == "expected 2 argument(s) but got 1"
    assert error.line == 2
    error = runtime_error("class P { init(x) {} }\nP();")
    assert error.message == "expected 1 argument(s) but got 0"


#mixed operand types for `+` are rejected rather than coerced
def test_plus_requires_matching_operands() -> None:
    error = runtime_error('print "1" + 1;')
    assert error.format() == "[line 1] runtime error: operands must be two numbers or two strings"


def test_operator_type_errors() -> None:
    assert runtime_error('print -"x";').message == "operand of '-' must be a number"
    assert runtime_error('print 1 < "2";').message == "operands of '<' must be numbers"
    assert runtime_error("print 1 / 0;").message == "division by zero"


def test_name_and_property_errors() -> None:
    assert runtime_error("print missing;").message == "undefined variable 'missing'"
    assert runtime_error("missing = 1;").message == "undefined variable 'missing'"
    assert runtime_error("class A {}\nprint A().nope;").message == "undefined property 'nope'"
    assert runtime_error('print "str".length;').message == "only instances have properties"
    assert runtime_error('"str"();').message == "can only call functions and classes"
    assert runtime_error("var NotClass = 1;\nclass A < NotClass {}").message == "superclass must be a class"


#a runtime error stops the program; earlier output is kept
def test_runtime_error_aborts_remaining_statements() -> None:
    interpreter = Interpreter()
    with pytest.raises(LoxRuntimeError) as excinfo:
        run_source('print "before";\nprint nil + 1;\nprint "after";', interpreter)
    assert excinfo.value.line == 2
    assert interpreter.output == ["before"]


#unbounded recursion surfaces as a Lox error, not a host crash
def test_unbounded_recursion_is_runtime_error() -> None:
    error = runtime_error("fn f() { return f(); }\nf();")
    assert error.message == "stack overflow"


#globals persist across successive inputs, even after a failing one
def test_session_state_survives_runtime_errors() -> None:
    interpreter = Interpreter()
    assert run_source("var x = 1; fn bump() { x = x + 1; }", interpreter) == []
    with pytest.raises(LoxRuntimeError):
        run_source("print x + nil;", interpreter)
    assert run_source("bump(); print x;", interpreter) == ["2"]
    with pytest.raises(LoxRuntimeError):
        run_source("{ var local = 1; print local + nil; }", interpreter)
    assert run_source("print x;", interpreter) == ["2"]


#printed lines are echoed to an attached stream and kept in order
def test_output_stream_and_shared_globals() -> None:
    stream = io.StringIO()
    globals_env = Environment()
    interpreter = Interpreter(globals=globals_env, stream=stream)
    run_source('var greeting = "hi"; print greeting; print 2;', interpreter)
    assert stream.getvalue() == "hi\n2\n"
    assert interpreter.output == ["hi", "2"]
    assert globals_env.values["greeting"] == "hi"


#numbers print in shortest round-trip form, keeping the sign of zero
def test_number_formatting() -> None:
    assert run_source(
        """
        print -0;
        print 0;
        print 1000000 * 1000000 * 1000000 * 1000000;
        print 0.1 + 0.2;
        print 100 / 8;
        """
    ) == ["-0", "0", "1e+24", "0.30000000000000004", "12.5"]


#an unresolved `super` is a runtime error, not a host failure
def test_super_without_binding_is_runtime_error() -> None:
    tokens, _ = scan("super.m();")
    statements, _ = parse(tokens)
    with pytest.raises(LoxRuntimeError, match="can't use 'super' outside of a class"):
        Interpreter().interpret(statements)


def test_environment_depth_past_chain_is_lookup_error() -> None:
    inner = Environment(Environment())
    inner.enclosing.define("x", 1.0)
    assert inner.get_at(1, "x") == 1.0
    with pytest.raises(LookupError):
        inner.get_at(2, "x")


#bindings live only as long as the code they describe
def test_session_bindings_follow_reachable_code() -> None:
    interpreter = Interpreter()
    run_source("var a = 1; print a + 1;", interpreter)
    gc.collect()
    assert len(interpreter.bindings) == 0
    run_source("fn f() { return a; }", interpreter)
    assert run_source("print f();", interpreter) == ["1"]
    gc.collect()
    assert len(interpreter.bindings) == 1
