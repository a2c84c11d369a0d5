"""
Interpreter tests for Lox
Programs are run end to end through a session; assertions are on printed output
"""

import io

import pytest
from interpreter import NORMAL, Completion, Interpreter, create_debug_interpreter, create_interpreter, returned
from parsing import parse, scan
from session import create_session
from stdlib import create_globals


class TestArithmetic:
  """Numeric operators, precedence and the typing of +"""

  @pytest.mark.parametrize("source, expected", [
      ("print 1 + 2;", "3"),
      ("print 2 + 3 * 4;", "14"),
      ("print (2 + 3) * 4;", "20"),
      ("print 10 - 4 - 3;", "3"),
      ("print 7 / 2;", "3.5"),
      ("print -(3);", "-3"),
      ("print 1 / 3;", "0.3333333333333333"),
      ("print 0.1 + 0.2;", "0.30000000000000004"),
  ])
  def test_numeric_results(self, run_lox, source, expected):
    assert run_lox(source).lines == [expected]

  def test_string_concatenation(self, run_lox):
    assert run_lox('print "foo" + "bar";').lines == ["foobar"]

  def test_division_by_zero_follows_ieee(self, run_lox):
    run = run_lox("print 1 / 0; print -1 / 0; print 0 / 0;")
    assert run.lines == ["Infinity", "-Infinity", "NaN"]
    assert run.outcome.exit_code == 0

  def test_comparisons(self, run_lox):
    assert run_lox("print 1 < 2; print 2 <= 2; print 1 > 2; print 3 >= 4;").lines == [
        "true", "true", "false", "false",
    ]

  @pytest.mark.parametrize("source", [
      'print 1 + "a";',
      'print "a" + nil;',
      'print true + true;',
  ])
  def test_plus_rejects_mixed_operands(self, run_lox, source):
    run = run_lox(source)
    assert run.out == ""
    assert run.err == "Operands must be two numbers or two strings.\n[line: 1]\n"
    assert run.outcome.exit_code == 65

  def test_negating_a_string(self, run_lox):
    run = run_lox('print -"a";')
    assert run.err.startswith("Operand must be a number.")

  @pytest.mark.parametrize("source", ['print "a" * 2;', 'print nil < 1;', 'print 1 - false;'])
  def test_numeric_operators_require_numbers(self, run_lox, source):
    assert run_lox(source).err.startswith("Operand(s) must be a number.")


class TestTruthAndEquality:
  """Truthiness and equality without coercion"""

  @pytest.mark.parametrize("source, expected", [
      ("print !nil;", "true"),
      ("print !false;", "true"),
      ("print !0;", "false"),
      ('print !"";', "false"),
      ("print !!true;", "true"),
  ])
  def test_truthiness(self, run_lox, source, expected):
    assert run_lox(source).lines == [expected]

  @pytest.mark.parametrize("source, expected", [
      ("print nil == nil;", "true"),
      ("print nil == false;", "false"),
      ("print 1 == 1;", "true"),
      ('print 1 == "1";', "false"),
      ('print "a" == "a";', "true"),
      ("print true != false;", "true"),
      ("print 0 == false;", "false"),
      ("print 0/0 == 0/0;", "false"),
  ])
  def test_equality(self, run_lox, source, expected):
    assert run_lox(source).lines == [expected]

  def test_functions_compare_by_identity(self, run_lox):
    run = run_lox("func f() {} func g() {} var h = f; print f == h; print f == g;")
    assert run.lines == ["true", "false"]

  def test_logical_operators_return_operands(self, run_lox):
    run = run_lox('print nil or "yes"; print "a" or "b"; print nil and 1; print 1 and 2;')
    assert run.lines == ["yes", "a", "nil", "2"]

  def test_logical_operators_short_circuit(self, run_lox):
    source = (
        "var called = false;\n"
        "func touch() { called = true; return true; }\n"
        "print false and touch();\n"
        "print true or touch();\n"
        "print called;\n"
    )
    assert run_lox(source).lines == ["false", "true", "false"]


class TestDisplay:

  @pytest.mark.parametrize("source, expected", [
      ("print nil;", "nil"),
      ("print true;", "true"),
      ("print 3.0;", "3"),
      ("print 2.5;", "2.5"),
      ("print 10000000000000000;", "10000000000000000"),
      ("print 1 / 10000000;", "1e-7"),
      ("print -0;", "-0"),
      ('print "text";', "text"),
      ("func hello() {} print hello;", "<fn hello>"),
      ("print clock;", "<native fn>"),
  ])
  def test_print_formats(self, run_lox, source, expected):
    assert run_lox(source).lines == [expected]

  def test_clock_returns_a_number(self, run_lox):
    assert run_lox("print clock() > 0;").lines == ["true"]


class TestVariablesAndScope:

  def test_uninitialised_variable_is_nil(self, run_lox):
    assert run_lox("var a; print a;").lines == ["nil"]

  def test_assignment_is_an_expression(self, run_lox):
    assert run_lox("var a; var b; a = b = 3; print a; print b;").lines == ["3", "3"]

  def test_block_scoping_and_shadowing(self, run_lox):
    source = (
        'var a = "global a";\n'
        'var b = "global b";\n'
        "{\n"
        '  var a = "outer a";\n'
        "  {\n"
        '    var a = "inner a";\n'
        "    print a;\n"
        "    print b;\n"
        "  }\n"
        "  print a;\n"
        "}\n"
        "print a;\n"
    )
    assert run_lox(source).lines == ["inner a", "global b", "outer a", "global a"]

  def test_assignment_in_block_reaches_outer(self, run_lox):
    assert run_lox("var a = 1; { a = 2; } print a;").lines == ["2"]

  def test_global_redeclaration_is_allowed(self, run_lox):
    assert run_lox("var a = 1; var a = 2; print a;").lines == ["2"]

  def test_undefined_variable(self, run_lox):
    run = run_lox("print 1;\nprint missing;\nprint 3;")
    assert run.lines == ["1"]
    assert run.err == "Undefined variable 'missing'.\n[line: 2]\n"
    assert run.outcome.had_runtime_error

  def test_assigning_undefined_variable(self, run_lox):
    assert run_lox("missing = 1;").err.startswith("Undefined variable 'missing'.")

  def test_environment_restored_after_error_in_block(self):
    out, err = io.StringIO(), io.StringIO()
    interpreter = create_interpreter(stdout=out, stderr=err)
    statements, _ = parse(scan("{ var inner = 1; print nope; }")[0])
    assert interpreter.interpret(statements) is not None
    assert interpreter.environment is interpreter.globals


class TestControlFlow:

  def test_if_else(self, run_lox):
    assert run_lox('if (1 > 2) print "a"; else print "b";').lines == ["b"]

  def test_if_without_else(self, run_lox):
    assert run_lox('if (nil) print "never"; print "after";').lines == ["after"]

  def test_while(self, run_lox):
    assert run_lox("var i = 0; while (i < 3) { print i; i = i + 1; }").lines == ["0", "1", "2"]

  def test_for(self, run_lox):
    assert run_lox("for (var i = 0; i < 3; i = i + 1) print i;").lines == ["0", "1", "2"]

  def test_for_variable_is_scoped_to_loop(self, run_lox):
    run = run_lox("for (var i = 0; i < 1; i = i + 1) {} print i;")
    assert run.err.startswith("Undefined variable 'i'.")

  def test_fibonacci_loop(self, run_lox):
    source = (
        "var a = 0;\n"
        "var temp;\n"
        "for (var b = 1; a < 100; b = temp + b) {\n"
        "  print a;\n"
        "  temp = a;\n"
        "  a = b;\n"
        "}\n"
    )
    assert run_lox(source).lines == ["0", "1", "1", "2", "3", "5", "8", "13", "21", "34", "55", "89"]


class TestFunctions:

  def test_call_and_return(self, run_lox):
    assert run_lox("func add(a, b) { return a + b; } print add(1, 2);").lines == ["3"]

  def test_missing_return_gives_nil(self, run_lox):
    assert run_lox("func f() { 1; } print f();").lines == ["nil"]

  def test_bare_return_gives_nil(self, run_lox):
    assert run_lox('func f() { return; print "no"; } print f();').lines == ["nil"]

  def test_recursion(self, run_lox):
    source = (
        "func fact(n) { if (n <= 1) return 1; return n * fact(n - 1); }\n"
        "print fact(10);\n"
    )
    assert run_lox(source).lines == ["3628800"]

  def test_recursive_fibonacci(self, run_lox):
    source = (
        "func fib(n) { if (n < 2) return n; return fib(n - 2) + fib(n - 1); }\n"
        "print fib(15);\n"
    )
    assert run_lox(source).lines == ["610"]

  def test_return_unwinds_nested_loops(self, run_lox):
    source = (
        "func find() {\n"
        "  for (var i = 0; i < 10; i = i + 1) {\n"
        "    while (true) {\n"
        "      if (i == 3) return i;\n"
        "      i = i + 1;\n"
        "    }\n"
        "  }\n"
        "}\n"
        "print find();\n"
    )
    assert run_lox(source).lines == ["3"]

  def test_return_inside_block_stops_function(self, run_lox):
    source = 'func f() { { return "inner"; } return "outer"; } print f();'
    assert run_lox(source).lines == ["inner"]

  def test_closures_keep_independent_state(self, run_lox):
    source = (
        "func makeCounter() {\n"
        "  var i = 0;\n"
        "  func count() { i = i + 1; return i; }\n"
        "  return count;\n"
        "}\n"
        "var c1 = makeCounter();\n"
        "var c2 = makeCounter();\n"
        "print c1();\n"
        "print c1();\n"
        "print c2();\n"
        "print c1();\n"
    )
    assert run_lox(source).lines == ["1", "2", "1", "3"]

  def test_closures_are_lexical_not_dynamic(self, run_lox):
    source = (
        'var a = "global";\n'
        "func show() { print a; }\n"
        "func caller() { var a = \"local\"; show(); }\n"
        "caller();\n"
    )
    assert run_lox(source).lines == ["global"]

  def test_closure_sees_later_assignment(self, run_lox):
    source = "var x = 1; func get() { return x; } x = 2; print get();"
    assert run_lox(source).lines == ["2"]

  def test_parameters_shadow_globals(self, run_lox):
    assert run_lox("var a = 1; func f(a) { print a; } f(2); print a;").lines == ["2", "1"]

  def test_functions_are_values(self, run_lox):
    source = "func twice(f, x) { return f(f(x)); } func inc(n) { return n + 1; } print twice(inc, 5);"
    assert run_lox(source).lines == ["7"]

  def test_arguments_evaluate_left_to_right(self, run_lox):
    source = (
        "func show(x) { print x; return x; }\n"
        "func three(a, b, c) { return a + b + c; }\n"
        "print three(show(1), show(2), show(3));\n"
    )
    assert run_lox(source).lines == ["1", "2", "3", "6"]

  def test_arity_mismatch(self, run_lox):
    run = run_lox("func f(a, b) {}\nf(1);")
    assert run.err == "Expected 2 arguments but got 1.\n[line: 2]\n"

  def test_native_arity_is_checked(self, run_lox):
    assert run_lox("clock(1);").err.startswith("Expected 0 arguments but got 1.")

  @pytest.mark.parametrize("source", ['"text"();', "nil();", "var x = 1; x();"])
  def test_calling_a_non_callable(self, run_lox, source):
    assert run_lox(source).err.startswith("Can only call functions and classes.")

  def test_runtime_error_inside_function_halts_program(self, run_lox):
    run = run_lox('func f() { print "in"; return -nil; }\nf();\nprint "after";')
    assert run.lines == ["in"]
    assert run.err == "Operand must be a number.\n[line: 1]\n"

  def test_unbounded_recursion_escapes_as_recursion_error(self, run_lox):
    with pytest.raises(RecursionError):
      run_lox("func f() { return f(); } f();")


class TestInterpreterApi:
  """Direct use of the interpreter outside a session"""

  def test_completions(self):
    assert NORMAL == Completion()
    assert not NORMAL.returned
    assert returned(2.0) == Completion(True, 2.0)

  def test_interpret_returns_none_on_success(self):
    out = io.StringIO()
    interpreter = Interpreter(stdout=out)
    statements, _ = parse(scan("print 1;")[0])
    assert interpreter.interpret(statements) is None
    assert out.getvalue() == "1\n"

  def test_globals_persist_between_calls(self):
    out = io.StringIO()
    interpreter = Interpreter(stdout=out)
    interpreter.interpret(parse(scan("var a = 40;")[0])[0])
    interpreter.interpret(parse(scan("print a + 2;")[0])[0])
    assert out.getvalue() == "42\n"

  def test_each_interpreter_has_own_globals(self):
    assert create_globals() is not create_globals()
    assert "clock" in Interpreter().globals

  def test_debug_traces_go_to_stderr(self, run_lox):
    run = run_lox("func f() {} f();", debug=True)
    assert run.out == ""
    assert "Calling <fn f>" in run.err

  def test_debug_interpreter_writes_to_given_streams(self):
    out, err = io.StringIO(), io.StringIO()
    interpreter = create_debug_interpreter(stdout=out, stderr=err)
    assert interpreter.debug
    interpreter.interpret(parse(scan("print 1;")[0])[0])
    assert out.getvalue() == "1\n"
    assert err.getvalue() == "Executing Print\n"

  def test_debug_session_uses_debug_interpreter(self):
    assert create_session(debug=True).interpreter.debug
    assert not create_session().interpreter.debug
