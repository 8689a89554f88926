import sys

import pytest
from roomlang.interpreter import Interpreter, parse_program, run_program
from roomlang.errors import RoomError


def output_of(source, capsys):
    run_program(source)
    return capsys.readouterr().out.splitlines()


def error_of(source):
    with pytest.raises(RoomError) as excinfo:
        run_program(source)
    return excinfo.value.err


def test_integer_arithmetic(capsys):
    assert output_of('''
        print(-7 / 2);
        print(7 / -2);
        print(65536 * 65536);
        print(-2147483647 - 2);
        print(2 * 3 + 4);
    ''', capsys) == ['-3', '-3', '0', '2147483647', '10']


def test_float_arithmetic(capsys):
    assert output_of('''
        print(7.0 / 2);
        print(1 + 0.5);
        print(2 ^ 2);
        print((0 - 8) ^ 0.5);
        print(-2 ^ 2);
        print(0.1 + 0.2);
    ''', capsys) == ['3.5', '1.5', '4.0', 'nan', '-4.0', '0.3']


@pytest.mark.parametrize('source, kind', [
    ('1 / 0;', 'DivisionByZero'),
    ('1.0 / 0.0;', 'DivisionByZero'),
    ('1 / -0.0;', 'DivisionByZero'),
    ('"a" + 1;', 'TypeError'),
    ('true + 1;', 'TypeError'),
    ('[1] * 2;', 'TypeError'),
    ('-"a";', 'TypeError'),
    ('1 = 1;', 'InvalidOperation'),
    ('print(x);', 'NameError'),
    ('nope(1);', 'NameError'),
    ('func f(a) ret a; f(1, 2);', 'ArityError'),
    ('room A_ROOM = 5;', 'TypeError'),
    ('for (x in 5) print(x);', 'TypeError'),
])
def test_runtime_errors(source, kind):
    assert error_of(source).name == kind


def test_error_messages():
    assert error_of('print(x);').message == 'undefined variable x'
    assert error_of('nope();').message == 'undefined function nope'
    assert str(error_of('1 / 0;')) == "Error(name='DivisionByZero', message='division by zero')"


def test_defaults_and_redeclaration(capsys):
    assert output_of('''
        var x;
        room A_ROOM;
        print(x);
        print(A_ROOM);
        var x = "again";
        print(x);
    ''', capsys) == ['0', '[]', '"again"']


def test_blocks_share_one_environment(capsys):
    assert output_of('{ var y = 3; } print(y);', capsys) == ['3']


def test_room_indexing(capsys):
    assert output_of('''
        room A_ROOM = [1, 2, 3];
        print(A_ROOM[1.9]);
        A_ROOM[2] = "z";
        print(A_ROOM);
    ''', capsys) == ['2', '[1, 2, "z"]']


@pytest.mark.parametrize('source, kind', [
    ('room A_ROOM = [1]; print(A_ROOM[1]);', 'IndexError'),
    ('room A_ROOM = [1]; print(A_ROOM[-1]);', 'IndexError'),
    ('room A_ROOM = [1]; print(A_ROOM[pow(10, 400)]);', 'IndexError'),
    ('room A_ROOM = [1]; A_ROOM[5] = 0;', 'IndexError'),
    ('room A_ROOM = [1]; print(A_ROOM["0"]);', 'TypeError'),
    ('B_ROOM = 5; print(B_ROOM[0]);', 'TypeError'),
    ('print(C_ROOM[0]);', 'NameError'),
    ('C_ROOM[0] = 1;', 'NameError'),
])
def test_index_errors(source, kind):
    assert error_of(source).name == kind


def test_rooms_are_values(capsys):
    assert output_of('''
        room A_ROOM = [[1, 2], 3];
        room B_ROOM = A_ROOM;
        B_ROOM[0] = 0;
        print(A_ROOM);
        room C_ROOM = [A_ROOM, A_ROOM];
        A_ROOM[1] = 5;
        print(C_ROOM);
    ''', capsys) == ['[[1, 2], 3]', '[[[1, 2], 3], [[1, 2], 3]]']


def test_call_restores_whole_environment(capsys):
    assert output_of('''
        room DATA_ROOM = [1, 2];
        var seen = 0;
        func touch(X_ROOM) {
            X_ROOM[0] = 100;
            DATA_ROOM[1] = 200;
            seen = 1;
            var fresh = 1;
            ret X_ROOM;
        }
        print(touch(DATA_ROOM));
        print(DATA_ROOM);
        print(seen);
        print(touch([5, 6]));
    ''', capsys) == ['[100, 2]', '[1, 2]', '0', '[100, 6]']
    assert error_of('func f() { var fresh = 1; } f(); print(fresh);').name == 'NameError'


def test_environment_restored_after_error():
    interp = Interpreter()
    with pytest.raises(RoomError):
        interp.run(parse_program('var x = 1; func f() { x = 2; ret 1 / 0; } f();'))
    assert interp.global_env.get('x') == 1


def test_recursion_and_implicit_return(capsys):
    assert output_of('''
        func fib(n) {
            if (n - 1) then { if (n) then ret fib(n - 1) + fib(n - 2); }
            ret n;
        }
        print(fib(15));
        func nothing() { var a = 1; }
        print(nothing());
    ''', capsys) == ['610', '0']


def test_function_must_be_declared_before_call():
    assert error_of('print(later()); func later() ret 1;').name == 'NameError'


def test_function_redefinition(capsys):
    assert output_of('''
        func f() ret 1;
        print(f());
        func f() ret 2;
        print(f());
    ''', capsys) == ['1', '2']


def test_top_level_return_stops_program(capsys):
    assert run_program('print(1); ret 5; print(2);') == 5
    assert capsys.readouterr().out == '1\n'
    assert run_program('ret;') == 0
    assert run_program('var a = 1;') is None
    assert run_program('while (true) { ret "done"; }') == 'done'


def test_return_from_nested_loops(capsys):
    assert output_of('''
        func find(T_ROOM, wanted) {
            var i = 0;
            while (true) {
                for (x in T_ROOM) {
                    if (x - wanted) then continue;
                    ret i;
                }
                i = i + 1;
                if (i - 3) then continue; else break;
            }
            ret -1;
        }
        print(find([1, 2], 2));
        print(find([1, 2], 7));
    ''', capsys) == ['0', '-1']


def test_break_leaves_innermost_loop(capsys):
    assert output_of('''
        var rounds = 0;
        while (rounds - 2) {
            rounds = rounds + 1;
            for (x in [1, 2, 3]) {
                if (x - 2) then print(x); else break;
            }
        }
        print(rounds);
    ''', capsys) == ['1', '1', '2']


def test_for_iterates_snapshot(capsys):
    assert output_of('''
        room A_ROOM = [1, 2, 3];
        for (x in A_ROOM) {
            A_ROOM[2] = 100;
            print(x);
        }
        print(x);
        print(A_ROOM);
    ''', capsys) == ['1', '2', '3', '3', '[1, 2, 100]']


def test_while_truthiness(capsys):
    assert output_of('''
        var s = "";
        while (s) print("never");
        room Q_ROOM = [1, 2];
        var n = 0;
        while (len(Q_ROOM) - n) n = n + 1;
        print(n);
    ''', capsys) == ['2']


def test_debug_trace(tmp_path):
    debug_file = tmp_path / 'trace.txt'
    interp = Interpreter(debug_level=3, debug_file=str(debug_file))
    interp.run(parse_program('func f(a) ret a; var x = f(1); if (x) then x = 2;'))
    trace = debug_file.read_text(encoding='utf-8')
    assert 'define function f(a)' in trace
    assert 'call f(1)' in trace
    assert 'return 1 from f' in trace
    assert 'declare x = 1' in trace
    assert 'if condition 1 -> True' in trace


def test_no_debug_file_at_level_zero(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    Interpreter().run(parse_program('var x = 1;'))
    assert not (tmp_path / 'debug.txt').exists()


def test_parameter_shadows_global_only_inside_call(capsys):
    assert output_of('''
        var x = 1;
        func f(x) {
            x = 99;
            print(x);
        }
        f(1);
        print(x);
    ''', capsys) == ['99', '1']


def test_deep_recursion():
    limit = sys.getrecursionlimit()
    source = 'func s(n) { if (n) then ret n + s(n - 1); ret 0; } ret s(500);'
    assert run_program(source) == 125250
    assert run_program(source, frontend='lark') == 125250
    assert sys.getrecursionlimit() == limit


def test_runaway_recursion_is_a_language_error():
    limit = sys.getrecursionlimit()
    err = error_of('func down(n) ret down(n + 1); down(0);')
    assert err.name == 'RecursionError'
    assert 'down()' in err.message
    assert sys.getrecursionlimit() == limit
