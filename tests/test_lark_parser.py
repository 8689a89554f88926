import pytest
from roomlang import parser as grammar
from roomlang.interpreter import get_frontend, parse_program, run_program
from roomlang.errors import LexerError, ParseError


EXAMPLE_PROGRAMS = [f'examples/program_{n}.room' for n in range(1, 9)]


@pytest.mark.parametrize('path', EXAMPLE_PROGRAMS)
def test_examples_parse_identically(path):
    with open(path, 'r', encoding='utf-8') as f:
        source = f.read()
    assert grammar.parse_program(source) == parse_program(source)


@pytest.mark.parametrize('source', [
    '1 + 2 * 3 - 4 / 5;',
    '2 ^ 3 ^ 2;',
    '10 - 2 - 3;',
    '-a * b + -c ^ 2;',
    '1 + -2;',
    '(1 + 2) * 3;',
    "print('c', \"s\", true, false, 1.5f, 2., 3f);",
    'var x; var y = [1, [2], []]; room A_ROOM; room B_ROOM = frag(y, 0, 1);',
    'A_ROOM[0] = A_ROOM[1] + len(A_ROOM);',
    'A_ROOM[0] * 2;',
    'x = 1; B_ROOM = [x];',
    'if (a) then if (b) then x = 1; else x = 2;',
    'if (a) then { x = 1; } else { ; }',
    'func f(a, T_ROOM) { ret a; } func g() ret; f(1, [2]);',
    'while (i) { i = i - 1; if (i) then continue; else break; }',
    'for (item in [1, 2]) print(item);',
    ';; var printer = 1 ;',
    'var odd_name_ROOMY = 1 @ ;',
    'var m = -2147483648 * 2 + 1;',
])
def test_snippets_parse_identically(source):
    assert grammar.parse_program(source) == parse_program(source)


def test_unterminated_literal_is_lex_error():
    with pytest.raises(LexerError):
        grammar.parse_program('print("abc);')
    with pytest.raises(LexerError):
        grammar.parse_program("var c = 'x;")


@pytest.mark.parametrize('source', [
    'var = 1;',
    'print(1',
    'if (1) x = 2;',
    '2147483648;',
    '1 - 2147483648;',
    'break;',
    'while (1) { func f() { continue; } }',
    'x : 1;',
])
def test_parse_errors(source):
    with pytest.raises(ParseError):
        grammar.parse_program(source)


def test_run_with_lark_frontend(capsys):
    result = run_program('func sq(n) ret n * n; print(sq(7)); ret sq(3);', frontend='lark')
    assert capsys.readouterr().out == '49\n'
    assert result == 9


def test_frontend_lookup():
    assert get_frontend('native') is parse_program
    assert get_frontend('lark') is grammar.parse_program
    with pytest.raises(ValueError):
        get_frontend('yacc')
