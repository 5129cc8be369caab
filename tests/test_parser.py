import pytest

from errors import ParseError, TooDeep
from expr_parser import parse, parse_expression
from expression import Add, Call, Div, Mul, Negate, Number, Power, Sub, Variable
from lexer import scan

x = Variable("x")


def n(value):
    return Number(float(value))


@pytest.mark.parametrize("source, expected", [
    ("1+2*3", Add(n(1), Mul(n(2), n(3)))),
    ("1-2-3", Sub(Sub(n(1), n(2)), n(3))),
    ("8/4/2", Div(Div(n(8), n(4)), n(2))),
    ("(1+2)*3", Mul(Add(n(1), n(2)), n(3))),
    ("2x^3", Mul(n(2), Power(x, n(3)))),
    ("x^-1", Power(x, Negate(n(1)))),
    ("--x", Negate(Negate(x))),
    ("sin(x+1)", Call("sin", Add(x, n(1)))),
    ("x(x+1)", Mul(x, Add(x, n(1)))),
])
def test_precedence_and_associativity(source, expected):
    assert parse_expression(source) == expected


def test_exponentiation_chains_left_to_right():
    assert parse_expression("2^3^2") == Power(Power(n(2), n(3)), n(2))


def test_unary_minus_binds_tighter_than_power():
    assert parse_expression("-x^2") == Power(Negate(x), n(2))


def test_unknown_name_before_paren_is_a_product():
    assert parse_expression("f(x)") == Mul(Variable("f"), x)


def test_parse_builds_calls_from_raw_tokens():
    # without the implicit multiplication pass any name can be applied
    assert parse(scan("foo(x)")) == Call("foo", x)


def test_nested_calls():
    assert parse_expression("ln(sqrt(x))") == Call("ln", Call("sqrt", x))


@pytest.mark.parametrize("source, expected, found", [
    ("(x+1", ")", "EOF"),
    ("x+", "expression", "EOF"),
    ("", "expression", "EOF"),
    ("x)", "end of input", ")"),
    ("*x", "expression", "*"),
    ("sin()", "expression", ")"),
])
def test_parse_errors_report_expected_and_found(source, expected, found):
    with pytest.raises(ParseError) as exc_info:
        parse_expression(source)
    assert exc_info.value.expected == expected
    assert exc_info.value.found == found


def test_deep_parenthesis_nesting_is_rejected():
    source = "(" * 150 + "x" + ")" * 150
    with pytest.raises(TooDeep):
        parse_expression(source)


def test_nesting_limit_is_configurable():
    assert parse_expression("((x))", max_depth=5) == x
    with pytest.raises(TooDeep) as exc_info:
        parse_expression("-(-(-(x)))", max_depth=3)
    assert exc_info.value.limit == 3


def test_long_flat_chains_are_bounded_by_tree_height():
    with pytest.raises(TooDeep):
        parse_expression("+".join(["x"] * 10), max_depth=5)
