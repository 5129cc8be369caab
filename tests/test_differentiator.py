import pytest

from differentiator import derive
from errors import TooDeep, UnsupportedFunction
from expr_parser import parse_expression
from expression import Add, Call, Div, Mul, Negate, Number, Power, Sub, Variable

x = Variable("x")
y = Variable("y")
ZERO = Number(0.0)
ONE = Number(1.0)
TWO = Number(2.0)


def rules(steps):
    return [step.rule for step in steps]


def d(source, variable="x"):
    return derive(parse_expression(source), variable)


def test_constant():
    result, steps = d("5")
    assert result == ZERO
    assert rules(steps) == ["Constant"]
    assert steps[0].before == Number(5.0)


def test_variable_against_other_variable():
    assert d("x")[0] == ONE
    result, steps = d("y")
    assert result == ZERO
    assert steps[0].note == "d(y)/dx = 0"


def test_differentiation_variable_is_honoured():
    result, _ = d("y^2", variable="y")
    assert result == Mul(TWO, Power(y, ONE))


def test_negative_sum_and_difference():
    result, steps = d("-x + y - 3")
    assert result == Sub(Add(Negate(ONE), ZERO), ZERO)
    assert rules(steps) == ["Variable", "Negative", "Variable", "Sum", "Constant", "Difference"]


def test_power_rule_on_the_variable_collapses_the_chain_factor():
    result, steps = d("x^2")
    assert result == Mul(TWO, Power(x, ONE))
    assert rules(steps) == ["Power rule"]


def test_power_rule_with_chain_rule():
    result, steps = d("(x+1)^3")
    assert result == Mul(Mul(Number(3.0), Power(Add(x, ONE), TWO)), Add(ONE, ZERO))
    assert rules(steps) == ["Variable", "Constant", "Sum", "Power rule"]


def test_product_rule_announces_itself_first():
    result, steps = d("x*x")
    assert result == Add(Mul(ONE, x), Mul(x, ONE))
    assert rules(steps) == ["Product rule (preparation)", "Variable", "Variable", "Product rule"]
    assert steps[0].before == steps[0].after == Mul(x, x)
    assert steps[-1].after == result


def test_quotient_rule():
    result, steps = d("x/y")
    assert result == Div(Sub(Mul(ONE, y), Mul(x, ZERO)), Power(y, TWO))
    assert rules(steps)[0] == "Quotient rule (preparation)"
    assert rules(steps)[-1] == "Quotient rule"


@pytest.mark.parametrize("source, expected", [
    ("sin(x)", Mul(Call("cos", x), ONE)),
    ("cos(x)", Mul(Negate(Call("sin", x)), ONE)),
    ("tan(x)", Mul(Power(Call("sec", x), TWO), ONE)),
    ("ln(x)", Div(ONE, x)),
    ("log(x)", Div(ONE, x)),
    ("exp(x)", Mul(Call("exp", x), ONE)),
    ("sqrt(x)", Div(ONE, Mul(TWO, Call("sqrt", x)))),
    ("abs(x)", Mul(Call("sgn", x), ONE)),
])
def test_chain_rule_per_function(source, expected):
    result, steps = d(source)
    assert result == expected
    assert rules(steps) == ["Variable", "Chain rule"]


def test_chain_rule_on_inner_expression():
    result, _ = d("sin(2x)")
    inner = Mul(TWO, x)
    assert result == Mul(Call("cos", inner), Add(Mul(ZERO, x), Mul(TWO, ONE)))


def test_general_power_uses_logarithmic_differentiation():
    result, steps = d("x^x")
    log_derivative = Add(Mul(ONE, Call("ln", x)), Mul(x, Div(ONE, x)))
    assert result == Mul(Power(x, x), log_derivative)
    assert steps[0].rule == "General power (preparation)"
    assert steps[0].after == Mul(x, Call("ln", x))
    assert steps[-1].rule == "General power"


@pytest.mark.parametrize("name", ["sec", "sgn", "foo"])
def test_unsupported_functions(name):
    with pytest.raises(UnsupportedFunction) as exc_info:
        derive(Call(name, x), "x")
    assert exc_info.value.name == name


def test_unsupported_function_nested_inside_supported_one():
    with pytest.raises(UnsupportedFunction):
        d("sin(sec(x))")


def test_recursion_depth_is_bounded():
    expr = x
    for _ in range(10):
        expr = Negate(expr)
    with pytest.raises(TooDeep):
        derive(expr, "x", max_depth=5)
    result, _ = derive(expr, "x", max_depth=20)
    assert isinstance(result, Negate)


def test_input_tree_is_not_modified():
    expr = parse_expression("x^2*sin(x)")
    snapshot = parse_expression("x^2*sin(x)")
    derive(expr, "x")
    assert expr == snapshot


def test_negative_literal_exponent_uses_the_power_rule():
    result, steps = d("x^-2")
    assert result == Mul(Number(-2.0), Power(x, Number(-3.0)))
    assert rules(steps) == ["Power rule"]
    assert not any(isinstance(step.after, Call) and step.after.name == "ln" for step in steps)
