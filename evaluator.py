"""Numeric evaluation of expression trees (used for ``eval_point``)."""

import math
from typing import Mapping

from errors import EvaluationError
from expression import Add, Call, Div, Expression, Mul, Negate, Number, Power, Sub, Variable
from simplifier import divide


def _sign(value):
    if value > 0:
        return 1.0
    if value < 0:
        return -1.0
    return 0.0


FUNCTIONS = {
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "ln": math.log,
    "log": math.log,
    "exp": math.exp,
    "sqrt": math.sqrt,
    "abs": abs,
    "sec": lambda value: divide(1.0, math.cos(value)),
    "sgn": _sign,
}


def evaluate(expr: Expression, env: Mapping[str, float]) -> float:
    """Evaluate ``expr`` with variables bound by ``env``.

    ``log`` is the natural logarithm, the same function ``ln`` is.
    """
    if isinstance(expr, Number):
        return expr.value
    if isinstance(expr, Variable):
        if expr.name not in env:
            raise EvaluationError(f"No value given for variable '{expr.name}'")
        return float(env[expr.name])
    if isinstance(expr, Negate):
        return -evaluate(expr.operand, env)
    if isinstance(expr, Add):
        return evaluate(expr.left, env) + evaluate(expr.right, env)
    if isinstance(expr, Sub):
        return evaluate(expr.left, env) - evaluate(expr.right, env)
    if isinstance(expr, Mul):
        return evaluate(expr.left, env) * evaluate(expr.right, env)
    if isinstance(expr, Div):
        return divide(evaluate(expr.left, env), evaluate(expr.right, env))
    if isinstance(expr, Power):
        base, exponent = evaluate(expr.base, env), evaluate(expr.exponent, env)
        try:
            result = math.pow(base, exponent)
        except (ValueError, OverflowError) as e:
            raise EvaluationError(f"Cannot evaluate {base}^{exponent}: {e}") from e
        return result
    if isinstance(expr, Call):
        function = FUNCTIONS.get(expr.name)
        if function is None:
            raise EvaluationError(f"Unknown function '{expr.name}'")
        arg = evaluate(expr.arg, env)
        try:
            return float(function(arg))
        except (ValueError, OverflowError) as e:
            raise EvaluationError(f"{expr.name}({arg}) is undefined: {e}") from e
    raise TypeError(f"Unknown expression node: {expr!r}")
