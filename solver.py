# FILE: solver.py
# LOCATION: derivator/solver.py

import logging
import math
from typing import Any, Dict, Optional

import sympy

from config import config
from differentiator import derive
from errors import EvaluationError
from evaluator import evaluate
from expression import (
    Add, Call, Div, Expression, Mul, Negate, Number, Power, Step, Sub, Variable, children, to_tex,
)
from expr_parser import parse
from lexer import tokenize
from simplifier import simplify

logger = logging.getLogger(__name__)


# --- 1. Input normalization ---
def normalize_expression(expr: str) -> str:
    """Map the unicode symbols an on-screen keyboard produces to ASCII.

    Only characters with a direct ASCII spelling are replaced; anything else
    is left for the lexer to reject.
    """
    expr = expr.strip()
    char_map = {
        '²': '^2', '³': '^3', '√': 'sqrt', '·': '*', '×': '*', '÷': '/', '−': '-',
    }
    for k, v in char_map.items():
        expr = expr.replace(k, v)
    return expr


# --- 2. SymPy bridge, used to cross-check the engine ---
SYMPY_FUNCTIONS = {
    'sin': sympy.sin, 'cos': sympy.cos, 'tan': sympy.tan,
    'ln': sympy.log, 'log': sympy.log, 'exp': sympy.exp,
    'sqrt': sympy.sqrt, 'abs': sympy.Abs, 'sgn': sympy.sign,
    # the math module has no sec, so it is written as 1/cos for lambdify
    'sec': lambda arg: 1 / sympy.cos(arg),
}


def _variable_names(expr: Expression):
    names = set()
    stack = [expr]
    while stack:
        node = stack.pop()
        if isinstance(node, Variable):
            names.add(node.name)
        stack.extend(children(node))
    return names


def to_sympy(expr: Expression, symbols: Optional[Dict[str, sympy.Symbol]] = None):
    """Convert an expression tree into the equivalent SymPy expression.

    Variables become real symbols so that ``Abs`` differentiates to ``sign``.
    """
    if symbols is None:
        symbols = {name: sympy.Symbol(name, real=True) for name in _variable_names(expr)}

    if isinstance(expr, Number):
        if float(expr.value).is_integer():
            return sympy.Integer(int(expr.value))
        return sympy.Float(expr.value)
    if isinstance(expr, Variable):
        return symbols[expr.name]
    if isinstance(expr, Negate):
        return -to_sympy(expr.operand, symbols)
    if isinstance(expr, Add):
        return to_sympy(expr.left, symbols) + to_sympy(expr.right, symbols)
    if isinstance(expr, Sub):
        return to_sympy(expr.left, symbols) - to_sympy(expr.right, symbols)
    if isinstance(expr, Mul):
        return to_sympy(expr.left, symbols) * to_sympy(expr.right, symbols)
    if isinstance(expr, Div):
        return to_sympy(expr.left, symbols) / to_sympy(expr.right, symbols)
    if isinstance(expr, Power):
        return to_sympy(expr.base, symbols) ** to_sympy(expr.exponent, symbols)
    if isinstance(expr, Call):
        function = SYMPY_FUNCTIONS.get(expr.name)
        if function is None:
            function = sympy.Function(expr.name)
        return function(to_sympy(expr.arg, symbols))
    raise TypeError(f"Unknown expression node: {expr!r}")


# Points at which the engine's derivative is compared with SymPy's
VERIFY_POINTS = (0.3, 0.7, 1.3, 2.1)


def _sample(function, values):
    try:
        value = function(*values)
    except (ArithmeticError, ValueError, TypeError):
        return None
    if isinstance(value, complex) or not math.isfinite(value):
        return None
    return float(value)


def verify_derivative(expr: Expression, derivative: Expression, variable: str) -> Optional[bool]:
    """Compare ``derivative`` with SymPy's derivative of ``expr``.

    Both sides are evaluated numerically at ``VERIFY_POINTS`` rather than
    simplified symbolically, so the check stays fast on deeply nested input.
    Points where either side is undefined are skipped. Returns True/False,
    or None when no point could be compared (or SymPy fails).
    """
    names = sorted(_variable_names(expr) | _variable_names(derivative) | {variable})
    symbols = {name: sympy.Symbol(name, real=True) for name in names}
    try:
        expected = sympy.diff(to_sympy(expr, symbols), symbols[variable])
        actual = to_sympy(derivative, symbols)
        arguments = [symbols[name] for name in names]
        expected_fn = sympy.lambdify(arguments, expected, modules="math")
        actual_fn = sympy.lambdify(arguments, actual, modules="math")
        compared = 0
        for point in VERIFY_POINTS:
            # other variables are held at fixed values next to the sample point
            values = [point if name == variable else point + 0.1 * (i + 1) for i, name in enumerate(names)]
            want, got = _sample(expected_fn, values), _sample(actual_fn, values)
            if want is None or got is None:
                continue
            if not math.isclose(want, got, rel_tol=1e-7, abs_tol=1e-9):
                return False
            compared += 1
    except Exception as e:
        # SymPy is only a second opinion; its failures never fail the request
        logger.warning("SymPy verification failed for %s: %r", to_tex(expr), e)
        return None
    return True if compared else None


# --- 3. The main pipeline ---
def differentiate(expression_str: str, variable: str = "x", max_depth: Optional[int] = None):
    """Run text -> tokens -> tree -> derivative -> simplified derivative.

    Returns ``(parsed, derivative, steps, simplified)``. Engine errors
    propagate as ``DerivationError`` subclasses.
    """
    tokens = tokenize(normalize_expression(expression_str))
    parsed = parse(tokens, max_depth=max_depth)
    derivative, steps = derive(parsed, variable, max_depth=max_depth)
    simplified = simplify(derivative)
    return parsed, derivative, steps, simplified


def solve_derivative(expression_str: str, variable: Optional[str] = None,
                     eval_point: Optional[float] = None, verify: Optional[bool] = None,
                     max_depth: Optional[int] = None) -> Dict[str, Any]:
    """Differentiates an expression, providing the worked steps.

    The steps are the differentiator's trace followed by a final
    simplification step, so the last ``result`` is always the answer shown
    in ``solution_summary``.
    """
    variable = variable or config.DEFAULT_VARIABLE
    if verify is None:
        verify = config.VERIFY_WITH_SYMPY

    parsed, derivative, steps, simplified = differentiate(expression_str, variable, max_depth)
    logger.info("Derived %s w.r.t. %s: %s", to_tex(parsed), variable, to_tex(simplified))

    trace = steps + [Step(
        "Final simplification", derivative, simplified,
        "Basic simplifications applied (constants, 0 and 1 identities, combined powers).",
    )]
    result: Dict[str, Any] = {
        "input": to_tex(parsed),
        "variable": variable,
        "derivative": to_tex(derivative),
        "solution_summary": to_tex(simplified),
        "steps": [step.to_dict() for step in trace],
    }

    if eval_point is not None:
        value = evaluate(simplified, {variable: eval_point})
        if not math.isfinite(value):
            raise EvaluationError(f"The derivative is undefined at {variable} = {eval_point}")
        result["value"] = value

    if verify:
        verified = verify_derivative(parsed, simplified, variable)
        if verified is False:
            logger.warning("SymPy disagrees with the derivative of %s", to_tex(parsed))
        result["verified"] = verified
    return result
