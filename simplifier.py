"""Best-effort algebraic simplification.

Rules run bottom-up: children are simplified first, then the node itself is
reduced. Products are flattened into ``coefficient * powers * other factors``
so that ``3x * 4x^6`` becomes ``12 x^7``; binary sums of like terms reuse the
same decomposition (``x + x`` -> ``2 x``).

This is not a canonical form. Division by a zero literal is folded to the
floating point result (``inf`` or ``nan``) instead of raising.
"""

import math
from typing import Dict, List, Optional, Tuple

from expression import Add, Call, Div, Expression, Mul, Negate, Number, Power, Sub, Variable

ZERO = Number(0.0)
ONE = Number(1.0)

Term = Tuple[float, Dict[str, float], List[Expression]]


def _num(value: float) -> Number:
    # + 0.0 turns -0.0 into 0.0
    return Number(value + 0.0)


def _is_num(node: Expression, value: Optional[float] = None) -> bool:
    return isinstance(node, Number) and (value is None or node.value == value)


def divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def split_term(node: Expression) -> Term:
    """Decompose a product into (coefficient, {variable: exponent}, other factors)."""
    coefficient = 1.0
    powers: Dict[str, float] = {}
    others: List[Expression] = []

    def visit(factor):
        nonlocal coefficient
        if isinstance(factor, Mul):
            visit(factor.left)
            visit(factor.right)
        elif isinstance(factor, Negate):
            coefficient = -coefficient
            visit(factor.operand)
        elif isinstance(factor, Number):
            coefficient *= factor.value
        elif isinstance(factor, Variable):
            powers[factor.name] = powers.get(factor.name, 0.0) + 1.0
        elif isinstance(factor, Power) and isinstance(factor.base, Variable) and isinstance(factor.exponent, Number):
            name = factor.base.name
            powers[name] = powers.get(name, 0.0) + factor.exponent.value
        else:
            others.append(factor)

    visit(node)
    return coefficient, powers, others


def build_term(coefficient: float, powers: Dict[str, float], others: List[Expression]) -> Expression:
    if coefficient == 0:
        return ZERO

    factors: List[Expression] = []
    for name, exponent in powers.items():
        if exponent == 0:
            continue
        if exponent == 1:
            factors.append(Variable(name))
        else:
            factors.append(Power(Variable(name), _num(exponent)))
    factors.extend(others)

    if not factors:
        return _num(coefficient)
    product = factors[0]
    for factor in factors[1:]:
        product = Mul(product, factor)
    if coefficient == 1:
        return product
    if coefficient == -1:
        return Negate(product)
    return Mul(_num(coefficient), product)


def _term_key(powers: Dict[str, float], others: List[Expression]):
    return tuple(sorted((name, exp) for name, exp in powers.items() if exp != 0)), tuple(others)


def _negate(operand: Expression) -> Expression:
    if isinstance(operand, Number):
        return _num(-operand.value)
    if isinstance(operand, Negate):
        return operand.operand
    coefficient, powers, others = split_term(operand)
    return build_term(-coefficient, powers, others)


def _simplify_sum(node_type, left: Expression, right: Expression) -> Expression:
    adding = node_type is Add
    if isinstance(left, Number) and isinstance(right, Number):
        return _num(left.value + right.value if adding else left.value - right.value)
    if _is_num(right, 0):
        return left
    if _is_num(left, 0):
        return right if adding else _negate(right)

    left_coef, left_powers, left_others = split_term(left)
    right_coef, right_powers, right_others = split_term(right)
    key = _term_key(left_powers, left_others)
    if key == _term_key(right_powers, right_others) and key != ((), ()):
        coefficient = left_coef + right_coef if adding else left_coef - right_coef
        return build_term(coefficient, left_powers, left_others)

    if right_coef < 0:
        # x + -2y -> x - 2y, x - -y -> x + y
        flipped = build_term(-right_coef, right_powers, right_others)
        return Sub(left, flipped) if adding else Add(left, flipped)
    return node_type(left, right)


def _simplify_product(left: Expression, right: Expression) -> Expression:
    return build_term(*split_term(Mul(left, right)))


def _as_power(node: Expression):
    if isinstance(node, Variable):
        return node.name, 1.0
    if isinstance(node, Power) and isinstance(node.base, Variable) and isinstance(node.exponent, Number):
        return node.base.name, node.exponent.value
    return None


def _simplify_quotient(left: Expression, right: Expression) -> Expression:
    if isinstance(left, Number) and isinstance(right, Number):
        return _num(divide(left.value, right.value))
    if _is_num(left, 0):
        return ZERO
    if _is_num(right, 1):
        return left

    numerator, denominator = _as_power(left), _as_power(right)
    if numerator and denominator and numerator[0] == denominator[0]:
        # x^a / x^b -> x^(a-b), and x / x -> 1
        return _simplify_power(Variable(numerator[0]), _num(numerator[1] - denominator[1]))
    return Div(left, right)


def _simplify_power(base: Expression, exponent: Expression) -> Expression:
    if _is_num(exponent, 0):
        return ONE
    if _is_num(exponent, 1):
        return base
    return Power(base, exponent)


def simplify(expr: Expression) -> Expression:
    """Return a simplified copy of ``expr``. Never raises for a valid tree."""
    if isinstance(expr, (Number, Variable)):
        return expr
    if isinstance(expr, Negate):
        return _negate(simplify(expr.operand))
    if isinstance(expr, (Add, Sub)):
        return _simplify_sum(type(expr), simplify(expr.left), simplify(expr.right))
    if isinstance(expr, Mul):
        return _simplify_product(simplify(expr.left), simplify(expr.right))
    if isinstance(expr, Div):
        return _simplify_quotient(simplify(expr.left), simplify(expr.right))
    if isinstance(expr, Power):
        return _simplify_power(simplify(expr.base), simplify(expr.exponent))
    if isinstance(expr, Call):
        return Call(expr.name, simplify(expr.arg))
    raise TypeError(f"Unknown expression node: {expr!r}")
