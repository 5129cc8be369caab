"""Symbolic differentiation with a worked-solution trace.

``derive`` walks the tree once and returns the derivative together with the
list of ``Step`` records describing each rule it applied. The trace is built
from the return values of the recursion, so the order of the steps is the
order in which the rules fired.
"""

import logging
from typing import List, Optional, Tuple

from config import config
from errors import TooDeep, UnsupportedFunction
from expression import (
    DIFFERENTIABLE_FUNCTIONS, Add, Call, Div, Expression, Mul, Negate, Number, Power, Step, Sub,
    Variable,
)

logger = logging.getLogger(__name__)

Steps = List[Step]

ZERO = Number(0.0)
ONE = Number(1.0)
TWO = Number(2.0)

CHAIN_RULE_NOTES = {
    "sin": "d/du sin(u) = cos(u), times u'",
    "cos": "d/du cos(u) = -sin(u), times u'",
    "tan": "d/du tan(u) = sec(u)^2, times u'",
    "ln": "d/du ln(u) = 1/u, so the result is u'/u",
    "log": "d/du log(u) = 1/u, so the result is u'/u",
    "exp": "d/du exp(u) = exp(u), times u'",
    "sqrt": "d/du sqrt(u) = 1/(2 sqrt(u)), times u'",
    "abs": "d/du |u| = sgn(u), times u'",
}


def _outer_derivative(name: str, u: Expression, du: Expression, node: Call) -> Expression:
    if name == "sin":
        return Mul(Call("cos", u), du)
    if name == "cos":
        return Mul(Negate(Call("sin", u)), du)
    if name == "tan":
        return Mul(Power(Call("sec", u), TWO), du)
    if name in ("ln", "log"):
        return Div(du, u)
    if name == "exp":
        return Mul(node, du)
    if name == "sqrt":
        return Div(du, Mul(TWO, node))
    if name == "abs":
        return Mul(Call("sgn", u), du)
    raise UnsupportedFunction(name)


class Differentiator:
    def __init__(self, variable: str, max_depth: Optional[int] = None):
        self.variable = variable
        self.max_depth = config.MAX_DEPTH if max_depth is None else max_depth

    def derive(self, node: Expression, level: int = 1) -> Tuple[Expression, Steps]:
        if level > self.max_depth:
            raise TooDeep(self.max_depth)
        v = self.variable
        inner = level + 1

        if isinstance(node, Number):
            return ZERO, [Step("Constant", node, ZERO, "The derivative of a constant is 0.")]

        if isinstance(node, Variable):
            if node.name == v:
                return ONE, [Step("Variable", node, ONE, f"d({v})/d{v} = 1")]
            return ZERO, [Step("Variable", node, ZERO, f"d({node.name})/d{v} = 0")]

        if isinstance(node, Negate):
            d_operand, steps = self.derive(node.operand, inner)
            result = Negate(d_operand)
            steps.append(Step("Negative", node, result, "(-f)' = -f'"))
            return result, steps

        if isinstance(node, (Add, Sub)):
            d_left, steps = self.derive(node.left, inner)
            d_right, right_steps = self.derive(node.right, inner)
            steps.extend(right_steps)
            if isinstance(node, Add):
                result = Add(d_left, d_right)
                steps.append(Step("Sum", node, result, "(f + g)' = f' + g'"))
            else:
                result = Sub(d_left, d_right)
                steps.append(Step("Difference", node, result, "(f - g)' = f' - g'"))
            return result, steps

        if isinstance(node, Mul):
            f, g = node.left, node.right
            steps = [Step("Product rule (preparation)", node, node, "We apply (f g)' = f' g + f g'")]
            df, f_steps = self.derive(f, inner)
            dg, g_steps = self.derive(g, inner)
            steps.extend(f_steps)
            steps.extend(g_steps)
            result = Add(Mul(df, g), Mul(f, dg))
            steps.append(Step("Product rule", node, result, "Product rule applied"))
            return result, steps

        if isinstance(node, Div):
            f, g = node.left, node.right
            steps = [Step("Quotient rule (preparation)", node, node, "We apply (f/g)' = (f' g - f g')/g^2")]
            df, f_steps = self.derive(f, inner)
            dg, g_steps = self.derive(g, inner)
            steps.extend(f_steps)
            steps.extend(g_steps)
            numerator = Sub(Mul(df, g), Mul(f, dg))
            result = Div(numerator, Power(g, TWO))
            steps.append(Step("Quotient rule", node, result, "Quotient rule applied"))
            return result, steps

        if isinstance(node, Power):
            return self._derive_power(node, inner)

        if isinstance(node, Call):
            if node.name not in DIFFERENTIABLE_FUNCTIONS:
                raise UnsupportedFunction(node.name)
            du, steps = self.derive(node.arg, inner)
            result = _outer_derivative(node.name, node.arg, du, node)
            steps.append(Step("Chain rule", node, result, CHAIN_RULE_NOTES[node.name]))
            return result, steps

        raise TypeError(f"Unknown expression node: {node!r}")

    def _derive_power(self, node: Power, inner: int) -> Tuple[Expression, Steps]:
        u, exponent = node.base, node.exponent

        n = _numeric_value(exponent)
        if n is not None:
            scaled = Mul(Number(n), Power(u, Number(n - 1)))
            if u == Variable(self.variable):
                # u' = 1, the trailing factor is left out
                return scaled, [Step("Power rule", node, scaled, "d(x^n)/dx = n x^(n-1)")]
            du, steps = self.derive(u, inner)
            result = Mul(scaled, du)
            steps.append(Step("Power rule", node, result, "d(u^n) = n u^(n-1) u'"))
            return result, steps

        # u^e = exp(e ln(u)), so (u^e)' = u^e (e ln(u))'
        log_form = Mul(exponent, Call("ln", u))
        steps = [Step("General power (preparation)", node, log_form,
                      "Non-constant exponent: u^e = exp(e ln(u))")]
        d_log_form, log_steps = self.derive(log_form, inner)
        steps.extend(log_steps)
        result = Mul(node, d_log_form)
        steps.append(Step("General power", node, result, "(u^e)' = u^e (e ln(u))'"))
        return result, steps


def _numeric_value(node: Expression) -> Optional[float]:
    """Value of a literal exponent such as ``2`` or ``-2``, else None."""
    if isinstance(node, Number):
        return node.value
    if isinstance(node, Negate):
        value = _numeric_value(node.operand)
        return None if value is None else -value
    return None


def derive(expr: Expression, variable: str, max_depth: Optional[int] = None) -> Tuple[Expression, Steps]:
    """Differentiate ``expr`` with respect to ``variable``.

    Returns the (unsimplified) derivative and the ordered step trace. Raises
    ``UnsupportedFunction`` for calls outside the supported set and ``TooDeep``
    when the tree is nested beyond ``max_depth``.
    """
    result, steps = Differentiator(variable, max_depth=max_depth).derive(expr)
    logger.debug("Derived %r w.r.t. %s in %d steps", expr, variable, len(steps))
    return result, steps
