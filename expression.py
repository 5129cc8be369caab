"""Expression tree for the differentiation engine and its TeX rendering.

Nodes are frozen dataclasses: they compare and hash structurally and are never
mutated. Every stage (differentiator, simplifier) builds new nodes instead.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Union

from errors import TooDeep


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class Negate:
    operand: "Expression"


@dataclass(frozen=True)
class Add:
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True)
class Sub:
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True)
class Mul:
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True)
class Div:
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True)
class Power:
    base: "Expression"
    exponent: "Expression"


@dataclass(frozen=True)
class Call:
    name: str
    arg: "Expression"


Expression = Union[Number, Variable, Negate, Add, Sub, Mul, Div, Power, Call]

BINARY_NODES = (Add, Sub, Mul, Div)

# Functions the parser turns into calls; sec and sgn only appear in derivatives.
DIFFERENTIABLE_FUNCTIONS = frozenset({"sin", "cos", "tan", "ln", "log", "exp", "sqrt", "abs"})
FUNCTION_NAMES = DIFFERENTIABLE_FUNCTIONS | {"sec", "sgn"}


@dataclass(frozen=True)
class Step:
    """One rule application of a derivation: ``before`` became ``after``."""

    rule: str
    before: Expression
    after: Expression
    note: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_name": self.rule,
            "before": to_tex(self.before),
            "result": to_tex(self.after),
            "explanation": self.note,
        }


def children(node: Expression):
    if isinstance(node, (Number, Variable)):
        return ()
    if isinstance(node, Negate):
        return (node.operand,)
    if isinstance(node, BINARY_NODES):
        return (node.left, node.right)
    if isinstance(node, Power):
        return (node.base, node.exponent)
    if isinstance(node, Call):
        return (node.arg,)
    raise TypeError(f"Unknown expression node: {node!r}")


def depth(node: Expression) -> int:
    """Height of the tree, computed without recursion."""
    deepest = 0
    stack = [(node, 1)]
    while stack:
        current, level = stack.pop()
        deepest = max(deepest, level)
        stack.extend((child, level + 1) for child in children(current))
    return deepest


def check_depth(node: Expression, max_depth: int) -> Expression:
    if depth(node) > max_depth:
        raise TooDeep(max_depth)
    return node


# --- TeX rendering ---

def format_number(value: float) -> str:
    if math.isnan(value):
        return r"\mathrm{NaN}"
    if math.isinf(value):
        return r"\infty" if value > 0 else r"-\infty"
    if value == 0:
        # avoids printing -0
        return "0"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _wrap(node: Expression, *types) -> str:
    tex = to_tex(node)
    if isinstance(node, types):
        return f"({tex})"
    return tex


def _needs_base_parens(node: Expression) -> bool:
    if isinstance(node, Number):
        return node.value < 0
    return isinstance(node, (Negate, Add, Sub, Mul, Div, Power))


def to_tex(node: Expression) -> str:
    """Render ``node`` as a TeX math string."""
    if isinstance(node, Number):
        return format_number(node.value)
    if isinstance(node, Variable):
        return node.name
    if isinstance(node, Negate):
        return "-" + _wrap(node.operand, Add, Sub)
    if isinstance(node, Add):
        return f"{to_tex(node.left)} + {to_tex(node.right)}"
    if isinstance(node, Sub):
        return f"{to_tex(node.left)} - {_wrap(node.right, Add, Sub)}"
    if isinstance(node, Mul):
        right = to_tex(node.right)
        # a bare leading minus on the right would read as subtraction
        if isinstance(node.right, (Add, Sub)) or right.startswith("-"):
            right = f"({right})"
        return f"{_wrap(node.left, Add, Sub)} {right}"
    if isinstance(node, Div):
        return rf"\frac{{{to_tex(node.left)}}}{{{to_tex(node.right)}}}"
    if isinstance(node, Power):
        base = to_tex(node.base)
        if _needs_base_parens(node.base):
            base = f"({base})"
        return f"{base}^{{{to_tex(node.exponent)}}}"
    if isinstance(node, Call):
        return "\\" + node.name + "(" + to_tex(node.arg) + ")"
    raise TypeError(f"Unknown expression node: {node!r}")


render = to_tex
