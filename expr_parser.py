"""Recursive-descent parser: tokens -> Expression.

One method per precedence level, lowest binding first::

    AddSub   := MulDiv (('+'|'-') MulDiv)*
    MulDiv   := Power  (('*'|'/') Power)*
    Power    := Unary ('^' Unary)*
    Unary    := '-' Unary | Primary
    Primary  := Number | Name ['(' AddSub ')'] | '(' AddSub ')'

``^`` chains left to right: ``2^3^2`` is ``(2^3)^2``.
"""

from typing import Optional, Sequence

from config import config
from errors import ParseError, TooDeep
from expression import (
    Add, Call, Div, Expression, Mul, Negate, Number, Power, Sub, Variable, check_depth,
)
from lexer import NAME, NUMBER, OP, Token, tokenize

BINARY_OPS = {"+": Add, "-": Sub, "*": Mul, "/": Div}


class Parser:
    def __init__(self, tokens: Sequence[Token], max_depth: Optional[int] = None):
        self.tokens = list(tokens)
        self.pos = 0
        self.depth = 0
        self.max_depth = config.MAX_DEPTH if max_depth is None else max_depth

    def peek(self) -> Optional[Token]:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def peek_op(self, *symbols: str) -> bool:
        token = self.peek()
        return token is not None and token.kind == OP and token.value in symbols

    def consume(self, kind: str, value: Optional[str] = None) -> Token:
        token = self.peek()
        if token is not None and token.kind == kind and (value is None or token.value == value):
            self.pos += 1
            return token
        raise ParseError(value or kind, token.text if token is not None else None)

    def _enter(self):
        self.depth += 1
        if self.depth > self.max_depth:
            raise TooDeep(self.max_depth)

    def _leave(self):
        self.depth -= 1

    def parse(self) -> Expression:
        expr = self.parse_add_sub()
        token = self.peek()
        if token is not None:
            raise ParseError("end of input", token.text)
        return check_depth(expr, self.max_depth)

    def parse_add_sub(self) -> Expression:
        left = self.parse_mul_div()
        while self.peek_op("+", "-"):
            op = self.consume(OP).value
            right = self.parse_mul_div()
            left = BINARY_OPS[op](left, right)
        return left

    def parse_mul_div(self) -> Expression:
        left = self.parse_power()
        while self.peek_op("*", "/"):
            op = self.consume(OP).value
            right = self.parse_power()
            left = BINARY_OPS[op](left, right)
        return left

    def parse_power(self) -> Expression:
        left = self.parse_unary()
        while self.peek_op("^"):
            self.consume(OP, "^")
            right = self.parse_unary()
            left = Power(left, right)
        return left

    def parse_unary(self) -> Expression:
        if self.peek_op("-"):
            self.consume(OP, "-")
            self._enter()
            try:
                return Negate(self.parse_unary())
            finally:
                self._leave()
        return self.parse_primary()

    def parse_primary(self) -> Expression:
        token = self.peek()
        if token is None:
            raise ParseError("expression", None)

        if token.kind == NUMBER:
            self.consume(NUMBER)
            return Number(float(token.value))

        if token.kind == NAME:
            self.consume(NAME)
            if self.peek_op("("):
                return Call(token.value, self._parse_group())
            return Variable(token.value)

        if token == Token(OP, "("):
            return self._parse_group()

        raise ParseError("expression", token.text)

    def _parse_group(self) -> Expression:
        self.consume(OP, "(")
        self._enter()
        try:
            inner = self.parse_add_sub()
        finally:
            self._leave()
        self.consume(OP, ")")
        return inner


def parse(tokens: Sequence[Token], max_depth: Optional[int] = None) -> Expression:
    return Parser(tokens, max_depth=max_depth).parse()


def parse_expression(source: str, max_depth: Optional[int] = None) -> Expression:
    """Tokenize and parse ``source`` in one go."""
    return parse(tokenize(source), max_depth=max_depth)
