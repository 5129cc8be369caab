"""Tokenizer for the expression grammar.

Scanning and implicit-multiplication insertion are two separate passes:
``scan`` classifies characters, ``insert_implicit_mul`` rewrites the raw
token list (``2x`` -> ``2 * x``). ``tokenize`` runs both.
"""

from dataclasses import dataclass
from typing import List, Union

from errors import LexError
from expression import FUNCTION_NAMES

NUMBER = "number"
NAME = "name"
OP = "op"

OPERATORS = "+-*/^()"


@dataclass(frozen=True)
class Token:
    kind: str
    value: Union[float, str]

    @property
    def text(self) -> str:
        if self.kind == NUMBER:
            return repr(self.value)
        return str(self.value)


Tokens = List[Token]


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_letter(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def _scan_number(source: str, i: int) -> int:
    """Return the end index of the number starting at ``i``."""
    j = i
    while j < len(source) and _is_digit(source[j]):
        j += 1
    if j < len(source) and source[j] == ".":
        if j + 1 < len(source) and _is_digit(source[j + 1]):
            j += 1
            while j < len(source) and _is_digit(source[j]):
                j += 1
        else:
            raise LexError(".", j)
    if j < len(source) and source[j] == ".":
        # a second decimal point, e.g. 1.2.3
        raise LexError(".", j)
    return j


def scan(source: str) -> Tokens:
    tokens: Tokens = []
    i = 0
    while i < len(source):
        ch = source[i]
        if ch.isspace():
            i += 1
            continue
        if _is_digit(ch) or (ch == "." and i + 1 < len(source) and _is_digit(source[i + 1])):
            j = _scan_number(source, i)
            tokens.append(Token(NUMBER, float(source[i:j])))
            i = j
            continue
        if _is_letter(ch):
            j = i
            while j < len(source) and _is_letter(source[j]):
                j += 1
            tokens.append(Token(NAME, source[i:j]))
            i = j
            continue
        if ch in OPERATORS:
            tokens.append(Token(OP, ch))
            i += 1
            continue
        raise LexError(ch, i)
    return tokens


def _ends_primary(token: Token) -> bool:
    return token.kind in (NUMBER, NAME) or token == Token(OP, ")")


def _starts_primary(token: Token) -> bool:
    return token.kind in (NUMBER, NAME) or token == Token(OP, "(")


def needs_implicit_mul(prev: Token, curr: Token) -> bool:
    if not (_ends_primary(prev) and _starts_primary(curr)):
        return False
    # sin(x) is a call, x(x+1) is a product
    if prev.kind == NAME and prev.value in FUNCTION_NAMES and curr == Token(OP, "("):
        return False
    return True


def insert_implicit_mul(tokens: Tokens) -> Tokens:
    if not tokens:
        return []
    out: Tokens = [tokens[0]]
    for prev, curr in zip(tokens, tokens[1:]):
        if needs_implicit_mul(prev, curr):
            out.append(Token(OP, "*"))
        out.append(curr)
    return out


def tokenize(source: str) -> Tokens:
    return insert_implicit_mul(scan(source))
