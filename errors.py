"""Typed failures raised by the differentiation engine.

Every engine error is a ``DerivationError`` (and therefore a ``ValueError``),
so callers can catch the whole family at once and still branch on the
concrete type or on ``error_type``.
"""

from typing import Any, Dict, Optional


class DerivationError(ValueError):
    error_type = "derivation_error"

    def to_dict(self) -> Dict[str, Any]:
        return {"error_type": self.error_type, "message": str(self)}


class LexError(DerivationError):
    error_type = "lex_error"

    def __init__(self, char: str, position: int):
        self.char = char
        self.position = position
        super().__init__(f"Invalid character {char!r} at position {position}")

    def to_dict(self):
        data = super().to_dict()
        data.update({"char": self.char, "position": self.position})
        return data


class ParseError(DerivationError):
    error_type = "parse_error"

    def __init__(self, expected: str, found: Optional[str]):
        self.expected = expected
        # None means the token stream ran out
        self.found = "EOF" if found is None else found
        super().__init__(f"Expected {expected} but found {self.found}")

    def to_dict(self):
        data = super().to_dict()
        data.update({"expected": self.expected, "found": self.found})
        return data


class UnsupportedFunction(DerivationError):
    error_type = "unsupported_function"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unsupported function: {name}")

    def to_dict(self):
        data = super().to_dict()
        data["name"] = self.name
        return data


class TooDeep(DerivationError):
    error_type = "too_deep"

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Expression nesting exceeds the maximum depth of {limit}")

    def to_dict(self):
        data = super().to_dict()
        data["limit"] = self.limit
        return data


class EvaluationError(DerivationError):
    error_type = "evaluation_error"
