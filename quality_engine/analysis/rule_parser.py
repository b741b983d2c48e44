# Data Quality Engine - Rule Condition Parser
# Tokenizer and recursive-descent parser for custom rule conditions
#
#   expr       := and_expr (("OR" | "||") and_expr)*
#   and_expr   := term (("AND" | "&&") term)*
#   term       := "(" expr ")" | comparison
#   comparison := operand OP operand     OP in <, <=, >, >=, ==, !=, =, <>
#   operand    := column | literal
#   column     := identifier | `quoted name` | [bracketed name]
#   literal    := number | 'string' | "string" | true | false | null

from __future__ import annotations

import operator
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Union

from quality_engine.analysis.values import display, is_null, to_number
from quality_engine.core.exceptions import ErrorCode, MalformedRuleException


class TokenType(str, Enum):
    NUMBER = "number"
    STRING = "string"
    IDENT = "ident"
    QUOTED_IDENT = "quoted_ident"
    OP = "op"
    AND = "and"
    OR = "or"
    LPAREN = "lparen"
    RPAREN = "rparen"
    END = "end"


@dataclass(frozen=True)
class Token:
    type: TokenType
    text: str
    position: int


_TOKEN_RE = re.compile(r"""
    (?P<ws>\s+)
  | (?P<number>[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?(?![A-Za-z_]))
  | (?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")
  | (?P<backtick>`[^`]+`)
  | (?P<bracket>\[[^\]]+\])
  | (?P<op><=|>=|==|!=|<>|<|>|=)
  | (?P<and>&&)
  | (?P<or>\|\|)
  | (?P<lparen>\()
  | (?P<rparen>\))
  | (?P<ident>[A-Za-z_][A-Za-z0-9_.$]*)
""", re.VERBOSE)

_KEYWORD_LITERALS: dict[str, Any] = {"true": True, "false": False, "null": None}


def tokenize(condition: str) -> list[Token]:
    """
    Split a condition into tokens.

    Raises:
        MalformedRuleException: on a character no token can start with
    """
    tokens: list[Token] = []
    position = 0

    while position < len(condition):
        match = _TOKEN_RE.match(condition, position)
        if not match:
            raise MalformedRuleException(
                condition, f"unexpected character {condition[position]!r}", position=position
            )
        kind = match.lastgroup
        text = match.group()

        if kind == "ident" and text.upper() in ("AND", "OR"):
            tokens.append(Token(TokenType(text.lower()), text, position))
        elif kind == "and":
            tokens.append(Token(TokenType.AND, text, position))
        elif kind == "or":
            tokens.append(Token(TokenType.OR, text, position))
        elif kind in ("backtick", "bracket"):
            tokens.append(Token(TokenType.QUOTED_IDENT, text[1:-1].strip(), position))
        elif kind != "ws":
            tokens.append(Token(TokenType(kind), text, position))

        position = match.end()

    tokens.append(Token(TokenType.END, "", len(condition)))
    return tokens


# ============================================================================
# Expression tree
# ============================================================================

@dataclass(frozen=True)
class ColumnRef:
    name: str

    def value(self, row: Mapping[str, Any]) -> Any:
        return row.get(self.name)


@dataclass(frozen=True)
class Literal:
    constant: Any

    def value(self, row: Mapping[str, Any]) -> Any:
        return self.constant


Operand = Union[ColumnRef, Literal]

_ORDERING: dict[str, Callable[[Any, Any], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_TRUTHY = {"true", "yes", "1"}
_FALSY = {"false", "no", "0"}


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    return None


@dataclass(frozen=True)
class Comparison:
    left: Operand
    op: str
    right: Operand

    def evaluate(self, row: Mapping[str, Any]) -> bool:
        left, right = self.left.value(row), self.right.value(row)
        left_null, right_null = is_null(left), is_null(right)

        if left_null or right_null:
            if self.op in ("==", "="):
                return left_null and right_null
            if self.op in ("!=", "<>"):
                null_cell = (
                    (left_null and isinstance(self.left, ColumnRef))
                    or (right_null and isinstance(self.right, ColumnRef))
                )
                return not null_cell
            return False

        if isinstance(left, bool) or isinstance(right, bool):
            left, right = _as_bool(left), _as_bool(right)
            if left is None or right is None:
                return False
        else:
            left_number, right_number = to_number(left), to_number(right)
            if left_number is not None and right_number is not None:
                left, right = left_number, right_number
            else:
                # A number never orders against text
                if (left_number is None) != (right_number is None) and self.op in _ORDERING:
                    return False
                left, right = display(left), display(right)

        if self.op in ("==", "="):
            return left == right
        if self.op in ("!=", "<>"):
            return left != right
        return _ORDERING[self.op](left, right)


@dataclass(frozen=True)
class BoolOp:
    op: str  # "and" | "or"
    operands: tuple["Expression", ...]

    def evaluate(self, row: Mapping[str, Any]) -> bool:
        if self.op == "and":
            return all(e.evaluate(row) for e in self.operands)
        return any(e.evaluate(row) for e in self.operands)


Expression = Union[Comparison, BoolOp]


# ============================================================================
# Parser
# ============================================================================

class RuleParser:
    """
    Parses a condition against a fixed header list.

    Column names resolve exactly first, then case-insensitively. Bare
    identifiers separated by spaces are joined, so ``Unit Price > 0``
    works without quoting.
    """

    def __init__(self, headers: Sequence[str]):
        self.headers = list(headers)
        self._folded = {}
        for header in self.headers:
            self._folded.setdefault(header.casefold(), header)

    def parse(self, condition: str) -> Expression:
        """
        Parse a condition into an evaluable expression.

        Raises:
            MalformedRuleException: if the condition is empty, ungrammatical,
                or names a column that is not in the headers
        """
        if not isinstance(condition, str):
            raise MalformedRuleException(
                str(condition), f"condition must be text, got {type(condition).__name__}"
            )
        if not condition.strip():
            raise MalformedRuleException(condition, "condition is empty")

        self._condition = condition
        self._tokens = tokenize(condition)
        self._index = 0

        expression = self._parse_or()
        token = self._peek()
        if token.type != TokenType.END:
            self._fail(f"unexpected {token.text!r}", token)
        return expression

    # -- grammar ------------------------------------------------------------

    def _parse_or(self) -> Expression:
        operands = [self._parse_and()]
        while self._peek().type == TokenType.OR:
            self._advance()
            operands.append(self._parse_and())
        return operands[0] if len(operands) == 1 else BoolOp("or", tuple(operands))

    def _parse_and(self) -> Expression:
        operands = [self._parse_term()]
        while self._peek().type == TokenType.AND:
            self._advance()
            operands.append(self._parse_term())
        return operands[0] if len(operands) == 1 else BoolOp("and", tuple(operands))

    def _parse_term(self) -> Expression:
        if self._peek().type == TokenType.LPAREN:
            self._advance()
            expression = self._parse_or()
            token = self._peek()
            if token.type != TokenType.RPAREN:
                self._fail("expected ')'", token)
            self._advance()
            return expression
        return self._parse_comparison()

    def _parse_comparison(self) -> Comparison:
        start = self._peek()
        left = self._parse_operand()
        token = self._peek()
        if token.type != TokenType.OP:
            self._fail("expected a comparison operator", token)
        self._advance()
        right = self._parse_operand()

        if not isinstance(left, ColumnRef) and not isinstance(right, ColumnRef):
            self._fail("a comparison needs at least one column", start)
        return Comparison(left, token.text, right)

    def _parse_operand(self) -> Operand:
        token = self._peek()

        if token.type == TokenType.NUMBER:
            self._advance()
            return Literal(float(token.text))

        if token.type == TokenType.STRING:
            self._advance()
            body = token.text[1:-1]
            return Literal(re.sub(r"\\(.)", r"\1", body))

        if token.type == TokenType.QUOTED_IDENT:
            self._advance()
            return ColumnRef(self._resolve(token.text, token))

        if token.type == TokenType.IDENT:
            keyword = token.text.lower()
            if keyword in _KEYWORD_LITERALS:
                self._advance()
                return Literal(_KEYWORD_LITERALS[keyword])
            words = [self._advance().text]
            while self._peek().type == TokenType.IDENT and self._peek().text.lower() not in _KEYWORD_LITERALS:
                words.append(self._advance().text)
            return ColumnRef(self._resolve(" ".join(words), token))

        if token.type == TokenType.END:
            self._fail("condition ends unexpectedly", token)
        self._fail(f"expected a column or value, found {token.text!r}", token)

    # -- helpers ------------------------------------------------------------

    def _resolve(self, name: str, token: Token) -> str:
        if name in self.headers:
            return name
        folded = self._folded.get(name.casefold())
        if folded is not None:
            return folded
        raise MalformedRuleException(
            self._condition,
            f"unknown column '{name}'",
            position=token.position,
            error_code=ErrorCode.UNKNOWN_RULE_COLUMN,
        )

    def _peek(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        if token.type != TokenType.END:
            self._index += 1
        return token

    def _fail(self, reason: str, token: Token) -> None:
        raise MalformedRuleException(self._condition, reason, position=token.position)


def parse_condition(condition: str, headers: Sequence[str]) -> Expression:
    """Parse ``condition`` against ``headers``."""
    return RuleParser(headers).parse(condition)
