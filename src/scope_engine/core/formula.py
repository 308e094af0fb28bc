"""
Quantity Formula Parser.
Tokenizes quantity formulas with regular expressions and parses them
into an immutable expression tree checked against the metric aliases.
"""

import math
import re
from dataclasses import dataclass, field
from enum import Enum

import structlog

from ..exceptions import ErrorCode, FormulaError
from .metrics import MetricAlias, format_number, get_metric_value
from .models import ZoneMetrics

logger = structlog.get_logger()


class FormulaFunction(str, Enum):
    """Functions callable from a quantity formula."""

    MAX = "MAX"
    MIN = "MIN"
    CEIL = "CEIL"
    FLOOR = "FLOOR"
    ROUND = "ROUND"
    ABS = "ABS"


# (minimum, maximum) argument counts; None means unbounded
FUNCTION_ARITY: dict[FormulaFunction, tuple[int, int | None]] = {
    FormulaFunction.MAX: (2, None),
    FormulaFunction.MIN: (2, None),
    FormulaFunction.CEIL: (1, 1),
    FormulaFunction.FLOOR: (1, 1),
    FormulaFunction.ROUND: (1, 2),
    FormulaFunction.ABS: (1, 1),
}


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Metric:
    alias: MetricAlias


@dataclass(frozen=True)
class UnaryOp:
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Call:
    function: FormulaFunction
    args: tuple["Node", ...]


Node = Number | Metric | UnaryOp | BinaryOp | Call


@dataclass(frozen=True)
class Formula:
    """Parsed formula with the metric aliases it references."""

    source: str
    root: Node
    metrics: tuple[MetricAlias, ...] = ()

    @property
    def is_bare_metric(self) -> bool:
        return isinstance(self.root, Metric)


@dataclass
class FormulaEvaluation:
    """Numeric result of a formula with any evaluation warnings."""

    value: float
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class _Token:
    kind: str
    text: str
    position: int


class _TokenReader:
    """Recursive-descent reader over a token list."""

    def __init__(self, source: str, tokens: list[_Token]) -> None:
        self.source = source
        self.tokens = tokens
        self.index = 0
        self.metrics: list[MetricAlias] = []

    def peek(self, offset: int = 0) -> _Token | None:
        position = self.index + offset
        return self.tokens[position] if position < len(self.tokens) else None

    def advance(self) -> _Token:
        token = self.peek()
        if token is None:
            raise FormulaError("Unexpected end of formula", self.source, len(self.source))
        self.index += 1
        return token

    def expect(self, text: str) -> _Token:
        token = self.peek()
        if token is None or token.text != text:
            found = "end of formula" if token is None else repr(token.text)
            position = len(self.source) if token is None else token.position
            raise FormulaError(f"Expected {text!r} but found {found}", self.source, position)
        return self.advance()

    def read(self) -> Node:
        node = self.expression()
        token = self.peek()
        if token is not None:
            raise FormulaError(
                f"Unexpected {token.text!r} after expression", self.source, token.position
            )
        return node

    def expression(self) -> Node:
        node = self.term()
        while (token := self.peek()) is not None and token.text in ("+", "-"):
            self.advance()
            node = BinaryOp(token.text, node, self.term())
        return node

    def term(self) -> Node:
        node = self.unary()
        while (token := self.peek()) is not None and token.text in ("*", "/"):
            self.advance()
            node = BinaryOp(token.text, node, self.unary())
        return node

    def unary(self) -> Node:
        token = self.peek()
        if token is not None and token.text == "-":
            self.advance()
            return UnaryOp(self.unary())
        if token is not None and token.text == "+":
            self.advance()
            return self.unary()
        return self.primary()

    def primary(self) -> Node:
        token = self.advance()

        if token.kind == "number":
            return Number(float(token.text))

        if token.text == "(":
            node = self.expression()
            self.expect(")")
            return node

        if token.kind == "ident":
            return self.identifier(token)

        raise FormulaError(f"Unexpected {token.text!r}", self.source, token.position)

    def identifier(self, token: _Token) -> Node:
        name = token.text.upper()
        following = self.peek()

        if name in FormulaFunction.__members__:
            function = FormulaFunction(name)
            self.expect("(")
            args = [self.expression()]
            while (sep := self.peek()) is not None and sep.text == ",":
                self.advance()
                args.append(self.expression())
            self.expect(")")

            low, high = FUNCTION_ARITY[function]
            if len(args) < low or (high is not None and len(args) > high):
                if high is None:
                    expected = f"at least {low}"
                elif high == low:
                    expected = str(low)
                else:
                    expected = f"{low} to {high}"
                raise FormulaError(
                    f"{name} takes {expected} argument(s), got {len(args)}",
                    self.source,
                    token.position,
                )
            return Call(function, tuple(args))

        alias = MetricAlias.parse(name)
        if alias is None:
            if following is not None and following.text == "(":
                raise FormulaError(
                    f"Unknown function: {token.text}",
                    self.source,
                    token.position,
                    code=ErrorCode.UNKNOWN_FUNCTION,
                )
            raise FormulaError(
                f"Unknown metric alias: {token.text}",
                self.source,
                token.position,
                code=ErrorCode.UNKNOWN_METRIC,
            )

        # Accept the "(zone)" scope suffix, e.g. FLOOR_SF(zone)
        if following is not None and following.text == "(":
            scope = self.peek(1)
            if scope is None or scope.text.lower() != "zone":
                raise FormulaError(
                    f"Metric {name} only accepts a (zone) suffix", self.source, following.position
                )
            self.advance()
            self.advance()
            self.expect(")")

        if alias not in self.metrics:
            self.metrics.append(alias)
        return Metric(alias)


class FormulaParser:
    """
    Parser for quantity formulas.
    Uses a regex tokenizer and caches parsed formulas by source text.
    """

    TOKEN_PATTERN = re.compile(
        r"\s*(?:(?P<number>\d+(?:\.\d*)?|\.\d+)"
        r"|(?P<ident>[A-Za-z_][A-Za-z0-9_]*)"
        r"|(?P<op>[-+*/(),]))"
    )

    # Oldest entries are dropped once the cache is full
    CACHE_SIZE = 512

    def __init__(self) -> None:
        self._cache: dict[str, Formula] = {}

    def tokenize(self, formula: str) -> list[_Token]:
        """Split a formula into number, identifier and operator tokens."""
        tokens: list[_Token] = []
        position = 0

        while position < len(formula):
            if not formula[position:].strip():
                break
            match = self.TOKEN_PATTERN.match(formula, position)
            if match is None:
                offset = len(formula[position:]) - len(formula[position:].lstrip())
                bad = position + offset
                raise FormulaError(
                    f"Unexpected character {formula[bad]!r}", formula, bad
                )
            kind = match.lastgroup or "op"
            tokens.append(_Token(kind, match.group(kind), match.start(kind)))
            position = match.end()

        return tokens

    def parse(self, formula: str) -> Formula:
        """
        Parse a formula into an expression tree.

        Raises:
            FormulaError: On syntax errors, unknown metric aliases or
                unknown functions
        """
        cached = self._cache.get(formula)
        if cached is not None:
            return cached

        if not formula or not formula.strip():
            raise FormulaError("Formula is empty", formula or "", 0)

        reader = _TokenReader(formula, self.tokenize(formula))
        root = reader.read()
        parsed = Formula(source=formula.strip(), root=root, metrics=tuple(reader.metrics))
        if len(self._cache) >= self.CACHE_SIZE:
            del self._cache[next(iter(self._cache))]
        self._cache[formula] = parsed
        return parsed

    def validate(self, formula: str) -> str | None:
        """Return an error message for an invalid formula, or None."""
        try:
            self.parse(formula)
        except FormulaError as e:
            return e.message
        return None


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def _apply(function: FormulaFunction, values: list[float]) -> float:
    if function == FormulaFunction.MAX:
        return max(values)
    if function == FormulaFunction.MIN:
        return min(values)
    if function == FormulaFunction.CEIL:
        return float(math.ceil(values[0]))
    if function == FormulaFunction.FLOOR:
        return float(math.floor(values[0]))
    if function == FormulaFunction.ROUND:
        digits = int(values[1]) if len(values) > 1 else 0
        return _round_half_up(values[0], digits)
    return abs(values[0])


def _evaluate(node: Node, metrics: ZoneMetrics, warnings: list[str]) -> float:
    match node:
        case Number(value=value):
            return value
        case Metric(alias=alias):
            return get_metric_value(metrics, alias)
        case UnaryOp(operand=operand):
            return -_evaluate(operand, metrics, warnings)
        case BinaryOp(op=op, left=left, right=right):
            lhs = _evaluate(left, metrics, warnings)
            rhs = _evaluate(right, metrics, warnings)
            if op == "+":
                return lhs + rhs
            if op == "-":
                return lhs - rhs
            if op == "*":
                return lhs * rhs
            if rhs == 0:
                warnings.append("Division by zero in formula; term treated as 0")
                return 0.0
            return lhs / rhs
        case Call(function=function, args=args):
            return _apply(function, [_evaluate(arg, metrics, warnings) for arg in args])
        case _:
            raise TypeError(f"Unsupported formula node: {node!r}")


def evaluate_formula(formula: Formula, metrics: ZoneMetrics) -> FormulaEvaluation:
    """Evaluate a parsed formula against a metrics snapshot."""
    warnings: list[str] = []
    value = _evaluate(formula.root, metrics, warnings)

    for alias in formula.metrics:
        if get_metric_value(metrics, alias) == 0:
            warnings.append(f"Metric {alias.value} is zero for this zone")

    if warnings:
        logger.debug("formula_warnings", formula=formula.source, warnings=warnings)
    return FormulaEvaluation(value=value, warnings=warnings)


_PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2}
_SYMBOLS = {"+": "+", "-": "-", "*": "×", "/": "/"}


def _render(node: Node, metrics: ZoneMetrics, parent: int = 0, right_side: bool = False) -> str:
    match node:
        case Number(value=value):
            return format_number(value)
        case Metric(alias=alias):
            return format_number(get_metric_value(metrics, alias))
        case UnaryOp(operand=operand):
            return f"-{_render(operand, metrics, 3)}"
        case BinaryOp(op=op, left=left, right=right):
            precedence = _PRECEDENCE[op]
            text = (
                f"{_render(left, metrics, precedence)} {_SYMBOLS[op]} "
                f"{_render(right, metrics, precedence, right_side=True)}"
            )
            if precedence < parent or (right_side and precedence == parent):
                return f"({text})"
            return text
        case Call(function=function, args=args):
            return f"{function.value}({', '.join(_render(arg, metrics) for arg in args)})"
        case _:
            raise TypeError(f"Unsupported formula node: {node!r}")


def render_formula(formula: Formula, metrics: ZoneMetrics) -> str:
    """Render the formula with concrete metric values substituted."""
    return _render(formula.root, metrics)


# Singleton parser instance
_parser_instance: FormulaParser | None = None


def get_parser() -> FormulaParser:
    """Get the singleton parser instance."""
    global _parser_instance
    if _parser_instance is None:
        _parser_instance = FormulaParser()
    return _parser_instance
