"""Sandboxed arithmetic expression interpreter for configured competency formulas.

Formulas such as ``(correct / total) * 100`` or
``accuracy_percent >= 80 ? 100 : accuracy_percent`` are tokenized, parsed by a
recursive-descent parser into a small AST and evaluated against a flat
variable mapping. Nothing is ever handed to Python's ``eval``.

Grammar (lowest to highest precedence)::

    ternary     := or_expr ( "?" ternary ":" ternary )?
    or_expr     := and_expr ( ("or" | "||") and_expr )*
    and_expr    := not_expr ( ("and" | "&&") not_expr )*
    not_expr    := ("not" | "!") not_expr | comparison
    comparison  := additive ( ("<" | "<=" | ">" | ">=" | "==" | "!=") additive )*
    additive    := term ( ("+" | "-") term )*
    term        := unary ( ("*" | "/" | "%") unary )*
    unary       := ("+" | "-") unary | power
    power       := primary ( "^" unary )?
    primary     := NUMBER | NAME | NAME "(" args ")" | "(" ternary ")"

Booleans evaluate to 1.0 / 0.0; any non-zero value is truthy.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Set, Tuple, Union

log = logging.getLogger(__name__)


class FormulaSyntaxError(ValueError):
    pass


class FormulaEvaluationError(ValueError):
    pass


_TOKEN_RX = re.compile(
    r"\s*(?:"
    r"(?P<number>(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<op><=|>=|==|!=|&&|\|\||[-+*/%^()<>?:,!])"
    r")"
)

_KEYWORDS = {"and": "&&", "or": "||", "not": "!"}


@dataclass(frozen=True)
class Token:
    kind: str  # "number" | "name" | "op" | "end"
    text: str
    pos: int


def tokenize(formula: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    n = len(formula)
    while pos < n:
        if formula[pos:].strip() == "":
            break
        m = _TOKEN_RX.match(formula, pos)
        if not m or m.end() == pos:
            bad = formula[pos:].lstrip()[:1]
            raise FormulaSyntaxError(f"Unexpected character {bad!r} at position {pos}")
        kind = m.lastgroup or "op"
        text = m.group(kind)
        if kind == "name" and text in _KEYWORDS:
            kind, text = "op", _KEYWORDS[text]
        tokens.append(Token(kind, text, m.start(kind)))
        pos = m.end()
    tokens.append(Token("end", "", n))
    return tokens


# ---- AST ----

@dataclass(frozen=True)
class Num:
    value: float


@dataclass(frozen=True)
class Var:
    name: str


@dataclass(frozen=True)
class Unary:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class Binary:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Ternary:
    cond: "Node"
    then: "Node"
    other: "Node"


@dataclass(frozen=True)
class Call:
    name: str
    args: Tuple["Node", ...]


Node = Union[Num, Var, Unary, Binary, Ternary, Call]


def _round(x: float, digits: float = 0) -> float:
    return float(round(x, int(digits)))


# name -> (callable, min_args, max_args)
FUNCTIONS: Dict[str, Tuple[Callable[..., float], int, int]] = {
    "abs": (abs, 1, 1),
    "min": (lambda *a: min(a), 1, 64),
    "max": (lambda *a: max(a), 1, 64),
    "round": (_round, 1, 2),
    "floor": (math.floor, 1, 1),
    "ceil": (math.ceil, 1, 1),
    "sqrt": (math.sqrt, 1, 1),
}

_COMPARISONS = {"<", "<=", ">", ">=", "==", "!="}


class _Parser:
    def __init__(self, formula: str):
        self.tokens = tokenize(formula)
        self.i = 0

    def peek(self) -> Token:
        return self.tokens[self.i]

    def take(self) -> Token:
        tok = self.tokens[self.i]
        self.i += 1
        return tok

    def accept(self, *ops: str) -> Optional[str]:
        tok = self.peek()
        if tok.kind == "op" and tok.text in ops:
            self.i += 1
            return tok.text
        return None

    def expect(self, op: str) -> None:
        tok = self.peek()
        if tok.kind != "op" or tok.text != op:
            found = tok.text or "end of formula"
            raise FormulaSyntaxError(f"Expected {op!r} at position {tok.pos}, found {found!r}")
        self.i += 1

    def parse(self) -> Node:
        if self.peek().kind == "end":
            raise FormulaSyntaxError("Formula is empty")
        node = self.ternary()
        tok = self.peek()
        if tok.kind != "end":
            raise FormulaSyntaxError(f"Unexpected token {tok.text!r} at position {tok.pos}")
        return node

    def ternary(self) -> Node:
        cond = self.or_expr()
        if self.accept("?"):
            then = self.ternary()
            self.expect(":")
            other = self.ternary()
            return Ternary(cond, then, other)
        return cond

    def or_expr(self) -> Node:
        node = self.and_expr()
        while self.accept("||"):
            node = Binary("||", node, self.and_expr())
        return node

    def and_expr(self) -> Node:
        node = self.not_expr()
        while self.accept("&&"):
            node = Binary("&&", node, self.not_expr())
        return node

    def not_expr(self) -> Node:
        if self.accept("!"):
            return Unary("!", self.not_expr())
        return self.comparison()

    def comparison(self) -> Node:
        node = self.additive()
        while True:
            op = self.accept(*_COMPARISONS)
            if op is None:
                return node
            node = Binary(op, node, self.additive())

    def additive(self) -> Node:
        node = self.term()
        while True:
            op = self.accept("+", "-")
            if op is None:
                return node
            node = Binary(op, node, self.term())

    def term(self) -> Node:
        node = self.unary()
        while True:
            op = self.accept("*", "/", "%")
            if op is None:
                return node
            node = Binary(op, node, self.unary())

    def unary(self) -> Node:
        op = self.accept("+", "-")
        if op is not None:
            return Unary(op, self.unary())
        return self.power()

    def power(self) -> Node:
        base = self.primary()
        if self.accept("^"):
            return Binary("^", base, self.unary())
        return base

    def primary(self) -> Node:
        tok = self.take()
        if tok.kind == "number":
            return Num(float(tok.text))
        if tok.kind == "name":
            if self.accept("("):
                return self.call(tok)
            return Var(tok.text)
        if tok.kind == "op" and tok.text == "(":
            node = self.ternary()
            self.expect(")")
            return node
        found = tok.text or "end of formula"
        raise FormulaSyntaxError(f"Unexpected {found!r} at position {tok.pos}")

    def call(self, name_tok: Token) -> Node:
        entry = FUNCTIONS.get(name_tok.text)
        if entry is None:
            raise FormulaSyntaxError(f"Unknown function {name_tok.text!r} at position {name_tok.pos}")
        args: List[Node] = []
        if not self.accept(")"):
            args.append(self.ternary())
            while self.accept(","):
                args.append(self.ternary())
            self.expect(")")
        _, lo, hi = entry
        if not lo <= len(args) <= hi:
            raise FormulaSyntaxError(
                f"{name_tok.text}() takes {lo}..{hi} arguments, got {len(args)}"
            )
        return Call(name_tok.text, tuple(args))


def parse(formula: str) -> Node:
    if not isinstance(formula, str):
        raise FormulaSyntaxError("Formula must be a non-empty string")
    try:
        return _Parser(formula).parse()
    except RecursionError:
        raise FormulaSyntaxError("Formula is nested too deeply") from None


def _truth(x: float) -> bool:
    return x != 0.0


def _eval(node: Node, variables: Mapping[str, float]) -> float:
    if isinstance(node, Num):
        return node.value
    if isinstance(node, Var):
        if node.name not in variables:
            raise FormulaEvaluationError(f"Undefined variable: {node.name}")
        value = variables[node.name]
        if isinstance(value, bool):
            return 1.0 if value else 0.0
        try:
            return float(value)
        except (TypeError, ValueError, OverflowError):
            raise FormulaEvaluationError(f"Variable {node.name} is not numeric: {value!r}") from None
    if isinstance(node, Unary):
        v = _eval(node.operand, variables)
        if node.op == "-":
            return -v
        if node.op == "!":
            return 0.0 if _truth(v) else 1.0
        return v
    if isinstance(node, Ternary):
        if _truth(_eval(node.cond, variables)):
            return _eval(node.then, variables)
        return _eval(node.other, variables)
    if isinstance(node, Call):
        fn = FUNCTIONS[node.name][0]
        return float(fn(*[_eval(a, variables) for a in node.args]))

    op = node.op
    left = _eval(node.left, variables)
    if op == "&&":
        return 1.0 if _truth(left) and _truth(_eval(node.right, variables)) else 0.0
    if op == "||":
        return 1.0 if _truth(left) or _truth(_eval(node.right, variables)) else 0.0
    right = _eval(node.right, variables)
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if op == "/":
        return left / right
    if op == "%":
        return math.fmod(left, right)
    if op == "^":
        return float(math.pow(left, right))
    if op == "<":
        return float(left < right)
    if op == "<=":
        return float(left <= right)
    if op == ">":
        return float(left > right)
    if op == ">=":
        return float(left >= right)
    if op == "==":
        return float(left == right)
    if op == "!=":
        return float(left != right)
    raise FormulaEvaluationError(f"Unsupported operator {op!r}")


def _collect_vars(node: Node, out: Set[str]) -> None:
    if isinstance(node, Var):
        out.add(node.name)
    elif isinstance(node, Unary):
        _collect_vars(node.operand, out)
    elif isinstance(node, Binary):
        _collect_vars(node.left, out)
        _collect_vars(node.right, out)
    elif isinstance(node, Ternary):
        _collect_vars(node.cond, out)
        _collect_vars(node.then, out)
        _collect_vars(node.other, out)
    elif isinstance(node, Call):
        for arg in node.args:
            _collect_vars(arg, out)


class FormulaEvaluator:
    """Stateless facade used by the dynamic calculator and the HTTP layer."""

    def evaluate(self, formula: str, variables: Mapping[str, float]) -> float:
        """Evaluate ``formula``; any failure or non-finite result yields 0."""
        if not formula or not isinstance(formula, str):
            log.warning("invalid formula provided: %r", formula)
            return 0.0
        try:
            result = _eval(parse(formula), variables)
        except (FormulaSyntaxError, FormulaEvaluationError) as e:
            log.warning("formula %r failed: %s", formula, e)
            return 0.0
        except (ZeroDivisionError, OverflowError, ValueError, TypeError, RecursionError) as e:
            log.warning("formula %r failed: %s (variables=%s)", formula, e, dict(variables))
            return 0.0
        if not math.isfinite(result):
            log.warning("formula %r produced invalid result: %s", formula, result)
            return 0.0
        return result

    def validate(self, formula: str) -> Dict[str, Optional[str]]:
        if not formula or not isinstance(formula, str):
            return {"valid": False, "error": "Formula must be a non-empty string"}
        try:
            parse(formula)
        except FormulaSyntaxError as e:
            return {"valid": False, "error": str(e)}
        return {"valid": True, "error": None}

    def variables_of(self, formula: str) -> Set[str]:
        try:
            tree = parse(formula)
        except FormulaSyntaxError:
            return set()
        names: Set[str] = set()
        _collect_vars(tree, names)
        return names

    def test_formula(self, formula: str, variables: Mapping[str, float]) -> Dict[str, object]:
        check = self.validate(formula)
        if not check["valid"]:
            return {"success": False, "result": None, "error": check["error"]}
        return {"success": True, "result": self.evaluate(formula, variables), "error": None}


__all__ = [
    "FormulaEvaluator",
    "FormulaSyntaxError",
    "FormulaEvaluationError",
    "FUNCTIONS",
    "parse",
    "tokenize",
]
