#!/usr/bin/env python3
"""
Core AST + parser for PFL (Piecewise Function Language).

We parse plotter-style math strings such as:

    x^2 + 2*x - 1
    nthroot(x, 3)
    -4 <= x < 1
    [[x + 5, x < -4], [1/2*x^2, -4 <= x < 1]]
    x < 1 ? (x) : (2 * x)

into an AST, e.g.

    BinOp(op='+', left=BinOp(op='^', ...), right=...)

Grammar (informal, lowest precedence first):

    statement   -> ternary ('=' ternary)?
    ternary     -> or_expr ('?' ternary ':' ternary)?
    or_expr     -> and_expr ('||' and_expr)*
    and_expr    -> comparison ('&&' comparison)*
    comparison  -> add (RELOP add)*              # one chained Compare node
    add         -> mul (('+' | '-') mul)*
    mul         -> unary (('*' | '/') unary | unary)*   # juxtaposition = '*'
    unary       -> ('-' | '+' | '!') unary | power
    power       -> atom ('^' unary)?             # right-associative

    atom        -> NUMBER
                 | IDENT
                 | IDENT '(' arg_list? ')'
                 | '(' statement ')'
                 | '[' arg_list? ']'

    arg_list    -> statement (',' statement)*
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple

# ---------------------------------------------------------------------------
# AST definitions
# ---------------------------------------------------------------------------

class Expr:
    """Base class for expressions."""
    pass


@dataclass
class Var(Expr):
    name: str


@dataclass
class Const(Expr):
    value: float


@dataclass
class UnaryOp(Expr):
    op: str   # '-', '+', '!'
    operand: Expr


@dataclass
class BinOp(Expr):
    op: str   # '+', '-', '*', '/', '^', '&&', '||'
    left: Expr
    right: Expr


@dataclass
class Call(Expr):
    func_name: str
    args: List[Expr]


@dataclass
class Compare(Expr):
    ops: List[str]        # '<', '>', '<=', '>=', '==', '!='
    operands: List[Expr]  # len(ops) + 1


@dataclass
class IfExpr(Expr):
    cond: Expr
    then_branch: Expr
    else_branch: Expr


@dataclass
class Assign(Expr):
    target: Expr
    value: Expr


@dataclass
class ListExpr(Expr):
    items: List[Expr]


RELATIONAL_OPS = ("<=", ">=", "==", "!=", "<", ">")

# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

@dataclass
class Token:
    kind: str   # 'IDENT', 'NUMBER', 'SYMBOL', 'EOF'
    value: str

    def __repr__(self) -> str:
        return f"Token({self.kind!r}, {self.value!r})"


TWO_CHAR_SYMBOLS = ("<=", ">=", "==", "!=", "&&", "||")
ONE_CHAR_SYMBOLS = "()[],+-*/^?:<>=!"
DIGITS = "0123456789"


def tokenize_expr(src: str) -> List[Token]:
    """
    Turn a math string into a flat list of tokens.

    - Identifiers: a letter followed by letters/digits/underscore
    - Numbers (ASCII digits): 42, 3.14, .5, 2e3, 1.5E-2
    - Symbols: two-character operators first, then single characters
    """
    tokens: List[Token] = []
    i = 0
    n = len(src)

    while i < n:
        c = src[i]

        if c.isspace():
            i += 1
            continue

        if c.isalpha():
            j = i + 1
            while j < n and (src[j].isalnum() or src[j] == "_"):
                j += 1
            tokens.append(Token("IDENT", src[i:j]))
            i = j
            continue

        if c in DIGITS or (c == '.' and i + 1 < n and src[i + 1] in DIGITS):
            j = i + 1
            dot_seen = (c == '.')
            while j < n:
                if src[j] in DIGITS:
                    j += 1
                elif src[j] == '.' and not dot_seen:
                    dot_seen = True
                    j += 1
                else:
                    break
            # exponent only when digits follow, so "2e" stays 2 * e
            if j < n and src[j] in "eE":
                k = j + 1
                if k < n and src[k] in "+-":
                    k += 1
                if k < n and src[k] in DIGITS:
                    while k < n and src[k] in DIGITS:
                        k += 1
                    j = k
            tokens.append(Token("NUMBER", src[i:j]))
            i = j
            continue

        pair = src[i:i + 2]
        if pair in TWO_CHAR_SYMBOLS:
            tokens.append(Token("SYMBOL", pair))
            i += 2
            continue

        if c in ONE_CHAR_SYMBOLS:
            tokens.append(Token("SYMBOL", c))
            i += 1
            continue

        raise SyntaxError(f"Unexpected character in expression: {c!r}")

    tokens.append(Token("EOF", ""))
    return tokens


# ---------------------------------------------------------------------------
# Recursive-descent parser for expressions
# ---------------------------------------------------------------------------

class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def consume(self, expected_kind: Optional[str] = None,
                expected_value: Optional[str] = None) -> Token:
        tok = self.current
        if expected_kind is not None and tok.kind != expected_kind:
            raise SyntaxError(
                f"Expected token kind {expected_kind}, got {tok.kind} ({tok.value!r})"
            )
        if expected_value is not None and tok.value != expected_value:
            raise SyntaxError(
                f"Expected token value {expected_value!r}, got {tok.value!r}"
            )
        self.pos += 1
        return tok

    def match(self, kind: str, value: Optional[str] = None) -> bool:
        tok = self.current
        if tok.kind != kind:
            return False
        if value is not None and tok.value != value:
            return False
        return True

    # statement   -> ternary ('=' ternary)?
    def parse_statement(self) -> Expr:
        node = self.parse_ternary()
        if self.match("SYMBOL", "="):
            self.consume("SYMBOL", "=")
            value = self.parse_ternary()
            node = Assign(target=node, value=value)
        return node

    # ternary     -> or_expr ('?' ternary ':' ternary)?
    def parse_ternary(self) -> Expr:
        node = self.parse_or()
        if self.match("SYMBOL", "?"):
            self.consume("SYMBOL", "?")
            then_e = self.parse_ternary()
            self.consume("SYMBOL", ":")
            else_e = self.parse_ternary()
            node = IfExpr(cond=node, then_branch=then_e, else_branch=else_e)
        return node

    # or_expr     -> and_expr ('||' and_expr)*
    def parse_or(self) -> Expr:
        node = self.parse_and()
        while self.match("SYMBOL", "||"):
            self.consume("SYMBOL", "||")
            node = BinOp(op="||", left=node, right=self.parse_and())
        return node

    # and_expr    -> comparison ('&&' comparison)*
    def parse_and(self) -> Expr:
        node = self.parse_comparison()
        while self.match("SYMBOL", "&&"):
            self.consume("SYMBOL", "&&")
            node = BinOp(op="&&", left=node, right=self.parse_comparison())
        return node

    # comparison  -> add (RELOP add)*
    def parse_comparison(self) -> Expr:
        first = self.parse_add()
        ops: List[str] = []
        operands: List[Expr] = [first]
        while self.match("SYMBOL") and self.current.value in RELATIONAL_OPS:
            ops.append(self.consume("SYMBOL").value)
            operands.append(self.parse_add())
        if not ops:
            return first
        return Compare(ops=ops, operands=operands)

    # add         -> mul (('+' | '-') mul)*
    def parse_add(self) -> Expr:
        node = self.parse_mul()
        while self.match("SYMBOL") and self.current.value in ("+", "-"):
            op = self.consume("SYMBOL").value
            right = self.parse_mul()
            node = BinOp(op=op, left=node, right=right)
        return node

    # mul         -> unary (('*' | '/') unary | unary)*
    def parse_mul(self) -> Expr:
        node = self.parse_unary()
        while True:
            if self.match("SYMBOL") and self.current.value in ("*", "/"):
                op = self.consume("SYMBOL").value
                right = self.parse_unary()
                node = BinOp(op=op, left=node, right=right)
            elif self.match("IDENT") or self.match("SYMBOL", "("):
                # implicit multiplication: 2x, 2 x, 3(x + 1)
                right = self.parse_unary()
                node = BinOp(op="*", left=node, right=right)
            else:
                return node

    # unary       -> ('-' | '+' | '!') unary | power
    def parse_unary(self) -> Expr:
        if self.match("SYMBOL") and self.current.value in ("-", "+", "!"):
            op = self.consume("SYMBOL").value
            operand = self.parse_unary()
            return UnaryOp(op=op, operand=operand)
        return self.parse_power()

    # power       -> atom ('^' unary)?   # right-associative
    def parse_power(self) -> Expr:
        left = self.parse_atom()
        if self.match("SYMBOL", "^"):
            self.consume("SYMBOL", "^")
            right = self.parse_unary()
            return BinOp(op="^", left=left, right=right)
        return left

    def parse_arg_list(self, closing: str) -> List[Expr]:
        args: List[Expr] = []
        if not self.match("SYMBOL", closing):
            args.append(self.parse_statement())
            while self.match("SYMBOL", ","):
                self.consume("SYMBOL", ",")
                args.append(self.parse_statement())
        self.consume("SYMBOL", closing)
        return args

    # atom        -> NUMBER | IDENT | IDENT '(' arg_list ')' | '(' statement ')'
    #              | '[' arg_list ']'
    def parse_atom(self) -> Expr:
        tok = self.current

        if tok.kind == "NUMBER":
            self.consume("NUMBER")
            try:
                return Const(float(tok.value))
            except ValueError:
                raise SyntaxError(f"Invalid number {tok.value!r}") from None

        if tok.kind == "IDENT":
            name = self.consume("IDENT").value
            if self.match("SYMBOL", "("):
                self.consume("SYMBOL", "(")
                return Call(func_name=name, args=self.parse_arg_list(")"))
            return Var(name=name)

        if tok.kind == "SYMBOL" and tok.value == "(":
            self.consume("SYMBOL", "(")
            expr = self.parse_statement()
            self.consume("SYMBOL", ")")
            return expr

        if tok.kind == "SYMBOL" and tok.value == "[":
            self.consume("SYMBOL", "[")
            return ListExpr(items=self.parse_arg_list("]"))

        if tok.kind == "EOF":
            raise SyntaxError("Unexpected end of expression")
        raise SyntaxError(f"Unexpected token in atom: {tok.kind} {tok.value!r}")


def parse_expr(src: str) -> Expr:
    """Parse a complete PFL string; trailing tokens are an error."""
    parser = Parser(tokenize_expr(src))
    expr = parser.parse_statement()
    if not parser.match("EOF"):
        raise SyntaxError(f"Unexpected extra tokens at end of expression: {parser.current}")
    return expr


# ---------------------------------------------------------------------------
# Tree walking
# ---------------------------------------------------------------------------

def children(expr: Expr) -> List[Expr]:
    if isinstance(expr, UnaryOp):
        return [expr.operand]
    if isinstance(expr, BinOp):
        return [expr.left, expr.right]
    if isinstance(expr, Call):
        return list(expr.args)
    if isinstance(expr, Compare):
        return list(expr.operands)
    if isinstance(expr, IfExpr):
        return [expr.cond, expr.then_branch, expr.else_branch]
    if isinstance(expr, Assign):
        return [expr.target, expr.value]
    if isinstance(expr, ListExpr):
        return list(expr.items)
    # Var / Const: leaves
    return []


def walk(expr: Expr, parent: Optional[Expr] = None) -> Iterator[Tuple[Expr, Optional[Expr]]]:
    """Yield (node, parent) pairs in pre-order."""
    yield expr, parent
    for child in children(expr):
        yield from walk(child, expr)


def transform(
    expr: Expr,
    callback: Callable[[Expr, Optional[Expr]], Expr],
    parent: Optional[Expr] = None,
) -> Expr:
    """
    Pre-order rewrite: callback(node, parent) returns the node to keep
    (possibly a new one), whose children are then rewritten in turn.
    The input tree is left untouched.
    """
    node = callback(expr, parent)

    if isinstance(node, UnaryOp):
        return UnaryOp(node.op, transform(node.operand, callback, node))
    if isinstance(node, BinOp):
        return BinOp(node.op,
                     transform(node.left, callback, node),
                     transform(node.right, callback, node))
    if isinstance(node, Call):
        return Call(node.func_name, [transform(a, callback, node) for a in node.args])
    if isinstance(node, Compare):
        return Compare(list(node.ops),
                       [transform(o, callback, node) for o in node.operands])
    if isinstance(node, IfExpr):
        return IfExpr(transform(node.cond, callback, node),
                      transform(node.then_branch, callback, node),
                      transform(node.else_branch, callback, node))
    if isinstance(node, Assign):
        return Assign(transform(node.target, callback, node),
                      transform(node.value, callback, node))
    if isinstance(node, ListExpr):
        return ListExpr([transform(i, callback, node) for i in node.items])
    return node


# ---------------------------------------------------------------------------
# Formatting back to text
# ---------------------------------------------------------------------------

PREC_ASSIGN = 0
PREC_TERNARY = 1
PREC_OR = 2
PREC_AND = 3
PREC_COMPARE = 4
PREC_ADD = 5
PREC_MUL = 6
PREC_UNARY = 7
PREC_POWER = 8
PREC_ATOM = 9

BINOP_PREC = {
    "||": PREC_OR,
    "&&": PREC_AND,
    "+": PREC_ADD,
    "-": PREC_ADD,
    "*": PREC_MUL,
    "/": PREC_MUL,
    "^": PREC_POWER,
}


def format_number(value: float) -> str:
    """Shortest text for a float that our tokenizer reads back exactly."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0 and math.copysign(1.0, value) < 0:
        return "-0"
    if value == int(value) and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def precedence(expr: Expr) -> int:
    if isinstance(expr, Assign):
        return PREC_ASSIGN
    if isinstance(expr, IfExpr):
        return PREC_TERNARY
    if isinstance(expr, BinOp):
        return BINOP_PREC[expr.op]
    if isinstance(expr, Compare):
        return PREC_COMPARE
    if isinstance(expr, UnaryOp):
        return PREC_UNARY
    if isinstance(expr, Const) and (format_number(expr.value).startswith("-") or math.isinf(expr.value)):
        # printed with a leading '-' or as a symbol that may carry one
        return PREC_UNARY
    return PREC_ATOM


def _wrap(expr: Expr, needs_parens: bool) -> str:
    text = to_string(expr)
    return f"({text})" if needs_parens else text


def to_string(expr: Expr) -> str:
    """Print an AST as parseable PFL text with explicit '*'."""
    if isinstance(expr, Const):
        return format_number(expr.value)

    if isinstance(expr, Var):
        return expr.name

    if isinstance(expr, Call):
        return f"{expr.func_name}({', '.join(to_string(a) for a in expr.args)})"

    if isinstance(expr, ListExpr):
        return f"[{', '.join(to_string(i) for i in expr.items)}]"

    if isinstance(expr, UnaryOp):
        return expr.op + _wrap(expr.operand, precedence(expr.operand) < PREC_UNARY)

    if isinstance(expr, BinOp):
        p = BINOP_PREC[expr.op]
        if expr.op == "^":
            left = _wrap(expr.left, precedence(expr.left) <= PREC_POWER)
            right = _wrap(expr.right, precedence(expr.right) < PREC_UNARY)
        else:
            left = _wrap(expr.left, precedence(expr.left) < p)
            right = _wrap(expr.right, precedence(expr.right) <= p)
        return f"{left} {expr.op} {right}"

    if isinstance(expr, Compare):
        parts = [_wrap(expr.operands[0], precedence(expr.operands[0]) <= PREC_COMPARE)]
        for op, operand in zip(expr.ops, expr.operands[1:]):
            parts.append(op)
            parts.append(_wrap(operand, precedence(operand) <= PREC_COMPARE))
        return " ".join(parts)

    if isinstance(expr, IfExpr):
        cond = _wrap(expr.cond, precedence(expr.cond) <= PREC_TERNARY)
        then_e = _wrap(expr.then_branch, precedence(expr.then_branch) < PREC_TERNARY)
        else_e = _wrap(expr.else_branch, precedence(expr.else_branch) < PREC_TERNARY)
        return f"{cond} ? {then_e} : {else_e}"

    if isinstance(expr, Assign):
        target = _wrap(expr.target, precedence(expr.target) <= PREC_ASSIGN)
        value = _wrap(expr.value, precedence(expr.value) <= PREC_ASSIGN)
        return f"{target} = {value}"

    raise NotImplementedError(f"Unknown Expr node type: {type(expr)}")


# ---------------------------------------------------------------------------
# Tiny manual test harness
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    tests = [
        "x^2 + 2*x - 1",
        "2x + 3(x - 1)",
        "-x^2",
        "nthroot(x, 3)",
        "-4 <= x < 1",
        "x = 3",
        "[[x + 5, x < -4], [1/2*x^2, -4 <= x < 1]]",
        "x < 1 ? (x) : (2 * x)",
        "x +* 2",
    ]
    for t in tests:
        print("====", t)
        try:
            e = parse_expr(t)
            print(e)
            print("->", to_string(e))
        except SyntaxError as e:
            print("Syntax error:", e)
