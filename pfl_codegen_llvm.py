#!/usr/bin/env python3
"""
LLVM code generator for compiled PFL expressions.

Given a definition such as:

    sin(x)
    [[x + 5, x < -4], [1/2*x^2, -4 <= x < 1], [3, 1 <= x]]

we:

  1. Validate and compile it with pfl_check.check_math_spell
  2. Parse the compiled ternary chain back into an Expr
  3. Build an LLVM module with a function:

         double f(double x);

  4. Emit LLVM IR to a .ll file (linked against libm by the caller).

Truth values follow the evaluator: NaN is false, '!=' holds when either
side is NaN.
"""

from __future__ import annotations

import argparse
from typing import Dict, List

from llvmlite import ir

from pfl_core import (
    Expr,
    Var,
    Const,
    UnaryOp,
    BinOp,
    Call,
    Compare,
    IfExpr,
    parse_expr,
)
from pfl_check import check_math_spell
from pfl_eval import CONSTANTS

# PFL function -> libm symbol, for the one-argument functions C already has
LIBM_FUNCTIONS = {
    "sin": "sin",
    "cos": "cos",
    "tan": "tan",
    "asin": "asin",
    "acos": "acos",
    "atan": "atan",
    "sinh": "sinh",
    "cosh": "cosh",
    "tanh": "tanh",
    "exp": "exp",
    "ln": "log",
    "log10": "log10",
    "log2": "log2",
    "sqrt": "sqrt",
    "abs": "fabs",
    "ceil": "ceil",
    "floor": "floor",
}

DOUBLE = ir.DoubleType()

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def declare_double_fn(module: ir.Module, name: str, n_args: int) -> ir.Function:
    fn = module.globals.get(name)
    if fn is None:
        fn_ty = ir.FunctionType(DOUBLE, [DOUBLE] * n_args)
        fn = ir.Function(module, fn_ty, name=name)
    return fn


def libm_call(builder: ir.IRBuilder, module: ir.Module, name: str,
              args: List[ir.Value]) -> ir.Value:
    return builder.call(declare_double_fn(module, name, len(args)), args, name=f"{name}tmp")


def truth(builder: ir.IRBuilder, value: ir.Value) -> ir.Value:
    """double -> i1, false for 0.0 and NaN."""
    return builder.fcmp_ordered("!=", value, ir.Constant(DOUBLE, 0.0), name="truth")


def as_double(builder: ir.IRBuilder, flag: ir.Value) -> ir.Value:
    return builder.uitofp(flag, DOUBLE, name="bool_as_double")


def compare_i1(builder: ir.IRBuilder, op: str, left: ir.Value, right: ir.Value) -> ir.Value:
    if op == "!=":
        return builder.fcmp_unordered("!=", left, right, name="cmptmp")
    if op in ("<", "<=", ">", ">=", "=="):
        return builder.fcmp_ordered(op, left, right, name="cmptmp")
    raise NotImplementedError(f"Unsupported compare op {op!r}")


# ---------------------------------------------------------------------------
# Expression codegen
# ---------------------------------------------------------------------------

def codegen_call(expr: Call, arg_vals: List[ir.Value], builder: ir.IRBuilder,
                 module: ir.Module) -> ir.Value:
    name = expr.func_name
    one = ir.Constant(DOUBLE, 1.0)

    if name in LIBM_FUNCTIONS and len(arg_vals) == 1:
        return libm_call(builder, module, LIBM_FUNCTIONS[name], arg_vals)

    if name == "log":
        num = libm_call(builder, module, "log", arg_vals[:1])
        if len(arg_vals) == 1:
            return num
        den = libm_call(builder, module, "log", arg_vals[1:2])
        return builder.fdiv(num, den, name="logbase")

    if name == "cot":
        tan = libm_call(builder, module, "tan", arg_vals)
        return builder.fdiv(one, tan, name="cottmp")

    if name == "acot":
        inv = builder.fdiv(one, arg_vals[0], name="inv")
        return libm_call(builder, module, "atan", [inv])

    if name == "nthRoot":
        value = arg_vals[0]
        degree = arg_vals[1] if len(arg_vals) > 1 else ir.Constant(DOUBLE, 2.0)
        magnitude = libm_call(builder, module, "fabs", [value])
        root = libm_call(builder, module, "pow",
                         [magnitude, builder.fdiv(one, degree, name="invdeg")])
        # negative radicands only have a real root for odd degrees
        parity = libm_call(builder, module, "fabs",
                           [libm_call(builder, module, "fmod", [degree, ir.Constant(DOUBLE, 2.0)])])
        is_odd = builder.fcmp_ordered("==", parity, one, name="isodd")
        negative = builder.fcmp_ordered("<", value, ir.Constant(DOUBLE, 0.0), name="isneg")
        neg_root = builder.select(is_odd, builder.fneg(root, name="negroot"),
                                  ir.Constant(DOUBLE, float("nan")), name="negcase")
        return builder.select(negative, neg_root, root, name="nthroot")

    raise NotImplementedError(f"Unsupported function {name!r}/{len(arg_vals)}")


def codegen_expr(
    expr: Expr,
    builder: ir.IRBuilder,
    env: Dict[str, ir.Value],
    module: ir.Module,
    current_fn: ir.Function,
) -> ir.Value:
    """
    Generate LLVM IR for an Expr, returning an ir.Value (double).

    env: mapping from variable name -> ir.Value (function arguments)
    module: LLVM module (needed for pow / libm declarations)
    current_fn: the LLVM function we are inside (for new basic blocks)
    """
    if isinstance(expr, Const):
        return ir.Constant(DOUBLE, expr.value)

    if isinstance(expr, Var):
        if expr.name in env:
            return env[expr.name]
        if expr.name in CONSTANTS:
            return ir.Constant(DOUBLE, CONSTANTS[expr.name])
        raise ValueError(f"Unknown variable {expr.name!r}")

    if isinstance(expr, UnaryOp):
        val = codegen_expr(expr.operand, builder, env, module, current_fn)
        if expr.op == "-":
            return builder.fneg(val, name="neg")
        if expr.op == "+":
            return val
        if expr.op == "!":
            # true for 0.0 and NaN
            flag = builder.fcmp_unordered("==", val, ir.Constant(DOUBLE, 0.0), name="nottmp")
            return as_double(builder, flag)
        raise NotImplementedError(f"Unsupported unary op {expr.op!r}")

    if isinstance(expr, BinOp):
        left = codegen_expr(expr.left, builder, env, module, current_fn)
        right = codegen_expr(expr.right, builder, env, module, current_fn)

        if expr.op == "+":
            return builder.fadd(left, right, name="addtmp")
        if expr.op == "-":
            return builder.fsub(left, right, name="subtmp")
        if expr.op == "*":
            return builder.fmul(left, right, name="multmp")
        if expr.op == "/":
            return builder.fdiv(left, right, name="divtmp")
        if expr.op == "^":
            # Use llvm.pow.f64 intrinsic: double pow(double, double)
            pow_fn = module.globals.get("llvm.pow.f64")
            if pow_fn is None:
                pow_ty = ir.FunctionType(DOUBLE, [DOUBLE, DOUBLE])
                pow_fn = ir.Function(module, pow_ty, name="llvm.pow.f64")
            return builder.call(pow_fn, [left, right], name="powtmp")
        # operands are pure, so both sides are evaluated
        if expr.op == "&&":
            return as_double(builder, builder.and_(truth(builder, left), truth(builder, right), name="andtmp"))
        if expr.op == "||":
            return as_double(builder, builder.or_(truth(builder, left), truth(builder, right), name="ortmp"))

        raise NotImplementedError(f"Unsupported binary op {expr.op!r}")

    if isinstance(expr, Call):
        arg_vals = [
            codegen_expr(arg, builder, env, module, current_fn)
            for arg in expr.args
        ]
        return codegen_call(expr, arg_vals, builder, module)

    if isinstance(expr, Compare):
        values = [codegen_expr(o, builder, env, module, current_fn) for o in expr.operands]
        result = compare_i1(builder, expr.ops[0], values[0], values[1])
        for i, op in enumerate(expr.ops[1:], start=1):
            step = compare_i1(builder, op, values[i], values[i + 1])
            result = builder.and_(result, step, name="chaintmp")
        return as_double(builder, result)

    if isinstance(expr, IfExpr):
        cond_val = codegen_expr(expr.cond, builder, env, module, current_fn)
        cond_bool = truth(builder, cond_val)

        fn = current_fn
        then_block = fn.append_basic_block(name="then")
        else_block = fn.append_basic_block(name="else")
        merge_block = fn.append_basic_block(name="ifcont")

        builder.cbranch(cond_bool, then_block, else_block)

        # THEN block
        builder.position_at_start(then_block)
        then_val = codegen_expr(expr.then_branch, builder, env, module, current_fn)
        builder.branch(merge_block)
        then_block_end = builder.block

        # ELSE block
        builder.position_at_start(else_block)
        else_val = codegen_expr(expr.else_branch, builder, env, module, current_fn)
        builder.branch(merge_block)
        else_block_end = builder.block

        # MERGE block
        builder.position_at_start(merge_block)
        phi = builder.phi(DOUBLE, name="iftmp")
        phi.add_incoming(then_val, then_block_end)
        phi.add_incoming(else_val, else_block_end)
        return phi

    raise NotImplementedError(f"Unknown Expr node type: {type(expr)}")


# ---------------------------------------------------------------------------
# Function + module construction
# ---------------------------------------------------------------------------

def build_module_for_expression(
    expr: Expr,
    func_name: str = "f",
    variable: str = "x",
    module_name: str = "pfl_module",
) -> ir.Module:
    """
    Given a compiled expression, construct an LLVM module with a single
    function double func_name(double variable).
    """
    module = ir.Module(name=module_name)

    fn_ty = ir.FunctionType(DOUBLE, [DOUBLE])
    fn = ir.Function(module, fn_ty, name=func_name)
    arg = fn.args[0]
    arg.name = variable
    env: Dict[str, ir.Value] = {variable: arg}

    block = fn.append_basic_block(name="entry")
    builder = ir.IRBuilder(block)

    ret_val = codegen_expr(expr, builder, env, module, fn)
    builder.ret(ret_val)

    return module


def build_module_for_definition(definition, func_name: str = "f",
                                module_name: str = "pfl_module") -> ir.Module:
    """Validate + compile a definition, then lower it. Invalid input raises ValueError."""
    result = check_math_spell(definition)
    if not result.ok:
        messages = "; ".join(e.message for e in result.errors)
        raise ValueError(f"Invalid function definition: {messages}")
    return build_module_for_expression(parse_expr(result.expression),
                                       func_name=func_name, module_name=module_name)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args():
    p = argparse.ArgumentParser(
        description="Generate LLVM IR (.ll) from a PFL function definition."
    )
    p.add_argument(
        "definition",
        help='Expression or piecewise list, e.g. "x^2 + 1" or "[[x, x < 0], [x^2, x >= 0]]"',
    )
    p.add_argument(
        "--out",
        "-o",
        required=True,
        help="Output .ll file path.",
    )
    p.add_argument(
        "--name",
        default="f",
        help="Name of the generated function (default: f).",
    )
    p.add_argument(
        "--module-name",
        default="pfl_module",
        help="Optional LLVM module name.",
    )
    return p.parse_args()


def main():
    args = parse_args()

    module = build_module_for_definition(args.definition, func_name=args.name,
                                         module_name=args.module_name)

    out_path = args.out
    with open(out_path, "w", encoding="utf-8") as f:
        f.write(str(module))
    print(f"[INFO] Wrote LLVM IR for {args.name} to {out_path}")


if __name__ == "__main__":
    main()
