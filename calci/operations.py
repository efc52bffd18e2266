"""
Numeric core of the calculator.

- Calculation table for the binary operators (+ - * / x^y log mod)
- Unary function table (roots, powers, trig in degrees, logs, rounding)
- Factorial with domain / overflow checks
- Trapezoidal integral and central-difference derivative of f(x) = x^2
- Display formatting and parsing

Floating-point edge cases are NOT guarded: division by zero, log of zero and
friends produce Infinity / NaN exactly like IEEE arithmetic does, instead of
the exceptions the math module would raise.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict

# ============================= Errors =======================================

class CalculationError(Exception): pass

class DomainError(CalculationError):
    """Input outside the function's domain; engine shows ``Error``."""

class MagnitudeOverflow(CalculationError):
    """Result too large for a double; engine shows ``Infinity``."""

# ============================ Formatting ====================================

ERROR = "Error"
INFINITY = "Infinity"

def _js_digits(xf: float) -> str:
    # shortest round-trip digits (repr) laid out the way Number#toString does
    sign, digits, exp = Decimal(repr(xf)).normalize().as_tuple()
    ds = "".join(map(str, digits))
    k, n = len(ds), len(ds) + exp
    head = "-" if sign else ""
    if k <= n <= 21: return head + ds + "0" * (n - k)
    if 0 < n <= 21:  return head + ds[:n] + "." + ds[n:]
    if -6 < n <= 0:  return head + "0." + "0" * -n + ds
    e = n - 1
    mant = ds if k == 1 else ds[0] + "." + ds[1:]
    return f"{head}{mant}e{'+' if e >= 0 else '-'}{abs(e)}"

def format_number(x: float) -> str:
    xf = float(x)
    if math.isnan(xf):  return "NaN"
    if math.isinf(xf):  return INFINITY if xf > 0 else "-" + INFINITY
    if xf == 0: return "0"
    return _js_digits(xf)

# leading numeric prefix, as parseFloat reads it
_NUMBER_PREFIX = re.compile(r"\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))")

def parse_display(text: str) -> float:
    m = _NUMBER_PREFIX.match(text)
    if m is None: return math.nan
    return float(m.group(1).replace("Infinity", "inf"))

# ======================= IEEE-preserving primitives =========================

def _sign(x: float) -> float: return math.copysign(1.0, x)

def div(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a): return math.nan
        return math.inf * _sign(a) * _sign(b)
    return a / b

def _is_odd_integer(x: float) -> bool:
    return math.isfinite(x) and x.is_integer() and int(x) % 2 == 1

def power(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except OverflowError:
        return -math.inf if a < 0 and _is_odd_integer(b) else math.inf
    except ValueError:
        # 0 ** negative -> +-inf, negative ** fraction -> nan
        if a == 0: return math.copysign(math.inf, a) if _is_odd_integer(b) else math.inf
        return math.nan

def ln(x: float) -> float:
    if x == 0: return -math.inf
    if x < 0 or math.isnan(x): return math.nan
    return math.log(x)

def log10(x: float) -> float:
    if x == 0: return -math.inf
    if x < 0 or math.isnan(x): return math.nan
    return math.log10(x)

def log_base(a: float, b: float) -> float: return div(ln(b), ln(a))

def mod(a: float, b: float) -> float:
    try: return math.fmod(a, b)
    except ValueError: return math.nan

def sqrt(x: float) -> float: return math.sqrt(x) if x >= 0 else math.nan

def exp(x: float) -> float:
    try: return math.exp(x)
    except OverflowError: return math.inf

def _finite_only(fn: Callable[[float], float]) -> Callable[[float], float]:
    def wrapped(x: float) -> float:
        try: return fn(x)
        except ValueError: return math.nan
    return wrapped

def _integral_or_self(fn: Callable[[float], int]) -> Callable[[float], float]:
    def wrapped(x: float) -> float:
        return float(fn(x)) if math.isfinite(x) else x
    return wrapped

_DEG = math.pi / 180
_RAD = 180 / math.pi

sin = _finite_only(lambda x: math.sin(x * _DEG))
cos = _finite_only(lambda x: math.cos(x * _DEG))
tan = _finite_only(lambda x: math.tan(x * _DEG))
floor = _integral_or_self(math.floor)
ceil = _integral_or_self(math.ceil)
round_half_up = _integral_or_self(lambda x: math.floor(x + 0.5))

def asin(x: float) -> float:
    if x < -1 or x > 1: raise DomainError("Domain error")
    return math.asin(x) * _RAD

def acos(x: float) -> float:
    if x < -1 or x > 1: raise DomainError("Domain error")
    return math.acos(x) * _RAD

def atan(x: float) -> float: return math.atan(x) * _RAD

# ========================= Calculation table ================================

class Operator(str, Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    POW = "x^y"
    LOG_BASE = "log"
    MOD = "mod"

_BINARY: Dict[Operator, Callable[[float, float], float]] = {
    Operator.ADD: lambda a, b: a + b,
    Operator.SUB: lambda a, b: a - b,
    Operator.MUL: lambda a, b: a * b,
    Operator.DIV: div,
    Operator.POW: power,
    Operator.LOG_BASE: log_base,
    Operator.MOD: mod,
}

def calculate(a: float, b: float, op: Operator) -> float:
    fn = _BINARY.get(op)
    if fn is None: return b
    return fn(a, b)

# ========================== Unary functions =================================

@dataclass(frozen=True)
class UnaryFunction:
    name: str
    compute: Callable[[float], float]
    history: str  # "{x}" / "{r}" placeholders, both already formatted

    def line(self, x: float, r: float) -> str:
        return self.history.format(x=format_number(x), r=format_number(r))

    def error_line(self, x: float, reason: str) -> str:
        return f"{self.name}({format_number(x)}) = Error: {reason}"

UNARY_FUNCTIONS: Dict[str, UnaryFunction] = {f.name: f for f in (
    UnaryFunction("sqrt",  sqrt,                  "√({x}) = {r}"),
    UnaryFunction("square", lambda x: x * x,      "{x}² = {r}"),
    UnaryFunction("cube",  lambda x: x * x * x,   "{x}³ = {r}"),
    UnaryFunction("cbrt",  math.cbrt,             "∛({x}) = {r}"),
    UnaryFunction("reciprocal", lambda x: div(1.0, x), "1/{x} = {r}"),
    UnaryFunction("sin",   sin,                   "sin({x}°) = {r}"),
    UnaryFunction("cos",   cos,                   "cos({x}°) = {r}"),
    UnaryFunction("tan",   tan,                   "tan({x}°) = {r}"),
    UnaryFunction("asin",  asin,                  "asin({x}) = {r}°"),
    UnaryFunction("acos",  acos,                  "acos({x}) = {r}°"),
    UnaryFunction("atan",  atan,                  "atan({x}) = {r}°"),
    UnaryFunction("log",   log10,                 "log({x}) = {r}"),
    UnaryFunction("ln",    ln,                    "ln({x}) = {r}"),
    UnaryFunction("exp",   exp,                   "e^{x} = {r}"),
    UnaryFunction("abs",   abs,                   "|{x}| = {r}"),
    UnaryFunction("floor", floor,                 "⌊{x}⌋ = {r}"),
    UnaryFunction("ceil",  ceil,                  "⌈{x}⌉ = {r}"),
    UnaryFunction("round", round_half_up,         "round({x}) = {r}"),
)}

CONSTANTS: Dict[str, float] = {"pi": math.pi, "e": math.e}

# ============================= Factorial ====================================

FACTORIAL_LIMIT = 170

def factorial(x: float) -> float:
    if not (x >= 0 and x.is_integer()):
        raise DomainError("Factorial requires a non-negative integer")
    if x > FACTORIAL_LIMIT:
        raise MagnitudeOverflow("too large")
    result = 1.0
    for i in range(2, int(x) + 1): result *= i
    return result

# ============================== Calculus ====================================

INTEGRAL_INTERVALS = 1000
DERIVATIVE_STEP = 0.0001

def demo_function(x: float) -> float: return x * x

def integrate(lower: float, upper: float, f: Callable[[float], float] = demo_function,
              n: int = INTEGRAL_INTERVALS) -> float:
    """Trapezoidal rule over ``n`` equal subintervals."""
    h = (upper - lower) / n
    total = 0.0
    for i in range(n + 1):
        weight = 0.5 if i in (0, n) else 1.0
        total += weight * f(lower + i * h)
    return h * total

def differentiate(x: float, f: Callable[[float], float] = demo_function,
                  h: float = DERIVATIVE_STEP) -> float:
    """Central difference (f(x+h) - f(x-h)) / 2h."""
    return (f(x + h) - f(x - h)) / (2 * h)
