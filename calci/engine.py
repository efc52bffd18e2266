"""
Calculator engine: an immutable ``EngineState`` plus pure transition
functions, one per input event. Every function takes a state and returns the
next state; nothing here touches the UI or the persistence store.

Binary operators chain strictly left to right (``2 + 3 * 4`` -> 20). The
integral and derivative keys are two-phase: the first press collects a bound
or point, the second press computes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

from calci.operations import (
    CONSTANTS, ERROR, INFINITY, UNARY_FUNCTIONS, DomainError, MagnitudeOverflow, Operator,
    calculate, differentiate, factorial, format_number, integrate, parse_display,
)

log = logging.getLogger(__name__)

class Mode(Enum):
    NORMAL = "normal"
    INTEGRATION = "integration"   # collecting the upper bound
    DERIVATIVE = "derivative"     # collecting the point x

@dataclass(frozen=True)
class EngineState:
    display: str = "0"
    accumulator: Optional[float] = None
    pending_operator: Optional[Operator] = None
    awaiting_fresh_operand: bool = True
    mode: Mode = Mode.NORMAL
    memory: float = 0.0
    history: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def value(self) -> float: return parse_display(self.display)

def _log_line(state: EngineState, line: str, **changes) -> EngineState:
    return replace(state, history=state.history + (line,), **changes)

# ============================== Digit entry =================================

def input_digit(state: EngineState, digit: int) -> EngineState:
    if not 0 <= digit <= 9: raise ValueError(f"digit must be 0..9, got {digit!r}")
    d = str(digit)
    if state.awaiting_fresh_operand:
        return replace(state, display=d, awaiting_fresh_operand=False)
    return replace(state, display=d if state.display == "0" else state.display + d)

def input_dot(state: EngineState) -> EngineState:
    if state.awaiting_fresh_operand:
        return replace(state, display="0.", awaiting_fresh_operand=False)
    if "." in state.display: return state
    return replace(state, display=state.display + ".")

_SENTINELS = (ERROR, INFINITY, "-" + INFINITY, "NaN")

def clear_last_char(state: EngineState) -> EngineState:
    # sentinels are not editable numbers; a dangling sign or exponent marker goes too
    if len(state.display) > 1 and state.display not in _SENTINELS:
        rest = state.display[:-1].rstrip("e+-")
        if rest: return replace(state, display=rest)
    return replace(state, display="0", awaiting_fresh_operand=True)

def toggle_sign(state: EngineState) -> EngineState:
    return replace(state, display=format_number(-state.value))

def input_percent(state: EngineState) -> EngineState:
    return replace(state, display=format_number(state.value / 100))

def clear_all(state: EngineState) -> EngineState:
    return replace(state, display="0", accumulator=None, pending_operator=None,
                   awaiting_fresh_operand=True, mode=Mode.NORMAL)

# =========================== Binary pipeline ================================

def _binary_line(a: float, op: Operator, b: float, result: float) -> str:
    return f"{format_number(a)} {op.value} {format_number(b)} = {format_number(result)}"

def select_operator(state: EngineState, op: Operator) -> EngineState:
    if state.mode is not Mode.NORMAL:
        log.debug("operator %s ignored while in %s mode", op.value, state.mode.value)
        return state
    value = state.value
    if state.accumulator is None:
        state = replace(state, accumulator=value)
    elif state.pending_operator is not None:
        result = calculate(state.accumulator, value, state.pending_operator)
        state = _log_line(state, _binary_line(state.accumulator, state.pending_operator, value, result),
                          accumulator=result, display=format_number(result))
    return replace(state, awaiting_fresh_operand=True, pending_operator=op)

def equals(state: EngineState) -> EngineState:
    if state.accumulator is None or state.pending_operator is None: return state
    value = state.value
    result = calculate(state.accumulator, value, state.pending_operator)
    return _log_line(state, _binary_line(state.accumulator, state.pending_operator, value, result),
                     display=format_number(result), accumulator=None, pending_operator=None,
                     awaiting_fresh_operand=True)

# ============================ Unary functions ===============================

def apply_function(state: EngineState, name: str) -> EngineState:
    """Apply a unary function (see ``UNARY_FUNCTIONS``) to the display."""
    fn = UNARY_FUNCTIONS[name]
    x = state.value
    try:
        result = fn.compute(x)
    except DomainError as exc:
        return _log_line(state, fn.error_line(x, str(exc)), display=ERROR, awaiting_fresh_operand=True)
    return _log_line(state, fn.line(x, result), display=format_number(result))

def apply_factorial(state: EngineState) -> EngineState:
    x = state.value
    label = format_number(x)
    try:
        result = factorial(x)
    except DomainError as exc:
        return _log_line(state, f"{label}! = Error: {exc}", display=ERROR, awaiting_fresh_operand=True)
    except MagnitudeOverflow as exc:
        return _log_line(state, f"{label}! = {INFINITY} ({exc})", display=INFINITY, awaiting_fresh_operand=True)
    return _log_line(state, f"{label}! = {format_number(result)}",
                     display=format_number(result), awaiting_fresh_operand=True)

def insert_constant(state: EngineState, name: str) -> EngineState:
    return replace(state, display=format_number(CONSTANTS[name]), awaiting_fresh_operand=True)

# =============================== Calculus ===================================

def integral_key(state: EngineState) -> EngineState:
    if state.mode is Mode.INTEGRATION:
        lower = state.accumulator if state.accumulator is not None else 0.0
        upper = state.value
        result = integrate(lower, upper)
        log.debug("integral of x^2 over [%s, %s]", lower, upper)
        return _log_line(state, f"∫(x^2) from {format_number(lower)} to {format_number(upper)} ≈ {format_number(result)}",
                         display=format_number(result), accumulator=None, mode=Mode.NORMAL,
                         awaiting_fresh_operand=True)
    # starting a collection abandons any pending chain
    return replace(state, accumulator=state.value, pending_operator=None, display="0",
                   awaiting_fresh_operand=True, mode=Mode.INTEGRATION)

def derivative_key(state: EngineState) -> EngineState:
    if state.mode is Mode.DERIVATIVE:
        x = state.value
        result = differentiate(x)
        return _log_line(state, f"d/dx(x^2) at x={format_number(x)} ≈ {format_number(result)}",
                         display=format_number(result), mode=Mode.NORMAL, awaiting_fresh_operand=True)
    return replace(state, accumulator=None, pending_operator=None, display="0",
                   awaiting_fresh_operand=True, mode=Mode.DERIVATIVE)

def cancel_collection(state: EngineState) -> EngineState:
    """Abort an integral/derivative collection without computing anything."""
    if state.mode is Mode.NORMAL: return state
    log.debug("cancelled %s collection", state.mode.value)
    return replace(state, accumulator=None, mode=Mode.NORMAL)

# ================================ Memory ====================================

def memory_add(state: EngineState) -> EngineState:
    return replace(state, memory=state.memory + state.value, awaiting_fresh_operand=True)

def memory_subtract(state: EngineState) -> EngineState:
    return replace(state, memory=state.memory - state.value, awaiting_fresh_operand=True)

def memory_recall(state: EngineState) -> EngineState:
    return replace(state, display=format_number(state.memory), awaiting_fresh_operand=False)

def memory_clear(state: EngineState) -> EngineState:
    return replace(state, memory=0.0)

# ================================ History ===================================

def clear_history(state: EngineState) -> EngineState:
    return replace(state, history=())
