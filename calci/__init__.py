"""Calci: a single-accumulator scientific calculator with history and memory."""

from calci.engine import EngineState, Mode
from calci.operations import CalculationError, DomainError, MagnitudeOverflow, Operator
from calci.session import CalculatorSession

__version__ = "1.0.0"

__all__ = [
    "CalculationError", "CalculatorSession", "DomainError", "EngineState",
    "MagnitudeOverflow", "Mode", "Operator",
]
