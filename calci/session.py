"""
Session-scoped controller: owns the one ``EngineState`` of a running
calculator, feeds input events through the pure engine functions and writes
history / memory / theme changes to the persistence port.

Persistence is best effort. A failing store is logged and otherwise ignored;
the in-memory state is never rolled back because of it.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from calci import engine
from calci.engine import EngineState, Mode
from calci.operations import Operator, format_number
from calci.store import (
    DARK_MODE_KEY, HISTORY_KEY, MEMORY_KEY, KeyValueStore, MemoryStore, StoreError,
    dump_history, load_dark_mode, load_history, load_memory,
)

log = logging.getLogger(__name__)

KEYPADS = ("main", "advanced")

class CalculatorSession:
    def __init__(self, store: Optional[KeyValueStore] = None) -> None:
        self.store = store if store is not None else MemoryStore()
        self.state = EngineState(memory=load_memory(self.store), history=tuple(load_history(self.store)))
        self.dark_mode: bool = load_dark_mode(self.store)
        self.keypad: str = KEYPADS[0]

    # ------------------------------------------------------------ plumbing
    def _persist(self, key: str, value: str) -> None:
        try:
            self.store.save(key, value)
        except (StoreError, TypeError, ValueError) as exc:
            log.warning("error saving %s: %s", key, exc)

    def _apply(self, transition: Callable[..., EngineState], *args, persist_memory: bool = False) -> EngineState:
        before = self.state
        self.state = transition(before, *args)
        if self.state.history is not before.history:
            self._persist(HISTORY_KEY, dump_history(self.state.history))
        if persist_memory:
            self._persist(MEMORY_KEY, format_number(self.state.memory))
        return self.state

    # ------------------------------------------------------------ read-only views
    @property
    def display(self) -> str: return self.state.display
    @property
    def history(self) -> tuple: return self.state.history
    @property
    def memory(self) -> float: return self.state.memory
    @property
    def mode(self) -> Mode: return self.state.mode

    # ------------------------------------------------------------ input events
    def input_digit(self, digit: int) -> EngineState: return self._apply(engine.input_digit, digit)
    def input_dot(self) -> EngineState:               return self._apply(engine.input_dot)
    def clear_last_char(self) -> EngineState:         return self._apply(engine.clear_last_char)
    def toggle_sign(self) -> EngineState:             return self._apply(engine.toggle_sign)
    def input_percent(self) -> EngineState:           return self._apply(engine.input_percent)
    def clear_all(self) -> EngineState:               return self._apply(engine.clear_all)

    def select_operator(self, op: Operator) -> EngineState: return self._apply(engine.select_operator, Operator(op))
    def equals(self) -> EngineState:                        return self._apply(engine.equals)

    def apply_function(self, name: str) -> EngineState: return self._apply(engine.apply_function, name)
    def factorial(self) -> EngineState:                 return self._apply(engine.apply_factorial)
    def insert_constant(self, name: str) -> EngineState: return self._apply(engine.insert_constant, name)

    def integral(self) -> EngineState:   return self._apply(engine.integral_key)
    def derivative(self) -> EngineState: return self._apply(engine.derivative_key)

    def memory_add(self) -> EngineState:      return self._apply(engine.memory_add, persist_memory=True)
    def memory_subtract(self) -> EngineState: return self._apply(engine.memory_subtract, persist_memory=True)
    def memory_recall(self) -> EngineState:   return self._apply(engine.memory_recall)
    def memory_clear(self) -> EngineState:    return self._apply(engine.memory_clear, persist_memory=True)

    def clear_history(self) -> EngineState:
        self.state = engine.clear_history(self.state)
        self._persist(HISTORY_KEY, dump_history(self.state.history))
        return self.state

    # ------------------------------------------------------------ view state
    def toggle_keypad(self) -> str:
        self.keypad = KEYPADS[1] if self.keypad == KEYPADS[0] else KEYPADS[0]
        self._apply(engine.cancel_collection)
        return self.keypad

    def toggle_dark_mode(self) -> bool:
        self.dark_mode = not self.dark_mode
        self._persist(DARK_MODE_KEY, "true" if self.dark_mode else "false")
        return self.dark_mode
