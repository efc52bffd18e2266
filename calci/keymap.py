"""Keyboard -> session event mapping (no Tk needed, so it is testable headless)."""

from __future__ import annotations

from typing import NamedTuple, Optional, Tuple

from calci.operations import Operator

class KeyEvent(NamedTuple):
    action: str              # CalculatorSession method name
    args: Tuple = ()

_KEYSYMS = {
    "Return": KeyEvent("equals"), "KP_Enter": KeyEvent("equals"),
    "Escape": KeyEvent("clear_all"),
    "BackSpace": KeyEvent("clear_last_char"),
    "Tab": KeyEvent("toggle_keypad"),
}

_OPERATOR_CHARS = {"+": Operator.ADD, "-": Operator.SUB, "*": Operator.MUL, "/": Operator.DIV}

def map_key(keysym: str, char: str = "") -> Optional[KeyEvent]:
    if keysym in _KEYSYMS: return _KEYSYMS[keysym]
    if len(char) != 1: return None
    if char.isdigit() and char.isascii(): return KeyEvent("input_digit", (int(char),))
    if char == ".": return KeyEvent("input_dot")
    if char == "=": return KeyEvent("equals")
    if char in _OPERATOR_CHARS: return KeyEvent("select_operator", (_OPERATOR_CHARS[char],))
    return None

def dispatch(session, event: KeyEvent):
    return getattr(session, event.action)(*event.args)
