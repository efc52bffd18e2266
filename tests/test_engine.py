"""
Tests for the pure engine transitions: digit entry, left-to-right operator
chaining, unary functions, error sentinels, the two-phase calculus keys,
memory and history.
"""
import math

import pytest

from calci import engine
from calci.engine import EngineState, Mode
from calci.operations import Operator, parse_display


def is_display_valid(display):
    if display in ("Error", "Infinity", "-Infinity", "NaN"):
        return True
    return math.isfinite(parse_display(display))


def enter(state, text):
    """Type a number the way a user would, one key at a time."""
    for ch in text:
        if ch == ".":
            state = engine.input_dot(state)
        elif ch == "-":
            state = engine.toggle_sign(state)
        else:
            state = engine.input_digit(state, int(ch))
    return state


def compute(state, first, op, second):
    state = enter(state, first)
    state = engine.select_operator(state, op)
    state = enter(state, second)
    return engine.equals(state)


class TestInitialState:
    def test_defaults(self, state):
        assert state.display == "0"
        assert state.accumulator is None
        assert state.pending_operator is None
        assert state.awaiting_fresh_operand is True
        assert state.mode is Mode.NORMAL
        assert state.memory == 0
        assert state.history == ()


class TestDigitEntry:
    def test_digits_concatenate(self, state):
        assert enter(state, "1234").display == "1234"

    def test_leading_zero_suppressed(self, state):
        assert enter(state, "05").display == "5"
        assert enter(state, "007").display == "7"

    def test_dot_is_idempotent(self, state):
        state = enter(state, "3")
        state = engine.input_dot(state)
        state = engine.input_dot(state)
        assert state.display == "3."
        assert enter(state, "14").display == "3.14"

    def test_dot_on_fresh_operand_starts_with_zero(self, state):
        state = engine.input_dot(state)
        assert state.display == "0."
        assert state.awaiting_fresh_operand is False

    def test_no_length_limit(self, state):
        assert enter(state, "9" * 40).display == "9" * 40

    def test_rejects_non_digit(self, state):
        with pytest.raises(ValueError):
            engine.input_digit(state, 10)

    def test_clear_last_char(self, state):
        state = enter(state, "12")
        state = engine.clear_last_char(state)
        assert state.display == "1"
        state = engine.clear_last_char(state)
        assert state.display == "0"
        assert state.awaiting_fresh_operand is True

    def test_clear_last_char_on_error_display(self, state):
        state = engine.apply_function(enter(state, "2"), "asin")
        state = engine.clear_last_char(state)
        assert state.display == "0"
        assert state.awaiting_fresh_operand is True

    def test_clear_last_char_never_leaves_bare_minus(self, state):
        state = engine.clear_last_char(enter(state, "5-"))
        assert state.display == "0"

    def test_clear_last_char_keeps_partial_decimal(self, state):
        assert engine.clear_last_char(enter(state, "1.5")).display == "1."

    def test_backspace_through_exponent(self, state):
        state = compute(state, "10", Operator.POW, "21")
        assert state.display == "1e+21"
        state = engine.clear_last_char(state)
        assert state.display == "1e+2"
        state = engine.clear_last_char(state)
        assert state.display == "1"
        assert is_display_valid(state.display)

    def test_backspace_through_negative_exponent(self, state):
        state = engine.apply_function(enter(state, "1000000000"), "reciprocal")
        assert state.display == "1e-9"
        assert engine.clear_last_char(state).display == "1"

    def test_toggle_sign(self, state):
        state = enter(state, "5")
        state = engine.toggle_sign(state)
        assert state.display == "-5"
        assert engine.toggle_sign(state).display == "5"

    def test_toggle_sign_keeps_entry_flag(self, state):
        state = engine.toggle_sign(state)
        assert state.display == "0"
        assert state.awaiting_fresh_operand is True

    def test_percent(self, state):
        assert engine.input_percent(enter(state, "50")).display == "0.5"

    def test_percent_keeps_fixed_notation(self, state):
        state = enter(state, "1")
        for _ in range(3):
            state = engine.input_percent(state)
        assert state.display == "0.000001"
        assert enter(state, "5").display == "0.0000015"

    def test_clear_all_keeps_memory_and_history(self, state):
        state = compute(state, "2", Operator.ADD, "2")
        state = engine.memory_add(state)
        state = enter(state, "7")
        state = engine.select_operator(state, Operator.MUL)
        state = engine.clear_all(state)
        assert state.display == "0"
        assert state.accumulator is None
        assert state.pending_operator is None
        assert state.awaiting_fresh_operand is True
        assert state.memory == 4
        assert len(state.history) == 1


class TestBinaryPipeline:
    def test_simple_equals(self, state):
        state = compute(state, "12", Operator.ADD, "30")
        assert state.display == "42"
        assert state.history == ("12 + 30 = 42",)
        assert state.accumulator is None
        assert state.pending_operator is None
        assert state.awaiting_fresh_operand is True

    def test_no_precedence(self, state):
        state = enter(state, "3")
        state = engine.select_operator(state, Operator.ADD)
        state = enter(state, "4")
        state = engine.select_operator(state, Operator.MUL)
        assert state.display == "7"
        state = enter(state, "2")
        state = engine.equals(state)
        assert state.display == "14"
        assert state.history == ("3 + 4 = 7", "7 * 2 = 14")

    def test_left_to_right_chain(self, state):
        state = enter(state, "2")
        for op, digits in ((Operator.ADD, "3"), (Operator.MUL, "4")):
            state = engine.select_operator(state, op)
            state = enter(state, digits)
        assert engine.equals(state).display == "20"

    def test_equals_without_pending_is_noop(self, state):
        state = enter(state, "9")
        assert engine.equals(state) is state

    def test_operator_symbols_in_history(self, state):
        assert compute(state, "2", Operator.POW, "3").history[-1] == "2 x^y 3 = 8"
        assert compute(state, "7", Operator.MOD, "4").history[-1] == "7 mod 4 = 3"
        assert compute(state, "4", Operator.DIV, "8").history[-1] == "4 / 8 = 0.5"

    def test_division_by_zero_shows_infinity(self, state):
        state = compute(state, "1", Operator.DIV, "0")
        assert state.display == "Infinity"
        assert state.history[-1] == "1 / 0 = Infinity"

    def test_zero_over_zero_shows_nan(self, state):
        assert compute(state, "0", Operator.DIV, "0").display == "NaN"

    def test_digit_after_result_starts_new_number(self, state):
        state = compute(state, "2", Operator.ADD, "2")
        assert enter(state, "5").display == "5"


class TestUnaryFunctions:
    def test_function_logs_and_keeps_chain(self, state):
        state = enter(state, "9")
        state = engine.apply_function(state, "sqrt")
        assert state.display == "3"
        assert state.history == ("√(9) = 3",)
        assert state.accumulator is None

    def test_function_on_second_operand(self, state):
        state = enter(state, "1")
        state = engine.select_operator(state, Operator.ADD)
        state = engine.apply_function(enter(state, "16"), "sqrt")
        assert state.pending_operator is Operator.ADD
        assert engine.equals(state).display == "5"

    def test_asin_in_degrees(self, state):
        state = engine.apply_function(enter(state, "1"), "asin")
        assert float(state.display) == pytest.approx(90)

    @pytest.mark.parametrize("name", ["asin", "acos"])
    def test_inverse_trig_domain_error(self, state, name):
        state = engine.apply_function(enter(state, "2"), name)
        assert state.display == "Error"
        assert state.history[-1] == f"{name}(2) = Error: Domain error"
        assert state.awaiting_fresh_operand is True

    def test_inverse_trig_of_error_display_is_nan(self, state):
        state = engine.apply_function(enter(state, "2"), "asin")
        state = engine.apply_function(state, "asin")
        assert state.display == "NaN"
        assert state.history[-1] == "asin(NaN) = NaN°"

    def test_session_continues_after_error(self, state):
        state = engine.apply_function(enter(state, "2"), "asin")
        assert enter(state, "4").display == "4"

    def test_sqrt_of_negative_is_nan(self, state):
        state = engine.apply_function(enter(state, "4-"), "sqrt")
        assert state.display == "NaN"

    def test_constants(self, state):
        state = engine.insert_constant(state, "pi")
        assert state.display == "3.141592653589793"
        assert state.awaiting_fresh_operand is True
        assert state.history == ()
        assert engine.insert_constant(state, "e").display == "2.718281828459045"


class TestFactorial:
    def test_five(self, state):
        state = engine.apply_factorial(enter(state, "5"))
        assert state.display == "120"
        assert state.history == ("5! = 120",)
        assert state.awaiting_fresh_operand is True

    def test_negative_is_error(self, state):
        state = engine.apply_factorial(enter(state, "1-"))
        assert state.display == "Error"
        assert state.history == ("-1! = Error: Factorial requires a non-negative integer",)

    def test_non_integer_is_error(self, state):
        assert engine.apply_factorial(enter(state, "2.5")).display == "Error"

    def test_overflow_is_infinity(self, state):
        state = engine.apply_factorial(enter(state, "171"))
        assert state.display == "Infinity"
        assert state.history == ("171! = Infinity (too large)",)
        assert state.awaiting_fresh_operand is True

    def test_170_is_finite(self, state):
        assert engine.apply_factorial(enter(state, "170")).display.startswith("7.257415615307")


class TestCalculus:
    def test_integral_two_phase(self, state):
        state = engine.integral_key(enter(state, "0"))
        assert state.mode is Mode.INTEGRATION
        assert state.accumulator == 0
        assert state.display == "0"
        state = engine.integral_key(enter(state, "1"))
        assert float(state.display) == pytest.approx(1 / 3, abs=1e-4)
        assert state.mode is Mode.NORMAL
        assert state.accumulator is None
        assert state.history[-1].startswith("∫(x^2) from 0 to 1 ≈ 0.333333")

    def test_integral_drops_pending_operator(self, state):
        state = engine.select_operator(enter(state, "2"), Operator.ADD)
        state = engine.integral_key(enter(state, "1"))
        assert state.pending_operator is None
        assert state.accumulator == 1

    def test_derivative_two_phase(self, state):
        state = engine.derivative_key(enter(state, "3"))
        assert state.mode is Mode.DERIVATIVE
        assert state.display == "0"
        state = engine.derivative_key(enter(state, "3"))
        assert float(state.display) == pytest.approx(6)
        assert state.mode is Mode.NORMAL
        assert state.history[-1].startswith("d/dx(x^2) at x=3 ≈ ")

    def test_operators_ignored_while_collecting(self, state):
        state = engine.integral_key(enter(state, "2"))
        collecting = enter(state, "5")
        assert engine.select_operator(collecting, Operator.ADD) is collecting
        assert engine.equals(collecting) is collecting

    @pytest.mark.parametrize("key", [engine.integral_key, engine.derivative_key])
    def test_cancel_collection(self, state, key):
        state = key(enter(state, "2"))
        state = engine.cancel_collection(enter(state, "4"))
        assert state.mode is Mode.NORMAL
        assert state.accumulator is None
        assert state.history == ()

    def test_cancel_when_idle_is_noop(self, state):
        assert engine.cancel_collection(state) is state

    def test_clear_all_resets_mode(self, state):
        state = engine.derivative_key(state)
        assert engine.clear_all(state).mode is Mode.NORMAL


class TestMemory:
    def test_round_trip(self, state):
        state = engine.memory_add(enter(state, "5"))
        assert state.memory == 5
        state = engine.memory_clear(state)
        state = engine.memory_recall(state)
        assert state.display == "0"

    def test_add_subtract_recall(self, state):
        state = engine.memory_add(enter(state, "10"))
        assert state.awaiting_fresh_operand is True
        state = engine.memory_subtract(enter(state, "3"))
        state = engine.memory_recall(engine.clear_all(state))
        assert state.display == "7"
        assert state.awaiting_fresh_operand is False


class TestHistory:
    def test_append_only_in_order(self, state):
        state = compute(state, "1", Operator.ADD, "1")
        state = engine.apply_function(state, "square")
        state = engine.apply_factorial(state)
        assert state.history == ("1 + 1 = 2", "2² = 4", "4! = 24")

    def test_clear_history(self, state):
        state = compute(state, "1", Operator.ADD, "1")
        assert engine.clear_history(state).history == ()


class TestDisplayInvariant:
    @pytest.mark.parametrize("display", ["0", "0.", "-12.5", "Error", "Infinity", "-Infinity", "NaN"])
    def test_valid(self, display):
        assert is_display_valid(display)

    def test_every_transition_keeps_display_valid(self, state):
        steps = [
            lambda s: enter(s, "12.5"),
            lambda s: engine.select_operator(s, Operator.DIV),
            lambda s: enter(s, "0"),
            engine.equals,
            lambda s: engine.apply_function(s, "acos"),
            engine.apply_factorial,
            engine.clear_last_char,
        ]
        for step in steps:
            state = step(state)
            assert is_display_valid(state.display)
