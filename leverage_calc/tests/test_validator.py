import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from leverage_calc.sizing.models import CalculatorInputs, PositionType, RiskMode  # noqa: E402
from leverage_calc.sizing.validator import (  # noqa: E402
    ENTRY_PRICE_INVALID,
    INITIAL_FUNDS_INVALID,
    RISK_AMOUNT_EXCEEDS_FUNDS,
    RISK_AMOUNT_INVALID,
    RISK_TOLERANCE_INVALID,
    STOP_LOSS_ABOVE_ENTRY,
    STOP_LOSS_BELOW_ENTRY,
    STOP_LOSS_INVALID,
    is_valid,
    parse_number,
    validate,
)


def long_inputs(**overrides):
    values = dict(
        position_type=PositionType.LONG,
        entry_price="100",
        stop_loss="90",
        initial_funds="1000",
        risk_tolerance="2",
        risk_mode=RiskMode.PERCENTAGE,
    )
    values.update(overrides)
    return CalculatorInputs(**values)


def test_valid_long_scenario_has_no_errors():
    assert validate(long_inputs()) == {}
    assert is_valid(long_inputs())


def test_valid_short_scenario_has_no_errors():
    inputs = long_inputs(position_type=PositionType.SHORT, entry_price="50", stop_loss="55")
    assert validate(inputs) == {}


@pytest.mark.parametrize("raw", ["", "   ", "abc", "12abc", "0", "-5", "nan", "inf", "-inf"])
def test_entry_price_rejects_non_positive_or_non_numeric(raw):
    errors = validate(long_inputs(entry_price=raw))
    assert errors["entryPrice"] == ENTRY_PRICE_INVALID


def test_entry_price_accepts_surrounding_whitespace():
    assert "entryPrice" not in validate(long_inputs(entry_price=" 100 "))


def test_stop_loss_must_be_positive():
    errors = validate(long_inputs(stop_loss="-1"))
    assert errors == {"stopLoss": STOP_LOSS_INVALID}


@pytest.mark.parametrize("stop", ["100", "100.01", "150"])
def test_long_stop_at_or_above_entry_rejected(stop):
    errors = validate(long_inputs(stop_loss=stop))
    assert errors == {"stopLoss": STOP_LOSS_ABOVE_ENTRY}


@pytest.mark.parametrize("stop", ["50", "49.99", "10"])
def test_short_stop_at_or_below_entry_rejected(stop):
    errors = validate(long_inputs(position_type=PositionType.SHORT, entry_price="50", stop_loss=stop))
    assert errors == {"stopLoss": STOP_LOSS_BELOW_ENTRY}


@pytest.mark.parametrize(
    "entry,stop",
    [("100", "99.99"), ("0.5", "0.1"), ("25000", "1"), ("3", "2.999")],
)
def test_long_stop_below_entry_never_flags_stop(entry, stop):
    assert "stopLoss" not in validate(long_inputs(entry_price=entry, stop_loss=stop))


@pytest.mark.parametrize(
    "entry,stop",
    [("99.99", "100"), ("0.1", "0.5"), ("1", "25000"), ("2.999", "3")],
)
def test_short_stop_above_entry_never_flags_stop(entry, stop):
    inputs = long_inputs(position_type=PositionType.SHORT, entry_price=entry, stop_loss=stop)
    assert "stopLoss" not in validate(inputs)


def test_stop_side_not_checked_when_entry_invalid():
    errors = validate(long_inputs(entry_price="", stop_loss="150"))
    assert errors == {"entryPrice": ENTRY_PRICE_INVALID}


def test_errors_reported_for_every_bad_field():
    inputs = CalculatorInputs(
        position_type=PositionType.LONG,
        entry_price="x",
        stop_loss="",
        initial_funds="0",
        risk_tolerance="200",
    )
    errors = validate(inputs)
    assert errors == {
        "entryPrice": ENTRY_PRICE_INVALID,
        "stopLoss": STOP_LOSS_INVALID,
        "initialFunds": INITIAL_FUNDS_INVALID,
        "riskTolerance": RISK_TOLERANCE_INVALID,
    }


@pytest.mark.parametrize("tolerance", ["0", "101", "100.0001", "-1", ""])
def test_risk_tolerance_out_of_range_rejected(tolerance):
    errors = validate(long_inputs(risk_tolerance=tolerance))
    assert errors == {"riskTolerance": RISK_TOLERANCE_INVALID}


@pytest.mark.parametrize("tolerance", ["100", "0.01", "2", "50"])
def test_risk_tolerance_in_range_accepted(tolerance):
    assert validate(long_inputs(risk_tolerance=tolerance)) == {}


def test_percentage_mode_ignores_risk_amount():
    inputs = long_inputs(risk_amount="999999")
    assert validate(inputs) == {}


def test_fixed_mode_ignores_risk_tolerance():
    inputs = long_inputs(risk_mode=RiskMode.FIXED, risk_tolerance="", risk_amount="20")
    assert validate(inputs) == {}


@pytest.mark.parametrize("amount", ["", "0", "-10", "abc"])
def test_fixed_risk_amount_must_be_positive(amount):
    inputs = long_inputs(risk_mode=RiskMode.FIXED, risk_amount=amount)
    assert validate(inputs) == {"riskAmount": RISK_AMOUNT_INVALID}


def test_fixed_risk_amount_equal_to_funds_allowed():
    inputs = long_inputs(risk_mode=RiskMode.FIXED, risk_amount="1000")
    assert validate(inputs) == {}


@pytest.mark.parametrize(
    "overrides,amount",
    [
        ({}, "1000.01"),
        ({"entry_price": ""}, "1000.01"),
        ({"stop_loss": "150"}, "5000"),
        ({"position_type": PositionType.SHORT}, "1000.01"),
        ({"initial_funds": "0.5"}, "0.51"),
        ({"initial_funds": "-5"}, "10"),
    ],
)
def test_fixed_risk_amount_above_funds_always_rejected(overrides, amount):
    inputs = long_inputs(risk_mode=RiskMode.FIXED, risk_amount=amount, **overrides)
    assert validate(inputs)["riskAmount"] == RISK_AMOUNT_EXCEEDS_FUNDS


def test_fixed_risk_amount_not_compared_when_funds_not_numeric():
    inputs = long_inputs(risk_mode=RiskMode.FIXED, risk_amount="50", initial_funds="")
    errors = validate(inputs)
    assert errors == {"initialFunds": INITIAL_FUNDS_INVALID}


def test_parse_number_handles_numbers_and_text():
    assert parse_number("1e3") == 1000.0
    assert parse_number(2.5) == 2.5
    assert parse_number(None) is None
    assert parse_number(True) is None
    assert parse_number("Infinity") is None


@pytest.mark.parametrize("raw", ["1_000", "1_0.5", "_5"])
def test_underscore_digit_separators_rejected(raw):
    assert parse_number(raw) is None
    assert validate(long_inputs(initial_funds=raw)) == {"initialFunds": INITIAL_FUNDS_INVALID}
