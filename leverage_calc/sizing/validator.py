import math
from typing import Any, Optional

from leverage_calc.sizing.models import (
    ENTRY_PRICE,
    INITIAL_FUNDS,
    RISK_AMOUNT,
    RISK_TOLERANCE,
    STOP_LOSS,
    CalculatorInputs,
    PositionType,
    RiskMode,
    ValidationErrors,
)


MAX_RISK_TOLERANCE_PCT = 100.0

ENTRY_PRICE_INVALID = "Entry price must be a positive number"
STOP_LOSS_INVALID = "Stop loss must be a positive number"
STOP_LOSS_ABOVE_ENTRY = "Stop loss must be less than entry price for long positions"
STOP_LOSS_BELOW_ENTRY = "Stop loss must be greater than entry price for short positions"
INITIAL_FUNDS_INVALID = "Initial funds must be a positive number"
RISK_TOLERANCE_INVALID = "Risk tolerance must be greater than 0 and at most 100"
RISK_AMOUNT_INVALID = "Risk amount must be a positive number"
RISK_AMOUNT_EXCEEDS_FUNDS = "Risk amount cannot exceed initial funds"


def parse_number(value: Any) -> Optional[float]:
    """Return the finite float a form value spells, or None."""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    # float() also takes "1_000"; form number fields do not
    if not text or "_" in text:
        return None
    try:
        numeric = float(text)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(numeric):
        return None
    return numeric


def parse_positive(value: Any) -> Optional[float]:
    numeric = parse_number(value)
    if numeric is None or numeric <= 0:
        return None
    return numeric


def validate(inputs: CalculatorInputs) -> ValidationErrors:
    """
    Check raw form values and return field -> message for every invalid field.

    Fields are checked independently, so one bad value never hides another.
    The only cross-field rules are the stop side relative to a valid entry
    price and the fixed risk amount relative to a numeric initial funds value.
    An empty mapping means the inputs can be passed to ``calculate``.
    """
    errors: ValidationErrors = {}

    entry = parse_positive(inputs.entry_price)
    if entry is None:
        errors[ENTRY_PRICE] = ENTRY_PRICE_INVALID

    stop = parse_positive(inputs.stop_loss)
    if stop is None:
        errors[STOP_LOSS] = STOP_LOSS_INVALID
    elif entry is not None:
        if inputs.position_type == PositionType.LONG and stop >= entry:
            errors[STOP_LOSS] = STOP_LOSS_ABOVE_ENTRY
        elif inputs.position_type == PositionType.SHORT and stop <= entry:
            errors[STOP_LOSS] = STOP_LOSS_BELOW_ENTRY

    if parse_positive(inputs.initial_funds) is None:
        errors[INITIAL_FUNDS] = INITIAL_FUNDS_INVALID

    if inputs.risk_mode == RiskMode.FIXED:
        amount = parse_positive(inputs.risk_amount)
        if amount is None:
            errors[RISK_AMOUNT] = RISK_AMOUNT_INVALID
        else:
            funds = parse_number(inputs.initial_funds)
            if funds is not None and amount > funds:
                errors[RISK_AMOUNT] = RISK_AMOUNT_EXCEEDS_FUNDS
    else:
        tolerance = parse_positive(inputs.risk_tolerance)
        if tolerance is None or tolerance > MAX_RISK_TOLERANCE_PCT:
            errors[RISK_TOLERANCE] = RISK_TOLERANCE_INVALID

    return errors


def is_valid(inputs: CalculatorInputs) -> bool:
    return not validate(inputs)
