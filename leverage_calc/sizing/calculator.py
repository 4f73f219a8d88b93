import logging
import math
from decimal import ROUND_HALF_UP, Decimal, localcontext

from leverage_calc.core.logging import get_logger, log_event
from leverage_calc.sizing.models import CalculationResults, CalculatorInputs, RiskMode, ValidationErrors
from leverage_calc.sizing.validator import parse_number, validate


logger = get_logger(__name__)

_CENTS = Decimal("0.01")


class PositionSizingError(Exception):
    """Raised when sizing cannot be computed safely."""


class InvalidInputsError(PositionSizingError):
    """Raised when calculate() is handed inputs that fail validation."""

    def __init__(self, errors: ValidationErrors) -> None:
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"Inputs failed validation: {fields}")


class DivisionByZeroError(PositionSizingError):
    """Raised when entry and stop coincide, leaving no loss per unit."""


class SizingOverflowError(PositionSizingError):
    """Raised when a sizing output is too large to represent as a float."""


def round2(value: float) -> float:
    """Round half away from zero on the exact binary value, like JS ``toFixed(2)``."""
    exact = Decimal(value)
    with localcontext() as ctx:
        # every integer digit plus two decimals must fit in the working precision
        ctx.prec = max(28, exact.adjusted() + 3)
        return float(exact.quantize(_CENTS, rounding=ROUND_HALF_UP))


def size_position(
    entry_price: float,
    stop_loss: float,
    initial_funds: float,
    risk_amount: float,
) -> CalculationResults:
    """
    Size a position so that a stop-loss hit costs exactly ``risk_amount``.

    loss_per_unit  = |entry - stop|
    position_size  = risk_amount / loss_per_unit
    position_value = position_size * entry
    leverage       = position_value / funds

    Intermediate values keep full precision; only the outputs are rounded.
    """
    loss_per_unit = abs(entry_price - stop_loss)
    if loss_per_unit == 0:
        log_event(
            logger,
            "sizing_zero_stop_distance",
            level=logging.ERROR,
            entry_price=entry_price,
            stop_loss=stop_loss,
        )
        raise DivisionByZeroError("Stop loss equals entry price; loss per unit is zero.")
    if initial_funds <= 0:
        raise PositionSizingError("Initial funds must be positive to derive leverage.")

    position_size = risk_amount / loss_per_unit
    position_value = position_size * entry_price
    leverage = position_value / initial_funds
    risk_pct = risk_amount / initial_funds * 100

    outputs = {
        "position_size": position_size,
        "position_value": position_value,
        "leverage": leverage,
        "risk_amount": risk_amount,
        "loss_per_unit": loss_per_unit,
        "risk_pct": risk_pct,
    }
    overflowed = sorted(name for name, value in outputs.items() if not math.isfinite(value))
    if overflowed:
        log_event(
            logger,
            "sizing_overflow",
            level=logging.WARNING,
            fields=overflowed,
            entry_price=entry_price,
            stop_loss=stop_loss,
        )
        raise SizingOverflowError(
            f"Position is too large to size ({', '.join(overflowed)} overflowed); "
            "widen the stop loss or lower the risk budget."
        )

    return CalculationResults(**{name: round2(value) for name, value in outputs.items()})


def calculate(inputs: CalculatorInputs) -> CalculationResults:
    """Validate raw form inputs, derive the risk budget, and size the position."""
    errors = validate(inputs)
    if errors:
        raise InvalidInputsError(errors)

    entry = parse_number(inputs.entry_price)
    stop = parse_number(inputs.stop_loss)
    funds = parse_number(inputs.initial_funds)

    if inputs.risk_mode == RiskMode.FIXED:
        risk_amount = parse_number(inputs.risk_amount)
    else:
        risk_amount = funds * (parse_number(inputs.risk_tolerance) / 100)

    return size_position(entry, stop, funds, risk_amount)


def format_summary(results: CalculationResults) -> str:
    """Describe the capped loss the way the results panel shows it."""
    return (
        f"If the price hits the stop loss, your loss will be limited to ${results.risk_amount:.2f}, "
        f"which is {results.risk_pct:.2f}% of your initial funds."
    )
