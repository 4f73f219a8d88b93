from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class PositionType(str, Enum):
    LONG = "long"
    SHORT = "short"


class RiskMode(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


# Field keys shared by validation errors and the persisted form snapshot.
POSITION_TYPE = "positionType"
ENTRY_PRICE = "entryPrice"
STOP_LOSS = "stopLoss"
INITIAL_FUNDS = "initialFunds"
RISK_TOLERANCE = "riskTolerance"
RISK_AMOUNT = "riskAmount"
RISK_MODE = "riskMode"

FORM_FIELDS = (
    POSITION_TYPE,
    ENTRY_PRICE,
    STOP_LOSS,
    INITIAL_FUNDS,
    RISK_TOLERANCE,
    RISK_AMOUNT,
    RISK_MODE,
)

ValidationErrors = Dict[str, str]


@dataclass(frozen=True)
class CalculatorInputs:
    """Raw form values as typed by the user.

    Numeric fields stay strings until validation parses them, so partially
    typed values like ``"12."`` or ``""`` can be carried around unchanged.
    """

    position_type: PositionType = PositionType.LONG
    entry_price: str = ""
    stop_loss: str = ""
    initial_funds: str = ""
    risk_tolerance: str = ""
    risk_amount: str = ""
    risk_mode: RiskMode = RiskMode.PERCENTAGE

    def to_snapshot(self) -> Dict[str, str]:
        """Return the form values keyed by their persisted field names."""
        return {
            POSITION_TYPE: self.position_type.value,
            ENTRY_PRICE: self.entry_price,
            STOP_LOSS: self.stop_loss,
            INITIAL_FUNDS: self.initial_funds,
            RISK_TOLERANCE: self.risk_tolerance,
            RISK_AMOUNT: self.risk_amount,
            RISK_MODE: self.risk_mode.value,
        }

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, Any], defaults: Optional["CalculatorInputs"] = None) -> "CalculatorInputs":
        """Build inputs from a persisted snapshot.

        Missing or empty values keep the defaults, as do enum values that no
        longer name a known option.
        """
        base = defaults or cls()

        def _text(key: str, fallback: str) -> str:
            value = snapshot.get(key)
            if value is None or str(value) == "":
                return fallback
            return str(value)

        position_type = coerce_enum(PositionType, snapshot.get(POSITION_TYPE), base.position_type)
        risk_mode = coerce_enum(RiskMode, snapshot.get(RISK_MODE), base.risk_mode)
        return cls(
            position_type=position_type,
            entry_price=_text(ENTRY_PRICE, base.entry_price),
            stop_loss=_text(STOP_LOSS, base.stop_loss),
            initial_funds=_text(INITIAL_FUNDS, base.initial_funds),
            risk_tolerance=_text(RISK_TOLERANCE, base.risk_tolerance),
            risk_amount=_text(RISK_AMOUNT, base.risk_amount),
            risk_mode=risk_mode,
        )


@dataclass(frozen=True)
class CalculationResults:
    position_size: float
    position_value: float
    leverage: float
    risk_amount: float
    loss_per_unit: float
    risk_pct: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def coerce_enum(enum_cls, value: Any, fallback):
    if isinstance(value, enum_cls):
        return value
    clean = str(value or "").strip().lower()
    try:
        return enum_cls(clean)
    except ValueError:
        return fallback
