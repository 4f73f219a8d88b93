from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from leverage_calc.sizing.models import CalculationResults, CalculatorInputs, PositionType, RiskMode


class CalculatorRequest(BaseModel):
    """Raw form values; numbers arrive as text or JSON numbers."""

    model_config = ConfigDict(populate_by_name=True)

    position_type: PositionType = Field(PositionType.LONG, alias="positionType")
    entry_price: str = Field("", alias="entryPrice")
    stop_loss: str = Field("", alias="stopLoss")
    initial_funds: str = Field("", alias="initialFunds")
    risk_tolerance: str = Field("", alias="riskTolerance")
    risk_amount: str = Field("", alias="riskAmount")
    risk_mode: RiskMode = Field(RiskMode.PERCENTAGE, alias="riskMode")

    @field_validator("position_type", "risk_mode", mode="before")
    @classmethod
    def normalize_choice(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("entry_price", "stop_loss", "initial_funds", "risk_tolerance", "risk_amount", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            raise ValueError("expected a number or numeric text")
        if isinstance(value, (int, float)):
            return repr(value)
        if not isinstance(value, str):
            raise ValueError("expected a number or numeric text")
        return value

    def to_inputs(self) -> CalculatorInputs:
        return CalculatorInputs(
            position_type=self.position_type,
            entry_price=self.entry_price,
            stop_loss=self.stop_loss,
            initial_funds=self.initial_funds,
            risk_tolerance=self.risk_tolerance,
            risk_amount=self.risk_amount,
            risk_mode=self.risk_mode,
        )

    @classmethod
    def from_inputs(cls, inputs: CalculatorInputs) -> "CalculatorRequest":
        return cls(
            position_type=inputs.position_type,
            entry_price=inputs.entry_price,
            stop_loss=inputs.stop_loss,
            initial_funds=inputs.initial_funds,
            risk_tolerance=inputs.risk_tolerance,
            risk_amount=inputs.risk_amount,
            risk_mode=inputs.risk_mode,
        )


class FormState(CalculatorRequest):
    """Persisted form snapshot; serialized with the camelCase storage keys."""


class ValidationResponse(BaseModel):
    valid: bool
    errors: Dict[str, str] = {}


class CalculationResponse(BaseModel):
    position_type: PositionType
    risk_mode: RiskMode
    position_size: float
    position_value: float
    leverage: float
    risk_amount: float
    loss_per_unit: float
    risk_pct: float
    summary: str

    @classmethod
    def build(cls, inputs: CalculatorInputs, results: CalculationResults, summary: str) -> "CalculationResponse":
        return cls(
            position_type=inputs.position_type,
            risk_mode=inputs.risk_mode,
            summary=summary,
            **results.as_dict(),
        )


class CalculatorConfigResponse(BaseModel):
    position_types: List[PositionType]
    risk_modes: List[RiskMode]
    default_risk_mode: RiskMode
    risk_presets: List[float]
    max_risk_tolerance_pct: float
    live_calculation: bool


class ErrorResponse(BaseModel):
    error: str
    detail: str
    context: Optional[dict] = None


class SessionResultsResponse(BaseModel):
    """Current form, last calculation, and whether it still matches the form."""

    form: FormState
    live: bool
    stale: bool
    errors: Dict[str, str] = {}
    failure: Optional[str] = None
    results: Optional[CalculationResponse] = None

    @classmethod
    def from_session(cls, session) -> "SessionResultsResponse":
        results = None
        if session.results is not None:
            results = CalculationResponse.build(session.calculated_inputs, session.results, session.summary())
        return cls(
            form=FormState.from_inputs(session.inputs),
            live=session.live,
            stale=session.stale,
            errors=session.errors,
            failure=session.failure,
            results=results,
        )
