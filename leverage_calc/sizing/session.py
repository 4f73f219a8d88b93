import logging
import threading
from dataclasses import replace
from typing import Any, Optional

from leverage_calc.core.logging import get_logger, log_event
from leverage_calc.sizing.calculator import PositionSizingError, calculate, format_summary
from leverage_calc.sizing.models import (
    CalculationResults,
    CalculatorInputs,
    PositionType,
    RiskMode,
    ValidationErrors,
)
from leverage_calc.sizing.validator import validate
from leverage_calc.state.form_store import FormStateStore


logger = get_logger(__name__)

_EDITABLE = {
    "position_type",
    "entry_price",
    "stop_loss",
    "initial_funds",
    "risk_tolerance",
    "risk_amount",
    "risk_mode",
}


class CalculatorSession:
    """Owns the form values, the last validation errors, and the last results.

    In live mode every edit recalculates. Otherwise results only change when
    ``calculate()`` is called and may be stale relative to the inputs.
    A sizing failure on valid inputs (overflow) lands in ``failure``.
    """

    def __init__(
        self,
        inputs: Optional[CalculatorInputs] = None,
        *,
        store: Optional[FormStateStore] = None,
        live: bool = False,
    ) -> None:
        self.inputs = inputs or CalculatorInputs()
        self.store = store
        self.live = live
        self.errors: ValidationErrors = {}
        self.failure: Optional[str] = None
        self.results: Optional[CalculationResults] = None
        self.calculated_inputs: Optional[CalculatorInputs] = None
        self._lock = threading.RLock()

    @classmethod
    def from_store(
        cls,
        store: FormStateStore,
        *,
        live: bool = False,
        defaults: Optional[CalculatorInputs] = None,
    ) -> "CalculatorSession":
        inputs = CalculatorInputs.from_snapshot(store.load(), defaults)
        session = cls(inputs, store=store, live=live)
        if live:
            session.calculate()
        return session

    @property
    def stale(self) -> bool:
        """True when results exist but were computed from different inputs."""
        return self.results is not None and self.calculated_inputs != self.inputs

    def update(self, **fields: Any) -> CalculatorInputs:
        unknown = set(fields) - _EDITABLE
        if unknown:
            raise ValueError(f"Unknown calculator fields: {', '.join(sorted(unknown))}")
        if "position_type" in fields:
            fields["position_type"] = PositionType(fields["position_type"])
        if "risk_mode" in fields:
            fields["risk_mode"] = RiskMode(fields["risk_mode"])
        for key in _EDITABLE - {"position_type", "risk_mode"}:
            if key in fields:
                fields[key] = "" if fields[key] is None else str(fields[key])

        with self._lock:
            self.inputs = replace(self.inputs, **fields)
            if self.store is not None:
                self.store.save(self.inputs.to_snapshot())
            if self.live:
                self.calculate()
            return self.inputs

    def calculate(self) -> Optional[CalculationResults]:
        with self._lock:
            inputs = self.inputs
            self.errors = validate(inputs)
            self.failure = None
            self.results = None
            self.calculated_inputs = None
            if self.errors:
                log_event(
                    logger,
                    "session_validation_failed",
                    level=logging.DEBUG,
                    fields=sorted(self.errors),
                )
                return None
            try:
                self.results = calculate(inputs)
            except PositionSizingError as exc:
                self.failure = str(exc)
                return None
            self.calculated_inputs = inputs
            return self.results

    def summary(self) -> Optional[str]:
        if self.results is None:
            return None
        return format_summary(self.results)
