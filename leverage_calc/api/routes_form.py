import logging

from fastapi import APIRouter, Depends, HTTPException

from leverage_calc.api.errors import error_response, field_errors_response
from leverage_calc.api.schemas import ErrorResponse, FormState, SessionResultsResponse
from leverage_calc.core.logging import get_logger, log_event
from leverage_calc.sizing.session import CalculatorSession

router = APIRouter(prefix="/api", tags=["form"])

logger = get_logger(__name__)
_session: CalculatorSession | None = None


def configure_session(session: CalculatorSession) -> None:
    global _session
    _session = session


def get_session() -> CalculatorSession:
    if _session is None:
        raise HTTPException(status_code=500, detail="Calculator session not configured")
    return _session


# Sync handlers: session updates do blocking file I/O.


@router.get("/form", response_model=FormState, responses={500: {"model": ErrorResponse}})
def read_form(session: CalculatorSession = Depends(get_session)):
    """Return the current form values, restored from the saved snapshot at startup."""
    return FormState.from_inputs(session.inputs)


@router.put("/form", response_model=FormState, responses={500: {"model": ErrorResponse}})
def write_form(state: FormState, session: CalculatorSession = Depends(get_session)):
    """Replace the form values and persist them; invalid values are stored as typed."""
    inputs = state.to_inputs()
    try:
        session.update(
            position_type=inputs.position_type,
            entry_price=inputs.entry_price,
            stop_loss=inputs.stop_loss,
            initial_funds=inputs.initial_funds,
            risk_tolerance=inputs.risk_tolerance,
            risk_amount=inputs.risk_amount,
            risk_mode=inputs.risk_mode,
        )
    except OSError as exc:
        path = session.store.path if session.store is not None else None
        log_event(logger, "form_state_save_failed", level=logging.ERROR, exc_info=True, path=str(path), error=str(exc))
        return error_response(status_code=500, code="storage_error", detail="Unable to save form state")
    return FormState.from_inputs(session.inputs)


@router.post(
    "/form/calculate",
    response_model=SessionResultsResponse,
    responses={400: {"model": ErrorResponse}},
)
def calculate_form(session: CalculatorSession = Depends(get_session)):
    """The Calculate action: size the current form and keep the results."""
    session.calculate()
    if session.errors:
        return field_errors_response(session.errors)
    if session.failure:
        return error_response(status_code=400, code="sizing_overflow", detail=session.failure)
    return SessionResultsResponse.from_session(session)


@router.get("/form/results", response_model=SessionResultsResponse)
def read_results(session: CalculatorSession = Depends(get_session)):
    """Last results, flagged stale when the form changed since they were computed."""
    return SessionResultsResponse.from_session(session)
