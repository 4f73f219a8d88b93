import logging

from fastapi import APIRouter

from leverage_calc.api.errors import error_response, field_errors_response
from leverage_calc.api.schemas import (
    CalculationResponse,
    CalculatorConfigResponse,
    CalculatorRequest,
    ErrorResponse,
    ValidationResponse,
)
from leverage_calc.core.config import get_settings
from leverage_calc.core.logging import get_logger, log_event
from leverage_calc.sizing.calculator import (
    InvalidInputsError,
    PositionSizingError,
    SizingOverflowError,
    calculate,
    format_summary,
)
from leverage_calc.sizing.models import PositionType, RiskMode, coerce_enum
from leverage_calc.sizing.validator import MAX_RISK_TOLERANCE_PCT, validate

router = APIRouter(prefix="/api/calculator", tags=["calculator"])

logger = get_logger(__name__)


@router.get("/config", response_model=CalculatorConfigResponse)
async def calculator_config():
    """Options and presets the form needs to render its controls."""
    settings = get_settings()
    return CalculatorConfigResponse(
        position_types=list(PositionType),
        risk_modes=list(RiskMode),
        default_risk_mode=coerce_enum(RiskMode, settings.default_risk_mode, RiskMode.PERCENTAGE),
        risk_presets=settings.risk_pct_preset_values()[:4],
        max_risk_tolerance_pct=MAX_RISK_TOLERANCE_PCT,
        live_calculation=settings.live_calculation,
    )


@router.post("/validate", response_model=ValidationResponse)
async def validate_inputs(request: CalculatorRequest):
    """Return field-level errors without sizing anything."""
    errors = validate(request.to_inputs())
    return ValidationResponse(valid=not errors, errors=errors)


@router.post(
    "/calculate",
    response_model=CalculationResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def calculate_position(request: CalculatorRequest):
    """Validate the form and, when it passes, size the position."""
    inputs = request.to_inputs()
    errors = validate(inputs)
    if errors:
        log_event(
            logger,
            "calculation_rejected",
            position_type=inputs.position_type.value,
            risk_mode=inputs.risk_mode.value,
            fields=sorted(errors),
        )
        return field_errors_response(errors)

    try:
        results = calculate(inputs)
    except InvalidInputsError as exc:
        return field_errors_response(exc.errors)
    except SizingOverflowError as exc:
        return error_response(status_code=400, code="sizing_overflow", detail=str(exc))
    except PositionSizingError as exc:
        log_event(logger, "calculation_invariant_failed", level=logging.ERROR, error=str(exc))
        return error_response(status_code=500, code="sizing_error", detail=str(exc))
    except Exception:
        log_event(logger, "calculation_failed", level=logging.ERROR, exc_info=True)
        return error_response(status_code=500, code="unexpected_error", detail="Unexpected error. Check server logs.")

    log_event(
        logger,
        "position_sized",
        position_type=inputs.position_type.value,
        risk_mode=inputs.risk_mode.value,
        position_size=results.position_size,
        leverage=results.leverage,
    )
    return CalculationResponse.build(inputs, results, format_summary(results))
