from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leverage_calc.api.routes_calculator import router as calculator_router
from leverage_calc.api.routes_form import configure_session, router as form_router
from leverage_calc.core.config import Settings, get_settings
from leverage_calc.core.logging import get_logger, init_logging, log_event
from leverage_calc.sizing.models import CalculatorInputs, RiskMode, coerce_enum
from leverage_calc.sizing.session import CalculatorSession
from leverage_calc.state.form_store import FormStateStore

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    init_logging(settings.log_level)

    store = FormStateStore(settings.resolved_form_state_path())
    default_mode = coerce_enum(RiskMode, settings.default_risk_mode, RiskMode.PERCENTAGE)
    session = CalculatorSession.from_store(
        store,
        live=settings.live_calculation,
        defaults=CalculatorInputs(risk_mode=default_mode),
    )
    configure_session(session)

    app = FastAPI(
        title="Leverage & Position Size Calculator",
        version="0.1.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(calculator_router)
    app.include_router(form_router)
    log_event(
        logger,
        "app_created",
        env=settings.app_env,
        form_state_path=str(store.path),
        live_calculation=session.live,
    )
    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.app_host, port=settings.app_port)


if __name__ == "__main__":
    run()
