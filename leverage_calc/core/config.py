from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings


BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_PATH = BASE_DIR / ".env"

# Load environment variables from .env if present
load_dotenv(ENV_PATH)


class Settings(BaseSettings):
    app_env: str = Field("development", env="APP_ENV")
    app_host: str = Field("127.0.0.1", env="APP_HOST")
    app_port: int = Field(8000, env="APP_PORT")
    log_level: str = Field("INFO", env="LOG_LEVEL")

    form_state_path: str = Field("data/form_state.json", env="FORM_STATE_PATH")
    default_risk_mode: str = Field("percentage", env="DEFAULT_RISK_MODE")
    live_calculation: bool = Field(False, env="LIVE_CALCULATION")
    risk_pct_presets: str = Field("0.5,1,2,3", env="RISK_PCT_PRESETS")
    cors_allow_origins: str = Field("*", env="CORS_ALLOW_ORIGINS")

    class Config:
        env_file = ENV_PATH
        case_sensitive = False
        extra = "ignore"

    def risk_pct_preset_values(self) -> List[float]:
        """Parse the comma separated preset list, skipping values outside (0, 100]."""
        presets: List[float] = []
        for chunk in (self.risk_pct_presets or "").split(","):
            chunk = chunk.strip()
            if not chunk:
                continue
            try:
                value = float(chunk)
            except ValueError:
                continue
            if 0 < value <= 100:
                presets.append(value)
        return presets

    def cors_origin_list(self) -> List[str]:
        origins = [o.strip() for o in (self.cors_allow_origins or "").split(",") if o.strip()]
        return origins or ["*"]

    def resolved_form_state_path(self) -> Path:
        raw = str(self.form_state_path or "").strip() or "data/form_state.json"
        candidate = Path(raw)
        if candidate.is_absolute():
            return candidate
        return (BASE_DIR / candidate).resolve()


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()  # type: ignore[call-arg]


def get_log_level(default: Optional[str] = None) -> str:
    """Convenience accessor for log level with optional override."""
    settings = get_settings()
    return settings.log_level or (default or "INFO")
