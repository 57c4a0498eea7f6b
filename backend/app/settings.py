from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = REPO_ROOT / ".env"
DEFAULT_KNOWLEDGE_BASE = Path(__file__).resolve().parent / "data" / "restaurant.json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE), env_file_encoding="utf-8", extra="ignore"
    )

    # human-readable console logs instead of JSON
    DEBUG: bool = False

    # port the API listens on when started with `python -m backend.app.main`
    PORT: int = 8787

    # restaurant facts file (defaults to app/data/restaurant.json)
    KNOWLEDGE_BASE_PATH: Path | None = None

    # CORS allow origins (comma-separated). Default "*" (allow all).
    CORS_ALLOW_ORIGINS: str = "*"

    # Completion API
    OPENAI_API_KEY: str | None = None
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    OPENAI_TIMEOUT_SECONDS: float = 30.0
    OPENAI_CONNECT_TIMEOUT_SECONDS: float = 5.0

    # Observability
    SENTRY_DSN: str | None = None
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_RELEASE: str | None = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.2

    @property
    def allow_origins(self) -> list[str]:
        s = (self.CORS_ALLOW_ORIGINS or "").strip()
        if s == "*":
            return ["*"]
        if s == "":
            return []
        return [part.strip() for part in s.split(",") if part.strip()]

    @property
    def knowledge_base_path(self) -> Path:
        # Blank values in `.env` become Path('.'); treat them as unset.
        if self.KNOWLEDGE_BASE_PATH is not None:
            candidate = str(self.KNOWLEDGE_BASE_PATH).strip()
            if candidate and candidate not in {".", "./", ".\\"}:
                return Path(candidate).expanduser().resolve()
        return DEFAULT_KNOWLEDGE_BASE


settings = Settings()
