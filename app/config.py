"""
Application Settings — All via environment variables with sensible defaults.
"""
import os


class Settings:
    # ── Server ──
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8001"))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # ── Database (upload sessions) ──
    # Default: SQLite (zero config). Production: set DATABASE_URL env var.
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./dataviz_sessions.db")
    SQL_ECHO: bool = os.getenv("SQL_ECHO", "false").lower() == "true"

    # ── CORS ──
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000,*")

    # ── Uploads ──
    MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

    # ── Prediction gateway (optional, analysis works without it) ──
    PREDICTIONS_URL: str = os.getenv("PREDICTIONS_URL", "")
    PREDICTIONS_API_KEY: str = os.getenv("PREDICTIONS_API_KEY", "")
    PREDICTIONS_MODEL: str = os.getenv("PREDICTIONS_MODEL", "gpt-4o-mini")
    PREDICTIONS_TIMEOUT: float = float(os.getenv("PREDICTIONS_TIMEOUT", "30"))


settings = Settings()
