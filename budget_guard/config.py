from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent

class Settings(BaseSettings):
    PROJECT_NAME: str = "Budget Guard API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str = f"sqlite+aiosqlite:///{BASE_DIR}/data/budget_guard.db"

    BACKEND_CORS_ORIGINS: list[str] = ["*"]

    LOG_LEVEL: str = "INFO"
    SEED_DEMO_DATA: bool = True
    DEMO_USER_ID: int = 1

    # Per-user defaults handed out by the settings provider
    DEFAULT_CURRENCY_SYMBOL: str = "R"
    DEFAULT_CURRENCY_POSITION: str = "before"
    DEFAULT_DECIMAL_PLACES: int = 2
    DEFAULT_THOUSANDS_SEPARATOR: str = ","
    DEFAULT_DECIMAL_SEPARATOR: str = "."
    DEFAULT_LARGE_TRANSACTION_THRESHOLD: float = 1000.0
    DEFAULT_BUDGET_THRESHOLD: float = 0.85

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

settings = Settings()
