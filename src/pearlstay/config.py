from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./pearlstay.db"

    # Auth
    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440  # 24 hours

    # Pricing
    currency: str = "USD"

    # Availability
    ledger_cache: bool = True  # выключать, если БД пишут несколько процессов

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "PEARLSTAY_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
