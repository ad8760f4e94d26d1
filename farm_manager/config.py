from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Farm Manager"
    DATABASE_URL: str = "sqlite:///./farm.db"

    SECRET_KEY: str = "change-me-in-production"
    ACCESS_TOKEN_EXPIRE_HOURS: int = 72

    LOG_LEVEL: str = "INFO"

    # Withdrawals beyond the current balance fail unless this is enabled
    ALLOW_NEGATIVE_STOCK: bool = False

    # Created on startup when the users table is empty
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_PASSWORD: str = "admin"

    model_config = {"env_file": ".env"}


settings = Settings()
