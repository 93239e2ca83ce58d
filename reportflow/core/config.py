# reportflow/core/config.py
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./reportflow.db"

    JWT_SECRET_KEY: str = "change-this-in-prod"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    APP_ALIAS: str = "REPORTFLOW"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Outbound messaging gateway (WhatsApp-style HTTP API)
    MESSAGING_ENABLED: bool = True
    MESSAGING_API_URL: str = "http://localhost:7482/send/message"
    MESSAGING_USERNAME: str = ""
    MESSAGING_PASSWORD: str = ""
    MESSAGING_TIMEOUT_SECONDS: float = 10.0
    PHONE_COUNTRY_CODE: str = "62"
    NOTIFY_IN_APP_ON_DELIVERY_FAILURE: bool = False

    # Report submission policy
    WORK_START: str = "08:00"
    WORK_END: str = "17:00"
    MIN_DURATION_MINUTES: int = 1
    MAX_DURATION_MINUTES: int = 720
    SUBMISSION_DEADLINE_DAYS: int = 7


settings = Settings()
