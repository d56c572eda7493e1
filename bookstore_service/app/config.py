# bookstore_service/app/config.py
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from db.exceptions import ConfigurationError

GUEST_USER_ID = "guest-user"


class Settings(BaseModel):
    db_url: str
    db_name: Optional[str] = None
    guest_user_id: str = GUEST_USER_ID
    sql_echo: bool = False
    log_level: str = "INFO"


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def get_settings() -> Settings:
    """Собирает настройки из окружения (и .env, если он есть)."""
    load_dotenv()

    db_url = (os.getenv("BOOKSTORE_DB_URL") or "").strip()
    if not db_url:
        raise ConfigurationError(
            "BOOKSTORE_DB_URL is not set",
            details={"variable": "BOOKSTORE_DB_URL"}
        )

    return Settings(
        db_url=db_url,
        db_name=os.getenv("BOOKSTORE_DB_NAME") or None,
        guest_user_id=os.getenv("BOOKSTORE_GUEST_USER") or GUEST_USER_ID,
        sql_echo=_flag(os.getenv("BOOKSTORE_SQL_ECHO")),
        log_level=os.getenv("BOOKSTORE_LOG_LEVEL") or "INFO",
    )
