# gatehouse/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _csv(name: str) -> list[str]:
    return [v.strip() for v in os.getenv(name, "").split(",") if v.strip()]


def _origins() -> list[str]:
    raw = os.getenv("CORS_ORIGINS")
    if raw:
        return [o.strip() for o in raw.split(",") if o.strip()]
    return [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "Gatehouse Access API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for frontend (comma separated in CORS_ORIGINS)
    CORS_ORIGINS: list[str] = _origins()

    # Tier secrets: one shared credential per role, held server-side only.
    # Plain text or a pre-computed argon2 hash.
    owner_password: str | None = os.getenv("OWNER_PASSWORD")
    admin_password: str | None = os.getenv("ADMIN_PASSWORD")
    user_password: str | None = os.getenv("USER_PASSWORD")

    # How a presented credential is normalized before comparison:
    #   exact    -> compared byte for byte
    #   strip    -> surrounding whitespace removed (default)
    #   casefold -> surrounding whitespace removed and case-folded
    credential_normalization: str = os.getenv("CREDENTIAL_NORMALIZATION", "strip").lower()

    # Take the client IP from the first X-Forwarded-For hop only when enabled
    # and the direct peer is listed in TRUSTED_PROXIES (comma separated)
    trust_forwarded_for: bool = _flag("TRUST_FORWARDED_FOR", "false")
    trusted_proxies: list[str] = _csv("TRUSTED_PROXIES")

    # Chat / moderation
    undo_window: int = int(os.getenv("UNDO_WINDOW", "3"))  # Self-service undo covers the N latest undeleted messages
    message_max_length: int = int(os.getenv("MESSAGE_MAX_LENGTH", "500"))
    chat_history_limit: int = int(os.getenv("CHAT_HISTORY_LIMIT", "100"))


settings = Settings()  # Instantiate configuration
