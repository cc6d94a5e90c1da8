import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _csv(value: str) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


class Settings:
    """Process configuration, read once from the environment (and .env)."""

    def __init__(self) -> None:
        self.EPUNCH_VERSION = os.getenv("EPUNCH_VERSION", "0.1.0")
        self.ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        # CORS: "allowlist" restricts to CORS_ALLOW_ORIGINS, "open" allows any origin
        self.CORS_MODE = os.getenv("CORS_MODE", "open").lower()
        self.CORS_ALLOW_ORIGINS = _csv(
            os.getenv(
                "CORS_ALLOW_ORIGINS",
                "http://localhost:5173,http://localhost:5174,http://localhost:5175",
            )
        )

        self.JWT_SECRET = os.getenv("JWT_SECRET", "epunch-dev-secret-change-me-before-deploying")
        self.JWT_EXPIRES_IN = int(os.getenv("JWT_EXPIRES_IN", str(7 * 24 * 3600)))

        self.ADMIN_LOGIN = os.getenv("ADMIN_LOGIN", "admin")
        self.ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "0000")

        self.UPLOADS_BUCKET = os.getenv("UPLOADS_BUCKET", "uploads")
        self.ICONS_DIR = os.getenv("ICONS_DIR", "")

        self.KEEPALIVE_INTERVAL_SECONDS = int(os.getenv("KEEPALIVE_INTERVAL_SECONDS", "300"))


settings = Settings()
