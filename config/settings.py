import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / ".env")


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    APP_ENV: str = os.getenv("APP_ENV", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    MOCK_MODE: bool = _flag("MOCK_MODE", "true")
    ODOO_URL: str = os.getenv("ODOO_URL", "").rstrip("/")
    ODOO_SESSION_ID: str = os.getenv("ODOO_SESSION_ID", "")
    ODOO_LANG: str = os.getenv("ODOO_LANG", "en_US")
    ODOO_TZ: str = os.getenv("ODOO_TZ", "UTC")
    ODOO_TIMEOUT: float = float(os.getenv("ODOO_TIMEOUT", "30"))
    FACULTY_MODEL: str = os.getenv("FACULTY_MODEL", "obe.core.faculty")
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o")
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "")
    RISK_TEXT_OVERRIDE: bool = _flag("RISK_TEXT_OVERRIDE", "false")
    REPORT_OUTPUT_DIR: Path = Path(os.getenv("REPORT_OUTPUT_DIR", "./reports"))
    SERVER_HOST: str = os.getenv("SERVER_HOST", "127.0.0.1")
    SERVER_PORT: int = int(os.getenv("SERVER_PORT", "8000"))
    VERSION: str = "1.0.0"
    APP_NAME: str = "Odoo Lens"

    @classmethod
    def validate(cls) -> list:
        warnings = []
        if cls.MOCK_MODE:
            warnings.append("MOCK MODE active — no real Odoo API calls.")
        elif not cls.ODOO_URL:
            warnings.append("ODOO_URL not set — Odoo requests will fail.")
        if not cls.OPENAI_API_KEY:
            warnings.append("OPENAI_API_KEY not set — AI permission analysis disabled.")
        return warnings

    @classmethod
    def is_odoo_configured(cls) -> bool:
        return bool(cls.ODOO_URL and cls.ODOO_SESSION_ID)

    @classmethod
    def is_openai_configured(cls) -> bool:
        return bool(cls.OPENAI_API_KEY)

settings = Settings()
