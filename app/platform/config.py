from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings

from app.platform.logger import get_logger

logger = get_logger(__name__)


class Settings(BaseSettings):
    # ── App ─────────────────────────────────────
    APP_NAME: str = "Workflow Vault"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = True

    # ── Database ────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./workflow_vault.db"

    # ── Supabase ────────────────────────────────
    SUPABASE_URL: str = "http://localhost:54321"
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None

    # ── Storage ─────────────────────────────────
    WORKFLOWS_BUCKET: str = "workflows-json"
    SCREENSHOTS_BUCKET: str = "workflows-screenshots"
    STORAGE_LIST_LIMIT: int = 100
    STORAGE_TIMEOUT: float = 10.0

    class Config:
        env_file = str(Path(__file__).parent.parent.parent / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def storage_key(self) -> str:
        """
        Key sent to the storage API.
        The service role key bypasses row level security; the anon key is only a fallback.
        """
        if self.SUPABASE_SERVICE_ROLE_KEY:
            return self.SUPABASE_SERVICE_ROLE_KEY
        logger.warning("SUPABASE_SERVICE_ROLE_KEY missing, falling back to the anon key")
        if not self.SUPABASE_ANON_KEY:
            raise RuntimeError("SUPABASE_ANON_KEY missing")
        return self.SUPABASE_ANON_KEY


settings = Settings()
