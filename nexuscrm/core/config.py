from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import PostgresDsn, computed_field
from typing import Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    # Supabase project - no defaults for credentials, they must come from .env
    SUPABASE_URL: str
    SUPABASE_ANON_KEY: str
    # Only needed for admin calls (user invitations)
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    AVATAR_BUCKET: str = "avatars"

    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-pro"
    ASSISTANT_MAX_TOOL_ROUNDS: int = 5

    # UI timings (seconds)
    SEARCH_DEBOUNCE_SECONDS: float = 0.3
    LOGOUT_TRANSITION_SECONDS: float = 1.5

    # Direct database access, used by alembic migrations only
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: str = "postgres"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 54322

    @computed_field
    def DATABASE_URL(self) -> PostgresDsn:
        return PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )

settings = Settings()
