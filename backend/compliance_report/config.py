from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_env: str = "development"
    app_debug: bool = True
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # Database: Supabase PostgreSQL (primary) or SQLite (local dev fallback)
    database_url: str = ""  # Supabase connection string (postgresql://...)
    use_sqlite: bool = False  # Set True for local dev without Supabase

    # Local PostgreSQL settings (only used if database_url not set and use_sqlite=False)
    postgres_user: str = "compliance"
    postgres_password: str = "compliance_dev"
    postgres_db: str = "compliance_report"
    db_host: str = "localhost"
    db_port: int = 5432

    @property
    def effective_database_url(self) -> str:
        """Return the async database URL to use."""
        if self.database_url:
            url = self.database_url
            # Convert postgres:// to postgresql+asyncpg://
            if url.startswith("postgres://"):
                url = "postgresql+asyncpg://" + url[len("postgres://"):]
            elif url.startswith("postgresql://"):
                url = "postgresql+asyncpg://" + url[len("postgresql://"):]
            elif not url.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
                url = "postgresql+asyncpg://" + url
            return url
        if self.use_sqlite:
            db_path = Path(__file__).parent.parent / "data" / "compliance_report.db"
            db_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite+aiosqlite:///{db_path}"
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.db_host}:{self.db_port}/{self.postgres_db}"
        )

    @property
    def is_sqlite(self) -> bool:
        return self.effective_database_url.startswith("sqlite")

    # Supabase Auth (session lookup + has_role RPC)
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # NYC Open Data (Socrata)
    nyc_open_data_url: str = "https://data.cityofnewyork.us/resource"
    nyc_open_data_app_token: str = ""  # Optional; raises Socrata throttling limits
    nyc_fetch_limit: int = 500
    nyc_request_delay: float = 0.0

    # CORS: allowed origins (comma-separated, or "*" for dev only)
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def auth_available(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    def validate_production(self) -> list[str]:
        """Check critical env vars for production. Returns list of warnings."""
        warnings = []
        if self.app_env == "production":
            if not self.database_url:
                warnings.append("DATABASE_URL is required in production")
            if not self.auth_available:
                warnings.append("SUPABASE_URL and SUPABASE_ANON_KEY are required to save reports")
            if not self.nyc_open_data_app_token:
                warnings.append("NYC_OPEN_DATA_APP_TOKEN recommended to avoid Socrata throttling")
        return warnings


settings = Settings()
