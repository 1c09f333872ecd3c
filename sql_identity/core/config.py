# sql_identity/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    # Database
    db_url: str = Field("sqlite+aiosqlite:///./identities.sqlite3", alias="IDENTITY_DB_URL")
    pool_size: int = Field(3, alias="IDENTITY_POOL_SIZE")

    # Force a backend ("sqlite", "mysql", "postgresql") instead of sniffing the URL
    backend: str | None = Field(None, alias="IDENTITY_BACKEND")
    create_tables: bool = Field(True, alias="IDENTITY_CREATE_TABLES")

    # Header that carries a freshly remembered token back to the client
    response_header: str = Field("X-Auth-Token", alias="IDENTITY_RESPONSE_HEADER")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
