from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    app_name: str = "Palanquee planner"
    environment: str = "development"
    postgres_host: str = "db"
    postgres_port: int = 5432
    postgres_db: str = "palanquee"
    postgres_user: str = "palanquee"
    postgres_password: str = "palanqueepwd"
    database_url_override: str | None = None
    db_isolation_level: str | None = "SERIALIZABLE"
    transient_retry_attempts: int = 1
    lock_timeout_sec: float = 10.0
    log_path: str = "logs/palanquee.log"
    log_rotation: str = "10 MB"
    log_retention: str = "7 days"
    club_name: str = ""

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override

        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
