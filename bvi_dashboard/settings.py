from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str
    database_name: str = "bvi"

    host: str = "0.0.0.0"
    port: int = 5000

    query_timeout_ms: int = 10_000
    cors_origins: list[str] = ["*"]

    @property
    def resolved_database_url(self) -> str:
        # sqlite URLs carry a file path (or nothing for :memory:); leave them alone
        url = make_url(self.database_url)
        if url.get_backend_name() != "sqlite" and not url.database:
            url = url.set(database=self.database_name)
        return url.render_as_string(hide_password=False)
