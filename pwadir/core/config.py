from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


REPO_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
    )

    web_host: str = Field(default="127.0.0.1", alias="PWADIR_WEB_HOST")
    web_port: int = Field(default=8080, alias="PWADIR_WEB_PORT")

    data_dir: str = Field(default="data", alias="PWADIR_DATA_DIR")
    site_title: str = Field(default="PWA Directory", alias="PWADIR_SITE_TITLE")

    client_id: str = Field(default="", alias="PWADIR_CLIENT_ID")
    ga_id: str | None = Field(default=None, alias="PWADIR_GA_ID")
    tokeninfo_url: str = Field(
        default="https://oauth2.googleapis.com/tokeninfo",
        alias="PWADIR_TOKENINFO_URL",
    )
    http_timeout_seconds: float = Field(default=10.0, gt=0.0, alias="PWADIR_HTTP_TIMEOUT_SECONDS")

    def resolve_path(self, path_value: str) -> Path:
        candidate = Path(path_value).expanduser()
        if candidate.is_absolute():
            return candidate
        return REPO_ROOT / candidate

    @property
    def data_path(self) -> Path:
        return self.resolve_path(self.data_dir)

    @property
    def entries_path(self) -> Path:
        return self.data_path / "entries.json"

    @property
    def audits_path(self) -> Path:
        return self.data_path / "audits.json"

    def client_config(self) -> dict[str, str | None]:
        """Settings the browser-side bootstrap reads from the page's config element."""
        return {"client_id": self.client_id, "ga_id": self.ga_id}

    def ensure_runtime_dirs(self) -> None:
        self.data_path.mkdir(parents=True, exist_ok=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = Settings()
    settings.ensure_runtime_dirs()
    return settings
