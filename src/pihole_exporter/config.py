from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="PIHOLE_EXPORTER__", extra="ignore")

    app_name: str = "Pi-hole Prometheus exporter"
    exporter_host: str = "127.0.0.1"
    exporter_port: int = 3141
    pihole_host: str = "localhost"
    pihole_tls: bool = False
    pihole_password: SecretStr | None = None
    request_timeout_seconds: float = 30.0
    window_label_policy: Literal["retain", "replace"] = "retain"
    log_level: str = "INFO"

    @property
    def pihole_base_url(self) -> str:
        scheme = "https" if self.pihole_tls else "http"
        return f"{scheme}://{self.pihole_host}"

    def resolved_password(self) -> str | None:
        if self.pihole_password is None:
            return None
        return self.pihole_password.get_secret_value() or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
