from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Authorization core settings.

    Notes:
    - The bundled permission matrix is used unless AUTHZ_MATRIX_PATH points elsewhere.
    - Settings are read once; the matrix they point at is loaded once at startup.
    """

    model_config = SettingsConfigDict(env_prefix="AUTHZ_", extra="ignore")

    matrix_path: str | None = None
    log_level: str = "INFO"

    def resolved_matrix_path(self) -> Path:
        if self.matrix_path:
            return Path(self.matrix_path)

        package_root = Path(__file__).resolve().parent
        return package_root / "config" / "permission_matrix.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()
