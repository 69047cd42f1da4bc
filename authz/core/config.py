"""authz 설정.

Pydantic Settings로 환경 변수(AUTHZ_ 접두사)와 .env 파일에서 설정을 읽습니다.
설정은 프로세스 시작 시 한 번 로드되며 이후 변경되지 않습니다.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """애플리케이션 설정 값."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="AUTHZ_",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "dashboard-authz"
    environment: Literal["development", "production", "testing"] = "development"

    # 서버
    host: str = ""
    port: int = 8000

    # 데이터베이스 (기본값은 SQLite 파일)
    database_url: str = "sqlite:///authz_metadata.db"

    # 로깅
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "console"

    # Guard: 역할 조회 제한 시간(초)과 조회용 워커 수
    guard_timeout_seconds: float = Field(default=5.0, gt=0)
    guard_max_workers: int = Field(default=4, ge=1)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """캐시된 Settings 인스턴스를 반환합니다."""
    return Settings()
