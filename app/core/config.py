from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


# project root (pyproject.toml 위치)
BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    # 기본 앱 설정
    app_name: str = "Elektro Marketplace"
    app_env: str = "dev"
    log_level: str = "INFO"

    # 보안 / JWT
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    bcrypt_rounds: int = 12

    database_url: str = "sqlite:///./marketplace.db"

    # 업로드 파일 저장용 (photos / audios / videos)
    media_root: Path = BASE_DIR / "uploads"
    media_url: str = "/uploads"

    photo_max_size_mb: int = 5
    photo_max_files: int = 10
    audio_max_size_mb: int = 7
    audio_max_files: int = 10

    # 가입 확인 메일 (SMTP 미설정 시 발송 생략)
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = False
    email_from: str = "no-reply@elektro.local"

    cors_origins: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @property
    def effective_bcrypt_rounds(self) -> int:
        # bcrypt cost never drops below 10
        return max(self.bcrypt_rounds, 10)


@lru_cache
def get_settings() -> Settings:
    return Settings()
