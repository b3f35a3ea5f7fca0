from __future__ import annotations

import base64
import hashlib
from pathlib import Path

from dotenv import load_dotenv
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_APP_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _APP_DIR.parent
_REPO_ROOT = _BACKEND_DIR.parent


def _derive_dev_session_secret(seed: str) -> str:
    """为本地开发派生一个稳定的会话签名密钥。

    说明：
    - 仅在 DEBUG 模式下使用；部署时必须显式配置 SESSION_SECRET。
    - 使用 PBKDF2 派生，避免直接把种子字符串当作密钥。
    """
    dk = hashlib.pbkdf2_hmac(
        "sha256",
        seed.encode("utf-8"),
        b"hindsight_dev_session_secret_v1",
        210_000,
        dklen=32,
    )
    return base64.urlsafe_b64encode(dk).decode("utf-8").rstrip("=")


def _load_root_dotenv() -> None:
    """先加载 `backend/.env`，再加载根目录 `.env`（根目录优先）。"""
    backend_env = _BACKEND_DIR / ".env"
    root_env = _REPO_ROOT / ".env"

    for env_file in (backend_env, root_env):
        if env_file.exists():
            load_dotenv(env_file, override=True, encoding="utf-8")


class Settings(BaseSettings):
    """Application settings"""

    # Server（供 run.py 使用）
    backend_host: str = "0.0.0.0"
    backend_port: int = 31012
    backend_reload: bool = True

    # Database
    # 优先使用 DATABASE_URL；不配置时再使用 SQLITE_DB_PATH 生成 sqlite URL
    database_url: str | None = None
    sqlite_db_path: str = "hindsight.db"

    # API
    api_prefix: str = "/api"
    debug: bool = True
    sql_echo: bool = False

    # CORS（逗号分隔；"*" 时强制关闭 allow_credentials）
    cors_allow_origins: str = "*"
    cors_allow_credentials: bool = False
    cors_allow_methods: str = "*"
    cors_allow_headers: str = "*"

    # 会话：登录由外部身份服务完成，这里只校验签名后的会话 token
    session_secret: str | None = None
    session_cookie_name: str = "hindsight_session"
    session_days: int = 30

    # 字段级加密（AES-256-GCM）；未配置时正文以明文保存
    encryption_key: str | None = None

    # Access Log（本地访问日志，按天落盘：<repo>/logs/YYYY-MM-DD.logs）
    access_log_enabled: bool = True
    access_log_dir: str = "logs"
    access_log_ignore_paths: str = "/health"
    access_log_include_query: bool = False

    # 回顾（From your past）
    resurfacing_min_word_count: int = 80
    resurfacing_min_age_days: int = 90
    resurfacing_candidate_limit: int = 12
    resurfacing_cooldown_base_days: int = 30
    resurfacing_cooldown_spread_days: int = 16
    resurfacing_low_mood_streak: int = 3

    @model_validator(mode="after")
    def _build_database_url_if_missing(self) -> "Settings":
        if self.database_url and self.database_url.strip():
            return self

        db_path = Path(self.sqlite_db_path)
        if not db_path.is_absolute():
            db_path = (_REPO_ROOT / db_path).resolve()

        self.database_url = f"sqlite+aiosqlite:///{db_path.as_posix()}"
        return self

    @model_validator(mode="after")
    def _normalize_resurfacing(self) -> "Settings":
        # 非正数一律回退到默认值（min_word_count 允许为 0）
        if self.resurfacing_min_word_count < 0:
            self.resurfacing_min_word_count = 80
        if self.resurfacing_min_age_days <= 0:
            self.resurfacing_min_age_days = 90
        if self.resurfacing_candidate_limit <= 0:
            self.resurfacing_candidate_limit = 12
        if self.resurfacing_cooldown_base_days <= 0:
            self.resurfacing_cooldown_base_days = 30
        if self.resurfacing_cooldown_spread_days <= 0:
            self.resurfacing_cooldown_spread_days = 16
        if self.resurfacing_low_mood_streak <= 0:
            self.resurfacing_low_mood_streak = 3
        return self

    @model_validator(mode="after")
    def _normalize_session(self) -> "Settings":
        if int(self.session_days or 0) <= 0:
            self.session_days = 30

        if not (self.session_cookie_name or "").strip():
            self.session_cookie_name = "hindsight_session"

        secret = (self.session_secret or "").strip()
        if secret:
            self.session_secret = secret
            return self

        if not self.debug:
            raise ValueError("未配置 SESSION_SECRET（仅 DEBUG 模式允许使用开发默认值）")

        self.session_secret = _derive_dev_session_secret(str(self.database_url or "hindsight"))
        return self

    model_config = SettingsConfigDict(
        case_sensitive=False
    )


_load_root_dotenv()
settings = Settings()
