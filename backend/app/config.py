from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    app_version: str = "2026-10.v1"
    database_url: str = "sqlite:///./homekey.db"

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["*"]

    # ---- Locale ----
    timezone: str = "Asia/Ho_Chi_Minh"
    phone_country_code: str = "+84"
    client_base_url: str = "http://localhost:3000"

    # ---- Contract windows (days unless noted) ----
    checkin_window_days: int = 4
    activation_window_days: int = 7
    deposit_order_expire_days: int = 2
    after_checkin_order_expire_days: int = 7
    monthly_order_expire_days: int = 15
    identity_check_delay_days: int = 1
    # quick rent builds past monthly orders inline below this many months
    quick_rent_inline_history_months: int = 2

    # ---- Auth ----
    auth_mode: str = "dev"  # dev|jwt
    dev_auto_provision: bool = True
    dev_header_user_email: str = "X-User-Email"
    dev_header_user_role: str = "X-User-Role"

    jwt_secret: str = "dev-change-me"
    jwt_exp_minutes: int = 60 * 24 * 7  # 7 days

    # ---- Celery ----
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"

    def model_post_init(self, __context) -> None:
        env = (self.app_env or "local").strip().lower()
        is_prod = env in ("prod", "production")

        if is_prod:
            if (self.auth_mode or "").strip().lower() == "dev":
                raise ValueError("SECURITY: auth_mode=dev is not allowed in prod")
            if self.jwt_secret == "dev-change-me":
                raise ValueError("SECURITY: jwt_secret must be set in prod")

            origins = self.cors_allow_origins
            if origins == "*" or origins == ["*"] or (isinstance(origins, str) and "*" in origins):
                raise ValueError("SECURITY: cors_allow_origins wildcard is not allowed in prod")


settings = Settings()
