from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cafeteria_client.config.paths import env_file_path

_UNSET = object()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(env_file_path()),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = "dev"
    log_level: str = "INFO"

    gourmet_base_url: str = Field(default="https://alaclickneu.gourmet.at", alias="GOURMET_BASE_URL")
    gourmet_username: str | None = Field(default=None, alias="GOURMET_USERNAME")
    gourmet_password: str | None = Field(default=None, alias="GOURMET_PASSWORD")

    ventopay_base_url: str = Field(
        default="https://my.ventopay.com/mocca.website", alias="VENTOPAY_BASE_URL"
    )
    ventopay_username: str | None = Field(default=None, alias="VENTOPAY_USERNAME")
    ventopay_password: str | None = Field(default=None, alias="VENTOPAY_PASSWORD")
    ventopay_company_id: str = Field(
        default="0da8d3ec-0178-47d5-9ccd-a996f04acb61", alias="VENTOPAY_COMPANY_ID"
    )

    http_timeout_ms: int = Field(default=20_000, alias="HTTP_TIMEOUT_MS")
    max_menu_pages: int = Field(default=10, alias="MAX_MENU_PAGES")


def require_credentials(
    site: str,
    username: object = _UNSET,
    password: object = _UNSET,
) -> tuple[str, str]:
    """
    What it does:
    - Returns (username, password) for `site` ("gourmet" or "ventopay").

    Behavior:
    - If `username` / `password` are provided (even None), they are used as-is.
      Otherwise the values fall back to the settings for that site.
    - Raises RuntimeError naming every missing variable.
    """
    prefix = site.strip().lower()
    if prefix not in ("gourmet", "ventopay"):
        raise ValueError(f"Unknown site: {site!r}")

    user = getattr(settings, f"{prefix}_username") if username is _UNSET else username
    pwd = getattr(settings, f"{prefix}_password") if password is _UNSET else password

    missing = []
    if not isinstance(user, str) or not user.strip():
        missing.append(f"{prefix.upper()}_USERNAME")
    if not isinstance(pwd, str) or not pwd:
        missing.append(f"{prefix.upper()}_PASSWORD")
    if missing:
        raise RuntimeError(
            f"Missing required {prefix} settings: {', '.join(missing)}. "
            "Add them to .env (recommended) or set them as environment variables."
        )

    return user, pwd


settings = Settings()
