import functools
from typing import List, Optional

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: Optional[str]) -> List[str]:
  if not value:
    return []
  return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
  model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

  port: int = Field(4000, alias="PORT")
  log_level: str = Field("INFO", alias="LOG_LEVEL")
  client_origin: str = Field("http://localhost:8081", alias="CLIENT_ORIGIN")

  supabase_url: Optional[AnyHttpUrl] = Field(None, alias="SUPABASE_URL")
  supabase_service_key: Optional[str] = Field(None, alias="SUPABASE_SERVICE_KEY")

  jwt_secret: str = Field("rentpay_dev_secret", alias="JWT_SECRET")
  jwt_audience: Optional[str] = Field("authenticated", alias="JWT_AUDIENCE")

  smtp_host: Optional[str] = Field(None, alias="SMTP_HOST")
  smtp_port: int = Field(587, alias="SMTP_PORT")
  smtp_user: Optional[str] = Field(None, alias="SMTP_USER")
  smtp_password: Optional[str] = Field(None, alias="SMTP_PASSWORD")
  smtp_secure: Optional[bool] = Field(None, alias="SMTP_SECURE")
  mail_from: Optional[str] = Field(None, alias="MAIL_FROM")
  mail_reply_to: Optional[str] = Field(None, alias="MAIL_REPLY_TO")

  reminder_enabled: Optional[bool] = Field(None, alias="REMINDER_ENABLED")
  reminder_days_ahead: int = Field(3, alias="REMINDER_DAYS_AHEAD")
  overdue_sweep_enabled: bool = Field(True, alias="OVERDUE_SWEEP_ENABLED")
  scheduler_tz: str = Field("UTC", alias="SCHEDULER_TZ")
  app_tz: str = Field("UTC", alias="APP_TZ")
  currency_symbol: str = Field("₱", alias="CURRENCY_SYMBOL")

  allowed_origins: List[str] = Field(default_factory=list, validate_default=True)

  @field_validator("allowed_origins", mode="before")
  @classmethod
  def fill_origins(cls, value, info):
    if value:
      return value
    client_origin = info.data.get("client_origin") or "http://localhost:8081"
    return _split_csv(client_origin)

  @field_validator("smtp_secure", "reminder_enabled", mode="before")
  @classmethod
  def normalize_bool(cls, value):
    if value is None:
      return None
    if isinstance(value, bool):
      return value
    normalized = str(value).strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
      return True
    if normalized in {"0", "false", "no", "off"}:
      return False
    return None

  @field_validator("reminder_days_ahead")
  @classmethod
  def cap_days_ahead(cls, value: int) -> int:
    return max(0, min(30, int(value)))

  @property
  def supabase_configured(self) -> bool:
    return bool(self.supabase_url and self.supabase_service_key)

  @property
  def mailer_configured(self) -> bool:
    return bool(self.smtp_host)

  @property
  def reminder_active(self) -> bool:
    if self.reminder_enabled is None:
      return self.mailer_configured
    return self.reminder_enabled

  @property
  def scheduler_active(self) -> bool:
    return self.supabase_configured and (self.reminder_active or self.overdue_sweep_enabled)


@functools.lru_cache
def get_settings() -> Settings:
  return Settings()  # type: ignore[arg-type]
