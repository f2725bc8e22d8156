"""Settings for the report console backend."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
	if env_names:
		alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
		return Field(default=default, validation_alias=alias)
	return Field(default=default)


class Settings(BaseSettings):
	redis_url: str = _env_field("redis://localhost:6379/0", "REDIS_URL")
	# Prefix for collection hashes and change channels in Redis
	realtime_namespace: str = _env_field("rt", "REALTIME_NAMESPACE")
	# Pub/sub read timeout per listener loop; keeps cancellation responsive
	realtime_poll_timeout_seconds: float = _env_field(1.0, "REALTIME_POLL_TIMEOUT_SECONDS")

	environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
	obs_enabled: bool = _env_field(True, "OBS_ENABLED")
	obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
	obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")
	service_name: str = _env_field("report-console", "SERVICE_NAME")
	git_commit: str = _env_field("unknown", "GIT_COMMIT", "COMMIT_SHA", "SOURCE_VERSION")

	console_sync_autostart: bool = _env_field(True, "CONSOLE_SYNC_AUTOSTART")
	console_community_matter_type: str = _env_field("Community", "CONSOLE_COMMUNITY_MATTER_TYPE")
	console_notification_type: str = _env_field("report_response", "CONSOLE_NOTIFICATION_TYPE")

	cors_allow_origins: Any = _env_field((), "CORS_ALLOW_ORIGINS")
	obs_admin_token: Optional[str] = _env_field(None, "OBS_ADMIN_TOKEN")

	def is_prod(self) -> bool:
		return self.environment.lower() in ("prod", "production", "live")

	def is_dev(self) -> bool:
		return self.environment.lower() in ("dev", "development")

	model_config = SettingsConfigDict(
		env_prefix="",
		env_file=".env",
		case_sensitive=False,
		extra="ignore",
	)

	@field_validator("cors_allow_origins", mode="before")
	def _split_cors(cls, value):  # type: ignore[override]
		if value in (None, ""):
			return ()
		if isinstance(value, str):
			return tuple(part.strip() for part in value.split(",") if part.strip())
		if isinstance(value, (list, tuple, set)):
			return tuple(str(item).strip() for item in value if str(item).strip())
		return ()

	@field_validator("obs_log_level", mode="after")
	def _normalise_level(cls, value: str) -> str:  # type: ignore[override]
		return value.upper()


settings = Settings()
