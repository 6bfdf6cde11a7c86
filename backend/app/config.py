from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dev.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000

    # partner account identifiers written into every CSV row
    ACCOUNT_REF: str = "KING01"
    COURIER: str = "DPD"
    SERVICE_CODE: str = "1^12"

    CUTOFF_TIME: str = "16:00"
    BUSINESS_TIMEZONE: str = "Europe/London"
    READY_ORDER_STATUS: str = "processing"

    TRANSPORT_BACKEND: str = "ftps"
    FTPS_HOST: str = ""
    FTPS_PORT: int = 21
    FTPS_USERNAME: str = ""
    FTPS_PASSWORD: str = ""
    FTPS_REMOTE_DIR: str = "/"
    FTPS_TIMEOUT_SECONDS: int = 30
    TRANSPORT_RETRY_DELAY_SECONDS: float = 5.0

    ARCHIVE_DIR: str = "./archives"
    ARCHIVE_RETENTION_DAYS: int = 30

    ALERT_RECIPIENTS: List[str] = []
    SMTP_HOST: str = ""
    SMTP_PORT: int = 25
    SMTP_SENDER: str = "export@localhost"

    EXPORT_SCHEDULE_ENABLED: bool = True
    EXPORT_HOUR: int = 16
    EXPORT_MINUTE: int = 1
    EXPORT_LOCK_FILE: str = ""

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @field_validator("CUTOFF_TIME")
    @classmethod
    def _check_cutoff(cls, v: str) -> str:
        parse_cutoff(v)
        return v

    def get(self, key: str, default: Any = None) -> Any:
        """Configuration-read contract used by the export core."""
        return getattr(self, key.upper(), default)


def parse_cutoff(value: str):
    """Parse "HH:MM" into (hour, minute). Minute defaults to 0."""
    parts = str(value).strip().split(":")
    try:
        hour = int(parts[0])
        minute = int(parts[1]) if len(parts) > 1 and parts[1] != "" else 0
    except ValueError:
        raise ValueError(f"Invalid cut-off time: {value!r}")
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Cut-off time out of range: {value!r}")
    return hour, minute


@dataclass(frozen=True)
class TransportConfig:
    backend: str = "ftps"
    host: str = ""
    port: int = 21
    username: str = ""
    password: str = ""
    remote_dir: str = "/"
    timeout: int = 30
    retry_delay: float = 5.0

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.username and self.password)


@dataclass(frozen=True)
class ExportConfig:
    """
    Everything the export pipeline needs, passed explicitly instead of
    reading module-level settings so runs can use alternate accounts.
    """

    account_ref: str = "KING01"
    courier: str = "DPD"
    service_code: str = "1^12"
    cutoff_hour: int = 16
    cutoff_minute: int = 0
    timezone: str = "Europe/London"
    ready_status: str = "processing"
    archive_dir: str = "./archives"
    retention_days: int = 30
    alert_recipients: tuple = ()
    transport: TransportConfig = field(default_factory=TransportConfig)

    @classmethod
    def from_source(cls, get: Callable[[str, Any], Any]) -> "ExportConfig":
        hour, minute = parse_cutoff(get("CUTOFF_TIME", "16:00"))
        transport = TransportConfig(
            backend=get("TRANSPORT_BACKEND", "ftps"),
            host=get("FTPS_HOST", ""),
            port=int(get("FTPS_PORT", 21)),
            username=get("FTPS_USERNAME", ""),
            password=get("FTPS_PASSWORD", ""),
            remote_dir=get("FTPS_REMOTE_DIR", "/"),
            timeout=int(get("FTPS_TIMEOUT_SECONDS", 30)),
            retry_delay=float(get("TRANSPORT_RETRY_DELAY_SECONDS", 5.0)),
        )
        return cls(
            account_ref=get("ACCOUNT_REF", "KING01"),
            courier=get("COURIER", "DPD"),
            service_code=get("SERVICE_CODE", "1^12"),
            cutoff_hour=hour,
            cutoff_minute=minute,
            timezone=get("BUSINESS_TIMEZONE", "Europe/London"),
            ready_status=get("READY_ORDER_STATUS", "processing"),
            archive_dir=get("ARCHIVE_DIR", "./archives"),
            retention_days=int(get("ARCHIVE_RETENTION_DAYS", 30)),
            alert_recipients=tuple(get("ALERT_RECIPIENTS", []) or ()),
            transport=transport,
        )


settings = Settings()


def get_export_config(source: Optional[Settings] = None) -> ExportConfig:
    return ExportConfig.from_source((source or settings).get)
