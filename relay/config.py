"""Runtime configuration for the telemetry relay."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_INTERVAL_SECONDS = 1.0
MAX_INTERVAL_SECONDS = 3600.0


def _clamp_interval_seconds(value: float, *, field: str) -> float:
    try:
        parsed = float(value)
    except Exception as exc:
        raise ValueError(f"{field} must be a number") from exc
    if parsed != parsed:  # NaN
        raise ValueError(f"{field} must be a real number")
    return max(MIN_INTERVAL_SECONDS, min(parsed, MAX_INTERVAL_SECONDS))


class Settings(BaseSettings):
    """Environment driven settings for the relay process."""

    service_name: str = "telemetry-relay"
    service_version: str = "0.1.0"
    log_level: str = "INFO"
    frontend_origin: str = Field(
        default="http://localhost:3001",
        description="Browser origin allowed by the CORS policy (HTTP and Socket.IO)",
    )
    listen_host: str = "0.0.0.0"
    listen_port: int = 3000
    static_dir: Optional[str] = Field(default="public", description="Frontend assets served at /")
    mqtt_enabled: bool = Field(default=True, description="Connect to the broker on startup")
    mqtt_url: str = Field(default="mqtts://127.0.0.1:8883", description="MQTT broker URL")
    mqtt_client_id: str = "telemetry-relay"
    mqtt_username: Optional[str] = None
    mqtt_password: Optional[str] = None
    mqtt_keepalive_seconds: int = Field(default=60, ge=5)
    mqtt_reconnect_seconds: float = 1.0
    mqtt_key_path: Optional[str] = Field(default=None, description="Client private key (PEM)")
    mqtt_cert_path: Optional[str] = Field(default=None, description="Client certificate (PEM)")
    mqtt_ca_path: Optional[str] = Field(default=None, description="Broker CA bundle (PEM)")
    aws_region: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: SecretStr | None = None
    sns_topic_arn: Optional[str] = Field(default=None, description="SNS topic that receives alert notifications")
    alert_location: Optional[str] = Field(default=None, description="Location label stamped on every alert")

    model_config = SettingsConfigDict(
        env_prefix="RELAY_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("mqtt_reconnect_seconds")
    @classmethod
    def _clamp_reconnect(cls, value: float) -> float:
        return _clamp_interval_seconds(value, field="mqtt_reconnect_seconds")

    @property
    def mqtt_host(self) -> str:
        return _parsed_mqtt(self.mqtt_url).hostname or "127.0.0.1"

    @property
    def mqtt_port(self) -> int:
        parsed = _parsed_mqtt(self.mqtt_url)
        if parsed.port:
            return parsed.port
        return 8883 if self.mqtt_scheme == "mqtts" else 1883

    @property
    def mqtt_scheme(self) -> str:
        return _parsed_mqtt(self.mqtt_url).scheme or "mqtt"

    @property
    def mqtt_tls(self) -> bool:
        return self.mqtt_scheme in {"mqtts", "ssl"} or any(
            (self.mqtt_ca_path, self.mqtt_cert_path, self.mqtt_key_path)
        )

    @property
    def static_path(self) -> Optional[Path]:
        if not self.static_dir:
            return None
        path = Path(self.static_dir)
        return path if path.is_dir() else None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


@lru_cache(maxsize=32)
def _parsed_mqtt(url: str):
    return urlparse(url)
