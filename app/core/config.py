"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Required fields (e.g. SECRET_KEY) and the rate-limit
tier table are validated at load time.
"""

import json
from functools import lru_cache
from typing import Any

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Default tiers: short burst window first, sustained-abuse window second.
DEFAULT_RATE_LIMIT_TIERS: list[dict[str, Any]] = [
    {
        "window_seconds": 60,
        "max_attempts": 10,
        "message": "Too many requests. Please wait a minute before trying again.",
        "severity": "medium",
    },
    {
        "window_seconds": 3600,
        "max_attempts": 50,
        "message": "Too many requests from this client. Please try again later.",
        "severity": "high",
    },
]


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    All settings are optional with defaults except those validated in
    validate_required (secret_key, Firestore credentials when the
    firestore backend is selected, and a well-formed tier table).
    """

    # App
    app_name: str = "rental-access"
    app_version: str = "1.0.0"
    debug: bool = False

    # Document store: "firestore" (Firestore REST) or "memory" (in-process, dev/tests)
    database_backend: str = "firestore"
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None
    # Remote store calls slower than this are treated as unavailable.
    store_timeout_seconds: float = 5.0

    # Security
    secret_key: SecretStr = SecretStr("")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 480  # 8 hours

    # CORS
    allowed_origins: str = "http://localhost:3000,http://localhost:8080"

    # Tenant
    tenant_header_name: str = "X-Tenant-ID"

    # Request / middleware
    request_timeout_seconds: int = 60
    request_id_header: str = "X-Request-ID"

    # Redis (permission cache and rate-limit counters)
    redis_enabled: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    redis_max_connections: int = 10
    cache_ttl_permissions: int = 300
    # In-process permission cache bound (used when Redis is disabled or down).
    permission_cache_max_entries: int = 10_000

    # Tiered rate limiting
    rate_limit_enabled: bool = True
    rate_limit_paths: str = "/api/v1/auth,/api/v1/authorization"
    rate_limit_tiers: str = json.dumps(DEFAULT_RATE_LIMIT_TIERS)
    rate_limit_identity_fields: str = "email,username,phone"
    rate_limit_store_timeout_seconds: float = 0.5
    rate_limit_adaptive_enabled: bool = True
    rate_limit_adaptive_max_entries: int = 1000

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def rate_limit_path_prefixes(self) -> list[str]:
        """Path prefixes guarded by the tiered rate limiter."""
        return [p.strip() for p in self.rate_limit_paths.split(",") if p.strip()]

    @property
    def rate_limit_identity_field_names(self) -> list[str]:
        """JSON body fields tried, in order, for the per-identity limiter key."""
        return [
            f.strip() for f in self.rate_limit_identity_fields.split(",") if f.strip()
        ]

    @property
    def rate_limit_tier_table(self) -> list[dict[str, Any]]:
        """Parsed RATE_LIMIT_TIERS (validated in validate_required)."""
        return json.loads(self.rate_limit_tiers)

    @model_validator(mode="after")
    def validate_required(self) -> "Settings":
        """Validate required env, document store and rate-limit tiers.

        - Firestore: FIREBASE_SERVICE_ACCOUNT_KEY or FIREBASE_SERVICE_ACCOUNT_PATH required.
        - SECRET_KEY always required (JWT verification).
        - RATE_LIMIT_TIERS: non-empty JSON list; positive window and max per tier.
        """
        if self.database_backend == "firestore":
            has_key = (
                self.firebase_service_account_key
                and self.firebase_service_account_key.get_secret_value()
            )
            if not has_key and not self.firebase_service_account_path:
                raise ValueError(
                    "When database_backend is 'firestore', set FIREBASE_SERVICE_ACCOUNT_KEY (full JSON string) "
                    "or FIREBASE_SERVICE_ACCOUNT_PATH (path to JSON file)."
                )
        elif self.database_backend != "memory":
            raise ValueError(
                f"database_backend must be 'firestore' or 'memory', got: {self.database_backend!r}"
            )
        if not self.secret_key.get_secret_value():
            raise ValueError(
                "SECRET_KEY is required. Generate with: openssl rand -hex 32."
            )
        try:
            tiers = json.loads(self.rate_limit_tiers)
        except json.JSONDecodeError as e:
            raise ValueError("RATE_LIMIT_TIERS is not valid JSON") from e
        if not isinstance(tiers, list) or not tiers:
            raise ValueError("RATE_LIMIT_TIERS must be a non-empty JSON list")
        for i, tier in enumerate(tiers):
            if not isinstance(tier, dict):
                raise ValueError(f"RATE_LIMIT_TIERS[{i}] must be an object")
            if int(tier.get("window_seconds", 0)) <= 0:
                raise ValueError(f"RATE_LIMIT_TIERS[{i}].window_seconds must be positive")
            if int(tier.get("max_attempts", 0)) <= 0:
                raise ValueError(f"RATE_LIMIT_TIERS[{i}].max_attempts must be positive")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
