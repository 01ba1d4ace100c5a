"""Settings models for the offline engine and its daemon.

Contract:
- Inputs: Environment variables, YAML files
- Outputs: Validated settings objects
- Side Effects: None (read-only)
"""

from urllib.parse import urlsplit

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

DEFAULT_PRECACHE_MANIFEST = [
    "/",
    "/dashboard",
    "/accounts",
    "/transactions",
    "/insights",
    "/reports",
    "/settings",
    "/auth/login",
    "/auth/signup",
    "/offline",
    "/manifest.json",
]


class EngineSettings(BaseSettings):
    """Configuration for the offline engine and the offlined daemon.

    Attributes:
        host: Daemon listen address (default: 127.0.0.1)
        port: Daemon listen port (default: 8430)
        version: Release version tag used to namespace cache partitions
        app_origin: Origin of the host application all requests target
        precache_manifest: Paths fetched and cached at install time
        api_prefixes: Path prefixes classified as API data
        graphql_path: GraphQL endpoint path, classified as API data
        queue_prefixes: Path prefixes whose failed writes are queued for replay

    Example:
        >>> settings = EngineSettings()
        >>> assert settings.static_partition == "static-v1"
    """

    model_config = SettingsConfigDict(
        env_prefix="OFFLINED_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Daemon transport
    host: str = "127.0.0.1"
    port: int = Field(default=8430, ge=1024, le=65535)
    log_level: str = "info"
    workers: int = Field(default=1, ge=1, le=16)
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Release and origin
    version: str = "v1"
    app_origin: str = "http://localhost:3000"

    # Precache and routing
    precache_manifest: list[str] = Field(default_factory=lambda: list(DEFAULT_PRECACHE_MANIFEST))
    api_prefixes: list[str] = Field(default_factory=lambda: ["/api/"])
    graphql_path: str = "/graphql"
    queue_prefixes: list[str] = Field(default_factory=lambda: ["/api/"])
    offline_route: str = "/offline"
    offline_status_code: int = Field(default=503, ge=500, le=599)

    # Timeouts and sync
    fetch_timeout_seconds: float = Field(default=30.0, gt=0)
    replay_timeout_seconds: float = Field(default=15.0, gt=0)
    sync_interval_seconds: int | None = Field(default=300, ge=10)
    skip_waiting_on_install: bool = False

    # Optional bounds (None = unbounded)
    max_entries_per_partition: int | None = Field(default=None, ge=1)
    max_pending_writes: int | None = Field(default=None, ge=1)

    # Notifications
    notification_title: str = "WAIS Notification"
    notification_icon: str = "/icon-192x192.png"
    notification_badge: str = "/icon-72x72.png"
    notification_vibrate: list[int] = Field(default_factory=lambda: [100, 50, 100])
    notification_action_routes: dict[str, str] = Field(default_factory=lambda: {"explore": "/dashboard"})
    notification_dismiss_actions: list[str] = Field(default_factory=lambda: ["close"])
    notification_default_route: str = "/"

    @field_validator("app_origin")
    @classmethod
    def normalize_origin(cls, v: str) -> str:
        """Reduce the configured origin to scheme://host[:port].

        Args:
            v: Origin or base URL

        Returns:
            Origin without path, query or trailing slash

        Raises:
            ValueError: If the value has no scheme or host
        """
        parts = urlsplit(v)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"app_origin must be an absolute URL, got: {v}")
        return f"{parts.scheme.lower()}://{parts.netloc.lower()}"

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Version tags become part of partition directory names."""
        v = v.strip()
        if not v or not all(c.isalnum() or c in "._-" for c in v):
            raise ValueError(f"version may only contain letters, digits, '.', '_' and '-', got: {v!r}")
        return v

    @field_validator("api_prefixes", "queue_prefixes")
    @classmethod
    def validate_prefixes(cls, v: list[str]) -> list[str]:
        for prefix in v:
            if not prefix.startswith("/"):
                raise ValueError(f"Path prefixes must start with '/', got: {prefix}")
        return v

    @property
    def static_partition(self) -> str:
        """Name of this release's static partition."""
        return f"static-{self.version}"

    @property
    def dynamic_partition(self) -> str:
        """Name of this release's dynamic partition."""
        return f"dynamic-{self.version}"
