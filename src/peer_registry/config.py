"""Environment-based configuration for the peer registry."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Peer registry configuration.

    All settings can be overridden via environment variables with
    PEER_REGISTRY_ prefix. For example:
        PEER_REGISTRY_REDIS_URL=redis://prod-redis:6379
        PEER_REGISTRY_LEGACY_SCAN_ENABLED=false
    """

    # Redis connection
    redis_url: str = "redis://localhost:6379"
    key_namespace: str = "peer-registry:"

    # Record layout
    key_prefix: str = "/peer/"
    metric_key: str = "metric"
    reserved_route_token: str = "delete"

    # Full-scan lookup for records stored under pre-canonical keys
    legacy_scan_enabled: bool = True

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_allow_origins: list[str] = ["*"]

    log_level: str = "INFO"

    model_config = {"env_prefix": "PEER_REGISTRY_"}


settings = Settings()
