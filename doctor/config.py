"""Doctor configuration — provider endpoints, storage and check thresholds."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "DOCTOR_"}

    # Identity provider (GoTrue auth + PostgREST)
    supabase_url: str = ""
    supabase_anon_key: str = ""
    profile_table: str = "user_profiles"
    default_display_name: str = "User"
    default_role: str = "user"

    # Origin of the web app the credentials belong to
    app_origin: str = "http://localhost:5173"

    # Check thresholds
    slow_response_ms: int = 5000
    reauth_window_seconds: int = 300
    session_refresh_margin_seconds: int = 10

    # Local credential storage
    credential_key_markers: list[str] = ["supabase", "auth"]
    storage_namespace: str = "doctor:storage:"
    use_redis_storage: bool = True
    redis_url: str = "redis://redis:6379/0"

    http_timeout_seconds: float = 15.0

    # Telemetry
    otlp_endpoint: str = ""
    log_level: str = "INFO"

    # Doctor server
    host: str = "0.0.0.0"
    port: int = 8200


settings = Settings()
