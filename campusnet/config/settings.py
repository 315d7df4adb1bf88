# campusnet/config/settings.py
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # 🔵 Banco principal
    database_url: str = "sqlite:///./campusnet.db"
    db_echo: bool = False

    environment: str = "development"
    debug: bool = True

    # 🔐 Credenciais (sem default: ausência é erro fatal no startup)
    jwt_secret: str | None = None
    jwt_issuer: str = "campusnet-api"
    jwt_audience: str = "campusnet-app"
    jwt_access_minutes: int = 60 * 24

    # 🟢 Revogação (Redis opcional; vazio => memória do processo)
    redis_url: str = ""
    redis_socket_timeout_seconds: float = 2.0
    revocation_sweep_seconds: int = 60

    # ⚡ Realtime
    handshake_timeout_seconds: int = 10

    # dev bypass do verificador externo de identidade
    skip_identity_check: bool = False

    api_prefix: str = ""
    cors_origins_raw: str = "http://localhost:19006,http://127.0.0.1:19006,http://localhost:8081,http://127.0.0.1:8081"

    cookie_name: str = "accessToken"
    cookie_secure: bool = False

    store_retry_attempts: int = 3
    store_retry_initial_delay: float = 0.1

    # 🚦 Rate limiting (janela fixa; 0 desliga)
    rate_limit_requests: int = 300
    rate_limit_window_seconds: int = 60
    login_rate_limit_attempts: int = 12
    login_rate_limit_window_seconds: int = 15 * 60

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("jwt_secret", "redis_url", "database_url", mode="before")
    @classmethod
    def strip_strings(cls, v):
        if isinstance(v, str):
            return v.strip().strip('"').strip("'")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins_raw.split(",") if o.strip()]

    @property
    def secure_cookies(self) -> bool:
        return self.cookie_secure or self.is_production


settings = Settings()
