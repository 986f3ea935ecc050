from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Grant Management Server"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    issuer_url: str = "http://localhost:8000"

    store_backend: str = "memory"

    database_host: str = "localhost"
    database_port: int = 5432
    database_user: str = "postgres"
    database_password: str = ""
    database_name: str = "grant_management"
    database_pool_min_size: int = 1
    database_pool_max_size: int = 10

    par_expires_in: int = 90
    access_token_expires_in: int = 3600
    require_pkce: bool = False

    jwt_secret_key: str = ""
    jwt_algorithm: str = "HS256"

    allowed_origins: str = "http://localhost:5173,http://127.0.0.1:5173"

    @property
    def allowed_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


settings = Settings()
