from pydantic_settings import BaseSettings

DEV_JWT_SECRET = "dev-secret-change-me"


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./data/galleria.sqlite3"
    data_dir: str = "./data"
    api_prefix: str = "/api"
    public_base_url: str = "http://localhost:8000"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]
    log_level: str = "INFO"

    jwt_secret: str = DEV_JWT_SECRET
    viewer_token_ttl_seconds: int = 60 * 60 * 24  # 24h
    admin_session_ttl_seconds: int = 60 * 60 * 24 * 30  # 30 days
    cookie_secure: bool = False

    thumbnail_width: int = 800
    thumbnail_quality: int = 85
    upload_chunk_size: int = 1024 * 1024  # 1MB

    admin_email: str = ""  # empty = no seeded admin, use /admin/setup
    admin_password: str = ""
    admin_name: str = "Admin"
    admin_reset_secret: str = ""  # empty = reset endpoint disabled

    email_from: str = "galleries@localhost"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
