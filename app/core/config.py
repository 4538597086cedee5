from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str
    database_echo: bool = False
    create_tables: bool = True

    jwt_secret: str
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    token_cookie_name: str = "token"
    cookie_secure: bool = False
    bcrypt_rounds: int = 12

    cors_origins: List[str] = ["http://localhost:3000"]
    avatar_dir: str = "uploads/avatars"

    # 0 отключает серверное автосохранение
    autosave_interval_seconds: float = 5.0

    log_level: str = "INFO"

    # PostgreSQL variables for Docker
    postgres_user: str = ""
    postgres_password: str = ""
    postgres_db: str = ""

    model_config = {"env_file": ".env", "extra": "ignore"}

settings = Settings()
