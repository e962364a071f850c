import os
from pydantic_settings import BaseSettings
import hashlib

def _derive_key(base_secret: str, purpose: str) -> str:
    """Derive a deterministic key from base secret for specific purpose"""
    return hashlib.sha256(f"{base_secret}:{purpose}".encode()).hexdigest()

class Settings(BaseSettings):
    database_url: str = os.getenv("DATABASE_URL", "")
    _base_secret: str = os.getenv("SESSION_SECRET", "default-dev-secret-change-in-production")

    @property
    def secret_key(self) -> str:
        """JWT signing key"""
        return self._base_secret

    @property
    def password_pepper(self) -> str:
        """Password pepper - derived from base secret"""
        return _derive_key(self._base_secret, "password_pepper")[:32]

    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60  # 1 hour session tokens

    min_password_length: int = 6

    upload_dir: str = "uploads"
    upload_url_prefix: str = "/uploads"
    max_upload_size_bytes: int = 5 * 1024 * 1024  # 5MB per KYC document

    cors_origins: list = ["*"]

    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 60
    auth_rate_limit_requests: int = 10
    auth_rate_limit_window_seconds: int = 60
    max_request_size_bytes: int = 30 * 1024 * 1024

    port: int = int(os.getenv("PORT", "8000"))

    class Config:
        env_file = ".env"

settings = Settings()
