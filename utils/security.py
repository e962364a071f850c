from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, InvalidHash, VerificationError
from config import settings

ph = PasswordHasher(
    time_cost=3,
    memory_cost=65536,
    parallelism=4,
    hash_len=32,
    salt_len=16
)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its Argon2 hash"""
    if not plain_password or not hashed_password:
        return False

    peppered_password = plain_password + settings.password_pepper
    try:
        return ph.verify(hashed_password, peppered_password)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return False

def get_password_hash(password: str) -> str:
    """Hash a password using Argon2id with pepper"""
    return ph.hash(password + settings.password_pepper)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed, time-boxed session token"""
    to_encode = data.copy()
    issued_at = datetime.utcnow().replace(microsecond=0)
    if expires_delta:
        expire = issued_at + expires_delta
    else:
        expire = issued_at + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update({
        "exp": expire,
        "iat": issued_at,
    })
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

def decode_token(token: str) -> Optional[dict]:
    """Decode and validate a session token"""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

def mask_sensitive_data(data: str, visible_chars: int = 4) -> str:
    """Mask sensitive data for logging"""
    if not data or len(data) <= visible_chars:
        return '*' * len(data) if data else ''
    return data[:visible_chars] + '*' * (len(data) - visible_chars)
