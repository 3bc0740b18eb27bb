import hashlib
import hmac
import secrets


def hash_password(password: str) -> str:
    """SHA-256 hex digest of the UTF-8 encoded password."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    return hmac.compare_digest(hash_password(password), password_hash)


def generate_client_secret() -> str:
    return secrets.token_hex(32)
