"""Password hashing for user credentials."""

from werkzeug.security import generate_password_hash, check_password_hash


class PasswordAuthenticationFailed(RuntimeError):
    """Password is not correct."""


def hash_password(password: str) -> str:
    """Generate a secure, salted hash of a password."""
    return generate_password_hash(password)


def check_password(password: str, encrypted: str) -> None:
    """Check a password against an encrypted hash."""
    if not encrypted or not check_password_hash(encrypted, password):
        raise PasswordAuthenticationFailed('Incorrect password')
