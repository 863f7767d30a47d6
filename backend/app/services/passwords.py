"""Password hashing for student credentials."""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(plain: str) -> str:
    """Hash a plaintext password for storage in students.password."""
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """
    Check a plaintext password against a stored hash.

    Returns False instead of raising when the stored value is not a
    recognised hash.
    """
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False
