import logging
import secrets
import string

from passlib.context import CryptContext
from passlib.handlers import bcrypt as passlib_bcrypt

logging.getLogger("passlib.handlers.bcrypt").setLevel(logging.ERROR)


def _patch_bcrypt_backend() -> None:
    """Treat bcrypt's 72-byte ValueError as a failed verify, not a crash."""

    backend = passlib_bcrypt._BcryptBackend
    if getattr(backend, "_intranet_verify_patch", False):
        return
    original_verify = backend.verify.__func__

    def verify(cls, secret, hash, **context):
        try:
            return original_verify(cls, secret, hash, **context)
        except ValueError as exc:
            if "password cannot be longer than 72 bytes" in str(exc):
                return False
            raise

    backend.verify = classmethod(verify)
    backend._intranet_verify_patch = True
    # newer bcrypt releases reject the wraparound self-test passlib runs on load
    backend._workrounds_initialized = True


_patch_bcrypt_backend()

pwd_ctx = CryptContext(
    schemes=["bcrypt_sha256", "bcrypt"],
    deprecated="auto",
)

MIN_PASSWORD_LENGTH = 8


def hash_password(plain: str) -> str:
    """Return bcrypt_sha256 hash for plain password."""
    return pwd_ctx.hash(plain)


def verify_password(plain: str, hashed: str | None) -> bool:
    if not plain or not hashed:
        return False
    try:
        return pwd_ctx.verify(plain, hashed)
    except ValueError:
        return False


def generate_password(length: int = 12) -> str:
    """Random password for newly created admin accounts."""
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))
