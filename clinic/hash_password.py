# Password hashing shared by the models and the security layer.
from passlib.context import CryptContext

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__rounds=4,
    argon2__memory_cost=65536,
    argon2__parallelism=1,
)

# Verified against when an email is unknown so a failed lookup costs the same
# as a failed password check.
DUMMY_HASH = pwd_context.hash("clinic-portal-dummy-password")


def get_password_hash(password: str) -> str:
    """Generate a salted password hash"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Unknown/legacy hash formats should not crash login; treat as non-match
        return False
