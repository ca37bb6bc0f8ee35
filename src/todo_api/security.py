from passlib.context import CryptContext

# Matches a bcrypt cost of 10 rounds.
BCRYPT_ROUNDS = 10
BCRYPT_MAX_BYTES = 72

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def _bcrypt_input(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes of the UTF-8 encoding
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """
    Hashes a plain-text password with a per-password salt.
    """
    return pwd_context.hash(_bcrypt_input(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifies a plain-text password against a stored hash.
    A hash passlib cannot identify counts as a mismatch.
    """
    try:
        return pwd_context.verify(_bcrypt_input(plain_password), hashed_password)
    except (ValueError, TypeError):
        return False
