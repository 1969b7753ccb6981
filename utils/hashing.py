from passlib.context import CryptContext

bcrypt_context = CryptContext(schemes=['bcrypt'], deprecated='auto')

# Bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_LENGTH = 72


def get_password_hash(password: str) -> str:
    return bcrypt_context.hash(password[:_BCRYPT_MAX_LENGTH])


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt_context.verify(plain_password[:_BCRYPT_MAX_LENGTH], hashed_password)


# Compared against when the account does not exist, so a miss costs as much as a wrong password.
_DUMMY_HASH = get_password_hash("dummy-password-for-timing")


def verify_password_or_dummy(plain_password: str, hashed_password: str | None) -> bool:
    """
    Verify a password, running a full bcrypt round even when there is no
    stored hash. Returns False in that case.
    """
    if hashed_password is None:
        verify_password(plain_password, _DUMMY_HASH)
        return False
    return verify_password(plain_password, hashed_password)
