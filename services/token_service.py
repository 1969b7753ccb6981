from datetime import datetime, timezone, timedelta
from fastapi import HTTPException, status
from jose import jwt, JWTError
from pydantic import ValidationError
from core.config import settings
from core.roles import Role
from schemas.auth_schemas import Principal
from utils.logger import get_logger

logger = get_logger(__name__)


def _credentials_exception(detail: str = "Could not validate credentials.") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"}
    )


class TokenService:
    """
    Issues and verifies the signed session tokens carrying a principal.
    """

    @staticmethod
    def default_lifetime(role: Role) -> timedelta:
        """Admin sessions last a day; customer sessions are configurable."""
        if role.is_admin:
            return timedelta(minutes=settings.ADMIN_TOKEN_EXPIRE_MINUTES)
        return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    @staticmethod
    def create_access_token(user_id: int, role: Role | str, email: str | None = None,
                            expires_delta: timedelta | None = None) -> str:
        """
        Creates a JWT access token.

        Args:
            user_id: User's ID
            role: User's role
            email: User's email, stored as the subject when given
            expires_delta: Token lifetime (default depends on the role)

        Returns:
            JWT access token string
        """
        role = Role(role)
        if expires_delta is None:
            expires_delta = TokenService.default_lifetime(role)

        payload = {
            "id": user_id,
            "role": role.value,
            "type": "access",
            "exp": datetime.now(timezone.utc) + expires_delta
        }
        if email:
            payload["sub"] = email

        return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_access_token(token: str) -> Principal:
        """
        Verifies signature and expiry and turns the claims into a Principal.

        Raises:
            HTTPException(401): bad signature, expired, wrong token type,
            missing id or unknown role
        """
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            raise _credentials_exception()

        if payload.get("type") != "access":
            raise _credentials_exception("Invalid token type. Access token required.")

        try:
            return Principal(id=payload.get("id"), role=payload.get("role"))
        except ValidationError:
            logger.warning(
                "Token with malformed principal claims",
                extra={"claim_id": payload.get("id"), "claim_role": payload.get("role")}
            )
            raise _credentials_exception()
