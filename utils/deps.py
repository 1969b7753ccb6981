from core.database import SessionLocal
from typing import Annotated, Optional
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from schemas.auth_schemas import Principal
from services.token_service import TokenService

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

db_dependency = Annotated[Session, Depends(get_db)]


oauth2_bearer = OAuth2PasswordBearer(tokenUrl="auth/token")
optional_oauth2_bearer = OAuth2PasswordBearer(tokenUrl="auth/token", auto_error=False)


def get_current_user(request: Request, token: Annotated[str, Depends(oauth2_bearer)]) -> Principal:
    """
    Authentication gate: a missing bearer token is rejected by the scheme
    (401 "Not authenticated"), an invalid or expired one by the decoder.
    The principal is also left on request.state for middleware and logging.
    """
    principal = TokenService.decode_access_token(token)
    request.state.principal = principal
    return principal


def get_optional_principal(request: Request,
                           token: Annotated[Optional[str], Depends(optional_oauth2_bearer)]) -> Optional[Principal]:
    """Like get_current_user, but anonymous callers get None instead of a 401."""
    if not token:
        return None
    principal = TokenService.decode_access_token(token)
    request.state.principal = principal
    return principal


user_dependency = Annotated[Principal, Depends(get_current_user)]
optional_user_dependency = Annotated[Optional[Principal], Depends(get_optional_principal)]
