from fastapi import APIRouter
from utils.deps import optional_user_dependency
import middleware.csrf as csrf

router = APIRouter(
    tags=["csrf"]
)


@router.get("/csrf-token")
async def get_csrf_token(user: optional_user_dependency):
    """
    Hand out a CSRF token. Callers that send a bearer token get a token
    bound to their account; everyone else gets an anonymous one.
    """
    token, expires_in = csrf.csrf_guard.issue(user.id if user else None)

    return {"csrfToken": token, "expiresIn": expires_in}
