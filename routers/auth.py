from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordRequestForm
from fastapi import HTTPException
from utils.deps import db_dependency, user_dependency
from starlette import status
from schemas.auth_schemas import (Token, UserSummary, CreateUserRequest, ForgotPasswordRequest,
                                  VerifyOTPRequest, ResetPasswordRequest)
from services.auth_service import AuthService, PasswordResetService
from services.token_service import TokenService
from middleware.rate_limiter import (limiter, AUTH_LIMIT, REGISTER_LIMIT, OTP_LIMIT,
                                     PASSWORD_RESET_LIMIT)
from core.config import settings
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserSummary)
@limiter.limit(REGISTER_LIMIT)
async def register(request: Request, body: CreateUserRequest, db: db_dependency):
    """
    Customer self-registration. Admin accounts are created by a super admin.
    """
    user = AuthService.create_user(body, db)

    logger.info(
        "User registered successfully",
        extra={"user_id": user.id}
    )

    return user


@router.post("/token", response_model=Token)
@limiter.limit(AUTH_LIMIT)
async def login_for_access_token(request: Request, db: db_dependency,
                                 form_data: OAuth2PasswordRequestForm = Depends()):
    user = AuthService.authenticate_user(form_data.username, form_data.password, db)

    access_token = TokenService.create_access_token(user.id, user.role, email=user.email)

    logger.info(
        "User logged in successfully",
        extra={"user_id": user.id, "role": user.role.value}
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": user
    }


@router.get("/me", response_model=UserSummary)
async def get_me(user: user_dependency, db: db_dependency):
    model = AuthService.get_active_user_by_id(db, user.id)

    if not model:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return model


@router.post("/forgot-password", status_code=status.HTTP_200_OK)
@limiter.limit(PASSWORD_RESET_LIMIT)
async def forgot_password(request: Request, body: ForgotPasswordRequest, db: db_dependency):
    """
    Issue a one-time code for resetting the password.
    The answer is the same whether or not the email exists.
    """
    PasswordResetService.request_reset(db, body.email)

    return {
        "message": "If that email exists, a verification code has been issued.",
        "expiresIn": f"{settings.OTP_EXPIRE_MINUTES} minutes"
    }


@router.post("/verify-otp", status_code=status.HTTP_200_OK)
@limiter.limit(OTP_LIMIT)
async def verify_otp(request: Request, body: VerifyOTPRequest, db: db_dependency):
    PasswordResetService.verify_otp(db, body.email, body.otp)

    return {"message": "OTP verified successfully"}


@router.post("/reset-password", status_code=status.HTTP_200_OK)
async def reset_password(body: ResetPasswordRequest, db: db_dependency):
    PasswordResetService.reset_password(db, body.email, body.otp, body.new_password)

    return {"message": "Password reset successfully"}
