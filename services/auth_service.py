from utils.hashing import get_password_hash, verify_password_or_dummy
from models.users import User
from models.password_reset_tokens import PasswordResetToken
from schemas.auth_schemas import CreateUserRequest
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from utils.verification import generate_otp, get_code_expiry_time, is_expired
from fastapi import HTTPException
from starlette import status
from core.config import settings
from core.roles import Role
from utils.logger import get_logger

logger = get_logger(__name__)

GENERIC_REGISTRATION_ERROR = "Registration failed. Please check your information and try again"
GENERIC_LOGIN_ERROR = "Invalid email or password"


class AuthService:

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> User | None:
        return db.query(User).filter(User.email == email.lower().strip()).one_or_none()

    @staticmethod
    def get_active_user_by_id(db: Session, user_id: int) -> User | None:
        return db.query(User).filter(User.id == user_id, User.is_active == True).one_or_none()

    @staticmethod
    def create_user(request: CreateUserRequest, db: Session, role: Role = Role.CUSTOMER) -> User:
        """
        Creates a user with a hashed password. A duplicate email gets the
        same generic error as any other registration failure.
        """
        if AuthService.get_user_by_email(db, request.email):
            logger.warning(
                "Registration attempt with existing email",
                extra={"email": request.email}
            )
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail=GENERIC_REGISTRATION_ERROR)

        model = User(
            name=request.name,
            email=request.email.lower().strip(),
            phone_number=request.phone_number,
            hashed_password=get_password_hash(request.password),
            role=role,
            is_active=True
        )

        db.add(model)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail=GENERIC_REGISTRATION_ERROR)

        db.refresh(model)
        return model

    @staticmethod
    def authenticate_user(email: str, password: str, db: Session) -> User:
        user = AuthService.get_user_by_email(db, email)

        # always pay for one bcrypt comparison
        password_ok = verify_password_or_dummy(password, user.hashed_password if user else None)

        if not user or not password_ok:
            logger.warning(
                "Login failed - invalid credentials",
                extra={"email": email, "user_found": user is not None}
            )
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                                detail=GENERIC_LOGIN_ERROR)

        if not user.is_active:
            logger.warning(
                "Login failed - inactive account",
                extra={"user_id": user.id}
            )
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                                detail=GENERIC_LOGIN_ERROR)

        logger.debug(
            "User authenticated successfully",
            extra={"user_id": user.id, "role": user.role.value}
        )
        return user


class PasswordResetService:
    """
    Forgot-password flow: request a code, verify it, then set a new password.
    Codes are not mailed; outside production they are written to the log.
    """

    @staticmethod
    def request_reset(db: Session, email: str) -> None:
        email = email.lower().strip()
        user = AuthService.get_user_by_email(db, email)

        if not user:
            logger.info("Password reset requested for non-existent email", extra={"email": email})
            return

        db.query(PasswordResetToken).filter(PasswordResetToken.email == email).delete()

        otp = generate_otp()
        db.add(PasswordResetToken(
            email=email,
            otp=otp,
            expires_at=get_code_expiry_time(minutes=settings.OTP_EXPIRE_MINUTES),
            used=False
        ))
        db.commit()

        if settings.ENV != "production":
            logger.info("Password reset OTP generated", extra={"user_id": user.id, "otp_code": otp})
        else:
            logger.info("Password reset OTP generated", extra={"user_id": user.id})

    @staticmethod
    def verify_otp(db: Session, email: str, otp: str) -> None:
        email = email.lower().strip()
        token = db.query(PasswordResetToken).filter(
            PasswordResetToken.email == email,
            PasswordResetToken.otp == otp,
            PasswordResetToken.used == False
        ).first()

        if not token or is_expired(token.expires_at):
            logger.warning("OTP verification failed", extra={"email": email})
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail="Invalid or expired OTP")

        token.used = True
        db.commit()

    @staticmethod
    def reset_password(db: Session, email: str, otp: str, new_password: str) -> None:
        email = email.lower().strip()
        token = db.query(PasswordResetToken).filter(
            PasswordResetToken.email == email,
            PasswordResetToken.otp == otp,
            PasswordResetToken.used == True
        ).first()

        if not token:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail="Invalid OTP or OTP not verified")

        user = AuthService.get_user_by_email(db, email)
        if not user:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail="Invalid OTP or OTP not verified")

        user.hashed_password = get_password_hash(new_password)
        db.query(PasswordResetToken).filter(PasswordResetToken.email == email).delete()
        db.commit()

        logger.info("Password reset successfully", extra={"user_id": user.id})
