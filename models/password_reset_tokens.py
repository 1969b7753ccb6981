from core.database import Base
from sqlalchemy import Column, Boolean, DateTime, String, Integer
from models.mixins import CreatedAtMixin

class PasswordResetToken(Base, CreatedAtMixin):
    """
    One-time codes for the forgot-password flow.

    A code is issued by /auth/forgot-password, flipped to `used` by
    /auth/verify-otp and consumed (deleted) by /auth/reset-password.
    """
    __tablename__ = "password_reset_tokens"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    email = Column(String, nullable=False, index=True)
    otp = Column(String(6), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, default=False, nullable=False)
