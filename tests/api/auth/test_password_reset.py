from models.password_reset_tokens import PasswordResetToken
from utils.hashing import verify_password
from datetime import datetime, timezone


def _stored_otp(session, email):
    return session.query(PasswordResetToken).filter(PasswordResetToken.email == email).one()


async def test_forgot_password_success(client, customer, session):
    """Test successful password reset request."""
    response = await client.post("/auth/forgot-password", json={
        "email": customer.email
    })

    assert response.status_code == 200
    assert "verification code" in response.json()["message"].lower()
    assert response.json()["expiresIn"] == "10 minutes"

    # Verify the code was stored
    token = _stored_otp(session, customer.email)
    assert token.otp.isdigit()
    assert token.expires_at.replace(tzinfo=timezone.utc) > datetime.now(timezone.utc)


async def test_forgot_password_nonexistent_user(client):
    """Test password reset for non-existent email (doesn't leak user existence)."""
    response = await client.post("/auth/forgot-password", json={
        "email": "nonexistent@example.com"
    })

    # Should return same message (don't leak user existence)
    assert response.status_code == 200
    assert "verification code" in response.json()["message"].lower()


async def test_reset_password_success(client, customer, session):
    """Test the full forgot / verify / reset flow."""
    await client.post("/auth/forgot-password", json={"email": customer.email})
    otp = _stored_otp(session, customer.email).otp

    response = await client.post("/auth/verify-otp", json={"email": customer.email, "otp": otp})
    assert response.status_code == 200

    new_password = "NewSecurePass123!"
    response = await client.post("/auth/reset-password", json={
        "email": customer.email,
        "otp": otp,
        "new_password": new_password
    })

    assert response.status_code == 200
    assert "password reset" in response.json()["message"].lower()

    # Verify password was changed
    session.refresh(customer)
    assert verify_password(new_password, customer.hashed_password)

    # Old password no longer works, new one does
    login = await client.post("/auth/token", data={"username": customer.email, "password": new_password})
    assert login.status_code == 200


async def test_verify_wrong_otp(client, customer, session):
    await client.post("/auth/forgot-password", json={"email": customer.email})
    otp = _stored_otp(session, customer.email).otp
    wrong = "000000" if otp != "000000" else "111111"

    response = await client.post("/auth/verify-otp", json={"email": customer.email, "otp": wrong})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid or expired OTP"}


async def test_reset_without_verification(client, customer, session):
    await client.post("/auth/forgot-password", json={"email": customer.email})
    otp = _stored_otp(session, customer.email).otp

    response = await client.post("/auth/reset-password", json={
        "email": customer.email,
        "otp": otp,
        "new_password": "NewSecurePass123!"
    })

    assert response.status_code == 400


async def test_reset_weak_password(client, customer):
    response = await client.post("/auth/reset-password", json={
        "email": customer.email,
        "otp": "123456",
        "new_password": "weak"
    })

    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"
