from middleware.rate_limiter import limiter, AUTH_LIMIT, OTP_LIMIT
from tests.conftest import TEST_PASSWORD
from core.config import settings


def test_rate_limiter_disabled_in_testing():
    """Verify rate limiter is disabled during tests."""

    assert settings.ENV == "testing"
    assert limiter.enabled is False


async def test_can_make_multiple_requests_in_tests(client, customer):
    """Verify rate limiting doesn't interfere with tests."""
    for i in range(10):
        response = await client.post("/auth/token", data={
            "username": customer.email,
            "password": "WrongPassword123!"
        })
        assert response.status_code == 401


async def test_sixth_failed_login_is_blocked(client, customer, rate_limited):
    for _ in range(5):
        response = await client.post("/auth/token", data={
            "username": customer.email,
            "password": "WrongPassword123!"
        })
        assert response.status_code == 401

    response = await client.post("/auth/token", data={
        "username": customer.email,
        "password": TEST_PASSWORD
    })

    assert response.status_code == 429
    assert response.json()["error"] == AUTH_LIMIT.message
    assert 0 < response.json()["retry_after"] <= AUTH_LIMIT.window_seconds
    assert response.headers["retry-after"] == str(response.json()["retry_after"])


async def test_successful_logins_do_not_count(client, customer, rate_limited):
    for _ in range(10):
        response = await client.post("/auth/token", data={
            "username": customer.email,
            "password": TEST_PASSWORD
        })
        assert response.status_code == 200


async def test_otp_attempts_all_count(client, customer, rate_limited):
    for _ in range(3):
        response = await client.post("/auth/verify-otp", json={"email": customer.email, "otp": "123456"})
        assert response.status_code == 400

    response = await client.post("/auth/verify-otp", json={"email": customer.email, "otp": "123456"})

    assert response.status_code == 429
    assert response.json()["error"] == OTP_LIMIT.message


async def test_password_reset_requests_limited(client, customer, rate_limited):
    for _ in range(3):
        response = await client.post("/auth/forgot-password", json={"email": customer.email})
        assert response.status_code == 200

    response = await client.post("/auth/forgot-password", json={"email": customer.email})

    assert response.status_code == 429


async def test_limits_are_per_policy(client, customer, rate_limited):
    for _ in range(3):
        await client.post("/auth/verify-otp", json={"email": customer.email, "otp": "123456"})

    response = await client.post("/auth/token", data={"username": customer.email, "password": TEST_PASSWORD})

    assert response.status_code == 200


async def test_general_api_limit_counts_failures(client, rate_limited):
    for _ in range(100):
        response = await client.get("/products/9999")
        assert response.status_code == 404

    response = await client.get("/health")

    assert response.status_code == 429
    assert "too many requests" in response.json()["error"].lower()
