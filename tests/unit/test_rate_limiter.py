from limits import RateLimitItemPerMinute
from middleware.rate_limiter import (RateLimiter, RateLimitExceeded, RateLimitPolicy,
                                     API_LIMIT, AUTH_LIMIT, OTP_LIMIT, PASSWORD_RESET_LIMIT,
                                     REGISTER_LIMIT, UPLOAD_LIMIT)
import pytest


@pytest.fixture
def rate_limiter():
    return RateLimiter()


def test_policy_table():
    assert (API_LIMIT.item.amount, API_LIMIT.window_seconds, API_LIMIT.count_failed_only) == (100, 900, True)
    assert (AUTH_LIMIT.item.amount, AUTH_LIMIT.window_seconds, AUTH_LIMIT.count_failed_only) == (5, 900, True)
    assert (OTP_LIMIT.item.amount, OTP_LIMIT.window_seconds, OTP_LIMIT.count_failed_only) == (3, 600, False)
    assert (PASSWORD_RESET_LIMIT.item.amount, PASSWORD_RESET_LIMIT.window_seconds) == (3, 3600)
    assert PASSWORD_RESET_LIMIT.count_failed_only is False
    assert (REGISTER_LIMIT.item.amount, REGISTER_LIMIT.window_seconds, REGISTER_LIMIT.count_failed_only) == (5, 3600, True)
    assert (UPLOAD_LIMIT.item.amount, UPLOAD_LIMIT.window_seconds, UPLOAD_LIMIT.count_failed_only) == (20, 900, False)


def test_counting_policy_rejects_after_limit(rate_limiter):
    for _ in range(3):
        rate_limiter.before_request(OTP_LIMIT, "10.0.0.1")

    with pytest.raises(RateLimitExceeded) as exc_info:
        rate_limiter.before_request(OTP_LIMIT, "10.0.0.1")

    exc = exc_info.value
    assert exc.status_code == 429
    assert exc.detail["error"] == OTP_LIMIT.message
    assert 0 < exc.retry_after <= OTP_LIMIT.window_seconds
    assert exc.headers["Retry-After"] == str(exc.retry_after)


def test_failed_only_policy_ignores_successes(rate_limiter):
    for _ in range(20):
        rate_limiter.before_request(AUTH_LIMIT, "10.0.0.1")
        rate_limiter.after_request(AUTH_LIMIT, "10.0.0.1", failed=False)

    assert rate_limiter.is_exhausted(AUTH_LIMIT, "10.0.0.1") is False


def test_failed_only_policy_blocks_sixth_attempt(rate_limiter):
    for _ in range(5):
        rate_limiter.before_request(AUTH_LIMIT, "10.0.0.1")
        rate_limiter.after_request(AUTH_LIMIT, "10.0.0.1", failed=True)

    with pytest.raises(RateLimitExceeded):
        rate_limiter.before_request(AUTH_LIMIT, "10.0.0.1")


def test_clients_are_counted_separately(rate_limiter):
    for _ in range(3):
        rate_limiter.before_request(OTP_LIMIT, "10.0.0.1")

    rate_limiter.before_request(OTP_LIMIT, "10.0.0.2")


def test_policies_are_counted_separately(rate_limiter):
    for _ in range(3):
        rate_limiter.before_request(OTP_LIMIT, "10.0.0.1")

    rate_limiter.before_request(PASSWORD_RESET_LIMIT, "10.0.0.1")


def test_reset_clears_counters(rate_limiter):
    policy = RateLimitPolicy(name="tiny", item=RateLimitItemPerMinute(1), message="slow down")
    rate_limiter.before_request(policy, "10.0.0.1")

    rate_limiter.reset()

    rate_limiter.before_request(policy, "10.0.0.1")
