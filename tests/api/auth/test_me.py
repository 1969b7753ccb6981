from tests.conftest import auth_headers
from services.token_service import TokenService
from core.config import settings
from datetime import datetime, timedelta, timezone
from jose import jwt


async def test_get_me(client, customer):
    response = await client.get("/auth/me", headers=auth_headers(customer))

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == customer.id
    assert data["email"] == customer.email
    assert data["role"] == "customer"
    assert "hashed_password" not in data


async def test_get_me_without_token(client):
    response = await client.get("/auth/me")

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}
    assert response.headers["www-authenticate"] == "Bearer"


async def test_get_me_with_garbage_token(client):
    response = await client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json() == {"error": "Could not validate credentials."}


async def test_get_me_with_expired_token(client, customer):
    token = TokenService.create_access_token(customer.id, customer.role, expires_delta=timedelta(minutes=-1))

    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


async def test_get_me_with_unknown_role(client, customer):
    token = jwt.encode(
        {"id": customer.id, "role": "root", "type": "access",
         "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.SECRET_KEY, algorithm=settings.ALGORITHM
    )

    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


async def test_get_me_deleted_account(client, session, customer):
    headers = auth_headers(customer)
    session.delete(customer)
    session.commit()

    response = await client.get("/auth/me", headers=headers)

    assert response.status_code == 404
