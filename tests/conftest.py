import os

os.environ["ENV"] = "testing"
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-at-least-32-characters-long")
os.environ.setdefault("LOG_DIR", "logs")

import pytest
from decimal import Decimal
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from main import app
from core.database import Base, build_engine
from core.roles import Role
from models.categories import Category
from models.products import Product
from models.users import User
from middleware.rate_limiter import limiter
from services.token_service import TokenService
from utils.deps import get_db
from utils.hashing import get_password_hash

# SYNC SQLite for testing (matches sync service layer)
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = build_engine(SQLALCHEMY_DATABASE_URL)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

TEST_PASSWORD = "TestPassword123!"


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """
    Creates a fresh, empty database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
async def client(session: Session):
    """
    Yields an HTTP client that talks to the app using the test database.
    """
    def override_get_db():
        try:
            yield session
        finally:
            pass  # Session cleanup handled by session fixture

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def rate_limited():
    """Turn the (normally disabled) rate limiter on for one test."""
    limiter.reset()
    limiter.enabled = True
    yield limiter
    limiter.enabled = False
    limiter.reset()


def make_user(session: Session, email: str, role: Role = Role.CUSTOMER,
              name: str = "Test User", is_active: bool = True) -> User:
    user = User(
        name=name,
        email=email,
        phone_number="+201111111111",
        hashed_password=get_password_hash(TEST_PASSWORD),
        role=role,
        is_active=is_active
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    token = TokenService.create_access_token(user.id, user.role, email=user.email)
    return {"Authorization": f"Bearer {token}"}


async def csrf_headers(client: AsyncClient, user: User | None = None) -> dict:
    """Fetch a CSRF token (bound to `user` when given) and return request headers carrying both."""
    headers = auth_headers(user) if user is not None else {}
    response = await client.get("/csrf-token", headers=headers)
    assert response.status_code == 200
    return {**headers, "X-CSRF-Token": response.json()["csrfToken"]}


@pytest.fixture
def customer(session):
    return make_user(session, "customer@example.com", name="Customer One")


@pytest.fixture
def other_customer(session):
    return make_user(session, "other@example.com", name="Customer Two")


@pytest.fixture
def admin(session):
    return make_user(session, "admin@example.com", role=Role.ADMIN, name="Admin")


@pytest.fixture
def super_admin(session):
    return make_user(session, "root@example.com", role=Role.SUPER_ADMIN, name="Root")


@pytest.fixture
def category(session):
    model = Category(name="Mechanical Seals", description="Seals and gaskets")
    session.add(model)
    session.commit()
    session.refresh(model)
    return model


@pytest.fixture
def product(session, category):
    model = Product(
        name="Shaft Seal",
        category_id=category.id,
        price=Decimal("19.99"),
        sizes=["S", "M", "L"],
        descriptions=["small", "medium", "large"],
        images=["/uploads/shaft-seal.jpg"]
    )
    session.add(model)
    session.commit()
    session.refresh(model)
    return model


@pytest.fixture
def second_product(session, category):
    model = Product(
        name="Pump Gasket",
        category_id=category.id,
        price=Decimal("5.50"),
        sizes=["M"],
        descriptions=["medium"],
        images=["/uploads/pump-gasket.jpg"]
    )
    session.add(model)
    session.commit()
    session.refresh(model)
    return model
