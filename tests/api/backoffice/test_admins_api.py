from tests.conftest import auth_headers, csrf_headers
from core.roles import Role
from models.users import User


async def test_admin_lists_admins(client, admin, super_admin, customer):
    response = await client.get("/admins/", headers=auth_headers(admin))

    assert response.status_code == 200
    assert {a["email"] for a in response.json()} == {admin.email, super_admin.email}


async def test_customer_cannot_reach_admins(client, customer, admin):
    response = await client.get(f"/admins/{admin.id}", headers=auth_headers(customer))

    assert response.status_code == 403


async def test_super_admin_creates_admin(client, session, super_admin):
    headers = await csrf_headers(client, super_admin)

    response = await client.post("/admins/", headers=headers, json={
        "name": "New Admin",
        "email": "newadmin@example.com",
        "password": "AdminPass123!"
    })

    assert response.status_code == 201
    assert response.json()["role"] == "admin"
    assert session.query(User).filter(User.email == "newadmin@example.com").one().role == Role.ADMIN


async def test_create_admin_accepts_spaced_role(client, super_admin):
    headers = await csrf_headers(client, super_admin)

    response = await client.post("/admins/", headers=headers, json={
        "name": "Another Root",
        "email": "root2@example.com",
        "password": "AdminPass123!",
        "role": "super admin"
    })

    assert response.status_code == 201
    assert response.json()["role"] == "super_admin"


async def test_create_admin_with_customer_role(client, super_admin):
    headers = await csrf_headers(client, super_admin)

    response = await client.post("/admins/", headers=headers, json={
        "name": "Not Admin",
        "email": "notadmin@example.com",
        "password": "AdminPass123!",
        "role": "customer"
    })

    assert response.status_code == 400


async def test_plain_admin_cannot_create_admins(client, admin):
    headers = await csrf_headers(client, admin)

    response = await client.post("/admins/", headers=headers, json={
        "name": "New Admin",
        "email": "newadmin@example.com",
        "password": "AdminPass123!"
    })

    assert response.status_code == 403
    assert response.json()["required"] == ["super_admin"]


async def test_plain_admin_cannot_change_roles(client, admin, super_admin):
    headers = await csrf_headers(client, admin)

    response = await client.put(f"/admins/{admin.id}", headers=headers, json={"role": "super_admin"})

    assert response.status_code == 403
    assert response.json() == {"error": "Forbidden: Only a super admin can change roles"}


async def test_super_admin_changes_role(client, admin, super_admin):
    headers = await csrf_headers(client, super_admin)

    response = await client.put(f"/admins/{admin.id}", headers=headers, json={"role": "super_admin"})

    assert response.status_code == 200
    assert response.json()["role"] == "super_admin"


async def test_admin_cannot_delete_self(client, admin):
    headers = await csrf_headers(client, admin)

    response = await client.delete(f"/admins/{admin.id}", headers=headers)

    assert response.status_code == 400


async def test_admin_deletes_other_admin(client, session, admin, super_admin):
    admin_id = admin.id
    headers = await csrf_headers(client, super_admin)

    response = await client.delete(f"/admins/{admin_id}", headers=headers)

    assert response.status_code == 200
    session.expire_all()
    assert session.get(User, admin_id) is None
