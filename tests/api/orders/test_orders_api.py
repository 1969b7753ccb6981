from tests.conftest import auth_headers, csrf_headers
from models.orders import Order
from models.order_items import OrderItem


async def _place(client, headers, customer_id, *lines, **extra):
    body = {"customerId": customer_id, "items": list(lines), **extra}
    return await client.post("/orders/", json=body, headers=headers)


async def test_customer_places_order(client, session, customer, product, second_product):
    headers = await csrf_headers(client, customer)

    response = await _place(client, headers, customer.id,
                            {"productId": product.id, "quantity": 2, "size": "M"},
                            {"productId": second_product.id, "quantity": 1})

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Order created"
    assert body["orderId"] == body["data"]["id"]
    assert body["data"]["status"] == "PENDING"
    assert body["data"]["total_amount"] == "45.48"
    assert body["data"]["admin_id"] is None
    assert [line["quantity"] for line in body["data"]["items"]] == [2, 1]
    assert session.query(OrderItem).count() == 2


async def test_order_without_items(client, session, customer):
    headers = await csrf_headers(client, customer)

    response = await _place(client, headers, customer.id)

    assert response.status_code == 400
    assert response.json() == {"error": "Order must have at least one item"}
    assert session.query(Order).count() == 0


async def test_order_item_with_zero_quantity(client, customer, product):
    headers = await csrf_headers(client, customer)

    response = await _place(client, headers, customer.id, {"productId": product.id, "quantity": 0})

    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


async def test_order_with_unknown_product_is_not_created(client, session, customer, product):
    headers = await csrf_headers(client, customer)

    response = await _place(client, headers, customer.id,
                            {"productId": product.id, "quantity": 1},
                            {"productId": 9999, "quantity": 1})

    assert response.status_code == 404
    assert response.json() == {"error": "Product not found"}
    assert session.query(Order).count() == 0


async def test_order_for_someone_else(client, session, customer, other_customer, product):
    headers = await csrf_headers(client, customer)

    response = await _place(client, headers, other_customer.id, {"productId": product.id, "quantity": 1})

    assert response.status_code == 403
    assert session.query(Order).count() == 0


async def test_order_without_csrf_token(client, session, customer, product):
    response = await _place(client, auth_headers(customer), customer.id, {"productId": product.id, "quantity": 1})

    assert response.status_code == 403
    assert response.json()["error"] == "CSRF token missing"


async def test_order_requires_login(client, customer, product):
    response = await client.post("/orders/", json={
        "customerId": customer.id, "items": [{"productId": product.id, "quantity": 1}]
    })

    assert response.status_code == 401


async def test_admin_places_order_for_customer(client, customer, admin, product):
    headers = await csrf_headers(client, admin)

    response = await _place(client, headers, customer.id, {"productId": product.id, "quantity": 1})

    assert response.status_code == 201
    assert response.json()["data"]["admin_id"] == admin.id
    assert response.json()["data"]["customer_id"] == customer.id


async def test_customer_cannot_set_admin(client, customer, admin, product):
    headers = await csrf_headers(client, customer)

    response = await _place(client, headers, customer.id, {"productId": product.id, "quantity": 1},
                            adminId=admin.id)

    assert response.status_code == 201
    assert response.json()["data"]["admin_id"] is None


async def test_list_orders_is_scoped_to_caller(client, customer, other_customer, admin, product):
    mine = (await _place(client, await csrf_headers(client, customer), customer.id,
                         {"productId": product.id, "quantity": 1})).json()["orderId"]
    await _place(client, await csrf_headers(client, other_customer), other_customer.id,
                 {"productId": product.id, "quantity": 1})

    response = await client.get("/orders/", headers=auth_headers(customer))
    assert response.status_code == 200
    assert [order["id"] for order in response.json()] == [mine]

    response = await client.get("/orders/", headers=auth_headers(admin))
    assert len(response.json()) == 2


async def test_get_order(client, customer, other_customer, admin, product):
    order_id = (await _place(client, await csrf_headers(client, customer), customer.id,
                             {"productId": product.id, "quantity": 1})).json()["orderId"]

    response = await client.get(f"/orders/{order_id}", headers=auth_headers(customer))
    assert response.status_code == 200
    assert response.json()["items"][0]["price_at_time"] == "19.99"

    response = await client.get(f"/orders/{order_id}", headers=auth_headers(other_customer))
    assert response.status_code == 403

    response = await client.get(f"/orders/{order_id}", headers=auth_headers(admin))
    assert response.status_code == 200


async def test_get_missing_order(client, customer):
    response = await client.get("/orders/9999", headers=auth_headers(customer))

    assert response.status_code == 404
    assert response.json() == {"error": "Order not found"}


async def test_admin_updates_status(client, customer, admin, product):
    order_id = (await _place(client, await csrf_headers(client, customer), customer.id,
                             {"productId": product.id, "quantity": 1})).json()["orderId"]
    headers = await csrf_headers(client, admin)

    response = await client.put(f"/orders/{order_id}", json={"status": "SHIPPED"}, headers=headers)

    assert response.status_code == 200
    assert response.json()["status"] == "SHIPPED"


async def test_invalid_status(client, customer, admin, product):
    order_id = (await _place(client, await csrf_headers(client, customer), customer.id,
                             {"productId": product.id, "quantity": 1})).json()["orderId"]
    headers = await csrf_headers(client, admin)

    response = await client.put(f"/orders/{order_id}", json={"status": "LOST"}, headers=headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid order status"}


async def test_customer_cannot_update_status(client, customer, product):
    headers = await csrf_headers(client, customer)
    order_id = (await _place(client, headers, customer.id,
                             {"productId": product.id, "quantity": 1})).json()["orderId"]

    response = await client.put(f"/orders/{order_id}", json={"status": "DELIVERED"}, headers=headers)

    assert response.status_code == 403
    assert response.json()["error"] == "Forbidden: Insufficient permissions"


async def test_admin_deletes_order(client, session, customer, admin, product):
    order_id = (await _place(client, await csrf_headers(client, customer), customer.id,
                             {"productId": product.id, "quantity": 1})).json()["orderId"]

    response = await client.delete(f"/orders/{order_id}", headers=await csrf_headers(client, admin))
    assert response.status_code == 200
    assert response.json() == {"message": "Order deleted successfully"}
    assert session.query(OrderItem).count() == 0

    response = await client.delete(f"/orders/{order_id}", headers=await csrf_headers(client, admin))
    assert response.status_code == 404


async def test_customer_cannot_delete_order(client, session, customer, product):
    order_id = (await _place(client, await csrf_headers(client, customer), customer.id,
                             {"productId": product.id, "quantity": 1})).json()["orderId"]

    response = await client.delete(f"/orders/{order_id}", headers=await csrf_headers(client, customer))

    assert response.status_code == 403
    assert session.get(Order, order_id) is not None
