import pytest

CART = "/api/v1/cart"


def totals(cart):
    return (
        sum(line["quantity"] for line in cart["products"]),
        round(sum(line["product"]["price"] * line["quantity"] for line in cart["products"]), 2),
    )


async def test_get_cart_without_cart_returns_empty_structure(client, customer):
    resp = await client.get(f"{CART}/get-cart", headers=customer.headers)
    assert resp.status_code == 200
    cart = resp.json()["cart"]
    assert cart == {"id": None, "products": [], "total_quantity": 0, "total_price": 0.0}


async def test_cart_requires_authentication(client):
    resp = await client.get(f"{CART}/get-cart")
    assert resp.status_code == 401
    assert resp.json()["success"] is False


async def test_create_cart_is_idempotent(client, customer):
    first = await client.post(f"{CART}/create-cart", headers=customer.headers)
    second = await client.post(f"{CART}/create-cart", headers=customer.headers)
    assert first.status_code == 201
    assert first.json()["cart"]["id"] == second.json()["cart"]["id"]


async def test_create_cart_with_product(client, customer, make_product):
    product = await make_product(price=7.5)
    resp = await client.post(
        f"{CART}/create-cart/{product.id}", json={"quantity": 2}, headers=customer.headers
    )
    assert resp.status_code == 201
    cart = resp.json()["cart"]
    assert cart["total_quantity"] == 2
    assert cart["total_price"] == 15.0
    assert cart["products"][0]["product"]["name"] == product.name


async def test_add_product_twice_merges_line(client, customer, make_product):
    product = await make_product(price=3.0)
    await client.post(f"{CART}/add-product/{product.id}", json={"quantity": 1}, headers=customer.headers)
    resp = await client.post(f"{CART}/add-product/{product.id}", json={"quantity": 4}, headers=customer.headers)

    cart = resp.json()["cart"]
    assert len(cart["products"]) == 1
    assert cart["products"][0]["quantity"] == 5
    assert cart["total_price"] == 15.0


async def test_add_product_defaults_to_one(client, customer, make_product):
    product = await make_product()
    resp = await client.post(f"{CART}/add-product/{product.id}", headers=customer.headers)
    assert resp.status_code == 200
    assert resp.json()["cart"]["total_quantity"] == 1


@pytest.mark.parametrize("quantity", [0, -3])
async def test_add_product_rejects_non_positive_quantity(client, customer, make_product, quantity):
    product = await make_product()
    resp = await client.post(
        f"{CART}/add-product/{product.id}", json={"quantity": quantity}, headers=customer.headers
    )
    assert resp.status_code == 400


async def test_add_unknown_product_is_404(client, customer):
    resp = await client.post(f"{CART}/add-product/missing", json={"quantity": 1}, headers=customer.headers)
    assert resp.status_code == 404


async def test_add_unavailable_product_is_400(client, customer, make_product):
    product = await make_product(available=False)
    resp = await client.post(f"{CART}/add-product/{product.id}", json={"quantity": 1}, headers=customer.headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Product is not available"


async def test_totals_follow_interleaved_operations(client, customer, make_product):
    pizza = await make_product(name="Pizza", price=12.5)
    salad = await make_product(name="Salad", price=6.25)
    h = customer.headers

    await client.post(f"{CART}/add-product/{pizza.id}", json={"quantity": 3}, headers=h)
    await client.post(f"{CART}/add-product/{salad.id}", json={"quantity": 2}, headers=h)
    await client.patch(f"{CART}/{pizza.id}", headers=h)
    await client.patch(f"{CART}/update-quantity/{salad.id}", json={"quantity": 5}, headers=h)
    resp = await client.post(f"{CART}/add-product/{pizza.id}", json={"quantity": 1}, headers=h)

    cart = resp.json()["cart"]
    assert (cart["total_quantity"], cart["total_price"]) == totals(cart)
    assert cart["total_quantity"] == 8
    assert cart["total_price"] == 68.75


async def test_set_quantity_zero_removes_line(client, customer, make_product):
    pizza = await make_product(name="Pizza", price=10)
    salad = await make_product(name="Salad", price=5)
    h = customer.headers
    await client.post(f"{CART}/add-product/{pizza.id}", json={"quantity": 2}, headers=h)
    await client.post(f"{CART}/add-product/{salad.id}", json={"quantity": 1}, headers=h)

    resp = await client.patch(f"{CART}/update-quantity/{pizza.id}", json={"quantity": 0}, headers=h)
    cart = resp.json()["cart"]
    assert [line["product"]["id"] for line in cart["products"]] == [salad.id]
    assert cart["total_price"] == 5.0


async def test_set_quantity_negative_is_rejected(client, customer, make_product):
    product = await make_product()
    await client.post(f"{CART}/add-product/{product.id}", headers=customer.headers)
    resp = await client.patch(
        f"{CART}/update-quantity/{product.id}", json={"quantity": -1}, headers=customer.headers
    )
    assert resp.status_code == 400


async def test_set_quantity_without_cart_is_404(client, customer, make_product):
    product = await make_product()
    resp = await client.patch(
        f"{CART}/update-quantity/{product.id}", json={"quantity": 2}, headers=customer.headers
    )
    assert resp.status_code == 404
    assert resp.json()["message"] == "Cart not found"


async def test_set_quantity_for_product_not_in_cart_is_404(client, customer, make_product):
    in_cart = await make_product(name="In")
    not_in_cart = await make_product(name="Out")
    await client.post(f"{CART}/add-product/{in_cart.id}", headers=customer.headers)
    resp = await client.patch(
        f"{CART}/update-quantity/{not_in_cart.id}", json={"quantity": 2}, headers=customer.headers
    )
    assert resp.status_code == 404
    assert resp.json()["message"] == "Product not found in cart"


async def test_decrement_below_one_removes_line(client, customer, make_product):
    product = await make_product(price=4)
    await client.post(f"{CART}/add-product/{product.id}", json={"quantity": 2}, headers=customer.headers)

    resp = await client.patch(f"{CART}/{product.id}", headers=customer.headers)
    assert resp.json()["cart"]["total_quantity"] == 1

    resp = await client.patch(f"{CART}/{product.id}", headers=customer.headers)
    cart = resp.json()["cart"]
    assert cart["products"] == []
    assert cart["total_price"] == 0


async def test_remove_all_subtracts_full_contribution(client, customer, make_product):
    pizza = await make_product(name="Pizza", price=9)
    salad = await make_product(name="Salad", price=4)
    h = customer.headers
    await client.post(f"{CART}/add-product/{pizza.id}", json={"quantity": 3}, headers=h)
    await client.post(f"{CART}/add-product/{salad.id}", json={"quantity": 2}, headers=h)

    resp = await client.patch(f"{CART}/remove-all-same-products/{pizza.id}", headers=h)
    cart = resp.json()["cart"]
    assert cart["total_quantity"] == 2
    assert cart["total_price"] == 8.0


async def test_clear_cart_keeps_cart(client, customer, make_product):
    product = await make_product()
    created = await client.post(f"{CART}/add-product/{product.id}", headers=customer.headers)

    resp = await client.patch(f"{CART}/clear-cart", headers=customer.headers)
    cart = resp.json()["cart"]
    assert cart["id"] == created.json()["cart"]["id"]
    assert cart["products"] == []


async def test_delete_cart(client, customer, make_product):
    product = await make_product()
    await client.post(f"{CART}/add-product/{product.id}", headers=customer.headers)

    resp = await client.delete(f"{CART}/delete-cart", headers=customer.headers)
    assert resp.status_code == 200

    resp = await client.delete(f"{CART}/delete-cart", headers=customer.headers)
    assert resp.status_code == 404


async def test_totals_use_current_product_price(client, customer, admin, make_product):
    product = await make_product(price=10)
    await client.post(f"{CART}/add-product/{product.id}", json={"quantity": 2}, headers=customer.headers)

    await client.patch(f"/api/v1/product/{product.id}", json={"price": 11.5}, headers=admin.headers)
    resp = await client.get(f"{CART}/get-cart", headers=customer.headers)
    assert resp.json()["cart"]["total_price"] == 23.0


async def test_admin_can_view_any_cart(client, customer, admin, make_product):
    product = await make_product()
    await client.post(f"{CART}/add-product/{product.id}", headers=customer.headers)

    resp = await client.get(f"{CART}/get-cart/{customer.id}", headers=admin.headers)
    assert resp.json()["cart"]["total_quantity"] == 1

    resp = await client.get(f"{CART}/get-cart/{admin.id}", headers=customer.headers)
    assert resp.status_code == 403
