CATEGORY = "/api/v1/category"
PRODUCT = "/api/v1/product"

PNG = b"\x89PNG\r\n\x1a\n" + b"0" * 64


def image_files(*names, content_type="image/png"):
    return [("images", (name, PNG, content_type)) for name in names]


async def create_category(client, admin, name="Desserts"):
    resp = await client.post(
        f"{CATEGORY}/create-category", json={"name": name, "description": "Sweet things"}, headers=admin.headers
    )
    return resp


async def list_product(client, admin, category_id, files=None, **fields):
    form = {"name": "Tiramisu", "description": "Coffee and mascarpone", "price": "8.5", "ingredients": "coffee, cocoa"}
    form.update(fields)
    return await client.post(
        f"{PRODUCT}/create-product/{category_id}",
        data=form,
        files=files if files is not None else image_files("a.png"),
        headers=admin.headers,
    )


# ---------- categories ----------
async def test_category_crud(client, admin):
    resp = await create_category(client, admin)
    assert resp.status_code == 201
    category_id = resp.json()["data"]["id"]

    assert (await create_category(client, admin)).status_code == 400

    resp = await client.patch(f"{CATEGORY}/{category_id}", json={"description": "Cakes"}, headers=admin.headers)
    assert resp.json()["data"]["description"] == "Cakes"

    resp = await client.patch(f"{CATEGORY}/{category_id}", json={}, headers=admin.headers)
    assert resp.status_code == 400

    resp = await client.get(f"{CATEGORY}/{category_id}", headers=admin.headers)
    assert resp.json()["data"]["products"] == []

    resp = await client.delete(f"{CATEGORY}/{category_id}", headers=admin.headers)
    assert resp.status_code == 200
    resp = await client.get(f"{CATEGORY}/{category_id}", headers=admin.headers)
    assert resp.status_code == 404


async def test_customers_cannot_manage_categories(client, customer):
    resp = await create_category(client, customer)
    assert resp.status_code == 403
    assert resp.json() == {"success": False, "message": "Admin access only"}


async def test_all_categories_is_public_and_paginated(client, admin, make_product, make_category):
    category = await make_category(name="Mains")
    await make_product(name="Steak", category=category)
    await make_category(name="Sides")

    resp = await client.get(f"{CATEGORY}/all-categories?limit=1")
    body = resp.json()
    assert [c["name"] for c in body["data"]] == ["Mains"]
    assert [p["name"] for p in body["data"][0]["products"]] == ["Steak"]
    assert body["pagination"]["totalCategories"] == 2
    assert body["pagination"]["hasNextPage"] is True

    resp = await client.get(f"{CATEGORY}/all-categories?page=2&limit=1")
    assert [c["name"] for c in resp.json()["data"]] == ["Sides"]
    assert resp.json()["pagination"]["hasNextPage"] is False


# ---------- products ----------
async def test_list_product_with_images(client, admin, image_store):
    category_id = (await create_category(client, admin)).json()["data"]["id"]
    resp = await list_product(client, admin, category_id, files=image_files("a.png", "b.png"))
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["price"] == 8.5
    assert data["ingredients"] == ["coffee", "cocoa"]
    assert len(data["images"]) == 2
    assert all(url.startswith("https://cdn.test/") for url in data["images"])
    assert len(image_store.saved) == 2


async def test_list_product_validation(client, admin, image_store):
    category_id = (await create_category(client, admin)).json()["data"]["id"]

    resp = await list_product(client, admin, category_id, price="0")
    assert resp.status_code == 400
    resp = await list_product(client, admin, category_id, description="x" * 501)
    assert resp.status_code == 400
    resp = await list_product(client, admin, category_id, files=image_files("a.gif", content_type="image/gif"))
    assert resp.status_code == 400
    resp = await list_product(client, admin, "missing-category")
    assert resp.status_code == 404
    assert image_store.saved == {}


async def test_image_management_keeps_at_least_one(client, admin, image_store):
    category_id = (await create_category(client, admin)).json()["data"]["id"]
    product = (await list_product(client, admin, category_id)).json()["data"]
    first_key = next(iter(image_store.saved))

    resp = await client.delete(f"{PRODUCT}/{product['id']}/images", params={"key": first_key}, headers=admin.headers)
    assert resp.status_code == 400

    resp = await client.post(f"{PRODUCT}/{product['id']}/images", files=image_files("c.png"), headers=admin.headers)
    assert len(resp.json()["data"]["images"]) == 2

    resp = await client.delete(f"{PRODUCT}/{product['id']}/images", params={"key": first_key}, headers=admin.headers)
    assert resp.status_code == 200
    assert len(resp.json()["data"]["images"]) == 1
    assert image_store.deleted == [first_key]


async def test_toggle_update_and_change_category(client, admin, make_product, make_category):
    product = await make_product(price=5)
    other = await make_category(name="Specials")

    resp = await client.patch(f"{PRODUCT}/toggle-availability/{product.id}", headers=admin.headers)
    assert resp.json()["data"]["is_available"] is False

    resp = await client.patch(f"{PRODUCT}/{product.id}", json={"price": 6.5, "name": "Better"}, headers=admin.headers)
    assert (resp.json()["data"]["price"], resp.json()["data"]["name"]) == (6.5, "Better")

    resp = await client.patch(f"{PRODUCT}/{product.id}", json={"price": -1}, headers=admin.headers)
    assert resp.status_code == 400

    resp = await client.patch(f"{PRODUCT}/change-category/{product.id}/{other.id}", headers=admin.headers)
    assert resp.json()["data"]["category_id"] == other.id


async def test_product_listing_filters(client, make_product, make_category):
    mains = await make_category(name="Mains")
    await make_product(name="Steak", category=mains)
    await make_product(name="Fish", category=mains, available=False)
    await make_product(name="Soup")

    resp = await client.get(PRODUCT, params={"category_id": mains.id})
    assert resp.json()["pagination"]["totalProducts"] == 2

    resp = await client.get(PRODUCT, params={"category_id": mains.id, "available": "true"})
    assert [p["name"] for p in resp.json()["data"]] == ["Steak"]

    resp = await client.get(PRODUCT, params={"limit": 0})
    assert resp.status_code == 400


async def test_delete_product_removes_stored_images(client, admin, image_store):
    category_id = (await create_category(client, admin)).json()["data"]["id"]
    product = (await list_product(client, admin, category_id)).json()["data"]
    keys = list(image_store.saved)

    resp = await client.delete(f"{PRODUCT}/{product['id']}", headers=admin.headers)
    assert resp.status_code == 200
    assert image_store.deleted == keys
    assert (await client.get(f"{PRODUCT}/{product['id']}")).status_code == 404


async def test_deleting_product_drops_it_from_carts(client, customer, admin, make_product):
    product = await make_product()
    await client.post(f"/api/v1/cart/add-product/{product.id}", headers=customer.headers)

    await client.delete(f"{PRODUCT}/{product.id}", headers=admin.headers)
    resp = await client.get("/api/v1/cart/get-cart", headers=customer.headers)
    assert resp.json()["cart"]["products"] == []


async def test_non_finite_prices_are_rejected(client, customer, admin, make_product, make_address):
    category_id = (await create_category(client, admin)).json()["data"]["id"]
    for bad in ("inf", "nan", "-inf"):
        resp = await list_product(client, admin, category_id, price=bad)
        assert resp.status_code == 400

    product = await make_product(price=5)
    for bad in ("inf", "nan", "Infinity"):
        resp = await client.patch(f"{PRODUCT}/{product.id}", json={"price": bad}, headers=admin.headers)
        assert resp.status_code == 400

    resp = await client.get(f"{PRODUCT}/{product.id}")
    assert resp.json()["data"]["price"] == 5

    address = await make_address(customer.user)
    resp = await client.post(
        f"/api/v1/order/create-order-product/{product.id}/{address.id}", json={"quantity": 1}, headers=customer.headers
    )
    assert resp.status_code == 201
    assert resp.json()["order"]["total_price"] == 5
