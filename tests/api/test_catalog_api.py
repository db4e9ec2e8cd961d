from decimal import Decimal

from tests.factories import auth

NEW_PRODUCT = {
    "name": "Carbon Wheelset",
    "slug": "carbon-wheelset",
    "price": "899.00",
    "brand": "Zipp",
}


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")

        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestBrowseCatalog:
    def test_list_categories(self, client, catalog):
        resp = client.get("/categories")

        assert resp.status_code == 200
        assert [c["slug"] for c in resp.json()] == ["accessories", "apparel"]

    def test_category_by_slug(self, client, catalog):
        assert client.get("/categories/apparel").json()["name"] == "Apparel"
        assert client.get("/categories/bikes").status_code == 404

    def test_search_products(self, client, catalog):
        resp = client.get("/products", params={"category": catalog["categories"]["accessories"].id, "sort_by": "price-asc"})

        body = resp.json()
        assert body["total"] == 3
        assert [p["slug"] for p in body["products"]] == [
            "insulated-water-bottle",
            "ultra-bright-bike-lights",
            "pro-trail-helmet",
        ]

    def test_featured_and_new_flags(self, client, catalog):
        featured = client.get("/products", params={"featured": "true"}).json()
        new = client.get("/products", params={"new": "true"}).json()

        assert featured["total"] == 2
        assert [p["slug"] for p in new["products"]] == ["ultra-bright-bike-lights"]

    def test_paging(self, client, catalog):
        body = client.get("/products", params={"sort_by": "price-desc", "limit": 2}).json()

        assert body["total"] == 5
        assert [Decimal(p["price"]) for p in body["products"]] == [Decimal("149.99"), Decimal("100.00")]

    def test_bad_sort(self, client, catalog):
        resp = client.get("/products", params={"sort_by": "popular"})

        assert resp.status_code == 400
        assert "sort_by" in resp.json()["detail"]["fields"]

    def test_bad_query_param(self, client, catalog):
        resp = client.get("/products", params={"limit": 0})

        assert resp.status_code == 400
        assert "query.limit" in resp.json()["detail"]["fields"]

    def test_product_by_slug(self, client, catalog):
        resp = client.get("/products/pro-trail-helmet")

        assert resp.status_code == 200
        assert Decimal(resp.json()["price"]) == Decimal("100.00")
        assert client.get("/products/unicycle").status_code == 404


class TestManageCatalog:
    def test_admin_creates_product(self, client, users, catalog):
        payload = {**NEW_PRODUCT, "category_id": catalog["categories"]["accessories"].id}

        resp = client.post("/products", json=payload, headers=auth(users["admin"]))

        assert resp.status_code == 201
        assert resp.json()["slug"] == "carbon-wheelset"
        assert client.get("/products/carbon-wheelset").status_code == 200

    def test_shoppers_cannot_write(self, client, users, catalog):
        payload = {**NEW_PRODUCT, "category_id": catalog["categories"]["accessories"].id}

        assert client.post("/products", json=payload, headers=auth(users["alice"])).status_code == 403
        assert client.post("/products", json=payload).status_code == 403
        assert client.delete(f"/products/{catalog['helmet'].id}", headers=auth(users["alice"])).status_code == 403

    def test_unknown_category(self, client, users, catalog):
        resp = client.post("/products", json={**NEW_PRODUCT, "category_id": 999}, headers=auth(users["admin"]))

        assert resp.status_code == 400
        assert "category_id" in resp.json()["detail"]["fields"]

    def test_invalid_payload(self, client, users, catalog):
        payload = {**NEW_PRODUCT, "price": "-5", "category_id": catalog["categories"]["accessories"].id}

        resp = client.post("/products", json=payload, headers=auth(users["admin"]))

        assert resp.status_code == 400
        assert "price" in resp.json()["detail"]["fields"]

    def test_price_change_shows_in_carts(self, client, users, catalog):
        client.post("/cart/items", json={"product_id": catalog["bottle"].id, "quantity": 2})

        resp = client.put(f"/products/{catalog['bottle'].id}", json={"price": "30.00"}, headers=auth(users["admin"]))

        assert resp.status_code == 200
        assert Decimal(client.get("/cart/quote").json()["subtotal"]) == Decimal("60.00")

    def test_delete_product_empties_cart_lines(self, client, users, catalog):
        client.post("/cart/items", json={"product_id": catalog["helmet"].id, "quantity": 1})

        assert client.delete(f"/products/{catalog['helmet'].id}", headers=auth(users["admin"])).status_code == 204
        assert client.get("/cart").json()["items"] == []
        assert client.get("/products/pro-trail-helmet").status_code == 404

    def test_category_crud(self, client, users):
        admin = auth(users["admin"])

        created = client.post("/categories", json={"name": "Bikes", "slug": "bikes"}, headers=admin)
        assert created.status_code == 201

        category_id = created.json()["id"]
        updated = client.put(f"/categories/{category_id}", json={"description": "Road and gravel"}, headers=admin)
        assert updated.json()["description"] == "Road and gravel"

        assert client.post("/categories", json={"name": "Dup", "slug": "bikes"}, headers=admin).status_code == 400
        assert client.delete(f"/categories/{category_id}", headers=admin).status_code == 204
        assert client.get("/categories/bikes").status_code == 404


class TestUsers:
    def test_register_and_read_self(self, client):
        created = client.post("/users", json={"username": "carol", "email": "carol@example.com"})

        assert created.status_code == 201
        user = created.json()
        assert user["is_admin"] is False

        me = client.get("/users/me", headers={"X-User-Id": str(user["id"])})
        assert me.json()["username"] == "carol"

    def test_duplicate_registration(self, client, users):
        resp = client.post("/users", json={"username": "alice", "email": "other@example.com"})

        assert resp.status_code == 400

    def test_me_requires_user(self, client):
        assert client.get("/users/me").status_code == 401

    def test_profile_privacy(self, client, users):
        assert client.get(f"/users/{users['bob'].id}", headers=auth(users["alice"])).status_code == 403
        assert client.get(f"/users/{users['bob'].id}", headers=auth(users["admin"])).status_code == 200
