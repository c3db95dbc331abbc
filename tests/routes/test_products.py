from storefront.storage.database import DatabaseManager
from tests.factories import auth, make_product_create


class TestReads:
    async def test_list_miss_then_hit(self, client, db: DatabaseManager):
        await db.create_product(make_product_create(name="Lamp"))
        first = await client.get("/api/products")
        assert first.status_code == 200
        assert first.headers["x-cache"] == "MISS"
        assert first.headers["cache-control"] == "public, max-age=300"
        assert [p["name"] for p in first.json()] == ["Lamp"]

        await db.create_product(make_product_create(name="Hidden until invalidated"))
        second = await client.get("/api/products")
        assert second.headers["x-cache"] == "HIT"
        assert second.json() == first.json()

    async def test_item_uses_item_duration(self, client, db: DatabaseManager):
        product = await db.create_product(make_product_create())
        response = await client.get(f"/api/products/{product.id}")
        assert response.status_code == 200
        assert response.headers["cache-control"] == "public, max-age=60"
        assert response.json()["id"] == product.id

    async def test_missing_item_not_cached(self, client, cache):
        response = await client.get("/api/products/404")
        assert response.status_code == 404
        assert response.json() == {"error": "Product not found"}
        assert response.headers["x-cache"] == "MISS"
        assert response.headers["cache-control"] == "no-store"
        assert cache.get_stats().entries == 0

    async def test_query_strings_cached_separately(self, client, cache):
        await client.get("/api/products?page=1")
        await client.get("/api/products?page=2")
        assert set(cache.store.keys()) == {
            "GET:/api/products?page=1",
            "GET:/api/products?page=2",
        }


class TestWrites:
    async def test_create_invalidates_list(self, client, cache):
        await client.get("/api/products")
        response = await client.post("/api/products", json={"name": "Desk", "price": 120})
        assert response.status_code == 201
        assert response.json()["name"] == "Desk"
        assert "x-cache" not in response.headers
        listing = await client.get("/api/products")
        assert listing.headers["x-cache"] == "MISS"
        assert [p["name"] for p in listing.json()] == ["Desk"]

    async def test_post_does_not_touch_cache(self, client, cache):
        await client.post("/api/products", json={"name": "Desk", "price": 120})
        stats = cache.get_stats()
        assert (stats.hits, stats.misses, stats.entries) == (0, 0, 0)
        assert stats.popular == {}

    async def test_patch_invalidates_item(self, client, db: DatabaseManager):
        product = await db.create_product(make_product_create(price=10))
        await client.get(f"/api/products/{product.id}")
        response = await client.patch(f"/api/products/{product.id}", json={"price": 11})
        assert response.status_code == 200
        item = await client.get(f"/api/products/{product.id}")
        assert item.headers["x-cache"] == "MISS"
        assert item.json()["price"] == 11

    async def test_patch_invalidates_zero_padded_item_path(self, client, db: DatabaseManager, cache):
        product = await db.create_product(make_product_create(price=1))
        padded = f"/api/products/0{product.id}"
        await client.get(padded)
        assert set(cache.store.keys()) == {f"GET:/api/products/{product.id}"}
        await client.patch(f"/api/products/{product.id}", json={"price": 99})
        item = await client.get(padded)
        assert item.headers["x-cache"] == "MISS"
        assert item.json()["price"] == 99

    async def test_put_replaces(self, client, db: DatabaseManager):
        product = await db.create_product(make_product_create())
        response = await client.put(
            f"/api/products/{product.id}",
            json={"name": "Replaced", "price": 2, "in_stock": False},
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Replaced"
        assert response.json()["in_stock"] is False

    async def test_delete(self, client, db: DatabaseManager):
        product = await db.create_product(make_product_create())
        response = await client.delete(f"/api/products/{product.id}")
        assert response.json() == {"message": "Product deleted successfully"}
        missing = await client.delete(f"/api/products/{product.id}")
        assert missing.status_code == 404

    async def test_validation_error(self, client):
        response = await client.post("/api/products", json={"name": "", "price": -5})
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation failed"
        assert {tuple(d["path"]) for d in body["details"]} == {("name",), ("price",)}

    async def test_malformed_json(self, client):
        response = await client.post(
            "/api/products", content=b"{not json", headers={"content-type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Request body must be valid JSON"


class TestAdminToken:
    async def test_write_requires_token(self, client, admin_token):
        response = await client.post("/api/products", json={"name": "Desk", "price": 1})
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized."}

    async def test_write_with_token(self, client, admin_token):
        response = await client.post(
            "/api/products", json={"name": "Desk", "price": 1}, headers=auth(admin_token)
        )
        assert response.status_code == 201

    async def test_reads_stay_public(self, client, admin_token):
        response = await client.get("/api/products")
        assert response.status_code == 200
