from storefront.auth import verify_password
from storefront.storage.database import DatabaseManager
from tests.factories import auth, make_user_create


class TestUserRoutes:
    async def test_register(self, client, db: DatabaseManager):
        response = await client.post(
            "/api/users", json={"email": "  Ada@Example.com ", "password": "secret"}
        )
        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "ada@example.com"
        assert body["role"] == "user"
        assert "password" not in body
        assert "password_hash" not in body
        stored = await db.get_password_hash(body["id"])
        assert stored is not None
        assert verify_password("secret", stored)

    async def test_duplicate_email_conflicts(self, client):
        await client.post("/api/users", json={"email": "a@example.com", "password": "pass"})
        response = await client.post(
            "/api/users", json={"email": "A@example.com", "password": "other"}
        )
        assert response.status_code == 409
        assert response.json() == {"error": "User already exists"}

    async def test_invalid_email_and_short_password(self, client):
        response = await client.post("/api/users", json={"email": "nope", "password": "abc"})
        assert response.status_code == 400
        paths = {tuple(d["path"]) for d in response.json()["details"]}
        assert paths == {("email",), ("password",)}

    async def test_list_cached_then_invalidated_by_registration(self, client, db: DatabaseManager):
        await db.create_user(make_user_create(), "hash")
        first = await client.get("/api/users")
        assert first.headers["x-cache"] == "MISS"
        assert len(first.json()) == 1
        assert (await client.get("/api/users")).headers["x-cache"] == "HIT"

        await client.post("/api/users", json={"email": "b@example.com", "password": "pass"})
        listing = await client.get("/api/users")
        assert listing.headers["x-cache"] == "MISS"
        assert len(listing.json()) == 2

    async def test_patch_invalidates_item(self, client, db: DatabaseManager):
        user = await db.create_user(make_user_create(), "hash")
        await client.get(f"/api/users/{user.id}")
        response = await client.patch(f"/api/users/{user.id}", json={"role": "admin"})
        assert response.status_code == 200
        item = await client.get(f"/api/users/0{user.id}")
        assert item.headers["x-cache"] == "MISS"
        assert item.json()["role"] == "admin"

    async def test_patch_password_rehashes(self, client, db: DatabaseManager):
        user = await db.create_user(make_user_create(), "old-hash")
        await client.patch(f"/api/users/{user.id}", json={"password": "new-pass"})
        stored = await db.get_password_hash(user.id)
        assert stored is not None
        assert verify_password("new-pass", stored)

    async def test_put_to_taken_email_conflicts(self, client, db: DatabaseManager):
        await db.create_user(make_user_create(email="taken@example.com"), "hash")
        user = await db.create_user(make_user_create(email="me@example.com"), "hash")
        response = await client.put(
            f"/api/users/{user.id}", json={"email": "taken@example.com", "password": "pass"}
        )
        assert response.status_code == 409

    async def test_delete(self, client, db: DatabaseManager, cache):
        user = await db.create_user(make_user_create(), "hash")
        await client.get(f"/api/users/{user.id}")
        response = await client.delete(f"/api/users/{user.id}")
        assert response.json() == {"message": "User deleted successfully"}
        assert f"GET:/api/users/{user.id}" not in cache.store
        missing = await client.get(f"/api/users/{user.id}")
        assert missing.status_code == 404
        assert missing.json() == {"error": "User not found"}


class TestUserAuth:
    async def test_registration_is_open(self, client, admin_token):
        response = await client.post("/api/users", json={"email": "a@example.com", "password": "pass"})
        assert response.status_code == 201

    async def test_reads_need_token(self, client, cache, admin_token):
        response = await client.get("/api/users")
        assert response.status_code == 401
        assert cache.get_stats().misses == 0

    async def test_reads_with_token(self, client, admin_token):
        response = await client.get("/api/users", headers=auth(admin_token))
        assert response.status_code == 200
        assert response.headers["x-cache"] == "MISS"

    async def test_delete_needs_token(self, client, db: DatabaseManager, admin_token):
        user = await db.create_user(make_user_create(), "hash")
        response = await client.delete(f"/api/users/{user.id}")
        assert response.status_code == 401
        assert await db.get_user(user.id) is not None
