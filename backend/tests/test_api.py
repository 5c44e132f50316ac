"""
Flock Backend — API Tests
===========================

End-to-end through the FastAPI app with HTTPX: cookies, the session gate,
status codes and the JSON wire format (camelCase, `_id`, `from`).

What we test:
    ✅ Signup/login set the `jwt` cookie; logout clears it
    ✅ No cookie → 401 "No Token Provided"; bad token → 401 "Invalid Token"
    ✅ Error body shape {"error", "code", "message", "request_id"}; `error`
       holds the text users see
    ✅ Unparseable input (bad path id, missing field) → 400 validation_error
    ✅ Follow, post, like, comment, notifications and delete flows
    ✅ Hosted images are served back under /api/files/
"""

import uuid

import pytest

from app.services.session_service import session_service


class TestAuthEndpoints:

    @pytest.mark.asyncio
    async def test_signup_returns_identity_without_password(self, register):
        user, token = await register("alice")

        assert token
        assert user["username"] == "alice"
        assert user["fullName"] == "Alice"
        assert user["email"] == "alice@example.com"
        assert user["followers"] == []
        assert user["following"] == []
        assert user["likedPosts"] == []
        assert "_id" in user
        assert "password" not in user

    @pytest.mark.asyncio
    async def test_signup_duplicate_username(self, client, register):
        await register("alice")
        response = await client.post(
            "/api/auth/signup",
            json={
                "username": "alice",
                "fullName": "Other Alice",
                "email": "other@example.com",
                "password": "secret123",
            },
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Username is already taken"
        assert body["code"] == "conflict"
        assert body["details"] == {"field": "username"}

    @pytest.mark.asyncio
    async def test_signup_short_password(self, client):
        response = await client.post(
            "/api/auth/signup",
            json={
                "username": "alice",
                "fullName": "Alice",
                "email": "alice@example.com",
                "password": "123",
            },
        )
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "validation_error"
        assert body["message"] == "Password must be at least 6 characters long"

    @pytest.mark.asyncio
    async def test_signup_missing_field(self, client):
        response = await client.post(
            "/api/auth/signup",
            json={"username": "alice", "email": "alice@example.com", "password": "secret123"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "validation_error"
        assert body["details"] == {"field": "fullName"}
        assert "fullName" in body["error"]
        assert body["request_id"] == response.headers["x-request-id"]

    @pytest.mark.asyncio
    async def test_login_sets_cookie(self, client, register, read_session_cookie):
        await register("alice", password="secret123")

        response = await client.post(
            "/api/auth/login", json={"username": "alice", "password": "secret123"}
        )

        assert response.status_code == 200
        assert response.json()["username"] == "alice"
        token = read_session_cookie(response)
        assert session_service.decode_token(token) == uuid.UUID(response.json()["_id"])

        set_cookie = response.headers["set-cookie"]
        assert "HttpOnly" in set_cookie
        assert "samesite=strict" in set_cookie.lower()

    @pytest.mark.asyncio
    async def test_login_failures_are_indistinguishable(self, client, register):
        await register("alice", password="secret123")

        wrong_password = await client.post(
            "/api/auth/login", json={"username": "alice", "password": "nope123"}
        )
        unknown_user = await client.post(
            "/api/auth/login", json={"username": "nobody", "password": "secret123"}
        )

        assert wrong_password.status_code == unknown_user.status_code == 400
        assert wrong_password.json()["message"] == unknown_user.json()["message"]
        assert wrong_password.json()["message"] == "Invalid username or password"

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, client):
        response = await client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"message": "Logged out successfully"}
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith("jwt=")
        assert "Max-Age=0" in set_cookie

    @pytest.mark.asyncio
    async def test_me(self, register, authed_client):
        user, token = await register("alice")
        alice = await authed_client(token)

        response = await alice.get("/api/auth/me")

        assert response.status_code == 200
        assert response.json()["_id"] == user["_id"]


class TestSessionGate:

    @pytest.mark.asyncio
    async def test_no_cookie(self, client):
        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        body = response.json()
        assert body["code"] == "unauthorized"
        assert body["error"] == body["message"] == "Unauthorized: No Token Provided"
        assert body["request_id"] == response.headers["x-request-id"]

    @pytest.mark.asyncio
    async def test_invalid_token(self, authed_client):
        stranger = await authed_client("not.a.token")
        response = await stranger.get("/api/posts/all")

        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized: Invalid Token"

    @pytest.mark.asyncio
    async def test_token_for_missing_user(self, client, authed_client):
        ghost = await authed_client(session_service.issue_token(uuid.uuid4()))
        response = await ghost.get("/api/auth/me")

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    @pytest.mark.asyncio
    async def test_client_request_id_echoed(self, client):
        response = await client.get("/api/auth/me", headers={"X-Request-ID": "trace-42"})
        assert response.headers["x-request-id"] == "trace-42"
        assert response.json()["request_id"] == "trace-42"


class TestUsersEndpoints:

    @pytest.mark.asyncio
    async def test_follow_toggle_and_profile(self, register, authed_client):
        alice_json, alice_token = await register("alice")
        bob_json, _ = await register("bob")
        alice = await authed_client(alice_token)

        followed = await alice.post(f"/api/users/follow/{bob_json['_id']}")
        assert followed.status_code == 200
        assert followed.json()["message"] == "User followed successfully"

        profile = await alice.get("/api/users/profile/bob")
        assert profile.status_code == 200
        assert profile.json()["followers"] == [alice_json["_id"]]

        unfollowed = await alice.post(f"/api/users/follow/{bob_json['_id']}")
        assert unfollowed.json()["message"] == "User unfollowed successfully"

        profile = await alice.get("/api/users/profile/bob")
        assert profile.json()["followers"] == []

    @pytest.mark.asyncio
    async def test_follow_self(self, register, authed_client):
        alice_json, alice_token = await register("alice")
        alice = await authed_client(alice_token)

        response = await alice.post(f"/api/users/follow/{alice_json['_id']}")

        assert response.status_code == 400
        assert response.json()["message"] == "You can't follow/unfollow yourself"

    @pytest.mark.asyncio
    async def test_follow_unknown(self, register, authed_client):
        _, alice_token = await register("alice")
        alice = await authed_client(alice_token)

        response = await alice.post(f"/api/users/follow/{uuid.uuid4()}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_follow_malformed_id(self, register, authed_client):
        _, alice_token = await register("alice")
        alice = await authed_client(alice_token)

        response = await alice.post("/api/users/follow/not-a-uuid")

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "validation_error"
        assert body["details"] == {"field": "user_id"}

    @pytest.mark.asyncio
    async def test_profile_unknown(self, register, authed_client):
        _, alice_token = await register("alice")
        alice = await authed_client(alice_token)

        response = await alice.get("/api/users/profile/ghost")
        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    @pytest.mark.asyncio
    async def test_suggested(self, register, authed_client):
        _, alice_token = await register("alice")
        bob_json, _ = await register("bob")
        carol_json, _ = await register("carol")
        alice = await authed_client(alice_token)
        await alice.post(f"/api/users/follow/{bob_json['_id']}")

        response = await alice.get("/api/users/suggested")

        assert response.status_code == 200
        assert [u["_id"] for u in response.json()] == [carol_json["_id"]]

    @pytest.mark.asyncio
    async def test_update_profile(self, register, authed_client):
        _, alice_token = await register("alice", password="secret123")
        alice = await authed_client(alice_token)

        response = await alice.post(
            "/api/users/update",
            json={
                "bio": "down the rabbit hole",
                "currentPassword": "secret123",
                "newPassword": "newsecret",
            },
        )
        assert response.status_code == 200
        assert response.json()["bio"] == "down the rabbit hole"

        relogin = await alice.post(
            "/api/auth/login", json={"username": "alice", "password": "newsecret"}
        )
        assert relogin.status_code == 200


class TestPostsEndpoints:

    @pytest.mark.asyncio
    async def test_create_like_comment_delete(self, register, authed_client):
        alice_json, alice_token = await register("alice")
        bob_json, bob_token = await register("bob")
        alice = await authed_client(alice_token)
        bob = await authed_client(bob_token)

        created = await alice.post("/api/posts/create", json={"text": "hello"})
        assert created.status_code == 201
        post = created.json()
        assert post["text"] == "hello"
        assert post["user"]["_id"] == alice_json["_id"]
        assert post["likes"] == []
        assert post["comments"] == []

        liked = await bob.post(f"/api/posts/like/{post['_id']}")
        assert liked.status_code == 200
        assert liked.json() == [bob_json["_id"]]

        commented = await bob.post(f"/api/posts/comment/{post['_id']}", json={"text": "hi!"})
        assert commented.status_code == 200
        comments = commented.json()["comments"]
        assert comments[0]["text"] == "hi!"
        assert comments[0]["user"]["username"] == "bob"

        liked_posts = await alice.get(f"/api/posts/likes/{bob_json['_id']}")
        assert [p["_id"] for p in liked_posts.json()] == [post["_id"]]

        forbidden = await bob.delete(f"/api/posts/{post['_id']}")
        assert forbidden.status_code == 401
        assert forbidden.json()["message"] == "You are not authorized to delete this post"

        deleted = await alice.delete(f"/api/posts/{post['_id']}")
        assert deleted.status_code == 200
        assert deleted.json()["message"] == "Post deleted successfully"

        remaining = await alice.get("/api/posts/all")
        assert remaining.json() == []

    @pytest.mark.asyncio
    async def test_empty_post_rejected(self, register, authed_client):
        _, alice_token = await register("alice")
        alice = await authed_client(alice_token)

        response = await alice.post("/api/posts/create", json={})

        assert response.status_code == 400
        assert response.json()["message"] == "Post must have text or image"

    @pytest.mark.asyncio
    async def test_empty_comment_rejected(self, register, authed_client):
        _, alice_token = await register("alice")
        alice = await authed_client(alice_token)
        post = (await alice.post("/api/posts/create", json={"text": "x"})).json()

        response = await alice.post(f"/api/posts/comment/{post['_id']}", json={"text": ""})

        assert response.status_code == 400
        assert response.json()["message"] == "Text field is required"

    @pytest.mark.asyncio
    async def test_feeds(self, register, authed_client):
        _, alice_token = await register("alice")
        bob_json, bob_token = await register("bob")
        _, carol_token = await register("carol")
        alice = await authed_client(alice_token)
        bob = await authed_client(bob_token)
        carol = await authed_client(carol_token)

        await alice.post(f"/api/users/follow/{bob_json['_id']}")
        await bob.post("/api/posts/create", json={"text": "bob 1"})
        await carol.post("/api/posts/create", json={"text": "carol 1"})
        await bob.post("/api/posts/create", json={"text": "bob 2"})

        following = await alice.get("/api/posts/following")
        assert [p["text"] for p in following.json()] == ["bob 2", "bob 1"]

        everything = await alice.get("/api/posts/all")
        assert [p["text"] for p in everything.json()] == ["bob 2", "carol 1", "bob 1"]

        carols = await alice.get("/api/posts/user/carol")
        assert [p["text"] for p in carols.json()] == ["carol 1"]

    @pytest.mark.asyncio
    async def test_image_post_is_served(
        self, client, register, authed_client, fake_mime, png_data_uri, png_bytes
    ):
        _, alice_token = await register("alice")
        alice = await authed_client(alice_token)

        created = await alice.post("/api/posts/create", json={"img": png_data_uri})
        assert created.status_code == 201
        img_url = created.json()["img"]
        assert img_url.startswith("/api/files/")

        served = await client.get(img_url)
        assert served.status_code == 200
        assert served.content == png_bytes

    @pytest.mark.asyncio
    async def test_file_traversal_refused(self, client):
        response = await client.get("/api/files/..%2F..%2Fetc%2Fpasswd")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid file path"


class TestNotificationsEndpoints:

    @pytest.mark.asyncio
    async def test_follow_and_like_reach_owner(self, register, authed_client):
        alice_json, alice_token = await register("alice")
        _, bob_token = await register("bob")
        alice = await authed_client(alice_token)
        bob = await authed_client(bob_token)

        bob_json = (await bob.get("/api/auth/me")).json()
        await alice.post(f"/api/users/follow/{bob_json['_id']}")
        post = (await bob.post("/api/posts/create", json={"text": "hi"})).json()
        await alice.post(f"/api/posts/like/{post['_id']}")

        first = await bob.get("/api/notifications")
        assert first.status_code == 200
        entries = first.json()
        assert [n["type"] for n in entries] == ["like", "follow"]
        assert all(n["from"]["_id"] == alice_json["_id"] for n in entries)
        assert all(n["from"]["username"] == "alice" for n in entries)
        assert all(n["read"] is False for n in entries)

        second = await bob.get("/api/notifications")
        assert all(n["read"] is True for n in second.json())

        purged = await bob.delete("/api/notifications")
        assert purged.json() == {"message": "Notifications deleted successfully"}
        assert (await bob.get("/api/notifications")).json() == []


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
