import pytest

pytestmark = pytest.mark.asyncio

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def signup(client, username: str) -> str:
    resp = await client.post("/api/auth/register", json={
        "username": username,
        "password": "secret123",
        "real_name": "Tester",
        "date_of_birth": "1990-05-01",
    })
    assert resp.status_code == 201
    return resp.json()["data"]["access_token"]


@pytest.fixture
async def tokens(client):
    admin = await signup(client, "admin_01")
    alice = await signup(client, "alice_01")
    bob = await signup(client, "bob_0001")
    return {"admin": admin, "alice": alice, "bob": bob}


async def create_article(client, token: str, **extra) -> dict:
    payload = {"title": "Hello", "content": "# body", "tags": ["Python", "python", " web "]}
    payload.update(extra)
    resp = await client.post("/api/articles", json=payload, headers=bearer(token))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def test_article_review_flow(client, tokens):
    article = await create_article(client, tokens["alice"])
    assert article["status"] == "pending"
    assert article["tags"] == ["Python", "web"]

    # 未发布：匿名用户看不到，作者看得到
    assert (await client.get(f"/api/articles/{article['id']}")).status_code == 404
    own = await client.get(f"/api/articles/{article['id']}", headers=bearer(tokens["alice"]))
    assert own.status_code == 200

    listing = (await client.get("/api/articles")).json()["data"]
    assert listing["total"] == 0

    reject = await client.post(
        f"/api/admin/articles/{article['id']}/review",
        json={"status": "rejected"},
        headers=bearer(tokens["admin"]),
    )
    assert reject.status_code == 400

    approve = await client.post(
        f"/api/admin/articles/{article['id']}/review",
        json={"status": "published"},
        headers=bearer(tokens["admin"]),
    )
    assert approve.status_code == 200
    assert approve.json()["data"]["status"] == "published"

    listing = (await client.get("/api/articles", params={"tag": "web"})).json()["data"]
    assert listing["total"] == 1
    assert listing["items"][0]["author"]["username"] == "alice_01"

    detail = (await client.get(f"/api/articles/{article['id']}")).json()["data"]
    assert detail["view_count"] == 1

    # 作者再次编辑后退回待审核
    edited = await client.put(
        f"/api/articles/{article['id']}", json={"title": "Hello v2"}, headers=bearer(tokens["alice"])
    )
    assert edited.json()["data"]["status"] == "pending"


async def test_author_cannot_publish_and_others_cannot_edit(client, tokens):
    article = await create_article(client, tokens["alice"], status="draft")
    resp = await client.patch(
        f"/api/articles/{article['id']}/status", json={"status": "published"}, headers=bearer(tokens["alice"])
    )
    assert resp.status_code == 403

    resp = await client.put(
        f"/api/articles/{article['id']}", json={"title": "Mine now"}, headers=bearer(tokens["bob"])
    )
    assert resp.status_code == 403


async def test_comments_and_reactions(client, tokens):
    article = await create_article(client, tokens["admin"], status="published")
    article_id = article["id"]

    root = await client.post("/api/comments", json={"article_id": article_id, "content": "first"},
                             headers=bearer(tokens["alice"]))
    assert root.status_code == 201
    root_id = root.json()["data"]["id"]
    reply = await client.post("/api/comments",
                              json={"article_id": article_id, "content": "reply", "parent_id": root_id},
                              headers=bearer(tokens["bob"]))
    assert reply.status_code == 201

    tree = (await client.get(f"/api/comments/article/{article_id}")).json()["data"]
    assert tree["total"] == 2
    assert tree["comments"][0]["children"][0]["content"] == "reply"

    # 文章作者可以隐藏他人的评论
    hidden = await client.patch(f"/api/comments/{root_id}/visibility", headers=bearer(tokens["admin"]))
    assert hidden.json()["data"]["visibility"] == "hidden"
    forbidden = await client.patch(f"/api/comments/{root_id}/visibility", headers=bearer(tokens["bob"]))
    assert forbidden.status_code == 403

    like = await client.post(f"/api/articles/{article_id}/reaction", json={"type": "like"},
                             headers=bearer(tokens["bob"]))
    assert like.json()["data"]["outcome"] == "added"
    summary = (await client.get(f"/api/articles/{article_id}/reaction", headers=bearer(tokens["bob"]))).json()
    assert summary["data"]["counts"]["like"] == 1
    assert summary["data"]["user_reaction"] == "like"
    users = (await client.get(f"/api/articles/{article_id}/reactions")).json()["data"]
    assert users["items"][0]["username"] == "bob_0001"

    deleted = await client.delete(f"/api/comments/{root_id}", headers=bearer(tokens["alice"]))
    assert deleted.json()["data"] == {"deleted": 2}


async def test_banned_user_can_read_but_not_write(client, tokens):
    me = (await client.get("/api/users/me", headers=bearer(tokens["bob"]))).json()["data"]
    ban = await client.post(f"/api/admin/users/{me['id']}/ban",
                            json={"reason": "spam", "duration_hours": 24},
                            headers=bearer(tokens["admin"]))
    assert ban.status_code == 200
    assert ban.json()["data"]["status"] == "banned"

    login = await client.post("/api/auth/login", json={"username": "bob_0001", "password": "secret123"})
    assert login.status_code == 200
    token = login.json()["data"]["access_token"]

    assert (await client.get("/api/articles", headers=bearer(token))).status_code == 200
    resp = await client.post("/api/articles", json={"title": "x", "content": "y"}, headers=bearer(token))
    assert resp.status_code == 403

    unban = await client.post(f"/api/admin/users/{me['id']}/unban", headers=bearer(tokens["admin"]))
    assert unban.json()["data"]["status"] == "active"
    await create_article(client, token)


async def test_admin_endpoints_require_admin(client, tokens):
    assert (await client.get("/api/admin/stats", headers=bearer(tokens["alice"]))).status_code == 403
    stats = await client.get("/api/admin/stats", headers=bearer(tokens["admin"]))
    assert stats.status_code == 200
    assert stats.json()["data"]["users"]["total"] == 3
    assert stats.json()["data"]["users"]["admins"] == 1

    me = (await client.get("/api/users/me", headers=bearer(tokens["admin"]))).json()["data"]
    resp = await client.post(f"/api/admin/users/{me['id']}/demote", headers=bearer(tokens["admin"]))
    assert resp.status_code == 409


async def test_cover_upload_and_removal(client, tokens, storage):
    article = await create_article(client, tokens["alice"])
    resp = await client.post(
        f"/api/articles/{article['id']}/cover",
        files={"cover": ("cover.png", PNG_BYTES, "image/png")},
        headers=bearer(tokens["alice"]),
    )
    assert resp.status_code == 200, resp.text
    url = resp.json()["data"]["image_url"]
    assert url.startswith("/uploads/covers/") and url.endswith(".png")
    key = storage.key_from_url(url)

    bad = await client.post(
        f"/api/articles/{article['id']}/cover",
        files={"cover": ("cover.gif", b"GIF89a", "image/gif")},
        headers=bearer(tokens["alice"]),
    )
    assert bad.status_code == 400

    removed = await client.delete(f"/api/articles/{article['id']}/cover", headers=bearer(tokens["alice"]))
    assert removed.json()["data"]["image_url"] is None
    assert key is not None
    assert await storage.delete(key) is False


async def test_pagination_validation(client):
    assert (await client.get("/api/articles", params={"page": 0})).status_code == 422
    assert (await client.get("/api/articles", params={"sort": "title"})).status_code == 422


async def test_cover_url_must_point_at_covers(client, tokens, storage):
    avatar = await client.post(
        "/api/users/me/avatar",
        files={"avatar": ("me.png", PNG_BYTES, "image/png")},
        headers=bearer(tokens["bob"]),
    )
    assert avatar.status_code == 200, avatar.text
    avatar_url = avatar.json()["data"]["avatar_url"]
    avatar_key = storage.key_from_url(avatar_url)
    assert avatar_key is not None and avatar_key.startswith("avatars/")

    created = await client.post(
        "/api/articles",
        json={"title": "Mine", "content": "x", "image_url": avatar_url},
        headers=bearer(tokens["alice"]),
    )
    assert created.status_code == 400

    article = await create_article(client, tokens["alice"])
    updated = await client.put(
        f"/api/articles/{article['id']}",
        json={"image_url": avatar_url},
        headers=bearer(tokens["alice"]),
    )
    assert updated.status_code == 400

    deleted = await client.delete(f"/api/articles/{article['id']}", headers=bearer(tokens["alice"]))
    assert deleted.status_code == 200
    assert await storage.provider.exists(avatar_key)

    # 外部URL不属于本地存储，可以直接作为封面
    external = await create_article(client, tokens["alice"], image_url="https://cdn.example.com/c.png")
    assert external["image_url"] == "https://cdn.example.com/c.png"


async def test_shared_cover_kept_until_last_article_deleted(client, tokens, storage):
    upload = await client.post(
        "/api/articles/cover",
        files={"cover": ("c.png", PNG_BYTES, "image/png")},
        headers=bearer(tokens["alice"]),
    )
    assert upload.status_code == 200, upload.text
    url = upload.json()["data"]["url"]
    key = storage.key_from_url(url)

    first = await create_article(client, tokens["alice"], image_url=url)
    second = await create_article(client, tokens["bob"], image_url=url)

    resp = await client.delete(f"/api/articles/{second['id']}", headers=bearer(tokens["bob"]))
    assert resp.status_code == 200
    assert await storage.provider.exists(key)

    resp = await client.delete(f"/api/articles/{first['id']}", headers=bearer(tokens["alice"]))
    assert resp.status_code == 200
    assert not await storage.provider.exists(key)
