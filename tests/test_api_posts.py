"""Post routes: create, update, delete, read, list and suggestions over HTTP.

Invariants:
    - Mutating routes need a session (401 without one)
    - Non-authors get 403, missing posts 404, and the two never mix
    - Covers round-trip byte for byte through the cover route
"""

import pytest

PNG = b"\x89PNG\r\n\x1a\nfake-image-bytes"


async def _create(client, headers, title="Hello", tags="intro,news", **extra):
    data = {"title": title, "summary": "sum", "content": "body", "tags": tags}
    return await client.post("/api/v1/post", data=data, headers=headers, **extra)


async def test_create_requires_session(client):
    res = await _create(client, headers={})

    assert res.status_code == 401
    assert res.json()["error"]["code"] == "INVALID_TOKEN"


async def test_create_post(client, login):
    headers = await login("alice")

    res = await _create(client, headers, tags=" intro , news ,")

    assert res.status_code == 201
    body = res.json()
    assert body["title"] == "Hello"
    assert body["tags"] == ["intro", "news"]
    assert body["author"]["username"] == "alice"
    assert body["cover"] is None


async def test_create_missing_field(client, login):
    headers = await login("alice")

    res = await client.post("/api/v1/post", data={"title": "only a title"}, headers=headers)

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_create_with_cover_and_fetch_cover(client, login):
    headers = await login("alice")

    res = await _create(client, headers, files={"file": ("cover.png", PNG, "image/png")})
    assert res.status_code == 201
    post = res.json()
    assert post["cover"] is not None
    assert post["cover_type"] == "image/png"

    cover = await client.get(f"/api/v1/post/{post['id']}/cover")
    assert cover.status_code == 200
    assert cover.content == PNG
    assert cover.headers["content-type"] == "image/png"


async def test_oversized_cover_is_refused(client, login):
    headers = await login("alice")

    res = await _create(client, headers, files={"file": ("big.png", b"x" * 2048, "image/png")})

    assert res.status_code == 400
    assert (await client.get("/api/v1/posts")).json()["total_pages"] == 0


async def test_get_post_and_missing_post(client, login):
    headers = await login("alice")
    post = (await _create(client, headers)).json()

    found = await client.get(f"/api/v1/post/{post['id']}")
    missing = await client.get("/api/v1/post/9999")

    assert found.status_code == 200
    assert found.json()["author"]["username"] == "alice"
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "NOT_FOUND"


async def test_ids_beyond_sqlite_range_are_404(client, login):
    headers = await login("alice")
    huge = "99999999999999999999"

    for res in (
        await client.get(f"/api/v1/post/{huge}"),
        await client.get(f"/api/v1/post/{huge}/cover"),
        await client.put(f"/api/v1/post/{huge}", data={"title": "t"}, headers=headers),
        await client.delete(f"/api/v1/post/{huge}", headers=headers),
    ):
        assert res.status_code == 404
        assert res.json()["error"]["code"] == "NOT_FOUND"


async def test_huge_page_number_is_an_empty_page(client, login):
    headers = await login("alice")
    await _create(client, headers)

    res = await client.get("/api/v1/posts", params={"page": 2 ** 62})

    assert res.status_code == 200
    assert res.json() == {"posts": [], "total_pages": 1}


async def test_update_by_author_keeps_omitted_tags(client, login):
    headers = await login("alice")
    post = (await _create(client, headers, tags="a,b")).json()

    res = await client.put(
        f"/api/v1/post/{post['id']}",
        data={"title": "Edited", "summary": "s", "content": "c"},
        headers=headers,
    )

    assert res.status_code == 200
    assert res.json()["title"] == "Edited"
    assert res.json()["tags"] == ["a", "b"]


async def test_update_replaces_tags_and_cover(client, login):
    headers = await login("alice")
    post = (await _create(client, headers, tags="a,b")).json()

    res = await client.put(
        f"/api/v1/post/{post['id']}",
        data={"title": "t", "summary": "s", "content": "c", "tags": "x,y"},
        files={"file": ("new.jpg", b"jpeg-bytes", "image/jpeg")},
        headers=headers,
    )

    assert res.status_code == 200
    assert res.json()["tags"] == ["x", "y"]
    cover = await client.get(f"/api/v1/post/{post['id']}/cover")
    assert cover.content == b"jpeg-bytes"


async def test_update_by_other_user_is_forbidden(client, login):
    alice = await login("alice")
    bob = await login("bobby")
    post = (await _create(client, alice, title="Mine")).json()

    res = await client.put(
        f"/api/v1/post/{post['id']}",
        data={"title": "Hijacked", "summary": "s", "content": "c"},
        headers=bob,
    )

    assert res.status_code == 403
    assert res.json()["error"]["code"] == "NOT_AUTHOR"
    assert (await client.get(f"/api/v1/post/{post['id']}")).json()["title"] == "Mine"


async def test_update_missing_post(client, login):
    headers = await login("alice")

    res = await client.put("/api/v1/post/9999", data={"title": "t"}, headers=headers)

    assert res.status_code == 404


async def test_delete_by_other_user_is_forbidden(client, login):
    alice = await login("alice")
    bob = await login("bobby")
    post = (await _create(client, alice)).json()

    res = await client.delete(f"/api/v1/post/{post['id']}", headers=bob)

    assert res.status_code == 403
    assert (await client.get(f"/api/v1/post/{post['id']}")).status_code == 200


async def test_delete_by_author(client, login):
    headers = await login("alice")
    post = (await _create(client, headers)).json()

    res = await client.delete(f"/api/v1/post/{post['id']}", headers=headers)

    assert res.status_code == 200
    assert res.json() == "Post deleted"
    assert (await client.get(f"/api/v1/post/{post['id']}")).status_code == 404
    assert (await client.delete(f"/api/v1/post/{post['id']}", headers=headers)).status_code == 404


async def test_delete_requires_session(client, login):
    headers = await login("alice")
    post = (await _create(client, headers)).json()

    res = await client.delete(f"/api/v1/post/{post['id']}")

    assert res.status_code == 401


async def test_list_posts_paginates_newest_first(client, login):
    headers = await login("alice")
    titles = [f"Post {i}" for i in range(12)]
    for title in titles:
        await _create(client, headers, title=title)

    first = (await client.get("/api/v1/posts", params={"page": 1, "limit": 5})).json()
    last = (await client.get("/api/v1/posts", params={"page": 3, "limit": 5})).json()

    assert first["total_pages"] == 3
    assert [p["title"] for p in first["posts"]] == titles[::-1][:5]
    assert [p["title"] for p in last["posts"]] == titles[::-1][10:]


async def test_list_posts_search(client, login):
    headers = await login("alice")
    await _create(client, headers, title="Cooking", tags="food")
    await _create(client, headers, title="Web", tags="python,fastapi")

    res = await client.get("/api/v1/posts", params={"search": "PYTH"})

    assert [p["title"] for p in res.json()["posts"]] == ["Web"]


@pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"limit": 101}, {"page": "x"}])
async def test_list_posts_rejects_bad_paging(client, params):
    res = await client.get("/api/v1/posts", params=params)

    assert res.status_code == 400


async def test_suggestions(client, login):
    headers = await login("alice")
    for i in range(7):
        await _create(client, headers, title=f"Guide {i}", tags="howto")
    await _create(client, headers, title="Unrelated", tags="misc")

    res = await client.get("/api/v1/suggestions", params={"q": "HOWTO"})

    assert res.status_code == 200
    body = res.json()
    assert len(body) == 5
    assert body[0] == {
        "id": body[0]["id"],
        "title": "Guide 0",
        "author": {"id": body[0]["author"]["id"], "username": "alice"},
        "tags": ["howto"],
    }
