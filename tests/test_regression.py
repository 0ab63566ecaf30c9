"""
Regression tests for behaviour that broke or was easy to break.

1. Unique constraint violations must return 409 (not 500)
2. A reply shows up under its parent in the post detail with its own author
3. Liking twice conflicts; the toggle endpoint unlikes instead
4. X-Query-Count header must report the actual query count (no N+1)
5. CORS must not set allow_credentials=true with allow_origins=*
"""
import pytest
from httpx import AsyncClient

from conftest import api_create_post, api_create_user


# ---------------------------------------------------------------------------
# 1. Unique constraint violations -> 409
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_duplicate_email_returns_409(async_client: AsyncClient):
    resp1 = await async_client.post("/api/users", json={"email": "a@x.com", "username": "a"})
    assert resp1.status_code == 201

    resp2 = await async_client.post("/api/users", json={"email": "a@x.com", "username": "b"})
    assert resp2.status_code == 409
    assert resp2.json() == {"success": False, "error": "Email already in use"}


@pytest.mark.asyncio
async def test_update_username_to_taken_returns_409(async_client: AsyncClient):
    await api_create_user(async_client, "taken")
    other_id = await api_create_user(async_client, "other")

    resp = await async_client.put(f"/api/users/{other_id}", json={"username": "taken"})
    assert resp.status_code == 409
    assert resp.json()["error"] == "Username already taken"


@pytest.mark.asyncio
async def test_update_user_keeping_own_email_succeeds(async_client: AsyncClient):
    user_id = await api_create_user(async_client, "same")
    resp = await async_client.put(f"/api/users/{user_id}", json={
        "email": "same@example.com", "name": "Same Person",
    })
    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "Same Person"


# ---------------------------------------------------------------------------
# 2. Replies in the post detail
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_reply_nested_under_parent_in_post_detail(async_client: AsyncClient):
    a_id = await api_create_user(async_client, "usera")
    b_id = await api_create_user(async_client, "userb")
    post_id = await api_create_post(async_client, a_id, title="P")

    c_resp = await async_client.post(f"/api/posts/{post_id}/comments", json={
        "content": "C", "authorId": b_id,
    })
    assert c_resp.status_code == 201
    comment_id = c_resp.json()["data"]["id"]

    r_resp = await async_client.post(f"/api/comments/{comment_id}/replies", json={
        "content": "R", "authorId": a_id,
    })
    assert r_resp.status_code == 201

    detail = (await async_client.get(f"/api/posts/{post_id}")).json()["data"]
    assert len(detail["comments"]) == 1
    top = detail["comments"][0]
    assert top["id"] == comment_id
    assert top["author"]["id"] == b_id
    assert [r["content"] for r in top["replies"]] == ["R"]
    assert top["replies"][0]["author"]["id"] == a_id
    assert detail["_count"] == {"likes": 0, "comments": 2}


# ---------------------------------------------------------------------------
# 3. Like / toggle
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_like_twice_conflicts_then_toggle_unlikes(async_client: AsyncClient):
    user_id = await api_create_user(async_client, "liker")
    post_id = await api_create_post(async_client, user_id)

    first = await async_client.post(f"/api/posts/{post_id}/like/add", json={"userId": user_id})
    assert first.status_code == 201

    second = await async_client.post(f"/api/posts/{post_id}/like/add", json={"userId": user_id})
    assert second.status_code == 409
    assert second.json()["error"] == "Post already liked"

    toggled = await async_client.post(f"/api/posts/{post_id}/like", json={"userId": user_id})
    assert toggled.status_code == 200
    assert toggled.json()["data"] == {"liked": False, "message": "Post unliked"}

    count = await async_client.get(f"/api/posts/{post_id}/likes/count")
    assert count.json()["data"]["count"] == 0


# ---------------------------------------------------------------------------
# 4. X-Query-Count reports actual query count
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_query_count_header_exact_for_post_list(async_client: AsyncClient):
    """
    Post list issues: COUNT + SELECT(joinedload author) + like counts +
    comment counts = 4 queries, however many posts are on the page.
    """
    user_id = await api_create_user(async_client, "qctest")
    for i in range(3):
        await api_create_post(async_client, user_id, title=f"QC {i}")

    resp = await async_client.get("/api/posts")
    assert resp.status_code == 200
    count = int(resp.headers["x-query-count"])
    assert count == 4, f"Expected exactly 4 queries for post list, got {count}"


@pytest.mark.asyncio
async def test_query_count_header_exact_for_post_detail(async_client: AsyncClient):
    """
    Post detail: SELECT(joinedload author) + likes + top-level comments +
    selectinload(replies) + comment count = 5 queries.
    """
    user_id = await api_create_user(async_client, "qcdetail")
    post_id = await api_create_post(async_client, user_id)
    await async_client.post(f"/api/posts/{post_id}/comments", json={
        "content": "First", "authorId": user_id,
    })

    resp = await async_client.get(f"/api/posts/{post_id}")
    assert resp.status_code == 200
    count = int(resp.headers["x-query-count"])
    assert count == 5, f"Expected exactly 5 queries for post detail, got {count}"


@pytest.mark.asyncio
async def test_response_time_header_present(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert float(resp.headers["x-response-time-ms"]) >= 0


# ---------------------------------------------------------------------------
# 5. CORS headers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cors_no_credentials_with_wildcard_origin(async_client: AsyncClient):
    """
    When allow_origins=["*"], the response must NOT include
    Access-Control-Allow-Credentials: true, per the CORS rules.
    """
    resp = await async_client.options(
        "/api/posts",
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "GET",
        },
    )
    cred_header = resp.headers.get("access-control-allow-credentials", "").lower()
    assert cred_header != "true", (
        "CORS must not combine allow_origins=* with allow_credentials=true"
    )
