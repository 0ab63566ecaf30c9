"""
Application plumbing: pagination parameters, the error envelope, the
disconnected cache and the health endpoint.
"""
import pytest
from httpx import AsyncClient

from social_api.cache import PostCache
from social_api.config import settings
from social_api.dependencies import PaginationParams
from social_api.main import describe_validation_errors


# ---------------------------------------------------------------------------
# Pagination parameters
# ---------------------------------------------------------------------------

def test_pagination_params_offset():
    params = PaginationParams(page=3, limit=20)
    assert params.offset == 40


def test_pagination_params_clamps_limit():
    params = PaginationParams(page=1, limit=settings.MAX_PAGE_SIZE + 500)
    assert params.limit == settings.MAX_PAGE_SIZE


@pytest.mark.asyncio
async def test_page_zero_is_rejected(async_client: AsyncClient):
    resp = await async_client.get("/api/users?page=0")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid value for: page"


@pytest.mark.asyncio
async def test_oversized_limit_is_clamped(async_client: AsyncClient):
    resp = await async_client.get("/api/users?limit=1000")
    assert resp.status_code == 200
    assert resp.json()["meta"]["limit"] == settings.MAX_PAGE_SIZE


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------

def test_describe_missing_fields():
    errors = [
        {"type": "missing", "loc": ("body", "email")},
        {"type": "missing", "loc": ("body", "username")},
    ]
    assert describe_validation_errors(errors) == "email, username are required"


def test_describe_single_missing_field():
    assert describe_validation_errors([{"type": "missing", "loc": ("query", "userId")}]) == (
        "userId is required"
    )


def test_describe_invalid_value():
    errors = [
        {"type": "missing", "loc": ("body", "title")},
        {"type": "string_too_short", "loc": ("body", "content")},
    ]
    assert describe_validation_errors(errors) == "Invalid value for: title, content"


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(async_client: AsyncClient):
    resp = await async_client.get("/api/nowhere")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_non_integer_id_is_400(async_client: AsyncClient):
    resp = await async_client.get("/api/users/abc")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid value for: user_id"


# ---------------------------------------------------------------------------
# Cache without Redis
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_disconnected_cache_is_a_no_op():
    manager = PostCache()
    await manager.set("posts:detail:1", {"id": 1})
    assert await manager.get("posts:detail:1") is None
    await manager.invalidate_post(1)
    await manager.invalidate_all_posts()

    assert manager.stats == {"enabled": False, "hits": 0, "misses": 1, "hitRate": 0.0}


@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["cache"]["enabled"] is False
