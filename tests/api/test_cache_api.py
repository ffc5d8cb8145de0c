"""
Tests for cache API endpoints
"""
from unittest.mock import patch

import pytest


class TestCacheInfo:
    """GET /api/v1/cache"""

    @pytest.mark.asyncio
    async def test_overview(self, client):
        response = await client.get("/api/v1/cache")

        assert response.status_code == 200
        data = response.json()
        assert data["redis"]["connected"] is True
        assert data["performance"]["total_requests"] == 0
        assert "key_count" in data["cache"]

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/v1/cache", params={"action": "health"})

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_metrics(self, client, cache_service):
        await cache_service.get_transcript("abc123")

        response = await client.get("/api/v1/cache", params={"action": "metrics"})

        assert response.json()["misses"] == 1

    @pytest.mark.asyncio
    async def test_stats(self, client, cache_service):
        await cache_service.set_search_results("redis", [])

        response = await client.get("/api/v1/cache", params={"action": "stats"})

        assert response.json()["key_count"] == 1

    @pytest.mark.asyncio
    async def test_performance(self, client):
        response = await client.get("/api/v1/cache", params={"action": "performance"})

        assert response.json()["overall"] == "poor"

    @pytest.mark.asyncio
    async def test_unknown_action(self, client):
        response = await client.get("/api/v1/cache", params={"action": "explode"})
        assert response.status_code == 400


class TestCacheActions:
    """POST/DELETE /api/v1/cache"""

    @pytest.mark.asyncio
    async def test_invalidate_transcript(self, client, cache_service, fake_redis):
        await cache_service.set_search_results("redis", [])
        fake_redis.store["transcript:abc123"] = "{}"
        fake_redis.store["video:abc123"] = "{}"

        response = await client.post(
            "/api/v1/cache", json={"action": "invalidate-transcript", "video_id": "abc123"}
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert "transcript:abc123" not in fake_redis.store
        assert "video:abc123" not in fake_redis.store

    @pytest.mark.asyncio
    async def test_invalidate_transcript_requires_video_id(self, client):
        response = await client.post("/api/v1/cache", json={"action": "invalidate-transcript"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_clear_all_in_development(self, client, fake_redis):
        fake_redis.store["transcript:abc123"] = "{}"

        response = await client.post("/api/v1/cache", json={"action": "clear-all"})

        assert response.status_code == 200
        assert fake_redis.store == {}

    @pytest.mark.asyncio
    async def test_clear_all_forbidden_outside_development(self, client, fake_redis):
        fake_redis.store["transcript:abc123"] = "{}"

        with patch("app.api.v1.cache.get_settings") as mock_settings:
            mock_settings.return_value.ENVIRONMENT = "production"
            response = await client.post("/api/v1/cache", json={"action": "clear-all"})

        assert response.status_code == 403
        assert "transcript:abc123" in fake_redis.store

    @pytest.mark.asyncio
    async def test_reset_metrics(self, client, cache_service):
        await cache_service.get_transcript("abc123")

        response = await client.post("/api/v1/cache", json={"action": "reset-metrics"})

        assert response.status_code == 200
        assert cache_service.get_metrics().total_requests == 0

    @pytest.mark.asyncio
    async def test_delete_search(self, client, cache_service, fake_redis):
        await cache_service.set_search_results("redis", [])

        response = await client.delete("/api/v1/cache", params={"type": "search"})

        assert response.status_code == 200
        assert fake_redis.store == {}

    @pytest.mark.asyncio
    async def test_delete_requires_target(self, client):
        response = await client.delete("/api/v1/cache")
        assert response.status_code == 400
