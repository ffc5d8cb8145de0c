"""
Tests for DB monitor and transcript API endpoints
"""
from datetime import datetime, timedelta

import pytest

from app.database.repositories import QueryPerformanceRepository


class TestDbMonitorApi:
    """GET/POST /api/v1/db-monitor"""

    @pytest.mark.asyncio
    async def test_overview(self, client):
        response = await client.get("/api/v1/db-monitor")

        assert response.status_code == 200
        data = response.json()
        assert data["health"]["connected"] is True
        assert data["performance"]["total_queries"] == 0
        assert data["slow_queries"]["recommendations"] == ["Database performance looks good!"]

    @pytest.mark.asyncio
    async def test_stats(self, client, query_monitor, clock):
        def operation():
            clock.advance(0.2)

        await query_monitor.execute_with_monitoring("transcript_fetch", operation)

        response = await client.get("/api/v1/db-monitor", params={"action": "stats"})

        data = response.json()
        assert data["total_queries"] == 1
        assert data["query_type_breakdown"]["transcript_fetch"]["average_time"] == 200

    @pytest.mark.asyncio
    async def test_slow_queries(self, client, test_db):
        await QueryPerformanceRepository(test_db).create_sample("transcript_search", "h1", 1800)
        await test_db.commit()

        response = await client.get("/api/v1/db-monitor", params={"action": "slow-queries", "limit": 5})

        queries = response.json()["queries"]
        assert len(queries) == 1
        assert queries[0]["impact_score"] == 1800

    @pytest.mark.asyncio
    async def test_cleanup_logs(self, client, test_db):
        repo = QueryPerformanceRepository(test_db)
        await repo.create_sample("transcript_fetch", "old", 1500, timestamp=datetime.utcnow() - timedelta(days=10))
        await test_db.commit()

        response = await client.post("/api/v1/db-monitor", json={"action": "cleanup-logs", "days_to_keep": 7})

        assert response.status_code == 200
        assert response.json()["cleaned_count"] == 1

    @pytest.mark.asyncio
    async def test_days_to_keep_validated(self, client):
        response = await client.post("/api/v1/db-monitor", json={"action": "cleanup-logs", "days_to_keep": 0})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_action(self, client):
        response = await client.post("/api/v1/db-monitor", json={"action": "drop-tables"})
        assert response.status_code == 400


class TestTranscriptsApi:
    """/api/v1/transcripts"""

    @pytest.mark.asyncio
    async def test_get_transcript(self, client, sample_transcript, fake_redis):
        response = await client.get("/api/v1/transcripts/abc123")

        assert response.status_code == 200
        assert response.json()["title"] == sample_transcript.title
        assert "transcript:abc123" in fake_redis.store

    @pytest.mark.asyncio
    async def test_get_transcript_not_found(self, client):
        response = await client.get("/api/v1/transcripts/missing")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_search(self, client, sample_transcript):
        response = await client.get("/api/v1/transcripts/search", params={"q": "redis"})

        assert response.status_code == 200
        assert [r["video_id"] for r in response.json()] == ["abc123"]

    @pytest.mark.asyncio
    async def test_create_transcript(self, client, fake_redis):
        fake_redis.store["transcript:xyz789"] = "{}"

        response = await client.post(
            "/api/v1/transcripts",
            json={"video_id": "xyz789", "title": "New video"},
        )

        assert response.status_code == 201
        assert response.json()["video_id"] == "xyz789"
        assert "transcript:xyz789" not in fake_redis.store


class TestHealthApi:
    """/api/v1/health"""

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/v1/health/")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_degraded_without_redis(self, client, fake_redis):
        fake_redis.ping_error = ConnectionError("refused")

        response = await client.get("/api/v1/health/")

        assert response.json()["status"] == "degraded"
