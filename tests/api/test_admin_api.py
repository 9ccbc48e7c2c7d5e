"""API tests for /api/admin and /api/achievements."""

from __future__ import annotations

from datetime import timedelta

import pytest

from teamquiz.admin.cache import EXTENDED
from teamquiz.questions.service import create_question

MINIMAL_BODY = {
    "extendedCaching": False,
    "staleTime": 60000,
    "cacheTime": 120000,
    "refetchOnWindowFocus": True,
    "retryOnReconnect": True,
}


class TestCacheSettings:
    @pytest.mark.asyncio
    async def test_read_defaults(self, client, admin):
        response = await client.get("/api/admin/cache-settings", headers=admin.headers)
        assert response.status_code == 200
        assert response.json() == EXTENDED.model_dump(by_alias=True)

    @pytest.mark.asyncio
    async def test_replace(self, app, client, admin):
        response = await client.post("/api/admin/cache-settings", json=MINIMAL_BODY, headers=admin.headers)
        assert response.status_code == 200
        assert response.json() == MINIMAL_BODY
        assert app.state.cache_settings.extended_caching is False

        response = await client.get("/api/admin/cache-settings", headers=admin.headers)
        assert response.json()["staleTime"] == 60000

    @pytest.mark.asyncio
    async def test_negative_times_are_rejected(self, client, admin):
        response = await client.post(
            "/api/admin/cache-settings", json={**MINIMAL_BODY, "staleTime": -1}, headers=admin.headers
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_players_cannot_change_settings(self, client, player):
        response = await client.post("/api/admin/cache-settings", json=MINIMAL_BODY, headers=player.headers)
        assert response.status_code == 401


class TestWeeklyReset:
    @pytest.mark.asyncio
    async def test_resets_everyone(self, client, admin, make_user, reload):
        a = await make_user("a", score=40)
        b = await make_user("b", score=90)
        response = await client.post("/api/admin/reset-weekly", headers=admin.headers)
        assert response.status_code == 200
        assert response.json() == {"usersReset": 3}
        assert (await reload(a.id)).weekly_score == 0
        assert (await reload(b.id)).weekly_score == 0


class TestAchievements:
    @pytest.mark.asyncio
    async def test_listing_after_a_completed_quiz(self, client, db_session, clock, admin, player):
        questions = [
            await create_question(db_session, question=f"Q{i}", options=["y", "n"], correct_answer="y", week_of=clock.now)
            for i in range(3)
        ]
        await db_session.commit()
        for i, q in enumerate(questions):
            clock.now = clock.now + timedelta(minutes=i)
            await client.post("/api/answers", json={"questionId": q.id, "answer": "y"}, headers=player.headers)

        everyone = await client.get("/api/achievements", headers=player.headers)
        assert len(everyone.json()) == 2

        mine = await client.get("/api/achievements/latest", headers=player.headers)
        assert {a["badge"] for a in mine.json()} == {"quiz_bronze", "perfect_bronze"}
        assert all(a["userId"] == player.id for a in mine.json())

        admin_view = await client.get("/api/admin/achievements", headers=admin.headers)
        assert admin_view.status_code == 200
        assert len(admin_view.json()) == 2

    @pytest.mark.asyncio
    async def test_admin_listing_is_admin_only(self, client, player):
        response = await client.get("/api/admin/achievements", headers=player.headers)
        assert response.status_code == 401
