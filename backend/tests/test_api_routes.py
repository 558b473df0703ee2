import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

import mongomock
from fastapi.testclient import TestClient

from app.api.deps import get_analysis_cache, get_github_client, get_insight_service
from app.database.mongo import ensure_indexes, get_db
from app.dtos.github import FileTreeNode, InsightResult, RepoMetadata
from app.entities.tracked_repository import TrackedRepository
from app.main import app
from app.middleware.auth import get_current_user
from app.middleware.rate_limit import RateLimiter, get_rate_limiter
from app.repositories.tracked_repository import TrackedRepositoryRepository
from app.services.cache_service import AnalysisCache
from app.utils.datetime import format_date, today

USER = {"id": "user-a", "email": "a@example.com", "access_token": "token-a"}
REPO_ID = "65f0c0ffee0000000000abcd"


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.db = mongomock.MongoClient(tz_aware=True)["test"]
        ensure_indexes(self.db)
        self.cache = AnalysisCache(default_ttl=3600)
        tracked = TrackedRepositoryRepository(self.db).insert_one(
            TrackedRepository(
                user_id=USER["id"], github_url="https://github.com/octo/tracked", name="tracked"
            )
        )
        self.repo_id = str(tracked.id)

        self.github = MagicMock()
        self.github.clone_repo_structure = AsyncMock(
            return_value=(
                RepoMetadata(owner="octo", repo="widgets", full_name="octo/widgets"),
                [FileTreeNode(path="main.py", type="file", extension="py")],
            )
        )
        self.insights = MagicMock()
        self.insights.analyze_repository = AsyncMock(
            return_value=InsightResult(
                summary="Widgets.", vibe="Utility Tool", difficulty="Beginner", improvements=[]
            )
        )

        app.dependency_overrides[get_db] = lambda: self.db
        app.dependency_overrides[get_analysis_cache] = lambda: self.cache
        app.dependency_overrides[get_github_client] = lambda: self.github
        app.dependency_overrides[get_insight_service] = lambda: self.insights
        app.dependency_overrides[get_current_user] = lambda: dict(USER)
        app.dependency_overrides[get_rate_limiter] = lambda: RateLimiter(enabled=False)

        self.client = TestClient(app, raise_server_exceptions=False)

    def tearDown(self):
        app.dependency_overrides.clear()

    def _create_log(self, **overrides):
        body = {"logDate": "2024-03-14", "content": "Wrote tests", "hoursWorked": 2}
        body.update(overrides)
        return self.client.post("/api/logs", json=body)


class TestEnvelope(ApiTestCase):
    def test_root(self):
        response = self.client.get("/")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["success"])
        self.assertEqual(response.json()["data"]["endpoints"]["logs"], "/api/logs")

    def test_health_reports_database(self):
        response = self.client.get("/health")

        body = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["message"], "Server is running")
        self.assertEqual(body["data"]["database"], "connected")

    def test_unknown_route(self):
        response = self.client.get("/api/nothing-here")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"success": False, "error": "Route not found"})

    def test_correlation_id_is_echoed(self):
        response = self.client.get("/health", headers={"X-Correlation-ID": "abc-123"})

        self.assertEqual(response.headers["X-Correlation-ID"], "abc-123")

    def test_correlation_id_is_generated(self):
        response = self.client.get("/health")

        self.assertTrue(response.headers.get("X-Correlation-ID"))

    def test_validation_error_shape(self):
        response = self._create_log(hoursWorked=25)

        body = response.json()
        self.assertEqual(response.status_code, 400)
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "Validation failed")
        self.assertEqual(body["details"][0]["path"], "hoursWorked")

    def test_missing_bearer_token(self):
        del app.dependency_overrides[get_current_user]

        response = self.client.get("/api/logs")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "Missing or invalid authorization header")

    def test_rate_limited_request(self):
        limiter = MagicMock()
        limiter.hit.return_value = (False, 101, 42)
        app.dependency_overrides[get_rate_limiter] = lambda: limiter

        response = self.client.get("/api/logs")

        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.headers["Retry-After"], "42")
        self.assertEqual(response.json()["error"], "Too many requests, please try again later")
        limiter.hit.assert_called_once()
        self.assertEqual(limiter.hit.call_args[0][1], "user:user-a")

    def test_unexpected_error_includes_stack_outside_production(self):
        limiter = MagicMock()
        limiter.hit.side_effect = RuntimeError("boom")
        app.dependency_overrides[get_rate_limiter] = lambda: limiter

        response = self.client.get("/api/logs")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], "boom")
        self.assertIn("stack", response.json()["details"])


class TestLogRoutes(ApiTestCase):
    def test_create_and_fetch(self):
        created = self._create_log(repoId=self.repo_id)

        self.assertEqual(created.status_code, 201)
        log = created.json()["data"]["log"]
        self.assertEqual(log["repo_id"], self.repo_id)

        fetched = self.client.get(f"/api/logs/{log['id']}")
        self.assertEqual(fetched.json()["data"]["log"]["content"], "Wrote tests")

    def test_duplicate_is_conflict(self):
        self._create_log(repoId=self.repo_id)

        response = self._create_log(repoId=self.repo_id)

        self.assertEqual(response.status_code, 409)
        self.assertEqual(
            response.json()["error"], "Log entry already exists for this date and repository"
        )

    def test_invalid_calendar_date(self):
        response = self._create_log(logDate="2024-02-30")

        self.assertEqual(response.status_code, 400)

    def test_date_filter_wins_over_repo(self):
        self._create_log(repoId=self.repo_id)
        self._create_log(logDate="2024-03-15", repoId=self.repo_id)

        response = self.client.get(
            "/api/logs", params={"date": "2024-03-15", "repoId": self.repo_id}
        )

        data = response.json()["data"]
        self.assertEqual(data["count"], 1)
        self.assertEqual(data["logs"][0]["log_date"], "2024-03-15")

    def test_repo_filter(self):
        self._create_log(repoId=self.repo_id)
        self._create_log(logDate="2024-03-15")

        data = self.client.get("/api/logs", params={"repoId": self.repo_id}).json()["data"]

        self.assertEqual([log["repo_id"] for log in data["logs"]], [self.repo_id])

    def test_date_range(self):
        for day in ("2024-03-01", "2024-03-10", "2024-03-20"):
            self._create_log(logDate=day)

        data = self.client.get(
            "/api/logs", params={"startDate": "2024-03-05", "endDate": "2024-03-20"}
        ).json()["data"]

        self.assertEqual(sorted(log["log_date"] for log in data["logs"]), ["2024-03-10", "2024-03-20"])

    def test_default_window_is_recent(self):
        self._create_log(logDate=format_date(today()))
        self._create_log(logDate="2001-01-01")

        data = self.client.get("/api/logs").json()["data"]

        self.assertEqual(data["count"], 1)

    def test_update_and_delete(self):
        log_id = self._create_log().json()["data"]["log"]["id"]

        updated = self.client.patch(f"/api/logs/{log_id}", json={"hoursWorked": 5})
        self.assertEqual(updated.json()["data"]["log"]["hours_worked"], 5)

        deleted = self.client.delete(f"/api/logs/{log_id}")
        self.assertEqual(deleted.json(), {"success": True, "message": "Log deleted successfully"})
        self.assertEqual(self.client.get(f"/api/logs/{log_id}").status_code, 404)


class TestActivityRoutes(ApiTestCase):
    def test_calendar_reflects_logs(self):
        self._create_log(hoursWorked=1.5)

        calendar = self.client.get(
            "/api/activity/calendar", params={"month": 3, "year": 2024}
        ).json()["data"]["calendar"]

        self.assertEqual(len(calendar["days"]), 31)
        self.assertEqual(
            calendar["days"][13],
            {"date": "2024-03-14", "isActive": True, "logCount": 1, "totalHours": 1.5},
        )

    def test_calendar_month_out_of_range(self):
        response = self.client.get("/api/activity/calendar", params={"month": 13, "year": 2024})

        self.assertEqual(response.status_code, 400)

    def test_metrics_rejects_unknown_period(self):
        response = self.client.get("/api/activity/metrics", params={"period": "decade"})

        self.assertEqual(response.status_code, 400)

    def test_streak_of_today(self):
        self._create_log(logDate=format_date(today()))

        streak = self.client.get("/api/activity/streak").json()["data"]["streak"]

        self.assertEqual(streak["currentStreak"], 1)


class TestRepositoryRoutes(ApiTestCase):
    def test_analyze_then_list(self):
        response = self.client.post(
            "/api/repos/analyze", json={"githubUrl": "https://github.com/octo/widgets"}
        )

        self.assertEqual(response.status_code, 201)
        repository = response.json()["data"]["repository"]
        self.assertEqual(repository["name"], "widgets")
        self.assertEqual(repository["difficulty_level"], "Beginner")

        listing = self.client.get("/api/repos").json()["data"]
        self.assertEqual(listing["total"], 2)

    def test_analyze_rejects_non_github_url(self):
        response = self.client.post(
            "/api/repos/analyze", json={"githubUrl": "https://gitlab.com/octo/widgets"}
        )

        self.assertEqual(response.status_code, 400)
        self.github.clone_repo_structure.assert_not_called()

    def test_missing_repository(self):
        response = self.client.get(f"/api/repos/{REPO_ID}")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "Repository not found")
    def test_cache_is_touched_on_the_event_loop(self):
        on_loop = []
        real_delete = self.cache.delete

        def record(key):
            try:
                asyncio.get_running_loop()
                on_loop.append(True)
            except RuntimeError:
                on_loop.append(False)
            return real_delete(key)

        self.cache.delete = record

        updated = self.client.patch(f"/api/repos/{self.repo_id}", json={"tags": ["lib"]})
        deleted = self.client.delete(f"/api/repos/{self.repo_id}")

        self.assertEqual(updated.status_code, 200)
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(on_loop, [True, True])

    def test_deleted_repository_cannot_be_logged_against(self):
        linked = self._create_log(repoId=self.repo_id).json()["data"]["log"]

        self.client.delete(f"/api/repos/{self.repo_id}")

        fetched = self.client.get(f"/api/logs/{linked['id']}").json()["data"]["log"]
        self.assertIsNone(fetched["repo_id"])
        stale = self._create_log(logDate="2024-03-15", repoId=self.repo_id)
        self.assertEqual(stale.status_code, 404)
        self.assertEqual(stale.json()["error"], "Repository not found")

    def test_foreign_repository_cannot_be_logged_against(self):
        foreign = TrackedRepositoryRepository(self.db).insert_one(
            TrackedRepository(
                user_id="user-b", github_url="https://github.com/octo/other", name="other"
            )
        )

        response = self._create_log(repoId=str(foreign.id))

        self.assertEqual(response.status_code, 404)
        self.assertEqual(self.db.daily_logs.count_documents({}), 0)


if __name__ == "__main__":
    unittest.main()
