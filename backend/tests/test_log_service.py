import unittest
from unittest.mock import patch

import mongomock
from bson import ObjectId

from app.core.exceptions import ConflictError, NotFoundError
from app.dtos import CreateLogRequest, UpdateLogRequest
from app.entities.tracked_repository import TrackedRepository
from app.repositories.tracked_repository import TrackedRepositoryRepository
from app.services.activity_service import ActivityService
from app.services.log_service import DUPLICATE_LOG_MESSAGE, LogService

DAY = "2024-03-14"


def _create(**overrides) -> CreateLogRequest:
    payload = {"logDate": DAY, "content": "Worked on the parser", "hoursWorked": 2}
    payload.update(overrides)
    return CreateLogRequest(**payload)


class TestLogService(unittest.TestCase):
    def setUp(self):
        self.db = mongomock.MongoClient(tz_aware=True)["test"]
        self.service = LogService(self.db)
        self.service.log_repo.ensure_indexes()
        self.service.activity_service.activity_repo.ensure_indexes()

    def _repo(self, user_id: str = "user-a", name: str = "widgets") -> str:
        repo = TrackedRepositoryRepository(self.db).insert_one(
            TrackedRepository(
                user_id=user_id, github_url=f"https://github.com/octo/{name}", name=name
            )
        )
        return str(repo.id)

    def _aggregate(self, user_id: str = "user-a", day: str = DAY) -> dict:
        return self.db.activity_days.find_one({"user_id": user_id, "activity_date": day})

    def _assert_aggregate_matches_logs(self, user_id: str = "user-a", day: str = DAY):
        logs = list(self.db.daily_logs.find({"user_id": user_id, "log_date": day}))
        aggregate = self._aggregate(user_id, day)
        self.assertEqual(aggregate["log_count"], len(logs))
        self.assertAlmostEqual(aggregate["total_hours"], sum(log["hours_worked"] for log in logs))
        self.assertEqual(aggregate["is_active"], len(logs) > 0)

    def test_duplicate_without_repo_conflicts(self):
        self.service.create_log("user-a", _create())

        with self.assertRaises(ConflictError) as ctx:
            self.service.create_log("user-a", _create(content="Again"))

        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.message, DUPLICATE_LOG_MESSAGE)

    def test_same_date_for_different_repo_succeeds(self):
        repo_one, repo_two = self._repo(name="one"), self._repo(name="two")

        self.service.create_log("user-a", _create())
        self.service.create_log("user-a", _create(repoId=repo_one))
        self.service.create_log("user-a", _create(repoId=repo_two, hoursWorked=1.5))

        self.assertEqual(len(self.service.get_logs_by_date("user-a", DAY)), 3)
        with self.assertRaises(ConflictError):
            self.service.create_log("user-a", _create(repoId=repo_one))

    def test_same_date_for_other_user_succeeds(self):
        self.service.create_log("user-a", _create())
        self.service.create_log("user-b", _create())

        self.assertEqual(self.db.daily_logs.count_documents({}), 2)

    def test_aggregate_tracks_every_mutation(self):
        first = self.service.create_log("user-a", _create(hoursWorked=2))
        second = self.service.create_log("user-a", _create(repoId=self._repo(), hoursWorked=3.5))
        self._assert_aggregate_matches_logs()
        self.assertEqual(self._aggregate()["log_count"], 2)

        self.service.update_log(first.id, "user-a", UpdateLogRequest(hoursWorked=4))
        self._assert_aggregate_matches_logs()
        self.assertAlmostEqual(self._aggregate()["total_hours"], 7.5)

        self.service.delete_log(second.id, "user-a")
        self._assert_aggregate_matches_logs()

        self.service.delete_log(first.id, "user-a")
        aggregate = self._aggregate()
        self.assertEqual(aggregate["log_count"], 0)
        self.assertEqual(aggregate["total_hours"], 0)
        self.assertFalse(aggregate["is_active"])

    def test_repeated_recompute_does_not_drift(self):
        self.service.create_log("user-a", _create(hoursWorked=2))
        for _ in range(3):
            self.service.activity_service.recompute("user-a", DAY)

        self._assert_aggregate_matches_logs()
        self.assertEqual(self.db.activity_days.count_documents({"user_id": "user-a"}), 1)

    def test_other_owner_sees_not_found(self):
        log = self.service.create_log("user-a", _create())

        with self.assertRaises(NotFoundError):
            self.service.get_log(log.id, "user-b")
        with self.assertRaises(NotFoundError):
            self.service.update_log(log.id, "user-b", UpdateLogRequest(content="Hijack"))
        with self.assertRaises(NotFoundError):
            self.service.delete_log(log.id, "user-b")

        self.assertEqual(self.service.get_log(log.id, "user-a").content, "Worked on the parser")

    def test_recompute_failure_does_not_fail_the_mutation(self):
        with patch.object(
            self.service.activity_service, "recompute", side_effect=RuntimeError("db down")
        ):
            log = self.service.create_log("user-a", _create())

        self.assertEqual(log.log_date, DAY)
        self.assertEqual(self.db.daily_logs.count_documents({}), 1)

    def test_query_by_repo_and_range(self):
        repo_id = self._repo()
        for day in ("2024-03-01", "2024-03-10", "2024-03-20"):
            self.service.create_log("user-a", _create(logDate=day, repoId=repo_id))
        self.service.create_log("user-a", _create(logDate="2024-03-10"))

        by_repo = self.service.get_logs_by_repo("user-a", repo_id, start_date="2024-03-05")
        by_range = self.service.get_logs_by_date_range("user-a", "2024-03-01", "2024-03-10")

        self.assertEqual([log.log_date for log in by_repo], ["2024-03-20", "2024-03-10"])
        self.assertEqual(len(by_range), 3)
        self.assertEqual(by_range[0].log_date, "2024-03-10")


    def test_repository_must_belong_to_caller(self):
        foreign = self._repo(user_id="user-b")

        for repo_id in (foreign, str(ObjectId())):
            with self.assertRaises(NotFoundError) as ctx:
                self.service.create_log("user-a", _create(repoId=repo_id))
            self.assertEqual(ctx.exception.message, "Repository not found")

        self.assertEqual(self.db.daily_logs.count_documents({}), 0)
        metrics = ActivityService(self.db).get_productivity_metrics("user-a", "all")
        self.assertEqual(metrics.unique_repos, 0)

    def test_owned_repository_counts_once(self):
        repo_id = self._repo()
        self.service.create_log("user-a", _create(repoId=repo_id))
        self.service.create_log("user-a", _create(logDate="2024-03-15", repoId=repo_id))

        metrics = ActivityService(self.db).get_productivity_metrics("user-a", "all")

        self.assertEqual(metrics.unique_repos, 1)

class TestCreateLogRequest(unittest.TestCase):
    def test_rejects_impossible_dates(self):
        with self.assertRaises(ValueError):
            _create(logDate="2024-02-30")

    def test_rejects_out_of_range_hours(self):
        with self.assertRaises(ValueError):
            _create(hoursWorked=25)


if __name__ == "__main__":
    unittest.main()
