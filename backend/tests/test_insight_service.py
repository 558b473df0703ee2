import json
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from app.dtos.github import RepoMetadata, ScanResult
from app.services.insight_service import (
    FALLBACK_IMPROVEMENTS,
    InsightService,
    fallback_difficulty,
    fallback_summary,
    fallback_vibe,
)


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _client(*responses):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=list(responses))
    return client


METADATA = RepoMetadata(
    owner="octo",
    repo="widgets",
    full_name="octo/widgets",
    description="Reusable widgets",
    language="TypeScript",
    stars=42,
    forks=7,
)


def _scan(score: int) -> ScanResult:
    return ScanResult(total_files=12, total_directories=3, complexity_score=score)


class TestFallbacks(unittest.TestCase):
    def test_summary_template(self):
        self.assertEqual(
            fallback_summary(METADATA),
            "octo/widgets is a TypeScript project: Reusable widgets. "
            "The repository has 42 stars and 7 forks.",
        )

    def test_summary_without_language_or_description(self):
        metadata = METADATA.model_copy(update={"language": None, "description": None})

        self.assertEqual(
            fallback_summary(metadata),
            "octo/widgets is a software project. The repository has 42 stars and 7 forks.",
        )

    def test_vibe_bands(self):
        self.assertEqual(fallback_vibe(_scan(29)), "Learning Project")
        self.assertEqual(fallback_vibe(_scan(30)), "Personal Tool")
        self.assertEqual(fallback_vibe(_scan(50)), "Open Source Library")
        self.assertEqual(fallback_vibe(_scan(70)), "Enterprise")

    def test_difficulty_bands(self):
        self.assertEqual(fallback_difficulty(_scan(24)), "Beginner")
        self.assertEqual(fallback_difficulty(_scan(25)), "Intermediate")
        self.assertEqual(fallback_difficulty(_scan(50)), "Advanced")
        self.assertEqual(fallback_difficulty(_scan(75)), "Expert")


class TestInsightService(unittest.IsolatedAsyncioTestCase):
    async def test_uses_model_output(self):
        improvements = json.dumps(
            [{"category": "testing", "title": "Add tests", "description": "Cover the parser."}]
        )
        client = _client(
            _completion("  A widget library.  "),
            _completion("Open Source Library"),
            _completion("Intermediate"),
            _completion(improvements),
        )
        service = InsightService(client=client, model="test-model")

        summary = await service.generate_repo_summary(METADATA, _scan(40))
        vibe = await service.classify_vibe(METADATA, _scan(40))
        difficulty = await service.predict_difficulty(_scan(40))
        plan = await service.generate_improvement_plan(METADATA, _scan(40))

        self.assertEqual(summary, "A widget library.")
        self.assertEqual(vibe, "Open Source Library")
        self.assertEqual(difficulty, "Intermediate")
        self.assertEqual(plan, ["[testing] Add tests: Cover the parser."])

        calls = client.chat.completions.create.await_args_list
        self.assertEqual(
            [(c.kwargs["temperature"], c.kwargs["max_tokens"]) for c in calls],
            [(0.7, 200), (0.3, 50), (0.3, 50), (0.7, 500)],
        )
        self.assertTrue(all(c.kwargs["model"] == "test-model" for c in calls))
        self.assertEqual(calls[0].kwargs["messages"][0]["role"], "system")

    async def test_each_operation_falls_back_independently(self):
        client = _client(
            RuntimeError("boom"),
            _completion("Enterprise"),
            _completion("   "),
            _completion("not json"),
        )
        service = InsightService(client=client)

        summary = await service.generate_repo_summary(METADATA, _scan(10))
        vibe = await service.classify_vibe(METADATA, _scan(10))
        difficulty = await service.predict_difficulty(_scan(10))
        plan = await service.generate_improvement_plan(METADATA, _scan(10))

        self.assertEqual(summary, fallback_summary(METADATA))
        self.assertEqual(vibe, "Enterprise")
        self.assertEqual(difficulty, "Beginner")
        self.assertEqual(plan, FALLBACK_IMPROVEMENTS)

    async def test_without_api_key_everything_falls_back(self):
        with patch("app.services.insight_service.settings") as mock_settings:
            mock_settings.OPENAI_API_KEY = None
            mock_settings.OPENAI_MODEL = "gpt-test"
            service = InsightService()

            result = await service.analyze_repository(METADATA, _scan(60))

        self.assertEqual(result.summary, fallback_summary(METADATA))
        self.assertEqual(result.vibe, "Open Source Library")
        self.assertEqual(result.difficulty, "Advanced")
        self.assertEqual(result.improvements, FALLBACK_IMPROVEMENTS)

    async def test_failed_gather_returns_full_fallback(self):
        service = InsightService(client=MagicMock())

        with patch(
            "app.services.insight_service.asyncio.gather",
            new=AsyncMock(side_effect=RuntimeError("loop closed")),
        ):
            # The coroutines handed to the patched gather are never awaited
            with patch.object(service, "generate_repo_summary", new=MagicMock()), \
                    patch.object(service, "classify_vibe", new=MagicMock()), \
                    patch.object(service, "predict_difficulty", new=MagicMock()), \
                    patch.object(service, "generate_improvement_plan", new=MagicMock()):
                result = await service.analyze_repository(METADATA, _scan(80))

        self.assertEqual(result.summary, fallback_summary(METADATA))
        self.assertEqual(result.vibe, "Enterprise")
        self.assertEqual(result.difficulty, "Expert")
        self.assertEqual(result.improvements, FALLBACK_IMPROVEMENTS)


if __name__ == "__main__":
    unittest.main()
