import asyncio
import logging
from typing import Any, Dict, List, Optional

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.exceptions import AppError, NotFoundError, UpstreamError
from app.core.tracing import TracingContext
from app.dtos import RepoListResponse, RepoResponse, UpdateRepoRequest
from app.entities.tracked_repository import TrackedRepository
from app.repositories.daily_log import DailyLogRepository
from app.repositories.tracked_repository import TrackedRepositoryRepository
from app.services.activity_service import ActivityService
from app.services.cache_service import AnalysisCache
from app.services.github.github_client import GithubClient
from app.services.insight_service import InsightService
from app.services.scanner_service import scan_codebase

logger = logging.getLogger(__name__)


def _serialize_repo(repo: TrackedRepository) -> RepoResponse:
    return RepoResponse.model_validate(repo.model_dump(by_alias=True))


def _page_window(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit


class RepositoryService:
    def __init__(
        self,
        db: Database,
        cache: AnalysisCache,
        github: Optional[GithubClient] = None,
        insights: Optional[InsightService] = None,
    ):
        self.db = db
        self.cache = cache
        self.github = github or GithubClient()
        self.insights = insights or InsightService()
        self.repo_repo = TrackedRepositoryRepository(db)
        self.log_repo = DailyLogRepository(db)

    async def analyze_repository(self, user_id: str, github_url: str) -> RepoResponse:
        """
        Fetch, scan and summarise a GitHub repository for a user.

        Returns the cached or previously stored analysis when the same user
        already submitted this URL; otherwise runs the full pipeline and
        persists the result. Nothing is stored if any step before the insert
        fails.
        """
        TracingContext.set(repo_url=github_url)
        cache_key = AnalysisCache.repo_key(github_url)

        cached = self.cache.get(cache_key, owner=user_id)
        if cached is not None:
            logger.info("Returning cached analysis for %s", github_url)
            return cached.model_copy(deep=True)

        try:
            existing = await asyncio.to_thread(self.repo_repo.find_by_url, user_id, github_url)
            if existing:
                logger.info("Repository already analyzed: %s", github_url)
                return self._remember(cache_key, user_id, _serialize_repo(existing))

            logger.info("Starting analysis for %s", github_url)
            metadata, file_tree = await self.github.clone_repo_structure(github_url)
            scan = scan_codebase(file_tree)
            insights = await self.insights.analyze_repository(metadata, scan)

            entity = TrackedRepository(
                user_id=user_id,
                github_url=github_url,
                name=metadata.repo,
                description=metadata.description,
                language=metadata.language,
                stars=metadata.stars,
                forks=metadata.forks,
                complexity_score=scan.complexity_score,
                difficulty_level=insights.difficulty,
                vibe_classification=insights.vibe,
                summary=insights.summary,
                tags=[],
                metadata={
                    "owner": metadata.owner,
                    "full_name": metadata.full_name,
                    "default_branch": metadata.default_branch,
                    "total_files": scan.total_files,
                    "total_directories": scan.total_directories,
                    "languages": scan.languages,
                    "frameworks": scan.frameworks,
                    "dependencies": scan.dependencies,
                    "improvements": insights.improvements,
                },
            )

            saved = await asyncio.to_thread(self._save, entity)
            logger.info("Analysis complete for %s", github_url)
            return self._remember(cache_key, user_id, _serialize_repo(saved))
        except AppError:
            raise
        except Exception as e:
            logger.exception("Unexpected error in repository analysis: %s", e)
            raise UpstreamError("Repository analysis failed") from e

    def _save(self, entity: TrackedRepository) -> TrackedRepository:
        try:
            return self.repo_repo.insert_one(entity)
        except DuplicateKeyError:
            # A concurrent request for the same URL won the insert
            logger.info(
                "Concurrent analysis detected for %s, reusing stored record", entity.github_url
            )
            saved = self.repo_repo.find_by_url(entity.user_id, entity.github_url)
            if saved is None:
                raise UpstreamError("Failed to save repository analysis")
            return saved
        except PyMongoError as e:
            logger.error("Error saving repository: %s", e)
            raise UpstreamError("Failed to save repository analysis")

    def _remember(self, cache_key: str, user_id: str, repo: RepoResponse) -> RepoResponse:
        # Callers get their own copy; the cached instance is never handed out
        self.cache.set(cache_key, repo.model_copy(deep=True), owner=user_id)
        return repo

    def list_repositories(
        self,
        user_id: str,
        language: Optional[str] = None,
        tags: Optional[List[str]] = None,
        difficulty: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> RepoListResponse:
        items, total = self.repo_repo.list_for_user(
            user_id,
            language=language,
            difficulty=difficulty,
            tags=tags,
            skip=_page_window(page, limit),
            limit=limit,
        )
        return RepoListResponse(
            repositories=[_serialize_repo(repo) for repo in items],
            total=total,
            page=page,
            limit=limit,
        )

    def search_repositories(
        self, user_id: str, query: str, page: int = 1, limit: int = 20
    ) -> RepoListResponse:
        items, total = self.repo_repo.search_for_user(
            user_id, query, skip=_page_window(page, limit), limit=limit
        )
        return RepoListResponse(
            repositories=[_serialize_repo(repo) for repo in items],
            total=total,
            page=page,
            limit=limit,
        )

    def get_repository(self, repo_id: str, user_id: str) -> RepoResponse:
        repo = self.repo_repo.find_for_user(repo_id, user_id)
        if not repo:
            raise NotFoundError("Repository not found")
        return _serialize_repo(repo)

    def _apply_update(
        self, repo_id: str, user_id: str, updates: Dict[str, Any]
    ) -> Optional[TrackedRepository]:
        if updates:
            return self.repo_repo.update_for_user(repo_id, user_id, updates)
        return self.repo_repo.find_for_user(repo_id, user_id)

    async def update_repository(
        self, repo_id: str, user_id: str, payload: UpdateRepoRequest
    ) -> RepoResponse:
        updates: Dict[str, Any] = payload.model_dump(exclude_none=True)
        repo = await asyncio.to_thread(self._apply_update, repo_id, user_id, updates)
        if not repo:
            raise NotFoundError("Repository not found")

        self.cache.delete(AnalysisCache.repo_key(repo.github_url))
        return _serialize_repo(repo)

    def _delete_and_detach(self, repo_id: str, user_id: str) -> Optional[TrackedRepository]:
        """Delete the record and clear its id from the owner's logs."""
        removed = self.repo_repo.delete_for_user(repo_id, user_id)
        if not removed:
            return None

        dates = self.log_repo.detach_repo(user_id, str(removed.id))
        activity = ActivityService(self.db)
        for log_date in dates:
            try:
                activity.recompute(user_id, log_date)
            except Exception as e:
                logger.error("Error updating activity for %s on %s: %s", user_id, log_date, e)
        if dates:
            logger.info("Detached %d log dates from repository %s", len(dates), repo_id)
        return removed

    async def delete_repository(self, repo_id: str, user_id: str) -> None:
        removed = await asyncio.to_thread(self._delete_and_detach, repo_id, user_id)
        if not removed:
            raise NotFoundError("Repository not found")

        self.cache.delete(AnalysisCache.repo_key(removed.github_url))
        logger.info("Deleted repository %s (%s)", repo_id, removed.github_url)
