"""Service providers shared by the routers. Overridable in tests."""

from fastapi import Depends, Request
from pymongo.database import Database

from app.database.mongo import get_db
from app.middleware.auth import get_identity_provider
from app.services.auth_service import AuthService
from app.services.cache_service import AnalysisCache
from app.services.github.github_client import GithubClient
from app.services.identity_provider import IdentityProvider
from app.services.insight_service import InsightService
from app.services.repository_service import RepositoryService


def get_analysis_cache(request: Request) -> AnalysisCache:
    return request.app.state.analysis_cache


def get_github_client() -> GithubClient:
    return GithubClient()


def get_insight_service() -> InsightService:
    return InsightService()


def get_repository_service(
    db: Database = Depends(get_db),
    cache: AnalysisCache = Depends(get_analysis_cache),
    github: GithubClient = Depends(get_github_client),
    insights: InsightService = Depends(get_insight_service),
) -> RepositoryService:
    return RepositoryService(db, cache, github=github, insights=insights)


def get_auth_service(
    db: Database = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> AuthService:
    return AuthService(db, identity=identity)
