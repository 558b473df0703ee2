from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from app.api.deps import get_repository_service
from app.dtos import AnalyzeRepoRequest, UpdateRepoRequest
from app.dtos.common import format_response
from app.middleware.auth import get_current_user
from app.middleware.rate_limit import ANALYSIS_POLICY, limit_per_user
from app.services.repository_service import RepositoryService

router = APIRouter(prefix="/repos", tags=["Repositories"])


def _split_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    """Accept both ?tags=a&tags=b and ?tags=a,b."""
    if not tags:
        return None
    values = [tag.strip() for raw in tags for tag in raw.split(",")]
    return [tag for tag in values if tag] or None


@router.post(
    "/analyze",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(limit_per_user(ANALYSIS_POLICY))],
)
async def analyze_repository(
    payload: AnalyzeRepoRequest,
    user: dict = Depends(get_current_user),
    service: RepositoryService = Depends(get_repository_service),
):
    """Analyze a GitHub repository, or return the caller's existing analysis of it."""
    repository = await service.analyze_repository(user["id"], payload.github_url)
    return format_response(
        data={"repository": repository.model_dump(mode="json")},
        message="Repository analyzed successfully",
    )


@router.get("")
def list_repositories(
    language: Optional[str] = Query(None),
    tags: Optional[List[str]] = Query(None),
    difficulty: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: dict = Depends(get_current_user),
    service: RepositoryService = Depends(get_repository_service),
):
    result = service.list_repositories(
        user["id"],
        language=language,
        tags=_split_tags(tags),
        difficulty=difficulty,
        page=page,
        limit=limit,
    )
    return format_response(data=result.model_dump(mode="json"))


@router.get("/search")
def search_repositories(
    query: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: dict = Depends(get_current_user),
    service: RepositoryService = Depends(get_repository_service),
):
    result = service.search_repositories(user["id"], query, page=page, limit=limit)
    return format_response(data=result.model_dump(mode="json"))


@router.get("/{repo_id}")
def get_repository(
    repo_id: str = Path(...),
    user: dict = Depends(get_current_user),
    service: RepositoryService = Depends(get_repository_service),
):
    repository = service.get_repository(repo_id, user["id"])
    return format_response(data={"repository": repository.model_dump(mode="json")})


@router.patch("/{repo_id}")
async def update_repository(
    payload: UpdateRepoRequest,
    repo_id: str = Path(...),
    user: dict = Depends(get_current_user),
    service: RepositoryService = Depends(get_repository_service),
):
    repository = await service.update_repository(repo_id, user["id"], payload)
    return format_response(
        data={"repository": repository.model_dump(mode="json")},
        message="Repository updated successfully",
    )


@router.delete("/{repo_id}")
async def delete_repository(
    repo_id: str = Path(...),
    user: dict = Depends(get_current_user),
    service: RepositoryService = Depends(get_repository_service),
):
    await service.delete_repository(repo_id, user["id"])
    return format_response(message="Repository deleted successfully")
