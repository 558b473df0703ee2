"""GitHub data shapes used by the analysis pipeline"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class RepoMetadata(BaseModel):
    owner: str
    repo: str
    full_name: str
    description: Optional[str] = None
    language: Optional[str] = None
    stars: int = 0
    forks: int = 0
    default_branch: str = "main"


class FileTreeNode(BaseModel):
    path: str
    type: Literal["file", "dir"]
    size: Optional[int] = None
    extension: Optional[str] = None


class RateLimitStatus(BaseModel):
    limit: int
    remaining: int
    reset: int  # epoch seconds


class ScanResult(BaseModel):
    total_files: int
    total_directories: int
    languages: Dict[str, int] = Field(default_factory=dict)
    dependencies: List[str] = Field(default_factory=list)
    frameworks: List[str] = Field(default_factory=list)
    complexity_score: int = 0
    file_tree: List[FileTreeNode] = Field(default_factory=list)


class CodePatterns(BaseModel):
    has_classes: bool = False
    has_functions: bool = False
    has_imports: bool = False
    has_exports: bool = False


class InsightResult(BaseModel):
    summary: str
    vibe: str
    difficulty: str
    improvements: List[str] = Field(default_factory=list)
