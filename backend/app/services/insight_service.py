"""
LLM-backed repository insights.

Each of the four insights is generated by its own chat completion and has its
own deterministic fallback, so a failure in one never affects the others.
Without an OpenAI key every insight comes from its fallback.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import List, Optional

from openai import AsyncOpenAI

from app.config import settings
from app.dtos.github import InsightResult, RepoMetadata, ScanResult
from app.services import prompts

logger = logging.getLogger(__name__)

FALLBACK_IMPROVEMENTS = [
    "[documentation] Add README: Create comprehensive documentation explaining project setup and usage.",
    "[testing] Implement tests: Add unit and integration tests to ensure code reliability.",
    "[code-quality] Add linting: Set up ESLint or similar tools for consistent code style.",
]


class InsightUnavailableError(Exception):
    """Raised when a completion cannot be produced."""


def fallback_summary(metadata: RepoMetadata) -> str:
    description = f": {metadata.description}" if metadata.description else ""
    return (
        f"{metadata.full_name} is a {metadata.language or 'software'} project{description}. "
        f"The repository has {metadata.stars} stars and {metadata.forks} forks."
    )


def fallback_vibe(scan: ScanResult) -> str:
    if scan.complexity_score < 30:
        return "Learning Project"
    if scan.complexity_score < 50:
        return "Personal Tool"
    if scan.complexity_score < 70:
        return "Open Source Library"
    return "Enterprise"


def fallback_difficulty(scan: ScanResult) -> str:
    if scan.complexity_score < 25:
        return "Beginner"
    if scan.complexity_score < 50:
        return "Intermediate"
    if scan.complexity_score < 75:
        return "Advanced"
    return "Expert"


def fallback_analysis(metadata: RepoMetadata, scan: ScanResult) -> InsightResult:
    return InsightResult(
        summary=fallback_summary(metadata),
        vibe=fallback_vibe(scan),
        difficulty=fallback_difficulty(scan),
        improvements=list(FALLBACK_IMPROVEMENTS),
    )


def format_improvements(raw: str) -> List[str]:
    """Parse the JSON array returned by the model into display strings."""
    items = json.loads(raw)
    if not isinstance(items, list):
        raise ValueError("Improvement plan is not a JSON array")
    return [f"[{item['category']}] {item['title']}: {item['description']}" for item in items]


class InsightService:
    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self.model = model or settings.OPENAI_MODEL
        self._client = client

    @property
    def client(self) -> Optional[AsyncOpenAI]:
        """Lazily build the OpenAI client; None when no API key is configured."""
        if self._client is None and settings.OPENAI_API_KEY:
            self._client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        return self._client

    async def _complete(
        self, system_role: str, prompt: str, temperature: float, max_tokens: int
    ) -> str:
        client = self.client
        if client is None:
            raise InsightUnavailableError("OpenAI API key not configured")

        response = await client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_role},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        content = response.choices[0].message.content if response.choices else None
        content = (content or "").strip()
        if not content:
            raise InsightUnavailableError("Empty response from LLM")
        return content

    async def generate_repo_summary(self, metadata: RepoMetadata, scan: ScanResult) -> str:
        try:
            summary = await self._complete(
                prompts.SUMMARY_SYSTEM_ROLE,
                prompts.summary_prompt(metadata, scan),
                temperature=0.7,
                max_tokens=200,
            )
            logger.debug("Generated summary: %s", summary)
            return summary
        except Exception as e:
            logger.error("Error generating summary: %s", e)
            return fallback_summary(metadata)

    async def classify_vibe(self, metadata: RepoMetadata, scan: ScanResult) -> str:
        try:
            return await self._complete(
                prompts.VIBE_SYSTEM_ROLE,
                prompts.vibe_prompt(metadata, scan),
                temperature=0.3,
                max_tokens=50,
            )
        except Exception as e:
            logger.error("Error classifying vibe: %s", e)
            return fallback_vibe(scan)

    async def predict_difficulty(self, scan: ScanResult) -> str:
        try:
            return await self._complete(
                prompts.DIFFICULTY_SYSTEM_ROLE,
                prompts.difficulty_prompt(scan),
                temperature=0.3,
                max_tokens=50,
            )
        except Exception as e:
            logger.error("Error predicting difficulty: %s", e)
            return fallback_difficulty(scan)

    async def generate_improvement_plan(
        self, metadata: RepoMetadata, scan: ScanResult
    ) -> List[str]:
        try:
            content = await self._complete(
                prompts.IMPROVEMENT_SYSTEM_ROLE,
                prompts.improvement_prompt(metadata, scan),
                temperature=0.7,
                max_tokens=500,
            )
            return format_improvements(content)
        except Exception as e:
            logger.error("Error generating improvements: %s", e)
            return list(FALLBACK_IMPROVEMENTS)

    async def analyze_repository(
        self, metadata: RepoMetadata, scan: ScanResult
    ) -> InsightResult:
        """Run all four insights concurrently."""
        try:
            summary, vibe, difficulty, improvements = await asyncio.gather(
                self.generate_repo_summary(metadata, scan),
                self.classify_vibe(metadata, scan),
                self.predict_difficulty(scan),
                self.generate_improvement_plan(metadata, scan),
            )
        except Exception as e:
            logger.error("Error in LLM analysis: %s", e)
            return fallback_analysis(metadata, scan)

        return InsightResult(
            summary=summary,
            vibe=vibe,
            difficulty=difficulty,
            improvements=improvements,
        )
