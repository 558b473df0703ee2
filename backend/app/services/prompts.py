"""Prompt builders for the repository insight calls."""

from app.dtos.github import RepoMetadata, ScanResult

SUMMARY_SYSTEM_ROLE = (
    "You are a senior software engineer analyzing GitHub repositories. "
    "Provide concise, technical summaries."
)
VIBE_SYSTEM_ROLE = "You are a repository classifier. Respond with only the category name."
DIFFICULTY_SYSTEM_ROLE = (
    "You are a code complexity analyzer. Respond with only the difficulty level."
)
IMPROVEMENT_SYSTEM_ROLE = (
    "You are a senior software engineer providing code review feedback. "
    "Respond with only valid JSON."
)


def _joined(items, empty: str) -> str:
    return ", ".join(items) or empty


def summary_prompt(metadata: RepoMetadata, scan: ScanResult) -> str:
    languages = ", ".join(f"{lang} ({count} files)" for lang, count in scan.languages.items())
    return f"""Analyze this GitHub repository and provide a concise, professional summary (2-3 sentences):

Repository: {metadata.full_name}
Description: {metadata.description or 'No description provided'}
Primary Language: {metadata.language or 'Unknown'}
Stars: {metadata.stars}
Forks: {metadata.forks}

Code Analysis:
- Total Files: {scan.total_files}
- Languages: {languages}
- Frameworks/Tools: {_joined(scan.frameworks, 'None detected')}
- Dependencies: {_joined(scan.dependencies, 'None detected')}

Provide a summary that explains what this project does, its main purpose, and key technologies used. Be specific and technical."""


def vibe_prompt(metadata: RepoMetadata, scan: ScanResult) -> str:
    return f"""Classify the "vibe" or nature of this GitHub repository into ONE of these categories:

Categories:
1. Enterprise - Large-scale production application with complex architecture
2. Startup MVP - Minimum viable product or early-stage startup project
3. Open Source Library - Reusable library or framework for developers
4. Learning Project - Educational or tutorial project for learning
5. Experimental - Research, proof-of-concept, or experimental project
6. Personal Tool - Personal utility or automation tool
7. Portfolio Project - Showcase project for portfolio
8. Boilerplate - Template or starter project

Repository: {metadata.full_name}
Description: {metadata.description or 'No description'}
Stars: {metadata.stars}
Forks: {metadata.forks}
Files: {scan.total_files}
Complexity Score: {scan.complexity_score}/100
Frameworks: {_joined(scan.frameworks, 'None')}

Respond with ONLY the category name (e.g., "Enterprise" or "Learning Project")."""


def difficulty_prompt(scan: ScanResult) -> str:
    return f"""Predict the difficulty level for a developer to understand and contribute to this codebase.

Choose ONE difficulty level:
1. Beginner - Simple structure, few files, single language, minimal dependencies
2. Intermediate - Moderate complexity, multiple files, common frameworks
3. Advanced - Complex architecture, multiple languages, many dependencies
4. Expert - Very complex, large codebase, advanced patterns, specialized domain

Code Metrics:
- Total Files: {scan.total_files}
- Total Directories: {scan.total_directories}
- Languages: {', '.join(scan.languages)}
- Complexity Score: {scan.complexity_score}/100
- Frameworks: {_joined(scan.frameworks, 'None')}
- Dependencies: {len(scan.dependencies)}

Respond with ONLY the difficulty level (e.g., "Intermediate")."""


def improvement_prompt(metadata: RepoMetadata, scan: ScanResult) -> str:
    return f"""As a senior software engineer, suggest 3-5 specific improvements for this repository:

Repository: {metadata.full_name}
Description: {metadata.description or 'No description'}
Files: {scan.total_files}
Complexity: {scan.complexity_score}/100
Frameworks: {_joined(scan.frameworks, 'None')}
Dependencies: {_joined(scan.dependencies, 'None')}

Focus on:
- Code quality and organization
- Testing and documentation
- Performance and scalability
- Security best practices
- Developer experience

Provide a JSON array of improvement suggestions. Each suggestion should have:
- category: "code-quality" | "testing" | "documentation" | "performance" | "security" | "devex"
- title: Brief title (max 50 chars)
- description: Detailed explanation (max 150 chars)

Example format:
[
  {{
    "category": "testing",
    "title": "Add unit tests",
    "description": "Implement unit tests to ensure code reliability and catch bugs early."
  }}
]

Respond with ONLY the JSON array, no additional text."""
