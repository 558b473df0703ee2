"""
Static codebase scanner.

Works purely on the file tree returned by GitHub (no file contents), so the
result is a deterministic function of the tree.
"""

import logging
import re
from typing import Dict, List

from app.dtos.github import CodePatterns, FileTreeNode, ScanResult

logger = logging.getLogger(__name__)

LANGUAGE_BY_EXTENSION: Dict[str, str] = {
    "js": "JavaScript",
    "jsx": "JavaScript",
    "ts": "TypeScript",
    "tsx": "TypeScript",
    "py": "Python",
    "java": "Java",
    "cpp": "C++",
    "c": "C",
    "cs": "C#",
    "go": "Go",
    "rs": "Rust",
    "rb": "Ruby",
    "php": "PHP",
    "swift": "Swift",
    "kt": "Kotlin",
    "scala": "Scala",
    "html": "HTML",
    "css": "CSS",
    "scss": "SCSS",
    "sass": "SASS",
    "vue": "Vue",
    "svelte": "Svelte",
    "dart": "Dart",
    "r": "R",
    "sql": "SQL",
    "sh": "Shell",
    "yaml": "YAML",
    "yml": "YAML",
    "json": "JSON",
    "xml": "XML",
    "md": "Markdown",
}

DEPENDENCY_FILES = frozenset(
    {
        "package.json",
        "requirements.txt",
        "Gemfile",
        "go.mod",
        "Cargo.toml",
        "pom.xml",
        "build.gradle",
        "composer.json",
        "Pipfile",
        "pyproject.toml",
    }
)

# Matched as a substring of the file path
FRAMEWORK_MARKERS: Dict[str, str] = {
    "next.config.js": "Next.js",
    "next.config.ts": "Next.js",
    "nuxt.config.js": "Nuxt.js",
    "angular.json": "Angular",
    "vue.config.js": "Vue.js",
    "svelte.config.js": "Svelte",
    "gatsby-config.js": "Gatsby",
    "remix.config.js": "Remix",
    "vite.config.js": "Vite",
    "vite.config.ts": "Vite",
    "webpack.config.js": "Webpack",
    "rollup.config.js": "Rollup",
    "tsconfig.json": "TypeScript",
    "Dockerfile": "Docker",
    "docker-compose.yml": "Docker Compose",
    ".eslintrc": "ESLint",
    ".prettierrc": "Prettier",
    "jest.config.js": "Jest",
    "vitest.config.ts": "Vitest",
    "cypress.json": "Cypress",
    "playwright.config.ts": "Playwright",
    "tailwind.config.js": "Tailwind CSS",
    "prisma/schema.prisma": "Prisma",
    "manage.py": "Django",
    "app.py": "Flask",
    "main.go": "Go",
    "Cargo.toml": "Rust",
    "pom.xml": "Maven",
    "build.gradle": "Gradle",
}

# Added whenever a root package.json exists; the manifest itself is not parsed.
PACKAGE_JSON_FRAMEWORKS = (
    "React",
    "Vue",
    "Angular",
    "Svelte",
    "Express",
    "Fastify",
    "Nestjs",
    "Koa",
)

_CLASS_RE = re.compile(r"class\s+\w+")
_FUNCTION_RE = re.compile(r"function\s+\w+|const\s+\w+\s*=\s*\(")
_IMPORT_RE = re.compile(r"import\s+.*from|require\(")
_EXPORT_RE = re.compile(r"export\s+(default|const|class|function)")


def _basename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def detect_languages(files: List[FileTreeNode]) -> Dict[str, int]:
    languages: Dict[str, int] = {}
    for node in files:
        language = LANGUAGE_BY_EXTENSION.get(node.extension or "")
        if language:
            languages[language] = languages.get(language, 0) + 1
    return languages


def extract_dependencies(files: List[FileTreeNode]) -> List[str]:
    """Manifest basenames in tree order; repeated manifests are kept."""
    return [
        _basename(node.path) for node in files if _basename(node.path) in DEPENDENCY_FILES
    ]


def detect_frameworks(files: List[FileTreeNode]) -> List[str]:
    frameworks: Dict[str, None] = {}
    for node in files:
        for marker, framework in FRAMEWORK_MARKERS.items():
            if marker in node.path:
                frameworks[framework] = None

    if any(node.path == "package.json" for node in files):
        for framework in PACKAGE_JSON_FRAMEWORKS:
            frameworks[framework] = None

    return list(frameworks)


def _is_config_file(path: str) -> bool:
    name = _basename(path)
    return (
        name.startswith(".")
        or "config" in name
        or ".json" in name
        or ".yaml" in name
        or ".yml" in name
    )


def calculate_complexity(
    files: List[FileTreeNode],
    directories: List[FileTreeNode],
    languages: Dict[str, int],
    dependencies: List[str],
) -> int:
    score = 0

    file_count = len(files)
    if file_count < 10:
        score += 5
    elif file_count < 50:
        score += 10
    elif file_count < 200:
        score += 15
    elif file_count < 500:
        score += 20
    elif file_count < 1000:
        score += 25
    else:
        score += 30

    dir_count = len(directories)
    if dir_count < 5:
        score += 5
    elif dir_count < 15:
        score += 10
    elif dir_count < 30:
        score += 15
    else:
        score += 20

    # A tree with no recognised language scores like a single-language one
    language_count = len(languages)
    if language_count <= 1:
        score += 5
    elif language_count == 2:
        score += 10
    elif language_count <= 4:
        score += 15
    else:
        score += 20

    dep_count = len(dependencies)
    if dep_count == 1:
        score += 5
    elif 1 < dep_count <= 3:
        score += 10
    elif dep_count > 3:
        score += 15

    config_count = sum(1 for node in files if _is_config_file(node.path))
    if config_count < 5:
        score += 3
    elif config_count < 10:
        score += 7
    elif config_count < 20:
        score += 11
    else:
        score += 15

    return max(0, min(100, score))


def scan_codebase(file_tree: List[FileTreeNode]) -> ScanResult:
    logger.info("Scanning codebase with %d items", len(file_tree))

    files = [node for node in file_tree if node.type == "file"]
    directories = [node for node in file_tree if node.type == "dir"]

    languages = detect_languages(files)
    dependencies = extract_dependencies(files)

    return ScanResult(
        total_files=len(files),
        total_directories=len(directories),
        languages=languages,
        dependencies=dependencies,
        frameworks=detect_frameworks(files),
        complexity_score=calculate_complexity(files, directories, languages, dependencies),
        file_tree=file_tree,
    )


def analyze_code_patterns(content: str) -> CodePatterns:
    return CodePatterns(
        has_classes=bool(_CLASS_RE.search(content)),
        has_functions=bool(_FUNCTION_RE.search(content)),
        has_imports=bool(_IMPORT_RE.search(content)),
        has_exports=bool(_EXPORT_RE.search(content)),
    )
