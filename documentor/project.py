"""Project metadata helpers: name, dependencies, scripts, and frameworks."""

from __future__ import annotations

import json
import re
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .logging import get_logger

logger = get_logger("project")

_FRAMEWORKS: Tuple[Tuple[str, str], ...] = (
    ("react", "React"),
    ("next", "Next.js"),
    ("vue", "Vue"),
    ("nuxt", "Nuxt"),
    ("svelte", "Svelte"),
    ("@sveltejs/kit", "SvelteKit"),
    ("@angular/core", "Angular"),
    ("express", "Express"),
    ("fastify", "Fastify"),
    ("koa", "Koa"),
    ("hono", "Hono"),
    ("@nestjs/core", "NestJS"),
    ("axios", "Axios"),
    ("prisma", "Prisma"),
    ("@prisma/client", "Prisma"),
    ("mongoose", "Mongoose"),
    ("sequelize", "Sequelize"),
    ("typeorm", "TypeORM"),
    ("knex", "Knex"),
    ("pg", "PostgreSQL"),
    ("mysql", "MySQL"),
    ("mysql2", "MySQL"),
    ("@supabase/supabase-js", "Supabase"),
    ("fastapi", "FastAPI"),
    ("flask", "Flask"),
    ("django", "Django"),
    ("sqlalchemy", "SQLAlchemy"),
    ("pymongo", "MongoDB"),
    ("requests", "Requests"),
    ("httpx", "HTTPX"),
)

UI_FRAMEWORKS = frozenset({"React", "Next.js", "Vue", "Nuxt", "Svelte", "SvelteKit", "Angular"})
SERVER_FRAMEWORKS = frozenset({"Express", "Fastify", "Koa", "Hono", "NestJS", "FastAPI", "Flask", "Django"})


@dataclass(frozen=True)
class ProjectMetadata:
    name: str
    dependencies: Tuple[str, ...]
    scripts: Tuple[Tuple[str, str], ...]


def load_project_metadata(root: Path, override_name: Optional[str] = None) -> ProjectMetadata:
    """Collect the project name, declared dependencies, and package.json scripts."""
    package = load_package_json(root)
    pyproject = _load_pyproject(root)

    name = override_name
    if not name and isinstance(package.get("name"), str):
        name = package["name"]
    if not name:
        project = pyproject.get("project")
        if isinstance(project, dict) and isinstance(project.get("name"), str):
            name = project["name"]
    if not name:
        name = root.name

    dependencies: Set[str] = set()
    for key in ("dependencies", "devDependencies", "peerDependencies"):
        value = package.get(key)
        if isinstance(value, dict):
            dependencies.update(str(dep) for dep in value)
    dependencies.update(_pyproject_dependencies(pyproject))
    dependencies.update(_requirements(root / "requirements.txt"))

    raw_scripts = package.get("scripts")
    scripts: List[Tuple[str, str]] = []
    if isinstance(raw_scripts, dict):
        scripts = sorted((str(key), str(value)) for key, value in raw_scripts.items())

    return ProjectMetadata(name=name, dependencies=tuple(sorted(dependencies)), scripts=tuple(scripts))


def load_package_json(root: Path) -> Dict[str, object]:
    """Return the parsed package.json contents or an empty dict."""
    package_json = root / "package.json"
    if not package_json.exists():
        return {}
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, ValueError, RecursionError) as exc:
        logger.warning("Could not read %s: %s", package_json, exc)
        return {}
    if isinstance(data, dict):
        return data
    return {}


def _load_pyproject(root: Path) -> Dict[str, object]:
    pyproject = root / "pyproject.toml"
    if not pyproject.exists():
        return {}
    try:
        return tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Could not read %s: %s", pyproject, exc)
        return {}


def _pyproject_dependencies(data: Dict[str, object]) -> List[str]:
    dependencies: List[str] = []
    project = data.get("project")
    if isinstance(project, dict):
        dependencies.extend(_string_list(project.get("dependencies"), "project.dependencies"))
        optional = project.get("optional-dependencies")
        if isinstance(optional, dict):
            for extra, values in optional.items():
                dependencies.extend(_string_list(values, f"project.optional-dependencies.{extra}"))
        elif optional is not None:
            logger.warning("Ignoring pyproject.toml project.optional-dependencies: expected a table")

    tool = data.get("tool")
    poetry = tool.get("poetry") if isinstance(tool, dict) else None
    if isinstance(poetry, dict):
        poetry_deps = poetry.get("dependencies")
        if isinstance(poetry_deps, dict):
            dependencies.extend(str(name) for name in poetry_deps)
        elif poetry_deps is not None:
            logger.warning("Ignoring pyproject.toml tool.poetry.dependencies: expected a table")

    names: List[str] = []
    for dep in dependencies:
        name = re.split(r"[<>=!~\[;\s]", dep, maxsplit=1)[0].strip()
        if name and name.lower() != "python":
            names.append(name)
    return names


def _string_list(value: object, label: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning("Ignoring pyproject.toml %s: expected a list of strings", label)
        return []
    return [item for item in value if isinstance(item, str)]


def _requirements(path: Path) -> List[str]:
    if not path.exists():
        return []
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return []
    packages: List[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "-")):
            continue
        name = re.split(r"[<>=!~\[;\s]", stripped, maxsplit=1)[0].strip()
        if name:
            packages.append(name)
    return packages


def detect_frameworks(dependencies: Iterable[str], imports: Iterable[str] = ()) -> Tuple[str, ...]:
    """Map declared dependencies and imported module roots to framework labels."""
    known = {dep.lower() for dep in dependencies}
    for module in imports:
        if module.startswith("."):
            continue
        parts = module.split("/")
        root = "/".join(parts[:2]) if module.startswith("@") else parts[0].split(".")[0]
        known.add(root.lower())

    labels: List[str] = []
    for key, label in _FRAMEWORKS:
        if key in known and label not in labels:
            labels.append(label)
    return tuple(sorted(labels))


__all__ = [
    "SERVER_FRAMEWORKS",
    "UI_FRAMEWORKS",
    "ProjectMetadata",
    "detect_frameworks",
    "load_package_json",
    "load_project_metadata",
]
