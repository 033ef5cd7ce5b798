"""Templated deployment and troubleshooting narratives built from analysis facts."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, List, Sequence, Set, Tuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..extractors.core import INLINE_HANDLER
from ..models import CodebaseAnalysis, LinkStatus

TEMPLATES_DIR = Path(__file__).with_name("templates")

_MAX_LISTED = 10


@dataclass(frozen=True)
class DeploymentTarget:
    """A deployment platform recognized from files in the project."""

    name: str
    files: Tuple[str, ...]
    steps: Tuple[str, ...]


def _basename(path: str) -> str:
    return PurePosixPath(path).name


def _matching(paths: Sequence[str], predicate: Callable[[str], bool]) -> Tuple[str, ...]:
    return tuple(path for path in paths if predicate(path))


def detect_deployment_targets(analysis: CodebaseAnalysis) -> List[DeploymentTarget]:
    """Return deployment targets in a fixed order, falling back to generic runtimes."""
    paths = [info.path for info in analysis.files]
    project = analysis.project_name
    scripts = analysis.script_map
    targets: List[DeploymentTarget] = []

    dockerfiles = _matching(paths, lambda path: _basename(path) == "Dockerfile")
    if dockerfiles:
        targets.append(
            DeploymentTarget(
                name="Docker",
                files=dockerfiles,
                steps=(f"docker build -t {project} .", f"docker run --env-file .env -p 3000:3000 {project}"),
            )
        )

    compose = _matching(
        paths,
        lambda path: _basename(path) in {"docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml"},
    )
    if compose:
        targets.append(DeploymentTarget(name="Docker Compose", files=compose, steps=("docker compose up --build -d",)))

    vercel = _matching(paths, lambda path: _basename(path) == "vercel.json")
    if vercel:
        targets.append(DeploymentTarget(name="Vercel", files=vercel, steps=("npx vercel --prod",)))

    netlify = _matching(paths, lambda path: _basename(path) == "netlify.toml")
    if netlify:
        targets.append(DeploymentTarget(name="Netlify", files=netlify, steps=("npx netlify deploy --prod",)))

    procfile = _matching(paths, lambda path: _basename(path) == "Procfile")
    if procfile:
        targets.append(DeploymentTarget(name="Heroku", files=procfile, steps=("git push heroku main",)))

    manifests = _matching(paths, lambda path: path.startswith(("k8s/", "helm/", "charts/")))
    if manifests:
        directory = manifests[0].split("/", 1)[0]
        targets.append(
            DeploymentTarget(name="Kubernetes", files=manifests, steps=(f"kubectl apply -f {directory}/",))
        )

    if targets:
        return targets

    if "package.json" in paths:
        steps = ["npm install"]
        if "build" in scripts:
            steps.append("npm run build")
        steps.append("npm start" if "start" in scripts else "node <entry file>")
        targets.append(DeploymentTarget(name="Generic Node.js", files=("package.json",), steps=tuple(steps)))

    python_manifests = _matching(paths, lambda path: path in {"pyproject.toml", "requirements.txt"})
    if python_manifests:
        install = "pip install -r requirements.txt" if "requirements.txt" in python_manifests else "pip install ."
        targets.append(DeploymentTarget(name="Generic Python", files=python_manifests, steps=(install,)))

    return targets


def build_deployment_guide(analysis: CodebaseAnalysis) -> str:
    """Return a Markdown deployment guide for ``analysis``."""
    paths = [info.path for info in analysis.files]
    targets = detect_deployment_targets(analysis)

    prerequisites: List[str] = []
    if "package.json" in paths:
        prerequisites.append("Node.js with npm (a `package.json` is present)")
    if any(path in {"pyproject.toml", "requirements.txt"} for path in paths):
        prerequisites.append("Python 3 with pip")
    if any(target.name.startswith("Docker") for target in targets):
        prerequisites.append("Docker Engine")
    if not prerequisites:
        prerequisites.append("No runtime manifest was detected; document the required toolchain here")

    env_files = _matching(paths, lambda path: _basename(path).startswith(".env"))
    env_example = next((path for path in env_files if "example" in path or "sample" in path), None)

    return _render(
        "deployment_guide.md.j2",
        project_name=analysis.project_name,
        prerequisites=prerequisites,
        scripts=analysis.scripts,
        env_files=env_files,
        env_example=env_example,
        targets=targets,
        routes=analysis.routes,
    )


def build_troubleshooting(analysis: CodebaseAnalysis) -> str:
    """Return a Markdown troubleshooting guide derived from analysis facts."""
    unlinked_handlers = [
        route
        for route in analysis.routes
        if route.handler_link is not None and route.handler_link.status is LinkStatus.UNLINKED
    ]
    unlinked_calls: Dict[str, Set[str]] = {}
    for component in analysis.components:
        for link in component.route_links:
            if link.status is LinkStatus.UNLINKED:
                unlinked_calls.setdefault(link.reference, set()).add(component.name)
    unlinked_navigation: Dict[str, Set[str]] = {}
    if analysis.pages:
        for component in analysis.components:
            for item in component.navigation:
                if item.page_link is not None and item.page_link.status is LinkStatus.UNLINKED:
                    unlinked_navigation.setdefault(item.target, set()).add(component.name)

    middleware = sorted(
        {name for route in analysis.routes for name in route.middleware if name != INLINE_HANDLER}
    )
    return _render(
        "troubleshooting.md.j2",
        project_name=analysis.project_name,
        warnings=analysis.warnings,
        unlinked_handlers=unlinked_handlers,
        unlinked_calls=[(reference, sorted(unlinked_calls[reference])) for reference in sorted(unlinked_calls)],
        unlinked_navigation=[(target, sorted(unlinked_navigation[target])) for target in sorted(unlinked_navigation)],
        routes=analysis.routes,
        middleware=middleware,
        query_count=len(analysis.queries),
        tables=sorted({query.table for query in analysis.queries if query.table}),
        has_package_json=analysis.file("package.json") is not None,
    )


@lru_cache(maxsize=1)
def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )
    env.filters["code"] = lambda value: f"`{value}`"
    return env


def _render(template_name: str, **context: object) -> str:
    template = _environment().get_template(template_name)
    return template.render(max_listed=_MAX_LISTED, **context).strip() + "\n"


__all__ = ["DeploymentTarget", "build_deployment_guide", "build_troubleshooting", "detect_deployment_targets"]
