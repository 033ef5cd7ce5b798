"""Deterministic file classification via an ordered rule table."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Callable, Optional, Tuple, Union

from .models import FileType

SCRIPT_SUFFIXES = frozenset({".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".py", ".vue", ".svelte"})
_MARKUP_SUFFIXES = frozenset({".jsx", ".tsx", ".vue", ".svelte"})
_STYLE_SUFFIXES = frozenset({".css", ".scss", ".sass", ".less", ".styl"})
_CONFIG_SUFFIXES = frozenset({".yml", ".yaml", ".toml", ".ini", ".cfg", ".env", ".conf"})
_DATABASE_SUFFIXES = frozenset({".sql", ".prisma"})

_CONFIG_NAMES = frozenset(
    {
        "package.json",
        "tsconfig.json",
        "jsconfig.json",
        "vercel.json",
        "netlify.toml",
        "now.json",
        "firebase.json",
        "app.json",
        "Dockerfile",
        "Procfile",
        "Makefile",
        "docker-compose.yml",
        "docker-compose.yaml",
        "compose.yml",
        "compose.yaml",
        "pyproject.toml",
        "setup.cfg",
        "requirements.txt",
        "Pipfile",
    }
)

_TEST_DIRS = frozenset({"tests", "test", "__tests__", "spec", "__mocks__"})
_ROUTE_DIRS = frozenset({"routes", "route", "api", "controllers", "endpoints", "handlers"})
_COMPONENT_DIRS = frozenset({"components", "component"})
_DATABASE_DIRS = frozenset({"models", "db", "database", "repositories", "migrations", "prisma", "schema"})
_SERVICE_DIRS = frozenset({"services", "service"})

_TEST_NAME = re.compile(r"(\.(test|spec)\.[a-z]+$)|(^test_.*\.py$)|(_test\.py$)")
_CONFIG_NAME = re.compile(r"(\.config\.(js|cjs|mjs|ts)$)|(^\.env(\..+)?$)|(^\.[\w-]+rc(\.\w+)?$)")

_DB_CLIENT_IMPORT = re.compile(
    r"""(?:require\(\s*|from\s+|import\s+)['"]?(?:pg|mysql2?|mongoose|mongodb|sequelize|typeorm|knex|"""
    r"""@prisma/client|@supabase/supabase-js|sqlite3|better-sqlite3|redis|ioredis|"""
    r"""sqlalchemy|psycopg2?|pymongo|peewee|django\.db)(?:['"/\s.]|$)""",
    re.MULTILINE,
)
_ROUTE_REGISTRATION = re.compile(
    r"""(?:\b(?:app|router|server)\.(?:get|post|put|patch|delete)\s*\(\s*['"`]/)|"""
    r"""(?:@\w+\.(?:get|post|put|patch|delete|route)\(\s*['"]/)"""
)
_JSX_MARKUP = re.compile(r"return\s*\(?\s*<[A-Za-z>]|=>\s*\(?\s*<[A-Za-z>]")

_CONFIG_JSON_KEYS = frozenset(
    {
        "compilerOptions",
        "scripts",
        "dependencies",
        "devDependencies",
        "extends",
        "$schema",
        "plugins",
        "presets",
        "rules",
        "env",
    }
)

ContentSource = Union[str, Callable[[], Optional[str]], None]


@dataclass
class _Subject:
    """Classification input with lazily loaded content."""

    path: PurePosixPath
    source: ContentSource
    _content: Optional[str] = field(default=None, init=False)
    _loaded: bool = field(default=False, init=False)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def suffix(self) -> str:
        return self.path.suffix.lower()

    @property
    def directories(self) -> Tuple[str, ...]:
        return tuple(part.lower() for part in self.path.parts[:-1])

    @property
    def is_script(self) -> bool:
        return self.suffix in SCRIPT_SUFFIXES

    def content(self) -> str:
        if not self._loaded:
            self._loaded = True
            if callable(self.source):
                self._content = self.source()
            else:
                self._content = self.source
        return self._content or ""

    def under(self, directories: frozenset[str]) -> bool:
        return any(part in directories for part in self.directories)


def _is_test(subject: _Subject) -> bool:
    return subject.under(_TEST_DIRS) or bool(_TEST_NAME.search(subject.name))


def _is_style(subject: _Subject) -> bool:
    return subject.suffix in _STYLE_SUFFIXES


def _is_route_path(subject: _Subject) -> bool:
    if not subject.is_script or subject.suffix in {".vue", ".svelte"}:
        return False
    return subject.under(_ROUTE_DIRS)


def _is_component_path(subject: _Subject) -> bool:
    if subject.suffix in _MARKUP_SUFFIXES:
        return True
    return subject.is_script and subject.under(_COMPONENT_DIRS)


def _is_database_path(subject: _Subject) -> bool:
    if subject.suffix in _DATABASE_SUFFIXES:
        return True
    return subject.is_script and subject.under(_DATABASE_DIRS)


def _is_service_path(subject: _Subject) -> bool:
    if not subject.is_script:
        return False
    stem = subject.path.stem.split(".")[0]
    return subject.under(_SERVICE_DIRS) or stem.lower().endswith("service")


def _is_config_path(subject: _Subject) -> bool:
    if subject.name in _CONFIG_NAMES:
        return True
    if subject.suffix in _CONFIG_SUFFIXES:
        return True
    return bool(_CONFIG_NAME.search(subject.name)) and subject.suffix != ".json"


def _imports_database_client(subject: _Subject) -> bool:
    return subject.is_script and bool(_DB_CLIENT_IMPORT.search(subject.content()))


def _registers_routes(subject: _Subject) -> bool:
    return subject.is_script and bool(_ROUTE_REGISTRATION.search(subject.content()))


def _renders_markup(subject: _Subject) -> bool:
    return subject.suffix in {".js", ".ts"} and bool(_JSX_MARKUP.search(subject.content()))


def _is_config_json(subject: _Subject) -> bool:
    if subject.suffix != ".json" and not (subject.name.startswith(".") and "rc" in subject.name):
        return False
    text = subject.content().strip()
    if not text:
        return False
    try:
        data = json.loads(text)
    except (ValueError, RecursionError):
        return False
    return isinstance(data, dict) and bool(_CONFIG_JSON_KEYS.intersection(data))


@dataclass(frozen=True)
class ClassificationRule:
    name: str
    predicate: Callable[[_Subject], bool]
    file_type: FileType


# First match wins; content rules come after every path rule.
RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule("test-path", _is_test, FileType.TEST),
    ClassificationRule("style-extension", _is_style, FileType.STYLE),
    ClassificationRule("route-directory", _is_route_path, FileType.ROUTE),
    ClassificationRule("component-markup", _is_component_path, FileType.COMPONENT),
    ClassificationRule("database-path", _is_database_path, FileType.DATABASE),
    ClassificationRule("service-path", _is_service_path, FileType.SERVICE),
    ClassificationRule("config-name", _is_config_path, FileType.CONFIG),
    ClassificationRule("database-client-import", _imports_database_client, FileType.DATABASE),
    ClassificationRule("route-registration", _registers_routes, FileType.ROUTE),
    ClassificationRule("jsx-markup", _renders_markup, FileType.COMPONENT),
    ClassificationRule("config-json", _is_config_json, FileType.CONFIG),
)


class FileClassifier:
    """Assigns exactly one FileType to a path, consulting content only when needed."""

    def __init__(self, rules: Tuple[ClassificationRule, ...] = RULES) -> None:
        self._rules = rules

    def classify(self, path: str, content: ContentSource = None) -> FileType:
        subject = _Subject(path=PurePosixPath(path.replace("\\", "/")), source=content)
        for rule in self._rules:
            if rule.predicate(subject):
                return rule.file_type
        return FileType.OTHER

    def explain(self, path: str, content: ContentSource = None) -> Optional[str]:
        """Return the name of the rule that decides ``path``, or None for the fallback."""
        subject = _Subject(path=PurePosixPath(path.replace("\\", "/")), source=content)
        for rule in self._rules:
            if rule.predicate(subject):
                return rule.name
        return None


__all__ = ["SCRIPT_SUFFIXES", "RULES", "ClassificationRule", "FileClassifier"]
