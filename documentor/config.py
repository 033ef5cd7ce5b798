"""Configuration loading for documentor (.documentor.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".documentor.yml"

DEFAULT_OUTPUT_DIR = "docs"
DEFAULT_MAX_WORKERS = 4
DEFAULT_MAX_FILE_SIZE = 1024 * 1024


class ConfigError(RuntimeError):
    """Raised when configuration is unreadable or points somewhere unusable."""


@dataclass
class DocumentorConfig:
    """Represents the settings defined in .documentor.yml."""

    root: Path
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    exclude_paths: List[str] = field(default_factory=list)
    max_workers: int = DEFAULT_MAX_WORKERS
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    follow_symlinks: bool = True
    project_name: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.output_dir.is_absolute():
            self.output_dir = self.root / self.output_dir

    @property
    def documentation_path(self) -> Path:
        return self.output_dir / "documentation.json"

    def validate(self) -> None:
        """Raise ConfigError when the root or output locations cannot be used."""
        if not self.root.exists():
            raise ConfigError(f"Project root not found: {self.root}")
        if not self.root.is_dir():
            raise ConfigError(f"Project root is not a directory: {self.root}")
        if self.output_dir.exists() and not self.output_dir.is_dir():
            raise ConfigError(f"Output path is not a directory: {self.output_dir}")
        if self.documentation_path.is_dir():
            raise ConfigError(
                f"Output artifact path is a directory: {self.documentation_path}"
            )
        if self.max_workers < 1:
            raise ConfigError("max_workers must be at least 1")

    def output_exclude_pattern(self) -> Optional[str]:
        """Return an anchored ignore pattern for the output directory when it sits under root."""
        try:
            relative = self.output_dir.resolve().relative_to(self.root.resolve())
        except ValueError:
            return None
        rel = relative.as_posix()
        if rel in {"", "."}:
            return None
        return f"/{rel}/"


def load_config(config_path: Path, *, output_dir: Optional[Path] = None) -> DocumentorConfig:
    """Load configuration from disk; ``output_dir`` overrides the configured value."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        config = DocumentorConfig(root=root)
    else:
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
        config = _build_config(root, data)

    if output_dir is not None:
        config.output_dir = output_dir if output_dir.is_absolute() else root / output_dir
    return config


def _build_config(root: Path, data: Dict[str, Any]) -> DocumentorConfig:
    output = _as_str(data.get("output_dir")) or DEFAULT_OUTPUT_DIR

    max_workers = _as_int(data.get("max_workers"))
    if "max_workers" in data and max_workers is None:
        raise ConfigError("max_workers must be an integer")

    max_file_size = _as_int(data.get("max_file_size"))
    if "max_file_size" in data and max_file_size is None:
        raise ConfigError("max_file_size must be an integer")

    follow_symlinks = _as_bool(data.get("follow_symlinks"))

    return DocumentorConfig(
        root=root,
        output_dir=Path(output),
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        max_workers=max_workers if max_workers is not None else DEFAULT_MAX_WORKERS,
        max_file_size=max_file_size if max_file_size is not None else DEFAULT_MAX_FILE_SIZE,
        follow_symlinks=True if follow_symlinks is None else follow_symlinks,
        project_name=_as_str(data.get("project_name")),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DocumentorConfig",
    "load_config",
]
