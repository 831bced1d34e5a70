"""Configuration loading for shimcheck (.shimcheck.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .locations import TYPESHED_STDLIB_URL

CONFIG_FILENAME = ".shimcheck.yml"
DEFAULT_SHIM_DIR = "stubs/shims"
DEFAULT_GENERATED_DIRS = ("stubs/generated",)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class BaseLayerConfig:
    """Canonical stub layer and where its files are published."""

    dir: Optional[str] = None
    path_prefix: Optional[str] = None
    url: Optional[str] = TYPESHED_STDLIB_URL

    @property
    def effective_prefix(self) -> Optional[str]:
        return self.path_prefix or self.dir


def project_relative(directory: str, root: Path) -> str:
    """Return ``directory`` as a POSIX path relative to ``root`` when it lies inside it."""
    path = Path(directory)
    if path.is_absolute():
        try:
            return path.relative_to(root).as_posix()
        except ValueError:
            return path.as_posix()
    return PurePosixPath(directory).as_posix()


@dataclass
class CheckConfig:
    """Layer layout for a check run; directories are relative to ``root``."""

    root: Path
    shim_dir: str = DEFAULT_SHIM_DIR
    generated_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_GENERATED_DIRS))
    base: BaseLayerConfig = field(default_factory=BaseLayerConfig)
    jobs: int = 1

    @property
    def base_prefix(self) -> Optional[str]:
        """Base prefix in the same project-relative form as reported locations."""
        prefix = self.base.effective_prefix
        return project_relative(prefix, self.root) if prefix else None

    def with_overrides(
        self,
        *,
        shim_dir: Optional[str] = None,
        generated_dirs: Optional[Sequence[str]] = None,
        base_dir: Optional[str] = None,
        base_path_prefix: Optional[str] = None,
        base_url: Optional[str] = None,
        jobs: Optional[int] = None,
    ) -> "CheckConfig":
        """Return a copy with any explicitly provided values applied."""
        base = replace(
            self.base,
            dir=base_dir if base_dir is not None else self.base.dir,
            path_prefix=base_path_prefix if base_path_prefix is not None else self.base.path_prefix,
            url=base_url if base_url is not None else self.base.url,
        )
        return replace(
            self,
            shim_dir=shim_dir if shim_dir is not None else self.shim_dir,
            generated_dirs=list(generated_dirs) if generated_dirs else list(self.generated_dirs),
            base=base,
            jobs=jobs if jobs is not None else self.jobs,
        )


def load_config(config_path: Path) -> CheckConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return CheckConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = CheckConfig(root=root)

    shim_dir = _as_str(data.get("shim_dir"))
    if shim_dir:
        config.shim_dir = _strip_slash(shim_dir)

    if "generated_dirs" in data:
        config.generated_dirs = [_strip_slash(item) for item in _as_str_list(data.get("generated_dirs"))]

    base_data = _as_dict(data.get("base"))
    if base_data:
        base_dir = _as_str(base_data.get("dir"))
        config.base = BaseLayerConfig(
            dir=_strip_slash(base_dir) if base_dir else None,
            path_prefix=_as_str(base_data.get("path_prefix")),
            url=_as_str(base_data.get("url")) or TYPESHED_STDLIB_URL,
        )

    jobs = _as_int(data.get("jobs"))
    if jobs is not None:
        config.jobs = jobs

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _strip_slash(value: str) -> str:
    stripped = value.rstrip("/")
    return stripped or value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


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


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "BaseLayerConfig",
    "CONFIG_FILENAME",
    "CheckConfig",
    "ConfigError",
    "load_config",
    "project_relative",
]
