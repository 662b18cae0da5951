"""Project configuration loading.

Configuration is optional: a project without ``rpygraph.yaml`` analyzes
with the defaults below. Example file::

    name: my_novel
    analysis:
      special_story_paths: [game/variables.rpy, game/characters.rpy]
      ignored_path_suffixes: [debug_placeholders.rpy]
      max_routes: 500
    layout:
      padding_x: 120
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from ruamel.yaml import YAML

CONFIG_FILENAME = "rpygraph.yaml"

DEFAULT_SPECIAL_STORY_PATHS = ["game/variables.rpy", "game/characters.rpy"]
DEFAULT_IGNORED_PATH_SUFFIXES = ["debug_placeholders.rpy"]
DEFAULT_MAX_ROUTES = 1000


@dataclass
class AnalysisConfig:
    """Settings for the analysis engine.

    Attributes:
        special_story_paths: File paths classified as story even without labels.
        ignored_path_suffixes: Blocks whose file path ends with one of these
            are skipped by extraction, resolution and route building.
        max_routes: Upper bound on enumerated routes.
    """

    special_story_paths: list[str] = field(
        default_factory=lambda: list(DEFAULT_SPECIAL_STORY_PATHS)
    )
    ignored_path_suffixes: list[str] = field(
        default_factory=lambda: list(DEFAULT_IGNORED_PATH_SUFFIXES)
    )
    max_routes: int = DEFAULT_MAX_ROUTES

    def __post_init__(self) -> None:
        if self.max_routes < 1:
            msg = f"max_routes must be positive, got {self.max_routes}"
            raise ValueError(msg)

    def is_ignored(self, file_path: str | None) -> bool:
        """True if a block at ``file_path`` should be skipped."""
        if not file_path:
            return False
        return any(file_path.endswith(suffix) for suffix in self.ignored_path_suffixes)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisConfig:
        """Create config from dictionary.

        Args:
            data: Dictionary with optional special_story_paths,
                ignored_path_suffixes and max_routes fields.

        Returns:
            AnalysisConfig instance.
        """
        return cls(
            special_story_paths=list(
                data.get("special_story_paths", DEFAULT_SPECIAL_STORY_PATHS)
            ),
            ignored_path_suffixes=list(
                data.get("ignored_path_suffixes", DEFAULT_IGNORED_PATH_SUFFIXES)
            ),
            max_routes=int(data.get("max_routes", DEFAULT_MAX_ROUTES)),
        )


@dataclass
class LayoutConfig:
    """Spacing and default sizes for the layered layout."""

    padding_x: float = 100
    padding_y: float = 80
    default_width: float = 300
    default_height: float = 150
    min_node_size: float = 50
    label_node_width: float = 180
    label_node_height: float = 40

    def __post_init__(self) -> None:
        for name in ("padding_x", "padding_y"):
            if getattr(self, name) < 0:
                msg = f"{name} must not be negative"
                raise ValueError(msg)

    def node_size(self, width: float | None, height: float | None) -> tuple[float, float]:
        """Replace missing or degenerate block sizes with the defaults."""
        w = width if width and width > self.min_node_size else self.default_width
        h = height if height and height > self.min_node_size else self.default_height
        return w, h

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LayoutConfig:
        """Create config from dictionary, ignoring unknown keys."""
        known = {k: float(v) for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass
class ProjectConfig:
    """Configuration for an rpygraph project."""

    name: str = "unnamed"
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectConfig:
        """Create config from dictionary.

        Args:
            data: Dictionary containing config fields.

        Returns:
            ProjectConfig instance.
        """
        return cls(
            name=data.get("name", "unnamed"),
            analysis=AnalysisConfig.from_dict(dict(data.get("analysis") or {})),
            layout=LayoutConfig.from_dict(dict(data.get("layout") or {})),
        )


class ProjectConfigError(Exception):
    """Raised when project configuration cannot be loaded."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load project config at {path}: {reason}")


def load_project_config(project_path: Path) -> ProjectConfig:
    """Load project configuration from rpygraph.yaml.

    A missing file is not an error; the defaults are returned.

    Args:
        project_path: Path to the project root directory.

    Returns:
        ProjectConfig instance.

    Raises:
        ProjectConfigError: If the file exists but cannot be loaded.
    """
    config_path = project_path / CONFIG_FILENAME

    if not config_path.exists():
        return ProjectConfig(name=project_path.resolve().name or "unnamed")

    yaml = YAML(typ="safe")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)

        if data is None:
            raise ProjectConfigError(config_path, "Empty file")
        if not isinstance(data, dict):
            raise ProjectConfigError(config_path, "Top level must be a mapping")

        return ProjectConfig.from_dict(dict(data))
    except Exception as e:
        if isinstance(e, ProjectConfigError):
            raise
        raise ProjectConfigError(config_path, str(e)) from e
