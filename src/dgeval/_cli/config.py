"""Configuration loading from pyproject.toml."""

import math
import tomllib
from dataclasses import dataclass
from pathlib import Path


class ConfigError(Exception):
    """Error in dgeval configuration."""


@dataclass(slots=True, frozen=True)
class DgevalConfig:
    """Configuration loaded from pyproject.toml.

    All relative paths are resolved from the project root (directory containing pyproject.toml).
    """

    scene: Path | None = None
    output: Path | None = None
    start: float | None = None
    end: float | None = None
    step: float | None = None
    plugs: tuple[str, ...] = ()
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _parse_path(section: dict[str, object], key: str, project_root: Path) -> Path | None:
    if key not in section:
        return None
    value = section[key]
    if not isinstance(value, str):
        msg = f"Invalid [tool.dgeval].{key}: expected string path"
        raise ConfigError(msg)
    path = Path(value)
    if not path.is_absolute():
        path = project_root / path
    return path


def _parse_number(section: dict[str, object], key: str) -> float | None:
    if key not in section:
        return None
    value = section[key]
    # bool is an int subclass but never a frame number
    if isinstance(value, bool) or not isinstance(value, int | float) or not math.isfinite(value):
        msg = f"Invalid [tool.dgeval].{key}: expected a finite number"
        raise ConfigError(msg)
    return float(value)


def _parse_plugs(section: dict[str, object]) -> tuple[str, ...]:
    value = section.get("plugs", [])
    if not isinstance(value, list) or not all(isinstance(p, str) for p in value):
        msg = "Invalid [tool.dgeval].plugs: expected a list of strings"
        raise ConfigError(msg)
    return tuple(value)


def load_config(pyproject_path: Path) -> DgevalConfig:
    """Load and validate [tool.dgeval] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed DgevalConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    # Extract [tool.dgeval] section
    tool_section = data.get("tool", {})
    section = tool_section.get("dgeval", {})

    if not section:
        # No [tool.dgeval] section - return empty config
        return DgevalConfig(project_root=project_root)

    step = _parse_number(section, "step")
    if step is not None and step <= 0:
        msg = "Invalid [tool.dgeval].step: expected a positive number"
        raise ConfigError(msg)

    return DgevalConfig(
        scene=_parse_path(section, "scene", project_root),
        output=_parse_path(section, "output", project_root),
        start=_parse_number(section, "start"),
        end=_parse_number(section, "end"),
        step=step,
        plugs=_parse_plugs(section),
        project_root=project_root,
    )


def get_config() -> DgevalConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        DgevalConfig (may be empty if no pyproject.toml or no [tool.dgeval] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return DgevalConfig()
    return load_config(pyproject_path)
