"""Project discovery and scaffolding.

A project is any directory containing a ``.marvin/`` directory (name
configurable via ``MARVIN_PROJECT_DIR_NAME``) with a ``config.yaml``.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .config import ProjectConfig, load_project_config, save_project_config, settings
from .exceptions import ConfigError, ProjectNotFoundError
from .methodologies import DEFAULT_METHODOLOGY, registrations_for, resolve_methodology
from .storage.store import DocumentStore
from .storage.types import CORE_REGISTRATIONS

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Directories created by init besides docs/<type-dir>/
SCAFFOLD_DIRS = ("templates", "sources", "skills")


@dataclass
class MarvinProject:
    root: Path
    marvin_dir: Path
    config: ProjectConfig

    @property
    def sources_dir(self) -> Path:
        return self.marvin_dir / "sources"


def find_project_root(start: Optional[PathLike] = None) -> Path:
    """Walk upward from ``start`` (default: cwd) to the directory holding the project dir.

    Raises:
        ProjectNotFoundError: If no ancestor contains a project directory
    """
    origin = Path(start) if start is not None else Path.cwd()
    current = origin.resolve()
    while True:
        if (current / settings.project_dir_name).is_dir():
            return current
        if current.parent == current:
            raise ProjectNotFoundError(str(origin), settings.project_dir_name)
        current = current.parent


def is_marvin_project(start: Optional[PathLike] = None) -> bool:
    try:
        find_project_root(start)
    except ProjectNotFoundError:
        return False
    return True


def load_project(start: Optional[PathLike] = None) -> MarvinProject:
    root = find_project_root(start)
    marvin_dir = root / settings.project_dir_name
    return MarvinProject(root=root, marvin_dir=marvin_dir, config=load_project_config(marvin_dir))


def open_store(project: MarvinProject) -> DocumentStore:
    """Document store for ``project`` with its methodology's document types."""
    return DocumentStore(project.marvin_dir, registrations_for(project.config.methodology))


def init_project(
    root: PathLike,
    name: Optional[str] = None,
    methodology: str = DEFAULT_METHODOLOGY,
) -> MarvinProject:
    """Create the project directory layout and config under ``root``.

    Args:
        root: Directory that will contain the project directory
        name: Project name (defaults to the directory name)
        methodology: Built-in methodology id

    Raises:
        ConfigError: If the methodology is unknown or a project already exists
    """
    root = Path(root).resolve()
    if resolve_methodology(methodology) is None:
        raise ConfigError(f"Unknown methodology: {methodology}")

    marvin_dir = root / settings.project_dir_name
    if marvin_dir.exists():
        raise ConfigError(f"A project already exists at {marvin_dir}")

    registrations = list(CORE_REGISTRATIONS) + registrations_for(methodology)
    for dir_name in SCAFFOLD_DIRS:
        (marvin_dir / dir_name).mkdir(parents=True, exist_ok=True)
    for reg in registrations:
        (marvin_dir / "docs" / reg.dir_name).mkdir(parents=True, exist_ok=True)

    data = {
        "name": name or root.name,
        "methodology": methodology,
        "personas": {
            "product-owner": {"enabled": True},
            "delivery-manager": {"enabled": True},
            "tech-lead": {"enabled": True},
        },
    }
    if methodology == "sap-aem":
        data["aem"] = {"currentPhase": "assess-use-case"}

    config = ProjectConfig.model_validate(data)
    save_project_config(marvin_dir, config)
    logger.info(f'Initialized project "{config.name}" ({methodology}) in {root}')
    return MarvinProject(root=root, marvin_dir=marvin_dir, config=config)
