"""Configuration and publication file loaders."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..models import ManagedFileRef, Publication
from .models import PublicationEntry, PublicationFile, PublisherSettings

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Load ghpublisher configuration."""

    CONFIG_FILENAME = "ghpublisher.yaml"
    USER_CONFIG_DIR = Path.home() / ".ghpublisher"

    def __init__(self, project_path: Path | None = None):
        """Initialize config loader.

        Args:
            project_path: Project directory path. If None, uses current directory.
        """
        self._project_path = project_path or Path.cwd()

    def get_config_path(self) -> Path | None:
        """Find config file (project-level first, then user-level).

        Returns:
            Path to config file if found, None otherwise.
        """
        project_config = self._project_path / self.CONFIG_FILENAME
        if project_config.exists():
            return project_config

        user_config = self.USER_CONFIG_DIR / self.CONFIG_FILENAME
        if user_config.exists():
            return user_config

        return None

    def load(self) -> PublisherSettings:
        """Load configuration, returning defaults if no config exists.

        Returns:
            PublisherSettings with loaded or default values.
        """
        config_path = self.get_config_path()
        if config_path is None:
            logger.debug("No config file found, using defaults")
            return PublisherSettings()

        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

            logger.info(f"Loaded config from: {config_path}")
            return PublisherSettings.model_validate(data)
        except Exception as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")
            return PublisherSettings()

def load_config(project_path: Path | str | None = None) -> PublisherSettings:
    """Load configuration from project or user directory.

    Args:
        project_path: Project directory path. If None, uses current directory.

    Returns:
        PublisherSettings with loaded or default values.
    """
    path = Path(project_path) if project_path else None
    return ConfigLoader(path).load()


class PublicationError(ValueError):
    """The publication file is missing or malformed."""


def load_publication(path: Path, settings: PublisherSettings) -> Publication:
    """Load the list of currently shared files.

    The file holds a ``files`` list; each entry has a ``path`` and an optional
    ``repos`` list of ``owner/repo`` slugs. Entries without ``repos`` belong to
    the primary (first configured) target. An explicit ``files: []`` is the
    only way to declare that nothing is shared.

    Args:
        path: Path to the publication YAML file.
        settings: Settings holding the configured targets.

    Returns:
        Publication with one ManagedFileRef per (path, target) pair.

    Raises:
        PublicationError: If the file is missing, unreadable or malformed.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise PublicationError(f"Cannot read publication file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise PublicationError(f"Invalid YAML in publication file {path}: {e}") from e

    if not isinstance(data, dict):
        raise PublicationError(f"Publication file {path} must be a mapping with a 'files' list")

    try:
        document = PublicationFile.model_validate(data)
    except ValidationError as e:
        raise PublicationError(f"Invalid publication file {path}: {e}") from e

    refs: list[ManagedFileRef] = []
    for entry in document.files:
        if isinstance(entry, str):
            if not entry.strip():
                continue
            entry = PublicationEntry(path=entry)
        file_path = entry.path.strip()
        if not file_path:
            continue

        if not entry.repos:
            if not settings.targets:
                logger.warning(f"No target configured for {file_path}")
                continue
            refs.append(ManagedFileRef(path=file_path, target=settings.targets[0]))
            continue

        for slug in entry.repos:
            target = settings.find_target(slug)
            if target is None:
                logger.warning(f"Unknown repository {slug} for {file_path}, skipped")
                continue
            refs.append(ManagedFileRef(path=file_path, target=target))

    logger.debug(f"Loaded {len(refs)} shared file(s) from {path}")
    return Publication(files=refs)
