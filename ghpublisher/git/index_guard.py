"""Deletion veto for folder index files, based on their remote front matter."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any

import yaml

from ..config import PublisherSettings, RepoTarget
from .client import RemoteRepoClient, RemoteRequestError, RequestCancelled

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0"}


class FrontMatterError(ValueError):
    """File content has no usable front matter block."""


def parse_front_matter(content: str) -> dict[str, Any]:
    """Parse the block between the first two ``---`` delimiters.

    String values are stripped and keys with empty values dropped.

    Raises:
        FrontMatterError: If there is no block or it is not a mapping.
    """
    parts = content.split("---")
    if len(parts) < 3:
        raise FrontMatterError("No front matter block")

    try:
        data = yaml.safe_load(parts[1])
    except yaml.YAMLError as e:
        raise FrontMatterError(f"Invalid front matter: {e}") from e

    if not isinstance(data, dict):
        raise FrontMatterError("Front matter is not a mapping")

    trimmed: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            value = value.strip()
        if value is None or value == "":
            continue
        trimmed[str(key)] = value
    return trimmed


def as_bool(value: Any) -> bool | None:
    """Interpret a boolean-ish front matter value; None if it is neither."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


def blocks_deletion(front_matter: dict[str, Any]) -> bool:
    """True if the front matter protects the file.

    Protected: ``index`` true, ``delete`` explicitly false, or ``share`` not true.
    """
    if as_bool(front_matter.get("index")) is True:
        return True
    if as_bool(front_matter.get("delete")) is False:
        return True
    return not as_bool(front_matter.get("share"))


class IndexFileGuard:
    """Reads a candidate's remote front matter to veto its deletion."""

    def __init__(self, client: RemoteRepoClient, settings: PublisherSettings):
        self._client = client
        self._settings = settings

    def is_index_candidate(self, path: str) -> bool:
        """True if ``path`` follows the folder index naming convention."""
        index_name = self._settings.upload.folder_note_rename
        return bool(index_name) and index_name in path

    def check_index_files(self, path: str, target: RepoTarget, branch_name: str) -> bool:
        """Decide whether deletion of ``path`` on ``branch_name`` is vetoed.

        The file is read from the branch the deletion would be made on. Any
        failure to fetch or parse the file lets deletion proceed.

        Returns:
            True to keep the file.
        """
        try:
            response = self._client.request(
                "GET /repos/{owner}/{repo}/contents/{path}",
                owner=target.owner,
                repo=target.repo,
                path=path,
                ref=branch_name,
            )
        except RequestCancelled:
            return False
        except RemoteRequestError as e:
            logger.warning(f"Failed to read {path} from {target.slug}: {e}")
            return False

        if response.status != 200 or not isinstance(response.data, dict):
            return False

        try:
            raw = response.data.get("content", "").replace("\n", "")
            content = base64.b64decode(raw).decode("utf-8")
            front_matter = parse_front_matter(content)
        except (binascii.Error, UnicodeDecodeError, FrontMatterError) as e:
            logger.warning(f"Cannot read front matter of {path}: {e}")
            return False

        veto = blocks_deletion(front_matter)
        if veto:
            logger.info(f"Keeping index file {path} on {target.slug}")
        return veto
