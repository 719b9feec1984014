"""GitHub API quota verification."""

from __future__ import annotations

import logging
from datetime import datetime

from ..notices import Notify, log_notice
from .client import RemoteRepoClient, RemoteRequestError

logger = logging.getLogger(__name__)


def verify_rate_limit(
    client: RemoteRepoClient,
    number_of_files: int = 1,
    notify: Notify | None = None,
    silent: bool = False,
) -> int:
    """Check that enough API quota remains for ``number_of_files`` requests.

    Args:
        client: Remote client
        number_of_files: Number of requests about to be issued
        notify: Notice callback
        silent: Do not report the remaining quota when it is sufficient

    Returns:
        Remaining quota, or 0 if it is exhausted (or could not be read).
    """
    notify = notify or log_notice
    try:
        response = client.request("GET /rate_limit")
        core = response.data["resources"]["core"]
        remaining = int(core["remaining"])
        reset = int(core.get("reset", 0))
    except RemoteRequestError as e:
        logger.warning(f"Failed to read API rate limit: {e}")
        return 0
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Unexpected rate limit payload: {e}")
        return 0

    reset_time = datetime.fromtimestamp(reset).strftime("%H:%M:%S")
    if remaining <= number_of_files:
        notify(f"API rate limit reached, requests resume at {reset_time}")
        return 0

    if not silent:
        notify(f"{remaining} API requests remaining (reset at {reset_time})")
    return remaining
