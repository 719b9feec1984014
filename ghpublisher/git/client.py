"""REST access to the Git hosting API.

Components talk to the remote through :class:`RemoteRepoClient`, a single
``request(route, **params)`` call modelled on GitHub's route strings
(``"GET /repos/{owner}/{repo}/branches"``). :class:`GhApiClient` implements it
on top of ``gh api``.
"""

from __future__ import annotations

import json
import logging
import re
import subprocess
import threading
from dataclasses import dataclass
from typing import Any, Callable, Protocol
from urllib.parse import quote, urlencode

logger = logging.getLogger(__name__)


class RemoteRequestError(Exception):
    """A remote request failed or returned an error status."""

    def __init__(self, status: int, message: str = ""):
        super().__init__(f"HTTP {status}: {message}" if status else message)
        self.status = status
        self.message = message


class RequestCancelled(Exception):
    """The caller aborted the request before it completed."""


@dataclass
class RemoteResponse:
    """Status code and decoded JSON payload of a request."""

    status: int
    data: Any = None


class RemoteRepoClient(Protocol):
    """Executes named REST operations against the hosting API."""

    def request(self, route: str, **params: Any) -> RemoteResponse: ...


Runner = Callable[[list[str], str | None, float], subprocess.CompletedProcess]

_PLACEHOLDER = re.compile(r"\{(\w+)\}")
_STATUS_LINE = re.compile(r"^HTTP/[\d.]+\s+(\d{3})")


def expand_route(route: str, params: dict[str, Any]) -> tuple[str, str, dict[str, Any]]:
    """Split a route into method, concrete path and leftover parameters.

    Args:
        route: ``"<METHOD> <path template>"``
        params: Values for the path placeholders plus any extra parameters

    Returns:
        (method, path, remaining params) tuple.
    """
    method, _, template = route.strip().partition(" ")
    remaining = dict(params)

    def _fill(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in remaining:
            raise ValueError(f"Missing route parameter: {name}")
        # Content and ref paths keep their slashes
        return quote(str(remaining.pop(name)), safe="/")

    path = _PLACEHOLDER.sub(_fill, template.strip())
    return method.upper(), path, remaining


class GhApiClient:
    """RemoteRepoClient backed by the GitHub CLI."""

    def __init__(
        self,
        runner: Runner | None = None,
        timeout: float = 60,
        hostname: str | None = None,
    ):
        """Initialize client.

        Args:
            runner: Callable executing the gh command (for tests)
            timeout: Per-request timeout in seconds
            hostname: GitHub Enterprise hostname, if any
        """
        self._runner = runner or self._default_runner
        self._timeout = timeout
        self._hostname = hostname
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Abort: every request issued from now on raises RequestCancelled."""
        self._cancelled.set()

    def reset(self) -> None:
        """Accept requests again after a cancel()."""
        self._cancelled.clear()

    def request(self, route: str, **params: Any) -> RemoteResponse:
        """Execute a REST route through ``gh api``.

        Args:
            route: ``"<METHOD> <path template>"``
            **params: Path placeholders, then query (GET) or body parameters

        Returns:
            RemoteResponse with status code and decoded JSON body.

        Raises:
            RequestCancelled: If cancel() was called.
            RemoteRequestError: On error status, timeout or missing gh CLI.
        """
        if self._cancelled.is_set():
            raise RequestCancelled(route)

        method, path, remaining = expand_route(route, params)
        path = path.lstrip("/")
        stdin: str | None = None
        if method == "GET":
            if remaining:
                path = f"{path}?{urlencode(remaining)}"
        elif remaining:
            stdin = json.dumps(remaining)

        args = ["gh", "api", "--method", method, "--include"]
        if self._hostname:
            args.extend(["--hostname", self._hostname])
        if stdin is not None:
            args.extend(["--input", "-"])
        args.append(path)

        logger.debug(f"{method} {path}")
        try:
            result = self._runner(args, stdin, self._timeout)
        except subprocess.TimeoutExpired:
            raise RemoteRequestError(0, f"Timeout on {method} {path}") from None
        except FileNotFoundError:
            raise RemoteRequestError(0, "gh CLI not found. Please install GitHub CLI.") from None

        if self._cancelled.is_set():
            raise RequestCancelled(route)

        status, body = self._parse_output(result.stdout or "")
        data = self._decode(body)

        if result.returncode != 0 or status == 0 or status >= 300:
            message = ""
            if isinstance(data, dict):
                message = str(data.get("message", ""))
            if not message:
                message = (result.stderr or "").strip()
            raise RemoteRequestError(status, message)

        return RemoteResponse(status=status, data=data)

    @staticmethod
    def _parse_output(output: str) -> tuple[int, str]:
        """Split ``--include`` output into status code and body."""
        normalized = output.replace("\r\n", "\n")
        head, _, body = normalized.partition("\n\n")
        match = _STATUS_LINE.match(head.strip())
        if not match:
            return 0, normalized
        return int(match.group(1)), body

    @staticmethod
    def _decode(body: str) -> Any:
        body = body.strip()
        if not body:
            return None
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON response: {e}")
            return None

    @staticmethod
    def _default_runner(
        args: list[str],
        stdin: str | None,
        timeout: float,
    ) -> subprocess.CompletedProcess:
        return subprocess.run(
            args,
            input=stdin,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
