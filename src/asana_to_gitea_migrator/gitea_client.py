"""
Gitea REST API client used as the migration target.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final, Literal, TypeVar

import requests

from .exceptions import AssigneeNotFoundError, ConfigurationError, TransportError
from .models import GiteaIssue, GiteaLabel

if TYPE_CHECKING:
    from collections.abc import Callable

    from .models import IssueRequest

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

_T = TypeVar("_T")

_PAGE_SIZE: Final[int] = 50
_DEFAULT_TIMEOUT: Final[float] = 30

# Gitea answers a create-issue call for an unknown assignee with a 4xx whose
# message contains this text
_ASSIGNEE_MISSING_TEXT: Final[str] = "assignee does not exist"


def _parse(parser: Callable[[dict[str, Any]], _T], data: Any, what: str) -> _T:  # noqa: ANN401 - raw JSON
    """Convert one JSON object from a response, turning shape errors into TransportError."""
    try:
        return parser(data)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        msg = f"Unexpected {what} in Gitea API response: {e}"
        raise TransportError(msg) from e


def _json(response: requests.Response, what: str) -> Any:  # noqa: ANN401 - decoded JSON
    try:
        return response.json()
    except ValueError as e:
        msg = f"Gitea API returned invalid JSON for {what}: {e}"
        raise TransportError(msg, status=response.status_code) from e


def _total_count(response: requests.Response) -> int | None:
    """Total item count Gitea reports for a list endpoint, if any."""
    try:
        return int(response.headers["X-Total-Count"])
    except (KeyError, TypeError, ValueError):
        return None


class GiteaClient:
    """Minimal Gitea API v1 client for one repository."""

    def __init__(
        self,
        base_url: str,
        token: str,
        owner: str,
        repo: str,
        *,
        timeout: float = _DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url: str = base_url.rstrip("/")
        self.owner: str = owner
        self.repo: str = repo
        self.timeout: float = timeout
        self.session: requests.Session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"token {token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )

    @property
    def repo_path(self) -> str:
        return f"{self.owner}/{self.repo}"

    def _send(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> requests.Response:
        """Send a request and return the successful response.

        Raises:
            TransportError: On network errors and non-2xx responses
        """
        url = f"{self.base_url}/api/v1{endpoint}"
        logger.debug(f"Gitea API request: {method} {url}")

        try:
            response = self.session.request(method, url, params=params, json=json_body, timeout=self.timeout)
        except requests.RequestException as e:
            msg = f"Gitea API request failed: {method} {url}: {e}"
            raise TransportError(msg) from e

        if not response.ok:
            msg = f"Gitea API error: {response.status_code} {response.reason} - {response.text}"
            raise TransportError(msg, status=response.status_code)
        return response

    def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:  # noqa: ANN401 - decoded JSON
        """Send a request and return the decoded JSON body.

        Raises:
            TransportError: On network errors, non-2xx responses and undecodable bodies
        """
        response = self._send(method, endpoint, params=params, json_body=json_body)
        return _json(response, f"{method} {endpoint}")

    def _get_all(self, endpoint: str, params: dict[str, Any] | None = None) -> list[Any]:
        """GET every page of a list endpoint.

        The server may cap the page size below the requested limit, so paging
        stops only on an empty page or once ``X-Total-Count`` items were read.
        """
        items: list[Any] = []
        page = 1
        while True:
            page_params = {**(params or {}), "page": page, "limit": _PAGE_SIZE}
            response = self._send("GET", endpoint, params=page_params)
            batch = _json(response, f"GET {endpoint}")
            if not isinstance(batch, list):
                msg = f"Gitea API returned a non-list response for {endpoint}"
                raise TransportError(msg)
            items.extend(batch)  # pyright: ignore[reportUnknownArgumentType]
            total = _total_count(response)
            if not batch or (total is not None and len(items) >= total):
                return items
            page += 1

    def validate_access(self) -> None:
        """Check that the token is accepted and the repository is reachable.

        Raises:
            ConfigurationError: If the token is rejected or the repository does not exist
            TransportError: For any other failure
        """
        try:
            user = self._request("GET", "/user")
            _ = self._request("GET", f"/repos/{self.repo_path}")
        except TransportError as e:
            if e.status in (401, 403):
                msg = f"Gitea rejected the API token: {e}"
                raise ConfigurationError(msg) from e
            if e.status == 404:
                msg = f"Gitea repository {self.repo_path} not found: {e}"
                raise ConfigurationError(msg) from e
            raise
        login = user.get("login", "?") if isinstance(user, dict) else "?"  # pyright: ignore[reportUnknownMemberType]
        logger.info(f"Gitea API access validated as {login}")

    def get_labels(self) -> list[GiteaLabel]:
        items = self._get_all(f"/repos/{self.repo_path}/labels")
        return [_parse(GiteaLabel.from_dict, item, "label") for item in items]

    def create_label(self, name: str, color: str, description: str = "") -> GiteaLabel:
        payload = {"name": name, "color": f"#{color.lstrip('#')}", "description": description}
        data = self._request("POST", f"/repos/{self.repo_path}/labels", json_body=payload)
        return _parse(GiteaLabel.from_dict, data, "label")

    def get_issues(self, state: Literal["open", "closed", "all"] = "all") -> list[GiteaIssue]:
        items = self._get_all(f"/repos/{self.repo_path}/issues", {"state": state, "type": "issues"})
        return [_parse(GiteaIssue.from_dict, item, "issue") for item in items]

    def create_issue(self, request: IssueRequest) -> GiteaIssue:
        try:
            data = self._request("POST", f"/repos/{self.repo_path}/issues", json_body=request.to_payload())
        except TransportError as e:
            if request.assignees and _ASSIGNEE_MISSING_TEXT in str(e).lower():
                raise AssigneeNotFoundError(str(e), status=e.status) from e
            raise
        return _parse(GiteaIssue.from_dict, data, "issue")
