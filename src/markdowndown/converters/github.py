"""GitHub issue and pull request converter (REST API v3)."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .. import __version__
from ..conversion import FrontmatterBuilder
from ..errors import (
    ContentError,
    ContentErrorKind,
    ErrorContext,
    ValidationError,
    ValidationErrorKind,
)
from ..models.config import OutputConfig
from ..models.types import Markdown

if TYPE_CHECKING:
    from ..http.protocols import HttpClient

logger = logging.getLogger(__name__)

GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_API_ACCEPT = "application/vnd.github.v3+json"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


class GitHubUser(BaseModel):
    login: str


class GitHubLabel(BaseModel):
    name: str


class GitHubIssue(BaseModel):
    """Subset of the issue payload that gets rendered."""

    number: int
    title: str
    body: Optional[str] = None
    state: str
    user: GitHubUser
    created_at: datetime
    labels: list[GitHubLabel] = Field(default_factory=list)
    pull_request: Optional[dict] = None


class GitHubComment(BaseModel):
    body: Optional[str] = None
    user: GitHubUser
    created_at: datetime


_COMMENTS = TypeAdapter(list[GitHubComment])


@dataclass(frozen=True)
class GitHubResource:
    """An issue or pull request identified by a URL."""

    owner: str
    repo: str
    number: int
    is_pull_request: bool
    url: str

    @property
    def repository(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def resource_type(self) -> str:
        return "pull_request" if self.is_pull_request else "issue"


def _utc(value: datetime) -> str:
    return value.strftime(DATE_FORMAT)


def render_issue(issue: GitHubIssue, comments: list[GitHubComment]) -> str:
    """Render an issue and its comments as Markdown."""
    lines = [
        f"# {issue.title}",
        "",
        f"**Author:** @{issue.user.login}  ",
        f"**Created:** {_utc(issue.created_at)}  ",
        f"**State:** {issue.state[:1].upper()}{issue.state[1:]}  ",
    ]
    if issue.labels:
        lines.append(f"**Labels:** {', '.join(label.name for label in issue.labels)}  ")
    lines.append("")

    if issue.body and issue.body.strip():
        lines.extend([issue.body.strip(), ""])

    if comments:
        lines.extend(["## Comments", ""])
        for comment in comments:
            lines.extend([f"### Comment by @{comment.user.login} ({_utc(comment.created_at)})", ""])
            if comment.body and comment.body.strip():
                lines.append(comment.body.strip())
            lines.append("")

    return "\n".join(lines).strip()


class GitHubIssueConverter:
    """
    Converts a GitHub issue or pull request, with its comments, to Markdown.

    Accepted URL shapes:
        github.com/{owner}/{repo}/issues/{n}
        github.com/{owner}/{repo}/pull/{n}
        api.github.com/repos/{owner}/{repo}/issues/{n}
        api.github.com/repos/{owner}/{repo}/pulls/{n}

    Unauthenticated requests are subject to GitHub's low rate limit; pass a
    token (or set GITHUB_TOKEN) for anything beyond occasional use.
    """

    name = "GitHub Issue"

    def __init__(
        self,
        client: HttpClient,
        token: str | None = None,
        output_config: OutputConfig | None = None,
        api_base_url: str = GITHUB_API_BASE_URL,
    ) -> None:
        self._client = client
        self._token = token.strip() if token and token.strip() else None
        self._output = output_config or OutputConfig()
        self._api_base_url = api_base_url.rstrip("/")
        self._frontmatter = FrontmatterBuilder(
            exporter=f"markdowndown-github-{__version__}",
            extra_fields=self._output.custom_frontmatter_fields,
        )

    @property
    def has_token(self) -> bool:
        return self._token is not None

    def parse_github_url(self, url: str) -> GitHubResource:
        """
        Identify the repository and issue number a URL points at.

        Raises:
            ValidationError: INVALID_URL for anything else
        """
        parsed = urlsplit(url.strip())
        host = (parsed.hostname or "").lower()
        segments = [s for s in parsed.path.split("/") if s]

        if host == "api.github.com" and segments[:1] == ["repos"]:
            segments = segments[1:]
            kinds = {"issues": False, "pulls": True}
        elif host == "github.com":
            kinds = {"issues": False, "pull": True}
        else:
            kinds = {}

        if len(segments) >= 4 and segments[2] in kinds and segments[3].isascii() and segments[3].isdigit():
            return GitHubResource(
                owner=segments[0],
                repo=segments[1],
                number=int(segments[3]),
                is_pull_request=kinds[segments[2]],
                url=url,
            )

        context = ErrorContext(url, "Parse GitHub URL", self.name).with_info(
            "Expected github.com/{owner}/{repo}/issues/{number} or /pull/{number}"
        )
        raise ValidationError(ValidationErrorKind.INVALID_URL, context)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": GITHUB_API_ACCEPT}
        if self._token:
            headers["Authorization"] = f"token {self._token}"
        return headers

    async def _fetch_issue(self, resource: GitHubResource) -> GitHubIssue:
        # Pull requests are served by the issues endpoint too
        api_url = f"{self._api_base_url}/repos/{resource.repository}/issues/{resource.number}"
        text = await self._client.get_text_with_headers(api_url, self._headers())
        try:
            return GitHubIssue.model_validate_json(text)
        except PydanticValidationError as e:
            context = ErrorContext(resource.url, "Parse GitHub issue response", self.name)
            raise ContentError(ContentErrorKind.PARSING_FAILED, context.with_info(str(e))) from e

    async def _fetch_comments(self, resource: GitHubResource) -> list[GitHubComment]:
        api_url = f"{self._api_base_url}/repos/{resource.repository}/issues/{resource.number}/comments"
        text = await self._client.get_text_with_headers(api_url, self._headers())
        try:
            return _COMMENTS.validate_json(text)
        except PydanticValidationError as e:
            context = ErrorContext(resource.url, "Parse GitHub comments response", self.name)
            raise ContentError(ContentErrorKind.PARSING_FAILED, context.with_info(str(e))) from e

    async def convert(self, url: str) -> Markdown:
        """Fetch an issue and its comments and render them as Markdown."""
        resource = self.parse_github_url(url)
        issue, comments = await asyncio.gather(
            self._fetch_issue(resource),
            self._fetch_comments(resource),
        )
        logger.info(f"Fetched {resource.repository}#{resource.number} with {len(comments)} comments")

        body = render_issue(issue, comments)
        if not self._output.include_frontmatter:
            return Markdown.new(body, url, self.name)

        frontmatter = self._frontmatter.build(
            url,
            conversion_type="github_issue",
            github_issue_number=str(issue.number),
            github_repository=resource.repository,
            github_state=issue.state,
            github_author=issue.user.login,
            resource_type=resource.resource_type,
            github_labels=", ".join(label.name for label in issue.labels) or None,
        )
        return Markdown.new(self._frontmatter.combine(frontmatter, body), url, self.name)
