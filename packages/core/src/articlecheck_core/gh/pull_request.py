from __future__ import annotations

import logging
import re

from github import Github, GithubException

from articlecheck_core.errors import MalformedPayloadError, UpstreamFailure
from articlecheck_core.models import PullRequestRef

logger = logging.getLogger(__name__)

# Expected format: https://api.github.com/repos/owner/repo/pulls/number
_PR_URL_RE = re.compile(r"repos/([^/]+)/([^/]+)/pulls/(\d+)")


def extract_pr_reference(pr_url: str) -> PullRequestRef:
    match = _PR_URL_RE.search(pr_url or "")
    if not match:
        raise MalformedPayloadError("Invalid PR URL format")
    return PullRequestRef(owner=match.group(1), repo=match.group(2), number=int(match.group(3)))


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def get_document_files(pr, extensions: list[str]) -> list:
    """Return added or modified files whose name ends with one of ``extensions``."""
    suffixes = tuple(ext.lower() for ext in extensions)
    return [
        f for f in pr.get_files() if f.status in ("added", "modified") and f.filename.lower().endswith(suffixes)
    ]


def get_file_text(repo, path: str, ref: str) -> str:
    contents = repo.get_contents(path, ref=ref)
    if isinstance(contents, list):
        # A directory listing; nothing to read.
        return ""
    return contents.decoded_content.decode("utf-8", errors="replace")


class GitHubService:
    """Source-control collaborator used by the pipeline.

    Every GithubException is re-raised as UpstreamFailure so the pipeline
    only has to deal with its own error types.
    """

    def __init__(self, token: str, extensions: list[str] | None = None):
        self._gh = Github(token)
        self.extensions = extensions or [".md"]

    def _repo(self, ref: PullRequestRef):
        return self._gh.get_repo(ref.full_name)

    def fetch_content(self, ref: PullRequestRef) -> str:
        """Return the concatenated text of the PR's added/modified documents.

        Files are read at the PR head so every file comes from one snapshot.
        """
        try:
            repo = self._repo(ref)
            pr = get_pull(repo, ref.number)
            files = get_document_files(pr, self.extensions)
            if not files:
                raise UpstreamFailure("No markdown files found in the PR")
            head_sha = pr.head.sha
            logger.info("Fetching %d document(s) from %s#%d", len(files), ref.full_name, ref.number)
            return "\n\n".join(get_file_text(repo, f.filename, head_sha) for f in files)
        except GithubException as e:
            raise UpstreamFailure(f"GitHub API error ({e.status}): {e.data}") from e

    def post_comment(self, ref: PullRequestRef, issue_number: int, body: str) -> None:
        try:
            self._repo(ref).get_issue(issue_number).create_comment(body)
        except GithubException as e:
            raise UpstreamFailure(f"GitHub API error ({e.status}): {e.data}") from e
