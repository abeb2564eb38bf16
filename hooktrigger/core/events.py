"""GitHub webhook event taxonomy."""

from __future__ import annotations

from enum import Enum

from hooktrigger.utils.logging import get_logger

log = get_logger(__name__)


class GitHubEvent(str, Enum):
    CHECK_RUN = "check_run"
    CHECK_SUITE = "check_suite"
    COMMIT_COMMENT = "commit_comment"
    CONTENT_REFERENCE = "content_reference"
    CREATE = "create"
    DELETE = "delete"
    DEPLOY_KEY = "deploy_key"
    DEPLOYMENT = "deployment"
    DEPLOYMENT_STATUS = "deployment_status"
    DISCUSSION = "discussion"
    DISCUSSION_COMMENT = "discussion_comment"
    DOWNLOAD = "download"
    FOLLOW = "follow"
    FORK = "fork"
    FORK_APPLY = "fork_apply"
    GITHUB_APP_AUTHORIZATION = "github_app_authorization"
    GIST = "gist"
    GOLLUM = "gollum"
    INSTALLATION = "installation"
    INSTALLATION_REPOSITORIES = "installation_repositories"
    INTEGRATION_INSTALLATION_REPOSITORIES = "integration_installation_repositories"
    ISSUE_COMMENT = "issue_comment"
    ISSUES = "issues"
    LABEL = "label"
    MARKETPLACE_PURCHASE = "marketplace_purchase"
    MEMBER = "member"
    MEMBERSHIP = "membership"
    MERGE_QUEUE_ENTRY = "merge_queue_entry"
    META = "meta"
    MILESTONE = "milestone"
    ORGANIZATION = "organization"
    ORG_BLOCK = "org_block"
    PACKAGE = "package"
    PAGE_BUILD = "page_build"
    PING = "ping"
    PROJECT = "project"
    PROJECT_CARD = "project_card"
    PROJECT_COLUMN = "project_column"
    PUBLIC = "public"
    PULL_REQUEST = "pull_request"
    PULL_REQUEST_REVIEW = "pull_request_review"
    PULL_REQUEST_REVIEW_COMMENT = "pull_request_review_comment"
    PULL_REQUEST_REVIEW_THREAD = "pull_request_review_thread"
    PUSH = "push"
    REGISTRY_PACKAGE = "registry_package"
    RELEASE = "release"
    REPOSITORY = "repository"
    REPOSITORY_DISPATCH = "repository_dispatch"
    REPOSITORY_IMPORT = "repository_import"
    REPOSITORY_VULNERABILITY_ALERT = "repository_vulnerability_alert"
    SCHEDULE = "schedule"
    SECURITY_ADVISORY = "security_advisory"
    STAR = "star"
    STATUS = "status"
    TEAM = "team"
    TEAM_ADD = "team_add"
    WATCH = "watch"
    WORKFLOW_DISPATCH = "workflow_dispatch"
    WORKFLOW_JOB = "workflow_job"
    WORKFLOW_RUN = "workflow_run"

    # Declared name that is not a known GitHub event; never matches anything
    UNRESOLVED = ""

    @property
    def resolved(self) -> bool:
        return self is not GitHubEvent.UNRESOLVED


KNOWN_EVENTS: dict[str, GitHubEvent] = {
    event.value: event for event in GitHubEvent if event is not GitHubEvent.UNRESOLVED
}


def resolve_event(name: str | None) -> GitHubEvent:
    """Look up a GitHub event by case-insensitive name.

    Unknown names are not an error: a warning is logged and
    ``GitHubEvent.UNRESOLVED`` is returned.
    """
    lowered = (name or "").strip().lower()
    event = KNOWN_EVENTS.get(lowered)
    if event is None:
        log.warning(
            "unknown_event_type",
            event_name=lowered,
            known=", ".join(sorted(KNOWN_EVENTS)),
        )
        return GitHubEvent.UNRESOLVED
    return event
