"""
Human-readable notifications for GitHub webhook events.

Each supported event type maps to a formatting function over the raw
payload. The table is built once at import and never mutated. A formatter
returns a Message, or None when the event should not produce a
notification; callers never see formatting exceptions.
"""

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

BODY_LIMIT = 100
COMMIT_SUMMARY_LIMIT = 50
MAX_COMMITS = 3
OPENGRAPH_BASE = "https://opengraph.githubassets.com/"


@dataclass(frozen=True)
class Message:
    text: str
    images: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FormatOptions:
    enable_watch: bool = False
    enable_unknown_event: bool = False
    enable_image: bool = False


Formatter = Callable[[Dict[str, Any], FormatOptions], Optional[Message]]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _repo_header(repository: Optional[Mapping[str, Any]]) -> str:
    name = (repository or {}).get("full_name") or "unknown repository"
    return f"📦 Repository: {name}"


def _item(emoji: str, label: str, value: Any) -> str:
    text = str(value).strip() if value is not None else ""
    return f"{emoji} {label}: {text}" if text else ""


def _link(label: str, url: Optional[str]) -> str:
    return f"🔗 {label}: {url}" if url else ""


def _login(user: Optional[Mapping[str, Any]]) -> Optional[str]:
    return (user or {}).get("login")


def truncate(text: Optional[str], limit: int) -> str:
    if not text:
        return ""
    return text[:limit] + "..." if len(text) > limit else text


def _title(item: Mapping[str, Any]) -> str:
    parts = []
    if item.get("number") is not None:
        parts.append(f"#{item['number']}")
    if item.get("title"):
        parts.append(str(item["title"]))
    return " ".join(parts)


def _join(lines: List[str]) -> Optional[Message]:
    text = "\n".join(line for line in lines if line and line.strip())
    return Message(text=text) if text else None


def _commit_lines(commits: List[Mapping[str, Any]]) -> List[str]:
    if not commits:
        return []
    lines = [f"📜 Commits ({len(commits)}):"]
    for commit in commits[:MAX_COMMITS]:
        summary = (commit.get("message") or "").split("\n")[0]
        lines.append(f"├ {commit['id'][:7]}: {truncate(summary, COMMIT_SUMMARY_LIMIT)}")
    if len(commits) > MAX_COMMITS:
        lines.append(f"└ ... {len(commits) - MAX_COMMITS} more")
    return lines


def _opengraph_url(seed: str, html_url: Optional[str]) -> Optional[str]:
    """Preview image URL for a github.com page.

    The leading hash only busts GitHub's image cache; any stable value works.
    """
    if not html_url:
        return None
    parsed = urlparse(html_url)
    if parsed.netloc != "github.com" or not parsed.path:
        return None
    prefix = hashlib.sha256(seed.encode("utf-8")).hexdigest()[:8]
    return OPENGRAPH_BASE + prefix + parsed.path


def _short_ref(ref: str) -> str:
    for prefix, kind in (("refs/heads/", "branch"), ("refs/tags/", "tag")):
        if ref.startswith(prefix):
            return f"{kind} {ref[len(prefix):]}"
    return ref


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _duration(start: Optional[str], end: Optional[str]) -> str:
    started, finished = _parse_timestamp(start), _parse_timestamp(end)
    if started is None or finished is None or finished < started:
        return ""
    minutes, seconds = divmod(int((finished - started).total_seconds()), 60)
    return f"{minutes}m {seconds}s" if minutes else f"{seconds}s"


# ---------------------------------------------------------------------------
# Event formatters
# ---------------------------------------------------------------------------

def format_star(payload: Dict[str, Any], options: FormatOptions) -> Optional[Message]:
    action = payload.get("action")
    repository = payload["repository"]
    stars = repository.get("stargazers_count") or 0
    event_text = {"created": "new star", "deleted": "star removed"}.get(action, action)
    message = _join([
        _repo_header(repository),
        _item("⭐", "Star", event_text),
        _item("👤", "User", _login(payload.get("sender"))),
        _item("✨", "Stars", stars),
        _link("Repository", repository.get("html_url")),
    ])
    if message and options.enable_image:
        image = _opengraph_url(f"{repository.get('full_name')}:{stars}", repository.get("html_url"))
        if image:
            message = Message(text=message.text, images=(image,))
    return message


def format_push(payload: Dict[str, Any], options: FormatOptions) -> Optional[Message]:
    commits = payload.get("commits") or []
    message = _join([
        _repo_header(payload.get("repository")),
        _item("🚀", "Push", _short_ref(payload["ref"])),
        _item("👤", "Pusher", (payload.get("pusher") or {}).get("name")),
        *_commit_lines(commits),
        _link("Compare", payload.get("compare")),
    ])
    if message and options.enable_image:
        images = []
        for commit in commits:
            image = _opengraph_url(commit["id"], commit.get("url"))
            if image:
                images.append(image)
        message = Message(text=message.text, images=tuple(images))
    return message


def format_workflow_run(payload: Dict[str, Any], options: FormatOptions) -> Optional[Message]:
    if payload.get("action") != "completed":
        return None
    run = payload["workflow_run"]
    conclusion = run.get("conclusion")
    if conclusion == "success":
        status = "✅ success"
    elif conclusion == "failure":
        status = "❌ failure"
    else:
        status = f"⚠️ {conclusion}"
    return _join([
        _repo_header(payload.get("repository")),
        _item("⚙️", "Workflow", status),
        _item("📛", "Name", run.get("name")),
        _item("🧭", "Trigger", run.get("event")),
        _item("📝", "Commit", run.get("display_title")),
        _item("⏱️", "Duration", _duration(run.get("run_started_at"), run.get("updated_at"))),
        _link("Details", run.get("html_url")),
    ])


ISSUE_ACTIONS = MappingProxyType({
    "opened": "📝 Issue opened",
    "closed": "🔒 Issue closed",
    "reopened": "🔓 Issue reopened",
    "deleted": "🗑️ Issue deleted",
    "assigned": "👤 Issue assigned",
    "labeled": "🏷️ Issue labeled",
})


def format_issues(payload: Dict[str, Any], options: FormatOptions) -> Optional[Message]:
    action = payload.get("action")
    repository = payload.get("repository") or {}
    issue = payload.get("issue") or {}

    lines = [
        _repo_header(repository),
        f"📌 Event: {ISSUE_ACTIONS.get(action, f'Issue {action}')}",
    ]
    if issue.get("title"):
        lines.append(_item("🏷️", "Title", _title(issue)))

    if action == "opened":
        lines.append(_item("📄", "Body", truncate(issue.get("body"), BODY_LIMIT)))
    elif action == "assigned":
        lines.append(f"👥 Assignee: {_login(payload.get('assignee')) or 'unknown user'}")
    elif action == "labeled":
        lines.append(f"🔖 Label: {(payload.get('label') or {}).get('name') or 'unknown label'}")
    elif action == "deleted":
        lines.append("🚨 This issue was permanently deleted")

    lines.append(f"👤 By: {_login(payload.get('sender')) or 'unknown user'}")
    lines.append(_link("Details", issue.get("html_url") or repository.get("html_url")))
    return _join(lines)


PULL_REQUEST_ACTIONS = MappingProxyType({
    "opened": "🔀 Pull request opened",
    "reopened": "🔄 Pull request reopened",
    "review_requested": "👥 Review requested",
    "ready_for_review": "📢 Ready for review",
    "synchronize": "🔄 New commits pushed",
    "edited": "✏️ Pull request edited",
})


def format_pull_request(payload: Dict[str, Any], options: FormatOptions) -> Optional[Message]:
    action = payload.get("action")
    pr = payload["pull_request"]

    if action == "closed":
        event_text = "✅ Pull request merged" if pr.get("merged") else "🚫 Pull request closed"
    else:
        event_text = PULL_REQUEST_ACTIONS.get(action, f"Pull request {action}")

    lines = [
        _repo_header(payload.get("repository")),
        f"📌 Event: {event_text}",
        _item("📝", "Title", _title(pr)),
    ]
    if action == "opened":
        head = (pr.get("head") or {}).get("ref")
        base = (pr.get("base") or {}).get("ref")
        if head and base:
            lines.append(f"🌿 Branches: {head} → {base}")
    elif action == "review_requested":
        reviewer = _login(payload.get("requested_reviewer")) or (payload.get("requested_team") or {}).get("name")
        lines.append(f"👥 Reviewer: {reviewer or 'unknown user'}")

    lines.append(f"👤 By: {_login(payload.get('sender')) or 'unknown user'}")
    lines.append(_link("Details", pr.get("html_url")))
    return _join(lines)


RELEASE_ACTIONS = MappingProxyType({
    "published": "🎉 Release published",
    "edited": "✏️ Release edited",
    "deleted": "🗑️ Release deleted",
})


def format_release(payload: Dict[str, Any], options: FormatOptions) -> Optional[Message]:
    event_text = RELEASE_ACTIONS.get(payload.get("action"))
    if event_text is None:
        return None
    release = payload["release"]
    return _join([
        _repo_header(payload.get("repository")),
        f"📌 Event: {event_text}",
        _item("🏷️", "Version", release.get("tag_name") or "unknown version"),
        _item("📛", "Name", release.get("name") if release.get("name") != release.get("tag_name") else None),
        _item("👤", "Author", _login(release.get("author"))),
        _link("Details", release.get("html_url")),
    ])


def format_issue_comment(payload: Dict[str, Any], options: FormatOptions) -> Optional[Message]:
    action = payload.get("action")
    issue = payload["issue"]
    comment = payload["comment"]
    kind = "pull request" if issue.get("pull_request") else "issue"
    subject = f"{kind} #{issue.get('number')}"

    if action == "created":
        lines = [
            _item("💬", "New comment", f"{subject} {issue.get('title') or ''}"),
            _item("📝", "Comment", truncate(comment.get("body"), BODY_LIMIT)),
        ]
    else:
        lines = [f"💬 Comment {action} on {subject}"]

    return _join([
        _repo_header(payload.get("repository")),
        *lines,
        _item("👤", "By", _login(comment.get("user")) or _login(payload.get("sender"))),
        _link("Details", comment.get("html_url")),
    ])


def format_fork(payload: Dict[str, Any], options: FormatOptions) -> Optional[Message]:
    forkee = payload["forkee"]
    return _join([
        _repo_header(payload.get("repository")),
        _item("⑂", "Fork", forkee["full_name"]),
        _item("👤", "By", _login(payload.get("sender"))),
        _link("Fork", forkee.get("html_url")),
    ])


def format_watch(payload: Dict[str, Any], options: FormatOptions) -> Optional[Message]:
    action = payload.get("action")
    repository = payload["repository"]
    return _join([
        _repo_header(repository),
        _item("👀", "Watch", "started watching" if action == "started" else action),
        _item("👤", "By", _login(payload.get("sender"))),
        _link("Repository", repository.get("html_url")),
    ])


def format_unknown(event: str, payload: Dict[str, Any]) -> Optional[Message]:
    return _join([
        _repo_header(payload.get("repository")),
        f"📢 Unknown event: {event}",
    ])


EVENT_FORMATTERS: Mapping[str, Formatter] = MappingProxyType({
    "star": format_star,
    "push": format_push,
    "workflow_run": format_workflow_run,
    "issues": format_issues,
    "pull_request": format_pull_request,
    "release": format_release,
    "issue_comment": format_issue_comment,
    "fork": format_fork,
    "watch": format_watch,
})

# emoji and short description shown by the types command
EVENT_DESCRIPTIONS: Mapping[str, Tuple[str, str]] = MappingProxyType({
    "star": ("⭐", "Repository starred"),
    "push": ("🚀", "Code pushed"),
    "workflow_run": ("⚙️", "Workflow run completed"),
    "issues": ("📝", "Issue activity"),
    "pull_request": ("🔀", "Pull request activity"),
    "release": ("🏷️", "Release published"),
    "issue_comment": ("💬", "Issue comment"),
    "fork": ("⑂", "Repository forked"),
    "watch": ("👀", "Repository watched"),
})

SUPPORTED_EVENTS = tuple(EVENT_FORMATTERS)


def is_known_event(event: str) -> bool:
    return event in EVENT_FORMATTERS


def format_event(event: str, payload: Dict[str, Any], options: FormatOptions) -> Optional[Message]:
    """Build the notification for a webhook event.

    Returns None when no message should be sent: an unknown event type
    with unknown-event forwarding off, a watch event with watch forwarding
    off, an action the event type does not report, or a payload the
    formatter could not handle.
    """
    try:
        formatter = EVENT_FORMATTERS.get(event)
        if formatter is None:
            return format_unknown(event, payload) if options.enable_unknown_event else None
        if event == "watch" and not options.enable_watch:
            return None
        return formatter(payload, options)
    except Exception as e:
        logger.warning(f"Failed to format {event} event: {e!r}")
        return None
