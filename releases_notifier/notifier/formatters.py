"""Releases Notifier — Telegram Message Formatters.

Every release is rendered twice:
  - short: HTML notice sent on delivery (bold repository, release name)
  - full:  legacy-Markdown text shown when the user presses "Expand"
           (repository, linked release name, release notes)

Release notes are free-form GitHub markdown. In Telegram's legacy Markdown
`*` and `_` open entities, so the full text removes every `*` and escapes
every `_` before sending.
"""

from __future__ import annotations

from dataclasses import dataclass

from releases_notifier.database.models import Release, RepoRef

ABOUT_TEXT = """
Bot for notification of new releases in repositories you tell it about.

Send /actions to add a repository, edit your list or fetch the latest releases.
Pre-releases are announced together with the latest stable release.
"""

SELECT_ACTION_TEXT = "Select an action"
ENTER_REPO_TEXT = "Please, enter the owner and name of repo (owner/name) or full url"
RETRY_REPO_TEXT = "Cannot subscribe to this repo. Please enter another:"
SUBSCRIBED_TEXT = "Done!"
YOUR_REPOS_TEXT = "Your repos"
NO_SUBSCRIPTIONS_TEXT = "You do not have a subscriptions"
NO_RELEASES_TEXT = "There are no releases in your repos yet"
BROKEN_DATA_TEXT = "Data is broken"
GENERIC_ERROR_TEXT = "Something went wrong. Please try again later."


@dataclass(frozen=True)
class ReleaseMessages:
    """Both renderings of one release."""

    short: str
    full: str


def _e(text: str) -> str:
    """Escape HTML special characters (only &, < and > matter to Telegram)."""
    if not text:
        return ""
    return str(text).replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def sanitize_description(description: str) -> str:
    """Make release notes safe for legacy Markdown.

    Removes every `*`, escapes every `_` with a backslash, then trims.
    """
    if not description:
        return ""
    return description.replace("*", "").replace("_", "\\_").strip()


def format_release_short(ref: RepoRef, release: Release) -> str:
    """Format the short HTML notice for a release."""
    marker = "<b>Pre-release</b> " if release.is_prerelease else ""
    return f"<b>{_e(ref.owner)}/{_e(ref.name)}</b>\n{marker}{_e(release.name)}"


def format_release_full(ref: RepoRef, release: Release) -> str:
    """Format the full Markdown text for a release.

    Layout:
        *owner/name*
        *Pre-release* [name](url)
        sanitized description
    """
    marker = "*Pre-release* " if release.is_prerelease else ""
    return (
        f"*{ref.owner}/{ref.name}*\n"
        f"{marker}[{release.name}]({release.url})\n"
        f"{sanitize_description(release.description)}"
    )


def build_release_messages(ref: RepoRef, release: Release) -> ReleaseMessages:
    return ReleaseMessages(
        short=format_release_short(ref, release),
        full=format_release_full(ref, release),
    )
