"""Releases Notifier — Data Models.

Dataclasses for the entities the bot works with: repository references,
releases, tracked repositories and users.

Persisted entities provide from_db_row() to rebuild them from SQLite rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RepoRef:
    """Normalized (owner, name) identifier of a GitHub repository.

    Equality is case-sensitive, exactly as the user typed it.
    """

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def html_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class Release:
    """A single published version of a repository.

    Attributes:
        name: Release title (falls back to the tag name).
        url: Link to the release page.
        description: Release notes body, free-form markdown.
        is_prerelease: Whether GitHub marks the release as a pre-release.
    """

    name: str
    url: str
    description: str = ""
    is_prerelease: bool = False

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "description": self.description,
            "is_prerelease": int(self.is_prerelease),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "Release":
        return cls(
            name=row["name"],
            url=row["url"],
            description=row.get("description") or "",
            is_prerelease=bool(row.get("is_prerelease", 0)),
        )


@dataclass(frozen=True)
class Repo:
    """A tracked repository with its releases and watchers.

    Attributes:
        ref: Owner/name identity.
        releases: Releases ordered oldest → newest (last is most recent).
        watched_users: Telegram user ids subscribed to this repository.
    """

    ref: RepoRef
    releases: tuple[Release, ...] = ()
    watched_users: tuple[int, ...] = ()

    @property
    def owner(self) -> str:
        return self.ref.owner

    @property
    def name(self) -> str:
        return self.ref.name


@dataclass
class User:
    """A Telegram user known to the bot.

    Attributes:
        id: Telegram user id.
        username: Telegram @username, if any.
        first_name: Display name.
        subscriptions: Repositories this user watches.
    """

    id: int
    username: str = ""
    first_name: str = ""
    subscriptions: list[RepoRef] = field(default_factory=list)

    @classmethod
    def from_db_row(cls, row: dict[str, Any], subscriptions: list[RepoRef]) -> "User":
        return cls(
            id=row["id"],
            username=row.get("username") or "",
            first_name=row.get("first_name") or "",
            subscriptions=subscriptions,
        )
