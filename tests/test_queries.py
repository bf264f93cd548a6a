"""Persistent store operations against a temporary SQLite database."""

from __future__ import annotations

import pytest

from releases_notifier.database import queries
from releases_notifier.database.models import RepoRef


async def test_create_and_get_user(db):
    assert await queries.get_user(db, 1) is None

    await queries.create_user(db, 1, "alice", "Alice")
    await queries.create_user(db, 1, "alice2", "Alice")

    user = await queries.get_user(db, 1)
    assert user.id == 1
    assert user.username == "alice2"
    assert user.subscriptions == []


async def test_repo_releases_keep_order(db, make_release):
    releases = [make_release("v1"), make_release("v2", True), make_release("v3")]
    await queries.add_repo(db, "acme", "widget")
    await queries.update_repo(db, "acme", "widget", releases)

    repo = await queries.get_repo(db, "acme", "widget")
    assert repo.ref == RepoRef("acme", "widget")
    assert list(repo.releases) == releases
    assert await queries.get_repo(db, "Acme", "widget") is None


async def test_update_unknown_repo_raises(db, make_release):
    with pytest.raises(LookupError):
        await queries.update_repo(db, "ghost", "repo", [make_release("v1")])


async def test_subscription_is_idempotent(db):
    await queries.create_user(db, 1)
    await queries.add_repo(db, "acme", "widget")
    await queries.add_repo(db, "acme", "widget")

    await queries.bind_user_to_repo(db, 1, "acme", "widget")
    await queries.bind_user_to_repo(db, 1, "acme", "widget")

    repos = await queries.get_all_repos(db)
    assert len(repos) == 1
    assert repos[0].watched_users == (1,)
    assert (await queries.get_user(db, 1)).subscriptions == [RepoRef("acme", "widget")]


async def test_unbind_is_idempotent(db):
    await queries.add_repo(db, "acme", "widget")
    await queries.bind_user_to_repo(db, 1, "acme", "widget")

    await queries.unbind_user_from_repo(db, 1, "acme", "widget")
    await queries.unbind_user_from_repo(db, 1, "acme", "widget")
    await queries.unbind_user_from_repo(db, 1, "nobody", "nothing")

    assert await queries.get_user_subscriptions(db, 1) == []
    assert (await queries.get_repo(db, "acme", "widget")).watched_users == ()


async def test_user_subscriptions_in_subscription_order(db):
    for name in ("zeta", "alpha"):
        await queries.add_repo(db, "acme", name)
    await queries.bind_user_to_repo(db, 5, "acme", "zeta")
    await queries.bind_user_to_repo(db, 5, "acme", "alpha")
    await queries.bind_user_to_repo(db, 6, "acme", "alpha")

    repos = await queries.get_user_subscriptions(db, 5)
    assert [r.name for r in repos] == ["zeta", "alpha"]
    assert repos[1].watched_users == (5, 6)
