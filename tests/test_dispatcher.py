"""Ordering, expansion and failure behavior of the notification dispatcher."""

from __future__ import annotations

import pytest

from releases_notifier.database.models import Repo, RepoRef
from releases_notifier.errors import DeliveryError, StaleReferenceError
from releases_notifier.notifier.actions import parse_callback_data


def _repo(name, releases, watchers=()):
    return Repo(ref=RepoRef("acme", name), releases=tuple(releases), watched_users=tuple(watchers))


async def test_pull_order_repo_then_release(dispatcher, telegram, make_release):
    repos = [
        _repo("one", [make_release("1.0"), make_release("1.1-rc", True)]),
        _repo("two", [make_release("2.0")]),
        _repo("empty", []),
    ]

    sent = await dispatcher.send_latest(42, repos)

    assert sent == 3
    assert [m.chat_id for m in telegram.sent] == [42, 42, 42]
    assert [m.text.split("\n")[0] for m in telegram.sent] == [
        "<b>acme/one</b>", "<b>acme/one</b>", "<b>acme/two</b>",
    ]
    assert telegram.sent[0].text.endswith("1.0")
    assert telegram.sent[1].text.endswith("<b>Pre-release</b> 1.1-rc")


async def test_pull_expand_indices_follow_send_order(dispatcher, telegram, sessions, make_release):
    r0, r1 = make_release("1.0", description="first"), make_release("1.1-rc", True, "second")
    await dispatcher.send_latest(42, [_repo("one", [r0, r1])])

    routes = [parse_callback_data(m.callback_data[0]) for m in telegram.sent]
    assert [r.index for r in routes] == [0, 1]

    cache = sessions.get(42).expansions
    assert cache.resolve(routes[0].index, routes[0].generation).endswith("first")
    assert cache.resolve(routes[1].index, routes[1].generation).endswith("second")


async def test_new_pass_replaces_expansions(dispatcher, telegram, sessions, make_release):
    await dispatcher.send_latest(42, [_repo("one", [make_release("1.0"), make_release("1.1", True)])])
    old_routes = [parse_callback_data(m.callback_data[0]) for m in telegram.sent]

    await dispatcher.send_latest(42, [_repo("two", [make_release("2.0")])])
    cache = sessions.get(42).expansions

    assert len(cache) == 1
    for route in old_routes:
        with pytest.raises(StaleReferenceError):
            cache.resolve(route.index, route.generation)


async def test_push_is_release_then_recipient(dispatcher, telegram, make_release):
    repos = [
        _repo("one", [make_release("1.0"), make_release("1.1-rc", True)], watchers=[1, 2]),
        _repo("two", [make_release("2.0")], watchers=[2, 3]),
        _repo("nobody", [make_release("9.9")], watchers=[]),
    ]

    sent = await dispatcher.notify_watchers(repos)

    assert sent == 6
    order = [(m.chat_id, m.text.rsplit("\n", 1)[-1]) for m in telegram.sent]
    assert order == [
        (1, "1.0"), (2, "1.0"),
        (1, "<b>Pre-release</b> 1.1-rc"), (2, "<b>Pre-release</b> 1.1-rc"),
        (2, "2.0"), (3, "2.0"),
    ]


async def test_push_indexes_per_recipient(dispatcher, telegram, sessions, make_release):
    repos = [
        _repo("one", [make_release("1.0")], watchers=[1]),
        _repo("two", [make_release("2.0", description="two notes")], watchers=[1, 2]),
    ]
    await dispatcher.notify_watchers(repos)

    last_for_2 = parse_callback_data(telegram.sent[-1].callback_data[0])
    assert telegram.sent[-1].chat_id == 2
    assert last_for_2.index == 0
    assert sessions.get(2).expansions.resolve(0).endswith("two notes")
    assert len(sessions.get(1).expansions) == 2


async def test_failed_send_aborts_rest_of_pass(dispatcher, telegram, make_release):
    telegram.fail_on = 2
    repos = [_repo("one", [make_release("1.0")], watchers=[1, 2, 3]),
             _repo("two", [make_release("2.0")], watchers=[1])]

    with pytest.raises(DeliveryError) as exc_info:
        await dispatcher.notify_watchers(repos)

    assert exc_info.value.chat_id == 2
    assert [m.chat_id for m in telegram.sent] == [1, 2]


async def test_pull_over_no_repos_still_resets(dispatcher, telegram, sessions, make_release):
    await dispatcher.send_latest(42, [_repo("one", [make_release("1.0")])])
    route = parse_callback_data(telegram.sent[0].callback_data[0])

    assert await dispatcher.send_latest(42, []) == 0

    cache = sessions.get(42).expansions
    assert len(cache) == 0
    with pytest.raises(StaleReferenceError):
        cache.resolve(route.index, route.generation)
