"""Release message rendering and callback payload parsing."""

from __future__ import annotations

import pytest

from releases_notifier.core.session import ExpansionKey
from releases_notifier.database.models import Release, RepoRef
from releases_notifier.errors import StaleReferenceError, UnknownActionError
from releases_notifier.notifier import keyboards
from releases_notifier.notifier.actions import (
    Action,
    delete_payload,
    expand_payload,
    fits_callback,
    parse_callback_data,
)
from releases_notifier.notifier.formatters import (
    build_release_messages,
    sanitize_description,
)

REF = RepoRef("acme", "widget")


def test_sanitize_removes_stars_and_escapes_underscores():
    assert sanitize_description("a*b_c") == "ab\\_c"
    assert sanitize_description("  **bold** __init__  \n") == "bold \\_\\_init\\_\\_"
    assert sanitize_description("") == ""


def test_short_message_stable():
    release = Release(name="v2.0", url="https://example.com/v2.0")
    messages = build_release_messages(REF, release)
    assert messages.short == "<b>acme/widget</b>\nv2.0"


def test_short_message_prerelease_and_escaping():
    release = Release(name="v2.0 <rc>", url="https://example.com", is_prerelease=True)
    messages = build_release_messages(REF, release)
    assert messages.short == "<b>acme/widget</b>\n<b>Pre-release</b> v2.0 &lt;rc&gt;"


def test_full_message_layout():
    release = Release(
        name="v2.0-rc1",
        url="https://github.com/acme/widget/releases/tag/v2.0-rc1",
        description="a*b_c",
        is_prerelease=True,
    )
    full = build_release_messages(REF, release).full
    assert full == (
        "*acme/widget*\n"
        "*Pre-release* [v2.0-rc1](https://github.com/acme/widget/releases/tag/v2.0-rc1)\n"
        "ab\\_c"
    )


def test_full_message_stable_has_no_marker():
    release = Release(name="v1", url="u", description="notes")
    assert build_release_messages(REF, release).full == "*acme/widget*\n[v1](u)\nnotes"


# ── Callback payloads ────────────────────────────────────


@pytest.mark.parametrize("data, action", [
    ("actionsList", Action.ACTIONS_LIST),
    ("addRepo", Action.ADD_REPO),
    ("getReleases", Action.GET_RELEASES),
    ("editRepos", Action.EDIT_REPOS),
])
def test_parse_plain_actions(data, action):
    assert parse_callback_data(data).action is action


def test_parse_expand_with_and_without_generation():
    route = parse_callback_data(expand_payload(ExpansionKey(generation=3, index=1)))
    assert (route.action, route.index, route.generation) == (Action.EXPAND_RELEASE, 1, 3)

    legacy = parse_callback_data("getReleases:expand:4")
    assert (legacy.index, legacy.generation) == (4, None)


@pytest.mark.parametrize("data", [
    "getReleases:expand:abc",
    "getReleases:expand:",
    "getReleases:expand:1:2:3",
])
def test_parse_expand_non_numeric_is_stale(data):
    with pytest.raises(StaleReferenceError):
        parse_callback_data(data)


def test_parse_delete_target():
    route = parse_callback_data(delete_payload(REF))
    assert route.action is Action.DELETE_REPO
    assert route.target == REF


@pytest.mark.parametrize("data", [
    None,
    "",
    "getReleasesNow",
    "editRepos:delete:nonsense",
    "editRepos:delete:/widget",
    "dropTables",
])
def test_parse_unknown_fails_closed(data):
    with pytest.raises(UnknownActionError):
        parse_callback_data(data)


def test_subscriptions_list_omits_oversized_delete_button():
    long_ref = RepoRef("acme", "w" * 60)
    assert not fits_callback(delete_payload(long_ref))

    markup = keyboards.subscriptions_list([REF, long_ref])
    rows = markup.inline_keyboard

    assert [b.callback_data for b in rows[0]] == [None, "editRepos:delete:acme/widget"]
    assert len(rows[1]) == 1
    assert rows[1][0].url == long_ref.html_url
    assert rows[2][0].callback_data == "actionsList"
