"""Releases Notifier — Callback Actions.

The closed set of inline-button payloads the bot understands, and the
parser that turns a raw payload into a typed route before dispatch.

Payload formats:
  actionsList
  addRepo
  getReleases
  getReleases:expand:<index>[:<generation>]
  editRepos
  editRepos:delete:<owner>/<name>
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from releases_notifier.core.session import ExpansionKey
from releases_notifier.database.models import RepoRef
from releases_notifier.errors import StaleReferenceError, UnknownActionError

_SEP = ":"

# Telegram rejects callback_data longer than this many UTF-8 bytes
MAX_CALLBACK_BYTES = 64


class Action(str, enum.Enum):
    """Callback action tags."""

    ACTIONS_LIST = "actionsList"
    ADD_REPO = "addRepo"
    GET_RELEASES = "getReleases"
    EXPAND_RELEASE = "getReleases:expand"
    EDIT_REPOS = "editRepos"
    DELETE_REPO = "editRepos:delete"


_PLAIN_ACTIONS = {
    Action.ACTIONS_LIST.value: Action.ACTIONS_LIST,
    Action.ADD_REPO.value: Action.ADD_REPO,
    Action.GET_RELEASES.value: Action.GET_RELEASES,
    Action.EDIT_REPOS.value: Action.EDIT_REPOS,
}


@dataclass(frozen=True)
class CallbackRoute:
    """A parsed callback payload.

    Attributes:
        action: Which handler to dispatch to.
        index: Expansion index (EXPAND_RELEASE only).
        generation: Pass generation of the index, when the payload has one.
        target: Repository to remove (DELETE_REPO only).
    """

    action: Action
    index: Optional[int] = None
    generation: Optional[int] = None
    target: Optional[RepoRef] = None


def expand_payload(key: ExpansionKey) -> str:
    return f"{Action.EXPAND_RELEASE.value}{_SEP}{key.index}{_SEP}{key.generation}"


def delete_payload(ref: RepoRef) -> str:
    return f"{Action.DELETE_REPO.value}{_SEP}{ref.owner}/{ref.name}"


def fits_callback(data: str) -> bool:
    return len(data.encode("utf-8")) <= MAX_CALLBACK_BYTES


def _parse_expand(argument: str) -> CallbackRoute:
    parts = argument.split(_SEP)
    if len(parts) > 2:
        raise StaleReferenceError(f"Malformed expansion reference: {argument!r}")
    try:
        numbers = [int(part) for part in parts]
    except ValueError:
        raise StaleReferenceError(f"Malformed expansion reference: {argument!r}") from None
    return CallbackRoute(
        action=Action.EXPAND_RELEASE,
        index=numbers[0],
        generation=numbers[1] if len(numbers) == 2 else None,
    )


def _parse_delete(argument: str) -> CallbackRoute:
    owner, _, name = argument.partition("/")
    if not owner or not name:
        raise UnknownActionError(f"Malformed delete target: {argument!r}")
    return CallbackRoute(action=Action.DELETE_REPO, target=RepoRef(owner=owner, name=name))


def parse_callback_data(data: Optional[str]) -> CallbackRoute:
    """Parse a raw callback payload into a typed route.

    Args:
        data: The button's callback_data.

    Returns:
        The route to dispatch.

    Raises:
        UnknownActionError: If the payload matches no action.
        StaleReferenceError: If an expand payload carries a non-numeric index.
    """
    if not data:
        raise UnknownActionError("Empty callback payload")

    if data in _PLAIN_ACTIONS:
        return CallbackRoute(action=_PLAIN_ACTIONS[data])

    expand_prefix = Action.EXPAND_RELEASE.value + _SEP
    if data.startswith(expand_prefix):
        return _parse_expand(data[len(expand_prefix):])

    delete_prefix = Action.DELETE_REPO.value + _SEP
    if data.startswith(delete_prefix):
        return _parse_delete(data[len(delete_prefix):])

    raise UnknownActionError(f"Unknown callback payload: {data!r}")
