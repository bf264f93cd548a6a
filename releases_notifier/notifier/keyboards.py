"""Releases Notifier — Inline Keyboards."""

from __future__ import annotations

from typing import Sequence

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from releases_notifier.core.session import ExpansionKey
from releases_notifier.database.models import RepoRef
from releases_notifier.notifier.actions import Action, delete_payload, expand_payload, fits_callback
from releases_notifier.utils.logger import get_logger

logger = get_logger(__name__)


def actions_list() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        InlineKeyboardButton("Add repo", callback_data=Action.ADD_REPO.value),
        InlineKeyboardButton("Edit repos list", callback_data=Action.EDIT_REPOS.value),
        InlineKeyboardButton("Get latest releases", callback_data=Action.GET_RELEASES.value),
    ]])


def back_to_actions() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        InlineKeyboardButton("Back", callback_data=Action.ACTIONS_LIST.value),
    ]])


def add_one_more_repo() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        InlineKeyboardButton("Add one more?", callback_data=Action.ADD_REPO.value),
    ]])


def expand_button(key: ExpansionKey) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        InlineKeyboardButton("Expand", callback_data=expand_payload(key)),
    ]])


def subscriptions_list(refs: Sequence[RepoRef]) -> InlineKeyboardMarkup:
    """One row per repository (link + delete button), then a Back row.

    A repository whose delete payload would exceed Telegram's callback
    size gets the link only, so the rest of the list still renders.
    """
    rows = []
    for ref in refs:
        row = [InlineKeyboardButton(ref.full_name, url=ref.html_url)]
        payload = delete_payload(ref)
        if fits_callback(payload):
            row.append(InlineKeyboardButton("🗑️", callback_data=payload))
        else:
            logger.warning("Delete button for %s omitted: callback data too long", ref)
        rows.append(row)
    rows.append([InlineKeyboardButton("Back", callback_data=Action.ACTIONS_LIST.value)])
    return InlineKeyboardMarkup(rows)
