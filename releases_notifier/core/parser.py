"""Releases Notifier — Repository Reference Parser.

Turns what a user types ("owner/name" or a github.com URL) into a RepoRef.
"""

from __future__ import annotations

import re
from typing import Optional

from releases_notifier.database.models import RepoRef

_SCHEME_PATTERN = re.compile(r"https?://", re.IGNORECASE)
_GITHUB_URL_PATTERN = re.compile(
    r"https?://github\.com/([^/\s]+)/([^/\s]+?)/?$",
    re.IGNORECASE,
)


def parse_repo_ref(text: Optional[str]) -> Optional[RepoRef]:
    """Parse free text into a repository reference.

    Accepted shapes:
      - https://github.com/<owner>/<name>, trailing slash optional
      - <owner>/<name>, spaces anywhere are ignored

    Text with more than one slash ("acme/widget/tree") is rejected rather
    than truncated to its first two segments.

    Args:
        text: Raw user input.

    Returns:
        The RepoRef, or None when the text has any other shape. Callers
        treat None exactly like a repository that does not exist.
    """
    if not text:
        return None

    text = text.strip()

    if _SCHEME_PATTERN.search(text):
        match = _GITHUB_URL_PATTERN.search(text)
        if match is None:
            return None
        owner, name = match.group(1), match.group(2)
    else:
        parts = text.replace(" ", "").split("/", 1)
        if len(parts) != 2:
            return None
        owner, name = parts
        if "/" in name:
            return None

    if not owner or not name:
        return None
    return RepoRef(owner=owner, name=name)
