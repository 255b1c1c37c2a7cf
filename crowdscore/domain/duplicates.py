"""
Duplicate Detector - Reports Sharing a Crowdfunding Link
=========================================================

Two reports are duplicates when their links normalize to the same
``hostname + path``. Query strings and fragments are ignored, so links that
differ only by tracking parameters collapse together. Reports whose link
cannot be parsed never take part.

Dismissed keys are normalized URLs, not member sets: a later report with a
dismissed URL joins the hidden group.
"""

from typing import Dict, Iterable, List, Optional, Set
from urllib.parse import urlsplit

from .models import ProjectDelay


def normalize_url(link: str) -> Optional[str]:
    """Return ``hostname + path`` without a trailing slash, or None if unparsable."""
    if not link:
        return None
    try:
        parts = urlsplit(link.strip())
        hostname = parts.hostname
    except ValueError:
        return None
    if not parts.scheme or not hostname:
        return None

    path = parts.path or "/"
    normalized = f"{hostname}{path}"
    if normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized


def group_by_normalized_url(projects: Iterable[ProjectDelay],
                            dismissed: Optional[Set[str]] = None) -> Dict[str, List[ProjectDelay]]:
    """Bucket reports by normalized link, skipping dismissed keys."""
    dismissed = dismissed or set()
    groups: Dict[str, List[ProjectDelay]] = {}
    for project in projects:
        key = normalize_url(project.crowdfunding_link)
        if key is None or key in dismissed:
            continue
        groups.setdefault(key, []).append(project)
    return groups


def find_duplicate_groups(projects: Iterable[ProjectDelay],
                          dismissed: Optional[Set[str]] = None) -> List[List[ProjectDelay]]:
    """Groups of two or more reports sharing a link, any status."""
    groups = group_by_normalized_url(projects, dismissed)
    return [group for group in groups.values() if len(group) > 1]


def group_key(group: List[ProjectDelay]) -> Optional[str]:
    """Dismissal key of a duplicate group."""
    if not group:
        return None
    return normalize_url(group[0].crowdfunding_link)
