"""
Best-effort recovery of an entity label from free-text audit details.

Used when the entity an audit event points at no longer exists. The rules are
tried in order and the first one that yields a non-blank label wins; a new
``details`` wording needs a new rule here.
"""

from __future__ import annotations

import re
from typing import Callable, List, Optional, Tuple

EMAIL_RE = re.compile(r"([a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,})")
USER_NAME_RE = re.compile(
    r"(?:user|user\s)([:\s]*)'?(?P<n>[^'\(]+?)\s*(?:\(Id:|\bDeleted\b|\bSuccessfully\b|$)",
    re.IGNORECASE,
)
SITIO_NAME_RE = re.compile(r"(?:Created|Deleted|Edited)\s+sitio\s*'([^']+)'", re.IGNORECASE)
ID_RE = re.compile(r"\b(Id:\s*([0-9]+)|([0-9a-fA-F\-]{8,}))\b")

MAX_RAW_LABEL = 50


def short_id(value: str) -> str:
    return value[:8]


def truncate(details: str, size: int = MAX_RAW_LABEL) -> str:
    return details[:size] + "..." if len(details) > size else details


def parse_int(value: Optional[str]) -> Optional[int]:
    """
    Integer value of ``value``, or None. Surrounding blanks and a sign are
    allowed; digit-like characters such as superscripts are not.
    """
    if not value or "_" in value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _email(details: str) -> Optional[str]:
    m = EMAIL_RE.search(details)
    return m.group(0) if m else None


def _user_name(details: str) -> Optional[str]:
    m = USER_NAME_RE.search(details)
    return m.group("n").strip() if m else None


def _sitio_name(details: str) -> Optional[str]:
    m = SITIO_NAME_RE.search(details)
    return m.group(1).strip() if m else None


def _id_token(details: str) -> Optional[str]:
    m = ID_RE.search(details)
    if not m:
        return None
    if m.group(2):
        return f"(Id: {m.group(2)})"
    return short_id(m.group(3))


RULES: List[Tuple[str, Callable[[str], Optional[str]]]] = [
    ("email", _email),
    ("user_name", _user_name),
    ("sitio_name", _sitio_name),
    ("id", _id_token),
]


def extract_label(details: Optional[str]) -> str:
    """
    Return a display label for the entity mentioned in ``details``.

    Falls back to the first 50 characters of ``details``; blank details give
    an empty string.
    """
    if not details or not details.strip():
        return ""

    for _name, rule in RULES:
        label = rule(details)
        if label:
            return label

    return truncate(details)


def extract_sitio_name(details: Optional[str]) -> Optional[str]:
    if not details:
        return None
    m = SITIO_NAME_RE.search(details)
    return m.group(1) if m else None
