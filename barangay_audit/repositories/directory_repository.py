from __future__ import annotations

import logging
from typing import Dict, Iterable, List, NamedTuple, Optional, Protocol

from bson import ObjectId
from pymongo.errors import PyMongoError

from barangay_audit.core.errors import StorageError
from barangay_audit.utils.labels import parse_int

logger = logging.getLogger(__name__)


class UserLabel(NamedTuple):
    display_name: str
    numeric_label: Optional[int] = None


class EntityDirectory(Protocol):
    """Resolves entity ids referenced by audit events. Unknown ids are absent."""

    async def get_user_labels(self, ids: Iterable[str]) -> Dict[str, UserLabel]:
        ...

    async def get_sitio_names(self, ids: Iterable[str]) -> Dict[str, str]:
        ...


def _id_candidates(ids: List[str]) -> list:
    # user ids may be stored as plain strings or as ObjectIds
    out: list = list(ids)
    out.extend(ObjectId(x) for x in ids if ObjectId.is_valid(x))
    return out


def _display_name(doc: dict) -> str:
    profile = doc.get("profile") or {}
    if profile:
        full = f"{profile.get('first_name') or ''} {profile.get('last_name') or ''}"
        return full.strip()
    return doc.get("display_name") or doc.get("user_name") or ""


class DirectoryRepository:
    """Mongo-backed entity directory over the ``users`` and ``sitios`` collections."""

    def __init__(self, users_col, sitios_col):
        self.users_col = users_col
        self.sitios_col = sitios_col

    async def get_user_labels(self, ids: Iterable[str]) -> Dict[str, UserLabel]:
        ids = sorted({x for x in ids if x})
        if not ids:
            return {}

        cursor = self.users_col.find(
            {"_id": {"$in": _id_candidates(ids)}},
            {"profile": 1, "display_name": 1, "user_name": 1},
        )

        users: Dict[str, UserLabel] = {}
        try:
            async for u in cursor:
                profile = u.get("profile") or {}
                users[str(u["_id"])] = UserLabel(
                    display_name=_display_name(u),
                    numeric_label=profile.get("user_number"),
                )
        except PyMongoError as exc:
            logger.exception("Failed to resolve user labels", extra={"count": len(ids)})
            raise StorageError(f"Failed to resolve user labels: {exc}") from exc

        return users

    async def get_sitio_names(self, ids: Iterable[str]) -> Dict[str, str]:
        ids = sorted({x for x in ids if x})
        if not ids:
            return {}

        # numeric ids are stored as ints, anything else as strings
        keys: list = [n for n in map(parse_int, ids) if n is not None]
        keys.extend(ids)

        cursor = self.sitios_col.find({"_id": {"$in": keys}}, {"name": 1})

        sitios: Dict[str, str] = {}
        try:
            async for s in cursor:
                sitios[str(s["_id"])] = s.get("name") or ""
        except PyMongoError as exc:
            logger.exception("Failed to resolve sitio names", extra={"count": len(ids)})
            raise StorageError(f"Failed to resolve sitio names: {exc}") from exc

        return sitios
